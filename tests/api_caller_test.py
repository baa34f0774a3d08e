from __future__ import annotations

import asyncio
import json
import socket
import unittest

import httpx

from formflow.api_caller import HttpxApiCaller
from formflow.settings import AppSettings
from formflow.workflow import ApiCallError, ApiRequest


class HttpxApiCallerTests(unittest.TestCase):
    def setUp(self) -> None:
        self.seen: list[httpx.Request] = []
        self.resolved: list[str] = []
        self.dns: dict[str, list[str]] = {}

    async def _resolve(self, host: str, port: int) -> list[str]:
        self.resolved.append(host)
        if host not in self.dns:
            return ["93.184.216.34"]
        addresses = self.dns[host]
        if not addresses:
            raise socket.gaierror(socket.EAI_NONAME, "Name or service not known")
        return addresses

    def _caller(self, handler, **kwargs) -> HttpxApiCaller:
        def _recording(request: httpx.Request) -> httpx.Response:
            self.seen.append(request)
            return handler(request)

        kwargs.setdefault("resolver", self._resolve)
        return HttpxApiCaller(transport=httpx.MockTransport(_recording), **kwargs)

    def test_json_response_is_decoded(self) -> None:
        caller = self._caller(lambda request: httpx.Response(200, json={"ok": True}))
        request = ApiRequest(
            url="https://api.example.com/submit",
            method="POST",
            headers={"X-Api-Key": "k"},
            body='{"email": "a@b.c"}',
        )

        response = asyncio.run(caller(request, {}))

        self.assertEqual(response, {"ok": True})
        sent = self.seen[0]
        self.assertEqual(sent.method, "POST")
        self.assertEqual(json.loads(sent.content), {"email": "a@b.c"})
        self.assertEqual(sent.headers["content-type"], "application/json")
        self.assertEqual(sent.headers["x-api-key"], "k")

    def test_text_response_and_get_without_body(self) -> None:
        caller = self._caller(lambda request: httpx.Response(200, text="plain"))
        response = asyncio.run(caller(ApiRequest(url="https://api.example.com/ping", body="ignored"), {}))
        self.assertEqual(response, "plain")
        self.assertEqual(self.seen[0].content, b"")

    def test_http_errors_raise(self) -> None:
        caller = self._caller(lambda request: httpx.Response(502, text="bad gateway"))
        with self.assertRaises(ApiCallError) as ctx:
            asyncio.run(caller(ApiRequest(url="https://api.example.com/down"), {}))
        self.assertIn("HTTP 502", str(ctx.exception))

    def test_transport_errors_raise(self) -> None:
        def _fail(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        with self.assertRaises(ApiCallError):
            asyncio.run(self._caller(_fail)(ApiRequest(url="https://api.example.com"), {}))

    def test_internal_hosts_are_blocked(self) -> None:
        caller = self._caller(lambda request: httpx.Response(200))
        for url in ("http://localhost:8000/x", "http://127.0.0.1/x", "http://10.1.2.3/x", "http://[::1]/x"):
            with self.subTest(url=url):
                with self.assertRaises(ApiCallError):
                    asyncio.run(caller(ApiRequest(url=url), {}))
        self.assertEqual(self.seen, [])

        open_caller = self._caller(lambda request: httpx.Response(200, text="ok"), block_private_hosts=False)
        self.assertEqual(asyncio.run(open_caller(ApiRequest(url="http://127.0.0.1/x"), {})), "ok")

    def test_hostnames_resolving_to_internal_addresses_are_blocked(self) -> None:
        self.dns = {"intranet.example.com": ["93.184.216.34", "10.0.0.7"], "ghost.example.com": []}
        caller = self._caller(lambda request: httpx.Response(200, text="ok"))

        with self.assertRaises(ApiCallError) as ctx:
            asyncio.run(caller(ApiRequest(url="https://intranet.example.com/admin"), {}))
        self.assertIn("10.0.0.7", str(ctx.exception))

        with self.assertRaises(ApiCallError) as ctx:
            asyncio.run(caller(ApiRequest(url="https://ghost.example.com/"), {}))
        self.assertIn("Could not resolve host", str(ctx.exception))
        self.assertEqual(self.seen, [])

        self.assertEqual(asyncio.run(caller(ApiRequest(url="https://api.example.com/ok"), {})), "ok")
        self.assertEqual(self.resolved, ["intranet.example.com", "ghost.example.com", "api.example.com"])

    def test_resolution_is_skipped_when_blocking_is_off(self) -> None:
        self.dns = {"intranet.example.com": ["10.0.0.7"]}
        caller = self._caller(lambda request: httpx.Response(200, text="ok"), block_private_hosts=False)
        self.assertEqual(asyncio.run(caller(ApiRequest(url="https://intranet.example.com/"), {})), "ok")
        self.assertEqual(self.resolved, [])

    def test_relative_or_non_http_urls_are_rejected(self) -> None:
        caller = self._caller(lambda request: httpx.Response(200))
        for url in ("/relative", "ftp://example.com/file"):
            with self.subTest(url=url):
                with self.assertRaises(ApiCallError):
                    asyncio.run(caller(ApiRequest(url=url), {}))

    def test_from_settings(self) -> None:
        caller = HttpxApiCaller.from_settings(AppSettings(http_timeout_seconds=5.0, block_private_hosts=False))
        self.assertEqual(caller._timeout_seconds, 5.0)
        self.assertFalse(caller._block_private_hosts)


if __name__ == "__main__":
    unittest.main()
