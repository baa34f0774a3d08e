from __future__ import annotations

import asyncio
import ipaddress
import logging
import socket
from typing import Any, Awaitable, Callable, Mapping

import httpx

from formflow.settings import AppSettings
from formflow.workflow.calls import ApiCallError, ApiRequest


LOGGER = logging.getLogger(__name__)

BLOCKED_HOSTNAMES = {"localhost", "localhost.localdomain", "0.0.0.0", "::1"}
DEFAULT_HEADERS = {"Content-Type": "application/json"}

HostResolver = Callable[[str, int], Awaitable[list[str]]]


class HttpxApiCaller:
    """Call capability that performs workflow requests with ``httpx``.

    Responses with a JSON content type are decoded, everything else is
    returned as text. HTTP errors and transport failures raise
    ``ApiCallError``. Each request is attempted exactly once.

    With ``block_private_hosts`` on, literal addresses and every address a
    hostname resolves to must be public. The check runs before the request,
    so a name that changes its answer between the check and the connect
    (DNS rebinding) is not caught here.
    """

    def __init__(
        self,
        *,
        timeout_seconds: float = 20.0,
        block_private_hosts: bool = True,
        transport: httpx.AsyncBaseTransport | None = None,
        resolver: HostResolver | None = None,
    ) -> None:
        self._timeout_seconds = max(1.0, float(timeout_seconds))
        self._block_private_hosts = block_private_hosts
        self._transport = transport
        self._resolver = resolver or resolve_host_addresses

    @classmethod
    def from_settings(cls, settings: AppSettings, **kwargs: Any) -> HttpxApiCaller:
        return cls(
            timeout_seconds=settings.http_timeout_seconds,
            block_private_hosts=settings.block_private_hosts,
            **kwargs,
        )

    async def __call__(self, request: ApiRequest, context: Mapping[str, Any]) -> Any:
        _ = context
        url = self._checked_url(request.url)
        if self._block_private_hosts:
            await self._reject_private_resolution(url)
        method = request.method.upper()
        headers = {**DEFAULT_HEADERS, **request.headers}
        content = request.body.encode("utf-8") if request.body and method != "GET" else None

        try:
            async with httpx.AsyncClient(timeout=self._timeout_seconds, transport=self._transport) as client:
                response = await client.request(method, url, headers=headers, content=content)
        except httpx.HTTPError as exc:
            raise ApiCallError(f"{method} {url} failed: {exc}") from exc

        LOGGER.debug("%s %s -> HTTP %s", method, url, response.status_code)
        if response.status_code >= 400:
            raise ApiCallError(f"{method} {url} returned HTTP {response.status_code}.")
        return self._decode(response)

    def _checked_url(self, raw_url: str) -> httpx.URL:
        try:
            url = httpx.URL(raw_url)
        except httpx.InvalidURL as exc:
            raise ApiCallError(f"Invalid URL '{raw_url}': {exc}") from exc

        if url.scheme not in {"http", "https"} or not url.host:
            raise ApiCallError(f"Invalid URL '{raw_url}': expected an absolute http(s) URL.")
        if self._block_private_hosts and _is_internal_host(url.host):
            raise ApiCallError(f"Requests to internal host '{url.host}' are not allowed.")
        return url

    async def _reject_private_resolution(self, url: httpx.URL) -> None:
        host = url.host.strip("[]")
        if _is_ip_literal(host):
            return

        port = url.port or (443 if url.scheme == "https" else 80)
        try:
            addresses = await self._resolver(host, port)
        except OSError as exc:
            raise ApiCallError(f"Could not resolve host '{host}': {exc}") from exc

        for address in addresses:
            if _is_internal_host(address):
                raise ApiCallError(f"Host '{host}' resolves to internal address '{address}'; request refused.")

    def _decode(self, response: httpx.Response) -> Any:
        content_type = response.headers.get("content-type", "")
        if "json" in content_type:
            try:
                return response.json()
            except ValueError:
                LOGGER.debug("Response declared JSON but could not be decoded; returning text.")
        return response.text


def _is_ip_literal(host: str) -> bool:
    try:
        ipaddress.ip_address(host)
    except ValueError:
        return False
    return True


def _is_internal_host(host: str) -> bool:
    host = host.strip("[]").lower()
    if host in BLOCKED_HOSTNAMES:
        return True
    try:
        address = ipaddress.ip_address(host)
    except ValueError:
        return False
    return address.is_private or address.is_loopback or address.is_link_local or address.is_unspecified


async def resolve_host_addresses(host: str, port: int) -> list[str]:
    loop = asyncio.get_running_loop()
    infos = await loop.getaddrinfo(host, port, type=socket.SOCK_STREAM)
    return [str(info[4][0]) for info in infos]
