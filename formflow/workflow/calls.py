from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Awaitable, Mapping, Protocol


class ApiCallError(RuntimeError):
    """Raised by a call capability when an outbound request fails."""


@dataclass(slots=True)
class ApiRequest:
    url: str
    method: str = "GET"
    headers: dict[str, str] = field(default_factory=dict)
    body: str | None = None

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"url": self.url, "method": self.method}
        if self.headers:
            payload["headers"] = dict(self.headers)
        if self.body is not None:
            payload["body"] = self.body
        return payload


class ApiCaller(Protocol):
    """Injected capability that performs a network request for a workflow node.

    The engine awaits the returned value and never performs I/O itself.
    Cancelling a run does not guarantee an in-flight request is aborted.
    """

    def __call__(self, request: ApiRequest, context: Mapping[str, Any]) -> Awaitable[Any]:
        ...
