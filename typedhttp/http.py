"""Request/response values shared by the router chain, the server and the adapter.

Handlers never see a socket: they receive a :class:`RequestContext` and leave
their answer in ``ctx.response``.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from http import HTTPStatus
from typing import Any, Callable, Dict, Mapping, Optional, Pattern, Tuple


@dataclass(slots=True)
class HttpRequest:
    method: str
    path: str
    query: str = ""
    headers: Dict[str, str] = field(default_factory=dict)
    body: bytes = b""
    client: Optional[Tuple[str, int]] = None

    def header(self, name: str, default: Optional[str] = None) -> Optional[str]:
        """Case-insensitive header lookup."""

        wanted = name.lower()
        for key, value in self.headers.items():
            if key.lower() == wanted:
                return value
        return default


@dataclass(slots=True)
class HttpResponse:
    status: int
    headers: Dict[str, str] = field(default_factory=dict)
    body: bytes = b""

    def ensure_content_length(self) -> None:
        self.headers.setdefault("Content-Length", str(len(self.body)))


@dataclass(slots=True)
class RequestContext:
    """Per-request state threaded through the chain.

    ``response`` is the outbound channel: whichever step produces the answer
    (router, codec or adapter) writes it here.
    """

    request: HttpRequest
    response: Optional[HttpResponse] = None
    route: Optional["Route"] = None
    params: Dict[str, str] = field(default_factory=dict)


@dataclass(slots=True)
class Route:
    name: str
    pattern: Pattern[str]
    methods: set[str]
    handler: Callable[[RequestContext], HttpResponse]


def make_json_response(status: HTTPStatus | int, data: Any, headers: Optional[Mapping[str, str]] = None) -> HttpResponse:
    body = json.dumps(data).encode()
    response = HttpResponse(int(status), {"Content-Type": "application/json"}, body)
    if headers:
        response.headers.update(headers)
    response.ensure_content_length()
    return response


def json_error(status: HTTPStatus | int, message: str, *, extra_headers: Optional[Mapping[str, str]] = None) -> HttpResponse:
    return make_json_response(status, {"error": message}, extra_headers)


__all__ = [
    "HttpRequest",
    "HttpResponse",
    "RequestContext",
    "Route",
    "json_error",
    "make_json_response",
]
