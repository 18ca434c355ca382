"""Request pipeline: access log -> error trap -> router -> dispatch.

Each stage either answers the request itself or forwards the context to the
next one. :func:`build_processor` wires the stages around a route table and
returns the object the server talks to.
"""

from __future__ import annotations

import json
import logging
import re
import time
from abc import ABC, abstractmethod
from http import HTTPStatus
from typing import Callable, Iterable, Optional
from urllib.parse import unquote

from .http import HttpRequest, HttpResponse, RequestContext, Route, json_error

logger = logging.getLogger(__name__)
access_logger = logging.getLogger("typedhttp.access")

_PATH_PARAM = re.compile(r"\{([A-Za-z_][A-Za-z0-9_]*)\}")


def compile_path(template: str) -> re.Pattern[str]:
    """Turn ``/items/{key}`` into a regex with one named group per segment."""

    parts = []
    last = 0
    for match in _PATH_PARAM.finditer(template):
        parts.append(re.escape(template[last : match.start()]))
        parts.append(f"(?P<{match.group(1)}>[^/]+)")
        last = match.end()
    parts.append(re.escape(template[last:]))
    return re.compile("^" + "".join(parts) + "$")


def route(name: str, template: str, methods: Iterable[str], handler: Callable[[RequestContext], HttpResponse]) -> Route:
    return Route(name, compile_path(template), {m.upper() for m in methods}, handler)


class Stage(ABC):
    def __init__(self) -> None:
        self._next: Optional[Stage] = None

    def then(self, stage: "Stage") -> "Stage":
        self._next = stage
        return stage

    @abstractmethod
    def handle(self, ctx: RequestContext) -> HttpResponse:
        ...

    def forward(self, ctx: RequestContext) -> HttpResponse:
        if self._next is not None:
            return self._next.handle(ctx)
        if ctx.response is None:
            ctx.response = json_error(HTTPStatus.INTERNAL_SERVER_ERROR, "Unhandled request")
        return ctx.response


class AccessLog(Stage):
    """Emits one compact JSON line per request on ``typedhttp.access``."""

    def handle(self, ctx: RequestContext) -> HttpResponse:
        started = time.perf_counter()
        response = self.forward(ctx)
        request = ctx.request
        access_logger.info(
            json.dumps(
                {
                    "ts": int(time.time() * 1000),
                    "method": request.method,
                    "path": request.path,
                    "route": ctx.route.name if ctx.route else None,
                    "status": int(response.status),
                    "ms": round((time.perf_counter() - started) * 1000, 1),
                    "remote": request.client[0] if request.client else None,
                },
                separators=(",", ":"),
            )
        )
        return response


class ErrorTrap(Stage):
    def handle(self, ctx: RequestContext) -> HttpResponse:
        try:
            return self.forward(ctx)
        except Exception:  # noqa: BLE001
            logger.exception("unhandled error on %s %s", ctx.request.method, ctx.request.path)
            ctx.response = json_error(HTTPStatus.INTERNAL_SERVER_ERROR, "Internal Server Error")
            return ctx.response


class Router(Stage):
    """Picks the route for the path and method; 404 or 405 otherwise.

    Path parameters are percent-decoded, so ``/a%20b`` yields ``key == "a b"``.
    """

    def __init__(self, routes: Iterable[Route]) -> None:
        super().__init__()
        self._routes = list(routes)

    def handle(self, ctx: RequestContext) -> HttpResponse:
        allowed: set[str] = set()
        for candidate in self._routes:
            match = candidate.pattern.match(ctx.request.path)
            if match is None:
                continue
            if ctx.request.method not in candidate.methods:
                allowed |= candidate.methods
                continue
            ctx.route = candidate
            ctx.params = {name: unquote(value) for name, value in match.groupdict().items()}
            return self.forward(ctx)
        if allowed:
            ctx.response = json_error(
                HTTPStatus.METHOD_NOT_ALLOWED,
                "Method Not Allowed",
                extra_headers={"Allow": ", ".join(sorted(allowed))},
            )
        else:
            ctx.response = json_error(HTTPStatus.NOT_FOUND, "Not Found")
        return ctx.response


class Dispatch(Stage):
    def handle(self, ctx: RequestContext) -> HttpResponse:
        if ctx.route is None:
            ctx.response = json_error(HTTPStatus.NOT_FOUND, "Not Found")
        else:
            ctx.response = ctx.route.handler(ctx)
        return ctx.response


class RequestProcessor:
    """Entry point used by the HTTP server."""

    def __init__(self, entry: Stage) -> None:
        self._entry = entry

    def handle(self, request: HttpRequest) -> HttpResponse:
        response = self._entry.handle(RequestContext(request=request))
        response.ensure_content_length()
        return response


def build_processor(routes: Iterable[Route]) -> RequestProcessor:
    stages: list[Stage] = [AccessLog(), ErrorTrap(), Router(routes), Dispatch()]
    for current, following in zip(stages, stages[1:]):
        current.then(following)
    return RequestProcessor(stages[0])


__all__ = [
    "AccessLog",
    "Dispatch",
    "ErrorTrap",
    "RequestProcessor",
    "Router",
    "Stage",
    "build_processor",
    "compile_path",
    "route",
]
