"""Adapters turning typed business functions into route handlers.

Two shapes are supported::

    def get_value(req: Request) -> Result[Record, APIError]: ...
    def set_value(req: BodyRequest[Record]) -> Result[Record, APIError]: ...

``Handler(get_value)`` and ``BodyHandler(set_value)`` are callables with the
``Callable[[RequestContext], HttpResponse]`` signature expected by
:class:`~typedhttp.http.Route`. Each call runs decode (body-bearing shape
only), the business function and encode, in that order, and stops at the
first step that fails.
"""

from __future__ import annotations

import inspect
import logging
import typing
from dataclasses import dataclass, field
from http import HTTPStatus
from typing import Any, Callable, Dict, Generic, Optional, TypeVar

from .codec import DEFAULT_CODEC, Codec
from .http import HttpRequest, HttpResponse, RequestContext, json_error
from .result import Result, payload, resolve_status

logger = logging.getLogger(__name__)

In = TypeVar("In")
Out = TypeVar("Out")
E = TypeVar("E")


@dataclass(frozen=True, slots=True)
class Request:
    """What a body-less handler receives."""

    http: HttpRequest
    params: Dict[str, str] = field(default_factory=dict)

    def param(self, name: str, default: Optional[str] = None) -> Optional[str]:
        return self.params.get(name, default)


@dataclass(frozen=True, slots=True)
class BodyRequest(Generic[In]):
    """What a body-bearing handler receives: the request plus its decoded body."""

    http: HttpRequest
    body: In
    params: Dict[str, str] = field(default_factory=dict)

    def param(self, name: str, default: Optional[str] = None) -> Optional[str]:
        return self.params.get(name, default)


def _infer_body_type(fn: Callable[..., Any]) -> Any:
    try:
        params = list(inspect.signature(fn).parameters.values())
        hints = typing.get_type_hints(fn)
    except (NameError, TypeError, ValueError) as exc:
        raise TypeError(f"cannot infer request body type of {fn!r}: {exc}") from exc
    if not params or params[0].name not in hints:
        raise TypeError(f"cannot infer request body type of {fn!r}; pass body_type explicitly")
    hint = hints[params[0].name]
    if typing.get_origin(hint) is not BodyRequest:
        raise TypeError(f"first parameter of {fn!r} must be annotated as BodyRequest[...]")
    (body_type,) = typing.get_args(hint)
    return body_type


def _response_of(ctx: RequestContext) -> HttpResponse:
    # a codec that reports success without writing anything is a bug
    if ctx.response is None:
        ctx.response = json_error(HTTPStatus.INTERNAL_SERVER_ERROR, "Unhandled request")
    return ctx.response


def _write_result(ctx: RequestContext, result: Result[Any, Any], codec: Codec) -> HttpResponse:
    output = payload(result)
    status = resolve_status(result)
    if not codec.encode(ctx, output, status):
        logger.debug("encode failed for %s %s", ctx.request.method, ctx.request.path)
    return _response_of(ctx)


class Handler(Generic[Out, E]):
    """Adapter for ``fn(Request) -> Result[Out, E]``."""

    def __init__(self, fn: Callable[[Request], Result[Out, E]], codec: Optional[Codec] = None) -> None:
        self._fn = fn
        self._codec = codec or DEFAULT_CODEC

    def __call__(self, ctx: RequestContext) -> HttpResponse:
        result = self._fn(Request(http=ctx.request, params=dict(ctx.params)))
        return _write_result(ctx, result, self._codec)

    def __repr__(self) -> str:
        return f"Handler({getattr(self._fn, '__qualname__', self._fn)!r})"


class BodyHandler(Generic[In, Out, E]):
    """Adapter for ``fn(BodyRequest[In]) -> Result[Out, E]``.

    ``body_type`` is what the request body is decoded into. When omitted it
    is read from the ``BodyRequest[...]`` annotation of ``fn``.
    """

    def __init__(
        self,
        fn: Callable[[BodyRequest[In]], Result[Out, E]],
        body_type: Any = None,
        codec: Optional[Codec] = None,
    ) -> None:
        self._fn = fn
        self._codec = codec or DEFAULT_CODEC
        self.body_type = body_type if body_type is not None else _infer_body_type(fn)

    def __call__(self, ctx: RequestContext) -> HttpResponse:
        body, ok = self._codec.decode(ctx, self.body_type)
        if not ok:
            return _response_of(ctx)
        result = self._fn(BodyRequest(http=ctx.request, body=body, params=dict(ctx.params)))
        return _write_result(ctx, result, self._codec)

    def __repr__(self) -> str:
        return f"BodyHandler({getattr(self._fn, '__qualname__', self._fn)!r}, body_type={self.body_type!r})"


def handler(codec: Optional[Codec] = None) -> Callable[[Callable[[Request], Result[Out, E]]], Handler[Out, E]]:
    def decorate(fn: Callable[[Request], Result[Out, E]]) -> Handler[Out, E]:
        return Handler(fn, codec=codec)

    return decorate


def body_handler(
    body_type: Any = None, codec: Optional[Codec] = None
) -> Callable[[Callable[[BodyRequest[In]], Result[Out, E]]], BodyHandler[In, Out, E]]:
    def decorate(fn: Callable[[BodyRequest[In]], Result[Out, E]]) -> BodyHandler[In, Out, E]:
        return BodyHandler(fn, body_type=body_type, codec=codec)

    return decorate


__all__ = [
    "BodyHandler",
    "BodyRequest",
    "Handler",
    "Request",
    "body_handler",
    "handler",
]
