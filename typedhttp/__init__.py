"""Typed request handlers over a minimal HTTP core."""

from .adapter import BodyHandler, BodyRequest, Handler, Request, body_handler, handler
from .chain import RequestProcessor, build_processor, compile_path, route
from .codec import DEFAULT_CODEC, Codec, json_decode, json_encode
from .http import HttpRequest, HttpResponse, RequestContext, Route
from .result import Err, Ok, Result, err_result, ok_result
from .server import create_server, run_server
from .store import ReadWriteLock, Store

__all__ = [
    "BodyHandler",
    "BodyRequest",
    "Codec",
    "DEFAULT_CODEC",
    "Err",
    "Handler",
    "HttpRequest",
    "HttpResponse",
    "Ok",
    "ReadWriteLock",
    "Request",
    "RequestContext",
    "RequestProcessor",
    "Result",
    "Route",
    "Store",
    "body_handler",
    "build_processor",
    "compile_path",
    "create_server",
    "err_result",
    "handler",
    "json_decode",
    "json_encode",
    "ok_result",
    "route",
    "run_server",
]
