"""Bridge from :mod:`http.server` to a :class:`~typedhttp.chain.RequestProcessor`.

Every connection is served on its own thread; the processor runs
synchronously inside it.
"""

from __future__ import annotations

import contextlib
import logging
from http import HTTPStatus
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Optional, Protocol
from urllib.parse import urlsplit

from .http import HttpRequest, HttpResponse, json_error

MAX_BODY_BYTES = 5 * 1024 * 1024
CONNECTION_TIMEOUT = 30


class RequestHandler(Protocol):
    def handle(self, request: HttpRequest) -> HttpResponse:
        """Process ``request`` and return an HTTP response."""


class ProcessorRequestHandler(BaseHTTPRequestHandler):
    processor: RequestHandler
    protocol_version = "HTTP/1.1"
    timeout = CONNECTION_TIMEOUT
    logger = logging.getLogger("typedhttp.server")

    def do_GET(self) -> None:
        self._dispatch()

    def do_HEAD(self) -> None:
        self._dispatch()

    def do_POST(self) -> None:
        self._dispatch()

    def do_PUT(self) -> None:
        self._dispatch()

    def do_PATCH(self) -> None:
        self._dispatch()

    def do_DELETE(self) -> None:
        self._dispatch()

    def do_OPTIONS(self) -> None:
        self._dispatch()

    def send_error(self, code: int, message: Optional[str] = None, explain: Optional[str] = None) -> None:
        # stdlib parse errors answer with the same JSON shape as the router
        self.logger.warning("rejected request from %s: %s %s", self.client_address[0], code, message or "")
        self._write(json_error(code, message or HTTPStatus(code).phrase))

    def log_message(self, format: str, *args) -> None:  # pragma: no cover - access log lives in the chain
        self.logger.debug("%s - %s", self.address_string(), format % args)

    def _dispatch(self) -> None:
        body = self._read_body()
        if body is None:
            return
        parsed = urlsplit(self.path)
        request = HttpRequest(
            method=self.command,
            path=parsed.path or "/",
            query=parsed.query,
            headers={name.lower(): value for name, value in self.headers.items()},
            body=body,
            client=(self.client_address[0], self.client_address[1]),
        )
        try:
            response = self.processor.handle(request)
        except Exception:  # noqa: BLE001
            self.logger.exception("request processor failed for %s %s", request.method, request.path)
            response = json_error(HTTPStatus.INTERNAL_SERVER_ERROR, "Internal Server Error")
        self._write(response)

    def _read_body(self) -> Optional[bytes]:
        raw_length = self.headers.get("content-length") or "0"
        try:
            length = int(raw_length)
        except ValueError:
            self._write(json_error(HTTPStatus.BAD_REQUEST, "invalid content-length"))
            return None
        if length < 0:
            self._write(json_error(HTTPStatus.BAD_REQUEST, "invalid content-length"))
            return None
        if length > MAX_BODY_BYTES:
            self._write(json_error(HTTPStatus.REQUEST_ENTITY_TOO_LARGE, "request body too large"))
            return None
        return self.rfile.read(length) if length else b""

    def _write(self, response: HttpResponse) -> None:
        response.ensure_content_length()
        self.send_response(response.status)
        for name, value in response.headers.items():
            if name.lower() != "connection":
                self.send_header(name, value)
        self.send_header("Connection", "close")
        self.end_headers()
        if self.command != "HEAD" and response.body:
            self.wfile.write(response.body)


def create_server(handler: RequestHandler, port: int, host: str = "0.0.0.0") -> ThreadingHTTPServer:
    handler_cls = type("ConfiguredProcessorRequestHandler", (ProcessorRequestHandler,), {})
    handler_cls.processor = handler
    return ThreadingHTTPServer((host, port), handler_cls)


def run_server(handler: RequestHandler, port: int, host: str = "0.0.0.0") -> None:
    """Serve ``handler`` until interrupted."""

    server = create_server(handler, port, host)
    logger = ProcessorRequestHandler.logger
    logger.info("listening on %s:%s", host, server.server_address[1])
    with contextlib.closing(server):
        try:
            server.serve_forever()
        except KeyboardInterrupt:
            pass
    logger.info("shutting down")


__all__ = ["MAX_BODY_BYTES", "ProcessorRequestHandler", "RequestHandler", "create_server", "run_server"]
