from __future__ import annotations

import http.client
import json
import threading
from typing import Iterator

import pytest

from typedhttp import Store, build_processor, create_server, route
from typedhttp.http import HttpRequest, HttpResponse, RequestContext, make_json_response
from typedhttp.server import MAX_BODY_BYTES, RequestHandler
from recordsvc.handlers import build_handler
from recordsvc.models import Record


class _Running:
    def __init__(self, handler: RequestHandler) -> None:
        self.server = create_server(handler, 0, host="127.0.0.1")
        self.port = self.server.server_address[1]
        self._thread = threading.Thread(target=self.server.serve_forever, daemon=True)
        self._thread.start()

    def connect(self) -> http.client.HTTPConnection:
        return http.client.HTTPConnection("127.0.0.1", self.port, timeout=5)

    def stop(self) -> None:
        self.server.shutdown()
        self.server.server_close()
        self._thread.join(timeout=5)


def _serve(handler: RequestHandler) -> Iterator[_Running]:
    running = _Running(handler)
    try:
        yield running
    finally:
        running.stop()


@pytest.fixture
def records_server() -> Iterator[_Running]:
    yield from _serve(build_handler(Store({"james": Record(name="james"), "a b": Record(name="a b", age=3)})))


def test_get_over_the_wire(records_server: _Running) -> None:
    conn = records_server.connect()
    conn.request("GET", "/james")
    resp = conn.getresponse()
    body = resp.read()
    conn.close()

    assert resp.status == 200
    assert resp.getheader("Content-Type") == "application/json"
    assert resp.getheader("Connection") == "close"
    assert int(resp.getheader("Content-Length")) == len(body)
    assert json.loads(body) == {"name": "james", "age": 0}


def test_put_then_get_over_the_wire(records_server: _Running) -> None:
    conn = records_server.connect()
    conn.request("PUT", "/ryn", body=b'{"name":"ryn","age":7}', headers={"Content-Type": "application/json"})
    put = conn.getresponse()
    put_body = put.read()
    conn.close()

    conn = records_server.connect()
    conn.request("GET", "/ryn")
    got = conn.getresponse()
    got_body = got.read()
    conn.close()

    assert put.status == 200
    assert json.loads(put_body) == {"name": "ryn", "age": 7}
    assert got.status == 200
    assert json.loads(got_body) == {"name": "ryn", "age": 7}


def test_percent_encoded_key_over_the_wire(records_server: _Running) -> None:
    conn = records_server.connect()
    conn.request("GET", "/a%20b")
    resp = conn.getresponse()
    body = resp.read()
    conn.close()

    assert resp.status == 200
    assert json.loads(body) == {"name": "a b", "age": 3}


def test_invalid_content_length_is_400(records_server: _Running) -> None:
    conn = records_server.connect()
    conn.putrequest("PUT", "/james")
    conn.putheader("Content-Length", "abc")
    conn.endheaders()
    resp = conn.getresponse()
    body = resp.read()
    conn.close()

    assert resp.status == 400
    assert json.loads(body) == {"error": "invalid content-length"}


def test_oversized_body_is_413(records_server: _Running) -> None:
    conn = records_server.connect()
    conn.putrequest("PUT", "/james")
    conn.putheader("Content-Length", str(MAX_BODY_BYTES + 1))
    conn.endheaders()
    resp = conn.getresponse()
    body = resp.read()
    conn.close()

    assert resp.status == 413
    assert json.loads(body) == {"error": "request body too large"}


def test_unknown_method_answers_json_error(records_server: _Running) -> None:
    conn = records_server.connect()
    conn.request("BREW", "/james")
    resp = conn.getresponse()
    body = resp.read()
    conn.close()

    assert resp.status == 501
    assert "error" in json.loads(body)


def test_processor_crash_becomes_500() -> None:
    class Exploding:
        def handle(self, request: HttpRequest) -> HttpResponse:
            raise RuntimeError("boom")

    for running in _serve(Exploding()):
        conn = running.connect()
        conn.request("GET", "/")
        resp = conn.getresponse()
        body = resp.read()
        conn.close()

    assert resp.status == 500
    assert json.loads(body) == {"error": "Internal Server Error"}


def test_head_request_omits_body() -> None:
    def ping(ctx: RequestContext) -> HttpResponse:
        return make_json_response(200, {"status": "ok"})

    for running in _serve(build_processor([route("ping", "/ping", {"HEAD"}, ping)])):
        conn = running.connect()
        conn.request("HEAD", "/ping")
        resp = conn.getresponse()
        body = resp.read()
        conn.close()

    assert resp.status == 200
    assert resp.getheader("Content-Length") == str(len(b'{"status": "ok"}'))
    assert body == b""
