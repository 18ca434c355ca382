from __future__ import annotations

import logging
from http import HTTPStatus
from typing import Optional

from typedhttp import (
    BodyHandler,
    BodyRequest,
    Codec,
    Handler,
    Request,
    RequestProcessor,
    Result,
    Store,
    build_processor,
    err_result,
    ok_result,
    route,
)

from .models import APIError, Record

logger = logging.getLogger(__name__)


def make_get_value(db: Store[Record], codec: Optional[Codec] = None) -> Handler[Record, APIError]:
    def get_value(req: Request) -> Result[Record, APIError]:
        key = req.params["key"]
        value, found = db.get(key)
        if not found:
            return err_result(APIError(f"key not found in the db: {key}"), HTTPStatus.NOT_FOUND)
        return ok_result(value)

    return Handler(get_value, codec=codec)


def make_set_value(db: Store[Record], codec: Optional[Codec] = None) -> BodyHandler[Record, Record, APIError]:
    def set_value(req: BodyRequest[Record]) -> Result[Record, APIError]:
        key = req.params["key"]
        existed = db.set(key, req.body)
        logger.debug("%s record %r", "updated" if existed else "created", key)
        return ok_result(req.body)

    return BodyHandler(set_value, codec=codec)


def build_handler(db: Store[Record], codec: Optional[Codec] = None) -> RequestProcessor:
    routes = [
        route("get_value", "/{key}", {"GET"}, make_get_value(db, codec)),
        route("set_value", "/{key}", {"PUT"}, make_set_value(db, codec)),
    ]
    return build_processor(routes)


__all__ = ["build_handler", "make_get_value", "make_set_value"]
