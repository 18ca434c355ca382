"""Wire format strategy for typed handlers.

A :class:`Codec` bundles the two functions the adapter uses to talk to the
wire. Both write their own failure response into ``ctx.response`` and report
the outcome as a boolean, so the adapter only has to stop.

The default pair speaks JSON through pydantic, which lets request bodies be
validated straight into dataclasses, pydantic models, builtins or containers
of those. Validation is strict: a JSON value of the wrong kind (a string or a
bool for an int field, null for a non-optional field) is a 400, never coerced.
"""

from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass
from functools import lru_cache
from http import HTTPStatus
from typing import Any, Callable, Optional, Tuple

from pydantic import TypeAdapter, ValidationError
from pydantic_core import PydanticSerializationError, to_json

from .http import HttpResponse, RequestContext, json_error

logger = logging.getLogger(__name__)

DecodeFunc = Callable[[RequestContext, Any], Tuple[Any, bool]]
EncodeFunc = Callable[[RequestContext, Any, int], bool]

INVALID_BODY_MESSAGE = "invalid request body"
ENCODE_FAILED_MESSAGE = "Internal Server Error"


@lru_cache(maxsize=256)
def _adapter_for(body_type: Any) -> TypeAdapter:
    return TypeAdapter(body_type)


def json_decode(ctx: RequestContext, body_type: Any) -> Tuple[Any, bool]:
    try:
        value = _adapter_for(body_type).validate_json(ctx.request.body, strict=True)
    except ValidationError as exc:
        logger.warning(
            "rejected %s %s body: %s",
            ctx.request.method,
            ctx.request.path,
            exc.errors(include_url=False),
        )
        ctx.response = json_error(HTTPStatus.BAD_REQUEST, INVALID_BODY_MESSAGE)
        return None, False
    return value, True


def json_encode(ctx: RequestContext, value: Any, status_code: int) -> bool:
    try:
        body = to_json(value)
    except (PydanticSerializationError, TypeError, ValueError) as exc:
        logger.error("could not encode %s response: %s", type(value).__name__, exc)
        ctx.response = json_error(HTTPStatus.INTERNAL_SERVER_ERROR, ENCODE_FAILED_MESSAGE)
        return False
    ctx.response = HttpResponse(
        status_code,
        {
            "Content-Type": "application/json",
            "Content-Length": str(len(body)),
        },
        body,
    )
    return True


@dataclass(frozen=True)
class Codec:
    """Immutable encode/decode configuration shared by every adapter."""

    decode: DecodeFunc = json_decode
    encode: EncodeFunc = json_encode

    def replace(self, *, decode: Optional[DecodeFunc] = None, encode: Optional[EncodeFunc] = None) -> "Codec":
        changes = {}
        if decode is not None:
            changes["decode"] = decode
        if encode is not None:
            changes["encode"] = encode
        return dataclasses.replace(self, **changes)


DEFAULT_CODEC = Codec()


__all__ = [
    "Codec",
    "DEFAULT_CODEC",
    "DecodeFunc",
    "EncodeFunc",
    "json_decode",
    "json_encode",
]
