"""Result envelope returned by typed handlers.

A handler answers with either ``Ok(value)`` or ``Err(error)``. Both carry an
optional HTTP status; ``0`` means "use the default" which is ``200``.
"""

from __future__ import annotations

from dataclasses import dataclass
from http import HTTPStatus
from typing import Any, Generic, TypeVar, Union

T = TypeVar("T")
E = TypeVar("E")

DEFAULT_STATUS = int(HTTPStatus.OK)


def _check_status(status_code: int) -> None:
    if status_code == 0:
        return
    if not 100 <= status_code <= 599:
        raise ValueError(f"invalid HTTP status code: {status_code}")


@dataclass(frozen=True, slots=True)
class Ok(Generic[T]):
    value: T
    status_code: int = 0

    def __post_init__(self) -> None:
        _check_status(self.status_code)

    @property
    def is_ok(self) -> bool:
        return True


@dataclass(frozen=True, slots=True)
class Err(Generic[E]):
    error: E
    status_code: int = 0

    def __post_init__(self) -> None:
        _check_status(self.status_code)

    @property
    def is_ok(self) -> bool:
        return False


Result = Union[Ok[T], Err[E]]


def ok_result(value: T, status_code: HTTPStatus | int = 0) -> Ok[T]:
    return Ok(value, int(status_code))


def err_result(error: E, status_code: HTTPStatus | int = 0) -> Err[E]:
    return Err(error, int(status_code))


def payload(result: Result[Any, Any]) -> Any:
    """Return what goes on the wire: the error when set, else the value."""

    if isinstance(result, Err):
        return result.error
    if isinstance(result, Ok):
        return result.value
    raise TypeError(f"handler must return Ok or Err, got {type(result).__name__}")


def resolve_status(result: Result[Any, Any]) -> int:
    if result.status_code:
        return result.status_code
    return DEFAULT_STATUS


__all__ = [
    "DEFAULT_STATUS",
    "Err",
    "Ok",
    "Result",
    "err_result",
    "ok_result",
    "payload",
    "resolve_status",
]
