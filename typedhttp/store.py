"""In-memory key/value store shared by concurrent request handlers."""

from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Dict, Generic, Iterator, Mapping, Optional, Tuple, TypeVar

T = TypeVar("T")


class ReadWriteLock:
    """Many readers or a single writer.

    Waiting writers block new readers, so a steady stream of ``get`` calls
    cannot starve ``set``.
    """

    def __init__(self) -> None:
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False
        self._waiting_writers = 0

    def acquire_read(self) -> None:
        with self._cond:
            while self._writer or self._waiting_writers:
                self._cond.wait()
            self._readers += 1

    def release_read(self) -> None:
        with self._cond:
            self._readers -= 1
            if self._readers == 0:
                self._cond.notify_all()

    def acquire_write(self) -> None:
        with self._cond:
            self._waiting_writers += 1
            try:
                while self._writer or self._readers:
                    self._cond.wait()
            finally:
                self._waiting_writers -= 1
            self._writer = True

    def release_write(self) -> None:
        with self._cond:
            self._writer = False
            self._cond.notify_all()

    @contextmanager
    def read_locked(self) -> Iterator[None]:
        self.acquire_read()
        try:
            yield
        finally:
            self.release_read()

    @contextmanager
    def write_locked(self) -> Iterator[None]:
        self.acquire_write()
        try:
            yield
        finally:
            self.release_write()


class Store(Generic[T]):
    """Mapping of string keys to values of a single type.

    Entries are created on the first :meth:`set` and overwritten by later
    ones; nothing expires.
    """

    def __init__(self, initial: Optional[Mapping[str, T]] = None) -> None:
        self._lock = ReadWriteLock()
        self._data: Dict[str, T] = dict(initial or {})

    def get(self, key: str) -> Tuple[Optional[T], bool]:
        """Return ``(value, True)`` for a stored key, ``(None, False)`` otherwise."""

        with self._lock.read_locked():
            if key in self._data:
                return self._data[key], True
            return None, False

    def set(self, key: str, value: T) -> bool:
        """Store ``value`` under ``key``; return whether the key already existed."""

        with self._lock.write_locked():
            existed = key in self._data
            self._data[key] = value
            return existed

    def snapshot(self) -> Dict[str, T]:
        with self._lock.read_locked():
            return dict(self._data)

    def __len__(self) -> int:
        with self._lock.read_locked():
            return len(self._data)

    def __contains__(self, key: object) -> bool:
        with self._lock.read_locked():
            return key in self._data


__all__ = ["ReadWriteLock", "Store"]
