from __future__ import annotations

import threading
import time

from typedhttp.store import ReadWriteLock, Store


def test_set_then_get_returns_value() -> None:
    db: Store[str] = Store()

    assert db.set("k", "v") is False
    assert db.get("k") == ("v", True)


def test_get_missing_key_returns_none_and_false() -> None:
    db: Store[int] = Store()

    assert db.get("never-set") == (None, False)
    assert "never-set" not in db
    assert len(db) == 0


def test_second_set_overwrites_and_reports_existing() -> None:
    db: Store[str] = Store()

    assert db.set("k", "v1") is False
    assert db.set("k", "v2") is True
    assert db.get("k") == ("v2", True)
    assert len(db) == 1


def test_initial_entries_and_snapshot_is_a_copy() -> None:
    db = Store({"a": 1, "b": 2})

    snap = db.snapshot()
    snap["c"] = 3

    assert db.snapshot() == {"a": 1, "b": 2}
    assert "c" not in db


def test_concurrent_readers_never_see_torn_values() -> None:
    db: Store[tuple[int, int]] = Store({"k": (0, 0)})
    stop = threading.Event()
    torn: list[tuple[int, int]] = []

    def writer() -> None:
        for n in range(1, 2000):
            db.set("k", (n, n))
        stop.set()

    def reader() -> None:
        while not stop.is_set():
            value, found = db.get("k")
            if not found or value[0] != value[1]:
                torn.append(value)

    readers = [threading.Thread(target=reader) for _ in range(4)]
    for t in readers:
        t.start()
    w = threading.Thread(target=writer)
    w.start()
    w.join(timeout=10)
    stop.set()
    for t in readers:
        t.join(timeout=10)

    assert torn == []
    assert db.get("k") == ((1999, 1999), True)


def test_readers_share_the_lock() -> None:
    lock = ReadWriteLock()
    both_inside = threading.Barrier(2, timeout=5)
    errors: list[BaseException] = []

    def read() -> None:
        try:
            with lock.read_locked():
                both_inside.wait()
        except threading.BrokenBarrierError as exc:  # pragma: no cover - failure path
            errors.append(exc)

    threads = [threading.Thread(target=read) for _ in range(2)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=10)

    assert errors == []


def test_writer_waits_for_active_reader() -> None:
    lock = ReadWriteLock()
    written = threading.Event()

    def write() -> None:
        with lock.write_locked():
            written.set()

    lock.acquire_read()
    t = threading.Thread(target=write)
    t.start()
    time.sleep(0.05)
    assert not written.is_set()

    lock.release_read()
    t.join(timeout=5)
    assert written.is_set()


def test_set_excludes_readers_until_done() -> None:
    lock = ReadWriteLock()
    read_done = threading.Event()

    def read() -> None:
        with lock.read_locked():
            read_done.set()

    lock.acquire_write()
    t = threading.Thread(target=read)
    t.start()
    time.sleep(0.05)
    assert not read_done.is_set()

    lock.release_write()
    t.join(timeout=5)
    assert read_done.is_set()


def test_waiting_writer_goes_before_new_readers() -> None:
    lock = ReadWriteLock()
    order: list[str] = []

    def write() -> None:
        with lock.write_locked():
            order.append("writer")

    def read() -> None:
        with lock.read_locked():
            order.append("reader")

    lock.acquire_read()
    writer = threading.Thread(target=write)
    writer.start()
    deadline = time.monotonic() + 5
    while lock._waiting_writers == 0 and time.monotonic() < deadline:
        time.sleep(0.001)
    assert lock._waiting_writers == 1

    late_reader = threading.Thread(target=read)
    late_reader.start()
    time.sleep(0.05)
    assert order == []

    lock.release_read()
    writer.join(timeout=5)
    late_reader.join(timeout=5)
    assert order == ["writer", "reader"]
