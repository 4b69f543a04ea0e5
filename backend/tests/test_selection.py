"""Tests for SelectionState and its reader/writer lock.

Covers select/current semantics plus reader sharing, writer exclusion and
writer preference of the lock.
"""
import threading
import time
from concurrent.futures import ThreadPoolExecutor

import pytest

from imagecast.images.errors import NotFoundError
from imagecast.images.selection import ReadWriteLock, SelectionState
from imagecast.images.storage import ImageStore


@pytest.fixture
def store(tmp_path) -> ImageStore:
    upload_dir = tmp_path / "uploads"
    upload_dir.mkdir()
    for name in ("a.png", "b.png", "c.png"):
        (upload_dir / name).write_bytes(b"\x89PNG\r\n\x1a\n")
    return ImageStore(upload_dir)


def _wait_until(predicate, timeout: float = 5.0) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.005)
    return False


# ---------------------------------------------------------------------------
# SelectionState
# ---------------------------------------------------------------------------

class TestSelectionState:
    def test_starts_empty(self):
        assert SelectionState().current() == ""

    def test_select_existing_file(self, store):
        state = SelectionState()

        state.select("a.png", store)

        assert state.current() == "a.png"

    def test_select_overwrites_previous(self, store):
        state = SelectionState()
        state.select("a.png", store)

        state.select("b.png", store)

        assert state.current() == "b.png"

    def test_missing_file_raises_and_keeps_selection(self, store):
        state = SelectionState()
        state.select("a.png", store)

        with pytest.raises(NotFoundError) as exc:
            state.select("missing.png", store)

        assert exc.value.status_code == 404
        assert state.current() == "a.png"

    def test_traversal_name_is_not_found(self, store, tmp_path):
        (tmp_path / "outside.png").write_bytes(b"x")
        state = SelectionState()

        with pytest.raises(NotFoundError):
            state.select("../outside.png", store)
        assert state.current() == ""

    def test_selection_is_not_revalidated_on_read(self, store):
        state = SelectionState()
        state.select("a.png", store)

        (store.upload_dir / "a.png").unlink()

        assert state.current() == "a.png"

    def test_concurrent_selects_and_reads(self, store):
        state = SelectionState()
        names = ["a.png", "b.png", "c.png"]
        seen = []

        def writer(i: int) -> None:
            state.select(names[i % len(names)], store)

        def reader(_: int) -> None:
            seen.append(state.current())

        with ThreadPoolExecutor(max_workers=16) as pool:
            futures = [pool.submit(writer, i) for i in range(100)]
            futures += [pool.submit(reader, i) for i in range(200)]
            for future in futures:
                future.result()

        assert state.current() in names
        assert set(seen) <= set(names) | {""}


# ---------------------------------------------------------------------------
# ReadWriteLock
# ---------------------------------------------------------------------------

class TestReadWriteLock:
    def test_readers_share_the_lock(self):
        lock = ReadWriteLock()
        barrier = threading.Barrier(3, timeout=5)

        def reader() -> None:
            with lock.read_locked():
                # Only passes if all three readers hold the lock together.
                barrier.wait()

        with ThreadPoolExecutor(max_workers=3) as pool:
            for future in [pool.submit(reader) for _ in range(3)]:
                future.result()

    def test_writer_excludes_readers(self):
        lock = ReadWriteLock()
        entered = threading.Event()

        def reader() -> None:
            with lock.read_locked():
                entered.set()

        thread = threading.Thread(target=reader)
        with lock.write_locked():
            thread.start()
            assert not entered.wait(0.1)

        assert entered.wait(5)
        thread.join(5)

    def test_writer_excludes_writers(self):
        lock = ReadWriteLock()
        entered = threading.Event()

        def writer() -> None:
            with lock.write_locked():
                entered.set()

        thread = threading.Thread(target=writer)
        with lock.write_locked():
            thread.start()
            assert not entered.wait(0.1)

        assert entered.wait(5)
        thread.join(5)

    def test_queued_writer_goes_before_new_readers(self):
        lock = ReadWriteLock()
        order = []

        def writer() -> None:
            with lock.write_locked():
                order.append("writer")

        def late_reader() -> None:
            with lock.read_locked():
                order.append("reader")

        writer_thread = threading.Thread(target=writer)
        reader_thread = threading.Thread(target=late_reader)

        with lock.read_locked():
            writer_thread.start()
            assert _wait_until(lambda: lock._writers_waiting == 1)
            reader_thread.start()
            time.sleep(0.1)
            assert order == []

        writer_thread.join(5)
        reader_thread.join(5)
        assert order == ["writer", "reader"]
