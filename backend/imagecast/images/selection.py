"""The currently selected image.

One ``SelectionState`` is created per application and stored on
``app.state``; handlers receive it through a FastAPI dependency. The value
lives in memory only and starts empty on every boot.

Thread safety: handlers run in FastAPI's worker threads, so the slot is
guarded by a reader/writer lock. Readers share it; a writer waits for
active readers to leave and blocks new readers while it is queued.
"""
import logging
import threading
from contextlib import contextmanager
from typing import Iterator

from .errors import NotFoundError
from .storage import ImageStore

logger = logging.getLogger(__name__)


class ReadWriteLock:
    """Writer-preferring reader/writer lock built on ``threading.Condition``."""

    def __init__(self) -> None:
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False
        self._writers_waiting = 0

    @contextmanager
    def read_locked(self) -> Iterator[None]:
        with self._cond:
            while self._writer or self._writers_waiting:
                self._cond.wait()
            self._readers += 1
        try:
            yield
        finally:
            with self._cond:
                self._readers -= 1
                if self._readers == 0:
                    self._cond.notify_all()

    @contextmanager
    def write_locked(self) -> Iterator[None]:
        with self._cond:
            self._writers_waiting += 1
            try:
                while self._writer or self._readers:
                    self._cond.wait()
            finally:
                self._writers_waiting -= 1
            self._writer = True
        try:
            yield
        finally:
            with self._cond:
                self._writer = False
                self._cond.notify_all()


class SelectionState:
    """Holds the filename clients should stream, or ``""`` if none."""

    def __init__(self) -> None:
        self._lock = ReadWriteLock()
        self._current = ""

    def select(self, filename: str, store: ImageStore) -> None:
        """Make *filename* current if it exists in *store*.

        Existence is checked once here; ``/stream`` checks again on every
        request since files can vanish afterwards.

        Raises:
            NotFoundError: If the file is absent. The selection is unchanged.
        """
        if not store.exists(filename):
            logger.warning("Select rejected, file not found: %s", filename)
            raise NotFoundError("File not found")

        with self._lock.write_locked():
            previous, self._current = self._current, filename
        logger.info("Selected image changed: %r -> %r", previous, filename)

    def current(self) -> str:
        with self._lock.read_locked():
            return self._current
