"""Shared/exclusive lock used to guard mutable model state.

``ReadWriteLock`` lets any number of threads read at once while writers
get exclusive access. New readers queue behind waiting writers so a steady
stream of reads cannot starve a write. A thread that already holds the
lock (shared or exclusive) may take it shared again without waiting,
which keeps nested reads deadlock-free. Upgrading a shared hold to an
exclusive one is not supported and blocks forever.
"""

from __future__ import annotations

import threading
from collections.abc import Iterator
from contextlib import contextmanager


class ReadWriteLock:
    """Write-preferring, read-reentrant lock built on ``threading.Condition``."""

    def __init__(self) -> None:
        self._cond = threading.Condition(threading.Lock())
        self._readers: dict[int, int] = {}
        self._writer: int | None = None
        self._write_depth = 0
        self._writers_waiting = 0

    # ------------------------------------------------------------------
    # Shared access
    # ------------------------------------------------------------------

    def acquire_read(self) -> None:
        me = threading.get_ident()
        with self._cond:
            if self._writer != me and me not in self._readers:
                while self._writer is not None or self._writers_waiting:
                    self._cond.wait()
            self._readers[me] = self._readers.get(me, 0) + 1

    def release_read(self) -> None:
        me = threading.get_ident()
        with self._cond:
            held = self._readers.get(me, 0)
            if held == 0:
                raise RuntimeError("Cannot release a read lock that is not held")
            if held == 1:
                del self._readers[me]
                if not self._readers:
                    self._cond.notify_all()
            else:
                self._readers[me] = held - 1

    # ------------------------------------------------------------------
    # Exclusive access
    # ------------------------------------------------------------------

    def acquire_write(self) -> None:
        me = threading.get_ident()
        with self._cond:
            if self._writer == me:
                self._write_depth += 1
                return
            self._writers_waiting += 1
            try:
                while self._writer is not None or self._readers:
                    self._cond.wait()
            finally:
                self._writers_waiting -= 1
            self._writer = me
            self._write_depth = 1

    def release_write(self) -> None:
        with self._cond:
            if self._writer != threading.get_ident():
                raise RuntimeError("Cannot release a write lock owned by another thread")
            self._write_depth -= 1
            if self._write_depth == 0:
                self._writer = None
                self._cond.notify_all()

    # ------------------------------------------------------------------
    # Context managers
    # ------------------------------------------------------------------

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

    @property
    def reader_count(self) -> int:
        """Number of threads currently holding the lock shared."""
        with self._cond:
            return len(self._readers)

    @property
    def is_write_locked(self) -> bool:
        with self._cond:
            return self._writer is not None
