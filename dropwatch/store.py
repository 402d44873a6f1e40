"""Append-only, thread-safe store of drop event summaries for one category."""

import threading
from contextlib import contextmanager


class EmptyStoreError(IndexError):
    pass


class IndexOutOfRangeError(IndexError):
    pass


class ReadWriteLock:
    """Shared/exclusive lock. Waiting writers block new readers."""

    def __init__(self):
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False
        self._writers_waiting = 0

    @contextmanager
    def read(self):
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
    def write(self):
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


class EventStore:
    """Oldest-first sequence of summaries, read back by recency.

    get_range() excludes the newest element of the requested window unless
    the store is built with include_newest=True.
    """

    def __init__(self, include_newest: bool = False):
        self._items: list[str] = []
        self._lock = ReadWriteLock()
        self._include_newest = include_newest

    @property
    def include_newest(self) -> bool:
        return self._include_newest

    def push(self, summary: str):
        with self._lock.write():
            self._items.append(summary)

    def get(self, index_from_end: int) -> str:
        """Element index_from_end positions back from the newest (0 = newest)."""
        with self._lock.read():
            size = len(self._items)
            if size == 0:
                raise EmptyStoreError("store is empty")
            if index_from_end < 0 or index_from_end >= size:
                raise IndexOutOfRangeError(
                    f"index {index_from_end} out of range for store of size {size}"
                )
            return self._items[size - 1 - index_from_end]

    def get_range(self, offset: int, window_size: int) -> list[str]:
        """Window of up to window_size summaries, oldest first, skipping the newest `offset`.

        Never raises: out-of-range offsets and sizes are clamped.
        """
        if window_size <= 0:
            return []
        offset = max(offset, 0)

        with self._lock.read():
            end = len(self._items) - offset
            if end <= 0:
                return []
            window_size = min(window_size, end)
            start = end - window_size
            if not self._include_newest:
                end -= 1
            return self._items[start:end]

    def size(self) -> int:
        with self._lock.read():
            return len(self._items)

    def __len__(self) -> int:
        return self.size()
