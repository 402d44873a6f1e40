"""Thread-safe ingestion counters."""

import threading
import time

from dropwatch.models import Category


class IngestStats:
    def __init__(self):
        self._lock = threading.Lock()
        self._lines_read = 0
        self._malformed = 0
        self._ignored = 0
        self._events: dict[Category, int] = {category: 0 for category in Category}
        self._start_time = time.monotonic()

    def record_line(self):
        with self._lock:
            self._lines_read += 1

    def record_malformed(self):
        with self._lock:
            self._malformed += 1

    def record_ignored(self):
        with self._lock:
            self._ignored += 1

    def record_event(self, category: Category):
        with self._lock:
            self._events[category] += 1

    @property
    def malformed(self) -> int:
        with self._lock:
            return self._malformed

    @property
    def ignored(self) -> int:
        with self._lock:
            return self._ignored

    def events(self, category: Category) -> int:
        with self._lock:
            return self._events[category]

    def snapshot(self) -> dict:
        """Return a point-in-time snapshot of all counters."""
        with self._lock:
            elapsed = time.monotonic() - self._start_time
            lines = self._lines_read
            snap = {
                "lines_read": lines,
                "malformed": self._malformed,
                "ignored": self._ignored,
                "events": {category.value: count for category, count in self._events.items()},
            }

        snap["elapsed_seconds"] = round(elapsed, 2)
        snap["lines_per_second"] = round(lines / elapsed, 2) if elapsed > 0 else 0.0
        return snap
