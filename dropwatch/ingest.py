"""Ingestor: background thread that classifies source lines into the stores."""

import logging
import threading

from dropwatch.classifier import DEFAULT_MARKERS, MalformedLineError, classify_line
from dropwatch.models import Category, DropEvent
from dropwatch.sources import SourceError
from dropwatch.stats import IngestStats
from dropwatch.store import EventStore

logger = logging.getLogger(__name__)


class Ingestor(threading.Thread):
    def __init__(self, source, stores: dict[Category, EventStore], stats: IngestStats,
                 markers: dict[str, Category] | None = None):
        super().__init__(name="dropwatch-ingest", daemon=True)
        self._source = source
        self._stores = stores
        self._stats = stats
        self._markers = markers if markers is not None else DEFAULT_MARKERS
        self._stopping = threading.Event()
        self.error: SourceError | None = None

    @property
    def stopping(self) -> bool:
        return self._stopping.is_set()

    def process_line(self, line: str) -> DropEvent | None:
        """Classify one line and push its summary into the matching store."""
        self._stats.record_line()
        try:
            event = classify_line(line, self._markers)
        except MalformedLineError as e:
            self._stats.record_malformed()
            logger.warning("Skipping malformed line (%d tokens): %r", e.token_count, line)
            return None

        if event is None:
            self._stats.record_ignored()
            return None

        self._stores[event.category].push(event.summary)
        self._stats.record_event(event.category)
        logger.debug("%s drop proto=%s port=%s: %s", event.category.value,
                     event.protocol or "-", event.port or "-", event.summary)
        return event

    def run(self):
        try:
            self._source.open()
            for line in self._source:
                if self._stopping.is_set():
                    break
                self.process_line(line)
        except SourceError as e:
            if not self._stopping.is_set():
                self.error = e
                logger.error("Log source failed: %s", e)
        finally:
            self._source.close()
            logger.info("Ingestion stopped: %s", self._stats.snapshot())

    def stop(self):
        """Ask the thread to finish; closing the source unblocks a pending read."""
        self._stopping.set()
        self._source.close()
