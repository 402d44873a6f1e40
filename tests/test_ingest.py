"""Tests for the ingestion thread."""

import io
import sys

from dropwatch.ingest import Ingestor
from dropwatch.models import Category
from dropwatch.sources import CommandSource, SourceError, StreamSource


class _FailingSource:
    name = "failing"

    def __init__(self, fail_on_open: bool = False):
        self._fail_on_open = fail_on_open
        self.closed = False

    def open(self):
        if self._fail_on_open:
            raise SourceError("cannot start journalctl")

    def __iter__(self):
        yield "A B C x x INTERNAL_DROPPED: x x x SRC=1.1.1.1 DPT=22"
        raise SourceError("journalctl exited with status 1")

    def close(self):
        self.closed = True


def _ingestor(stores, stats, text: str = "") -> Ingestor:
    return Ingestor(StreamSource(io.StringIO(text)), stores, stats)


class TestProcessLine:
    def test_routes_internal(self, stores, stats, internal_line):
        event = _ingestor(stores, stats).process_line(internal_line)
        assert event.category is Category.INTERNAL
        assert stores[Category.INTERNAL].size() == 1
        assert stores[Category.EXTERNAL].size() == 0
        assert stores[Category.INTERNAL].get(0) == "Oct 19 01:29:00 SRC=10.0.0.7 PROTO=TCP DPT=22"
        assert stats.events(Category.INTERNAL) == 1

    def test_routes_external(self, stores, stats, external_line):
        _ingestor(stores, stats).process_line(external_line)
        assert stores[Category.EXTERNAL].get(0) == "Oct 19 01:29:05 SRC=203.0.113.9 PROTO=ICMP"
        assert stores[Category.INTERNAL].size() == 0

    def test_short_line_counts_malformed_once(self, stores, stats):
        assert _ingestor(stores, stats).process_line("a b c d") is None
        assert stats.malformed == 1
        assert stats.ignored == 0
        assert all(store.size() == 0 for store in stores.values())

    def test_non_drop_marker_not_malformed(self, stores, stats):
        assert _ingestor(stores, stats).process_line("t1 t2 t3 a b ACCEPT: c d e f DPT=443") is None
        assert stats.malformed == 0
        assert stats.ignored == 1
        assert all(store.size() == 0 for store in stores.values())

    def test_blank_line_counts_malformed(self, stores, stats):
        ingestor = _ingestor(stores, stats)
        assert ingestor.process_line("") is None
        assert ingestor.process_line("   ") is None
        assert stats.malformed == 2
        assert stats.ignored == 0

    def test_malformed_logged(self, stores, stats, caplog):
        with caplog.at_level("WARNING", logger="dropwatch.ingest"):
            _ingestor(stores, stats).process_line("a b c d")
        assert "malformed" in caplog.text

    def test_event_logged_with_port_and_protocol(self, stores, stats, internal_line, caplog):
        with caplog.at_level("DEBUG", logger="dropwatch.ingest"):
            _ingestor(stores, stats).process_line(internal_line)
        assert "internal drop proto=TCP port=22" in caplog.text

    def test_custom_markers(self, stores, stats):
        markers = {"WAN_DROP:": Category.EXTERNAL, "LAN_DROP:": Category.INTERNAL}
        ingestor = Ingestor(StreamSource(io.StringIO("")), stores, stats, markers)
        ingestor.process_line("A B C x x LAN_DROP: x x x SRC=1.1.1.1")
        assert stores[Category.INTERNAL].size() == 1


class TestRun:
    def test_ingests_until_stream_ends(self, stores, stats, internal_line, external_line, noise_line):
        text = "\n".join([internal_line, noise_line, "a b c", external_line, internal_line]) + "\n"
        ingestor = _ingestor(stores, stats, text)
        ingestor.start()
        ingestor.join(timeout=5)

        assert not ingestor.is_alive()
        assert ingestor.error is None
        assert stores[Category.INTERNAL].size() == 2
        assert stores[Category.EXTERNAL].size() == 1
        snap = stats.snapshot()
        assert snap["lines_read"] == 5
        assert snap["malformed"] == 1
        assert snap["ignored"] == 1

    def test_source_failure_surfaces_error(self, stores, stats):
        source = _FailingSource()
        ingestor = Ingestor(source, stores, stats)
        ingestor.start()
        ingestor.join(timeout=5)

        assert isinstance(ingestor.error, SourceError)
        assert source.closed
        assert stores[Category.INTERNAL].size() == 1

    def test_open_failure_surfaces_error(self, stores, stats):
        ingestor = Ingestor(_FailingSource(fail_on_open=True), stores, stats)
        ingestor.start()
        ingestor.join(timeout=5)

        assert isinstance(ingestor.error, SourceError)
        assert "cannot start" in str(ingestor.error)

    def test_stop_ends_blocked_command(self, stores, stats):
        code = (
            "import time\n"
            "print('A B C x x EXTERNAL_DROPPED: x x x SRC=9.9.9.9 DPT=443', flush=True)\n"
            "time.sleep(60)\n"
        )
        source = CommandSource([sys.executable, "-c", code])
        ingestor = Ingestor(source, stores, stats)
        ingestor.start()

        for _ in range(100):
            if stores[Category.EXTERNAL].size():
                break
            ingestor.join(timeout=0.05)

        ingestor.stop()
        ingestor.join(timeout=10)

        assert not ingestor.is_alive()
        assert ingestor.error is None
        assert ingestor.stopping
        assert stores[Category.EXTERNAL].size() == 1
