#!/usr/bin/env python3
"""Dropwatch — Entry Point."""

import argparse
import logging
import signal
import sys
import threading
import time

from dropwatch.config import SOURCES, Config, load_config, load_yaml_config
from dropwatch.ingest import Ingestor
from dropwatch.models import Category
from dropwatch.sources import build_source
from dropwatch.stats import IngestStats
from dropwatch.store import EventStore
from dropwatch.viewer import DropwatchApp

LOG_FORMAT = "%(asctime)s [DROPWATCH] %(levelname)s %(name)s %(message)s"
HEADLESS_POLL_SEC = 0.5
FINAL_WINDOW = 10

logger = logging.getLogger(__name__)


def build_cli_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Live viewer for firewall drop events")
    parser.add_argument(
        "--config", default=None,
        help="Path to YAML config file",
    )
    parser.add_argument(
        "--source", choices=SOURCES, default=None,
        help="Where log lines come from (default: command)",
    )
    parser.add_argument(
        "--command", default=None,
        help="Log command for the 'command' source (default: 'journalctl -exf')",
    )
    parser.add_argument(
        "--path", default=None,
        help="File to follow for the 'file' source",
    )
    parser.add_argument(
        "--from-start", action="store_true", default=None,
        help="Read the followed file from the beginning instead of the end",
    )
    parser.add_argument(
        "--refresh-interval", type=float, default=None,
        help="Seconds between display refreshes (default: 1.0)",
    )
    parser.add_argument(
        "--include-newest", action="store_true", default=None,
        help="Show the newest entry in each window",
    )
    parser.add_argument(
        "--headless", action="store_true", default=None,
        help="No terminal UI; log periodic stats to stderr",
    )
    parser.add_argument(
        "--log-file", default=None,
        help="Diagnostics log file used while the UI runs (default: dropwatch.log)",
    )
    parser.add_argument(
        "--log-level", default=None,
        help="Logging level (default: INFO)",
    )
    return parser


def setup_logging(config: Config):
    """Headless mode logs to stderr; the UI owns the terminal, so it logs to a file."""
    kwargs = {"level": getattr(logging, config.log_level, logging.INFO), "format": LOG_FORMAT, "force": True}
    if config.headless:
        kwargs["stream"] = sys.stderr
    else:
        kwargs["filename"] = config.log_file
    logging.basicConfig(**kwargs)


def build_stores(config: Config) -> dict[Category, EventStore]:
    return {category: EventStore(include_newest=config.include_newest) for category in Category}


def run_headless(ingestor: Ingestor, stats: IngestStats, stats_interval: float,
                 shutdown_event: threading.Event):
    """Block until shutdown is requested or ingestion ends, logging stats periodically."""
    next_report = time.monotonic() + stats_interval
    while ingestor.is_alive() and not shutdown_event.wait(timeout=HEADLESS_POLL_SEC):
        if time.monotonic() >= next_report:
            logger.info("Stats: %s", stats.snapshot())
            next_report += stats_interval


def log_final_windows(stores: dict[Category, EventStore]):
    for category, store in stores.items():
        window = store.get_range(0, FINAL_WINDOW)
        logger.info("%d %s drop(s) recorded", store.size(), category.value)
        for summary in window:
            logger.info("  [%s] %s", category.value, summary)


def main(argv=None) -> int:
    parser = build_cli_parser()
    args = parser.parse_args(argv)

    yaml_data = load_yaml_config(args.config)
    try:
        config = load_config(args, yaml_data)
    except ValueError as e:
        parser.error(str(e))

    setup_logging(config)
    logger.info("Config: source=%s, refresh_interval=%.1f, include_newest=%s",
                config.source, config.refresh_interval, config.include_newest)

    stores = build_stores(config)
    stats = IngestStats()
    source = build_source(config)
    ingestor = Ingestor(source, stores, stats, config.markers())
    ingestor.start()

    try:
        if config.headless:
            shutdown_event = threading.Event()

            def signal_handler(signum, frame):
                logger.info("Received signal %d, shutting down...", signum)
                shutdown_event.set()

            signal.signal(signal.SIGINT, signal_handler)
            signal.signal(signal.SIGTERM, signal_handler)
            run_headless(ingestor, stats, config.stats_interval, shutdown_event)
        else:
            DropwatchApp(stores, stats, ingestor, config.refresh_interval).run()
    finally:
        ingestor.stop()
        # A thread blocked on stdin only ends with the process.
        ingestor.join(timeout=5 if source.interruptible else 0)
        logger.info("Stats: %s", stats.snapshot())
        log_final_windows(stores)

    if ingestor.error is not None:
        print(f"dropwatch: {ingestor.error}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
