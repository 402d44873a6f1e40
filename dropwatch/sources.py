"""Line sources feeding the ingestor: a log command, a tailed file, or a stream.

Each source is opened once, iterated for lines (blocking until a line is
available, ending when the source closes) and closed from any thread.
"""

import logging
import os
import queue
import subprocess
import sys
import threading

from watchdog.events import FileSystemEventHandler
from watchdog.observers import Observer

logger = logging.getLogger(__name__)

KILL_TIMEOUT_SEC = 2.0


class SourceError(Exception):
    """The log source could not be started or stopped being readable."""


class CommandSource:
    """Spawns a log command (journalctl by default) and yields its stdout lines."""

    interruptible = True

    def __init__(self, argv: list[str], kill_timeout: float = KILL_TIMEOUT_SEC):
        if not argv:
            raise ValueError("command must not be empty")
        self._argv = list(argv)
        self._kill_timeout = kill_timeout
        self._proc: subprocess.Popen | None = None
        self._closed = False

    @property
    def name(self) -> str:
        return " ".join(self._argv)

    def open(self):
        if self._closed:
            return
        try:
            self._proc = subprocess.Popen(
                self._argv,
                stdout=subprocess.PIPE,
                stderr=subprocess.DEVNULL,
                stdin=subprocess.DEVNULL,
                text=True,
                encoding="utf-8",
                errors="replace",
                bufsize=1,
            )
        except OSError as e:
            raise SourceError(f"cannot start {self._argv[0]}: {e}") from e
        logger.info("Started %s (pid %d)", self.name, self._proc.pid)

    def __iter__(self):
        if self._proc is None:
            if self._closed:
                return
            raise SourceError("source not opened")

        try:
            for line in self._proc.stdout:
                yield line.rstrip("\r\n")
        except (OSError, ValueError) as e:
            if self._closed:
                return
            raise SourceError(f"{self.name}: read failed: {e}") from e

        returncode = self._proc.wait()
        if returncode != 0 and not self._closed:
            raise SourceError(f"{self.name} exited with status {returncode}")
        logger.info("%s finished (status %d)", self.name, returncode)

    def close(self):
        """Terminate the command; a blocked reader sees end of stream."""
        self._closed = True
        proc = self._proc
        if proc is None or proc.poll() is not None:
            return

        proc.terminate()
        try:
            proc.wait(timeout=self._kill_timeout)
        except subprocess.TimeoutExpired:
            logger.warning("%s ignored SIGTERM, killing", self.name)
            proc.kill()
            proc.wait()


class _TailHandler(FileSystemEventHandler):
    def __init__(self, path: str, on_change):
        super().__init__()
        self._path = path
        self._on_change = on_change

    def on_modified(self, event):
        if not event.is_directory and os.path.abspath(event.src_path) == self._path:
            self._on_change()

    def on_created(self, event):
        self.on_modified(event)


class FileSource:
    """Follows a growing file via watchdog notifications."""

    interruptible = True

    def __init__(self, path: str, from_start: bool = False):
        self._path = os.path.abspath(path)
        self._from_start = from_start
        self._queue: queue.Queue = queue.Queue()
        self._fh = None
        self._partial = ""
        self._read_lock = threading.Lock()
        self._observer = None
        self._closed = False

    @property
    def name(self) -> str:
        return self._path

    def open(self):
        if self._closed:
            return
        try:
            self._fh = open(self._path, "r", encoding="utf-8", errors="replace")
        except OSError as e:
            raise SourceError(f"cannot open {self._path}: {e}") from e

        if not self._from_start:
            self._fh.seek(0, os.SEEK_END)

        self._observer = Observer()
        handler = _TailHandler(self._path, self._read_new_lines)
        self._observer.schedule(handler, os.path.dirname(self._path), recursive=False)
        self._observer.start()
        logger.info("Tailing %s from %s", self._path, "start" if self._from_start else "end")

        # Pick up whatever arrived before the observer was watching.
        self._read_new_lines()

    def _read_new_lines(self):
        with self._read_lock:
            if self._fh is None:
                return
            try:
                data = self._fh.read()
            except OSError as e:
                logger.error("Read failed on %s: %s", self._path, e)
                return
            if not data:
                return

            lines = (self._partial + data).split("\n")
            self._partial = lines.pop()
            for line in lines:
                self._queue.put(line.rstrip("\r"))

    def __iter__(self):
        if self._fh is None and not self._closed:
            raise SourceError("source not opened")
        while True:
            line = self._queue.get()
            if line is None:
                return
            yield line

    def close(self):
        if self._closed:
            return
        self._closed = True

        if self._observer is not None:
            self._observer.stop()
            self._observer.join(timeout=5)
        with self._read_lock:
            if self._fh is not None:
                self._fh.close()
                self._fh = None
        self._queue.put(None)


class StreamSource:
    """Lines from an already open text stream such as stdin."""

    # A blocked read on stdin cannot be woken by close().
    interruptible = False

    def __init__(self, stream=None, name: str = "<stdin>"):
        self._stream = stream if stream is not None else sys.stdin
        self._name = name
        self._closed = False

    @property
    def name(self) -> str:
        return self._name

    def open(self):
        logger.info("Reading lines from %s", self._name)

    def __iter__(self):
        try:
            for line in self._stream:
                if self._closed:
                    return
                yield line.rstrip("\r\n")
        except (OSError, ValueError) as e:
            if self._closed:
                return
            raise SourceError(f"{self._name}: read failed: {e}") from e

    def close(self):
        self._closed = True


def build_source(config):
    """Create the source selected by config.source."""
    if config.source == "command":
        return CommandSource(config.command)
    if config.source == "file":
        return FileSource(config.path, from_start=config.from_start)
    if config.source == "stdin":
        return StreamSource()
    raise ValueError(f"unknown source type: {config.source}")
