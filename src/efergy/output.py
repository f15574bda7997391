from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Optional, TextIO

from .frames import PowerReading

logger = logging.getLogger(__name__)


def format_record(reading: PowerReading) -> str:
    """`<date>,<time>,<watts>` using the locale's date and time representation."""
    return f"{reading.timestamp.strftime('%x,%X')},{reading.watts:f}"


class ConsoleSink:
    def __init__(self, stream: Optional[TextIO] = None):
        self._stream = stream

    def __call__(self, reading: PowerReading) -> None:
        stream = self._stream or sys.stdout
        stream.write(format_record(reading) + "\n")
        stream.flush()


class ReadingLog:
    """
    Appends records to a log file and flushes every `flush_every` records.

    The file is opened in append mode; earlier sessions are never truncated.
    At most `flush_every - 1` readings are lost if the process dies.
    """

    def __init__(self, path: Path, line_ending: str = "\r\n", flush_every: int = 10):
        if flush_every <= 0:
            raise ValueError("flush_every must be positive")
        self.path = path
        self.line_ending = line_ending
        self.flush_every = flush_every
        self._handle: Optional[TextIO] = None
        self._pending = 0
        self.written = 0

    def open(self) -> "ReadingLog":
        if self._handle is None:
            # newline="" keeps the configured line ending byte-exact
            self._handle = self.path.open("a", newline="", encoding="utf-8")
            logger.info("Logging readings to %s", self.path)
        return self

    def __call__(self, reading: PowerReading) -> None:
        self.append(reading)

    def append(self, reading: PowerReading) -> None:
        if self._handle is None:
            self.open()
        assert self._handle is not None
        self._handle.write(format_record(reading) + self.line_ending)
        self.written += 1
        self._pending += 1
        if self._pending == self.flush_every:
            self._pending = 0
            self._handle.flush()

    def close(self) -> None:
        if self._handle:
            self._handle.close()
            self._handle = None
            self._pending = 0

    def __enter__(self) -> "ReadingLog":
        return self.open()

    def __exit__(self, *exc_info) -> None:
        self.close()
