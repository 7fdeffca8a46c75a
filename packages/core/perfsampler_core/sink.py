"""Destinations for emitted metric lines."""

from __future__ import annotations

import sys
from datetime import datetime
from pathlib import Path
from typing import Protocol, TextIO


class LineSink(Protocol):
    def write(self, lines: list[str], ts: datetime) -> None: ...


class DailyFileSink:
    """Appends lines to ``<directory>/<prefix>_YYYYMMDD.log``, one file per local day."""

    def __init__(self, directory: Path, prefix: str = "performance") -> None:
        self.directory = Path(directory)
        self.prefix = prefix

    def path_for(self, ts: datetime) -> Path:
        return self.directory / f"{self.prefix}_{ts:%Y%m%d}.log"

    def write(self, lines: list[str], ts: datetime) -> None:
        if not lines:
            return
        self.directory.mkdir(parents=True, exist_ok=True)
        with self.path_for(ts).open("a", encoding="utf-8") as fh:
            for line in lines:
                fh.write(line + "\n")


class StreamSink:
    def __init__(self, stream: TextIO | None = None) -> None:
        self._stream = stream

    def write(self, lines: list[str], ts: datetime) -> None:
        stream = self._stream or sys.stdout
        for line in lines:
            stream.write(line + "\n")
        stream.flush()


class TeeSink:
    def __init__(self, *sinks: LineSink) -> None:
        self.sinks = sinks

    def write(self, lines: list[str], ts: datetime) -> None:
        for sink in self.sinks:
            sink.write(lines, ts)
