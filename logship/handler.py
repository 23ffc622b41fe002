"""
Durable logging — append log records to buffer files and ship them in the background.

DurableLogHandler is the producer side: a logging.Handler that writes one
line per record to the buffer file of the current day,

    <buffer_base_filename>-<YYYYMMDD><extension>

holding a shared flock on the open file. The shipper treats a file it cannot
lock exclusively as "still being written" and does not move past it.

DurableSink pairs the handler with a LogShipper and owns both lifecycles:

    options = ShipperOptions(buffer_base_filename="/var/spool/app/events")

    async with DurableSink(options, PubSubPublisher("proj", "logs")) as sink:
        logging.getLogger("app").addHandler(sink.handler)
        ...
    # handler closed first (releasing its lock), then the shipper flushes

Line framing
------------
Records are UTF-8 and newline-terminated. Carriage returns and newlines inside
a formatted record are written as a backslash followed by "r" or "n", so one
record is always exactly one line.
"""

from __future__ import annotations

import dataclasses
import fcntl
import logging
from collections.abc import Callable
from datetime import UTC, datetime
from pathlib import Path
from types import TracebackType
from typing import IO

from logship.adapters.diagnostics.logger import LoggingDiagnostics
from logship.config import ShipperOptions
from logship.core.shipper import LogShipper
from logship.formatters import RecordFormatter, raw_formatter
from logship.ports.diagnostics import DiagnosticsPort
from logship.ports.publisher import PublisherPort

Clock = Callable[[], datetime]

_ROTATION_TOKEN = "%Y%m%d"


def _utcnow() -> datetime:
    return datetime.now(UTC)


class DurableLogHandler(logging.Handler):
    """
    Appends formatted records to day-rotated buffer files.

    Parameters
    ----------
    options   : ShipperOptions describing the buffer file naming
    formatter : LogRecord -> str (default: raw_formatter)
    clock     : returns the current time; selects the rotation token
    level     : handler level
    """

    def __init__(
        self,
        options: ShipperOptions,
        formatter: RecordFormatter = raw_formatter,
        clock: Clock = _utcnow,
        level: int = logging.NOTSET,
    ) -> None:
        super().__init__(level)
        self.options = options
        self.record_formatter = formatter
        self._clock = clock
        self._stream: IO[bytes] | None = None
        self._stream_path: Path | None = None

    def buffer_path(self, when: datetime) -> Path:
        token = when.strftime(_ROTATION_TOKEN)
        opts = self.options
        name = f"{opts.buffer_prefix}-{token}{opts.buffer_file_extension}"
        return opts.buffer_folder / name

    def emit(self, record: logging.LogRecord) -> None:
        try:
            text = self.record_formatter(record)
            text = text.replace("\r", "\\r").replace("\n", "\\n")
            stream = self._stream_for(self.buffer_path(self._clock()))
            stream.write(text.encode("utf-8") + b"\n")
            stream.flush()
        except Exception:
            self.handleError(record)

    def close(self) -> None:
        self.acquire()
        try:
            self._close_stream()
        finally:
            self.release()
        super().close()

    def _stream_for(self, path: Path) -> IO[bytes]:
        if self._stream is not None and self._stream_path == path:
            return self._stream

        self._close_stream()
        path.parent.mkdir(parents=True, exist_ok=True)
        stream = open(path, "ab")
        try:
            fcntl.flock(stream.fileno(), fcntl.LOCK_SH)
        except OSError:
            stream.close()
            raise
        self._stream = stream
        self._stream_path = path
        return stream

    def _close_stream(self) -> None:
        stream, self._stream, self._stream_path = self._stream, None, None
        if stream is None:
            return
        try:
            fcntl.flock(stream.fileno(), fcntl.LOCK_UN)
        finally:
            stream.close()


@dataclasses.dataclass
class DurableSink:
    """
    Async context manager owning a DurableLogHandler and its LogShipper.

    Parameters
    ----------
    options     : ShipperOptions shared by the writer and the shipper
    publisher   : any PublisherPort implementation
    formatter   : LogRecord -> str (default: raw_formatter)
    diagnostics : shipper side channel (default: LoggingDiagnostics)
    """

    options: ShipperOptions
    publisher: PublisherPort
    formatter: RecordFormatter = raw_formatter
    diagnostics: DiagnosticsPort = dataclasses.field(
        default_factory=LoggingDiagnostics
    )

    handler: DurableLogHandler = dataclasses.field(init=False)
    shipper: LogShipper = dataclasses.field(init=False)

    def __post_init__(self) -> None:
        self.handler = DurableLogHandler(self.options, formatter=self.formatter)
        self.shipper = LogShipper(
            self.options, publisher=self.publisher, diagnostics=self.diagnostics
        )

    async def __aenter__(self) -> DurableSink:
        await self.shipper.start()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.handler.close()
        await self.shipper.stop()
