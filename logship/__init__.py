"""
logship — durable, at-least-once shipping of buffered log records.

Producers append records, one line each, to rotating buffer files on local
disk. A LogShipper task reads them back in file order, groups them into
batches bounded by record count and byte size, and hands each batch to a
publisher. Progress is kept in a small bookmark file ("<offset>:::<path>")
that is only advanced after a successful publish, under an exclusive flock so
that several shipper instances can point at the same buffer root.

Quick start
-----------
    import asyncio
    import logging
    from logship import DurableSink, ShipperOptions
    from logship.adapters.publisher.pubsub import PubSubPublisher

    async def main():
        options = ShipperOptions(buffer_base_filename="/var/spool/app/events")

        async with DurableSink(options, PubSubPublisher("my-project", "logs")) as sink:
            log = logging.getLogger("app")
            log.addHandler(sink.handler)
            log.warning('{"event": "signup"}')

    asyncio.run(main())

Publisher adapters
------------------
Built-in adapters (no extra deps):
  - InMemoryPublisher — for tests and examples

Optional adapters (install extras):
  - PubSubPublisher   (pip install "logship[pubsub]")

Custom publishers only need to implement the one-method PublisherPort:
  async def publish(records) -> PublishResult

Architecture
------------
Follows the Ports & Adapters pattern:
  domain/   — pure value types (Bookmark, Batch, PublishResult) and errors
  ports/    — Protocol interfaces (PublisherPort, DiagnosticsPort)
  core/     — business logic (LogShipper, assembler, bookmark, backoff, retention)
  adapters/ — concrete publishers and diagnostics
"""
from __future__ import annotations

from logship.adapters.diagnostics.logger import LoggingDiagnostics
from logship.adapters.publisher.memory import InMemoryPublisher
from logship.config import ShipperOptions
from logship.core.backoff import ExponentialBackoffSchedule
from logship.core.bookmark import BookmarkFile
from logship.core.shipper import LogShipper
from logship.domain.errors import (
    BookmarkError,
    BookmarkFormatError,
    ConfigurationError,
    LogShipError,
    PublishError,
    StorageError,
)
from logship.domain.models import (
    AssembledBatch,
    Batch,
    Bookmark,
    FileDeliveryCounters,
    PublishResult,
    ShipperState,
)
from logship.formatters import param_formatter, raw_formatter
from logship.handler import DurableLogHandler, DurableSink
from logship.ports.diagnostics import DiagnosticsPort
from logship.ports.publisher import PublisherPort

__all__ = [
    # Domain models
    "Bookmark",
    "Batch",
    "AssembledBatch",
    "PublishResult",
    "FileDeliveryCounters",
    "ShipperState",
    # Errors
    "LogShipError",
    "ConfigurationError",
    "BookmarkError",
    "BookmarkFormatError",
    "PublishError",
    "StorageError",
    # Ports (for typing custom adapters)
    "PublisherPort",
    "DiagnosticsPort",
    # Configuration
    "ShipperOptions",
    # Shipping engine
    "LogShipper",
    "BookmarkFile",
    "ExponentialBackoffSchedule",
    # Producer side
    "DurableLogHandler",
    "DurableSink",
    "raw_formatter",
    "param_formatter",
    # Built-in adapters
    "InMemoryPublisher",
    "LoggingDiagnostics",
]
