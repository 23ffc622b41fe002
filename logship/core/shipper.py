"""
LogShipper — ship buffered records to a publisher from a single asyncio task.

Tick algorithm
--------------
Every tick runs one or more *passes*, all under one hold of the bookmark lock.
Each pass:

  read bookmark → resolve file set → assemble batch from (file, offset)
      batch non-empty      → publish
                               ok     → write bookmark past the batch
                               failed → back off, abort the whole tick
      only skipped records → write bookmark past them (the skip must be durable)
      nothing new          → if a newer file exists and this one is closed at
                             the bookmarked length, move the bookmark to
                             offset 0 of the next file
  → retention sweep

Another pass follows immediately when the batch hit the count or size limit
or the bookmark moved to a new file; otherwise the task sleeps for the
schedule's next interval.

  Timer:  ──wait──> [pass, pass, pass] ──wait──> [pass] ──wait(backoff)──> ...

Ticks never overlap. A tick only ends after its last publish has been
awaited, and the wait is only re-armed after the tick ends.

Delivery guarantee
------------------
At-least-once. The bookmark is written after a successful publish; a crash
between the two re-sends that batch on the next start.

Usage
-----
    options = ShipperOptions(buffer_base_filename="/var/spool/app/events")

    async with LogShipper(options, publisher=PubSubPublisher("proj", "logs")):
        await serve_forever()
    # leaving the block stops the timer and runs one final flush tick
"""

from __future__ import annotations

import asyncio
import dataclasses
from pathlib import Path
from types import TracebackType

from logship.adapters.diagnostics.logger import LoggingDiagnostics
from logship.config import ShipperOptions
from logship.core import assembler, fileset, retention
from logship.core.backoff import ExponentialBackoffSchedule
from logship.core.bookmark import BookmarkFile
from logship.domain.models import (
    AssembledBatch,
    Bookmark,
    FileDeliveryCounters,
    PublishResult,
    ShipperState,
)
from logship.ports.diagnostics import DiagnosticsPort
from logship.ports.publisher import PublisherPort


@dataclasses.dataclass
class LogShipper:
    """
    Background shipper for one buffer root.

    Parameters
    ----------
    options     : validated ShipperOptions
    publisher   : any PublisherPort implementation
    diagnostics : side channel for absorbed failures (default: LoggingDiagnostics)
    """

    options: ShipperOptions
    publisher: PublisherPort
    diagnostics: DiagnosticsPort = dataclasses.field(
        default_factory=LoggingDiagnostics
    )

    state: ShipperState = dataclasses.field(default=ShipperState.IDLE, init=False)
    counters: FileDeliveryCounters = dataclasses.field(
        default_factory=FileDeliveryCounters, init=False
    )

    _schedule: ExponentialBackoffSchedule = dataclasses.field(init=False, repr=False)
    _bookmark: BookmarkFile = dataclasses.field(init=False, repr=False)
    _wakeup: asyncio.Event = dataclasses.field(
        default_factory=asyncio.Event, init=False, repr=False
    )
    _tick_lock: asyncio.Lock = dataclasses.field(
        default_factory=asyncio.Lock, init=False, repr=False
    )
    _task: asyncio.Task[None] | None = dataclasses.field(
        default=None, init=False, repr=False
    )
    _stopped: bool = dataclasses.field(default=False, init=False, repr=False)

    def __post_init__(self) -> None:
        self._schedule = ExponentialBackoffSchedule(
            period=self.options.shipping_interval,
            minimum_backoff=self.options.minimum_backoff_period,
            maximum_backoff=self.options.maximum_backoff_interval,
        )
        self._bookmark = BookmarkFile(self.options.bookmark_path)

    @property
    def schedule(self) -> ExponentialBackoffSchedule:
        return self._schedule

    @property
    def is_running(self) -> bool:
        return self._task is not None

    # ------------------------------------------------------------------ #
    # Lifecycle                                                            #
    # ------------------------------------------------------------------ #

    async def start(self) -> None:
        """Start the background timer task."""
        if self._task is not None:
            raise RuntimeError("LogShipper is already running")
        if self._stopped:
            raise RuntimeError("LogShipper has been stopped")
        self._task = asyncio.create_task(self._timer_loop(), name="logship-shipper")

    async def stop(self) -> None:
        """Stop the timer, wait for an in-flight tick, then run one final flush tick."""
        if self._stopped:
            return
        self._stopped = True
        self._wakeup.set()
        if self._task is not None:
            await self._task
            self._task = None
        await self._run_tick()
        self.state = ShipperState.STOPPED

    async def __aenter__(self) -> LogShipper:
        await self.start()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.stop()

    async def tick(self) -> None:
        """Run one tick now. Waits for a tick already in progress. No-op once stopped."""
        if self._stopped:
            return
        await self._run_tick()

    async def read_bookmark(self) -> Bookmark:
        """Snapshot of the persisted bookmark (takes the lock briefly)."""
        async with self._tick_lock, self._bookmark.locked() as marker:
            return await marker.try_read()

    # ------------------------------------------------------------------ #
    # Internal machinery                                                   #
    # ------------------------------------------------------------------ #

    async def _timer_loop(self) -> None:
        """Background coroutine — one tick per interval until stopped."""
        while not self._stopped:
            self._wakeup.clear()
            try:
                await asyncio.wait_for(
                    self._wakeup.wait(),
                    timeout=self._schedule.next_interval.total_seconds(),
                )
            except TimeoutError:
                pass
            if self._stopped:
                return
            await self._run_tick()

    async def _run_tick(self) -> None:
        async with self._tick_lock:
            try:
                async with self._bookmark.locked() as marker:
                    while await self._ship_pass(marker):
                        pass
            except Exception as exc:
                self._schedule.mark_failure()
                self.diagnostics.error("Exception while shipping buffered records", exc)
            self.state = (
                ShipperState.BACKOFF
                if self._schedule.failures_since_success
                else ShipperState.IDLE
            )

    async def _ship_pass(self, marker: BookmarkFile) -> bool:
        """
        One pass. The caller holds the bookmark lock for the whole tick.

        Returns True when another pass should run without waiting for the timer.
        """
        opts = self.options
        self.state = ShipperState.RESOLVING
        bookmark = await marker.try_read()
        file_set = await asyncio.to_thread(
            fileset.resolve, opts.buffer_folder, opts.candidate_pattern
        )

        if not file_set:
            self._schedule.mark_success()
            return False

        if bookmark.current_file is None:
            bookmark = bookmark.at_start_of(file_set[0])
        current: Path = bookmark.current_file  # type: ignore[assignment]

        position = fileset.position_of(file_set, current)
        if position is None:
            self._schedule.mark_failure()
            self.diagnostics.error(
                f"Bookmarked buffer file {current} is not among the "
                f"{len(file_set)} buffer files matching "
                f"{opts.buffer_folder / opts.candidate_pattern}"
            )
            return False

        self.state = ShipperState.ASSEMBLING
        assembled = await asyncio.to_thread(
            assembler.assemble,
            current,
            bookmark.offset,
            opts.batch_posting_limit,
            opts.batch_size_limit_bytes,
            self._on_overflow,
        )

        advanced = False
        if assembled.batch:
            self.state = ShipperState.PUBLISHING
            if not await self._publish(current, assembled):
                self._sweep(file_set, current)
                return False
            self.state = ShipperState.ADVANCING
            await marker.write(bookmark.with_offset(assembled.next_offset))
            self._schedule.mark_success()
            self.counters.record_success(len(assembled.batch))
            self._record_skipped(assembled)

        elif assembled.next_offset != bookmark.offset:
            self.state = ShipperState.ADVANCING
            await marker.write(bookmark.with_offset(assembled.next_offset))
            self._schedule.mark_success()
            self._record_skipped(assembled)

        else:
            self._schedule.mark_success()
            if position < len(file_set) - 1 and await asyncio.to_thread(
                fileset.is_unlocked_at_length,
                current,
                bookmark.offset,
                self.diagnostics,
            ):
                self.state = ShipperState.ADVANCING
                current = file_set[position + 1]
                await marker.write(bookmark.at_start_of(current))
                self._advance_counters(file_set[position], current)
                advanced = True

        self._sweep(file_set, current)

        return assembled.hit_count_limit or assembled.hit_size_limit or advanced

    async def _publish(self, current: Path, assembled: AssembledBatch) -> bool:
        records = assembled.batch.records
        try:
            result = await self.publisher.publish(records)
            failure: object = result.error
        except Exception as exc:
            result = PublishResult.failed(str(exc) or type(exc).__name__)
            failure = exc

        if result.success:
            self.diagnostics.debug(
                f"Published {len(records)} records "
                f"({assembled.batch.size_bytes} bytes) from {current}"
            )
            return True

        self._schedule.mark_failure()
        self.counters.record_failure(len(records))
        self.diagnostics.error(
            f"Failed to publish {len(records)} records "
            f"({assembled.batch.size_bytes} bytes) from {current}",
            failure,
        )
        return False

    def _on_overflow(self, path: Path, offset: int, size_bytes: int) -> None:
        self.diagnostics.debug_overflow(
            path, offset, size_bytes, self.options.batch_size_limit_bytes or 0
        )

    def _record_skipped(self, assembled: AssembledBatch) -> None:
        if assembled.skipped:
            self.counters.record_dropped(assembled.skipped, assembled.overflows)

    def _advance_counters(self, previous: Path, current: Path) -> None:
        self.diagnostics.debug_file_action("complete", previous, self.counters.as_dict())
        self.counters.reset()
        self.diagnostics.debug_file_action("advance", current, {})

    def _sweep(self, file_set: fileset.FileSet, current: Path) -> None:
        retention.sweep(
            file_set,
            current,
            self.options.retained_file_count_limit,
            self.diagnostics,
        )
