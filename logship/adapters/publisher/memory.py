"""
InMemoryPublisher — records every published batch, for testing and development.

Failures can be scripted: each entry of `failures` is consumed by one publish
call. An Exception entry is raised, a string entry is returned as
PublishResult.failed(...), and None lets that call succeed.

Zero external dependencies. NOT a real transport.
"""
from __future__ import annotations

import asyncio
import dataclasses
from collections.abc import Sequence

from logship.domain.models import PublishResult


@dataclasses.dataclass
class InMemoryPublisher:
    """
    In-process publisher backed by a list of batches.

    Parameters
    ----------
    failures : scripted outcomes for the next publish calls (see module docstring)
    """

    failures: list[Exception | str | None] = dataclasses.field(default_factory=list)

    def __post_init__(self) -> None:
        self.batches: list[tuple[str, ...]] = []
        self.calls: int = 0
        self._counter: int = 0
        self._lock: asyncio.Lock = asyncio.Lock()

    @property
    def records(self) -> list[str]:
        """Every successfully published record, in publish order."""
        return [record for batch in self.batches for record in batch]

    async def publish(self, records: Sequence[str]) -> PublishResult:
        async with self._lock:
            self.calls += 1
            if self.failures:
                outcome = self.failures.pop(0)
                if isinstance(outcome, Exception):
                    raise outcome
                if outcome is not None:
                    return PublishResult.failed(outcome)

            self.batches.append(tuple(records))
            ids = []
            for _ in records:
                self._counter += 1
                ids.append(str(self._counter))
            return PublishResult.ok(ids)
