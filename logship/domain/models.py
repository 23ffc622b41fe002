"""
Domain models for logship — backed by Pydantic v2.

Pydantic handles:
  - field validation (non-negative offsets and sizes)
  - Path coercion for the bookmark's current file
  - immutability: every value model is frozen

Mutations return new instances via model_copy(update=...), following a
functional-update style. FileDeliveryCounters is the one mutable type: it
accumulates diagnostics while a buffer file is current and is never persisted.
"""

from __future__ import annotations

import dataclasses
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field


class ShipperState(str, Enum):
    """Where the shipping loop currently is."""

    IDLE = "idle"
    RESOLVING = "resolving"
    ASSEMBLING = "assembling"
    PUBLISHING = "publishing"
    ADVANCING = "advancing"
    BACKOFF = "backoff"
    STOPPED = "stopped"


class Bookmark(BaseModel):
    """
    Persisted shipping cursor.

    offset       — byte offset of the next unshipped record in current_file
    current_file — absolute path of the buffer file being shipped,
                   None when nothing has been shipped yet (or the marker was corrupt)
    """

    model_config = ConfigDict(frozen=True)

    offset: int = Field(default=0, ge=0)
    current_file: Path | None = None

    @classmethod
    def empty(cls) -> Bookmark:
        """The "start from the oldest file at offset 0" bookmark."""
        return cls()

    def with_offset(self, offset: int) -> Bookmark:
        """Return a new Bookmark on the same file at a different offset."""
        return self.model_copy(update={"offset": offset})

    def at_start_of(self, path: Path) -> Bookmark:
        """Return a new Bookmark at offset 0 of another file."""
        return self.model_copy(update={"offset": 0, "current_file": path})


class Batch(BaseModel):
    """
    A group of records delivered in a single publish call.

    records    — record texts in file order, line terminators stripped
    size_bytes — encoded size of the records including their terminators
    """

    model_config = ConfigDict(frozen=True)

    records: tuple[str, ...] = ()
    size_bytes: int = Field(default=0, ge=0)

    def __len__(self) -> int:
        return len(self.records)

    def __bool__(self) -> bool:
        return bool(self.records)


class AssembledBatch(BaseModel):
    """
    Result of reading one batch from a buffer file.

    batch           — the records to publish (possibly empty)
    next_offset     — byte offset just past the last consumed record
    hit_count_limit — assembly stopped because batch_posting_limit was reached
    hit_size_limit  — assembly stopped before a record that would overflow the batch
    skipped         — records consumed but not batched (oversized or blank)
    overflows       — the subset of skipped records that exceeded the size limit
    """

    model_config = ConfigDict(frozen=True)

    batch: Batch = Batch()
    next_offset: int = Field(default=0, ge=0)
    hit_count_limit: bool = False
    hit_size_limit: bool = False
    skipped: int = Field(default=0, ge=0)
    overflows: int = Field(default=0, ge=0)


class PublishResult(BaseModel):
    """
    Outcome of a publish call.

    success     — True when the endpoint accepted the whole batch
    message_ids — identifiers assigned by the endpoint (may be empty)
    error       — failure description when success is False
    """

    model_config = ConfigDict(frozen=True)

    success: bool
    message_ids: tuple[str, ...] = ()
    error: str | None = None

    @classmethod
    def ok(cls, message_ids: tuple[str, ...] | list[str] = ()) -> PublishResult:
        """Factory for a successful publish."""
        return cls(success=True, message_ids=tuple(message_ids))

    @classmethod
    def failed(cls, error: str) -> PublishResult:
        """Factory for a failed publish."""
        return cls(success=False, error=error)


@dataclasses.dataclass
class FileDeliveryCounters:
    """Per-file delivery statistics, reset whenever the bookmark moves to another file."""

    lines_ok: int = 0
    lines_error: int = 0
    lines_dropped: int = 0
    batches_ok: int = 0
    batches_error: int = 0
    overflows: int = 0

    def record_success(self, lines: int) -> None:
        self.batches_ok += 1
        self.lines_ok += lines

    def record_failure(self, lines: int) -> None:
        self.batches_error += 1
        self.lines_error += lines

    def record_dropped(self, lines: int, overflows: int = 0) -> None:
        self.lines_dropped += lines
        self.overflows += overflows

    def reset(self) -> None:
        for f in dataclasses.fields(self):
            setattr(self, f.name, 0)

    def as_dict(self) -> dict[str, int]:
        return dataclasses.asdict(self)
