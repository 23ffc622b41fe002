"""
ShipperOptions — validated configuration for a LogShipper.

All limits are checked once, at construction. Invalid options are the only
errors the shipper ever raises to the embedding application.

Buffer layout
-------------
buffer_base_filename = "/var/spool/app/events" gives:

  buffer_folder     → /var/spool/app
  buffer_prefix     → events
  candidate_pattern → events-*.json   (with the default extension)
  bookmark_path     → /var/spool/app/events.bookmark
"""

from __future__ import annotations

from datetime import timedelta
from pathlib import Path
from typing import Any

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
    model_validator,
)

from logship.domain.errors import ConfigurationError


class ShipperOptions(BaseModel):
    """
    Options for the shipping loop.

    buffer_base_filename      — folder + prefix of the buffer files
    buffer_file_extension     — extension of the buffer files (".json")
    shipping_interval         — wait between ticks while the endpoint is healthy
    batch_posting_limit       — maximum records per publish call
    batch_size_limit_bytes    — maximum encoded bytes per publish call (None = unbounded)
    retained_file_count_limit — buffer files kept before the oldest is deleted (None = keep all)
    minimum_backoff_period    — first wait after a failure
    maximum_backoff_interval  — cap on the wait after repeated failures
    """

    model_config = ConfigDict(frozen=True)

    buffer_base_filename: Path
    buffer_file_extension: str = ".json"
    shipping_interval: timedelta = timedelta(seconds=2)
    batch_posting_limit: int = Field(default=50, ge=1)
    batch_size_limit_bytes: int | None = Field(default=None, ge=1)
    retained_file_count_limit: int | None = Field(default=31, ge=1)
    minimum_backoff_period: timedelta = timedelta(seconds=5)
    maximum_backoff_interval: timedelta = timedelta(minutes=10)

    @classmethod
    def create(cls, **kwargs: Any) -> ShipperOptions:
        """Build options, converting pydantic ValidationError into ConfigurationError."""
        try:
            return cls(**kwargs)
        except ValidationError as exc:
            raise ConfigurationError(str(exc)) from exc

    @field_validator("buffer_base_filename")
    @classmethod
    def _check_base_filename(cls, v: Path) -> Path:
        if not v.name or v.name in (".", ".."):
            raise ValueError("buffer_base_filename must name a file prefix")
        return v.expanduser().absolute()

    @field_validator("buffer_file_extension")
    @classmethod
    def _check_extension(cls, v: str) -> str:
        if not v.startswith(".") or len(v) < 2:
            raise ValueError(f"buffer_file_extension must look like '.json', got {v!r}")
        return v

    @field_validator("shipping_interval", "minimum_backoff_period")
    @classmethod
    def _check_positive(cls, v: timedelta) -> timedelta:
        if v <= timedelta(0):
            raise ValueError("interval must be positive")
        return v

    @model_validator(mode="after")
    def _check_backoff_cap(self) -> ShipperOptions:
        if self.maximum_backoff_interval < self.shipping_interval:
            raise ValueError(
                "maximum_backoff_interval must not be shorter than shipping_interval"
            )
        return self

    # ------------------------------------------------------------------ #
    # Derived paths                                                        #
    # ------------------------------------------------------------------ #

    @property
    def buffer_folder(self) -> Path:
        return self.buffer_base_filename.parent

    @property
    def buffer_prefix(self) -> str:
        return self.buffer_base_filename.name

    @property
    def candidate_pattern(self) -> str:
        """Glob matching every buffer file: <prefix>-*<extension>."""
        return f"{self.buffer_prefix}-*{self.buffer_file_extension}"

    @property
    def bookmark_path(self) -> Path:
        return self.buffer_base_filename.with_name(self.buffer_prefix + ".bookmark")
