"""
DiagnosticsPort — the shipper's side channel.

Every failure the shipper absorbs (publish errors, vanished buffer files,
retention errors) is reported here instead of being raised to the embedding
application. Implementations are best-effort and must not raise.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class DiagnosticsPort(Protocol):
    """
    Structural interface for shipper diagnostics.

    Built-in implementation: LoggingDiagnostics (standard library logging).
    """

    def error(self, message: str, payload: Any = None) -> None:
        """An absorbed failure. payload may be an exception or any context object."""
        ...

    def debug(self, message: str, payload: Any = None) -> None:
        """Routine progress information."""
        ...

    def debug_overflow(
        self, path: Path, offset: int, size_bytes: int, limit: int
    ) -> None:
        """A record at `offset` in `path` exceeded the batch size limit and was skipped."""
        ...

    def debug_file_action(
        self, action: str, path: Path, counters: dict[str, int]
    ) -> None:
        """The bookmark moved onto / away from `path`, or retention deleted it."""
        ...
