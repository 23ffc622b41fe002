"""
LoggingDiagnostics — DiagnosticsPort on top of the standard library logger.

  error(...)             → logger.error   (traceback attached when payload is an exception)
  debug(...)             → logger.debug
  debug_overflow(...)    → logger.debug
  debug_file_action(...) → logger.debug

The handler configuration is left to the embedding application. Do not route
the "logship" logger into a DurableLogHandler that ships through the same
shipper: a failing endpoint would then feed its own error log.
"""

from __future__ import annotations

import dataclasses
import logging
from pathlib import Path
from typing import Any


@dataclasses.dataclass
class LoggingDiagnostics:
    """
    Parameters
    ----------
    logger : target logger (default: the "logship" logger)
    """

    logger: logging.Logger = dataclasses.field(
        default_factory=lambda: logging.getLogger("logship")
    )

    def error(self, message: str, payload: Any = None) -> None:
        if isinstance(payload, BaseException):
            self.logger.error(message, exc_info=payload)
        elif payload is not None:
            self.logger.error("%s: %s", message, payload)
        else:
            self.logger.error(message)

    def debug(self, message: str, payload: Any = None) -> None:
        if payload is not None:
            self.logger.debug("%s: %s", message, payload)
        else:
            self.logger.debug(message)

    def debug_overflow(
        self, path: Path, offset: int, size_bytes: int, limit: int
    ) -> None:
        self.logger.debug(
            "Skipping record of %d bytes at offset %d in %s: exceeds batch limit of %d bytes",
            size_bytes,
            offset,
            path,
            limit,
        )

    def debug_file_action(
        self, action: str, path: Path, counters: dict[str, int]
    ) -> None:
        if counters:
            stats = " ".join(f"{k}={v}" for k, v in counters.items())
            self.logger.debug("Buffer file %s: %s (%s)", action, path, stats)
        else:
            self.logger.debug("Buffer file %s: %s", action, path)
