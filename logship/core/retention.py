"""
Retention — delete shipped buffer files once too many have accumulated.

At most one file is deleted per pass, always the oldest, and never the file
the bookmark points at. Deletion failures are reported and otherwise ignored:
retention must never block shipping.
"""

from __future__ import annotations

import logging
from pathlib import Path

from logship.core.fileset import FileSet
from logship.ports.diagnostics import DiagnosticsPort

logger = logging.getLogger(__name__)


def sweep(
    file_set: FileSet,
    current_file: Path | None,
    retained_file_count_limit: int | None,
    diagnostics: DiagnosticsPort,
) -> Path | None:
    """Delete file_set[0] if the set is over its limit and it is not current. Returns the deleted path."""
    if retained_file_count_limit is None or len(file_set) <= 1:
        return None
    if len(file_set) <= retained_file_count_limit:
        return None

    oldest = file_set[0]
    if oldest == current_file:
        return None

    try:
        oldest.unlink()
    except FileNotFoundError:
        logger.debug("Buffer file %s already removed", oldest)
        return None
    except OSError as exc:
        diagnostics.error(f"Could not delete expired buffer file {oldest}", exc)
        return None

    diagnostics.debug_file_action("delete", oldest, {})
    return oldest
