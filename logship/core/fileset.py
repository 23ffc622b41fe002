"""
File set resolution — which buffer files exist, in which order.

Buffer files are named <prefix>-<rotation token><extension> where the token
sorts chronologically (e.g. a yyyyMMdd date), so name order is shipping order
and the last file is the one the producer may still be appending to.

The file set is recomputed on every pass; nothing is cached across ticks.
"""

from __future__ import annotations

import errno
import fcntl
import os
from pathlib import Path

from logship.ports.diagnostics import DiagnosticsPort

FileSet = tuple[Path, ...]

_LOCK_CONFLICT_ERRNOS = frozenset({errno.EACCES, errno.EAGAIN, errno.EWOULDBLOCK})


def resolve(folder: Path, pattern: str) -> FileSet:
    """Regular files in `folder` matching the glob `pattern`, oldest first."""
    if not folder.is_dir():
        return ()
    candidates = (p for p in folder.glob(pattern) if p.is_file())
    return tuple(sorted(candidates, key=lambda p: p.name))


def position_of(file_set: FileSet, path: Path) -> int | None:
    """Index of `path` in `file_set`, or None if it is not part of it."""
    try:
        return file_set.index(path)
    except ValueError:
        return None


def is_unlocked_at_length(
    path: Path,
    max_length: int,
    diagnostics: DiagnosticsPort | None = None,
) -> bool:
    """
    True when `path` is no longer held by the producer and holds no data past `max_length`.

    The producer keeps a shared flock on the file it is appending to, so a
    failed non-blocking exclusive lock means "still being written". The file is
    opened read/write without truncation; nothing is ever written to it.
    """
    try:
        fd = os.open(str(path), os.O_RDWR)
    except OSError as exc:
        if diagnostics is not None:
            diagnostics.error(f"Unexpected I/O error while checking {path}", exc)
        return False

    try:
        try:
            fcntl.flock(fd, fcntl.LOCK_EX | fcntl.LOCK_NB)
        except OSError as exc:
            if not _is_lock_conflict(exc) and diagnostics is not None:
                diagnostics.error(f"Unexpected I/O error while checking {path}", exc)
            return False
        try:
            return os.fstat(fd).st_size <= max_length
        finally:
            fcntl.flock(fd, fcntl.LOCK_UN)
    finally:
        os.close(fd)


def _is_lock_conflict(exc: OSError) -> bool:
    return isinstance(exc, BlockingIOError) or exc.errno in _LOCK_CONFLICT_ERRNOS
