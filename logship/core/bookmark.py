"""
BookmarkFile — fcntl.flock-protected shipping cursor.

The bookmark marker is the only resource that needs exclusive access. Every
tick of the shipping loop, with all of its passes, runs inside
`async with bookmark.locked()`:

  open (create if absent) → flock(LOCK_EX) → read → ... → write → unlock → close

Because flock locks belong to the open file description, two LogShipper
instances pointed at the same buffer root exclude each other whether they
live in different processes or in the same one.

Read semantics
--------------
try_read() fails open: a missing, empty, or malformed marker yields
Bookmark.empty(), which the shipper resolves to the oldest buffer file.

Write semantics
---------------
write() truncates and rewrites the whole marker, then fsyncs. I/O failures
surface as StorageError so the current tick aborts with the previous cursor
still on disk.

POSIX-only (Linux, macOS). Not compatible with NFS or distributed filesystems.
"""

from __future__ import annotations

import asyncio
import contextlib
import dataclasses
import fcntl
import os
from collections.abc import AsyncIterator
from pathlib import Path

from logship.core import codec
from logship.domain.errors import BookmarkError, BookmarkFormatError, StorageError
from logship.domain.models import Bookmark


@dataclasses.dataclass
class BookmarkFile:
    """
    Crash-safe "current file + byte offset" marker.

    Parameters
    ----------
    path : path to the marker file (parent directory created if absent)
    """

    path: Path

    _fd: int | None = dataclasses.field(default=None, init=False, repr=False)

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self._fd = None

    @property
    def is_locked(self) -> bool:
        return self._fd is not None

    @contextlib.asynccontextmanager
    async def locked(self) -> AsyncIterator[BookmarkFile]:
        """
        Hold the exclusive lock for the body of the block. Blocks while another holder exists.

        Cancelling the caller while it waits leaves the worker thread blocked in
        flock; whatever it eventually acquires is released as soon as it returns.
        """
        if self._fd is not None:
            raise BookmarkError(f"Bookmark {self.path} is already locked by this instance")
        acquire = asyncio.ensure_future(asyncio.to_thread(self._sync_acquire))
        try:
            fd = await asyncio.shield(acquire)
        except asyncio.CancelledError:
            acquire.add_done_callback(_release_abandoned)
            raise
        self._fd = fd
        try:
            yield self
        finally:
            self._sync_release()

    async def try_read(self) -> Bookmark:
        """Return the persisted bookmark, or Bookmark.empty() when absent or malformed."""
        return await asyncio.to_thread(self._sync_read)

    async def write(self, bookmark: Bookmark) -> None:
        """Replace the marker content and fsync. Raises StorageError on I/O failure."""
        await asyncio.to_thread(self._sync_write, bookmark)

    # ------------------------------------------------------------------ #
    # Synchronous implementations (executed in a thread-pool worker)      #
    # ------------------------------------------------------------------ #

    def _require_fd(self) -> int:
        if self._fd is None:
            raise BookmarkError(f"Bookmark {self.path} is not locked")
        return self._fd

    def _sync_acquire(self) -> int:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd = os.open(str(self.path), os.O_RDWR | os.O_CREAT, 0o644)
        except OSError as exc:
            raise StorageError(f"Cannot open bookmark {self.path}", exc) from exc
        try:
            fcntl.flock(fd, fcntl.LOCK_EX)
        except OSError as exc:
            os.close(fd)
            raise StorageError(f"Cannot lock bookmark {self.path}", exc) from exc
        return fd

    def _sync_release(self) -> None:
        fd, self._fd = self._fd, None
        if fd is not None:
            _unlock(fd)

    def _sync_read(self) -> Bookmark:
        fd = self._require_fd()
        try:
            content = os.pread(fd, os.fstat(fd).st_size, 0)
            return codec.decode(content)
        except (OSError, BookmarkFormatError):
            return Bookmark.empty()

    def _sync_write(self, bookmark: Bookmark) -> None:
        fd = self._require_fd()
        content = codec.encode(bookmark)
        try:
            os.ftruncate(fd, 0)
            view = memoryview(content)
            written = 0
            while written < len(content):
                written += os.pwrite(fd, view[written:], written)
            os.fsync(fd)
        except OSError as exc:
            raise StorageError(f"Cannot write bookmark {self.path}", exc) from exc


def _unlock(fd: int) -> None:
    try:
        fcntl.flock(fd, fcntl.LOCK_UN)
    finally:
        os.close(fd)


def _release_abandoned(acquire: asyncio.Future[int]) -> None:
    """Done-callback for an acquire whose caller was cancelled while waiting."""
    if acquire.cancelled() or acquire.exception() is not None:
        return
    _unlock(acquire.result())
