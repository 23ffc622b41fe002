"""
Batch assembly — read the next batch of records from a buffer file.

A record is one UTF-8 line terminated by "\\n". Offsets are raw byte
positions in the file, and a record's size is the byte length of its line
*including* the terminator, exactly as the producer wrote it:

  offset 0      "alpha\\n"   size 6  → next offset 6
  offset 6      "βeta\\n"    size 6  → next offset 12   (β is two bytes)
  offset 12     "gam"        incomplete, producer still writing → stop

Getting this arithmetic wrong either re-delivers records forever (offset too
small) or silently skips them (offset too large).

Stopping rules
--------------
  - EOF, or a final line without its terminator → caught up
  - count_limit records batched              → hit_count_limit
  - the next record would push the batch past size_limit_bytes
      record alone larger than the limit      → skipped for good (on_overflow fires)
      otherwise                               → hit_size_limit, offset stays before it

Whitespace-only lines are consumed without being batched. A UTF-8 byte order
mark at the very start of a file is consumed as part of the offset.
"""

from __future__ import annotations

import codecs
from collections.abc import Callable
from pathlib import Path

from logship.domain.models import AssembledBatch, Batch

OverflowFn = Callable[[Path, int, int], None]

_BOM = codecs.BOM_UTF8


def assemble(
    path: Path,
    start_offset: int,
    count_limit: int,
    size_limit_bytes: int | None = None,
    on_overflow: OverflowFn | None = None,
) -> AssembledBatch:
    """
    Read up to `count_limit` records from `path` starting at `start_offset`.

    The file is opened read-only without any lock; the producer may still be
    appending to it.

    Parameters
    ----------
    path             : buffer file to read
    start_offset     : byte offset of the first unread record
    count_limit      : maximum records in the batch (>= 1)
    size_limit_bytes : maximum encoded bytes in the batch, or None
    on_overflow      : called as on_overflow(path, offset, size) for each skipped oversized record
    """
    if count_limit < 1:
        raise ValueError("count_limit must be >= 1")

    records: list[str] = []
    size = 0
    offset = start_offset
    skipped = 0
    overflows = 0
    hit_size_limit = False

    with open(path, "rb") as fh:
        if offset == 0 and fh.read(len(_BOM)) == _BOM:
            offset = len(_BOM)
        fh.seek(offset)

        while len(records) < count_limit:
            line = fh.readline()
            if not line.endswith(b"\n"):
                break

            length = len(line)
            text = _decode(line)

            if not text.strip():
                offset += length
                skipped += 1
                continue

            if size_limit_bytes is not None and size + length > size_limit_bytes:
                if length <= size_limit_bytes:
                    hit_size_limit = True
                    break
                if on_overflow is not None:
                    on_overflow(path, offset, length)
                offset += length
                skipped += 1
                overflows += 1
                continue

            records.append(text)
            size += length
            offset += length

    return AssembledBatch(
        batch=Batch(records=tuple(records), size_bytes=size),
        next_offset=offset,
        hit_count_limit=len(records) >= count_limit,
        hit_size_limit=hit_size_limit,
        skipped=skipped,
        overflows=overflows,
    )


def _decode(line: bytes) -> str:
    body = line[:-1]
    if body.endswith(b"\r"):
        body = body[:-1]
    return body.decode("utf-8", errors="replace")
