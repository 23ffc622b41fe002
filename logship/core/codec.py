"""
Codec — serialize and deserialize the Bookmark marker.

Wire format (one text line, no trailing newline):
-------------------------------------------------
    <decimal byte offset>:::<absolute file path>

    1234:::/var/spool/app/events-20240101.json

The separator is matched at its first occurrence so paths containing ":::"
still round-trip. Decoding is strict; callers that must fail open
(BookmarkFile.try_read) catch BookmarkFormatError.
"""

from __future__ import annotations

from pathlib import Path

from logship.domain.errors import BookmarkFormatError
from logship.domain.models import Bookmark

SEPARATOR = ":::"


def encode(bookmark: Bookmark) -> bytes:
    """Serialize a Bookmark to its one-line UTF-8 form."""
    if bookmark.current_file is None:
        raise ValueError("Cannot encode a bookmark without a current file")
    return f"{bookmark.offset}{SEPARATOR}{bookmark.current_file}".encode("utf-8")


def decode(data: bytes) -> Bookmark:
    """Deserialize marker bytes. Empty bytes → Bookmark.empty()."""
    if not data.strip():
        return Bookmark.empty()

    try:
        text = data.decode("utf-8").strip()
    except UnicodeDecodeError as exc:
        raise BookmarkFormatError(repr(data)) from exc

    offset_text, sep, path_text = text.partition(SEPARATOR)
    valid_offset = offset_text.isascii() and offset_text.isdigit()
    if not sep or not path_text or not valid_offset:
        raise BookmarkFormatError(text)

    return Bookmark(offset=int(offset_text), current_file=Path(path_text))
