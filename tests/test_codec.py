from pathlib import Path

import pytest

from logship.core import codec
from logship.domain.errors import BookmarkFormatError
from logship.domain.models import Bookmark


def test_encode_uses_offset_separator_path_format():
    bookmark = Bookmark(offset=1234, current_file=Path("/var/spool/app/events-20240101.json"))
    assert codec.encode(bookmark) == b"1234:::/var/spool/app/events-20240101.json"


def test_encode_has_no_trailing_newline():
    data = codec.encode(Bookmark(offset=0, current_file=Path("/a/b-1.json")))
    assert not data.endswith(b"\n")


def test_encode_without_current_file_raises():
    with pytest.raises(ValueError):
        codec.encode(Bookmark.empty())


def test_decode_empty_bytes_returns_empty_bookmark():
    assert codec.decode(b"") == Bookmark.empty()


def test_decode_whitespace_returns_empty_bookmark():
    assert codec.decode(b"  \r\n") == Bookmark.empty()


def test_decode_valid_marker():
    bookmark = codec.decode(b"42:::/tmp/buf-0001.json")
    assert bookmark.offset == 42
    assert bookmark.current_file == Path("/tmp/buf-0001.json")


def test_decode_tolerates_trailing_newline():
    bookmark = codec.decode(b"7:::/tmp/buf-0001.json\r\n")
    assert bookmark.offset == 7
    assert bookmark.current_file == Path("/tmp/buf-0001.json")


def test_decode_path_containing_separator():
    bookmark = codec.decode(b"3:::/tmp/odd:::name-1.json")
    assert bookmark.current_file == Path("/tmp/odd:::name-1.json")


def test_roundtrip_preserves_non_ascii_path():
    original = Bookmark(offset=99, current_file=Path("/tmp/journal-é-1.json"))
    assert codec.decode(codec.encode(original)) == original


@pytest.mark.parametrize(
    "content",
    [
        b"no separator here",
        b":::/tmp/buf-1.json",
        b"12:::",
        b"-5:::/tmp/buf-1.json",
        b"abc:::/tmp/buf-1.json",
        b"\xff\xfe:::/tmp",
    ],
)
def test_decode_malformed_raises(content):
    with pytest.raises(BookmarkFormatError):
        codec.decode(content)
