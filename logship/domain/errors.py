"""
Exception hierarchy for logship.

LogShipError
├── ConfigurationError     — invalid shipper options (raised at construction)
├── BookmarkError          — bookmark used outside its lock scope
│   └── BookmarkFormatError — marker content could not be parsed
├── PublishError           — publisher adapter failure (wraps original exception)
└── StorageError           — underlying I/O failure (wraps original exception)
"""

from __future__ import annotations


class LogShipError(Exception):
    """Base class for all logship exceptions."""


class ConfigurationError(LogShipError):
    """Raised when ShipperOptions fail validation."""


class BookmarkError(LogShipError):
    """Raised when the bookmark file is read or written without holding its lock."""


class BookmarkFormatError(BookmarkError):
    """
    Raised by the codec when marker content is not "<offset>:::<path>".

    The shipper never lets this escape: a malformed bookmark is treated as
    "start from the oldest buffer file at offset 0".
    """

    def __init__(self, content: str) -> None:
        self.content = content
        super().__init__(f"Malformed bookmark content: {content!r}")


class _WrappedError(LogShipError):
    def __init__(self, message: str, cause: Exception) -> None:
        self.cause = cause
        super().__init__(f"{message}: {cause}")


class PublishError(_WrappedError):
    """
    Wraps an exception raised by a publisher backend.

    Attributes
    ----------
    cause : Exception
        The original exception from the publish client.
    """


class StorageError(_WrappedError):
    """
    Wraps an underlying I/O failure (bookmark write, buffer read).

    Attributes
    ----------
    cause : Exception
        The original exception from the filesystem.
    """
