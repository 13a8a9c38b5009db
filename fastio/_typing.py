from __future__ import annotations

import enum
from collections.abc import Awaitable, Callable
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING, NamedTuple, Union

if TYPE_CHECKING:
    from ._records import DirectoryAddress, FileRecord

# FILETIME counts 100ns intervals from this instant.
_FILETIME_EPOCH = datetime(1601, 1, 1, tzinfo=timezone.utc)


class FileAttributes(enum.IntFlag):
    NONE = 0
    READONLY = 0x00000001
    HIDDEN = 0x00000002
    SYSTEM = 0x00000004
    DIRECTORY = 0x00000010
    ARCHIVE = 0x00000020
    DEVICE = 0x00000040
    NORMAL = 0x00000080
    TEMPORARY = 0x00000100
    SPARSE_FILE = 0x00000200
    REPARSE_POINT = 0x00000400
    COMPRESSED = 0x00000800
    OFFLINE = 0x00001000
    NOT_CONTENT_INDEXED = 0x00002000
    ENCRYPTED = 0x00004000


class FileAccess(enum.IntFlag):
    READ = 0x80000000
    WRITE = 0x40000000
    READ_WRITE = READ | WRITE


class FileShare(enum.IntFlag):
    NONE = 0
    READ = 0x00000001
    WRITE = 0x00000002
    READ_WRITE = READ | WRITE
    DELETE = 0x00000004


class FileMode(enum.IntEnum):
    """Creation disposition. Values 1-5 are the native ones; APPEND opens or
    creates and positions at the end."""
    CREATE_NEW = 1
    CREATE = 2
    OPEN = 3
    OPEN_OR_CREATE = 4
    TRUNCATE = 5
    APPEND = 6


def filetime_to_datetime(high: int, low: int) -> datetime:
    ticks = ((high & 0xFFFFFFFF) << 32) | (low & 0xFFFFFFFF)
    return _FILETIME_EPOCH + timedelta(microseconds=ticks // 10)


def datetime_to_filetime(value: datetime) -> tuple[int, int]:
    """Inverse of :func:`filetime_to_datetime`, returns (high, low)."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    delta = value - _FILETIME_EPOCH
    ticks = (delta // timedelta(microseconds=1)) * 10
    return (ticks >> 32) & 0xFFFFFFFF, ticks & 0xFFFFFFFF


class RawScanEntry(NamedTuple):
    """One native find-data record, valid until the next native call."""
    attributes: int
    name: str
    size_high: int
    size_low: int
    write_time_high: int
    write_time_low: int

    @property
    def size(self) -> int:
        return ((self.size_high & 0xFFFFFFFF) << 32) | (self.size_low & 0xFFFFFFFF)

    @property
    def last_write_time(self) -> datetime:
        return filetime_to_datetime(self.write_time_high, self.write_time_low)


Entry = Union["FileRecord", "DirectoryAddress"]
FileCallback = Callable[["FileRecord"], None]
DirectoryCallback = Callable[["DirectoryAddress"], None]
EntryCallback = Callable[[Entry], None]
AsyncFileCallback = Callable[["FileRecord"], Awaitable[None]]
AsyncDirectoryCallback = Callable[["DirectoryAddress"], Awaitable[None]]
