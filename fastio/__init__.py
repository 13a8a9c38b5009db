from typing import TYPE_CHECKING

from ._exceptions import (
    FIOAccessDeniedError,
    FIOError,
    FIOInvalidArgumentError,
    FIONativeIOError,
    FIONotFoundError,
    FIOSharingViolationError,
    FIOTraversalError,
    map_native_error,
)
from ._fs import FastFileSystem
from ._memory import MemoryScanAPI
from ._native import NativeScanAPI, default_api
from ._path import MAX_PATH, to_long_safe_path, to_regular_path
from ._pool import WorkerPool
from ._records import DirectoryAddress, FileRecord
from ._session import ScanSession, scan_directory
from ._typing import FileAccess, FileAttributes, FileMode, FileShare

if TYPE_CHECKING:
    from ._async import AsyncFastFileSystem, AsyncFileStream


def __getattr__(name: str):  # type: ignore[no-untyped-def]
    if name in ("AsyncFastFileSystem", "AsyncFileStream"):
        from ._async import AsyncFastFileSystem, AsyncFileStream

        globals()["AsyncFastFileSystem"] = AsyncFastFileSystem
        globals()["AsyncFileStream"] = AsyncFileStream
        return globals()[name]
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = [
    "FastFileSystem",
    "MemoryScanAPI",
    "NativeScanAPI",
    "default_api",
    "WorkerPool",
    "ScanSession",
    "scan_directory",
    "DirectoryAddress",
    "FileRecord",
    "FileAttributes",
    "FileAccess",
    "FileShare",
    "FileMode",
    "MAX_PATH",
    "to_long_safe_path",
    "to_regular_path",
    "map_native_error",
    "FIOError",
    "FIONotFoundError",
    "FIOAccessDeniedError",
    "FIOSharingViolationError",
    "FIONativeIOError",
    "FIOInvalidArgumentError",
    "FIOTraversalError",
    "AsyncFastFileSystem",
    "AsyncFileStream",
]
__version__ = "0.1.0"
