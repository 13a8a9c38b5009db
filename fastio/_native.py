"""The native directory-scan protocol.

A backend exposes the Win32 find-file triple (open-scan, next-entry,
close-scan) plus a single "open for I/O" call.  Error reporting follows the
native convention: calls return an error code instead of raising, and the
scan session maps non-zero codes through :func:`map_native_error`.
"""

from __future__ import annotations

import sys
from abc import ABC, abstractmethod
from typing import BinaryIO

from ._typing import FileAccess, FileMode, FileShare, RawScanEntry

INVALID_HANDLE_VALUE = -1


class NativeScanAPI(ABC):
    @abstractmethod
    def find_first(self, pattern: str) -> tuple[int, RawScanEntry | None, int]:
        """Open a listing for *pattern* (``<dir>\\*``).

        Returns ``(handle, first_entry, error_code)``.  On failure the handle
        is :data:`INVALID_HANDLE_VALUE` and the entry is ``None``.
        """

    @abstractmethod
    def find_next(self, handle: int) -> tuple[RawScanEntry | None, int]:
        """Return the next entry, or ``(None, ERROR_NO_MORE_FILES)`` at the end."""

    @abstractmethod
    def find_close(self, handle: int) -> None:
        ...

    @abstractmethod
    def open_file(
        self,
        path: str,
        access: FileAccess,
        share: FileShare,
        mode: FileMode,
        buffering: int = -1,
    ) -> BinaryIO:
        """Open *path* (already long-safe) and return a caller-owned stream.

        Raises a mapped :class:`~fastio._exceptions.FIOError` on failure.
        """


def stream_mode(access: FileAccess, mode: FileMode) -> str:
    """Python file mode for an opened native handle."""
    if mode == FileMode.APPEND:
        return "ab"
    if access & FileAccess.READ and access & FileAccess.WRITE:
        return "r+b"
    if access & FileAccess.WRITE:
        return "wb"
    return "rb"


def default_api() -> NativeScanAPI:
    if sys.platform != "win32":
        raise RuntimeError(
            "The native scan backend requires Windows; "
            "pass api=MemoryScanAPI() to scan an in-memory tree."
        )
    from ._win32 import Win32ScanAPI

    return Win32ScanAPI()
