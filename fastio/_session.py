from __future__ import annotations

import logging
import warnings
from collections.abc import Iterator

from ._exceptions import (
    ERROR_FILE_NOT_FOUND,
    ERROR_NO_MORE_FILES,
    FIOInvalidArgumentError,
    raise_for_code,
)
from ._native import INVALID_HANDLE_VALUE, NativeScanAPI
from ._path import ensure_trailing_separator, to_long_safe_path
from ._records import DirectoryAddress, FileRecord
from ._typing import DirectoryCallback, Entry, FileAttributes, RawScanEntry

logger = logging.getLogger(__name__)

_DIRECTORY = int(FileAttributes.DIRECTORY)
_REPARSE_POINT = int(FileAttributes.REPARSE_POINT)

# Opening with these codes means the listing is empty, not that it failed.
_EMPTY_LISTING_CODES = (ERROR_FILE_NOT_FOUND, ERROR_NO_MORE_FILES)


def is_real_directory(attributes: int) -> bool:
    return bool(attributes & _DIRECTORY) and not attributes & _REPARSE_POINT


def is_file(attributes: int) -> bool:
    return not attributes & _DIRECTORY and not attributes & _REPARSE_POINT


def classify(directory_path: str, raw: RawScanEntry) -> Entry | None:
    """Turn a raw entry into a record, or ``None`` for entries that are skipped."""
    if raw.name in (".", ".."):
        return None
    if is_real_directory(raw.attributes):
        return DirectoryAddress(directory_path + raw.name)
    if is_file(raw.attributes):
        return FileRecord(
            raw.attributes,
            directory_path + raw.name,
            raw.last_write_time,
            raw.size,
        )
    return None


class ScanSession:
    """One open directory listing.

    Iterating yields :class:`FileRecord` and :class:`DirectoryAddress`
    entries in native order.  The native handle is released when the listing
    is exhausted, when iteration fails, or on :meth:`close`, whichever comes
    first, and never twice.
    """

    def __init__(self, api: NativeScanAPI, directory: DirectoryAddress) -> None:
        if not directory.is_populated or not directory.path.strip():
            raise FIOInvalidArgumentError("directory")
        self._api = api
        self._directory = directory
        self._path = ensure_trailing_separator(directory.path)
        self._handle: int = INVALID_HANDLE_VALUE
        self._is_closed: bool = False
        self._is_started: bool = False

    @property
    def directory(self) -> DirectoryAddress:
        return self._directory

    @property
    def is_closed(self) -> bool:
        return self._is_closed

    def __iter__(self) -> Iterator[Entry]:
        if self._is_started:
            raise RuntimeError("A scan session can only be iterated once.")
        self._is_started = True
        try:
            yield from self._entries()
        finally:
            self.close()

    def _entries(self) -> Iterator[Entry]:
        if self._is_closed:
            return
        pattern = to_long_safe_path(self._path + "*")
        handle, raw, code = self._api.find_first(pattern)
        if handle == INVALID_HANDLE_VALUE:
            if code in _EMPTY_LISTING_CODES:
                return
            raise_for_code(self._directory.path, code)
            return
        self._handle = handle
        logger.debug("opened listing %s (handle %s)", self._path, handle)
        while raw is not None:
            entry = classify(self._path, raw)
            if entry is not None:
                yield entry
                if self._is_closed:
                    return
            raw, code = self._api.find_next(handle)
        if code != ERROR_NO_MORE_FILES:
            raise_for_code(self._directory.path, code)

    def close(self) -> None:
        if self._is_closed:
            return
        self._is_closed = True
        handle, self._handle = self._handle, INVALID_HANDLE_VALUE
        if handle != INVALID_HANDLE_VALUE:
            self._api.find_close(handle)
            logger.debug("closed listing %s (handle %s)", self._path, handle)

    def __enter__(self) -> ScanSession:
        return self

    def __exit__(self, *args) -> None:  # type: ignore[no-untyped-def]
        self.close()

    def __del__(self) -> None:
        if not getattr(self, "_is_closed", True) and self._handle != INVALID_HANDLE_VALUE:
            warnings.warn(
                "fastio ScanSession was not closed properly. "
                "Exhaust it or use 'with ScanSession(...) as s:' to ensure cleanup.",
                ResourceWarning,
                stacklevel=1,
            )
            try:
                self.close()
            except Exception:
                pass


def scan_directory(
    api: NativeScanAPI,
    directory: DirectoryAddress,
    on_directory: DirectoryCallback | None = None,
) -> Iterator[FileRecord]:
    """Yield the files of one directory; report real subdirectories to *on_directory*."""
    with ScanSession(api, directory) as session:
        for entry in session:
            if isinstance(entry, FileRecord):
                yield entry
            elif on_directory is not None:
                on_directory(entry)


def list_directory(api: NativeScanAPI, directory: DirectoryAddress) -> list[Entry]:
    """Read a whole listing and release its handle before returning."""
    with ScanSession(api, directory) as session:
        return list(session)
