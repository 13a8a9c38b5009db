"""kernel32 bindings for the native scan protocol. Importable on Windows only."""

from __future__ import annotations

import ctypes
import logging
import msvcrt
import os
from ctypes import wintypes
from typing import BinaryIO

from ._exceptions import ERROR_NO_MORE_FILES, raise_for_code
from ._native import INVALID_HANDLE_VALUE, NativeScanAPI, stream_mode
from ._typing import FileAccess, FileAttributes, FileMode, FileShare, RawScanEntry

logger = logging.getLogger(__name__)

_NATIVE_INVALID_HANDLE = ctypes.c_void_p(-1).value
OPEN_ALWAYS = 4


class FILETIME(ctypes.Structure):
    _fields_ = [("dwLowDateTime", wintypes.DWORD),
                ("dwHighDateTime", wintypes.DWORD)]


class WIN32_FIND_DATAW(ctypes.Structure):
    _fields_ = [("dwFileAttributes", wintypes.DWORD),
                ("ftCreationTime", FILETIME),
                ("ftLastAccessTime", FILETIME),
                ("ftLastWriteTime", FILETIME),
                ("nFileSizeHigh", wintypes.DWORD),
                ("nFileSizeLow", wintypes.DWORD),
                ("dwReserved0", wintypes.DWORD),
                ("dwReserved1", wintypes.DWORD),
                ("cFileName", wintypes.WCHAR * 260),
                ("cAlternateFileName", wintypes.WCHAR * 14)]


def _bind():  # type: ignore[no-untyped-def]
    kernel32 = ctypes.WinDLL("kernel32", use_last_error=True)

    kernel32.FindFirstFileW.argtypes = [wintypes.LPCWSTR, ctypes.POINTER(WIN32_FIND_DATAW)]
    kernel32.FindFirstFileW.restype = ctypes.c_void_p

    kernel32.FindNextFileW.argtypes = [ctypes.c_void_p, ctypes.POINTER(WIN32_FIND_DATAW)]
    kernel32.FindNextFileW.restype = wintypes.BOOL

    kernel32.FindClose.argtypes = [ctypes.c_void_p]
    kernel32.FindClose.restype = wintypes.BOOL

    kernel32.CreateFileW.argtypes = [
        wintypes.LPCWSTR,
        wintypes.DWORD,
        wintypes.DWORD,
        ctypes.c_void_p,
        wintypes.DWORD,
        wintypes.DWORD,
        ctypes.c_void_p,
    ]
    kernel32.CreateFileW.restype = ctypes.c_void_p

    kernel32.CloseHandle.argtypes = [ctypes.c_void_p]
    kernel32.CloseHandle.restype = wintypes.BOOL
    return kernel32


def _to_entry(fd: WIN32_FIND_DATAW) -> RawScanEntry:
    return RawScanEntry(
        attributes=fd.dwFileAttributes,
        name=fd.cFileName,
        size_high=fd.nFileSizeHigh,
        size_low=fd.nFileSizeLow,
        write_time_high=fd.ftLastWriteTime.dwHighDateTime,
        write_time_low=fd.ftLastWriteTime.dwLowDateTime,
    )


class Win32ScanAPI(NativeScanAPI):
    """FindFirstFileW / FindNextFileW / FindClose through ctypes."""

    def __init__(self) -> None:
        self._kernel32 = _bind()

    def find_first(self, pattern: str) -> tuple[int, RawScanEntry | None, int]:
        fd = WIN32_FIND_DATAW()
        handle = self._kernel32.FindFirstFileW(pattern, ctypes.byref(fd))
        if handle is None or handle == _NATIVE_INVALID_HANDLE:
            return INVALID_HANDLE_VALUE, None, ctypes.get_last_error()
        return handle, _to_entry(fd), 0

    def find_next(self, handle: int) -> tuple[RawScanEntry | None, int]:
        fd = WIN32_FIND_DATAW()
        if not self._kernel32.FindNextFileW(handle, ctypes.byref(fd)):
            code = ctypes.get_last_error()
            return None, code or ERROR_NO_MORE_FILES
        return _to_entry(fd), 0

    def find_close(self, handle: int) -> None:
        if not self._kernel32.FindClose(handle):
            logger.debug("FindClose failed for handle %#x: %d", handle, ctypes.get_last_error())

    def open_file(
        self,
        path: str,
        access: FileAccess,
        share: FileShare,
        mode: FileMode,
        buffering: int = -1,
    ) -> BinaryIO:
        disposition = OPEN_ALWAYS if mode == FileMode.APPEND else int(mode)
        handle = self._kernel32.CreateFileW(
            path, int(access), int(share), None, disposition,
            int(FileAttributes.NORMAL), None,
        )
        if handle is None or handle == _NATIVE_INVALID_HANDLE:
            raise_for_code(path, ctypes.get_last_error())
        pymode = stream_mode(access, mode)
        flags = {
            "rb": os.O_RDONLY,
            "wb": os.O_WRONLY,
            "ab": os.O_WRONLY | os.O_APPEND,
            "r+b": os.O_RDWR,
        }[pymode]
        try:
            fileno = msvcrt.open_osfhandle(handle, flags | os.O_BINARY)
        except OSError:
            self._kernel32.CloseHandle(handle)
            raise
        try:
            return open(fileno, pymode, buffering=buffering)  # type: ignore[return-value]
        except Exception:
            os.close(fileno)
            raise
