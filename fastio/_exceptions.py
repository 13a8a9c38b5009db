from __future__ import annotations

from ._path import to_regular_path

ERROR_SUCCESS = 0
ERROR_FILE_NOT_FOUND = 2
ERROR_PATH_NOT_FOUND = 3
ERROR_ACCESS_DENIED = 5
ERROR_NO_MORE_FILES = 18
ERROR_SHARING_VIOLATION = 32


class FIOError(OSError):
    """Base class for errors mapped from a native error code. Subclass of OSError.

    ``path`` is always the regular (un-prefixed) form, ``code`` the raw
    native error code.
    """
    def __init__(self, message: str, path: str, code: int) -> None:
        self.path = path
        self.code = code
        super().__init__(message)


class FIONotFoundError(FIOError, FileNotFoundError):
    """Raised for ERROR_FILE_NOT_FOUND and ERROR_PATH_NOT_FOUND. Subclass of FileNotFoundError."""
    def __init__(self, path: str, code: int = ERROR_PATH_NOT_FOUND) -> None:
        super().__init__(f"The system cannot find the path specified: '{path}'", path, code)


class FIOAccessDeniedError(FIOError, PermissionError):
    """Raised for ERROR_ACCESS_DENIED. Subclass of PermissionError."""
    def __init__(self, path: str, code: int = ERROR_ACCESS_DENIED) -> None:
        super().__init__(f"Access is denied: '{path}'", path, code)


class FIOSharingViolationError(FIOError):
    """Raised when the file is in use by another process. Never retried."""
    def __init__(self, path: str, code: int = ERROR_SHARING_VIOLATION) -> None:
        super().__init__(
            f"The file is in use by another process: '{path}'", path, code
        )


class FIONativeIOError(FIOError):
    """Any other non-zero native error code."""
    def __init__(self, path: str, code: int) -> None:
        super().__init__(f"Native I/O failure (error {code}) on '{path}'.", path, code)


class FIOInvalidArgumentError(ValueError):
    """Raised when an empty or whitespace path reaches an entry point."""
    def __init__(self, name: str = "path") -> None:
        self.name = name
        super().__init__(f"'{name}' cannot be empty or whitespace.")


class FIOTraversalError(ExceptionGroup):
    """Aggregates the failures of every subtree that could not be scanned."""
    def __new__(cls, errors):  # type: ignore[no-untyped-def]
        count = len(errors)
        noun = "directory" if count == 1 else "directories"
        return super().__new__(cls, f"{count} {noun} could not be scanned", errors)

    def derive(self, excs):  # type: ignore[no-untyped-def]
        return FIOTraversalError(excs)


def map_native_error(path: str, code: int) -> FIOError | None:
    """Translate a native error code into an exception, or ``None`` for success."""
    if code == ERROR_SUCCESS:
        return None
    affected = to_regular_path(path)
    if code in (ERROR_FILE_NOT_FOUND, ERROR_PATH_NOT_FOUND):
        return FIONotFoundError(affected, code)
    if code == ERROR_ACCESS_DENIED:
        return FIOAccessDeniedError(affected, code)
    if code == ERROR_SHARING_VIOLATION:
        return FIOSharingViolationError(affected, code)
    return FIONativeIOError(affected, code)


def raise_for_code(path: str, code: int) -> None:
    error = map_native_error(path, code)
    if error is not None:
        raise error
