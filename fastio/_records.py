from __future__ import annotations

from datetime import datetime

from ._exceptions import FIOInvalidArgumentError
from ._path import (
    SEPARATOR,
    is_blank,
    join,
    split,
    strip_trailing_separator,
    to_long_safe_path,
)
from ._typing import FileAttributes

_MAX_LENGTH = 0xFFFFFFFFFFFFFFFF


class DirectoryAddress:
    """Absolute path of a directory. Immutable; compares by path string.

    One trailing separator is dropped at construction, so ``C:\\data\\``
    and ``C:\\data`` are the same address.
    """

    __slots__ = ("_path",)

    def __init__(self, path: str = "") -> None:
        object.__setattr__(self, "_path", strip_trailing_separator(path or ""))

    def __setattr__(self, name: str, value: object) -> None:
        raise AttributeError(f"{type(self).__name__} is immutable")

    @property
    def path(self) -> str:
        return self._path

    @property
    def name(self) -> str:
        return split(self._path)[1]

    @property
    def parent_path(self) -> str:
        return split(self._path)[0]

    @property
    def parent(self) -> DirectoryAddress:
        """The containing directory, or an unpopulated address at the top."""
        if SEPARATOR in self._path.lstrip(SEPARATOR):
            return DirectoryAddress(self.parent_path)
        return DirectoryAddress()

    @property
    def is_populated(self) -> bool:
        return bool(self._path)

    def child(self, name: str) -> DirectoryAddress:
        return DirectoryAddress(join(self._path, name))

    def is_descendant_of(self, other: DirectoryAddress) -> bool:
        """True if this directory lies (recursively) below *other*."""
        if not other.is_populated:
            return False
        return self._path.startswith(other._path + SEPARATOR)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, DirectoryAddress):
            return NotImplemented
        return self._path == other._path

    def __hash__(self) -> int:
        return hash(self._path)

    def __str__(self) -> str:
        return self._path

    def __repr__(self) -> str:
        return f"DirectoryAddress({self._path!r})"


class FileRecord:
    """A file discovered by a scan session."""

    __slots__ = ("_attributes", "_path", "_last_write_time", "_length")

    def __init__(
        self,
        attributes: int,
        path: str,
        last_write_time: datetime,
        length: int,
    ) -> None:
        if is_blank(path):
            raise FIOInvalidArgumentError("path")
        if not 0 <= length <= _MAX_LENGTH:
            raise ValueError(f"length out of range for an unsigned 64-bit value: {length}")
        object.__setattr__(self, "_attributes", FileAttributes(attributes))
        object.__setattr__(self, "_path", path)
        object.__setattr__(self, "_last_write_time", last_write_time)
        object.__setattr__(self, "_length", length)

    def __setattr__(self, name: str, value: object) -> None:
        raise AttributeError(f"{type(self).__name__} is immutable")

    @property
    def attributes(self) -> FileAttributes:
        return self._attributes

    @property
    def path(self) -> str:
        return self._path

    @property
    def last_write_time(self) -> datetime:
        return self._last_write_time

    @property
    def length(self) -> int:
        return self._length

    @property
    def name(self) -> str:
        return split(self._path)[1]

    @property
    def parent_path(self) -> str:
        return split(self._path)[0]

    @property
    def parent(self) -> DirectoryAddress:
        return DirectoryAddress(self.parent_path)

    @property
    def long_path(self) -> str:
        """The path in a form native calls accept beyond MAX_PATH."""
        return to_long_safe_path(self._path)

    def is_descendant_of(self, directory: DirectoryAddress) -> bool:
        """True if this file is inside *directory*, directly or recursively."""
        if not directory.is_populated:
            return False
        parent = self.parent_path
        return parent == directory.path or parent.startswith(directory.path + SEPARATOR)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, FileRecord):
            return NotImplemented
        return self._path == other._path

    def __hash__(self) -> int:
        return hash(self._path)

    def __repr__(self) -> str:
        return f"FileRecord({self._path!r}, length={self._length})"
