"""In-memory implementation of the native scan protocol.

Emulates what ``FindFirstFileW`` and ``CreateFileW`` report on a Windows
volume: backslash paths (drive-letter or UNC roots), case-insensitive names,
``.``/``..`` at the head of every non-root listing, reparse points, and the
native error codes for missing, denied and busy entries.  Every listing
handle is tracked so callers can assert that none leak.
"""

from __future__ import annotations

import io
import itertools
import threading
import time
from datetime import datetime, timezone
from typing import BinaryIO

from ._exceptions import (
    ERROR_ACCESS_DENIED,
    ERROR_FILE_NOT_FOUND,
    ERROR_NO_MORE_FILES,
    ERROR_PATH_NOT_FOUND,
    ERROR_SHARING_VIOLATION,
    raise_for_code,
)
from ._native import INVALID_HANDLE_VALUE, NativeScanAPI, stream_mode
from ._path import SEPARATOR, to_regular_path
from ._typing import (
    FileAccess,
    FileAttributes,
    FileMode,
    FileShare,
    RawScanEntry,
    datetime_to_filetime,
)

ERROR_INVALID_HANDLE = 6
ERROR_FILE_EXISTS = 80
ERROR_DIRECTORY = 267

# ---------------------------------------------------------------------------
#  Nodes
# ---------------------------------------------------------------------------


class _Node:
    __slots__ = ("name", "attributes", "modified_at")

    def __init__(self, name: str, attributes: int) -> None:
        self.name: str = name
        self.attributes: int = attributes
        self.modified_at: float = time.time()


class _DirNode(_Node):
    __slots__ = ("children",)

    def __init__(self, name: str) -> None:
        super().__init__(name, FileAttributes.DIRECTORY)
        self.children: dict[str, _Node] = {}


class _FileNode(_Node):
    __slots__ = ("data", "streams")

    def __init__(self, name: str, data: bytes, attributes: int) -> None:
        super().__init__(name, attributes)
        self.data: bytes = data
        self.streams: list[_MemoryStream] = []


class _ReparseNode(_Node):
    __slots__ = ("target",)

    def __init__(self, name: str, target: str, is_directory: bool) -> None:
        attributes = FileAttributes.REPARSE_POINT
        if is_directory:
            attributes |= FileAttributes.DIRECTORY
        super().__init__(name, attributes)
        self.target: str = target


def _key(name: str) -> str:
    return name.casefold()


def _split_root(path: str) -> tuple[str, list[str]]:
    """``C:\\a\\b`` >> (``C:``, [a, b]); ``\\\\srv\\share\\a`` >> (``\\\\srv\\share``, [a])."""
    path = to_regular_path(path)
    if path.startswith(SEPARATOR * 2):
        parts = path[2:].split(SEPARATOR)
        root = SEPARATOR * 2 + SEPARATOR.join(parts[:2])
        rest = parts[2:]
    else:
        parts = path.split(SEPARATOR)
        root, rest = parts[0], parts[1:]
    return root, [p for p in rest if p]


# ---------------------------------------------------------------------------
#  Streams
# ---------------------------------------------------------------------------


class _MemoryStream(io.BytesIO):
    """Caller-owned stream over a file node; written data lands on close."""

    def __init__(
        self,
        api: MemoryScanAPI,
        node: _FileNode,
        mode: str,
        access: FileAccess,
        share: FileShare,
        initial: bytes,
    ) -> None:
        super().__init__(initial)
        self._api = api
        self._node = node
        self._mode = mode
        self.access = access
        self.share = share
        if mode == "ab":
            self.seek(0, io.SEEK_END)

    def readable(self) -> bool:
        return self._mode in ("rb", "r+b")

    def writable(self) -> bool:
        return self._mode != "rb"

    def read(self, size: int | None = -1) -> bytes:
        if not self.readable():
            raise io.UnsupportedOperation(f"not readable in mode '{self._mode}'")
        return super().read(size)

    def write(self, data) -> int:  # type: ignore[no-untyped-def, override]
        if not self.writable():
            raise io.UnsupportedOperation(f"not writable in mode '{self._mode}'")
        if self._mode == "ab":
            self.seek(0, io.SEEK_END)
        return super().write(data)

    def close(self) -> None:
        if self.closed:
            return
        self._api._detach_stream(self._node, self, self.getvalue() if self.writable() else None)
        super().close()


# ---------------------------------------------------------------------------
#  MemoryScanAPI
# ---------------------------------------------------------------------------


class MemoryScanAPI(NativeScanAPI):
    def __init__(self) -> None:
        self._global_lock = threading.RLock()
        self._roots: dict[str, _DirNode] = {}
        self._listings: dict[int, list[RawScanEntry]] = {}
        self._handle_ids = itertools.count(0x1000)
        self._denied: set[str] = set()
        self._injected: dict[str, int] = {}
        self._late_errors: dict[str, tuple[int, int]] = {}
        self._faults: dict[int, int] = {}
        self._patterns: list[str] = []
        self.opened_count: int = 0
        self.closed_count: int = 0

    # -- tree construction --

    def mkdir(self, path: str) -> None:
        """Create *path* and any missing parents. Existing directories are kept."""
        with self._global_lock:
            self._makedirs(path)

    def write_file(
        self,
        path: str,
        data: bytes = b"",
        attributes: int = FileAttributes.ARCHIVE,
        modified_at: datetime | None = None,
    ) -> None:
        with self._global_lock:
            parent, name = self._parent_for_create(path)
            node = _FileNode(name, bytes(data), attributes)
            if modified_at is not None:
                node.modified_at = modified_at.timestamp()
            parent.children[_key(name)] = node

    def add_reparse_point(self, path: str, target: str = "", is_directory: bool = True) -> None:
        with self._global_lock:
            parent, name = self._parent_for_create(path)
            parent.children[_key(name)] = _ReparseNode(name, target, is_directory)

    def add_entry(self, path: str, attributes: int) -> None:
        """Add a file entry carrying arbitrary attribute bits."""
        self.write_file(path, attributes=attributes)

    def remove(self, path: str) -> None:
        with self._global_lock:
            root, parts = _split_root(path)
            if not parts:
                if self._roots.pop(_key(root), None) is None:
                    raise FileNotFoundError(f"No such root: '{path}'")
                return
            parent = self._resolve(root, parts[:-1])
            if not isinstance(parent, _DirNode) or _key(parts[-1]) not in parent.children:
                raise FileNotFoundError(f"No such file or directory: '{path}'")
            del parent.children[_key(parts[-1])]

    def read_file(self, path: str) -> bytes:
        with self._global_lock:
            node = self._lookup(path)
            if not isinstance(node, _FileNode):
                raise FileNotFoundError(f"No such file: '{path}'")
            return node.data

    # -- fault injection --

    def deny(self, path: str) -> None:
        """Make listing or opening *path* fail with ERROR_ACCESS_DENIED."""
        with self._global_lock:
            self._denied.add(_key(to_regular_path(path).rstrip(SEPARATOR)))

    def inject_error(self, path: str, code: int, *, after: int | None = None) -> None:
        """Make listing *path* fail with the native *code*.

        With *after*, the listing opens and reports that many raw entries
        (dot entries included) before ``find_next`` fails with *code*.
        """
        key = _key(to_regular_path(path).rstrip(SEPARATOR))
        with self._global_lock:
            if after is None:
                self._injected[key] = code
                return
            if after < 1:
                raise ValueError(f"after must be at least 1, got {after}")
            self._late_errors[key] = (code, after)

    def hold(self, path: str) -> _MemoryStream:
        """Open *path* exclusively, as another process holding the file would."""
        return self.open_file(path, FileAccess.READ, FileShare.NONE, FileMode.OPEN)  # type: ignore[return-value]

    # -- handle accounting --

    @property
    def patterns(self) -> list[str]:
        with self._global_lock:
            return list(self._patterns)

    @property
    def open_handles(self) -> frozenset[int]:
        with self._global_lock:
            return frozenset(self._listings)

    # -- native protocol --

    def find_first(self, pattern: str) -> tuple[int, RawScanEntry | None, int]:
        with self._global_lock:
            self._patterns.append(pattern)
            directory = to_regular_path(pattern)
            if directory.endswith("*"):
                directory = directory[:-1]
            directory = directory.rstrip(SEPARATOR)
            code = self._check_access(directory)
            if code:
                return INVALID_HANDLE_VALUE, None, code
            root, parts = _split_root(directory)
            node = self._resolve(root, parts)
            if node is None:
                return INVALID_HANDLE_VALUE, None, ERROR_PATH_NOT_FOUND
            if not isinstance(node, _DirNode):
                return INVALID_HANDLE_VALUE, None, ERROR_DIRECTORY
            listing: list[RawScanEntry] = []
            if parts:
                listing.append(self._dot_entry("."))
                listing.append(self._dot_entry(".."))
            listing.extend(self._to_entry(child) for child in node.children.values())
            late = self._late_errors.get(_key(directory))
            if late is not None:
                del listing[late[1]:]
            if not listing:
                return INVALID_HANDLE_VALUE, None, ERROR_FILE_NOT_FOUND
            handle = next(self._handle_ids)
            first = listing.pop(0)
            self._listings[handle] = listing
            if late is not None:
                self._faults[handle] = late[0]
            self.opened_count += 1
            return handle, first, 0

    def find_next(self, handle: int) -> tuple[RawScanEntry | None, int]:
        with self._global_lock:
            listing = self._listings.get(handle)
            if listing is None:
                return None, ERROR_INVALID_HANDLE
            if not listing:
                return None, self._faults.get(handle, ERROR_NO_MORE_FILES)
            return listing.pop(0), 0

    def find_close(self, handle: int) -> None:
        with self._global_lock:
            if self._listings.pop(handle, None) is None:
                raise RuntimeError(f"find_close called on an unknown or closed handle: {handle}")
            self._faults.pop(handle, None)
            self.closed_count += 1

    def open_file(
        self,
        path: str,
        access: FileAccess,
        share: FileShare,
        mode: FileMode,
        buffering: int = -1,
    ) -> BinaryIO:
        with self._global_lock:
            regular = to_regular_path(path)
            code = self._check_access(regular)
            if code:
                raise_for_code(path, code)
            root, parts = _split_root(regular)
            parent = self._resolve(root, parts[:-1]) if parts else None
            if not isinstance(parent, _DirNode):
                raise_for_code(path, ERROR_PATH_NOT_FOUND)
            assert isinstance(parent, _DirNode)
            node = parent.children.get(_key(parts[-1]))
            if node is not None and not isinstance(node, _FileNode):
                raise_for_code(path, ERROR_ACCESS_DENIED)
            if node is None:
                if mode in (FileMode.OPEN, FileMode.TRUNCATE):
                    raise_for_code(path, ERROR_FILE_NOT_FOUND)
                node = _FileNode(parts[-1], b"", FileAttributes.ARCHIVE)
                parent.children[_key(parts[-1])] = node
            elif mode == FileMode.CREATE_NEW:
                raise_for_code(path, ERROR_FILE_EXISTS)
            assert isinstance(node, _FileNode)
            if any(_conflicts(other, access, share) for other in node.streams):
                raise_for_code(path, ERROR_SHARING_VIOLATION)
            truncate = mode in (FileMode.CREATE, FileMode.TRUNCATE)
            stream = _MemoryStream(
                self, node, stream_mode(access, mode), access, share,
                b"" if truncate else node.data,
            )
            node.streams.append(stream)
            return stream  # type: ignore[return-value]

    # -- helpers --

    def _detach_stream(self, node: _FileNode, stream: _MemoryStream, data: bytes | None) -> None:
        with self._global_lock:
            if stream in node.streams:
                node.streams.remove(stream)
            if data is not None:
                node.data = data
                node.modified_at = time.time()

    def _check_access(self, regular: str) -> int:
        key = _key(regular.rstrip(SEPARATOR))
        if key in self._denied:
            return ERROR_ACCESS_DENIED
        return self._injected.get(key, 0)

    def _resolve(self, root: str, parts: list[str]) -> _Node | None:
        current: _Node | None = self._roots.get(_key(root))
        for part in parts:
            if not isinstance(current, _DirNode):
                return None
            current = current.children.get(_key(part))
        return current

    def _lookup(self, path: str) -> _Node | None:
        root, parts = _split_root(path)
        return self._resolve(root, parts)

    def _makedirs(self, path: str) -> _DirNode:
        root, parts = _split_root(path)
        current = self._roots.setdefault(_key(root), _DirNode(root))
        for part in parts:
            child = current.children.get(_key(part))
            if child is None:
                child = _DirNode(part)
                current.children[_key(part)] = child
            elif not isinstance(child, _DirNode):
                raise FileExistsError(f"A file exists at path component: '{part}'")
            current = child
        return current

    def _parent_for_create(self, path: str) -> tuple[_DirNode, str]:
        root, parts = _split_root(path)
        if not parts:
            raise ValueError(f"Cannot create an entry at a root: '{path}'")
        parent_path = root + SEPARATOR + SEPARATOR.join(parts[:-1]) if parts[:-1] else root
        return self._makedirs(parent_path), parts[-1]

    @staticmethod
    def _dot_entry(name: str) -> RawScanEntry:
        return RawScanEntry(int(FileAttributes.DIRECTORY), name, 0, 0, 0, 0)

    @staticmethod
    def _to_entry(node: _Node) -> RawScanEntry:
        size = len(node.data) if isinstance(node, _FileNode) else 0
        high, low = datetime_to_filetime(datetime.fromtimestamp(node.modified_at, tz=timezone.utc))
        return RawScanEntry(
            attributes=int(node.attributes),
            name=node.name,
            size_high=size >> 32,
            size_low=size & 0xFFFFFFFF,
            write_time_high=high,
            write_time_low=low,
        )


def _share_needed(access: FileAccess) -> FileShare:
    needed = FileShare.NONE
    if access & FileAccess.READ:
        needed |= FileShare.READ
    if access & FileAccess.WRITE:
        needed |= FileShare.WRITE
    return needed


def _conflicts(other: _MemoryStream, access: FileAccess, share: FileShare) -> bool:
    """True if an open *other* stream forbids this open, or this open forbids it."""
    wanted = _share_needed(access)
    held = _share_needed(other.access)
    return (other.share & wanted) != wanted or (share & held) != held
