from __future__ import annotations

import logging
import queue
from collections.abc import Iterator
from typing import BinaryIO

from ._exceptions import FIOInvalidArgumentError
from ._native import NativeScanAPI, default_api
from ._path import is_blank, to_long_safe_path
from ._pool import DEFAULT_WORKERS, WorkerPool
from ._records import DirectoryAddress, FileRecord
from ._typing import (
    DirectoryCallback,
    Entry,
    FileAccess,
    FileCallback,
    FileMode,
    FileShare,
)
from ._walk import walk_fanout, walk_sequential

logger = logging.getLogger(__name__)

STRATEGIES = ("sequential", "fanout", "pool")


def _as_address(directory: DirectoryAddress | str) -> DirectoryAddress:
    if isinstance(directory, DirectoryAddress):
        address = directory
    else:
        if is_blank(directory):
            raise FIOInvalidArgumentError("directory")
        address = DirectoryAddress(directory)
    if not address.is_populated or is_blank(address.path):
        raise FIOInvalidArgumentError("directory")
    return address


class FastFileSystem:
    """Enumerate files and directories through the native scan API.

    ``strategy`` picks the default traversal for every call:

    * ``"sequential"``: one thread, depth-first, lazy;
    * ``"fanout"``: one thread per directory, unbounded, unordered;
    * ``"pool"``: ``workers`` threads draining a shared queue, lazy.

    Each call may override ``strategy`` (and ``workers`` for the pool).
    """

    def __init__(
        self,
        api: NativeScanAPI | None = None,
        strategy: str = "sequential",
        workers: int = DEFAULT_WORKERS,
        channel_capacity: int = 0,
    ) -> None:
        self._check_strategy(strategy)
        if workers < 1:
            raise ValueError(f"Invalid workers value: {workers}. Expected >= 1.")
        if channel_capacity < 0:
            raise ValueError(
                f"Invalid channel_capacity value: {channel_capacity}. Expected >= 0."
            )
        self._api: NativeScanAPI = api if api is not None else default_api()
        self._strategy: str = strategy
        self._workers: int = workers
        self._channel_capacity: int = channel_capacity

    @property
    def api(self) -> NativeScanAPI:
        return self._api

    @property
    def strategy(self) -> str:
        return self._strategy

    @property
    def workers(self) -> int:
        return self._workers

    @staticmethod
    def _check_strategy(strategy: str) -> None:
        if strategy not in STRATEGIES:
            raise ValueError(
                f"Invalid strategy value: {strategy!r}. "
                "Expected 'sequential', 'fanout', or 'pool'."
            )

    # -- traversal --

    def _walk(
        self,
        root: DirectoryAddress,
        recursive: bool,
        strategy: str | None,
        workers: int | None,
    ) -> Iterator[Entry]:
        strategy = strategy or self._strategy
        self._check_strategy(strategy)
        logger.debug("walking %s (strategy=%s, recursive=%s)", root, strategy, recursive)
        if strategy == "sequential":
            return walk_sequential(self._api, root, recursive)
        if strategy == "fanout":
            sink: queue.SimpleQueue[Entry] = queue.SimpleQueue()
            walk_fanout(self._api, root, recursive, sink.put)
            return _drain(sink)
        pool = WorkerPool(
            self._api,
            root,
            recursive=recursive,
            workers=workers if workers is not None else self._workers,
            capacity=self._channel_capacity,
        )
        return iter(pool)

    def enumerate_files(
        self,
        directory: DirectoryAddress | str,
        recursive: bool = False,
        strategy: str | None = None,
        workers: int | None = None,
        on_directory: DirectoryCallback | None = None,
    ) -> Iterator[FileRecord]:
        """Yield every file under *directory*.

        *on_directory* is called once per real directory discovered, on the
        consuming thread, before the files that follow it in the stream.
        With ``strategy="fanout"`` the whole tree is scanned before this
        returns and the order is arbitrary.
        """
        entries = self._walk(_as_address(directory), recursive, strategy, workers)
        return _route_files(entries, on_directory)

    def enumerate_directories(
        self,
        directory: DirectoryAddress | str,
        recursive: bool = False,
        strategy: str | None = None,
        workers: int | None = None,
    ) -> Iterator[DirectoryAddress]:
        """Yield every real directory under *directory* (reparse points excluded)."""
        entries = self._walk(_as_address(directory), recursive, strategy, workers)
        return (e for e in entries if isinstance(e, DirectoryAddress))

    def scan(
        self,
        directory: DirectoryAddress | str,
        on_file: FileCallback,
        recursive: bool = False,
        on_directory: DirectoryCallback | None = None,
        strategy: str = "fanout",
    ) -> None:
        """Callback form of :meth:`enumerate_files`.

        With the default ``"fanout"`` strategy the callbacks run on the
        walker threads and may be called concurrently.
        """
        root = _as_address(directory)
        self._check_strategy(strategy)
        if strategy != "fanout":
            for record in self.enumerate_files(
                root, recursive, strategy=strategy, on_directory=on_directory
            ):
                on_file(record)
            return

        def on_entry(entry: Entry) -> None:
            if isinstance(entry, FileRecord):
                on_file(entry)
            elif on_directory is not None:
                on_directory(entry)

        walk_fanout(self._api, root, recursive, on_entry)

    # -- content I/O --

    def open(
        self,
        target: FileRecord | str,
        access: FileAccess = FileAccess.READ,
        mode: FileMode = FileMode.OPEN,
        share: FileShare = FileShare.READ,
        buffering: int = 0,
    ) -> BinaryIO:
        """Open a file for content I/O. The caller must close the stream.

        ``buffering`` > 0 sets the buffer size; 0 keeps the default.
        Failures raise the mapped error at once and are never retried.
        """
        if isinstance(target, FileRecord):
            path = target.long_path
        else:
            if is_blank(target):
                raise FIOInvalidArgumentError("path")
            path = to_long_safe_path(target)
        return self._api.open_file(
            path, access, share, mode, buffering if buffering > 0 else -1
        )


def _drain(sink: queue.SimpleQueue[Entry]) -> Iterator[Entry]:
    while not sink.empty():
        yield sink.get_nowait()


def _route_files(
    entries: Iterator[Entry], on_directory: DirectoryCallback | None
) -> Iterator[FileRecord]:
    for entry in entries:
        if isinstance(entry, FileRecord):
            yield entry
        elif on_directory is not None:
            on_directory(entry)
