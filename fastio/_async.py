"""Async facade over FastFileSystem.

Native calls run through :func:`asyncio.to_thread`, so a listing handle is
never held on the event-loop thread: each directory is read and its handle
released in a worker thread, then the caller's coroutine callbacks are
awaited in native order on the loop.
"""

from __future__ import annotations

import asyncio
import logging
from typing import BinaryIO

from ._exceptions import FIOTraversalError
from ._fs import FastFileSystem, _as_address
from ._native import NativeScanAPI
from ._pool import DEFAULT_WORKERS
from ._records import DirectoryAddress, FileRecord
from ._session import list_directory
from ._typing import (
    AsyncDirectoryCallback,
    AsyncFileCallback,
    FileAccess,
    FileMode,
    FileShare,
)

logger = logging.getLogger(__name__)


class AsyncFileStream:
    """Async wrapper for a stream returned by :meth:`FastFileSystem.open`."""

    def __init__(self, _sync_stream: BinaryIO) -> None:
        self._s = _sync_stream

    async def read(self, size: int = -1) -> bytes:
        return await asyncio.to_thread(self._s.read, size)

    async def write(self, data: bytes) -> int:
        return await asyncio.to_thread(self._s.write, data)

    async def seek(self, offset: int, whence: int = 0) -> int:
        return await asyncio.to_thread(self._s.seek, offset, whence)

    async def tell(self) -> int:
        return await asyncio.to_thread(self._s.tell)

    async def flush(self) -> None:
        await asyncio.to_thread(self._s.flush)

    async def close(self) -> None:
        await asyncio.to_thread(self._s.close)

    async def __aenter__(self) -> AsyncFileStream:
        return self

    async def __aexit__(self, *args) -> None:  # type: ignore[no-untyped-def]
        await self.close()


class _AsyncScan:
    def __init__(
        self,
        api: NativeScanAPI,
        on_file: AsyncFileCallback,
        on_directory: AsyncDirectoryCallback | None,
        recursive: bool,
        parallel: bool,
    ) -> None:
        self._api = api
        self._on_file = on_file
        self._on_directory = on_directory
        self._recursive = recursive
        self._parallel = parallel
        self.errors: list[Exception] = []

    async def scan(self, directory: DirectoryAddress) -> list[DirectoryAddress]:
        entries = await asyncio.to_thread(list_directory, self._api, directory)
        subdirectories: list[DirectoryAddress] = []
        for entry in entries:
            if isinstance(entry, FileRecord):
                await self._on_file(entry)
                continue
            if self._recursive:
                subdirectories.append(entry)
            if self._on_directory is not None:
                await self._on_directory(entry)
        return subdirectories

    async def spawn(self, subdirectories: list[DirectoryAddress]) -> None:
        if self._parallel:
            await asyncio.gather(*(self._subtree(d) for d in subdirectories))
        else:
            for d in subdirectories:
                await self._subtree(d)

    async def _subtree(self, directory: DirectoryAddress) -> None:
        try:
            subdirectories = await self.scan(directory)
        except Exception as exc:
            logger.warning("async scan of %s failed: %s", directory, exc)
            self.errors.append(exc)
            return
        await self.spawn(subdirectories)


class AsyncFastFileSystem:
    """Thin async facade over :class:`FastFileSystem`."""

    def __init__(
        self,
        api: NativeScanAPI | None = None,
        strategy: str = "sequential",
        workers: int = DEFAULT_WORKERS,
        channel_capacity: int = 0,
    ) -> None:
        self._sync = FastFileSystem(
            api=api,
            strategy=strategy,
            workers=workers,
            channel_capacity=channel_capacity,
        )

    @property
    def sync(self) -> FastFileSystem:
        return self._sync

    async def enumerate_files(
        self,
        directory: DirectoryAddress | str,
        recursive: bool = False,
        strategy: str | None = None,
        workers: int | None = None,
    ) -> list[FileRecord]:
        return await asyncio.to_thread(
            lambda: list(self._sync.enumerate_files(directory, recursive, strategy, workers))
        )

    async def enumerate_directories(
        self,
        directory: DirectoryAddress | str,
        recursive: bool = False,
        strategy: str | None = None,
        workers: int | None = None,
    ) -> list[DirectoryAddress]:
        return await asyncio.to_thread(
            lambda: list(self._sync.enumerate_directories(directory, recursive, strategy, workers))
        )

    async def scan(
        self,
        directory: DirectoryAddress | str,
        on_file: AsyncFileCallback,
        recursive: bool = False,
        on_directory: AsyncDirectoryCallback | None = None,
        parallel: bool = True,
    ) -> None:
        """Await *on_file* / *on_directory* for every entry under *directory*.

        With ``parallel`` the subdirectories of a directory are scanned as
        concurrent tasks; otherwise one after the other, depth-first.  A
        failure opening *directory* propagates as-is; subtree failures are
        raised together as :class:`FIOTraversalError` at the end.
        """
        root = _as_address(directory)
        walker = _AsyncScan(self._sync.api, on_file, on_directory, recursive, parallel)
        await walker.spawn(await walker.scan(root))
        if walker.errors:
            raise FIOTraversalError(walker.errors)

    async def open(
        self,
        target: FileRecord | str,
        access: FileAccess = FileAccess.READ,
        mode: FileMode = FileMode.OPEN,
        share: FileShare = FileShare.READ,
        buffering: int = 0,
    ) -> AsyncFileStream:
        s = await asyncio.to_thread(self._sync.open, target, access, mode, share, buffering)
        return AsyncFileStream(s)
