from __future__ import annotations

import logging
import threading
from collections.abc import Iterator

from ._exceptions import FIOTraversalError
from ._native import NativeScanAPI
from ._records import DirectoryAddress
from ._session import ScanSession
from ._typing import Entry, EntryCallback

logger = logging.getLogger(__name__)


def walk_sequential(
    api: NativeScanAPI, root: DirectoryAddress, recursive: bool = False
) -> Iterator[Entry]:
    """Depth-first walk yielding files and directories as they are listed.

    Subdirectories are walked after their parent's listing is closed, in
    discovery order.  A directory that cannot be opened raises at the point
    it is reached and ends the sequence.
    """
    subdirectories: list[DirectoryAddress] = []
    with ScanSession(api, root) as session:
        for entry in session:
            if recursive and isinstance(entry, DirectoryAddress):
                subdirectories.append(entry)
            yield entry
    for directory in subdirectories:
        yield from walk_sequential(api, directory, recursive)


class _FanOut:
    def __init__(self, api: NativeScanAPI, recursive: bool, on_entry: EntryCallback) -> None:
        self._api = api
        self._recursive = recursive
        self._on_entry = on_entry
        self._errors_lock = threading.Lock()
        self.errors: list[Exception] = []

    def scan(self, directory: DirectoryAddress) -> list[DirectoryAddress]:
        subdirectories: list[DirectoryAddress] = []
        with ScanSession(self._api, directory) as session:
            for entry in session:
                self._on_entry(entry)
                if self._recursive and isinstance(entry, DirectoryAddress):
                    subdirectories.append(entry)
        return subdirectories

    def spawn(self, subdirectories: list[DirectoryAddress]) -> None:
        """Scan each subtree on its own thread and wait for all of them.

        A thread that cannot be started counts as a failure of its subtree;
        the siblings are still started, and every started thread is joined.
        """
        threads: list[threading.Thread] = []
        try:
            for d in subdirectories:
                t = threading.Thread(target=self._task, args=(d,), name=f"fastio-fanout:{d.name}")
                try:
                    t.start()
                except Exception as exc:
                    self._record(d, exc)
                    continue
                threads.append(t)
        finally:
            for t in threads:
                t.join()

    def _task(self, directory: DirectoryAddress) -> None:
        try:
            subdirectories = self.scan(directory)
        except Exception as exc:
            self._record(directory, exc)
            return
        self.spawn(subdirectories)

    def _record(self, directory: DirectoryAddress, exc: Exception) -> None:
        logger.warning("fan-out scan of %s failed: %s", directory, exc)
        with self._errors_lock:
            self.errors.append(exc)


def walk_fanout(
    api: NativeScanAPI,
    root: DirectoryAddress,
    recursive: bool,
    on_entry: EntryCallback,
) -> None:
    """Scan *root*, then every subdirectory on its own thread, recursively.

    *on_entry* receives every file and directory and is called concurrently
    from many threads.  A failure opening *root* propagates as-is; failures
    in subtrees do not stop their siblings and are raised together as
    :class:`FIOTraversalError` once every thread has finished.
    """
    fan_out = _FanOut(api, recursive, on_entry)
    fan_out.spawn(fan_out.scan(root))
    if fan_out.errors:
        raise FIOTraversalError(fan_out.errors)
