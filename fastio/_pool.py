"""Bounded worker-pool traversal.

A fixed number of daemon threads drain a shared FIFO of directories.  The
admission :class:`~fastio._lock.Gate` starts with one unit, so only one
worker opens the root; every directory discovered afterwards is enqueued
and mints one unit, which lets the achievable parallelism follow the tree's
actual branching.

The pool is finished at quiescence: no worker is mid-scan and nothing is
queued.  Both are checked together under ``_lock``; the worker that observes
it sets ``_is_done``, releases one unit per worker so every blocked worker
wakes up and exits, and closes the output channel.  ``_is_done`` is the only
exit condition; a worker re-checks it after every pass through the gate.

Each listing is read to the end and closed before its entries are sent.
Entries read before a listing fails are still sent.

There is no cancellation.  A consumer that stops iterating early leaves the
workers running until the tree is exhausted; with a bounded channel they
stay blocked on the full channel instead, holding no listing handle.
"""

from __future__ import annotations

import logging
import threading
from collections import deque
from collections.abc import Iterator

from ._exceptions import FIOTraversalError
from ._lock import Channel, Gate
from ._native import NativeScanAPI
from ._records import DirectoryAddress
from ._session import ScanSession
from ._typing import Entry

logger = logging.getLogger(__name__)

DEFAULT_WORKERS = 10


class WorkerPool:
    def __init__(
        self,
        api: NativeScanAPI,
        root: DirectoryAddress,
        recursive: bool = True,
        workers: int = DEFAULT_WORKERS,
        capacity: int = 0,
    ) -> None:
        if workers < 1:
            raise ValueError(f"workers must be >= 1, got {workers}")
        self._api = api
        self._root = root
        self._recursive = recursive
        self._workers = workers
        self._lock = threading.Lock()
        self._queue: deque[DirectoryAddress] = deque([root])
        self._active: int = 0
        self._is_done: bool = False
        self._gate = Gate(1)
        self._channel: Channel[Entry] = Channel(capacity)
        self._errors: list[tuple[DirectoryAddress, Exception]] = []
        self._threads: list[threading.Thread] = []

    @property
    def workers(self) -> int:
        return self._workers

    @property
    def is_done(self) -> bool:
        with self._lock:
            return self._is_done

    def start(self) -> None:
        if self._threads:
            raise RuntimeError("WorkerPool can only be started once.")
        logger.debug("starting %d workers at %s", self._workers, self._root)
        for i in range(self._workers):
            t = threading.Thread(target=self._run, name=f"fastio-pool-{i}", daemon=True)
            self._threads.append(t)
            t.start()

    def join(self, timeout: float | None = None) -> bool:
        """Wait for all workers to exit. Returns False if any is still alive."""
        for t in self._threads:
            t.join(timeout)
        return not any(t.is_alive() for t in self._threads)

    def __iter__(self) -> Iterator[Entry]:
        """Drain the output channel; raise collected failures at the end."""
        if not self._threads:
            self.start()
        yield from self._channel
        self._raise_errors()

    def _raise_errors(self) -> None:
        with self._lock:
            errors = list(self._errors)
        if not errors:
            return
        if len(errors) == 1 and errors[0][0] == self._root:
            raise errors[0][1]
        raise FIOTraversalError([exc for _, exc in errors])

    def _run(self) -> None:
        while True:
            self._gate.acquire()
            with self._lock:
                if self._is_done:
                    return
                if not self._queue:
                    continue
                directory = self._queue.popleft()
                self._active += 1
            try:
                self._scan(directory)
            except Exception as exc:
                logger.warning("pool scan of %s failed: %s", directory, exc)
                with self._lock:
                    self._errors.append((directory, exc))
            finally:
                self._finish_one()

    def _scan(self, directory: DirectoryAddress) -> None:
        entries: list[Entry] = []
        try:
            with ScanSession(self._api, directory) as session:
                for entry in session:
                    entries.append(entry)
        finally:
            for entry in entries:
                if self._recursive and isinstance(entry, DirectoryAddress):
                    with self._lock:
                        self._queue.append(entry)
                    self._gate.release()
                self._channel.put(entry)

    def _finish_one(self) -> None:
        with self._lock:
            self._active -= 1
            if self._active or self._queue:
                return
            self._is_done = True
        logger.debug("pool at %s quiescent", self._root)
        self._gate.release(self._workers)
        self._channel.close()
