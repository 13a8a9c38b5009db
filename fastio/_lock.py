import threading
import time
from collections import deque
from typing import Generic, TypeVar

T = TypeVar("T")


def _calc_deadline(timeout: float | None) -> float | None:
    if timeout is None:
        return None
    if timeout == 0.0:
        return 0.0
    return time.monotonic() + timeout


def _remaining(deadline: float | None) -> float | None:
    if deadline is None:
        return None
    r = deadline - time.monotonic()
    return max(0.0, r)


class Gate:
    """A counting semaphore used for admission control.

    Every unit lets one waiter proceed.  :meth:`release` may mint several
    units at once, which is how a finishing scheduler wakes all of its
    blocked workers in one call.
    """

    def __init__(self, value: int = 1) -> None:
        if value < 0:
            raise ValueError("Gate value must be >= 0")
        self._condition = threading.Condition(threading.Lock())
        self._value: int = value

    def acquire(self, timeout: float | None = None) -> None:
        deadline = _calc_deadline(timeout)
        with self._condition:
            while self._value == 0:
                remaining = _remaining(deadline)
                if remaining == 0.0:
                    raise BlockingIOError("Could not pass the gate within timeout.")
                if not self._condition.wait(timeout=remaining):
                    raise BlockingIOError("Could not pass the gate within timeout.")
            self._value -= 1

    def release(self, n: int = 1) -> None:
        if n < 1:
            raise ValueError("release count must be >= 1")
        with self._condition:
            self._value += n
            self._condition.notify(n)

    @property
    def value(self) -> int:
        with self._condition:
            return self._value


class ChannelClosed(Exception):
    """Raised by :meth:`Channel.get` once the channel is closed and drained."""


class Channel(Generic[T]):
    """A blocking multi-producer queue that is closed exactly once.

    ``capacity`` bounds the number of buffered items (0 means unbounded);
    producers block while the buffer is full.  After :meth:`close`, ``put``
    raises and ``get`` drains what is left before raising
    :class:`ChannelClosed`.
    """

    def __init__(self, capacity: int = 0) -> None:
        if capacity < 0:
            raise ValueError("Channel capacity must be >= 0")
        self._condition = threading.Condition(threading.Lock())
        self._items: deque[T] = deque()
        self._capacity: int = capacity
        self._is_closed: bool = False

    def put(self, item: T, timeout: float | None = None) -> None:
        deadline = _calc_deadline(timeout)
        with self._condition:
            while self._capacity and len(self._items) >= self._capacity and not self._is_closed:
                remaining = _remaining(deadline)
                if remaining == 0.0:
                    raise BlockingIOError("Channel is full.")
                if not self._condition.wait(timeout=remaining):
                    raise BlockingIOError("Channel is full.")
            if self._is_closed:
                raise RuntimeError("put called on a closed channel")
            self._items.append(item)
            self._condition.notify_all()

    def get(self, timeout: float | None = None) -> T:
        deadline = _calc_deadline(timeout)
        with self._condition:
            while not self._items:
                if self._is_closed:
                    raise ChannelClosed()
                remaining = _remaining(deadline)
                if remaining == 0.0:
                    raise BlockingIOError("Channel is empty.")
                if not self._condition.wait(timeout=remaining):
                    raise BlockingIOError("Channel is empty.")
            item = self._items.popleft()
            self._condition.notify_all()
            return item

    def close(self) -> None:
        with self._condition:
            if self._is_closed:
                raise RuntimeError("close called on a closed channel")
            self._is_closed = True
            self._condition.notify_all()

    def __iter__(self):  # type: ignore[no-untyped-def]
        while True:
            try:
                yield self.get()
            except ChannelClosed:
                return

    @property
    def is_closed(self) -> bool:
        with self._condition:
            return self._is_closed

    def __len__(self) -> int:
        with self._condition:
            return len(self._items)
