from __future__ import annotations

import threading
from queue import Empty, Full, Queue
from typing import Generic, Optional, TypeVar

T = TypeVar("T")

_POLL_SECONDS = 0.05


class BoundedQueue(Generic[T]):
    """Fixed-capacity hand-off between pipeline stages.

    ``put`` blocks while the queue is full and gives up once ``cancel`` is set.
    ``get`` blocks while the queue is empty and open; it returns ``None`` once
    the queue is closed and drained, or as soon as ``cancel`` is set.
    Items must not be ``None``.
    """

    def __init__(self, maxsize: int, cancel: threading.Event) -> None:
        self._queue: Queue[T] = Queue(maxsize=max(maxsize, 1))
        self._cancel = cancel
        self._closed = threading.Event()

    @property
    def maxsize(self) -> int:
        return self._queue.maxsize

    def put(self, item: T) -> bool:
        while not self._cancel.is_set():
            try:
                self._queue.put(item, timeout=_POLL_SECONDS)
                return True
            except Full:
                continue
        return False

    def get(self) -> Optional[T]:
        while not self._cancel.is_set():
            try:
                return self._queue.get(timeout=_POLL_SECONDS)
            except Empty:
                if self._closed.is_set():
                    try:
                        return self._queue.get_nowait()
                    except Empty:
                        return None
        return None

    def close(self) -> None:
        self._closed.set()

    @property
    def closed(self) -> bool:
        return self._closed.is_set()
