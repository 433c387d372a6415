"""Bounded result channel between the producer and the collector."""
from __future__ import annotations

import logging
import queue
import threading
from typing import Generic, Iterator, Optional, TypeVar, Union

__all__ = ["DONE", "ChannelClosedError", "ResultChannel"]

R = TypeVar("R")

logger = logging.getLogger(__name__)


class _Done:
    """Terminal marker: no more results will follow."""

    _instance: Optional["_Done"] = None

    def __new__(cls) -> "_Done":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "DONE"

    def __reduce__(self):
        return (_Done, ())


DONE = _Done()


class ChannelClosedError(RuntimeError):
    """Raised when pushing to (or closing) a channel that was already closed."""


class ResultChannel(Generic[R]):
    """Thread-safe FIFO carrying results of type `R` followed by one `DONE`.

    The queue holds `capacity` results plus the sentinel, so `close()` never
    blocks once every result has been delivered. Any number of threads may
    `put`; exactly one consumer should `take` or iterate. Results that are not
    instances of `resulttype` are still delivered; the first one is logged.
    """

    def __init__(self, capacity: int, resulttype: Optional[type] = None):
        if capacity < 0:
            raise ValueError(f"capacity must be >= 0, got {capacity}")
        self.capacity = capacity
        self.resulttype = resulttype
        self._queue: "queue.Queue[Union[R, _Done]]" = queue.Queue(maxsize=capacity + 1)
        self._lock = threading.Lock()
        self._closed = False
        self._mismatch_logged = False

    @property
    def closed(self) -> bool:
        return self._closed

    def put(self, result: R) -> None:
        """Push one result, blocking while the channel is full."""
        if self._closed:
            raise ChannelClosedError("put() on a closed result channel")
        if self.resulttype is not None and not self._mismatch_logged and not isinstance(result, self.resulttype):
            self._mismatch_logged = True
            logger.warning(
                "Result %r is a %s, not the declared %s",
                result,
                type(result).__name__,
                self.resulttype.__name__,
            )
        self._queue.put(result)

    def close(self) -> None:
        """Push the sentinel. Allowed exactly once."""
        with self._lock:
            if self._closed:
                raise ChannelClosedError("result channel already closed")
            self._closed = True
        self._queue.put(DONE)

    def take(self) -> Union[R, _Done]:
        """Block until the next item is available and remove it."""
        return self._queue.get()

    def __iter__(self) -> Iterator[R]:
        while True:
            item = self.take()
            if item is DONE:
                return
            yield item
