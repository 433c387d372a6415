"""Worker pools backed by multiprocessing (processes) or its ThreadPool."""
from __future__ import annotations

import multiprocessing as mp
import os
from multiprocessing.pool import ThreadPool
from typing import Any, Callable, Iterable, Iterator

__all__ = ["BACKENDS", "WorkerPool"]

BACKENDS = ("process", "thread")


class WorkerPool:
    """Fixed-size pool of workers that trials are distributed over.

    The process backend requires picklable trials and a picklable, top-level
    worker function. The thread backend has no such restriction but shares the
    interpreter between workers. `start_method` picks the multiprocessing
    context (`fork`, `spawn`, `forkserver`); ``None`` uses the platform default.
    """

    def __init__(
        self,
        processes: int | None = None,
        backend: str = "process",
        chunksize: int = 1,
        start_method: str | None = None,
    ):
        if backend not in BACKENDS:
            raise ValueError(f"Unknown backend '{backend}'. Must be one of {BACKENDS}")
        if processes is not None and processes < 1:
            raise ValueError(f"processes must be >= 1, got {processes}")
        if chunksize < 1:
            raise ValueError(f"chunksize must be >= 1, got {chunksize}")
        self.backend = backend
        self.chunksize = chunksize
        self._size = processes or os.cpu_count() or 1
        if backend == "process":
            self._pool = mp.get_context(start_method).Pool(processes=self._size)
        else:
            self._pool = ThreadPool(processes=self._size)

    @property
    def size(self) -> int:
        return self._size

    def imap_unordered(self, func: Callable[[Any], Any], iterable: Iterable[Any]) -> Iterator[Any]:
        """Apply `func` to every item, yielding results as workers finish them."""
        return self._pool.imap_unordered(func, iterable, chunksize=self.chunksize)

    def close(self) -> None:
        self._pool.close()
        self._pool.join()

    def terminate(self) -> None:
        self._pool.terminate()
        self._pool.join()

    def __enter__(self) -> "WorkerPool":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc_type is None:
            self.close()
        else:
            self.terminate()

    def __repr__(self) -> str:
        return f"WorkerPool(size={self._size}, backend={self.backend})"
