"""
Shared worker pool for per-sample fan-out.

A single pool is created at startup and handed to the pipeline and every
analyzer. Results always come back in input order.
"""

from __future__ import annotations

import logging
import os
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Iterable, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")


def resolve_thread_count(threads: int) -> int:
    """Return ``threads``, or the CPU count when it is 0."""
    if threads < 0:
        raise ValueError(f"Thread count must be >= 0, got {threads}")
    if threads == 0:
        return os.cpu_count() or 1
    return threads


class WorkerPool:
    """
    Fixed-size thread pool with ordered, fail-fast mapping.

    Tasks are independent and share no mutable state. There is no
    cancellation: once a batch is submitted every task runs, and the first
    failure in input order is raised to the caller.
    """

    def __init__(self, threads: int = 0):
        """
        Initialize the pool.

        Args:
            threads: Number of worker threads (0 = one per CPU)
        """
        self.size = resolve_thread_count(threads)
        self._executor = ThreadPoolExecutor(
            max_workers=self.size, thread_name_prefix="allelecompat"
        )
        logger.debug("Worker pool started with %d threads", self.size)

    def __enter__(self) -> WorkerPool:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.shutdown()

    def map(self, fn: Callable[[T], R], items: Iterable[T]) -> list[R]:
        """
        Apply ``fn`` to every item in parallel.

        Args:
            fn: Function run once per item
            items: Inputs

        Returns:
            Results in the same order as ``items``

        Raises:
            Exception: The first exception raised by ``fn``, in input order
        """
        futures = [self._executor.submit(fn, item) for item in items]
        return [future.result() for future in futures]

    def shutdown(self) -> None:
        """Wait for running tasks and release the threads."""
        self._executor.shutdown(wait=True)


def ordered_map(fn: Callable[[T], R], items: Iterable[T], pool: WorkerPool | None = None) -> list[R]:
    """Map ``fn`` over ``items`` on ``pool``, or serially when no pool is given."""
    if pool is None:
        return [fn(item) for item in items]
    return pool.map(fn, items)
