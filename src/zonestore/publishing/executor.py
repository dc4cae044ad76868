"""Bounded worker pool for resource transfers.

Runs one transfer function over a batch of items while:
- Respecting max_workers via semaphore (one transport session per worker)
- Returning results in submission order
- Tracking statistics for logging

Exceptions raised by the transfer function are not captured here. Expected
per-resource failures are turned into outcomes by the caller before they
reach the pool; anything else propagates out of execute().
"""

from __future__ import annotations

import time
from collections.abc import Callable, Sequence
from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from threading import Lock, Semaphore
from typing import Any, Generic, TypeVar, cast

T = TypeVar("T")
R = TypeVar("R")


class TransferExecutor(Generic[T, R]):
    """Executor for parallel transfers with strict result ordering.

    Usage:
        executor = TransferExecutor(max_workers=4)
        outcomes = executor.execute(objects, transfer_one)

        # Results are in submission order
        assert len(outcomes) == len(objects)
    """

    def __init__(self, max_workers: int = 4) -> None:
        """Initialize executor.

        Args:
            max_workers: Maximum transfers in flight
        """
        if max_workers < 1:
            raise ValueError(f"max_workers must be at least 1, got {max_workers}")
        self._max_workers = max_workers
        self._stats_lock = Lock()
        self._completed = 0
        self._peak_in_flight = 0
        self._in_flight = 0
        self._busy_seconds = 0.0

    @property
    def max_workers(self) -> int:
        """Maximum concurrent transfers."""
        return self._max_workers

    def get_stats(self) -> dict[str, Any]:
        """Executor statistics since construction."""
        with self._stats_lock:
            return {
                "max_workers": self._max_workers,
                "completed": self._completed,
                "peak_in_flight": self._peak_in_flight,
                "busy_seconds": round(self._busy_seconds, 3),
            }

    def execute(self, items: Sequence[T], fn: Callable[[T], R]) -> list[R]:
        """Apply fn to every item, at most max_workers at a time.

        Blocks until every item is done.

        Args:
            items: Work items
            fn: Transfer function applied to each item

        Returns:
            Results in the same order as items
        """
        if not items:
            return []

        results: list[R | None] = [None] * len(items)
        workers = min(self._max_workers, len(items))
        semaphore = Semaphore(workers)

        with ThreadPoolExecutor(
            max_workers=workers, thread_name_prefix="zonestore-transfer"
        ) as pool:
            futures: dict[Future[R], int] = {}
            try:
                for index, item in enumerate(items):
                    # Blocks while max_workers transfers are in flight
                    semaphore.acquire()
                    try:
                        future = pool.submit(self._execute_single, fn, item, semaphore)
                    except BaseException:
                        semaphore.release()
                        raise
                    futures[future] = index

                for future in as_completed(futures):
                    results[futures[future]] = future.result()
            except BaseException:
                pool.shutdown(wait=True, cancel_futures=True)
                raise

        return cast(list[R], results)

    def _execute_single(
        self, fn: Callable[[T], R], item: T, semaphore: Semaphore
    ) -> R:
        with self._stats_lock:
            self._in_flight += 1
            self._peak_in_flight = max(self._peak_in_flight, self._in_flight)
        start = time.perf_counter()
        try:
            return fn(item)
        finally:
            elapsed = time.perf_counter() - start
            with self._stats_lock:
                self._in_flight -= 1
                self._completed += 1
                self._busy_seconds += elapsed
            # Always release semaphore
            semaphore.release()
