"""Bounded-parallelism task runner."""

import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Callable, Generic, List, Optional, Sequence, TypeVar

T = TypeVar("T")
R = TypeVar("R")

ProgressCallback = Callable[[int, int], None]


class ProgressCounter:
    """Thread-safe completed/total counter that can be polled at any time."""

    def __init__(self, total: int = 0):
        self._lock = threading.Lock()
        self._completed = 0
        self.total = total

    @property
    def completed(self) -> int:
        with self._lock:
            return self._completed

    def increment(self) -> int:
        with self._lock:
            self._completed += 1
            return self._completed


class BoundedScheduler(Generic[T, R]):
    """
    Runs fn over items with at most `limit` calls in flight.

    Every item is run to completion; a failing item never cancels its
    siblings. Results come back in input order.

    Args:
        limit: Maximum simultaneous executions (>= 1)
        thread_name_prefix: Prefix for worker thread names
    """

    def __init__(self, limit: int, thread_name_prefix: str = "apiparity-"):
        if limit < 1:
            raise ValueError("limit must be >= 1")
        self.limit = limit
        self.thread_name_prefix = thread_name_prefix
        self.progress = ProgressCounter()

    def run(
        self,
        items: Sequence[T],
        fn: Callable[[T], R],
        on_progress: Optional[ProgressCallback] = None,
        on_error: Optional[Callable[[T, Exception], R]] = None,
    ) -> List[R]:
        """
        Args:
            items: Work items, all submitted up front
            fn: Callable run once per item
            on_progress: Optional callback(completed, total) after each item
            on_error: Turns an exception from fn into a result. Without it
                the first exception is re-raised once every item has finished.
        """
        self.progress = ProgressCounter(total=len(items))
        results: List[Optional[R]] = [None] * len(items)
        first_error: Optional[Exception] = None

        if not items:
            return []

        with ThreadPoolExecutor(
            max_workers=min(self.limit, len(items)),
            thread_name_prefix=self.thread_name_prefix,
        ) as executor:
            futures = {executor.submit(fn, item): idx for idx, item in enumerate(items)}
            for future in as_completed(futures):
                idx = futures[future]
                try:
                    results[idx] = future.result()
                except Exception as e:
                    if on_error is None:
                        first_error = first_error or e
                    else:
                        results[idx] = on_error(items[idx], e)

                completed = self.progress.increment()
                if on_progress:
                    on_progress(completed, len(items))

        if first_error is not None:
            raise first_error
        return results


def run_bounded(
    items: Sequence[T],
    fn: Callable[[T], R],
    limit: int,
    on_progress: Optional[ProgressCallback] = None,
    on_error: Optional[Callable[[T, Exception], R]] = None,
) -> List[R]:
    """Shortcut for BoundedScheduler(limit).run(...)."""
    return BoundedScheduler(limit).run(items, fn, on_progress=on_progress, on_error=on_error)
