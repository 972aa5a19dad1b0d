"""Bounded worker pool shared by scheduled jobs."""

import threading
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from typing import Any, Callable, Optional

import structlog

from ..config.defaults import WorkerPoolParams

logger = structlog.get_logger(__name__)


class WorkerPool(Executor):
    """
    Thread pool whose backlog is capped at ``queue_capacity``.

    At most ``max_workers + queue_capacity`` units are queued or running at
    once. ``submit`` blocks the caller until a slot frees up, so overload
    slows the scheduler down instead of dropping work.
    """

    def __init__(self, max_workers: int = 10, queue_capacity: int = 25,
                 thread_name_prefix: str = "market-data-"):
        if max_workers < 1:
            raise ValueError(f"max_workers must be >= 1, got {max_workers}")
        if queue_capacity < 0:
            raise ValueError(f"queue_capacity must be >= 0, got {queue_capacity}")

        self.max_workers = max_workers
        self.queue_capacity = queue_capacity
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix=thread_name_prefix
        )
        self._slots = threading.BoundedSemaphore(max_workers + queue_capacity)
        self._pending = 0
        self._lock = threading.Lock()

    @classmethod
    def from_params(cls, params: WorkerPoolParams) -> "WorkerPool":
        return cls(
            max_workers=params.max_workers,
            queue_capacity=params.queue_capacity,
            thread_name_prefix=params.thread_name_prefix,
        )

    def submit(self, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> Future:
        """Schedule ``fn``; blocks while the pool is saturated."""
        if not self._slots.acquire(blocking=False):
            logger.debug("Worker pool saturated, waiting for a slot",
                         max_workers=self.max_workers,
                         queue_capacity=self.queue_capacity)
            self._slots.acquire()

        try:
            future = self._executor.submit(fn, *args, **kwargs)
        except Exception:
            self._slots.release()
            raise

        with self._lock:
            self._pending += 1
        future.add_done_callback(self._release)
        return future

    def _release(self, _future: Future) -> None:
        with self._lock:
            self._pending -= 1
        self._slots.release()

    @property
    def pending(self) -> int:
        """Units queued or running."""
        with self._lock:
            return self._pending

    def shutdown(self, wait: bool = True, cancel_futures: bool = False) -> None:
        self._executor.shutdown(wait=wait, cancel_futures=cancel_futures)

    def __enter__(self) -> "WorkerPool":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.shutdown(wait=True)
