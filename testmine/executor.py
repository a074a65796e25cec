"""Worker pools for fetching, processing and result emission."""

from __future__ import annotations

import os
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Callable, Optional, TypeVar

from .logging import get_logger

T = TypeVar("T")

SHARED_POOL_SIZE = 0

_shared_pool: Optional[ThreadPoolExecutor] = None
_shared_lock = threading.Lock()


def default_cpu_threads() -> int:
    """Core count minus one, leaving a core for draining results."""
    return max(1, (os.cpu_count() or 2) - 1)


def shared_pool() -> ThreadPoolExecutor:
    """Process-wide pool used by every role configured with size ``0``."""
    global _shared_pool
    with _shared_lock:
        if _shared_pool is None:
            _shared_pool = ThreadPoolExecutor(thread_name_prefix="testmine-shared")
        return _shared_pool


class TaskExecutor:
    """Owns the I/O, CPU and single-threaded sink pools.

    A pool size of ``0`` selects the shared pool instead of a dedicated one;
    the shared pool is never shut down by an executor.
    """

    def __init__(self, io_threads: int = 1, cpu_threads: Optional[int] = None) -> None:
        if cpu_threads is None:
            cpu_threads = default_cpu_threads()
        if io_threads < 0 or cpu_threads < 0:
            raise ValueError("Thread counts must be non-negative")
        self.io_threads = io_threads
        self.cpu_threads = cpu_threads
        self._io_pool = self._create_pool(io_threads, "testmine-io")
        self._cpu_pool = self._create_pool(cpu_threads, "testmine-cpu")
        self._sink_pool = ThreadPoolExecutor(max_workers=1, thread_name_prefix="testmine-sink")
        self.logger = get_logger("executor")
        self.logger.debug(
            "Started pools: io=%s cpu=%s",
            io_threads or "shared",
            cpu_threads or "shared",
        )

    @staticmethod
    def _create_pool(size: int, prefix: str) -> ThreadPoolExecutor:
        if size == SHARED_POOL_SIZE:
            return shared_pool()
        return ThreadPoolExecutor(max_workers=size, thread_name_prefix=prefix)

    def run_downloading_task(self, task: Callable[[], T]) -> "Future[T]":
        return self._io_pool.submit(task)

    def run_computation_task(self, task: Callable[[], T]) -> "Future[T]":
        return self._cpu_pool.submit(task)

    def run_result_saving_task(self, task: Callable[[], T]) -> "Future[T]":
        return self._sink_pool.submit(task)

    def shutdown(self, wait: bool = True) -> None:
        self._sink_pool.shutdown(wait=wait)
        for pool in (self._io_pool, self._cpu_pool):
            if pool is not _shared_pool:
                pool.shutdown(wait=wait)

    def __enter__(self) -> "TaskExecutor":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.shutdown()


__all__ = ["SHARED_POOL_SIZE", "TaskExecutor", "default_cpu_threads", "shared_pool"]
