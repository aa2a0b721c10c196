"""Thread pool abstraction giving every crawl worker its own thread."""

from __future__ import annotations

from concurrent.futures import Future, ThreadPoolExecutor, wait as wait_futures
from threading import Lock
from typing import Any, Callable, Dict, Hashable


class ThreadPoolManager:
    """Run crawl workers in parallel and keep track of their futures.

    At most one future is tracked per worker id; submitting a worker whose
    previous run is still in flight is refused.
    """

    def __init__(self, default_workers: int = 8) -> None:
        self.default_workers = default_workers
        self._executor = ThreadPoolExecutor(max_workers=default_workers, thread_name_prefix="fleet")
        self._futures: Dict[Hashable, Future] = {}
        self._lock = Lock()

    def submit(self, worker_id: Hashable, fn: Callable[..., Any], *args: Any) -> Future:
        with self._lock:
            current = self._futures.get(worker_id)
            if current is not None and not current.done():
                raise RuntimeError(f"Worker {worker_id!r} is already running")
            future = self._executor.submit(fn, *args)
            self._futures[worker_id] = future
            return future

    def is_running(self, worker_id: Hashable) -> bool:
        with self._lock:
            future = self._futures.get(worker_id)
        return future is not None and not future.done()

    def future(self, worker_id: Hashable) -> Future | None:
        with self._lock:
            return self._futures.get(worker_id)

    def wait_all(self, timeout: float | None = None) -> bool:
        """Block until every tracked future is done; ``False`` on timeout."""

        with self._lock:
            pending = [future for future in self._futures.values() if not future.done()]
        if not pending:
            return True
        _, not_done = wait_futures(pending, timeout=timeout)
        return not not_done

    def shutdown(self, wait: bool = False) -> None:
        self._executor.shutdown(wait=wait)
        with self._lock:
            self._futures.clear()


__all__ = ["ThreadPoolManager"]
