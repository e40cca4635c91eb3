"""Bounded worker pool with a full-barrier join, and a lock-guarded map."""

from __future__ import annotations

import logging
import threading
from concurrent.futures import FIRST_EXCEPTION, ThreadPoolExecutor, wait
from typing import Callable, Generic, Iterable, Iterator, TypeVar

logger = logging.getLogger(__name__)

K = TypeVar("K")
V = TypeVar("V")
T = TypeVar("T")


class PoolTimeoutError(RuntimeError):
    """Raised when a pool stage does not finish within its grace period."""

    def __init__(self, stage: str, pending: int, timeout: float):
        super().__init__(
            f"{stage}: {pending} task(s) still running after {timeout:g}s; "
            f"refusing to continue on partial data"
        )
        self.stage = stage
        self.pending = pending
        self.timeout = timeout


class ConcurrentMap(Generic[K, V]):
    """Dict guarded by a lock so worker threads can insert without coordination.

    Call :meth:`freeze` once every writer has joined; later writes raise.
    """

    def __init__(self):
        self._data: dict[K, V] = {}
        self._lock = threading.Lock()
        self._frozen = False

    def put(self, key: K, value: V) -> V | None:
        """Store ``value`` and return whatever it replaced."""
        with self._lock:
            if self._frozen:
                raise RuntimeError("map is frozen")
            previous = self._data.get(key)
            self._data[key] = value
            return previous

    def setdefault(self, key: K, value: V) -> V:
        with self._lock:
            if self._frozen:
                raise RuntimeError("map is frozen")
            return self._data.setdefault(key, value)

    def get(self, key: K, default: V | None = None) -> V | None:
        with self._lock:
            return self._data.get(key, default)

    def clear(self) -> None:
        with self._lock:
            self._data.clear()
            self._frozen = False

    def freeze(self) -> None:
        with self._lock:
            self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen

    def snapshot(self) -> dict[K, V]:
        with self._lock:
            return dict(self._data)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._data

    def __len__(self) -> int:
        with self._lock:
            return len(self._data)

    def __iter__(self) -> Iterator[K]:
        return iter(self.snapshot())


def run_in_pool(
    func: Callable[[T], None],
    items: Iterable[T],
    *,
    workers: int,
    timeout: float,
    stage: str = "pool",
) -> int:
    """Run ``func`` over ``items`` on a bounded pool and wait for all of them.

    Returns the number of tasks run. A task that raises aborts the stage
    and the exception propagates; per-item failures that should be skipped
    must be handled inside ``func``.
    """
    items = list(items)
    if not items:
        return 0

    pool = ThreadPoolExecutor(max_workers=max(1, workers), thread_name_prefix=stage)
    futures = [pool.submit(func, item) for item in items]
    logger.debug("%s: submitted %d task(s) to %d worker(s)", stage, len(futures), workers)

    try:
        done, pending = wait(futures, timeout=timeout, return_when=FIRST_EXCEPTION)
        failed = [f for f in done if not f.cancelled() and f.exception() is not None]
        if failed:
            for f in pending:
                f.cancel()
            raise failed[0].exception()
        if pending:
            for f in pending:
                f.cancel()
            logger.error("%s timed out with %d task(s) outstanding", stage, len(pending))
            raise PoolTimeoutError(stage, len(pending), timeout)
    finally:
        pool.shutdown(wait=False, cancel_futures=True)

    logger.debug("%s: %d task(s) complete", stage, len(futures))
    return len(futures)
