"""
Task dispatcher: runs independent sandbox/trainer tasks on a bounded pool of
worker threads and returns one result per task, in submission order.
"""

from __future__ import annotations
import logging
import threading
from concurrent.futures import ThreadPoolExecutor, wait
from typing import Callable, List, Optional, Sequence

from quant_engine.core.types import Task, TaskResult, TaskStatus
from quant_engine.dispatch.tasks import execute_task

logger = logging.getLogger("quant_engine.dispatch")

ProgressFn = Callable[[int, int], None]
CancelFn = Callable[[], bool]


class _WorkQueue:
    """Hands out task indices. The index counter is the only state workers share."""

    def __init__(self, total: int):
        self.total = total
        self._next = 0
        self._lock = threading.Lock()

    def claim(self) -> Optional[int]:
        with self._lock:
            if self._next >= self.total:
                return None
            idx = self._next
            self._next += 1
            return idx


class TaskDispatcher:
    """
    Each worker loops: check cancellation, claim the next index, run that task.
    Cancellation only stops new claims; a task already running finishes.
    """

    def __init__(self, pool_size: int = 2):
        self.pool_size = max(1, int(pool_size))

    def submit(
        self,
        tasks: Sequence[Task],
        pool_size: Optional[int] = None,
        on_progress: Optional[ProgressFn] = None,
        should_cancel: Optional[CancelFn] = None,
    ) -> List[TaskResult]:
        tasks = list(tasks)
        total = len(tasks)
        if total == 0:
            return []
        workers = max(1, min(pool_size or self.pool_size, total))
        queue = _WorkQueue(total)
        results: List[Optional[TaskResult]] = [None] * total
        completed = 0
        progress_lock = threading.Lock()

        def cancelled() -> bool:
            if should_cancel is None:
                return False
            try:
                return bool(should_cancel())
            except Exception:
                logger.exception("should_cancel raised; treating as cancelled")
                return True

        def worker() -> None:
            nonlocal completed
            while True:
                if cancelled():
                    return
                idx = queue.claim()
                if idx is None:
                    return
                results[idx] = execute_task(tasks[idx])
                with progress_lock:
                    completed += 1
                    if on_progress is not None:
                        try:
                            on_progress(completed, total)
                        except Exception:
                            logger.exception("Progress callback failed")

        logger.info("Dispatching %d tasks on %d workers", total, workers)
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="quant-worker") as pool:
            futures = [pool.submit(worker) for _ in range(workers)]
            wait(futures)
            for fut in futures:
                fut.result()

        skipped = 0
        for i, res in enumerate(results):
            if res is None:
                skipped += 1
                tasks[i].status = TaskStatus.SKIPPED
                results[i] = TaskResult(tasks[i].id, tasks[i].kind, TaskStatus.SKIPPED, error="cancelled before start")
        if skipped:
            logger.info("Batch cancelled: %d of %d tasks not started", skipped, total)
        return results


def submit(
    tasks: Sequence[Task],
    pool_size: int = 2,
    on_progress: Optional[ProgressFn] = None,
    should_cancel: Optional[CancelFn] = None,
) -> List[TaskResult]:
    return TaskDispatcher(pool_size).submit(tasks, pool_size, on_progress, should_cancel)
