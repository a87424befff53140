"""
Bounded worker pool.

Wraps ThreadPoolExecutor with a slot semaphore so that submit() blocks
once every worker is busy. That is the only backpressure in a run: the
dispatcher never queues more batches than there are workers.
"""

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor, wait
from typing import Any, Callable

logger = logging.getLogger(__name__)


class PoolClosedError(RuntimeError):
    """Raised when submitting to a pool that has already been joined."""

    pass


class BoundedWorkerPool:
    """
    Fixed number of execution slots with blocking submission.

    Units that raise are logged and dropped from the results; join()
    itself never raises on their behalf.
    """

    def __init__(self, max_workers: int = 4, name: str = "reingest"):
        """
        Initialize the pool.

        Args:
            max_workers: Number of concurrent slots (values below 1 become 1)
            name: Thread name prefix for worker threads
        """
        self.max_workers = max(1, int(max_workers))
        self.name = name
        self._executor = ThreadPoolExecutor(
            max_workers=self.max_workers, thread_name_prefix=name
        )
        self._slots = threading.BoundedSemaphore(self.max_workers)
        self._futures: list[Future] = []
        self._closed = False

        logger.debug(f"BoundedWorkerPool '{name}' initialized: max_workers={self.max_workers}")

    @property
    def submitted(self) -> int:
        return len(self._futures)

    def submit(self, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> Future:
        """
        Schedule ``fn(*args, **kwargs)`` on a free slot.

        Blocks while all slots are occupied.

        Raises:
            PoolClosedError: If join() has already been called
        """
        if self._closed:
            raise PoolClosedError(f"Pool '{self.name}' is closed")

        self._slots.acquire()
        try:
            future = self._executor.submit(fn, *args, **kwargs)
        except BaseException:
            self._slots.release()
            raise

        future.add_done_callback(self._release_slot)
        self._futures.append(future)
        return future

    def _release_slot(self, future: Future) -> None:
        self._slots.release()

    def join(self) -> list[Any]:
        """
        Block until every submitted unit has finished.

        Returns:
            Return values of units that completed normally, in submission order
        """
        self._closed = True
        wait(self._futures)
        self._executor.shutdown(wait=True)

        results = []
        for index, future in enumerate(self._futures, start=1):
            error = future.exception()
            if error is not None:
                logger.error(
                    f"Unit {index} in pool '{self.name}' failed: "
                    f"{type(error).__name__}: {error}",
                    exc_info=(type(error), error, error.__traceback__),
                )
                continue
            results.append(future.result())

        return results

    def __enter__(self) -> "BoundedWorkerPool":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if not self._closed:
            self.join()
