"""
Rate-limited task scheduler.

Admits queued tasks one at a time, in submission order, with a
minimum gap between the start of consecutive tasks.
"""
import asyncio
import logging
import time
from collections import deque
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Deque, Dict, List, Optional, Sequence

from ..exceptions import InvalidArgumentException

logger = logging.getLogger(__name__)

TaskFactory = Callable[[], Awaitable[Any]]
ProgressCallback = Callable[[int, int], None]


@dataclass
class _QueuedTask:
    task: TaskFactory
    future: asyncio.Future


class RateLimiter:
    """
    Single-server queue with a minimum inter-admission time.

    Features:
    - Strict FIFO admission, never more than one task running
    - At least `interval` seconds between consecutive task starts
    - Failures are delivered to the submitting caller only
    """

    def __init__(
        self,
        interval: float = 1.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize the rate limiter.

        Args:
            interval: Minimum seconds between task admissions.
            clock: Monotonic clock in seconds.
        """
        if interval < 0:
            raise InvalidArgumentException("interval", interval, "must be >= 0")

        self.interval = interval
        self._clock = clock

        self._queue: Deque[_QueuedTask] = deque()
        self._processing = False
        self._drain_task: Optional[asyncio.Task] = None
        self._last_admission: Optional[float] = None
        self._admitted = 0

    def _calculate_delay(self) -> float:
        """
        Calculate the wait needed before the next admission.

        Returns:
            Delay in seconds, 0 if the interval has already elapsed.
        """
        if self._last_admission is None:
            return 0.0

        elapsed = self._clock() - self._last_admission
        return max(0.0, self.interval - elapsed)

    def submit(self, task: TaskFactory) -> "asyncio.Future[Any]":
        """
        Queue a task for rate-limited execution.

        Args:
            task: Zero-argument callable returning an awaitable.

        Returns:
            Future resolved with the task's result or exception.
        """
        loop = asyncio.get_running_loop()
        future = loop.create_future()
        self._queue.append(_QueuedTask(task=task, future=future))
        self._ensure_draining()
        return future

    def _ensure_draining(self) -> None:
        if self._processing:
            return

        self._processing = True
        self._drain_task = asyncio.create_task(
            self._process_queue(),
            name="rate_limiter_drain",
        )

    async def _process_queue(self) -> None:
        """Admit queued tasks one at a time until the queue is empty."""
        item: Optional[_QueuedTask] = None
        try:
            while self._queue:
                item = self._queue.popleft()
                if item.future.done():
                    # Caller gave up on it, don't spend a slot
                    continue

                delay = self._calculate_delay()
                if delay > 0:
                    await asyncio.sleep(delay)
                    if item.future.done():
                        continue

                self._last_admission = self._clock()
                self._admitted += 1

                try:
                    result = await item.task()
                except asyncio.CancelledError:
                    raise
                except Exception as e:
                    if not item.future.done():
                        item.future.set_exception(e)
                else:
                    if not item.future.done():
                        item.future.set_result(result)

        except asyncio.CancelledError:
            logger.debug("Rate limiter drain loop cancelled")
            if item is not None and not item.future.done():
                item.future.cancel()
            self._cancel_pending()
            raise

        finally:
            self._processing = False
            self._drain_task = None

    def _cancel_pending(self) -> None:
        while self._queue:
            item = self._queue.popleft()
            if not item.future.done():
                item.future.cancel()

    async def execute_all(
        self,
        tasks: Sequence[TaskFactory],
        on_progress: Optional[ProgressCallback] = None,
        return_exceptions: bool = False,
    ) -> List[Any]:
        """
        Run tasks through the limiter and collect their results in order.

        Args:
            tasks: Ordered task factories.
            on_progress: Called with (completed, total) after each task.
            return_exceptions: Return exceptions in place of results
                instead of raising the first one.

        Returns:
            Results in submission order.
        """
        total = len(tasks)
        futures = [self.submit(task) for task in tasks]
        results: List[Any] = []

        try:
            for completed, future in enumerate(futures, start=1):
                try:
                    results.append(await future)
                except asyncio.CancelledError:
                    raise
                except Exception as e:
                    if not return_exceptions:
                        raise
                    results.append(e)

                if on_progress:
                    on_progress(completed, total)

        except BaseException:
            for future in futures:
                if not future.done():
                    future.cancel()
            raise

        return results

    async def shutdown(self) -> None:
        """Stop the drain loop and cancel every queued task."""
        drain_task = self._drain_task
        if drain_task and not drain_task.done():
            drain_task.cancel()
            try:
                await drain_task
            except asyncio.CancelledError:
                pass

        self._cancel_pending()
        logger.debug("Rate limiter shut down")

    def get_status(self) -> Dict[str, Any]:
        """
        Get queue status.

        Returns:
            Dictionary of queue stats.
        """
        return {
            "queue_length": len(self._queue),
            "is_processing": self._processing,
            "interval": self.interval,
            "admitted": self._admitted,
        }
