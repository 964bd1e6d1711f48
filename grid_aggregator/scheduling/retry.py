"""
Retrying fetch task for a single batch.

A batch is fetched as a whole. Failed attempts are retried after a
fixed delay inside the same scheduler slot; once the retries are
exhausted the failure is recorded instead of raised.
"""
import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Awaitable, Callable, List, Optional, Sequence, Tuple

from ..models import DeviceRecord, FailureEntry
from ..exceptions import InvalidArgumentException, TaskStateException

logger = logging.getLogger(__name__)

FetchFunction = Callable[[List[str]], Awaitable[List[DeviceRecord]]]


class TaskState(str, Enum):
    """Lifecycle state of a batch task."""
    PENDING = "pending"
    ATTEMPTING = "attempting"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass(frozen=True)
class BatchOutcome:
    """Terminal result of a batch task."""
    batch_index: int
    state: TaskState
    records: Tuple[DeviceRecord, ...] = field(default_factory=tuple)
    failure: Optional[FailureEntry] = None

    @property
    def succeeded(self) -> bool:
        return self.state == TaskState.SUCCEEDED


class BatchFetchTask:
    """
    Fetches one batch of devices with bounded, fixed-delay retries.

    State machine:
        PENDING -> ATTEMPTING -> SUCCEEDED
        PENDING -> ATTEMPTING -> (PENDING -> ATTEMPTING)* -> SUCCEEDED | FAILED
    """

    def __init__(
        self,
        batch_index: int,
        serial_numbers: Sequence[str],
        fetch: FetchFunction,
        max_retries: int = 3,
        retry_delay: float = 2.0,
    ):
        """
        Initialize the batch task.

        Args:
            batch_index: Zero-based position of the batch in the run.
            serial_numbers: Serial numbers in this batch.
            fetch: Transport call fetching records for a list of serials.
            max_retries: Retries allowed after the first attempt.
            retry_delay: Seconds to wait before each retry.
        """
        if max_retries < 0:
            raise InvalidArgumentException("max_retries", max_retries, "must be >= 0")
        if retry_delay < 0:
            raise InvalidArgumentException("retry_delay", retry_delay, "must be >= 0")

        self.batch_index = batch_index
        self.serial_numbers: Tuple[str, ...] = tuple(serial_numbers)
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self._fetch = fetch

        self.state = TaskState.PENDING
        self.attempts = 0
        self.last_error: Optional[str] = None
        self.outcome: Optional[BatchOutcome] = None

    @property
    def batch_number(self) -> int:
        """1-based batch number used in logs and failure entries."""
        return self.batch_index + 1

    async def __call__(self) -> BatchOutcome:
        return await self.run()

    async def run(self) -> BatchOutcome:
        """
        Fetch the batch, retrying on failure.

        Returns:
            BatchOutcome with the records, or the failure entry if every
            attempt failed.
        """
        if self.state != TaskState.PENDING:
            raise TaskStateException(self.batch_index, self.state.value)

        while True:
            self.state = TaskState.ATTEMPTING

            try:
                records = await self._fetch(list(self.serial_numbers))
            except asyncio.CancelledError:
                raise
            except Exception as e:
                self.last_error = str(e)

                if self.attempts >= self.max_retries:
                    return self._fail()

                self.attempts += 1
                self.state = TaskState.PENDING
                logger.warning(
                    f"Batch {self.batch_number} failed: {e}. "
                    f"Retrying ({self.attempts}/{self.max_retries})..."
                )
                await asyncio.sleep(self.retry_delay)
                continue

            return self._succeed(records)

    def _succeed(self, records: List[DeviceRecord]) -> BatchOutcome:
        self.state = TaskState.SUCCEEDED
        self.outcome = BatchOutcome(
            batch_index=self.batch_index,
            state=self.state,
            records=tuple(records),
        )
        logger.debug(
            f"Batch {self.batch_number} fetched {len(records)} records "
            f"after {self.attempts} retries"
        )
        return self.outcome

    def _fail(self) -> BatchOutcome:
        self.state = TaskState.FAILED
        failure = FailureEntry(
            batch=self.batch_number,
            serial_numbers=self.serial_numbers,
            error=self.last_error or "Unknown error",
        )
        self.outcome = BatchOutcome(
            batch_index=self.batch_index,
            state=self.state,
            failure=failure,
        )
        logger.error(
            f"Batch {self.batch_number} failed after {self.max_retries} retries: "
            f"{self.last_error}"
        )
        return self.outcome
