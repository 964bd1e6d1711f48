"""
Data aggregator.

Main orchestration for a collection run:
1. Probe the API once; abort the run if it is unreachable
2. Generate serial numbers and split them into batches
3. Fetch every batch through the rate limiter with retries
4. Assemble the aggregation report
"""
import logging
import time
from typing import List, Optional, Protocol, Sequence, Tuple

from ..config import AggregatorSettings, get_settings
from ..devices import create_batches, generate_serial_numbers
from ..exceptions import ConnectivityException
from ..scheduling.rate_limiter import RateLimiter
from ..scheduling.retry import BatchFetchTask
from ..models import AggregationReport, DeviceRecord, FailureEntry

logger = logging.getLogger(__name__)


class DeviceDataSource(Protocol):
    """Transport used by the aggregator."""

    async def fetch_device_data(self, serial_numbers: Sequence[str]) -> List[DeviceRecord]:
        ...


class DataAggregator:
    """
    Fetches telemetry for the whole device population.

    Only a failed connectivity probe aborts a run; batches that fail
    after all retries end up in the report's error list.
    """

    def __init__(
        self,
        client: DeviceDataSource,
        settings: Optional[AggregatorSettings] = None,
        rate_limiter: Optional[RateLimiter] = None,
    ):
        """
        Initialize the aggregator.

        Args:
            client: Transport fetching device data.
            settings: Aggregator settings.
            rate_limiter: Scheduler shared by every request of the run.
        """
        self.client = client
        self.settings = settings or get_settings()
        self.rate_limiter = rate_limiter or RateLimiter(
            self.settings.rate_limit.request_interval
        )

    async def check_connectivity(self) -> None:
        """
        Probe the API with a single-device batch.

        The probe goes through the rate limiter so it counts against
        the request cadence like any other request.

        Raises:
            ConnectivityException: If the probe fails.
        """
        probe_batch = generate_serial_numbers(1, self.settings.devices.serial_prefix)
        logger.info("Testing API connection...")

        try:
            await self.rate_limiter.submit(
                lambda: self.client.fetch_device_data(probe_batch)
            )
        except Exception as e:
            logger.error(f"API connection test failed: {e}")
            raise ConnectivityException(
                "Cannot connect to API. Please ensure the server is running.",
                cause=str(e),
            ) from e

        logger.info("API connection test successful")

    def generate_serial_numbers(self) -> List[str]:
        """Generate the serial numbers of every device."""
        devices = self.settings.devices
        logger.info(f"Generating {devices.total} serial numbers...")

        serial_numbers = generate_serial_numbers(devices.total, devices.serial_prefix)
        if serial_numbers:
            logger.info(
                f"Generated {len(serial_numbers)} serial numbers "
                f"({serial_numbers[0]} to {serial_numbers[-1]})"
            )
        return serial_numbers

    def create_batches(self, serial_numbers: Sequence[str]) -> List[List[str]]:
        """Split serial numbers into request-sized batches."""
        batch_size = self.settings.rate_limit.batch_size
        logger.info(f"Creating batches of {batch_size}...")

        batches = create_batches(serial_numbers, batch_size)
        logger.info(f"Created {len(batches)} batches")
        return batches

    def build_tasks(self, batches: Sequence[Sequence[str]]) -> List[BatchFetchTask]:
        """Wrap each batch in a retrying fetch task."""
        retry = self.settings.retry
        return [
            BatchFetchTask(
                batch_index=index,
                serial_numbers=batch,
                fetch=self.client.fetch_device_data,
                max_retries=retry.max_retries,
                retry_delay=retry.retry_delay,
            )
            for index, batch in enumerate(batches)
        ]

    def _log_progress(self, completed: int, total: int) -> None:
        percentage = completed / total * 100 if total else 100.0
        logger.info(f"Processing batch {completed}/{total} ({percentage:.1f}%)")

    async def fetch_all(
        self,
        batches: Sequence[Sequence[str]],
    ) -> Tuple[List[DeviceRecord], List[FailureEntry]]:
        """
        Fetch data for all batches.

        Args:
            batches: Ordered batches of serial numbers.

        Returns:
            Tuple of (records in batch order, failures in batch order).
        """
        logger.info(f"Starting to fetch data for {len(batches)} batches...")
        logger.info(
            f"Estimated time: ~{self.settings.estimated_duration:.0f}s "
            f"({self.settings.rate_limit.request_interval}s between requests)"
        )
        start_time = time.monotonic()

        tasks = self.build_tasks(batches)
        outcomes = await self.rate_limiter.execute_all(tasks, on_progress=self._log_progress)

        records: List[DeviceRecord] = []
        failures: List[FailureEntry] = []
        for outcome in outcomes:
            records.extend(outcome.records)
            if outcome.failure:
                failures.append(outcome.failure)

        duration = time.monotonic() - start_time
        logger.info(f"Fetched data for {len(records)} devices in {duration:.2f}s")
        if failures:
            logger.warning(f"{len(failures)} batches failed permanently")

        return records, failures

    async def run(self) -> AggregationReport:
        """
        Execute a full aggregation run.

        Returns:
            The aggregation report.

        Raises:
            ConnectivityException: If the API is unreachable.
        """
        logger.info(f"Starting {self.settings.app_name}")

        await self.check_connectivity()

        serial_numbers = self.generate_serial_numbers()
        batches = self.create_batches(serial_numbers)
        records, failures = await self.fetch_all(batches)

        return AggregationReport.assemble(
            total_devices=len(serial_numbers),
            records=records,
            failures=failures,
        )
