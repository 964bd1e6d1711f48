"""
Aggregation run summary.
"""
import logging
from dataclasses import dataclass
from typing import Optional, Tuple, Union

from ..models import AggregationReport

logger = logging.getLogger(__name__)


def _parse_power(value: Optional[Union[float, str]]) -> Optional[float]:
    """Parse a power reading such as 2.5 or '2.5 kW' into kW."""
    if value is None:
        return None
    if isinstance(value, (int, float)):
        return float(value)

    token = value.strip().split(" ")[0].lower().rstrip("kw")
    try:
        return float(token)
    except ValueError:
        return None


@dataclass(frozen=True)
class ReportSummary:
    """Headline statistics of an aggregation report."""
    total_devices: int
    successful: int
    failed: int
    online: int
    offline: int
    total_power_kw: float
    failed_batches: Tuple[int, ...] = ()

    @classmethod
    def from_report(cls, report: AggregationReport) -> "ReportSummary":
        statuses = [(record.status or "").lower() for record in report.data]
        readings = [_parse_power(record.power) for record in report.data]

        return cls(
            total_devices=report.total_devices,
            successful=report.successful_fetches,
            failed=report.failed_fetches,
            online=statuses.count("online"),
            offline=statuses.count("offline"),
            total_power_kw=sum(r for r in readings if r is not None),
            failed_batches=tuple(report.failed_batches),
        )

    @property
    def success_rate(self) -> float:
        """Percentage of the population fetched successfully."""
        if not self.total_devices:
            return 0.0
        return self.successful / self.total_devices * 100

    def _share(self, count: int) -> float:
        return count / self.successful * 100 if self.successful else 0.0

    def log(self) -> None:
        """Write the summary to the log."""
        logger.info("=" * 60)
        logger.info("AGGREGATION SUMMARY")
        logger.info("=" * 60)
        logger.info(f"Total Devices:        {self.total_devices}")
        logger.info(f"Successfully Fetched: {self.successful}")
        logger.info(f"Failed:               {self.failed}")
        logger.info(f"Success Rate:         {self.success_rate:.2f}%")
        if self.failed_batches:
            logger.info(f"Failed Batches:       {list(self.failed_batches)}")

        if self.successful:
            logger.info("Device Status:")
            logger.info(f"  Online:  {self.online} ({self._share(self.online):.1f}%)")
            logger.info(f"  Offline: {self.offline} ({self._share(self.offline):.1f}%)")
            logger.info(f"Total Power Output: {self.total_power_kw:.2f} kW")

        logger.info("=" * 60)
