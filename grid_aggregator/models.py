"""
Aggregation data models.

Device records returned by the API, failure entries for batches that
exhausted their retries, and the final aggregation report.
"""
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class DeviceRecord(BaseModel):
    """
    Real-time telemetry for one device.

    The aggregator treats records as opaque; unknown fields returned by
    the API are kept as-is.
    """
    model_config = ConfigDict(extra="allow")

    sn: Optional[str] = None
    power: Optional[Union[float, str]] = None
    status: Optional[str] = None
    last_updated: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Serialize the record with only the fields the API sent."""
        return self.model_dump(mode="json", exclude_unset=True)


class FailureEntry(BaseModel):
    """A batch that failed permanently after exhausting its retries."""
    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    batch: int = Field(..., ge=1, description="1-based batch number")
    serial_numbers: Tuple[str, ...]
    error: str


class AggregationReport(BaseModel):
    """Consolidated outcome of a full aggregation run."""
    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    total_devices: int = Field(..., ge=0)
    successful_fetches: int = Field(..., ge=0)
    failed_fetches: int = Field(..., ge=0)
    timestamp: datetime
    data: Tuple[DeviceRecord, ...] = ()
    errors: Tuple[FailureEntry, ...] = ()

    @classmethod
    def assemble(
        cls,
        total_devices: int,
        records: Sequence[DeviceRecord],
        failures: Sequence[FailureEntry],
        timestamp: Optional[datetime] = None,
    ) -> "AggregationReport":
        """
        Build the report from the accumulated run state.

        failed_fetches counts the serial numbers of every failed batch.
        """
        return cls(
            total_devices=total_devices,
            successful_fetches=len(records),
            failed_fetches=sum(len(f.serial_numbers) for f in failures),
            timestamp=timestamp or datetime.now(timezone.utc),
            data=tuple(records),
            errors=tuple(failures),
        )

    @property
    def failed_batches(self) -> List[int]:
        return [failure.batch for failure in self.errors]

    def to_document(self) -> Dict[str, Any]:
        """Serialize the report to its JSON document layout (camelCase keys)."""
        document = self.model_dump(mode="json", by_alias=True, exclude={"data", "errors"})
        document["data"] = [record.to_dict() for record in self.data]
        document["errors"] = [
            failure.model_dump(mode="json", by_alias=True) for failure in self.errors
        ]
        return document
