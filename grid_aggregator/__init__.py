"""
EnergyGrid Aggregator - rate-limited telemetry collection.

Fetches real-time data for a fleet of solar inverters from the
EnergyGrid API, one signed request per interval.
"""
from .config import AggregatorSettings, get_settings
from .core.aggregator import DataAggregator
from .models import AggregationReport, DeviceRecord, FailureEntry

__all__ = [
    "AggregatorSettings",
    "get_settings",
    "DataAggregator",
    "AggregationReport",
    "DeviceRecord",
    "FailureEntry",
]
