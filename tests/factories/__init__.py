"""
Test data factories for the aggregator.
"""
from .device_record_factory import DeviceRecordFactory, FailureEntryFactory

__all__ = [
    "DeviceRecordFactory",
    "FailureEntryFactory",
]
