"""
Core aggregation module.

Run orchestration and the run summary.
"""
from .aggregator import DataAggregator
from .summary import ReportSummary

__all__ = [
    "DataAggregator",
    "ReportSummary",
]
