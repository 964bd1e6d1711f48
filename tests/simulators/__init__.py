"""
API simulators for aggregator testing.

Provides an in-process EnergyGrid API for end-to-end testing without
a running server.
"""
from .energygrid_simulator import EnergyGridSimulator, RecordedRequest

__all__ = [
    "EnergyGridSimulator",
    "RecordedRequest",
]
