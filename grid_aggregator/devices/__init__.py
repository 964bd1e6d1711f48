"""
Device population module.

Generates serial numbers and splits them into request batches.
"""
from .batching import create_batches
from .serials import generate_serial_numbers

__all__ = [
    "create_batches",
    "generate_serial_numbers",
]
