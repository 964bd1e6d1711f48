"""
Serial number generation for the device population.
"""
from typing import List

from ..exceptions import InvalidArgumentException

SERIAL_WIDTH = 3


def generate_serial_numbers(count: int, prefix: str = "SN-") -> List[str]:
    """
    Generate the serial numbers of the device population.

    Serials are the prefix followed by the zero-based index padded to
    three digits (SN-000, SN-001, ..., SN-499).

    Args:
        count: Number of devices.
        prefix: Serial number prefix.

    Returns:
        Ordered list of serial numbers.
    """
    if isinstance(count, bool) or not isinstance(count, int) or count < 0:
        raise InvalidArgumentException("count", count, "must be a non-negative integer")

    return [f"{prefix}{index:0{SERIAL_WIDTH}d}" for index in range(count)]
