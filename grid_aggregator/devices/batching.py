"""
Batch partitioning.

Splits the device population into contiguous request-sized batches.
"""
from typing import List, Sequence, TypeVar

from ..exceptions import InvalidArgumentException

T = TypeVar("T")


def create_batches(items: Sequence[T], batch_size: int) -> List[List[T]]:
    """
    Split a sequence into contiguous chunks of at most batch_size items.

    Every chunk but the last holds exactly batch_size items; joining the
    chunks in order gives back the input. The input is not modified.

    Args:
        items: Ordered items to split.
        batch_size: Maximum items per chunk.

    Returns:
        List of chunks, empty if items is empty.
    """
    if isinstance(batch_size, bool) or not isinstance(batch_size, int) or batch_size <= 0:
        raise InvalidArgumentException("batch_size", batch_size, "must be a positive integer")

    return [
        list(items[start:start + batch_size])
        for start in range(0, len(items), batch_size)
    ]
