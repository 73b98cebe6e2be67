"""
Work partitioning across worker threads.

A dimension of size n is cut into `count` contiguous ranges. Range k starts
at floor(k * n / count); the last range always ends at n, so the ranges
cover [0, n) exactly once with no gaps or overlaps. Ranges may be empty
when there are more workers than columns.
"""

from .types import ColumnRange


def partition_range(n: int, count: int, index: int) -> ColumnRange:
    """Return the column range of worker `index` out of `count` over [0, n).

    Raises:
        ValueError: If n is negative, count is not positive or index is out
            of [0, count).
    """
    if n < 0:
        raise ValueError(f"n must be non-negative, got {n}")
    if count <= 0:
        raise ValueError(f"count must be positive, got {count}")
    if not 0 <= index < count:
        raise ValueError(f"index must be in [0, {count}), got {index}")

    start = index * n // count
    if index == count - 1:
        return ColumnRange(start, n)
    stop = min((index + 1) * n // count, n)
    return ColumnRange(start, stop)


def partition(n: int, count: int) -> list[ColumnRange]:
    """Return all `count` ranges over [0, n), in worker order."""
    return [partition_range(n, count, index) for index in range(count)]
