"""Splitting the search range into disjoint work units."""

from __future__ import annotations

from typing import List, Sequence

from ..errors import InvalidArgument, PartitionViolation
from .types import WorkUnit

__all__ = ["partition", "validate_partition", "default_unit_size", "make_unit_id"]


def make_unit_id(start: int, end: int) -> str:
    """
    Create a readable unit ID from range boundaries.

    Examples:
        >>> make_unit_id(1, 1000)
        'unit_1_1000'
    """
    return f"unit_{start}_{end}"


def partition(n: int, unit_size: int) -> List[WorkUnit]:
    """
    Split [1, n] into ordered, disjoint work units of unit_size starting points.

    - Unit 0: 1 → unit_size
    - Unit 1: unit_size + 1 → 2 * unit_size
    - ...
    - Unit M-1: last boundary → n (absorbs the remainder)

    The number of units is ceil(n / unit_size); a single unit covers the whole
    range when n <= unit_size.

    Args:
        n: Search upper bound (>= 1)
        unit_size: Starting points per unit (>= 1)

    Returns:
        List of WorkUnit objects whose union is exactly [1, n]

    Raises:
        InvalidArgument: If n or unit_size is less than 1

    Example:
        >>> [(u.start, u.end) for u in partition(10, 4)]
        [(1, 4), (5, 8), (9, 10)]
    """
    if n < 1:
        raise InvalidArgument(f"n must be >= 1, got {n}")
    if unit_size < 1:
        raise InvalidArgument(f"unit_size must be >= 1, got {unit_size}")

    num_units = -(-n // unit_size)
    work_units = []
    for index in range(num_units):
        start = index * unit_size + 1
        end = min(start + unit_size - 1, n)
        work_units.append(
            WorkUnit(unit_id=make_unit_id(start, end), index=index, start=start, end=end)
        )
    return work_units


def validate_partition(units: Sequence[WorkUnit], n: int) -> None:
    """
    Check that units tile [1, n] exactly, in order, with no gaps or overlaps.

    Raises:
        PartitionViolation: On the first gap, overlap, empty or out-of-range unit
    """
    if not units:
        raise PartitionViolation(f"empty partition for n={n}")

    expected_start = 1
    for unit in units:
        if unit.end < unit.start:
            raise PartitionViolation(f"{unit.unit_id} is empty ({unit.start} > {unit.end})")
        if unit.start < expected_start:
            raise PartitionViolation(
                f"{unit.unit_id} overlaps previous unit (starts at {unit.start}, "
                f"expected {expected_start})"
            )
        if unit.start > expected_start:
            raise PartitionViolation(
                f"gap before {unit.unit_id}: {expected_start}..{unit.start - 1} uncovered"
            )
        expected_start = unit.end + 1

    if expected_start != n + 1:
        raise PartitionViolation(
            f"partition ends at {expected_start - 1}, expected {n}"
        )


def default_unit_size(n: int, workers: int, units_per_worker: int = 4) -> int:
    """
    Pick a unit size giving each worker roughly units_per_worker units.

    Several units per worker keeps the pool busy when some ranges finish
    faster than others.

    Examples:
        >>> default_unit_size(1000, 5)
        50
        >>> default_unit_size(3, 8)
        1
    """
    target_units = max(1, workers * units_per_worker)
    return max(1, -(-n // target_units))
