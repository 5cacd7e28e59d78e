"""Tests for splitting the search range into work units."""

import pytest

from squaresum.errors import InvalidArgument, PartitionViolation
from squaresum.tracking import (
    WorkUnit,
    default_unit_size,
    make_unit_id,
    partition,
    validate_partition,
)


def _covered(units):
    seen = []
    for unit in units:
        seen.extend(unit)
    return seen


@pytest.mark.parametrize("n", [1, 2, 3, 7, 10, 64, 97, 100])
@pytest.mark.parametrize("unit_size", [1, 2, 3, 10, 33, 100, 1000])
def test_union_is_exact_with_no_overlap(n, unit_size):
    units = partition(n, unit_size)
    covered = _covered(units)

    # No overlaps: every starting point appears once
    assert len(covered) == len(set(covered))
    # No gaps: union is exactly 1..n
    assert set(covered) == set(range(1, n + 1))
    assert len(units) == -(-n // unit_size)
    validate_partition(units, n)


def test_last_unit_absorbs_remainder():
    units = partition(10, 4)
    assert [(u.start, u.end) for u in units] == [(1, 4), (5, 8), (9, 10)]
    assert [u.size for u in units] == [4, 4, 2]
    assert [u.index for u in units] == [0, 1, 2]


def test_single_unit_when_n_fits():
    units = partition(5, 100)
    assert len(units) == 1
    assert (units[0].start, units[0].end) == (1, 5)


def test_partition_is_deterministic():
    assert partition(1000, 37) == partition(1000, 37)


def test_unit_ids_are_unique():
    units = partition(500, 7)
    assert len({u.unit_id for u in units}) == len(units)
    assert units[0].unit_id == make_unit_id(1, 7)


@pytest.mark.parametrize("n,unit_size", [(0, 1), (-5, 1), (10, 0), (10, -1)])
def test_invalid_arguments(n, unit_size):
    with pytest.raises(InvalidArgument):
        partition(n, unit_size)


def test_validate_detects_gap():
    units = [
        WorkUnit(unit_id="a", index=0, start=1, end=4),
        WorkUnit(unit_id="b", index=1, start=6, end=10),
    ]
    with pytest.raises(PartitionViolation, match="gap"):
        validate_partition(units, 10)


def test_validate_detects_overlap():
    units = [
        WorkUnit(unit_id="a", index=0, start=1, end=5),
        WorkUnit(unit_id="b", index=1, start=5, end=10),
    ]
    with pytest.raises(PartitionViolation, match="overlaps"):
        validate_partition(units, 10)


def test_validate_detects_short_and_long_coverage():
    with pytest.raises(PartitionViolation):
        validate_partition(partition(9, 3), 10)
    with pytest.raises(PartitionViolation):
        validate_partition(partition(11, 3), 10)
    with pytest.raises(PartitionViolation):
        validate_partition([], 10)


def test_default_unit_size():
    assert default_unit_size(1000, 5) == 50
    assert default_unit_size(3, 8) == 1
    assert default_unit_size(1, 1) == 1
    # Always yields at least as many units as workers when n allows it
    assert len(partition(1000, default_unit_size(1000, 7))) >= 7
