"""Parallel search for runs of consecutive squares whose sum is a perfect square."""

from .errors import (
    SquareSumError,
    InvalidArgument,
    WorkerFault,
    TimeoutExceeded,
    PartitionViolation,
)
from .predicate import is_perfect_square, sum_of_squares, is_square_sum
from .search import RunOutcome, RunStatus, SearchConfig, find_square_sums

__all__ = [
    "SquareSumError",
    "InvalidArgument",
    "WorkerFault",
    "TimeoutExceeded",
    "PartitionViolation",
    "is_perfect_square",
    "sum_of_squares",
    "is_square_sum",
    "RunOutcome",
    "RunStatus",
    "SearchConfig",
    "find_square_sums",
]
