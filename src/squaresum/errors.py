"""Exception hierarchy for the consecutive-squares search."""
from __future__ import annotations

from typing import Optional

__all__ = [
    "SquareSumError",
    "InvalidArgument",
    "WorkerFault",
    "TimeoutExceeded",
    "PartitionViolation",
]


class SquareSumError(Exception):
    """Base class for all search errors."""


class InvalidArgument(SquareSumError, ValueError):
    """Raised when search inputs are missing or malformed."""

    def __init__(self, message: str, usage: Optional[str] = None):
        super().__init__(message)
        self.usage = usage


class WorkerFault(SquareSumError):
    """A single candidate evaluation failed inside a worker."""

    def __init__(self, candidate: int, cause: BaseException):
        super().__init__(f"candidate {candidate}: {type(cause).__name__}: {cause}")
        self.candidate = candidate
        self.cause = cause


class TimeoutExceeded(SquareSumError):
    """The search deadline elapsed before every work unit reported done."""


class PartitionViolation(SquareSumError, AssertionError):
    """Work units overlap, leave gaps, or fall outside the search range."""
