"""Shared types for work partitioning."""

from __future__ import annotations

from dataclasses import dataclass

__all__ = ["WorkUnit"]


@dataclass(frozen=True)
class WorkUnit:
    """Represents a unit of work (contiguous range of starting points) to search."""

    unit_id: str
    """Unique identifier for this work unit"""

    index: int
    """Position of this unit in the partition (0-based)"""

    start: int
    """First starting point (inclusive)"""

    end: int
    """Last starting point (inclusive)"""

    @property
    def size(self) -> int:
        return self.end - self.start + 1

    def __iter__(self):
        return iter(range(self.start, self.end + 1))
