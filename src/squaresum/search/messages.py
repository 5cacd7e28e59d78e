"""Messages exchanged between the coordinator and search workers."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Optional, Tuple

from squaresum.predicate import is_square_sum
from squaresum.tracking import WorkUnit

__all__ = ["WorkerStatus", "ComputeRequest", "ResultMessage", "DoneSignal"]


class WorkerStatus(str, Enum):
    """How far a worker got through its unit."""

    OK = "ok"
    PARTIAL = "partial"
    FAILED = "failed"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class ComputeRequest:
    """A work unit dispatched to one worker, consumed exactly once."""

    unit: WorkUnit
    k: int
    reply: Any = field(default=None, repr=False, compare=False)
    """Queue-like object with put(); receives the ResultMessage and DoneSignal"""

    cancel: Any = field(default=None, repr=False, compare=False)
    """Optional Event-like object; when set the worker stops early"""

    predicate: Callable[[int, int], bool] = field(default=is_square_sum, repr=False)
    cancel_check_every: int = 4096
    log_file_path: Optional[str] = None
    log_level: int = logging.INFO
    """Level for the per-process log file; follows the coordinator's root logger"""

    @property
    def start(self) -> int:
        return self.unit.start

    @property
    def end(self) -> int:
        return self.unit.end


@dataclass(frozen=True)
class ResultMessage:
    """Matches found by one worker, plus any fault it hit."""

    unit_id: str
    solutions: Tuple[int, ...]
    status: WorkerStatus = WorkerStatus.OK
    evaluated: int = 0
    failed_candidate: Optional[int] = None
    error: Optional[str] = None

    @property
    def faulted(self) -> bool:
        return self.status in (WorkerStatus.PARTIAL, WorkerStatus.FAILED)


@dataclass(frozen=True)
class DoneSignal:
    """Sent exactly once per worker, after its ResultMessage."""

    unit_id: str
