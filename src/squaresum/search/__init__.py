"""Parallel search for runs of consecutive squares that sum to a square."""

from .config import SearchConfig
from .messages import ComputeRequest, DoneSignal, ResultMessage, WorkerStatus
from .worker import evaluate_unit, run_work_unit
from .coordinator import (
    Coordinator,
    CoordinatorState,
    RunOutcome,
    RunStatus,
    WorkerFaultRecord,
    compute_deadline,
    merge,
)
from .core import find_square_sums, run_search
from .metrics import write_metrics_report
from .logger import setup_logger

__all__ = [
    "SearchConfig",
    "ComputeRequest",
    "DoneSignal",
    "ResultMessage",
    "WorkerStatus",
    "evaluate_unit",
    "run_work_unit",
    "Coordinator",
    "CoordinatorState",
    "RunOutcome",
    "RunStatus",
    "WorkerFaultRecord",
    "compute_deadline",
    "merge",
    "find_square_sums",
    "run_search",
    "write_metrics_report",
    "setup_logger",
]
