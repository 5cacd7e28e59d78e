# search/config.py
"""Configuration for parallel square-sum searches."""
from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Literal, Optional

from squaresum.errors import InvalidArgument
from squaresum.tracking import default_unit_size

__all__ = ["SearchConfig"]


@dataclass(frozen=True)
class SearchConfig:
    """Search and orchestration settings for one run.

    Executor options:
        - "processes": ProcessPoolExecutor, messages through a manager queue
        - "threads": ThreadPoolExecutor, messages through queue.Queue
    """

    # Problem
    n: int
    k: int

    # Parallelism
    workers: Optional[int] = None  # If None, defaults to cpu_count - 1
    unit_size: Optional[int] = None  # If None, about 4 units per worker
    executor: Literal["processes", "threads"] = "processes"
    start_method: Optional[str] = None  # multiprocessing context; None for platform default
    max_in_flight_factor: int = 2  # Keep workers * factor units dispatched at most

    # Timeout (safety net only; completion is driven by done signals)
    timeout_s: Optional[float] = None  # Explicit deadline, overrides the scaled one
    base_timeout_s: float = 30.0
    seconds_per_candidate: float = 2e-6  # Scaled by n * k
    seconds_per_unit: float = 0.05

    # Worker behaviour
    cancel_check_every: int = 4096  # Candidates between cancel-flag checks

    # Progress reporting
    show_progress: bool = False

    def __post_init__(self) -> None:
        if isinstance(self.n, bool) or not isinstance(self.n, int) or self.n < 1:
            raise InvalidArgument(f"n must be a positive integer, got {self.n!r}")
        if isinstance(self.k, bool) or not isinstance(self.k, int) or self.k < 1:
            raise InvalidArgument(f"k must be a positive integer, got {self.k!r}")
        if self.workers is not None and self.workers < 1:
            raise InvalidArgument(f"workers must be >= 1, got {self.workers}")
        if self.unit_size is not None and self.unit_size < 1:
            raise InvalidArgument(f"unit_size must be >= 1, got {self.unit_size}")
        if self.executor not in ("processes", "threads"):
            raise InvalidArgument(
                f"executor must be 'processes' or 'threads', got {self.executor!r}"
            )
        if self.max_in_flight_factor < 1:
            raise InvalidArgument(
                f"max_in_flight_factor must be >= 1, got {self.max_in_flight_factor}"
            )
        if self.timeout_s is not None and self.timeout_s <= 0:
            raise InvalidArgument(f"timeout_s must be > 0, got {self.timeout_s}")
        if self.cancel_check_every < 1:
            raise InvalidArgument(
                f"cancel_check_every must be >= 1, got {self.cancel_check_every}"
            )

    @property
    def requested_workers(self) -> int:
        """Worker count before capping by the number of work units."""
        if self.workers is not None:
            return self.workers
        cpu_count = os.cpu_count() or 4
        return max(1, cpu_count - 1)

    @property
    def resolved_unit_size(self) -> int:
        if self.unit_size is not None:
            return self.unit_size
        return default_unit_size(self.n, self.requested_workers)
