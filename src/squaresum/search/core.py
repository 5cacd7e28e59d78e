"""Main entry point for parallel square-sum searches."""
from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path
from typing import Callable, Optional, Union

import setproctitle

from squaresum.predicate import is_square_sum
from squaresum.search.config import SearchConfig
from squaresum.search.coordinator import Coordinator, RunOutcome
from squaresum.search.metrics import write_metrics_report
from squaresum.search.reporter import print_final_summary, print_search_header

logger = logging.getLogger(__name__)

__all__ = ["find_square_sums", "run_search"]


def find_square_sums(
        n: int,
        k: int,
        *,
        workers: Optional[int] = None,
        unit_size: Optional[int] = None,
        executor: str = "processes",
        timeout_s: Optional[float] = None,
        show_progress: bool = False,
        print_report: bool = False,
        metrics_dir: Optional[Union[str, Path]] = None,
        predicate: Callable[[int, int], bool] = is_square_sum,
) -> RunOutcome:
    """
    Find every s in 1..n where the k consecutive squares from s sum to a square.

    Orchestrates the search:
    1. Builds and validates the configuration
    2. Partitions 1..n into work units
    3. Runs the units through a bounded worker pool
    4. Optionally prints header and summary, and writes a metrics report

    Args:
        n: Search upper bound (>= 1)
        k: Number of consecutive squares (>= 1)
        workers: Pool size (default: cpu_count - 1, capped by unit count)
        unit_size: Starting points per work unit (default: ~4 units per worker)
        executor: "processes" or "threads"
        timeout_s: Explicit deadline; default scales with n and k
        show_progress: Show a tqdm progress bar on stderr
        print_report: Print configuration header and final summary to stdout
        metrics_dir: If given, write metrics_N{n}_k{k}.txt there
        predicate: Candidate test, defaults to is_square_sum

    Returns:
        RunOutcome with sorted solutions; check ``status`` for timeouts

    Raises:
        InvalidArgument: If n, k or any option is out of range

    Examples:
        >>> find_square_sums(25, 2, executor="threads").solutions
        (3, 20)
    """
    config = SearchConfig(
        n=n,
        k=k,
        workers=workers,
        unit_size=unit_size,
        executor=executor,
        timeout_s=timeout_s,
        show_progress=show_progress,
    )
    return run_search(
        config,
        print_report=print_report,
        metrics_dir=metrics_dir,
        predicate=predicate,
    )


def run_search(
        config: SearchConfig,
        *,
        print_report: bool = False,
        metrics_dir: Optional[Union[str, Path]] = None,
        predicate: Callable[[int, int], bool] = is_square_sum,
) -> RunOutcome:
    """Run a search described by config; see find_square_sums."""
    try:
        setproctitle.setproctitle("sqs:main")
    except Exception as exc:
        logger.debug("Could not set process title: %s", exc)

    coordinator = Coordinator(config, predicate=predicate)

    if print_report:
        print_search_header(
            start_time=datetime.now(),
            n=config.n,
            k=config.k,
            unit_size=coordinator.unit_size,
            work_units=len(coordinator.units),
            workers=coordinator.pool_size,
            executor=config.executor,
            timeout_s=coordinator.timeout_s,
        )

    outcome = coordinator.run()

    if print_report:
        print_final_summary(outcome)

    if metrics_dir is not None:
        write_metrics_report(outcome, metrics_dir)

    return outcome
