"""Console reporting for square-sum searches."""
from __future__ import annotations

import sys
from datetime import datetime
from typing import Optional, TextIO

from squaresum.search.coordinator import RunOutcome
from squaresum.utilities.display import (
    format_banner,
    format_config_items,
    format_duration,
    format_rate,
)

__all__ = ["INCOMPLETE_MARKER", "print_search_header", "print_final_summary", "print_solutions"]

INCOMPLETE_MARKER = "# INCOMPLETE"


def print_search_header(
    start_time: datetime,
    n: int,
    k: int,
    unit_size: int,
    work_units: int,
    workers: int,
    executor: str,
    timeout_s: float,
    stream: Optional[TextIO] = None,
) -> None:
    """
    Print search configuration header.

    Args:
        start_time: Search start timestamp
        n: Search upper bound
        k: Number of consecutive squares
        unit_size: Starting points per work unit
        work_units: Number of work units
        workers: Pool size
        executor: "processes" or "threads"
        timeout_s: Deadline in seconds
        stream: Output stream (default: stdout)
    """
    out = stream or sys.stdout
    print(format_banner("CONSECUTIVE SQUARES SEARCH", style="━"), file=out)
    print(f"Start Time: {start_time:%Y-%m-%d %H:%M:%S}", file=out)
    print(file=out)
    print(format_banner("Search Configuration"), file=out)
    print(format_config_items({
        "Search range": f"1 to {n:,}",
        "Sequence length (k)": k,
        "Unit size": f"{unit_size:,}",
        "Work units": f"{work_units:,}",
        "Workers": f"{workers} ({executor})",
        "Deadline": format_duration(timeout_s),
    }), file=out)
    print(file=out)


def print_final_summary(outcome: RunOutcome, stream: Optional[TextIO] = None) -> None:
    """Print final search statistics."""
    out = stream or sys.stdout
    status = "complete" if not outcome.timed_out else "TIMED OUT (partial results)"

    print(file=out)
    print(format_banner("Final Summary"), file=out)
    print(format_config_items({
        "Status": status,
        "Units completed": f"{outcome.completed_workers}/{outcome.expected_workers}",
        "Worker faults": len(outcome.faults),
        "Solutions found": len(outcome.solutions),
        "Elapsed": format_duration(outcome.elapsed_s),
        "Throughput": format_rate(outcome.candidates, outcome.elapsed_s, "candidates"),
    }), file=out)
    for fault in outcome.faults:
        print(
            f"  fault in {fault.unit_id} ({fault.start}..{fault.end}): {fault.error}",
            file=out,
        )


def print_solutions(outcome: RunOutcome, stream: Optional[TextIO] = None) -> None:
    """
    Print one solution per line, flagging partial results.

    A timed-out run or one with worker faults gets a trailing marker line so a
    consumer never mistakes a partial list for a complete one.
    """
    out = stream or sys.stdout
    for s in outcome.solutions:
        print(s, file=out)

    if outcome.timed_out:
        print(
            f"{INCOMPLETE_MARKER}: timed out after {outcome.elapsed_s:.1f}s with "
            f"{outcome.completed_workers}/{outcome.expected_workers} units searched; "
            f"results are partial",
            file=out,
        )
    elif outcome.faults:
        print(
            f"{INCOMPLETE_MARKER}: {len(outcome.faults)} unit(s) faulted; results may be "
            f"missing matches",
            file=out,
        )


