"""Plain-text metrics report for a finished search."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Union

from squaresum.search.coordinator import RunOutcome
from squaresum.utilities.display import format_duration, format_rate, format_solutions

logger = logging.getLogger(__name__)

__all__ = ["metrics_filename", "format_metrics_report", "write_metrics_report"]


def metrics_filename(n: int, k: int) -> str:
    """
    Examples:
        >>> metrics_filename(1000, 24)
        'metrics_N1000_k24.txt'
    """
    return f"metrics_N{n}_k{k}.txt"


def format_metrics_report(outcome: RunOutcome) -> str:
    """
    Render problem size, timing, throughput and solutions as text.

    The CPU/REAL ratio compares CPU time spent by this process and its reaped
    worker processes against wall time; it reads "N/A (too fast to measure)"
    when no wall time elapsed.
    """
    real = outcome.elapsed_s
    cpu = outcome.cpu_s
    ratio = f"{cpu / real:.2f}" if real > 0 else "N/A (too fast to measure)"
    started = f"{outcome.start_time:%Y-%m-%d %H:%M:%S}" if outcome.start_time else "unknown"

    lines = [
        f"Search metrics for N={outcome.n}, k={outcome.k}",
        "",
        f"Start time:         {started}",
        f"Status:             {outcome.status.value}",
        f"Problem size (N):   {outcome.n}",
        f"Sequence length:    {outcome.k}",
        f"Unit size:          {outcome.unit_size}",
        f"Work units:         {outcome.expected_workers}",
        f"Units completed:    {outcome.completed_workers}",
        f"Workers:            {outcome.pool_size}",
        f"Worker faults:      {len(outcome.faults)}",
        f"Elapsed (real):     {real:.3f}s ({format_duration(real)})",
        f"CPU time:           {cpu:.3f}s",
        f"CPU/REAL ratio:     {ratio}",
        f"Throughput:         {format_rate(outcome.candidates, real, 'candidates')}",
        f"Solutions found:    {len(outcome.solutions)}",
        f"Solutions:          {format_solutions(outcome.solutions)}",
    ]
    for fault in outcome.faults:
        lines.append(f"Fault:              {fault.unit_id} {fault.status.value}: {fault.error}")
    return "\n".join(lines) + "\n"


def write_metrics_report(outcome: RunOutcome, directory: Union[str, Path] = ".") -> Path:
    """
    Write metrics_N{N}_k{k}.txt into directory.

    Returns:
        Path of the written report
    """
    directory = Path(directory).expanduser()
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / metrics_filename(outcome.n, outcome.k)
    path.write_text(format_metrics_report(outcome), encoding="utf-8")
    logger.info("Metrics written to %s", path)
    return path
