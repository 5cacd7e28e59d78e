"""Command-line interface: squaresum N K [options]."""
from __future__ import annotations

import argparse
import logging
import sys
from typing import List, NoReturn, Optional

from squaresum.errors import InvalidArgument
from squaresum.search.config import SearchConfig
from squaresum.search.core import run_search
from squaresum.search.logger import setup_logger
from squaresum.search.reporter import print_solutions

logger = logging.getLogger(__name__)

__all__ = ["EXIT_OK", "EXIT_FAULTS", "EXIT_USAGE", "EXIT_TIMEOUT", "build_parser", "parse_args", "main", "run"]

EXIT_OK = 0
EXIT_FAULTS = 1
EXIT_USAGE = 2
EXIT_TIMEOUT = 3


class _Parser(argparse.ArgumentParser):
    """ArgumentParser that raises InvalidArgument instead of exiting."""

    def error(self, message: str) -> NoReturn:
        raise InvalidArgument(message, usage=self.format_usage())


def _positive_int(text: str) -> int:
    try:
        value = int(text)
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected an integer, got {text!r}")
    if value < 1:
        raise argparse.ArgumentTypeError(f"expected a positive integer, got {value}")
    return value


def _positive_float(text: str) -> float:
    try:
        value = float(text)
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected a number, got {text!r}")
    if value <= 0:
        raise argparse.ArgumentTypeError(f"expected a positive number, got {value}")
    return value


def build_parser() -> argparse.ArgumentParser:
    parser = _Parser(
        prog="squaresum",
        description=(
            "Find every s in 1..N such that s^2 + (s+1)^2 + ... + (s+K-1)^2 "
            "is a perfect square."
        ),
    )
    parser.add_argument("n", metavar="N", type=_positive_int, help="search upper bound")
    parser.add_argument("k", metavar="K", type=_positive_int, help="number of consecutive squares")
    parser.add_argument("--workers", type=_positive_int, default=None,
                        help="worker pool size (default: CPUs - 1)")
    parser.add_argument("--unit-size", type=_positive_int, default=None,
                        help="starting points per work unit (default: ~4 units per worker)")
    parser.add_argument("--threads", action="store_true",
                        help="use a thread pool instead of worker processes")
    parser.add_argument("--timeout", type=_positive_float, default=None,
                        help="deadline in seconds (default: scaled to N and K)")
    parser.add_argument("--progress", action="store_true", help="show a progress bar on stderr")
    parser.add_argument("--summary", action="store_true",
                        help="print configuration header and final summary")
    parser.add_argument("--metrics", action="store_true",
                        help="write metrics_N{N}_k{K}.txt")
    parser.add_argument("--metrics-dir", default=".",
                        help="directory for the metrics report (default: current directory)")
    parser.add_argument("--log-dir", default=None, help="write a timestamped log file here")
    parser.add_argument("-v", "--verbose", action="store_true", help="log at DEBUG level")
    return parser


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """
    Parse command-line arguments.

    Raises:
        InvalidArgument: If N or K is missing, not an integer, or not positive
    """
    return build_parser().parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    """
    Run the CLI and return its exit status.

    Exit codes:
        0: search complete
        1: search complete but some units faulted
        2: invalid arguments
        3: search timed out, results are partial
    """
    try:
        args = parse_args(argv)
        config = SearchConfig(
            n=args.n,
            k=args.k,
            workers=args.workers,
            unit_size=args.unit_size,
            executor="threads" if args.threads else "processes",
            timeout_s=args.timeout,
            show_progress=args.progress,
        )
    except InvalidArgument as exc:
        if exc.usage:
            sys.stderr.write(exc.usage)
        print(f"squaresum: error: {exc}", file=sys.stderr)
        return EXIT_USAGE

    if args.log_dir:
        level = logging.DEBUG if args.verbose else logging.INFO
        setup_logger(args.log_dir, level=level, force=True)

    outcome = run_search(
        config,
        print_report=args.summary,
        metrics_dir=args.metrics_dir if args.metrics else None,
    )
    print_solutions(outcome)

    if outcome.timed_out:
        return EXIT_TIMEOUT
    if outcome.faults:
        return EXIT_FAULTS
    return EXIT_OK


def run() -> None:
    """Console-script entry point."""
    sys.exit(main())
