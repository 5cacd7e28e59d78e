"""Coordinator: dispatches work units and aggregates worker messages."""
from __future__ import annotations

import logging
import multiprocessing as mp
import os
import queue
import threading
import time
from concurrent.futures import Executor, Future, ProcessPoolExecutor, ThreadPoolExecutor
from contextlib import ExitStack
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from functools import partial
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Set, Tuple

from tqdm import tqdm

from squaresum.errors import TimeoutExceeded
from squaresum.predicate import is_square_sum
from squaresum.search.config import SearchConfig
from squaresum.search.messages import ComputeRequest, DoneSignal, ResultMessage, WorkerStatus
from squaresum.search.worker import run_work_unit
from squaresum.tracking import WorkUnit, partition, validate_partition

logger = logging.getLogger(__name__)

__all__ = [
    "RunStatus",
    "WorkerFaultRecord",
    "RunOutcome",
    "CoordinatorState",
    "Coordinator",
    "merge",
    "compute_deadline",
]


class RunStatus(str, Enum):
    COMPLETE = "complete"
    TIMED_OUT = "timed_out"


@dataclass(frozen=True)
class WorkerFaultRecord:
    """A unit whose worker reported a fault instead of a clean scan."""

    unit_id: str
    start: int
    end: int
    status: WorkerStatus
    failed_candidate: Optional[int]
    error: Optional[str]


@dataclass(frozen=True)
class RunOutcome:
    """Terminal result of one search run."""

    status: RunStatus
    solutions: Tuple[int, ...]
    n: int
    k: int
    unit_size: int
    expected_workers: int
    """Number of work units dispatched"""

    completed_workers: int
    pool_size: int
    """Concurrency ceiling of the worker pool"""

    faults: Tuple[WorkerFaultRecord, ...] = ()
    started_at: float = 0.0
    """Monotonic timestamp when dispatch began"""

    finished_at: float = 0.0
    """Monotonic timestamp when the outcome was produced"""

    cpu_started: float = 0.0
    cpu_finished: float = 0.0
    start_time: Optional[datetime] = None

    @property
    def elapsed_s(self) -> float:
        return max(0.0, self.finished_at - self.started_at)

    @property
    def cpu_s(self) -> float:
        return max(0.0, self.cpu_finished - self.cpu_started)

    @property
    def candidates(self) -> int:
        return self.n

    @property
    def timed_out(self) -> bool:
        return self.status is RunStatus.TIMED_OUT

    @property
    def is_partial(self) -> bool:
        """True when the solution list may be missing matches."""
        return self.timed_out or bool(self.faults)

    def raise_for_status(self) -> None:
        """Raise TimeoutExceeded if the run did not finish before its deadline."""
        if self.timed_out:
            raise TimeoutExceeded(
                f"search N={self.n}, k={self.k} timed out after {self.elapsed_s:.1f}s "
                f"({self.completed_workers}/{self.expected_workers} units done)"
            )


def merge(accumulated: Iterable[int]) -> List[int]:
    """
    Order accumulated matches ascending.

    Work units are disjoint, so no deduplication happens here.

    Examples:
        >>> merge({20, 3})
        [3, 20]
    """
    return sorted(accumulated)


def compute_deadline(
    n: int,
    k: int,
    expected_workers: int,
    *,
    base_s: float = 30.0,
    per_candidate_s: float = 2e-6,
    per_unit_s: float = 0.05,
) -> float:
    """
    Maximum wait, in seconds, for a search of size n with expected_workers units.

    Examples:
        >>> round(compute_deadline(1_000_000, 2, 10), 3)
        34.5
    """
    return base_s + per_candidate_s * n * k + per_unit_s * expected_workers


@dataclass
class CoordinatorState:
    """Aggregation state for one run; only the coordinator loop mutates it."""

    expected_workers: int
    completed_workers: int = 0
    accumulated: Set[int] = field(default_factory=set)
    faults: List[WorkerFaultRecord] = field(default_factory=list)
    results_seen: Set[str] = field(default_factory=set)
    done_seen: Set[str] = field(default_factory=set)

    @property
    def is_complete(self) -> bool:
        return self.completed_workers == self.expected_workers

    def record_result(self, message: ResultMessage, unit: Optional[WorkUnit]) -> None:
        if unit is None:
            logger.warning("Ignoring result for unknown unit %s", message.unit_id)
            return
        if message.unit_id in self.results_seen or message.unit_id in self.done_seen:
            logger.warning("Ignoring repeated result for %s", message.unit_id)
            return
        self.results_seen.add(message.unit_id)
        self.accumulated.update(message.solutions)
        if message.faulted:
            self.faults.append(
                WorkerFaultRecord(
                    unit_id=message.unit_id,
                    start=unit.start,
                    end=unit.end,
                    status=message.status,
                    failed_candidate=message.failed_candidate,
                    error=message.error,
                )
            )

    def record_done(self, signal: DoneSignal, unit: Optional[WorkUnit]) -> bool:
        """Count a done signal; return True if it was new."""
        if unit is None:
            logger.warning("Ignoring done signal for unknown unit %s", signal.unit_id)
            return False
        if signal.unit_id in self.done_seen:
            logger.warning("Ignoring repeated done signal for %s", signal.unit_id)
            return False
        if self.is_complete:
            return False
        self.done_seen.add(signal.unit_id)
        self.completed_workers += 1
        return True


class Coordinator:
    """
    Partition the search range, run one worker per unit, and merge results.

    Workers run in a bounded pool. At most ``pool_size * max_in_flight_factor``
    units are dispatched and not yet done; each done signal frees a slot for the
    next unit. All state changes happen in :meth:`run`, one message at a time.

    Args:
        config: Search settings
        worker_fn: Callable run in the pool with a ComputeRequest
        predicate: Candidate test handed to every worker
        units: Pre-built work units (defaults to partition(n, unit_size))
        clock: Monotonic clock, injectable for tests
    """

    def __init__(
        self,
        config: SearchConfig,
        *,
        worker_fn: Callable[[ComputeRequest], Any] = run_work_unit,
        predicate: Callable[[int, int], bool] = is_square_sum,
        units: Optional[Sequence[WorkUnit]] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.config = config
        self.worker_fn = worker_fn
        self.predicate = predicate
        self.clock = clock

        self.unit_size = config.resolved_unit_size
        self.units: List[WorkUnit] = (
            list(units) if units is not None else partition(config.n, self.unit_size)
        )
        validate_partition(self.units, config.n)
        self._units_by_id: Dict[str, WorkUnit] = {u.unit_id: u for u in self.units}

        self.pool_size = max(1, min(config.requested_workers, len(self.units)))
        if config.timeout_s is not None:
            self.timeout_s = config.timeout_s
        else:
            self.timeout_s = compute_deadline(
                config.n,
                config.k,
                len(self.units),
                base_s=config.base_timeout_s,
                per_candidate_s=config.seconds_per_candidate,
                per_unit_s=config.seconds_per_unit,
            )
        self._closed = threading.Event()

    def run(self) -> RunOutcome:
        """Run the search to completion or timeout and return its outcome."""
        if self._closed.is_set():
            raise RuntimeError("Coordinator.run() may only be called once")
        config = self.config
        state = CoordinatorState(expected_workers=len(self.units))

        logger.info(
            "Searching 1..%d for k=%d: %d units of %d, pool of %d %s, deadline %.1fs",
            config.n, config.k, len(self.units), self.unit_size,
            self.pool_size, config.executor, self.timeout_s,
        )

        start_time = datetime.now()
        cpu_started = _cpu_seconds()
        started_at = self.clock()
        deadline = started_at + self.timeout_s
        status = RunStatus.TIMED_OUT

        with ExitStack() as stack:
            inbox, cancel, executor = self._open_channels(stack)
            try:
                status = self._pump(executor, inbox, cancel, state, deadline)
            finally:
                self._closed.set()
                if status is RunStatus.COMPLETE:
                    executor.shutdown(wait=True)
                else:
                    cancel.set()
                    executor.shutdown(wait=False, cancel_futures=True)

        finished_at = self.clock()
        cpu_finished = _cpu_seconds()

        if status is RunStatus.TIMED_OUT:
            logger.warning(
                "Timed out after %.1fs: %d of %d units done, results are partial",
                finished_at - started_at, state.completed_workers, state.expected_workers,
            )
        for fault in state.faults:
            logger.warning(
                "Unit %s (%d..%d) %s: %s",
                fault.unit_id, fault.start, fault.end, fault.status.value, fault.error,
            )

        solutions = tuple(merge(state.accumulated))
        logger.info(
            "Search %s in %.3fs: %d solutions", status.value, finished_at - started_at, len(solutions)
        )

        return RunOutcome(
            status=status,
            solutions=solutions,
            n=config.n,
            k=config.k,
            unit_size=self.unit_size,
            expected_workers=state.expected_workers,
            completed_workers=state.completed_workers,
            pool_size=self.pool_size,
            faults=tuple(state.faults),
            started_at=started_at,
            finished_at=finished_at,
            cpu_started=cpu_started,
            cpu_finished=cpu_finished,
            start_time=start_time,
        )

    def _open_channels(self, stack: ExitStack) -> Tuple[Any, Any, Executor]:
        """Create the inbox, cancel flag and pool; cleanup is registered on stack."""
        if self.config.executor == "threads":
            executor = ThreadPoolExecutor(
                max_workers=self.pool_size, thread_name_prefix="sqs-worker"
            )
            return queue.Queue(), threading.Event(), executor

        ctx = mp.get_context(self.config.start_method)
        logger.info("Using multiprocessing start method: %s", ctx.get_start_method())
        manager = stack.enter_context(ctx.Manager())
        executor = ProcessPoolExecutor(max_workers=self.pool_size, mp_context=ctx)
        return manager.Queue(), manager.Event(), executor

    def _pump(
        self,
        executor: Executor,
        inbox: Any,
        cancel: Any,
        state: CoordinatorState,
        deadline: float,
    ) -> RunStatus:
        """Dispatch units and consume messages until complete or past deadline."""
        pending = iter(self.units)
        max_in_flight = self.pool_size * self.config.max_in_flight_factor
        log_file_path = _get_log_file_path() if self.config.executor == "processes" else None
        log_level = logging.getLogger().getEffectiveLevel()

        def submit_next(n: int = 1) -> None:
            """Submit next n units to the pool."""
            for _ in range(n):
                unit = next(pending, None)
                if unit is None:
                    return
                request = ComputeRequest(
                    unit=unit,
                    k=self.config.k,
                    reply=inbox,
                    cancel=cancel,
                    predicate=self.predicate,
                    cancel_check_every=self.config.cancel_check_every,
                    log_file_path=log_file_path,
                    log_level=log_level,
                )
                future = executor.submit(self.worker_fn, request)
                future.add_done_callback(partial(self._on_worker_exit, unit, inbox))

        with tqdm(
            total=state.expected_workers,
            desc="Units Searched:",
            unit="units",
            ncols=100,
            bar_format="{desc} {percentage:3.0f}%|{bar}| {n_fmt}/{total_fmt} [{elapsed}<{remaining}]",
            disable=not self.config.show_progress,
        ) as pbar:
            submit_next(max_in_flight)

            while not state.is_complete:
                remaining = deadline - self.clock()
                if remaining <= 0:
                    return RunStatus.TIMED_OUT
                try:
                    message = inbox.get(timeout=remaining)
                except queue.Empty:
                    return RunStatus.TIMED_OUT

                unit = self._units_by_id.get(getattr(message, "unit_id", None))
                if isinstance(message, ResultMessage):
                    state.record_result(message, unit)
                elif isinstance(message, DoneSignal):
                    if state.record_done(message, unit):
                        pbar.update(1)
                        submit_next(1)
                else:
                    logger.warning("Ignoring unexpected message %r", message)

        return RunStatus.COMPLETE

    def _on_worker_exit(self, unit: WorkUnit, inbox: Any, future: Future) -> None:
        """Report on behalf of a worker whose task died before it could."""
        if future.cancelled() or self._closed.is_set():
            return
        exc = future.exception()
        if exc is None:
            return

        logger.error("Worker for %s exited abnormally: %s", unit.unit_id, exc)
        try:
            inbox.put(
                ResultMessage(
                    unit_id=unit.unit_id,
                    solutions=(),
                    status=WorkerStatus.FAILED,
                    error=f"{type(exc).__name__}: {exc}",
                )
            )
            inbox.put(DoneSignal(unit_id=unit.unit_id))
        except (OSError, EOFError) as put_exc:
            logger.error("Could not report failure of %s: %s", unit.unit_id, put_exc)


def _cpu_seconds() -> float:
    """User + system CPU time of this process and its reaped children."""
    t = os.times()
    return t.user + t.system + t.children_user + t.children_system


def _get_log_file_path() -> Optional[str]:
    """Extract log file path from root logger's handlers."""
    for handler in logging.getLogger().handlers:
        if isinstance(handler, logging.FileHandler):
            return handler.baseFilename
    return None
