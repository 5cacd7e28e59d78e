"""Worker task that searches one work unit for square sums."""
from __future__ import annotations

import logging
import os
from typing import Callable, Optional

import setproctitle

from squaresum.errors import WorkerFault
from squaresum.search.logger import LOG_DATE_FORMAT, LOG_FORMAT
from squaresum.search.messages import ComputeRequest, DoneSignal, ResultMessage, WorkerStatus

logger = logging.getLogger(__name__)

__all__ = ["evaluate_unit", "run_work_unit"]

# Raised by manager proxies once the coordinator has torn its channels down
_CHANNEL_ERRORS = (EOFError, OSError)


def evaluate_unit(
    request: ComputeRequest,
    log: Optional[logging.Logger] = None,
) -> ResultMessage:
    """
    Test every starting point in the request's unit against its predicate.

    A fault raised by the predicate stops the scan at that candidate; the
    matches found before it are still returned, tagged PARTIAL (or FAILED when
    nothing was evaluated yet). A set cancel flag stops the scan the same way
    with status CANCELLED.

    Args:
        request: Unit, sequence length and predicate to apply
        log: Logger to report faults on (defaults to the module logger)

    Returns:
        ResultMessage with matches in ascending order
    """
    log = log or logger
    unit = request.unit
    cancel = request.cancel
    check_every = max(1, request.cancel_check_every)
    solutions = []
    evaluated = 0

    try:
        for s in unit:
            if cancel is not None and evaluated % check_every == 0 and _cancel_requested(cancel, log):
                log.info("Unit %s cancelled after %d candidates", unit.unit_id, evaluated)
                return ResultMessage(
                    unit_id=unit.unit_id,
                    solutions=tuple(solutions),
                    status=WorkerStatus.CANCELLED,
                    evaluated=evaluated,
                )
            if _evaluate(request.predicate, s, request.k):
                solutions.append(s)
            evaluated += 1

    except WorkerFault as fault:
        status = WorkerStatus.PARTIAL if evaluated else WorkerStatus.FAILED
        log.error(
            "Unit %s (%d..%d): %s after %d candidates",
            unit.unit_id, unit.start, unit.end, fault, evaluated,
        )
        return ResultMessage(
            unit_id=unit.unit_id,
            solutions=tuple(solutions),
            status=status,
            evaluated=evaluated,
            failed_candidate=fault.candidate,
            error=str(fault),
        )

    return ResultMessage(
        unit_id=unit.unit_id,
        solutions=tuple(solutions),
        status=WorkerStatus.OK,
        evaluated=evaluated,
    )


def run_work_unit(request: ComputeRequest) -> ResultMessage:
    """
    Worker entry point: evaluate the unit, then report to the coordinator.

    Sends exactly one ResultMessage followed by exactly one DoneSignal to
    request.reply, whatever happens during evaluation. If the coordinator has
    already shut its channels down (after a timeout), nothing is sent.

    Returns:
        The ResultMessage that was sent
    """
    unit = request.unit
    worker_logger = _worker_logger(request.log_file_path, request.log_level)

    try:
        setproctitle.setproctitle(f"sqs:worker[{unit.index:03d}]")
    except Exception as exc:
        worker_logger.debug("Could not set process title: %s", exc)

    worker_logger.debug(
        "Worker (PID %s): searching %s (%d..%d, k=%d)",
        os.getpid(), unit.unit_id, unit.start, unit.end, request.k,
    )

    try:
        result = evaluate_unit(request, worker_logger)
    except Exception as exc:
        worker_logger.error("Worker (PID %s): %s crashed: %s", os.getpid(), unit.unit_id, exc)
        result = ResultMessage(
            unit_id=unit.unit_id,
            solutions=(),
            status=WorkerStatus.FAILED,
            error=f"{type(exc).__name__}: {exc}",
        )

    try:
        request.reply.put(result)
        request.reply.put(DoneSignal(unit_id=unit.unit_id))
    except _CHANNEL_ERRORS as exc:
        worker_logger.debug(
            "Worker (PID %s): coordinator gone, dropping report for %s: %s",
            os.getpid(), unit.unit_id, exc,
        )
        return result

    worker_logger.debug(
        "Worker (PID %s): %s %s, %d matches",
        os.getpid(), unit.unit_id, result.status.value, len(result.solutions),
    )
    return result


def _cancel_requested(cancel, log: logging.Logger) -> bool:
    """True if the cancel flag is set or the coordinator can no longer be reached."""
    try:
        return bool(cancel.is_set())
    except _CHANNEL_ERRORS as exc:
        log.debug("Cancel flag unreachable, stopping: %s", exc)
        return True


def _evaluate(predicate: Callable[[int, int], bool], s: int, k: int) -> bool:
    try:
        return bool(predicate(s, k))
    except Exception as exc:
        raise WorkerFault(s, exc) from exc


def _worker_logger(log_file_path: Optional[str], level: int = logging.INFO) -> logging.Logger:
    """Logger writing to the run's log file from inside a worker process."""
    if not log_file_path:
        return logger

    worker_logger = logging.getLogger(f"squaresum.worker_{os.getpid()}")

    log_file_path = os.path.abspath(log_file_path)
    if not any(getattr(h, "baseFilename", None) == log_file_path for h in worker_logger.handlers):
        for handler in list(worker_logger.handlers):
            worker_logger.removeHandler(handler)
            handler.close()
        try:
            file_handler = logging.FileHandler(log_file_path, mode="a")
        except OSError as e:
            logger.warning(
                "Worker (PID %s): Could not set up file logging: %s", os.getpid(), e
            )
            return logger
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT))
        worker_logger.addHandler(file_handler)
        worker_logger.propagate = False

    worker_logger.setLevel(level)

    return worker_logger
