"""Tests for work dispatch, aggregation, completion and timeout handling."""
from __future__ import annotations

import math
import threading
import time

import pytest

from squaresum.errors import PartitionViolation, TimeoutExceeded
from squaresum.predicate import is_square_sum
from squaresum.search.config import SearchConfig
from squaresum.search.coordinator import (
    Coordinator,
    CoordinatorState,
    RunStatus,
    compute_deadline,
    merge,
)
from squaresum.search.messages import DoneSignal, ResultMessage, WorkerStatus
from squaresum.search.worker import run_work_unit
from squaresum.tracking import WorkUnit, partition


def _brute_force(n: int, k: int) -> tuple:
    hits = []
    for s in range(1, n + 1):
        total = sum(i * i for i in range(s, s + k))
        if math.isqrt(total) ** 2 == total:
            hits.append(s)
    return tuple(hits)


def _config(n, k, **overrides):
    overrides.setdefault("executor", "threads")
    overrides.setdefault("workers", 4)
    return SearchConfig(n=n, k=k, **overrides)


def _fault_at_ten(s: int, k: int) -> bool:
    if s == 10:
        raise ArithmeticError("overflow evaluating candidate")
    return is_square_sum(s, k)


# --- literal scenarios -------------------------------------------------------


def test_n3_k2():
    outcome = Coordinator(_config(3, 2)).run()
    assert outcome.status is RunStatus.COMPLETE
    assert outcome.solutions == (3,)


def test_n25_k2():
    outcome = Coordinator(_config(25, 2, unit_size=4)).run()
    assert outcome.status is RunStatus.COMPLETE
    assert outcome.solutions == (3, 20)
    assert outcome.completed_workers == outcome.expected_workers == 7
    assert not outcome.is_partial


def test_n40_k24_includes_one():
    outcome = Coordinator(_config(40, 24, unit_size=6)).run()
    assert 1 in outcome.solutions
    assert outcome.solutions == _brute_force(40, 24)


# --- order independence and merge --------------------------------------------


@pytest.mark.parametrize("n,k", [(50, 2), (120, 11), (60, 24)])
def test_result_independent_of_unit_size(n, k):
    expected = _brute_force(n, k)
    for unit_size in (1, 7, n):
        outcome = Coordinator(_config(n, k, unit_size=unit_size)).run()
        assert outcome.status is RunStatus.COMPLETE
        assert outcome.solutions == expected
        # uniqueness holds because units are disjoint
        assert len(set(outcome.solutions)) == len(outcome.solutions)


def test_merge_sorts_and_is_idempotent():
    accumulated = {204, 3, 119, 20, 696}
    once = merge(accumulated)
    assert once == [3, 20, 119, 204, 696]
    assert merge(merge(accumulated)) == once
    assert merge(set()) == []


# --- faults ------------------------------------------------------------------


def test_worker_fault_isolated_to_its_unit():
    config = _config(25, 2, unit_size=5)
    outcome = Coordinator(config, predicate=_fault_at_ten).run()

    assert outcome.status is RunStatus.COMPLETE
    assert outcome.completed_workers == 5
    assert outcome.solutions == (3, 20)
    assert len(outcome.faults) == 1
    fault = outcome.faults[0]
    assert (fault.start, fault.end) == (6, 10)
    assert fault.status is WorkerStatus.PARTIAL
    assert fault.failed_candidate == 10
    assert outcome.is_partial


def test_crashed_worker_task_is_reported_for(caplog):
    def crashing_worker(request):
        if request.unit.index == 0:
            raise RuntimeError("worker died")
        return run_work_unit(request)

    outcome = Coordinator(_config(25, 2, unit_size=10), worker_fn=crashing_worker).run()

    assert outcome.status is RunStatus.COMPLETE
    assert outcome.solutions == (20,)
    assert [f.status for f in outcome.faults] == [WorkerStatus.FAILED]
    assert "worker died" in outcome.faults[0].error


# --- completion / timeout ----------------------------------------------------


def test_timeout_when_worker_never_responds():
    release = threading.Event()

    def silent_worker(request):
        release.wait(10)

    config = _config(10, 2, workers=2, unit_size=5, timeout_s=0.3)
    began = time.monotonic()
    try:
        outcome = Coordinator(config, worker_fn=silent_worker).run()
    finally:
        release.set()
    waited = time.monotonic() - began

    assert outcome.status is RunStatus.TIMED_OUT
    assert outcome.completed_workers == 0
    assert outcome.solutions == ()
    assert outcome.is_partial
    assert waited < 5
    with pytest.raises(TimeoutExceeded):
        outcome.raise_for_status()


def test_timeout_keeps_partial_results():
    release = threading.Event()

    def stuck_on_second_unit(request):
        if request.unit.index == 1:
            release.wait(10)
            return None
        return run_work_unit(request)

    config = _config(25, 2, workers=3, unit_size=10, timeout_s=0.5)
    try:
        outcome = Coordinator(config, worker_fn=stuck_on_second_unit).run()
    finally:
        release.set()

    assert outcome.status is RunStatus.TIMED_OUT
    assert outcome.solutions == (3,)
    assert outcome.completed_workers == 2
    assert outcome.expected_workers == 3


def test_timeout_sets_cancel_flag():
    seen = {}
    started = threading.Event()

    def waits_for_cancel(request):
        seen["cancel"] = request.cancel
        started.set()
        request.cancel.wait(10)

    config = _config(10, 2, workers=1, unit_size=10, timeout_s=0.3)
    outcome = Coordinator(config, worker_fn=waits_for_cancel).run()

    assert outcome.timed_out
    assert started.is_set()
    assert seen["cancel"].is_set()


def test_complete_run_raise_for_status_is_noop():
    outcome = Coordinator(_config(3, 2)).run()
    outcome.raise_for_status()


def test_default_deadline_scales_with_problem():
    small = Coordinator(_config(100, 2, unit_size=10))
    large = Coordinator(_config(10_000_000, 2, unit_size=1_000_000))
    assert small.timeout_s == pytest.approx(compute_deadline(100, 2, 10))
    assert large.timeout_s > small.timeout_s


def test_explicit_timeout_overrides_scaled_deadline():
    assert Coordinator(_config(100, 2, timeout_s=1.5)).timeout_s == 1.5


# --- pool and message handling -----------------------------------------------


def test_pool_bounds_concurrent_workers():
    lock = threading.Lock()
    counts = {"active": 0, "peak": 0}

    def tracking_worker(request):
        with lock:
            counts["active"] += 1
            counts["peak"] = max(counts["peak"], counts["active"])
        time.sleep(0.005)
        with lock:
            counts["active"] -= 1
        return run_work_unit(request)

    coordinator = Coordinator(_config(60, 2, workers=3, unit_size=2), worker_fn=tracking_worker)
    outcome = coordinator.run()

    assert coordinator.pool_size == 3
    assert outcome.pool_size == 3
    assert outcome.expected_workers == 30
    assert outcome.completed_workers == 30
    assert counts["peak"] <= 3
    assert outcome.solutions == _brute_force(60, 2)


def test_pool_size_capped_by_unit_count():
    coordinator = Coordinator(_config(10, 2, workers=16, unit_size=5))
    assert coordinator.pool_size == 2


def test_duplicate_messages_counted_once():
    def chatty_worker(request):
        run_work_unit(request)
        return run_work_unit(request)

    outcome = Coordinator(_config(25, 2, unit_size=5), worker_fn=chatty_worker).run()

    assert outcome.status is RunStatus.COMPLETE
    assert outcome.completed_workers == outcome.expected_workers == 5
    assert outcome.solutions == (3, 20)


def test_run_only_once():
    coordinator = Coordinator(_config(3, 2))
    coordinator.run()
    with pytest.raises(RuntimeError):
        coordinator.run()


def test_rejects_invalid_partition():
    units = [
        WorkUnit(unit_id="a", index=0, start=1, end=5),
        WorkUnit(unit_id="b", index=1, start=7, end=10),
    ]
    with pytest.raises(PartitionViolation):
        Coordinator(_config(10, 2), units=units)


def test_outcome_timing_is_monotonic():
    outcome = Coordinator(_config(200, 2, unit_size=20, show_progress=True)).run()
    assert outcome.finished_at >= outcome.started_at
    assert outcome.elapsed_s >= 0
    assert outcome.cpu_s >= 0
    assert outcome.start_time is not None


# --- state -------------------------------------------------------------------


def test_state_counts_done_once_per_unit():
    units = partition(10, 5)
    state = CoordinatorState(expected_workers=2)

    assert state.record_done(DoneSignal(units[0].unit_id), units[0])
    assert not state.record_done(DoneSignal(units[0].unit_id), units[0])
    assert not state.record_done(DoneSignal("unit_x"), None)
    assert state.completed_workers == 1
    assert not state.is_complete

    assert state.record_done(DoneSignal(units[1].unit_id), units[1])
    assert state.is_complete
    assert state.completed_workers == state.expected_workers


def test_state_merges_results_and_records_faults():
    units = partition(20, 10)
    state = CoordinatorState(expected_workers=2)

    state.record_result(ResultMessage(units[0].unit_id, (3,)), units[0])
    state.record_result(
        ResultMessage(
            units[1].unit_id, (20,), WorkerStatus.PARTIAL,
            evaluated=10, failed_candidate=20, error="boom",
        ),
        units[1],
    )
    # repeated and unknown results are ignored
    state.record_result(ResultMessage(units[0].unit_id, (4,)), units[0])
    state.record_result(ResultMessage("unit_x", (5,)), None)

    assert state.accumulated == {3, 20}
    assert len(state.faults) == 1
    assert state.faults[0].unit_id == units[1].unit_id
