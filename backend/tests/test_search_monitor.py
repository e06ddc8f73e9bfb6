import threading
import time

import pytest

from app.core.exceptions import RunCancelledError
from app.domain.run import ProgressUpdate
from app.services.search_monitor import SearchMonitor


def test_checkpoint_raises_once_cancelled():
    event = threading.Event()
    monitor = SearchMonitor(run_id="r1", cancel_event=event)
    monitor.begin_stage("genetic", 10)

    assert monitor.checkpoint(0, 1.0) is True
    event.set()
    with pytest.raises(RunCancelledError) as exc_info:
        monitor.checkpoint(1, 1.0)
    assert exc_info.value.run_id == "r1"


def test_iteration_cap_applies_to_capped_stages_only():
    monitor = SearchMonitor(max_iterations=4)

    assert monitor.begin_stage("genetic", 100) == 4
    assert monitor.begin_stage("greedy", 100, capped=False) == 100


def test_progress_is_buffered_and_offset_across_stages():
    updates = []
    monitor = SearchMonitor(listener=updates.append, progress_every=2)
    monitor.plan(10)

    monitor.begin_stage("genetic", 4)
    for iteration in range(4):
        monitor.checkpoint(iteration, 50.0)
    monitor.finish_stage(60.0)
    monitor.begin_stage("simulated_annealing", 6)
    monitor.checkpoint(0, 70.0)
    assert monitor.close() is True

    assert [(item.stage, item.iteration) for item in updates] == [
        ("genetic", 0),
        ("genetic", 2),
        ("genetic", 4),
        ("simulated_annealing", 4),
    ]
    assert list(monitor.buffer) == updates
    assert updates[-1].percent_complete == pytest.approx(40.0)


def test_listener_failure_does_not_stop_search():
    def broken(update: ProgressUpdate) -> None:
        raise RuntimeError("socket closed")

    monitor = SearchMonitor(listener=broken)
    monitor.begin_stage("genetic", 3)

    assert monitor.checkpoint(0, 1.0) is True
    assert len(monitor.buffer) == 1
    assert monitor.close() is True
    assert monitor.latest.iteration == 0


def test_slow_listener_does_not_hold_up_checkpoints():
    delivered = []

    def slow(update: ProgressUpdate) -> None:
        time.sleep(0.2)
        delivered.append(update)

    monitor = SearchMonitor(listener=slow, buffer_size=8)
    monitor.begin_stage("genetic", 50)

    started = time.perf_counter()
    for iteration in range(50):
        monitor.checkpoint(iteration, float(iteration))
    elapsed = time.perf_counter() - started

    assert elapsed < 1.0
    assert len(monitor.buffer) == 8
    assert monitor.latest.iteration == 49
    assert monitor.dispatcher.dropped > 0
    monitor.close(timeout=0.05)
    assert len(delivered) < 50


def test_time_budget_stops_the_stage():
    monitor = SearchMonitor(time_budget_seconds=1e-9)
    monitor.begin_stage("genetic", 10)

    assert monitor.checkpoint(0, 0.0) is False
    assert monitor.budget_exhausted
