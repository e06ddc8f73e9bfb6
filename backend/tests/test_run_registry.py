import pytest

from app.core.config import get_settings
from app.core.exceptions import RunNotFoundError
from app.domain.run import RunStatus
from app.schemas.optimizer import OptimizationAlgorithm, OptimizationSettings
from app.services.run_registry import RunRegistry
from app.services.schedule_store import InMemoryScheduleStore

GREEDY = OptimizationSettings(algorithm=OptimizationAlgorithm.greedy, random_seed=1)


@pytest.fixture()
def memory_registry(demo_problem):
    events = []
    store = InMemoryScheduleStore(
        subjects=demo_problem.subjects,
        faculty=demo_problem.faculty,
        rooms=demo_problem.rooms,
        time_slots=demo_problem.time_slots,
    )
    registry = RunRegistry(
        store=store,
        app_settings=get_settings(),
        max_workers=1,
        retained_runs=2,
        notifier=events.append,
    )
    registry.events = events
    yield registry
    registry.shutdown()


def test_started_run_completes_in_background(memory_registry):
    queued = memory_registry.start(GREEDY)

    assert queued.status in (RunStatus.idle, RunStatus.running, RunStatus.completed)
    state = memory_registry.wait(queued.run_id, timeout=30)

    assert state.status == RunStatus.completed
    assert memory_registry.get(queued.run_id).schedule == state.schedule
    assert memory_registry.events[-1]["event"] == "optimization.completed"
    assert memory_registry.active_count() == 0


def test_unknown_run_raises_not_found(memory_registry):
    with pytest.raises(RunNotFoundError) as exc_info:
        memory_registry.get("missing")

    assert exc_info.value.status_code == 404
    with pytest.raises(RunNotFoundError):
        memory_registry.cancel("missing")


def test_finished_runs_beyond_retention_are_evicted(memory_registry):
    run_ids = []
    for _ in range(3):
        run_id = memory_registry.start(GREEDY).run_id
        memory_registry.wait(run_id, timeout=30)
        run_ids.append(run_id)

    listed = [state.run_id for state in memory_registry.list_runs()]

    assert listed == [run_ids[2], run_ids[1]]
    with pytest.raises(RunNotFoundError):
        memory_registry.get(run_ids[0])


def test_cancel_of_finished_run_keeps_its_status(memory_registry):
    run_id = memory_registry.start(GREEDY).run_id
    memory_registry.wait(run_id, timeout=30)

    assert memory_registry.cancel(run_id).status == RunStatus.completed
