import pytest

from app.core.config import get_settings
from app.domain.run import RunStatus
from app.schemas.optimizer import OptimizationAlgorithm, OptimizationSettings
from app.services.optimization_controller import BUDGET_WARNING, OptimizationController
from app.services.schedule_store import InMemoryScheduleStore


def run_settings(**overrides):
    values = {
        "algorithm": OptimizationAlgorithm.genetic,
        "population_size": 6,
        "generations": 5,
        "tournament_size": 2,
        "random_seed": 13,
        "planning_period": "2026-odd",
    }
    values.update(overrides)
    return OptimizationSettings(**values)


@pytest.fixture()
def store(demo_problem):
    return InMemoryScheduleStore(
        subjects=demo_problem.subjects,
        faculty=demo_problem.faculty,
        rooms=demo_problem.rooms,
        time_slots=demo_problem.time_slots,
    )


def make_controller(store, settings, **kwargs):
    return OptimizationController(store=store, settings=settings, app_settings=get_settings(), **kwargs)


def test_completed_run_persists_schedule_and_metrics(store, demo_problem):
    events = []
    controller = make_controller(store, run_settings(), notifier=events.append)

    state = controller.start()

    assert state.status == RunStatus.completed
    assert state.error is None
    assert len(state.schedule) == demo_problem.required_sessions
    assert store.load_entries("2026-odd") == list(state.schedule.entries)
    assert 0 <= state.metrics.overall_score <= 100
    assert state.random_seed == 13
    assert state.progress is not None
    assert events[-1]["event"] == "optimization.completed"
    assert events[-1]["run_id"] == controller.run_id


def test_zero_conflict_run_reports_improvements(store):
    state = make_controller(store, run_settings(algorithm=OptimizationAlgorithm.greedy)).start()

    assert state.metrics.total_conflicts == 0
    assert "Zero scheduling conflicts detected" in state.improvements
    assert "All required sessions scheduled" in state.improvements
    assert not any("conflicts need resolution" in warning for warning in state.warnings)


def test_missing_reference_data_fails_before_search():
    store = InMemoryScheduleStore()
    events = []
    state = make_controller(store, run_settings(), notifier=events.append).start()

    assert state.status == RunStatus.failed
    assert "no subjects, faculty, rooms configured" in state.error
    assert state.schedule is None
    assert store.write_count == 0
    assert events[-1]["event"] == "optimization.failed"


def test_time_grid_falls_back_to_settings(demo_problem):
    store = InMemoryScheduleStore(
        subjects=demo_problem.subjects, faculty=demo_problem.faculty, rooms=demo_problem.rooms
    )

    state = make_controller(store, run_settings(algorithm=OptimizationAlgorithm.greedy)).start()

    assert state.status == RunStatus.completed
    assert {entry.time_slot_id.split("_")[0] for entry in state.schedule.entries} <= {
        day.lower() for day in get_settings().working_days
    }


def test_cancel_before_start_never_runs(store):
    controller = make_controller(store, run_settings())

    assert controller.cancel() == RunStatus.cancelled
    state = controller.start()

    assert state.status == RunStatus.cancelled
    assert store.write_count == 0


def test_cancel_during_search_leaves_store_untouched(store):
    store.entries["2026-odd"] = ("previous",)
    holder = {}

    def listener(update):
        if update.stage == "genetic" and update.iteration >= 2:
            holder["controller"].cancel()

    controller = make_controller(store, run_settings(generations=20000), progress_listener=listener)
    holder["controller"] = controller

    state = controller.start()

    assert state.status == RunStatus.cancelled
    assert state.schedule is None
    assert store.write_count == 0
    assert store.entries["2026-odd"] == ("previous",)


def test_persistence_failure_fails_run_and_keeps_prior_timetable(store):
    store.entries["2026-odd"] = ("previous",)
    store.fail_writes = True

    state = make_controller(store, run_settings()).start()

    assert state.status == RunStatus.failed
    assert state.error == "Could not replace timetable entries"
    assert store.entries["2026-odd"] == ("previous",)


def test_repeated_runs_replace_rather_than_append(store, demo_problem):
    for _ in range(2):
        make_controller(store, run_settings()).start()

    entries = store.load_entries("2026-odd")
    assert store.write_count == 2
    assert len(entries) == demo_problem.required_sessions
    assert len({entry.key for entry in entries}) == len(entries)


def test_time_budget_keeps_best_so_far_and_warns(store, demo_problem):
    state = make_controller(store, run_settings(time_budget_seconds=1e-9, generations=500)).start()

    assert state.status == RunStatus.completed
    assert BUDGET_WARNING in state.warnings
    assert len(state.schedule) == demo_problem.required_sessions


def test_unplaceable_sessions_are_reported(store, demo_problem):
    store.rooms = [room for room in demo_problem.rooms if room.id != "r3"]

    state = make_controller(store, run_settings(algorithm=OptimizationAlgorithm.greedy)).start()

    assert state.status == RunStatus.completed
    assert [(item.subject_id, item.session_number) for item in state.schedule.unresolved] == [
        ("cs-dsl", 1),
        ("cs-dsl", 2),
    ]
    assert any(warning.startswith("Could not schedule cs-dsl session 1") for warning in state.warnings)
    assert "All required sessions scheduled" not in state.improvements


def test_same_seed_reproduces_schedule(store):
    first = make_controller(store, run_settings(algorithm=OptimizationAlgorithm.hybrid)).start()
    second = make_controller(store, run_settings(algorithm=OptimizationAlgorithm.hybrid)).start()

    assert first.schedule == second.schedule
    assert first.metrics == second.metrics
