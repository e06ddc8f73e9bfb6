import random

import pytest

from app.domain.entities import (
    Constraint,
    ConstraintKind,
    ConstraintPriority,
    Faculty,
    Room,
    RoomType,
    SessionType,
    Subject,
)
from app.domain.schedule import Schedule, ScheduleEntry, UnresolvedSession
from app.schemas.optimizer import OptimizationSettings
from app.services.candidate_generator import CandidateGenerator
from app.services.fitness import FitnessEvaluator, Occupancy
from app.services.scheduling_problem import SchedulingProblem


def place(subject, faculty_id, room_id, slot_id, session_number=1):
    return ScheduleEntry(
        subject_id=subject.id,
        faculty_id=faculty_id,
        room_id=room_id,
        time_slot_id=slot_id,
        batch=subject.batch,
        session_type=subject.scheduled_session_type,
        session_number=session_number,
    )


@pytest.fixture()
def example_problem(example_catalog, five_slots):
    return SchedulingProblem.build(
        example_catalog["subjects"], example_catalog["faculty"], example_catalog["rooms"], five_slots
    )


def test_entry_score_rewards_preferred_fitting_placement(example_problem):
    evaluator = FitnessEvaluator(example_problem, OptimizationSettings())
    subject = example_problem.subject_by_id["A"]
    occupancy = Occupancy(slot_by_id=example_problem.slot_by_id)

    # base + morning window + under day load + capacity fit
    assert evaluator.entry_score(place(subject, "fa", "classroom", "monday_1"), occupancy) == 145.0
    # afternoon lecture loses the window bonus
    assert evaluator.entry_score(place(subject, "fa", "classroom", "monday_5"), occupancy) == 125.0


def test_entry_score_is_zero_on_clash(example_problem):
    evaluator = FitnessEvaluator(example_problem, OptimizationSettings())
    subject = example_problem.subject_by_id["A"]
    first = place(subject, "fa", "classroom", "monday_1")
    occupancy = Occupancy([first], slot_by_id=example_problem.slot_by_id)

    assert evaluator.entry_score(place(subject, "fa", "classroom", "monday_1", session_number=2), occupancy) == 0.0


def test_entry_score_is_zero_outside_availability(example_catalog, five_slots):
    faculty = [
        Faculty(id="fa", name="Ada", department="CS", available_days=frozenset({"Tuesday"})),
        example_catalog["faculty"][1],
    ]
    problem = SchedulingProblem.build(example_catalog["subjects"], faculty, example_catalog["rooms"], five_slots)
    evaluator = FitnessEvaluator(problem, OptimizationSettings())
    occupancy = Occupancy(slot_by_id=problem.slot_by_id)

    assert evaluator.entry_score(place(problem.subject_by_id["A"], "fa", "classroom", "monday_1"), occupancy) == 0.0


def test_constraint_priority_orders_penalties(example_catalog, five_slots):
    scores = {}
    for priority in ConstraintPriority:
        constraint = Constraint(
            id=f"c-{priority.value}",
            kind=ConstraintKind.faculty_unavailable,
            target_id="fa",
            priority=priority,
            time_slot_ids=frozenset({"monday_1"}),
        )
        problem = SchedulingProblem.build(
            example_catalog["subjects"],
            example_catalog["faculty"],
            example_catalog["rooms"],
            five_slots,
            [constraint],
        )
        evaluator = FitnessEvaluator(problem, OptimizationSettings())
        occupancy = Occupancy(slot_by_id=problem.slot_by_id)
        subject = problem.subject_by_id["A"]
        scores[priority] = evaluator.entry_score(place(subject, "fa", "classroom", "monday_1"), occupancy)

        schedule = Schedule(entries=(place(subject, "fa", "classroom", "monday_1"),))
        assert evaluator.violation_messages(schedule)

    assert scores[ConstraintPriority.high] < scores[ConstraintPriority.medium] < scores[ConstraintPriority.low]
    assert scores[ConstraintPriority.high] == 45.0


def test_fewer_conflicts_always_score_higher(example_problem):
    evaluator = FitnessEvaluator(example_problem, OptimizationSettings())
    a = example_problem.subject_by_id["A"]
    b = example_problem.subject_by_id["B"]

    # No conflicts, but a lecture in the afternoon and the lab in the morning.
    poor_but_clean = Schedule(
        entries=(
            place(a, "fa", "classroom", "monday_5"),
            place(a, "fa", "classroom", "monday_4", session_number=2),
            place(b, "fb", "lab", "monday_1"),
        )
    )
    # Perfect soft placement, one faculty double booking.
    ideal_with_clash = Schedule(
        entries=(
            place(a, "fa", "classroom", "monday_1"),
            place(a, "fa", "lab", "monday_1", session_number=2),
            place(b, "fb", "lab", "monday_5"),
        )
    )

    clean = evaluator.evaluate(poor_but_clean)
    clashing = evaluator.evaluate(ideal_with_clash)
    assert clean.hard_conflicts == 0
    assert clashing.hard_conflicts == 1
    assert clean.fitness > clashing.fitness


def test_spreading_load_beats_exceeding_daily_limit(week_grid):
    subjects = [
        Subject(id="s1", name="Logic", department="MA", semester=1, session_type=SessionType.lecture,
                sessions_per_week=1),
        Subject(id="s2", name="Sets", department="MA", semester=2, session_type=SessionType.lecture,
                sessions_per_week=1),
    ]
    faculty = [Faculty(id="f1", name="Emmy", department="MA", max_hours_per_day=1)]
    rooms = [Room(id="r1", name="M1", room_type=RoomType.classroom, capacity=40)]
    problem = SchedulingProblem.build(subjects, faculty, rooms, week_grid)
    evaluator = FitnessEvaluator(problem, OptimizationSettings())

    first = place(subjects[0], "f1", "r1", "monday_1")
    same_day = Schedule(entries=(first, place(subjects[1], "f1", "r1", "monday_3")))
    spread = Schedule(entries=(first, place(subjects[1], "f1", "r1", "tuesday_1")))

    assert evaluator.evaluate(same_day).hard_conflicts == 0
    assert evaluator.score(spread) > evaluator.score(same_day)


def test_unresolved_sessions_lower_the_score(demo_problem):
    evaluator = FitnessEvaluator(demo_problem, OptimizationSettings())
    complete = CandidateGenerator(demo_problem, random.Random(5)).generate()
    first = complete.entries[0]
    placed = Schedule(entries=complete.entries[1:])
    missing = Schedule(
        entries=complete.entries[1:],
        unresolved=(UnresolvedSession(first.subject_id, first.session_number, "no room"),),
    )

    result = evaluator.evaluate(missing)
    assert result.unresolved == 1
    assert result.fitness == pytest.approx(evaluator.score(placed) * 0.25)


def test_score_is_never_negative(demo_problem):
    evaluator = FitnessEvaluator(demo_problem, OptimizationSettings())
    generator = CandidateGenerator(demo_problem, random.Random(11))
    template = generator.generate()
    # Pile every session into one slot with one faculty member and one room.
    pile = template.with_entries(
        entry.reassigned(faculty_id="f1", room_id="r1", time_slot_id="monday_1") for entry in template.entries
    )

    for schedule in (template, pile, Schedule()):
        result = evaluator.evaluate(schedule)
        assert 0.0 <= result.fitness <= 100.0
    assert evaluator.evaluate(pile).hard_conflicts > 0


def test_time_preferences_can_be_switched_off(example_problem):
    settings = OptimizationSettings(
        preferences={"prefer_morning_lectures": False, "prefer_afternoon_labs": False},
    )
    evaluator = FitnessEvaluator(example_problem, settings)
    a = example_problem.subject_by_id["A"]
    schedule = Schedule(entries=(place(a, "fa", "classroom", "monday_5"),))

    assert evaluator.evaluate(schedule).components["time_preferences"] == 1.0
