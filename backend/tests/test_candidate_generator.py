import random

import pytest

from app.core.exceptions import InsufficientDataError, NoEligibleAssignmentError
from app.domain.entities import Faculty, Room, RoomType, SessionType, Subject
from app.domain.schedule import Schedule
from app.services.candidate_generator import CandidateGenerator
from app.services.conflict_service import count_conflicts
from app.services.scheduling_problem import SchedulingProblem


def test_generate_covers_every_required_session(demo_problem):
    schedule = CandidateGenerator(demo_problem, random.Random(1)).generate()

    expected = sum(subject.sessions_per_week for subject in demo_problem.subjects)
    assert len(schedule) == expected
    assert not schedule.unresolved
    assert [entry.key for entry in schedule.entries] == [session.key for session in demo_problem.sessions]


def test_generated_entries_respect_eligibility(demo_problem):
    schedule = CandidateGenerator(demo_problem, random.Random(2)).generate()

    for entry in schedule.entries:
        eligible_faculty = {member.id for member in demo_problem.eligible_faculty[entry.subject_id]}
        eligible_rooms = {room.id for room in demo_problem.eligible_rooms[entry.subject_id]}
        assert entry.faculty_id in eligible_faculty
        assert entry.room_id in eligible_rooms


def test_seminars_are_scheduled_as_lectures(demo_problem):
    schedule = CandidateGenerator(demo_problem, random.Random(3)).generate()
    seminar = schedule.entry_for(("cs-sem", 1))

    assert seminar is not None
    assert seminar.session_type == SessionType.lecture


def test_plentiful_resources_give_conflict_free_candidates(demo_problem):
    for seed in range(5):
        schedule = CandidateGenerator(demo_problem, random.Random(seed)).generate()
        assert count_conflicts(schedule.entries) == 0


def test_same_seed_gives_same_schedule(demo_problem):
    first = CandidateGenerator(demo_problem, random.Random(42)).generate()
    second = CandidateGenerator(demo_problem, random.Random(42)).generate()

    assert first == second


def test_subject_without_eligible_room_is_recorded_unresolved(five_slots):
    subjects = [
        Subject(id="ph-lab", name="Optics Lab", department="PH", semester=2, session_type=SessionType.lab,
                sessions_per_week=2),
        Subject(id="ph-mech", name="Mechanics", department="PH", semester=2, session_type=SessionType.lecture,
                sessions_per_week=1),
    ]
    faculty = [Faculty(id="f1", name="Marie", department="PH")]
    rooms = [Room(id="r1", name="P1", room_type=RoomType.classroom, capacity=40)]
    problem = SchedulingProblem.build(subjects, faculty, rooms, five_slots)
    generator = CandidateGenerator(problem, random.Random(0))

    schedule = generator.generate()

    assert [entry.key for entry in schedule.entries] == [("ph-mech", 1)]
    assert [(item.subject_id, item.session_number) for item in schedule.unresolved] == [("ph-lab", 1), ("ph-lab", 2)]
    assert "lab" in schedule.unresolved[0].reason

    with pytest.raises(NoEligibleAssignmentError) as exc_info:
        generator.check_eligible(problem.sessions[0])
    assert exc_info.value.details["subject_id"] == "ph-lab"


def test_complete_keeps_existing_entries(demo_problem):
    generator = CandidateGenerator(demo_problem, random.Random(9))
    full = generator.generate()
    partial = Schedule(entries=full.entries[:3])

    completed = generator.complete(partial)

    assert completed.entries[:3] == full.entries[:3]
    assert len(completed) == len(full)


def test_problem_requires_reference_data(five_slots):
    with pytest.raises(InsufficientDataError) as exc_info:
        SchedulingProblem.build([], [], [], five_slots)

    assert exc_info.value.missing == ["subjects", "faculty", "rooms"]
    assert exc_info.value.status_code == 422
