import pytest

from app.core.exceptions import PersistenceError
from app.domain.entities import ConstraintKind, ConstraintPriority, RoomType, SessionType
from app.domain.schedule import ScheduleEntry
from app.models.constraint import SchedulingConstraint
from app.models.faculty import Faculty
from app.models.room import Room
from app.models.subject import Subject
from app.models.time_slot import TimeSlot
from app.services.schedule_store import SqlScheduleStore


def seed_catalog(session_factory):
    with session_factory() as db:
        db.add_all(
            [
                Subject(id="s1", name="Algorithms", department="CS", semester=3,
                        session_type=SessionType.lecture, sessions_per_week=2, prerequisite_ids=["s0"]),
                Faculty(id="f1", name="Ada", department="CS", specializations=["Graphs"],
                        available_days=["Monday"], available_start="09:00", available_end="17:00"),
                Room(id="r1", name="C-101", room_type=RoomType.classroom, capacity=40, building="Main"),
                TimeSlot(id="monday_1", day="Monday", start_time="08:00", end_time="09:00", label="P1", sort_order=1),
                SchedulingConstraint(
                    id="c1",
                    kind=ConstraintKind.faculty_unavailable,
                    target_id="f1",
                    restriction={"time_slot_id": "monday_1", "days": ["Friday"]},
                    priority=ConstraintPriority.high,
                ),
            ]
        )
        db.commit()


def entry(session_number, slot_id="monday_1"):
    return ScheduleEntry(
        subject_id="s1",
        faculty_id="f1",
        room_id="r1",
        time_slot_id=slot_id,
        batch="CS_SEM3",
        session_type=SessionType.lecture,
        session_number=session_number,
    )


def test_reference_data_is_converted_to_domain_values(session_factory):
    seed_catalog(session_factory)
    store = SqlScheduleStore(session_factory)

    subject = store.load_subjects()[0]
    member = store.load_faculty()[0]
    room = store.load_rooms()[0]
    slot = store.load_time_slots()[0]
    constraint = store.load_constraints()[0]

    assert subject.batch == "CS_SEM3"
    assert subject.prerequisites == ("s0",)
    assert member.available_days == frozenset({"Monday"})
    assert member.available_hours.start == 9 * 60
    assert room.building == "Main"
    assert slot.start_minutes == 8 * 60
    assert constraint.time_slot_ids == frozenset({"monday_1"})
    assert constraint.days == frozenset({"Friday"})


def test_replace_entries_is_idempotent(session_factory):
    store = SqlScheduleStore(session_factory)

    store.replace_entries("2026-odd", [entry(1), entry(2, "monday_2")])
    store.replace_entries("2026-odd", [entry(1), entry(2, "monday_2")])

    assert store.load_entries("2026-odd") == [entry(1), entry(2, "monday_2")]


def test_replace_only_touches_its_planning_period(session_factory):
    store = SqlScheduleStore(session_factory)
    store.replace_entries("2026-odd", [entry(1)])

    store.replace_entries("2026-even", [entry(1, "monday_3")])

    assert store.load_entries("2026-odd") == [entry(1)]
    assert store.load_entries("2026-even") == [entry(1, "monday_3")]


def test_failed_replace_keeps_previous_entries(session_factory):
    store = SqlScheduleStore(session_factory)
    store.replace_entries("2026-odd", [entry(1), entry(2)])

    # Two rows for the same session violate the unique key, so the whole write is rolled back.
    with pytest.raises(PersistenceError) as exc_info:
        store.replace_entries("2026-odd", [entry(1, "monday_4"), entry(1, "monday_5")])

    assert exc_info.value.status_code == 503
    assert store.load_entries("2026-odd") == [entry(1), entry(2)]
