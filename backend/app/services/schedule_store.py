from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterable, Sequence
from typing import Protocol

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.exceptions import PersistenceError
from app.domain.entities import Constraint, Faculty, HoursWindow, Room, Subject, TimeSlot
from app.domain.schedule import ScheduleEntry
from app.models.constraint import SchedulingConstraint
from app.models.faculty import Faculty as FacultyRecord
from app.models.room import Room as RoomRecord
from app.models.subject import Subject as SubjectRecord
from app.models.time_slot import TimeSlot as TimeSlotRecord
from app.models.timetable import TimetableEntry

logger = logging.getLogger(__name__)


class ScheduleStore(Protocol):
    def load_subjects(self) -> list[Subject]: ...

    def load_faculty(self) -> list[Faculty]: ...

    def load_rooms(self) -> list[Room]: ...

    def load_time_slots(self) -> list[TimeSlot]: ...

    def load_constraints(self) -> list[Constraint]: ...

    def load_entries(self, planning_period: str) -> list[ScheduleEntry]: ...

    def replace_entries(self, planning_period: str, entries: Sequence[ScheduleEntry]) -> None: ...


def subject_from_record(record: SubjectRecord) -> Subject:
    return Subject(
        id=record.id,
        name=record.name,
        department=record.department,
        semester=record.semester,
        session_type=record.session_type,
        sessions_per_week=record.sessions_per_week,
        credits=record.credits,
        prerequisites=tuple(record.prerequisite_ids or ()),
        expected_students=record.expected_students,
        week_type=record.week_type,
    )


def faculty_from_record(record: FacultyRecord) -> Faculty:
    return Faculty(
        id=record.id,
        name=record.name,
        department=record.department,
        specializations=frozenset(record.specializations or ()),
        available_days=frozenset(record.available_days or ()),
        available_hours=HoursWindow.parse(record.available_start, record.available_end),
        max_hours_per_day=record.max_hours_per_day,
        max_hours_per_week=record.max_hours_per_week,
    )


def room_from_record(record: RoomRecord) -> Room:
    return Room(
        id=record.id,
        name=record.name,
        room_type=record.room_type,
        capacity=record.capacity,
        available_days=frozenset(record.available_days or ()),
        available_hours=HoursWindow.parse(record.available_start, record.available_end),
        building=record.building or "",
    )


def constraint_from_record(record: SchedulingConstraint) -> Constraint:
    restriction = record.restriction or {}
    slot_ids = set(restriction.get("time_slot_ids") or ())
    if restriction.get("time_slot_id"):
        slot_ids.add(restriction["time_slot_id"])
    days = set(restriction.get("days") or ())
    if restriction.get("day"):
        days.add(restriction["day"])
    return Constraint(
        id=record.id,
        kind=record.kind,
        target_id=record.target_id,
        priority=record.priority,
        time_slot_ids=frozenset(slot_ids),
        days=frozenset(days),
        description=record.description or "",
    )


def entry_from_record(record: TimetableEntry) -> ScheduleEntry:
    return ScheduleEntry(
        subject_id=record.subject_id,
        faculty_id=record.faculty_id,
        room_id=record.room_id,
        time_slot_id=record.time_slot_id,
        batch=record.batch,
        session_type=record.session_type,
        week_type=record.week_type,
        session_number=record.session_number,
    )


class SqlScheduleStore:
    """Reads reference data once per run and replaces a period's entries in one transaction."""

    def __init__(self, session_factory: Callable[[], Session]):
        self.session_factory = session_factory

    def _load(self, statement, convert):
        try:
            with self.session_factory() as session:
                return [convert(item) for item in session.execute(statement).scalars().all()]
        except SQLAlchemyError as exc:
            logger.exception("STORE READ FAILED | statement=%s", statement)
            raise PersistenceError("Could not read scheduling data from the store", details={"error": str(exc)}) from exc

    def load_subjects(self) -> list[Subject]:
        return self._load(
            select(SubjectRecord).order_by(SubjectRecord.department, SubjectRecord.semester, SubjectRecord.name),
            subject_from_record,
        )

    def load_faculty(self) -> list[Faculty]:
        return self._load(select(FacultyRecord).order_by(FacultyRecord.name), faculty_from_record)

    def load_rooms(self) -> list[Room]:
        return self._load(select(RoomRecord).order_by(RoomRecord.name), room_from_record)

    def load_time_slots(self) -> list[TimeSlot]:
        return self._load(
            select(TimeSlotRecord).order_by(TimeSlotRecord.sort_order, TimeSlotRecord.id),
            lambda record: TimeSlot(
                id=record.id,
                day=record.day,
                start_time=record.start_time,
                end_time=record.end_time,
                label=record.label,
            ),
        )

    def load_constraints(self) -> list[Constraint]:
        return self._load(select(SchedulingConstraint).order_by(SchedulingConstraint.id), constraint_from_record)

    def load_entries(self, planning_period: str) -> list[ScheduleEntry]:
        return self._load(
            select(TimetableEntry)
            .where(TimetableEntry.planning_period == planning_period)
            .order_by(TimetableEntry.subject_id, TimetableEntry.session_number),
            entry_from_record,
        )

    def replace_entries(self, planning_period: str, entries: Sequence[ScheduleEntry]) -> None:
        session = self.session_factory()
        try:
            session.execute(delete(TimetableEntry).where(TimetableEntry.planning_period == planning_period))
            session.add_all(
                TimetableEntry(
                    planning_period=planning_period,
                    subject_id=entry.subject_id,
                    session_number=entry.session_number,
                    faculty_id=entry.faculty_id,
                    room_id=entry.room_id,
                    time_slot_id=entry.time_slot_id,
                    batch=entry.batch,
                    session_type=entry.session_type,
                    week_type=entry.week_type,
                )
                for entry in entries
            )
            session.commit()
        except SQLAlchemyError as exc:
            session.rollback()
            logger.exception("TIMETABLE REPLACE FAILED | planning_period=%s", planning_period)
            raise PersistenceError(
                "Could not replace timetable entries",
                details={"planning_period": planning_period, "error": str(exc)},
            ) from exc
        finally:
            session.close()
        logger.info("TIMETABLE REPLACED | planning_period=%s | entries=%s", planning_period, len(entries))


class InMemoryScheduleStore:
    def __init__(
        self,
        *,
        subjects: Iterable[Subject] = (),
        faculty: Iterable[Faculty] = (),
        rooms: Iterable[Room] = (),
        time_slots: Iterable[TimeSlot] = (),
        constraints: Iterable[Constraint] = (),
        fail_writes: bool = False,
    ) -> None:
        self.subjects = list(subjects)
        self.faculty = list(faculty)
        self.rooms = list(rooms)
        self.time_slots = list(time_slots)
        self.constraints = list(constraints)
        self.fail_writes = fail_writes
        self.entries: dict[str, tuple[ScheduleEntry, ...]] = {}
        self.write_count = 0
        self._lock = threading.Lock()

    def load_subjects(self) -> list[Subject]:
        return list(self.subjects)

    def load_faculty(self) -> list[Faculty]:
        return list(self.faculty)

    def load_rooms(self) -> list[Room]:
        return list(self.rooms)

    def load_time_slots(self) -> list[TimeSlot]:
        return list(self.time_slots)

    def load_constraints(self) -> list[Constraint]:
        return list(self.constraints)

    def load_entries(self, planning_period: str) -> list[ScheduleEntry]:
        with self._lock:
            return list(self.entries.get(planning_period, ()))

    def replace_entries(self, planning_period: str, entries: Sequence[ScheduleEntry]) -> None:
        if self.fail_writes:
            raise PersistenceError("Could not replace timetable entries", details={"planning_period": planning_period})
        with self._lock:
            self.entries[planning_period] = tuple(entries)
            self.write_count += 1
