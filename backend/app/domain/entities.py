"""Reference data the optimizer reads at the start of a run.

All values are frozen: a run never edits subjects, faculty, rooms, slots or
constraints, so search workers can share them without copying.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from functools import cached_property

from app.schemas.settings import parse_time_to_minutes


class SessionType(str, Enum):
    lecture = "lecture"
    lab = "lab"
    tutorial = "tutorial"
    seminar = "seminar"


class RoomType(str, Enum):
    classroom = "classroom"
    lab = "lab"
    auditorium = "auditorium"
    seminar_hall = "seminar_hall"


class ConstraintKind(str, Enum):
    faculty_unavailable = "faculty_unavailable"
    room_unavailable = "room_unavailable"
    subject_timing = "subject_timing"
    batch_restriction = "batch_restriction"
    custom = "custom"


class ConstraintPriority(str, Enum):
    low = "low"
    medium = "medium"
    high = "high"


class WeekType(str, Enum):
    odd = "odd"
    even = "even"
    both = "both"


# Room types a session of each kind may be held in, in preference order.
SESSION_ROOM_TYPES: dict[SessionType, tuple[RoomType, ...]] = {
    SessionType.lecture: (RoomType.classroom, RoomType.auditorium),
    SessionType.lab: (RoomType.lab,),
    SessionType.tutorial: (RoomType.classroom, RoomType.seminar_hall),
    SessionType.seminar: (RoomType.seminar_hall, RoomType.classroom),
}


@dataclass(frozen=True)
class HoursWindow:
    start: int = 0
    end: int = 24 * 60

    @classmethod
    def parse(cls, start_time: str | None, end_time: str | None) -> "HoursWindow":
        start = parse_time_to_minutes(start_time) if start_time else 0
        end = parse_time_to_minutes(end_time) if end_time else 24 * 60
        return cls(start=start, end=end)

    def covers(self, start: int, end: int) -> bool:
        return self.start <= start and end <= self.end


@dataclass(frozen=True)
class Subject:
    id: str
    name: str
    department: str
    semester: int
    session_type: SessionType
    sessions_per_week: int
    credits: int = 0
    prerequisites: tuple[str, ...] = ()
    expected_students: int | None = None
    week_type: WeekType = WeekType.both

    @property
    def batch(self) -> str:
        return f"{self.department}_SEM{self.semester}"

    @property
    def scheduled_session_type(self) -> SessionType:
        # Seminars are timetabled as lectures.
        if self.session_type == SessionType.seminar:
            return SessionType.lecture
        return self.session_type


@dataclass(frozen=True)
class Faculty:
    id: str
    name: str
    department: str
    specializations: frozenset[str] = field(default_factory=frozenset)
    available_days: frozenset[str] = field(default_factory=frozenset)
    available_hours: HoursWindow = field(default_factory=HoursWindow)
    max_hours_per_day: int = 6
    max_hours_per_week: int = 20

    def can_teach(self, subject: Subject) -> bool:
        return (
            self.department == subject.department
            or subject.name in self.specializations
            or subject.id in self.specializations
        )


@dataclass(frozen=True)
class Room:
    id: str
    name: str
    room_type: RoomType
    capacity: int
    available_days: frozenset[str] = field(default_factory=frozenset)
    available_hours: HoursWindow = field(default_factory=HoursWindow)
    building: str = ""

    def suits(self, subject: Subject) -> bool:
        return self.room_type in SESSION_ROOM_TYPES[subject.session_type]


@dataclass(frozen=True)
class TimeSlot:
    id: str
    day: str
    start_time: str
    end_time: str
    label: str = ""

    @cached_property
    def start_minutes(self) -> int:
        return parse_time_to_minutes(self.start_time)

    @cached_property
    def end_minutes(self) -> int:
        return parse_time_to_minutes(self.end_time)


@dataclass(frozen=True)
class Constraint:
    """A restriction on one target entity.

    ``time_slot_ids`` and ``days`` name the restricted slots; when both are
    empty the restriction applies to every slot of the target.
    """

    id: str
    kind: ConstraintKind
    target_id: str
    priority: ConstraintPriority = ConstraintPriority.medium
    time_slot_ids: frozenset[str] = field(default_factory=frozenset)
    days: frozenset[str] = field(default_factory=frozenset)
    description: str = ""

    def restricts_slot(self, slot: TimeSlot) -> bool:
        if not self.time_slot_ids and not self.days:
            return True
        return slot.id in self.time_slot_ids or slot.day in self.days
