from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field

from app.core.exceptions import InsufficientDataError
from app.domain.entities import Constraint, Faculty, Room, Subject, TimeSlot
from app.domain.schedule import SessionRequest


@dataclass(frozen=True)
class SchedulingProblem:
    """Read-only reference data for one run plus the lookups every strategy needs."""

    subjects: tuple[Subject, ...]
    faculty: tuple[Faculty, ...]
    rooms: tuple[Room, ...]
    time_slots: tuple[TimeSlot, ...]
    constraints: tuple[Constraint, ...] = ()
    subject_by_id: dict[str, Subject] = field(default_factory=dict, compare=False, repr=False)
    faculty_by_id: dict[str, Faculty] = field(default_factory=dict, compare=False, repr=False)
    room_by_id: dict[str, Room] = field(default_factory=dict, compare=False, repr=False)
    slot_by_id: dict[str, TimeSlot] = field(default_factory=dict, compare=False, repr=False)
    eligible_faculty: dict[str, tuple[Faculty, ...]] = field(default_factory=dict, compare=False, repr=False)
    eligible_rooms: dict[str, tuple[Room, ...]] = field(default_factory=dict, compare=False, repr=False)
    sessions: tuple[SessionRequest, ...] = field(default=(), compare=False, repr=False)

    @classmethod
    def build(
        cls,
        subjects: Sequence[Subject],
        faculty: Sequence[Faculty],
        rooms: Sequence[Room],
        time_slots: Sequence[TimeSlot],
        constraints: Sequence[Constraint] = (),
    ) -> "SchedulingProblem":
        missing = [
            name
            for name, values in (("subjects", subjects), ("faculty", faculty), ("rooms", rooms))
            if not values
        ]
        if not time_slots:
            missing.append("time slots")
        if missing:
            raise InsufficientDataError(missing)

        eligible_faculty = {
            subject.id: tuple(member for member in faculty if member.can_teach(subject)) for subject in subjects
        }
        eligible_rooms = {subject.id: tuple(room for room in rooms if room.suits(subject)) for subject in subjects}
        sessions = tuple(
            SessionRequest(
                subject_id=subject.id,
                session_number=number,
                batch=subject.batch,
                session_type=subject.scheduled_session_type,
                week_type=subject.week_type,
            )
            for subject in subjects
            for number in range(1, subject.sessions_per_week + 1)
        )
        return cls(
            subjects=tuple(subjects),
            faculty=tuple(faculty),
            rooms=tuple(rooms),
            time_slots=tuple(time_slots),
            constraints=tuple(constraints),
            subject_by_id={item.id: item for item in subjects},
            faculty_by_id={item.id: item for item in faculty},
            room_by_id={item.id: item for item in rooms},
            slot_by_id={item.id: item for item in time_slots},
            eligible_faculty=eligible_faculty,
            eligible_rooms=eligible_rooms,
            sessions=sessions,
        )

    @property
    def required_sessions(self) -> int:
        return len(self.sessions)

    def session_order(self) -> dict[tuple[str, int], int]:
        return {session.key: index for index, session in enumerate(self.sessions)}

    def ineligibility_reason(self, subject_id: str) -> str | None:
        if not self.eligible_faculty.get(subject_id):
            return "no faculty in the subject's department or with a matching specialization"
        if not self.eligible_rooms.get(subject_id):
            subject = self.subject_by_id[subject_id]
            return f"no room suitable for {subject.session_type.value} sessions"
        return None

    def faculty_available(self, member: Faculty, slot: TimeSlot) -> bool:
        if member.available_days and slot.day not in member.available_days:
            return False
        return member.available_hours.covers(slot.start_minutes, slot.end_minutes)

    def room_available(self, room: Room, slot: TimeSlot) -> bool:
        if room.available_days and slot.day not in room.available_days:
            return False
        return room.available_hours.covers(slot.start_minutes, slot.end_minutes)

    def class_size(self, subject: Subject, default: int) -> int:
        return subject.expected_students or default
