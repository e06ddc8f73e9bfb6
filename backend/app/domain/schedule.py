from __future__ import annotations

from dataclasses import dataclass, replace

from app.domain.entities import SessionType, WeekType


@dataclass(frozen=True)
class SessionRequest:
    subject_id: str
    session_number: int
    batch: str
    session_type: SessionType
    week_type: WeekType = WeekType.both

    @property
    def key(self) -> tuple[str, int]:
        return (self.subject_id, self.session_number)


@dataclass(frozen=True)
class ScheduleEntry:
    subject_id: str
    faculty_id: str
    room_id: str
    time_slot_id: str
    batch: str
    session_type: SessionType
    week_type: WeekType = WeekType.both
    session_number: int = 1

    @property
    def key(self) -> tuple[str, int]:
        return (self.subject_id, self.session_number)

    def reassigned(
        self,
        *,
        faculty_id: str | None = None,
        room_id: str | None = None,
        time_slot_id: str | None = None,
    ) -> "ScheduleEntry":
        return replace(
            self,
            faculty_id=faculty_id if faculty_id is not None else self.faculty_id,
            room_id=room_id if room_id is not None else self.room_id,
            time_slot_id=time_slot_id if time_slot_id is not None else self.time_slot_id,
        )


@dataclass(frozen=True)
class ConflictPair:
    first: ScheduleEntry
    second: ScheduleEntry
    time_slot_id: str
    kinds: tuple[str, ...]

    @property
    def identity(self) -> tuple[frozenset, tuple[str, ...]]:
        # Order-independent identity so detection can be compared across entry orders.
        return (frozenset((self.first, self.second)), self.kinds)

    def describe(self) -> str:
        return (
            f"{self.first.subject_id} (session {self.first.session_number}) and "
            f"{self.second.subject_id} (session {self.second.session_number}) share slot "
            f"{self.time_slot_id} ({', '.join(self.kinds)})"
        )


@dataclass(frozen=True)
class UnresolvedSession:
    subject_id: str
    session_number: int
    reason: str

    def describe(self) -> str:
        return f"Could not schedule {self.subject_id} session {self.session_number}: {self.reason}"


@dataclass(frozen=True)
class Schedule:
    """Ordered entries plus the sessions that could not be placed."""

    entries: tuple[ScheduleEntry, ...] = ()
    unresolved: tuple[UnresolvedSession, ...] = ()

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self):
        return iter(self.entries)

    def with_entries(self, entries) -> "Schedule":
        return Schedule(entries=tuple(entries), unresolved=self.unresolved)

    def replace_entry(self, index: int, entry: ScheduleEntry) -> "Schedule":
        entries = list(self.entries)
        entries[index] = entry
        return Schedule(entries=tuple(entries), unresolved=self.unresolved)

    def entry_for(self, key: tuple[str, int]) -> ScheduleEntry | None:
        for entry in self.entries:
            if entry.key == key:
                return entry
        return None
