from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable, Sequence

from app.domain.schedule import ConflictPair, ScheduleEntry


def _entry_order(entry: ScheduleEntry) -> tuple:
    return (
        entry.subject_id,
        entry.session_number,
        entry.time_slot_id,
        entry.faculty_id,
        entry.room_id,
        entry.batch,
    )


def conflict_kinds(first: ScheduleEntry, second: ScheduleEntry) -> tuple[str, ...]:
    if first.time_slot_id != second.time_slot_id:
        return ()
    kinds: list[str] = []
    if first.faculty_id == second.faculty_id:
        kinds.append("faculty")
    if first.room_id == second.room_id:
        kinds.append("room")
    if first.batch == second.batch:
        kinds.append("batch")
    return tuple(kinds)


class ConflictService:
    """Pairwise double-booking detection over a schedule's entries."""

    def __init__(self, entries: Iterable[ScheduleEntry]):
        self.entries: Sequence[ScheduleEntry] = tuple(entries)

    def detect_conflicts(self) -> list[ConflictPair]:
        conflicts: list[ConflictPair] = []
        # Every pair is compared so cross-type clashes are never skipped.
        n = len(self.entries)
        for i in range(n):
            first = self.entries[i]
            for j in range(i + 1, n):
                second = self.entries[j]
                kinds = conflict_kinds(first, second)
                if not kinds:
                    continue
                left, right = sorted((first, second), key=_entry_order)
                conflicts.append(
                    ConflictPair(first=left, second=right, time_slot_id=first.time_slot_id, kinds=kinds)
                )
        conflicts.sort(key=lambda item: (_entry_order(item.first), _entry_order(item.second)))
        return conflicts

    def count_conflicts(self) -> int:
        # Entries in different slots never clash, so pairs are only compared within a slot bucket.
        buckets: dict[str, list[ScheduleEntry]] = defaultdict(list)
        for entry in self.entries:
            buckets[entry.time_slot_id].append(entry)
        count = 0
        for bucket in buckets.values():
            for i in range(len(bucket)):
                for j in range(i + 1, len(bucket)):
                    if conflict_kinds(bucket[i], bucket[j]):
                        count += 1
        return count


def find_conflicts(entries: Iterable[ScheduleEntry]) -> list[ConflictPair]:
    return ConflictService(entries).detect_conflicts()


def count_conflicts(entries: Iterable[ScheduleEntry]) -> int:
    return ConflictService(entries).count_conflicts()
