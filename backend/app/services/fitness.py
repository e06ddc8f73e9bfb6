from __future__ import annotations

import math
from collections import Counter, defaultdict
from collections.abc import Iterable
from dataclasses import dataclass, field

from app.domain.entities import Constraint, ConstraintKind, ConstraintPriority, Faculty, Room, TimeSlot
from app.domain.schedule import Schedule, ScheduleEntry
from app.schemas.optimizer import OptimizationSettings
from app.services.conflict_service import count_conflicts
from app.services.scheduling_problem import SchedulingProblem

# Relative weight of violated constraints, high:medium:low = 5:2:1.
PRIORITY_POINTS = {
    ConstraintPriority.high: 5,
    ConstraintPriority.medium: 2,
    ConstraintPriority.low: 1,
}

# Per-entry point scale used when placing one session at a time.
ENTRY_BASE_SCORE = 100.0
ENTRY_TIME_WINDOW_BONUS = 20.0
ENTRY_UNDER_DAY_LOAD_BONUS = 10.0
ENTRY_OVER_DAY_LOAD_PENALTY = 30.0
ENTRY_CAPACITY_FIT_BONUS = 15.0
ENTRY_UNDERSIZED_PENALTY = 50.0
ENTRY_OVERSIZED_PENALTY = 5.0
ENTRY_CONSTRAINT_PENALTY = 20.0

# Schedule scores live in [75, 100] before conflicts; every conflict halves what is left,
# so a schedule with fewer conflicts always outranks one with more.
QUALITY_FLOOR = 0.75
CONFLICT_DECAY = 0.5
UNRESOLVED_CONFLICT_EQUIVALENT = 2
BACK_TO_BACK_GAP_MINUTES = 15


@dataclass
class EvaluationResult:
    fitness: float
    hard_conflicts: int
    soft_penalty: float
    unresolved: int = 0
    components: dict[str, float] = field(default_factory=dict)

    @property
    def cost(self) -> float:
        return 100.0 - self.fitness


def is_better_eval(left: EvaluationResult, right: EvaluationResult) -> bool:
    """Strict comparison: ties keep the incumbent."""
    return left.fitness > right.fitness


class Occupancy:
    """Resources already taken by a partial schedule, for incremental placement."""

    def __init__(self, entries: Iterable[ScheduleEntry] = (), *, slot_by_id: dict[str, TimeSlot]):
        self.slot_by_id = slot_by_id
        self.faculty_slots: set[tuple[str, str]] = set()
        self.room_slots: set[tuple[str, str]] = set()
        self.batch_slots: set[tuple[str, str]] = set()
        self.faculty_day_load: Counter[tuple[str, str]] = Counter()
        self.faculty_week_load: Counter[str] = Counter()
        for entry in entries:
            self.add(entry)

    def add(self, entry: ScheduleEntry) -> None:
        slot = self.slot_by_id[entry.time_slot_id]
        self.faculty_slots.add((entry.faculty_id, slot.id))
        self.room_slots.add((entry.room_id, slot.id))
        self.batch_slots.add((entry.batch, slot.id))
        self.faculty_day_load[(entry.faculty_id, slot.day)] += 1
        self.faculty_week_load[entry.faculty_id] += 1

    def clashes(self, faculty_id: str, room_id: str, batch: str, slot_id: str) -> bool:
        return (
            (faculty_id, slot_id) in self.faculty_slots
            or (room_id, slot_id) in self.room_slots
            or (batch, slot_id) in self.batch_slots
        )


class FitnessEvaluator:
    def __init__(self, problem: SchedulingProblem, settings: OptimizationSettings):
        self.problem = problem
        self.settings = settings
        self.weights = settings.constraint_weights
        self.constraints_by_target: dict[str, list[Constraint]] = defaultdict(list)
        for constraint in problem.constraints:
            self.constraints_by_target[constraint.target_id].append(constraint)
        self.working_day_count = max(1, len({slot.day for slot in problem.time_slots}))
        self.eval_cache: dict[tuple[tuple[ScheduleEntry, ...], int], EvaluationResult] = {}

    # -- per-entry contribution -------------------------------------------------

    def matching_constraints(self, entry: ScheduleEntry) -> list[Constraint]:
        slot = self.problem.slot_by_id[entry.time_slot_id]
        matched: list[Constraint] = []
        for target in {entry.faculty_id, entry.room_id, entry.subject_id, entry.batch}:
            for constraint in self.constraints_by_target.get(target, ()):
                if not self._targets(constraint, entry):
                    continue
                if constraint.restricts_slot(slot):
                    matched.append(constraint)
        return matched

    @staticmethod
    def _targets(constraint: Constraint, entry: ScheduleEntry) -> bool:
        if constraint.kind == ConstraintKind.faculty_unavailable:
            return constraint.target_id == entry.faculty_id
        if constraint.kind == ConstraintKind.room_unavailable:
            return constraint.target_id == entry.room_id
        if constraint.kind == ConstraintKind.subject_timing:
            return constraint.target_id == entry.subject_id
        if constraint.kind == ConstraintKind.batch_restriction:
            return constraint.target_id == entry.batch
        return constraint.target_id in (entry.faculty_id, entry.room_id, entry.subject_id, entry.batch)

    def _capacity_points(self, entry: ScheduleEntry, room: Room) -> float:
        subject = self.problem.subject_by_id[entry.subject_id]
        size = self.problem.class_size(subject, self.settings.expected_class_size)
        if room.capacity < size:
            return -ENTRY_UNDERSIZED_PENALTY
        if room.capacity < 1.5 * size:
            return ENTRY_CAPACITY_FIT_BONUS
        return -ENTRY_OVERSIZED_PENALTY

    def _in_preferred_window(self, entry: ScheduleEntry, slot: TimeSlot) -> bool | None:
        window = self.settings.window_for(entry.session_type)
        if window is None:
            return None
        return window.contains(slot.start_minutes)

    def entry_score(self, entry: ScheduleEntry, occupancy: Occupancy) -> float:
        """Score one tentative placement against a partial schedule; 0 excludes it."""
        slot = self.problem.slot_by_id[entry.time_slot_id]
        member: Faculty = self.problem.faculty_by_id[entry.faculty_id]
        room = self.problem.room_by_id[entry.room_id]
        if occupancy.clashes(entry.faculty_id, entry.room_id, entry.batch, slot.id):
            return 0.0
        if not self.problem.faculty_available(member, slot) or not self.problem.room_available(room, slot):
            return 0.0

        score = ENTRY_BASE_SCORE
        if self._in_preferred_window(entry, slot):
            score += ENTRY_TIME_WINDOW_BONUS
        if occupancy.faculty_day_load[(member.id, slot.day)] < member.max_hours_per_day:
            score += ENTRY_UNDER_DAY_LOAD_BONUS
        else:
            score -= ENTRY_OVER_DAY_LOAD_PENALTY
        score += self._capacity_points(entry, room)
        for constraint in self.matching_constraints(entry):
            score -= ENTRY_CONSTRAINT_PENALTY * PRIORITY_POINTS[constraint.priority]
        return max(0.0, score)

    # -- whole-schedule components ---------------------------------------------

    def _faculty_workload_quality(self, entries: tuple[ScheduleEntry, ...]) -> float:
        day_load: Counter[tuple[str, str]] = Counter()
        week_load: Counter[str] = Counter()
        for entry in entries:
            day_load[(entry.faculty_id, self.problem.slot_by_id[entry.time_slot_id].day)] += 1
            week_load[entry.faculty_id] += 1

        points = 0.0
        for (faculty_id, _day), load in day_load.items():
            limit = self.problem.faculty_by_id[faculty_id].max_hours_per_day
            points += min(load, limit) - 3 * max(0, load - limit)
        for faculty_id, load in week_load.items():
            limit = self.problem.faculty_by_id[faculty_id].max_hours_per_week
            points -= 3 * max(0, load - limit)
        average = max(-3.0, points / len(entries))
        quality = (average + 3.0) / 4.0

        if self.settings.preferences.minimize_faculty_travel:
            quality = 0.8 * quality + 0.2 * self._travel_quality(entries)
        return quality

    def _travel_quality(self, entries: tuple[ScheduleEntry, ...]) -> float:
        by_faculty_day: dict[tuple[str, str], list[tuple[int, str]]] = defaultdict(list)
        for entry in entries:
            slot = self.problem.slot_by_id[entry.time_slot_id]
            building = self.problem.room_by_id[entry.room_id].building
            by_faculty_day[(entry.faculty_id, slot.day)].append((slot.start_minutes, building))
        transitions = 0
        moves = 0
        for sessions in by_faculty_day.values():
            sessions.sort()
            for previous, current in zip(sessions, sessions[1:]):
                transitions += 1
                if previous[1] != current[1]:
                    moves += 1
        if transitions == 0:
            return 1.0
        return 1.0 - moves / transitions

    def _room_utilization_quality(self, entries: tuple[ScheduleEntry, ...]) -> float:
        span = ENTRY_CAPACITY_FIT_BONUS + ENTRY_UNDERSIZED_PENALTY
        total = 0.0
        for entry in entries:
            points = self._capacity_points(entry, self.problem.room_by_id[entry.room_id])
            total += (points + ENTRY_UNDERSIZED_PENALTY) / span
        return total / len(entries)

    def _time_preference_quality(self, entries: tuple[ScheduleEntry, ...]) -> float:
        eligible = 0
        satisfied = 0
        for entry in entries:
            verdict = self._in_preferred_window(entry, self.problem.slot_by_id[entry.time_slot_id])
            if verdict is None:
                continue
            eligible += 1
            if verdict:
                satisfied += 1
        if eligible == 0:
            return 1.0
        return satisfied / eligible

    def constraint_points(self, entries: Iterable[ScheduleEntry]) -> int:
        points = 0
        for entry in entries:
            slot = self.problem.slot_by_id[entry.time_slot_id]
            if not self.problem.faculty_available(self.problem.faculty_by_id[entry.faculty_id], slot):
                points += PRIORITY_POINTS[ConstraintPriority.high]
            if not self.problem.room_available(self.problem.room_by_id[entry.room_id], slot):
                points += PRIORITY_POINTS[ConstraintPriority.high]
            for constraint in self.matching_constraints(entry):
                points += PRIORITY_POINTS[constraint.priority]
        return points

    def _constraint_quality(self, entries: tuple[ScheduleEntry, ...]) -> float:
        points = self.constraint_points(entries)
        return len(entries) / (len(entries) + points)

    def student_convenience_quality(self, entries: tuple[ScheduleEntry, ...]) -> float:
        preferences = self.settings.preferences
        if not entries or not (preferences.avoid_back_to_back or preferences.balance_weekly_load):
            return 1.0

        by_batch: dict[str, list[TimeSlot]] = defaultdict(list)
        for entry in entries:
            by_batch[entry.batch].append(self.problem.slot_by_id[entry.time_slot_id])

        weighted = 0.0
        for slots in by_batch.values():
            parts: list[float] = []
            if preferences.avoid_back_to_back:
                parts.append(self._back_to_back_quality(slots))
            if preferences.balance_weekly_load:
                parts.append(self._balance_quality(slots))
            weighted += len(slots) * sum(parts) / len(parts)
        return weighted / len(entries)

    @staticmethod
    def _back_to_back_quality(slots: list[TimeSlot]) -> float:
        if len(slots) < 2:
            return 1.0
        by_day: dict[str, list[TimeSlot]] = defaultdict(list)
        for slot in slots:
            by_day[slot.day].append(slot)
        adjacent = 0
        for day_slots in by_day.values():
            day_slots.sort(key=lambda item: item.start_minutes)
            for previous, current in zip(day_slots, day_slots[1:]):
                if 0 <= current.start_minutes - previous.end_minutes <= BACK_TO_BACK_GAP_MINUTES:
                    adjacent += 1
        return 1.0 - adjacent / (len(slots) - 1)

    def _balance_quality(self, slots: list[TimeSlot]) -> float:
        counts = Counter(slot.day for slot in slots)
        ideal = math.ceil(len(slots) / self.working_day_count)
        excess = max(counts.values()) - ideal
        return max(0.0, 1.0 - excess / len(slots))

    # -- aggregate ------------------------------------------------------------

    def components(self, entries: tuple[ScheduleEntry, ...]) -> dict[str, float]:
        if not entries:
            return {name: 0.0 for name in self.weights.as_dict()}
        return {
            "faculty_workload": self._faculty_workload_quality(entries),
            "room_utilization": self._room_utilization_quality(entries),
            "time_preferences": self._time_preference_quality(entries),
            "conflict_avoidance": self._constraint_quality(entries),
            "student_convenience": self.student_convenience_quality(entries),
        }

    def evaluate(self, schedule: Schedule) -> EvaluationResult:
        entries = schedule.entries
        cache_key = (entries, len(schedule.unresolved))
        cached = self.eval_cache.get(cache_key)
        if cached is not None:
            return cached

        components = self.components(entries)
        weights = self.weights.as_dict()
        quality = sum(weights[name] * value for name, value in components.items()) / self.weights.weight_total
        conflicts = count_conflicts(entries)
        penalty_units = conflicts + UNRESOLVED_CONFLICT_EQUIVALENT * len(schedule.unresolved)
        if not entries:
            # Nothing placed is unusable.
            fitness = 0.0
        else:
            fitness = 100.0 * (QUALITY_FLOOR + (1.0 - QUALITY_FLOOR) * quality) * CONFLICT_DECAY**penalty_units
        result = EvaluationResult(
            fitness=max(0.0, fitness),
            hard_conflicts=conflicts,
            soft_penalty=round(1.0 - quality, 6),
            unresolved=len(schedule.unresolved),
            components=components,
        )
        if len(self.eval_cache) > 50_000:
            self.eval_cache.clear()
        self.eval_cache[cache_key] = result
        return result

    def score(self, schedule: Schedule) -> float:
        return self.evaluate(schedule).fitness

    def violation_messages(self, schedule: Schedule) -> list[str]:
        messages: list[str] = []
        for entry in schedule.entries:
            slot = self.problem.slot_by_id[entry.time_slot_id]
            where = f"{entry.subject_id} session {entry.session_number} at {slot.id}"
            if not self.problem.faculty_available(self.problem.faculty_by_id[entry.faculty_id], slot):
                messages.append(f"Faculty {entry.faculty_id} is unavailable for {where}")
            if not self.problem.room_available(self.problem.room_by_id[entry.room_id], slot):
                messages.append(f"Room {entry.room_id} is unavailable for {where}")
            for constraint in self.matching_constraints(entry):
                label = constraint.description or constraint.kind.value
                messages.append(f"Constraint {constraint.id} ({constraint.priority.value}) violated by {where}: {label}")
        return messages
