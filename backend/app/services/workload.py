from __future__ import annotations

from collections import Counter

from app.domain.schedule import Schedule
from app.services.scheduling_problem import SchedulingProblem

# A room is considered fully used at 80% of the weekly grid.
ROOM_TARGET_OCCUPANCY = 0.8


def faculty_weekly_load(schedule: Schedule) -> Counter[str]:
    return Counter(entry.faculty_id for entry in schedule.entries)


def faculty_utilization(problem: SchedulingProblem, schedule: Schedule) -> float:
    loads = faculty_weekly_load(schedule)
    if not loads:
        return 0.0
    ratios = [
        load / max(1, problem.faculty_by_id[faculty_id].max_hours_per_week) * 100.0
        for faculty_id, load in loads.items()
    ]
    return round(sum(ratios) / len(ratios), 2)


def room_utilization(problem: SchedulingProblem, schedule: Schedule) -> float:
    usage = Counter(entry.room_id for entry in schedule.entries)
    if not usage:
        return 0.0
    capacity = max(1.0, len(problem.time_slots) * ROOM_TARGET_OCCUPANCY)
    ratios = [count / capacity * 100.0 for count in usage.values()]
    return round(sum(ratios) / len(ratios), 2)


def overutilized_faculty(problem: SchedulingProblem, schedule: Schedule) -> list[str]:
    loads = faculty_weekly_load(schedule)
    return sorted(
        faculty_id
        for faculty_id, load in loads.items()
        if load > problem.faculty_by_id[faculty_id].max_hours_per_week
    )
