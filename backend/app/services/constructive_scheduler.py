from __future__ import annotations

import logging
from collections.abc import Sequence
from time import perf_counter

from app.domain.schedule import Schedule, ScheduleEntry, SessionRequest, UnresolvedSession
from app.services.fitness import FitnessEvaluator, Occupancy
from app.services.scheduling_problem import SchedulingProblem
from app.services.search_monitor import SearchMonitor

logger = logging.getLogger(__name__)

NO_VALID_PLACEMENT = "no conflict-free faculty, room and time slot combination available"
BUDGET_EXHAUSTED = "search budget exhausted before this session was placed"


class ConstructiveScheduler:
    """Places sessions one at a time, each at its best-scoring free combination."""

    def __init__(self, *, problem: SchedulingProblem, evaluator: FitnessEvaluator) -> None:
        self.problem = problem
        self.evaluator = evaluator

    def best_placement(self, session: SessionRequest, occupancy: Occupancy) -> tuple[ScheduleEntry | None, float]:
        """Enumerate eligible faculty x eligible room x every slot; first maximum wins."""
        best_entry: ScheduleEntry | None = None
        best_score = 0.0
        for member in self.problem.eligible_faculty[session.subject_id]:
            for room in self.problem.eligible_rooms[session.subject_id]:
                for slot in self.problem.time_slots:
                    candidate = ScheduleEntry(
                        subject_id=session.subject_id,
                        faculty_id=member.id,
                        room_id=room.id,
                        time_slot_id=slot.id,
                        batch=session.batch,
                        session_type=session.session_type,
                        week_type=session.week_type,
                        session_number=session.session_number,
                    )
                    score = self.evaluator.entry_score(candidate, occupancy)
                    if score > best_score:
                        best_entry = candidate
                        best_score = score
        return best_entry, best_score

    def session_order(self) -> Sequence[SessionRequest]:
        return self.problem.sessions

    def build(self, monitor: SearchMonitor, *, stage: str) -> Schedule:
        start = perf_counter()
        sessions = list(self.session_order())
        monitor.begin_stage(stage, len(sessions), capped=False)
        occupancy = Occupancy(slot_by_id=self.problem.slot_by_id)
        placed: dict[tuple[str, int], ScheduleEntry] = {}
        unresolved: list[UnresolvedSession] = []
        total_score = 0.0

        for index, session in enumerate(sessions):
            if not monitor.checkpoint(index, total_score / max(1, len(placed))):
                unresolved.extend(
                    UnresolvedSession(item.subject_id, item.session_number, BUDGET_EXHAUSTED)
                    for item in sessions[index:]
                )
                break
            reason = self.problem.ineligibility_reason(session.subject_id)
            if reason is not None:
                unresolved.append(UnresolvedSession(session.subject_id, session.session_number, reason))
                continue
            entry, score = self.best_placement(session, occupancy)
            if entry is None:
                unresolved.append(UnresolvedSession(session.subject_id, session.session_number, NO_VALID_PLACEMENT))
                continue
            occupancy.add(entry)
            placed[entry.key] = entry
            total_score += score

        # Keep the canonical session order regardless of placement order.
        entries = tuple(placed[item.key] for item in self.problem.sessions if item.key in placed)
        monitor.finish_stage(total_score / max(1, len(placed)))
        logger.info(
            "CONSTRUCTIVE PLACEMENT COMPLETE | stage=%s | placed=%s | unresolved=%s | runtime_ms=%s",
            stage,
            len(entries),
            len(unresolved),
            int((perf_counter() - start) * 1000),
        )
        return Schedule(entries=entries, unresolved=tuple(unresolved))


class GreedySlotScorer(ConstructiveScheduler):
    """Catalog order; each session takes its highest per-entry score."""


class ConstraintSatisfactionSeeder(ConstructiveScheduler):
    """Most constrained sessions first (fewest eligible faculty x room pairs, then fewest free slots)."""

    def session_order(self) -> Sequence[SessionRequest]:
        def domain_size(session: SessionRequest) -> tuple[int, int]:
            faculty = self.problem.eligible_faculty[session.subject_id]
            rooms = self.problem.eligible_rooms[session.subject_id]
            open_slots = sum(
                1
                for slot in self.problem.time_slots
                if any(self.problem.faculty_available(member, slot) for member in faculty)
                and any(self.problem.room_available(room, slot) for room in rooms)
            )
            return (len(faculty) * len(rooms), open_slots)

        order = self.problem.session_order()
        return sorted(self.problem.sessions, key=lambda item: (domain_size(item), order[item.key]))
