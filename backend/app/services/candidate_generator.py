from __future__ import annotations

import logging
import random

from app.core.exceptions import NoEligibleAssignmentError
from app.domain.schedule import Schedule, ScheduleEntry, SessionRequest, UnresolvedSession
from app.services.fitness import Occupancy
from app.services.scheduling_problem import SchedulingProblem

logger = logging.getLogger(__name__)

RANDOM_DRAW_ATTEMPTS = 40


class CandidateGenerator:
    """Random but structurally valid schedules used to seed every strategy."""

    def __init__(self, problem: SchedulingProblem, rng: random.Random):
        self.problem = problem
        self.random = rng

    def make_entry(self, session: SessionRequest, faculty_id: str, room_id: str, slot_id: str) -> ScheduleEntry:
        return ScheduleEntry(
            subject_id=session.subject_id,
            faculty_id=faculty_id,
            room_id=room_id,
            time_slot_id=slot_id,
            batch=session.batch,
            session_type=session.session_type,
            week_type=session.week_type,
            session_number=session.session_number,
        )

    def check_eligible(self, session: SessionRequest) -> None:
        reason = self.problem.ineligibility_reason(session.subject_id)
        if reason is not None:
            raise NoEligibleAssignmentError(session.subject_id, session.session_number, reason)

    def _is_free(self, occupancy: Occupancy, session: SessionRequest, faculty_id: str, room_id: str, slot_id: str) -> bool:
        if occupancy.clashes(faculty_id, room_id, session.batch, slot_id):
            return False
        slot = self.problem.slot_by_id[slot_id]
        return self.problem.faculty_available(
            self.problem.faculty_by_id[faculty_id], slot
        ) and self.problem.room_available(self.problem.room_by_id[room_id], slot)

    def place(self, session: SessionRequest, occupancy: Occupancy) -> ScheduleEntry:
        """Pick a random unused combination, falling back to any eligible one (conflict accepted)."""
        self.check_eligible(session)
        faculty = self.problem.eligible_faculty[session.subject_id]
        rooms = self.problem.eligible_rooms[session.subject_id]
        slots = self.problem.time_slots

        for _ in range(RANDOM_DRAW_ATTEMPTS):
            member = self.random.choice(faculty)
            room = self.random.choice(rooms)
            slot = self.random.choice(slots)
            if self._is_free(occupancy, session, member.id, room.id, slot.id):
                return self.make_entry(session, member.id, room.id, slot.id)

        shuffled = list(slots)
        self.random.shuffle(shuffled)
        for slot in shuffled:
            if (session.batch, slot.id) in occupancy.batch_slots:
                continue
            free_faculty = [
                member
                for member in faculty
                if (member.id, slot.id) not in occupancy.faculty_slots
                and self.problem.faculty_available(member, slot)
            ]
            free_rooms = [
                room
                for room in rooms
                if (room.id, slot.id) not in occupancy.room_slots and self.problem.room_available(room, slot)
            ]
            if free_faculty and free_rooms:
                return self.make_entry(
                    session, self.random.choice(free_faculty).id, self.random.choice(free_rooms).id, slot.id
                )

        return self.make_entry(
            session,
            self.random.choice(faculty).id,
            self.random.choice(rooms).id,
            self.random.choice(slots).id,
        )

    def generate(self) -> Schedule:
        return self.complete(Schedule())

    def complete(self, partial: Schedule) -> Schedule:
        """Fill every required session missing from ``partial``; ineligible ones are recorded, never dropped."""
        placed = {entry.key: entry for entry in partial.entries}
        occupancy = Occupancy(partial.entries, slot_by_id=self.problem.slot_by_id)
        entries: list[ScheduleEntry] = []
        unresolved: list[UnresolvedSession] = []
        for session in self.problem.sessions:
            existing = placed.get(session.key)
            if existing is not None:
                entries.append(existing)
                continue
            try:
                entry = self.place(session, occupancy)
            except NoEligibleAssignmentError as exc:
                unresolved.append(UnresolvedSession(session.subject_id, session.session_number, exc.reason))
                continue
            occupancy.add(entry)
            entries.append(entry)

        if unresolved:
            logger.debug("CANDIDATE UNRESOLVED | sessions=%s", len(unresolved))
        return Schedule(entries=tuple(entries), unresolved=tuple(unresolved))
