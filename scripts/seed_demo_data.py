"""Seed a small department catalog for trying the optimizer.

Run:
  PYTHONPATH=backend python scripts/seed_demo_data.py
"""

from __future__ import annotations

from sqlalchemy import func, select

from app.core.config import get_settings
from app.db.bootstrap import ensure_runtime_schema
from app.db.session import SessionLocal
from app.domain.entities import RoomType, SessionType
from app.models.faculty import Faculty
from app.models.room import Room
from app.models.subject import Subject
from app.models.time_slot import TimeSlot
from app.services.time_grid import grid_from_settings

SUBJECTS = [
    # id, name, department, semester, credits, session type, sessions per week, expected students
    ("CSE301", "Data Structures", "CSE", 3, 4, SessionType.lecture, 3, 60),
    ("CSE302", "Data Structures Lab", "CSE", 3, 2, SessionType.lab, 2, 30),
    ("CSE303", "Discrete Mathematics", "CSE", 3, 3, SessionType.lecture, 3, 60),
    ("CSE304", "Technical Seminar", "CSE", 3, 1, SessionType.seminar, 1, 40),
    ("CSE501", "Operating Systems", "CSE", 5, 4, SessionType.lecture, 3, 55),
    ("CSE502", "Operating Systems Lab", "CSE", 5, 2, SessionType.lab, 2, 30),
    ("CSE503", "Compiler Design", "CSE", 5, 3, SessionType.lecture, 3, 55),
    ("CSE504", "Compiler Design Tutorial", "CSE", 5, 1, SessionType.tutorial, 1, 30),
    ("ECE301", "Signals and Systems", "ECE", 3, 4, SessionType.lecture, 3, 50),
    ("ECE302", "Electronic Circuits Lab", "ECE", 3, 2, SessionType.lab, 2, 25),
    ("ECE501", "Digital Signal Processing", "ECE", 5, 4, SessionType.lecture, 3, 45),
]

FACULTY = [
    # id, name, department, specializations, max per day, max per week
    ("F-CSE-01", "Anita Rao", "CSE", ["Data Structures", "Compiler Design"], 4, 16),
    ("F-CSE-02", "Vikram Menon", "CSE", ["Operating Systems"], 4, 16),
    ("F-CSE-03", "Priya Nair", "CSE", ["Discrete Mathematics", "Signals and Systems"], 3, 14),
    ("F-CSE-04", "Rahul Iyer", "CSE", [], 4, 16),
    ("F-ECE-01", "Meera Das", "ECE", ["Digital Signal Processing"], 4, 16),
    ("F-ECE-02", "Karthik Shah", "ECE", [], 3, 14),
]

ROOMS = [
    # id, name, type, capacity, building
    ("R-A101", "A101", RoomType.classroom, 70, "Academic Block A"),
    ("R-A102", "A102", RoomType.classroom, 60, "Academic Block A"),
    ("R-B201", "B201", RoomType.auditorium, 120, "Academic Block B"),
    ("R-L1", "Computing Lab 1", RoomType.lab, 35, "Lab Complex"),
    ("R-L2", "Electronics Lab", RoomType.lab, 30, "Lab Complex"),
    ("R-S1", "Seminar Hall", RoomType.seminar_hall, 45, "Academic Block B"),
]


def upsert_subjects(session) -> None:
    for subject_id, name, department, semester, credits, session_type, per_week, students in SUBJECTS:
        record = session.get(Subject, subject_id) or Subject(id=subject_id)
        record.name = name
        record.department = department
        record.semester = semester
        record.credits = credits
        record.session_type = session_type
        record.sessions_per_week = per_week
        record.expected_students = students
        record.prerequisite_ids = record.prerequisite_ids or []
        session.add(record)


def upsert_faculty(session, working_days: list[str]) -> None:
    for faculty_id, name, department, specializations, per_day, per_week in FACULTY:
        record = session.get(Faculty, faculty_id) or Faculty(id=faculty_id)
        record.name = name
        record.department = department
        record.specializations = specializations
        record.available_days = list(working_days)
        record.available_start = "08:00"
        record.available_end = "18:00"
        record.max_hours_per_day = per_day
        record.max_hours_per_week = per_week
        session.add(record)


def upsert_rooms(session, working_days: list[str]) -> None:
    for room_id, name, room_type, capacity, building in ROOMS:
        record = session.get(Room, room_id) or Room(id=room_id)
        record.name = name
        record.room_type = room_type
        record.capacity = capacity
        record.building = building
        record.available_days = list(working_days)
        session.add(record)


def upsert_time_slots(session) -> None:
    for order, slot in enumerate(grid_from_settings(get_settings())):
        record = session.get(TimeSlot, slot.id) or TimeSlot(id=slot.id)
        record.day = slot.day
        record.start_time = slot.start_time
        record.end_time = slot.end_time
        record.label = slot.label
        record.sort_order = order
        session.add(record)


def main() -> None:
    ensure_runtime_schema()
    working_days = get_settings().working_days
    with SessionLocal() as session:
        upsert_subjects(session)
        upsert_faculty(session, working_days)
        upsert_rooms(session, working_days)
        upsert_time_slots(session)
        session.commit()

        subject_count = session.execute(select(func.count(Subject.id))).scalar_one()
        faculty_count = session.execute(select(func.count(Faculty.id))).scalar_one()
        room_count = session.execute(select(func.count(Room.id))).scalar_one()
        slot_count = session.execute(select(func.count(TimeSlot.id))).scalar_one()

    print("Demo scheduling data seeded successfully.")
    print("")
    print(f"Subjects: {subject_count}")
    print(f"Faculty: {faculty_count}")
    print(f"Rooms: {room_count}")
    print(f"Time slots: {slot_count}")


if __name__ == "__main__":
    main()
