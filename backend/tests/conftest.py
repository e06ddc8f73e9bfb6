import os

# Point the application engine at a throwaway database before anything imports it.
os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite://")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import app.models  # noqa: F401
from app.api.deps import get_db, get_registry
from app.core.config import get_settings
from app.db.base import Base
from app.domain.entities import Faculty, Room, RoomType, SessionType, Subject
from app.main import app
from app.services.run_registry import RunRegistry
from app.services.schedule_store import SqlScheduleStore
from app.services.scheduling_problem import SchedulingProblem
from app.services.time_grid import grid_from_settings


@pytest.fixture()
def week_grid():
    return grid_from_settings(get_settings())


@pytest.fixture()
def five_slots(week_grid):
    return week_grid[:5]


@pytest.fixture()
def example_catalog():
    """Two subjects, one faculty member and one room for each."""
    return {
        "subjects": [
            Subject(
                id="A",
                name="Algorithms",
                department="CS",
                semester=3,
                session_type=SessionType.lecture,
                sessions_per_week=2,
                credits=4,
            ),
            Subject(
                id="B",
                name="Circuits Lab",
                department="EE",
                semester=3,
                session_type=SessionType.lab,
                sessions_per_week=1,
                credits=2,
            ),
        ],
        "faculty": [
            Faculty(id="fa", name="Ada", department="CS"),
            Faculty(id="fb", name="Ben", department="EE"),
        ],
        "rooms": [
            Room(id="classroom", name="C-101", room_type=RoomType.classroom, capacity=40),
            Room(id="lab", name="L-1", room_type=RoomType.lab, capacity=40),
        ],
    }


@pytest.fixture()
def demo_problem(week_grid):
    subjects = [
        Subject(id="cs-ds", name="Data Structures", department="CS", semester=3,
                session_type=SessionType.lecture, sessions_per_week=3, expected_students=35),
        Subject(id="cs-dsl", name="Data Structures Lab", department="CS", semester=3,
                session_type=SessionType.lab, sessions_per_week=2, expected_students=30),
        Subject(id="cs-os", name="Operating Systems", department="CS", semester=5,
                session_type=SessionType.lecture, sessions_per_week=3, expected_students=40),
        Subject(id="cs-sem", name="Research Seminar", department="CS", semester=5,
                session_type=SessionType.seminar, sessions_per_week=1, expected_students=25),
        Subject(id="ee-sig", name="Signals", department="EE", semester=3,
                session_type=SessionType.lecture, sessions_per_week=3, expected_students=30),
        Subject(id="ee-tut", name="Signals Tutorial", department="EE", semester=3,
                session_type=SessionType.tutorial, sessions_per_week=1, expected_students=30),
    ]
    faculty = [
        Faculty(id="f1", name="Ada", department="CS", max_hours_per_day=3, max_hours_per_week=10),
        Faculty(id="f2", name="Grace", department="CS", max_hours_per_day=3, max_hours_per_week=10),
        Faculty(id="f3", name="Claude", department="EE", specializations=frozenset({"Data Structures"}),
                max_hours_per_day=2, max_hours_per_week=8),
    ]
    rooms = [
        Room(id="r1", name="A101", room_type=RoomType.classroom, capacity=45, building="A"),
        Room(id="r2", name="A102", room_type=RoomType.classroom, capacity=60, building="A"),
        Room(id="r3", name="Lab 1", room_type=RoomType.lab, capacity=32, building="L"),
        Room(id="r4", name="Hall", room_type=RoomType.seminar_hall, capacity=40, building="B"),
    ]
    return SchedulingProblem.build(subjects, faculty, rooms, week_grid[:16])


@pytest.fixture()
def session_factory():
    engine = create_engine(
        "sqlite+pysqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    yield factory
    engine.dispose()


@pytest.fixture()
def registry(session_factory):
    registry = RunRegistry(
        store=SqlScheduleStore(session_factory),
        app_settings=get_settings(),
        max_workers=1,
        retained_runs=10,
    )
    yield registry
    registry.shutdown()


@pytest.fixture()
def client(session_factory, registry):
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_registry] = lambda: registry

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()
