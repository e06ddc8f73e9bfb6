from __future__ import annotations

import logging

from sqlalchemy import inspect

from app.core.config import get_settings
from app.db.base import Base
from app.db.session import engine

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS: dict[str, set[str]] = {
    "subjects": {"id", "name", "department", "semester", "session_type", "sessions_per_week"},
    "faculty": {"id", "department", "available_days", "max_hours_per_day", "max_hours_per_week"},
    "rooms": {"id", "room_type", "capacity", "available_days"},
    "time_slots": {"id", "day", "start_time", "end_time"},
    "scheduling_constraints": {"id", "kind", "target_id", "restriction", "priority"},
    "timetable_entries": {"id", "planning_period", "subject_id", "faculty_id", "room_id", "time_slot_id", "batch"},
}


def missing_schema_items(connection) -> tuple[list[str], dict[str, list[str]]]:
    inspector = inspect(connection)
    table_names = set(inspector.get_table_names())
    missing_tables: list[str] = []
    missing_columns: dict[str, list[str]] = {}
    for table_name, columns in REQUIRED_COLUMNS.items():
        if table_name not in table_names:
            missing_tables.append(table_name)
            continue
        existing = {item["name"] for item in inspector.get_columns(table_name)}
        missing = sorted(columns - existing)
        if missing:
            missing_columns[table_name] = missing
    return missing_tables, missing_columns


def ensure_runtime_schema() -> None:
    import app.models  # noqa: F401

    settings = get_settings()
    if settings.auto_create_schema:
        Base.metadata.create_all(bind=engine)
        return

    with engine.connect() as connection:
        missing_tables, missing_columns = missing_schema_items(connection)
    if missing_tables or missing_columns:
        logger.warning(
            "SCHEMA INCOMPLETE | missing_tables=%s | missing_columns=%s | run `alembic upgrade head`",
            missing_tables,
            missing_columns,
        )
