"""create optimizer tables

Revision ID: 20261017_0001
Revises:
Create Date: 2026-10-17 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

revision = "20261017_0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    session_type = sa.Enum("lecture", "lab", "tutorial", "seminar", name="session_type")
    week_type = sa.Enum("odd", "even", "both", name="week_type")
    room_type = sa.Enum("classroom", "lab", "auditorium", "seminar_hall", name="room_type")
    constraint_kind = sa.Enum(
        "faculty_unavailable",
        "room_unavailable",
        "subject_timing",
        "batch_restriction",
        "custom",
        name="constraint_kind",
    )
    constraint_priority = sa.Enum("low", "medium", "high", name="constraint_priority")

    op.create_table(
        "subjects",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("department", sa.String(length=200), nullable=False),
        sa.Column("semester", sa.Integer(), nullable=False),
        sa.Column("credits", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("session_type", session_type, nullable=False),
        sa.Column("sessions_per_week", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("prerequisite_ids", sa.JSON(), nullable=False),
        sa.Column("expected_students", sa.Integer(), nullable=True),
        sa.Column("week_type", week_type, nullable=False, server_default="both"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_subjects_department", "subjects", ["department"])

    op.create_table(
        "faculty",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("department", sa.String(length=200), nullable=False),
        sa.Column("specializations", sa.JSON(), nullable=False),
        sa.Column("available_days", sa.JSON(), nullable=False),
        sa.Column("available_start", sa.String(length=5), nullable=True),
        sa.Column("available_end", sa.String(length=5), nullable=True),
        sa.Column("max_hours_per_day", sa.Integer(), nullable=False, server_default="6"),
        sa.Column("max_hours_per_week", sa.Integer(), nullable=False, server_default="20"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_faculty_department", "faculty", ["department"])

    op.create_table(
        "rooms",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("building", sa.String(length=200), nullable=False, server_default=""),
        sa.Column("capacity", sa.Integer(), nullable=False, server_default="30"),
        sa.Column("room_type", room_type, nullable=False),
        sa.Column("available_days", sa.JSON(), nullable=False),
        sa.Column("available_start", sa.String(length=5), nullable=True),
        sa.Column("available_end", sa.String(length=5), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_rooms_name", "rooms", ["name"], unique=True)

    op.create_table(
        "time_slots",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("day", sa.String(length=20), nullable=False),
        sa.Column("start_time", sa.String(length=5), nullable=False),
        sa.Column("end_time", sa.String(length=5), nullable=False),
        sa.Column("label", sa.String(length=50), nullable=False, server_default=""),
        sa.Column("sort_order", sa.Integer(), nullable=False, server_default="0"),
        sa.UniqueConstraint("day", "start_time", name="uq_time_slots_day_start"),
    )

    op.create_table(
        "scheduling_constraints",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("kind", constraint_kind, nullable=False),
        sa.Column("target_id", sa.String(length=100), nullable=False),
        sa.Column("restriction", sa.JSON(), nullable=False),
        sa.Column("priority", constraint_priority, nullable=False, server_default="medium"),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_scheduling_constraints_target_id", "scheduling_constraints", ["target_id"])

    op.create_table(
        "timetable_entries",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("planning_period", sa.String(length=50), nullable=False),
        sa.Column("subject_id", sa.String(length=36), nullable=False),
        sa.Column("session_number", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("faculty_id", sa.String(length=36), nullable=False),
        sa.Column("room_id", sa.String(length=36), nullable=False),
        sa.Column("time_slot_id", sa.String(length=36), nullable=False),
        sa.Column("batch", sa.String(length=100), nullable=False),
        sa.Column("session_type", session_type, nullable=False),
        sa.Column("week_type", week_type, nullable=False, server_default="both"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint(
            "planning_period",
            "subject_id",
            "session_number",
            name="uq_timetable_entries_session",
        ),
    )
    op.create_index("ix_timetable_entries_planning_period", "timetable_entries", ["planning_period"])

    op.create_table(
        "optimization_settings",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("algorithm", sa.String(length=40), nullable=False, server_default="hybrid"),
        sa.Column("population_size", sa.Integer(), nullable=False, server_default="100"),
        sa.Column("generations", sa.Integer(), nullable=False, server_default="500"),
        sa.Column("mutation_rate", sa.Float(), nullable=False, server_default="0.1"),
        sa.Column("crossover_rate", sa.Float(), nullable=False, server_default="0.8"),
        sa.Column("tournament_size", sa.Integer(), nullable=False, server_default="3"),
        sa.Column("elite_count", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("initial_temperature", sa.Float(), nullable=False, server_default="1000"),
        sa.Column("cooling_rate", sa.Float(), nullable=False, server_default="0.95"),
        sa.Column("random_seed", sa.Integer(), nullable=True),
        sa.Column("constraint_weights", sa.JSON(), nullable=False),
        sa.Column("preferences", sa.JSON(), nullable=False),
        sa.Column("extra", sa.JSON(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )


def downgrade() -> None:
    op.drop_table("optimization_settings")
    op.drop_index("ix_timetable_entries_planning_period", table_name="timetable_entries")
    op.drop_table("timetable_entries")
    op.drop_index("ix_scheduling_constraints_target_id", table_name="scheduling_constraints")
    op.drop_table("scheduling_constraints")
    op.drop_table("time_slots")
    op.drop_index("ix_rooms_name", table_name="rooms")
    op.drop_table("rooms")
    op.drop_index("ix_faculty_department", table_name="faculty")
    op.drop_table("faculty")
    op.drop_index("ix_subjects_department", table_name="subjects")
    op.drop_table("subjects")

    bind = op.get_bind()
    for name in ("constraint_priority", "constraint_kind", "room_type", "week_type", "session_type"):
        sa.Enum(name=name).drop(bind, checkfirst=True)
