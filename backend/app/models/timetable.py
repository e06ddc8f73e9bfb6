import uuid
from datetime import datetime

from sqlalchemy import DateTime, Enum as SAEnum, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from app.db.base import Base
from app.domain.entities import SessionType, WeekType


class TimetableEntry(Base):
    __tablename__ = "timetable_entries"
    __table_args__ = (
        UniqueConstraint(
            "planning_period",
            "subject_id",
            "session_number",
            name="uq_timetable_entries_session",
        ),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    planning_period: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    subject_id: Mapped[str] = mapped_column(String(36), nullable=False)
    session_number: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    faculty_id: Mapped[str] = mapped_column(String(36), nullable=False)
    room_id: Mapped[str] = mapped_column(String(36), nullable=False)
    time_slot_id: Mapped[str] = mapped_column(String(36), nullable=False)
    batch: Mapped[str] = mapped_column(String(100), nullable=False)
    session_type: Mapped[SessionType] = mapped_column(SAEnum(SessionType, name="session_type"), nullable=False)
    week_type: Mapped[WeekType] = mapped_column(
        SAEnum(WeekType, name="week_type"), nullable=False, default=WeekType.both
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
