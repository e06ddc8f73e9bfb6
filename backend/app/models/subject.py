import uuid
from datetime import datetime

from sqlalchemy import DateTime, Enum as SAEnum, Integer, JSON, String
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from app.db.base import Base
from app.domain.entities import SessionType, WeekType


class Subject(Base):
    __tablename__ = "subjects"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    department: Mapped[str] = mapped_column(String(200), nullable=False, index=True)
    semester: Mapped[int] = mapped_column(Integer, nullable=False)
    credits: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    session_type: Mapped[SessionType] = mapped_column(SAEnum(SessionType, name="session_type"), nullable=False)
    sessions_per_week: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    prerequisite_ids: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    expected_students: Mapped[int | None] = mapped_column(Integer, nullable=True)
    week_type: Mapped[WeekType] = mapped_column(
        SAEnum(WeekType, name="week_type"), nullable=False, default=WeekType.both
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), onupdate=func.now())
