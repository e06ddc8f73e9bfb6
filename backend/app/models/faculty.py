import uuid
from datetime import datetime

from sqlalchemy import DateTime, Integer, JSON, String
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from app.db.base import Base


class Faculty(Base):
    __tablename__ = "faculty"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    department: Mapped[str] = mapped_column(String(200), nullable=False, index=True)
    specializations: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    available_days: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    available_start: Mapped[str | None] = mapped_column(String(5), nullable=True)
    available_end: Mapped[str | None] = mapped_column(String(5), nullable=True)
    max_hours_per_day: Mapped[int] = mapped_column(Integer, nullable=False, default=6)
    max_hours_per_week: Mapped[int] = mapped_column(Integer, nullable=False, default=20)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), onupdate=func.now())
