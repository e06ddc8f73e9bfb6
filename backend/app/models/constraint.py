import uuid
from datetime import datetime

from sqlalchemy import DateTime, Enum as SAEnum, JSON, String, Text
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from app.db.base import Base
from app.domain.entities import ConstraintKind, ConstraintPriority


class SchedulingConstraint(Base):
    __tablename__ = "scheduling_constraints"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    kind: Mapped[ConstraintKind] = mapped_column(SAEnum(ConstraintKind, name="constraint_kind"), nullable=False)
    target_id: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    # {"time_slot_ids": [...], "days": [...]}; empty means every slot.
    restriction: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    priority: Mapped[ConstraintPriority] = mapped_column(
        SAEnum(ConstraintPriority, name="constraint_priority"),
        nullable=False,
        default=ConstraintPriority.medium,
    )
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
