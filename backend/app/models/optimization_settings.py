from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, Float, Integer, JSON, String
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from app.db.base import Base


class OptimizationSettingsRecord(Base):
    __tablename__ = "optimization_settings"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, default=1)
    algorithm: Mapped[str] = mapped_column(String(40), nullable=False, default="hybrid")
    population_size: Mapped[int] = mapped_column(Integer, nullable=False, default=100)
    generations: Mapped[int] = mapped_column(Integer, nullable=False, default=500)
    mutation_rate: Mapped[float] = mapped_column(Float, nullable=False, default=0.1)
    crossover_rate: Mapped[float] = mapped_column(Float, nullable=False, default=0.8)
    tournament_size: Mapped[int] = mapped_column(Integer, nullable=False, default=3)
    elite_count: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    initial_temperature: Mapped[float] = mapped_column(Float, nullable=False, default=1000.0)
    cooling_rate: Mapped[float] = mapped_column(Float, nullable=False, default=0.95)
    random_seed: Mapped[int | None] = mapped_column(Integer, nullable=True)
    constraint_weights: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    preferences: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    # Remaining optional fields (windows, budgets, workers) stored verbatim.
    extra: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
