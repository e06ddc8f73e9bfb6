from __future__ import annotations

from sqlalchemy.orm import Session

from app.models.optimization_settings import OptimizationSettingsRecord
from app.schemas.optimizer import (
    ConstraintWeights,
    OptimizationAlgorithm,
    OptimizationSettings,
    SchedulingPreferences,
)

# Fields kept in dedicated columns; everything else lives in ``extra``.
COLUMN_FIELDS = {
    "population_size",
    "generations",
    "mutation_rate",
    "crossover_rate",
    "tournament_size",
    "elite_count",
    "random_seed",
}


def load_optimization_settings(db: Session) -> OptimizationSettings:
    record = db.get(OptimizationSettingsRecord, 1)
    if record is None:
        return OptimizationSettings()
    data = dict(record.extra or {})
    data.update({name: getattr(record, name) for name in COLUMN_FIELDS})
    data["algorithm"] = OptimizationAlgorithm(record.algorithm)
    data["temperature"] = record.initial_temperature
    data["cooling_rate"] = record.cooling_rate
    data["constraint_weights"] = ConstraintWeights(**(record.constraint_weights or {}))
    data["preferences"] = SchedulingPreferences(**(record.preferences or {}))
    return OptimizationSettings(**data)


def save_optimization_settings(db: Session, settings: OptimizationSettings) -> OptimizationSettings:
    data = settings.model_dump(mode="json")
    record = db.get(OptimizationSettingsRecord, 1)
    if record is None:
        record = OptimizationSettingsRecord(id=1)
        db.add(record)
    for name in COLUMN_FIELDS:
        setattr(record, name, data.pop(name))
    record.algorithm = data.pop("algorithm")
    record.initial_temperature = data.pop("temperature")
    record.cooling_rate = data.pop("cooling_rate")
    record.constraint_weights = data.pop("constraint_weights")
    record.preferences = data.pop("preferences")
    record.extra = data
    db.commit()
    db.refresh(record)
    return load_optimization_settings(db)
