from __future__ import annotations

from app.core.config import PeriodTemplate, Settings
from app.core.exceptions import ConfigurationError
from app.domain.entities import TimeSlot
from app.schemas.settings import DAY_VALUES


def build_time_grid(working_days: list[str], period_templates: list[PeriodTemplate]) -> list[TimeSlot]:
    """Deterministic weekly grid: one slot per working day and period, ids like ``monday_1``."""
    unknown = [day for day in working_days if day not in DAY_VALUES]
    if unknown:
        raise ConfigurationError(f"Unknown working days: {', '.join(unknown)}")
    slots: list[TimeSlot] = []
    for day in working_days:
        for number, template in enumerate(period_templates, start=1):
            slots.append(
                TimeSlot(
                    id=f"{day.lower()}_{number}",
                    day=day,
                    start_time=template.start_time,
                    end_time=template.end_time,
                    label=template.label or f"Period {number}",
                )
            )
    return slots


def grid_from_settings(settings: Settings) -> list[TimeSlot]:
    return build_time_grid(settings.working_days, settings.period_templates)
