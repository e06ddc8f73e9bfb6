import pytest
from pydantic import ValidationError

from app.core.config import PeriodTemplate, Settings
from app.core.exceptions import ConfigurationError
from app.services.time_grid import build_time_grid, grid_from_settings


def test_default_grid_has_one_slot_per_day_and_period(week_grid):
    assert len(week_grid) == 6 * 8
    assert week_grid[0].id == "monday_1"
    assert week_grid[-1].id == "saturday_8"
    assert len({slot.id for slot in week_grid}) == len(week_grid)


def test_grid_follows_working_day_order():
    templates = [
        PeriodTemplate(start_time="09:00", end_time="10:00", label="First"),
        PeriodTemplate(start_time="10:00", end_time="11:00", label=""),
    ]
    grid = build_time_grid(["Tuesday", "Monday"], templates)

    assert [slot.id for slot in grid] == ["tuesday_1", "tuesday_2", "monday_1", "monday_2"]
    assert grid[0].label == "First"
    assert grid[1].label == "Period 2"
    assert grid[1].start_minutes == 600
    assert grid[1].end_minutes == 660


def test_working_days_from_env_string_are_normalized():
    settings = Settings(working_days="monday, Wednesday")

    assert settings.working_days == ["Monday", "Wednesday"]
    assert [slot.day for slot in grid_from_settings(settings)][::8] == ["Monday", "Wednesday"]


@pytest.mark.parametrize("value", ["Mon", "Monday,Funday", "Monday,monday", "[]"])
def test_invalid_working_days_are_rejected(value):
    with pytest.raises(ValidationError):
        Settings(working_days=value)


def test_grid_rejects_unknown_day_names():
    templates = [PeriodTemplate(start_time="09:00", end_time="10:00", label="")]

    with pytest.raises(ConfigurationError) as exc_info:
        build_time_grid(["Monday", "Mon"], templates)

    assert exc_info.value.status_code == 500
    assert "Mon" in exc_info.value.message
