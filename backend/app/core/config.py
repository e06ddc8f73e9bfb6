from functools import lru_cache
import json
from pathlib import Path

from pydantic import BaseModel, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from app.schemas.settings import DAY_VALUES


BACKEND_ENV_FILE = Path(__file__).resolve().parents[2] / ".env"

DEFAULT_WORKING_DAYS = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"]


class PeriodTemplate(BaseModel):
    start_time: str
    end_time: str
    label: str


DEFAULT_PERIOD_TEMPLATES = [
    PeriodTemplate(start_time="08:00", end_time="09:00", label="Period 1"),
    PeriodTemplate(start_time="09:00", end_time="10:00", label="Period 2"),
    PeriodTemplate(start_time="10:15", end_time="11:15", label="Period 3"),
    PeriodTemplate(start_time="11:15", end_time="12:15", label="Period 4"),
    PeriodTemplate(start_time="13:15", end_time="14:15", label="Period 5"),
    PeriodTemplate(start_time="14:15", end_time="15:15", label="Period 6"),
    PeriodTemplate(start_time="15:30", end_time="16:30", label="Period 7"),
    PeriodTemplate(start_time="16:30", end_time="17:30", label="Period 8"),
]


class Settings(BaseSettings):
    # Resolve to backend/.env so `uvicorn --app-dir backend` works from any cwd.
    model_config = SettingsConfigDict(env_file=str(BACKEND_ENV_FILE), env_file_encoding="utf-8")

    project_name: str = "Timetable Optimizer API"
    api_prefix: str = "/api"

    database_url: str = "sqlite+pysqlite:///./timetable.db"
    auto_create_schema: bool = True

    working_days: list[str] = list(DEFAULT_WORKING_DAYS)
    period_templates: list[PeriodTemplate] = list(DEFAULT_PERIOD_TEMPLATES)
    planning_period: str = "default"

    optimizer_max_workers: int = 2
    optimizer_retained_runs: int = 50

    max_request_size_bytes: int = 2_500_000
    security_enable_hsts: bool = False
    security_hsts_max_age_seconds: int = 31536000

    cors_origins: list[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
        "http://localhost:5173",
        "http://127.0.0.1:5173",
    ]

    @field_validator("cors_origins", "working_days", mode="before")
    @classmethod
    def split_string_list(cls, value: str | list[str]) -> list[str]:
        if isinstance(value, str):
            stripped = value.strip()
            if stripped.startswith("["):
                try:
                    parsed = json.loads(stripped)
                    if isinstance(parsed, list):
                        return [str(item).strip() for item in parsed if str(item).strip()]
                except json.JSONDecodeError:
                    pass
            return [item.strip() for item in value.split(",") if item.strip()]
        return value

    @field_validator("working_days")
    @classmethod
    def validate_working_days(cls, value: list[str]) -> list[str]:
        days = [day.capitalize() for day in value]
        unknown = [day for day in days if day not in DAY_VALUES]
        if unknown:
            raise ValueError(f"Unknown working days: {', '.join(unknown)}")
        if not days:
            raise ValueError("At least one working day is required")
        if len(set(days)) != len(days):
            raise ValueError("Working days must not repeat")
        return days


@lru_cache
def get_settings() -> Settings:
    return Settings()
