from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field, model_validator

from app.domain.entities import SessionType
from app.domain.run import RunStatus
from app.schemas.settings import TimeWindow
from app.schemas.timetable import ScheduleEntryOut


class OptimizationAlgorithm(str, Enum):
    greedy = "greedy"
    genetic = "genetic"
    simulated_annealing = "simulated_annealing"
    hybrid = "hybrid"


class ConstraintWeights(BaseModel):
    faculty_workload: float = Field(default=0.25, ge=0.0)
    room_utilization: float = Field(default=0.20, ge=0.0)
    time_preferences: float = Field(default=0.20, ge=0.0)
    conflict_avoidance: float = Field(default=0.30, ge=0.0)
    student_convenience: float = Field(default=0.05, ge=0.0)
    weight_total: float = Field(default=1.0, gt=0.0)

    @model_validator(mode="after")
    def validate_total(self) -> "ConstraintWeights":
        if abs(sum(self.as_dict().values()) - self.weight_total) > 1e-6:
            raise ValueError(f"constraint weights must sum to {self.weight_total}")
        return self

    def as_dict(self) -> dict[str, float]:
        return {
            "faculty_workload": self.faculty_workload,
            "room_utilization": self.room_utilization,
            "time_preferences": self.time_preferences,
            "conflict_avoidance": self.conflict_avoidance,
            "student_convenience": self.student_convenience,
        }


class SchedulingPreferences(BaseModel):
    prefer_morning_lectures: bool = True
    prefer_afternoon_labs: bool = True
    avoid_back_to_back: bool = True
    balance_weekly_load: bool = True
    minimize_faculty_travel: bool = False


def _morning() -> TimeWindow:
    return TimeWindow(start_time="08:00", end_time="12:59")


def _afternoon() -> TimeWindow:
    return TimeWindow(start_time="13:00", end_time="17:59")


class OptimizationSettings(BaseModel):
    algorithm: OptimizationAlgorithm = OptimizationAlgorithm.hybrid
    population_size: int = Field(default=100, ge=2, le=2000)
    generations: int = Field(default=500, ge=1, le=20_000)
    mutation_rate: float = Field(default=0.1, ge=0.0, le=1.0)
    crossover_rate: float = Field(default=0.8, ge=0.0, le=1.0)
    tournament_size: int = Field(default=3, ge=1, le=50)
    elite_count: int = Field(default=1, ge=1, le=100)
    temperature: float = Field(default=1000.0, gt=0.0, le=1_000_000.0)
    cooling_rate: float = Field(default=0.95, gt=0.0, lt=1.0)
    annealing_iterations: int | None = Field(default=None, ge=1, le=200_000)
    random_seed: int | None = Field(default=None, ge=0, le=2_000_000_000)
    time_budget_seconds: float | None = Field(default=None, gt=0.0, le=86_400.0)
    max_iterations: int | None = Field(default=None, ge=1)
    progress_every: int = Field(default=1, ge=1, le=10_000)
    evaluation_workers: int = Field(default=1, ge=1, le=32)
    constraint_weights: ConstraintWeights = Field(default_factory=ConstraintWeights)
    preferences: SchedulingPreferences = Field(default_factory=SchedulingPreferences)
    morning_window: TimeWindow = Field(default_factory=_morning)
    afternoon_window: TimeWindow = Field(default_factory=_afternoon)
    session_type_windows: dict[SessionType, TimeWindow] = Field(default_factory=dict)
    expected_class_size: int = Field(default=30, ge=1, le=5000)
    planning_period: str | None = Field(default=None, min_length=1, max_length=50)

    @model_validator(mode="after")
    def validate_relationships(self) -> "OptimizationSettings":
        if self.elite_count >= self.population_size:
            raise ValueError("elite_count must be less than population_size")
        if self.tournament_size > self.population_size:
            raise ValueError("tournament_size cannot exceed population_size")
        return self

    @property
    def effective_annealing_iterations(self) -> int:
        return self.annealing_iterations or self.generations

    def window_for(self, session_type: SessionType) -> TimeWindow | None:
        """Preferred start window for a session type, or None when no preference applies."""
        if session_type == SessionType.lecture:
            if not self.preferences.prefer_morning_lectures:
                return None
            return self.session_type_windows.get(session_type, self.morning_window)
        if session_type == SessionType.lab:
            if not self.preferences.prefer_afternoon_labs:
                return None
            return self.session_type_windows.get(session_type, self.afternoon_window)
        return self.session_type_windows.get(session_type)


class StartRunRequest(BaseModel):
    algorithm: OptimizationAlgorithm | None = None
    settings_override: OptimizationSettings | None = None
    planning_period: str | None = Field(default=None, min_length=1, max_length=50)


class StartRunResponse(BaseModel):
    run_id: str
    status: RunStatus


class RunProgressOut(BaseModel):
    run_id: str
    status: RunStatus
    stage: str | None = None
    generation_or_iteration: int = 0
    total_iterations: int = 0
    percent_complete: float = 0.0
    best_score_so_far: float | None = None


class MetricsOut(BaseModel):
    total_conflicts: int
    faculty_utilization: float
    room_utilization: float
    student_satisfaction: float
    overall_score: int


class RunResultOut(BaseModel):
    run_id: str
    status: RunStatus
    algorithm: str
    schedule: list[ScheduleEntryOut] | None = None
    metrics: MetricsOut | None = None
    improvements: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    unresolved_sessions: list[str] = Field(default_factory=list)
    error: str | None = None
    random_seed: int | None = None
    runtime_ms: int = 0


class RunSummaryOut(BaseModel):
    run_id: str
    algorithm: str
    status: RunStatus
    percent_complete: float = 0.0
