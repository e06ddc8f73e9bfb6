from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from app.domain.schedule import Schedule


class RunStatus(str, Enum):
    idle = "idle"
    running = "running"
    completed = "completed"
    failed = "failed"
    cancelled = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in (RunStatus.completed, RunStatus.failed, RunStatus.cancelled)


@dataclass(frozen=True)
class ProgressUpdate:
    stage: str
    iteration: int
    total_iterations: int
    best_score: float

    @property
    def percent_complete(self) -> float:
        if self.total_iterations <= 0:
            return 100.0
        return round(min(100.0, 100.0 * self.iteration / self.total_iterations), 2)


@dataclass(frozen=True)
class RunMetrics:
    total_conflicts: int
    faculty_utilization: float
    room_utilization: float
    student_satisfaction: float
    overall_score: int


@dataclass
class RunState:
    """Mutable state of one run, owned by its controller."""

    run_id: str
    algorithm: str
    status: RunStatus = RunStatus.idle
    progress: ProgressUpdate | None = None
    schedule: Schedule | None = None
    metrics: RunMetrics | None = None
    improvements: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    error: str | None = None
    random_seed: int | None = None
    runtime_ms: int = 0
