from __future__ import annotations

import logging
import random
import threading
import uuid
from collections.abc import Callable
from time import perf_counter

from app.core.config import Settings
from app.core.exceptions import AppError, InsufficientDataError, RunCancelledError
from app.domain.run import RunMetrics, RunState, RunStatus
from app.domain.schedule import Schedule
from app.schemas.optimizer import OptimizationSettings
from app.services.candidate_generator import CandidateGenerator
from app.services.conflict_service import find_conflicts
from app.services.fitness import EvaluationResult, FitnessEvaluator
from app.services.schedule_store import ScheduleStore
from app.services.scheduling_problem import SchedulingProblem
from app.services.search_monitor import ProgressListener, SearchMonitor
from app.services.strategies import StrategyContext, get_strategy
from app.services.time_grid import grid_from_settings
from app.services.workload import faculty_utilization, overutilized_faculty, room_utilization

logger = logging.getLogger(__name__)

Notifier = Callable[[dict], None]

EXCELLENT_FACULTY_UTILIZATION = 90.0
BUDGET_WARNING = "Search budget reached; the best schedule found so far was kept"


class OptimizationController:
    """Drives one run through Idle -> Running -> Completed | Failed | Cancelled."""

    def __init__(
        self,
        *,
        store: ScheduleStore,
        settings: OptimizationSettings,
        app_settings: Settings,
        run_id: str | None = None,
        progress_listener: ProgressListener | None = None,
        notifier: Notifier | None = None,
    ) -> None:
        self.store = store
        self.settings = settings
        self.app_settings = app_settings
        self.cancel_event = threading.Event()
        self.progress_listener = progress_listener
        self.notifier = notifier
        self._lock = threading.Lock()
        self._monitor: SearchMonitor | None = None
        self.state = RunState(run_id=run_id or str(uuid.uuid4()), algorithm=settings.algorithm.value)

    @property
    def run_id(self) -> str:
        return self.state.run_id

    @property
    def planning_period(self) -> str:
        return self.settings.planning_period or self.app_settings.planning_period

    def cancel(self) -> RunStatus:
        self.cancel_event.set()
        with self._lock:
            if self.state.status == RunStatus.idle:
                self.state.status = RunStatus.cancelled
            return self.state.status

    def snapshot(self) -> RunState:
        with self._lock:
            if self._monitor is not None and self._monitor.latest is not None:
                self.state.progress = self._monitor.latest
            return RunState(**vars(self.state))

    def _reset(self) -> None:
        with self._lock:
            self.state.status = RunStatus.running
            self.state.progress = None
            self.state.schedule = None
            self.state.metrics = None
            self.state.improvements = []
            self.state.warnings = []
            self.state.error = None

    def load_problem(self) -> SchedulingProblem:
        subjects = self.store.load_subjects()
        faculty = self.store.load_faculty()
        rooms = self.store.load_rooms()
        missing = [name for name, values in (("subjects", subjects), ("faculty", faculty), ("rooms", rooms)) if not values]
        if missing:
            raise InsufficientDataError(missing)
        time_slots = self.store.load_time_slots() or grid_from_settings(self.app_settings)
        constraints = self.store.load_constraints()
        return SchedulingProblem.build(subjects, faculty, rooms, time_slots, constraints)

    def start(self) -> RunState:
        with self._lock:
            if self.state.status == RunStatus.cancelled:
                return RunState(**vars(self.state))
        self._reset()
        start = perf_counter()
        seed_value = self.settings.random_seed
        if seed_value is None:
            seed_value = random.SystemRandom().randrange(0, 2_000_000_000)
        with self._lock:
            self.state.random_seed = seed_value
        logger.info(
            "OPTIMIZATION RUN START | run_id=%s | algorithm=%s | seed=%s | planning_period=%s",
            self.run_id,
            self.settings.algorithm.value,
            seed_value,
            self.planning_period,
        )

        monitor = SearchMonitor(
            run_id=self.run_id,
            cancel_event=self.cancel_event,
            time_budget_seconds=self.settings.time_budget_seconds,
            max_iterations=self.settings.max_iterations,
            progress_every=self.settings.progress_every,
            listener=self.progress_listener,
        )
        with self._lock:
            self._monitor = monitor
        try:
            monitor.raise_if_cancelled()
            problem = self.load_problem()
            rng = random.Random(seed_value)
            evaluator = FitnessEvaluator(problem, self.settings)
            context = StrategyContext(problem=problem, settings=self.settings, evaluator=evaluator, rng=rng)
            strategy = get_strategy(self.settings.algorithm)
            monitor.plan(strategy.planned_iterations(context))

            seed = CandidateGenerator(problem, rng).generate()
            schedule = strategy.run(context, monitor, seed)
            monitor.raise_if_cancelled()

            evaluation = evaluator.evaluate(schedule)
            metrics, improvements, warnings = self.summarize(problem, evaluator, schedule, evaluation)
            if monitor.budget_exhausted:
                warnings.append(BUDGET_WARNING)
            monitor.raise_if_cancelled()
            self.store.replace_entries(self.planning_period, schedule.entries)
        except RunCancelledError:
            self._finish(RunStatus.cancelled, start)
            logger.info("OPTIMIZATION RUN CANCELLED | run_id=%s", self.run_id)
            self._notify("optimization.cancelled")
            return self.snapshot()
        except AppError as exc:
            self._finish(RunStatus.failed, start, error=exc.message)
            logger.warning(
                "OPTIMIZATION RUN FAILED | run_id=%s | error_type=%s | error=%s",
                self.run_id,
                type(exc).__name__,
                exc.message,
            )
            self._notify("optimization.failed", error=exc.message)
            return self.snapshot()
        except Exception as exc:
            self._finish(RunStatus.failed, start, error=str(exc) or type(exc).__name__)
            logger.exception("OPTIMIZATION RUN FAILED | run_id=%s | error_type=%s", self.run_id, type(exc).__name__)
            self._notify("optimization.failed", error=str(exc) or type(exc).__name__)
            return self.snapshot()

        with self._lock:
            self.state.schedule = schedule
            self.state.metrics = metrics
            self.state.improvements = improvements
            self.state.warnings = warnings
        self._finish(RunStatus.completed, start)
        logger.info(
            "OPTIMIZATION RUN COMPLETE | run_id=%s | algorithm=%s | entries=%s | conflicts=%s | score=%s | runtime_ms=%s",
            self.run_id,
            self.settings.algorithm.value,
            len(schedule),
            metrics.total_conflicts,
            metrics.overall_score,
            self.state.runtime_ms,
        )
        self._notify(
            "optimization.completed",
            overall_score=metrics.overall_score,
            total_conflicts=metrics.total_conflicts,
        )
        return self.snapshot()

    def _finish(self, status: RunStatus, start: float, *, error: str | None = None) -> None:
        with self._lock:
            monitor, self._monitor = self._monitor, None
            if monitor is not None:
                self.state.progress = monitor.latest or self.state.progress
        if monitor is not None:
            monitor.close()
        with self._lock:
            self.state.status = status
            self.state.error = error
            self.state.runtime_ms = int((perf_counter() - start) * 1000)
            if status != RunStatus.completed:
                self.state.schedule = None
                self.state.metrics = None

    def _notify(self, event: str, **extra) -> None:
        if self.notifier is None:
            return
        payload = {"event": event, "run_id": self.run_id, "status": self.state.status.value, **extra}
        try:
            self.notifier(payload)
        except Exception:
            logger.exception("OPTIMIZATION NOTIFY FAILED | run_id=%s | event=%s", self.run_id, event)

    @staticmethod
    def summarize(
        problem: SchedulingProblem,
        evaluator: FitnessEvaluator,
        schedule: Schedule,
        evaluation: EvaluationResult,
    ) -> tuple[RunMetrics, list[str], list[str]]:
        conflicts = find_conflicts(schedule.entries)
        faculty_percent = faculty_utilization(problem, schedule)
        metrics = RunMetrics(
            total_conflicts=len(conflicts),
            faculty_utilization=faculty_percent,
            room_utilization=room_utilization(problem, schedule),
            student_satisfaction=round(evaluation.components.get("student_convenience", 0.0) * 100.0, 2),
            overall_score=round(evaluation.fitness),
        )

        improvements: list[str] = []
        if not conflicts:
            improvements.append("Zero scheduling conflicts detected")
        if faculty_percent > EXCELLENT_FACULTY_UTILIZATION:
            improvements.append("Excellent faculty utilization achieved")
        if not schedule.unresolved:
            improvements.append("All required sessions scheduled")

        warnings: list[str] = []
        if conflicts:
            warnings.append(f"{len(conflicts)} scheduling conflicts need resolution")
            warnings.extend(f"Conflict: {pair.describe()}" for pair in conflicts)
        overloaded = overutilized_faculty(problem, schedule)
        if overloaded:
            warnings.append(f"{len(overloaded)} faculty members are overutilized")
        warnings.extend(item.describe() for item in schedule.unresolved)
        warnings.extend(evaluator.violation_messages(schedule))
        return metrics, improvements, warnings
