"""Run one optimization against the configured database and print the outcome.

Run:
  PYTHONPATH=backend python scripts/run_optimizer.py --algorithm hybrid --seed 7
"""

from __future__ import annotations

import argparse
import logging

from app.core.config import get_settings
from app.db.bootstrap import ensure_runtime_schema
from app.db.session import SessionLocal
from app.schemas.optimizer import OptimizationAlgorithm, OptimizationSettings
from app.services.optimization_controller import OptimizationController
from app.services.optimization_settings import load_optimization_settings
from app.services.schedule_store import SqlScheduleStore


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Generate a weekly timetable")
    parser.add_argument("--algorithm", choices=[item.value for item in OptimizationAlgorithm])
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--population", type=int, default=None)
    parser.add_argument("--generations", type=int, default=None)
    parser.add_argument("--time-budget", type=float, default=None, help="wall-clock budget in seconds")
    parser.add_argument("--verbose", action="store_true")
    return parser.parse_args()


def build_settings(args: argparse.Namespace) -> OptimizationSettings:
    with SessionLocal() as session:
        settings = load_optimization_settings(session)
    updates = {
        "algorithm": OptimizationAlgorithm(args.algorithm) if args.algorithm else None,
        "random_seed": args.seed,
        "population_size": args.population,
        "generations": args.generations,
        "time_budget_seconds": args.time_budget,
    }
    data = settings.model_dump()
    data.update({key: value for key, value in updates.items() if value is not None})
    return OptimizationSettings(**data)


def main() -> None:
    args = parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    ensure_runtime_schema()
    controller = OptimizationController(
        store=SqlScheduleStore(SessionLocal),
        settings=build_settings(args),
        app_settings=get_settings(),
    )
    state = controller.start()

    print(f"Run {state.run_id}: {state.status.value} ({state.runtime_ms} ms, seed {state.random_seed})")
    if state.error:
        print(f"Error: {state.error}")
    if state.metrics is not None:
        metrics = state.metrics
        print(f"Entries: {len(state.schedule or ())}")
        print(f"Conflicts: {metrics.total_conflicts}")
        print(f"Faculty utilization: {metrics.faculty_utilization}%")
        print(f"Room utilization: {metrics.room_utilization}%")
        print(f"Student satisfaction: {metrics.student_satisfaction}%")
        print(f"Overall score: {metrics.overall_score}")
    for line in state.improvements:
        print(f"  + {line}")
    for line in state.warnings:
        print(f"  ! {line}")


if __name__ == "__main__":
    main()
