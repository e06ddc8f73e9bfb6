from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Protocol

from app.domain.schedule import Schedule
from app.schemas.optimizer import OptimizationAlgorithm, OptimizationSettings
from app.services.constructive_scheduler import ConstraintSatisfactionSeeder, GreedySlotScorer
from app.services.evolution_scheduler import EvolutionaryScheduler
from app.services.fitness import FitnessEvaluator
from app.services.scheduling_problem import SchedulingProblem
from app.services.search_monitor import SearchMonitor


@dataclass
class StrategyContext:
    problem: SchedulingProblem
    settings: OptimizationSettings
    evaluator: FitnessEvaluator
    rng: random.Random

    def scheduler(self) -> EvolutionaryScheduler:
        return EvolutionaryScheduler(
            problem=self.problem, settings=self.settings, evaluator=self.evaluator, rng=self.rng
        )

    def capped(self, iterations: int) -> int:
        if self.settings.max_iterations is None:
            return iterations
        return min(iterations, self.settings.max_iterations)


class OptimizationStrategy(Protocol):
    def planned_iterations(self, context: StrategyContext) -> int: ...

    def run(self, context: StrategyContext, monitor: SearchMonitor, seed: Schedule | None) -> Schedule: ...


class GreedyStrategy:
    def planned_iterations(self, context: StrategyContext) -> int:
        return context.problem.required_sessions

    def run(self, context: StrategyContext, monitor: SearchMonitor, seed: Schedule | None) -> Schedule:
        return GreedySlotScorer(problem=context.problem, evaluator=context.evaluator).build(monitor, stage="greedy")


class GeneticStrategy:
    def planned_iterations(self, context: StrategyContext) -> int:
        return context.capped(context.settings.generations)

    def run(self, context: StrategyContext, monitor: SearchMonitor, seed: Schedule | None) -> Schedule:
        return context.scheduler().run_genetic(monitor, seed=seed).schedule


class SimulatedAnnealingStrategy:
    def planned_iterations(self, context: StrategyContext) -> int:
        return context.capped(context.settings.effective_annealing_iterations)

    def run(self, context: StrategyContext, monitor: SearchMonitor, seed: Schedule | None) -> Schedule:
        return context.scheduler().run_simulated_annealing(monitor, seed=seed).schedule


class HybridStrategy:
    """Constraint-satisfaction seed, genetic refinement, then annealing fine-tune."""

    def planned_iterations(self, context: StrategyContext) -> int:
        return (
            context.problem.required_sessions
            + context.capped(context.settings.generations)
            + context.capped(context.settings.effective_annealing_iterations)
        )

    def run(self, context: StrategyContext, monitor: SearchMonitor, seed: Schedule | None) -> Schedule:
        seeded = ConstraintSatisfactionSeeder(problem=context.problem, evaluator=context.evaluator).build(
            monitor, stage="constraint_seed"
        )
        scheduler = context.scheduler()
        refined = scheduler.run_genetic(monitor, seed=seeded)
        tuned = scheduler.run_simulated_annealing(monitor, seed=refined.schedule)
        return tuned.schedule


STRATEGIES: dict[OptimizationAlgorithm, OptimizationStrategy] = {
    OptimizationAlgorithm.greedy: GreedyStrategy(),
    OptimizationAlgorithm.genetic: GeneticStrategy(),
    OptimizationAlgorithm.simulated_annealing: SimulatedAnnealingStrategy(),
    OptimizationAlgorithm.hybrid: HybridStrategy(),
}


def get_strategy(algorithm: OptimizationAlgorithm) -> OptimizationStrategy:
    return STRATEGIES[algorithm]
