from __future__ import annotations

import logging
import math
import random
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from time import perf_counter

from app.domain.schedule import Schedule, ScheduleEntry
from app.schemas.optimizer import OptimizationSettings
from app.services.candidate_generator import CandidateGenerator
from app.services.fitness import EvaluationResult, FitnessEvaluator, is_better_eval
from app.services.scheduling_problem import SchedulingProblem
from app.services.search_monitor import SearchMonitor

logger = logging.getLogger(__name__)

MUTATION_TARGETS = ("faculty", "room", "time_slot")


@dataclass
class SearchOutcome:
    schedule: Schedule
    evaluation: EvaluationResult
    iterations: int = 0
    history: list[float] = field(default_factory=list)


class EvolutionaryScheduler:
    """Genetic and annealing search over complete schedules.

    Individuals are immutable ``Schedule`` values whose entries follow the problem's
    session order, so crossover can splice two parents position by position.
    """

    def __init__(
        self,
        *,
        problem: SchedulingProblem,
        settings: OptimizationSettings,
        evaluator: FitnessEvaluator,
        rng: random.Random,
    ) -> None:
        self.problem = problem
        self.settings = settings
        self.evaluator = evaluator
        self.random = rng
        self.generator = CandidateGenerator(problem, rng)
        self.eligible_faculty_ids = {
            subject_id: {member.id for member in members} for subject_id, members in problem.eligible_faculty.items()
        }
        self.eligible_room_ids = {
            subject_id: {room.id for room in rooms} for subject_id, rooms in problem.eligible_rooms.items()
        }

    # -- operators --------------------------------------------------------------

    def _select(self, population: list[Schedule], evaluations: list[EvaluationResult]) -> Schedule:
        size = min(self.settings.tournament_size, len(population))
        contenders = self.random.sample(range(len(population)), size)
        best_index = contenders[0]
        for index in contenders[1:]:
            if is_better_eval(evaluations[index], evaluations[best_index]):
                best_index = index
        return population[best_index]

    def _crossover(self, parent_a: Schedule, parent_b: Schedule) -> tuple[Schedule, Schedule]:
        length = min(len(parent_a), len(parent_b))
        if length < 2:
            return parent_a, parent_b
        point = self.random.randrange(1, length)
        b_by_key = {entry.key: entry for entry in parent_b.entries}
        a_by_key = {entry.key: entry for entry in parent_a.entries}
        first = [
            entry if index < point else b_by_key.get(entry.key, entry)
            for index, entry in enumerate(parent_a.entries)
        ]
        second = [
            entry if index < point else a_by_key.get(entry.key, entry)
            for index, entry in enumerate(parent_b.entries)
        ]
        return parent_a.with_entries(first), parent_b.with_entries(second)

    def _mutate(self, individual: Schedule) -> Schedule:
        if not individual.entries:
            return individual
        index = self.random.randrange(len(individual))
        entry = individual.entries[index]
        targets = list(MUTATION_TARGETS)
        self.random.shuffle(targets)
        for target in targets:
            changed = self._reassign(entry, target)
            if changed is not None:
                return individual.replace_entry(index, changed)
        return individual

    def _reassign(self, entry: ScheduleEntry, target: str) -> ScheduleEntry | None:
        """Move one field of ``entry`` to a different eligible value, or None if it has no alternative."""
        if target == "faculty":
            options = [m.id for m in self.problem.eligible_faculty[entry.subject_id] if m.id != entry.faculty_id]
            field = "faculty_id"
        elif target == "room":
            options = [r.id for r in self.problem.eligible_rooms[entry.subject_id] if r.id != entry.room_id]
            field = "room_id"
        else:
            options = [s.id for s in self.problem.time_slots if s.id != entry.time_slot_id]
            field = "time_slot_id"
        if not options:
            return None
        return entry.reassigned(**{field: self.random.choice(options)})

    def _can_take(self, entry: ScheduleEntry, other: ScheduleEntry) -> bool:
        return (
            other.faculty_id in self.eligible_faculty_ids[entry.subject_id]
            and other.room_id in self.eligible_room_ids[entry.subject_id]
        )

    def _neighbor(self, current: Schedule) -> Schedule:
        if len(current) < 2:
            return current
        i, j = self.random.sample(range(len(current)), 2)
        first = current.entries[i]
        second = current.entries[j]
        if self._can_take(first, second) and self._can_take(second, first):
            new_first = first.reassigned(
                faculty_id=second.faculty_id, room_id=second.room_id, time_slot_id=second.time_slot_id
            )
            new_second = second.reassigned(
                faculty_id=first.faculty_id, room_id=first.room_id, time_slot_id=first.time_slot_id
            )
        else:
            # Resources that the other subject cannot use stay put; only the slots trade places.
            new_first = first.reassigned(time_slot_id=second.time_slot_id)
            new_second = second.reassigned(time_slot_id=first.time_slot_id)
        entries = list(current.entries)
        entries[i] = new_first
        entries[j] = new_second
        return current.with_entries(entries)

    def _evaluate_population(
        self, population: list[Schedule], executor: ThreadPoolExecutor | None
    ) -> list[EvaluationResult]:
        if executor is None:
            return [self.evaluator.evaluate(item) for item in population]
        return list(executor.map(self.evaluator.evaluate, population))

    def _build_initial_population(self, seed: Schedule | None) -> list[Schedule]:
        population: list[Schedule] = []
        if seed is not None:
            population.append(self.generator.complete(seed))
        while len(population) < self.settings.population_size:
            population.append(self.generator.generate())
        return population

    # -- genetic algorithm -----------------------------------------------------

    def run_genetic(self, monitor: SearchMonitor, seed: Schedule | None = None) -> SearchOutcome:
        start = perf_counter()
        generations = monitor.begin_stage("genetic", self.settings.generations)
        population = self._build_initial_population(seed)
        best: Schedule | None = None
        best_eval: EvaluationResult | None = None
        history: list[float] = []
        completed = 0

        workers = self.settings.evaluation_workers
        executor = ThreadPoolExecutor(max_workers=workers) if workers > 1 else None
        try:
            for generation in range(generations):
                if not monitor.checkpoint(generation, best_eval.fitness if best_eval else 0.0):
                    break
                evaluations = self._evaluate_population(population, executor)
                for individual, evaluation in zip(population, evaluations):
                    if best_eval is None or is_better_eval(evaluation, best_eval):
                        best = individual
                        best_eval = evaluation
                history.append(best_eval.fitness)
                completed = generation + 1

                ranked = sorted(range(len(population)), key=lambda idx: evaluations[idx].fitness, reverse=True)
                next_population: list[Schedule] = [best]
                for idx in ranked:
                    if len(next_population) >= self.settings.elite_count:
                        break
                    if population[idx] is not best:
                        next_population.append(population[idx])

                while len(next_population) < self.settings.population_size:
                    parent_a = self._select(population, evaluations)
                    parent_b = self._select(population, evaluations)
                    if self.random.random() < self.settings.crossover_rate:
                        child_a, child_b = self._crossover(parent_a, parent_b)
                    else:
                        child_a, child_b = parent_a, parent_b
                    for child in (child_a, child_b):
                        if len(next_population) >= self.settings.population_size:
                            break
                        if self.random.random() < self.settings.mutation_rate:
                            child = self._mutate(child)
                        next_population.append(child)
                population = next_population

            if best_eval is None:
                # Budget spent before the first generation; fall back to the seed individual.
                best = population[0]
                best_eval = self.evaluator.evaluate(best)
                history.append(best_eval.fitness)
        finally:
            if executor is not None:
                executor.shutdown(wait=True)

        monitor.finish_stage(best_eval.fitness)
        logger.info(
            "GENETIC SEARCH COMPLETE | generations=%s | best_fitness=%.4f | conflicts=%s | runtime_ms=%s",
            completed,
            best_eval.fitness,
            best_eval.hard_conflicts,
            int((perf_counter() - start) * 1000),
        )
        return SearchOutcome(schedule=best, evaluation=best_eval, iterations=completed, history=history)

    # -- simulated annealing ----------------------------------------------------

    def run_simulated_annealing(self, monitor: SearchMonitor, seed: Schedule | None = None) -> SearchOutcome:
        start = perf_counter()
        iterations = monitor.begin_stage("simulated_annealing", self.settings.effective_annealing_iterations)
        current = self.generator.complete(seed) if seed is not None else self.generator.generate()
        current_eval = self.evaluator.evaluate(current)
        best = current
        best_eval = current_eval
        temperature = self.settings.temperature
        cooling_rate = self.settings.cooling_rate
        history: list[float] = []
        completed = 0

        for iteration in range(iterations):
            if not monitor.checkpoint(iteration, best_eval.fitness):
                break
            candidate = self._neighbor(current)
            candidate_eval = self.evaluator.evaluate(candidate)
            delta = candidate_eval.cost - current_eval.cost
            if delta < 0 or (temperature > 0 and self.random.random() < math.exp(-delta / temperature)):
                current = candidate
                current_eval = candidate_eval
                if current_eval.cost < best_eval.cost:
                    best = current
                    best_eval = current_eval
            temperature *= cooling_rate
            history.append(best_eval.fitness)
            completed = iteration + 1

        monitor.finish_stage(best_eval.fitness)
        logger.info(
            "ANNEALING SEARCH COMPLETE | iterations=%s | best_cost=%.4f | final_temperature=%.6f | runtime_ms=%s",
            completed,
            best_eval.cost,
            temperature,
            int((perf_counter() - start) * 1000),
        )
        return SearchOutcome(schedule=best, evaluation=best_eval, iterations=completed, history=history)
