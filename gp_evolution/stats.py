"""
gp_evolution/stats.py - Statistics collectors fed by the event bus

The engine does not know about these; each collector subscribes to the
events it needs via ``attach``.
"""
from collections import defaultdict
from typing import Any, Dict, List, Optional

import numpy as np

from .events import (EndGeneration, EndInitialisation, EndRun, EventBus, FitnessEvaluated,
                     OperatorEvent)
from .fitness import MINIMISE, FitnessOrder
from .population import Population


class GenerationStatistics:
    """Per-generation fitness, depth, length and diversity aggregates"""

    def __init__(self, order: FitnessOrder = MINIMISE):
        self.order = order
        self.history: List[Dict[str, Any]] = []

    def attach(self, bus: EventBus) -> 'GenerationStatistics':
        bus.subscribe(EndInitialisation, self.on_initialisation)
        bus.subscribe(EndGeneration, self.on_generation)
        return self

    def on_initialisation(self, event: EndInitialisation) -> None:
        self._record(event.run_index, 0, event.population, 0.0)

    def on_generation(self, event: EndGeneration) -> None:
        self._record(event.run_index, event.generation, event.population, event.duration)

    def _record(self, run_index: int, generation: int, population: Population, duration: float) -> None:
        stats = population.get_stats()
        best = population.get_best(self.order)
        stats.update({
            'run': run_index,
            'generation': generation,
            'duration': duration,
            'best_fitness': best.fitness,
            'best_program': str(best),
            'diversity': population.diversity_stats()
        })
        self.history.append(stats)

    def for_run(self, run_index: int) -> List[Dict[str, Any]]:
        return [entry for entry in self.history if entry['run'] == run_index]

    def best_fitness_curve(self, run_index: int) -> List[float]:
        return [entry['best_fitness'] for entry in self.for_run(run_index)]

    @property
    def latest(self) -> Optional[Dict[str, Any]]:
        return self.history[-1] if self.history else None


class RunStatistics:
    """One record per finished run"""

    def __init__(self):
        self.runs: List[Dict[str, Any]] = []

    def attach(self, bus: EventBus) -> 'RunStatistics':
        bus.subscribe(EndRun, self.on_run)
        return self

    def on_run(self, event: EndRun) -> None:
        self.runs.append({
            'run': event.run_index,
            'generations': event.generations,
            'duration': event.duration,
            'best_fitness': event.best.fitness if event.best is not None else None,
            'best_program': str(event.best) if event.best is not None else None,
            'error': str(event.error) if event.error is not None else None
        })

    def successful(self) -> List[Dict[str, Any]]:
        return [run for run in self.runs if run['error'] is None]

    def summary(self) -> Dict[str, Any]:
        fitnesses = [run['best_fitness'] for run in self.successful()]
        if not fitnesses:
            return {'runs': len(self.runs), 'successful': 0}
        return {
            'runs': len(self.runs),
            'successful': len(fitnesses),
            'best_fitness_mean': float(np.mean(fitnesses)),
            'best_fitness_std': float(np.std(fitnesses))
        }


class OperatorStatistics:
    """Counts operator applications and fitness evaluations"""

    def __init__(self):
        self.operations: Dict[str, int] = defaultdict(int)
        self.evaluations = 0
        self.evaluation_time = 0.0

    def attach(self, bus: EventBus) -> 'OperatorStatistics':
        bus.subscribe(OperatorEvent, self.on_operation)
        bus.subscribe(FitnessEvaluated, self.on_evaluation)
        return self

    def on_operation(self, event: OperatorEvent) -> None:
        self.operations[event.operator] += 1

    def on_evaluation(self, event: FitnessEvaluated) -> None:
        self.evaluations += 1
        self.evaluation_time += event.duration
