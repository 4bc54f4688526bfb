"""
gp_evolution/termination.py - Predicates deciding when a run stops
"""
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Iterable, Optional

from .fitness import MINIMISE, FitnessOrder
from .individual import Individual


@dataclass
class RunState:
    """Progress of the current run as seen by termination criteria"""
    run_index: int
    generation: int = 0
    best: Optional[Individual] = None
    start_time: float = field(default_factory=time.monotonic)

    @property
    def best_fitness(self) -> Optional[float]:
        return self.best.fitness if self.best is not None else None

    @property
    def elapsed(self) -> float:
        return time.monotonic() - self.start_time


class TerminationCriterion(ABC):

    @abstractmethod
    def should_terminate(self, state: RunState) -> bool:
        pass


class MaxGenerations(TerminationCriterion):
    """Stop once ``max_generations`` generations have been bred"""

    def __init__(self, max_generations: int):
        self.max_generations = max_generations

    def should_terminate(self, state: RunState) -> bool:
        return state.generation >= self.max_generations


class FitnessThreshold(TerminationCriterion):
    """Stop once the best fitness is at least as good as ``threshold``"""

    def __init__(self, threshold: float, order: FitnessOrder = MINIMISE):
        self.threshold = threshold
        self.order = order

    def should_terminate(self, state: RunState) -> bool:
        return self.order.at_least(state.best_fitness, self.threshold)


class MaxWallClock(TerminationCriterion):
    """Stop once the run has taken ``seconds`` of wall-clock time"""

    def __init__(self, seconds: float):
        self.seconds = seconds

    def should_terminate(self, state: RunState) -> bool:
        return state.elapsed >= self.seconds


def should_terminate(criteria: Iterable[TerminationCriterion], state: RunState) -> bool:
    return any(criterion.should_terminate(state) for criterion in criteria)
