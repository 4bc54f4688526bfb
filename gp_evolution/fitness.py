"""
gp_evolution/fitness.py - Fitness ordering and the fitness evaluator contract
"""
import math
from abc import ABC, abstractmethod
from typing import Any, Callable, Mapping, Optional, Sequence, Tuple, Union

from .individual import Individual


def is_unranked(value: Optional[float]) -> bool:
    """Unevaluated (None) and NaN fitness rank below every real value"""
    return value is None or math.isnan(value)


class FitnessOrder:
    """Total order over fitness values; unevaluated (None) and NaN are worst"""

    def __init__(self, minimise: bool = True):
        self.minimise = minimise

    def is_better(self, a: Optional[float], b: Optional[float]) -> bool:
        """Whether ``a`` is strictly better than ``b``"""
        if is_unranked(a):
            return False
        if is_unranked(b):
            return True
        return a < b if self.minimise else a > b

    def at_least(self, value: Optional[float], threshold: float) -> bool:
        """Whether ``value`` is as good as or better than ``threshold``"""
        if is_unranked(value):
            return False
        return value <= threshold if self.minimise else value >= threshold

    def sort_key(self, individual: Individual) -> float:
        """Key that sorts the best individual first"""
        fitness = individual.fitness
        if is_unranked(fitness):
            return math.inf
        return fitness if self.minimise else -fitness

    def best_index(self, fitnesses: Sequence[Optional[float]]) -> int:
        """Index of the best value; ties go to the first encountered"""
        if not fitnesses:
            raise ValueError("No fitness values to compare")
        best = 0
        for i in range(1, len(fitnesses)):
            if self.is_better(fitnesses[i], fitnesses[best]):
                best = i
        return best

    def worst_index(self, fitnesses: Sequence[Optional[float]]) -> int:
        """Index of the worst value; ties go to the first encountered"""
        if not fitnesses:
            raise ValueError("No fitness values to compare")
        worst = 0
        for i in range(1, len(fitnesses)):
            if self.is_better(fitnesses[worst], fitnesses[i]):
                worst = i
        return worst

    def __repr__(self):
        return f"FitnessOrder(minimise={self.minimise})"


MINIMISE = FitnessOrder(minimise=True)
MAXIMISE = FitnessOrder(minimise=False)


class FitnessEvaluator(ABC):
    """Maps an individual to a scalar fitness.

    Implementations must be a pure function of the individual's tree and
    per-run constant data. When evaluation runs on several worker threads the
    evaluator must be safe for concurrent calls.
    """

    @abstractmethod
    def evaluate(self, individual: Individual) -> float:
        pass

    def __call__(self, individual: Individual) -> float:
        return self.evaluate(individual)


class CallableEvaluator(FitnessEvaluator):
    """Adapts a plain ``(Individual) -> float`` function"""

    def __init__(self, function: Callable[[Individual], float]):
        self.function = function

    def evaluate(self, individual: Individual) -> float:
        return float(self.function(individual))


def as_evaluator(evaluator: Union[FitnessEvaluator, Callable[[Individual], float]]) -> FitnessEvaluator:
    if isinstance(evaluator, FitnessEvaluator):
        return evaluator
    if callable(evaluator):
        return CallableEvaluator(evaluator)
    raise TypeError(f"Not a fitness evaluator: {evaluator!r}")


FitnessCase = Tuple[Mapping[str, Any], Any]


class CaseFitness(FitnessEvaluator):
    """Scores a program over a fixed set of (bindings, expected output) cases"""

    METRICS = ('mismatches', 'absolute_error')

    def __init__(self, cases: Sequence[FitnessCase], metric: str = 'mismatches'):
        if metric not in self.METRICS:
            raise ValueError(f"Unknown metric: {metric}")
        if not cases:
            raise ValueError("At least one fitness case is required")
        self.cases = list(cases)
        self.metric = metric

    def evaluate(self, individual: Individual) -> float:
        total = 0.0
        for env, expected in self.cases:
            output = individual.evaluate(env)
            if self.metric == 'mismatches':
                total += 1.0 if output != expected else 0.0
            else:
                error = abs(output - expected)
                total += error if math.isfinite(error) else math.inf
        return total

    def hits(self, individual: Individual) -> int:
        """Number of cases the program gets exactly right"""
        return sum(1 for env, expected in self.cases if individual.evaluate(env) == expected)
