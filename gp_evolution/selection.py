"""
gp_evolution/selection.py - Parent and breeding-pool selection strategies
"""
import bisect
import itertools
import math
from abc import ABC, abstractmethod
from typing import List, Optional, Sequence, Tuple

from .exceptions import ConfigurationError
from .fitness import MINIMISE, FitnessOrder
from .individual import Individual
from .random_source import RandomSource

_Wheel = Tuple[List[Individual], List[float]]
_Wheels = Tuple[Optional[_Wheel], _Wheel]


def _check_population(population: Sequence[Individual]) -> None:
    if population is None or len(population) == 0:
        raise ConfigurationError("Population to select from must not be empty")


class Selector(ABC):
    """Chooses parents from a population or breeding pool"""

    def __init__(self, rng: RandomSource, order: FitnessOrder = MINIMISE):
        if rng is None:
            raise ConfigurationError("A random source is required")
        self.rng = rng
        self.order = order

    def set_pool(self, population: Sequence[Individual]) -> None:
        """Called once per generation with the individuals parents are drawn from"""

    @abstractmethod
    def select_parent(self, population: Sequence[Individual]) -> Individual:
        pass

    def select_pool(self, population: Sequence[Individual], pool_size: int) -> List[Individual]:
        """Select ``pool_size`` individuals (with replacement) to breed from"""
        if pool_size < 1:
            raise ConfigurationError("pool_size must be greater than 0")
        _check_population(population)
        return [self.select_parent(population) for _ in range(pool_size)]


class RandomSelector(Selector):
    """Uniform selection with no selection pressure"""

    def select_parent(self, population: Sequence[Individual]) -> Individual:
        _check_population(population)
        return population[self.rng.next_int(len(population))]


class TournamentSelector(Selector):
    """Best of ``tournament_size`` individuals drawn uniformly with replacement"""

    def __init__(self, rng: RandomSource, tournament_size: int = 7, order: FitnessOrder = MINIMISE):
        super().__init__(rng, order)
        if tournament_size < 1:
            raise ConfigurationError("tournament_size must be at least 1")
        self.tournament_size = tournament_size

    def select_parent(self, population: Sequence[Individual]) -> Individual:
        _check_population(population)
        best = None
        for _ in range(self.tournament_size):
            contestant = population[self.rng.next_int(len(population))]
            # Strictly better only, so ties go to the first seen
            if best is None or self.order.is_better(contestant.fitness, best.fitness):
                best = contestant
        return best


class FitnessProportionateSelector(Selector):
    """Roulette-wheel selection on scalar fitness.

    With over-selection enabled and a population of at least 1000, the
    population is split into a fitter group (the top 320/N proportion, as in
    Koza's rule: 32% of 1000, 16% of 2000, ...) chosen from with probability
    ``over_selection_probability`` and the remainder.

    Individuals without a finite fitness get the same minimum weight as the
    worst finite one. The wheel for the population handed to ``set_pool`` is
    built once and reused until the next call; any other population is weighed
    on every draw.
    """

    OVER_SELECTION_THRESHOLD = 1000

    def __init__(self, rng: RandomSource, order: FitnessOrder = MINIMISE,
                 over_selection: bool = False, over_selection_probability: float = 0.8,
                 over_selection_proportion: Optional[float] = None):
        super().__init__(rng, order)
        self.over_selection = over_selection
        self.over_selection_probability = over_selection_probability
        self.over_selection_proportion = over_selection_proportion
        self._prepared: Optional[Tuple[Sequence[Individual], _Wheels]] = None

    def _weights(self, population: Sequence[Individual]) -> List[float]:
        fitnesses = [individual.fitness for individual in population]
        finite = [f for f in fitnesses if f is not None and math.isfinite(f)]
        if not finite:
            return [1.0] * len(fitnesses)
        low, high = min(finite), max(finite)
        weights = []
        for fitness in fitnesses:
            if fitness is None or not math.isfinite(fitness):
                weights.append(0.01)
            # Shift so the worst still has a small chance
            elif self.order.minimise:
                weights.append(high - fitness + 0.01)
            else:
                weights.append(fitness - low + 0.01)
        return weights

    def _wheel(self, population: Sequence[Individual]) -> _Wheel:
        return list(population), list(itertools.accumulate(self._weights(population)))

    def _groups(self, population: Sequence[Individual]):
        proportion = self.over_selection_proportion
        if proportion is None:
            proportion = 320.0 / len(population)
        ranked = sorted(population, key=self.order.sort_key)
        cut = max(1, min(len(ranked) - 1, int(round(len(ranked) * proportion))))
        return ranked[:cut], ranked[cut:]

    def _build(self, population: Sequence[Individual]) -> _Wheels:
        if self.over_selection and len(population) >= self.OVER_SELECTION_THRESHOLD:
            fitter, rest = self._groups(population)
            return self._wheel(fitter), self._wheel(rest)
        return None, self._wheel(population)

    def _spin(self, wheel: _Wheel) -> Individual:
        individuals, cumulative = wheel
        pick = self.rng.next_double() * cumulative[-1]
        return individuals[min(bisect.bisect_right(cumulative, pick), len(individuals) - 1)]

    def _draw(self, wheels: _Wheels) -> Individual:
        fitter, rest = wheels
        if fitter is not None and self.rng.next_double() < self.over_selection_probability:
            return self._spin(fitter)
        return self._spin(rest)

    def set_pool(self, population: Sequence[Individual]) -> None:
        _check_population(population)
        self._prepared = (population, self._build(population))

    def select_parent(self, population: Sequence[Individual]) -> Individual:
        _check_population(population)
        if self._prepared is not None and self._prepared[0] is population:
            return self._draw(self._prepared[1])
        return self._draw(self._build(population))

    def select_pool(self, population: Sequence[Individual], pool_size: int) -> List[Individual]:
        if pool_size < 1:
            raise ConfigurationError("pool_size must be greater than 0")
        _check_population(population)
        wheels = self._build(population)
        return [self._draw(wheels) for _ in range(pool_size)]


def create_selector(name: str, rng: RandomSource, order: FitnessOrder = MINIMISE,
                    tournament_size: int = 7, over_selection: bool = False) -> Selector:
    if name == 'tournament':
        return TournamentSelector(rng, tournament_size, order)
    if name == 'random':
        return RandomSelector(rng, order)
    if name == 'fitness_proportionate':
        return FitnessProportionateSelector(rng, order, over_selection=over_selection)
    raise ConfigurationError(f"Unknown selection strategy: {name}")
