"""
gp_evolution/population.py - Ordered population of individuals and aggregate queries
"""
from typing import Any, Dict, Iterable, Iterator, List, Optional

import numpy as np

from .fitness import MINIMISE, FitnessOrder
from .individual import Individual


class Population:
    """Ordered collection of individuals evolved together"""

    def __init__(self, individuals: Optional[Iterable[Individual]] = None):
        self.individuals: List[Individual] = list(individuals) if individuals is not None else []

    def add(self, individual: Individual) -> None:
        self.individuals.append(individual)

    def extend(self, individuals: Iterable[Individual]) -> None:
        self.individuals.extend(individuals)

    def __len__(self) -> int:
        return len(self.individuals)

    def __iter__(self) -> Iterator[Individual]:
        return iter(self.individuals)

    def __getitem__(self, index: int) -> Individual:
        return self.individuals[index]

    def get_best(self, order: FitnessOrder = MINIMISE) -> Individual:
        """Fittest individual; ties go to the first in population order"""
        if not self.individuals:
            raise ValueError("Population is empty")
        return self.individuals[order.best_index([i.fitness for i in self.individuals])]

    def get_worst(self, order: FitnessOrder = MINIMISE) -> Individual:
        if not self.individuals:
            raise ValueError("Population is empty")
        return self.individuals[order.worst_index([i.fitness for i in self.individuals])]

    def get_top(self, n: int, order: FitnessOrder = MINIMISE) -> List[Individual]:
        """Best ``n`` individuals; the sort is stable so ties keep population order"""
        return sorted(self.individuals, key=order.sort_key)[:n]

    def contains(self, individual: Individual) -> bool:
        """Whether a structurally identical tree is already present"""
        return any(other.structural_equals(individual) for other in self.individuals)

    def unevaluated(self) -> List[Individual]:
        return [i for i in self.individuals if i.fitness is None]

    def copy(self) -> 'Population':
        return Population(self.individuals)

    def get_stats(self) -> Dict[str, Any]:
        """Get population statistics"""
        if not self.individuals:
            return {}

        fitnesses = [i.fitness for i in self.individuals if i.fitness is not None]
        depths = [i.get_depth() for i in self.individuals]
        lengths = [i.get_length() for i in self.individuals]

        stats = {
            'population_size': len(self.individuals),
            'depth': _summary(depths),
            'length': _summary(lengths)
        }
        if fitnesses:
            stats['fitness'] = _summary(fitnesses)
        return stats

    def diversity_stats(self) -> Dict[str, float]:
        """Calculate population diversity metrics"""
        if len(self.individuals) < 2:
            return {'structural_diversity': 0.0, 'fitness_diversity': 0.0, 'unique_structures': len(self)}

        # Structural diversity - distinct expressions over population size
        structures = {str(individual.root) for individual in self.individuals}
        unique_structures = len(structures)
        structural_diversity = unique_structures / len(self.individuals)

        fitnesses = [i.fitness for i in self.individuals if i.fitness is not None]
        if fitnesses and all(np.isfinite(fitnesses)):
            fitness_diversity = float(np.std(fitnesses) / (abs(np.mean(fitnesses)) + 1e-10))
        else:
            fitness_diversity = 0.0

        return {
            'structural_diversity': structural_diversity,
            'fitness_diversity': fitness_diversity,
            'unique_structures': unique_structures
        }


def _summary(values: List[float]) -> Dict[str, float]:
    data = np.asarray(values, dtype=float)
    return {
        'min': float(np.min(data)),
        'max': float(np.max(data)),
        'mean': float(np.mean(data)),
        'std': float(np.std(data)),
        'median': float(np.median(data))
    }
