"""
gp_evolution/crossover.py - Type-safe subtree exchange between two parents
"""
import logging
from abc import ABC, abstractmethod
from typing import List, Optional, Tuple

from .ast_nodes import ExpressionNode
from .exceptions import ConfigurationError
from .individual import Individual
from .random_source import RandomSource

logger = logging.getLogger(__name__)


class Crossover(ABC):
    """Produces two children from two parents; parents are never modified"""

    name = 'crossover'

    def __init__(self, rng: RandomSource):
        if rng is None:
            raise ConfigurationError("A random source is required")
        self.rng = rng

    @abstractmethod
    def crossover(self, parent1: Individual, parent2: Individual) -> Tuple[Individual, Individual]:
        pass

    def _swap(self, child1: Individual, point1: int, child2: Individual, point2: int) -> None:
        # Each subtree is detached from one child as it is attached to the other
        subtree1 = child1.get_node(point1)
        subtree2 = child2.get_node(point2)
        child1.set_node(point1, subtree2)
        child2.set_node(point2, subtree1)


class SubtreeCrossover(Crossover):
    """Swap randomly chosen subtrees of matching data type.

    Crossover points are internal nodes with probability ``function_bias``
    (when the tree has any), otherwise leaves. A bias of None picks points
    uniformly over all nodes. Points of mismatched type are redrawn up to
    ``max_attempts`` times; after that the parents are returned as unmodified
    copies.
    """

    name = 'subtree_crossover'

    def __init__(self, rng: RandomSource, function_bias: Optional[float] = 0.9,
                 max_attempts: int = 10):
        super().__init__(rng)
        if function_bias is not None and not 0.0 <= function_bias <= 1.0:
            raise ConfigurationError("function_bias must be within [0, 1]")
        if max_attempts < 1:
            raise ConfigurationError("max_attempts must be at least 1")
        self.function_bias = function_bias
        self.max_attempts = max_attempts

    def select_point(self, individual: Individual) -> int:
        if self.function_bias is None:
            return self.rng.next_int(individual.get_length())
        functions = individual.get_function_indices()
        if functions and self.rng.next_double() < self.function_bias:
            return self.rng.choice(functions)
        return self.rng.choice(individual.get_terminal_indices())

    def crossover(self, parent1: Individual, parent2: Individual) -> Tuple[Individual, Individual]:
        for attempt in range(self.max_attempts):
            point1 = self.select_point(parent1)
            point2 = self.select_point(parent2)
            type1 = parent1.get_node(point1).data_type
            type2 = parent2.get_node(point2).data_type
            if type1 is None or type1 != type2:
                continue

            child1 = parent1.copy()
            child2 = parent2.copy()
            self._swap(child1, point1, child2, point2)
            if child1.is_well_typed() and child2.is_well_typed():
                return child1, child2

        logger.debug("No type-compatible crossover points after %d attempts", self.max_attempts)
        return parent1.copy(), parent2.copy()


class OnePointCrossover(Crossover):
    """Swap at a point inside the region where both parents share shape.

    Two nodes are aligned when their parents are aligned and have the same
    arity and data type (or, when ``strict``, the same primitive). Only aligned
    pairs of equal data type are crossover candidates; the roots always are.
    """

    name = 'one_point_crossover'

    def __init__(self, rng: RandomSource, strict: bool = False):
        super().__init__(rng)
        self.strict = strict

    def aligned_points(self, root1: ExpressionNode, root2: ExpressionNode) -> List[Tuple[int, int]]:
        points: List[Tuple[int, int]] = []
        self._align(root1, root2, 0, 0, points)
        return [(a, b) for a, b in points
                if root1.get_node(a).data_type == root2.get_node(b).data_type]

    def _align(self, node1: ExpressionNode, node2: ExpressionNode, index1: int, index2: int,
               points: List[Tuple[int, int]]) -> None:
        points.append((index1, index2))
        if self.strict:
            valid = node1.structural_equals(node2, deep=False)
        else:
            valid = node1.arity == node2.arity and node1.data_type == node2.data_type
        if not valid:
            return
        index1 += 1
        index2 += 1
        for child1, child2 in zip(node1.children, node2.children):
            self._align(child1, child2, index1, index2, points)
            index1 += child1.get_length()
            index2 += child2.get_length()

    def crossover(self, parent1: Individual, parent2: Individual) -> Tuple[Individual, Individual]:
        points = self.aligned_points(parent1.root, parent2.root)
        if not points:
            return parent1.copy(), parent2.copy()
        point1, point2 = self.rng.choice(points)
        child1 = parent1.copy()
        child2 = parent2.copy()
        self._swap(child1, point1, child2, point2)
        return child1, child2
