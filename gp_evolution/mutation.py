"""
gp_evolution/mutation.py - Point and subtree mutation operators
"""
import logging
from abc import ABC, abstractmethod
from typing import Any, Optional, Sequence

from .ast_nodes import ExpressionNode, is_same_primitive
from .exceptions import ConfigurationError
from .individual import Individual
from .initialisation import TreeBuilder, validate_syntax
from .random_source import RandomSource

logger = logging.getLogger(__name__)


class Mutation(ABC):
    """Produces one child from one parent; the parent is never modified"""

    name = 'mutation'

    def __init__(self, syntax: Sequence[Any], rng: RandomSource):
        if rng is None:
            raise ConfigurationError("A random source is required")
        self.syntax = validate_syntax(syntax)
        self.rng = rng

    @abstractmethod
    def mutate(self, parent: Individual) -> Individual:
        pass


class PointMutation(Mutation):
    """Each node is independently replaced, with probability ``point_probability``,
    by a different primitive of the same arity that keeps the tree well-typed.

    Candidates are scanned once around the syntax starting at a random offset;
    if none fits, the node is left as it is. The original children are
    re-attached to the replacement unchanged.
    """

    name = 'point_mutation'

    def __init__(self, syntax: Sequence[Any], rng: RandomSource, point_probability: float = 0.01):
        super().__init__(syntax, rng)
        if not 0.0 <= point_probability <= 1.0:
            raise ConfigurationError("point_probability must be within [0, 1]")
        self.point_probability = point_probability

    def replacement_for(self, node: ExpressionNode) -> Optional[ExpressionNode]:
        required = node.data_type
        child_types = [child.data_type for child in node.children]
        start = self.rng.next_int(len(self.syntax))
        for offset in range(len(self.syntax)):
            primitive = self.syntax[(start + offset) % len(self.syntax)]
            if primitive.arity != node.arity or is_same_primitive(primitive, node):
                continue
            if primitive.resolve_type(*child_types) == required:
                return primitive.instantiate(node.children, self.rng)
        return None

    def mutate(self, parent: Individual) -> Individual:
        child = parent.copy()
        points = []
        for index in range(child.get_length()):
            if self.rng.next_double() >= self.point_probability:
                continue
            replacement = self.replacement_for(child.get_node(index))
            if replacement is not None:
                child.set_node(index, replacement)
                points.append(index)
        if points:
            logger.debug("Point mutation changed nodes %s", points)
        return child


class SubtreeMutation(Mutation):
    """Replace a uniformly chosen subtree with a freshly grown one of the same type"""

    name = 'subtree_mutation'

    def __init__(self, syntax: Sequence[Any], rng: RandomSource, max_subtree_depth: int = 4):
        super().__init__(syntax, rng)
        if max_subtree_depth < 0:
            raise ConfigurationError("max_subtree_depth must not be negative")
        self.builder = TreeBuilder(self.syntax, rng)
        self.max_subtree_depth = max_subtree_depth

    def mutate(self, parent: Individual) -> Individual:
        child = parent.copy()
        index = self.rng.next_int(child.get_length())
        data_type = child.get_node(index).data_type
        if data_type is None or not self.builder.can_grow(self.max_subtree_depth, data_type):
            return child
        child.set_node(index, self.builder.grow(self.max_subtree_depth, data_type))
        return child
