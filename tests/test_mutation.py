"""
Tests for point and subtree mutation.
"""

import pytest

from gp_evolution.exceptions import ConfigurationError
from gp_evolution.individual import Individual
from gp_evolution.initialisation import GrowInitialiser
from gp_evolution.mutation import PointMutation, SubtreeMutation
from gp_evolution.primitives import FUNCTIONS
from gp_evolution.types import DataType

AND, NOT = FUNCTIONS['AND'], FUNCTIONS['NOT']


class TestPointMutation:
    """Test node-by-node primitive replacement."""

    def test_every_node_replaced(self, boolean_syntax, d0, d1, rng):
        parent = Individual(AND(d0, d1), 1.0)
        child = PointMutation(boolean_syntax, rng, point_probability=1.0).mutate(parent)
        assert str(child) == 'OR(D1, D0)'
        assert child.fitness is None
        assert str(parent) == 'AND(D0, D1)'
        assert parent.fitness == 1.0

    def test_no_candidate_leaves_node(self, boolean_syntax, d0, rng):
        # NOT is the only unary function, so it has no replacement
        parent = Individual(NOT(d0))
        child = PointMutation(boolean_syntax, rng, point_probability=1.0).mutate(parent)
        assert str(child) == 'NOT(D1)'

    def test_zero_probability(self, boolean_syntax, d0, d1, rng):
        parent = Individual(AND(d0, d1), 1.0)
        child = PointMutation(boolean_syntax, rng, point_probability=0.0).mutate(parent)
        assert child.structural_equals(parent)
        assert child is not parent

    def test_invalid_probability(self, boolean_syntax, rng):
        with pytest.raises(ConfigurationError):
            PointMutation(boolean_syntax, rng, point_probability=-0.1)


class TestSubtreeMutation:
    """Test replacement of a subtree with a grown one."""

    def test_child_is_well_typed_and_bounded(self, boolean_syntax, rng):
        initialiser = GrowInitialiser(boolean_syntax, DataType.BOOLEAN, rng, max_depth=3)
        mutation = SubtreeMutation(boolean_syntax, rng, max_subtree_depth=2)
        for _ in range(40):
            parent = initialiser.create_individual()
            parent.fitness = 1.0
            before = str(parent)
            child = mutation.mutate(parent)
            assert child.data_type == DataType.BOOLEAN
            assert child.get_depth() <= parent.get_depth() + 2
            assert child.fitness is None
            assert str(parent) == before

    def test_invalid_depth(self, boolean_syntax, rng):
        with pytest.raises(ConfigurationError):
            SubtreeMutation(boolean_syntax, rng, max_subtree_depth=-1)
