"""
Tests for fitness ordering and case-based evaluators.
"""

import math

import pytest

from gp_evolution.ast_nodes import LiteralNode, VariableNode
from gp_evolution.fitness import (MAXIMISE, MINIMISE, CallableEvaluator, CaseFitness,
                                  as_evaluator)
from gp_evolution.individual import Individual
from gp_evolution.primitives import FUNCTIONS
from gp_evolution.types import DataType


class TestFitnessOrder:
    """Test comparisons in both optimisation directions."""

    def test_minimise(self):
        assert MINIMISE.is_better(1.0, 2.0)
        assert not MINIMISE.is_better(2.0, 1.0)
        assert not MINIMISE.is_better(1.0, 1.0)

    def test_maximise(self):
        assert MAXIMISE.is_better(2.0, 1.0)
        assert not MAXIMISE.is_better(1.0, 2.0)

    def test_unevaluated_is_worst(self):
        assert MINIMISE.is_better(100.0, None)
        assert not MINIMISE.is_better(None, 100.0)

    def test_nan_is_worst(self):
        nan = math.nan
        assert MINIMISE.is_better(1.0, nan)
        assert not MINIMISE.is_better(nan, 1.0)
        assert MAXIMISE.is_better(-1.0, nan)
        assert not MAXIMISE.is_better(nan, -1.0)
        assert not MINIMISE.is_better(nan, nan)
        assert not MINIMISE.at_least(nan, 0.0)

    def test_nan_first_does_not_hide_best(self):
        assert MINIMISE.best_index([math.nan, 0.0, 3.0]) == 1
        assert MAXIMISE.best_index([math.nan, 0.0, 3.0]) == 2
        assert MINIMISE.worst_index([0.0, math.nan]) == 1

    def test_at_least(self):
        assert MINIMISE.at_least(0.0, 0.0)
        assert not MINIMISE.at_least(0.5, 0.0)
        assert MAXIMISE.at_least(5.0, 4.0)
        assert not MINIMISE.at_least(None, 0.0)

    def test_ties_go_to_first(self):
        assert MINIMISE.best_index([3.0, 1.0, 1.0]) == 1
        assert MINIMISE.worst_index([3.0, 1.0, 3.0]) == 0

    def test_sort_key_puts_nan_last(self):
        nan = Individual(LiteralNode(1.0), math.nan)
        good = Individual(LiteralNode(1.0), 5.0)
        assert sorted([nan, good], key=MINIMISE.sort_key)[0] is good

    def test_empty_sequence(self):
        with pytest.raises(ValueError):
            MINIMISE.best_index([])


class TestEvaluators:
    """Test evaluator adapters and case fitness."""

    def test_callable_is_wrapped(self):
        evaluator = as_evaluator(lambda individual: 4)
        assert isinstance(evaluator, CallableEvaluator)
        assert evaluator(Individual(LiteralNode(1.0))) == 4.0

    def test_non_callable_rejected(self):
        with pytest.raises(TypeError):
            as_evaluator(42)

    def test_mismatches(self, d0, d1):
        cases = [({'D0': a, 'D1': b}, a and b) for a in (False, True) for b in (False, True)]
        evaluator = CaseFitness(cases, 'mismatches')
        assert evaluator(Individual(FUNCTIONS['AND'](d0, d1))) == 0.0
        assert evaluator(Individual(FUNCTIONS['OR'](d0, d1))) == 2.0
        assert evaluator.hits(Individual(FUNCTIONS['OR'](d0, d1))) == 2

    def test_absolute_error(self):
        x = VariableNode('X', DataType.DOUBLE)
        cases = [({'X': 1.0}, 2.0), ({'X': 2.0}, 4.0)]
        evaluator = CaseFitness(cases, 'absolute_error')
        assert evaluator(Individual(FUNCTIONS['ADD'](x, x.copy()))) == 0.0
        assert evaluator(Individual(x)) == pytest.approx(3.0)

    def test_invalid_metric(self):
        with pytest.raises(ValueError):
            CaseFitness([({}, 1.0)], 'squared')

    def test_requires_cases(self):
        with pytest.raises(ValueError):
            CaseFitness([])
