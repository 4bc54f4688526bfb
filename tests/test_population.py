"""
Tests for population queries and statistics.
"""

import math

import pytest

from gp_evolution.ast_nodes import LiteralNode
from gp_evolution.fitness import MAXIMISE, MINIMISE
from gp_evolution.individual import Individual
from gp_evolution.population import Population


def _population(*fitnesses):
    return Population(Individual(LiteralNode(float(i)), fitness)
                      for i, fitness in enumerate(fitnesses))


class TestPopulation:
    """Test best, worst and top queries."""

    def test_best_and_worst(self):
        population = _population(3.0, 1.0, 2.0)
        assert population.get_best(MINIMISE).fitness == 1.0
        assert population.get_worst(MINIMISE).fitness == 3.0
        assert population.get_best(MAXIMISE).fitness == 3.0

    def test_best_tie_goes_to_first(self):
        population = _population(2.0, 1.0, 1.0)
        assert population.get_best() is population[1]

    def test_worst_tie_goes_to_first(self):
        population = _population(5.0, 1.0, 5.0)
        assert population.get_worst() is population[0]

    def test_empty_population(self):
        with pytest.raises(ValueError):
            Population().get_best()

    def test_get_top_is_stable(self):
        population = _population(2.0, 1.0, 2.0, 0.5)
        top = population.get_top(3)
        assert [i.fitness for i in top] == [0.5, 1.0, 2.0]
        assert top[2] is population[0]

    def test_unevaluated_ranked_last(self):
        population = _population(None, 4.0)
        assert population.get_top(1)[0].fitness == 4.0
        assert population.unevaluated() == [population[0]]

    def test_nan_ranked_last(self):
        population = _population(math.nan, 2.0, 1.0)
        assert population.get_best() is population[2]
        assert population.get_worst() is population[0]
        assert population.get_top(1)[0] is population[2]

    def test_contains_uses_structure(self):
        population = _population(1.0, 2.0)
        assert population.contains(Individual(LiteralNode(1.0)))
        assert not population.contains(Individual(LiteralNode(9.0)))

    def test_len_iter_and_add(self):
        population = _population(1.0)
        population.add(Individual(LiteralNode(7.0)))
        assert len(population) == 2
        assert [str(i) for i in population] == ['0.000', '7.000']


class TestPopulationStatistics:
    """Test aggregate statistics."""

    def test_get_stats(self):
        stats = _population(1.0, 2.0, 3.0).get_stats()
        assert stats['population_size'] == 3
        assert stats['fitness']['mean'] == pytest.approx(2.0)
        assert stats['fitness']['min'] == 1.0
        assert stats['depth']['max'] == 0.0

    def test_empty_stats(self):
        assert Population().get_stats() == {}

    def test_diversity(self):
        population = Population([Individual(LiteralNode(1.0), 1.0),
                                 Individual(LiteralNode(1.0), 1.0),
                                 Individual(LiteralNode(2.0), 3.0)])
        diversity = population.diversity_stats()
        assert diversity['unique_structures'] == 2
        assert diversity['structural_diversity'] == pytest.approx(2 / 3)
        assert diversity['fitness_diversity'] > 0
