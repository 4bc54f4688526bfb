"""
Shared fixtures for the gp_evolution test suite.
"""

import pytest

from gp_evolution.ast_nodes import VariableNode
from gp_evolution.primitives import function_set
from gp_evolution.random_source import MersenneTwister
from gp_evolution.types import DataType


@pytest.fixture
def rng():
    """Seeded random source so every test is reproducible."""
    return MersenneTwister(42)


@pytest.fixture
def d0():
    return VariableNode('D0', DataType.BOOLEAN)


@pytest.fixture
def d1():
    return VariableNode('D1', DataType.BOOLEAN)


@pytest.fixture
def boolean_syntax(d0, d1):
    """AND, OR, NOT over two boolean inputs."""
    return function_set('AND', 'OR', 'NOT') + [d0, d1]
