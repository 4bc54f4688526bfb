"""
gp_evolution - Strongly-typed genetic programming

Programs are expression trees of typed functions, literals and variables.
They are bred with crossover, mutation and reproduction inside a generational
loop that reports its progress on an event bus.
"""

__version__ = "0.1.0"
__author__ = "GP Evolution Project"

from .types import DataType
from .exceptions import ConfigurationError, EvaluationError, EvolutionError, RunFailedError
from .random_source import RandomSource, MersenneTwister, NumpyRandomSource
from .ast_nodes import (
    Function, ExpressionNode, FunctionNode, LiteralNode, VariableNode, EphemeralConstant,
    node_from_dict
)
from .primitives import FUNCTIONS, function_set, action
from .individual import Individual
from .fitness import FitnessOrder, MINIMISE, MAXIMISE, FitnessEvaluator, CaseFitness
from .population import Population
from .initialisation import FullInitialiser, GrowInitialiser, RampedHalfAndHalfInitialiser
from .selection import RandomSelector, TournamentSelector, FitnessProportionateSelector
from .crossover import SubtreeCrossover, OnePointCrossover
from .mutation import PointMutation, SubtreeMutation
from .events import EventBus, Accepted, Rejected, default_bus
from .termination import MaxGenerations, FitnessThreshold, MaxWallClock
from .config import EvolutionConfig
from .breeder import GenerationalStrategy, Evolver, RunResult, BatchResult
from .stats import GenerationStatistics, RunStatistics, OperatorStatistics
from .archive import EvolutionArchive

__all__ = [
    'DataType',
    'ConfigurationError', 'EvaluationError', 'EvolutionError', 'RunFailedError',
    'RandomSource', 'MersenneTwister', 'NumpyRandomSource',
    'Function', 'ExpressionNode', 'FunctionNode', 'LiteralNode', 'VariableNode',
    'EphemeralConstant', 'node_from_dict',
    'FUNCTIONS', 'function_set', 'action',
    'Individual',
    'FitnessOrder', 'MINIMISE', 'MAXIMISE', 'FitnessEvaluator', 'CaseFitness',
    'Population',
    'FullInitialiser', 'GrowInitialiser', 'RampedHalfAndHalfInitialiser',
    'RandomSelector', 'TournamentSelector', 'FitnessProportionateSelector',
    'SubtreeCrossover', 'OnePointCrossover',
    'PointMutation', 'SubtreeMutation',
    'EventBus', 'Accepted', 'Rejected', 'default_bus',
    'MaxGenerations', 'FitnessThreshold', 'MaxWallClock',
    'EvolutionConfig',
    'GenerationalStrategy', 'Evolver', 'RunResult', 'BatchResult',
    'GenerationStatistics', 'RunStatistics', 'OperatorStatistics',
    'EvolutionArchive'
]
