"""
gp_evolution/problems.py - Example fitness plug-ins used by the command line
"""
import itertools
from dataclasses import dataclass
from typing import Any, List, Sequence

from .ast_nodes import VariableNode
from .fitness import CaseFitness
from .primitives import function_set
from .types import DataType


@dataclass
class Problem:
    """Everything the engine needs to evolve programs for one task"""
    name: str
    syntax: List[Any]
    evaluator: CaseFitness
    return_type: DataType
    perfect_fitness: float = 0.0


def even_parity(bits: int = 2, functions: Sequence[str] = ('AND', 'OR', 'NOT')) -> Problem:
    """True when an even number of the inputs D0..D{bits-1} are true; fitness counts wrong cases"""
    if bits < 1:
        raise ValueError("bits must be at least 1")
    variables = [VariableNode(f"D{i}", DataType.BOOLEAN) for i in range(bits)]
    cases = []
    for values in itertools.product([False, True], repeat=bits):
        env = {variable.name: value for variable, value in zip(variables, values)}
        cases.append((env, sum(values) % 2 == 0))
    syntax = function_set(*functions) + variables
    return Problem(f"even-{bits}-parity", syntax, CaseFitness(cases, 'mismatches'), DataType.BOOLEAN)


def quartic_regression(points: int = 20,
                       functions: Sequence[str] = ('ADD', 'SUB', 'MUL', 'DIV')) -> Problem:
    """Symbolic regression of x^4 + x^3 + x^2 + x on [-1, 1]; fitness sums absolute error"""
    if points < 2:
        raise ValueError("points must be at least 2")
    x = VariableNode('X', DataType.DOUBLE)
    cases = []
    for i in range(points):
        value = -1.0 + 2.0 * i / (points - 1)
        cases.append(({'X': value}, value ** 4 + value ** 3 + value ** 2 + value))
    syntax = function_set(*functions) + [x]
    return Problem("quartic-regression", syntax, CaseFitness(cases, 'absolute_error'), DataType.DOUBLE)


PROBLEMS = {
    'parity': even_parity,
    'regression': quartic_regression,
}
