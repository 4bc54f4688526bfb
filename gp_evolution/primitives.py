"""
gp_evolution/primitives.py - Standard function primitives with safe semantics

Boolean and conditional functions evaluate their children lazily: a child is
only evaluated when its value can still change the result.
"""
import math
from typing import Dict, List, Optional

from .ast_nodes import Function
from .types import DataType, all_equal, is_numeric, widest


def _clip(value, low, high):
    return max(low, min(high, value))


# Type rules

def _boolean_rule(*types: DataType) -> Optional[DataType]:
    return DataType.BOOLEAN if all_equal(types, DataType.BOOLEAN) else None


def _numeric_rule(*types: DataType) -> Optional[DataType]:
    return widest(*types)


def _double_rule(*types: DataType) -> Optional[DataType]:
    return DataType.DOUBLE if widest(*types) is not None else None


def _comparison_rule(*types: DataType) -> Optional[DataType]:
    return DataType.BOOLEAN if widest(*types) is not None else None


def _void_rule(*types: DataType) -> Optional[DataType]:
    return DataType.VOID if all_equal(types, DataType.VOID) else None


def _if_rule(condition: DataType, then: DataType, otherwise: DataType) -> Optional[DataType]:
    if condition != DataType.BOOLEAN:
        return None
    if then == otherwise:
        return then
    if is_numeric(then) and is_numeric(otherwise):
        return widest(then, otherwise)
    return None


# Boolean

def _and(children, env):
    return bool(children[0].evaluate(env)) and bool(children[1].evaluate(env))


def _or(children, env):
    return bool(children[0].evaluate(env)) or bool(children[1].evaluate(env))


def _nand(children, env):
    return not _and(children, env)


def _nor(children, env):
    return not _or(children, env)


def _xor(children, env):
    return bool(children[0].evaluate(env)) != bool(children[1].evaluate(env))


def _implies(children, env):
    return (not children[0].evaluate(env)) or bool(children[1].evaluate(env))


def _not(children, env):
    return not children[0].evaluate(env)


def _if(children, env):
    if children[0].evaluate(env):
        return children[1].evaluate(env)
    return children[2].evaluate(env)


# Numeric

def _div(children, env):
    left = children[0].evaluate(env)
    right = children[1].evaluate(env)
    # Protected division
    divisor = 1.0 if abs(right) < 1e-10 else right
    return left / divisor


def _mod(children, env):
    left = children[0].evaluate(env)
    right = children[1].evaluate(env)
    if abs(right) < 1e-10:
        return left
    return left % right


def _pow(children, env):
    base = _clip(children[0].evaluate(env), -100, 100)
    exponent = _clip(children[1].evaluate(env), -10, 10)
    # Tiny bases would overflow with negative exponents
    if abs(base) < 1e-10:
        return 0.0
    return math.copysign(abs(base) ** exponent, base)


def _sqrt(children, env):
    return math.sqrt(abs(children[0].evaluate(env)))


def _exp(children, env):
    return math.exp(_clip(children[0].evaluate(env), -10, 10))


def _binary(op):
    return lambda children, env: op(children[0].evaluate(env), children[1].evaluate(env))


def _unary(op):
    return lambda children, env: op(children[0].evaluate(env))


def _clipped_unary(op):
    return lambda children, env: op(_clip(children[0].evaluate(env), -100, 100))


# Action

def _sequence(children, env):
    for child in children:
        child.evaluate(env)
    return None


BOOLEAN_FUNCTIONS: Dict[str, Function] = {f.identifier: f for f in [
    Function('AND', 2, _and, _boolean_rule),
    Function('OR', 2, _or, _boolean_rule),
    Function('NAND', 2, _nand, _boolean_rule),
    Function('NOR', 2, _nor, _boolean_rule),
    Function('XOR', 2, _xor, _boolean_rule),
    Function('IMPLIES', 2, _implies, _boolean_rule),
    Function('NOT', 1, _not, _boolean_rule),
]}

NUMERIC_FUNCTIONS: Dict[str, Function] = {f.identifier: f for f in [
    Function('ADD', 2, _binary(lambda a, b: a + b), _numeric_rule),
    Function('SUB', 2, _binary(lambda a, b: a - b), _numeric_rule),
    Function('MUL', 2, _binary(lambda a, b: a * b), _numeric_rule),
    Function('DIV', 2, _div, _double_rule),
    Function('MOD', 2, _mod, _numeric_rule),
    Function('MAX', 2, _binary(max), _numeric_rule),
    Function('MIN', 2, _binary(min), _numeric_rule),
    Function('POW', 2, _pow, _double_rule),
    Function('GT', 2, _binary(lambda a, b: a > b), _comparison_rule),
    Function('LT', 2, _binary(lambda a, b: a < b), _comparison_rule),
    Function('ABS', 1, _unary(abs), _numeric_rule),
    Function('NEG', 1, _unary(lambda a: -a), _numeric_rule),
    Function('SQRT', 1, _sqrt, _double_rule),
    Function('EXP', 1, _exp, _double_rule),
    Function('SIN', 1, _clipped_unary(math.sin), _double_rule),
    Function('COS', 1, _clipped_unary(math.cos), _double_rule),
    Function('TANH', 1, _clipped_unary(math.tanh), _double_rule),
]}

ACTION_FUNCTIONS: Dict[str, Function] = {f.identifier: f for f in [
    Function('SEQ2', 2, _sequence, _void_rule),
    Function('SEQ3', 3, _sequence, _void_rule),
]}

CONDITIONAL_FUNCTIONS: Dict[str, Function] = {
    'IF': Function('IF', 3, _if, _if_rule),
}

FUNCTIONS: Dict[str, Function] = {
    **BOOLEAN_FUNCTIONS, **NUMERIC_FUNCTIONS, **ACTION_FUNCTIONS, **CONDITIONAL_FUNCTIONS
}


def function_set(*identifiers: str) -> List[Function]:
    """Look up standard functions by identifier, in the order given"""
    missing = [name for name in identifiers if name not in FUNCTIONS]
    if missing:
        raise KeyError(f"Unknown functions: {', '.join(missing)}")
    return [FUNCTIONS[name] for name in identifiers]


def action(identifier: str, callback) -> Function:
    """Zero-arity VOID function that runs ``callback(env)`` when evaluated"""
    return Function(identifier, 0, lambda children, env: callback(env),
                    lambda: DataType.VOID)
