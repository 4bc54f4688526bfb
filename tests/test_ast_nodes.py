"""
Tests for typed expression trees: evaluation, typing, copying and serialization.
"""

import math

import pytest

from gp_evolution.ast_nodes import (EphemeralConstant, Function, FunctionNode, LiteralNode,
                                    VariableNode, is_same_primitive, node_from_dict)
from gp_evolution.exceptions import EvaluationError
from gp_evolution.primitives import FUNCTIONS
from gp_evolution.types import DataType, data_type_of, widest

AND, OR, NOT, IF = FUNCTIONS['AND'], FUNCTIONS['OR'], FUNCTIONS['NOT'], FUNCTIONS['IF']
ADD, DIV, POW = FUNCTIONS['ADD'], FUNCTIONS['DIV'], FUNCTIONS['POW']


def _exploding():
    """Terminal-like function that fails if it is ever evaluated."""
    def explode(children, env):
        raise AssertionError("child should not have been evaluated")
    return Function('BOOM', 0, explode, lambda: DataType.BOOLEAN)()


def _exploding_double():
    def explode(children, env):
        raise AssertionError("branch should not have been evaluated")
    return Function('BOOM', 0, explode, lambda: DataType.DOUBLE)()


class TestDataTypes:
    """Test data type inference and numeric widening."""

    def test_bool_is_not_integer(self):
        assert data_type_of(True) == DataType.BOOLEAN
        assert data_type_of(3) == DataType.INTEGER
        assert data_type_of(3.0) == DataType.DOUBLE

    def test_widest_numeric_type(self):
        assert widest(DataType.INTEGER, DataType.DOUBLE) == DataType.DOUBLE
        assert widest(DataType.INTEGER, DataType.LONG) == DataType.LONG
        assert widest(DataType.INTEGER, DataType.BOOLEAN) is None


class TestEvaluation:
    """Test evaluation of trees against a binding environment."""

    def test_variables_read_environment(self, d0, d1):
        tree = AND(d0, d1)
        assert tree.evaluate({'D0': True, 'D1': True}) is True
        assert tree.evaluate({'D0': True, 'D1': False}) is False

    def test_unbound_variable_raises(self, d0):
        with pytest.raises(EvaluationError):
            d0.evaluate({})

    def test_and_short_circuits(self):
        tree = AND(LiteralNode(False), _exploding())
        assert tree.evaluate() is False

    def test_or_short_circuits(self):
        tree = OR(LiteralNode(True), _exploding())
        assert tree.evaluate() is True

    @pytest.mark.parametrize('identifier, first, expected', [
        ('NAND', False, True),
        ('NOR', True, False),
        ('IMPLIES', False, True),
    ])
    def test_negated_forms_short_circuit(self, identifier, first, expected):
        tree = FUNCTIONS[identifier](LiteralNode(first), _exploding())
        assert tree.evaluate() is expected

    def test_if_evaluates_one_branch(self):
        tree = IF(LiteralNode(True), LiteralNode(1.0), _exploding_double())
        assert tree.evaluate() == 1.0

    def test_protected_division(self):
        assert DIV(LiteralNode(4.0), LiteralNode(0.0)).evaluate() == 4.0
        assert DIV(LiteralNode(4.0), LiteralNode(2.0)).evaluate() == 2.0

    def test_power_of_tiny_base_stays_finite(self):
        x = VariableNode('X', DataType.DOUBLE)
        tree = POW(x, LiteralNode(-10.0))
        assert tree.evaluate({'X': 1e-40}) == 0.0
        assert tree.evaluate({'X': 0.0}) == 0.0
        assert math.isfinite(tree.evaluate({'X': 1e-5}))
        assert tree.evaluate({'X': -2.0}) == pytest.approx(2.0 ** -10 * -1)


class TestTyping:
    """Test type resolution of function nodes."""

    def test_boolean_function_accepts_booleans(self, d0, d1):
        assert AND(d0, d1).data_type == DataType.BOOLEAN

    def test_boolean_function_rejects_numbers(self, d0):
        tree = AND(d0, LiteralNode(1.0))
        assert tree.data_type is None
        assert not tree.is_well_typed()

    def test_numeric_promotion(self):
        assert ADD(LiteralNode(1), LiteralNode(2)).data_type == DataType.INTEGER
        assert ADD(LiteralNode(1), LiteralNode(2.5)).data_type == DataType.DOUBLE

    def test_ill_typed_child_makes_parent_ill_typed(self, d0):
        assert NOT(AND(d0, LiteralNode(1.0))).data_type is None

    def test_wrong_arity_rejected(self, d0):
        with pytest.raises(ValueError):
            FunctionNode(AND, [d0])
        assert AND.resolve_type(DataType.BOOLEAN) is None


class TestTreeStructure:
    """Test indexing, depth, length, copying and structural equality."""

    @pytest.fixture
    def tree(self, d0, d1):
        # OR(AND(D0, D1), NOT(D0))
        return OR(AND(d0, d1), NOT(d0.copy()))

    def test_depth_and_length(self, tree, d0):
        assert tree.get_depth() == 2
        assert tree.get_length() == 6
        assert d0.get_depth() == 0
        assert d0.get_length() == 1

    def test_pre_order_indexing(self, tree):
        identifiers = [node.identifier for node in tree.get_all_nodes()]
        assert identifiers == ['OR', 'AND', 'D0', 'D1', 'NOT', 'D0']
        assert tree.get_node(4).identifier == 'NOT'

    def test_index_out_of_range(self, tree):
        with pytest.raises(IndexError):
            tree.get_node(6)
        with pytest.raises(IndexError):
            tree.get_node(-1)

    def test_replace_node(self, tree):
        root = tree.replace_node(4, LiteralNode(True))
        assert root is tree
        assert str(tree) == 'OR(AND(D0, D1), True)'

    def test_replace_root(self, tree):
        replacement = LiteralNode(False)
        assert tree.replace_node(0, replacement) is replacement

    def test_copy_preserves_type_and_value(self, tree):
        env = {'D0': True, 'D1': False}
        clone = tree.copy()
        assert clone.data_type == tree.data_type
        assert clone.evaluate(env) == tree.evaluate(env)

    def test_copy_is_independent(self, tree):
        clone = tree.copy()
        assert clone.structural_equals(tree)
        clone.replace_node(2, LiteralNode(True))
        assert not clone.structural_equals(tree)
        assert str(tree) == 'OR(AND(D0, D1), NOT(D0))'

    def test_shallow_structural_equality(self, d0, d1):
        assert AND(d0, d1).structural_equals(AND(d1, d0), deep=False)
        assert not AND(d0, d1).structural_equals(AND(d1, d0))
        assert not AND(d0, d1).structural_equals(OR(d0, d1), deep=False)

    def test_literal_equality_considers_type(self):
        assert LiteralNode(1.0).structural_equals(LiteralNode(1.0))
        assert not LiteralNode(1).structural_equals(LiteralNode(1.0, DataType.DOUBLE))

    def test_is_same_primitive(self, d0, d1):
        assert is_same_primitive(AND, AND(d0, d1))
        assert not is_same_primitive(OR, AND(d0, d1))
        assert is_same_primitive(d0, d0.copy())


class TestSerialization:
    """Test dictionary round trips of trees."""

    def test_round_trip(self, d0):
        tree = IF(d0, ADD(LiteralNode(1.5), VariableNode('X', DataType.DOUBLE)), LiteralNode(0.0))
        restored = node_from_dict(tree.to_dict(), FUNCTIONS)
        assert restored.structural_equals(tree)
        assert restored.data_type == DataType.DOUBLE

    def test_unknown_function(self):
        data = {'type': 'Function', 'identifier': 'NOPE', 'children': []}
        with pytest.raises(ValueError):
            node_from_dict(data, FUNCTIONS)

    def test_unknown_node_type(self):
        with pytest.raises(ValueError):
            node_from_dict({'type': 'Mystery'}, FUNCTIONS)


class TestEphemeralConstant:
    """Test random constant terminals."""

    def test_double_within_bounds(self, rng):
        erc = EphemeralConstant(-1.0, 1.0)
        for _ in range(50):
            literal = erc.instantiate((), rng)
            assert isinstance(literal, LiteralNode)
            assert -1.0 <= literal.value <= 1.0
            assert literal.data_type == DataType.DOUBLE

    def test_integer_bounds_inclusive(self, rng):
        erc = EphemeralConstant(0, 2, DataType.INTEGER)
        values = {erc.instantiate((), rng).value for _ in range(100)}
        assert values == {0, 1, 2}

    def test_requires_random_source(self):
        with pytest.raises(ValueError):
            EphemeralConstant(0.0, 1.0).instantiate()
