"""
gp_evolution/ast_nodes.py - Typed expression tree nodes and primitive descriptors

A tree is built from three closed node kinds: FunctionNode (a Function
primitive applied to child nodes), LiteralNode (a constant) and VariableNode
(a named binding looked up in the environment passed to ``evaluate``).
"""
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple

from .exceptions import EvaluationError
from .types import DataType, data_type_of

Env = Mapping[str, Any]
EvalRule = Callable[[Sequence['ExpressionNode'], Env], Any]
TypeRule = Callable[..., Optional[DataType]]


class Function:
    """Function primitive: identifier, fixed arity, evaluation rule and type rule.

    The evaluation rule receives the child nodes unevaluated together with the
    binding environment and decides itself which children to evaluate. Boolean
    and conditional primitives rely on this to short-circuit, which matters for
    side-effecting (VOID) children.
    """

    def __init__(self, identifier: str, arity: int, evaluate: EvalRule, resolve_type: TypeRule):
        if arity < 0:
            raise ValueError("arity must not be negative")
        self.identifier = identifier
        self.arity = arity
        self._evaluate = evaluate
        self._type_rule = resolve_type

    def evaluate(self, children: Sequence['ExpressionNode'], env: Env) -> Any:
        return self._evaluate(children, env)

    def resolve_type(self, *arg_types: DataType) -> Optional[DataType]:
        """Return type for the given argument types, or None if they are invalid"""
        if len(arg_types) != self.arity:
            return None
        return self._type_rule(*arg_types)

    def instantiate(self, children: Sequence['ExpressionNode'] = (), rng=None) -> 'FunctionNode':
        return FunctionNode(self, list(children))

    def __call__(self, *children: 'ExpressionNode') -> 'FunctionNode':
        return FunctionNode(self, list(children))

    def __repr__(self):
        return f"Function({self.identifier!r}, arity={self.arity})"


class ExpressionNode(ABC):
    """Base class for all expression tree nodes"""

    children: Sequence['ExpressionNode'] = ()

    @property
    @abstractmethod
    def identifier(self) -> str:
        pass

    @property
    def arity(self) -> int:
        return len(self.children)

    @property
    @abstractmethod
    def data_type(self) -> Optional[DataType]:
        """Resolved return type of this subtree, None if it is ill-typed"""

    @abstractmethod
    def evaluate(self, env: Optional[Env] = None) -> Any:
        pass

    @abstractmethod
    def copy(self) -> 'ExpressionNode':
        """Create a deep copy of this subtree"""

    @abstractmethod
    def structural_equals(self, other: 'ExpressionNode', deep: bool = True) -> bool:
        pass

    @abstractmethod
    def to_dict(self) -> Dict[str, Any]:
        pass

    def is_terminal(self) -> bool:
        return self.arity == 0

    def is_well_typed(self) -> bool:
        return self.data_type is not None

    def get_all_nodes(self) -> List['ExpressionNode']:
        """All nodes of this subtree in pre-order"""
        nodes = [self]
        for child in self.children:
            nodes.extend(child.get_all_nodes())
        return nodes

    def get_depth(self) -> int:
        """Maximum depth of this subtree; a lone terminal has depth 0"""
        if not self.children:
            return 0
        return 1 + max(child.get_depth() for child in self.children)

    def get_length(self) -> int:
        return 1 + sum(child.get_length() for child in self.children)

    def locate(self, index: int) -> Tuple[Optional['FunctionNode'], int, 'ExpressionNode']:
        """Find the pre-order ``index``th node with its parent and child slot"""
        if index < 0:
            raise IndexError(f"Node index out of range: {index}")
        stack = [(None, -1, self)]
        position = 0
        while stack:
            parent, slot, node = stack.pop()
            if position == index:
                return parent, slot, node
            position += 1
            for i in range(len(node.children) - 1, -1, -1):
                stack.append((node, i, node.children[i]))
        raise IndexError(f"Node index out of range: {index}")

    def get_node(self, index: int) -> 'ExpressionNode':
        return self.locate(index)[2]

    def replace_node(self, index: int, replacement: 'ExpressionNode') -> 'ExpressionNode':
        """Put ``replacement`` at pre-order ``index`` and return the (possibly new) root"""
        parent, slot, _ = self.locate(index)
        if parent is None:
            return replacement
        parent.children[slot] = replacement
        return self


class FunctionNode(ExpressionNode):
    """A function primitive applied to exactly ``function.arity`` children"""

    def __init__(self, function: Function, children: Optional[List[ExpressionNode]] = None):
        children = list(children) if children is not None else []
        if len(children) != function.arity:
            raise ValueError(f"{function.identifier} takes {function.arity} children, "
                             f"got {len(children)}")
        self.function = function
        self.children = children

    @property
    def identifier(self) -> str:
        return self.function.identifier

    @property
    def arity(self) -> int:
        return self.function.arity

    @property
    def data_type(self) -> Optional[DataType]:
        child_types = [child.data_type for child in self.children]
        if any(t is None for t in child_types):
            return None
        return self.function.resolve_type(*child_types)

    def evaluate(self, env: Optional[Env] = None) -> Any:
        return self.function.evaluate(self.children, env if env is not None else {})

    def copy(self) -> 'FunctionNode':
        return FunctionNode(self.function, [child.copy() for child in self.children])

    def structural_equals(self, other: ExpressionNode, deep: bool = True) -> bool:
        if not isinstance(other, FunctionNode):
            return False
        if other.identifier != self.identifier or other.arity != self.arity:
            return False
        if not deep:
            return True
        return all(a.structural_equals(b) for a, b in zip(self.children, other.children))

    def to_dict(self) -> Dict[str, Any]:
        return {
            'type': 'Function',
            'identifier': self.identifier,
            'children': [child.to_dict() for child in self.children]
        }

    def __str__(self):
        if not self.children:
            return self.identifier
        return f"{self.identifier}({', '.join(str(child) for child in self.children)})"


class LiteralNode(ExpressionNode):
    """Constant value; also usable directly as a terminal primitive"""

    def __init__(self, value: Any, data_type: Optional[DataType] = None):
        self.value = value
        self._data_type = data_type if data_type is not None else data_type_of(value)

    @property
    def identifier(self) -> str:
        return str(self.value)

    @property
    def data_type(self) -> DataType:
        return self._data_type

    def resolve_type(self, *arg_types: DataType) -> Optional[DataType]:
        return None if arg_types else self._data_type

    def instantiate(self, children: Sequence[ExpressionNode] = (), rng=None) -> 'LiteralNode':
        return self.copy()

    def evaluate(self, env: Optional[Env] = None) -> Any:
        return self.value

    def copy(self) -> 'LiteralNode':
        return LiteralNode(self.value, self._data_type)

    def structural_equals(self, other: ExpressionNode, deep: bool = True) -> bool:
        return (isinstance(other, LiteralNode) and other.data_type == self.data_type
                and other.value == self.value)

    def to_dict(self) -> Dict[str, Any]:
        return {'type': 'Literal', 'value': self.value, 'data_type': self._data_type.value}

    def __str__(self):
        if isinstance(self.value, float):
            return f"{self.value:.3f}"
        return str(self.value)


class VariableNode(ExpressionNode):
    """Named input; its value comes from the binding environment at evaluation"""

    def __init__(self, name: str, data_type: DataType):
        self.name = name
        self._data_type = data_type

    @property
    def identifier(self) -> str:
        return self.name

    @property
    def data_type(self) -> DataType:
        return self._data_type

    def resolve_type(self, *arg_types: DataType) -> Optional[DataType]:
        return None if arg_types else self._data_type

    def instantiate(self, children: Sequence[ExpressionNode] = (), rng=None) -> 'VariableNode':
        return self.copy()

    def evaluate(self, env: Optional[Env] = None) -> Any:
        try:
            return (env or {})[self.name]
        except KeyError:
            raise EvaluationError(f"Variable {self.name!r} is not bound") from None

    def copy(self) -> 'VariableNode':
        return VariableNode(self.name, self._data_type)

    def structural_equals(self, other: ExpressionNode, deep: bool = True) -> bool:
        return (isinstance(other, VariableNode) and other.name == self.name
                and other.data_type == self.data_type)

    def to_dict(self) -> Dict[str, Any]:
        return {'type': 'Variable', 'name': self.name, 'data_type': self._data_type.value}

    def __str__(self):
        return self.name


class EphemeralConstant:
    """Terminal primitive that becomes a fresh random literal each time it is used"""

    arity = 0

    def __init__(self, lower: float, upper: float, data_type: DataType = DataType.DOUBLE,
                 identifier: str = 'ERC'):
        if upper < lower:
            raise ValueError("upper must not be below lower")
        self.lower = lower
        self.upper = upper
        self.data_type = data_type
        self.identifier = identifier

    def resolve_type(self, *arg_types: DataType) -> Optional[DataType]:
        return None if arg_types else self.data_type

    def instantiate(self, children: Sequence[ExpressionNode] = (), rng=None) -> LiteralNode:
        if rng is None:
            raise ValueError("An ephemeral constant needs a random source")
        if self.data_type == DataType.BOOLEAN:
            value = rng.next_boolean()
        elif self.data_type in (DataType.INTEGER, DataType.LONG):
            value = int(self.lower) + rng.next_int(int(self.upper) - int(self.lower) + 1)
        else:
            value = self.lower + rng.next_double() * (self.upper - self.lower)
        return LiteralNode(value, self.data_type)

    def __repr__(self):
        return f"EphemeralConstant({self.lower}, {self.upper}, {self.data_type})"


def is_same_primitive(primitive: Any, node: ExpressionNode) -> bool:
    """Whether ``node`` is an instance of ``primitive`` (children are ignored)"""
    if isinstance(primitive, Function):
        return isinstance(node, FunctionNode) and node.identifier == primitive.identifier
    if isinstance(primitive, ExpressionNode):
        return primitive.structural_equals(node, deep=False)
    return False


def node_from_dict(data: Dict[str, Any], functions: Mapping[str, Function]) -> ExpressionNode:
    """Create a tree from its ``to_dict`` form, resolving functions by identifier"""
    node_type = data['type']

    if node_type == 'Function':
        try:
            function = functions[data['identifier']]
        except KeyError:
            raise ValueError(f"Unknown function: {data['identifier']}") from None
        children = [node_from_dict(child, functions) for child in data['children']]
        return FunctionNode(function, children)
    elif node_type == 'Literal':
        return LiteralNode(data['value'], DataType(data['data_type']))
    elif node_type == 'Variable':
        return VariableNode(data['name'], DataType(data['data_type']))
    else:
        raise ValueError(f"Unknown node type: {node_type}")
