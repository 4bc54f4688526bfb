"""
gp_evolution/individual.py - Candidate solution and JSON serialization
"""
import json
from typing import Any, Dict, List, Mapping, Optional

from .ast_nodes import Env, ExpressionNode, Function, node_from_dict
from .types import DataType


class Individual:
    """An expression tree plus its cached fitness.

    The fitness is None until evaluated and is cleared whenever the tree is
    changed through ``set_node``. The tree is owned exclusively by this
    individual; ``copy`` deep-copies it.
    """

    def __init__(self, root: ExpressionNode, fitness: Optional[float] = None):
        self.root = root
        self._fitness = fitness

    @property
    def fitness(self) -> Optional[float]:
        return self._fitness

    @fitness.setter
    def fitness(self, value: Optional[float]) -> None:
        self._fitness = value

    def is_evaluated(self) -> bool:
        return self._fitness is not None

    def invalidate(self) -> None:
        self._fitness = None

    def evaluate(self, env: Optional[Env] = None) -> Any:
        return self.root.evaluate(env)

    @property
    def data_type(self) -> Optional[DataType]:
        return self.root.data_type

    def is_well_typed(self) -> bool:
        return self.root.is_well_typed()

    def get_length(self) -> int:
        return self.root.get_length()

    def get_depth(self) -> int:
        return self.root.get_depth()

    def get_node(self, index: int) -> ExpressionNode:
        return self.root.get_node(index)

    def set_node(self, index: int, node: ExpressionNode) -> None:
        """Replace the subtree at pre-order ``index``; the node becomes owned by this tree"""
        self.root = self.root.replace_node(index, node)
        self.invalidate()

    def get_all_nodes(self) -> List[ExpressionNode]:
        return self.root.get_all_nodes()

    def get_function_indices(self) -> List[int]:
        return [i for i, node in enumerate(self.get_all_nodes()) if not node.is_terminal()]

    def get_terminal_indices(self) -> List[int]:
        return [i for i, node in enumerate(self.get_all_nodes()) if node.is_terminal()]

    def structural_equals(self, other: 'Individual') -> bool:
        return self.root.structural_equals(other.root, deep=True)

    def copy(self) -> 'Individual':
        """Deep-copy the tree; the fitness value is immutable so it is shared"""
        return Individual(self.root.copy(), self._fitness)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'tree': self.root.to_dict(),
            'fitness': self._fitness,
            'length': self.get_length(),
            'depth': self.get_depth(),
            'expression': str(self.root)
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any], functions: Mapping[str, Function]) -> 'Individual':
        return cls(node_from_dict(data['tree'], functions), data.get('fitness'))

    def to_json(self, filename: Optional[str] = None) -> str:
        """Serialize to JSON string or file"""
        json_str = json.dumps(self.to_dict(), indent=2)
        if filename:
            with open(filename, 'w') as f:
                f.write(json_str)
        return json_str

    @classmethod
    def from_json(cls, functions: Mapping[str, Function], json_data: Optional[str] = None,
                  filename: Optional[str] = None) -> 'Individual':
        """Deserialize from JSON string or file"""
        if filename:
            with open(filename, 'r') as f:
                json_data = f.read()
        return cls.from_dict(json.loads(json_data), functions)

    def __str__(self) -> str:
        return str(self.root)

    def __repr__(self) -> str:
        return f"Individual({self.root}, fitness={self._fitness})"
