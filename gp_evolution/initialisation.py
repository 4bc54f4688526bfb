"""
gp_evolution/initialisation.py - Type-directed construction of initial populations

Trees are grown towards a required return type. Before building anything the
syntax is analysed to find which data types each primitive can return, and at
which depths every type is reachable, so generation only ever picks
primitives that can be completed into a well-typed tree.
"""
import itertools
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Sequence, Set, Tuple

from .ast_nodes import ExpressionNode
from .exceptions import ConfigurationError
from .individual import Individual
from .population import Population
from .random_source import RandomSource
from .types import DataType

logger = logging.getLogger(__name__)

Signature = Tuple[Tuple[DataType, ...], DataType]


def validate_syntax(syntax: Sequence[Any]) -> List[Any]:
    """Check every primitive exposes the primitive protocol; reject empty sets"""
    if not syntax:
        raise ConfigurationError("Syntax must contain at least one primitive")
    for primitive in syntax:
        if primitive is None or not all(hasattr(primitive, attr)
                                        for attr in ('arity', 'resolve_type', 'instantiate')):
            raise ConfigurationError(f"Not a valid primitive: {primitive!r}")
    if not any(primitive.arity == 0 for primitive in syntax):
        raise ConfigurationError("Syntax must contain at least one terminal")
    return list(syntax)


class SyntaxTable:
    """Type signatures of a syntax and the data types reachable at each depth"""

    def __init__(self, syntax: Sequence[Any]):
        self.syntax = validate_syntax(syntax)
        self.terminals: List[Tuple[Any, DataType]] = []
        for primitive in self.syntax:
            if primitive.arity == 0:
                data_type = primitive.resolve_type()
                if data_type is not None:
                    self.terminals.append((primitive, data_type))
        self.functions = [p for p in self.syntax if p.arity > 0]
        self.data_types = self._reachable_types()
        self.signatures: Dict[int, List[Signature]] = {
            id(f): self._signatures(f) for f in self.functions
        }
        self._full: List[Set[DataType]] = [{t for _, t in self.terminals}]
        self._grow: List[Set[DataType]] = [{t for _, t in self.terminals}]

    def _reachable_types(self) -> List[DataType]:
        found = {t for _, t in self.terminals}
        changed = True
        while changed:
            changed = False
            ordered = [t for t in DataType if t in found]
            for function in self.functions:
                for args in itertools.product(ordered, repeat=function.arity):
                    result = function.resolve_type(*args)
                    if result is not None and result not in found:
                        found.add(result)
                        changed = True
        return [t for t in DataType if t in found]

    def _signatures(self, function) -> List[Signature]:
        signatures = []
        for args in itertools.product(self.data_types, repeat=function.arity):
            result = function.resolve_type(*args)
            if result is not None:
                signatures.append((args, result))
        return signatures

    def full_types(self, depth: int) -> Set[DataType]:
        """Types of trees whose every leaf sits at exactly ``depth``"""
        while len(self._full) <= depth:
            below = self._full[-1]
            self._full.append({ret for f in self.functions for args, ret in self.signatures[id(f)]
                               if all(a in below for a in args)})
        return self._full[depth]

    def grow_types(self, depth: int) -> Set[DataType]:
        """Types of trees with depth at most ``depth``"""
        while len(self._grow) <= depth:
            below = self._grow[-1]
            grown = {ret for f in self.functions for args, ret in self.signatures[id(f)]
                     if all(a in below for a in args)}
            self._grow.append(below | grown)
        return self._grow[depth]

    def terminals_of(self, data_type: DataType) -> List[Any]:
        return [p for p, t in self.terminals if t == data_type]

    def signatures_for(self, function, data_type: DataType, allowed: Set[DataType]) -> List[Signature]:
        return [(args, ret) for args, ret in self.signatures[id(function)]
                if ret == data_type and all(a in allowed for a in args)]


class TreeBuilder:
    """Builds random well-typed trees with the Full and Grow methods"""

    def __init__(self, syntax: Sequence[Any], rng: RandomSource):
        if rng is None:
            raise ConfigurationError("A random source is required")
        self.table = syntax if isinstance(syntax, SyntaxTable) else SyntaxTable(syntax)
        self.rng = rng

    def can_full(self, depth: int, data_type: DataType) -> bool:
        return data_type in self.table.full_types(depth)

    def can_grow(self, depth: int, data_type: DataType) -> bool:
        return data_type in self.table.grow_types(depth)

    def full(self, depth: int, data_type: DataType) -> ExpressionNode:
        """Tree of exactly ``depth`` along every branch"""
        if depth == 0:
            return self.rng.choice(self.table.terminals_of(data_type)).instantiate((), self.rng)
        allowed = self.table.full_types(depth - 1)
        options = [(f, sigs) for f in self.table.functions
                   for sigs in [self.table.signatures_for(f, data_type, allowed)] if sigs]
        if not options:
            raise ConfigurationError(f"Syntax cannot build a {data_type} tree of depth {depth}")
        function, signatures = self.rng.choice(options)
        arg_types, _ = self.rng.choice(signatures)
        children = [self.full(depth - 1, t) for t in arg_types]
        return function.instantiate(children, self.rng)

    def grow(self, max_depth: int, data_type: DataType) -> ExpressionNode:
        """Tree of at most ``max_depth``, each primitive chosen uniformly among valid ones"""
        options: List[Tuple[Any, Optional[List[Signature]]]] = [
            (p, None) for p in self.table.terminals_of(data_type)]
        if max_depth > 0:
            allowed = self.table.grow_types(max_depth - 1)
            for function in self.table.functions:
                signatures = self.table.signatures_for(function, data_type, allowed)
                if signatures:
                    options.append((function, signatures))
        if not options:
            raise ConfigurationError(f"Syntax cannot build a {data_type} tree within depth {max_depth}")
        primitive, signatures = self.rng.choice(options)
        if signatures is None:
            return primitive.instantiate((), self.rng)
        arg_types, _ = self.rng.choice(signatures)
        children = [self.grow(max_depth - 1, t) for t in arg_types]
        return primitive.instantiate(children, self.rng)


class Initialiser(ABC):
    """Creates the starting population"""

    def __init__(self, syntax: Sequence[Any], return_type: DataType, rng: RandomSource,
                 allow_duplicates: bool = True, max_attempts: int = 1000):
        if max_attempts < 1:
            raise ConfigurationError("max_attempts must be at least 1")
        self.builder = TreeBuilder(syntax, rng)
        self.return_type = return_type
        self.rng = rng
        self.allow_duplicates = allow_duplicates
        self.max_attempts = max_attempts

    @abstractmethod
    def create_tree(self) -> ExpressionNode:
        pass

    def create_individual(self) -> Individual:
        return Individual(self.create_tree())

    def create_population(self, size: int) -> Population:
        """Create ``size`` individuals, rejecting duplicates if they are not allowed"""
        if size < 1:
            raise ConfigurationError("Population size must be positive")
        population = Population()
        for _ in range(size):
            individual = self._create_distinct(population, self.create_tree)
            if individual is None:
                raise ConfigurationError(
                    f"Could not create {size} distinct individuals: no new program found in "
                    f"{self.max_attempts} attempts (syntax or depth too small)")
            population.add(individual)
        return population

    def _create_distinct(self, population: Population, factory) -> Optional[Individual]:
        for _ in range(self.max_attempts):
            individual = Individual(factory())
            if self.allow_duplicates or not population.contains(individual):
                return individual
        return None


class FullInitialiser(Initialiser):
    """Every branch grows to exactly the requested depth"""

    def __init__(self, syntax: Sequence[Any], return_type: DataType, rng: RandomSource,
                 depth: int, **kwargs):
        super().__init__(syntax, return_type, rng, **kwargs)
        if depth < 0:
            raise ConfigurationError("depth must not be negative")
        if not self.builder.can_full(depth, return_type):
            raise ConfigurationError(f"Syntax cannot build a {return_type} tree of depth {depth}")
        self.depth = depth

    def create_tree(self) -> ExpressionNode:
        return self.builder.full(self.depth, self.return_type)


class GrowInitialiser(Initialiser):
    """Nodes may terminate early; depth never exceeds ``max_depth``"""

    def __init__(self, syntax: Sequence[Any], return_type: DataType, rng: RandomSource,
                 max_depth: int, **kwargs):
        super().__init__(syntax, return_type, rng, **kwargs)
        if max_depth < 0:
            raise ConfigurationError("max_depth must not be negative")
        if not self.builder.can_grow(max_depth, return_type):
            raise ConfigurationError(f"Syntax cannot build a {return_type} tree within depth {max_depth}")
        self.max_depth = max_depth

    def create_tree(self) -> ExpressionNode:
        return self.builder.grow(self.max_depth, self.return_type)


class RampedHalfAndHalfInitialiser(Initialiser):
    """Spreads the population evenly over depths ``start_depth..end_depth``,
    alternating Grow and Full at each depth.

    Any remainder from the even split goes to the largest depth. When a depth
    cannot supply enough distinct programs, its unfilled quota moves on to the
    next depth; running out at the last depth is a configuration error.
    """

    def __init__(self, syntax: Sequence[Any], return_type: DataType, rng: RandomSource,
                 end_depth: int, start_depth: int = 2, **kwargs):
        super().__init__(syntax, return_type, rng, **kwargs)
        if start_depth < 0 or end_depth < start_depth:
            raise ConfigurationError("end_depth must be greater than or equal to start_depth")
        if not self.builder.can_grow(start_depth, return_type):
            raise ConfigurationError(f"Syntax cannot build a {return_type} tree within depth {start_depth}")
        self.start_depth = start_depth
        self.end_depth = end_depth

    def _tree_at(self, depth: int, grow: bool) -> ExpressionNode:
        # Fall back to Grow where no tree of exactly this depth exists
        if grow or not self.builder.can_full(depth, self.return_type):
            return self.builder.grow(depth, self.return_type)
        return self.builder.full(depth, self.return_type)

    def create_tree(self) -> ExpressionNode:
        depth = self.start_depth + self.rng.next_int(self.end_depth - self.start_depth + 1)
        return self._tree_at(depth, self.rng.next_boolean())

    def programs_per_depth(self, size: int) -> List[int]:
        depths = self.end_depth - self.start_depth + 1
        quotas = [size // depths] * depths
        quotas[-1] += size % depths
        return quotas

    def create_population(self, size: int) -> Population:
        if size < 1:
            raise ConfigurationError("Population size must be positive")
        population = Population()
        quotas = self.programs_per_depth(size)
        grow_next = [True]

        def alternate(depth):
            def factory():
                grow = grow_next[0]
                grow_next[0] = not grow
                return self._tree_at(depth, grow)
            return factory

        for offset, depth in enumerate(range(self.start_depth, self.end_depth + 1)):
            factory = alternate(depth)
            for created in range(quotas[offset]):
                individual = self._create_distinct(population, factory)
                if individual is not None:
                    population.add(individual)
                    continue
                shortfall = quotas[offset] - created
                if depth == self.end_depth:
                    raise ConfigurationError(
                        f"Impossible to create {size} distinct programs within depth "
                        f"{self.start_depth}..{self.end_depth}")
                logger.debug("Depth %d exhausted, moving %d programs to depth %d",
                             depth, shortfall, depth + 1)
                quotas[offset + 1] += shortfall
                break
        return population
