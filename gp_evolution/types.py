"""
gp_evolution/types.py - Data-type tags used for typed expression trees
"""
from enum import Enum
from typing import Any, Iterable, Optional


class DataType(Enum):
    """Return type tag of an expression node"""
    BOOLEAN = 'boolean'
    INTEGER = 'integer'
    LONG = 'long'
    DOUBLE = 'double'
    VOID = 'void'  # side-effecting actions

    def __str__(self):
        return self.value


# Widening order for numeric promotion
_NUMERIC_RANK = {
    DataType.INTEGER: 0,
    DataType.LONG: 1,
    DataType.DOUBLE: 2,
}


def is_numeric(data_type: Optional[DataType]) -> bool:
    return data_type in _NUMERIC_RANK


def widest(*types: Optional[DataType]) -> Optional[DataType]:
    """Widest numeric type of the arguments, or None if any is non-numeric"""
    if not types or not all(is_numeric(t) for t in types):
        return None
    return max(types, key=lambda t: _NUMERIC_RANK[t])


def all_equal(types: Iterable[Optional[DataType]], expected: DataType) -> bool:
    return all(t == expected for t in types)


def data_type_of(value: Any) -> DataType:
    """Infer the tag of a Python literal value"""
    # bool is a subclass of int, so check it first
    if isinstance(value, bool):
        return DataType.BOOLEAN
    if isinstance(value, int):
        return DataType.INTEGER
    if isinstance(value, float):
        return DataType.DOUBLE
    if value is None:
        return DataType.VOID
    raise TypeError(f"No data type for literal of type {type(value).__name__}")
