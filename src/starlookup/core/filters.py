"""
Filter Expressions

Opaque boolean predicates over stored fields. The lookup layer itself only
builds equality comparisons joined by conjunction; relation predicates are
free to use the richer operators, disjunction and negation.

Example:
    from starlookup.core.filters import equals, all_of

    flt = all_of(equals("channel_id", "c1"), equals("locale", "en"))
    flt = equals("channel_id", "c1") & ~equals("archived", True)
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Tuple

from .errors import MisuseError


class FilterOperator(Enum):
    """Comparison operators for filtering"""
    EQUALS = "eq"
    NOT_EQUALS = "ne"
    GREATER_THAN = "gt"
    GREATER_THAN_OR_EQUAL = "gte"
    LESS_THAN = "lt"
    LESS_THAN_OR_EQUAL = "lte"
    IN = "in"
    NOT_IN = "not_in"
    CONTAINS = "contains"
    STARTS_WITH = "starts_with"
    ENDS_WITH = "ends_with"
    IS_NULL = "is_null"
    IS_NOT_NULL = "is_not_null"


_NULL_OPERATORS = (FilterOperator.IS_NULL, FilterOperator.IS_NOT_NULL)


class Filter:
    """Base class for filter expressions"""

    def matches(self, record: Any) -> bool:
        """Evaluate the filter against a record's attributes."""
        raise NotImplementedError

    def __and__(self, other: "Filter") -> "Filter":
        return all_of(self, other)

    def __or__(self, other: "Filter") -> "Filter":
        return any_of(self, other)

    def __invert__(self) -> "Filter":
        return Not(self)


@dataclass(frozen=True)
class Comparison(Filter):
    """A single field comparison"""
    field: str
    operator: FilterOperator
    value: Any = None

    def __post_init__(self):
        """Validate comparison after creation"""
        if self.operator in _NULL_OPERATORS:
            # These operators don't need a value
            object.__setattr__(self, "value", None)
        elif self.value is None:
            raise MisuseError(f"Value required for operator {self.operator}")

    def matches(self, record: Any) -> bool:
        field_value = getattr(record, self.field, None)
        op = self.operator
        value = self.value

        if op == FilterOperator.EQUALS:
            return field_value == value
        elif op == FilterOperator.NOT_EQUALS:
            return field_value != value
        elif op == FilterOperator.GREATER_THAN:
            return field_value is not None and field_value > value
        elif op == FilterOperator.GREATER_THAN_OR_EQUAL:
            return field_value is not None and field_value >= value
        elif op == FilterOperator.LESS_THAN:
            return field_value is not None and field_value < value
        elif op == FilterOperator.LESS_THAN_OR_EQUAL:
            return field_value is not None and field_value <= value
        elif op == FilterOperator.IN:
            return field_value in value
        elif op == FilterOperator.NOT_IN:
            return field_value not in value
        elif op == FilterOperator.CONTAINS:
            return isinstance(field_value, str) and value in field_value
        elif op == FilterOperator.STARTS_WITH:
            return isinstance(field_value, str) and field_value.startswith(value)
        elif op == FilterOperator.ENDS_WITH:
            return isinstance(field_value, str) and field_value.endswith(value)
        elif op == FilterOperator.IS_NULL:
            return field_value is None
        elif op == FilterOperator.IS_NOT_NULL:
            return field_value is not None
        return False


@dataclass(frozen=True, init=False)
class And(Filter):
    """Conjunction of filters"""
    filters: Tuple[Filter, ...]

    def __init__(self, *filters: Filter):
        object.__setattr__(self, "filters", tuple(filters))

    def matches(self, record: Any) -> bool:
        return all(f.matches(record) for f in self.filters)


@dataclass(frozen=True, init=False)
class Or(Filter):
    """Disjunction of filters"""
    filters: Tuple[Filter, ...]

    def __init__(self, *filters: Filter):
        object.__setattr__(self, "filters", tuple(filters))

    def matches(self, record: Any) -> bool:
        return any(f.matches(record) for f in self.filters)


@dataclass(frozen=True)
class Not(Filter):
    """Negation of a filter"""
    filter: Filter

    def matches(self, record: Any) -> bool:
        return not self.filter.matches(record)


# Convenience functions
def equals(field: str, value: Any) -> Comparison:
    """Create an equals filter"""
    return Comparison(field, FilterOperator.EQUALS, value)


def is_null(field: str) -> Comparison:
    """Create an is-null filter"""
    return Comparison(field, FilterOperator.IS_NULL)


def all_of(*filters: Filter) -> Filter:
    """
    Join filters by conjunction, flattening nested conjunctions.

    A single filter is returned unchanged.
    """
    flat = []
    for f in filters:
        if isinstance(f, And):
            flat.extend(f.filters)
        else:
            flat.append(f)
    if not flat:
        raise MisuseError("all_of() requires at least one filter")
    return flat[0] if len(flat) == 1 else And(*flat)


def any_of(*filters: Filter) -> Filter:
    """Join filters by disjunction"""
    if not filters:
        raise MisuseError("any_of() requires at least one filter")
    return filters[0] if len(filters) == 1 else Or(*filters)


def where(**fields: Any) -> Filter:
    """Equality conjunction over keyword arguments"""
    return all_of(*(equals(name, value) for name, value in fields.items()))


__all__ = [
    "Filter", "FilterOperator", "Comparison", "And", "Or", "Not",
    "equals", "is_null", "all_of", "any_of", "where"
]
