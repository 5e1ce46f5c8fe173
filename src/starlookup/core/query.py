"""
Query

A request describing an extent, a filter, an optional result-count ceiling
and an optional ordering/projection, submitted to a store for execution.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List, Optional, Type

from .filters import Filter


class SortDirection(Enum):
    """Sort direction for ordering"""
    ASC = "asc"
    DESC = "desc"


@dataclass
class SortCriteria:
    """Represents sorting criteria"""
    field: str
    direction: SortDirection = SortDirection.ASC


@dataclass
class Query:
    """
    Mutable query against one record type's extent.

    ``limit`` is the result-count ceiling; ``None`` means unbounded.
    ``fields`` is an optional projection hint that stores may ignore.
    """
    record_type: Type[Any]
    extent: str
    filter: Optional[Filter] = None
    limit: Optional[int] = None
    sort_by: List[SortCriteria] = field(default_factory=list)
    fields: Optional[List[str]] = None

    def sort_asc(self, field_name: str) -> "Query":
        """Append an ascending sort"""
        self.sort_by.append(SortCriteria(field_name, SortDirection.ASC))
        return self

    def sort_desc(self, field_name: str) -> "Query":
        """Append a descending sort"""
        self.sort_by.append(SortCriteria(field_name, SortDirection.DESC))
        return self

    @property
    def is_bounded(self) -> bool:
        return self.limit is not None


__all__ = ["Query", "SortCriteria", "SortDirection"]
