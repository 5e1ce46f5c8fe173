"""
StarLookup Persistence Layer - Memory Store

In-memory store implementation for development and testing. Records are
kept per extent in insertion order; filters, sorting and result-count
ceilings are evaluated in memory.
"""

from collections import defaultdict, deque
from typing import Any, Deque, Dict, List, Optional

from ..app.uow import UnitOfWork
from ..core.errors import StoreError, StoreExecutionError
from ..core.identity import extent_name
from ..core.query import Query, SortCriteria, SortDirection
from .base import Store


class MemoryStore(Store):
    """
    In-memory store.

    Provides fast persistence for development and testing.
    Data is lost when the store is discarded. Unlike a process-wide
    repository, each instance has its own data and change bus.
    """

    def __init__(self, name: Optional[str] = None):
        super().__init__(name)
        self._storage: Dict[str, List[Any]] = defaultdict(list)
        self._failures: Deque[Exception] = deque()
        self.queries_executed = 0

    def execute(self, query: Query) -> List[Any]:
        """Execute a query against the in-memory extents."""
        return self.perform_and_wait(self._execute, query)

    def _execute(self, query: Query) -> List[Any]:
        self.queries_executed += 1

        if self._failures:
            error = self._failures.popleft()
            raise StoreExecutionError(f"Query on '{query.extent}' failed: {error}", query.extent) from error

        try:
            records = list(self._storage.get(query.extent, []))

            if query.filter is not None:
                records = [record for record in records if query.filter.matches(record)]

            records = self._apply_sorting(records, query.sort_by)

            if query.limit is not None:
                records = records[:query.limit]

        except (TypeError, ValueError, AttributeError) as e:
            self._logger.error(f"Error querying extent {query.extent}: {e}")
            raise StoreExecutionError(f"Query on '{query.extent}' failed: {e}", query.extent) from e

        return records

    def _apply_sorting(self, records: List[Any], sort_by: List[SortCriteria]) -> List[Any]:
        """Stable multi-key sort; missing values sort last in either direction."""
        for criteria in reversed(sort_by):
            if criteria.direction == SortDirection.DESC:
                records = sorted(
                    records,
                    key=lambda r, f=criteria.field: (getattr(r, f, None) is not None, getattr(r, f, None)),
                    reverse=True
                )
            else:
                records = sorted(
                    records,
                    key=lambda r, f=criteria.field: (getattr(r, f, None) is None, getattr(r, f, None))
                )
        return records

    def commit_changes(self, unit_of_work: UnitOfWork) -> None:
        for record in unit_of_work.updated + unit_of_work.refreshed + unit_of_work.deleted:
            pending = any(r is record for r in unit_of_work.inserted)
            if not (pending or self._contains(record)):
                raise StoreError(f"{type(record).__name__} record is not in store '{self.name}'")

        for record in unit_of_work.inserted:
            extent = self._storage[extent_name(type(record))]
            if not any(r is record for r in extent):
                extent.append(record)

        for record in unit_of_work.deleted:
            extent = self._storage[extent_name(type(record))]
            self._storage[extent_name(type(record))] = [r for r in extent if r is not record]

        self._logger.debug(
            f"Committed {len(unit_of_work.inserted)} inserted, {len(unit_of_work.updated)} updated, "
            f"{len(unit_of_work.refreshed)} refreshed, {len(unit_of_work.deleted)} deleted"
        )

    def contains(self, record: Any) -> bool:
        return self.perform_and_wait(self._contains, record)

    def _contains(self, record: Any) -> bool:
        return any(r is record for r in self._storage.get(extent_name(type(record)), []))

    def fail_next(self, error: Optional[Exception] = None) -> None:
        """Make the next query execution fail with ``error``."""
        self._failures.append(error or RuntimeError("injected failure"))

    def count(self, record_type: type) -> int:
        return len(self._storage.get(extent_name(record_type), []))

    def clear(self) -> None:
        """Drop all records. No change notification is published."""
        self.perform_and_wait(self._storage.clear)


__all__ = ["MemoryStore"]
