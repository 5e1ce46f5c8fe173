"""
StarLookup Persistence Layer - Base Classes

This module provides the abstract store interface the lookup layer runs
against. A store owns its execution context (one logical context per store
instance), executes queries, commits units of work and reports committed
changes on its own ChangeBus.
"""

import logging
import threading
from abc import ABC, abstractmethod
from typing import Any, Callable, List, Optional, Type, TypeVar

from ..app.bus import ChangeBus
from ..app.uow import UnitOfWork
from ..core.identity import extent_name
from ..core.query import Query

T = TypeVar("T")


class Store(ABC):
    """
    Abstract base class for stores.

    Implementations must provide query execution, change commit and record
    membership. Everything runs inside ``perform_and_wait``, which serializes
    access to the store's single execution context.
    """

    def __init__(self, name: Optional[str] = None):
        """Initialize store with its execution context and change bus."""
        self.name = name or self.__class__.__name__
        self.bus = ChangeBus(self.name)
        self._context_lock = threading.RLock()
        self._logger = logging.getLogger(f"{self.__class__.__module__}.{self.__class__.__name__}")

    def new_query(self, record_type: Type[Any]) -> Query:
        """
        Create an empty query for a record type's extent.

        Args:
            record_type: The record class to query

        Returns:
            Query with no filter and no result-count ceiling
        """
        return Query(record_type=record_type, extent=extent_name(record_type))

    @abstractmethod
    def execute(self, query: Query) -> List[Any]:
        """
        Execute a query.

        Args:
            query: The query to execute

        Returns:
            Matching records, at most ``query.limit`` of them

        Raises:
            StoreExecutionError: if the store failed to execute the query
        """
        pass

    @abstractmethod
    def commit_changes(self, unit_of_work: UnitOfWork) -> None:
        """
        Persist the changes collected by a unit of work.

        Called inside the store's execution context.
        """
        pass

    def rollback_changes(self, unit_of_work: UnitOfWork) -> None:
        """Discard store-side state for a unit of work that was rolled back."""
        pass

    @abstractmethod
    def contains(self, record: Any) -> bool:
        """
        Check if a record belongs to this store.
        """
        pass

    def perform_and_wait(self, block: Callable[..., T], *args: Any, **kwargs: Any) -> T:
        """
        Run ``block`` inside the store's execution context and wait for it.

        Returns the block's value; exceptions raised by the block propagate.
        """
        with self._context_lock:
            return block(*args, **kwargs)

    def unit_of_work(self) -> UnitOfWork:
        """Start a unit of work against this store."""
        return UnitOfWork(self)

    # Single-change conveniences
    def insert(self, record: T) -> T:
        with self.unit_of_work() as uow:
            uow.insert(record)
        return record

    def update(self, record: T, **changes: Any) -> T:
        with self.unit_of_work() as uow:
            uow.update(record, **changes)
        return record

    def refresh(self, record: T) -> T:
        with self.unit_of_work() as uow:
            uow.refresh(record)
        return record

    def delete(self, record: Any) -> None:
        with self.unit_of_work() as uow:
            uow.delete(record)

    def all(self, record_type: Type[T]) -> List[T]:
        """All records of a type, unfiltered."""
        return self.execute(self.new_query(record_type))

    def close(self) -> None:
        """Release store resources and drop change subscribers."""
        self.bus.clear_subscribers()
