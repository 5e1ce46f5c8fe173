"""
SQL Store - SQLModel Integration

🗃️ SQL Database Store:
This module provides a store implementation for SQL databases using
SQLModel, translating lookup filters into SQLAlchemy clauses while keeping
the same synchronous store interface as the memory store.

Key Features:
- SQLModel table classes as record types
- One long-lived session bound to the store's execution context
- Query translation from filter expressions to SQL
- Result-count ceilings, ordering and column projection
- Change notifications after every committed unit of work
"""

from typing import Any, List, Optional

from sqlalchemy import and_, asc, desc, not_, or_
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import load_only
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine, select

from ..app.uow import UnitOfWork
from ..core.errors import StoreError, StoreExecutionError
from ..core.filters import And, Comparison, Filter, FilterOperator, Not, Or
from ..core.query import Query, SortDirection
from .base import Store


class SQLStore(Store):
    """
    SQL store implementation using SQLModel.

    Record types are SQLModel table classes. The store keeps one session
    whose identity map guarantees that lookups and change notifications
    hand out the same record objects.
    """

    def __init__(self, engine: Optional[Engine] = None, url: str = "sqlite://",
                 echo: bool = False, name: Optional[str] = None):
        super().__init__(name)
        self.engine = engine or _create_engine(url, echo)
        self.session = Session(self.engine, expire_on_commit=False)

    def create_all(self) -> None:
        """Create tables for every SQLModel table class."""
        SQLModel.metadata.create_all(self.engine)

    def execute(self, query: Query) -> List[Any]:
        """Execute a query against the database"""
        return self.perform_and_wait(self._execute, query)

    def _execute(self, query: Query) -> List[Any]:
        record_type = query.record_type
        try:
            stmt = select(record_type)

            where_clause = self._build_where_clause(record_type, query.filter)
            if where_clause is not None:
                stmt = stmt.where(where_clause)

            order_clauses = self._build_order_clause(record_type, query)
            if order_clauses:
                stmt = stmt.order_by(*order_clauses)

            if query.fields:
                stmt = stmt.options(load_only(*(self._column(record_type, name) for name in query.fields)))

            if query.limit is not None:
                stmt = stmt.limit(query.limit)

            return list(self.session.exec(stmt).all())

        except SQLAlchemyError as e:
            self.session.rollback()
            self._logger.error(f"Error querying {query.extent}: {e}")
            raise StoreExecutionError(f"Query on '{query.extent}' failed: {e}", query.extent) from e

    def _column(self, record_type: type, field_name: str):
        column = getattr(record_type, field_name, None)
        if column is None:
            raise StoreExecutionError(f"{record_type.__name__} has no field '{field_name}'", record_type.__name__)
        return column

    def _build_where_clause(self, record_type: type, flt: Optional[Filter]):
        """Build SQLAlchemy where clause from a filter expression"""
        if flt is None:
            return None
        if isinstance(flt, And):
            return and_(*(self._build_where_clause(record_type, f) for f in flt.filters))
        if isinstance(flt, Or):
            return or_(*(self._build_where_clause(record_type, f) for f in flt.filters))
        if isinstance(flt, Not):
            return not_(self._build_where_clause(record_type, flt.filter))
        if isinstance(flt, Comparison):
            return self._build_comparison(self._column(record_type, flt.field), flt)
        raise StoreExecutionError(f"Unsupported filter {type(flt).__name__}", record_type.__name__)

    def _build_comparison(self, field_attr, comparison: Comparison):
        op = comparison.operator
        value = comparison.value

        if op == FilterOperator.EQUALS:
            return field_attr == value
        elif op == FilterOperator.NOT_EQUALS:
            return field_attr != value
        elif op == FilterOperator.GREATER_THAN:
            return field_attr > value
        elif op == FilterOperator.GREATER_THAN_OR_EQUAL:
            return field_attr >= value
        elif op == FilterOperator.LESS_THAN:
            return field_attr < value
        elif op == FilterOperator.LESS_THAN_OR_EQUAL:
            return field_attr <= value
        elif op == FilterOperator.IN:
            return field_attr.in_(value)
        elif op == FilterOperator.NOT_IN:
            return ~field_attr.in_(value)
        elif op == FilterOperator.CONTAINS:
            return field_attr.contains(value)
        elif op == FilterOperator.STARTS_WITH:
            return field_attr.startswith(value)
        elif op == FilterOperator.ENDS_WITH:
            return field_attr.endswith(value)
        elif op == FilterOperator.IS_NULL:
            return field_attr.is_(None)
        elif op == FilterOperator.IS_NOT_NULL:
            return field_attr.is_not(None)
        raise StoreExecutionError(f"Unsupported operator {op}")

    def _build_order_clause(self, record_type: type, query: Query):
        """Build SQLAlchemy order clause from sort criteria; NULLs sort last in either direction"""
        order_clauses = []
        for sort_item in query.sort_by:
            field_attr = self._column(record_type, sort_item.field)
            if sort_item.direction == SortDirection.DESC:
                order_clauses.append(desc(field_attr).nulls_last())
            else:
                order_clauses.append(asc(field_attr).nulls_last())
        return order_clauses

    def commit_changes(self, unit_of_work: UnitOfWork) -> None:
        for record in unit_of_work.updated + unit_of_work.refreshed + unit_of_work.deleted:
            pending = any(r is record for r in unit_of_work.inserted)
            if not (pending or record in self.session):
                raise StoreError(f"{type(record).__name__} record is not in store '{self.name}'")

        try:
            for record in unit_of_work.inserted + unit_of_work.updated:
                self.session.add(record)
            for record in unit_of_work.deleted:
                self.session.delete(record)
            self.session.commit()
            for record in unit_of_work.refreshed:
                self.session.refresh(record)
        except SQLAlchemyError as e:
            self.session.rollback()
            self._logger.error(f"Error committing unit of work: {e}")
            raise StoreError(f"Commit failed: {e}") from e

    def rollback_changes(self, unit_of_work: UnitOfWork) -> None:
        self.session.rollback()

    def contains(self, record: Any) -> bool:
        return self.perform_and_wait(self.session.__contains__, record)

    def close(self) -> None:
        super().close()
        self.session.close()
        self.engine.dispose()


def _create_engine(url: str, echo: bool) -> Engine:
    # in-memory SQLite must share one connection across the store's lifetime
    if url in ("sqlite://", "sqlite:///:memory:"):
        return create_engine(url, echo=echo, connect_args={"check_same_thread": False}, poolclass=StaticPool)
    return create_engine(url, echo=echo)


__all__ = ["SQLStore"]
