"""
Unit of Work Pattern

Collects record changes against one store and commits them together.
After a successful commit a single ChangeNotification describing the
changes is published on the store's bus.
"""

from typing import Any, Dict, List, Tuple, TYPE_CHECKING

from ..core.errors import StoreError
from .bus import ChangeNotification

if TYPE_CHECKING:
    from ..persistence.base import Store


class UnitOfWork:
    """
    Manages one batch of record changes.

    The Unit of Work ensures that:
    1. Inserts, updates, refreshes and deletes are committed together
    2. One change notification is published after a successful commit
    3. Attribute updates are reverted if the unit of work is rolled back
    """

    def __init__(self, store: "Store"):
        """
        Initialize Unit of Work.

        Args:
            store: Store the changes are committed to
        """
        self.store = store
        self.inserted: List[Any] = []
        self.updated: List[Any] = []
        self.refreshed: List[Any] = []
        self.deleted: List[Any] = []
        self._snapshots: List[Tuple[Any, Dict[str, Any]]] = []
        self._committed = False

    def insert(self, record: Any) -> Any:
        self._check_open()
        _append_once(self.inserted, record)
        return record

    def update(self, record: Any, **changes: Any) -> Any:
        """Apply attribute changes to a record and mark it updated."""
        self._check_open()
        self._snapshots.append((record, {name: getattr(record, name) for name in changes}))
        for name, value in changes.items():
            setattr(record, name, value)
        if not any(r is record for r in self.inserted):
            _append_once(self.updated, record)
        return record

    def refresh(self, record: Any) -> Any:
        self._check_open()
        _append_once(self.refreshed, record)
        return record

    def delete(self, record: Any) -> Any:
        self._check_open()
        _append_once(self.deleted, record)
        return record

    @property
    def has_changes(self) -> bool:
        return bool(self.inserted or self.updated or self.refreshed or self.deleted)

    def notification(self) -> ChangeNotification:
        return ChangeNotification(
            inserted=list(self.inserted),
            updated=list(self.updated),
            refreshed=list(self.refreshed),
            deleted=list(self.deleted)
        )

    def commit(self) -> None:
        """Commit the collected changes and publish them."""
        self._check_open()
        if not self.has_changes:
            self._committed = True
            return

        self.store.perform_and_wait(self.store.commit_changes, self)
        self._committed = True
        self.store.bus.publish(self.notification())

    def rollback(self) -> None:
        """
        Revert attribute updates and drop the collected changes.
        """
        if self._committed:
            return
        for record, previous in reversed(self._snapshots):
            for name, value in previous.items():
                setattr(record, name, value)
        self.store.perform_and_wait(self.store.rollback_changes, self)
        self._snapshots.clear()
        self.inserted.clear()
        self.updated.clear()
        self.refreshed.clear()
        self.deleted.clear()

    def _check_open(self) -> None:
        if self._committed:
            raise StoreError("Unit of work has already been committed")

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit: commit on success, rollback on exception."""
        if exc_type is not None:
            self.rollback()
            return False
        try:
            self.commit()
        except Exception:
            self.rollback()
            raise
        return False


def _append_once(records: List[Any], record: Any) -> None:
    if not any(r is record for r in records):
        records.append(record)


__all__ = ["UnitOfWork"]
