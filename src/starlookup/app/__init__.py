"""
StarLookup Application Layer

Generic lookups, change observation, the per-store change bus and the
unit of work.
"""

from .bus import ChangeBus, ChangeNotification, Subscription
from .uow import UnitOfWork
from .lookup import (
    build_filter, cardinality, build_query, fetch_many, fetch_one,
    build_local_filter, build_local_query, fetch_many_by_local_owner, fetch_one_by_local_owner,
    build_identifier_query, build_local_identifier_query,
    fetch_by_identifier, fetch_by_local_identifier,
    build_last_updated_query, fetch_last_updated_id,
    execute_query, RecordLookup
)
from .observation import ChangeObserver, ObservationToken, observe, cancel

__all__ = [
    "ChangeBus", "ChangeNotification", "Subscription", "UnitOfWork",
    "build_filter", "cardinality", "build_query", "fetch_many", "fetch_one",
    "build_local_filter", "build_local_query", "fetch_many_by_local_owner", "fetch_one_by_local_owner",
    "build_identifier_query", "build_local_identifier_query",
    "fetch_by_identifier", "fetch_by_local_identifier",
    "build_last_updated_query", "fetch_last_updated_id",
    "execute_query", "RecordLookup",
    "ChangeObserver", "ObservationToken", "observe", "cancel"
]
