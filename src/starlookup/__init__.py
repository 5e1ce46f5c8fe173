"""
StarLookup - Typed Record Lookups

Record types declare their identifiers and their relations to owner record
types; StarLookup derives filtered, count-bounded fetches and per-record
change observation from those declarations, on top of a pluggable store.
"""

from .core import *  # noqa: F401,F403
from .core import __all__ as _core_all
from .app import (
    ChangeBus, ChangeNotification, UnitOfWork,
    build_filter, cardinality, build_query, fetch_many, fetch_one,
    build_local_filter, build_local_query, fetch_many_by_local_owner, fetch_one_by_local_owner,
    fetch_by_identifier, fetch_by_local_identifier, fetch_last_updated_id,
    execute_query, RecordLookup,
    ChangeObserver, ObservationToken, observe, cancel
)
from .persistence import Store, MemoryStore, SQLStore
from .config import (
    Environment, LookupSettings, configure_logging, create_store,
    get_settings, set_settings, reset_settings
)

__version__ = "0.1.0"

__all__ = [
    *_core_all,
    # Application layer
    'ChangeBus',
    'ChangeNotification',
    'UnitOfWork',
    'build_filter',
    'cardinality',
    'build_query',
    'fetch_many',
    'fetch_one',
    'build_local_filter',
    'build_local_query',
    'fetch_many_by_local_owner',
    'fetch_one_by_local_owner',
    'fetch_by_identifier',
    'fetch_by_local_identifier',
    'fetch_last_updated_id',
    'execute_query',
    'RecordLookup',
    'ChangeObserver',
    'ObservationToken',
    'observe',
    'cancel',

    # Stores
    'Store',
    'MemoryStore',
    'SQLStore',

    # Configuration
    'Environment',
    'LookupSettings',
    'configure_logging',
    'create_store',
    'get_settings',
    'set_settings',
    'reset_settings',
]
