"""
Generic Lookup

Typed fetch-by-identifier and fetch-by-owner operations derived from a
record type's declarations (see ``core.identity`` and ``core.relations``).
The derivation is implemented once, here, as free functions over
``(store, record_type, ...)``; ``RecordLookup`` binds them to one store and
record type so call sites get correctly typed results without casting.

Fail-soft policy: a ``StoreExecutionError`` raised while executing a fetch
is logged and converted to "no results" (``[]`` or ``None``) unless the
settings disable ``fail_soft``. ``execute_query`` always raises.

Example:
    messages = RecordLookup(store, Message)
    message = messages.by_identifier("m1")
    current = messages.one("c1", MessageTag.CHANNEL)
"""

import logging
from enum import Enum
from typing import Any, Generic, List, Optional, Type, TypeVar, TYPE_CHECKING

from ..config import LookupSettings, get_settings
from ..core.errors import MisuseError, StoreExecutionError
from ..core.filters import Filter, equals
from ..core.identity import Identifier, identifier_field, local_identifier_field
from ..core.query import Query
from ..core.relations import (
    NO_PARAMETERS, TO_ONE, Cardinality, RelationParameters,
    SingleLocallyRelatedDescriptor, SingleRelationDescriptor, SingleRelationTag
)

if TYPE_CHECKING:
    from ..persistence.base import Store

logger = logging.getLogger(__name__)

R = TypeVar("R")

DEFAULT_UPDATED_ID_FIELD = "updated_id"


class _RelationKind:
    """Names of the declarations backing one way of addressing an owner."""

    def __init__(self, label: str, tags_attr: str, predicate_attr: str, count_bound_attr: str,
                 single_base: type):
        self.label = label
        self.tags_attr = tags_attr
        self.predicate_attr = predicate_attr
        self.count_bound_attr = count_bound_attr
        self.single_base = single_base

    def is_single(self, record_type: Type[Any]) -> bool:
        """Single-relation adopters declare their hooks without a tag argument."""
        return isinstance(record_type, type) and issubclass(record_type, self.single_base)


_OWNER = _RelationKind("owner", "relation_tags", "predicate", "count_bound", SingleRelationDescriptor)
_LOCAL_OWNER = _RelationKind(
    "local owner", "local_relation_tags", "local_predicate", "local_count_bound", SingleLocallyRelatedDescriptor
)


def _resolve_tag(record_type: Type[Any], kind: _RelationKind, tag: Optional[Enum]) -> Enum:
    tags = getattr(record_type, kind.tags_attr, SingleRelationTag)

    if tag is None:
        if tags is SingleRelationTag:
            return SingleRelationTag.ANY
        raise MisuseError(
            f"{record_type.__name__} has several {kind.label} relations; "
            f"a {tags.__name__} tag is required"
        )

    if not isinstance(tag, tags):
        raise MisuseError(f"{tag!r} is not a {tags.__name__} tag of {record_type.__name__}")

    return tag


def _predicate(record_type: Type[Any], kind: _RelationKind, owner_id: Identifier,
               tag: Optional[Enum], parameters: RelationParameters) -> Filter:
    if owner_id is None:
        raise MisuseError(f"An {kind.label} identifier is required to look up {record_type.__name__}")

    predicate = getattr(record_type, kind.predicate_attr, None)
    if predicate is None:
        raise MisuseError(f"{record_type.__name__} does not declare {kind.predicate_attr}()")

    resolved = _resolve_tag(record_type, kind, tag)
    if kind.is_single(record_type):
        return predicate(owner_id, parameters)
    return predicate(owner_id, resolved, parameters)


def _cardinality(record_type: Type[Any], kind: _RelationKind, tag: Optional[Enum],
                 parameters: RelationParameters) -> Cardinality:
    count_bound = getattr(record_type, kind.count_bound_attr, None)
    if count_bound is None:
        return TO_ONE
    resolved = _resolve_tag(record_type, kind, tag)
    if kind.is_single(record_type):
        return count_bound(parameters)
    return count_bound(resolved, parameters)


def _build_query(store: "Store", record_type: Type[Any], kind: _RelationKind, owner_id: Identifier,
                 tag: Optional[Enum], parameters: RelationParameters) -> Query:
    query = store.new_query(record_type)
    query.filter = _predicate(record_type, kind, owner_id, tag, parameters)

    cardinality = _cardinality(record_type, kind, tag, parameters)
    if cardinality.is_bounded:
        query.limit = cardinality.bound

    return query


def _fetch(store: "Store", query: Query, settings: Optional[LookupSettings]) -> List[Any]:
    settings = settings or get_settings()
    try:
        return store.execute(query)
    except StoreExecutionError as e:
        if not settings.fail_soft:
            raise
        if settings.log_store_failures:
            logger.warning(f"Lookup on {query.extent} failed, returning no results: {e}")
        return []


def _single(store: "Store", record_type: Type[Any], kind: _RelationKind, owner_id: Identifier,
            tag: Optional[Enum], parameters: RelationParameters,
            settings: Optional[LookupSettings]) -> Optional[Any]:
    settings = settings or get_settings()

    query = _build_query(store, record_type, kind, owner_id, tag, parameters)
    if not query.is_bounded:
        message = (
            f"Single-result lookup of {record_type.__name__} by {kind.label} "
            f"on a to-many relation"
        )
        if settings.strict_cardinality:
            raise MisuseError(message)
        logger.warning(f"{message}; returning an arbitrary match")

    records = _fetch(store, query, settings)
    return records[0] if records else None


# Relation lookups keyed by the owner's primary identifier

def build_filter(record_type: Type[Any], owner_id: Identifier, tag: Optional[Enum] = None,
                 parameters: RelationParameters = NO_PARAMETERS) -> Filter:
    """
    Filter selecting the records owned by ``owner_id`` under ``tag``.

    Raises:
        MisuseError: owner_id is None, or the tag is missing or foreign
    """
    return _predicate(record_type, _OWNER, owner_id, tag, parameters)


def cardinality(record_type: Type[Any], tag: Optional[Enum] = None,
                parameters: RelationParameters = NO_PARAMETERS) -> Cardinality:
    """Declared cardinality of the relation; to-one when undeclared."""
    return _cardinality(record_type, _OWNER, tag, parameters)


def build_query(store: "Store", record_type: Type[Any], owner_id: Identifier,
                tag: Optional[Enum] = None, parameters: RelationParameters = NO_PARAMETERS) -> Query:
    """
    Query for the records owned by ``owner_id``.

    The result-count ceiling is set only when the relation is bounded.
    """
    return _build_query(store, record_type, _OWNER, owner_id, tag, parameters)


def fetch_many(store: "Store", record_type: Type[R], owner_id: Identifier,
               tag: Optional[Enum] = None, parameters: RelationParameters = NO_PARAMETERS,
               settings: Optional[LookupSettings] = None) -> List[R]:
    """
    Fetch the records owned by ``owner_id``.

    Args:
        store: Store to execute against
        record_type: Related record type
        owner_id: Identifier of the owner record
        tag: Relation tag; may be omitted for single-relation types
        parameters: Extra filter criteria
        settings: Overrides the global settings

    Returns:
        Matching records in store order; empty if the store failed
    """
    query = build_query(store, record_type, owner_id, tag, parameters)
    return _fetch(store, query, settings)


def fetch_one(store: "Store", record_type: Type[R], owner_id: Identifier,
              tag: Optional[Enum] = None, parameters: RelationParameters = NO_PARAMETERS,
              settings: Optional[LookupSettings] = None) -> Optional[R]:
    """
    Fetch the single record owned by ``owner_id``, or None.

    Meant for to-one relations. On a to-many relation it raises MisuseError
    with ``strict_cardinality`` and otherwise returns an arbitrary match.
    """
    return _single(store, record_type, _OWNER, owner_id, tag, parameters, settings)


# Relation lookups keyed by the owner's local identifier

def build_local_filter(record_type: Type[Any], owner_local_id: Identifier, tag: Optional[Enum] = None,
                       parameters: RelationParameters = NO_PARAMETERS) -> Filter:
    return _predicate(record_type, _LOCAL_OWNER, owner_local_id, tag, parameters)


def build_local_query(store: "Store", record_type: Type[Any], owner_local_id: Identifier,
                      tag: Optional[Enum] = None, parameters: RelationParameters = NO_PARAMETERS) -> Query:
    return _build_query(store, record_type, _LOCAL_OWNER, owner_local_id, tag, parameters)


def fetch_many_by_local_owner(store: "Store", record_type: Type[R], owner_local_id: Identifier,
                              tag: Optional[Enum] = None, parameters: RelationParameters = NO_PARAMETERS,
                              settings: Optional[LookupSettings] = None) -> List[R]:
    """Fetch the records owned by the owner with local identifier ``owner_local_id``."""
    query = build_local_query(store, record_type, owner_local_id, tag, parameters)
    return _fetch(store, query, settings)


def fetch_one_by_local_owner(store: "Store", record_type: Type[R], owner_local_id: Identifier,
                             tag: Optional[Enum] = None, parameters: RelationParameters = NO_PARAMETERS,
                             settings: Optional[LookupSettings] = None) -> Optional[R]:
    return _single(store, record_type, _LOCAL_OWNER, owner_local_id, tag, parameters, settings)


# Identity lookups

def _identity_query(store: "Store", record_type: Type[Any], field_name: str, value: Identifier) -> Query:
    if value is None:
        raise MisuseError(f"An identifier is required to look up {record_type.__name__} by {field_name}")
    query = store.new_query(record_type)
    query.filter = equals(field_name, value)
    query.limit = 1
    return query


def build_identifier_query(store: "Store", record_type: Type[Any], id: Identifier) -> Query:
    return _identity_query(store, record_type, identifier_field(record_type), id)


def build_local_identifier_query(store: "Store", record_type: Type[Any], local_id: Identifier) -> Query:
    return _identity_query(store, record_type, local_identifier_field(record_type), local_id)


def fetch_by_identifier(store: "Store", record_type: Type[R], id: Identifier,
                        settings: Optional[LookupSettings] = None) -> Optional[R]:
    """Fetch the record whose primary identifier equals ``id``, or None."""
    records = _fetch(store, build_identifier_query(store, record_type, id), settings)
    return records[0] if records else None


def fetch_by_local_identifier(store: "Store", record_type: Type[R], local_id: Identifier,
                              settings: Optional[LookupSettings] = None) -> Optional[R]:
    """Fetch the record whose local identifier equals ``local_id``, or None."""
    records = _fetch(store, build_local_identifier_query(store, record_type, local_id), settings)
    return records[0] if records else None


# Updatable records

def build_last_updated_query(store: "Store", record_type: Type[Any], filter: Optional[Filter] = None,
                             ascending: bool = True) -> Query:
    """
    Query for the record carrying the extreme ``updated_id``.

    With ``ascending=True`` (records synced in ascending order) the largest
    value is the last one seen, so the query sorts descending.
    """
    field_name = getattr(record_type, "updated_id_field", DEFAULT_UPDATED_ID_FIELD)
    query = store.new_query(record_type)
    query.filter = filter
    if ascending:
        query.sort_desc(field_name)
    else:
        query.sort_asc(field_name)
    query.limit = 1
    query.fields = [field_name]
    return query


def fetch_last_updated_id(store: "Store", record_type: Type[Any], filter: Optional[Filter] = None,
                          ascending: bool = True, settings: Optional[LookupSettings] = None) -> Optional[Any]:
    """Last ``updated_id`` seen for the record type, or None if there is none."""
    query = build_last_updated_query(store, record_type, filter, ascending)
    records = _fetch(store, query, settings)
    if not records:
        return None
    return getattr(records[0], query.fields[0], None)


def execute_query(store: "Store", query: Query) -> List[Any]:
    """Execute a query without the fail-soft policy; StoreExecutionError propagates."""
    return store.execute(query)


class RecordLookup(Generic[R]):
    """
    Lookups bound to one store and record type.

    Results are typed as the record type, so call sites need no casts.
    """

    def __init__(self, store: "Store", record_type: Type[R], settings: Optional[LookupSettings] = None):
        self.store = store
        self.record_type = record_type
        self.settings = settings

    def by_identifier(self, id: Identifier) -> Optional[R]:
        return fetch_by_identifier(self.store, self.record_type, id, self.settings)

    def by_local_identifier(self, local_id: Identifier) -> Optional[R]:
        return fetch_by_local_identifier(self.store, self.record_type, local_id, self.settings)

    def query(self, owner_id: Identifier, tag: Optional[Enum] = None,
              parameters: RelationParameters = NO_PARAMETERS) -> Query:
        return build_query(self.store, self.record_type, owner_id, tag, parameters)

    def many(self, owner_id: Identifier, tag: Optional[Enum] = None,
             parameters: RelationParameters = NO_PARAMETERS) -> List[R]:
        return fetch_many(self.store, self.record_type, owner_id, tag, parameters, self.settings)

    def one(self, owner_id: Identifier, tag: Optional[Enum] = None,
            parameters: RelationParameters = NO_PARAMETERS) -> Optional[R]:
        return fetch_one(self.store, self.record_type, owner_id, tag, parameters, self.settings)

    def many_by_local_owner(self, owner_local_id: Identifier, tag: Optional[Enum] = None,
                            parameters: RelationParameters = NO_PARAMETERS) -> List[R]:
        return fetch_many_by_local_owner(self.store, self.record_type, owner_local_id, tag,
                                         parameters, self.settings)

    def one_by_local_owner(self, owner_local_id: Identifier, tag: Optional[Enum] = None,
                           parameters: RelationParameters = NO_PARAMETERS) -> Optional[R]:
        return fetch_one_by_local_owner(self.store, self.record_type, owner_local_id, tag,
                                        parameters, self.settings)

    def last_updated_id(self, filter: Optional[Filter] = None, ascending: bool = True) -> Optional[Any]:
        return fetch_last_updated_id(self.store, self.record_type, filter, ascending, self.settings)

    def __repr__(self) -> str:
        return f"RecordLookup({self.record_type.__name__} in {self.store.name})"


__all__ = [
    "build_filter", "cardinality", "build_query", "fetch_many", "fetch_one",
    "build_local_filter", "build_local_query",
    "fetch_many_by_local_owner", "fetch_one_by_local_owner",
    "build_identifier_query", "build_local_identifier_query",
    "fetch_by_identifier", "fetch_by_local_identifier",
    "build_last_updated_query", "fetch_last_updated_id",
    "execute_query", "RecordLookup"
]
