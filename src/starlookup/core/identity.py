"""
Entity Identity

Declarations for record types that carry a primary identifier (assigned by
the system of record) and/or a local identifier (assigned within the local
store, e.g. for records that have not been synced yet).

Identifiers are any hashable value. ``None`` means "not yet assigned" and is
never collapsed into a sentinel such as ``0`` or ``""``.

Example:
    class Message(BaseModel):
        identifier_field: ClassVar[str] = "id"
        local_identifier_field: ClassVar[str] = "local_id"

        id: Optional[str] = None
        local_id: Optional[int] = None
"""

from typing import Any, ClassVar, Hashable, Optional, Protocol, Type, runtime_checkable

Identifier = Hashable

DEFAULT_IDENTIFIER_FIELD = "id"
DEFAULT_LOCAL_IDENTIFIER_FIELD = "local_id"


@runtime_checkable
class IdentifiableRecord(Protocol):
    """A record type with a primary identifier."""

    identifier_field: ClassVar[str]

    def identifier(self) -> Optional[Identifier]:
        ...


@runtime_checkable
class LocallyIdentifiableRecord(Protocol):
    """A record type with a local-only identifier."""

    local_identifier_field: ClassVar[str]

    def local_identifier(self) -> Optional[Identifier]:
        ...


def identifier_field(record_type: Type[Any]) -> str:
    return getattr(record_type, "identifier_field", DEFAULT_IDENTIFIER_FIELD)


def local_identifier_field(record_type: Type[Any]) -> str:
    return getattr(record_type, "local_identifier_field", DEFAULT_LOCAL_IDENTIFIER_FIELD)


def identifier_of(record: Any) -> Optional[Identifier]:
    """Primary identifier of a record, or None if unassigned."""
    accessor = getattr(record, "identifier", None)
    if callable(accessor):
        return accessor()
    return getattr(record, identifier_field(type(record)), None)


def local_identifier_of(record: Any) -> Optional[Identifier]:
    """Local identifier of a record, or None if unassigned."""
    accessor = getattr(record, "local_identifier", None)
    if callable(accessor):
        return accessor()
    return getattr(record, local_identifier_field(type(record)), None)


def extent_name(record_type: Type[Any]) -> str:
    """
    Name of the record type's extent in the store.

    Uses ``__extent__`` when declared, then ``__tablename__`` (SQLModel
    tables), and falls back to the class name.
    """
    for attr in ("__extent__", "__tablename__"):
        name = getattr(record_type, attr, None)
        if isinstance(name, str) and name:
            return name
    return record_type.__name__


__all__ = [
    "Identifier", "IdentifiableRecord", "LocallyIdentifiableRecord",
    "identifier_field", "local_identifier_field",
    "identifier_of", "local_identifier_of", "extent_name",
    "DEFAULT_IDENTIFIER_FIELD", "DEFAULT_LOCAL_IDENTIFIER_FIELD"
]
