"""
Relation Descriptors

A record type that is owned by another record type declares how to select
its records for a given owner identifier, and how many of them an owner can
have.

- ``RelationDescriptor``: tagged form, for record types related to more than
  one owner kind (or to the same owner kind in more than one way).
- ``SingleRelationDescriptor``: untagged form for the common single relation;
  the tag is fixed to ``SingleRelationTag.ANY`` and cardinality defaults to
  to-one.
- ``LocallyRelatedDescriptor`` / ``SingleLocallyRelatedDescriptor``: the same
  pair keyed by the owner's local identifier.

Example:
    class AttachmentTag(Enum):
        MESSAGE = "message"
        PROFILE = "profile"

    class Attachment(RelationDescriptor, BaseModel):
        relation_tags: ClassVar[type] = AttachmentTag

        @classmethod
        def predicate(cls, owner_id, tag, parameters):
            field = "message_id" if tag is AttachmentTag.MESSAGE else "profile_id"
            return equals(field, owner_id)

        @classmethod
        def count_bound(cls, tag, parameters):
            return TO_MANY if tag is AttachmentTag.MESSAGE else TO_ONE
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, ClassVar, Optional, Type

from pydantic import BaseModel, ConfigDict

from .errors import MisuseError
from .filters import Filter
from .identity import Identifier


class SingleRelationTag(Enum):
    """Tag of a record type that has exactly one relation."""
    ANY = "any"


@dataclass(frozen=True)
class Cardinality:
    """
    Number of related records an owner can have.

    ``bound=None`` is a to-many relation; ``bound=1`` is a foreign-key style
    to-one relation.
    """
    bound: Optional[int] = None

    def __post_init__(self):
        if self.bound is not None and self.bound < 1:
            raise MisuseError(f"Cardinality bound must be at least 1, got {self.bound}")

    @classmethod
    def bounded(cls, n: int = 1) -> "Cardinality":
        return cls(bound=n)

    @classmethod
    def unbounded(cls) -> "Cardinality":
        return cls(bound=None)

    @property
    def is_bounded(self) -> bool:
        return self.bound is not None

    @property
    def is_single(self) -> bool:
        return self.bound == 1

    def __repr__(self) -> str:
        return "Cardinality.unbounded()" if self.bound is None else f"Cardinality.bounded({self.bound})"


TO_ONE = Cardinality.bounded(1)
TO_MANY = Cardinality.unbounded()


class RelationParameters(BaseModel):
    """
    Extra filter criteria folded into a relation's predicate.

    Frozen so that parameter values are hashable and comparable.
    """
    model_config = ConfigDict(frozen=True, extra="forbid")


class LocaleParameters(RelationParameters):
    """Relation parameters scoped by locale ("*" for any locale)."""
    locale: str = "*"

    @property
    def is_wildcard(self) -> bool:
        return self.locale == "*"


NO_PARAMETERS = RelationParameters()


class RelationDescriptor:
    """
    Tagged relation to an owner record type.

    Adopters set ``relation_tags`` to their tag Enum and implement
    ``predicate``. ``count_bound`` defaults to to-one.
    """

    relation_tags: ClassVar[Type[Enum]] = SingleRelationTag

    @classmethod
    def predicate(cls, owner_id: Identifier, tag: Enum,
                  parameters: RelationParameters) -> Filter:
        raise NotImplementedError(f"{cls.__name__} must implement predicate()")

    @classmethod
    def count_bound(cls, tag: Enum, parameters: RelationParameters) -> Cardinality:
        return TO_ONE


class SingleRelationDescriptor(RelationDescriptor):
    """
    Relation to exactly one owner kind; no tag needed.

    Adopters implement ``predicate(owner_id, parameters)`` and may override
    ``count_bound(parameters)``. The lookup layer calls both without a tag.
    """

    relation_tags: ClassVar[Type[Enum]] = SingleRelationTag

    @classmethod
    def predicate(cls, owner_id: Identifier,
                  parameters: RelationParameters = NO_PARAMETERS) -> Filter:
        raise NotImplementedError(f"{cls.__name__} must implement predicate()")

    @classmethod
    def count_bound(cls, parameters: RelationParameters = NO_PARAMETERS) -> Cardinality:
        return TO_ONE


class LocallyRelatedDescriptor:
    """Tagged relation keyed by the owner's local identifier."""

    local_relation_tags: ClassVar[Type[Enum]] = SingleRelationTag

    @classmethod
    def local_predicate(cls, owner_local_id: Identifier, tag: Enum,
                        parameters: RelationParameters) -> Filter:
        raise NotImplementedError(f"{cls.__name__} must implement local_predicate()")

    @classmethod
    def local_count_bound(cls, tag: Enum, parameters: RelationParameters) -> Cardinality:
        return TO_ONE


class SingleLocallyRelatedDescriptor(LocallyRelatedDescriptor):
    """Single relation keyed by the owner's local identifier; same untagged contract."""

    local_relation_tags: ClassVar[Type[Enum]] = SingleRelationTag

    @classmethod
    def local_predicate(cls, owner_local_id: Identifier,
                        parameters: RelationParameters = NO_PARAMETERS) -> Filter:
        raise NotImplementedError(f"{cls.__name__} must implement local_predicate()")

    @classmethod
    def local_count_bound(cls, parameters: RelationParameters = NO_PARAMETERS) -> Cardinality:
        return TO_ONE


__all__ = [
    "SingleRelationTag", "Cardinality", "TO_ONE", "TO_MANY",
    "RelationParameters", "LocaleParameters", "NO_PARAMETERS",
    "RelationDescriptor", "SingleRelationDescriptor",
    "LocallyRelatedDescriptor", "SingleLocallyRelatedDescriptor"
]
