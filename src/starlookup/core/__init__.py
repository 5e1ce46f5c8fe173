"""
StarLookup Core Module

Declarations a record type adopts (identity and relations) and the
filter/query values the lookup layer builds from them.
"""

from .errors import StarLookupError, StoreError, StoreExecutionError, MisuseError, ObservationError
from .filters import Filter, FilterOperator, Comparison, And, Or, Not, equals, is_null, all_of, any_of, where
from .identity import (
    Identifier, IdentifiableRecord, LocallyIdentifiableRecord,
    identifier_of, local_identifier_of, extent_name
)
from .query import Query, SortCriteria, SortDirection
from .relations import (
    SingleRelationTag, Cardinality, TO_ONE, TO_MANY,
    RelationParameters, LocaleParameters, NO_PARAMETERS,
    RelationDescriptor, SingleRelationDescriptor,
    LocallyRelatedDescriptor, SingleLocallyRelatedDescriptor
)

__all__ = [
    "StarLookupError", "StoreError", "StoreExecutionError", "MisuseError", "ObservationError",
    "Filter", "FilterOperator", "Comparison", "And", "Or", "Not",
    "equals", "is_null", "all_of", "any_of", "where",
    "Identifier", "IdentifiableRecord", "LocallyIdentifiableRecord",
    "identifier_of", "local_identifier_of", "extent_name",
    "Query", "SortCriteria", "SortDirection",
    "SingleRelationTag", "Cardinality", "TO_ONE", "TO_MANY",
    "RelationParameters", "LocaleParameters", "NO_PARAMETERS",
    "RelationDescriptor", "SingleRelationDescriptor",
    "LocallyRelatedDescriptor", "SingleLocallyRelatedDescriptor"
]
