"""
Domain Layer - Work Catalog

Immutable data for catalog number resolution: schemes, parsed numbers,
sort keys, edition aliases, queries and results, plus the Result type and
the domain error taxonomy.
"""

from .result import (
    Result,
    Success,
    Failure,
    DomainError,
    ParseError,
    ParseErrorKind,
    SchemeNotFound,
    ComposerNotFound,
    EditionNotFound,
    AmbiguousRange,
    DataIntegrityError,
)
from .value_objects import (
    CatalogNumber,
    CatalogWarning,
    DisplayTransform,
    EditionAlias,
    EditionStatus,
    SortComponent,
    SortKey,
    SortKeySpec,
    SortKeyType,
    WarningKind,
)
from .scheme import CatalogScheme
from .queries import (
    ExactSelector,
    GroupSelector,
    Query,
    QueryResult,
    RangeSelector,
    ResultEntry,
    Selector,
)

__all__ = [
    # Results and errors
    "Result",
    "Success",
    "Failure",
    "DomainError",
    "ParseError",
    "ParseErrorKind",
    "SchemeNotFound",
    "ComposerNotFound",
    "EditionNotFound",
    "AmbiguousRange",
    "DataIntegrityError",
    # Value objects
    "CatalogNumber",
    "CatalogWarning",
    "DisplayTransform",
    "EditionAlias",
    "EditionStatus",
    "SortComponent",
    "SortKey",
    "SortKeySpec",
    "SortKeyType",
    "WarningKind",
    # Schemes and queries
    "CatalogScheme",
    "ExactSelector",
    "GroupSelector",
    "Query",
    "QueryResult",
    "RangeSelector",
    "ResultEntry",
    "Selector",
]
