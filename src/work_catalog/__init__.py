"""Work Catalog

Resolve, order and format catalog numbers of musical works (BWV, K., Op., Hob.)
using data-driven scheme definitions.
"""

__version__ = "0.1.0"

from .core import (
    BatchResolver,
    CatalogFormatter,
    EditionResolver,
    NumberParser,
    QueryResolver,
    SchemeRegistry,
    SortKeyGenerator,
    sort_numbers,
)
from .domain import CatalogNumber, CatalogScheme, Query, QueryResult, SortKey
from .infrastructure import build_registry, load_index

__all__ = [
    "__version__",
    "BatchResolver",
    "CatalogFormatter",
    "EditionResolver",
    "NumberParser",
    "QueryResolver",
    "SchemeRegistry",
    "SortKeyGenerator",
    "sort_numbers",
    "CatalogNumber",
    "CatalogScheme",
    "Query",
    "QueryResult",
    "SortKey",
    "build_registry",
    "load_index",
]
