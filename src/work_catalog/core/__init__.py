"""Core resolution engine: parsing, ordering, edition and query resolution."""

from .parser import NumberParser, parse_roman
from .sort_keys import SortKeyGenerator, find_collisions, sort_numbers
from .editions import EditionResolution, EditionResolver
from .registry import SchemeRegistry
from .formatter import CatalogFormatter
from .resolver import CatalogIndex, ParsedIndexCache, QueryResolver
from .batch import BatchResolver

__all__ = [
    "NumberParser",
    "parse_roman",
    "SortKeyGenerator",
    "find_collisions",
    "sort_numbers",
    "EditionResolution",
    "EditionResolver",
    "SchemeRegistry",
    "CatalogFormatter",
    "CatalogIndex",
    "ParsedIndexCache",
    "QueryResolver",
    "BatchResolver",
]
