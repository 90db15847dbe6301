"""
Infrastructure Layer - Work Catalog

Reads scheme definitions and catalog indexes from disk before the core runs.
"""

from .loaders import (
    build_registry,
    composer_index,
    load_composer_overrides,
    load_index,
    load_scheme_file,
    load_schemes,
    read_index_file,
)

__all__ = [
    "build_registry",
    "composer_index",
    "load_composer_overrides",
    "load_index",
    "load_scheme_file",
    "load_schemes",
    "read_index_file",
]
