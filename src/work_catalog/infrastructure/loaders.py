"""
File loaders - Anti-Corruption Layer between JSON files and the domain.

Reads scheme definitions, composer overrides and the catalog index from a
data directory laid out as::

    catalogs/<scheme>.json
    composers/<composer>.json
    index/catalog.json

Everything is read once, before any query runs.
"""

import json
import logging
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple

from ..core.registry import SchemeRegistry
from ..core.resolver import CatalogIndex
from ..core.scheme_schema import validate_scheme_json
from ..domain.result import ComposerNotFound, Failure, Result, Success
from ..domain.scheme import CatalogScheme
from ..exceptions import IndexFileError, SchemeDefinitionError
from ..models.config import Config

logger = logging.getLogger(__name__)


def _read_json(path: Path, error_class: type) -> Any:
    try:
        with open(path, 'r', encoding='utf-8') as f:
            return json.load(f)
    except json.JSONDecodeError as e:
        raise error_class(f"{path}: JSON parsing error: {e.msg} at line {e.lineno}, column {e.colno}") from e
    except OSError as e:
        raise error_class(f"{path}: {e}") from e


def load_scheme_file(path: Path) -> CatalogScheme:
    """Load and validate one scheme file; the file stem is the default id.

    Raises:
        SchemeDefinitionError: If the file is unreadable or invalid
    """
    data = _read_json(path, SchemeDefinitionError)
    errors = validate_scheme_json(data)
    if errors:
        raise SchemeDefinitionError(f"{path}: " + "; ".join(errors))
    return CatalogScheme.from_dict(data, scheme_id=path.stem)


def load_schemes(directory: Path) -> List[CatalogScheme]:
    """Load every ``*.json`` scheme file in a directory."""
    if not directory.is_dir():
        logger.warning(f"Scheme directory {directory} does not exist")
        return []

    schemes = [load_scheme_file(path) for path in sorted(directory.glob("*.json"))]
    logger.debug(f"Read {len(schemes)} scheme files from {directory}")
    return schemes


def load_composer_overrides(directory: Path) -> Dict[str, Dict[str, Dict[str, Any]]]:
    """Collect the ``catalogs`` section of every composer file.

    Returns:
        ``{composer id: {scheme id: partial scheme definition}}``
    """
    overrides: Dict[str, Dict[str, Dict[str, Any]]] = {}
    if not directory.is_dir():
        return overrides

    for path in sorted(directory.glob("*.json")):
        data = _read_json(path, SchemeDefinitionError)
        errors = validate_scheme_json(data, composer=True)
        if errors:
            raise SchemeDefinitionError(f"{path}: " + "; ".join(errors))
        catalogs = data.get("catalogs")
        if catalogs:
            overrides[data["id"]] = catalogs
    return overrides


def build_registry(data_dir: Path, config: Optional[Config] = None) -> SchemeRegistry:
    """Build the scheme registry from a data directory."""
    config = config or Config.default()
    schemes = load_schemes(data_dir / config.catalogs_dir)
    overrides = load_composer_overrides(data_dir / config.composers_dir)
    return SchemeRegistry(schemes, overrides)


def read_index_file(path: Path) -> Dict[str, Dict[str, Dict[str, str]]]:
    """Read the raw index: ``{composer: {scheme: {number: composition id}}}``.

    Raises:
        IndexFileError: If the file is unreadable or not shaped like an index
    """
    data = _read_json(path, IndexFileError)
    if not isinstance(data, dict) or not all(
        isinstance(schemes, dict) and all(isinstance(n, dict) for n in schemes.values())
        for schemes in data.values()
    ):
        raise IndexFileError(f"{path}: expected {{composer: {{scheme: {{number: id}}}}}}")
    return data


def composer_index(raw_index: Mapping[str, Mapping[str, Mapping[str, str]]],
                   composer: str) -> Result[CatalogIndex, ComposerNotFound]:
    """Flatten one composer's part of the index into ``{(scheme, number): id}``."""
    schemes = raw_index.get(composer)
    if schemes is None:
        return Failure(ComposerNotFound(composer))

    flat: Dict[Tuple[str, str], str] = {}
    for scheme_id, numbers in schemes.items():
        for number, composition_id in numbers.items():
            flat[(scheme_id, number)] = composition_id
    return Success(MappingProxyType(flat))


def load_index(path: Path, composer: str) -> Result[CatalogIndex, ComposerNotFound]:
    """Read the index file and return the read-only view for ``composer``."""
    return composer_index(read_index_file(path), composer)
