"""Immutable registry of catalog schemes.

Built once from scheme definitions and then only read, so a single instance can
be shared by any number of concurrent queries.
"""

import logging
from types import MappingProxyType
from typing import Any, Dict, Iterable, Iterator, Mapping, Optional, Tuple

from ..domain.result import DataIntegrityError, DomainError, Failure, Result, SchemeNotFound, Success
from ..domain.scheme import CatalogScheme
from ..exceptions import SchemeDefinitionError
from .editions import EditionResolver

logger = logging.getLogger(__name__)

_Key = Tuple[Optional[str], str]


class SchemeRegistry:
    """Lookup from scheme id (or alias) to its definition.

    Composer overrides are merged over the global definitions at construction.
    Schemes whose edition aliases are inconsistent stay registered but every
    lookup of them fails with the DataIntegrityError found at load time.
    """

    def __init__(self, schemes: Iterable[CatalogScheme],
                 composer_overrides: Optional[Mapping[str, Mapping[str, Mapping[str, Any]]]] = None):
        """Initialize the registry.

        Args:
            schemes: Global scheme definitions
            composer_overrides: ``{composer: {scheme_id: partial definition}}``

        Raises:
            SchemeDefinitionError: On duplicate ids/aliases or invalid overrides
        """
        schemes_by_key: Dict[_Key, CatalogScheme] = {}
        aliases: Dict[str, str] = {}

        for scheme in schemes:
            for name in (scheme.id, *scheme.aliases):
                lowered = name.lower()
                if lowered in aliases:
                    raise SchemeDefinitionError(
                        f"Scheme id '{name}' is declared by both {aliases[lowered]} and {scheme.id}"
                    )
                aliases[lowered] = scheme.id
            schemes_by_key[(None, scheme.id)] = scheme

        for composer, catalogs in (composer_overrides or {}).items():
            for scheme_id, overrides in catalogs.items():
                base_id = aliases.get(scheme_id.lower())
                if base_id is None:
                    merged = CatalogScheme.from_dict(overrides, scheme_id=scheme_id)
                    aliases.setdefault(scheme_id.lower(), merged.id)
                else:
                    merged = schemes_by_key[(None, base_id)].merged(overrides)
                schemes_by_key[(composer, merged.id)] = merged

        broken: Dict[_Key, DataIntegrityError] = {}
        for key, scheme in schemes_by_key.items():
            errors = EditionResolver(scheme).validate()
            if errors:
                for error in errors:
                    logger.error(f"Scheme {scheme.id} disabled: {error}")
                broken[key] = errors[0]

        self._schemes = MappingProxyType(schemes_by_key)
        self._aliases = MappingProxyType(aliases)
        self._broken = MappingProxyType(broken)
        logger.info(f"Loaded {len(self)} catalog schemes ({len(broken)} with integrity errors)")

    @classmethod
    def from_definitions(cls, definitions: Iterable[Mapping[str, Any]],
                         composer_overrides: Optional[Mapping[str, Mapping[str, Mapping[str, Any]]]] = None
                         ) -> "SchemeRegistry":
        return cls((CatalogScheme.from_dict(d) for d in definitions), composer_overrides)

    def canonical_id(self, scheme_id: str) -> Optional[str]:
        return self._aliases.get(scheme_id.lower())

    def lookup(self, scheme_id: str, composer: Optional[str] = None) -> Result[CatalogScheme, DomainError]:
        """Find a scheme, preferring the composer's override.

        Returns:
            Success(CatalogScheme), Failure(SchemeNotFound), or
            Failure(DataIntegrityError) for a scheme disabled at load time
        """
        sid = self.canonical_id(scheme_id)
        if sid is None:
            return Failure(SchemeNotFound(scheme_id, composer))

        key: _Key = (composer, sid)
        if key not in self._schemes:
            key = (None, sid)
            if key not in self._schemes:
                return Failure(SchemeNotFound(scheme_id, composer))

        if key in self._broken:
            return Failure(self._broken[key])
        return Success(self._schemes[key])

    def integrity_errors(self) -> Mapping[_Key, DataIntegrityError]:
        return self._broken

    def __contains__(self, scheme_id: object) -> bool:
        return isinstance(scheme_id, str) and self.canonical_id(scheme_id) is not None

    def __iter__(self) -> Iterator[CatalogScheme]:
        return (scheme for (composer, _), scheme in self._schemes.items() if composer is None)

    def __len__(self) -> int:
        return sum(1 for composer, _ in self._schemes if composer is None)
