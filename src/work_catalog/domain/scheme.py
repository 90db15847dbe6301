"""Catalog scheme definitions.

A scheme is plain data: a pattern, a sort-key specification and a format
template. Parsing, ordering and formatting are generic services parameterized
by this data, so there is no per-scheme subclass.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Tuple

from ..exceptions import SchemeDefinitionError
from .value_objects import EditionAlias, SortKeySpec, SortKeyType


@dataclass(frozen=True)
class CatalogScheme:
    """Immutable definition of one catalog numbering scheme."""
    id: str
    name: str
    pattern: str
    sort_keys: Tuple[SortKeySpec, ...]
    canonical_format: Optional[str] = None
    editions: Tuple[EditionAlias, ...] = ()
    aliases: Tuple[str, ...] = ()
    description: Optional[str] = None
    group_depth: int = 1
    strict_listings: bool = True
    allow_cross_group_ranges: bool = True
    compiled: re.Pattern = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        if not self.id:
            raise SchemeDefinitionError("Scheme id must not be empty")
        try:
            compiled = re.compile(self.pattern, re.IGNORECASE)
        except re.error as e:
            raise SchemeDefinitionError(f"Scheme '{self.id}' has an invalid pattern: {e}") from e

        if not self.sort_keys:
            raise SchemeDefinitionError(f"Scheme '{self.id}' declares no sort keys")
        for spec in self.sort_keys:
            if spec.group < 1 or spec.group > compiled.groups:
                raise SchemeDefinitionError(
                    f"Scheme '{self.id}' sort key refers to group {spec.group}, "
                    f"but the pattern has {compiled.groups} groups"
                )
        if not 1 <= self.group_depth <= len(self.sort_keys):
            raise SchemeDefinitionError(
                f"Scheme '{self.id}' group_depth must be between 1 and {len(self.sort_keys)}"
            )

        object.__setattr__(self, 'compiled', compiled)

    @property
    def has_editions(self) -> bool:
        return bool(self.editions)

    @property
    def key_types(self) -> Tuple[SortKeyType, ...]:
        return tuple(spec.type for spec in self.sort_keys)

    @property
    def edition_names(self) -> Tuple[str, ...]:
        seen: Dict[str, None] = {}
        for alias in self.editions:
            seen.setdefault(alias.edition, None)
        return tuple(seen)

    def matches_id(self, scheme_id: str) -> bool:
        """Check a scheme id or alias against this scheme, ignoring case."""
        wanted = scheme_id.lower()
        return wanted == self.id.lower() or wanted in (a.lower() for a in self.aliases)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], scheme_id: Optional[str] = None) -> CatalogScheme:
        """Build a scheme from its JSON definition.

        Args:
            data: Parsed scheme definition
            scheme_id: Id to use when the definition carries none (e.g. the file stem)

        Raises:
            SchemeDefinitionError: If required fields are missing or invalid
        """
        sid = data.get("id") or scheme_id
        if not sid:
            raise SchemeDefinitionError("Scheme definition has no id")
        try:
            return cls(
                id=str(sid),
                name=str(data.get("name", sid)),
                pattern=data["pattern"],
                sort_keys=tuple(SortKeySpec.from_dict(sk) for sk in data["sort_keys"]),
                canonical_format=data.get("canonical_format"),
                editions=tuple(EditionAlias.from_dict(e) for e in data.get("editions") or ()),
                aliases=tuple(data.get("aliases") or ()),
                description=data.get("description"),
                group_depth=int(data.get("group_depth", 1)),
                strict_listings=bool(data.get("strict_listings", True)),
                allow_cross_group_ranges=bool(data.get("allow_cross_group_ranges", True)),
            )
        except KeyError as e:
            raise SchemeDefinitionError(f"Scheme '{sid}' is missing required field {e}") from e
        except (TypeError, ValueError) as e:
            raise SchemeDefinitionError(f"Scheme '{sid}' is invalid: {e}") from e

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "pattern": self.pattern,
            "sort_keys": [spec.to_dict() for spec in self.sort_keys],
            "group_depth": self.group_depth,
            "strict_listings": self.strict_listings,
            "allow_cross_group_ranges": self.allow_cross_group_ranges,
        }
        if self.canonical_format is not None:
            result["canonical_format"] = self.canonical_format
        if self.editions:
            result["editions"] = [alias.to_dict() for alias in self.editions]
        if self.aliases:
            result["aliases"] = list(self.aliases)
        if self.description is not None:
            result["description"] = self.description
        return result

    def merged(self, overrides: Mapping[str, Any]) -> CatalogScheme:
        """Return a copy with a composer's overrides applied on top."""
        data = self.to_dict()
        data.update({k: v for k, v in overrides.items() if v is not None})
        data["id"] = self.id
        return CatalogScheme.from_dict(data)
