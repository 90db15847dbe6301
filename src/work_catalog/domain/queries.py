"""Query and result types for catalog resolution.

The selector is a tagged variant with one case per query shape; the resolver
matches on it explicitly.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterator, Mapping, Optional, Tuple, Union

from .result import AmbiguousRange, Failure, Result, Success
from .scheme import CatalogScheme
from .value_objects import CatalogNumber, CatalogWarning


@dataclass(frozen=True, slots=True)
class ExactSelector:
    number: str


@dataclass(frozen=True, slots=True)
class RangeSelector:
    start: str
    end: str

    @classmethod
    def parse(cls, text: str) -> Result[RangeSelector, AmbiguousRange]:
        """Split ``"2-11"`` into its bounds."""
        parts = [part.strip() for part in text.split("-")]
        if len(parts) != 2 or not all(parts):
            return Failure(AmbiguousRange(f"Range must look like 'start-end', got '{text}'"))
        return Success(cls(parts[0], parts[1]))


@dataclass(frozen=True, slots=True)
class GroupSelector:
    group: str


Selector = Union[ExactSelector, RangeSelector, GroupSelector]


@dataclass(frozen=True, slots=True)
class Query:
    """One resolution request.

    ``strict`` is tri-state: ``None`` defers to the default for the selector
    (off for exact lookups, the scheme's ``strict_listings`` for ranges and
    groups).
    """
    composer: str
    scheme: str
    selector: Selector
    edition: Optional[str] = None
    strict: Optional[bool] = None

    @classmethod
    def exact(cls, composer: str, scheme: str, number: str, **kwargs: Any) -> Query:
        return cls(composer, scheme, ExactSelector(number), **kwargs)

    @classmethod
    def range(cls, composer: str, scheme: str, start: str, end: str, **kwargs: Any) -> Query:
        return cls(composer, scheme, RangeSelector(start, end), **kwargs)

    @classmethod
    def group(cls, composer: str, scheme: str, group: str, **kwargs: Any) -> Query:
        return cls(composer, scheme, GroupSelector(group), **kwargs)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Query:
        """Build a query from ``{composer, scheme, exact|range|group, edition?, strict?}``."""
        if "exact" in data:
            selector: Selector = ExactSelector(str(data["exact"]))
        elif "range" in data:
            start, end = data["range"]
            selector = RangeSelector(str(start), str(end))
        elif "group" in data:
            selector = GroupSelector(str(data["group"]))
        else:
            raise ValueError("Query needs one of 'exact', 'range' or 'group'")
        edition = data.get("edition")
        return cls(
            composer=str(data["composer"]),
            scheme=str(data["scheme"]),
            selector=selector,
            edition=str(edition) if edition is not None else None,
            strict=data.get("strict"),
        )

    def effective_strict(self, scheme: CatalogScheme) -> bool:
        if self.strict is not None:
            return self.strict
        if isinstance(self.selector, ExactSelector):
            return False
        return scheme.strict_listings


@dataclass(frozen=True, slots=True)
class ResultEntry:
    number: CatalogNumber
    composition_id: str

    def to_dict(self) -> Dict[str, str]:
        return {
            "scheme": self.number.scheme_id,
            "number": self.number.raw,
            "compositionId": self.composition_id,
        }


@dataclass(frozen=True, slots=True)
class QueryResult:
    """Ordered matches plus the warnings collected while resolving them."""
    entries: Tuple[ResultEntry, ...] = ()
    warnings: Tuple[CatalogWarning, ...] = ()

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self) -> Iterator[ResultEntry]:
        return iter(self.entries)

    @property
    def is_empty(self) -> bool:
        return not self.entries

    @property
    def numbers(self) -> Tuple[str, ...]:
        return tuple(entry.number.raw for entry in self.entries)

    @property
    def composition_ids(self) -> Tuple[str, ...]:
        return tuple(entry.composition_id for entry in self.entries)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "results": [entry.to_dict() for entry in self.entries],
            "warnings": [warning.to_dict() for warning in self.warnings],
        }
