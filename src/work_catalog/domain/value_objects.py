"""
Domain value objects for catalog number resolution.

Value objects are immutable and defined by their attributes. Parsed catalog
numbers, sort keys, edition aliases and warnings all live here so that the
parsing, ordering and resolution services can share them without depending
on each other.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Tuple, Union

GroupValue = Union[int, str]

# Component ranks: an absent capture sorts before any present value at the same
# position; CEILING sorts after every present value and is only used to close
# the upper bound of a range.
ABSENT = 0
PRESENT = 1
CEILING = 2


class SortKeyType(Enum):
    """How a captured group is interpreted for ordering."""
    INT = "int"
    STR = "str"
    ROMAN = "roman"

    @property
    def is_numeric(self) -> bool:
        return self is not SortKeyType.STR


class DisplayTransform(Enum):
    """Case transform applied to a captured group when rendering."""
    UPPER = "upper"
    LOWER = "lower"
    TITLE = "title"

    def apply(self, text: str) -> str:
        if self is DisplayTransform.UPPER:
            return text.upper()
        if self is DisplayTransform.LOWER:
            return text.lower()
        return text[:1].upper() + text[1:]


@dataclass(frozen=True, slots=True)
class SortKeySpec:
    """One entry of a scheme's ``sort_keys`` list.

    ``group`` is the 1-based index of the capture group in the scheme pattern.
    """
    group: int
    type: SortKeyType = SortKeyType.INT
    display: Optional[DisplayTransform] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> SortKeySpec:
        display = data.get("display")
        return cls(
            group=int(data["group"]),
            type=SortKeyType(data.get("type", "int")),
            display=DisplayTransform(display) if display else None,
        )

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {"group": self.group, "type": self.type.value}
        if self.display:
            result["display"] = self.display.value
        return result


@dataclass(frozen=True, order=True, slots=True)
class SortComponent:
    """A single typed position of a sort key."""
    rank: int
    value: GroupValue

    @classmethod
    def present(cls, value: GroupValue) -> SortComponent:
        return cls(PRESENT, value)

    @classmethod
    def absent(cls, key_type: SortKeyType) -> SortComponent:
        return cls(ABSENT, 0 if key_type.is_numeric else "")

    @classmethod
    def ceiling(cls, key_type: SortKeyType) -> SortComponent:
        return cls(CEILING, 0 if key_type.is_numeric else "")

    @property
    def is_absent(self) -> bool:
        return self.rank == ABSENT

    def __str__(self) -> str:
        if self.rank == ABSENT:
            return "-"
        if self.rank == CEILING:
            return "+"
        return str(self.value)


@dataclass(frozen=True, order=True, slots=True)
class SortKey:
    """Totally ordered key for one catalog number.

    Components compare left to right and the first difference decides. The
    component types are carried alongside so that a key can be widened into
    an inclusive range ceiling.
    """
    components: Tuple[SortComponent, ...]
    types: Tuple[SortKeyType, ...] = field(default=(), compare=False)

    def __len__(self) -> int:
        return len(self.components)

    def prefix(self, depth: int) -> Tuple[SortComponent, ...]:
        """Leading components used for group membership."""
        return self.components[:depth]

    @property
    def has_trailing_absent(self) -> bool:
        return bool(self.components) and self.components[-1].is_absent

    def ceiling(self) -> SortKey:
        """Return the key with trailing absent components raised to CEILING.

        ``11`` becomes an upper bound that still admits ``11/4`` and ``11a``.
        """
        components = list(self.components)
        for i in range(len(components) - 1, -1, -1):
            if not components[i].is_absent:
                break
            key_type = self.types[i] if i < len(self.types) else SortKeyType.INT
            components[i] = SortComponent.ceiling(key_type)
        return SortKey(tuple(components), self.types)

    def __str__(self) -> str:
        return "(" + ", ".join(str(c) for c in self.components) + ")"


@dataclass(frozen=True, slots=True)
class CatalogNumber:
    """A raw catalog number that fully matched its scheme's pattern.

    ``groups`` holds one typed value per capture group (``None`` when the group
    did not participate). ``spans`` records where each group sits in ``raw`` so
    that display transforms can rewrite the original text in place.
    """
    scheme_id: str
    raw: str
    groups: Tuple[Optional[GroupValue], ...]
    edition: Optional[str] = None
    spans: Tuple[Optional[Tuple[int, int]], ...] = field(default=(), compare=False, repr=False)

    def group(self, index: int) -> Optional[GroupValue]:
        """Typed value of a 1-based capture group."""
        if index < 1 or index > len(self.groups):
            return None
        return self.groups[index - 1]

    def group_text(self, index: int) -> Optional[str]:
        """Raw text of a 1-based capture group."""
        if index < 1 or index > len(self.spans):
            return None
        span = self.spans[index - 1]
        if span is None:
            return None
        return self.raw[span[0]:span[1]]

    def __str__(self) -> str:
        return self.raw


class EditionStatus(Enum):
    CURRENT = "current"
    SUPERSEDED = "superseded"


@dataclass(frozen=True, slots=True)
class EditionAlias:
    """How one edition of a catalog numbered a work."""
    edition: str
    number: str
    canonical: str
    status: EditionStatus = EditionStatus.CURRENT

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> EditionAlias:
        return cls(
            edition=str(data["edition"]),
            number=str(data["number"]),
            canonical=str(data.get("canonical", data["number"])),
            status=EditionStatus(data.get("status", "current")),
        )

    def to_dict(self) -> Dict[str, str]:
        return {
            "edition": self.edition,
            "number": self.number,
            "canonical": self.canonical,
            "status": self.status.value,
        }

    @property
    def is_current(self) -> bool:
        return self.status is EditionStatus.CURRENT


class WarningKind(Enum):
    SUPERSEDED = "superseded"  # a superseded number was substituted or listed
    REJECTED = "rejected"  # strict mode refused a superseded number
    EXCLUDED = "excluded"  # a strict listing dropped a superseded entry


@dataclass(frozen=True, slots=True)
class CatalogWarning:
    """Non-fatal annotation attached to a query result."""
    kind: WarningKind
    from_number: str
    to_number: Optional[str] = None

    def to_dict(self) -> Dict[str, Optional[str]]:
        return {"kind": self.kind.value, "from": self.from_number, "to": self.to_number}

    def __str__(self) -> str:
        if self.kind is WarningKind.SUPERSEDED:
            return f"{self.from_number} is superseded by {self.to_number}"
        if self.kind is WarningKind.REJECTED:
            return f"{self.from_number} is superseded by {self.to_number} (strict mode)"
        return f"{self.from_number} excluded: superseded by {self.to_number}"
