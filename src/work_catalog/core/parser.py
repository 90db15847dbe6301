"""Scheme-driven parsing of raw catalog numbers.

Compound references ("2/1", "Anh. III 135") need no special handling here:
they are simply schemes whose pattern captures more groups.
"""

import logging
import re
from typing import Dict, List, Optional, Tuple

from ..domain.result import Failure, ParseError, ParseErrorKind, Result, Success
from ..domain.scheme import CatalogScheme
from ..domain.value_objects import CatalogNumber, GroupValue, SortKeyType

logger = logging.getLogger(__name__)

_DIGITS = re.compile(r"[0-9]+")
_ROMAN_VALUES = {'I': 1, 'V': 5, 'X': 10, 'L': 50, 'C': 100, 'D': 500, 'M': 1000}


def parse_roman(text: str) -> int:
    """Convert a Roman numeral to an integer.

    Raises:
        ValueError: If the text contains non-Roman characters
    """
    upper = text.strip().upper()
    if not upper or any(c not in _ROMAN_VALUES for c in upper):
        raise ValueError(f"not a Roman numeral: {text!r}")

    total = 0
    previous = 0
    for char in reversed(upper):
        value = _ROMAN_VALUES[char]
        if value < previous:
            total -= value
        else:
            total += value
            previous = value
    return total


def convert_group(text: str, key_type: SortKeyType) -> GroupValue:
    """Convert captured text to its typed value.

    Integers tolerate leading zeros ("007" -> 7).

    Raises:
        ValueError: If the text does not fit the declared type
    """
    if key_type is SortKeyType.INT:
        stripped = text.strip()
        if not _DIGITS.fullmatch(stripped):
            raise ValueError(f"expected digits, got {text!r}")
        return int(stripped)
    if key_type is SortKeyType.ROMAN:
        return parse_roman(text)
    return text


class NumberParser:
    """Applies a scheme's pattern to raw catalog numbers."""

    def parse(self, scheme: CatalogScheme, raw: str,
              edition: Optional[str] = None) -> Result[CatalogNumber, ParseError]:
        """Parse ``raw`` under ``scheme``.

        The whole string must match; surrounding whitespace is ignored.

        Returns:
            Success(CatalogNumber) or Failure(ParseError) with kind NO_MATCH
            or INVALID_GROUP
        """
        text = raw.strip()
        match = scheme.compiled.fullmatch(text)
        if match is None:
            return Failure(ParseError(ParseErrorKind.NO_MATCH, scheme.id, raw))

        types: Dict[int, SortKeyType] = {spec.group: spec.type for spec in scheme.sort_keys}
        groups: List[Optional[GroupValue]] = []
        spans: List[Optional[Tuple[int, int]]] = []

        for index in range(1, scheme.compiled.groups + 1):
            value = match.group(index)
            if not value:
                groups.append(None)
                spans.append(None)
                continue
            try:
                groups.append(convert_group(value, types.get(index, SortKeyType.STR)))
            except ValueError as e:
                return Failure(ParseError(
                    ParseErrorKind.INVALID_GROUP, scheme.id, raw, f"group {index}: {e}"
                ))
            spans.append(match.span(index))

        return Success(CatalogNumber(
            scheme_id=scheme.id,
            raw=text,
            groups=tuple(groups),
            edition=edition,
            spans=tuple(spans),
        ))
