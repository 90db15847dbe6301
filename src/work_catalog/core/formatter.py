"""Rendering catalog numbers through a scheme's canonical format.

Templates use ``{number}`` for the whole display number, ``{group}`` and
``{sub}`` for the captures of the first and second sort keys, and any named
group of the scheme pattern. Text in square brackets is dropped when a
placeholder inside it is empty: ``"op. {group}[ no. {sub}]"``.
"""

import functools
import itertools
import logging
import re
from typing import Dict, List, Optional

from ..domain.result import Failure, ParseError, ParseErrorKind, Result
from ..domain.scheme import CatalogScheme
from ..domain.value_objects import CatalogNumber
from .parser import NumberParser, convert_group

logger = logging.getLogger(__name__)

_PLACEHOLDER = re.compile(r"\{(\w+)\}")
_OPTIONAL = re.compile(r"\[([^\[\]]*)\]")
_SEPARATORS = ("", "/", ".", ":", " ")


class CatalogFormatter:
    """Formats parsed numbers and recognizes formatted references."""

    def __init__(self, parser: Optional[NumberParser] = None):
        self._parser = parser or NumberParser()

    @staticmethod
    def template(scheme: CatalogScheme) -> str:
        return scheme.canonical_format or f"{scheme.id.upper()} {{number}}"

    def display_number(self, scheme: CatalogScheme, number: CatalogNumber) -> str:
        """Raw number with each sort key's display transform applied in place."""
        transforms = []
        for spec in scheme.sort_keys:
            if spec.display is None:
                continue
            span = number.spans[spec.group - 1] if spec.group <= len(number.spans) else None
            if span is not None:
                transforms.append((span[0], span[1], spec.display))

        if not transforms:
            return number.raw

        transforms.sort(key=lambda t: t[0])
        pieces = []
        position = 0
        for start, end, transform in transforms:
            if start < position:
                continue
            pieces.append(number.raw[position:start])
            pieces.append(transform.apply(number.raw[start:end]))
            position = end
        pieces.append(number.raw[position:])
        return "".join(pieces)

    def placeholders(self, scheme: CatalogScheme, number: CatalogNumber) -> Dict[str, str]:
        display = {spec.group: spec.display for spec in scheme.sort_keys}

        def text(index: int) -> str:
            value = number.group_text(index) or ""
            transform = display.get(index)
            return transform.apply(value) if transform and value else value

        values = {name: text(index) for name, index in scheme.compiled.groupindex.items()}
        values["number"] = self.display_number(scheme, number)
        values["group"] = text(scheme.sort_keys[0].group)
        values["sub"] = text(scheme.sort_keys[1].group) if len(scheme.sort_keys) > 1 else ""
        return values

    def format(self, scheme: CatalogScheme, number: CatalogNumber) -> str:
        """Render ``number`` through the scheme's canonical format."""
        values = self.placeholders(scheme, number)

        def optional(match: re.Match) -> str:
            section = match.group(1)
            if any(not values.get(name) for name in _PLACEHOLDER.findall(section)):
                return ""
            return section

        expanded = _OPTIONAL.sub(optional, self.template(scheme))
        return _PLACEHOLDER.sub(lambda m: values.get(m.group(1), ""), expanded)

    def recognize(self, scheme: CatalogScheme, text: str) -> Result[CatalogNumber, ParseError]:
        """Parse either a bare number or a string produced by :meth:`format`.

        "812" and "BWV 812" both give the number 812.
        """
        direct = self._parser.parse(scheme, text)
        if direct.is_success():
            return direct

        match = template_regex(self.template(scheme)).fullmatch(text.strip())
        if match is None:
            return direct

        values = {k: v for k, v in match.groupdict().items() if v}
        if "number" in values:
            return self._parser.parse(scheme, values["number"])
        return self._reassemble(scheme, values, text)

    def _reassemble(self, scheme: CatalogScheme, values: Dict[str, str],
                    text: str) -> Result[CatalogNumber, ParseError]:
        """Rebuild a bare number from ``{group}``/``{sub}``-style captures.

        The captured pieces are joined in capture-group order, trying each
        separator combination until one parses back to the same pieces.
        """
        by_index: Dict[int, str] = {}
        for name, index in scheme.compiled.groupindex.items():
            if name in values:
                by_index[index] = values[name]
        if "group" in values:
            by_index[scheme.sort_keys[0].group] = values["group"]
        if "sub" in values and len(scheme.sort_keys) > 1:
            by_index[scheme.sort_keys[1].group] = values["sub"]

        types = {spec.group: spec.type for spec in scheme.sort_keys}
        pieces = [by_index[i] for i in sorted(by_index)]
        wanted = {}
        for index, piece in by_index.items():
            try:
                wanted[index] = convert_group(piece, types[index]) if index in types else piece.lower()
            except ValueError:
                return Failure(ParseError(ParseErrorKind.INVALID_GROUP, scheme.id, text, piece))

        for separators in itertools.product(_SEPARATORS, repeat=max(len(pieces) - 1, 0)):
            candidate = pieces[0] + "".join(s + p for s, p in zip(separators, pieces[1:])) if pieces else ""
            result = self._parser.parse(scheme, candidate)
            if result.is_failure():
                continue
            number = result.value()
            if all(self._same(number.group(i), v) for i, v in wanted.items()):
                logger.debug(f"Recognized '{text}' as {scheme.id} {candidate}")
                return result

        return Failure(ParseError(ParseErrorKind.NO_MATCH, scheme.id, text))

    @staticmethod
    def _same(actual, expected) -> bool:
        if isinstance(actual, str) and isinstance(expected, str):
            return actual.lower() == expected
        return actual == expected


@functools.lru_cache(maxsize=256)
def template_regex(template: str) -> re.Pattern:
    """Compile a canonical format template into a regex over formatted text.

    Placeholders become lazy named groups and ``[optional]`` sections become
    optional groups. Compiled patterns are cached per template.
    """
    seen: List[str] = []

    def literal_or_placeholder(fragment: str) -> str:
        parts = []
        position = 0
        for m in _PLACEHOLDER.finditer(fragment):
            parts.append(re.escape(fragment[position:m.start()]))
            name = m.group(1)
            if name in seen:
                parts.append(f"(?P={name})")
            else:
                seen.append(name)
                parts.append(f"(?P<{name}>.+?)")
            position = m.end()
        parts.append(re.escape(fragment[position:]))
        return "".join(parts)

    pattern = []
    position = 0
    for m in _OPTIONAL.finditer(template):
        pattern.append(literal_or_placeholder(template[position:m.start()]))
        pattern.append(f"(?:{literal_or_placeholder(m.group(1))})?")
        position = m.end()
    pattern.append(literal_or_placeholder(template[position:]))
    return re.compile("".join(pattern), re.IGNORECASE)
