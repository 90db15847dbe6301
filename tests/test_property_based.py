"""Property-based tests for catalog number parsing, ordering and resolution.

Uses Hypothesis to generate catalog numbers and indexes and verify invariants
that should hold regardless of the input values.
"""

from __future__ import annotations

from hypothesis import given, settings, strategies as st

from conftest import BWV, HOBOKEN, OPUS
from work_catalog.core.editions import EditionResolver
from work_catalog.core.formatter import CatalogFormatter
from work_catalog.core.parser import NumberParser, parse_roman
from work_catalog.core.registry import SchemeRegistry
from work_catalog.core.resolver import QueryResolver
from work_catalog.core.sort_keys import SortKeyGenerator, sort_numbers
from work_catalog.domain.queries import Query
from work_catalog.domain.scheme import CatalogScheme

OP = CatalogScheme.from_dict(OPUS)
BACH = CatalogScheme.from_dict(BWV)
HOB = CatalogScheme.from_dict(HOBOKEN)
RESOLVER = QueryResolver(SchemeRegistry([OP]))
PARSER = NumberParser()
KEYS = SortKeyGenerator()
FORMATTER = CatalogFormatter()

_ROMAN = [(1000, "M"), (900, "CM"), (500, "D"), (400, "CD"), (100, "C"), (90, "XC"),
          (50, "L"), (40, "XL"), (10, "X"), (9, "IX"), (5, "V"), (4, "IV"), (1, "I")]


def to_roman(n: int) -> str:
    out = []
    for value, numeral in _ROMAN:
        while n >= value:
            out.append(numeral)
            n -= value
    return "".join(out)


opus_parts = st.tuples(st.integers(min_value=1, max_value=150),
                       st.none() | st.integers(min_value=1, max_value=12))


def opus_text(parts) -> str:
    group, sub = parts
    return str(group) if sub is None else f"{group}/{sub}"


def natural_order(parts):
    group, sub = parts
    return (group, -1 if sub is None else sub)


def key_of(scheme, raw):
    return KEYS.for_number(scheme, PARSER.parse(scheme, raw).value())


# ============================================================================
# Parsing
# ============================================================================

@given(st.integers(min_value=0, max_value=99999), st.integers(min_value=0, max_value=3))
def test_leading_zeros_parse_to_same_value(n: int, zeros: int) -> None:
    """'007' and '7' have the same typed value and the same sort key."""
    padded = "0" * zeros + str(n)
    assert PARSER.parse(OP, padded).value().groups == (n, None)
    assert key_of(OP, padded) == key_of(OP, str(n))


@given(opus_parts)
def test_parse_is_deterministic(parts) -> None:
    raw = opus_text(parts)
    assert PARSER.parse(OP, raw) == PARSER.parse(OP, raw)


@given(st.text(alphabet="abcxyz-_ ", min_size=1))
def test_non_numeric_text_never_parses(text: str) -> None:
    assert PARSER.parse(OP, text).is_failure()


@given(st.integers(min_value=1, max_value=3999))
def test_roman_round_trip(n: int) -> None:
    assert parse_roman(to_roman(n)) == n
    assert parse_roman(to_roman(n).lower()) == n


# ============================================================================
# Ordering
# ============================================================================

@given(st.lists(opus_parts, unique=True, max_size=30))
def test_sort_matches_natural_order(parts_list) -> None:
    """Catalog order is numeric per component, base number first."""
    ordered, rejected = sort_numbers(OP, [opus_text(p) for p in parts_list])
    assert rejected == []
    assert ordered == [opus_text(p) for p in sorted(parts_list, key=natural_order)]


@given(opus_parts, opus_parts)
def test_key_order_is_consistent_with_natural_order(a, b) -> None:
    ka, kb = key_of(OP, opus_text(a)), key_of(OP, opus_text(b))
    assert (ka < kb) == (natural_order(a) < natural_order(b))
    assert (ka == kb) == (natural_order(a) == natural_order(b))


@given(st.integers(min_value=1, max_value=2000), st.sampled_from("abcdefgh"))
def test_suffix_sorts_after_base(n: int, suffix: str) -> None:
    assert key_of(BACH, str(n)) < key_of(BACH, f"{n}{suffix}") < key_of(BACH, str(n + 1))


# ============================================================================
# Resolution
# ============================================================================

@settings(max_examples=50)
@given(st.lists(opus_parts, unique=True, min_size=1, max_size=25), st.integers(min_value=1, max_value=150))
def test_group_selects_exactly_its_members(parts_list, group: int) -> None:
    index = {("op", opus_text(p)): f"work-{i}" for i, p in enumerate(parts_list)}
    result = RESOLVER.resolve(Query.group("c", "op", str(group)), index).value()

    expected = sorted((p for p in parts_list if p[0] == group), key=natural_order)
    assert list(result.numbers) == [opus_text(p) for p in expected]


@settings(max_examples=50)
@given(st.lists(opus_parts, unique=True, min_size=1, max_size=25),
       st.integers(min_value=1, max_value=150), st.integers(min_value=0, max_value=40))
def test_range_is_inclusive_on_leading_component(parts_list, start: int, width: int) -> None:
    end = start + width
    index = {("op", opus_text(p)): f"work-{i}" for i, p in enumerate(parts_list)}
    result = RESOLVER.resolve(Query.range("c", "op", str(start), str(end)), index).value()

    expected = sorted((p for p in parts_list if start <= p[0] <= end), key=natural_order)
    assert list(result.numbers) == [opus_text(p) for p in expected]


@given(st.integers(min_value=1, max_value=6), st.data())
def test_edition_chains_terminate_at_current(length: int, data) -> None:
    """Every link of a well-formed chain resolves to the same current number."""
    numbers = [str(100 + i) for i in range(length + 1)]
    editions = [
        {"edition": str(i + 1), "number": numbers[i], "canonical": numbers[i + 1], "status": "superseded"}
        for i in range(length)
    ]
    editions.append({"edition": str(length + 1), "number": numbers[-1], "canonical": numbers[-1],
                     "status": "current"})
    scheme = CatalogScheme.from_dict({"id": "k", "pattern": r"(\d+)", "sort_keys": [{"group": 1}],
                                      "editions": editions})
    resolver = EditionResolver(scheme)

    start = data.draw(st.integers(min_value=0, max_value=length))
    assert resolver.resolve(numbers[start]).value().canonical == numbers[-1]
    assert resolver.resolve(numbers[start], edition=str(start + 1)).value().canonical == numbers[-1]
    assert resolver.validate() == []


# ============================================================================
# Formatting
# ============================================================================

@given(opus_parts)
def test_opus_format_round_trip(parts) -> None:
    number = PARSER.parse(OP, opus_text(parts)).value()
    recognized = FORMATTER.recognize(OP, FORMATTER.format(OP, number)).value()
    assert recognized.groups == number.groups


@given(st.integers(min_value=1, max_value=40), st.none() | st.integers(min_value=1, max_value=200))
def test_hoboken_format_round_trip(group: int, sub) -> None:
    raw = to_roman(group) if sub is None else f"{to_roman(group).lower()}:{sub}"
    number = PARSER.parse(HOB, raw).value()
    recognized = FORMATTER.recognize(HOB, FORMATTER.format(HOB, number)).value()
    assert recognized.groups == number.groups


@given(st.booleans(), st.integers(min_value=1, max_value=5), st.integers(min_value=1, max_value=1200),
       st.none() | st.sampled_from("abc"))
def test_bwv_format_round_trip(anhang: bool, roman: int, n: int, suffix) -> None:
    raw = f"{n}{suffix or ''}"
    if anhang:
        raw = f"anh. {to_roman(roman).lower()} {raw}"
    number = PARSER.parse(BACH, raw).value()
    recognized = FORMATTER.recognize(BACH, FORMATTER.format(BACH, number)).value()
    assert KEYS.for_number(BACH, recognized) == KEYS.for_number(BACH, number)
