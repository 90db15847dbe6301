"""Tests for scheme-driven catalog number parsing."""

import pytest

from work_catalog.core.parser import NumberParser, convert_group, parse_roman
from work_catalog.domain.result import ParseErrorKind
from work_catalog.domain.scheme import CatalogScheme
from work_catalog.domain.value_objects import SortKeyType


class TestParseRoman:
    """Test Roman numeral conversion."""

    @pytest.mark.parametrize("text,expected", [
        ("I", 1),
        ("iv", 4),
        ("IX", 9),
        ("XIV", 14),
        ("XVI", 16),
        ("XL", 40),
        ("MCMXC", 1990),
    ])
    def test_valid_numerals(self, text, expected):
        assert parse_roman(text) == expected

    @pytest.mark.parametrize("text", ["", "ABC", "12", "X1"])
    def test_invalid_numerals(self, text):
        with pytest.raises(ValueError):
            parse_roman(text)


class TestConvertGroup:
    """Test typed conversion of captured text."""

    def test_int_tolerates_leading_zeros(self):
        assert convert_group("007", SortKeyType.INT) == 7
        assert convert_group("7", SortKeyType.INT) == 7

    def test_int_rejects_non_digits(self):
        with pytest.raises(ValueError):
            convert_group("7a", SortKeyType.INT)

    def test_str_is_kept_verbatim(self):
        assert convert_group("A", SortKeyType.STR) == "A"

    def test_roman(self):
        assert convert_group("XVI", SortKeyType.ROMAN) == 16


class TestNumberParser:
    """Test NumberParser against the fixture schemes."""

    def setup_method(self):
        self.parser = NumberParser()

    def test_simple_number(self, bwv):
        result = self.parser.parse(bwv, "812")
        assert result.is_success()
        number = result.value()
        assert number.raw == "812"
        assert number.scheme_id == "bwv"
        assert number.group(3) == 812
        assert number.group(5) is None

    def test_suffix(self, bwv):
        number = self.parser.parse(bwv, "812a").value()
        assert number.group(3) == 812
        assert number.group(5) == "a"

    def test_compound_reference(self, bwv):
        """Anhang references are just more capture groups."""
        number = self.parser.parse(bwv, "Anh. III 135").value()
        assert number.group(1) == "Anh."
        assert number.group(2) == 3
        assert number.group(3) == 135

    def test_group_and_sub(self, opus):
        number = self.parser.parse(opus, "2/1").value()
        assert number.groups == (2, 1)

        bare = self.parser.parse(opus, "7").value()
        assert bare.groups == (7, None)

    def test_leading_zeros_keep_raw_text(self, opus):
        """Integer groups parse to the same value but raw text is preserved."""
        padded = self.parser.parse(opus, "007").value()
        plain = self.parser.parse(opus, "7").value()
        assert padded.groups == plain.groups
        assert padded.raw == "007"

    def test_case_insensitive_match(self, hoboken):
        number = self.parser.parse(hoboken, "xvi:52").value()
        assert number.groups == (16, 52)
        assert number.raw == "xvi:52"

    def test_surrounding_whitespace_is_ignored(self, opus):
        assert self.parser.parse(opus, "  10/2 ").value().raw == "10/2"

    def test_edition_is_recorded(self, koechel):
        number = self.parser.parse(koechel, "300i", edition="6").value()
        assert number.edition == "6"

    def test_spans_point_into_raw(self, bwv):
        number = self.parser.parse(bwv, "Anh. II 23").value()
        assert number.group_text(2) == "II"
        assert number.group_text(3) == "23"
        assert number.group_text(5) is None

    @pytest.mark.parametrize("raw", ["", "abc", "812 x", "2/", "/1", "12-3"])
    def test_no_match(self, opus, raw):
        """The pattern must match the whole string."""
        result = self.parser.parse(opus, raw)
        assert result.is_failure()
        assert result.error().kind is ParseErrorKind.NO_MATCH

    def test_partial_match_is_rejected(self, koechel):
        assert self.parser.parse(koechel, "331abc").is_failure()

    def test_invalid_group(self):
        """A group typed int that captures non-digits is InvalidGroup."""
        scheme = CatalogScheme.from_dict({
            "id": "loose",
            "pattern": r"(\w+)",
            "sort_keys": [{"group": 1, "type": "int"}],
        })

        result = self.parser.parse(scheme, "12b")
        assert result.is_failure()
        assert result.error().kind is ParseErrorKind.INVALID_GROUP
        assert result.error().scheme_id == "loose"

    def test_untyped_groups_are_strings(self):
        scheme = CatalogScheme.from_dict({
            "id": "x",
            "pattern": r"([a-z]+)-(\d+)",
            "sort_keys": [{"group": 2, "type": "int"}],
        })

        number = self.parser.parse(scheme, "ab-3").value()
        assert number.groups == ("ab", 3)
