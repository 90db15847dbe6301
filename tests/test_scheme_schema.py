"""Tests for scheme definition schema validation."""

import json

from conftest import BWV, KOECHEL
from work_catalog.core.scheme_schema import (
    COMPOSER_SCHEMA,
    SCHEME_SCHEMA,
    validate_scheme_file,
    validate_scheme_json,
)


class TestSchemeValidation:
    """Test scheme schema validation."""

    def test_valid_schemes(self):
        assert validate_scheme_json(BWV) == []
        assert validate_scheme_json(KOECHEL) == []

    def test_minimal_scheme(self):
        assert validate_scheme_json({"pattern": r"(\d+)", "sort_keys": [{"group": 1}]}) == []

    def test_missing_required_fields(self):
        errors = validate_scheme_json({"name": "No pattern"})
        assert len(errors) == 2
        assert any("pattern" in error for error in errors)
        assert any("sort_keys" in error for error in errors)

    def test_invalid_sort_key_type(self):
        errors = validate_scheme_json({"pattern": r"(\d+)", "sort_keys": [{"group": 1, "type": "float"}]})
        assert len(errors) == 1
        assert errors[0].startswith("Validation error at sort_keys -> 0 -> type")

    def test_group_must_be_positive(self):
        errors = validate_scheme_json({"pattern": r"(\d+)", "sort_keys": [{"group": 0}]})
        assert len(errors) == 1

    def test_invalid_edition_status(self):
        definition = dict(KOECHEL, editions=[
            {"edition": "6", "number": "300i", "canonical": "331", "status": "obsolete"},
        ])
        errors = validate_scheme_json(definition)
        assert len(errors) == 1
        assert "editions -> 0 -> status" in errors[0]

    def test_edition_fields_are_required(self):
        definition = dict(KOECHEL, editions=[{"edition": "6", "number": "300i"}])
        errors = validate_scheme_json(definition)
        assert len(errors) == 2

    def test_root_errors(self):
        errors = validate_scheme_json([])
        assert errors == ["Validation error at root: [] is not of type 'object'"]

    def test_schema_shapes(self):
        assert SCHEME_SCHEMA["required"] == ["pattern", "sort_keys"]
        assert COMPOSER_SCHEMA["required"] == ["id"]


class TestComposerValidation:
    """Composer files carry partial scheme definitions."""

    def test_partial_override_is_valid(self):
        data = {"id": "beethoven", "catalogs": {"op": {"canonical_format": "Op. {number}"}}}
        assert validate_scheme_json(data, composer=True) == []

    def test_missing_id(self):
        errors = validate_scheme_json({"catalogs": {}}, composer=True)
        assert len(errors) == 1
        assert "id" in errors[0]

    def test_override_fields_are_checked(self):
        data = {"id": "beethoven", "catalogs": {"op": {"group_depth": 0}}}
        errors = validate_scheme_json(data, composer=True)
        assert len(errors) == 1
        assert "catalogs -> op -> group_depth" in errors[0]


class TestSchemeFileValidation:
    """Test validation of files on disk."""

    def test_valid_file(self, tmp_path):
        path = tmp_path / "bwv.json"
        path.write_text(json.dumps(BWV), encoding="utf-8")
        assert validate_scheme_file(path) == []

    def test_malformed_json(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{ not json", encoding="utf-8")
        errors = validate_scheme_file(path)
        assert len(errors) == 1
        assert errors[0].startswith("JSON parsing error")

    def test_missing_file(self, tmp_path):
        errors = validate_scheme_file(tmp_path / "absent.json")
        assert errors[0].startswith("Error reading file")
