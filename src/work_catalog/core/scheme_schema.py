"""JSON schema and validation for catalog scheme definitions."""

import json
import jsonschema
from pathlib import Path
from typing import Any, Dict, List

# JSON Schema for one scheme file (catalogs/<id>.json)
SCHEME_SCHEMA = {
    "type": "object",
    "required": ["pattern", "sort_keys"],
    "properties": {
        "id": {
            "type": "string",
            "minLength": 1,
            "description": "Scheme identifier (defaults to the file name)"
        },
        "name": {
            "type": "string",
            "minLength": 1,
            "description": "Display name of the catalog"
        },
        "description": {
            "type": "string"
        },
        "canonical_format": {
            "type": "string",
            "description": "Template with {number}, {group} and {sub} placeholders"
        },
        "pattern": {
            "type": "string",
            "minLength": 1,
            "description": "Regular expression matched against the whole number"
        },
        "sort_keys": {
            "type": "array",
            "minItems": 1,
            "items": {
                "type": "object",
                "required": ["group"],
                "properties": {
                    "group": {
                        "type": "integer",
                        "minimum": 1,
                        "description": "1-based capture group index"
                    },
                    "type": {
                        "type": "string",
                        "enum": ["int", "str", "roman"],
                        "default": "int"
                    },
                    "display": {
                        "type": "string",
                        "enum": ["upper", "lower", "title"]
                    }
                }
            }
        },
        "aliases": {
            "type": "array",
            "items": {"type": "string", "minLength": 1}
        },
        "group_depth": {
            "type": "integer",
            "minimum": 1,
            "default": 1
        },
        "strict_listings": {
            "type": "boolean",
            "default": True
        },
        "allow_cross_group_ranges": {
            "type": "boolean",
            "default": True
        },
        "editions": {
            "type": "array",
            "items": {
                "type": "object",
                "required": ["edition", "number", "canonical", "status"],
                "properties": {
                    "edition": {"type": "string", "minLength": 1},
                    "number": {"type": "string", "minLength": 1},
                    "canonical": {"type": "string", "minLength": 1},
                    "status": {"type": "string", "enum": ["current", "superseded"]}
                }
            }
        }
    }
}

# Composer files only need a partial definition per overridden scheme
COMPOSER_SCHEMA = {
    "type": "object",
    "required": ["id"],
    "properties": {
        "id": {"type": "string", "minLength": 1},
        "catalogs": {
            "type": "object",
            "additionalProperties": {
                "type": "object",
                "properties": SCHEME_SCHEMA["properties"]
            }
        }
    }
}


def validate_scheme_json(scheme_data: Dict[str, Any], composer: bool = False) -> List[str]:
    """Validate a scheme (or composer) definition JSON object.

    Args:
        scheme_data: The definition to validate
        composer: Validate against the composer file schema instead

    Returns:
        List of validation error messages
    """
    schema = COMPOSER_SCHEMA if composer else SCHEME_SCHEMA
    validator = jsonschema.Draft7Validator(schema)

    errors = []
    for error in sorted(validator.iter_errors(scheme_data), key=lambda e: [str(p) for p in e.absolute_path]):
        path = " -> ".join(str(p) for p in error.absolute_path) if error.absolute_path else "root"
        errors.append(f"Validation error at {path}: {error.message}")
    return errors


def validate_scheme_file(file_path: Path, composer: bool = False) -> List[str]:
    """Validate a scheme definition JSON file.

    Returns:
        List of validation error messages
    """
    try:
        with open(file_path, 'r', encoding='utf-8') as f:
            scheme_data = json.load(f)
    except json.JSONDecodeError as e:
        return [f"JSON parsing error: {e.msg} at line {e.lineno}, column {e.colno}"]
    except OSError as e:
        return [f"Error reading file: {e}"]
    return validate_scheme_json(scheme_data, composer)
