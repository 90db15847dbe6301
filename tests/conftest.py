"""Shared fixtures: a small catalog of schemes and an index of works."""

import json
from pathlib import Path
from typing import Any, Dict

import pytest

from work_catalog.core.registry import SchemeRegistry
from work_catalog.core.resolver import QueryResolver
from work_catalog.domain.scheme import CatalogScheme

BWV = {
    "id": "bwv",
    "name": "Bach-Werke-Verzeichnis",
    "canonical_format": "BWV {number}",
    "pattern": r"(anh\.)?\s*([ivxlcdm]+)?\s*(\d+)(?:\.(\d+))?([a-z])?",
    "sort_keys": [
        {"group": 1, "type": "str", "display": "title"},
        {"group": 2, "type": "roman", "display": "upper"},
        {"group": 3, "type": "int"},
        {"group": 4, "type": "int"},
        {"group": 5, "type": "str"},
    ],
    "group_depth": 3,
}

KOECHEL = {
    "id": "k",
    "name": "Köchel-Verzeichnis",
    "aliases": ["kv"],
    "canonical_format": "K. {number}",
    "pattern": r"(\d+)([a-z])?",
    "sort_keys": [{"group": 1, "type": "int"}, {"group": 2, "type": "str"}],
    "editions": [
        {"edition": "6", "number": "300i", "canonical": "331", "status": "superseded"},
        {"edition": "9", "number": "331", "canonical": "331", "status": "current"},
        {"edition": "1", "number": "284c", "canonical": "300d", "status": "superseded"},
        {"edition": "6", "number": "300d", "canonical": "321", "status": "superseded"},
        {"edition": "9", "number": "321", "canonical": "321", "status": "current"},
    ],
}

OPUS = {
    "id": "op",
    "name": "Opus",
    "canonical_format": "op. {group}[ no. {sub}]",
    "pattern": r"(\d+)(?:/(\d+))?",
    "sort_keys": [{"group": 1, "type": "int"}, {"group": 2, "type": "int"}],
}

HOBOKEN = {
    "id": "hob",
    "name": "Hoboken-Verzeichnis",
    "canonical_format": "Hob. {number}",
    "pattern": r"([ivxlcdm]+)(?::(\d+))?",
    "sort_keys": [{"group": 1, "type": "roman", "display": "upper"}, {"group": 2, "type": "int"}],
    "allow_cross_group_ranges": False,
}

INDEX = {
    "bach": {
        "bwv": {
            "812": "bach-french-suite-1",
            "812a": "bach-french-suite-1-early",
            "813": "bach-french-suite-2",
            "814": "bach-french-suite-3",
            "1006": "bach-violin-partita-3",
            "Anh. II 23": "bach-anh-ii-23",
            "Anh. III 135": "bach-anh-iii-135",
        },
    },
    "mozart": {
        "k": {
            "300i": "mozart-sonata-a-major-early-listing",
            "321": "mozart-vespers",
            "331": "mozart-piano-sonata-11",
            "545": "mozart-piano-sonata-16",
        },
    },
    "beethoven": {
        "op": {
            "2/1": "beethoven-sonata-1",
            "2/2": "beethoven-sonata-2",
            "2/3": "beethoven-sonata-3",
            "7": "beethoven-sonata-4",
            "10/1": "beethoven-sonata-5",
            "10/2": "beethoven-sonata-6",
            "10/3": "beethoven-sonata-7",
            "12/1": "beethoven-violin-sonata-1",
            "20": "beethoven-septet",
        },
    },
    "haydn": {
        "hob": {
            "XVI:50": "haydn-sonata-60",
            "XVI:52": "haydn-sonata-62",
            "XV:27": "haydn-piano-trio-43",
            "I:104": "haydn-symphony-104",
        },
    },
}


def flat_index(composer: str) -> Dict[tuple, str]:
    return {
        (scheme_id, number): composition_id
        for scheme_id, numbers in INDEX[composer].items()
        for number, composition_id in numbers.items()
    }


@pytest.fixture
def bwv() -> CatalogScheme:
    return CatalogScheme.from_dict(BWV)


@pytest.fixture
def koechel() -> CatalogScheme:
    return CatalogScheme.from_dict(KOECHEL)


@pytest.fixture
def opus() -> CatalogScheme:
    return CatalogScheme.from_dict(OPUS)


@pytest.fixture
def hoboken() -> CatalogScheme:
    return CatalogScheme.from_dict(HOBOKEN)


@pytest.fixture
def registry() -> SchemeRegistry:
    return SchemeRegistry.from_definitions([BWV, KOECHEL, OPUS, HOBOKEN])


@pytest.fixture
def resolver(registry) -> QueryResolver:
    return QueryResolver(registry)


def _write_json(path: Path, data: Any) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2), encoding="utf-8")


@pytest.fixture
def data_dir(tmp_path) -> Path:
    """A data directory laid out the way the CLI expects it."""
    root = tmp_path / "data"
    for definition in (BWV, KOECHEL, OPUS, HOBOKEN):
        body = {k: v for k, v in definition.items() if k != "id"}
        _write_json(root / "catalogs" / f"{definition['id']}.json", body)
    _write_json(root / "composers" / "beethoven.json", {
        "id": "beethoven",
        "name": "Ludwig van Beethoven",
        "catalogs": {"woo": {"name": "Werke ohne Opuszahl", "pattern": r"(\d+)",
                             "sort_keys": [{"group": 1, "type": "int"}],
                             "canonical_format": "WoO {number}"}},
    })
    index = json.loads(json.dumps(INDEX))
    index["beethoven"]["woo"] = {"59": "beethoven-fur-elise"}
    _write_json(root / "index" / "catalog.json", index)
    return root


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Keep a user's own configuration and data directory out of the tests."""
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config-home"))
    monkeypatch.delenv("WORK_CATALOG_DATA_DIR", raising=False)
