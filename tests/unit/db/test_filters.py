"""Tests for metadata containment semantics."""

from __future__ import annotations

import json

import pytest

from researchai.db.filters import contains, metadata_contains_json

META = {
    "name": "Ada",
    "location": "London",
    "chunk_number": 2,
    "verified": True,
    "skills": ["Python", "Math", "Engines"],
    "social_profiles": {"github": "ada", "twitter": "@ada"},
}


@pytest.mark.parametrize("pattern", [
    {},
    {"name": "Ada"},
    {"name": "Ada", "location": "London"},
    {"skills": ["Math"]},
    {"skills": ["Engines", "Python"]},
    {"social_profiles": {"github": "ada"}},
    {"chunk_number": 2},
    {"chunk_number": 2.0},
    {"verified": True},
])
def test_contains_matches(pattern):
    assert contains(META, pattern)


@pytest.mark.parametrize("pattern", [
    {"name": "ada"},
    {"missing": "x"},
    {"skills": ["Rust"]},
    {"skills": "Python"},
    {"social_profiles": {"github": "someone"}},
    {"chunk_number": "2"},
    {"verified": 1},
    {"name": ["Ada"]},
])
def test_contains_rejects(pattern):
    assert not contains(META, pattern)


def test_bool_never_equals_number():
    assert not contains({"n": 1}, {"n": True})
    assert not contains({"n": False}, {"n": 0})


def test_nested_list_of_objects():
    value = {"projects": [{"name": "A", "year": 2020}, {"name": "B"}]}
    assert contains(value, {"projects": [{"name": "A"}]})
    assert not contains(value, {"projects": [{"name": "C"}]})


def test_metadata_contains_json_null_filter():
    assert metadata_contains_json(json.dumps(META), None) == 1


def test_metadata_contains_json_null_metadata():
    assert metadata_contains_json(None, json.dumps({"name": "Ada"})) == 0


def test_metadata_contains_json_bad_metadata():
    assert metadata_contains_json("not json", json.dumps({"name": "Ada"})) == 0


def test_metadata_contains_json_match():
    assert metadata_contains_json(json.dumps(META), json.dumps({"location": "London"})) == 1
