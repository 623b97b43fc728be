"""Structural containment for metadata filters.

Semantics follow JSON containment (``@>``):
  - object ⊇ object   every filter key present, value contained recursively
  - array  ⊇ array    every filter element contained in some record element
  - scalar = scalar   equal, and booleans never equal numbers
"""

from __future__ import annotations

import json
from typing import Any


def contains(value: Any, pattern: Any) -> bool:
    """Return True when *value* structurally contains *pattern*."""
    if isinstance(pattern, dict):
        if not isinstance(value, dict):
            return False
        return all(k in value and contains(value[k], v) for k, v in pattern.items())

    if isinstance(pattern, list):
        if not isinstance(value, list):
            return False
        return all(any(contains(item, p) for item in value) for p in pattern)

    if isinstance(pattern, bool) or isinstance(value, bool):
        return isinstance(pattern, bool) and isinstance(value, bool) and pattern == value

    if isinstance(value, (dict, list)):
        return False
    return value == pattern


def metadata_contains_json(metadata_json: str | None, filter_json: str | None) -> int:
    """SQL function ``metadata_contains(metadata, filter)``.

    A NULL filter matches every row; a NULL or unparsable metadata column
    matches nothing else.
    """
    if filter_json is None:
        return 1
    if metadata_json is None:
        return 0
    try:
        metadata = json.loads(metadata_json)
    except (TypeError, ValueError):
        return 0
    return int(contains(metadata, json.loads(filter_json)))
