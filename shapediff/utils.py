"""Utility functions for ShapeDiff engine."""

from __future__ import annotations

import json
from typing import Any


def get_signature(record: dict) -> str:
    """Return the shape signature of a record: its sorted, comma-joined field names."""
    return ",".join(sorted(str(k) for k in record.keys()))


def format_signature(signature: str) -> str:
    """Format a signature for display, e.g. 'id,name' -> '[id, name]'."""
    return "[" + ", ".join(signature.split(",")) + "]" if signature else "[]"


def is_numeric(value: Any) -> bool:
    """Check if a value is numeric (int or float)."""
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def is_valid_key_value(value: Any) -> bool:
    """A key value must be a string that is non-empty after stripping whitespace."""
    return isinstance(value, str) and value.strip() != ""


def is_record(item: Any) -> bool:
    return isinstance(item, dict)


def canonical_json(value: Any) -> str:
    """Serialize a value with sorted keys so equal records serialize identically."""
    return json.dumps(value, sort_keys=True, separators=(",", ":"), default=repr)


def get_type_name(value: Any) -> str:
    """Get a friendly type name for a value."""
    if value is None:
        return "null"
    elif isinstance(value, bool):
        return "boolean"
    elif isinstance(value, int):
        return "integer"
    elif isinstance(value, float):
        return "number"
    elif isinstance(value, str):
        return "string"
    elif isinstance(value, (list, tuple)):
        return "array"
    elif isinstance(value, dict):
        return "object"
    else:
        return type(value).__name__


def format_value(value: Any) -> str:
    """Format an arbitrary value for a warning message."""
    try:
        return json.dumps(value, default=repr)
    except (TypeError, ValueError):
        return repr(value)
