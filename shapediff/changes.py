"""Field-level change calculation and structural equality."""

from __future__ import annotations

import math
from typing import Any

from .models import ChangeSet, FieldChange
from .utils import is_numeric


def numbers_equal(old: Any, new: Any) -> bool:
    """
    Compare two numbers by value.

    int and float compare numerically (1 == 1.0, -0.0 == 0) and NaN is
    equal to NaN so that an unchanged NaN field is not reported.
    """
    if isinstance(old, float) and isinstance(new, float):
        if math.isnan(old) and math.isnan(new):
            return True
    elif isinstance(old, float) and math.isnan(old):
        return False
    elif isinstance(new, float) and math.isnan(new):
        return False
    return old == new


def deep_equal(old: Any, new: Any) -> bool:
    """
    Structural equality of two JSON-like values.

    Objects are compared by key set and recursively by value, ignoring key
    order. Arrays are compared element by element, in order. Booleans only
    equal booleans, even though bool is an int subclass.
    """
    if isinstance(old, bool) or isinstance(new, bool):
        return isinstance(old, bool) and isinstance(new, bool) and old == new

    if is_numeric(old) and is_numeric(new):
        return numbers_equal(old, new)

    if isinstance(old, dict) and isinstance(new, dict):
        if old.keys() != new.keys():
            return False
        return all(deep_equal(old[k], new[k]) for k in old)

    if isinstance(old, (list, tuple)) and isinstance(new, (list, tuple)):
        if len(old) != len(new):
            return False
        return all(deep_equal(a, b) for a, b in zip(old, new))

    if old is None or new is None:
        return old is None and new is None

    if type(old) != type(new) and (
        isinstance(old, (dict, list, tuple, str)) or isinstance(new, (dict, list, tuple, str))
    ):
        return False

    return old == new


def calculate_field_changes(before: dict, after: dict) -> ChangeSet:
    """
    Calculate field-level changes between two records.

    Args:
        before: The record as it was
        after: The record as it is now

    Returns:
        ChangeSet with added, removed and changed fields
    """
    changes = ChangeSet()

    for name in sorted(set(before.keys()) | set(after.keys()), key=str):
        in_before = name in before
        in_after = name in after

        if in_after and not in_before:
            changes.added[name] = after[name]
        elif in_before and not in_after:
            changes.removed[name] = before[name]
        elif not deep_equal(before[name], after[name]):
            changes.changed[name] = FieldChange(before=before[name], after=after[name])

    return changes
