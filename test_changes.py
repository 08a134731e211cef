"""Tests for structural equality and field-level changes."""

import math

import pytest
from shapediff import ChangeSet, FieldChange, calculate_field_changes, deep_equal
from shapediff.utils import canonical_json, format_signature, get_signature, is_valid_key_value


class TestDeepEqual:
    """Test deep_equal on JSON-like values."""

    @pytest.mark.parametrize("old,new", [
        (1, 1.0),
        (0, -0.0),
        (math.nan, math.nan),
        ("a", "a"),
        (None, None),
        ([1, [2, 3]], [1, [2, 3]]),
        ({"a": 1, "b": {"c": 2}}, {"b": {"c": 2}, "a": 1}),
        ((1, 2), [1, 2]),
    ])
    def test_equal(self, old, new):
        assert deep_equal(old, new)

    @pytest.mark.parametrize("old,new", [
        (True, 1),
        (False, 0),
        (1, "1"),
        (None, 0),
        (None, ""),
        ([1, 2], [2, 1]),
        ([1], [1, 1]),
        ({"a": 1}, {"a": 1, "b": None}),
        ({"a": [1]}, {"a": [1.5]}),
        (math.nan, 0.0),
        ("", []),
    ])
    def test_not_equal(self, old, new):
        assert not deep_equal(old, new)


class TestFieldChanges:
    """Test calculate_field_changes."""

    def test_added_removed_changed(self):
        before = {"id": "1", "name": "Alice", "age": 30}
        after = {"id": "1", "name": "Alicia", "email": "a@example.com"}

        changes = calculate_field_changes(before, after)
        assert changes.added == {"email": "a@example.com"}
        assert changes.removed == {"age": 30}
        assert changes.changed == {"name": FieldChange(before="Alice", after="Alicia")}
        assert not changes.is_empty

    def test_no_changes(self):
        changes = calculate_field_changes({"a": [1, {"b": 2}]}, {"a": [1, {"b": 2.0}]})
        assert changes.is_empty

    def test_null_is_a_value(self):
        changes = calculate_field_changes({"a": None}, {"a": 0})
        assert changes.changed["a"].before is None
        assert changes.changed["a"].after == 0

    def test_fields_in_sorted_order(self):
        changes = calculate_field_changes({"b": 1, "a": 1}, {"b": 2, "a": 2})
        assert list(changes.changed) == ["a", "b"]

    def test_apply_reconstructs_after(self):
        before = {"id": "1", "x": 1, "y": [1], "z": None}
        after = {"id": "1", "y": [1, 2], "z": None, "w": {"k": "v"}}

        changes = calculate_field_changes(before, after)
        assert changes.apply(before) == after
        assert before == {"id": "1", "x": 1, "y": [1], "z": None}

    def test_to_dict(self):
        changes = ChangeSet(added={"b": 2}, changed={"a": FieldChange(1, 3)})
        assert changes.to_dict() == {
            "added": {"b": 2},
            "removed": {},
            "changed": {"a": {"before": 1, "after": 3}},
        }


class TestUtils:
    """Test signature and key helpers."""

    def test_signature(self):
        assert get_signature({"b": 1, "a": 2, "c": 3}) == "a,b,c"
        assert get_signature({}) == ""

    def test_format_signature(self):
        assert format_signature("id,name") == "[id, name]"
        assert format_signature("") == "[]"

    @pytest.mark.parametrize("value,valid", [
        ("abc", True),
        (" x ", True),
        ("", False),
        ("  \t", False),
        (1, False),
        (None, False),
        (True, False),
    ])
    def test_key_value(self, value, valid):
        assert is_valid_key_value(value) is valid

    def test_canonical_json_ignores_key_order(self):
        assert canonical_json({"b": 1, "a": [1, {"d": 1, "c": 2}]}) == canonical_json(
            {"a": [1, {"c": 2, "d": 1}], "b": 1}
        )


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
