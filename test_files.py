"""Tests for file loading and the file-based runner."""

import json

import pytest
import yaml
from shapediff import (
    ShapeDiffRunner,
    ComparisonResult,
    ErrorResponse,
    InvalidInputShape,
    RecordParseError,
    KeyMappingError,
    compare_files,
    parse_records,
    load_records,
    load_key_mapping,
    save_key_mapping,
)


def write_json(path, data):
    path.write_text(json.dumps(data))
    return path


class TestParseRecords:
    """Test parsing record collections from text."""

    def test_json(self):
        assert parse_records('[{"id": "1"}]') == [{"id": "1"}]

    def test_yaml(self):
        text = "- id: '1'\n  name: Alice\n- id: '2'\n  name: Bob\n"
        records = parse_records(text, fmt="yaml")
        assert records == [{"id": "1", "name": "Alice"}, {"id": "2", "name": "Bob"}]

    def test_blank_text_is_empty(self):
        assert parse_records("  \n") == []

    def test_json_error_location(self):
        with pytest.raises(RecordParseError) as exc_info:
            parse_records('[\n  {"id": "1",}\n]', "before")
        assert exc_info.value.line == 2
        assert exc_info.value.column is not None
        assert "before" in str(exc_info.value)

    def test_yaml_error(self):
        with pytest.raises(RecordParseError):
            parse_records("- id: [1, 2\n- x", fmt="yaml")

    def test_not_an_array(self):
        with pytest.raises(InvalidInputShape) as exc_info:
            parse_records('{"id": "1"}', "after")
        assert exc_info.value.source == "after"

    def test_records_path(self):
        text = json.dumps({"data": {"items": [{"id": "1"}, {"id": "2"}]}})
        assert parse_records(text, records_path="$.data.items") == [{"id": "1"}, {"id": "2"}]

    def test_records_path_wildcard(self):
        text = json.dumps({"pages": [{"items": [{"id": "1"}]}, {"items": [{"id": "2"}]}]})
        records = parse_records(text, records_path="$.pages[*].items[*]")
        assert records == [{"id": "1"}, {"id": "2"}]

    def test_records_path_no_match(self):
        with pytest.raises(InvalidInputShape):
            parse_records('{"data": []}', records_path="$.items")

    def test_invalid_records_path(self):
        with pytest.raises(RecordParseError) as exc_info:
            parse_records('{"data": []}', records_path="$.[[")
        assert "$.[[" in str(exc_info.value)
        assert exc_info.value.reason


class TestFileLoading:
    """Test loading records and key mappings from files."""

    def test_load_json_file(self, tmp_path):
        path = write_json(tmp_path / "before.json", [{"id": "1"}])
        assert load_records(path) == [{"id": "1"}]

    def test_load_yaml_file(self, tmp_path):
        path = tmp_path / "after.yml"
        path.write_text(yaml.safe_dump([{"id": "1"}]))
        assert load_records(path) == [{"id": "1"}]

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_records(tmp_path / "nope.json")

    def test_key_mapping_round_trip(self, tmp_path):
        path = tmp_path / "keys.yaml"
        save_key_mapping(path, {"sku,qty": "sku", "id,name": "id"})
        assert load_key_mapping(path) == {"id,name": "id", "sku,qty": "sku"}
        assert path.read_text().startswith("id,name: id")

    def test_key_mapping_json(self, tmp_path):
        path = write_json(tmp_path / "keys.json", {"id,name": "id"})
        assert load_key_mapping(path) == {"id,name": "id"}

    def test_key_mapping_missing_or_empty(self, tmp_path):
        assert load_key_mapping(tmp_path / "none.yaml") == {}
        empty = tmp_path / "empty.yaml"
        empty.write_text("")
        assert load_key_mapping(empty) == {}

    def test_key_mapping_not_a_mapping(self, tmp_path):
        path = tmp_path / "keys.yaml"
        path.write_text("- id\n- name\n")
        with pytest.raises(KeyMappingError) as exc_info:
            load_key_mapping(path)
        assert exc_info.value.details == {"type": "list"}

    def test_key_mapping_bad_entry(self, tmp_path):
        path = tmp_path / "keys.yaml"
        path.write_text("id,name: [id]\n")
        with pytest.raises(KeyMappingError):
            load_key_mapping(path)


class TestShapeDiffRunner:
    """Test comparing record files."""

    def setup_method(self):
        self.before = [
            {"id": "1", "name": "Alice"},
            {"sku": "A", "qty": 1},
        ]
        self.after = [
            {"id": "1", "name": "Alicia"},
            {"sku": "A", "qty": 1},
            {"sku": "B", "qty": 5},
        ]

    def _files(self, tmp_path):
        return (
            write_json(tmp_path / "before.json", self.before),
            write_json(tmp_path / "after.json", self.after),
        )

    def test_compare_with_key_file(self, tmp_path):
        before, after = self._files(tmp_path)
        keys = tmp_path / "keys.yaml"
        keys.write_text("id,name: id\n")

        result = compare_files(str(before), str(after), str(keys))
        assert isinstance(result, ComparisonResult)
        assert [e.key_value for e in result.modified_entries] == ["1"]
        assert [e.key_value for e in result.new_entries] == ["B"]

    def test_missing_selection_is_reported(self, tmp_path):
        before, after = self._files(tmp_path)
        result = ShapeDiffRunner.compare_files(str(before), str(after))
        assert isinstance(result, ErrorResponse)
        assert result.code == "MISSING_KEY_SELECTION"
        assert result.error["details"]["signature"] == "id,name"

    def test_inventory(self, tmp_path):
        before, after = self._files(tmp_path)
        runner = ShapeDiffRunner(str(before), str(after))
        rows = {row.signature: row for row in runner.inventory()}
        assert rows["id,name"].is_resolved is False
        assert rows["id,name"].selectable == ["id", "name"]
        assert rows["qty,sku"].selected == "sku"
        assert rows["qty,sku"].after_count == 2

    def test_save_keys(self, tmp_path):
        before, after = self._files(tmp_path)
        keys = tmp_path / "keys.yaml"
        keys.write_text("id,name: name\n")

        runner = ShapeDiffRunner(str(before), str(after), str(keys))
        assert runner.save_keys() == keys
        assert load_key_mapping(keys) == {"id,name": "name", "qty,sku": "sku"}

    def test_save_keys_without_path(self, tmp_path):
        before, after = self._files(tmp_path)
        with pytest.raises(ValueError):
            ShapeDiffRunner(str(before), str(after)).save_keys()

    def test_records_path(self, tmp_path):
        before = write_json(tmp_path / "before.json", {"items": [{"sku": "A", "qty": 1}]})
        after = write_json(tmp_path / "after.json", {"items": [{"sku": "A", "qty": 2}]})

        runner = ShapeDiffRunner(str(before), str(after), records_path="$.items")
        result = runner.run()
        assert len(result.modified_entries) == 1

    def test_parse_error_is_reported(self, tmp_path):
        before = tmp_path / "before.json"
        before.write_text("[{")
        after = write_json(tmp_path / "after.json", [])

        result = ShapeDiffRunner(str(before), str(after), auto_select_keys=False).run()
        assert result.code == "RECORD_PARSE_ERROR"
        assert result.error["details"]["line"] == 1

    def test_invalid_records_path_is_reported(self, tmp_path):
        before, after = self._files(tmp_path)
        result = ShapeDiffRunner(str(before), str(after), records_path="$.[[").run()
        assert isinstance(result, ErrorResponse)
        assert result.code == "RECORD_PARSE_ERROR"
        assert result.error["details"]["reason"]

    def test_missing_file(self, tmp_path):
        after = write_json(tmp_path / "after.json", [])
        with pytest.raises(FileNotFoundError):
            ShapeDiffRunner(str(tmp_path / "before.json"), str(after)).run()


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
