"""Loading record collections and key mappings from JSON/YAML files."""

from __future__ import annotations

import json
import logging
from functools import lru_cache
from pathlib import Path
from typing import Any, Optional

import yaml
from jsonpath_ng import parse as jsonpath_parse
from jsonpath_ng.exceptions import JsonPathLexerError, JsonPathParserError

from .exceptions import InvalidInputShape, KeyMappingError, RecordParseError

logger = logging.getLogger(__name__)

YAML_SUFFIXES = (".yaml", ".yml")


@lru_cache(maxsize=64)
def _compile_path(path: str):
    """Compile and cache a JSONPath expression."""
    try:
        return jsonpath_parse(path)
    except (JsonPathLexerError, JsonPathParserError) as e:
        raise RecordParseError(
            f"Invalid JSONPath expression '{path}': {e}",
            reason=str(e)
        )


def find_values(data: Any, path: str) -> list[Any]:
    """Find all values matching a JSONPath expression."""
    return [m.value for m in _compile_path(path).find(data)]


def _format_for(path: Path) -> str:
    return "yaml" if path.suffix.lower() in YAML_SUFFIXES else "json"


def _parse_document(text: str, source: str, fmt: str) -> Any:
    """Parse JSON or YAML text, raising RecordParseError with a location."""
    if fmt == "yaml":
        try:
            return yaml.safe_load(text)
        except yaml.YAMLError as e:
            mark = getattr(e, "problem_mark", None)
            raise RecordParseError(
                f"Error parsing '{source}': {e}",
                line=mark.line + 1 if mark else None,
                column=mark.column + 1 if mark else None,
                reason=getattr(e, "problem", None) or str(e)
            )

    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        raise RecordParseError(
            f"Error parsing '{source}': {e}",
            line=e.lineno,
            column=e.colno,
            reason=e.msg
        )


def parse_records(
    text: str,
    source: str = "records",
    fmt: str = "json",
    records_path: Optional[str] = None
) -> list:
    """
    Parse a record collection from JSON or YAML text.

    Args:
        text: The document text; blank text is an empty collection
        source: Name of the collection used in errors
        fmt: 'json' or 'yaml'
        records_path: Optional JSONPath selecting the array inside the document

    Returns:
        The list of records

    Raises:
        RecordParseError: If the text is not valid JSON/YAML or records_path
            is not a valid JSONPath expression
        InvalidInputShape: If the selected document is not an array
    """
    if not text.strip():
        return []

    data = _parse_document(text, source, fmt)

    if records_path:
        values = find_values(data, records_path)
        if not values:
            raise InvalidInputShape(
                f"Path '{records_path}' matched nothing in '{source}'",
                source=source
            )
        data = values[0] if len(values) == 1 else values

    if not isinstance(data, list):
        raise InvalidInputShape(
            f"Input '{source}' must be an array of objects, got {type(data).__name__}",
            source=source
        )

    return data


def load_records(
    path: str | Path,
    records_path: Optional[str] = None,
    source: Optional[str] = None
) -> list:
    """
    Load a record collection from a JSON or YAML file.

    The format is chosen from the file suffix (.yaml/.yml for YAML,
    anything else is read as JSON).
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Records file not found: {path}")

    text = path.read_text(encoding="utf-8")
    records = parse_records(text, source or path.name, _format_for(path), records_path)
    logger.debug("Loaded %d record(s) from %s", len(records), path)
    return records


def load_key_mapping(path: str | Path) -> dict:
    """
    Load a signature -> key field mapping from a YAML or JSON file.

    A missing or empty file is an empty mapping.
    """
    path = Path(path)
    if not path.exists():
        return {}

    with open(path, "r", encoding="utf-8") as f:
        content = f.read()

    # YAML also handles JSON since JSON is valid YAML
    try:
        data = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise KeyMappingError(f"Failed to parse key mapping file {path}: {e}")

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise KeyMappingError(
            f"Key mapping file {path} must contain a mapping of signature to key field",
            {"type": type(data).__name__}
        )

    mapping = {}
    for signature, key_field in data.items():
        if not isinstance(signature, str) or not isinstance(key_field, str):
            raise KeyMappingError(
                f"Invalid key mapping entry {signature!r}: {key_field!r}",
                {"signature": signature}
            )
        mapping[signature] = key_field
    return mapping


def save_key_mapping(path: str | Path, mapping: dict):
    """Write a key mapping as YAML, sorted by signature."""
    path = Path(path)
    with open(path, "w", encoding="utf-8") as f:
        yaml.safe_dump(dict(sorted(mapping.items())), f, default_flow_style=False, sort_keys=True)
    logger.debug("Saved %d key selection(s) to %s", len(mapping), path)
