"""Record matching and classification for ShapeDiff engine."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional

from .models import (
    EngineConfig,
    ComparisonResult,
    RecordEntry,
    ModifiedEntry,
    WarningEntry,
    WarningKind,
    ShapeChangePolicy,
)
from .changes import calculate_field_changes, deep_equal
from .exceptions import InvalidInputShape
from .shapes import ensure_record_list
from .utils import (
    get_signature,
    format_signature,
    format_value,
    get_type_name,
    is_record,
    is_valid_key_value,
    canonical_json,
)

logger = logging.getLogger(__name__)


@dataclass
class _Keyed:
    """A record indexed under its key value."""
    record: dict
    signature: str
    key_field: str


class Differ:
    """
    Classifies two record collections into new, modified and deleted entries.

    Records are matched across collections by the value of the key field
    configured for their shape. Records whose shape has no key field are
    unkeyed: they are new or deleted depending on which side they are on.
    A matched pair whose shapes differ is, by default, reported as a
    deletion of the old record plus an addition of the new one.
    """

    def __init__(self, key_mapping: Optional[dict] = None, config: Optional[EngineConfig] = None):
        self.key_mapping = dict(key_mapping or {})
        self.config = config or EngineConfig()
        self.warnings: list[WarningEntry] = []

    def diff(self, before: Any, after: Any) -> ComparisonResult:
        """
        Compare two record collections.

        Args:
            before: The baseline list of records
            after: The list of records to compare against the baseline

        Returns:
            ComparisonResult with new, modified and deleted entries

        Raises:
            InvalidInputShape: If either input is not a list (or, in strict
                mode, contains a non-object item)
        """
        self.warnings = []

        before_items = self._records(before, "before")
        after_items = self._records(after, "after")

        before_map = self._build_lookup(before_items, "before")
        after_map = self._build_lookup(after_items, "after")

        new_entries: list[RecordEntry] = []
        modified_entries: list[ModifiedEntry] = []
        deleted_entries: list[RecordEntry] = []

        # New and modified, from the after side
        seen_keys: set[str] = set()
        for _, item in after_items:
            signature = get_signature(item)
            key_field = self._key_field(signature)

            if not key_field:
                new_entries.append(RecordEntry(record=item, signature=signature))
                continue

            key_value = item.get(key_field)
            if not is_valid_key_value(key_value) or key_value in seen_keys:
                continue
            seen_keys.add(key_value)

            after_entry = after_map[key_value]
            before_entry = before_map.get(key_value)

            if before_entry is None:
                new_entries.append(self._entry(after_entry, key_value))
            elif before_entry.signature != after_entry.signature:
                if self.config.shape_change_policy == ShapeChangePolicy.MODIFY:
                    modified = self._modified(before_entry, after_entry, key_value)
                    if modified:
                        modified_entries.append(modified)
                    continue
                logger.debug(
                    "Shape of %r changed from %s to %s; treating as replacement",
                    key_value,
                    format_signature(before_entry.signature),
                    format_signature(after_entry.signature)
                )
                deleted_entries.append(self._entry(before_entry, key_value))
                new_entries.append(self._entry(after_entry, key_value))
            elif not deep_equal(before_entry.record, after_entry.record):
                modified = self._modified(before_entry, after_entry, key_value)
                if modified:
                    modified_entries.append(modified)

        # Deleted, from the before side
        after_signatures = {get_signature(item) for _, item in after_items}
        for _, item in before_items:
            signature = get_signature(item)
            key_field = self._key_field(signature)

            if not key_field:
                if signature not in after_signatures:
                    deleted_entries.append(RecordEntry(record=item, signature=signature))
                continue

            key_value = item.get(key_field)
            if not is_valid_key_value(key_value):
                continue
            if key_value not in after_map:
                deleted_entries.append(self._entry(before_map[key_value], key_value))

        result = ComparisonResult(
            new_entries=self._deduplicate(new_entries),
            modified_entries=modified_entries,
            deleted_entries=self._deduplicate(deleted_entries),
            warnings=self.warnings,
        )

        logger.debug(
            "Classified %d new, %d modified, %d deleted with %d warning(s)",
            len(result.new_entries),
            len(result.modified_entries),
            len(result.deleted_entries),
            len(result.warnings)
        )

        return result

    def _records(self, records: Any, source: str) -> list[tuple[int, dict]]:
        """Validate a collection and return its object items with their indices."""
        items = ensure_record_list(records, source)
        valid = []
        for index, item in enumerate(items):
            if is_record(item):
                valid.append((index, item))
                continue
            if self.config.strict_input_validation:
                raise InvalidInputShape(
                    f"All items in '{source}' must be objects; item {index} is {format_value(item)}",
                    source=source,
                    index=index,
                    item=item
                )
            self._add_warning(
                WarningKind.INVALID_ITEM,
                f"Skipping non-object item {index} in '{source}': {format_value(item)}",
                source=source,
                index=index
            )
        return valid

    def _key_field(self, signature: str) -> Optional[str]:
        return self.key_mapping.get(signature) or None

    def _build_lookup(self, items: list[tuple[int, dict]], source: str) -> dict[str, _Keyed]:
        """Index keyed records by key value; the later of two duplicates wins."""
        lookup: dict[str, _Keyed] = {}

        for index, item in items:
            signature = get_signature(item)
            key_field = self._key_field(signature)
            if not key_field:
                continue

            key_value = item.get(key_field)
            if not is_valid_key_value(key_value):
                shown = "<missing>" if key_field not in item else (
                    f"{format_value(key_value)} ({get_type_name(key_value)})"
                )
                self._add_warning(
                    WarningKind.INVALID_KEY_VALUE,
                    f"Invalid or missing key field '{key_field}' for an object with "
                    f"signature {format_signature(signature)} in '{source}'. Value: {shown}",
                    source=source,
                    signature=signature,
                    field=key_field,
                    key_value=key_value,
                    index=index
                )
                continue

            if key_value in lookup:
                self._add_warning(
                    WarningKind.DUPLICATE_KEY,
                    f"Duplicate key value '{key_value}' (using key '{key_field}') found in "
                    f"'{source}' for signature {format_signature(signature)}. "
                    f"The last entry with this key will be used",
                    source=source,
                    signature=signature,
                    field=key_field,
                    key_value=key_value,
                    index=index
                )

            lookup[key_value] = _Keyed(record=item, signature=signature, key_field=key_field)

        return lookup

    def _modified(self, before: _Keyed, after: _Keyed, key_value: str) -> Optional[ModifiedEntry]:
        changes = calculate_field_changes(before.record, after.record)

        key_field = after.key_field
        if key_field in changes.changed and deep_equal(
            before.record.get(key_field), after.record.get(key_field)
        ):
            del changes.changed[key_field]

        if changes.is_empty:
            return None

        return ModifiedEntry(
            key_value=key_value,
            key_field=key_field,
            signature=after.signature,
            before=before.record,
            after=after.record,
            changes=changes,
            before_signature=before.signature,
        )

    def _entry(self, keyed: _Keyed, key_value: str) -> RecordEntry:
        return RecordEntry(
            record=keyed.record,
            signature=keyed.signature,
            key_field=keyed.key_field,
            key_value=key_value,
        )

    def _identity(self, entry: RecordEntry) -> str:
        key_field = self._key_field(entry.signature)
        if key_field:
            return f"{entry.signature}::{format_value(entry.record.get(key_field))}"
        return f"{entry.signature}::{canonical_json(entry.record)}"

    def _deduplicate(self, entries: list[RecordEntry]) -> list[RecordEntry]:
        """Keep one entry per identity, the last one seen, in first-seen position."""
        unique: dict[str, RecordEntry] = {}
        for entry in entries:
            unique[self._identity(entry)] = entry
        return list(unique.values())

    def _add_warning(self, kind: WarningKind, message: str, **identifiers):
        logger.debug(message)
        self.warnings.append(WarningEntry(kind=kind, message=message, **identifiers))


def diff(
    before: Any,
    after: Any,
    key_mapping: Optional[dict] = None,
    config: Optional[EngineConfig] = None
) -> ComparisonResult:
    """
    Convenience function to classify two record collections.

    Unlike ShapeDiffEngine.compare this does not check that shared shapes
    have a key field, and fatal errors are raised rather than returned.
    """
    return Differ(key_mapping, config).diff(before, after)
