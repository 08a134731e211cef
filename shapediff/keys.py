"""Key-field selection for ShapeDiff engine."""

from __future__ import annotations

import logging
from typing import Iterable, Optional

from .models import Shape, KeyInventoryRow
from .exceptions import MissingKeySelection

logger = logging.getLogger(__name__)


def _index(shapes: Iterable[Shape]) -> dict[str, Shape]:
    return {shape.signature: shape for shape in shapes}


def merge_key_mappings(current: Optional[dict], suggestions: dict) -> dict:
    """
    Merge automatic key suggestions into an existing mapping.

    Suggestions only fill signatures that have no (or an empty) entry;
    existing selections always win. Neither argument is modified.
    """
    merged = dict(current or {})
    for signature, key_field in suggestions.items():
        if not merged.get(signature):
            merged[signature] = key_field
    return merged


class KeyResolver:
    """
    Resolves which field identifies the records of each shape.

    Usage:
        resolver = KeyResolver(before_analysis, after_analysis)
        mapping = resolver.resolve(existing_mapping)
        resolver.validate(mapping)
    """

    def __init__(self, before_shapes: Iterable[Shape], after_shapes: Iterable[Shape]):
        self.before = _index(before_shapes)
        self.after = _index(after_shapes)

    @property
    def signatures(self) -> list[str]:
        """All signatures seen in either collection, sorted."""
        return sorted(set(self.before) | set(self.after))

    @property
    def required_signatures(self) -> list[str]:
        """Signatures present in both collections; these need a key field."""
        return sorted(set(self.before) & set(self.after))

    def suggest(self) -> dict:
        """Suggest a key for every shape with exactly one potential key field."""
        combined = dict(self.before)
        for signature, shape in self.after.items():
            if signature not in combined or not combined[signature].potential_key_fields:
                combined[signature] = shape

        return {
            signature: shape.potential_key_fields[0]
            for signature, shape in sorted(combined.items())
            if len(shape.potential_key_fields) == 1
        }

    def resolve(self, existing: Optional[dict] = None) -> dict:
        """Fill gaps in `existing` with unambiguous suggestions."""
        merged = merge_key_mappings(existing, self.suggest())
        added = sorted(set(merged) - set(existing or {}))
        if added:
            logger.debug("Auto-selected key fields for %d shape(s): %s", len(added), added)
        return merged

    def selectable(self, signature: str) -> list[str]:
        """Key fields a caller may choose from for one signature."""
        before = self.before.get(signature)
        after = self.after.get(signature)
        if before and after:
            return [k for k in before.potential_key_fields if k in after.potential_key_fields]
        if before:
            return list(before.potential_key_fields)
        if after:
            return list(after.potential_key_fields)
        return []

    def validate(self, mapping: Optional[dict]):
        """
        Check that every shape shared by both collections has a key field.

        Raises:
            MissingKeySelection: For the first shared signature without one
        """
        mapping = mapping or {}
        for signature in self.required_signatures:
            if not mapping.get(signature):
                raise MissingKeySelection(signature)

    def inventory(self, mapping: Optional[dict] = None) -> list[KeyInventoryRow]:
        """One row per signature describing counts and key selection state."""
        mapping = mapping or {}
        rows = []
        for signature in self.signatures:
            before = self.before.get(signature)
            after = self.after.get(signature)
            rows.append(KeyInventoryRow(
                signature=signature,
                before_count=before.count if before else 0,
                after_count=after.count if after else 0,
                selectable=self.selectable(signature),
                selected=mapping.get(signature) or None,
            ))
        return rows


def suggest_keys(before_shapes: Iterable[Shape], after_shapes: Iterable[Shape]) -> dict:
    return KeyResolver(before_shapes, after_shapes).suggest()


def resolve_keys(
    before_shapes: Iterable[Shape],
    after_shapes: Iterable[Shape],
    existing: Optional[dict] = None
) -> dict:
    """
    Auto-select key fields for shapes with a single candidate.

    Args:
        before_shapes: Shapes of the before collection
        after_shapes: Shapes of the after collection
        existing: Current mapping of signature -> key field

    Returns:
        A new mapping; entries already in `existing` are kept as they are
    """
    return KeyResolver(before_shapes, after_shapes).resolve(existing)


def required_signatures(before_shapes: Iterable[Shape], after_shapes: Iterable[Shape]) -> list[str]:
    return KeyResolver(before_shapes, after_shapes).required_signatures


def selectable_key_fields(
    signature: str,
    before_shapes: Iterable[Shape],
    after_shapes: Iterable[Shape]
) -> list[str]:
    return KeyResolver(before_shapes, after_shapes).selectable(signature)


def validate_key_mapping(
    before_shapes: Iterable[Shape],
    after_shapes: Iterable[Shape],
    mapping: Optional[dict]
):
    """Raise MissingKeySelection if a shared shape has no key field."""
    KeyResolver(before_shapes, after_shapes).validate(mapping)


def build_key_inventory(
    before_shapes: Iterable[Shape],
    after_shapes: Iterable[Shape],
    mapping: Optional[dict] = None
) -> list[KeyInventoryRow]:
    return KeyResolver(before_shapes, after_shapes).inventory(mapping)
