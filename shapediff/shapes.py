"""Shape discovery and key-field inference for ShapeDiff engine."""

from __future__ import annotations

import logging
from typing import Any

from .models import Shape, ShapeAnalysis, WarningEntry, WarningKind
from .exceptions import InvalidInputShape
from .utils import get_signature, format_signature, format_value, is_record, is_valid_key_value

logger = logging.getLogger(__name__)


def ensure_record_list(records: Any, source: str = "records") -> list:
    """Raise InvalidInputShape unless `records` is a list (or tuple) of items."""
    if not isinstance(records, (list, tuple)):
        raise InvalidInputShape(
            f"Input '{source}' must be an array of objects, got {type(records).__name__}",
            source=source
        )
    return list(records)


class ShapeAnalyzer:
    """
    Partitions a record collection by shape.

    A record's shape is identified by its signature, the sorted list of its
    own field names. Records with different field sets always belong to
    different shapes. For each shape the analyzer reports the fields that
    could serve as a key: present in every member with a non-blank string
    value.
    """

    def __init__(self, source: str = "records", strict: bool = True):
        """
        Args:
            source: Name of the collection used in errors and warnings
            strict: Fail on non-object items instead of skipping them
        """
        self.source = source
        self.strict = strict
        self.warnings: list[WarningEntry] = []

    def analyze(self, records: Any) -> ShapeAnalysis:
        """
        Discover the shapes of a record collection.

        Raises:
            InvalidInputShape: If records is not a list, or (strict mode) an
                item is not an object
        """
        self.warnings = []
        items = ensure_record_list(records, self.source)

        if self.strict:
            for index, item in enumerate(items):
                if not is_record(item):
                    raise InvalidInputShape(
                        f"All items in '{self.source}' must be objects; "
                        f"item {index} is {format_value(item)}",
                        source=self.source,
                        index=index,
                        item=item
                    )

        groups: dict[str, list[dict]] = {}
        for index, item in enumerate(items):
            if not is_record(item):
                self._add_warning(
                    WarningKind.INVALID_ITEM,
                    f"Skipping non-object item {index} in '{self.source}': {format_value(item)}",
                    index=index
                )
                continue
            groups.setdefault(get_signature(item), []).append(item)

        shapes = [self._build_shape(sig, members) for sig, members in sorted(groups.items())]
        logger.debug("Found %d shape(s) in %d %s record(s)", len(shapes), len(items), self.source)

        return ShapeAnalysis(shapes=shapes, warnings=self.warnings)

    def _build_shape(self, signature: str, members: list[dict]) -> Shape:
        fields: set[str] = set()
        for member in members:
            fields.update(member.keys())

        candidates = sorted(
            name for name in fields
            if all(name in m and is_valid_key_value(m[name]) for m in members)
        )

        if not candidates:
            self._add_warning(
                WarningKind.NO_KEY_CANDIDATES,
                f"Shape {format_signature(signature)} in '{self.source}' has no field "
                f"usable as a key; its records can only be tracked by shape",
                signature=signature
            )

        return Shape(
            signature=signature,
            fields=sorted(fields),
            count=len(members),
            potential_key_fields=candidates,
        )

    def _add_warning(self, kind: WarningKind, message: str, **identifiers):
        logger.debug(message)
        self.warnings.append(WarningEntry(
            kind=kind,
            message=message,
            source=self.source,
            **identifiers
        ))


def analyze_shapes(records: Any, source: str = "records", strict: bool = True) -> ShapeAnalysis:
    """
    Convenience function to discover the shapes of a record collection.

    Args:
        records: List of record dicts
        source: Name of the collection used in errors and warnings
        strict: Fail on non-object items instead of skipping them

    Returns:
        ShapeAnalysis with shapes ordered by signature
    """
    return ShapeAnalyzer(source, strict).analyze(records)
