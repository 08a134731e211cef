"""Data models for ShapeDiff engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional


class LogLevel(Enum):
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARN = "WARN"
    ERROR = "ERROR"


class WarningKind(Enum):
    INVALID_ITEM = "INVALID_ITEM"
    INVALID_KEY_VALUE = "INVALID_KEY_VALUE"
    DUPLICATE_KEY = "DUPLICATE_KEY"
    NO_KEY_CANDIDATES = "NO_KEY_CANDIDATES"


class ShapeChangePolicy(Enum):
    REPLACE = "replace"
    MODIFY = "modify"


@dataclass
class EngineConfig:
    """Global configuration for the comparison engine."""
    shape_change_policy: ShapeChangePolicy = ShapeChangePolicy.REPLACE
    strict_input_validation: bool = False
    validate_key_selection: bool = True
    collect_statistics: bool = True
    log_level: LogLevel = LogLevel.INFO


@dataclass
class Shape:
    """A group of records sharing the same set of field names."""
    signature: str
    fields: list[str] = field(default_factory=list)
    count: int = 0
    potential_key_fields: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "signature": self.signature,
            "fields": list(self.fields),
            "count": self.count,
            "potential_key_fields": list(self.potential_key_fields),
        }


@dataclass
class WarningEntry:
    """A non-fatal issue found while analyzing or comparing records."""
    kind: WarningKind
    message: str
    source: Optional[str] = None
    signature: Optional[str] = None
    field: Optional[str] = None
    key_value: Any = None
    index: Optional[int] = None

    def to_dict(self) -> dict:
        result = {
            "kind": self.kind.value,
            "message": self.message,
        }
        for name in ("source", "signature", "field", "key_value", "index"):
            value = getattr(self, name)
            if value is not None:
                result[name] = value
        return result


@dataclass
class ShapeAnalysis:
    """Shapes discovered in one record collection."""
    shapes: list[Shape] = field(default_factory=list)
    warnings: list[WarningEntry] = field(default_factory=list)

    @property
    def signatures(self) -> list[str]:
        return [s.signature for s in self.shapes]

    def get(self, signature: str) -> Optional[Shape]:
        for shape in self.shapes:
            if shape.signature == signature:
                return shape
        return None

    def __iter__(self):
        return iter(self.shapes)

    def __len__(self) -> int:
        return len(self.shapes)

    def to_dict(self) -> dict:
        return {
            "shapes": [s.to_dict() for s in self.shapes],
            "warnings": [w.to_dict() for w in self.warnings],
        }


@dataclass
class KeyInventoryRow:
    """Key selection state for one signature across both collections."""
    signature: str
    before_count: int = 0
    after_count: int = 0
    selectable: list[str] = field(default_factory=list)
    selected: Optional[str] = None

    @property
    def in_before(self) -> bool:
        return self.before_count > 0

    @property
    def in_after(self) -> bool:
        return self.after_count > 0

    @property
    def required(self) -> bool:
        return self.in_before and self.in_after

    @property
    def is_resolved(self) -> bool:
        return not self.required or bool(self.selected)

    def to_dict(self) -> dict:
        return {
            "signature": self.signature,
            "before_count": self.before_count,
            "after_count": self.after_count,
            "required": self.required,
            "selectable": list(self.selectable),
            "selected": self.selected,
        }


@dataclass
class FieldChange:
    """Before/after values of a field present on both sides."""
    before: Any
    after: Any

    def to_dict(self) -> dict:
        return {"before": self.before, "after": self.after}


@dataclass
class ChangeSet:
    """Field-level differences between two matched records."""
    added: dict[str, Any] = field(default_factory=dict)
    removed: dict[str, Any] = field(default_factory=dict)
    changed: dict[str, FieldChange] = field(default_factory=dict)

    @property
    def is_empty(self) -> bool:
        return not (self.added or self.removed or self.changed)

    def apply(self, before: dict) -> dict:
        """Return a new record with this change set applied to `before`."""
        result = dict(before)
        for name in self.removed:
            result.pop(name, None)
        for name, change in self.changed.items():
            result[name] = change.after
        result.update(self.added)
        return result

    def to_dict(self) -> dict:
        return {
            "added": dict(self.added),
            "removed": dict(self.removed),
            "changed": {k: v.to_dict() for k, v in self.changed.items()},
        }


@dataclass
class RecordEntry:
    """A record classified as new or deleted."""
    record: dict
    signature: str
    key_field: Optional[str] = None
    key_value: Optional[str] = None

    def to_dict(self) -> dict:
        result = {
            "signature": self.signature,
            "record": self.record,
        }
        if self.key_field is not None:
            result["key_field"] = self.key_field
            result["key_value"] = self.key_value
        return result


@dataclass
class ModifiedEntry:
    """A keyed record present on both sides with differing fields."""
    key_value: str
    key_field: str
    signature: str
    before: dict
    after: dict
    changes: ChangeSet
    before_signature: Optional[str] = None

    def __post_init__(self):
        if self.before_signature is None:
            self.before_signature = self.signature

    @property
    def shape_changed(self) -> bool:
        return self.before_signature != self.signature

    def to_dict(self) -> dict:
        result = {
            "key_value": self.key_value,
            "key_field": self.key_field,
            "signature": self.signature,
            "before": self.before,
            "after": self.after,
            "changes": self.changes.to_dict(),
        }
        if self.shape_changed:
            result["before_signature"] = self.before_signature
        return result


@dataclass
class Summary:
    """Summary statistics of a comparison."""
    before_records: int = 0
    after_records: int = 0
    new_count: int = 0
    modified_count: int = 0
    deleted_count: int = 0
    warnings_count: int = 0

    def to_dict(self) -> dict:
        return {
            "before_records": self.before_records,
            "after_records": self.after_records,
            "new": self.new_count,
            "modified": self.modified_count,
            "deleted": self.deleted_count,
            "warnings": self.warnings_count,
        }


@dataclass
class ComparisonResult:
    """Complete comparison result."""
    new_entries: list[RecordEntry] = field(default_factory=list)
    modified_entries: list[ModifiedEntry] = field(default_factory=list)
    deleted_entries: list[RecordEntry] = field(default_factory=list)
    warnings: list[WarningEntry] = field(default_factory=list)
    summary: Optional[Summary] = None

    @property
    def is_match(self) -> bool:
        return not (self.new_entries or self.modified_entries or self.deleted_entries)

    def to_dict(self) -> dict:
        result = {
            "is_match": self.is_match,
            "new": [e.to_dict() for e in self.new_entries],
            "modified": [e.to_dict() for e in self.modified_entries],
            "deleted": [e.to_dict() for e in self.deleted_entries],
            "warnings": [w.to_dict() for w in self.warnings],
        }
        if self.summary:
            result["summary"] = self.summary.to_dict()
        return result


@dataclass
class ErrorResponse:
    """Error response structure."""
    success: bool = False
    error: Optional[dict] = None

    @property
    def code(self) -> Optional[str]:
        return self.error.get("code") if self.error else None

    def to_dict(self) -> dict:
        result = {"success": self.success}
        if self.error:
            result["error"] = self.error
        return result
