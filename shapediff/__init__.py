"""
ShapeDiff - Structural diff engine for heterogeneous record collections

Compares two lists of JSON-style records and reports, per logical entity,
whether it is new, deleted or modified, with field-level detail. Record
shapes are discovered automatically and records are matched by a key field
chosen per shape.
"""

from .engine import ShapeDiffEngine, compare
from .differ import Differ, diff
from .shapes import ShapeAnalyzer, analyze_shapes
from .keys import (
    KeyResolver,
    suggest_keys,
    resolve_keys,
    merge_key_mappings,
    required_signatures,
    selectable_key_fields,
    validate_key_mapping,
    build_key_inventory,
)
from .changes import calculate_field_changes, deep_equal
from .models import (
    EngineConfig,
    LogLevel,
    ShapeChangePolicy,
    Shape,
    ShapeAnalysis,
    KeyInventoryRow,
    ChangeSet,
    FieldChange,
    RecordEntry,
    ModifiedEntry,
    ComparisonResult,
    Summary,
    WarningEntry,
    WarningKind,
    ErrorResponse,
)
from .exceptions import (
    ShapeDiffError,
    InvalidInputShape,
    MissingKeySelection,
    RecordParseError,
    KeyMappingError,
)
from .loader import (
    parse_records,
    load_records,
    load_key_mapping,
    save_key_mapping,
)
from .runner import (
    ShapeDiffRunner,
    compare_files,
)
from .scenarios import (
    ScenarioRunner,
    ScenarioResult,
    GlobalReport,
    check_expectations,
    run_scenarios,
)

__version__ = "1.0.0"
__all__ = [
    # Engine
    "ShapeDiffEngine",
    "EngineConfig",
    "LogLevel",
    "ShapeChangePolicy",
    "compare",
    "Differ",
    "diff",
    # Shapes and keys
    "ShapeAnalyzer",
    "analyze_shapes",
    "Shape",
    "ShapeAnalysis",
    "KeyResolver",
    "suggest_keys",
    "resolve_keys",
    "merge_key_mappings",
    "required_signatures",
    "selectable_key_fields",
    "validate_key_mapping",
    "build_key_inventory",
    "KeyInventoryRow",
    # Changes
    "calculate_field_changes",
    "deep_equal",
    "ChangeSet",
    "FieldChange",
    # Results
    "ComparisonResult",
    "RecordEntry",
    "ModifiedEntry",
    "Summary",
    "WarningEntry",
    "WarningKind",
    "ErrorResponse",
    # Errors
    "ShapeDiffError",
    "InvalidInputShape",
    "MissingKeySelection",
    "RecordParseError",
    "KeyMappingError",
    # Files
    "parse_records",
    "load_records",
    "load_key_mapping",
    "save_key_mapping",
    "ShapeDiffRunner",
    "compare_files",
    # Scenarios
    "ScenarioRunner",
    "ScenarioResult",
    "GlobalReport",
    "check_expectations",
    "run_scenarios",
]
