"""File-based runner that compares two record files."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from .engine import ShapeDiffEngine
from .exceptions import ShapeDiffError
from .keys import KeyResolver
from .loader import load_records, load_key_mapping, save_key_mapping
from .models import EngineConfig, ComparisonResult, ErrorResponse, KeyInventoryRow, ShapeAnalysis

logger = logging.getLogger(__name__)


class ShapeDiffRunner:
    """
    Runner that loads two record files and an optional key mapping file.

    Usage:
        runner = ShapeDiffRunner("before.json", "after.json", "keys.yaml")
        result = runner.run()

    Or as a one-liner:
        result = ShapeDiffRunner.compare_files("before.json", "after.json")
    """

    def __init__(
        self,
        before_path: str,
        after_path: str,
        key_mapping_path: Optional[str] = None,
        records_path: Optional[str] = None,
        engine_config: Optional[EngineConfig] = None,
        auto_select_keys: bool = True
    ):
        """
        Initialize the runner.

        Args:
            before_path: Path to the baseline JSON/YAML record file
            after_path: Path to the JSON/YAML record file to compare
            key_mapping_path: Path to a YAML/JSON file of signature -> key field
            records_path: JSONPath locating the record array inside each file
            engine_config: Optional engine configuration
            auto_select_keys: Fill shapes with a single key candidate automatically
        """
        self.before_path = Path(before_path)
        self.after_path = Path(after_path)
        self.key_mapping_path = Path(key_mapping_path) if key_mapping_path else None
        self.records_path = records_path
        self.engine = ShapeDiffEngine(engine_config or EngineConfig())
        self.auto_select_keys = auto_select_keys
        self._before: Optional[list] = None
        self._after: Optional[list] = None
        self._manual_keys: Optional[dict] = None

    @property
    def before(self) -> list:
        """Load and cache the before records."""
        if self._before is None:
            self._before = load_records(self.before_path, self.records_path, "before")
        return self._before

    @property
    def after(self) -> list:
        """Load and cache the after records."""
        if self._after is None:
            self._after = load_records(self.after_path, self.records_path, "after")
        return self._after

    @property
    def manual_keys(self) -> dict:
        """Key selections read from the key mapping file."""
        if self._manual_keys is None:
            self._manual_keys = (
                load_key_mapping(self.key_mapping_path) if self.key_mapping_path else {}
            )
        return self._manual_keys

    def analyze(self) -> tuple[ShapeAnalysis, ShapeAnalysis]:
        return self.engine.analyze(self.before, self.after)

    def key_mapping(self) -> dict:
        """The mapping used for comparison: manual selections plus auto-selected keys."""
        if not self.auto_select_keys:
            return dict(self.manual_keys)
        before_shapes, after_shapes = self.analyze()
        return KeyResolver(before_shapes, after_shapes).resolve(self.manual_keys)

    def inventory(self) -> list[KeyInventoryRow]:
        before_shapes, after_shapes = self.analyze()
        return KeyResolver(before_shapes, after_shapes).inventory(self.key_mapping())

    def save_keys(self, path: Optional[str] = None) -> Path:
        """Persist the resolved key mapping so selections stay stable between runs."""
        target = Path(path) if path else self.key_mapping_path
        if target is None:
            raise ValueError("No key mapping path to save to")
        save_key_mapping(target, self.key_mapping())
        return target

    def run(self) -> ComparisonResult | ErrorResponse:
        """
        Compare the two files.

        Returns:
            ComparisonResult on success, ErrorResponse on fatal errors
        """
        if not self.before_path.exists():
            raise FileNotFoundError(f"Before file not found: {self.before_path}")
        if not self.after_path.exists():
            raise FileNotFoundError(f"After file not found: {self.after_path}")

        logger.info("Comparing %s -> %s", self.before_path, self.after_path)
        try:
            before, after = self.before, self.after
            key_mapping = self.key_mapping()
        except ShapeDiffError as e:
            return self.engine.error_response(e)

        return self.engine.compare(before, after, key_mapping)

    @classmethod
    def compare_files(
        cls,
        before_path: str,
        after_path: str,
        key_mapping_path: Optional[str] = None,
        engine_config: Optional[EngineConfig] = None
    ) -> ComparisonResult | ErrorResponse:
        """
        Convenience class method to compare two files in one call.

        Example:
            result = ShapeDiffRunner.compare_files("before.json", "after.json")
        """
        runner = cls(before_path, after_path, key_mapping_path, engine_config=engine_config)
        return runner.run()


def compare_files(
    before_path: str,
    after_path: str,
    key_mapping_path: Optional[str] = None
) -> ComparisonResult | ErrorResponse:
    """
    Compare two record files.

    This is the simplest way to compare files:

        from shapediff.runner import compare_files
        result = compare_files("before.json", "after.json")
    """
    return ShapeDiffRunner.compare_files(before_path, after_path, key_mapping_path)
