"""Scenario runner for ShapeDiff datasets."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

from .engine import ShapeDiffEngine
from .exceptions import ShapeDiffError
from .keys import KeyResolver
from .models import EngineConfig, ComparisonResult, ShapeChangePolicy

logger = logging.getLogger(__name__)

EXPECTATION_COUNTS = {
    "new": "new_entries",
    "modified": "modified_entries",
    "deleted": "deleted_entries",
    "warnings": "warnings",
}


@dataclass
class ScenarioResult:
    """Result of a single dataset scenario."""
    name: str
    dataset_path: str
    passed: bool
    result: Optional[dict] = None
    key_mapping: Optional[dict] = None
    failures: list[str] = field(default_factory=list)
    error: Optional[dict] = None

    def to_dict(self) -> dict:
        result = {
            "name": self.name,
            "dataset_path": self.dataset_path,
            "passed": self.passed,
        }
        if self.key_mapping:
            result["key_mapping"] = self.key_mapping
        if self.failures:
            result["failures"] = self.failures
        if self.result:
            result["result"] = self.result
        if self.error:
            result["error"] = self.error
        return result


@dataclass
class GlobalReport:
    """Global report across all scenarios."""
    total: int = 0
    passed: int = 0
    failed: int = 0
    scenarios: list[ScenarioResult] = field(default_factory=list)
    breakdown: dict[str, list[str]] = field(default_factory=dict)
    timestamp: str = ""

    def __post_init__(self):
        if not self.timestamp:
            self.timestamp = datetime.now(timezone.utc).isoformat().replace('+00:00', 'Z')
        if not self.breakdown:
            self.breakdown = {
                "no_changes": [],
                "with_changes": [],
                "entries_added": [],
                "entries_removed": [],
                "entries_modified": [],
                "shape_changes": [],
                "with_warnings": [],
                "errors": [],
            }

    def to_dict(self) -> dict:
        pass_rate = f"{(self.passed / self.total * 100):.1f}%" if self.total > 0 else "0.0%"
        return {
            "timestamp": self.timestamp,
            "summary": {
                "total_scenarios": self.total,
                "passed": self.passed,
                "failed": self.failed,
                "pass_rate": pass_rate
            },
            "breakdown": self.breakdown,
            "scenarios": [s.to_dict() for s in self.scenarios]
        }

    def print_summary(self):
        pass_rate = f"{(self.passed / self.total * 100):.1f}%" if self.total > 0 else "0.0%"
        print(f"\nScenario Results: {self.passed}/{self.total} passed ({pass_rate})")
        if self.failed > 0:
            print(f"  Failed: {self.failed}")

        labels = {
            "no_changes": "No changes",
            "with_changes": "With changes",
            "entries_added": "Entries added",
            "entries_removed": "Entries removed",
            "entries_modified": "Entries modified",
            "shape_changes": "Shape changes",
            "with_warnings": "With warnings",
            "errors": "Errors",
        }
        for key, label in labels.items():
            if self.breakdown.get(key):
                print(f"  {label}: {len(self.breakdown[key])} datasets")


def check_expectations(result: ComparisonResult, expected: Optional[dict]) -> list[str]:
    """
    Compare a result with a dataset's expectations.

    Returns:
        A list of failure messages, empty when every expectation holds
    """
    if not expected:
        return [] if result.is_match else ["Expected no changes"]

    failures = []
    for name, attribute in EXPECTATION_COUNTS.items():
        if name in expected:
            actual = len(getattr(result, attribute))
            if actual != expected[name]:
                failures.append(f"Expected {expected[name]} {name}, got {actual}")

    if "match" in expected and result.is_match != expected["match"]:
        failures.append(f"Expected match={expected['match']}, got {result.is_match}")

    if "error" in expected:
        failures.append(f"Expected error {expected['error']}, comparison succeeded")

    return failures


class ScenarioRunner:
    """Runs before/after datasets through the engine."""

    def __init__(self, engine_config: Optional[EngineConfig] = None, auto_select_keys: bool = True):
        self.engine = ShapeDiffEngine(engine_config or EngineConfig())
        self.auto_select_keys = auto_select_keys

    def run_dataset(self, dataset: dict, name: str, dataset_path: str) -> ScenarioResult:
        """Run a single dataset."""
        before = dataset.get("before", [])
        after = dataset.get("after", [])
        key_mapping = dict(dataset.get("keys") or {})
        expected = dataset.get("expected") or {}
        engine = self._engine_for(dataset)

        try:
            if self.auto_select_keys and dataset.get("auto_select_keys", True):
                before_shapes, after_shapes = engine.analyze(before, after)
                key_mapping = KeyResolver(before_shapes, after_shapes).resolve(key_mapping)
        except ShapeDiffError as e:
            result = engine.error_response(e)
        else:
            result = engine.compare(before, after, key_mapping)

        if not isinstance(result, ComparisonResult):
            expected_error = expected.get("error")
            failures = []
            if expected_error != result.code:
                failures.append(f"Unexpected error {result.code}: {result.error['message']}")
            return ScenarioResult(
                name=name,
                dataset_path=dataset_path,
                passed=not failures,
                key_mapping=key_mapping,
                failures=failures,
                error=result.error
            )

        failures = check_expectations(result, dataset.get("expected"))
        return ScenarioResult(
            name=name,
            dataset_path=dataset_path,
            passed=not failures,
            result=result.to_dict(),
            key_mapping=key_mapping,
            failures=failures
        )

    def _engine_for(self, dataset: dict) -> ShapeDiffEngine:
        """Use the dataset's shape change policy when it sets one."""
        policy = dataset.get("shape_change_policy")
        if not policy:
            return self.engine
        return ShapeDiffEngine(replace(
            self.engine.config,
            shape_change_policy=ShapeChangePolicy(policy)
        ))

    def run_folder(self, folder: str, print_report: bool = True) -> GlobalReport:
        """Run all dataset files in a folder."""
        report = GlobalReport()
        folder_path = Path(folder)

        for dataset_file in sorted(folder_path.glob("*.json")):
            with open(dataset_file) as f:
                dataset = json.load(f)

            name = dataset.get("name", dataset_file.stem)
            result = self.run_dataset(dataset, name, str(dataset_file))
            self._record(report, result)

            if print_report:
                print(f"{'PASS' if result.passed else 'FAIL'}: {name}")
                for failure in result.failures:
                    print(f"  - {failure}")

        logger.info("Ran %d scenario(s): %d passed", report.total, report.passed)

        if print_report:
            report.print_summary()

        return report

    def _record(self, report: GlobalReport, scenario: ScenarioResult):
        report.scenarios.append(scenario)
        report.total += 1
        if scenario.passed:
            report.passed += 1
        else:
            report.failed += 1

        name = scenario.name
        if scenario.error:
            report.breakdown["errors"].append(name)
            return

        result: dict[str, Any] = scenario.result or {}
        if result.get("is_match"):
            report.breakdown["no_changes"].append(name)
        else:
            report.breakdown["with_changes"].append(name)
        if result.get("new"):
            report.breakdown["entries_added"].append(name)
        if result.get("deleted"):
            report.breakdown["entries_removed"].append(name)
        if result.get("modified"):
            report.breakdown["entries_modified"].append(name)
        if result.get("warnings"):
            report.breakdown["with_warnings"].append(name)
        if self._has_shape_change(result):
            report.breakdown["shape_changes"].append(name)

    def _has_shape_change(self, result: dict) -> bool:
        deleted = {
            e["key_value"]: e["signature"] for e in result.get("deleted", []) if "key_field" in e
        }
        for entry in result.get("new", []):
            if "key_field" in entry and entry["key_value"] in deleted:
                if deleted[entry["key_value"]] != entry["signature"]:
                    return True
        return any("before_signature" in e for e in result.get("modified", []))


def run_scenarios(
    test_dir: str,
    engine_config: Optional[EngineConfig] = None,
    print_report: bool = True
) -> GlobalReport:
    """Run all scenarios in a directory."""
    runner = ScenarioRunner(engine_config)
    return runner.run_folder(test_dir, print_report)
