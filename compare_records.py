#!/usr/bin/env python
"""Compare two record files from command line."""

import argparse
import json
import logging
import sys
from pathlib import Path

from shapediff import (
    ShapeDiffRunner,
    EngineConfig,
    ShapeChangePolicy,
    ComparisonResult,
    ShapeDiffError,
)
from shapediff.models import LogLevel
from shapediff.utils import format_signature


def print_inventory(runner):
    print("Shapes:")
    for row in runner.inventory():
        before = f"{row.before_count} obj" if row.in_before else "N/A"
        after = f"{row.after_count} obj" if row.in_after else "N/A"
        if row.selected:
            key = row.selected
        elif row.required:
            key = "MISSING (choose from: " + (", ".join(row.selectable) or "none") + ")"
        else:
            key = "-"
        print(f"  {format_signature(row.signature)}  before: {before}  after: {after}  key: {key}")
    print()


def print_result(result: ComparisonResult):
    print(f"New: {len(result.new_entries)}")
    for entry in result.new_entries:
        print(f"  + {entry.key_value or format_signature(entry.signature)}")

    print(f"Modified: {len(result.modified_entries)}")
    for entry in result.modified_entries:
        fields = sorted(
            list(entry.changes.added) + list(entry.changes.removed) + list(entry.changes.changed)
        )
        print(f"  ~ {entry.key_value} ({entry.key_field}): {', '.join(fields)}")

    print(f"Deleted: {len(result.deleted_entries)}")
    for entry in result.deleted_entries:
        print(f"  - {entry.key_value or format_signature(entry.signature)}")

    if result.warnings:
        print("\nWarnings:")
        for w in result.warnings:
            print(f"  - [{w.kind.value}] {w.message}")


def main():
    parser = argparse.ArgumentParser(
        description="Compare two JSON/YAML record collections",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python compare_records.py before.json after.json
  python compare_records.py before.json after.json -k keys.yaml --save-keys
  python compare_records.py before.json after.json -o report.json --records-path '$.items'
        """
    )

    parser.add_argument("before", help="Path to the baseline record file")
    parser.add_argument("after", help="Path to the record file to compare")
    parser.add_argument("-k", "--keys", help="Path to YAML/JSON key mapping file")
    parser.add_argument("-o", "--output", help="Path to output JSON report file")
    parser.add_argument("--records-path", help="JSONPath of the record array inside each file")
    parser.add_argument("--save-keys", action="store_true",
                        help="Write the resolved key mapping back to the key mapping file")
    parser.add_argument("--strict", action="store_true",
                        help="Fail on non-object items instead of skipping them")
    parser.add_argument("--shape-change-policy", choices=[p.value for p in ShapeChangePolicy],
                        default=ShapeChangePolicy.REPLACE.value,
                        help="How to report a key whose record shape changed")
    parser.add_argument("--log-level", choices=[level.value for level in LogLevel],
                        default=LogLevel.WARN.value, help="Logging level")
    parser.add_argument("-q", "--quiet", action="store_true", help="Suppress console output")

    args = parser.parse_args()

    config = EngineConfig(
        shape_change_policy=ShapeChangePolicy(args.shape_change_policy),
        strict_input_validation=args.strict,
        log_level=LogLevel(args.log_level),
    )
    logging.basicConfig(level=config.log_level.value, format="%(levelname)s %(name)s: %(message)s")

    for path in (args.before, args.after):
        if not Path(path).exists():
            print(f"Error: File not found: {path}", file=sys.stderr)
            return 2

    runner = ShapeDiffRunner(
        args.before,
        args.after,
        key_mapping_path=args.keys,
        records_path=args.records_path,
        engine_config=config,
    )

    try:
        if not args.quiet:
            print_inventory(runner)
        if args.save_keys and args.keys:
            runner.save_keys()
    except ShapeDiffError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    result = runner.run()

    if not isinstance(result, ComparisonResult):
        print(f"Error [{result.code}]: {result.error['message']}", file=sys.stderr)
        return 2

    if not args.quiet:
        print_result(result)

    if args.output:
        with open(args.output, 'w') as f:
            json.dump(result.to_dict(), indent=2, fp=f)
        if not args.quiet:
            print(f"\nReport saved to: {args.output}")

    return 0 if result.is_match else 1


if __name__ == "__main__":
    sys.exit(main())
