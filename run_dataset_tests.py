#!/usr/bin/env python
"""Run a folder of before/after record scenarios and write a JSON report."""

import argparse
import json
import logging
import sys
from pathlib import Path

from shapediff import run_scenarios

SCENARIO_FORMAT = """
Each *.json file in DATASETS is one scenario:

  {
    "name": "modified_name",
    "before": [{"id": "1", "name": "Alice"}],
    "after": [{"id": "1", "name": "Alicia"}],
    "keys": {"id,name": "id"},
    "shape_change_policy": "replace",
    "auto_select_keys": true,
    "expected": {"new": 0, "modified": 1, "deleted": 0}
  }

"keys" maps a shape signature (sorted field names) to its key field; shapes
with a single key candidate are filled in unless "auto_select_keys" is false.
"expected" may hold new/modified/deleted/warnings counts, "match", or an
"error" code such as MISSING_KEY_SELECTION. Without it the scenario must
report no changes.

Exit status is 0 when every scenario passes, 1 otherwise.
"""


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        description="Check record diff scenarios against their expected outcome",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=SCENARIO_FORMAT
    )
    parser.add_argument("datasets", nargs="?", help="Folder of scenario JSON files")
    parser.add_argument("report", nargs="?", help="Where to write the JSON report")
    parser.add_argument("-d", "--datasets", dest="datasets_named", metavar="DATASETS",
                        help="Folder of scenario JSON files")
    parser.add_argument("-r", "--report", dest="report_named", metavar="REPORT",
                        help="Where to write the JSON report")
    parser.add_argument("-q", "--quiet", action="store_true", help="Only write the report")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log each comparison step")

    args = parser.parse_args(argv)
    args.datasets = args.datasets or args.datasets_named
    args.report = args.report or args.report_named
    if not args.datasets or not args.report:
        parser.error("both a datasets folder and a report path are required")
    return args


def main(argv=None):
    args = parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)

    datasets = Path(args.datasets)
    if not datasets.is_dir():
        print(f"Error: not a folder: {datasets}", file=sys.stderr)
        return 1

    report = run_scenarios(str(datasets), print_report=not args.quiet)
    Path(args.report).write_text(json.dumps(report.to_dict(), indent=2))

    if not args.quiet:
        print(f"\n{report.passed}/{report.total} scenarios passed, report written to {args.report}")

    return 0 if report.failed == 0 else 1


if __name__ == "__main__":
    sys.exit(main())
