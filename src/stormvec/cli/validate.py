"""Implementation of `stormvec validate`."""

from __future__ import annotations

import argparse
import json

from stormvec.core.config import resolve_config
from stormvec.core.pipeline import INPUT_FORMATS
from stormvec.data.io import read_points_table
from stormvec.data.validators import report_to_dict, validate_points
from stormvec.external.ibtracs import read_ibtracs
from stormvec.tracks.loader import canonicalize_columns


def register(subparsers: argparse._SubParsersAction) -> None:
    parser = subparsers.add_parser("validate", help="Validate a track point table")
    parser.add_argument("input", help="Point table (CSV/Parquet) or IBTrACS CSV")
    parser.add_argument("--config", default=None, help="Config YAML (for track.key)")
    parser.add_argument("--format", dest="input_format", choices=INPUT_FORMATS, default="table", help="Input layout")
    parser.add_argument("--json", action="store_true", help="Print report as JSON")
    parser.set_defaults(func=cmd_validate)


def cmd_validate(args: argparse.Namespace) -> int:
    cfg = resolve_config(config_path=args.config, input_format=args.input_format)
    raw = read_ibtracs(args.input) if args.input_format == "ibtracs" else read_points_table(args.input)
    report = validate_points(canonicalize_columns(raw), list(cfg["track"]["key"]))
    payload = report_to_dict(report)

    if args.json:
        print(json.dumps(payload, indent=2, sort_keys=True))
    else:
        status = "PASS" if report.valid else "FAIL"
        print(f"Validation: {status}")
        print(f"Rows: {report.n_rows}")
        if not report.issues:
            print("No issues found")
        for issue in report.issues:
            print(f"- {issue.level.upper()} [{issue.code}] {issue.message}")

    return 0 if report.valid else 2
