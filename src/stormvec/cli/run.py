"""Implementation of `stormvec run`."""

from __future__ import annotations

import argparse
import sys
from typing import Any

from stormvec.core.pipeline import INPUT_FORMATS, run_pipeline


def register(subparsers: argparse._SubParsersAction) -> None:
    parser = subparsers.add_parser("run", help="Build the vector field for a track point table")
    parser.add_argument("input", help="Point table (CSV/Parquet) or IBTrACS CSV")
    parser.add_argument("--out", required=True, help="Output folder")
    parser.add_argument("--config", default=None, help="Config YAML")
    parser.add_argument("--format", dest="input_format", choices=INPUT_FORMATS, default="table", help="Input layout")
    parser.add_argument("--cell-size", type=float, default=None, help="Grid cell size in degrees")
    parser.add_argument("--min-len", type=float, default=None, help="Shortest arrow (length unit)")
    parser.add_argument("--max-len", type=float, default=None, help="Longest arrow (length unit)")
    parser.add_argument("--bucket-width", type=float, default=None, help="Azimuth bucket width in degrees")
    parser.add_argument("--years", type=int, nargs=2, default=None, metavar=("FIRST", "LAST"), help="Year range")
    parser.add_argument("--geojson", action="store_true", help="Also write glyphs.geojson")
    parser.set_defaults(func=cmd_run)


def _overrides(args: argparse.Namespace) -> dict[str, Any]:
    out: dict[str, Any] = {}
    if args.cell_size is not None:
        out.setdefault("grid", {})["cell_size"] = float(args.cell_size)
    if args.min_len is not None:
        out.setdefault("projection", {})["min_len"] = float(args.min_len)
    if args.max_len is not None:
        out.setdefault("projection", {})["max_len"] = float(args.max_len)
    if args.bucket_width is not None:
        out.setdefault("buckets", {})["width"] = float(args.bucket_width)
    if args.years is not None:
        out.setdefault("filter", {})["years"] = [int(v) for v in args.years]
    return out


def cmd_run(args: argparse.Namespace) -> int:
    result = run_pipeline(
        input_path=args.input,
        out_dir=args.out,
        config_path=args.config,
        overrides=_overrides(args),
        input_format=args.input_format,
        geojson=bool(args.geojson),
        argv=sys.argv,
    )

    counts = result.metadata["counts"]
    print(f"Tracks: {counts['n_tracks']}  segments: {counts['n_segments']}  cells: {counts['n_cells']}")
    print(f"Wrote {len(result.glyphs)} glyphs to {args.out}/glyphs.csv")
    print(f"Wrote run metadata to {args.out}/run_metadata.json")
    print(f"Wrote resolved config to {args.out}/config_resolved.yaml")
    return 0
