"""Implementation of `stormvec plot`."""

from __future__ import annotations

import argparse
from pathlib import Path

import geopandas as gpd
import numpy as np
import pandas as pd
import shapely

from stormvec.core.config import load_yaml
from stormvec.data.io import read_glyphs
from stormvec.viz.plots import plot_vector_field


def register(subparsers: argparse._SubParsersAction) -> None:
    parser = subparsers.add_parser("plot", help="Render a run's glyph table to PNG")
    parser.add_argument("run_dir", help="Output folder of `stormvec run`")
    parser.add_argument("--out", default=None, help="Output PNG path (default: RUN_DIR/vector_field.png)")
    parser.add_argument("--no-tracks", action="store_true", help="Do not draw track segments underneath")
    parser.set_defaults(func=cmd_plot)


def _segment_lines(path: Path) -> gpd.GeoDataFrame | None:
    if not path.exists():
        return None
    seg = pd.read_parquet(path)
    if seg.empty:
        return None
    coords = np.stack([seg[["lon0", "lat0"]].to_numpy(dtype=float), seg[["lon1", "lat1"]].to_numpy(dtype=float)], axis=1)
    return gpd.GeoDataFrame(seg[["track_id"]], geometry=gpd.GeoSeries(shapely.linestrings(coords), index=seg.index))


def cmd_plot(args: argparse.Namespace) -> int:
    run_dir = Path(args.run_dir)
    glyphs = read_glyphs(run_dir)
    tracks = None if args.no_tracks else _segment_lines(run_dir / "segments.parquet")
    cfg_path = run_dir / "config_resolved.yaml"
    width = float(load_yaml(cfg_path)["buckets"]["width"]) if cfg_path.exists() else 30.0

    out = plot_vector_field(glyphs, args.out or run_dir / "vector_field.png", tracks=tracks, bucket_width=width)
    print(f"Figure written to {out}")
    return 0
