"""Orchestration: point table -> tracks -> segments -> grid -> glyph table."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import pandas as pd

from stormvec.core.config import dump_yaml, length_scale, resolve_config
from stormvec.core.errors import EmptyGridError, StormVecError
from stormvec.core.provenance import build_run_metadata
from stormvec.core.types import PipelineResult
from stormvec.data.io import read_points_table, write_geojson, write_json, write_table
from stormvec.data.schema import CELL_COLUMNS
from stormvec.external.ibtracs import read_ibtracs
from stormvec.ops.aggregate import aggregate_grid
from stormvec.ops.grid import grid_spec_for_bounds, make_grid
from stormvec.ops.segments import compute_segments
from stormvec.ops.vectors import glyphs_to_geodataframe, project_vectors
from stormvec.tracks.builder import build_tracks
from stormvec.tracks.loader import load_track_points

logger = logging.getLogger(__name__)

INPUT_FORMATS = ("table", "ibtracs")


class PipelineError(StormVecError, RuntimeError):
    """Raised when the pipeline cannot complete."""


def load_points(input_path: str | Path, cfg: dict[str, Any], input_format: str = "table") -> pd.DataFrame:
    """Read, validate and id the input point table."""

    if input_format == "ibtracs":
        raw = read_ibtracs(input_path)
    elif input_format == "table":
        raw = read_points_table(input_path)
    else:
        raise PipelineError(f"Unsupported input format '{input_format}'. Supported: {'|'.join(INPUT_FORMATS)}")
    return load_track_points(raw, cfg)


def build_vector_field(points: pd.DataFrame, cfg: dict[str, Any]) -> PipelineResult:
    """Run the computational pipeline on a loaded point table.

    `points` must carry `track_id, lon, lat` (see `load_track_points`).
    Deterministic for a given table and config. When no cell collects any
    segment the glyph table is empty rather than an error.
    """

    radius_m = float(cfg["geodesy"]["radius_m"])
    scale = length_scale(cfg)

    tracks = build_tracks(points, min_points=int(cfg["track"]["min_points"]))
    segments = compute_segments(
        tracks,
        radius_m=radius_m,
        length_scale=scale,
        drop_degenerate=bool(cfg["segments"]["drop_degenerate"]),
    )
    counts: dict[str, Any] = {
        "n_points": int(len(points)),
        "n_tracks": len(tracks),
        "n_segments": int(len(segments)),
    }

    try:
        if segments.empty:
            raise EmptyGridError("No usable segments")
        spec = grid_spec_for_bounds(
            segments.total_bounds,
            cell_size=float(cfg["grid"]["cell_size"]),
            origin=cfg["grid"].get("origin"),
        )
        grid = make_grid(spec)
        cells = aggregate_grid(segments, grid, spec, min_resultant=float(cfg["circular"]["min_resultant"]))
    except EmptyGridError as exc:
        logger.warning("Empty vector field: %s", exc)
        cells = pd.DataFrame({c: pd.Series(dtype=float) for c in CELL_COLUMNS})
        counts["grid"] = None
    else:
        counts["grid"] = {"x0": spec.x0, "y0": spec.y0, "cell_size": spec.cell_size, "nx": spec.nx, "ny": spec.ny}

    glyphs = project_vectors(
        cells,
        min_len=float(cfg["projection"]["min_len"]),
        max_len=float(cfg["projection"]["max_len"]),
        bucket_width=float(cfg["buckets"]["width"]),
        radius_m=radius_m,
        length_scale=scale,
    )
    counts["n_cells"] = int(len(cells))
    counts["n_glyphs"] = int(len(glyphs))
    return PipelineResult(glyphs=glyphs, cells=cells, segments=segments, metadata=counts)


def run_pipeline(
    input_path: str | Path,
    out_dir: str | Path,
    config_path: str | Path | None = None,
    overrides: dict[str, Any] | None = None,
    input_format: str = "table",
    geojson: bool = False,
    argv: list[str] | None = None,
) -> PipelineResult:
    """File-to-file run: load, compute and write all artifacts to `out_dir`."""

    out_root = Path(out_dir)
    out_root.mkdir(parents=True, exist_ok=True)

    resolved = resolve_config(config_path=config_path, overrides=overrides, input_format=input_format)
    dump_yaml(resolved, out_root / "config_resolved.yaml")

    points = load_points(input_path, resolved, input_format=input_format)
    result = build_vector_field(points, resolved)

    write_table(result.glyphs, out_root / "glyphs.csv")
    write_table(result.glyphs, out_root / "glyphs.parquet")
    write_table(result.cells, out_root / "cells.parquet")
    write_table(result.segments, out_root / "segments.parquet")
    if geojson:
        write_geojson(glyphs_to_geodataframe(result.glyphs), out_root / "glyphs.geojson")

    metadata = build_run_metadata(
        input_path=input_path,
        input_format=input_format,
        config=resolved,
        points=points,
        glyphs=result.glyphs,
        counts=result.metadata,
        argv=argv,
    )
    write_json(metadata, out_root / "run_metadata.json")
    return PipelineResult(glyphs=result.glyphs, cells=result.cells, segments=result.segments, metadata=metadata)
