"""I/O helpers for point tables and run outputs."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

import geopandas as gpd
import pandas as pd

logger = logging.getLogger(__name__)

TABLE_SUFFIXES = {".csv", ".parquet", ".pq"}


class DatasetIOError(FileNotFoundError):
    """Raised when expected input files are missing or unreadable."""


def read_points_table(path: str | Path) -> pd.DataFrame:
    """Read a raw point table from CSV or Parquet."""

    p = Path(path)
    if not p.exists():
        raise DatasetIOError(f"Input table not found: {p}")
    suffix = p.suffix.lower()
    if suffix not in TABLE_SUFFIXES:
        raise DatasetIOError(f"Unsupported input format '{suffix}'. Supported: .csv|.parquet")
    if suffix == ".csv":
        return pd.read_csv(p, low_memory=False)
    return pd.read_parquet(p)


def write_table(frame: pd.DataFrame, path: str | Path) -> Path:
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    if p.suffix.lower() == ".csv":
        frame.to_csv(p, index=False, lineterminator="\n")
    else:
        data = frame.drop(columns=["geometry"], errors="ignore")
        pd.DataFrame(data).to_parquet(p, index=False)
    logger.info("Wrote %d rows to %s", len(frame), p)
    return p


def write_geojson(frame: gpd.GeoDataFrame, path: str | Path) -> Path:
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    if p.exists():
        p.unlink()
    frame.to_file(p, driver="GeoJSON")
    logger.info("Wrote %d features to %s", len(frame), p)
    return p


def read_glyphs(run_dir: str | Path) -> pd.DataFrame:
    root = Path(run_dir)
    for name in ("glyphs.parquet", "glyphs.csv"):
        p = root / name
        if p.exists():
            return pd.read_parquet(p) if p.suffix == ".parquet" else pd.read_csv(p)
    raise DatasetIOError(f"No glyph table (glyphs.parquet|glyphs.csv) in {root}")


def write_json(data: dict[str, Any], path: str | Path) -> None:
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    with p.open("w", encoding="utf-8") as f:
        json.dump(data, f, indent=2, sort_keys=True, default=str)
