"""Trajectory loader: canonical columns, track ids and point filters."""

from __future__ import annotations

import logging
from typing import Any

import numpy as np
import pandas as pd

from stormvec.data.schema import COLUMN_ALIASES, pick_column
from stormvec.data.transforms import compose_time, time_part_columns
from stormvec.data.validators import require_valid, validate_points
from stormvec.ops.rhumb import normalize_lon_180

logger = logging.getLogger(__name__)


def canonicalize_columns(raw: pd.DataFrame) -> pd.DataFrame:
    """Rename known aliases to canonical names and compose `time` if needed.

    Columns that are not recognised are kept as point attributes.
    """

    frame = raw.copy()
    renames: dict[str, str] = {}
    for canonical, candidates in COLUMN_ALIASES.items():
        if canonical in frame.columns:
            continue
        found = pick_column(frame.columns, candidates)
        if found is not None and found not in renames:
            renames[found] = canonical
    if renames:
        frame = frame.rename(columns=renames)

    if "time" not in frame.columns:
        parts = time_part_columns(frame.columns)
        if parts is not None:
            frame["time"] = compose_time(frame, parts)
    return frame


def assign_track_ids(points: pd.DataFrame, key: list[str]) -> pd.DataFrame:
    """Join the key columns into a `track_id` column (e.g. "Amy-1975")."""

    frame = points.copy()
    parts = [_key_strings(frame[col]) for col in key]
    track_id = parts[0]
    for p in parts[1:]:
        track_id = track_id + "-" + p
    frame.insert(0, "track_id", track_id)
    return frame


def _key_strings(values: pd.Series) -> pd.Series:
    num = pd.to_numeric(values, errors="coerce")
    if num.notna().all() and np.all(np.mod(num.to_numpy(dtype=float), 1.0) == 0.0):
        return num.astype("int64").astype(str)
    return values.astype(str).str.strip()


def filter_points(
    points: pd.DataFrame,
    *,
    years: tuple[int, int] | list[int] | None = None,
    bbox: tuple[float, float, float, float] | list[float] | None = None,
) -> pd.DataFrame:
    """Restrict points to a year range and/or a lon/lat bounding box.

    `bbox` is (lon_min, lat_min, lon_max, lat_max); lon_min > lon_max selects
    a box crossing the antimeridian.
    """

    frame = points
    if years is not None:
        first, last = (int(v) for v in years)
        if "year" in frame.columns:
            year = pd.to_numeric(frame["year"], errors="coerce")
        elif "time" in frame.columns:
            year = pd.to_datetime(frame["time"], errors="coerce").dt.year
        else:
            raise ValueError("Year filter needs a 'year' or 'time' column")
        frame = frame.loc[(year >= first) & (year <= last)]
    if bbox is not None:
        lon_min, lat_min, lon_max, lat_max = (float(v) for v in bbox)
        lon_min = float(normalize_lon_180(lon_min))
        lon_max = float(normalize_lon_180(lon_max))
        lat = frame["lat"].to_numpy(dtype=float)
        lon = normalize_lon_180(frame["lon"].to_numpy(dtype=float))
        if lon_min <= lon_max:
            lmask = (lon >= lon_min) & (lon <= lon_max)
        else:
            lmask = (lon >= lon_min) | (lon <= lon_max)
        frame = frame.loc[lmask & (lat >= lat_min) & (lat <= lat_max)]
    return frame.reset_index(drop=True)


def load_track_points(raw: pd.DataFrame, cfg: dict[str, Any]) -> pd.DataFrame:
    """Canonicalise, validate (fail fast), id and filter a raw point table."""

    key = list(cfg["track"]["key"])
    frame = canonicalize_columns(raw)
    report = require_valid(validate_points(frame, key))
    for issue in report.issues:
        logger.warning("%s: %s", issue.code, issue.message)

    frame["lon"] = pd.to_numeric(frame["lon"]).astype(float)
    frame["lat"] = pd.to_numeric(frame["lat"]).astype(float)
    if "time" in frame.columns:
        frame["time"] = pd.to_datetime(frame["time"], utc=True, format="mixed").dt.tz_convert(None)

    frame = assign_track_ids(frame, key)
    n_before = len(frame)
    flt = cfg.get("filter", {})
    frame = filter_points(frame, years=flt.get("years"), bbox=flt.get("bbox"))
    if len(frame) != n_before:
        logger.info("Filters kept %d of %d points", len(frame), n_before)
    logger.info("Loaded %d points in %d tracks", len(frame), frame["track_id"].nunique())
    return frame
