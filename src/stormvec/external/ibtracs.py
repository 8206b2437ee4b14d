from __future__ import annotations

from pathlib import Path
from typing import Any, Iterable

import numpy as np
import pandas as pd

from stormvec.core.errors import TrackValidationError
from stormvec.core.types import ValidationIssue, ValidationReport
from stormvec.data.io import DatasetIOError
from stormvec.data.schema import pick_column
from stormvec.ops.rhumb import normalize_lon_180

WIND_CANDIDATES = (
    "USA_WIND",
    "WMO_WIND",
    "BOM_WIND",
    "TOKYO_WIND",
    "CMA_WIND",
    "WIND",
)
PRES_CANDIDATES = (
    "USA_PRES",
    "WMO_PRES",
    "BOM_PRES",
    "TOKYO_PRES",
    "CMA_PRES",
    "PRES",
)
IBTRACS_COLUMNS = ["sid", "name", "year", "time", "lon", "lat", "basin", "wind", "pressure"]


def read_ibtracs(
    csv_path: str | Path,
    *,
    chunksize: int = 250_000,
) -> pd.DataFrame:
    """Read an IBTrACS CSV into a point table.

    Output columns:
    `sid, name, year, time, lon, lat, basin, wind, pressure`

    Rows stay in file order within each storm; storms are ordered by `sid`.
    """

    path = Path(csv_path)
    if not path.exists():
        raise DatasetIOError(f"IBTrACS file not found: {path}")

    preview = pd.read_csv(path, nrows=64, low_memory=False, dtype=str)
    time_col = pick_column(preview.columns, ("ISO_TIME", "iso_time", "time"))
    lat_col = pick_column(preview.columns, ("LAT", "lat", "latitude"))
    lon_col = pick_column(preview.columns, ("LON", "lon", "longitude"))
    sid_col = pick_column(preview.columns, ("SID", "sid", "storm_id"))
    name_col = pick_column(preview.columns, ("NAME", "name"))
    basin_col = pick_column(preview.columns, ("BASIN", "basin", "subbasin"))
    season_col = pick_column(preview.columns, ("SEASON", "season", "year"))

    required = {"SID": sid_col, "ISO_TIME": time_col, "LAT": lat_col, "LON": lon_col}
    missing = [name for name, col in required.items() if col is None]
    if missing:
        raise TrackValidationError(_missing_columns_report(missing, preview.columns))

    wind_cols = [c for c in (pick_column(preview.columns, (k,)) for k in WIND_CANDIDATES) if c is not None]
    pres_cols = [c for c in (pick_column(preview.columns, (k,)) for k in PRES_CANDIDATES) if c is not None]

    frames: list[pd.DataFrame] = []
    for chunk in pd.read_csv(path, chunksize=max(1, int(chunksize)), low_memory=False, dtype=str):
        c = _drop_non_data_rows(chunk, sid_col=sid_col, time_col=time_col, lat_col=lat_col, lon_col=lon_col)
        if c.empty:
            continue

        out = pd.DataFrame(
            {
                "sid": c[sid_col].astype(str).str.strip(),
                "name": c[name_col].astype(str).str.strip() if name_col else None,
                "year": pd.to_numeric(c[season_col], errors="coerce") if season_col else None,
                "time": pd.to_datetime(c[time_col], errors="coerce", utc=True, format="mixed").dt.tz_convert(None),
                "lon": normalize_lon_180(pd.to_numeric(c[lon_col], errors="coerce").to_numpy(dtype=float)),
                "lat": pd.to_numeric(c[lat_col], errors="coerce"),
                "basin": c[basin_col].astype(str) if basin_col else None,
                "wind": _coalesce_numeric(c, wind_cols),
                "pressure": _coalesce_numeric(c, pres_cols),
            }
        )
        out = out.dropna(subset=["sid", "time", "lat", "lon"])
        if not out.empty:
            frames.append(out)

    if not frames:
        return pd.DataFrame(columns=IBTRACS_COLUMNS)
    out = pd.concat(frames, ignore_index=True)
    if season_col is None:
        out["year"] = out["time"].dt.year
    return out.sort_values("sid", kind="stable").reset_index(drop=True)


def _drop_non_data_rows(
    chunk: pd.DataFrame,
    *,
    sid_col: str,
    time_col: str,
    lat_col: str,
    lon_col: str,
) -> pd.DataFrame:
    out = chunk.copy()
    if out.empty:
        return out
    sid_u = out[sid_col].astype(str).str.strip().str.upper()
    time_v = out[time_col].astype(str).str.strip().str.upper()
    lat_v = out[lat_col].astype(str).str.strip().str.upper()
    lon_v = out[lon_col].astype(str).str.strip().str.upper()

    # Units/header lines and malformed rows.
    bad = (
        sid_u.isin({"", "SID", "STORM_ID", "YEAR"})
        | time_v.isin({"", "ISO_TIME", "TIME", "YYYY-MM-DD HH:MM:SS"})
        | lat_v.isin({"", "LAT", "DEGREES_NORTH"})
        | lon_v.isin({"", "LON", "DEGREES_EAST"})
    )
    bad = bad | sid_u.str.contains("UNITS", regex=False, na=False)
    return out.loc[~bad].copy()


def _coalesce_numeric(df: pd.DataFrame, cols: list[str]) -> pd.Series:
    """First non-missing value across `cols`, row by row."""

    vals = pd.Series(np.nan, index=df.index, dtype=float)
    for col in cols:
        num = pd.to_numeric(df[col], errors="coerce")
        vals = vals.fillna(num)
    return vals


def _missing_columns_report(missing: list[str], available: Iterable[Any]) -> ValidationReport:
    issues = [
        ValidationIssue(
            level="error",
            code="missing_column",
            message=f"IBTrACS CSV missing required column '{name}'",
            context={"column": name, "available": [str(c) for c in available]},
        )
        for name in missing
    ]
    return ValidationReport(valid=False, issues=issues, n_rows=0)
