"""Vector field projection: one arrow glyph per aggregated cell."""

from __future__ import annotations

from typing import Any

import geopandas as gpd
import numpy as np
import pandas as pd
import shapely

from stormvec.data.schema import GLYPH_COLUMNS
from stormvec.ops.rhumb import EARTH_RADIUS_M, normalize_lon_180, rhumb_destination


def rescale(values: Any, lo: float, hi: float) -> np.ndarray:
    """Min-max rescale into [lo, hi]; a constant input maps to the midpoint."""

    arr = np.asarray(values, dtype=float)
    if arr.size == 0:
        return arr
    vmin, vmax = float(np.min(arr)), float(np.max(arr))
    if vmax - vmin <= 0.0:
        return np.full(arr.shape, (float(lo) + float(hi)) / 2.0)
    return float(lo) + (arr - vmin) / (vmax - vmin) * (float(hi) - float(lo))


def azimuth_bucket(azimuth: Any, width: float) -> np.ndarray:
    """Index of the fixed-width bin holding each azimuth; bin 0 starts at north."""

    w = float(width)
    if not 0.0 < w <= 360.0:
        raise ValueError(f"bucket width must be in (0, 360], got {width!r}")
    n_bins = int(np.ceil(360.0 / w))
    idx = np.floor(np.mod(np.asarray(azimuth, dtype=float), 360.0) / w).astype("int64")
    return np.minimum(idx, n_bins - 1)


def empty_glyphs() -> pd.DataFrame:
    frame = pd.DataFrame({c: pd.Series(dtype=float) for c in GLYPH_COLUMNS})
    return frame.astype({"cell_id": "int64", "azimuth_bucket": "int64"})


def project_vectors(
    cells: pd.DataFrame,
    *,
    min_len: float,
    max_len: float,
    bucket_width: float,
    radius_m: float = EARTH_RADIUS_M,
    length_scale: float = 1_000.0,
) -> pd.DataFrame:
    """Arrow from each cell centroid along its mean azimuth.

    Summed lengths are rescaled over the whole batch into [min_len, max_len]
    (output length units, `length_scale` meters each) and the arrow tip is
    the rhumb destination at that distance. `length` keeps the unscaled sum.
    `lon0` is reported in [-180, 180); `lon1` stays continuous with it, so an
    arrow crossing the antimeridian has `lon1` just outside that range.
    """

    if cells.empty:
        return empty_glyphs()

    display = rescale(cells["length"].to_numpy(dtype=float), min_len, max_len)
    lon0 = cells["centroid_lon"].to_numpy(dtype=float)
    lat0 = cells["centroid_lat"].to_numpy(dtype=float)
    azimuth = cells["azimuth"].to_numpy(dtype=float)
    lon1, lat1 = rhumb_destination(lon0, lat0, azimuth, display * float(length_scale), radius=radius_m, normalize=False)
    shift = normalize_lon_180(lon0) - lon0
    lon0, lon1 = lon0 + shift, lon1 + shift

    return pd.DataFrame(
        {
            "cell_id": cells["cell_id"].to_numpy(dtype="int64"),
            "lon0": lon0,
            "lat0": lat0,
            "lon1": lon1,
            "lat1": lat1,
            "length": cells["length"].to_numpy(dtype=float),
            "display_length": display,
            "azimuth": azimuth,
            "azimuth_bucket": azimuth_bucket(azimuth, bucket_width),
        },
        columns=GLYPH_COLUMNS,
    )


def glyphs_to_geodataframe(glyphs: pd.DataFrame) -> gpd.GeoDataFrame:
    """Glyph table with an origin-to-tip LineString per row."""

    coords = np.stack(
        [
            glyphs[["lon0", "lat0"]].to_numpy(dtype=float),
            glyphs[["lon1", "lat1"]].to_numpy(dtype=float),
        ],
        axis=1,
    )
    geometry = shapely.linestrings(coords) if len(coords) else []
    return gpd.GeoDataFrame(glyphs.copy(), geometry=gpd.GeoSeries(geometry, index=glyphs.index, crs="EPSG:4326"))
