"""Segment stage: consecutive point pairs with rhumb azimuth and length."""

from __future__ import annotations

import logging

import geopandas as gpd
import numpy as np
import pandas as pd
import shapely

from stormvec.core.errors import DegenerateSegmentError
from stormvec.core.types import Track
from stormvec.data.schema import SEGMENT_COLUMNS
from stormvec.ops.rhumb import EARTH_RADIUS_M, rhumb_bearing, rhumb_distance

logger = logging.getLogger(__name__)


def empty_segments() -> gpd.GeoDataFrame:
    frame = pd.DataFrame({c: pd.Series(dtype=float) for c in SEGMENT_COLUMNS})
    frame["track_id"] = frame["track_id"].astype(object)
    frame["seq"] = frame["seq"].astype("int64")
    return gpd.GeoDataFrame(frame, geometry=gpd.GeoSeries([], crs="EPSG:4326"))


def compute_segments(
    tracks: dict[str, Track],
    *,
    radius_m: float = EARTH_RADIUS_M,
    length_scale: float = 1_000.0,
    drop_degenerate: bool = True,
) -> gpd.GeoDataFrame:
    """Split tracks into segments with azimuth, length and centroid.

    Lengths are rhumb distances divided by `length_scale` (meters per output
    unit). The centroid is the arithmetic mean of the endpoint coordinates.
    Segments whose endpoints coincide have no azimuth; they are dropped, or
    reported as DegenerateSegmentError when `drop_degenerate` is False.
    """

    usable = [t for t in tracks.values() if t.n_points >= 2]
    if not usable:
        return empty_segments()

    track_id = np.concatenate([np.full(t.n_points - 1, t.track_id, dtype=object) for t in usable])
    seq = np.concatenate([np.arange(t.n_points - 1, dtype="int64") for t in usable])
    lon0 = np.concatenate([t.lon[:-1] for t in usable])
    lat0 = np.concatenate([t.lat[:-1] for t in usable])
    lon1 = np.concatenate([t.lon[1:] for t in usable])
    lat1 = np.concatenate([t.lat[1:] for t in usable])

    azimuth = rhumb_bearing(lon0, lat0, lon1, lat1)
    length = rhumb_distance(lon0, lat0, lon1, lat1, radius=radius_m) / float(length_scale)

    degenerate = ~np.isfinite(azimuth)
    if degenerate.any():
        if not drop_degenerate:
            raise DegenerateSegmentError(int(degenerate.sum()), sorted(set(track_id[degenerate])))
        logger.info("Dropped %d zero-length segment(s)", int(degenerate.sum()))
        keep = ~degenerate
        track_id, seq = track_id[keep], seq[keep]
        lon0, lat0, lon1, lat1 = lon0[keep], lat0[keep], lon1[keep], lat1[keep]
        azimuth, length = azimuth[keep], length[keep]

    coords = np.stack([np.column_stack([lon0, lat0]), np.column_stack([lon1, lat1])], axis=1)
    geometry = shapely.linestrings(coords) if len(coords) else []
    frame = pd.DataFrame(
        {
            "track_id": track_id,
            "seq": seq,
            "lon0": lon0,
            "lat0": lat0,
            "lon1": lon1,
            "lat1": lat1,
            "azimuth": azimuth,
            "length": length,
            "centroid_lon": (lon0 + lon1) / 2.0,
            "centroid_lat": (lat0 + lat1) / 2.0,
        }
    )
    return gpd.GeoDataFrame(frame, geometry=gpd.GeoSeries(geometry, crs="EPSG:4326"))
