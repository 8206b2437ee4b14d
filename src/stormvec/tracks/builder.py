"""Track builder: grouped fold from a point table to ordered tracks."""

from __future__ import annotations

import logging
from dataclasses import replace

import geopandas as gpd
import numpy as np
import pandas as pd
import shapely

from stormvec.core.errors import InsufficientPointsError, UndefinedCircularMeanError
from stormvec.core.types import Track
from stormvec.stats.circular import circular_mean

logger = logging.getLogger(__name__)

_CORE_COLUMNS = {"track_id", "lon", "lat", "time"}


def unwrap_lon(lon: np.ndarray) -> np.ndarray:
    """Remove 360-degree jumps so consecutive longitudes stay continuous.

    The first point is kept in [-180, 180); later points may leave that
    range when a track crosses the antimeridian.
    """

    arr = np.asarray(lon, dtype=float)
    if arr.size == 0:
        return arr
    arr = np.rad2deg(np.unwrap(np.deg2rad(arr)))
    shift = (((arr[0] + 180.0) % 360.0) - 180.0) - arr[0]
    return arr + shift


def align_longitudes(tracks: dict[str, Track]) -> dict[str, Track]:
    """Shift whole tracks by multiples of 360 into one shared longitude window.

    The window is centred on the circular mean of all track longitudes, so
    tracks on both sides of the antimeridian end up next to each other. Each
    track is placed by its mean longitude and keeps its internal continuity.
    """

    if not tracks:
        return tracks
    all_lon = np.concatenate([t.lon for t in tracks.values()])
    try:
        centre = circular_mean(all_lon)
    except UndefinedCircularMeanError:
        centre = 0.0
    if centre >= 180.0:
        centre -= 360.0

    out: dict[str, Track] = {}
    for track_id, track in tracks.items():
        mean_lon = float(np.mean(track.lon))
        turns = np.round((centre - mean_lon) / 360.0)
        out[track_id] = track if turns == 0 else replace(track, lon=track.lon + 360.0 * turns)
    return out


def build_track(track_id: str, points: pd.DataFrame, min_points: int = 2) -> Track:
    """Build one track from its rows, keeping the row order as given."""

    if len(points) < int(min_points):
        raise InsufficientPointsError(track_id, len(points), min_points)
    time = (
        points["time"].to_numpy()
        if "time" in points.columns
        else np.full(len(points), np.datetime64("NaT"), dtype="datetime64[ns]")
    )
    attrs = points.drop(columns=[c for c in points.columns if c in _CORE_COLUMNS]).reset_index(drop=True)
    return Track(
        track_id=str(track_id),
        lon=unwrap_lon(points["lon"].to_numpy(dtype=float)),
        lat=points["lat"].to_numpy(dtype=float),
        time=time,
        attributes=attrs,
    )


def build_tracks(points: pd.DataFrame, min_points: int = 2) -> dict[str, Track]:
    """Group points by `track_id` (first-appearance order) into tracks.

    Tracks with fewer than `min_points` points are skipped with a warning.
    """

    tracks: dict[str, Track] = {}
    if points.empty:
        return tracks
    for track_id, grp in points.groupby("track_id", sort=False):
        try:
            tracks[str(track_id)] = build_track(str(track_id), grp, min_points=min_points)
        except InsufficientPointsError as exc:
            logger.warning("Skipping track: %s", exc)
    logger.info("Built %d tracks", len(tracks))
    return align_longitudes(tracks)


def tracks_to_lines(tracks: dict[str, Track]) -> gpd.GeoDataFrame:
    """One LineString per track in the working lon/lat CRS."""

    ids = list(tracks)
    geoms = [shapely.linestrings(np.column_stack([t.lon, t.lat])) for t in tracks.values()]
    return gpd.GeoDataFrame(
        {
            "track_id": ids,
            "n_points": [t.n_points for t in tracks.values()],
        },
        geometry=gpd.GeoSeries(geoms, crs="EPSG:4326"),
    )
