"""Canonical column names and input aliases."""

from __future__ import annotations

from typing import Any, Iterable

REQUIRED_POINT_COLUMNS = ["lon", "lat"]

COLUMN_ALIASES: dict[str, tuple[str, ...]] = {
    "lon": ("lon", "long", "longitude", "lon0"),
    "lat": ("lat", "latitude", "lat0"),
    "time": ("time", "time_utc", "iso_time", "timestamp", "datetime"),
    "name": ("name", "storm_name"),
    "year": ("year", "season"),
    "sid": ("sid", "storm_id"),
}

# Parts used to compose `time` when the table has no timestamp column.
TIME_PARTS = ("year", "month", "day", "hour")

SEGMENT_COLUMNS = [
    "track_id",
    "seq",
    "lon0",
    "lat0",
    "lon1",
    "lat1",
    "azimuth",
    "length",
    "centroid_lon",
    "centroid_lat",
]

CELL_COLUMNS = [
    "cell_id",
    "centroid_lon",
    "centroid_lat",
    "length",
    "azimuth",
    "n_segments",
    "resultant",
]

GLYPH_COLUMNS = [
    "cell_id",
    "lon0",
    "lat0",
    "lon1",
    "lat1",
    "length",
    "display_length",
    "azimuth",
    "azimuth_bucket",
]


def pick_column(columns: Iterable[Any], candidates: tuple[str, ...] | list[str]) -> str | None:
    """Return the first column matching one of `candidates`, case-insensitively."""

    lookup = {str(c).lower(): str(c) for c in columns}
    for c in candidates:
        k = str(c).lower()
        if k in lookup:
            return lookup[k]
    return None
