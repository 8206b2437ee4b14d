from __future__ import annotations

import logging

import numpy as np
import pandas as pd
import pytest

from stormvec.core.config import resolve_config
from stormvec.core.errors import InsufficientPointsError, TrackValidationError
from stormvec.tracks.builder import build_track, build_tracks, tracks_to_lines, unwrap_lon
from stormvec.tracks.loader import (
    assign_track_ids,
    canonicalize_columns,
    filter_points,
    load_track_points,
)


def _storms_table() -> pd.DataFrame:
    return pd.DataFrame(
        {
            "name": ["Amy", "Amy", "Amy", "Bob", "Bob"],
            "year": [1975, 1975, 1975, 1979, 1979],
            "month": [6, 6, 6, 7, 7],
            "day": [27, 27, 27, 11, 11],
            "hour": [0, 6, 12, 0, 6],
            "lat": [27.5, 28.5, 29.5, 22.0, 23.5],
            "long": [-79.0, -79.0, -79.0, -96.0, -97.0],
            "wind": [25, 25, 25, 25, 35],
        }
    )


def test_canonicalize_columns_renames_and_composes_time() -> None:
    frame = canonicalize_columns(_storms_table())
    assert "lon" in frame.columns and "long" not in frame.columns
    assert frame["time"].iloc[1] == pd.Timestamp("1975-06-27 06:00:00")
    assert "wind" in frame.columns


def test_canonicalize_columns_keeps_existing_time() -> None:
    raw = pd.DataFrame({"Longitude": [1.0], "Latitude": [2.0], "ISO_TIME": ["2020-01-01 00:00:00"], "SID": ["X"]})
    frame = canonicalize_columns(raw)
    assert {"lon", "lat", "time", "sid"} <= set(frame.columns)


def test_assign_track_ids_joins_key_columns() -> None:
    frame = pd.DataFrame({"name": ["Amy", "Bob"], "year": [1975.0, 1979.0], "lon": [0.0, 1.0], "lat": [0.0, 1.0]})
    out = assign_track_ids(frame, ["name", "year"])
    assert list(out["track_id"]) == ["Amy-1975", "Bob-1979"]
    assert out.columns[0] == "track_id"


def test_filter_points_by_years_and_bbox() -> None:
    frame = canonicalize_columns(_storms_table())
    assert len(filter_points(frame, years=[1979, 1980])) == 2
    assert len(filter_points(frame, bbox=[-80.0, 25.0, -70.0, 30.0])) == 3

    pacific = pd.DataFrame({"lon": [170.0, -175.0, 0.0], "lat": [10.0, 10.0, 10.0]})
    assert len(filter_points(pacific, bbox=[160.0, 0.0, -170.0, 20.0])) == 2


def test_load_track_points_assigns_ids_and_types() -> None:
    cfg = resolve_config()
    points = load_track_points(_storms_table(), cfg)
    assert list(points["track_id"].unique()) == ["Amy-1975", "Bob-1979"]
    assert pd.api.types.is_float_dtype(points["lon"])
    assert pd.api.types.is_datetime64_any_dtype(points["time"])


def test_load_track_points_fails_fast_on_malformed_input() -> None:
    cfg = resolve_config()
    raw = _storms_table()
    raw["lat"] = raw["lat"].astype(object)
    raw.loc[2, "lat"] = "north"
    with pytest.raises(TrackValidationError) as err:
        load_track_points(raw, cfg)
    assert "non_numeric_coordinate" in str(err.value)

    with pytest.raises(TrackValidationError):
        load_track_points(_storms_table().drop(columns=["long"]), cfg)


def test_load_track_points_rejects_unusable_date_parts() -> None:
    cfg = resolve_config()
    raw = _storms_table()
    raw["day"] = raw["day"].astype(object)
    raw.loc[1, "day"] = "xx"
    with pytest.raises(TrackValidationError) as err:
        load_track_points(raw, cfg)
    assert "invalid_time" in str(err.value)


def test_build_track_preserves_row_order() -> None:
    frame = pd.DataFrame(
        {
            "track_id": ["A", "A", "A"],
            "lon": [0.0, 2.0, 1.0],
            "lat": [0.0, 0.0, 0.0],
            "time": pd.to_datetime(["2000-01-01 12:00", "2000-01-01 00:00", "2000-01-01 06:00"]),
            "wind": [30, 40, 50],
        }
    )
    track = build_track("A", frame)
    np.testing.assert_array_equal(track.lon, [0.0, 2.0, 1.0])
    assert list(track.attributes.columns) == ["wind"]
    assert track.n_points == 3


def test_build_tracks_skips_short_tracks(caplog) -> None:
    frame = pd.DataFrame(
        {
            "track_id": ["A", "A", "B", "C", "C"],
            "lon": [0.0, 1.0, 5.0, 2.0, 3.0],
            "lat": [0.0, 0.0, 5.0, 1.0, 1.0],
        }
    )
    with caplog.at_level(logging.WARNING):
        tracks = build_tracks(frame)
    assert list(tracks) == ["A", "C"]
    assert "'B'" in caplog.text

    with pytest.raises(InsufficientPointsError) as err:
        build_track("B", frame.loc[frame["track_id"] == "B"])
    assert err.value.n_points == 1


def test_unwrap_lon_across_antimeridian() -> None:
    np.testing.assert_allclose(unwrap_lon(np.array([179.0, -179.0, -177.0])), [179.0, 181.0, 183.0])
    np.testing.assert_allclose(unwrap_lon(np.array([190.0, 191.0])), [-170.0, -169.0])


def test_tracks_to_lines() -> None:
    frame = pd.DataFrame({"track_id": ["A", "A", "A"], "lon": [0.0, 1.0, 1.0], "lat": [0.0, 0.0, 1.0]})
    lines = tracks_to_lines(build_tracks(frame))
    assert list(lines["track_id"]) == ["A"]
    assert float(lines.geometry.iloc[0].length) == pytest.approx(2.0)


def test_tracks_on_both_sides_of_antimeridian_share_one_window() -> None:
    frame = pd.DataFrame(
        {
            "track_id": ["E", "E", "W", "W", "G", "G"],
            "lon": [179.5, -179.5, -179.6, -179.2, 0.0, 1.0],
            "lat": [10.2, 10.2, 10.4, 10.4, 0.0, 0.0],
        }
    )
    tracks = build_tracks(frame.iloc[:4])
    lon = np.concatenate([t.lon for t in tracks.values()])
    assert float(lon.max() - lon.min()) < 2.0
    np.testing.assert_allclose(np.diff(tracks["E"].lon), [1.0])

    far = build_tracks(frame.loc[frame["track_id"] == "G"])
    np.testing.assert_array_equal(far["G"].lon, [0.0, 1.0])
