from __future__ import annotations

import logging

import numpy as np
import pandas as pd
import pytest

from stormvec.core.errors import EmptyGridError
from stormvec.core.types import GridSpec
from stormvec.ops.aggregate import (
    aggregate_azimuths,
    aggregate_grid,
    aggregate_lengths,
    clip_segments,
)
from stormvec.ops.grid import make_grid
from stormvec.ops.segments import compute_segments
from stormvec.tracks.builder import build_tracks


def _segments(coords: list[tuple[float, float]], track_id: str = "A"):
    frame = pd.DataFrame(coords, columns=["lon", "lat"])
    frame.insert(0, "track_id", track_id)
    return compute_segments(build_tracks(frame))


def _angdiff(a: float, b: float) -> float:
    return abs((a - b + 180.0) % 360.0 - 180.0)


@pytest.mark.parametrize("end_lon", [0.8, 1.5, 2.5])
def test_clipped_lengths_add_up_to_segment_length(end_lon: float) -> None:
    seg = _segments([(0.2, 0.3), (end_lon, 0.7)])
    spec = GridSpec(x0=0.0, y0=0.0, cell_size=1.0, nx=3, ny=1)
    lengths = aggregate_lengths(clip_segments(seg, make_grid(spec)))
    assert len(lengths) == int(np.floor(end_lon)) + 1
    assert float(lengths.sum()) == pytest.approx(float(seg["length"].sum()), rel=1e-12)


def test_piece_on_shared_edge_counts_once_for_north_cell() -> None:
    seg = _segments([(0.2, 1.0), (0.8, 1.0)])
    spec = GridSpec(x0=0.0, y0=0.0, cell_size=1.0, nx=1, ny=2)
    pieces = clip_segments(seg, make_grid(spec))
    assert pieces["cell_id"].tolist() == [2]
    assert float(pieces["length"].sum()) == pytest.approx(float(seg["length"].iloc[0]))


def test_mean_azimuth_wraps_around_north() -> None:
    seg = pd.DataFrame({"centroid_lon": [0.5, 0.6], "centroid_lat": [0.5, 0.5], "azimuth": [2.0, 359.0]})
    spec = GridSpec(x0=0.0, y0=0.0, cell_size=1.0, nx=1, ny=1)
    out = aggregate_azimuths(seg, spec)
    assert out["cell_id"].tolist() == [1]
    assert _angdiff(float(out["azimuth"].iloc[0]), 0.5) < 1e-9
    assert int(out["n_segments"].iloc[0]) == 2


def test_cancelling_azimuths_exclude_the_cell(caplog) -> None:
    seg = pd.DataFrame(
        {
            "centroid_lon": [0.5, 0.5, 0.5, 0.5, 1.5],
            "centroid_lat": [0.5, 0.5, 0.5, 0.5, 0.5],
            "azimuth": [0.0, 90.0, 180.0, 270.0, 45.0],
        }
    )
    spec = GridSpec(x0=0.0, y0=0.0, cell_size=1.0, nx=2, ny=1)
    with caplog.at_level(logging.INFO):
        out = aggregate_azimuths(seg, spec)
    assert out["cell_id"].tolist() == [2]
    assert "undefined mean azimuth" in caplog.text


def test_cell_with_length_but_no_centroid_is_dropped() -> None:
    seg = _segments([(0.5, 0.5), (1.5, 0.5)])
    spec = GridSpec(x0=0.0, y0=0.0, cell_size=1.0, nx=2, ny=1)
    cells = aggregate_grid(seg, make_grid(spec), spec)
    assert cells["cell_id"].tolist() == [2]
    assert float(cells["length"].iloc[0]) == pytest.approx(float(seg["length"].iloc[0]) / 2.0)
    assert (float(cells["centroid_lon"].iloc[0]), float(cells["centroid_lat"].iloc[0])) == (1.5, 0.5)
    assert _angdiff(float(cells["azimuth"].iloc[0]), 90.0) < 1e-9


def test_grid_without_segments_raises() -> None:
    seg = _segments([(0.5, 0.5), (1.5, 0.5)])
    spec = GridSpec(x0=50.0, y0=50.0, cell_size=1.0, nx=2, ny=2)
    with pytest.raises(EmptyGridError):
        aggregate_grid(seg, make_grid(spec), spec)
