from __future__ import annotations

import numpy as np
import pytest

from stormvec.ops.rhumb import (
    EARTH_RADIUS_M,
    normalize_lon_180,
    rhumb_bearing,
    rhumb_destination,
    rhumb_distance,
)

ONE_DEGREE_M = EARTH_RADIUS_M * np.pi / 180.0


def _angdiff(a: float, b: float) -> float:
    return abs((a - b + 180.0) % 360.0 - 180.0)


def test_cardinal_bearings() -> None:
    lon2 = np.array([0.0, 1.0, 0.0, -1.0])
    lat2 = np.array([1.0, 0.0, -1.0, 0.0])
    out = rhumb_bearing(0.0, 0.0, lon2, lat2)
    np.testing.assert_allclose(out, [0.0, 90.0, 180.0, 270.0], atol=1e-9)


def test_identical_points_have_no_bearing() -> None:
    out = rhumb_bearing([10.0, 10.0], [20.0, 20.0], [10.0, 10.5], [20.0, 20.0])
    assert np.isnan(out[0])
    assert out[1] == pytest.approx(90.0)
    assert float(rhumb_distance(10.0, 20.0, 10.0, 20.0)) == 0.0


def test_distance_one_degree_on_meridian_and_equator() -> None:
    assert float(rhumb_distance(0.0, 0.0, 0.0, 1.0)) == pytest.approx(ONE_DEGREE_M, rel=1e-12)
    assert float(rhumb_distance(0.0, 0.0, 1.0, 0.0)) == pytest.approx(ONE_DEGREE_M, rel=1e-12)


def test_antimeridian_takes_short_way() -> None:
    assert float(rhumb_bearing(179.0, 0.0, -179.0, 0.0)) == pytest.approx(90.0)
    assert float(rhumb_distance(179.0, 0.0, -179.0, 0.0)) == pytest.approx(2.0 * ONE_DEGREE_M, rel=1e-9)


def test_parallel_near_pole_is_finite() -> None:
    assert float(rhumb_bearing(0.0, 89.9, 10.0, 89.9)) == pytest.approx(90.0)
    expected = np.cos(np.deg2rad(89.9)) * np.deg2rad(10.0) * EARTH_RADIUS_M
    assert float(rhumb_distance(0.0, 89.9, 10.0, 89.9)) == pytest.approx(expected, rel=1e-9)


@pytest.mark.parametrize("bearing", [0.0, 45.0, 90.0, 135.0, 180.0, 200.0, 270.0, 315.0])
@pytest.mark.parametrize("distance", [10_000.0, 500_000.0])
def test_destination_bearing_round_trip(bearing: float, distance: float) -> None:
    lon, lat = rhumb_destination(-60.0, 25.0, bearing, distance)
    back = float(rhumb_bearing(-60.0, 25.0, lon, lat))
    assert _angdiff(back, bearing) < 1e-6
    assert float(rhumb_distance(-60.0, 25.0, lon, lat)) == pytest.approx(distance, rel=1e-9)


def test_destination_longitude_normalisation() -> None:
    lon, lat = rhumb_destination(179.5, 0.0, 90.0, ONE_DEGREE_M)
    assert float(lon) == pytest.approx(-179.5)
    assert float(lat) == pytest.approx(0.0, abs=1e-9)

    lon, _ = rhumb_destination(179.5, 0.0, 90.0, ONE_DEGREE_M, normalize=False)
    assert float(lon) == pytest.approx(180.5)


def test_normalize_lon_180() -> None:
    assert normalize_lon_180(190.0) == pytest.approx(-170.0)
    assert normalize_lon_180(180.0) == pytest.approx(-180.0)
    np.testing.assert_allclose(normalize_lon_180(np.array([-190.0, 10.0, 370.0])), [170.0, 10.0, 10.0])
