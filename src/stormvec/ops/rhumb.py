"""Rhumb-line (loxodrome) formulas on a spherical earth.

All functions are vectorised over numpy arrays and take degrees. Bearings
follow the compass convention: 0 = north, increasing clockwise, in [0, 360).
Distances are returned in the unit of `radius` (meters by default).
"""

from __future__ import annotations

from typing import Any

import numpy as np

EARTH_RADIUS_M = 6_378_137.0

_PSI_EPS = 1e-12
_LAT_LIMIT = np.pi / 2.0 - 1e-12


def normalize_lon_180(values: Any) -> Any:
    arr = np.asarray(values, dtype=float)
    wrapped = ((arr + 180.0) % 360.0) - 180.0
    if np.isscalar(values):
        return float(wrapped.item())
    return wrapped


def _wrap_pi(rad: np.ndarray) -> np.ndarray:
    return (rad + np.pi) % (2.0 * np.pi) - np.pi


def _stretched_lat(phi: np.ndarray) -> np.ndarray:
    # Mercator "isometric latitude"; clipped so the poles stay finite.
    phi = np.clip(phi, -_LAT_LIMIT, _LAT_LIMIT)
    return np.log(np.tan(np.pi / 4.0 + phi / 2.0))


def _q(dphi: np.ndarray, dpsi: np.ndarray, phi1: np.ndarray) -> np.ndarray:
    # E-W lines have dpsi == 0, where dphi/dpsi degenerates to cos(phi).
    flat = np.abs(dpsi) <= _PSI_EPS
    safe = np.where(flat, 1.0, dpsi)
    return np.where(flat, np.cos(phi1), dphi / safe)


def rhumb_bearing(lon1: Any, lat1: Any, lon2: Any, lat2: Any) -> np.ndarray:
    """Constant bearing from point 1 to point 2; NaN where the points coincide."""

    lam1, phi1 = np.deg2rad(np.asarray(lon1, dtype=float)), np.deg2rad(np.asarray(lat1, dtype=float))
    lam2, phi2 = np.deg2rad(np.asarray(lon2, dtype=float)), np.deg2rad(np.asarray(lat2, dtype=float))
    dlam = _wrap_pi(lam2 - lam1)
    dpsi = _stretched_lat(phi2) - _stretched_lat(phi1)
    theta = np.rad2deg(np.arctan2(dlam, dpsi)) % 360.0
    same = (dlam == 0.0) & (phi2 == phi1)
    return np.where(same, np.nan, theta)


def rhumb_distance(lon1: Any, lat1: Any, lon2: Any, lat2: Any, radius: float = EARTH_RADIUS_M) -> np.ndarray:
    """Length of the rhumb line between two points."""

    lam1, phi1 = np.deg2rad(np.asarray(lon1, dtype=float)), np.deg2rad(np.asarray(lat1, dtype=float))
    lam2, phi2 = np.deg2rad(np.asarray(lon2, dtype=float)), np.deg2rad(np.asarray(lat2, dtype=float))
    dphi = phi2 - phi1
    dlam = _wrap_pi(lam2 - lam1)
    dpsi = _stretched_lat(phi2) - _stretched_lat(phi1)
    q = _q(dphi, dpsi, phi1)
    return np.sqrt(dphi * dphi + q * q * dlam * dlam) * float(radius)


def rhumb_destination(
    lon: Any,
    lat: Any,
    bearing: Any,
    distance: Any,
    radius: float = EARTH_RADIUS_M,
    *,
    normalize: bool = True,
) -> tuple[np.ndarray, np.ndarray]:
    """Point reached by travelling `distance` along a constant `bearing`.

    With `normalize=False` the returned longitude is left continuous with the
    start longitude (it may leave [-180, 180)).
    """

    lam1 = np.deg2rad(np.asarray(lon, dtype=float))
    phi1 = np.deg2rad(np.asarray(lat, dtype=float))
    theta = np.deg2rad(np.asarray(bearing, dtype=float))
    delta = np.asarray(distance, dtype=float) / float(radius)

    dphi = delta * np.cos(theta)
    phi2 = phi1 + dphi
    # Past a pole the path comes back down the other side.
    over = np.abs(phi2) > np.pi / 2.0
    phi2 = np.where(over, np.sign(phi2) * np.pi - phi2, phi2)

    dpsi = _stretched_lat(phi2) - _stretched_lat(phi1)
    q = _q(dphi, dpsi, phi1)
    dlam = delta * np.sin(theta) / q

    lon2 = np.rad2deg(lam1 + dlam)
    if normalize:
        lon2 = normalize_lon_180(lon2)
    return np.asarray(lon2, dtype=float), np.rad2deg(phi2)
