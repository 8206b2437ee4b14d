"""Circular statistics for compass bearings."""

from __future__ import annotations

from typing import Any

import numpy as np

from stormvec.core.errors import UndefinedCircularMeanError

DEFAULT_MIN_RESULTANT = 1e-9


def mean_resultant(angles_deg: Any) -> tuple[float, float]:
    """Mean direction and mean resultant length of compass angles.

    Each bearing becomes the unit vector (east, north) = (sin a, cos a), so
    the returned direction is again a compass bearing in [0, 360). The
    resultant length lies in [0, 1]; 0 means the vectors cancel exactly.
    Non-finite angles are ignored. Returns (nan, 0.0) for no angles.
    """

    arr = np.asarray(angles_deg, dtype=float).ravel()
    arr = arr[np.isfinite(arr)]
    if arr.size == 0:
        return float("nan"), 0.0
    rad = np.deg2rad(arr)
    east = float(np.sin(rad).sum())
    north = float(np.cos(rad).sum())
    direction = float(np.rad2deg(np.arctan2(east, north)) % 360.0)
    resultant = float(np.hypot(east, north) / arr.size)
    return direction, resultant


def circular_mean(angles_deg: Any, min_resultant: float = DEFAULT_MIN_RESULTANT) -> float:
    """Circular mean of compass bearings in degrees.

    Raises UndefinedCircularMeanError when the mean resultant length is below
    `min_resultant` (including the empty case).
    """

    arr = np.asarray(angles_deg, dtype=float).ravel()
    direction, resultant = mean_resultant(arr)
    if resultant < float(min_resultant):
        raise UndefinedCircularMeanError(resultant, int(np.isfinite(arr).sum()))
    # A tiny negative angle wraps to exactly 360.0 under % 360.
    return 0.0 if direction >= 360.0 else direction
