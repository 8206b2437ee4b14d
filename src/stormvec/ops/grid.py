"""Regular lon/lat grid: construction and point-to-cell location.

Cells are half-open, [x, x + size) x [y, y + size): a point on a shared
edge belongs to the cell to its east (north for horizontal edges).
"""

from __future__ import annotations

from typing import Any, Sequence

import geopandas as gpd
import numpy as np
import shapely

from stormvec.core.errors import EmptyGridError
from stormvec.core.types import GridSpec


def _cell_index(values: Any, start: float, size: float) -> np.ndarray:
    return np.floor((np.asarray(values, dtype=float) - start) / size).astype("int64")


def grid_spec_for_bounds(
    bounds: Sequence[float],
    cell_size: float,
    origin: Sequence[float] | None = None,
) -> GridSpec:
    """Smallest grid of `cell_size` cells whose half-open cells hold `bounds`.

    `bounds` is (xmin, ymin, xmax, ymax). Without `origin` the grid starts at
    (xmin, ymin); with it, cell edges fall on origin + k * cell_size.
    """

    size = float(cell_size)
    if not size > 0.0:
        raise ValueError(f"cell_size must be positive, got {cell_size!r}")
    xmin, ymin, xmax, ymax = (float(v) for v in bounds)
    if not np.all(np.isfinite([xmin, ymin, xmax, ymax])) or xmin > xmax or ymin > ymax:
        raise EmptyGridError(f"Cannot build a grid over empty extent {tuple(bounds)}")

    if origin is None:
        x0, y0 = xmin, ymin
    else:
        ox, oy = (float(v) for v in origin)
        x0 = ox + float(_cell_index(xmin, ox, size)) * size
        y0 = oy + float(_cell_index(ymin, oy, size)) * size
    nx = int(_cell_index(xmax, x0, size)) + 1
    ny = int(_cell_index(ymax, y0, size)) + 1
    return GridSpec(x0=x0, y0=y0, cell_size=size, nx=nx, ny=ny)


def make_grid(spec: GridSpec) -> gpd.GeoDataFrame:
    """Polygon per cell with its 1-based row-major id."""

    iy, ix = np.divmod(np.arange(spec.n_cells, dtype="int64"), spec.nx)
    xmin = spec.x0 + ix * spec.cell_size
    ymin = spec.y0 + iy * spec.cell_size
    boxes = shapely.box(xmin, ymin, xmin + spec.cell_size, ymin + spec.cell_size)
    return gpd.GeoDataFrame(
        {"cell_id": ix + iy * spec.nx + 1, "ix": ix, "iy": iy},
        geometry=gpd.GeoSeries(boxes, crs="EPSG:4326"),
    )


def locate_cells(spec: GridSpec, lon: Any, lat: Any) -> np.ndarray:
    """Cell id for each point, -1 outside the grid."""

    ix = _cell_index(lon, spec.x0, spec.cell_size)
    iy = _cell_index(lat, spec.y0, spec.cell_size)
    inside = (ix >= 0) & (ix < spec.nx) & (iy >= 0) & (iy < spec.ny)
    return np.where(inside, ix + iy * spec.nx + 1, -1)


def cell_centroids(spec: GridSpec, cell_ids: Any) -> tuple[np.ndarray, np.ndarray]:
    iy, ix = np.divmod(np.asarray(cell_ids, dtype="int64") - 1, spec.nx)
    lon = spec.x0 + (ix + 0.5) * spec.cell_size
    lat = spec.y0 + (iy + 0.5) * spec.cell_size
    return lon, lat
