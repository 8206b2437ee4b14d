"""Grid aggregation: clipped segment lengths and circular-mean azimuths per cell."""

from __future__ import annotations

import logging

import geopandas as gpd
import numpy as np
import pandas as pd
import shapely

from stormvec.core.errors import EmptyGridError, UndefinedCircularMeanError
from stormvec.core.types import GridSpec
from stormvec.data.schema import CELL_COLUMNS
from stormvec.ops.grid import cell_centroids, locate_cells
from stormvec.stats.circular import DEFAULT_MIN_RESULTANT, circular_mean, mean_resultant

logger = logging.getLogger(__name__)


def clip_segments(segments: gpd.GeoDataFrame, grid: gpd.GeoDataFrame) -> pd.DataFrame:
    """Intersect every segment with every cell it crosses.

    Returns one row per (segment, cell) piece with the piece's share of the
    segment length. Shares are planar fractions in lon/lat, so the pieces of
    one segment always add up to its full length. A piece lying exactly on a
    shared cell edge is kept only for the cell that owns the edge.
    """

    cols = {"segment": pd.Series(dtype="int64"), "cell_id": pd.Series(dtype="int64"), "length": pd.Series(dtype=float)}
    if segments.empty or grid.empty:
        return pd.DataFrame(cols)

    seg_geoms = segments.geometry.to_numpy()
    cell_geoms = grid.geometry.to_numpy()
    seg_idx, cell_idx = grid.sindex.query(seg_geoms, predicate="intersects")
    if seg_idx.size == 0:
        return pd.DataFrame(cols)

    pieces = shapely.intersection(seg_geoms[seg_idx], cell_geoms[cell_idx])
    piece_len = shapely.length(pieces)
    linear = piece_len > 0.0
    seg_idx, cell_idx, pieces, piece_len = seg_idx[linear], cell_idx[linear], pieces[linear], piece_len[linear]

    cell_ids = grid["cell_id"].to_numpy()[cell_idx]
    on_edge = shapely.covered_by(pieces, shapely.boundary(cell_geoms[cell_idx]))
    if on_edge.any():
        # The same piece seen from both sides of an edge: the east/north cell
        # (the larger id) owns it, matching the half-open cell rule.
        edge = pd.DataFrame(
            {
                "segment": seg_idx[on_edge],
                "shape": shapely.to_wkb(shapely.normalize(pieces[on_edge]), hex=True),
                "cell_id": cell_ids[on_edge],
                "pos": np.flatnonzero(on_edge),
            }
        )
        owners = edge.sort_values("cell_id").drop_duplicates(["segment", "shape"], keep="last")["pos"]
        keep = ~on_edge
        keep[owners.to_numpy()] = True
        seg_idx, cell_ids, piece_len = seg_idx[keep], cell_ids[keep], piece_len[keep]

    seg_len = shapely.length(seg_geoms[seg_idx])
    total = segments["length"].to_numpy(dtype=float)[seg_idx]
    return pd.DataFrame(
        {
            "segment": seg_idx.astype("int64"),
            "cell_id": cell_ids.astype("int64"),
            "length": total * piece_len / seg_len,
        }
    )


def aggregate_lengths(pieces: pd.DataFrame) -> pd.Series:
    """Summed clipped length per cell; cells without length are absent."""

    if pieces.empty:
        return pd.Series(dtype=float, name="length").rename_axis("cell_id")
    summed = pieces.groupby("cell_id", sort=True)["length"].sum()
    return summed[summed > 0.0].rename("length")


def aggregate_azimuths(
    segments: pd.DataFrame,
    spec: GridSpec,
    min_resultant: float = DEFAULT_MIN_RESULTANT,
) -> pd.DataFrame:
    """Circular mean azimuth of the segments whose centroid lies in each cell.

    Cells where the azimuths cancel out are left out.
    """

    out_cols = ["cell_id", "azimuth", "n_segments", "resultant"]
    if segments.empty:
        return pd.DataFrame({c: pd.Series(dtype=float) for c in out_cols}).astype({"cell_id": "int64", "n_segments": "int64"})

    cell = locate_cells(spec, segments["centroid_lon"].to_numpy(), segments["centroid_lat"].to_numpy())
    frame = pd.DataFrame({"cell_id": cell, "azimuth": segments["azimuth"].to_numpy(dtype=float)})
    frame = frame.loc[frame["cell_id"] >= 0]

    rows: list[dict[str, float | int]] = []
    n_undefined = 0
    for cell_id, grp in frame.groupby("cell_id", sort=True):
        angles = grp["azimuth"].to_numpy(dtype=float)
        try:
            mean = circular_mean(angles, min_resultant=min_resultant)
        except UndefinedCircularMeanError as exc:
            n_undefined += 1
            logger.debug("Cell %d excluded: %s", int(cell_id), exc)
            continue
        rows.append(
            {
                "cell_id": int(cell_id),
                "azimuth": mean,
                "n_segments": int(angles.size),
                "resultant": mean_resultant(angles)[1],
            }
        )
    if n_undefined:
        logger.info("Excluded %d cell(s) with undefined mean azimuth", n_undefined)
    if not rows:
        return aggregate_azimuths(segments.iloc[0:0], spec)
    return pd.DataFrame(rows, columns=out_cols)


def aggregate_grid(
    segments: gpd.GeoDataFrame,
    grid: gpd.GeoDataFrame,
    spec: GridSpec,
    min_resultant: float = DEFAULT_MIN_RESULTANT,
) -> pd.DataFrame:
    """Per-cell summed length and mean azimuth, inner-joined on cell id.

    Raises EmptyGridError when no segment length falls in any cell.
    """

    lengths = aggregate_lengths(clip_segments(segments, grid))
    if lengths.empty:
        raise EmptyGridError("No grid cell intersects any segment")
    azimuths = aggregate_azimuths(segments, spec, min_resultant=min_resultant)

    cells = azimuths.merge(lengths.reset_index(), on="cell_id", how="inner")
    cells = cells.sort_values("cell_id").reset_index(drop=True)
    lon, lat = cell_centroids(spec, cells["cell_id"].to_numpy())
    cells["centroid_lon"] = lon
    cells["centroid_lat"] = lat
    dropped = len(lengths) - len(cells)
    if dropped:
        logger.info("%d cell(s) with length but no mean azimuth were dropped", dropped)
    return cells[CELL_COLUMNS]
