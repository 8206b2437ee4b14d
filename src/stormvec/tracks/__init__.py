"""Track loading and construction."""

from stormvec.tracks.builder import build_track, build_tracks, tracks_to_lines, unwrap_lon
from stormvec.tracks.loader import (
    assign_track_ids,
    canonicalize_columns,
    filter_points,
    load_track_points,
)

__all__ = [
    "assign_track_ids",
    "build_track",
    "build_tracks",
    "canonicalize_columns",
    "filter_points",
    "load_track_points",
    "tracks_to_lines",
    "unwrap_lon",
]
