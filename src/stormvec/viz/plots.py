"""Quick-look rendering of glyph tables."""

from __future__ import annotations

from pathlib import Path

import geopandas as gpd
import matplotlib.pyplot as plt
import numpy as np
import pandas as pd

from stormvec.ops.vectors import rescale


def plot_vector_field(
    glyphs: pd.DataFrame,
    out_path: str | Path,
    tracks: gpd.GeoDataFrame | None = None,
    bucket_width: float = 30.0,
) -> Path:
    p = Path(out_path)
    p.parent.mkdir(parents=True, exist_ok=True)

    fig, ax = plt.subplots(figsize=(8, 6))
    if tracks is not None and not tracks.empty:
        tracks.plot(ax=ax, color="0.75", linewidth=0.6, zorder=1)

    if glyphs.empty:
        ax.text(0.5, 0.5, "No vectors", ha="center", va="center", transform=ax.transAxes)
    else:
        n_bins = int(np.ceil(360.0 / float(bucket_width)))
        cmap = plt.get_cmap("twilight", n_bins)
        widths = rescale(glyphs["length"].to_numpy(dtype=float), 0.6, 3.0)
        for row, width in zip(glyphs.itertuples(index=False), widths):
            ax.annotate(
                "",
                xy=(row.lon1, row.lat1),
                xytext=(row.lon0, row.lat0),
                arrowprops={
                    "arrowstyle": "-|>",
                    "color": cmap(int(row.azimuth_bucket)),
                    "linewidth": float(width),
                },
                zorder=2,
            )
        ax.update_datalim(glyphs[["lon0", "lat0"]].to_numpy(dtype=float))
        ax.update_datalim(glyphs[["lon1", "lat1"]].to_numpy(dtype=float))
        ax.autoscale_view()

    ax.set_xlabel("longitude")
    ax.set_ylabel("latitude")
    ax.set_title("Mean storm motion per grid cell")
    ax.set_aspect("equal", adjustable="datalim")
    ax.grid(alpha=0.3)
    fig.tight_layout()
    fig.savefig(p, dpi=140)
    plt.close(fig)
    return p
