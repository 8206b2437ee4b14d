"""Core package types used across pipeline stages."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Sequence

import numpy as np
import pandas as pd


@dataclass(frozen=True)
class Track:
    """One storm track: points in their original (time) order."""

    track_id: str
    lon: np.ndarray
    lat: np.ndarray
    time: np.ndarray
    attributes: pd.DataFrame = field(default_factory=pd.DataFrame)

    @property
    def n_points(self) -> int:
        return int(self.lon.size)


@dataclass(frozen=True)
class GridSpec:
    """Regular lon/lat tiling anchored at the south-west corner (x0, y0).

    Cell ids are 1-based and row-major from the south-west corner: the
    first row runs west to east, then rows advance northward.
    """

    x0: float
    y0: float
    cell_size: float
    nx: int
    ny: int

    @property
    def n_cells(self) -> int:
        return int(self.nx * self.ny)

    @property
    def bounds(self) -> tuple[float, float, float, float]:
        return (
            self.x0,
            self.y0,
            self.x0 + self.nx * self.cell_size,
            self.y0 + self.ny * self.cell_size,
        )


@dataclass(frozen=True)
class ValidationIssue:
    level: str
    code: str
    message: str
    context: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ValidationReport:
    valid: bool
    issues: Sequence[ValidationIssue]
    n_rows: int


@dataclass(frozen=True)
class PipelineResult:
    glyphs: pd.DataFrame
    cells: pd.DataFrame
    segments: pd.DataFrame
    metadata: dict[str, Any]
