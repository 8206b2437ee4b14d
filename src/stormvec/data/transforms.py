"""Column transforms shared by the loader and the validators."""

from __future__ import annotations

from typing import Any, Iterable

import pandas as pd

from stormvec.data.schema import TIME_PARTS, pick_column


def time_part_columns(columns: Iterable[Any]) -> dict[str, str] | None:
    """Columns holding year/month/day[/hour], or None when any date part is missing."""

    cols = list(columns)
    parts = {p: pick_column(cols, (p,)) for p in TIME_PARTS}
    if any(parts[p] is None for p in ("year", "month", "day")):
        return None
    return {p: c for p, c in parts.items() if c is not None}


def compose_time(frame: pd.DataFrame, parts: dict[str, str]) -> pd.Series:
    """Timestamp per row from its date parts; NaT where they do not form a date."""

    cols = {p: pd.to_numeric(frame[c], errors="coerce") for p, c in parts.items()}
    if "hour" not in cols:
        cols["hour"] = pd.Series(0, index=frame.index)
    return pd.to_datetime(pd.DataFrame(cols), errors="coerce")
