"""Load-time validation for canonical point tables."""

from __future__ import annotations

from typing import Any

import numpy as np
import pandas as pd

from stormvec.core.errors import TrackValidationError
from stormvec.core.types import ValidationIssue, ValidationReport
from stormvec.data.schema import REQUIRED_POINT_COLUMNS
from stormvec.data.transforms import compose_time, time_part_columns


def validate_points(points: pd.DataFrame, key: list[str]) -> ValidationReport:
    """Check a canonical point table; see `canonicalize_columns` for the layout."""

    issues: list[ValidationIssue] = []

    missing = [c for c in [*REQUIRED_POINT_COLUMNS, *key] if c not in points.columns]
    for col in missing:
        issues.append(
            ValidationIssue(
                level="error",
                code="missing_column",
                message=f"Point table missing required column '{col}'",
                context={"column": col, "available": [str(c) for c in points.columns]},
            )
        )
    if missing:
        return ValidationReport(valid=False, issues=issues, n_rows=int(len(points)))

    if points.empty:
        issues.append(
            ValidationIssue(level="warning", code="empty_table", message="Point table has no rows", context={})
        )
        return ValidationReport(valid=True, issues=issues, n_rows=0)

    issues.extend(_validate_coordinates(points))
    issues.extend(_validate_key(points, key))
    issues.extend(_validate_time(points))
    issues.extend(_validate_time_parts(points))

    has_error = any(issue.level == "error" for issue in issues)
    return ValidationReport(valid=not has_error, issues=issues, n_rows=int(len(points)))


def require_valid(report: ValidationReport) -> ValidationReport:
    if not report.valid:
        raise TrackValidationError(report)
    return report


def _validate_coordinates(points: pd.DataFrame) -> list[ValidationIssue]:
    issues: list[ValidationIssue] = []
    limits = {"lon": 360.0, "lat": 90.0}
    for col, limit in limits.items():
        raw = points[col]
        num = pd.to_numeric(raw, errors="coerce")
        n_missing = int(raw.isna().sum())
        n_bad = int((num.isna() & raw.notna()).sum())
        if n_missing:
            issues.append(
                ValidationIssue(
                    level="error",
                    code="missing_coordinate",
                    message=f"Column '{col}' has {n_missing} missing value(s)",
                    context={"column": col, "rows": _first_rows(raw.isna())},
                )
            )
        if n_bad:
            issues.append(
                ValidationIssue(
                    level="error",
                    code="non_numeric_coordinate",
                    message=f"Column '{col}' has {n_bad} non-numeric value(s)",
                    context={"column": col, "rows": _first_rows(num.isna() & raw.notna())},
                )
            )
        vals = num.to_numpy(dtype=float)
        out_of_range = np.isinf(vals) | (np.abs(np.nan_to_num(vals)) > limit)
        if out_of_range.any():
            issues.append(
                ValidationIssue(
                    level="error",
                    code="coordinate_out_of_range",
                    message=f"Column '{col}' has {int(out_of_range.sum())} value(s) outside [-{limit:g}, {limit:g}]",
                    context={"column": col, "rows": _first_rows(pd.Series(out_of_range, index=points.index))},
                )
            )
    return issues


def _validate_key(points: pd.DataFrame, key: list[str]) -> list[ValidationIssue]:
    issues: list[ValidationIssue] = []
    for col in key:
        nulls = points[col].isna()
        if nulls.any():
            issues.append(
                ValidationIssue(
                    level="error",
                    code="missing_track_key",
                    message=f"Track key column '{col}' has {int(nulls.sum())} missing value(s)",
                    context={"column": col, "rows": _first_rows(nulls)},
                )
            )
    if issues:
        return issues

    # A key that reappears after another track started usually means two
    # storms share a name and year; their points would be merged.
    ids = points[key].astype(str).agg("-".join, axis=1)
    starts = ids.ne(ids.shift())
    runs = ids[starts].value_counts()
    split = sorted(runs[runs > 1].index.tolist())
    if split:
        issues.append(
            ValidationIssue(
                level="warning",
                code="track_not_contiguous",
                message=f"{len(split)} track id(s) appear in non-contiguous blocks: {split[:5]}",
                context={"track_ids": split},
            )
        )
    return issues


def _validate_time(points: pd.DataFrame) -> list[ValidationIssue]:
    if "time" not in points.columns:
        return []
    raw = points["time"]
    parsed = pd.to_datetime(raw, errors="coerce", utc=True, format="mixed")
    bad = parsed.isna() & raw.notna()
    if not bad.any():
        return []
    return [
        ValidationIssue(
            level="error",
            code="invalid_time",
            message=f"Column 'time' has {int(bad.sum())} unparseable value(s)",
            context={"rows": _first_rows(bad)},
        )
    ]


def _validate_time_parts(points: pd.DataFrame) -> list[ValidationIssue]:
    parts = time_part_columns(points.columns)
    if parts is None:
        return []
    bad = compose_time(points, parts).isna()
    if not bad.any():
        return []
    return [
        ValidationIssue(
            level="error",
            code="invalid_time",
            message=(
                f"Columns {sorted(parts.values())} do not form a valid timestamp in {int(bad.sum())} row(s)"
            ),
            context={"columns": sorted(parts.values()), "rows": _first_rows(bad)},
        )
    ]


def _first_rows(mask: pd.Series, limit: int = 10) -> list[Any]:
    return [int(i) if isinstance(i, (int, np.integer)) else str(i) for i in mask[mask].index[:limit]]


def report_to_dict(report: ValidationReport) -> dict[str, Any]:
    return {
        "valid": report.valid,
        "n_rows": report.n_rows,
        "issues": [
            {
                "level": issue.level,
                "code": issue.code,
                "message": issue.message,
                "context": dict(issue.context),
            }
            for issue in report.issues
        ],
    }
