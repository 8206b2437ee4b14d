"""Exception hierarchy shared across pipeline stages."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from stormvec.core.types import ValidationReport


class StormVecError(Exception):
    """Base class for pipeline errors."""


class InsufficientPointsError(StormVecError, ValueError):
    """Raised when a track has too few points to form a segment."""

    def __init__(self, track_id: str, n_points: int, min_points: int = 2) -> None:
        self.track_id = track_id
        self.n_points = int(n_points)
        self.min_points = int(min_points)
        super().__init__(
            f"Track '{track_id}' has {self.n_points} point(s); at least {self.min_points} required"
        )


class DegenerateSegmentError(StormVecError, ValueError):
    """Raised when zero-length segments are present and filtering is disabled."""

    def __init__(self, count: int, track_ids: list[str] | None = None) -> None:
        self.count = int(count)
        self.track_ids = list(track_ids or [])
        shown = ", ".join(self.track_ids[:5])
        more = "" if len(self.track_ids) <= 5 else f" (+{len(self.track_ids) - 5} more)"
        super().__init__(f"{self.count} zero-length segment(s) in tracks: {shown}{more}")


class UndefinedCircularMeanError(StormVecError, ArithmeticError):
    """Raised when angles cancel out and the mean direction does not exist."""

    def __init__(self, resultant: float, n: int) -> None:
        self.resultant = float(resultant)
        self.n = int(n)
        super().__init__(
            f"Circular mean undefined: mean resultant length {self.resultant:.3g} over {self.n} angle(s)"
        )


class EmptyGridError(StormVecError):
    """Raised when no grid cell carries any segment."""


class TrackValidationError(StormVecError, ValueError):
    """Raised when an input point table fails validation."""

    def __init__(self, report: "ValidationReport") -> None:
        self.report = report
        failures = [f"[{i.code}] {i.message}" for i in report.issues if i.level == "error"]
        super().__init__("Input validation failed: " + " | ".join(failures))
