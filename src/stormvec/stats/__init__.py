"""Statistics helpers."""

from .circular import DEFAULT_MIN_RESULTANT, circular_mean, mean_resultant

__all__ = [
    "DEFAULT_MIN_RESULTANT",
    "circular_mean",
    "mean_resultant",
]
