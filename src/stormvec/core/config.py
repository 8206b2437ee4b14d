"""Configuration loading and resolution."""

from __future__ import annotations

from copy import deepcopy
from pathlib import Path
from typing import Any

import yaml


class ConfigError(ValueError):
    """Raised when configuration is invalid."""


DEFAULT_CONFIG: dict[str, Any] = {
    "track": {
        "key": None,
        "min_points": 2,
    },
    "filter": {
        "years": None,
        "bbox": None,
    },
    "geodesy": {
        "radius_m": 6_378_137.0,
        "length_unit": "km",
    },
    "segments": {
        "drop_degenerate": True,
    },
    "grid": {
        "cell_size": 5.0,
        "origin": None,
    },
    "projection": {
        "min_len": 100.0,
        "max_len": 600.0,
    },
    "buckets": {
        "width": 30.0,
    },
    "circular": {
        "min_resultant": 1e-9,
    },
}

DEFAULT_KEYS: dict[str, list[str]] = {
    "table": ["name", "year"],
    "ibtracs": ["sid"],
}
LENGTH_UNITS = {"m": 1.0, "km": 1_000.0}


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Deep merge two dictionaries and return a new dictionary."""

    out = deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(out.get(key), dict):
            out[key] = deep_merge(out[key], value)
        else:
            out[key] = value
    return out


def load_yaml(path: str | Path) -> dict[str, Any]:
    p = Path(path)
    if not p.exists():
        raise ConfigError(f"Config file not found: {p}")
    with p.open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ConfigError(f"Config must be a mapping at root: {p}")
    return data


def resolve_config(
    config_path: str | Path | None = None,
    overrides: dict[str, Any] | None = None,
    input_format: str = "table",
) -> dict[str, Any]:
    """Resolve run configuration from defaults, optional user file and overrides."""

    resolved = deepcopy(DEFAULT_CONFIG)
    if config_path is not None:
        resolved = deep_merge(resolved, load_yaml(config_path))
    if overrides:
        resolved = deep_merge(resolved, overrides)
    if resolved["track"].get("key") is None:
        if input_format not in DEFAULT_KEYS:
            raise ConfigError(
                f"Unsupported input format '{input_format}'. Supported: {'|'.join(DEFAULT_KEYS)}"
            )
        resolved["track"]["key"] = list(DEFAULT_KEYS[input_format])
    validate_config(resolved)
    return resolved


def dump_yaml(data: dict[str, Any], out_path: str | Path) -> None:
    p = Path(out_path)
    p.parent.mkdir(parents=True, exist_ok=True)
    with p.open("w", encoding="utf-8") as f:
        yaml.safe_dump(data, f, sort_keys=False)


def length_scale(cfg: dict[str, Any]) -> float:
    """Meters per output length unit."""

    return LENGTH_UNITS[cfg["geodesy"]["length_unit"]]


def validate_config(cfg: dict[str, Any]) -> None:
    key = cfg.get("track", {}).get("key")
    if key is not None and (not isinstance(key, list) or not key or not all(isinstance(k, str) for k in key)):
        raise ConfigError(f"track.key must be null or a non-empty list of column names, got {key!r}")
    if int(cfg.get("track", {}).get("min_points", 2)) < 2:
        raise ConfigError("track.min_points must be >= 2")

    unit = cfg.get("geodesy", {}).get("length_unit")
    if unit not in LENGTH_UNITS:
        raise ConfigError(f"Unsupported geodesy.length_unit '{unit}'. Supported: m|km")
    if float(cfg.get("geodesy", {}).get("radius_m", 0.0)) <= 0.0:
        raise ConfigError("geodesy.radius_m must be positive")

    grid = cfg.get("grid", {})
    if float(grid.get("cell_size", 0.0)) <= 0.0:
        raise ConfigError(f"grid.cell_size must be positive, got {grid.get('cell_size')!r}")
    origin = grid.get("origin")
    if origin is not None and (not isinstance(origin, (list, tuple)) or len(origin) != 2):
        raise ConfigError("grid.origin must be null or [x0, y0]")

    proj = cfg.get("projection", {})
    lo = float(proj.get("min_len", 0.0))
    hi = float(proj.get("max_len", 0.0))
    if lo < 0.0 or hi < lo:
        raise ConfigError(f"projection range must satisfy 0 <= min_len <= max_len, got [{lo}, {hi}]")

    width = float(cfg.get("buckets", {}).get("width", 0.0))
    if not 0.0 < width <= 360.0:
        raise ConfigError(f"buckets.width must be in (0, 360], got {width}")

    years = cfg.get("filter", {}).get("years")
    if years is not None and (not isinstance(years, (list, tuple)) or len(years) != 2):
        raise ConfigError("filter.years must be null or [first, last]")
    bbox = cfg.get("filter", {}).get("bbox")
    if bbox is not None and (not isinstance(bbox, (list, tuple)) or len(bbox) != 4):
        raise ConfigError("filter.bbox must be null or [lon_min, lat_min, lon_max, lat_max]")
