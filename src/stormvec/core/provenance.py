"""Provenance record written next to every run as `run_metadata.json`."""

from __future__ import annotations

import importlib.metadata
import subprocess
from pathlib import Path
from typing import Any

import pandas as pd

from stormvec.utils.hash import file_sha256, frame_sha256, mapping_sha256

# Distributions whose versions can change the numbers in a glyph table.
RUNTIME_PACKAGES = ("numpy", "pandas", "pyarrow", "shapely", "geopandas", "PyYAML", "stormvec")


def _installed_version(name: str) -> str:
    try:
        return importlib.metadata.version(name)
    except importlib.metadata.PackageNotFoundError:
        return "not-installed"


def runtime_versions(packages: tuple[str, ...] = RUNTIME_PACKAGES) -> dict[str, str]:
    return {name: _installed_version(name) for name in packages}


def git_commit(cwd: str | Path) -> str | None:
    """HEAD of the repository containing `cwd`, None outside a checkout."""

    try:
        return subprocess.check_output(
            ["git", "rev-parse", "HEAD"],
            cwd=str(cwd),
            stderr=subprocess.DEVNULL,
            text=True,
        ).strip()
    except (OSError, subprocess.CalledProcessError):
        return None


def build_run_metadata(
    *,
    input_path: str | Path,
    input_format: str,
    config: dict[str, Any],
    points: pd.DataFrame,
    glyphs: pd.DataFrame,
    counts: dict[str, Any],
    argv: list[str] | None = None,
) -> dict[str, Any]:
    """Everything needed to tell whether two runs should give the same glyphs.

    Input, config, loaded points and glyphs are hashed separately so a change
    in output can be traced to the stage that caused it.
    """

    grid = counts.get("grid")
    return {
        "input": {
            "path": str(Path(input_path).resolve()),
            "format": input_format,
            "sha256": file_sha256(input_path),
        },
        "hashes": {
            "config": mapping_sha256(config),
            "points": frame_sha256(points),
            "glyphs": frame_sha256(glyphs),
        },
        "parameters": {
            "track_key": list(config["track"]["key"]),
            "cell_size": float(config["grid"]["cell_size"]),
            "length_unit": config["geodesy"]["length_unit"],
            "display_range": [float(config["projection"]["min_len"]), float(config["projection"]["max_len"])],
            "bucket_width": float(config["buckets"]["width"]),
        },
        "grid": grid,
        "counts": {k: v for k, v in counts.items() if k != "grid"},
        "runtime": {
            "versions": runtime_versions(),
            "git_commit": git_commit(Path.cwd()),
            "invocation": " ".join(argv or []),
        },
    }
