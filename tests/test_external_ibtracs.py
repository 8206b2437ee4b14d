from __future__ import annotations

from pathlib import Path

import pandas as pd
import pytest

from stormvec.cli.main import main
from stormvec.core.config import resolve_config
from stormvec.core.errors import TrackValidationError
from stormvec.core.pipeline import load_points
from stormvec.data.io import DatasetIOError
from stormvec.external.ibtracs import IBTRACS_COLUMNS, read_ibtracs


def _write(tmp_path: Path) -> Path:
    csv = tmp_path / "ibtracs.csv"
    csv.write_text(
        "SID,SEASON,ISO_TIME,LAT,LON,NAME,BASIN,USA_WIND,WMO_WIND,USA_PRES\n"
        "Year,Year,ISO_TIME,degrees_north,degrees_east,text,text,kt,kt,hPa\n"
        "WP012025,2025,2025-03-01 06:00:00,15.0,190.0,BETA,WP,,50,990\n"
        "WP012025,2025,2025-03-01 12:00:00,15.5,191.0,BETA,WP,55,50,985\n"
        "SI012025,2025,2025-03-01 00:00:00,-15.0,150.0,ALICE,SI,40,,995\n"
        "SI012025,2025,2025-03-01 06:00:00,-15.4,151.0,ALICE,SI,45,,990\n",
        encoding="utf-8",
    )
    return csv


def test_read_ibtracs_drops_units_rows(tmp_path: Path) -> None:
    out = read_ibtracs(_write(tmp_path))
    assert list(out.columns) == IBTRACS_COLUMNS
    assert int(out.shape[0]) == 4
    assert "Year" not in set(out["sid"].astype(str))
    assert pd.api.types.is_datetime64_any_dtype(out["time"])
    assert pd.api.types.is_float_dtype(out["lat"])
    assert float(out["lon"].min()) >= -180.0
    assert float(out["lon"].max()) <= 180.0


def test_read_ibtracs_orders_by_sid_and_coalesces_wind(tmp_path: Path) -> None:
    out = read_ibtracs(_write(tmp_path))
    assert out["sid"].tolist() == ["SI012025", "SI012025", "WP012025", "WP012025"]
    beta = out.loc[out["sid"] == "WP012025"]
    assert beta["lon"].tolist() == [-170.0, -169.0]
    assert beta["wind"].tolist() == [50.0, 55.0]
    assert out["year"].tolist() == [2025, 2025, 2025, 2025]


def test_ibtracs_points_use_sid_as_track_id(tmp_path: Path) -> None:
    cfg = resolve_config(input_format="ibtracs")
    points = load_points(_write(tmp_path), cfg, input_format="ibtracs")
    assert points["track_id"].unique().tolist() == ["SI012025", "WP012025"]


def test_read_ibtracs_missing_file_and_columns(tmp_path: Path) -> None:
    with pytest.raises(DatasetIOError):
        read_ibtracs(tmp_path / "nope.csv")

    csv = tmp_path / "no_lat.csv"
    csv.write_text("SID,ISO_TIME,LON\nX,2025-03-01 00:00:00,150.0\n", encoding="utf-8")
    with pytest.raises(TrackValidationError) as err:
        read_ibtracs(csv)
    assert [i.context["column"] for i in err.value.report.issues] == ["LAT"]


def test_cli_maps_ibtracs_input_errors_to_exit_code(tmp_path: Path) -> None:
    assert main(["run", str(tmp_path / "nope.csv"), "--format", "ibtracs", "--out", str(tmp_path / "a")]) == 2

    csv = tmp_path / "no_lat.csv"
    csv.write_text("SID,ISO_TIME,LON\nX,2025-03-01 00:00:00,150.0\n", encoding="utf-8")
    assert main(["run", str(csv), "--format", "ibtracs", "--out", str(tmp_path / "b")]) == 2
    assert main(["validate", str(csv), "--format", "ibtracs"]) == 2
