from __future__ import annotations

from pathlib import Path

import numpy as np
import pandas as pd
import pytest
from typer.testing import CliRunner

from efergy.cli import app
from efergy.readings import load_readings_log, summarize_readings


def _write_log(path: Path) -> None:
    path.write_bytes(
        b"10/19/26,14:03:22,100.500000\r\n"
        b"10/19/26,14:04:22,300.500000\r\n"
        b"10/19/26,14:05:22,200.000000\n"
    )


def test_load_readings_log(tmp_path: Path) -> None:
    path = tmp_path / "power.log"
    _write_log(path)
    df = load_readings_log(path)
    assert list(df.columns) == ["timestamp", "watts"]
    assert len(df) == 3
    assert df["timestamp"].iloc[0] == pd.Timestamp(2026, 10, 19, 14, 3, 22)
    assert np.isclose(df["watts"].iloc[1], 300.5)


def test_summarize_readings(tmp_path: Path) -> None:
    path = tmp_path / "power.log"
    _write_log(path)
    result = summarize_readings(load_readings_log(path))
    assert result.count == 3
    assert result.first == pd.Timestamp(2026, 10, 19, 14, 3, 22)
    assert result.last == pd.Timestamp(2026, 10, 19, 14, 5, 22)
    assert np.isclose(result.min_watts, 100.5)
    assert np.isclose(result.mean_watts, 601.0 / 3)
    assert np.isclose(result.max_watts, 300.5)


def test_empty_log_has_no_summary(tmp_path: Path) -> None:
    path = tmp_path / "power.log"
    path.write_text("", encoding="utf-8")
    with pytest.raises(ValueError):
        summarize_readings(load_readings_log(path))


def test_summary_command(tmp_path: Path) -> None:
    path = tmp_path / "power.log"
    _write_log(path)
    result = CliRunner().invoke(app, ["summary", "--in", str(path)])
    assert result.exit_code == 0
    assert "Readings: 3" in result.output
    assert "100.500 / 200.333 / 300.500" in result.output


def test_plot_readings(tmp_path: Path) -> None:
    pytest.importorskip("matplotlib")
    from efergy.plotting import plot_readings

    path = tmp_path / "power.log"
    _write_log(path)
    out = plot_readings(load_readings_log(path), tmp_path / "plots" / "power.png")
    assert out.exists()
    assert out.stat().st_size > 0
