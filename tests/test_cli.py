from __future__ import annotations

from pathlib import Path

import numpy as np
import pandas as pd
from typer.testing import CliRunner

from avarfit.cli import app

runner = CliRunner()


def test_demo_prints_report() -> None:
    result = runner.invoke(app, ["demo", "--samples", "4096", "--model", "0,1,0,0,0"])
    assert result.exit_code == 0, result.output
    assert "# Allan Variance Report" in result.output
    assert "angle_random_walk" in result.output
    assert "sigma_fit = A_-1 tau^-0.5" in result.output


def test_analyze_csv(tmp_path: Path) -> None:
    rng = np.random.default_rng(5)
    csv_path = tmp_path / "gyro.csv"
    pd.DataFrame({"gyro_z": rng.normal(scale=0.01, size=5000)}).to_csv(csv_path, index=False)

    result = runner.invoke(
        app,
        ["analyze", "--in", str(csv_path), "--rate", "100", "--model", "quantization,angle_random_walk"],
    )
    assert result.exit_code == 0, result.output
    assert "quantization" in result.output
    assert "*Samples:* 5000" in result.output


def test_analyze_rejects_empty_model(tmp_path: Path) -> None:
    csv_path = tmp_path / "gyro.csv"
    pd.DataFrame({"gyro_z": np.ones(100)}).to_csv(csv_path, index=False)
    result = runner.invoke(app, ["analyze", "--in", str(csv_path), "--rate", "100", "--model", "0,0,0,0,0"])
    assert result.exit_code == 2


def test_analyze_short_record_exits_with_error(tmp_path: Path) -> None:
    csv_path = tmp_path / "gyro.csv"
    pd.DataFrame({"gyro_z": np.arange(50, dtype=float)}).to_csv(csv_path, index=False)
    result = runner.invoke(app, ["analyze", "--in", str(csv_path), "--rate", "1"])
    assert result.exit_code == 1


def test_analyze_requires_rate(tmp_path: Path) -> None:
    csv_path = tmp_path / "gyro.csv"
    pd.DataFrame({"gyro_z": np.arange(500, dtype=float)}).to_csv(csv_path, index=False)
    result = runner.invoke(app, ["analyze", "--in", str(csv_path)])
    assert result.exit_code == 2


def test_analyze_malformed_override_is_a_usage_error(tmp_path: Path) -> None:
    csv_path = tmp_path / "gyro.csv"
    pd.DataFrame({"gyro_z": np.arange(500, dtype=float)}).to_csv(csv_path, index=False)
    result = runner.invoke(app, ["analyze", "--in", str(csv_path), "--rate", "100", "--set", "noise_model=[1,0,]"])
    assert result.exit_code == 2


def test_analyze_malformed_config_file_is_a_usage_error(tmp_path: Path) -> None:
    csv_path = tmp_path / "gyro.csv"
    pd.DataFrame({"gyro_z": np.arange(500, dtype=float)}).to_csv(csv_path, index=False)
    cfg_path = tmp_path / "config.json"
    cfg_path.write_text('{"data_rate": 100,', encoding="utf-8")
    result = runner.invoke(app, ["analyze", "--in", str(csv_path), "--config", str(cfg_path)])
    assert result.exit_code == 2
