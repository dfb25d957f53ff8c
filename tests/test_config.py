from __future__ import annotations

from pathlib import Path

import pytest

from avarfit.config import AnalysisConfig, load_config
from avarfit.errors import InvalidInputError


def test_load_config_defaults() -> None:
    cfg = load_config()
    assert isinstance(cfg, AnalysisConfig)
    assert cfg.data_rate is None
    assert cfg.noise_model == [1, 0, 0, 0, 0]
    assert cfg.zero_variance == "exclude"
    assert cfg.deduplicate_taus is True


def test_load_config_overrides(tmp_path: Path) -> None:
    cfg_path = tmp_path / "config.json"
    cfg_path.write_text(
        """
        {
          "data_rate": 100,
          "noise_model": [0, 1, 1, 1, 0],
          "column": "gyro_z",
          "zero_variance": "exclude"
        }
        """,
        encoding="utf-8",
    )
    cfg = load_config(cfg_path, overrides=["data_rate=250.0", "zero_variance=raise"])
    assert cfg.data_rate == 250.0
    assert cfg.zero_variance == "raise"
    assert cfg.column == "gyro_z"
    assert cfg.model.flags == (False, True, True, True, False)


def test_noise_model_override_forms() -> None:
    assert load_config(overrides=["noise_model=[0,0,1,0,0]"]).noise_model == [0, 0, 1, 0, 0]
    named = load_config(overrides=["noise_model=angle_random_walk,rate_ramp"])
    assert named.noise_model == [0, 1, 0, 0, 1]


@pytest.mark.parametrize(
    "override",
    ["zero_variance=ignore", "noise_model=[0,0,0,0,0]", "data_rate=-1", "data_rate"],
)
def test_invalid_overrides(override: str) -> None:
    with pytest.raises(InvalidInputError):
        load_config(overrides=[override])


@pytest.mark.parametrize("override", ["data_rat=100", "zero_varaince=raise", "analysis.data_rate=100"])
def test_unknown_override_keys_are_rejected(override: str) -> None:
    with pytest.raises(InvalidInputError, match="Unknown configuration key"):
        load_config(overrides=[override])


def test_unknown_file_keys_are_rejected(tmp_path: Path) -> None:
    cfg_path = tmp_path / "config.json"
    cfg_path.write_text('{"data_rate": 100, "noise_modle": [0, 1, 0, 0, 0]}', encoding="utf-8")
    with pytest.raises(InvalidInputError, match="noise_modle"):
        load_config(cfg_path)


def test_fractional_noise_model_flags_are_rejected() -> None:
    with pytest.raises(InvalidInputError):
        load_config(overrides=["noise_model=[0.5,0,0,0,1]"])


def test_malformed_list_override() -> None:
    with pytest.raises(InvalidInputError):
        load_config(overrides=["noise_model=[1,0,]"])


def test_malformed_json_file(tmp_path: Path) -> None:
    cfg_path = tmp_path / "config.json"
    cfg_path.write_text('{"data_rate": 100,', encoding="utf-8")
    with pytest.raises(InvalidInputError, match="Malformed JSON"):
        load_config(cfg_path)


def test_config_file_must_hold_an_object(tmp_path: Path) -> None:
    cfg_path = tmp_path / "config.json"
    cfg_path.write_text("[1, 0, 0, 0, 0]", encoding="utf-8")
    with pytest.raises(InvalidInputError):
        load_config(cfg_path)


def test_deduplicate_taus_requires_a_boolean(tmp_path: Path) -> None:
    cfg_path = tmp_path / "config.json"
    cfg_path.write_text('{"deduplicate_taus": "false"}', encoding="utf-8")
    with pytest.raises(InvalidInputError, match="deduplicate_taus"):
        load_config(cfg_path)
    with pytest.raises(InvalidInputError):
        load_config(overrides=["deduplicate_taus=0"])
    assert load_config(overrides=["deduplicate_taus=false"]).deduplicate_taus is False
