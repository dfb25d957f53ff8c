from __future__ import annotations

import numpy as np
import pytest

from avarfit.allan import TauStep, allan_curve, root_allan_variance
from avarfit.errors import InsufficientDataError, InvalidInputError
from avarfit.tau import select_taus


def _white_noise(std: float = 0.01, size: int = 2**17) -> np.ndarray:
    rng = np.random.default_rng(2024)
    return rng.normal(scale=std, size=size)


def test_root_allan_variance_two_blocks() -> None:
    value = root_allan_variance([0.0, 0.0, 1.0, 1.0], 1.0, 2.0)
    assert np.isclose(value, np.sqrt(0.5))


def test_root_allan_variance_ignores_trailing_samples() -> None:
    value = root_allan_variance([0.0, 0.0, 1.0, 1.0, 50.0], 1.0, 2.0)
    assert np.isclose(value, np.sqrt(0.5))


def test_root_allan_variance_insufficient_blocks() -> None:
    with pytest.raises(InsufficientDataError):
        root_allan_variance([1.0, 2.0, 3.0, 4.0], 1.0, 3.0)
    with pytest.raises(InsufficientDataError):
        root_allan_variance([1.0, 2.0, 3.0, 4.0], 1.0, 0.1)


def test_root_allan_variance_rejects_bad_input() -> None:
    with pytest.raises(InvalidInputError):
        root_allan_variance([], 1.0, 1.0)
    with pytest.raises(InvalidInputError):
        root_allan_variance([1.0, np.nan, 2.0], 1.0, 1.0)
    with pytest.raises(InvalidInputError):
        root_allan_variance([1.0, 2.0], 0.0, 1.0)


def test_allan_curve_all_zero_data() -> None:
    data = np.zeros(4000)
    taus = select_taus(data.size, 100.0)
    curve = allan_curve(data, 100.0, taus)
    assert len(curve) == taus.size
    assert np.all(curve.root_allan_variance == 0.0)


def test_allan_curve_excludes_unusable_taus() -> None:
    curve = allan_curve([0.0, 1.0, 0.0, 1.0], 1.0, [1.0, 2.0, 3.0])
    assert curve.tau.tolist() == [1.0, 2.0]
    assert curve.excluded == [3.0]
    assert curve.root_allan_variance.size == curve.tau.size
    assert curve.blocks.tolist() == [4, 2]


def test_white_noise_level_matches_block_size() -> None:
    std = 0.01
    data = _white_noise(std)
    for tau in (0.02, 0.05, 0.1):
        t = int(round(tau * 100.0))
        value = root_allan_variance(data, 100.0, tau)
        assert np.isclose(value, std / np.sqrt(t), rtol=0.05)


def test_white_noise_slope_is_minus_half() -> None:
    data = _white_noise()
    taus = select_taus(data.size, 100.0)
    curve = allan_curve(data, 100.0, taus[taus <= 10.0])
    slope, _ = np.polyfit(np.log10(curve.tau), np.log10(curve.root_allan_variance), 1)
    assert -0.58 < slope < -0.42


def test_on_tau_callback_receives_block_means() -> None:
    data = _white_noise(size=2000)
    steps: list[TauStep] = []
    curve = allan_curve(data, 100.0, [0.02, 0.5, 50.0], on_tau=steps.append)
    assert [step.tau for step in steps] == curve.tau.tolist()
    assert [step.block_means.size for step in steps] == curve.blocks.tolist()
    assert steps[0].block_size == 2
    assert np.isclose(steps[1].root_allan_variance, curve.root_allan_variance[1])
