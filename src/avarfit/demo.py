"""Synthetic sensor data used when no recording is supplied."""
from __future__ import annotations

import logging
from typing import Sequence

import numpy as np

from .models import NoiseModel
from .pipeline import AnalysisResult, analyze

logger = logging.getLogger(__name__)

DEFAULT_SAMPLES = 2**17
DEFAULT_RATE = 100.0
DEFAULT_STD = 0.01


def create_white_noise(
    samples: int = DEFAULT_SAMPLES,
    std: float = DEFAULT_STD,
    seed: int | None = 42,
) -> np.ndarray:
    rng = np.random.default_rng(seed)
    return rng.normal(scale=std, size=samples)


def run_demo(
    noise_model: NoiseModel | Sequence[bool | int] = (1, 0, 0, 0, 0),
    *,
    samples: int = DEFAULT_SAMPLES,
    data_rate: float = DEFAULT_RATE,
    std: float = DEFAULT_STD,
    seed: int | None = 42,
) -> AnalysisResult:
    logger.info("Generating %d white noise samples (std=%g) at %g Hz", samples, std, data_rate)
    data = create_white_noise(samples, std, seed)
    return analyze(data, data_rate, noise_model)
