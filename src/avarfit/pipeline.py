"""High level orchestration for Allan variance analysis."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Optional, Sequence

import numpy as np
import pandas as pd

from .allan import AllanCurve, TauStep, allan_curve, as_samples
from .errors import InsufficientDataError, InvalidInputError
from .models import NoiseFit, NoiseModel, fit_noise_model, noise_parameters
from .tau import select_taus, unique_block_sizes

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AnalysisResult:
    curve: AllanCurve
    fit: NoiseFit
    noise_parameters: dict[str, float]
    table: pd.DataFrame

    @property
    def tau(self) -> np.ndarray:
        return self.curve.tau

    @property
    def root_allan_variance(self) -> np.ndarray:
        return self.curve.root_allan_variance

    @property
    def fit_coefficients(self) -> np.ndarray:
        return self.fit.coefficient_values

    @property
    def fitted_curve(self) -> np.ndarray | None:
        return self.fit.fitted_curve


def analyze(
    data: Sequence[float] | np.ndarray,
    data_rate: float,
    noise_model: NoiseModel | Sequence[bool | int],
    *,
    taus: Optional[Sequence[float]] = None,
    deduplicate_taus: bool = True,
    zero_variance: str = "exclude",
    reconstruct: bool = True,
    on_tau: Optional[Callable[[TauStep], None]] = None,
) -> AnalysisResult:
    """Compute the Allan deviation curve of *data* and fit *noise_model* to it."""

    model = NoiseModel.from_flags(noise_model)
    samples = as_samples(data)
    if data_rate is None or isinstance(data_rate, bool):
        raise InvalidInputError("data_rate is required")
    try:
        rate = float(data_rate)
    except (TypeError, ValueError) as exc:
        raise InvalidInputError(f"data_rate must be a number, got {data_rate!r}") from exc
    if not np.isfinite(rate) or rate <= 0:
        raise InvalidInputError(f"data_rate must be positive, got {data_rate!r}")

    if taus is None:
        tau_set = select_taus(samples.size, rate, deduplicate=deduplicate_taus)
    else:
        tau_set = np.unique(np.asarray(taus, dtype=float))
        if np.any(~np.isfinite(tau_set) | (tau_set <= 0)):
            raise InvalidInputError("taus must be positive and finite")
        if deduplicate_taus:
            tau_set = unique_block_sizes(tau_set, rate)
    if tau_set.size == 0:
        raise InsufficientDataError(
            f"{samples.size} samples at {rate:g} Hz are too short for any averaging time"
        )

    logger.info("Computing Allan deviation for %d taus over %d samples", tau_set.size, samples.size)
    curve = allan_curve(samples, rate, tau_set, on_tau=on_tau)
    if len(curve) == 0:
        raise InsufficientDataError("No averaging time leaves at least two blocks of data")

    fit = fit_noise_model(
        curve.tau,
        curve.root_allan_variance,
        model,
        zero_variance=zero_variance,
        reconstruct=reconstruct,
    )
    logger.info(
        "Fitted %s over %d taus: %s",
        [term.name for term in model.terms],
        fit.tau.size,
        ", ".join(f"{k}={v:.4g}" for k, v in fit.coefficients.items()),
    )
    params = noise_parameters(fit)
    table = _build_curve_table(curve, fit)
    return AnalysisResult(curve=curve, fit=fit, noise_parameters=params, table=table)


def _build_curve_table(curve: AllanCurve, fit: NoiseFit) -> pd.DataFrame:
    df = pd.DataFrame(
        {
            "tau": curve.tau,
            "block_size": curve.block_size,
            "blocks": curve.blocks,
            "root_allan_variance": curve.root_allan_variance,
        }
    )
    if fit.fitted_curve is not None:
        fitted = pd.Series(fit.fitted_curve, index=fit.tau)
        df["fitted_root_allan_variance"] = df["tau"].map(fitted)
        df["residual"] = df["root_allan_variance"] - df["fitted_root_allan_variance"]
    return df
