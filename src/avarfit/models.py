"""Power-law noise models and their weighted least squares fit."""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Iterable, Sequence

import numpy as np

from .errors import (
    DegenerateWeightingError,
    InsufficientDataError,
    InvalidInputError,
    SingularFitError,
)

logger = logging.getLogger(__name__)

ZERO_VARIANCE_POLICIES = {"exclude", "raise"}


@dataclass(frozen=True)
class NoiseTerm:
    """One power-law basis term ``A * tau**exponent`` of the Allan variance."""

    name: str
    exponent: int
    parameter: str
    symbol: str


NOISE_TERMS: tuple[NoiseTerm, ...] = (
    NoiseTerm("quantization", -2, "Q", "A_-2"),
    NoiseTerm("angle_random_walk", -1, "N", "A_-1"),
    NoiseTerm("bias_instability", 0, "B", "A_0"),
    NoiseTerm("rate_random_walk", 1, "K", "A_1"),
    NoiseTerm("rate_ramp", 2, "R", "A_2"),
)


@dataclass(frozen=True)
class NoiseModel:
    """Selection of the five noise terms included in a fit."""

    flags: tuple[bool, bool, bool, bool, bool]

    @classmethod
    def from_flags(cls, flags: Sequence[bool | int]) -> "NoiseModel":
        if isinstance(flags, NoiseModel):
            return flags
        if isinstance(flags, (str, bytes)):
            return cls.parse(flags if isinstance(flags, str) else flags.decode())
        try:
            values = list(flags)
        except TypeError as exc:
            raise InvalidInputError(f"noise model must be a sequence of 5 flags, got {flags!r}") from exc
        if len(values) != len(NOISE_TERMS):
            raise InvalidInputError(
                f"noise model must have exactly {len(NOISE_TERMS)} flags, got {len(values)}"
            )
        normalized: list[bool] = []
        for value in values:
            if isinstance(value, (bool, np.bool_)):
                normalized.append(bool(value))
            elif isinstance(value, (int, np.integer)) and value in (0, 1):
                normalized.append(bool(value))
            else:
                raise InvalidInputError(f"noise model flags must be 0/1 or booleans, got {value!r}")
        if not any(normalized):
            raise InvalidInputError("noise model must enable at least one term")
        return cls(flags=tuple(normalized))  # type: ignore[arg-type]

    @classmethod
    def parse(cls, text: str) -> "NoiseModel":
        """Parse ``"1,0,0,0,0"`` or a list of term names such as ``"quantization,rate_ramp"``."""

        tokens = [token.strip() for token in text.replace(" ", ",").split(",") if token.strip()]
        if not tokens:
            raise InvalidInputError("noise model string is empty")
        if all(token in {"0", "1"} for token in tokens):
            return cls.from_flags([int(token) for token in tokens])
        known = {term.name: idx for idx, term in enumerate(NOISE_TERMS)}
        flags = [False] * len(NOISE_TERMS)
        for token in tokens:
            key = token.lower()
            if key not in known:
                raise InvalidInputError(f"Unknown noise term '{token}'. Expected one of {sorted(known)}")
            flags[known[key]] = True
        return cls.from_flags(flags)

    @property
    def terms(self) -> list[NoiseTerm]:
        return [term for term, enabled in zip(NOISE_TERMS, self.flags) if enabled]

    @property
    def exponents(self) -> list[int]:
        return [term.exponent for term in self.terms]

    def __len__(self) -> int:
        return sum(self.flags)


@dataclass
class NoiseFit:
    """Result of a weighted least squares noise-model fit."""

    model: NoiseModel
    tau: np.ndarray
    allan_variance: np.ndarray
    weights: np.ndarray
    design: np.ndarray
    coefficient_values: np.ndarray
    fitted_curve: np.ndarray | None
    excluded: list[float]

    @property
    def coefficients(self) -> dict[str, float]:
        return {term.name: float(value) for term, value in zip(self.model.terms, self.coefficient_values)}

    @property
    def predicted_variance(self) -> np.ndarray:
        return self.design @ self.coefficient_values

    def weighted_sse(self, coefficients: Sequence[float] | np.ndarray | None = None) -> float:
        """Weighted squared error of *coefficients* (defaults to the fitted ones)."""

        values = self.coefficient_values if coefficients is None else np.asarray(coefficients, dtype=float)
        residual = self.allan_variance - self.design @ values
        return float(np.sum(self.weights * residual**2))


def build_design_matrix(
    tau: np.ndarray,
    model: NoiseModel | Sequence[bool | int],
) -> tuple[np.ndarray, list[str]]:
    """Return the design matrix (one column per enabled term) and column labels."""

    model = NoiseModel.from_flags(model)
    tau = np.asarray(tau, dtype=float)
    if tau.ndim != 1:
        raise InvalidInputError("tau must be 1-D array")
    if np.any(tau <= 0):
        raise InvalidInputError("tau values must be positive")

    columns = [tau**term.exponent for term in model.terms]
    names = [term.name for term in model.terms]
    return np.column_stack(columns), names


def fit_noise_model(
    tau: Sequence[float] | np.ndarray,
    root_allan_variance: Sequence[float] | np.ndarray,
    model: NoiseModel | Sequence[bool | int],
    *,
    zero_variance: str = "exclude",
    reconstruct: bool = True,
) -> NoiseFit:
    """Inverse-variance weighted least squares fit of the Allan variance.

    The Allan variance ``sigma**2(tau)`` is modelled as a sum of the enabled
    power-law terms and each tau is weighted by ``1 / sigma**2(tau)``, so the
    fit minimises relative rather than absolute error.

    Parameters
    ----------
    tau, root_allan_variance:
        Parallel arrays as produced by :func:`avarfit.allan.allan_curve`.
    model:
        Five noise-term flags or a :class:`NoiseModel`.
    zero_variance:
        ``"exclude"`` drops taus with zero or non-finite variance, ``"raise"``
        turns them into :class:`DegenerateWeightingError`.
    reconstruct:
        Also compute the fitted root Allan variance curve.
    """

    model = NoiseModel.from_flags(model)
    if zero_variance not in ZERO_VARIANCE_POLICIES:
        raise InvalidInputError(
            f"zero_variance must be one of {sorted(ZERO_VARIANCE_POLICIES)}, got {zero_variance!r}"
        )
    tau = np.asarray(tau, dtype=float)
    root = np.asarray(root_allan_variance, dtype=float)
    if tau.shape != root.shape or tau.ndim != 1:
        raise InvalidInputError("tau and root_allan_variance must be 1-D arrays of equal length")
    if np.any(root < 0):
        raise InvalidInputError("root Allan variance must be non-negative")

    allan_var = root**2
    degenerate = ~np.isfinite(allan_var) | (allan_var <= 0)
    excluded: list[float] = []
    if np.any(degenerate):
        bad = tau[degenerate].tolist()
        if zero_variance == "raise":
            raise DegenerateWeightingError(f"Zero or non-finite Allan variance at tau={bad}")
        logger.warning("Excluding %d tau(s) with zero Allan variance from the fit: %s", len(bad), bad)
        excluded = bad
        tau = tau[~degenerate]
        allan_var = allan_var[~degenerate]
    if tau.size == 0:
        raise DegenerateWeightingError("No tau with non-zero Allan variance left to fit")

    design, _ = build_design_matrix(tau, model)
    weights = 1.0 / allan_var
    coefficients = _solve_weighted(design, allan_var, weights)

    fitted = None
    if reconstruct:
        predicted = design @ coefficients
        if np.any(predicted < 0):
            logger.warning(
                "Fitted Allan variance is negative at %d tau(s); clipping to zero",
                int(np.count_nonzero(predicted < 0)),
            )
        fitted = np.sqrt(np.clip(predicted, 0.0, None))

    return NoiseFit(
        model=model,
        tau=tau,
        allan_variance=allan_var,
        weights=weights,
        design=design,
        coefficient_values=coefficients,
        fitted_curve=fitted,
        excluded=excluded,
    )


def _solve_weighted(X: np.ndarray, y: np.ndarray, w: np.ndarray) -> np.ndarray:
    """Solve ``(X' W X) c = X' W y`` with Jacobi scaling of the columns."""

    n, d = X.shape
    if n < d:
        raise SingularFitError(f"{n} tau value(s) cannot determine {d} noise terms")

    scale = np.sqrt(np.sum(w[:, None] * X**2, axis=0))
    if not np.all(np.isfinite(scale)) or np.any(scale == 0):
        raise SingularFitError("Design matrix has a zero or non-finite column")
    Xs = X / scale
    weighted = np.sqrt(w)[:, None] * Xs
    if np.linalg.matrix_rank(weighted) < d:
        raise SingularFitError("Noise terms are collinear over the available taus")

    normal = Xs.T @ (w[:, None] * Xs)
    rhs = Xs.T @ (w * y)
    try:
        solution = np.linalg.solve(normal, rhs)
    except np.linalg.LinAlgError as exc:
        raise SingularFitError("Weighted normal equations are singular") from exc
    coefficients = solution / scale
    if not np.all(np.isfinite(coefficients)):
        raise SingularFitError("Weighted least squares produced non-finite coefficients")
    return coefficients


def noise_parameters(fit: NoiseFit) -> dict[str, float]:
    """Convert variance coefficients into conventional sensor noise parameters.

    Uses the IEEE Std 952 relations, e.g. ``sigma**2 = N**2 / tau`` for angle
    random walk. Negative amplitudes have no physical counterpart and map to
    NaN.
    """

    factors = {
        "quantization": 1.0 / 3.0,
        "angle_random_walk": 1.0,
        "bias_instability": math.pi / (2.0 * math.log(2.0)),
        "rate_random_walk": 3.0,
        "rate_ramp": 2.0,
    }
    params: dict[str, float] = {}
    for name, value in fit.coefficients.items():
        if value < 0:
            logger.warning("Negative %s coefficient %.3g has no physical parameter", name, value)
            params[name] = float("nan")
        else:
            params[name] = float(np.sqrt(value * factors[name]))
    return params


def model_label(model: NoiseModel | Sequence[bool | int]) -> str:
    """Describe the model in root-variance form, e.g. ``sigma_fit = A_-2 tau^-1``."""

    model = NoiseModel.from_flags(model)
    parts = [f"{term.symbol} tau^{_half(term.exponent)}" for term in model.terms]
    return "sigma_fit = " + " + ".join(parts)


def _half(exponent: int) -> str:
    value = exponent / 2
    return f"{int(value)}" if value.is_integer() else f"{value:g}"


@dataclass(frozen=True)
class ClockNoise:
    """Oscillator noise levels from the Allan variance (``q1**2``, ``q2**2``)."""

    q1_squared: float
    q2_squared: float


def fit_clock_noise(tau: Iterable[float], allan_variance: Iterable[float]) -> ClockNoise:
    """Fit ``sigma**2(tau) * tau = q1**2 + (q2**2 / 3) * tau**2``."""

    tau = np.asarray(list(tau), dtype=float)
    avar = np.asarray(list(allan_variance), dtype=float)
    if tau.shape != avar.shape:
        raise InvalidInputError("tau and allan_variance must have equal length")
    if tau.size < 2:
        raise InsufficientDataError("Clock noise fit needs at least two taus")
    slope, intercept = np.polyfit(tau**2, avar * tau, 1)
    return ClockNoise(q1_squared=float(intercept), q2_squared=float(3.0 * slope))
