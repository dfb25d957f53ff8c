"""Block-averaging Allan variance estimator."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Iterable, Optional, Sequence

import numpy as np

from .errors import InsufficientDataError, InvalidInputError
from .tau import block_size

logger = logging.getLogger(__name__)

PROGRESS_EVERY = 5


@dataclass(frozen=True)
class TauStep:
    """Intermediate values for a single tau, handed to ``on_tau`` callbacks."""

    index: int
    tau: float
    block_size: int
    block_means: np.ndarray
    root_allan_variance: float


@dataclass(frozen=True)
class AllanCurve:
    """Root Allan variance evaluated over the retained taus."""

    tau: np.ndarray
    root_allan_variance: np.ndarray
    block_size: np.ndarray
    blocks: np.ndarray
    excluded: list[float] = field(default_factory=list)

    def __len__(self) -> int:
        return int(self.tau.size)


def as_samples(data: Sequence[float] | np.ndarray) -> np.ndarray:
    """Return *data* as a finite, non-empty 1-D float array."""

    try:
        samples = np.asarray(data, dtype=float)
    except (TypeError, ValueError) as exc:
        raise InvalidInputError(f"data must be a sequence of real numbers: {exc}") from exc
    if samples.ndim != 1:
        samples = samples.squeeze()
        if samples.ndim != 1:
            raise InvalidInputError("data must be a 1-D sequence")
    if samples.size == 0:
        raise InvalidInputError("data must not be empty")
    if not np.all(np.isfinite(samples)):
        raise InvalidInputError("data contains NaN or infinite samples")
    return samples


def _block_means(samples: np.ndarray, data_rate: float, tau: float) -> tuple[int, np.ndarray]:
    t = block_size(tau, data_rate)
    if t < 1:
        raise InsufficientDataError(f"tau={tau:g}s is shorter than one sample at {data_rate:g} Hz")
    divisions = samples.size // t
    if divisions < 2:
        raise InsufficientDataError(
            f"tau={tau:g}s needs {2 * t} samples for two blocks, got {samples.size}"
        )
    means = samples[: t * divisions].reshape(divisions, t).mean(axis=1)
    return t, means


def _from_means(means: np.ndarray) -> float:
    diff = np.diff(means)
    return float(np.sqrt(0.5 * np.mean(diff * diff)))


def root_allan_variance(data: Sequence[float] | np.ndarray, data_rate: float, tau: float) -> float:
    """Non-overlapping root Allan variance of *data* at averaging time *tau*.

    Samples are grouped into contiguous blocks of ``round(tau * data_rate)``
    samples; trailing samples that do not fill a block are ignored. Raises
    :class:`InsufficientDataError` when fewer than two blocks fit.
    """

    samples = as_samples(data)
    _check_rate(data_rate)
    _, means = _block_means(samples, data_rate, tau)
    return _from_means(means)


def allan_curve(
    data: Sequence[float] | np.ndarray,
    data_rate: float,
    taus: Iterable[float],
    *,
    on_tau: Optional[Callable[[TauStep], None]] = None,
) -> AllanCurve:
    """Evaluate the root Allan variance for every tau in *taus*.

    Taus that cannot be estimated are skipped and reported in
    ``AllanCurve.excluded``; the remaining taus keep their input order.
    """

    samples = as_samples(data)
    _check_rate(data_rate)

    kept_tau: list[float] = []
    values: list[float] = []
    sizes: list[int] = []
    counts: list[int] = []
    excluded: list[float] = []

    for count, tau in enumerate(taus, start=1):
        tau = float(tau)
        try:
            t, means = _block_means(samples, data_rate, tau)
        except InsufficientDataError as exc:
            logger.warning("Skipping tau: %s", exc)
            excluded.append(tau)
            continue
        value = _from_means(means)
        kept_tau.append(tau)
        values.append(value)
        sizes.append(t)
        counts.append(int(means.size))
        if on_tau is not None:
            on_tau(
                TauStep(
                    index=len(kept_tau) - 1,
                    tau=tau,
                    block_size=t,
                    block_means=means,
                    root_allan_variance=value,
                )
            )
        if count % PROGRESS_EVERY == 0:
            logger.debug("Processed %d taus (tau=%.4g s, adev=%.4g)", count, tau, value)

    return AllanCurve(
        tau=np.asarray(kept_tau, dtype=float),
        root_allan_variance=np.asarray(values, dtype=float),
        block_size=np.asarray(sizes, dtype=int),
        blocks=np.asarray(counts, dtype=int),
        excluded=excluded,
    )


def _check_rate(data_rate: float) -> None:
    if not np.isfinite(data_rate) or data_rate <= 0:
        raise InvalidInputError(f"data_rate must be positive, got {data_rate!r}")
