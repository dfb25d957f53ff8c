"""Selection of averaging intervals (tau) for Allan variance analysis."""
from __future__ import annotations

import logging
import math

import numpy as np

from .errors import InvalidInputError

logger = logging.getLogger(__name__)

TAU_MULTIPLIERS = np.arange(2.0, 10.0)
ORDER_STEP = 0.5


def block_size(tau: float, data_rate: float) -> int:
    """Number of samples in one averaging block at *tau* (rounded half up)."""

    return int(math.floor(tau * data_rate + 0.5))


def select_taus(
    length: int,
    data_rate: float,
    *,
    deduplicate: bool = True,
    usable_only: bool = True,
) -> np.ndarray:
    """Return a strictly increasing set of candidate taus in seconds.

    Candidates are ``{2..9} x 10**order`` for ``order`` stepping by half a
    decade from the sampling interval up to two decades below the record
    duration, which gives dense coverage at low tau and sparse coverage at
    high tau.

    Parameters
    ----------
    length:
        Number of samples in the record.
    data_rate:
        Sample rate in Hz.
    deduplicate:
        Keep only the first tau for each block length, since taus that round
        to the same number of samples yield identical Allan values.
    usable_only:
        Drop candidates whose block length rounds to zero samples or that
        leave fewer than two blocks in the record.

    Returns
    -------
    numpy.ndarray
        Tau values, possibly empty when the record is too short.
    """

    if isinstance(length, bool) or int(length) != length or length < 1:
        raise InvalidInputError(f"length must be a positive integer, got {length!r}")
    length = int(length)
    if not np.isfinite(data_rate) or data_rate <= 0:
        raise InvalidInputError(f"data_rate must be positive, got {data_rate!r}")

    duration = int(length / data_rate)
    order_max = len(str(duration)) - 2
    order = math.floor(math.log10(1.0 / data_rate))

    pool: list[np.ndarray] = []
    while order < order_max:
        pool.append(TAU_MULTIPLIERS * 10.0**order)
        order += ORDER_STEP

    if not pool:
        logger.debug("No tau candidates for length=%d rate=%g", length, data_rate)
        return np.empty(0, dtype=float)

    taus = np.sort(np.concatenate(pool))
    if deduplicate:
        taus = unique_block_sizes(taus, data_rate)
    if usable_only:
        sizes = np.floor(taus * data_rate + 0.5)
        with np.errstate(divide="ignore"):
            blocks = np.where(sizes >= 1, np.floor(length / np.maximum(sizes, 1.0)), 0.0)
        taus = taus[(sizes >= 1) & (blocks >= 2)]

    logger.debug(
        "Selected %d taus (%.3g s .. %.3g s)",
        taus.size,
        taus[0] if taus.size else float("nan"),
        taus[-1] if taus.size else float("nan"),
    )
    return taus


def unique_block_sizes(taus: np.ndarray, data_rate: float) -> np.ndarray:
    """Drop every tau whose block length repeats an earlier one in *taus*."""

    taus = np.asarray(taus, dtype=float)
    sizes = np.floor(taus * data_rate + 0.5).astype(int)
    _, first = np.unique(sizes, return_index=True)
    return taus[np.sort(first)]
