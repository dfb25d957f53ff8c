"""Loading of sensor time series for Allan variance analysis."""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import numpy as np
import pandas as pd

from .errors import InvalidInputError

TIME_COLUMN_NAMES = {"t", "ts", "time", "timestamp", "stamp", "seconds", "sec"}


@dataclass(frozen=True)
class SensorSeries:
    """A single uniformly sampled sensor channel."""

    values: np.ndarray
    column: str
    data_rate: Optional[float]


def load_series_csv(
    path: str | Path,
    *,
    column: str | None = None,
    time_column: str | None = None,
) -> SensorSeries:
    """Load one sample column from the CSV file at *path*.

    Parameters
    ----------
    path:
        CSV file with a header row.
    column:
        Column holding the sensor samples. Defaults to the first numeric
        column that is neither *time_column* nor named like a timestamp.
    time_column:
        Optional timestamp column in seconds; when given, the sample rate is
        inferred as the reciprocal of the median timestamp step.

    Returns
    -------
    SensorSeries
        Samples with NaN rows dropped and the inferred sample rate (or None).
    """

    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(path)

    df = pd.read_csv(path, comment="#")
    if time_column is not None and time_column not in df.columns:
        raise InvalidInputError(f"Missing time column '{time_column}'")

    if column is None:
        candidates = [
            name
            for name in df.select_dtypes(include="number").columns
            if name != time_column and not _looks_like_time(str(name))
        ]
        if not candidates:
            raise InvalidInputError(f"No numeric sample column in {path.name}")
        column = str(candidates[0])
    elif column not in df.columns:
        raise InvalidInputError(f"Missing sample column '{column}' (available: {list(df.columns)})")

    subset = [column] if time_column is None else [time_column, column]
    df = df[subset].apply(pd.to_numeric, errors="coerce").dropna()
    values = df[column].to_numpy(dtype=float)
    if values.size == 0:
        raise InvalidInputError(f"Column '{column}' holds no numeric samples")

    rate = infer_rate(df[time_column].to_numpy(dtype=float)) if time_column is not None else None
    return SensorSeries(values=values, column=column, data_rate=rate)


def _looks_like_time(name: str) -> bool:
    lowered = name.strip().lower()
    return lowered in TIME_COLUMN_NAMES or "time" in lowered


def infer_rate(timestamps: np.ndarray) -> float:
    """Sample rate in Hz from timestamps in seconds."""

    if timestamps.size < 2:
        raise InvalidInputError("Need at least two timestamps to infer the sample rate")
    step = float(np.median(np.diff(timestamps)))
    if not np.isfinite(step) or step <= 0:
        raise InvalidInputError("Timestamps must be strictly increasing")
    return 1.0 / step
