"""Allan variance analysis and power-law noise-model fitting."""

from importlib.metadata import PackageNotFoundError, version

from .allan import AllanCurve, TauStep, allan_curve, root_allan_variance
from .errors import (
    AnalysisError,
    DegenerateWeightingError,
    FitError,
    InsufficientDataError,
    InvalidInputError,
    SingularFitError,
)
from .models import NOISE_TERMS, NoiseFit, NoiseModel, fit_clock_noise, fit_noise_model, noise_parameters
from .pipeline import AnalysisResult, analyze
from .tau import select_taus

try:  # pragma: no cover - fallback when package metadata missing
    __version__ = version("avarfit")
except PackageNotFoundError:  # pragma: no cover
    __version__ = "0.0.0"

__all__ = [
    "__version__",
    "AllanCurve",
    "TauStep",
    "allan_curve",
    "root_allan_variance",
    "AnalysisError",
    "DegenerateWeightingError",
    "FitError",
    "InsufficientDataError",
    "InvalidInputError",
    "SingularFitError",
    "NOISE_TERMS",
    "NoiseFit",
    "NoiseModel",
    "fit_clock_noise",
    "fit_noise_model",
    "noise_parameters",
    "AnalysisResult",
    "analyze",
    "select_taus",
]
