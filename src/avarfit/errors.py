"""Exception hierarchy for Allan variance analysis."""
from __future__ import annotations


class AnalysisError(Exception):
    """Base class for all analysis failures."""


class InvalidInputError(AnalysisError, ValueError):
    """Raised for malformed data, sample rate, noise model or configuration."""


class InsufficientDataError(AnalysisError, ValueError):
    """Raised when the data cannot support an Allan variance estimate."""


class FitError(AnalysisError, RuntimeError):
    """Raised when the weighted noise-model fit cannot be computed."""


class DegenerateWeightingError(FitError):
    """A zero or non-finite Allan variance would yield an unbounded weight."""


class SingularFitError(FitError):
    """The weighted normal equations are rank deficient."""
