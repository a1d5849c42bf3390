"""Errors raised by the projection pipeline.

Every error is a ``ValueError`` so that callers treating bad input
generically keep working; the subclasses tell them what to fix.
"""


class ProjectionError(ValueError):
    """Base class for recoverable input errors of the projection core."""


class InsufficientDataError(ProjectionError):
    """Not enough observations for the requested operation."""


class SampleSizeError(ProjectionError):
    """Sampling without replacement asked for more draws than values."""


class InvalidQuantileError(ProjectionError):
    """Quantile level outside [0, 1] (or levels out of order)."""


class DomainError(ProjectionError):
    """Value outside the support of a distribution family, or not finite."""


class ConvergenceError(ProjectionError):
    """Likelihood optimiser did not converge within its iteration budget."""


class SingularFitError(ProjectionError):
    """Degenerate regression input, e.g. a constant covariate."""


class InvalidParameterError(ProjectionError):
    """Shifted distribution parameters leave the family's valid domain."""


class EmptyEnsembleError(ProjectionError):
    """An ensemble was requested with fewer than one member."""


__all__ = [
    "ProjectionError",
    "InsufficientDataError",
    "SampleSizeError",
    "InvalidQuantileError",
    "DomainError",
    "ConvergenceError",
    "SingularFitError",
    "InvalidParameterError",
    "EmptyEnsembleError",
]
