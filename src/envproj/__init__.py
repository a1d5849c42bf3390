"""Top-level package for envproj."""

from .distributions import (  # noqa: F401
    DistributionFamily,
    available_families,
    get_family,
    register_family,
)
from .downscaling import RegressionDownscaler, RegressionModel  # noqa: F401
from .empirical import EmpiricalResampler  # noqa: F401
from .ensemble import (  # noqa: F401
    ProjectionEnsemble,
    ProjectionMatrix,
    QuantileBand,
    bands_to_frame,
    combine,
    quantile_bands,
)
from .exceptions import (  # noqa: F401
    ConvergenceError,
    DomainError,
    EmptyEnsembleError,
    InsufficientDataError,
    InvalidParameterError,
    InvalidQuantileError,
    ProjectionError,
    SampleSizeError,
    SingularFitError,
)
from .fitting import DistributionFitter, FittedDistribution  # noqa: F401
from .parametric import ParametricProjector  # noqa: F401
from .series import align, make_series, tail, window  # noqa: F401

__version__ = "0.1.0"

__all__ = [
    "DistributionFamily",
    "DistributionFitter",
    "EmpiricalResampler",
    "FittedDistribution",
    "ParametricProjector",
    "ProjectionEnsemble",
    "ProjectionMatrix",
    "QuantileBand",
    "RegressionDownscaler",
    "RegressionModel",
    "align",
    "available_families",
    "bands_to_frame",
    "combine",
    "get_family",
    "make_series",
    "quantile_bands",
    "register_family",
    "tail",
    "window",
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
