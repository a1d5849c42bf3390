"""
Regression downscaling of climate-model covariate trajectories.

A local variable (e.g. regional bottom temperature) is regressed on a
broad-scale covariate (e.g. a GCM surface temperature) over their common
years. Future local values are the regression prediction along a future
covariate trajectory plus residuals resampled from the historical fit.

This assumes the unexplained variance is stationary: the future is as
noisy around the regression line as the past was. The residual resampler
is injectable for richer noise models.
"""

import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Callable, Mapping, Optional

import numpy as np
import pandas as pd
from sklearn.linear_model import GammaRegressor, LinearRegression

from .exceptions import DomainError, InsufficientDataError, SingularFitError
from .helpers import check_random_state, check_values, seed_sequence
from .series import align, check_series

logger = logging.getLogger(__name__)

LINKS = ("identity", "log")

# relative spread below which a series counts as constant
SPREAD_RTOL = 16 * np.finfo(float).eps


def bootstrap_residuals(pool: np.ndarray, size: int, rng: np.random.Generator) -> np.ndarray:
    """Default residual resampler: iid draws with replacement."""
    return rng.choice(pool, size=size, replace=True)


def _is_constant(values, rtol=SPREAD_RTOL) -> bool:
    """True when the spread of `values` is within rounding of their magnitude."""
    return np.ptp(values) <= rtol * max(1.0, float(np.abs(values).max()))


@dataclass(frozen=True, eq=False)
class RegressionModel:
    """
    Fitted downscaling regression.

    Attributes
    ----------
    coefficients : mapping
        ``{"intercept": a, <covariate name>: b}``; on the link scale.
    residuals : ndarray
        ``fitted - observed`` per fitted year (read-only).
    fitted_values : ndarray
        Predictions on the fitted years (read-only).
    years : ndarray
        Years used in the fit.
    covariate_name, response_name : str
        Names of the predictor and of the local variable.
    link : str
        "identity" (ordinary least squares) or "log" (gamma GLM).
    """

    coefficients: Mapping[str, float]
    residuals: np.ndarray
    fitted_values: np.ndarray
    years: np.ndarray
    covariate_name: str = "covariate"
    response_name: Optional[str] = None
    link: str = "identity"

    @property
    def intercept(self) -> float:
        return self.coefficients["intercept"]

    @property
    def slope(self) -> float:
        return self.coefficients[self.covariate_name]

    @property
    def observed(self) -> np.ndarray:
        return self.fitted_values - self.residuals

    @property
    def r_squared(self) -> float:
        """
        Share of the local variance explained by the covariate.

        Raises `SingularFitError` when the local series was constant, since
        there is no variance to explain.
        """
        observed = self.observed
        if _is_constant(observed, rtol=1e-12):
            raise SingularFitError(
                f"r_squared: the local series is constant ({observed[0]:g}) "
                f"over {observed.shape[0]} years"
            )
        ss_tot = np.sum((observed - observed.mean()) ** 2)
        return float(1 - np.sum(self.residuals ** 2) / ss_tot)

    def predict(self, covariate) -> np.ndarray:
        """Point predictions for covariate values (response scale)."""
        x = check_values(covariate.to_numpy() if isinstance(covariate, pd.Series) else covariate,
                         name="covariate", min_size=0)
        eta = self.intercept + self.slope * x
        return np.exp(eta) if self.link == "log" else eta


class RegressionDownscaler:
    """
    Fit and project a local series from a covariate series.

    Parameters
    ----------
    link : str, default='identity'
        'identity' fits ``local = a + b * covariate`` by least squares;
        'log' fits a gamma GLM ``log E[local] = a + b * covariate`` for
        strictly positive locals. Residuals stay on the response scale
        under both links, so a log-link projection is ``exp(a + b * x)``
        plus a resampled residual and can fall to zero or below where the
        prediction is small. Pass a `residual_resampler` that scales its
        draws to the prediction if positivity must be kept.
    random_state : None, int, SeedSequence or Generator, optional
        Default random source for projections.

    Examples
    --------
    >>> ds = RegressionDownscaler(random_state=1)
    >>> model = ds.fit(bottom_temp, gcm_temp)
    >>> future = ds.project(model, gcm_temp_2100)
    """

    def __init__(self, link: str = "identity", random_state=None):
        if link not in LINKS:
            raise ValueError(f"link must be one of {LINKS}, got '{link}'")
        self.link = link
        self.random_state = random_state

    def fit(self, local_series, covariate_series) -> RegressionModel:
        """
        Regress `local_series` on `covariate_series` over their common years.

        Raises
        ------
        InsufficientDataError
            Fewer than two common years.
        SingularFitError
            The covariate is constant over the common years.
        DomainError
            Non-positive local values with ``link='log'``.
        """
        local, covariate = align(local_series, covariate_series)
        n_obs = len(local)
        if n_obs < 2:
            raise InsufficientDataError(
                f"downscaling fit: need at least 2 common years, got {n_obs}"
            )
        x = covariate.to_numpy()
        y = local.to_numpy()
        if _is_constant(x):
            raise SingularFitError(
                f"downscaling fit: covariate is constant ({x[0]:g}, spread "
                f"{np.ptp(x):g}) over {n_obs} years, the slope is not identifiable"
            )

        X = x.reshape(-1, 1)
        if self.link == "identity":
            estimator = LinearRegression().fit(X, y)
        else:
            if np.any(y <= 0):
                raise DomainError(
                    f"downscaling fit: link='log' requires positive local values, "
                    f"got minimum {y.min():g}"
                )
            estimator = GammaRegressor(alpha=0.0, max_iter=1000).fit(X, y)

        fitted = estimator.predict(X)
        if not np.all(np.isfinite(fitted)):
            raise SingularFitError("downscaling fit: non-finite fitted values")
        residuals = fitted - y

        covariate_name = str(covariate.name) if covariate.name is not None else "covariate"
        coefficients = MappingProxyType({
            "intercept": float(estimator.intercept_),
            covariate_name: float(estimator.coef_[0]),
        })
        for arr in (residuals, fitted):
            arr.setflags(write=False)
        years = local.index.to_numpy().copy()
        years.setflags(write=False)
        logger.debug("downscaling fit on %d years: %s", n_obs, dict(coefficients))
        return RegressionModel(
            coefficients=coefficients,
            residuals=residuals,
            fitted_values=fitted,
            years=years,
            covariate_name=covariate_name,
            response_name=local.name,
            link=self.link,
        )

    def project(self, model: RegressionModel, future_covariate,
                residual_resampler: Optional[Callable] = None,
                random_state=None) -> pd.Series:
        """
        One simulated local trajectory along `future_covariate`.

        Each year gets the point prediction plus one residual drawn
        independently, with replacement, from ``model.residuals``.

        Parameters
        ----------
        model : RegressionModel
            Output of :meth:`fit`.
        future_covariate : pd.Series or array-like
            Future covariate trajectory, indexed by year.
        residual_resampler : callable, optional
            ``resampler(pool, size, rng) -> ndarray``; defaults to
            :func:`bootstrap_residuals`.
        random_state : optional
            Overrides the downscaler's random source.

        Returns
        -------
        pd.Series
            Simulated values on the future covariate's years.
        """
        future = check_series(future_covariate, name=model.covariate_name)
        predictions = model.predict(future.to_numpy())
        if random_state is None:
            random_state = self.random_state
        rng = check_random_state(random_state)
        resampler = residual_resampler if residual_resampler is not None else bootstrap_residuals
        noise = np.asarray(resampler(model.residuals, predictions.shape[0], rng), dtype=float)
        if noise.shape != predictions.shape:
            raise ValueError(
                f"residual_resampler returned shape {noise.shape}, "
                f"expected {predictions.shape}"
            )
        return pd.Series(predictions + noise, index=future.index, name=model.response_name)

    def project_scenarios(self, model: RegressionModel, trajectories: Mapping[str, object],
                          n: int, residual_resampler: Optional[Callable] = None,
                          n_jobs: Optional[int] = None, random_state=None):
        """
        Residual-bootstrap ensemble along several covariate trajectories.

        Parameters
        ----------
        trajectories : mapping
            ``{scenario name: future covariate series}``, all on the same
            years (e.g. one per climate model or emission pathway).
        n : int
            Draws per trajectory.

        Returns
        -------
        ProjectionMatrix
            ``len(trajectories) * n`` columns labelled ``<scenario>_<i>``.
        """
        from .ensemble import ProjectionEnsemble, combine

        if not trajectories:
            raise ValueError("project_scenarios: no trajectories given")
        if random_state is None:
            random_state = self.random_state
        children = seed_sequence(random_state).spawn(len(trajectories))
        matrices = []
        for (name, trajectory), child in zip(trajectories.items(), children):
            trajectory = check_series(trajectory, name=name)
            ensemble = ProjectionEnsemble(n_jobs=n_jobs, random_state=child)
            matrices.append(ensemble.run(
                lambda rng, t=trajectory: self.project(model, t, residual_resampler, rng),
                n, label=name,
            ))
        return combine(matrices)
