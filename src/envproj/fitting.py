"""
Maximum-likelihood fitting of registered distribution families.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Tuple, Union

import numpy as np
from scipy import optimize

from .distributions import DistributionFamily, available_families, get_family
from .exceptions import ConvergenceError, DomainError, InsufficientDataError
from .helpers import check_values

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FittedDistribution:
    """
    Result of a maximum-likelihood fit.

    Attributes
    ----------
    family : str
        Registry name of the family.
    params : tuple of float
        Point estimates, in the family's parameter order.
    param_names : tuple of str
        Names matching `params`.
    log_likelihood : float
        Maximised log-likelihood (NaN for a shifted, unfitted variant).
    std_errors : tuple of float or None
        Standard errors from the observed information, None when the
        numerical Hessian is not positive definite.
    n_obs : int
        Number of observations fitted (0 for a shifted variant).
    n_iter : int
        Optimiser iterations.
    """

    family: str
    params: Tuple[float, ...]
    param_names: Tuple[str, ...]
    log_likelihood: float
    std_errors: Optional[Tuple[float, ...]] = None
    n_obs: int = 0
    n_iter: int = 0
    aic: float = field(init=False)
    bic: float = field(init=False)

    def __post_init__(self):
        k = len(self.params)
        object.__setattr__(self, "aic", 2 * k - 2 * self.log_likelihood)
        bic = k * np.log(self.n_obs) - 2 * self.log_likelihood if self.n_obs > 0 else np.nan
        object.__setattr__(self, "bic", float(bic))

    @property
    def descriptor(self) -> DistributionFamily:
        return get_family(self.family)

    def as_dict(self) -> Dict[str, float]:
        return dict(zip(self.param_names, self.params))

    def frozen(self):
        """Equivalent frozen ``scipy.stats`` distribution."""
        return self.descriptor.frozen(self.params)

    def mean(self) -> float:
        return float(self.frozen().mean())

    def std(self) -> float:
        return float(self.frozen().std())

    def skewness(self) -> float:
        """Skewness; positive means the long tail is on the right."""
        return float(self.frozen().stats(moments="s"))

    def __repr__(self) -> str:
        params = ", ".join(f"{k}={v:.4g}" for k, v in self.as_dict().items())
        return f"FittedDistribution({self.family}: {params}, loglik={self.log_likelihood:.4g})"


class DistributionFitter:
    """
    Maximum-likelihood fitter working on any registered family.

    The negative log-likelihood is minimised with Nelder-Mead over the
    family's parameters, positive ones on the log scale. Standard errors
    come from a central-difference Hessian at the optimum.

    Parameters
    ----------
    max_iter : int, default=2000
        Iteration budget of the optimiser.
    tol : float, default=1e-10
        Absolute tolerance on the objective.

    Examples
    --------
    >>> fitter = DistributionFitter()
    >>> fitted = fitter.fit(temperatures, "lognormal")
    >>> fitted.as_dict()
    """

    def __init__(self, max_iter: int = 2000, tol: float = 1e-10):
        if max_iter < 1:
            raise ValueError(f"max_iter must be >= 1, got {max_iter}")
        self.max_iter = max_iter
        self.tol = tol

    def fit(self, values, family: Union[str, DistributionFamily]) -> FittedDistribution:
        """
        Fit `family` to `values`.

        Raises
        ------
        DomainError
            If a value lies outside the family's support.
        InsufficientDataError
            With fewer than two distinct values.
        ConvergenceError
            If the optimiser stops without converging.
        """
        fam = get_family(family)
        values = check_values(values, min_size=2)
        if not fam.supports(values):
            raise DomainError(
                f"fit({fam.name}): requires {fam.support}, got minimum "
                f"{values.min():g}"
            )
        if np.ptp(values) == 0:
            raise InsufficientDataError(
                f"fit({fam.name}): all {values.shape[0]} values equal "
                f"{values[0]:g}, the likelihood has no finite maximum"
            )

        positive = np.asarray(fam.positive, dtype=bool)

        def to_params(theta):
            return tuple(np.where(positive, np.exp(theta), theta).tolist())

        def objective(theta):
            params = to_params(theta)
            if not fam.valid(params):
                return np.inf
            ll = fam.loglik(params, values)
            return -ll if np.isfinite(ll) else np.inf

        start = np.asarray(fam.initial(values), dtype=float)
        theta0 = np.where(positive, np.log(start), start)
        res = optimize.minimize(
            objective, theta0, method="Nelder-Mead",
            options={"maxiter": self.max_iter, "xatol": 1e-8, "fatol": self.tol},
        )
        if not res.success or not np.isfinite(res.fun):
            raise ConvergenceError(
                f"fit({fam.name}): optimiser stopped after {res.nit} "
                f"iterations without converging ({res.message})"
            )

        params = to_params(res.x)
        logger.debug("fit(%s): %s after %d iterations, loglik=%.6g",
                     fam.name, params, res.nit, -res.fun)
        std_errors = self._std_errors(fam, params, values)
        return FittedDistribution(
            family=fam.name,
            params=params,
            param_names=fam.param_names,
            log_likelihood=float(-res.fun),
            std_errors=std_errors,
            n_obs=int(values.shape[0]),
            n_iter=int(res.nit),
        )

    def fit_many(self, values, families: Optional[Iterable[str]] = None
                 ) -> List[FittedDistribution]:
        """
        Fit several families and rank them by AIC, best first.

        Families whose support excludes the data are skipped.
        """
        names = list(families) if families is not None else available_families()
        fits = []
        for name in names:
            try:
                fits.append(self.fit(values, name))
            except DomainError as err:
                logger.info("skipping %s: %s", name, err)
        if not fits:
            raise DomainError(f"fit_many: no family in {names} supports the data")
        return sorted(fits, key=lambda f: f.aic)

    @staticmethod
    def _std_errors(fam, params, values) -> Optional[Tuple[float, ...]]:
        """Square roots of the diagonal of the inverse observed information."""
        p = np.asarray(params, dtype=float)
        k = p.shape[0]
        h = 1e-4 * np.maximum(np.abs(p), 1.0)

        def nll(x):
            x = tuple(x.tolist())
            if not fam.valid(x):
                return np.nan
            return -fam.loglik(x, values)

        f0 = nll(p)
        hess = np.empty((k, k))
        for i in range(k):
            ei = np.zeros(k)
            ei[i] = h[i]
            hess[i, i] = (nll(p + ei) - 2 * f0 + nll(p - ei)) / h[i] ** 2
            for j in range(i + 1, k):
                ej = np.zeros(k)
                ej[j] = h[j]
                hess[i, j] = hess[j, i] = (
                    nll(p + ei + ej) - nll(p + ei - ej)
                    - nll(p - ei + ej) + nll(p - ei - ej)
                ) / (4 * h[i] * h[j])

        if not np.all(np.isfinite(hess)):
            logger.warning("fit(%s): Hessian not finite, no standard errors", fam.name)
            return None
        try:
            np.linalg.cholesky(hess)
        except np.linalg.LinAlgError:
            logger.warning("fit(%s): Hessian not positive definite, no standard errors",
                           fam.name)
            return None
        cov = np.linalg.inv(hess)
        return tuple(np.sqrt(np.diag(cov)).tolist())


def fit(values, family: Union[str, DistributionFamily] = "lognormal") -> FittedDistribution:
    """Shortcut for ``DistributionFitter().fit(values, family)``."""
    return DistributionFitter().fit(values, family)
