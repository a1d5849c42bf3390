"""
Scenario sampling from fitted distributions.

Climate-change scenarios are imposed on a baseline fit by shifting its
location parameter and scaling its scale parameter in the family's own
parameterisation (for the log-normal: the mean and sd of the log).
"""

from dataclasses import replace
from typing import Optional

import numpy as np
import pandas as pd

from .exceptions import InvalidParameterError
from .fitting import FittedDistribution
from .helpers import check_random_state


class ParametricProjector:
    """
    Draw future values from a `FittedDistribution`.

    Parameters
    ----------
    random_state : None, int, SeedSequence or Generator, optional
        Default random source; each method also takes a per-call
        `random_state`.
    """

    def __init__(self, random_state=None):
        self.random_state = random_state

    def _rng(self, random_state):
        if random_state is None:
            random_state = self.random_state
        return check_random_state(random_state)

    def sample(self, fitted: FittedDistribution, n: int,
               random_state=None) -> np.ndarray:
        """`n` iid draws from the fitted distribution."""
        if n < 0:
            raise ValueError(f"n must be >= 0, got {n}")
        fam = fitted.descriptor
        return np.asarray(fam.sampler(fitted.params, n, self._rng(random_state)), dtype=float)

    def shifted(self, fitted: FittedDistribution, location_shift: float = 0.0,
                scale_multiplier: float = 1.0) -> FittedDistribution:
        """
        The fitted distribution with its location shifted and scale scaled.

        The result carries no likelihood or standard errors, it is a
        scenario rather than a fit.

        Raises
        ------
        InvalidParameterError
            If the family has no location parameter and `location_shift`
            is not zero, or if the shifted parameters are invalid (e.g. a
            non-positive scale).
        """
        fam = fitted.descriptor
        params = dict(zip(fam.param_names, fitted.params))
        if location_shift != 0:
            if fam.location is None:
                raise InvalidParameterError(
                    f"sample_shifted: family '{fam.name}' has no location "
                    f"parameter, cannot apply location_shift={location_shift}"
                )
            params[fam.location] += location_shift
        if scale_multiplier != 1:
            if fam.scale is None:
                raise InvalidParameterError(
                    f"sample_shifted: family '{fam.name}' has no scale parameter, "
                    f"cannot apply scale_multiplier={scale_multiplier}"
                )
            params[fam.scale] *= scale_multiplier
        new_params = tuple(float(params[name]) for name in fam.param_names)
        if not fam.valid(new_params):
            raise InvalidParameterError(
                f"sample_shifted: location_shift={location_shift}, "
                f"scale_multiplier={scale_multiplier} give invalid "
                f"{fam.name} parameters {dict(zip(fam.param_names, new_params))}"
            )
        return replace(fitted, params=new_params, log_likelihood=np.nan,
                       std_errors=None, n_obs=0, n_iter=0)

    def sample_shifted(self, fitted: FittedDistribution, n: int,
                       location_shift: float = 0.0, scale_multiplier: float = 1.0,
                       random_state=None) -> np.ndarray:
        """`n` iid draws from the shifted variant of `fitted`."""
        scenario = self.shifted(fitted, location_shift, scale_multiplier)
        return self.sample(scenario, n, random_state=random_state)

    def trajectory(self, fitted: FittedDistribution, years,
                   location_shift: float = 0.0, scale_multiplier: float = 1.0,
                   ramp: bool = False, random_state=None) -> pd.Series:
        """
        One simulated future, a draw per year of `years`.

        With ``ramp=True`` the shift grows linearly from none in the first
        year to the full `location_shift` / `scale_multiplier` in the last.
        """
        years = np.asarray(years, dtype=int)
        index = pd.Index(years, name="year")
        rng = self._rng(random_state)
        if not ramp or years.shape[0] < 2:
            values = self.sample_shifted(fitted, years.shape[0], location_shift,
                                         scale_multiplier, random_state=rng)
            return pd.Series(values, index=index, name=fitted.family)

        weights = np.linspace(0.0, 1.0, years.shape[0])
        values = np.empty(years.shape[0])
        for i, w in enumerate(weights):
            scenario = self.shifted(fitted, w * location_shift,
                                    1.0 + w * (scale_multiplier - 1.0))
            values[i] = self.sample(scenario, 1, random_state=rng)[0]
        return pd.Series(values, index=index, name=fitted.family)


def sample(fitted: FittedDistribution, n: int, random_state: Optional[object] = None) -> np.ndarray:
    """Shortcut for ``ParametricProjector(random_state).sample(fitted, n)``."""
    return ParametricProjector(random_state).sample(fitted, n)
