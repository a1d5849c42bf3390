"""
Empirical (non-parametric) resampling of observed values.

Every draw comes from the observed values themselves, so simulated
futures never leave the observed range. This is a known limitation of
the approach and is kept as is: use the parametric projector when
extremes beyond the record matter.
"""

import logging
from typing import Dict, Iterable, Optional

import numpy as np

from .exceptions import InsufficientDataError, SampleSizeError
from .helpers import check_quantiles, check_random_state, check_values

logger = logging.getLogger(__name__)


class EmpiricalResampler:
    """
    Bootstrap resampler for a sample of observations.

    Parameters
    ----------
    random_state : None, int, SeedSequence or Generator, optional
        Default random source. An int gives identical draws on every call;
        a Generator is advanced by each call. Every method also accepts a
        per-call `random_state` that takes precedence.

    Examples
    --------
    >>> resampler = EmpiricalResampler(random_state=42)
    >>> draws = resampler.resample([6, 7, 8, 9, 10], 1000)
    >>> bands = resampler.summarize(draws, (0.05, 0.95))
    """

    def __init__(self, random_state=None):
        self.random_state = random_state

    def _rng(self, random_state):
        if random_state is None:
            random_state = self.random_state
        return check_random_state(random_state)

    def resample(self, values, sample_size: int, replace: bool = True,
                 random_state=None) -> np.ndarray:
        """
        Draw `sample_size` values uniformly from `values`.

        Parameters
        ----------
        values : array-like or pd.Series
            Observed values (a multiset; duplicates keep their weight).
        sample_size : int
            Number of draws.
        replace : bool, default=True
            Sample with replacement (bootstrap). Without replacement the
            sample size cannot exceed the number of values.
        random_state : optional
            Overrides the resampler's random source for this call.

        Returns
        -------
        ndarray of shape (sample_size,)
            Draws in draw order.
        """
        values = check_values(values)
        if sample_size < 0:
            raise SampleSizeError(f"resample: sample_size must be >= 0, got {sample_size}")
        if not replace and sample_size > values.shape[0]:
            raise SampleSizeError(
                f"resample: cannot draw {sample_size} values without "
                f"replacement from {values.shape[0]} observations"
            )
        rng = self._rng(random_state)
        idx = rng.choice(values.shape[0], size=sample_size, replace=replace)
        return values[idx]

    def block_resample(self, values, sample_size: int, block_size: int = 5,
                       random_state=None) -> np.ndarray:
        """
        Moving-block bootstrap, keeping runs of consecutive years together.

        Blocks of `block_size` consecutive observations start at uniformly
        drawn positions and are concatenated, then cut to `sample_size`.
        Falls back to :meth:`resample` when the block is longer than the
        record.
        """
        values = check_values(values)
        if block_size < 1:
            raise ValueError(f"block_size must be >= 1, got {block_size}")
        if sample_size < 0:
            raise SampleSizeError(f"block_resample: sample_size must be >= 0, got {sample_size}")
        n_obs = values.shape[0]
        if block_size > n_obs:
            logger.info(
                "block_size=%d exceeds %d observations, using iid bootstrap",
                block_size, n_obs,
            )
            return self.resample(values, sample_size, random_state=random_state)

        n_blocks = (sample_size + block_size - 1) // block_size
        if n_blocks == 0:
            return np.empty(0)
        rng = self._rng(random_state)
        starts = rng.integers(0, n_obs - block_size + 1, size=n_blocks)
        blocks = [values[start:start + block_size] for start in starts]
        return np.concatenate(blocks)[:sample_size]

    def quantile_resample(self, values, sample_size: int,
                          random_state=None) -> np.ndarray:
        """
        Inverse-CDF draws from the interpolated empirical quantile function.

        Smooths between observed values but stays within
        ``[min(values), max(values)]``.
        """
        values = check_values(values)
        if sample_size < 0:
            raise SampleSizeError(f"quantile_resample: sample_size must be >= 0, got {sample_size}")
        rng = self._rng(random_state)
        u = rng.uniform(0.0, 1.0, size=sample_size)
        return np.quantile(values, u)

    @staticmethod
    def summarize(sample, quantiles: Iterable[float] = (0.25, 0.5, 0.75)
                  ) -> Dict[float, float]:
        """
        Quantiles of a sample, linear interpolation between order statistics.

        Returns
        -------
        dict
            ``{level: value}`` for the requested levels, in increasing level
            order. Pass 0.5 to get the median.
        """
        levels = check_quantiles(tuple(quantiles))
        try:
            sample = check_values(sample, name="sample")
        except InsufficientDataError:
            raise InsufficientDataError("summarize: the sample is empty") from None
        levels = sorted(set(levels))
        values = np.quantile(sample, levels)
        return {q: float(v) for q, v in zip(levels, values)}


def resample(values, sample_size: int, replace: bool = True,
             random_state: Optional[object] = None) -> np.ndarray:
    """Shortcut for ``EmpiricalResampler().resample(...)``."""
    return EmpiricalResampler(random_state).resample(values, sample_size, replace=replace)


def summarize(sample, quantiles: Iterable[float] = (0.25, 0.5, 0.75)) -> Dict[float, float]:
    """Shortcut for :meth:`EmpiricalResampler.summarize`."""
    return EmpiricalResampler.summarize(sample, quantiles)
