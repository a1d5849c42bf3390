"""
Time series construction and windowing.

A time series is a ``pandas.Series`` of floats indexed by integer year,
years strictly increasing. Values must be complete: the caller drops or
imputes gaps before anything here is called.
"""

import numpy as np
import pandas as pd

from .exceptions import InsufficientDataError
from .helpers import check_values


def make_series(years, values, name=None) -> pd.Series:
    """
    Build a validated yearly series.

    Parameters
    ----------
    years : array-like of int
        Strictly increasing years.
    values : array-like of float
        One finite value per year.
    name : str, optional
        Variable name carried by the series.

    Returns
    -------
    pd.Series
        Float series indexed by year.
    """
    years = np.asarray(years)
    values = check_values(values, name=name or "values")
    if years.ndim != 1 or years.shape[0] != values.shape[0]:
        raise ValueError(
            f"years and values must have the same length, got "
            f"{years.shape[0]} and {values.shape[0]}"
        )
    if not np.all(np.mod(years, 1) == 0):
        raise ValueError("years must be integers")
    years = years.astype(int)
    if np.any(np.diff(years) <= 0):
        raise ValueError("years must be strictly increasing without duplicates")
    index = pd.Index(years, name="year")
    return pd.Series(values, index=index, name=name)


def check_series(series, name=None) -> pd.Series:
    """Validate `series` (a Series or a sequence of values) as a time series.

    A plain sequence is indexed ``0..n-1``.
    """
    if isinstance(series, pd.Series):
        return make_series(series.index.to_numpy(), series.to_numpy(),
                           name=name if name is not None else series.name)
    values = check_values(series, name=name or "values")
    return make_series(np.arange(values.shape[0]), values, name=name)


def tail(series, k: int) -> pd.Series:
    """
    Last `k` observations of `series`, in their original order.

    Raises
    ------
    InsufficientDataError
        If `k` exceeds the length of the series or is smaller than 1.
    """
    series = check_series(series)
    if k < 1 or k > len(series):
        raise InsufficientDataError(
            f"tail: cannot take the last {k} of {len(series)} observations"
        )
    return series.iloc[-k:].copy()


def window(series, start=None, end=None) -> pd.Series:
    """Observations with ``start <= year <= end`` (either bound optional)."""
    series = check_series(series)
    mask = np.ones(len(series), dtype=bool)
    if start is not None:
        mask &= series.index >= start
    if end is not None:
        mask &= series.index <= end
    if not mask.any():
        raise InsufficientDataError(
            f"window: no observations between {start} and {end} "
            f"(series covers {series.index[0]}-{series.index[-1]})"
        )
    return series[mask].copy()


def align(left, right):
    """
    Inner join two series on year.

    Returns
    -------
    tuple of pd.Series
        Both series restricted to their common years.
    """
    left = check_series(left)
    right = check_series(right)
    common = left.index.intersection(right.index).sort_values()
    return left.loc[common].copy(), right.loc[common].copy()


def as_values(series) -> np.ndarray:
    """Finite float values of a series or array-like."""
    if isinstance(series, pd.Series):
        series = series.to_numpy()
    return check_values(series)
