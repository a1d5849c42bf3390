"""
Monte Carlo ensembles of projected trajectories and their quantile bands.
"""

import logging
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd
from joblib import Parallel, delayed
from tqdm import tqdm

from .exceptions import DomainError, EmptyEnsembleError, InvalidQuantileError
from .helpers import check_quantiles, spawn_generators

logger = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class ProjectionMatrix:
    """
    Simulated trajectories, one column per draw, one row per year.

    Attributes
    ----------
    index : ndarray of int
        Row time index (years), shared by every column.
    values : ndarray of shape (n_rows, n_columns)
        Read-only simulated values.
    labels : tuple of str
        Column labels, ``draw_0 ... draw_{n-1}`` by default.
    """

    index: np.ndarray
    values: np.ndarray
    labels: Tuple[str, ...] = ()

    def __post_init__(self):
        index = np.array(self.index)
        values = np.array(self.values, dtype=float)
        if values.ndim != 2 or values.shape[1] < 1:
            raise EmptyEnsembleError(
                f"a projection matrix needs at least one column, got shape {values.shape}"
            )
        if index.shape[0] != values.shape[0]:
            raise ValueError(
                f"index has {index.shape[0]} rows, values have {values.shape[0]}"
            )
        labels = tuple(self.labels) or tuple(f"draw_{i}" for i in range(values.shape[1]))
        if len(labels) != values.shape[1]:
            raise ValueError(f"{len(labels)} labels for {values.shape[1]} columns")
        index.setflags(write=False)
        values.setflags(write=False)
        object.__setattr__(self, "index", index)
        object.__setattr__(self, "values", values)
        object.__setattr__(self, "labels", labels)

    @property
    def n_rows(self) -> int:
        return self.values.shape[0]

    @property
    def n_columns(self) -> int:
        return self.values.shape[1]

    @property
    def shape(self) -> Tuple[int, int]:
        return self.values.shape

    def column(self, i: int) -> pd.Series:
        """Trajectory `i` as a year-indexed series."""
        return pd.Series(self.values[:, i], index=pd.Index(self.index, name="year"),
                         name=self.labels[i])

    def to_frame(self) -> pd.DataFrame:
        """Copy of the matrix as a DataFrame (rows = years, columns = draws)."""
        return pd.DataFrame(self.values.copy(), index=pd.Index(self.index, name="year"),
                            columns=list(self.labels))


@dataclass(frozen=True)
class QuantileBand:
    """Lower / median / upper quantiles of one row of a projection matrix."""

    year: int
    lower: float
    median: float
    upper: float
    levels: Tuple[float, float, float] = (0.05, 0.5, 0.95)


class ProjectionEnsemble:
    """
    Run a single-trajectory projector many times.

    Each draw gets its own random stream spawned from `random_state`, so
    the matrix depends on the seed only and not on `n_jobs`.

    Parameters
    ----------
    n_jobs : int, optional
        joblib workers; None runs the draws sequentially.
    random_state : None, int, SeedSequence or Generator, optional
        Root of the per-draw streams.
    verbose : bool, default=False
        Show a progress bar.

    Examples
    --------
    >>> ens = ProjectionEnsemble(random_state=7)
    >>> matrix = ens.run(lambda rng: ds.project(model, future_gcm, random_state=rng), 500)
    >>> bands = ens.quantile_bands(matrix, 0.05, 0.5, 0.95)
    """

    def __init__(self, n_jobs: Optional[int] = None, random_state=None,
                 verbose: bool = False):
        self.n_jobs = n_jobs
        self.random_state = random_state
        self.verbose = verbose

    def run(self, projector: Callable, n: int, index: Optional[Sequence[int]] = None,
            label: Optional[str] = None) -> ProjectionMatrix:
        """
        Collect `n` independent trajectories into a `ProjectionMatrix`.

        Parameters
        ----------
        projector : callable
            ``projector(rng)`` returning one trajectory, either a
            year-indexed ``pd.Series`` or a 1-D array.
        n : int
            Number of draws (columns), at least 1.
        index : sequence of int, optional
            Row index for array trajectories (default ``0..len-1``).
        label : str, optional
            Column label prefix, ``<label>_<i>``.
        """
        if n < 1:
            raise EmptyEnsembleError(f"ensemble run: n must be >= 1, got {n}")

        rngs = spawn_generators(self.random_state, n)
        iterator = tqdm(rngs) if self.verbose else rngs
        if self.n_jobs is None:
            results = [projector(rng) for rng in iterator]
        else:
            results = Parallel(n_jobs=self.n_jobs)(
                delayed(projector)(rng) for rng in iterator
            )

        row_index = self._row_index(results, index)
        values = np.column_stack([np.asarray(r, dtype=float).ravel() for r in results])
        bad = ~np.all(np.isfinite(values), axis=0)
        if bad.any():
            raise DomainError(
                f"ensemble run: draws {np.flatnonzero(bad)[:10].tolist()} "
                f"produced missing or non-finite values"
            )
        prefix = label if label is not None else "draw"
        labels = tuple(f"{prefix}_{i}" for i in range(n))
        logger.debug("ensemble run: %d draws x %d rows", n, len(row_index))
        return ProjectionMatrix(index=row_index, values=values, labels=labels)

    @staticmethod
    def _row_index(results, index):
        first = results[0]
        if isinstance(first, pd.Series):
            row_index = first.index.to_numpy()
            for i, r in enumerate(results):
                if not isinstance(r, pd.Series) or not np.array_equal(r.index.to_numpy(), row_index):
                    raise ValueError(f"ensemble run: draw {i} is not aligned on the first draw's years")
            if index is not None and not np.array_equal(np.asarray(index), row_index):
                raise ValueError("ensemble run: index does not match the trajectories' years")
            return row_index

        length = np.asarray(first).ravel().shape[0]
        for i, r in enumerate(results):
            if np.asarray(r).ravel().shape[0] != length:
                raise ValueError(
                    f"ensemble run: draw {i} has {np.asarray(r).size} values, "
                    f"expected {length}"
                )
        if index is None:
            return np.arange(length)
        index = np.asarray(index)
        if index.shape[0] != length:
            raise ValueError(f"ensemble run: index has {index.shape[0]} entries for {length} rows")
        return index

    @staticmethod
    def quantile_bands(matrix: ProjectionMatrix, low_q: float = 0.05,
                       med_q: float = 0.5, high_q: float = 0.95) -> List[QuantileBand]:
        """
        Row-wise quantiles across draws, one band per row in row order.

        Rows are summarised independently: draws are iid across columns,
        not across years.
        """
        levels = check_quantiles((low_q, med_q, high_q))
        if not levels[0] <= levels[1] <= levels[2]:
            raise InvalidQuantileError(
                f"quantile levels must satisfy low <= median <= high, got {levels}"
            )
        q = np.quantile(matrix.values, levels, axis=1)
        return [
            QuantileBand(year=int(year), lower=float(lo), median=float(med),
                         upper=float(hi), levels=levels)
            for year, lo, med, hi in zip(matrix.index, q[0], q[1], q[2])
        ]


def quantile_bands(matrix: ProjectionMatrix, low_q: float = 0.05, med_q: float = 0.5,
                   high_q: float = 0.95) -> List[QuantileBand]:
    """Module-level alias of :meth:`ProjectionEnsemble.quantile_bands`."""
    return ProjectionEnsemble.quantile_bands(matrix, low_q, med_q, high_q)


def bands_to_frame(bands: Sequence[QuantileBand]) -> pd.DataFrame:
    """Row-oriented table ``year, quantile_low, median, quantile_high``."""
    return pd.DataFrame(
        {
            "year": [b.year for b in bands],
            "quantile_low": [b.lower for b in bands],
            "median": [b.median for b in bands],
            "quantile_high": [b.upper for b in bands],
        },
        columns=["year", "quantile_low", "median", "quantile_high"],
    )


def combine(matrices: Sequence[ProjectionMatrix]) -> ProjectionMatrix:
    """Side-by-side concatenation of matrices sharing one row index."""
    if not matrices:
        raise EmptyEnsembleError("combine: no matrices given")
    index = matrices[0].index
    for m in matrices[1:]:
        if not np.array_equal(m.index, index):
            raise ValueError("combine: matrices have different row indexes")
    labels = tuple(label for m in matrices for label in m.labels)
    if len(set(labels)) != len(labels):
        raise ValueError("combine: duplicate column labels")
    return ProjectionMatrix(
        index=index,
        values=np.hstack([m.values for m in matrices]),
        labels=labels,
    )
