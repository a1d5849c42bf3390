# Authors: Thierry Moudiki
#
# License: BSD 3 Clear

import numpy as np

from .exceptions import DomainError, InsufficientDataError, InvalidQuantileError


def check_random_state(random_state=None):
    """
    Turn `random_state` into a `numpy.random.Generator`.

    Parameters:
        random_state (None, int, SeedSequence or Generator): seed material.
            A Generator is returned as is (and is consumed by the caller),
            anything else seeds a fresh Generator.

    Returns:
        numpy.random.Generator
    """
    if isinstance(random_state, np.random.Generator):
        return random_state
    if random_state is None or isinstance(
        random_state, (int, np.integer, np.random.SeedSequence)
    ):
        return np.random.default_rng(random_state)
    raise TypeError(
        f"random_state must be None, an int, a SeedSequence or a Generator, "
        f"got {type(random_state).__name__}"
    )


def seed_sequence(random_state=None):
    """Root `SeedSequence` for `random_state` (a Generator is drawn from)."""
    if isinstance(random_state, np.random.SeedSequence):
        return random_state
    if isinstance(random_state, np.random.Generator):
        return np.random.SeedSequence(int(random_state.integers(0, 2**63)))
    return np.random.SeedSequence(random_state)


def spawn_generators(random_state, n):
    """
    Independent child generators, one per task.

    The streams depend on the seed and on the position of the task only,
    so results do not change with the number of workers.
    """
    children = seed_sequence(random_state).spawn(n)
    return [np.random.default_rng(child) for child in children]


def check_values(values, name="values", min_size=1):
    """
    Validate a sample of observations.

    Returns a 1-D float array. Raises `InsufficientDataError` when fewer
    than `min_size` values are given and `DomainError` on missing or
    infinite values.
    """
    arr = np.asarray(values, dtype=float)
    if arr.ndim == 0:
        arr = arr.reshape(1)
    if arr.ndim != 1:
        arr = arr.ravel()
    if arr.shape[0] < min_size:
        raise InsufficientDataError(
            f"{name}: need at least {min_size} observation(s), got {arr.shape[0]}"
        )
    bad = ~np.isfinite(arr)
    if bad.any():
        raise DomainError(
            f"{name}: {int(bad.sum())} missing or non-finite value(s) at "
            f"positions {np.flatnonzero(bad)[:10].tolist()}; drop or impute "
            f"them first"
        )
    return arr


def check_quantiles(levels):
    """Validate quantile levels, returning them as a tuple of floats."""
    levels = tuple(float(q) for q in np.atleast_1d(levels))
    for q in levels:
        if not 0.0 <= q <= 1.0:  # also rejects NaN
            raise InvalidQuantileError(
                f"quantile level {q!r} is outside [0, 1]"
            )
    return levels
