"""
Registry of parametric distribution families.

A family is described by a `DistributionFamily`: its log-likelihood, a
sampler, a parameter validity check and a few hints for the optimiser.
The fitter and the projector only talk to these descriptors, so a new
family is added with `register_family` and nothing else changes.
"""

from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Tuple, Union

import numpy as np
from scipy import special, stats


@dataclass(frozen=True)
class DistributionFamily:
    """
    Capabilities of one parametric family.

    Attributes
    ----------
    name : str
        Registry key.
    param_names : tuple of str
        Parameter order used everywhere (fits, samplers, shifts).
    loglik : callable
        ``loglik(params, values) -> float``, total log-likelihood.
    sampler : callable
        ``sampler(params, n, rng) -> ndarray`` of `n` iid draws.
    valid : callable
        ``valid(params) -> bool``.
    supports : callable
        ``supports(values) -> bool``, whether the data lie in the support.
    initial : callable
        ``initial(values) -> tuple``, starting point for the optimiser.
    frozen : callable
        ``frozen(params)`` returns the equivalent scipy.stats distribution.
    positive : tuple of bool
        Parameters optimised on the log scale.
    location, scale : str or None
        Names of the parameters moved by location shifts and scale
        multipliers. None when the family has no such parameter.
    support : str
        Human readable support, used in error messages.
    """

    name: str
    param_names: Tuple[str, ...]
    loglik: Callable
    sampler: Callable
    valid: Callable
    supports: Callable
    initial: Callable
    frozen: Callable
    positive: Tuple[bool, ...]
    location: Optional[str] = None
    scale: Optional[str] = None
    support: str = "real line"

    @property
    def n_params(self) -> int:
        return len(self.param_names)


_REGISTRY: Dict[str, DistributionFamily] = {}


def register_family(family: DistributionFamily, overwrite: bool = False) -> DistributionFamily:
    """Add `family` to the registry under ``family.name``."""
    if len(family.positive) != family.n_params:
        raise ValueError(
            f"family '{family.name}': 'positive' has {len(family.positive)} "
            f"entries for {family.n_params} parameters"
        )
    for attr in ("location", "scale"):
        pname = getattr(family, attr)
        if pname is not None and pname not in family.param_names:
            raise ValueError(f"family '{family.name}': unknown {attr} parameter '{pname}'")
    key = family.name.lower()
    if key in _REGISTRY and not overwrite:
        raise ValueError(f"family '{family.name}' is already registered")
    _REGISTRY[key] = family
    return family


def get_family(family: Union[str, DistributionFamily]) -> DistributionFamily:
    """Look up a family by name (an instance is returned unchanged)."""
    if isinstance(family, DistributionFamily):
        return family
    try:
        return _REGISTRY[str(family).lower()]
    except KeyError:
        raise ValueError(
            f"unknown distribution family '{family}', must be one of "
            f"{available_families()}"
        ) from None


def available_families() -> List[str]:
    return sorted(_REGISTRY)


def _all_positive(values):
    return bool(np.all(np.asarray(values) > 0))


def _finite(params):
    return bool(np.all(np.isfinite(params)))


# log-normal: mu, sigma of log(values)

def _lognormal_initial(values):
    logs = np.log(values)
    return float(np.mean(logs)), float(max(np.std(logs), 1e-6))


register_family(DistributionFamily(
    name="lognormal",
    param_names=("mu", "sigma"),
    loglik=lambda p, x: float(np.sum(stats.lognorm.logpdf(x, s=p[1], scale=np.exp(p[0])))),
    sampler=lambda p, n, rng: rng.lognormal(mean=p[0], sigma=p[1], size=n),
    valid=lambda p: _finite(p) and p[1] > 0,
    supports=_all_positive,
    initial=_lognormal_initial,
    frozen=lambda p: stats.lognorm(s=p[1], scale=np.exp(p[0])),
    positive=(False, True),
    location="mu",
    scale="sigma",
    support="values > 0",
))


# Weibull: shape k, scale lambda; density k/l (x/l)^(k-1) exp(-(x/l)^k),
# the same parameterisation as scipy.stats.weibull_min(c=k, scale=l)

def _weibull_initial(values):
    mean = np.mean(values)
    cv = np.std(values) / mean
    shape = float(np.clip(cv ** -1.086, 0.1, 50.0)) if cv > 0 else 1.0
    scale = float(mean / special.gamma(1.0 + 1.0 / shape))
    return shape, scale


register_family(DistributionFamily(
    name="weibull",
    param_names=("shape", "scale"),
    loglik=lambda p, x: float(np.sum(stats.weibull_min.logpdf(x, c=p[0], scale=p[1]))),
    sampler=lambda p, n, rng: p[1] * rng.weibull(p[0], size=n),
    valid=lambda p: _finite(p) and p[0] > 0 and p[1] > 0,
    supports=_all_positive,
    initial=_weibull_initial,
    frozen=lambda p: stats.weibull_min(c=p[0], scale=p[1]),
    positive=(True, True),
    location=None,
    scale="scale",
    support="values > 0",
))


register_family(DistributionFamily(
    name="normal",
    param_names=("loc", "scale"),
    loglik=lambda p, x: float(np.sum(stats.norm.logpdf(x, loc=p[0], scale=p[1]))),
    sampler=lambda p, n, rng: rng.normal(loc=p[0], scale=p[1], size=n),
    valid=lambda p: _finite(p) and p[1] > 0,
    supports=lambda x: True,
    initial=lambda x: (float(np.mean(x)), float(max(np.std(x), 1e-6))),
    frozen=lambda p: stats.norm(loc=p[0], scale=p[1]),
    positive=(False, True),
    location="loc",
    scale="scale",
))


def _gamma_initial(values):
    mean, var = np.mean(values), np.var(values)
    if var <= 0:
        return 1.0, float(mean)
    return float(mean ** 2 / var), float(var / mean)


register_family(DistributionFamily(
    name="gamma",
    param_names=("shape", "scale"),
    loglik=lambda p, x: float(np.sum(stats.gamma.logpdf(x, a=p[0], scale=p[1]))),
    sampler=lambda p, n, rng: rng.gamma(shape=p[0], scale=p[1], size=n),
    valid=lambda p: _finite(p) and p[0] > 0 and p[1] > 0,
    supports=_all_positive,
    initial=_gamma_initial,
    frozen=lambda p: stats.gamma(a=p[0], scale=p[1]),
    positive=(True, True),
    location=None,
    scale="scale",
    support="values > 0",
))
