import numpy as np
import pandas as pd
import pytest

from envproj.series import make_series


@pytest.fixture
def rng():
    return np.random.default_rng(20240101)


@pytest.fixture
def temperature_series(rng):
    """40 years of log-normal 'bottom temperature' observations."""
    years = np.arange(1977, 2017)
    return make_series(years, rng.lognormal(mean=1.0, sigma=0.2, size=years.size),
                       name="bottom_temp")


@pytest.fixture
def gcm_pair(rng):
    """Local series linearly related to a GCM covariate, with noise."""
    years = np.arange(1970, 2020)
    gcm = make_series(years, 12 + 0.03 * (years - 1970) + rng.normal(0, 0.3, years.size),
                      name="gcm_sst")
    local = make_series(years, 1.5 + 0.8 * gcm.to_numpy() + rng.normal(0, 0.2, years.size),
                        name="bottom_temp")
    return local, gcm


@pytest.fixture
def future_gcm():
    years = np.arange(2020, 2051)
    return pd.Series(13.5 + 0.04 * (years - 2020), index=pd.Index(years, name="year"),
                     name="gcm_sst")
