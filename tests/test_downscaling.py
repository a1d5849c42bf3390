#!/usr/bin/env python3
"""
Unit tests for RegressionDownscaler - fit, residual-bootstrap projection.
"""

import numpy as np
import pandas as pd
import pytest

from envproj.downscaling import RegressionDownscaler, RegressionModel
from envproj.exceptions import DomainError, InsufficientDataError, SingularFitError
from envproj.series import make_series


@pytest.fixture
def linear_pair():
    """Noise-free local = 2 + 3 * covariate"""
    years = np.arange(2000, 2020)
    covariate = make_series(years, np.linspace(10.0, 15.0, years.size), name="gcm")
    local = make_series(years, 2.0 + 3.0 * covariate.to_numpy(), name="local")
    return local, covariate


def test_perfect_line(linear_pair):
    local, covariate = linear_pair
    model = RegressionDownscaler().fit(local, covariate)

    assert isinstance(model, RegressionModel)
    assert model.intercept == pytest.approx(2.0, abs=1e-8)
    assert model.slope == pytest.approx(3.0, abs=1e-9)
    assert dict(model.coefficients) == pytest.approx({"intercept": 2.0, "gcm": 3.0})
    assert np.allclose(model.residuals, 0.0, atol=1e-9)
    assert np.allclose(model.fitted_values, local.to_numpy())
    assert model.r_squared == pytest.approx(1.0)


def test_residual_sign_and_alignment(gcm_pair):
    local, gcm = gcm_pair
    model = RegressionDownscaler().fit(local, gcm)

    assert len(model.residuals) == len(local)
    assert np.allclose(model.residuals, model.fitted_values - local.to_numpy())
    assert list(model.years) == list(local.index)
    assert model.residuals.mean() == pytest.approx(0.0, abs=1e-10)


def test_recovers_noisy_slope(gcm_pair):
    local, gcm = gcm_pair
    model = RegressionDownscaler().fit(local, gcm)
    assert model.slope == pytest.approx(0.8, abs=0.15)


def test_model_is_read_only(linear_pair):
    model = RegressionDownscaler().fit(*linear_pair)
    with pytest.raises(ValueError):
        model.residuals[0] = 1.0
    with pytest.raises(TypeError):
        model.coefficients["intercept"] = 0.0


def test_inner_join_on_years():
    local = make_series(np.arange(1990, 2010), np.arange(20.0) * 2 + 1, name="local")
    covariate = make_series(np.arange(2000, 2030), np.arange(30.0), name="gcm")

    model = RegressionDownscaler().fit(local, covariate)

    assert list(model.years) == list(range(2000, 2010))
    assert model.slope == pytest.approx(2.0)
    assert model.intercept == pytest.approx(21.0)


def test_constant_covariate():
    years = np.arange(2000, 2010)
    with pytest.raises(SingularFitError):
        RegressionDownscaler().fit(make_series(years, np.arange(10.0)),
                                   make_series(years, np.full(10, 4.2)))


def test_covariate_constant_up_to_rounding():
    years = np.arange(2000, 2010)
    covariate = 4.2 + np.arange(10) * 1e-16
    with pytest.raises(SingularFitError):
        RegressionDownscaler().fit(make_series(years, np.arange(10.0)),
                                   make_series(years, covariate))


def test_constant_local_has_no_r_squared():
    years = np.arange(2000, 2010)
    model = RegressionDownscaler().fit(make_series(years, np.full(10, 7.3)),
                                       make_series(years, np.arange(10.0)))

    assert model.slope == pytest.approx(0.0, abs=1e-12)
    with pytest.raises(SingularFitError):
        model.r_squared


def test_single_overlap():
    local = make_series([2000, 2001], [1.0, 2.0])
    covariate = make_series([2001, 2002], [3.0, 4.0])
    with pytest.raises(InsufficientDataError):
        RegressionDownscaler().fit(local, covariate)


def test_unknown_link():
    with pytest.raises(ValueError):
        RegressionDownscaler(link="probit")


def test_project_zero_residuals_is_prediction(linear_pair, future_gcm):
    model = RegressionDownscaler().fit(*linear_pair)
    future = RegressionDownscaler(random_state=0).project(model, future_gcm)

    assert list(future.index) == list(future_gcm.index)
    assert np.allclose(future.to_numpy(), 2.0 + 3.0 * future_gcm.to_numpy())


def test_project_adds_historical_residuals(gcm_pair, future_gcm):
    model = RegressionDownscaler().fit(*gcm_pair)
    future = RegressionDownscaler(random_state=3).project(model, future_gcm)
    noise = future.to_numpy() - model.predict(future_gcm)

    for e in noise:
        assert np.isclose(e, model.residuals).any()


def test_project_reproducible(gcm_pair, future_gcm):
    downscaler = RegressionDownscaler()
    model = downscaler.fit(*gcm_pair)

    a = downscaler.project(model, future_gcm, random_state=12)
    b = downscaler.project(model, future_gcm, random_state=12)

    pd.testing.assert_series_equal(a, b)


def test_custom_residual_resampler(gcm_pair, future_gcm):
    model = RegressionDownscaler().fit(*gcm_pair)
    calls = []

    def no_noise(pool, size, rng):
        calls.append((len(pool), size))
        return np.zeros(size)

    future = RegressionDownscaler().project(model, future_gcm, residual_resampler=no_noise)

    assert calls == [(len(model.residuals), len(future_gcm))]
    assert np.allclose(future.to_numpy(), model.predict(future_gcm))


def test_bad_resampler_shape(gcm_pair, future_gcm):
    model = RegressionDownscaler().fit(*gcm_pair)
    with pytest.raises(ValueError):
        RegressionDownscaler().project(model, future_gcm,
                                       residual_resampler=lambda pool, size, rng: pool[:2])


def test_project_rejects_missing_covariate(gcm_pair, future_gcm):
    model = RegressionDownscaler().fit(*gcm_pair)
    future = future_gcm.copy()
    future.iloc[3] = np.nan
    with pytest.raises(DomainError):
        RegressionDownscaler().project(model, future)


def test_log_link():
    years = np.arange(1980, 2020)
    x = np.linspace(0.0, 10.0, years.size)
    covariate = make_series(years, x, name="gcm")
    local = make_series(years, np.exp(0.5 + 0.1 * x), name="abundance_index")

    model = RegressionDownscaler(link="log").fit(local, covariate)

    assert model.link == "log"
    assert model.slope == pytest.approx(0.1, abs=0.01)
    assert model.intercept == pytest.approx(0.5, abs=0.05)
    assert np.all(model.predict([20.0]) > 0)


def test_log_link_residuals_on_response_scale():
    years = np.arange(1980, 2020)
    x = np.linspace(0.0, 10.0, years.size)
    covariate = make_series(years, x, name="gcm")
    wiggle = np.where(np.arange(years.size) % 2 == 0, 0.4, -0.4)
    local = make_series(years, np.exp(0.5 + 0.1 * x) + wiggle, name="abundance_index")
    model = RegressionDownscaler(link="log").fit(local, covariate)

    # far below the fitted range the prediction is smaller than the residual spread
    future = make_series([2020, 2021, 2022], [-40.0, -40.0, -40.0], name="gcm")
    projected = RegressionDownscaler(link="log", random_state=5).project(model, future)
    noise = projected.to_numpy() - model.predict(future)

    for e in noise:
        assert np.isclose(e, model.residuals).any()
    assert model.predict(future).max() < np.abs(model.residuals).max()


def test_log_link_rejects_non_positive():
    years = np.arange(2000, 2005)
    with pytest.raises(DomainError):
        RegressionDownscaler(link="log").fit(make_series(years, [1.0, 0.0, 2.0, 3.0, 4.0]),
                                             make_series(years, [1.0, 2.0, 3.0, 4.0, 5.0]))


def test_project_scenarios(gcm_pair, future_gcm):
    downscaler = RegressionDownscaler(random_state=21)
    model = downscaler.fit(*gcm_pair)
    scenarios = {"ssp126": future_gcm, "ssp585": future_gcm + 0.05 * np.arange(len(future_gcm))}

    matrix = downscaler.project_scenarios(model, scenarios, n=40)

    assert matrix.shape == (len(future_gcm), 80)
    assert matrix.labels[0] == "ssp126_0"
    assert matrix.labels[-1] == "ssp585_39"
    assert list(matrix.index) == list(future_gcm.index)
    # the warmer pathway ends warmer
    frame = matrix.to_frame()
    hot = frame.filter(like="ssp585").iloc[-1].mean()
    cool = frame.filter(like="ssp126").iloc[-1].mean()
    assert hot > cool


def test_project_scenarios_reproducible(gcm_pair, future_gcm):
    downscaler = RegressionDownscaler()
    model = downscaler.fit(*gcm_pair)
    a = downscaler.project_scenarios(model, {"a": future_gcm}, n=10, random_state=4)
    b = downscaler.project_scenarios(model, {"a": future_gcm}, n=10, random_state=4)
    assert np.array_equal(a.values, b.values)
