#!/usr/bin/env python3
"""
Unit tests for EmpiricalResampler - iid, block and quantile resampling.
"""

import numpy as np
import pytest

from envproj.empirical import EmpiricalResampler, resample, summarize
from envproj.exceptions import (
    InsufficientDataError,
    InvalidQuantileError,
    SampleSizeError,
)
from envproj.series import tail


@pytest.fixture
def resampler():
    return EmpiricalResampler(random_state=42)


@pytest.mark.parametrize("n", [0, 1, 7, 1000])
def test_resample_length(resampler, n):
    assert len(resampler.resample([3.0, 1.0, 2.0], n)) == n


def test_resample_single_value(resampler):
    draws = resampler.resample([5.0], 10)
    assert np.all(draws == 5.0)


def test_resample_stays_in_observed_values(resampler, temperature_series):
    draws = resampler.resample(temperature_series, 500)
    assert np.isin(draws, temperature_series.to_numpy()).all()


def test_resample_without_replacement_is_permutation(resampler):
    values = np.arange(10.0)
    draws = resampler.resample(values, 10, replace=False)
    assert sorted(draws) == list(values)


def test_resample_without_replacement_too_large(resampler):
    with pytest.raises(SampleSizeError):
        resampler.resample([1.0, 2.0, 3.0], 4, replace=False)


def test_resample_empty_input(resampler):
    with pytest.raises(InsufficientDataError):
        resampler.resample([], 5)


def test_tail_then_resample_is_reproducible():
    """Same seed, same bootstrap sample"""
    values = [1, 2, 3, 4, 5, 6, 7, 8, 9, 10]
    last = tail(values, 5)
    assert list(last) == [6, 7, 8, 9, 10]

    first = resample(last, 1000, random_state=1234)
    second = resample(last, 1000, random_state=1234)

    assert len(first) == 1000
    assert np.array_equal(first, second)
    assert set(first) <= {6.0, 7.0, 8.0, 9.0, 10.0}


def test_generator_state_advances():
    resampler = EmpiricalResampler(random_state=np.random.default_rng(3))
    a = resampler.resample(np.arange(100.0), 50)
    b = resampler.resample(np.arange(100.0), 50)
    assert not np.array_equal(a, b)


def test_block_resample_keeps_runs(resampler):
    values = np.arange(100.0)
    draws = resampler.block_resample(values, 20, block_size=5)

    assert len(draws) == 20
    for block in draws.reshape(4, 5):
        assert np.all(np.diff(block) == 1)


def test_block_resample_truncates(resampler):
    assert len(resampler.block_resample(np.arange(50.0), 23, block_size=5)) == 23


def test_block_larger_than_data_falls_back(resampler):
    draws = resampler.block_resample([1.0, 2.0, 3.0], 10, block_size=5)
    assert len(draws) == 10
    assert set(draws) <= {1.0, 2.0, 3.0}


def test_quantile_resample_within_range(resampler, temperature_series):
    draws = resampler.quantile_resample(temperature_series, 2000)
    values = temperature_series.to_numpy()

    assert len(draws) == 2000
    assert draws.min() >= values.min()
    assert draws.max() <= values.max()


def test_summarize_symmetric_sample():
    sample = np.linspace(-1, 1, 1001)
    summary = summarize(sample, (0.25, 0.5, 0.75))

    assert summary[0.5] == pytest.approx(np.mean(sample), abs=1e-12)
    assert summary[0.25] == pytest.approx(-0.5)
    assert summary[0.75] == pytest.approx(0.5)
    assert summary[0.5] - summary[0.25] == pytest.approx(summary[0.75] - summary[0.5])


def test_summarize_normal_sample(rng):
    sample = rng.normal(10.0, 2.0, 200_000)
    summary = summarize(sample, (0.25, 0.5, 0.75))

    assert summary[0.5] == pytest.approx(sample.mean(), abs=0.03)
    assert (summary[0.5] - summary[0.25]) == pytest.approx(summary[0.75] - summary[0.5], abs=0.03)


def test_summarize_keys_are_requested_levels():
    summary = summarize([1.0, 2.0, 3.0], (0.9, 0.1))
    assert list(summary) == [0.1, 0.9]
    assert 0.5 not in summary

    assert summarize([1.0, 2.0, 3.0])[0.5] == 2.0


def test_summarize_linear_interpolation():
    summary = summarize([1.0, 2.0, 3.0, 4.0], (0.0, 0.25, 0.5, 1.0))
    assert summary[0.0] == 1.0
    assert summary[0.25] == pytest.approx(1.75)
    assert summary[0.5] == pytest.approx(2.5)
    assert summary[1.0] == 4.0


@pytest.mark.parametrize("level", [-0.01, 1.5, float("nan")])
def test_summarize_invalid_level(level):
    with pytest.raises(InvalidQuantileError):
        summarize([1.0, 2.0, 3.0], (level,))


def test_summarize_empty_sample():
    with pytest.raises(InsufficientDataError):
        summarize([], (0.5,))
