#!/usr/bin/env python3
"""
Unit tests for time series construction and windowing.
"""

import numpy as np
import pandas as pd
import pytest

from envproj.exceptions import DomainError, InsufficientDataError
from envproj.series import align, check_series, make_series, tail, window


def test_make_series_indexes_by_year():
    s = make_series([2001, 2002, 2003], [1.0, 2.0, 3.0], name="temp")

    assert list(s.index) == [2001, 2002, 2003]
    assert s.index.name == "year"
    assert s.name == "temp"
    assert s.dtype == float


def test_make_series_rejects_duplicate_years():
    with pytest.raises(ValueError):
        make_series([2001, 2001, 2002], [1.0, 2.0, 3.0])


def test_make_series_rejects_decreasing_years():
    with pytest.raises(ValueError):
        make_series([2003, 2002], [1.0, 2.0])


def test_make_series_rejects_missing_values():
    with pytest.raises(DomainError):
        make_series([2001, 2002], [1.0, np.nan])


def test_tail_keeps_order():
    """Plain sequences are accepted and indexed from 0"""
    values = [1, 2, 3, 4, 5, 6, 7, 8, 9, 10]
    last = tail(values, 5)

    assert list(last) == [6, 7, 8, 9, 10]
    assert list(last.index) == [5, 6, 7, 8, 9]


def test_tail_of_year_series(temperature_series):
    last = tail(temperature_series, 10)

    assert list(last.index) == list(range(2007, 2017))
    assert np.allclose(last.to_numpy(), temperature_series.to_numpy()[-10:])


def test_tail_whole_series(temperature_series):
    assert len(tail(temperature_series, len(temperature_series))) == len(temperature_series)


@pytest.mark.parametrize("k", [0, 41])
def test_tail_out_of_range(temperature_series, k):
    with pytest.raises(InsufficientDataError):
        tail(temperature_series, k)


def test_window_inclusive(temperature_series):
    w = window(temperature_series, 1990, 1999)

    assert w.index[0] == 1990
    assert w.index[-1] == 1999
    assert len(w) == 10


def test_window_open_ended(temperature_series):
    assert window(temperature_series, start=2010).index[0] == 2010
    assert window(temperature_series, end=1980).index[-1] == 1980


def test_empty_window(temperature_series):
    with pytest.raises(InsufficientDataError):
        window(temperature_series, 2050, 2060)


def test_align_inner_join():
    left = make_series([2000, 2001, 2002, 2003], [1.0, 2.0, 3.0, 4.0], name="a")
    right = make_series([2002, 2003, 2004], [10.0, 20.0, 30.0], name="b")

    a, b = align(left, right)

    assert list(a.index) == [2002, 2003]
    assert list(b.index) == [2002, 2003]
    assert list(a) == [3.0, 4.0]
    assert list(b) == [10.0, 20.0]


def test_check_series_keeps_name():
    s = pd.Series([1.0, 2.0], index=[1999, 2000], name="x")
    assert check_series(s).name == "x"
