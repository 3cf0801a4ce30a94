"""
Shared fixtures: synthetic sapwood data sets and series tables.
"""

import os
from pathlib import Path
from types import MappingProxyType

import numpy as np
import pandas as pd
import pytest
from scipy import stats


@pytest.fixture
def small_histogram():
    """Sample 2, 3, 3, 4: mean 3, MLE variance 0.5."""
    return pd.DataFrame({'n_sapwood': [2, 3, 4], 'count': [1, 2, 1]})


@pytest.fixture
def wide_histogram():
    """Unimodal data set covering 3..30 sapwood rings, peak around 13."""
    n_sapwood = np.arange(3, 31)
    count = 1 + np.round(100 * stats.lognorm.pdf(n_sapwood, s=0.35, scale=14)).astype(int)
    return pd.DataFrame({'n_sapwood': n_sapwood, 'count': count})


@pytest.fixture
def catalog(small_histogram, wide_histogram):
    return MappingProxyType({
        'Synthetic_small': small_histogram,
        'Synthetic_wide': wide_histogram,
    })


@pytest.fixture
def dummy_series():
    """Nine series; trs_47 has neither sapwood rings nor waney edge."""
    return pd.DataFrame({
        'series': ['trs_40', 'trs_41', 'trs_42', 'trs_43', 'trs_44', 'trs_45',
                   'trs_46', 'trs_47', 'trs_48'],
        'last': [1000, 1009, 1007, 1007, 1010, 1020, 1025, 1050, 1035],
        'n_sapwood': [5, 10, 15, 16, 8, 0, 10, np.nan, 1],
        'waneyedge': [False, False, True, True, False, False, False, False, False],
    })


@pytest.fixture
def reference_dir():
    """
    Directory with published sapwood data sets as .csv files (n_sapwood;count),
    taken from the FELLINGDATE_REFERENCE_DIR environment variable.
    """
    data_dir = os.environ.get('FELLINGDATE_REFERENCE_DIR')
    if not data_dir or not Path(data_dir).is_dir():
        pytest.skip("FELLINGDATE_REFERENCE_DIR not set to a directory of sapwood data sets")
    return Path(data_dir)
