"""
Felling date probability distributions of individual series.
"""

import numbers

import numpy as np
import pandas as pd

from ..exceptions import InsufficientModelSupport, InvalidSapwoodCount
from .density import logdensity
from .fitting import FittedModel
from .hdi import CredibleInterval, hdi


def validate_sapwood_count(n_sapwood) -> int:
    """
    Check that n_sapwood is a natural number (0 included).

    Integral floats such as 12.0 are accepted, 22.456, negative values,
    booleans and strings are not.
    """
    if isinstance(n_sapwood, (bool, np.bool_)) or not isinstance(n_sapwood, numbers.Real):
        raise InvalidSapwoodCount(f"n_sapwood must be a non-negative integer, got {n_sapwood!r}")
    if not np.isfinite(n_sapwood) or n_sapwood != int(n_sapwood) or n_sapwood < 0:
        raise InvalidSapwoodCount(f"n_sapwood must be a non-negative integer, got {n_sapwood!r}")

    return int(n_sapwood)


def project_table(
    model: FittedModel,
    observed_count,
    last_ring_year: int,
    has_waney_edge: bool = False
) -> pd.DataFrame:
    """
    Felling date probabilities of a single series as a table.

    Parameters
    ----------
    model : FittedModel
        Sapwood model fitted to a reference data set
    observed_count : int
        Number of sapwood rings observed on the series
    last_ring_year : int
        Calendar year of the last measured ring
    has_waney_edge : bool
        Whether the waney edge (or bark) is present

    Returns
    -------
    pd.DataFrame
        Columns year, n_sapwood and p. With a waney edge this is a single
        row with p = 1. Otherwise one row per possible total number of
        sapwood rings k (observed_count <= k <= support_max), felled in
        year last_ring_year + k - observed_count, with p renormalized to 1.

    Raises
    ------
    InvalidSapwoodCount
        If observed_count is not a non-negative integer
    InsufficientModelSupport
        If observed_count exceeds the largest number of sapwood rings in the model
    """
    last_ring_year = int(last_ring_year)

    if has_waney_edge:
        n_sapwood = np.nan if observed_count is None else observed_count
        return pd.DataFrame({'year': [last_ring_year], 'n_sapwood': [n_sapwood], 'p': [1.0]})

    observed_count = validate_sapwood_count(observed_count)
    if observed_count > model.support_max:
        raise InsufficientModelSupport(
            f"n_sapwood ({observed_count}) exceeds the largest number of sapwood rings "
            f"in the sapwood model ({model.support_max})"
        )

    # Rings that were observed cannot be missing
    table = model.sapwood_model.loc[model.sapwood_model['n_sapwood'] >= observed_count,
                                    ['n_sapwood']].copy()

    # Plain densities underflow to 0 far in the fitted tail, log densities do not
    log_p = logdensity(model.family, table['n_sapwood'], model.param1, model.param2)
    log_max = np.max(log_p)
    if not np.isfinite(log_max):
        raise InsufficientModelSupport(
            f"The sapwood model holds no probability at or above {observed_count} sapwood rings"
        )
    weights = np.exp(log_p - log_max)

    table['p'] = weights / weights.sum()
    table['year'] = last_ring_year + table['n_sapwood'] - observed_count

    return table[['year', 'n_sapwood', 'p']].reset_index(drop=True)


def project(
    model: FittedModel,
    observed_count,
    last_ring_year: int,
    has_waney_edge: bool = False,
    name=None
) -> pd.Series:
    """
    Felling date probability distribution of a single series.

    See project_table for the parameters.

    Returns
    -------
    pd.Series
        Probabilities indexed by calendar year (index name 'year')
    """
    table = project_table(model, observed_count, last_ring_year, has_waney_edge)
    distribution = pd.Series(table['p'].to_numpy(), index=table['year'].astype(int), name=name)
    distribution.index.name = 'year'
    return distribution


def felling_date_interval(
    model: FittedModel,
    observed_count,
    last_ring_year: int,
    cred_mass: float,
    has_waney_edge: bool = False
) -> CredibleInterval:
    """Highest density interval of the felling date of a single series."""
    distribution = project(model, observed_count, last_ring_year, has_waney_edge)
    return hdi(distribution.index.to_numpy(), distribution.to_numpy(), cred_mass)
