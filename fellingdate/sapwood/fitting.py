"""
Maximum likelihood fitting of density functions to sapwood data sets.
"""

from dataclasses import dataclass, field
from typing import Dict, Tuple, Union

import numpy as np
import pandas as pd
from scipy import special, stats

from ..constants import REFERENCE_COLUMNS
from ..exceptions import EmptyReferenceData, MalformedReferenceFile
from .density import DensityFamily, frequency, get_family

# Dispersion of a degenerate sample, in sapwood rings
DEGENERATE_SD = 1.0

# Ratio of standard deviation to scale of a Weibull distribution times its shape,
# for large shape values (pi / sqrt(6))
WEIBULL_CV_FACTOR = np.pi / np.sqrt(6.0)


@dataclass(frozen=True)
class FittedModel:
    """
    A density function fitted to a sapwood data set.

    Attributes
    ----------
    family : DensityFamily
        The fitted density function
    param1, param2 : float
        Maximum likelihood estimates, in the order of family.param_names
    support_max : int
        Largest observed number of sapwood rings
    n_obs : int
        Number of observations in the sapwood data set
    sapwood_model : pd.DataFrame
        One row per n_sapwood in 1..support_max with columns
        n_sapwood, p, model_fit and count (NaN where nothing was observed)
    """

    family: DensityFamily
    param1: float
    param2: float
    support_max: int
    n_obs: int
    sapwood_model: pd.DataFrame = field(repr=False, compare=False)

    @property
    def densfun(self) -> str:
        return self.family.label

    @property
    def param_names(self) -> Tuple[str, str]:
        return self.family.param_names

    @property
    def params(self) -> Dict[str, float]:
        return dict(zip(self.family.param_names, (self.param1, self.param2)))

    @property
    def pmf(self) -> pd.Series:
        """Probability of each number of sapwood rings, indexed by n_sapwood."""
        return self.sapwood_model.set_index('n_sapwood')['p']

    @property
    def frequency(self) -> pd.Series:
        """Expected count of each number of sapwood rings, indexed by n_sapwood."""
        return self.sapwood_model.set_index('n_sapwood')['model_fit']


def validate_histogram(histogram: pd.DataFrame) -> pd.DataFrame:
    """
    Check a sapwood data set and bring it into canonical form.

    Parameters
    ----------
    histogram : pd.DataFrame
        Table with columns n_sapwood and count. Other columns are ignored.

    Returns
    -------
    pd.DataFrame
        Integer columns n_sapwood and count, sorted by n_sapwood,
        without rows where count is 0

    Raises
    ------
    MalformedReferenceFile
        If columns are missing, values are not integers, counts are negative,
        n_sapwood is below 1 or n_sapwood values are repeated
    """
    if not isinstance(histogram, pd.DataFrame):
        raise MalformedReferenceFile("Sapwood data should be a data frame with columns "
                                     "`n_sapwood` and `count`.")
    missing = [c for c in REFERENCE_COLUMNS if c not in histogram.columns]
    if missing:
        raise MalformedReferenceFile(f"Sapwood data should have columns `n_sapwood` and `count` "
                                     f"(missing: {', '.join(missing)}).")

    observed = pd.DataFrame({
        col: pd.to_numeric(histogram[col], errors='coerce') for col in REFERENCE_COLUMNS
    })
    values = observed.to_numpy(dtype=float)
    if not np.all(np.isfinite(values)) or np.any(values != np.floor(values)):
        raise MalformedReferenceFile("Columns `n_sapwood` and `count` should hold integers only.")

    observed = observed.astype(int)
    if (observed['count'] < 0).any():
        raise MalformedReferenceFile("Column `count` should not hold negative values.")
    if (observed['n_sapwood'] < 1).any():
        raise MalformedReferenceFile("Column `n_sapwood` should hold values of at least 1.")
    if observed['n_sapwood'].duplicated().any():
        raise MalformedReferenceFile("Column `n_sapwood` should not hold duplicate values.")

    observed = observed[observed['count'] != 0]

    return observed.sort_values('n_sapwood').reset_index(drop=True)


def summarize_histogram(histogram: pd.DataFrame) -> Dict[str, float]:
    """
    Summarize a sapwood data set.

    Returns
    -------
    Dict[str, float]
        n (number of observations) and the min, mean (rounded to 2 decimals)
        and max number of sapwood rings
    """
    observed = validate_histogram(histogram)
    if observed.empty:
        raise EmptyReferenceData("The sapwood data set holds no observations.")

    n_obs = int(observed['count'].sum())
    mean = float(np.average(observed['n_sapwood'], weights=observed['count']))

    return {
        'n': n_obs,
        'min': int(observed['n_sapwood'].min()),
        'mean': round(mean, 2),
        'max': int(observed['n_sapwood'].max()),
    }


def _degenerate_parameters(family: DensityFamily, mean: float) -> Tuple[float, float]:
    """
    Parameters for a sample with a single distinct value.

    The family is matched to the sample mean and a standard deviation
    of DEGENERATE_SD rings.
    """
    cv = DEGENERATE_SD / mean

    if family is DensityFamily.LOGNORMAL:
        return float(np.log(mean)), float(cv)
    if family is DensityFamily.NORMAL:
        return float(mean), DEGENERATE_SD
    if family is DensityFamily.WEIBULL:
        shape = WEIBULL_CV_FACTOR / cv
        return float(shape), float(mean / special.gamma(1.0 + 1.0 / shape))
    # gamma: shape = mean^2 / var, rate = mean / var
    var = DEGENERATE_SD ** 2
    return float(mean ** 2 / var), float(mean / var)


def estimate_parameters(
    densfun: Union[str, DensityFamily],
    sample: np.ndarray
) -> Tuple[float, float]:
    """
    Maximum likelihood estimates of the two parameters of a density function.

    Parameters
    ----------
    densfun : str or DensityFamily
        Name of the density function
    sample : np.ndarray
        Observed numbers of sapwood rings, one value per observation

    Returns
    -------
    Tuple[float, float]
        (param1, param2), in the order of DensityFamily.param_names
    """
    family = get_family(densfun)
    sample = np.asarray(sample, dtype=float)

    if sample.size == 0:
        raise EmptyReferenceData("The sapwood data set holds no observations.")

    if np.unique(sample).size < 2:
        return _degenerate_parameters(family, float(sample.mean()))

    # Normal and lognormal estimates are closed form (sd with denominator n)
    if family is DensityFamily.LOGNORMAL:
        logs = np.log(sample)
        return float(logs.mean()), float(logs.std())
    if family is DensityFamily.NORMAL:
        return float(sample.mean()), float(sample.std())

    with np.errstate(all='ignore'):
        if family is DensityFamily.WEIBULL:
            param1, _, param2 = stats.weibull_min.fit(sample, floc=0)
        else:
            param1, _, scale = stats.gamma.fit(sample, floc=0)
            param2 = 1.0 / scale

    if not (np.isfinite(param1) and np.isfinite(param2) and param1 > 0 and param2 > 0):
        return _degenerate_parameters(family, float(sample.mean()))

    return float(param1), float(param2)


def fit(
    histogram: pd.DataFrame,
    densfun: Union[str, DensityFamily] = 'lognormal'
) -> FittedModel:
    """
    Fit a density function to a sapwood data set.

    The data set is expanded into one observation per counted sample, the
    two parameters of the density function are estimated by maximum
    likelihood, and the fitted frequency function is evaluated at every
    number of sapwood rings from 1 up to the largest observed value.

    Parameters
    ----------
    histogram : pd.DataFrame
        Sapwood data set with columns n_sapwood and count
    densfun : str or DensityFamily
        One of 'lognormal', 'normal', 'weibull' or 'gamma'

    Returns
    -------
    FittedModel
        Fitted parameters and the sapwood model table

    Raises
    ------
    UnsupportedDistribution
        If densfun is not supported
    EmptyReferenceData
        If the data set holds no observations
    """
    family = get_family(densfun)
    observed = validate_histogram(histogram)

    if observed.empty:
        raise EmptyReferenceData("The sapwood data set holds no observations.")

    n_obs = int(observed['count'].sum())
    sample = np.repeat(observed['n_sapwood'].to_numpy(dtype=float),
                       observed['count'].to_numpy())
    param1, param2 = estimate_parameters(family, sample)

    # Evaluate the fit at every ring count, including counts nobody observed
    support_max = int(observed['n_sapwood'].max())
    n_sapwood = np.arange(1, support_max + 1)
    model_fit = frequency(family, n_sapwood, param1, param2, n=n_obs)

    sapwood_model = pd.DataFrame({
        'n_sapwood': n_sapwood,
        'p': model_fit / n_obs,
        'model_fit': model_fit,
    })
    sapwood_model = sapwood_model.merge(observed, on='n_sapwood', how='left')

    return FittedModel(
        family=family,
        param1=param1,
        param2=param2,
        support_max=support_max,
        n_obs=n_obs,
        sapwood_model=sapwood_model,
    )
