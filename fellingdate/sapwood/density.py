"""
Density functions that can be fitted to sapwood data sets.
"""

from enum import Enum
from typing import List, Tuple, Union

import numpy as np
from scipy import stats

from ..exceptions import UnsupportedDistribution


class DensityFamily(Enum):
    """
    Supported density functions and the names of their two parameters.

    The parameter order matches the estimates returned by the fitter:
    param1 is the first name, param2 the second.
    """

    LOGNORMAL = ('lognormal', ('meanlog', 'sdlog'))
    NORMAL = ('normal', ('mean', 'sd'))
    WEIBULL = ('weibull', ('shape', 'scale'))
    GAMMA = ('gamma', ('shape', 'rate'))

    def __init__(self, label: str, param_names: Tuple[str, str]):
        self.label = label
        self.param_names = param_names

    def __str__(self) -> str:
        return self.label


def list_families() -> List[str]:
    """Return the names of all supported density functions."""
    return [family.label for family in DensityFamily]


def get_family(densfun: Union[str, DensityFamily]) -> DensityFamily:
    """
    Look up a density function by name.

    Parameters
    ----------
    densfun : str or DensityFamily
        One of 'lognormal', 'normal', 'weibull' or 'gamma'

    Returns
    -------
    DensityFamily
        The matching family

    Raises
    ------
    UnsupportedDistribution
        If densfun is not a supported density function
    """
    if isinstance(densfun, DensityFamily):
        return densfun
    for family in DensityFamily:
        if densfun == family.label:
            return family
    raise UnsupportedDistribution(densfun)


def density(
    densfun: Union[str, DensityFamily],
    x,
    param1: float = 0.0,
    param2: float = 1.0
) -> np.ndarray:
    """
    Evaluate the probability density function of a supported family.

    Parameters
    ----------
    densfun : str or DensityFamily
        Name of the density function
    x : array-like
        Points at which to evaluate the density
    param1, param2 : float
        The two family parameters, see DensityFamily.param_names

    Returns
    -------
    np.ndarray
        Density values at x
    """
    family = get_family(densfun)
    x = np.asarray(x, dtype=float)

    if family is DensityFamily.LOGNORMAL:
        return stats.lognorm.pdf(x, s=param2, scale=np.exp(param1))
    if family is DensityFamily.NORMAL:
        return stats.norm.pdf(x, loc=param1, scale=param2)
    if family is DensityFamily.WEIBULL:
        return stats.weibull_min.pdf(x, c=param1, scale=param2)
    # gamma is parameterised by rate, scipy expects scale
    return stats.gamma.pdf(x, a=param1, scale=1.0 / param2)


def logdensity(
    densfun: Union[str, DensityFamily],
    x,
    param1: float = 0.0,
    param2: float = 1.0
) -> np.ndarray:
    """
    Evaluate the logarithm of the probability density function.

    Stays finite far in the tails, where density() underflows to 0.
    See density for the parameters.
    """
    family = get_family(densfun)
    x = np.asarray(x, dtype=float)

    if family is DensityFamily.LOGNORMAL:
        return stats.lognorm.logpdf(x, s=param2, scale=np.exp(param1))
    if family is DensityFamily.NORMAL:
        return stats.norm.logpdf(x, loc=param1, scale=param2)
    if family is DensityFamily.WEIBULL:
        return stats.weibull_min.logpdf(x, c=param1, scale=param2)
    return stats.gamma.logpdf(x, a=param1, scale=1.0 / param2)


def frequency(
    densfun: Union[str, DensityFamily],
    x,
    param1: float = 0.0,
    param2: float = 1.0,
    n: float = 1
) -> np.ndarray:
    """
    Scale a probability density function to a frequency function.

    Parameters
    ----------
    densfun : str or DensityFamily
        Name of the density function
    x : array-like
        Points at which to evaluate the frequency
    param1, param2 : float
        The two family parameters
    n : float
        Sample size used as the scaling factor

    Returns
    -------
    np.ndarray
        Expected counts, n * density(x)
    """
    return n * density(densfun, x, param1, param2)
