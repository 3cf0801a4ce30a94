"""
Highest density intervals of discrete probability distributions.
"""

import numbers
from dataclasses import dataclass

import numpy as np
import pandas as pd

from ..exceptions import InvalidCredMass

# Runs whose probability differs by less than this are considered equally probable
MASS_TOLERANCE = 1e-12


@dataclass(frozen=True)
class CredibleInterval:
    """
    Narrowest range of an ordered axis holding a requested probability mass.

    Attributes
    ----------
    lower, upper : int
        Bounds of the interval, both included
    achieved_mass : float
        Probability mass inside [lower, upper]
    cred_mass : float
        The requested probability mass
    """

    lower: int
    upper: int
    achieved_mass: float
    cred_mass: float

    @property
    def is_under_covered(self) -> bool:
        """True when the whole axis holds less mass than requested."""
        return self.achieved_mass < self.cred_mass

    def to_dict(self) -> dict:
        return {'lower': self.lower, 'upper': self.upper, 'p': self.achieved_mass}


def validate_cred_mass(cred_mass) -> float:
    """
    Check that credMass is a finite number strictly between 0 and 1.

    Raises
    ------
    InvalidCredMass
        For non-numeric values, booleans, NaN, infinity and values outside (0, 1)
    """
    if isinstance(cred_mass, (bool, np.bool_)) or not isinstance(cred_mass, numbers.Real):
        raise InvalidCredMass(f"credMass must be a number between 0 and 1, got {cred_mass!r}")

    value = float(cred_mass)
    if not np.isfinite(value) or value <= 0 or value >= 1:
        raise InvalidCredMass(f"credMass must be between 0 and 1, got {cred_mass!r}")

    return value


def hdi(axis_values, probabilities, cred_mass: float) -> CredibleInterval:
    """
    Highest density interval of a discrete distribution.

    Searches all contiguous runs of the sorted axis for the narrowest one
    whose probabilities add up to at least cred_mass. Among runs of equal
    width the one holding the most probability wins, then the one starting
    earliest on the axis, so that intervals for a larger cred_mass contain
    those for a smaller one on unimodal distributions. When the whole axis
    holds less than cred_mass (a truncated distribution) the full axis is
    returned together with the mass it holds.

    Parameters
    ----------
    axis_values : array-like
        Unique points of an ordinal axis (sapwood rings, calendar years)
    probabilities : array-like
        Probability of each axis value, finite and non-negative
    cred_mass : float
        Requested probability mass, strictly between 0 and 1

    Returns
    -------
    CredibleInterval
        Interval bounds and the probability mass they enclose
    """
    cred_mass = validate_cred_mass(cred_mass)

    x = np.asarray(axis_values)
    p = np.asarray(probabilities, dtype=float)

    if x.ndim != 1 or x.shape != p.shape:
        raise ValueError("axis_values and probabilities must be one-dimensional and of equal length")
    if x.size == 0:
        raise ValueError("Cannot compute an interval over an empty axis")
    if not np.all(np.isfinite(p)) or np.any(p < 0):
        raise ValueError("Probabilities must be finite and non-negative")

    order = np.argsort(x, kind='stable')
    x = x[order]
    p = p[order]
    if np.any(x[1:] == x[:-1]):
        raise ValueError("axis_values must be unique")

    cum = np.concatenate([[0.0], np.cumsum(p)])
    n = x.size

    if cum[-1] < cred_mass:
        return CredibleInterval(x[0].item(), x[-1].item(), float(cum[-1]), cred_mass)

    best_start, best_end = 0, n - 1
    best_width = x[-1] - x[0]
    best_mass = cum[-1]
    end = 0
    for start in range(n):
        # p >= 0, so the shortest run from `start` never ends before the previous one
        end = max(end, start)
        while end < n and cum[end + 1] - cum[start] < cred_mass:
            end += 1
        if end == n:
            break
        width = x[end] - x[start]
        mass = cum[end + 1] - cum[start]
        if width < best_width or (width == best_width and mass > best_mass + MASS_TOLERANCE):
            best_start, best_end, best_width, best_mass = start, end, width, mass

    return CredibleInterval(
        lower=x[best_start].item(),
        upper=x[best_end].item(),
        achieved_mass=float(cum[best_end + 1] - cum[best_start]),
        cred_mass=cred_mass,
    )


def hdi_frame(
    df: pd.DataFrame,
    cred_mass: float,
    x: str = 'n_sapwood',
    p: str = 'p'
) -> CredibleInterval:
    """Highest density interval of a table with an axis column and a probability column."""
    return hdi(df[x].to_numpy(), df[p].to_numpy(dtype=float), cred_mass)
