"""
Errors raised by the fellingdate package.
"""


class FellingDateError(Exception):
    """Base class for all fellingdate errors."""


class InvalidCredMass(FellingDateError, ValueError):
    """credMass is not a finite number strictly between 0 and 1."""


class UnsupportedDistribution(FellingDateError, ValueError):
    """The requested density function is not one of the supported families."""

    def __init__(self, densfun):
        self.densfun = densfun
        super().__init__(f"{densfun} is not a supported distribution !")


class EmptyReferenceData(FellingDateError, ValueError):
    """The reference data set holds no observations."""


class InvalidSapwoodCount(FellingDateError, ValueError):
    """n_sapwood is not a non-negative integer."""


class InsufficientModelSupport(FellingDateError, ValueError):
    """The sapwood model has no probability mass at or above the observed count."""


class EmptyInputSet(FellingDateError, ValueError):
    """No series with sapwood rings or waney edge are left to aggregate."""


class UnknownReferenceDataset(FellingDateError, LookupError):
    """sw_data is neither a known data set nor a path to a .csv file."""


class MalformedReferenceFile(FellingDateError, ValueError):
    """A reference data set lacks valid `n_sapwood` and `count` columns."""
