"""
Felling date estimation from sapwood rings.

This package provides functions to model sapwood data sets, estimate the
felling date range of tree-ring series without bark, and compute summed
probability distributions of felling dates over many series.
"""

# Re-export constants
from .constants import (
    DEFAULT_SW_DATA,
    DEFAULT_DENSFUN,
    DEFAULT_CRED_MASS,
    DEFAULT_SEP,
    DEFAULT_LOOKAHEAD,
)

from .exceptions import (
    FellingDateError,
    InvalidCredMass,
    UnsupportedDistribution,
    EmptyReferenceData,
    InvalidSapwoodCount,
    InsufficientModelSupport,
    EmptyInputSet,
    UnknownReferenceDataset,
    MalformedReferenceFile,
)

# Re-export sapwood module functions for convenience
from .sapwood import (
    # Density functions
    DensityFamily,
    list_families,
    density,
    logdensity,
    frequency,
    # Fitting
    FittedModel,
    fit,
    # Intervals
    CredibleInterval,
    hdi,
    project,
    project_table,
    felling_date_interval,
    # Aggregation
    SeriesRecord,
    AggregationResult,
    aggregate,
    # Data loading
    read_reference_csv,
    load_reference_catalog,
    list_reference_datasets,
    resolve_reference,
    series_records_from_frame,
    # Main workflow
    sw_model,
    sw_interval,
    sw_sum,
)

__version__ = "0.1.0"
