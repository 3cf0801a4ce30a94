"""
Sapwood modelling and felling date estimation.

Fits density functions to sapwood data sets, computes highest density
intervals, projects sapwood models onto the calendar years of individual
series and sums felling date probabilities over many series.
"""

from .density import (
    DensityFamily,
    list_families,
    get_family,
    density,
    logdensity,
    frequency,
)

from .fitting import (
    FittedModel,
    validate_histogram,
    summarize_histogram,
    estimate_parameters,
    fit,
)

from .hdi import (
    CredibleInterval,
    validate_cred_mass,
    hdi,
    hdi_frame,
)

from .interval import (
    validate_sapwood_count,
    project,
    project_table,
    felling_date_interval,
)

from .aggregation import (
    SeriesRecord,
    AggregationResult,
    split_usable_records,
    aggregate,
)

from .data_loader import (
    read_reference_csv,
    load_reference_catalog,
    list_reference_datasets,
    resolve_reference,
    coerce_waney_edge,
    series_records_from_frame,
)

from .main import (
    sw_model,
    sw_interval,
    sw_sum,
    fit_models_for_records,
)
