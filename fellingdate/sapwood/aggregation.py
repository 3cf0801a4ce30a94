"""
Summed probability distributions (SPD) of the felling dates of many series.
"""

import numbers
import warnings
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Dict, Iterable, List, Mapping, Optional, Tuple, Union

import numpy as np
import pandas as pd

from ..constants import DEFAULT_LOOKAHEAD, SPD_COL, SPD_EXACT_COL
from ..exceptions import EmptyInputSet
from .fitting import FittedModel
from .interval import project

# Column names that cannot be used as series ids in the SPD table
RESERVED_COLUMNS = ('year', SPD_COL, SPD_EXACT_COL)


@dataclass(frozen=True)
class SeriesRecord:
    """
    A dated tree-ring series.

    Attributes
    ----------
    id : str
        Series identifier
    last_ring_year : int
        Calendar year assigned to the last measured ring
    observed_sapwood_count : int, optional
        Number of observed sapwood rings, None when unknown
    has_waney_edge : bool
        Whether the waney edge (or bark) is present
    """

    id: str
    last_ring_year: int
    observed_sapwood_count: Optional[int] = None
    has_waney_edge: bool = False

    def __post_init__(self):
        if not isinstance(self.id, str) or not self.id:
            raise ValueError(f"Series id must be a non-empty string, got {self.id!r}")
        if not isinstance(self.has_waney_edge, (bool, np.bool_)):
            raise TypeError(f"has_waney_edge of series {self.id} must be True or False, "
                            f"got {self.has_waney_edge!r}")
        if (isinstance(self.last_ring_year, (bool, np.bool_))
                or not isinstance(self.last_ring_year, numbers.Integral)):
            raise TypeError(f"last_ring_year of series {self.id} must be an integer, "
                            f"got {self.last_ring_year!r}")
        object.__setattr__(self, 'last_ring_year', int(self.last_ring_year))
        object.__setattr__(self, 'has_waney_edge', bool(self.has_waney_edge))

    @property
    def is_usable(self) -> bool:
        """False when the series has neither sapwood rings counted nor a waney edge."""
        return self.has_waney_edge or self.observed_sapwood_count is not None


@dataclass(frozen=True)
class AggregationResult:
    """
    Output of aggregate().

    Attributes
    ----------
    table : pd.DataFrame
        Column year, one probability column per series, SPD and SPD_exact
    series_ids : tuple of str
        Ids of the aggregated series, in input order
    dropped : tuple of str
        Ids of series removed before aggregation
    diagnostics : tuple of str
        Messages describing removed series
    """

    table: pd.DataFrame
    series_ids: Tuple[str, ...]
    dropped: Tuple[str, ...] = ()
    diagnostics: Tuple[str, ...] = ()

    @property
    def spd(self) -> pd.Series:
        return self.table.set_index('year')[SPD_COL]

    @property
    def spd_exact(self) -> pd.Series:
        return self.table.set_index('year')[SPD_EXACT_COL]


def split_usable_records(
    records: Iterable[SeriesRecord]
) -> Tuple[List[SeriesRecord], List[str]]:
    """
    Separate series that can be dated from those that cannot.

    Returns
    -------
    Tuple[List[SeriesRecord], List[str]]
        Usable records in input order and the ids of the removed records
    """
    usable = []
    dropped = []
    for record in records:
        if record.is_usable:
            usable.append(record)
        else:
            dropped.append(record.id)
    return usable, dropped


def _model_for(
    record: SeriesRecord,
    model_per_record: Union[FittedModel, Mapping[str, FittedModel]]
) -> Optional[FittedModel]:
    if record.has_waney_edge:
        return None
    if isinstance(model_per_record, FittedModel):
        return model_per_record
    try:
        return model_per_record[record.id]
    except KeyError:
        raise KeyError(f"No sapwood model available for series {record.id}") from None


def aggregate(
    records: Iterable[SeriesRecord],
    model_per_record: Union[FittedModel, Mapping[str, FittedModel]],
    scale: bool = False,
    lookahead: Optional[int] = None,
    max_workers: Optional[int] = None
) -> AggregationResult:
    """
    Sum the felling date probability distributions of a set of series.

    Parameters
    ----------
    records : iterable of SeriesRecord
        The series to aggregate. Ids must be unique.
    model_per_record : FittedModel or mapping of series id to FittedModel
        Sapwood model used for each series without waney edge. A single
        FittedModel is shared by all series.
    scale : bool
        Whether to scale the SPD column so it sums to 1
    lookahead : int, optional
        Minimum number of years added after the latest last ring.
        Defaults to DEFAULT_LOOKAHEAD or the longest model support,
        whichever is larger.
    max_workers : int, optional
        When larger than 1, series are projected in a thread pool

    Returns
    -------
    AggregationResult
        SPD table plus the ids of removed series and diagnostics

    Raises
    ------
    EmptyInputSet
        If no series has sapwood rings or a waney edge
    """
    records = list(records)

    ids = pd.Index([record.id for record in records])
    duplicated = sorted(ids[ids.duplicated()].unique())
    if duplicated:
        raise ValueError(f"Series ids must be unique, duplicated: {', '.join(duplicated)}")
    reserved = [i for i in ids if i in RESERVED_COLUMNS]
    if reserved:
        raise ValueError(f"Series ids cannot be one of {RESERVED_COLUMNS}: {', '.join(reserved)}")

    usable, dropped = split_usable_records(records)

    diagnostics = []
    if dropped:
        message = (f"{len(dropped)} series without sapwood rings or waney edge detected "
                   f"and removed from the data set: {', '.join(dropped)}")
        diagnostics.append(message)
        warnings.warn(message, UserWarning, stacklevel=2)

    if not usable:
        raise EmptyInputSet("No series with sapwood rings or waney edge in the data set")

    models: Dict[str, Optional[FittedModel]] = {
        record.id: _model_for(record, model_per_record) for record in usable
    }

    if lookahead is None:
        supports = [m.support_max for m in models.values() if m is not None]
        lookahead = max([DEFAULT_LOOKAHEAD] + supports)

    def _project(record: SeriesRecord) -> pd.Series:
        return project(
            models[record.id],
            record.observed_sapwood_count,
            record.last_ring_year,
            has_waney_edge=record.has_waney_edge,
            name=record.id,
        )

    if max_workers is not None and max_workers > 1 and len(usable) > 1:
        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            distributions = list(executor.map(_project, usable))
    else:
        distributions = [_project(record) for record in usable]

    # Year axis covers every projected distribution
    first_year = min(record.last_ring_year for record in usable)
    last_year = max(record.last_ring_year for record in usable) + int(lookahead)
    last_year = max([last_year] + [int(d.index.max()) for d in distributions])
    years = np.arange(first_year, last_year + 1)

    columns = {d.name: d.reindex(years, fill_value=0.0).to_numpy(dtype=float)
               for d in distributions}
    table = pd.DataFrame({'year': years, **columns})

    series_ids = [record.id for record in usable]
    exact_ids = [record.id for record in usable if record.has_waney_edge]

    table[SPD_COL] = table[series_ids].sum(axis=1)
    if exact_ids:
        table[SPD_EXACT_COL] = table[exact_ids].sum(axis=1)
    else:
        table[SPD_EXACT_COL] = 0.0

    if scale:
        table[SPD_COL] = table[SPD_COL] / table[SPD_COL].sum()

    return AggregationResult(
        table=table,
        series_ids=tuple(series_ids),
        dropped=tuple(dropped),
        diagnostics=tuple(diagnostics),
    )
