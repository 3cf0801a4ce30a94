"""
Data loading functions for sapwood reference data sets and series tables.
"""

import warnings
from pathlib import Path
from types import MappingProxyType
from typing import List, Mapping, Optional, Union

import numpy as np
import pandas as pd

from ..constants import (
    DEFAULT_SEP,
    LAST_COL,
    N_SAPWOOD_COL,
    REFERENCE_COLUMNS,
    SERIES_COL,
    WANEY_EDGE_TOKEN,
    WANEYEDGE_COL,
)
from ..exceptions import MalformedReferenceFile, UnknownReferenceDataset
from .aggregation import SeriesRecord
from .fitting import validate_histogram


def read_reference_csv(path: Union[str, Path], sep: str = DEFAULT_SEP) -> pd.DataFrame:
    """
    Read a sapwood data set from a .csv file.

    Parameters
    ----------
    path : str or Path
        Path to a .csv file with columns n_sapwood and count
    sep : str
        Field delimiter, usually ';' or ','

    Returns
    -------
    pd.DataFrame
        Validated sapwood data set (see fitting.validate_histogram)

    Raises
    ------
    MalformedReferenceFile
        If the file cannot be read or lacks valid n_sapwood and count columns
    """
    csv_path = Path(path)

    if not csv_path.is_file():
        raise MalformedReferenceFile(f"No sapwood data file found at {csv_path}")

    try:
        observed = pd.read_csv(csv_path, sep=sep)
    except (pd.errors.ParserError, pd.errors.EmptyDataError, UnicodeDecodeError) as e:
        raise MalformedReferenceFile(f"Could not read sapwood data file {csv_path}: {e}") from e

    if not all(c in observed.columns for c in REFERENCE_COLUMNS):
        raise MalformedReferenceFile(
            f".csv file {csv_path} should have columns `n_sapwood` and `count` "
            f"(found: {', '.join(map(str, observed.columns))}). Check the field delimiter (sep='{sep}')."
        )

    return validate_histogram(observed[list(REFERENCE_COLUMNS)])


def load_reference_catalog(
    data_dir: Union[str, Path],
    sep: str = DEFAULT_SEP
) -> Mapping[str, pd.DataFrame]:
    """
    Load every sapwood data set stored as a .csv file in a directory.

    Parameters
    ----------
    data_dir : str or Path
        Directory containing one .csv file per data set, e.g. Hollstein_1980.csv
    sep : str
        Field delimiter of the .csv files

    Returns
    -------
    Mapping[str, pd.DataFrame]
        Read-only mapping from data set name (file name without extension)
        to the sapwood data set
    """
    data_path = Path(data_dir)

    if not data_path.is_dir():
        raise FileNotFoundError(f"No sapwood data directory found at {data_path}")

    catalog = {}
    for csv_file in sorted(data_path.glob("*.csv")):
        catalog[csv_file.stem] = read_reference_csv(csv_file, sep=sep)

    return MappingProxyType(catalog)


def list_reference_datasets(catalog: Optional[Mapping[str, pd.DataFrame]]) -> List[str]:
    """Names of the sapwood data sets in a catalog, sorted."""
    if catalog is None:
        return []
    return sorted(catalog)


def resolve_reference(
    sw_data,
    catalog: Optional[Mapping[str, pd.DataFrame]] = None,
    sep: str = DEFAULT_SEP
) -> pd.DataFrame:
    """
    Find the sapwood data set referred to by sw_data.

    Parameters
    ----------
    sw_data : str, Path or pd.DataFrame
        A data set name from the catalog, a path to a .csv file, or a
        sapwood data set
    catalog : Mapping[str, pd.DataFrame], optional
        Available named data sets
    sep : str
        Field delimiter used when reading a .csv file

    Returns
    -------
    pd.DataFrame
        Validated sapwood data set

    Raises
    ------
    UnknownReferenceDataset
        If sw_data is neither a catalog name nor a .csv path
    """
    if isinstance(sw_data, pd.DataFrame):
        return validate_histogram(sw_data)

    if isinstance(sw_data, str) and catalog is not None and sw_data in catalog:
        return validate_histogram(catalog[sw_data])

    if isinstance(sw_data, (str, Path)) and str(sw_data).lower().endswith('.csv'):
        return read_reference_csv(sw_data, sep=sep)

    available = list_reference_datasets(catalog)
    raise UnknownReferenceDataset(
        f"sw_data should be one of [{', '.join(available)}] or the path to a .csv file "
        f"with columns `n_sapwood` and `count`, got {sw_data!r}"
    )


def coerce_waney_edge(values: pd.Series) -> pd.Series:
    """
    Convert a waney edge column to True/False.

    Logical columns are returned unchanged. Other columns are converted
    based on the presence of the string 'wK' (case insensitive), which is
    how Heidelberg format files mark a waney edge.
    """
    if pd.api.types.is_bool_dtype(values):
        return values.astype(bool)

    present = values.dropna()
    if len(present) > 0 and present.map(lambda v: isinstance(v, (bool, np.bool_))).all():
        return values.map(lambda v: isinstance(v, (bool, np.bool_)) and bool(v)).astype(bool)

    warnings.warn(
        f"Column '{values.name}' should be a logical vector (True/False), indicating the "
        f"presence of waney edge. Converted to True/False based on presence of string 'wK'.",
        UserWarning,
        stacklevel=3,
    )
    return values.astype(str).str.contains(WANEY_EDGE_TOKEN, case=False, regex=False) & values.notna()


def series_records_from_frame(
    df: pd.DataFrame,
    series: str = SERIES_COL,
    last: str = LAST_COL,
    n_sapwood: str = N_SAPWOOD_COL,
    waneyedge: str = WANEYEDGE_COL
) -> List[SeriesRecord]:
    """
    Convert a table of series into SeriesRecord objects.

    Parameters
    ----------
    df : pd.DataFrame
        One row per series
    series : str
        Name of the column containing the series ids
    last : str
        Name of the column with the calendar year of the last measured ring
    n_sapwood : str
        Name of the column with the number of observed sapwood rings (NaN if unknown)
    waneyedge : str
        Name of the column indicating presence (True) or absence (False) of waney edge

    Returns
    -------
    List[SeriesRecord]
        One record per row, in row order
    """
    missing = [c for c in (series, last, n_sapwood, waneyedge) if c not in df.columns]
    if missing:
        raise ValueError(f"Columns not found in series table: {', '.join(missing)}")

    if df[series].isna().any():
        raise ValueError(f"Some series have no id (column '{series}')")

    if (not pd.api.types.is_numeric_dtype(df[last]) or pd.api.types.is_bool_dtype(df[last])
            or df[last].isna().any()):
        raise ValueError(f"Column '{last}' must be a numeric vector of calendar years")
    if not np.isfinite(df[last]).all() or (df[last] % 1 != 0).any():
        raise ValueError(f"Column '{last}' must hold whole calendar years")

    swr = df[n_sapwood]
    if swr.map(lambda v: isinstance(v, str)).any():
        raise ValueError(f"Column '{n_sapwood}' must be a numeric vector")
    swr = pd.to_numeric(swr)

    cambium = coerce_waney_edge(df[waneyedge])

    records = []
    for keycode, end_date, swr_i, cambium_i in zip(df[series], df[last], swr, cambium):
        records.append(SeriesRecord(
            id=str(keycode),
            last_ring_year=int(end_date),
            observed_sapwood_count=None if pd.isna(swr_i) else _as_count(swr_i),
            has_waney_edge=bool(cambium_i),
        ))

    return records


def _as_count(value):
    # Integral floats (NaN-padded integer columns) become ints, anything else is
    # left for validation by the projector
    if isinstance(value, (float, np.floating)) and float(value).is_integer():
        return int(value)
    if isinstance(value, np.integer):
        return int(value)
    return value
