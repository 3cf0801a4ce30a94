"""
Main workflows for modelling sapwood data and estimating felling dates
from tree-ring series.
"""

import argparse
import sys
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union

import pandas as pd

from ..constants import (
    DEFAULT_CRED_MASS,
    DEFAULT_DENSFUN,
    DEFAULT_SEP,
    DEFAULT_SW_DATA,
    LAST_COL,
    N_SAPWOOD_COL,
    SERIES_COL,
    SPD_COL,
    SPD_EXACT_COL,
    WANEYEDGE_COL,
)
from ..exceptions import FellingDateError
from .aggregation import AggregationResult, aggregate
from .data_loader import (
    load_reference_catalog,
    list_reference_datasets,
    resolve_reference,
    series_records_from_frame,
)
from .density import get_family
from .fitting import FittedModel, fit, summarize_histogram
from .hdi import CredibleInterval, hdi_frame, validate_cred_mass
from .interval import felling_date_interval, project_table, validate_sapwood_count


def sw_model(
    sw_data=DEFAULT_SW_DATA,
    densfun: str = DEFAULT_DENSFUN,
    cred_mass: float = DEFAULT_CRED_MASS,
    sep: str = DEFAULT_SEP,
    catalog: Optional[Mapping[str, pd.DataFrame]] = None,
    verbose: bool = False
) -> Dict[str, Any]:
    """
    Fit a distribution to a sapwood data set and compute its highest density interval.

    Parameters
    ----------
    sw_data : str, Path or pd.DataFrame
        Name of a data set in `catalog`, path to a .csv file with columns
        n_sapwood and count, or the data set itself
    densfun : str
        Density function fitted to the data: 'lognormal', 'normal',
        'weibull' or 'gamma'
    cred_mass : float
        Probability mass within the credible interval
    sep : str
        Field delimiter of a user-supplied .csv file
    catalog : Mapping[str, pd.DataFrame], optional
        Named sapwood data sets, see load_reference_catalog
    verbose : bool
        Whether to print progress messages

    Returns
    -------
    Dict[str, Any]
        Dictionary containing:
        - 'n': number of observations in the data set
        - 'range': min, mean and max number of sapwood rings
        - 'density_function': name of the fitted density function
        - 'fit_parameters': fitted parameters by name
        - 'sapwood_model': DataFrame with n_sapwood, p, model_fit, count
        - 'hdi_model': CredibleInterval on the sapwood ring axis
        - 'model': the FittedModel
    """
    cred_mass = validate_cred_mass(cred_mass)
    family = get_family(densfun)

    if verbose:
        print(f"Loading sapwood data set: {sw_data if not isinstance(sw_data, pd.DataFrame) else 'data frame'}")
    observed = resolve_reference(sw_data, catalog=catalog, sep=sep)
    summary = summarize_histogram(observed)

    if verbose:
        print(f"  Fitting {family.label} distribution to {summary['n']} observations...")
    model = fit(observed, family)
    hdi_model = hdi_frame(model.sapwood_model, cred_mass, x='n_sapwood', p='p')

    if verbose:
        print(f"  HDI ({cred_mass * 100:g}%): between {hdi_model.lower} and "
              f"{hdi_model.upper} sapwood rings")

    return {
        'n': summary['n'],
        'range': {'min': summary['min'], 'mean': summary['mean'], 'max': summary['max']},
        'density_function': family.label,
        'fit_parameters': model.params,
        'sapwood_model': model.sapwood_model,
        'hdi_model': hdi_model,
        'model': model,
    }


def sw_interval(
    n_sapwood,
    last: int = 0,
    hdi: bool = False,
    cred_mass: float = DEFAULT_CRED_MASS,
    sw_data=DEFAULT_SW_DATA,
    densfun: str = DEFAULT_DENSFUN,
    sep: str = DEFAULT_SEP,
    catalog: Optional[Mapping[str, pd.DataFrame]] = None,
    waneyedge: bool = False
) -> Union[pd.DataFrame, CredibleInterval]:
    """
    Felling date range of a single series.

    Parameters
    ----------
    n_sapwood : int
        Number of observed sapwood rings
    last : int
        Calendar year assigned to the last measured ring
    hdi : bool
        If True, return the highest density interval instead of the
        probability table
    cred_mass : float
        Probability mass within the credible interval
    sw_data, densfun, sep, catalog
        See sw_model
    waneyedge : bool
        Whether the waney edge is present

    Returns
    -------
    pd.DataFrame or CredibleInterval
        Table with columns year, n_sapwood and p, or the interval of
        calendar years when `hdi` is True
    """
    if not waneyedge:
        validate_sapwood_count(n_sapwood)
    cred_mass = validate_cred_mass(cred_mass)
    family = get_family(densfun)

    observed = resolve_reference(sw_data, catalog=catalog, sep=sep)
    model = fit(observed, family)

    if hdi:
        return felling_date_interval(model, n_sapwood, last, cred_mass, has_waney_edge=waneyedge)
    return project_table(model, n_sapwood, last, has_waney_edge=waneyedge)


def fit_models_for_records(
    records,
    sw_data_per_record: Mapping[str, Any],
    densfun: str = DEFAULT_DENSFUN,
    sep: str = DEFAULT_SEP,
    catalog: Optional[Mapping[str, pd.DataFrame]] = None
) -> Dict[str, FittedModel]:
    """
    Fit one sapwood model per distinct data set used by a set of series.

    Series with a waney edge or without sapwood rings get no model.
    """
    fitted: Dict[str, FittedModel] = {}
    models: Dict[str, FittedModel] = {}

    for record in records:
        if record.has_waney_edge or record.observed_sapwood_count is None:
            continue
        sw_data = sw_data_per_record[record.id]
        key = id(sw_data) if isinstance(sw_data, pd.DataFrame) else str(sw_data)
        if key not in fitted:
            fitted[key] = fit(resolve_reference(sw_data, catalog=catalog, sep=sep), densfun)
        models[record.id] = fitted[key]

    return models


def sw_sum(
    df: pd.DataFrame,
    series: str = SERIES_COL,
    last: str = LAST_COL,
    n_sapwood: str = N_SAPWOOD_COL,
    waneyedge: str = WANEYEDGE_COL,
    sw_data=DEFAULT_SW_DATA,
    densfun: str = DEFAULT_DENSFUN,
    scale_p: bool = False,
    sep: str = DEFAULT_SEP,
    catalog: Optional[Mapping[str, pd.DataFrame]] = None,
    max_workers: Optional[int] = None,
    verbose: bool = False
) -> AggregationResult:
    """
    Summed probability distribution (SPD) of the felling dates of a set of series.

    Parameters
    ----------
    df : pd.DataFrame
        One row per series
    series, last, n_sapwood, waneyedge : str
        Names of the columns holding the series id, the calendar year of
        the last measured ring, the number of observed sapwood rings and
        the presence of waney edge
    sw_data : str, Path or pd.DataFrame
        Sapwood data set used for all series (see sw_model), or the name
        of a column of `df` giving the data set for each series
    densfun : str
        Density function fitted to the sapwood data
    scale_p : bool
        Whether to scale the SPD so it sums to 1
    sep, catalog
        See sw_model
    max_workers : int, optional
        Number of threads used to project the series
    verbose : bool
        Whether to print progress messages

    Returns
    -------
    AggregationResult
        SPD table, removed series and diagnostics
    """
    family = get_family(densfun)

    if verbose:
        print(f"Summing felling date probabilities of {len(df)} series")
    records = series_records_from_frame(df, series=series, last=last,
                                        n_sapwood=n_sapwood, waneyedge=waneyedge)

    # The sapwood model might differ between series and be given in a column
    if isinstance(sw_data, str) and sw_data in df.columns:
        sw_data_per_record = {record.id: value for record, value in zip(records, df[sw_data])}
    else:
        sw_data_per_record = {record.id: sw_data for record in records}

    if verbose:
        print(f"  Fitting {family.label} sapwood models...")
    models = fit_models_for_records(records, sw_data_per_record, densfun=family,
                                    sep=sep, catalog=catalog)

    if verbose:
        print("  Computing summed probability distribution...")
    result = aggregate(records, models, scale=scale_p, max_workers=max_workers)

    if verbose:
        print(f"  Done! Aggregated {len(result.series_ids)} series over "
              f"{len(result.table)} years.")
        if result.dropped:
            print(f"  Removed {len(result.dropped)} series: {', '.join(result.dropped)}")

    return result


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='fellingdate',
        description='Estimate felling dates from sapwood rings of tree-ring series.',
    )
    parser.add_argument('--data-dir', help='Directory with named sapwood data sets (.csv)')
    parser.add_argument('--sw-data', default=DEFAULT_SW_DATA,
                        help='Sapwood data set name or path to a .csv file')
    parser.add_argument('--densfun', default=DEFAULT_DENSFUN,
                        help='lognormal, normal, weibull or gamma')
    parser.add_argument('--cred-mass', type=float, default=DEFAULT_CRED_MASS)
    parser.add_argument('--sep', default=DEFAULT_SEP, help='Field delimiter of .csv files')

    subparsers = parser.add_subparsers(dest='command', required=True)

    subparsers.add_parser('model', help='Fit a sapwood model and report its HDI')

    interval = subparsers.add_parser('interval', help='Felling date range of one series')
    interval.add_argument('n_sapwood', type=int)
    interval.add_argument('last', type=int)
    interval.add_argument('--waneyedge', action='store_true')

    summed = subparsers.add_parser('sum', help='SPD of the series in a .csv file')
    summed.add_argument('series_csv')
    summed.add_argument('--series-sep', default=',', help='Field delimiter of the series file')
    summed.add_argument('--scale', action='store_true', help='Scale the SPD to 1')
    summed.add_argument('--workers', type=int, default=None)
    summed.add_argument('--output', help='Write the SPD table to this .csv file')

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Command line entry point."""
    args = _build_parser().parse_args(argv)

    try:
        _run_command(args)
    except (FellingDateError, FileNotFoundError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    return 0


def _run_command(args: argparse.Namespace) -> None:
    catalog = load_reference_catalog(args.data_dir, sep=args.sep) if args.data_dir else None

    if args.command == 'model':
        output = sw_model(args.sw_data, densfun=args.densfun, cred_mass=args.cred_mass,
                          sep=args.sep, catalog=catalog, verbose=True)
        print(f"\nn = {output['n']}, range = {output['range']}")
        print(f"Fitted {output['density_function']} parameters: {output['fit_parameters']}")
        print(output['sapwood_model'].to_string(index=False))

    elif args.command == 'interval':
        interval = sw_interval(args.n_sapwood, args.last, hdi=True, cred_mass=args.cred_mass,
                               sw_data=args.sw_data, densfun=args.densfun, sep=args.sep,
                               catalog=catalog, waneyedge=args.waneyedge)
        print(f"Felling date between {interval.lower} and {interval.upper} "
              f"(p = {interval.achieved_mass:.3f})")

    else:
        df = pd.read_csv(args.series_csv, sep=args.series_sep)
        result = sw_sum(df, sw_data=args.sw_data, densfun=args.densfun, scale_p=args.scale,
                        sep=args.sep, catalog=catalog, max_workers=args.workers, verbose=True)
        print(result.table[['year', SPD_COL, SPD_EXACT_COL]].loc[result.table[SPD_COL] > 0].to_string(index=False))
        if args.output:
            Path(args.output).parent.mkdir(parents=True, exist_ok=True)
            result.table.to_csv(args.output, index=False)
            print(f"\nSPD table saved to: {args.output}")

    if catalog is not None:
        print(f"\nAvailable sapwood data sets: {', '.join(list_reference_datasets(catalog))}")


if __name__ == "__main__":
    sys.exit(main())
