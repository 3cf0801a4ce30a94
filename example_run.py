#!/usr/bin/env python3
"""
Example script demonstrating how to run the felling date workflow.

This script uses a sapwood data set (.csv with columns n_sapwood and count)
and a small set of dated series, and produces:
1. The fitted sapwood model and its highest density interval
2. The felling date range of a single series
3. The summed probability distribution (SPD) of all series

Output is saved as CSVs.
"""

import sys
from pathlib import Path

import pandas as pd

from fellingdate import sw_interval, sw_model, sw_sum


# Nine series; trs_47 has neither sapwood rings nor waney edge and is removed
DUMMY_SERIES = pd.DataFrame({
    'series': ['trs_40', 'trs_41', 'trs_42', 'trs_43', 'trs_44', 'trs_45',
               'trs_46', 'trs_47', 'trs_48'],
    'last': [1000, 1009, 1007, 1007, 1010, 1020, 1025, 1050, 1035],
    'n_sapwood': [5, 10, 15, 16, 8, 0, 10, None, 1],
    'waneyedge': [False, False, True, True, False, False, False, False, False],
})


def run_example(sw_data: str, output_dir: str = "./output", densfun: str = "lognormal") -> dict:
    """
    Run the full workflow and save results.

    Parameters
    ----------
    sw_data : str
        Path to a .csv file with columns n_sapwood and count (';'-separated)
    output_dir : str
        Directory to save output files
    densfun : str
        Density function fitted to the sapwood data set

    Returns
    -------
    dict
        Dictionary containing the model output, the interval and the SPD result
    """
    csvs_output_dir = Path(output_dir) / "csvs"
    csvs_output_dir.mkdir(parents=True, exist_ok=True)

    print(f"\n{'='*60}")
    print(f"Sapwood data set: {sw_data}")
    print(f"{'='*60}\n")

    model_output = sw_model(sw_data, densfun=densfun, verbose=True)

    interval = sw_interval(n_sapwood=10, last=1234, hdi=True, cred_mass=0.95,
                           sw_data=sw_data, densfun=densfun)

    result = sw_sum(DUMMY_SERIES, sw_data=sw_data, densfun=densfun, verbose=True)

    model_output['sapwood_model'].to_csv(csvs_output_dir / "sapwood_model.csv", index=False)
    result.table.to_csv(csvs_output_dir / "spd.csv", index=False)

    # Print summary
    print(f"\n{'='*60}")
    print("Summary:")
    print(f"{'='*60}")
    print(f"  Observations: {model_output['n']}")
    print(f"  Range: {model_output['range']}")
    print(f"  Fitted parameters: {model_output['fit_parameters']}")
    print(f"  Felling date of a series with 10 sapwood rings, last ring 1234: "
          f"{interval.lower}-{interval.upper} (p = {interval.achieved_mass:.3f})")
    print(f"  Series in SPD: {len(result.series_ids)}")
    print(f"  Removed series: {', '.join(result.dropped) or 'none'}")
    print(f"\nCSVs saved to {csvs_output_dir}/")

    return {'model': model_output, 'interval': interval, 'spd': result}


def main():
    """Main entry point."""
    if len(sys.argv) < 2:
        print("Usage: python example_run.py <sapwood_data.csv> [densfun]")
        sys.exit(1)

    sw_data = sys.argv[1]
    densfun = sys.argv[2] if len(sys.argv) > 2 else 'lognormal'

    if not Path(sw_data).is_file():
        print(f"Error: sapwood data file '{sw_data}' not found.")
        sys.exit(1)

    run_example(sw_data, densfun=densfun)

    print(f"\n{'='*60}")
    print("Done!")
    print(f"{'='*60}")


if __name__ == "__main__":
    main()
