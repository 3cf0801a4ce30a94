"""
Tests for sapwood/main.py

Covers:
- sw_model output
- sw_interval tables and intervals, input validation
- sw_sum with one or several sapwood data sets
- Command line entry point
- Published scenarios (when the data sets are available)
"""

import numpy as np
import pandas as pd
import pytest

from fellingdate.exceptions import (
    EmptyInputSet,
    InvalidCredMass,
    InvalidSapwoodCount,
    UnknownReferenceDataset,
    UnsupportedDistribution,
)
from fellingdate.sapwood.data_loader import load_reference_catalog
from fellingdate.sapwood.hdi import CredibleInterval
from fellingdate.sapwood.main import main, sw_interval, sw_model, sw_sum


class TestSwModel:
    """Tests for sapwood modelling."""

    def test_output(self, catalog):
        output = sw_model('Synthetic_small', densfun='normal', cred_mass=0.5, catalog=catalog)
        assert output['n'] == 4
        assert output['range'] == {'min': 2, 'mean': 3.0, 'max': 4}
        assert output['density_function'] == 'normal'
        assert output['fit_parameters']['mean'] == pytest.approx(3.0)
        assert list(output['sapwood_model'].columns) == ['n_sapwood', 'p', 'model_fit', 'count']
        hdi_model = output['hdi_model']
        assert (hdi_model.lower, hdi_model.upper) == (3, 3)

    def test_default_cred_mass(self, catalog):
        output = sw_model('Synthetic_wide', catalog=catalog)
        hdi_model = output['hdi_model']
        assert hdi_model.cred_mass == 0.954
        assert 1 <= hdi_model.lower < hdi_model.upper <= 30

    def test_data_frame_input(self, wide_histogram):
        output = sw_model(wide_histogram, densfun='gamma')
        assert set(output['fit_parameters']) == {'shape', 'rate'}

    def test_verbose(self, catalog, capsys):
        sw_model('Synthetic_wide', catalog=catalog, verbose=True)
        assert "HDI" in capsys.readouterr().out

    @pytest.mark.parametrize("cred_mass", [-5, 34.56, "nulkommadink"])
    def test_invalid_cred_mass(self, catalog, cred_mass):
        with pytest.raises(InvalidCredMass):
            sw_model('Synthetic_wide', cred_mass=cred_mass, catalog=catalog)

    def test_unsupported_distribution(self, catalog):
        with pytest.raises(UnsupportedDistribution, match="not a supported distribution"):
            sw_model('Synthetic_wide', densfun='nuka-cola', catalog=catalog)

    def test_unknown_data_set(self, catalog):
        with pytest.raises(UnknownReferenceDataset):
            sw_model('Van_Daele_1978', catalog=catalog)


class TestSwInterval:
    """Tests for felling date ranges of single series."""

    def test_table(self, catalog):
        table = sw_interval(10, 1234, sw_data='Synthetic_wide', catalog=catalog)
        assert list(table.columns) == ['year', 'n_sapwood', 'p']
        assert table['year'].iloc[0] == 1234
        assert table['p'].sum() == pytest.approx(1.0)

    def test_hdi(self, catalog):
        interval = sw_interval(10, 1234, hdi=True, cred_mass=0.95,
                               sw_data='Synthetic_wide', catalog=catalog)
        assert isinstance(interval, CredibleInterval)
        assert interval.lower >= 1234
        assert interval.achieved_mass >= 0.95

    def test_waney_edge(self, catalog):
        interval = sw_interval(10, 1234, hdi=True, sw_data='Synthetic_wide',
                               catalog=catalog, waneyedge=True)
        assert (interval.lower, interval.upper) == (1234, 1234)

    @pytest.mark.parametrize("n_sapwood", [-5, 22.456, "iets meer dan twee"])
    def test_invalid_n_sapwood(self, n_sapwood):
        with pytest.raises(InvalidSapwoodCount, match="n_sapwood"):
            sw_interval(n_sapwood=n_sapwood)

    @pytest.mark.parametrize("cred_mass", [-5, 34.56, "nulkommadink"])
    def test_invalid_cred_mass(self, cred_mass):
        with pytest.raises(InvalidCredMass, match="credMass"):
            sw_interval(n_sapwood=5, cred_mass=cred_mass)

    def test_unsupported_distribution(self):
        with pytest.raises(UnsupportedDistribution, match="not a supported distribution"):
            sw_interval(n_sapwood=50, last=1980, densfun='nuka-cola')

    def test_unknown_data_set(self, catalog):
        with pytest.raises(UnknownReferenceDataset):
            sw_interval(n_sapwood=50, last=1980, sw_data='Van_Daele_1978', catalog=catalog)


class TestSwSum:
    """Tests for summed probability distributions of series tables."""

    def test_nine_series(self, dummy_series, catalog):
        with pytest.warns(UserWarning, match="1 series"):
            result = sw_sum(dummy_series, sw_data='Synthetic_wide', catalog=catalog)
        assert result.dropped == ('trs_47',)
        assert len(result.series_ids) == 8
        assert np.all(np.diff(result.table['year']) == 1)
        assert result.table['SPD'].sum() == pytest.approx(8.0)

    def test_scaled(self, dummy_series, catalog):
        with pytest.warns(UserWarning):
            result = sw_sum(dummy_series, sw_data='Synthetic_wide', catalog=catalog, scale_p=True)
        assert result.table['SPD'].sum() == pytest.approx(1.0)

    def test_sapwood_data_per_series(self, catalog):
        df = pd.DataFrame({
            'series': ['a', 'b', 'c'],
            'last': [1500, 1500, 1510],
            'n_sapwood': [2, 2, np.nan],
            'waneyedge': [False, False, True],
            'sw_data': ['Synthetic_small', 'Synthetic_wide', None],
        })
        result = sw_sum(df, sw_data='sw_data', densfun='normal', catalog=catalog)
        table = result.table.set_index('year')
        # The small data set ends at 4 rings, two years after the last ring
        assert table.loc[table['a'] > 0].index.max() == 1502
        assert table.loc[table['b'] > 0].index.max() == 1528
        assert table.loc[1510, 'SPD_exact'] == 1.0

    def test_threads(self, dummy_series, catalog):
        with pytest.warns(UserWarning):
            sequential = sw_sum(dummy_series, sw_data='Synthetic_wide', catalog=catalog)
        with pytest.warns(UserWarning):
            threaded = sw_sum(dummy_series, sw_data='Synthetic_wide', catalog=catalog, max_workers=3)
        pd.testing.assert_frame_equal(sequential.table, threaded.table)

    def test_verbose(self, dummy_series, catalog, capsys):
        with pytest.warns(UserWarning):
            sw_sum(dummy_series, sw_data='Synthetic_wide', catalog=catalog, verbose=True)
        out = capsys.readouterr().out
        assert "Aggregated 8 series" in out
        assert "trs_47" in out

    def test_all_series_dropped(self, catalog):
        df = pd.DataFrame({'series': ['a'], 'last': [1500], 'n_sapwood': [np.nan],
                           'waneyedge': [False]})
        with pytest.warns(UserWarning):
            with pytest.raises(EmptyInputSet):
                sw_sum(df, sw_data='Synthetic_wide', catalog=catalog)

    def test_unsupported_distribution(self, dummy_series, catalog):
        with pytest.raises(UnsupportedDistribution):
            sw_sum(dummy_series, sw_data='Synthetic_wide', densfun='nuka-cola', catalog=catalog)


class TestCommandLine:
    """Tests for the command line entry point."""

    @pytest.fixture
    def data_dir(self, tmp_path, wide_histogram):
        data_dir = tmp_path / "data"
        data_dir.mkdir()
        wide_histogram.to_csv(data_dir / "Synthetic_wide.csv", sep=';', index=False)
        return data_dir

    def test_interval(self, data_dir, capsys):
        code = main(['--data-dir', str(data_dir), '--sw-data', 'Synthetic_wide',
                     'interval', '10', '1234'])
        assert code == 0
        out = capsys.readouterr().out
        assert "Felling date between 1234 and" in out
        assert "Synthetic_wide" in out

    def test_model(self, data_dir, capsys):
        csv_path = data_dir / "Synthetic_wide.csv"
        assert main(['--sw-data', str(csv_path), '--densfun', 'weibull', 'model']) == 0
        assert "Fitted weibull parameters" in capsys.readouterr().out

    def test_sum(self, data_dir, dummy_series, tmp_path):
        series_csv = tmp_path / "series.csv"
        dummy_series.to_csv(series_csv, index=False)
        output = tmp_path / "out" / "spd.csv"
        with pytest.warns(UserWarning):
            code = main(['--data-dir', str(data_dir), '--sw-data', 'Synthetic_wide',
                         'sum', str(series_csv), '--scale', '--output', str(output)])
        assert code == 0
        spd = pd.read_csv(output)
        assert spd['SPD'].sum() == pytest.approx(1.0)

    def test_default_data_set_without_catalog(self, capsys):
        assert main(['model']) == 1
        err = capsys.readouterr().err
        assert err.startswith("Error:")
        assert "Hollstein_1980" in err

    def test_invalid_count(self, data_dir, capsys):
        code = main(['--data-dir', str(data_dir), '--sw-data', 'Synthetic_wide',
                     'interval', '99', '1234'])
        assert code == 1
        assert "exceeds the largest number of sapwood rings" in capsys.readouterr().err

    def test_missing_data_dir(self, tmp_path, capsys):
        assert main(['--data-dir', str(tmp_path / "nowhere"), 'model']) == 1
        assert "Error:" in capsys.readouterr().err


class TestPublishedScenarios:
    """Felling date ranges for the Wazny (1990) sapwood data set."""

    @pytest.fixture
    def wazny_catalog(self, reference_dir):
        catalog = load_reference_catalog(reference_dir)
        if 'Wazny_1990' not in catalog:
            pytest.skip("Wazny_1990.csv not found in FELLINGDATE_REFERENCE_DIR")
        return catalog

    def test_lognormal(self, wazny_catalog):
        interval = sw_interval(n_sapwood=10, last=1234, hdi=True, cred_mass=0.95,
                               sw_data='Wazny_1990', densfun='lognormal', catalog=wazny_catalog)
        assert (interval.lower, interval.upper) == (1234, 1250)
        assert interval.achieved_mass >= 0.95

    def test_normal(self, wazny_catalog):
        interval = sw_interval(n_sapwood=10, last=1234, hdi=True, cred_mass=0.95,
                               sw_data='Wazny_1990', densfun='normal', catalog=wazny_catalog)
        assert (interval.lower, interval.upper) == (1234, 1248)
        assert interval.achieved_mass >= 0.95
