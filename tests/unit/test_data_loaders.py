"""Unit tests for building a SeriesMatrix from tabular data."""

import numpy as np
import pandas as pd
import pytest

from seasonal_clusters.data.loaders import SeriesMatrixBuilder, trim_to_full_periods
from seasonal_clusters.data.structs import SeriesMatrix


def _long(records):
    return pd.DataFrame(records, columns=["site", "date", "visits"])


class TestSeriesMatrixBuilder:

    def test_from_long_pivots_and_sorts(self, visitation_long_df):
        matrix = SeriesMatrixBuilder().from_long(visitation_long_df)
        assert matrix.n_series == 9
        assert matrix.n_steps == 36
        assert list(matrix.names) == sorted(matrix.names)
        assert matrix.start == pd.Timestamp("2016-01-01")

    def test_values_land_in_the_right_month(self):
        df = _long([
            ("a", "2020-01-15", 1.0),
            ("a", "2020-02-03", 2.0),
            ("a", "2020-03-28", 3.0),
        ])
        matrix = SeriesMatrixBuilder().from_long(df)
        np.testing.assert_array_equal(matrix.values[0], [1.0, 2.0, 3.0])

    def test_duplicate_month_records_are_summed(self):
        df = _long([
            ("a", "2020-01-01", 1.0),
            ("a", "2020-01-20", 4.0),
            ("a", "2020-02-01", 2.0),
        ])
        matrix = SeriesMatrixBuilder().from_long(df)
        np.testing.assert_array_equal(matrix.values[0], [5.0, 2.0])

    def test_series_with_gap_is_dropped(self):
        df = _long([
            ("a", "2020-01-01", 1.0), ("a", "2020-02-01", 2.0), ("a", "2020-03-01", 3.0),
            ("b", "2020-01-01", 1.0), ("b", "2020-03-01", 3.0),
            ("c", "2020-01-01", 1.0), ("c", "2020-02-01", np.nan), ("c", "2020-03-01", 3.0),
        ])
        builder = SeriesMatrixBuilder()
        matrix = builder.from_long(df)
        assert matrix.names == ("a",)
        assert sorted(builder.dropped) == ["b", "c"]

    def test_series_not_covering_full_range_is_dropped(self):
        df = _long([
            ("a", "2020-01-01", 1.0), ("a", "2020-02-01", 2.0),
            ("b", "2020-02-01", 2.0),
        ])
        assert SeriesMatrixBuilder().from_long(df).names == ("a",)

    def test_min_total_filter(self):
        df = _long([
            ("busy", "2020-01-01", 100.0), ("busy", "2020-02-01", 50.0),
            ("empty", "2020-01-01", 0.0), ("empty", "2020-02-01", 0.0),
        ])
        builder = SeriesMatrixBuilder()
        matrix = builder.from_long(df, min_total=1.0)
        assert matrix.names == ("busy",)
        assert builder.dropped == ["empty"]

    def test_nothing_left(self):
        df = _long([("a", "2020-01-01", 1.0), ("b", "2020-02-01", 1.0)])
        with pytest.raises(ValueError, match="No complete series"):
            SeriesMatrixBuilder().from_long(df)

    def test_custom_columns(self):
        df = pd.DataFrame({
            "park": ["x", "x"],
            "month": ["2021-05-01", "2021-06-01"],
            "count": [3, 4],
        })
        builder = SeriesMatrixBuilder(id_column="park", date_column="month", value_column="count")
        matrix = builder.from_long(df)
        assert matrix.names == ("x",)
        assert matrix.start == pd.Timestamp("2021-05-01")

    def test_validate_columns(self):
        builder = SeriesMatrixBuilder()
        result = builder.validate_columns(pd.DataFrame({"site": ["a"], "visits": [1.0]}))
        assert not result.is_valid
        assert result.missing_columns == ["date"]
        assert "Missing required column: date" in result.to_dict()["errors"]

    def test_non_numeric_values_rejected(self):
        df = _long([("a", "2020-01-01", "many")])
        with pytest.raises(ValueError, match="expected numeric"):
            SeriesMatrixBuilder().from_long(df)

    def test_load_csv(self, visitation_csv):
        matrix = SeriesMatrixBuilder().load_csv(str(visitation_csv))
        assert matrix.n_series == 9
        assert matrix.n_steps == 36

    def test_load_csv_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            SeriesMatrixBuilder().load_csv(str(tmp_path / "nope.csv"))

    def test_from_wide(self):
        wide = pd.DataFrame(
            [[1.0, 2.0, 3.0], [4.0, np.nan, 6.0]],
            index=["north", "south"],
        )
        matrix = SeriesMatrixBuilder(period=3).from_wide(wide)
        assert matrix.names == ("north",)
        assert matrix.period == 3
        assert matrix.start is None


class TestTrimToFullPeriods:

    def test_trims_to_january_and_whole_years(self):
        matrix = SeriesMatrix(
            names=("a",),
            values=np.arange(40.0).reshape(1, 40),
            start=pd.Timestamp("2015-03-01"),
        )
        trimmed = trim_to_full_periods(matrix)
        # March 2015 + 10 months = January 2016; 30 steps remain -> 2 years
        assert trimmed.start == pd.Timestamp("2016-01-01")
        assert trimmed.n_steps == 24
        assert trimmed.values[0, 0] == 10.0

    def test_unknown_start_drops_trailing_only(self):
        matrix = SeriesMatrix(names=("a",), values=np.arange(30.0).reshape(1, 30))
        trimmed = trim_to_full_periods(matrix)
        assert trimmed.n_steps == 24
        assert trimmed.values[0, 0] == 0.0

    def test_no_full_period(self):
        matrix = SeriesMatrix(
            names=("a",),
            values=np.arange(14.0).reshape(1, 14),
            start=pd.Timestamp("2015-06-01"),
        )
        with pytest.raises(ValueError, match="no full period"):
            trim_to_full_periods(matrix)
