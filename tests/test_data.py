"""Tests for history loading, validation and calendar helpers."""

import math

import pandas as pd
import pytest

from revenue_forecast.data import (
    HistoricalSample,
    add_months,
    average_order_value,
    future_months,
    load_data,
    month_offset,
    prepare_history,
    select_branch,
    winsorize_history,
)
from revenue_forecast.exceptions import InvalidInputError


# ===================================================================
# Calendar helpers
# ===================================================================

class TestCalendar:
    def test_month_offset(self):
        assert month_offset("2022-01-01", "2022-01-01") == 0
        assert month_offset("2022-01-01", "2023-03-01") == 14
        assert month_offset("2022-06-01", "2022-01-01") == -5

    def test_add_months_crosses_year(self):
        assert add_months("2022-11-01", 3) == pd.Timestamp("2023-02-01")
        assert add_months("2022-03-15", -12) == pd.Timestamp("2021-03-01")

    def test_future_months(self):
        months = future_months(pd.Timestamp("2023-12-01"), 3)
        assert months == [
            pd.Timestamp("2024-01-01"),
            pd.Timestamp("2024-02-01"),
            pd.Timestamp("2024-03-01"),
        ]


# ===================================================================
# prepare_history
# ===================================================================

class TestPrepareHistory:
    def test_from_dataframe(self, make_history):
        samples = prepare_history(make_history([100, 200, 300]))
        assert [s.month_index for s in samples] == [0, 1, 2]
        assert [s.revenue for s in samples] == [100.0, 200.0, 300.0]
        assert samples[0].date == pd.Timestamp("2022-01-01")

    def test_prophet_style_columns(self):
        df = pd.DataFrame({"ds": ["2022-01-01", "2022-02-01"], "y": [1.0, 2.0]})
        samples = prepare_history(df)
        assert len(samples) == 2

    def test_from_records_and_pairs(self):
        records = [{"date": "2022-01-01", "revenue": 10}, ("2022-02-01", 20)]
        samples = prepare_history(records)
        assert [s.revenue for s in samples] == [10.0, 20.0]

    def test_from_samples(self):
        original = [HistoricalSample(0, pd.Timestamp("2022-01-01"), 5.0)]
        assert prepare_history(original)[0].revenue == 5.0

    def test_gaps_keep_true_month_distance(self):
        samples = prepare_history([("2022-01-01", 1), ("2022-02-01", 1), ("2022-06-01", 1)])
        assert [s.month_index for s in samples] == [0, 1, 5]

    def test_dates_normalised_to_month_start(self):
        samples = prepare_history([("2022-01-17", 1), ("2022-02-28", 1)])
        assert samples[0].date == pd.Timestamp("2022-01-01")
        assert samples[1].date == pd.Timestamp("2022-02-01")

    def test_zero_revenue_allowed(self):
        samples = prepare_history([("2022-01-01", 0)])
        assert samples[0].revenue == 0.0

    def test_empty_history(self):
        assert prepare_history([]) == []

    def test_duplicate_month_rejected(self):
        with pytest.raises(InvalidInputError, match="Duplicate"):
            prepare_history([("2022-01-01", 1), ("2022-01-20", 2)])

    def test_descending_dates_rejected(self):
        with pytest.raises(InvalidInputError, match="ascending"):
            prepare_history([("2022-03-01", 1), ("2022-02-01", 2)])

    def test_negative_revenue_rejected(self):
        with pytest.raises(InvalidInputError, match="negative"):
            prepare_history([("2022-01-01", -5)])

    @pytest.mark.parametrize("value", [float("nan"), math.inf, None, "lots"])
    def test_non_numeric_revenue_rejected(self, value):
        with pytest.raises(InvalidInputError):
            prepare_history([("2022-01-01", value)])

    def test_bad_date_rejected(self):
        with pytest.raises(InvalidInputError):
            prepare_history([("not a date", 1)])

    def test_missing_columns_rejected(self):
        with pytest.raises(InvalidInputError):
            prepare_history(pd.DataFrame({"month": ["2022-01-01"], "sales": [1]}))

    def test_invalid_errors_are_value_errors(self):
        with pytest.raises(ValueError):
            prepare_history([("2022-01-01", -1)])


# ===================================================================
# Loading and preprocessing
# ===================================================================

class TestLoading:
    def test_load_data_parses_dates(self, tmp_path):
        path = tmp_path / "history.csv"
        path.write_text("date,revenue,orders,branch\n2022-01-01,100,4,Main\n2022-02-01,150,5,Main\n")
        df = load_data(str(path))
        assert pd.api.types.is_datetime64_any_dtype(df["date"])
        assert list(df["revenue"]) == [100, 150]

    def test_load_data_requires_columns(self, tmp_path):
        path = tmp_path / "bad.csv"
        path.write_text("month,sales\n2022-01,1\n")
        with pytest.raises(InvalidInputError):
            load_data(str(path))

    def test_select_branch(self):
        df = pd.DataFrame(
            {
                "date": pd.to_datetime(["2022-01-01", "2022-01-01", "2022-02-01"]),
                "revenue": [1.0, 2.0, 3.0],
                "branch": ["North", "South", "North"],
            }
        )
        north = select_branch(df, "North")
        assert list(north["revenue"]) == [1.0, 3.0]

    def test_select_unknown_branch(self, make_history):
        df = make_history([1, 2])
        df["branch"] = "North"
        with pytest.raises(KeyError):
            select_branch(df, "West")

    def test_average_order_value_uses_recent_months(self, make_history):
        df = make_history([1000, 2000, 3000, 4000], orders=[10, 10, 20, 20])
        assert average_order_value(df, window=2) == pytest.approx(7000 / 40)

    def test_average_order_value_skips_months_without_orders(self, make_history):
        df = make_history([1000, 2000, 3000], orders=[10, 20, 0])
        assert average_order_value(df, window=1) == pytest.approx(100.0)

    def test_average_order_value_without_orders(self, make_history):
        assert average_order_value(make_history([1000, 2000])) == 0.0

    def test_winsorize_caps_top_values(self, make_history):
        df = make_history(list(range(1, 21)))
        capped = winsorize_history(df)
        assert capped["revenue"].max() == 19.0
        assert capped["revenue"].min() == 1.0
        # original untouched
        assert df["revenue"].max() == 20.0
