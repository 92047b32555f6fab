"""
Shared fixtures for the revenue forecasting test suite.

History builders return pandas DataFrames in the shape produced by the
monthly aggregation layer: one row per month with ``date`` and ``revenue``.
"""

import pandas as pd
import pytest


def monthly_frame(revenues, start="2022-01-01", orders=None):
    dates = pd.date_range(start, periods=len(revenues), freq="MS")
    df = pd.DataFrame({"date": dates, "revenue": [float(r) for r in revenues]})
    if orders is not None:
        df["orders"] = orders
    return df


@pytest.fixture
def make_history():
    """Return a builder for monthly revenue DataFrames."""
    return monthly_frame


@pytest.fixture
def flat_history():
    """24 months of constant revenue."""
    return monthly_frame([10000] * 24)


@pytest.fixture
def seasonal_history():
    """24 months with a spike in the same calendar month each year."""
    revenues = [10000] * 24
    revenues[0] = 20000
    revenues[12] = 20000
    return monthly_frame(revenues)


@pytest.fixture
def sparse_history():
    """10 months of history, too short for the regression."""
    return monthly_frame([5000 + 100 * i for i in range(10)])


@pytest.fixture
def zero_month_history():
    """24 months of gently seasonal revenue with one month of no sales."""
    revenues = [10000 + 1500 * ((i % 12) in (10, 11)) for i in range(24)]
    revenues[7] = 0
    return monthly_frame(revenues)
