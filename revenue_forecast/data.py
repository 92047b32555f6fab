"""Historical revenue loading, validation and calendar helpers.

The engine consumes one ordered series of monthly revenue totals.  This
module turns whatever the caller holds (a CSV export, a DataFrame or a list
of records) into validated :class:`HistoricalSample` objects and provides
the month arithmetic shared by the regression and the seasonal-naive path.
Keeping data handling separate from model logic makes both easier to test.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Iterable, List, Mapping, Tuple, Union

import numpy as np
import pandas as pd
from scipy import stats

from .exceptions import InvalidInputError

HistoryLike = Union[pd.DataFrame, Iterable[Any]]

_COLUMN_ALIASES = (("date", "revenue"), ("ds", "y"))


@dataclass(frozen=True)
class HistoricalSample:
    """Revenue for one calendar month.

    ``month_index`` counts whole months since the first sample of the series,
    so gaps in the history keep their true distance.
    """

    month_index: int
    date: pd.Timestamp
    revenue: float


# ---------------------------------------------------------------------
# Calendar helpers
# ---------------------------------------------------------------------
def month_start(value: Any) -> pd.Timestamp:
    """Return the first day of the month containing ``value``."""
    ts = pd.Timestamp(value)
    if ts is pd.NaT:
        raise InvalidInputError("Missing date in revenue history")
    return ts.to_period("M").to_timestamp()


def month_offset(anchor: Any, date: Any) -> int:
    """Number of whole months from ``anchor`` to ``date`` (negative if earlier)."""
    a = pd.Timestamp(anchor)
    d = pd.Timestamp(date)
    return (d.year - a.year) * 12 + (d.month - a.month)


def add_months(date: Any, months: int) -> pd.Timestamp:
    """Shift a month by ``months`` calendar months and return its first day."""
    return (month_start(date).to_period("M") + months).to_timestamp()


def future_months(last_date: Any, horizon: int) -> List[pd.Timestamp]:
    """The ``horizon`` calendar months following ``last_date``."""
    return [add_months(last_date, step) for step in range(1, horizon + 1)]


# ---------------------------------------------------------------------
# Loading and validation
# ---------------------------------------------------------------------
def load_data(file_path: str) -> pd.DataFrame:
    """Load a monthly revenue CSV into a pandas DataFrame.

    The file must contain at least ``date`` and ``revenue`` columns.  An
    ``orders`` column (order counts per month) and a ``branch`` column are
    optional.  The ``date`` column is parsed as a datetime; no other cleaning
    is performed here.

    Parameters
    ----------
    file_path : str
        Path to the CSV file.

    Returns
    -------
    pd.DataFrame
    """
    df = pd.read_csv(file_path)
    if "date" not in df.columns or "revenue" not in df.columns:
        raise InvalidInputError("CSV must contain 'date' and 'revenue' columns")
    df["date"] = pd.to_datetime(df["date"])
    return df


def select_branch(df: pd.DataFrame, branch: str, column: str = "branch") -> pd.DataFrame:
    """Return the rows of a single branch from a multi-branch export."""
    if column not in df.columns:
        raise KeyError(f"DataFrame has no '{column}' column")
    subset = df[df[column].astype(str) == str(branch)]
    if subset.empty:
        raise KeyError(f"Branch '{branch}' not found in history")
    return subset.copy()


def _records_from_frame(df: pd.DataFrame) -> List[Tuple[Any, Any]]:
    for date_col, revenue_col in _COLUMN_ALIASES:
        if date_col in df.columns and revenue_col in df.columns:
            return list(zip(df[date_col].tolist(), df[revenue_col].tolist()))
    raise InvalidInputError("DataFrame must contain 'date' and 'revenue' (or 'ds' and 'y') columns")


def _record_from_item(item: Any) -> Tuple[Any, Any]:
    if isinstance(item, HistoricalSample):
        return item.date, item.revenue
    if isinstance(item, Mapping):
        for date_key, revenue_key in _COLUMN_ALIASES:
            if date_key in item and revenue_key in item:
                return item[date_key], item[revenue_key]
        raise InvalidInputError(f"History record is missing 'date' or 'revenue': {dict(item)!r}")
    if isinstance(item, (tuple, list)) and len(item) == 2:
        return item[0], item[1]
    raise InvalidInputError(f"Unsupported history record: {item!r}")


def _parse_revenue(value: Any, date: pd.Timestamp) -> float:
    try:
        revenue = float(value)
    except (TypeError, ValueError):
        raise InvalidInputError(f"Revenue for {date:%Y-%m} is not numeric: {value!r}") from None
    if not math.isfinite(revenue):
        raise InvalidInputError(f"Revenue for {date:%Y-%m} is missing or not finite")
    if revenue < 0:
        raise InvalidInputError(f"Revenue for {date:%Y-%m} is negative: {revenue}")
    return revenue


def prepare_history(data: HistoryLike) -> List[HistoricalSample]:
    """Validate a monthly revenue series and assign month indices.

    Dates are normalised to the first day of their month.  The series must be
    strictly ascending with at most one entry per month; gaps are allowed.

    Parameters
    ----------
    data : DataFrame or iterable
        A DataFrame with ``date``/``revenue`` (or ``ds``/``y``) columns, or an
        iterable of mappings, ``(date, revenue)`` pairs or
        :class:`HistoricalSample` objects.

    Returns
    -------
    list of HistoricalSample
        Samples in ascending order, ``month_index`` counted from the first.

    Raises
    ------
    InvalidInputError
        If dates are unparseable, out of order or duplicated, or a revenue
        value is missing, non-numeric or negative.
    """
    if isinstance(data, pd.DataFrame):
        records = _records_from_frame(data)
    else:
        records = [_record_from_item(item) for item in data]

    samples: List[HistoricalSample] = []
    anchor = None
    previous = None
    for raw_date, raw_revenue in records:
        try:
            date = month_start(raw_date)
        except (TypeError, ValueError) as exc:
            raise InvalidInputError(f"Invalid date in revenue history: {raw_date!r}") from exc
        if previous is not None:
            if date == previous:
                raise InvalidInputError(f"Duplicate month in revenue history: {date:%Y-%m}")
            if date < previous:
                raise InvalidInputError(
                    f"Revenue history is not in ascending order: {date:%Y-%m} follows {previous:%Y-%m}"
                )
        revenue = _parse_revenue(raw_revenue, date)
        if anchor is None:
            anchor = date
        samples.append(HistoricalSample(month_offset(anchor, date), date, revenue))
        previous = date
    return samples


# ---------------------------------------------------------------------
# Preprocessing helpers
# ---------------------------------------------------------------------
def average_order_value(df: pd.DataFrame, window: int = 3) -> float:
    """Average revenue per order over the most recent months with orders.

    Only months with a positive ``orders`` count are considered; the last
    ``window`` of them are pooled.  Returns 0.0 when no orders are recorded.
    """
    if "orders" not in df.columns:
        return 0.0
    recent = df.sort_values("date")
    recent = recent[recent["orders"].fillna(0) > 0].tail(window)
    if recent.empty:
        return 0.0
    return float(recent["revenue"].sum() / recent["orders"].sum())


def winsorize_history(
    df: pd.DataFrame,
    column: str = "revenue",
    limits: Tuple[float, float] = (0.0, 0.05),
) -> pd.DataFrame:
    """Cap extreme revenue values at the given tail proportions.

    Uses SciPy's ``stats.mstats.winsorize`` on a single series.  With the
    default ``(0.0, 0.05)`` the top 5% of months are pulled down to the
    95th percentile while the lower end is left untouched.
    """
    df = df.copy()
    # winsorize returns a masked array; convert back to plain floats
    capped = stats.mstats.winsorize(df[column].to_numpy(dtype=float), limits=limits)
    df[column] = np.asarray(capped, dtype=float)
    return df
