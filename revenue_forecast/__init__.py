"""Monthly revenue forecasting package.

This package projects future monthly revenue and order volume from a single
series of historical monthly totals.  It contains helpers for loading and
validating the history, a recency-weighted Fourier regression with ridge
regularisation, in-sample quality metrics, and a seasonal-naive fallback for
short histories.  See :class:`RevenueForecaster` for the entry point.
"""

from .config import ForecastConfig, RANGE_PRESETS, resolve_horizon  # noqa: F401
from .data import (  # noqa: F401
    HistoricalSample,
    average_order_value,
    load_data,
    prepare_history,
    select_branch,
    winsorize_history,
)
from .exceptions import (  # noqa: F401
    ForecastError,
    InvalidConfigError,
    InvalidInputError,
    ModelFitError,
)
from .features import FeatureBuilder, RecencyWeighter, WeightedObservation  # noqa: F401
from .metrics import ModelEvaluator, TrainingMetrics, confidence_from_mape, mape  # noqa: F401
from .model import (  # noqa: F401
    ForecastGenerator,
    ForecastPoint,
    ForecastResult,
    RevenueForecaster,
    SeasonalNaiveFallback,
)
from .solver import WeightedRegressionSolver, solve_linear_system  # noqa: F401

__all__ = [
    "ForecastConfig",
    "RANGE_PRESETS",
    "resolve_horizon",
    "HistoricalSample",
    "average_order_value",
    "load_data",
    "prepare_history",
    "select_branch",
    "winsorize_history",
    "ForecastError",
    "InvalidConfigError",
    "InvalidInputError",
    "ModelFitError",
    "FeatureBuilder",
    "RecencyWeighter",
    "WeightedObservation",
    "ModelEvaluator",
    "TrainingMetrics",
    "confidence_from_mape",
    "mape",
    "ForecastGenerator",
    "ForecastPoint",
    "ForecastResult",
    "RevenueForecaster",
    "SeasonalNaiveFallback",
    "WeightedRegressionSolver",
    "solve_linear_system",
]
