"""RevenueForecaster: weighted Fourier regression with a seasonal-naive fallback.

This module ties the pieces of the engine together.  A history long enough
to trust is fitted with a recency-weighted, ridge-regularised regression of
``log(revenue + 1)`` on a trend and Fourier seasonal terms; the fitted
coefficients are evaluated in-sample and projected onto the requested
months.  A shorter history, or a fit that fails numerically, is answered
with a same-month-last-year forecast instead.  Every call is independent:
nothing is cached or persisted between forecasts.
"""

from __future__ import annotations

import enum
import logging
import math
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Sequence, Union

import numpy as np
import pandas as pd

from .config import ForecastConfig, resolve_horizon
from .data import (
    HistoricalSample,
    HistoryLike,
    add_months,
    future_months,
    month_offset,
    month_start,
    prepare_history,
)
from .exceptions import InvalidConfigError, InvalidInputError, ModelFitError
from .features import FeatureBuilder, RecencyWeighter, build_observations
from .metrics import ModelEvaluator, TrainingMetrics, revenue_from_log
from .solver import WeightedRegressionSolver

logger = logging.getLogger(__name__)

MODEL_REGRESSION = "weighted-fourier-regression"
MODEL_SEASONAL_NAIVE = "seasonal-naive"


class HistoryState(enum.Enum):
    INSUFFICIENT = "insufficient-history"
    SUFFICIENT = "sufficient-history"


@dataclass(frozen=True)
class ForecastPoint:
    """Projected revenue and orders for one future month."""

    date: pd.Timestamp
    predicted_revenue: float
    predicted_orders: float
    confidence: float
    degraded: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "date": self.date.strftime("%Y-%m-%d"),
            "predictedRevenue": self.predicted_revenue,
            "predictedOrders": self.predicted_orders,
            "confidence": self.confidence,
            "degraded": self.degraded,
        }


def predicted_orders(revenue: float, average_order_value: float) -> float:
    """Orders implied by ``revenue``; zero when no order value is known."""
    if average_order_value <= 0:
        return 0.0
    return revenue / average_order_value


# ---------------------------------------------------------------------
# Projection
# ---------------------------------------------------------------------
class ForecastGenerator:
    """Project fitted coefficients onto calendar months."""

    def __init__(self, config: ForecastConfig, builder: Optional[FeatureBuilder] = None) -> None:
        self.config = config
        self.builder = builder or FeatureBuilder.from_config(config)

    def step_confidence(self, base_confidence: float, steps_ahead: int) -> float:
        decayed = base_confidence * self.config.horizon_decay ** max(steps_ahead, 0)
        return float(min(max(decayed, self.config.min_confidence), self.config.max_confidence))

    def generate(
        self,
        coefficients: np.ndarray,
        anchor: Any,
        target_months: Sequence[Any],
        base_confidence: float,
        average_order_value: float = 0.0,
        last_month_index: int = 0,
    ) -> List[ForecastPoint]:
        """Forecast each target month.

        Parameters
        ----------
        coefficients : np.ndarray
            Fitted regression coefficients.
        anchor : date-like
            The month with ``month_index == 0`` (first historical month).
        target_months : sequence of date-like
            Months to forecast.
        base_confidence : float
            Training confidence; decays by ``horizon_decay`` per month beyond
            ``last_month_index``.
        average_order_value : float, default 0.0
            Revenue per order used to derive predicted orders.
        last_month_index : int, default 0
            Month index of the latest observation.

        Returns
        -------
        list of ForecastPoint
        """
        if len(target_months) == 0:
            return []
        dates = [month_start(target) for target in target_months]
        indices = [month_offset(anchor, date) for date in dates]
        features = self.builder.build_matrix(indices)
        revenues = revenue_from_log(features @ coefficients)
        points = []
        for date, index, revenue in zip(dates, indices, revenues):
            revenue = float(revenue)
            points.append(
                ForecastPoint(
                    date=date,
                    predicted_revenue=revenue,
                    predicted_orders=predicted_orders(revenue, average_order_value),
                    confidence=self.step_confidence(base_confidence, index - last_month_index),
                )
            )
        return points


# ---------------------------------------------------------------------
# Fallback
# ---------------------------------------------------------------------
class SeasonalNaiveFallback:
    """Same-period-last-season forecast for histories too short to fit."""

    def __init__(self, config: ForecastConfig) -> None:
        self.config = config

    def state_for(self, distinct_months: int) -> HistoryState:
        if self.config.uses_regression(distinct_months):
            return HistoryState.SUFFICIENT
        return HistoryState.INSUFFICIENT

    def generate(
        self,
        samples: Sequence[HistoricalSample],
        target_months: Sequence[Any],
        average_order_value: float = 0.0,
    ) -> List[ForecastPoint]:
        """Repeat the revenue observed one season before each target month.

        Months whose prior-season value is not in the history forecast zero
        revenue and are flagged as degraded.
        """
        by_month = {sample.date: sample.revenue for sample in samples}
        points = []
        for target in target_months:
            date = month_start(target)
            prior = add_months(date, -self.config.season_length)
            found = prior in by_month
            revenue = by_month[prior] if found else 0.0
            points.append(
                ForecastPoint(
                    date=date,
                    predicted_revenue=revenue,
                    predicted_orders=predicted_orders(revenue, average_order_value),
                    confidence=self.config.naive_confidence,
                    degraded=not found,
                )
            )
        return points


# ---------------------------------------------------------------------
# Result
# ---------------------------------------------------------------------
@dataclass
class ForecastResult:
    """Outcome of one forecast request."""

    model: str
    degraded: bool
    training_metrics: Optional[TrainingMetrics]
    forecast: List[ForecastPoint]
    history: List[HistoricalSample] = field(default_factory=list, repr=False)
    coefficients: Optional[np.ndarray] = field(default=None, repr=False)
    season_length: int = 12

    def to_dict(self) -> Dict[str, Any]:
        return {
            "model": self.model,
            "degraded": self.degraded,
            "trainingMetrics": self.training_metrics.to_dict() if self.training_metrics else None,
            "forecast": [point.to_dict() for point in self.forecast],
        }

    def summary(self) -> Dict[str, Any]:
        """Totals shown on the dashboard's forecast summary cards."""
        months = len(self.forecast)
        projected_revenue = float(sum(p.predicted_revenue for p in self.forecast))
        projected_orders = float(sum(p.predicted_orders for p in self.forecast))
        average_monthly = projected_revenue / months if months else 0.0
        recent = [s.revenue for s in self.history[-self.season_length:]]
        baseline = float(np.mean(recent)) if recent else 0.0
        growth = (average_monthly - baseline) / baseline * 100.0 if baseline > 0 else None
        confidence = (
            round(float(np.mean([p.confidence for p in self.forecast])) * 100) if months else None
        )
        return {
            "projectedRevenue": projected_revenue,
            "projectedOrders": projected_orders,
            "averageMonthlyRevenue": average_monthly,
            "baselineRevenue": baseline,
            "expectedGrowthRate": growth,
            "confidence": confidence,
            "months": months,
        }

    def combined(self) -> List[Dict[str, Any]]:
        """Historical and forecast revenue as one chronological series."""
        rows = [
            {"date": s.date.strftime("%Y-%m-%d"), "revenue": s.revenue, "type": "historical"}
            for s in self.history
        ]
        rows.extend(
            {"date": p.date.strftime("%Y-%m-%d"), "revenue": p.predicted_revenue, "type": "forecast"}
            for p in self.forecast
        )
        return rows

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame(
            {
                "date": [p.date for p in self.forecast],
                "predicted_revenue": [p.predicted_revenue for p in self.forecast],
                "predicted_orders": [p.predicted_orders for p in self.forecast],
                "confidence": [p.confidence for p in self.forecast],
                "degraded": [p.degraded for p in self.forecast],
            }
        )


# ---------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------
class RevenueForecaster:
    """Forecast monthly revenue for a single series.

    Parameters
    ----------
    config : ForecastConfig, optional
        Model options; defaults are used when omitted.

    Examples
    --------
    >>> forecaster = RevenueForecaster()
    >>> result = forecaster.forecast(history_df, horizon="nextQuarter", average_order_value=850.0)
    >>> result.to_dict()["model"]
    'weighted-fourier-regression'
    """

    def __init__(self, config: Optional[ForecastConfig] = None) -> None:
        self.config = config or ForecastConfig()
        self.builder = FeatureBuilder.from_config(self.config)
        self.weighter = RecencyWeighter.from_config(self.config)
        self.solver = WeightedRegressionSolver.from_config(self.config)
        self.evaluator = ModelEvaluator(self.config)
        self.generator = ForecastGenerator(self.config, self.builder)
        self.fallback = SeasonalNaiveFallback(self.config)

    # ---------------------------------------------------------------------
    # Private helpers
    # ---------------------------------------------------------------------
    def _target_months(
        self,
        samples: List[HistoricalSample],
        horizon: Optional[Union[int, str]],
        target_months: Optional[Iterable[Any]],
    ) -> List[pd.Timestamp]:
        if target_months is not None:
            try:
                return [month_start(target) for target in target_months]
            except (TypeError, ValueError) as exc:
                raise InvalidInputError(f"Invalid target month: {exc}") from exc
        if horizon is None:
            raise InvalidConfigError("Either a horizon or explicit target months is required")
        months = resolve_horizon(horizon)
        if not samples:
            raise InvalidInputError("Cannot place a forecast horizon without any revenue history")
        return future_months(samples[-1].date, months)

    @staticmethod
    def _check_order_value(average_order_value: float) -> float:
        try:
            value = float(average_order_value)
        except (TypeError, ValueError):
            raise InvalidInputError(
                f"average_order_value must be numeric, got {average_order_value!r}"
            ) from None
        if not math.isfinite(value) or value < 0:
            raise InvalidInputError(f"average_order_value must be a finite value >= 0, got {value}")
        return value

    def _regression(
        self,
        samples: List[HistoricalSample],
        targets: List[pd.Timestamp],
        average_order_value: float,
    ) -> ForecastResult:
        observations = build_observations(samples, self.builder, self.weighter)
        coefficients = self.solver.fit(observations, self.builder.dimension)
        metrics = self.evaluator.evaluate(coefficients, observations)
        logger.debug(
            "Regression fit on %d months: mape=%.2f residual_std=%.4f confidence=%.3f",
            len(samples),
            metrics.mape,
            metrics.residual_std,
            metrics.confidence,
        )
        points = self.generator.generate(
            coefficients,
            anchor=samples[0].date,
            target_months=targets,
            base_confidence=metrics.confidence,
            average_order_value=average_order_value,
            last_month_index=samples[-1].month_index,
        )
        return ForecastResult(
            model=MODEL_REGRESSION,
            degraded=False,
            training_metrics=metrics,
            forecast=points,
            history=samples,
            coefficients=coefficients,
            season_length=self.config.season_length,
        )

    def _seasonal_naive(
        self,
        samples: List[HistoricalSample],
        targets: List[pd.Timestamp],
        average_order_value: float,
        fit_failed: bool = False,
    ) -> ForecastResult:
        points = self.fallback.generate(samples, targets, average_order_value)
        return ForecastResult(
            model=MODEL_SEASONAL_NAIVE,
            degraded=fit_failed or any(p.degraded for p in points),
            training_metrics=None,
            forecast=points,
            history=samples,
            season_length=self.config.season_length,
        )

    # ---------------------------------------------------------------------
    # Public methods
    # ---------------------------------------------------------------------
    def forecast(
        self,
        history: HistoryLike,
        horizon: Optional[Union[int, str]] = None,
        target_months: Optional[Iterable[Any]] = None,
        average_order_value: float = 0.0,
    ) -> ForecastResult:
        """Forecast revenue for future months.

        Parameters
        ----------
        history : DataFrame or iterable
            Monthly revenue, see :func:`prepare_history`.
        horizon : int or str, optional
            Number of months after the last observation, or one of the range
            names ``nextMonth``, ``nextQuarter``, ``nextYear``.
        target_months : iterable of date-like, optional
            Explicit months to forecast; takes precedence over ``horizon``.
        average_order_value : float, default 0.0
            Revenue per order from recent history, used for predicted orders.

        Returns
        -------
        ForecastResult

        Raises
        ------
        InvalidInputError
            If the history or the order value is malformed.
        InvalidConfigError
            If the horizon is invalid or missing.
        """
        samples = prepare_history(history)
        order_value = self._check_order_value(average_order_value)
        targets = self._target_months(samples, horizon, target_months)

        state = self.fallback.state_for(len(samples))
        logger.debug("%d months of history: %s", len(samples), state.value)
        if state is HistoryState.SUFFICIENT:
            try:
                return self._regression(samples, targets, order_value)
            except ModelFitError as exc:
                logger.warning("Regression fit failed, using seasonal-naive forecast: %s", exc)
                return self._seasonal_naive(samples, targets, order_value, fit_failed=True)
        return self._seasonal_naive(samples, targets, order_value)
