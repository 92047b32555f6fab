"""In-sample model quality for the revenue regression.

This module computes the numbers reported next to every regression forecast:
the mean absolute percentage error (MAPE) in revenue terms, the weighted
root mean square of the log-domain residuals, and a confidence score derived
from the MAPE.  A poor fit never raises; a low confidence score is the
signal callers should act on.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Sequence

import numpy as np
from sklearn.metrics import mean_absolute_percentage_error, mean_squared_error

from .config import ForecastConfig
from .exceptions import ModelFitError
from .features import WeightedObservation


@dataclass(frozen=True)
class TrainingMetrics:
    """Fit quality of one regression run."""

    mape: float
    residual_std: float
    confidence: float

    def to_dict(self) -> Dict[str, float]:
        return {
            "mape": self.mape,
            "residualStd": self.residual_std,
            "confidence": self.confidence,
        }


def revenue_from_log(log_values: np.ndarray) -> np.ndarray:
    """Invert ``log(revenue + 1)``, clipping negative revenue to zero."""
    with np.errstate(over="ignore"):
        revenue = np.expm1(np.asarray(log_values, dtype=float))
    if not np.all(np.isfinite(revenue)):
        raise ModelFitError("Predicted revenue overflowed")
    return np.maximum(revenue, 0.0)


def mape(y_true: Sequence[float], y_pred: Sequence[float]) -> float:
    """Mean absolute percentage error (MAPE), in percent.

    Months with zero actual revenue have no defined percentage error and are
    left out.  If no month has positive revenue the error is 0.0.
    """
    y_true = np.asarray(y_true, dtype=float)
    y_pred = np.asarray(y_pred, dtype=float)
    mask = y_true > 0
    if not np.any(mask):
        return 0.0
    return float(mean_absolute_percentage_error(y_true[mask], y_pred[mask]) * 100.0)


def weighted_residual_std(
    log_actual: Sequence[float],
    log_predicted: Sequence[float],
    weights: Sequence[float],
) -> float:
    """Weighted RMS of log-domain residuals: ``sqrt(sum(w * r**2) / sum(w))``."""
    return float(
        np.sqrt(
            mean_squared_error(
                np.asarray(log_actual, dtype=float),
                np.asarray(log_predicted, dtype=float),
                sample_weight=np.asarray(weights, dtype=float),
            )
        )
    )


def confidence_from_mape(mape_value: float, lower: float = 0.45, upper: float = 0.92) -> float:
    """Map a MAPE percentage to a confidence score in ``[lower, upper]``.

    ``confidence = clamp(1 - min(mape / 120, 0.6), lower, upper)``
    """
    raw = 1.0 - min(mape_value / 120.0, 0.6)
    return float(min(max(raw, lower), upper))


class ModelEvaluator:
    """Score fitted coefficients against the observations they were fitted on."""

    def __init__(self, config: ForecastConfig) -> None:
        self.config = config

    def evaluate(
        self,
        coefficients: np.ndarray,
        observations: Sequence[WeightedObservation],
    ) -> TrainingMetrics:
        """Compute MAPE, residual spread and confidence.

        Parameters
        ----------
        coefficients : np.ndarray
            Output of :meth:`WeightedRegressionSolver.fit`.
        observations : sequence of WeightedObservation
            The observations used for the fit, including raw revenue.

        Returns
        -------
        TrainingMetrics
        """
        if not observations:
            raise ModelFitError("Cannot evaluate a model without observations")
        features = np.vstack([obs.features for obs in observations])
        log_actual = np.array([obs.log_revenue for obs in observations], dtype=float)
        weights = np.array([obs.weight for obs in observations], dtype=float)
        actual = np.array([obs.revenue for obs in observations], dtype=float)

        log_predicted = features @ coefficients
        predicted = revenue_from_log(log_predicted)

        error = mape(actual, predicted)
        spread = weighted_residual_std(log_actual, log_predicted, weights)
        confidence = confidence_from_mape(
            error, self.config.min_confidence, self.config.max_confidence
        )
        return TrainingMetrics(mape=error, residual_std=spread, confidence=confidence)
