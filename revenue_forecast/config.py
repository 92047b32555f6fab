"""Model configuration and forecast horizon presets.

All tunables of the regression and of the fallback live on
:class:`ForecastConfig`.  Instances are immutable and validated on
construction, so an invalid combination never reaches the solver.
"""

from __future__ import annotations

import math
import numbers
from dataclasses import dataclass, fields
from typing import Any, Dict, Mapping, Optional, Union

import numpy as np

from .exceptions import InvalidConfigError

# Named ranges offered by the analytics dashboard
RANGE_PRESETS: Dict[str, int] = {
    "nextMonth": 1,
    "nextQuarter": 3,
    "nextYear": 12,
}

# Option names used by the dashboard layer
_CAMEL_CASE_OPTIONS = {
    "harmonics": "harmonics",
    "seasonLength": "season_length",
    "recencyDecay": "recency_decay",
    "decayPeriodMonths": "decay_period_months",
    "minWeight": "min_weight",
    "epsilon": "epsilon",
    "minMonthsForRegression": "min_months_for_regression",
    "inclusiveThreshold": "inclusive_threshold",
    "pivotTolerance": "pivot_tolerance",
    "horizonDecay": "horizon_decay",
    "naiveConfidence": "naive_confidence",
}


def _as_int(name: str, value: Any) -> int:
    if isinstance(value, (bool, np.bool_)) or not isinstance(value, numbers.Integral):
        raise InvalidConfigError(f"{name} must be an integer, got {value!r}")
    return int(value)


def _as_float(name: str, value: Any) -> float:
    if isinstance(value, (bool, np.bool_)) or not isinstance(value, numbers.Real):
        raise InvalidConfigError(f"{name} must be a number, got {value!r}")
    return float(value)


@dataclass(frozen=True)
class ForecastConfig:
    """Options controlling the weighted Fourier regression.

    Parameters
    ----------
    harmonics : int, default 6
        Number of sine/cosine pairs.  More harmonics capture finer seasonal
        structure but risk overfitting.
    season_length : int, default 12
        Months per seasonal cycle.
    decay_period_months : int, default 12
        Age in months over which ``recency_decay`` is applied once.  Independent
        of ``season_length``.
    recency_decay : float, default 0.55
        Weight multiplier applied per ``decay_period_months`` months of age.  Lower
        values prefer recent data more strongly.
    min_weight : float, default 0.3
        Floor on an observation's weight so old data is never excluded.
    epsilon : float, default 1e-6
        Ridge term added to the diagonal of the normal matrix.
    min_months_for_regression : int, default 18
        Histories shorter than this use the seasonal-naive forecast.
    inclusive_threshold : bool, default True
        If True a history of exactly ``min_months_for_regression`` months is
        fitted with the regression; if False it still uses the naive path.
    pivot_tolerance : float, default 1e-12
        Smallest absolute pivot the solver accepts.
    horizon_decay : float, default 0.98
        Per-month multiplier applied to the training confidence for each step
        beyond the last observed month.
    naive_confidence : float, default 0.5
        Fixed confidence reported for seasonal-naive points.
    min_confidence, max_confidence : float, default 0.45 / 0.92
        Bounds of every reported confidence score.
    """

    harmonics: int = 6
    season_length: int = 12
    decay_period_months: int = 12
    recency_decay: float = 0.55
    min_weight: float = 0.3
    epsilon: float = 1e-6
    min_months_for_regression: int = 18
    inclusive_threshold: bool = True
    pivot_tolerance: float = 1e-12
    horizon_decay: float = 0.98
    naive_confidence: float = 0.5
    min_confidence: float = 0.45
    max_confidence: float = 0.92

    def __post_init__(self) -> None:
        # frozen: normalise numpy scalars and other numeric types in place
        for name in ("harmonics", "season_length", "decay_period_months", "min_months_for_regression"):
            object.__setattr__(self, name, _as_int(name, getattr(self, name)))
        for name in (
            "recency_decay",
            "min_weight",
            "epsilon",
            "pivot_tolerance",
            "horizon_decay",
            "naive_confidence",
            "min_confidence",
            "max_confidence",
        ):
            object.__setattr__(self, name, _as_float(name, getattr(self, name)))
        if not isinstance(self.inclusive_threshold, (bool, np.bool_)):
            raise InvalidConfigError(
                f"inclusive_threshold must be a boolean, got {self.inclusive_threshold!r}"
            )
        object.__setattr__(self, "inclusive_threshold", bool(self.inclusive_threshold))

        if self.harmonics < 1:
            raise InvalidConfigError(f"harmonics must be >= 1, got {self.harmonics}")
        if self.season_length < 1:
            raise InvalidConfigError(f"season_length must be >= 1, got {self.season_length}")
        if self.decay_period_months < 1:
            raise InvalidConfigError(
                f"decay_period_months must be >= 1, got {self.decay_period_months}"
            )
        if not 0.0 < self.recency_decay <= 1.0:
            raise InvalidConfigError(f"recency_decay must be in (0, 1], got {self.recency_decay!r}")
        if not 0.0 <= self.min_weight <= 1.0:
            raise InvalidConfigError(f"min_weight must be in [0, 1], got {self.min_weight!r}")
        if not math.isfinite(self.epsilon) or self.epsilon < 0.0:
            raise InvalidConfigError(f"epsilon must be a finite value >= 0, got {self.epsilon!r}")
        if not math.isfinite(self.pivot_tolerance) or self.pivot_tolerance <= 0.0:
            raise InvalidConfigError(
                f"pivot_tolerance must be a finite value > 0, got {self.pivot_tolerance!r}"
            )
        if self.min_months_for_regression < 1:
            raise InvalidConfigError(
                f"min_months_for_regression must be >= 1, got {self.min_months_for_regression}"
            )
        if not 0.0 < self.horizon_decay <= 1.0:
            raise InvalidConfigError(f"horizon_decay must be in (0, 1], got {self.horizon_decay!r}")
        if not 0.0 <= self.min_confidence <= self.max_confidence <= 1.0:
            raise InvalidConfigError(
                "confidence bounds must satisfy 0 <= min_confidence <= max_confidence <= 1"
            )
        if not self.min_confidence <= self.naive_confidence <= self.max_confidence:
            raise InvalidConfigError(
                f"naive_confidence must lie within [{self.min_confidence}, {self.max_confidence}]"
            )

    def uses_regression(self, distinct_months: int) -> bool:
        """Return True if a history of ``distinct_months`` months is long enough to fit."""
        if self.inclusive_threshold:
            return distinct_months >= self.min_months_for_regression
        return distinct_months > self.min_months_for_regression

    @classmethod
    def from_mapping(cls, options: Optional[Mapping[str, Any]]) -> "ForecastConfig":
        """Build a config from camelCase or snake_case option names.

        Missing options keep their defaults; unknown names raise
        :class:`InvalidConfigError`.
        """
        if not options:
            return cls()
        known = {f.name for f in fields(cls)}
        kwargs: Dict[str, Any] = {}
        for key, value in options.items():
            name = _CAMEL_CASE_OPTIONS.get(key, key)
            if name not in known:
                raise InvalidConfigError(f"Unknown forecast option '{key}'")
            kwargs[name] = value
        return cls(**kwargs)


def resolve_horizon(horizon: Union[int, str]) -> int:
    """Translate a horizon (month count or dashboard range name) into months."""
    if isinstance(horizon, str):
        if horizon not in RANGE_PRESETS:
            raise InvalidConfigError(
                f"Unknown forecast range '{horizon}'; expected one of {sorted(RANGE_PRESETS)}"
            )
        return RANGE_PRESETS[horizon]
    if isinstance(horizon, bool) or not isinstance(horizon, int) or horizon < 1:
        raise InvalidConfigError(f"Forecast horizon must be a positive integer, got {horizon!r}")
    return horizon
