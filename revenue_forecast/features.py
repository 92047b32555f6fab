"""Fourier feature vectors and recency weights for the revenue regression.

Each month is described by an intercept, a linear trend term and
``harmonics`` sine/cosine pairs at integer multiples of the seasonal
frequency.  Observations are weighted so that recent months dominate the fit
while old months keep at least ``min_weight`` of influence.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import List, Sequence

import numpy as np

from .config import ForecastConfig
from .data import HistoricalSample
from .exceptions import InvalidConfigError


def feature_dimension(harmonics: int) -> int:
    """Length of a feature vector: intercept, trend and one pair per harmonic."""
    return 2 + 2 * harmonics


@dataclass(frozen=True)
class WeightedObservation:
    """One historical month prepared for the weighted least squares fit."""

    features: np.ndarray
    log_revenue: float
    weight: float
    revenue: float


class FeatureBuilder:
    """Map a month index to its Fourier feature vector.

    The layout is ``[1, t, sin(2*pi*1*t/L), cos(2*pi*1*t/L), ...,
    sin(2*pi*K*t/L), cos(2*pi*K*t/L)]`` for ``K`` harmonics and season
    length ``L``.
    """

    def __init__(self, harmonics: int = 6, season_length: int = 12) -> None:
        if harmonics < 1:
            raise InvalidConfigError(f"harmonics must be >= 1, got {harmonics}")
        if season_length < 1:
            raise InvalidConfigError(f"season_length must be >= 1, got {season_length}")
        self.harmonics = harmonics
        self.season_length = season_length

    @classmethod
    def from_config(cls, config: ForecastConfig) -> "FeatureBuilder":
        return cls(harmonics=config.harmonics, season_length=config.season_length)

    @property
    def dimension(self) -> int:
        return feature_dimension(self.harmonics)

    def build(self, month_index: int) -> np.ndarray:
        """Return the feature vector for ``month_index`` (may be negative)."""
        vector = np.empty(self.dimension, dtype=float)
        vector[0] = 1.0
        vector[1] = float(month_index)
        for k in range(1, self.harmonics + 1):
            angle = 2.0 * math.pi * k * month_index / self.season_length
            vector[2 * k] = math.sin(angle)
            vector[2 * k + 1] = math.cos(angle)
        return vector

    def build_matrix(self, month_indices: Sequence[int]) -> np.ndarray:
        """Stack feature vectors row by row."""
        if len(month_indices) == 0:
            return np.empty((0, self.dimension), dtype=float)
        return np.vstack([self.build(t) for t in month_indices])


class RecencyWeighter:
    """Decay-based importance of an observation given its age.

    An observation ``months_ago`` months before the latest one gets weight
    ``max(min_weight, recency_decay ** (months_ago / period_months))``, so
    with the defaults the weight is multiplied by 0.55 for every 12 months
    of age.
    The latest observation always has weight 1.0.
    """

    def __init__(self, recency_decay: float = 0.55, min_weight: float = 0.3, period_months: int = 12) -> None:
        if not 0.0 < recency_decay <= 1.0:
            raise InvalidConfigError(f"recency_decay must be in (0, 1], got {recency_decay}")
        if not 0.0 <= min_weight <= 1.0:
            raise InvalidConfigError(f"min_weight must be in [0, 1], got {min_weight}")
        if period_months < 1:
            raise InvalidConfigError(f"period_months must be >= 1, got {period_months}")
        self.recency_decay = recency_decay
        self.min_weight = min_weight
        self.period_months = period_months

    @classmethod
    def from_config(cls, config: ForecastConfig) -> "RecencyWeighter":
        return cls(
            recency_decay=config.recency_decay,
            min_weight=config.min_weight,
            period_months=config.decay_period_months,
        )

    def weight_for_age(self, months_ago: int) -> float:
        if months_ago <= 0:
            return 1.0
        decay = self.recency_decay ** (months_ago / self.period_months)
        return max(self.min_weight, decay)

    def weight(self, n: int, position: int) -> float:
        """Weight of the sample at zero-based ``position`` (oldest first) out of ``n``."""
        if not 0 <= position < n:
            raise IndexError(f"position {position} out of range for {n} samples")
        return self.weight_for_age(n - 1 - position)

    def weights(self, n: int) -> np.ndarray:
        return np.array([self.weight(n, i) for i in range(n)], dtype=float)


def build_observations(
    samples: Sequence[HistoricalSample],
    builder: FeatureBuilder,
    weighter: RecencyWeighter,
) -> List[WeightedObservation]:
    """Combine features, log revenue and recency weight for every sample."""
    n = len(samples)
    observations = []
    for position, sample in enumerate(samples):
        observations.append(
            WeightedObservation(
                features=builder.build(sample.month_index),
                log_revenue=math.log1p(sample.revenue),
                weight=weighter.weight(n, position),
                revenue=sample.revenue,
            )
        )
    return observations
