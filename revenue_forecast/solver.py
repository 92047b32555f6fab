"""Ridge-regularised weighted least squares for the Fourier regression.

The normal equations are accumulated directly as weighted sums into a fixed
``d x d`` array (``d = 2 + 2 * harmonics``) and solved with Gaussian
elimination using partial pivoting.  Cost of the solve does not depend on
the history length; only the accumulation step is linear in the number of
observations.
"""

from __future__ import annotations

import logging
from typing import Sequence, Tuple

import numpy as np

from .config import ForecastConfig
from .exceptions import ModelFitError
from .features import WeightedObservation

logger = logging.getLogger(__name__)


def solve_linear_system(
    matrix: np.ndarray,
    rhs: np.ndarray,
    pivot_tolerance: float = 1e-12,
) -> np.ndarray:
    """Solve ``matrix @ x = rhs`` by Gaussian elimination with partial pivoting.

    At every elimination step the remaining row with the largest absolute
    entry in the pivot column is swapped into place.  The inputs are not
    modified.

    Raises
    ------
    ModelFitError
        If the selected pivot's magnitude is below ``pivot_tolerance`` or the
        solution is not finite.
    """
    a = np.array(matrix, dtype=float)
    b = np.array(rhs, dtype=float)
    n = a.shape[0]
    if a.shape != (n, n) or b.shape != (n,):
        raise ValueError(f"Incompatible system shapes {a.shape} and {b.shape}")

    for col in range(n):
        pivot_row = col + int(np.argmax(np.abs(a[col:, col])))
        pivot = a[pivot_row, col]
        if not abs(pivot) >= pivot_tolerance:
            raise ModelFitError(
                f"Singular normal matrix: pivot {pivot:.3e} in column {col} is below {pivot_tolerance:.1e}"
            )
        if pivot_row != col:
            a[[col, pivot_row]] = a[[pivot_row, col]]
            b[[col, pivot_row]] = b[[pivot_row, col]]
        factors = a[col + 1:, col] / a[col, col]
        a[col + 1:, col:] -= np.outer(factors, a[col, col:])
        b[col + 1:] -= factors * b[col]

    x = np.zeros(n, dtype=float)
    for row in range(n - 1, -1, -1):
        x[row] = (b[row] - a[row, row + 1:] @ x[row + 1:]) / a[row, row]

    if not np.all(np.isfinite(x)):
        raise ModelFitError("Normal equations produced non-finite coefficients")
    return x


class WeightedRegressionSolver:
    """Fit coefficients of the log-revenue regression.

    Parameters
    ----------
    epsilon : float, default 1e-6
        Ridge term added to each diagonal entry of the normal matrix.
    pivot_tolerance : float, default 1e-12
        Smallest pivot magnitude accepted during elimination.
    """

    def __init__(self, epsilon: float = 1e-6, pivot_tolerance: float = 1e-12) -> None:
        self.epsilon = epsilon
        self.pivot_tolerance = pivot_tolerance

    @classmethod
    def from_config(cls, config: ForecastConfig) -> "WeightedRegressionSolver":
        return cls(epsilon=config.epsilon, pivot_tolerance=config.pivot_tolerance)

    def assemble(
        self,
        observations: Sequence[WeightedObservation],
        dimension: int,
    ) -> Tuple[np.ndarray, np.ndarray]:
        """Build the normal matrix ``A`` and right-hand side ``b``.

        ``A[i][j] = sum(w * f[i] * f[j]) + epsilon * (i == j)`` and
        ``b[i] = sum(w * f[i] * log_revenue)``.
        """
        normal = np.zeros((dimension, dimension), dtype=float)
        rhs = np.zeros(dimension, dtype=float)
        for obs in observations:
            if obs.features.shape != (dimension,):
                raise ValueError(
                    f"Observation has {obs.features.shape[0]} features, expected {dimension}"
                )
            weighted = obs.weight * obs.features
            normal += np.outer(weighted, obs.features)
            rhs += weighted * obs.log_revenue
        normal[np.diag_indices(dimension)] += self.epsilon
        return normal, rhs

    def fit(self, observations: Sequence[WeightedObservation], dimension: int) -> np.ndarray:
        """Return the coefficient vector for ``observations``.

        The returned array is read-only; coefficients are never modified
        after fitting.
        """
        if not observations:
            raise ModelFitError("Cannot fit a regression without observations")
        normal, rhs = self.assemble(observations, dimension)
        coefficients = solve_linear_system(normal, rhs, self.pivot_tolerance)
        coefficients.setflags(write=False)
        logger.debug("Fitted %d coefficients on %d observations", dimension, len(observations))
        return coefficients
