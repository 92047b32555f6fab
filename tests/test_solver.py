"""Tests for the weighted ridge regression solver."""

import numpy as np
import pytest

from revenue_forecast.exceptions import ModelFitError
from revenue_forecast.features import FeatureBuilder, WeightedObservation
from revenue_forecast.solver import WeightedRegressionSolver, solve_linear_system


def _observation(features, log_revenue, weight=1.0):
    return WeightedObservation(
        features=np.asarray(features, dtype=float),
        log_revenue=log_revenue,
        weight=weight,
        revenue=float(np.expm1(log_revenue)),
    )


# ===================================================================
# solve_linear_system
# ===================================================================

class TestSolveLinearSystem:
    def test_matches_numpy_on_well_conditioned_system(self):
        rng = np.random.default_rng(7)
        m = rng.normal(size=(14, 14))
        a = m @ m.T + 14 * np.eye(14)
        b = rng.normal(size=14)
        np.testing.assert_allclose(solve_linear_system(a, b), np.linalg.solve(a, b), rtol=1e-9, atol=1e-10)

    def test_requires_row_exchange(self):
        a = np.array([[0.0, 2.0], [3.0, 1.0]])
        b = np.array([4.0, 5.0])
        np.testing.assert_allclose(solve_linear_system(a, b), [1.0, 2.0])

    def test_inputs_not_modified(self):
        a = np.array([[0.0, 2.0], [3.0, 1.0]])
        b = np.array([4.0, 5.0])
        solve_linear_system(a, b)
        assert a[0, 0] == 0.0
        assert b[0] == 4.0

    def test_singular_matrix_raises(self):
        a = np.array([[1.0, 2.0], [2.0, 4.0]])
        with pytest.raises(ModelFitError, match="pivot"):
            solve_linear_system(a, np.array([1.0, 2.0]))

    def test_shape_mismatch(self):
        with pytest.raises(ValueError):
            solve_linear_system(np.eye(3), np.ones(2))


# ===================================================================
# WeightedRegressionSolver
# ===================================================================

class TestWeightedRegressionSolver:
    def test_assemble_weighted_sums_and_ridge(self):
        solver = WeightedRegressionSolver(epsilon=0.5)
        observations = [_observation([1.0, 2.0], 3.0, weight=2.0), _observation([1.0, -1.0], 1.0)]
        normal, rhs = solver.assemble(observations, 2)
        np.testing.assert_allclose(normal, [[3.0 + 0.5, 3.0], [3.0, 9.0 + 0.5]])
        np.testing.assert_allclose(rhs, [7.0, 11.0])
        np.testing.assert_allclose(normal, normal.T)

    def test_recovers_exact_linear_relationship(self):
        builder = FeatureBuilder(harmonics=1, season_length=12)
        true = np.array([2.0, 0.05, 0.3, -0.2])
        observations = [_observation(builder.build(t), float(builder.build(t) @ true)) for t in range(24)]
        coefficients = WeightedRegressionSolver(epsilon=1e-10).fit(observations, 4)
        np.testing.assert_allclose(coefficients, true, atol=1e-6)

    def test_coefficients_are_read_only(self):
        builder = FeatureBuilder()
        observations = [_observation(builder.build(t), 5.0) for t in range(20)]
        coefficients = WeightedRegressionSolver().fit(observations, 14)
        with pytest.raises(ValueError):
            coefficients[0] = 1.0

    def test_identical_features_stay_finite_with_ridge(self):
        builder = FeatureBuilder()
        observations = [_observation(builder.build(5), 9.0) for _ in range(20)]
        coefficients = WeightedRegressionSolver(epsilon=1e-6).fit(observations, 14)
        assert coefficients.shape == (14,)
        assert np.all(np.isfinite(coefficients))
        # the single observed point is still reproduced
        assert float(builder.build(5) @ coefficients) == pytest.approx(9.0, rel=1e-3)

    def test_identical_features_without_ridge_fail(self):
        builder = FeatureBuilder()
        observations = [_observation(builder.build(0), 9.0) for _ in range(20)]
        with pytest.raises(ModelFitError):
            WeightedRegressionSolver(epsilon=0.0).fit(observations, 14)

    def test_no_observations(self):
        with pytest.raises(ModelFitError):
            WeightedRegressionSolver().fit([], 14)

    def test_wrong_feature_length(self):
        with pytest.raises(ValueError):
            WeightedRegressionSolver().assemble([_observation([1.0, 2.0], 1.0)], 14)
