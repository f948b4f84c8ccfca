"""Unit tests for the Kalman estimator."""

import numpy as np
import pytest

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', '..', '..'))

from projectile_tracking.errors import (ConfigurationError, MeasurementError,
                                        SingularInnovationError)
from projectile_tracking.filters.kf import (KalmanEstimator, _solve_lu, _solve_cholesky,
                                            _solve_inv)
from tests.unit.conftest import check_psd

G = 9.81


class TestSolvers:
    """Tests for linear system solvers."""

    @pytest.mark.parametrize("solver_func", [_solve_lu, _solve_cholesky, _solve_inv])
    def test_solver_correctness(self, solver_func):
        """Solvers should produce correct solution S @ X = B."""
        S = np.array([[4.0, 1.0], [1.0, 3.0]])
        B = np.array([[1.0, 0.5, 0.0, 2.0], [2.0, 0.0, 1.0, 0.0]])

        X = solver_func(S, B)

        np.testing.assert_allclose(S @ X, B, rtol=1e-10, atol=1e-12)

    def test_solver_selection(self, rng, kf_system):
        """Different solvers should produce the same estimates."""
        dt, R, Q, P0, x0 = kf_system
        zs = x0[:2] + rng.standard_normal((30, 2))

        results = {}
        for solver in ('lu', 'cholesky', 'inv'):
            kf = KalmanEstimator(dt, R, Q, P0, x0, control=(0.0, -G), solver=solver)
            for z in zs:
                kf.predict()
                kf.update(z)
            results[solver] = (kf.state, kf.covariance)

        np.testing.assert_allclose(results['lu'][0], results['cholesky'][0], rtol=1e-8)
        np.testing.assert_allclose(results['lu'][0], results['inv'][0], rtol=1e-8)
        np.testing.assert_allclose(results['lu'][1], results['cholesky'][1], rtol=1e-8)


class TestConstruction:
    """Tests for constructor validation."""

    def test_model_matrices(self, kf_system):
        """F, B and H follow the constant-velocity model."""
        dt, R, Q, P0, x0 = kf_system
        kf = KalmanEstimator(dt, R, Q, P0, x0)

        np.testing.assert_allclose(kf.F[:2, 2:], dt * np.eye(2))
        np.testing.assert_allclose(kf.F[2:, 2:], np.eye(2))
        np.testing.assert_allclose(kf.B[:2], 0.5 * dt**2 * np.eye(2))
        np.testing.assert_allclose(kf.B[2:], dt * np.eye(2))
        np.testing.assert_allclose(kf.H, np.hstack([np.eye(2), np.zeros((2, 2))]))

    @pytest.mark.parametrize("field, value", [
        ('R', np.eye(3)),
        ('Q', np.eye(2)),
        ('P0', np.eye(4)[:3]),
        ('x0', np.zeros(3)),
    ])
    def test_dimension_mismatch(self, kf_system, field, value):
        """Mismatched matrix shapes are fatal at construction."""
        dt, R, Q, P0, x0 = kf_system
        kwargs = {'dt': dt, 'R': R, 'Q': Q, 'P0': P0, 'x0': x0}
        kwargs[field] = value

        with pytest.raises(ConfigurationError):
            KalmanEstimator(**kwargs)

    def test_rejects_negative_noise(self, kf_system):
        dt, R, Q, P0, x0 = kf_system
        with pytest.raises(ConfigurationError):
            KalmanEstimator(dt, -R, Q, P0, x0)

    def test_rejects_unknown_solver(self, kf_system):
        dt, R, Q, P0, x0 = kf_system
        with pytest.raises(ConfigurationError):
            KalmanEstimator(dt, R, Q, P0, x0, solver='qr')

    def test_inputs_are_copied(self, kf_system):
        """Estimator must not share mutable matrices with the caller."""
        dt, R, Q, P0, x0 = kf_system
        kf = KalmanEstimator(dt, R, Q, P0, x0)

        P0[0, 0] = 1e6
        x0[0] = 1e6
        Q[1, 1] = 1e6

        assert kf.covariance[0, 0] == 1.0
        assert kf.state[0] == 0.0
        assert kf.Q[1, 1] == 1.0


class TestPredict:
    """Tests for the prediction step."""

    def test_known_step(self, kf_system):
        """One predict with gravity control matches the kinematic step."""
        dt, R, Q, P0, x0 = kf_system
        kf = KalmanEstimator(dt, R, Q, P0, x0, control=(0.0, -G))

        x = kf.predict()

        expected = np.array([
            x0[0] + x0[2] * dt,
            x0[1] + x0[3] * dt - 0.5 * G * dt**2,
            x0[2],
            x0[3] - G * dt,
        ])
        np.testing.assert_allclose(x, expected, rtol=1e-12)

    def test_explicit_control_overrides_default(self, kf_system):
        dt, R, Q, P0, x0 = kf_system
        kf = KalmanEstimator(dt, R, Q, P0, x0, control=(0.0, -G))

        x = kf.predict(u=(0.0, 0.0))

        np.testing.assert_allclose(x[3], x0[3])

    def test_pure_prediction_growth(self, kf_system):
        """Without updates, diagonal of P never decreases."""
        dt, R, Q, P0, x0 = kf_system
        kf = KalmanEstimator(dt, R, Q, P0, x0, control=(0.0, -G))

        prev = np.diag(kf.covariance)
        for _ in range(50):
            kf.predict()
            diag = np.diag(kf.covariance)
            assert np.all(diag >= prev)
            prev = diag


class TestUpdate:
    """Tests for the correction step."""

    def test_perfect_measurement_keeps_state(self, kf_system):
        """A measurement equal to H x leaves the state unchanged."""
        dt, R, Q, P0, x0 = kf_system
        kf = KalmanEstimator(dt, R, Q, P0, x0, control=(0.0, -G))
        x_pred = kf.predict()

        x = kf.update(x_pred[:2])

        np.testing.assert_allclose(x, x_pred, atol=1e-12)

    def test_update_shrinks_position_variance(self, kf_system):
        dt, R, Q, P0, x0 = kf_system
        kf = KalmanEstimator(dt, R, Q, P0, x0)
        kf.predict()
        before = np.diag(kf.covariance)

        kf.update(x0[:2] + 1.0)

        assert np.all(np.diag(kf.covariance)[:2] < before[:2])

    def test_update_pulls_toward_measurement(self, kf_system):
        dt, R, Q, P0, x0 = kf_system
        kf = KalmanEstimator(dt, R, Q, P0, x0)
        x_pred = kf.predict()
        z = x_pred[:2] + np.array([10.0, -10.0])

        x = kf.update(z)

        assert x_pred[0] < x[0] < z[0]
        assert z[1] < x[1] < x_pred[1]

    def test_accepts_single_object_observation(self, kf_system):
        """A [1, 2] observation from a one-ball simulator is accepted."""
        dt, R, Q, P0, x0 = kf_system
        kf = KalmanEstimator(dt, R, Q, P0, x0)
        kf.predict()

        kf.update(np.array([[1.0, 2.0]]))

        assert kf.last_innovation.shape == (2,)

    @pytest.mark.parametrize("z", [None, np.zeros(3), [[1.0, 2.0], [3.0, 4.0]], [np.nan, 0.0]])
    def test_malformed_measurement(self, kf_system, z):
        dt, R, Q, P0, x0 = kf_system
        kf = KalmanEstimator(dt, R, Q, P0, x0)
        kf.predict()

        with pytest.raises(MeasurementError):
            kf.update(z)

    def test_singular_innovation(self, kf_system):
        """Degenerate R and P give a singular S, which must be reported."""
        dt, _, _, _, x0 = kf_system
        kf = KalmanEstimator(dt, np.zeros((2, 2)), np.zeros((4, 4)), np.zeros((4, 4)), x0)
        kf.predict()
        x_before, P_before = kf.state, kf.covariance

        with pytest.raises(SingularInnovationError):
            kf.update([1.0, 1.0])

        np.testing.assert_array_equal(kf.state, x_before)
        np.testing.assert_array_equal(kf.covariance, P_before)

    def test_zero_measurement_is_a_real_reading(self, kf_system):
        """(0, 0) is a valid measurement, distinct from a dropout."""
        dt, R, Q, P0, x0 = kf_system
        kf = KalmanEstimator(dt, R, Q, P0, x0)
        x_pred = kf.predict()

        x = kf.update([0.0, 0.0])

        assert not np.allclose(x, x_pred)


class TestCovarianceHealth:
    """P stays symmetric PSD through mixed predict/update sequences."""

    @pytest.mark.parametrize("joseph", [False, True])
    def test_symmetric_psd(self, rng, kf_system, joseph):
        dt, R, Q, P0, x0 = kf_system
        kf = KalmanEstimator(dt, R, Q, P0, x0, control=(0.0, -G), joseph=joseph)

        for t in range(200):
            kf.predict()
            if rng.random() > 0.3:
                kf.update(kf.state[:2] + 3.0 * rng.standard_normal(2))
            P = kf.covariance
            np.testing.assert_allclose(P, P.T, atol=1e-12)
            assert check_psd(P)

    def test_joseph_vs_standard_update(self, rng, kf_system):
        """Both update forms agree on the means."""
        dt, R, Q, P0, x0 = kf_system
        kf_std = KalmanEstimator(dt, R, Q, P0, x0, control=(0.0, -G))
        kf_jos = KalmanEstimator(dt, R, Q, P0, x0, control=(0.0, -G), joseph=True)

        for z in x0[:2] + rng.standard_normal((50, 2)):
            for kf in (kf_std, kf_jos):
                kf.predict()
                kf.update(z)

        np.testing.assert_allclose(kf_std.state, kf_jos.state, rtol=1e-6)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
