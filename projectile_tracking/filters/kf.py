"""Kalman Filter (KF) for a projectile under known acceleration."""
import logging

import numpy as np
from scipy import linalg as sla

from ..errors import ConfigurationError, MeasurementError, SingularInnovationError
from .common import (as_matrix, check_covariance, constant_velocity_matrices,
                     joseph_update, standard_update, symmetrize)

logger = logging.getLogger(__name__)

# Condition numbers above this are treated as singular
MAX_INNOVATION_COND = 1.0 / np.finfo(float).eps


def _solve_lu(S, B):
    """Solve S @ X = B using LU factorization (np.linalg.solve)."""
    return np.linalg.solve(S, B)


def _solve_cholesky(S, B):
    """Solve S @ X = B using Cholesky factorization (assumes S is SPD)."""
    c, lower = sla.cho_factor(S, lower=True)
    return sla.cho_solve((c, lower), B)


def _solve_inv(S, B):
    """Solve S @ X = B using explicit matrix inversion (least stable)."""
    return np.linalg.inv(S) @ B


SOLVERS = {
    'lu': _solve_lu,
    'cholesky': _solve_cholesky,
    'inv': _solve_inv,
}


class KalmanEstimator:
    """
    Linear Kalman filter over state [x, y, vx, vy].

    Constant-velocity motion with a known 2D acceleration control input:
        x_{k+1} = F x_k + B u_k
        z_k     = H x_k

    Parameters
    ----------
    dt : float
        Time step
    R : ndarray [2, 2]
        Measurement noise covariance
    Q : ndarray [4, 4]
        Process noise covariance
    P0 : ndarray [4, 4]
        Initial state covariance
    x0 : array_like [4]
        Initial state [x, y, vx, vy]
    control : array_like [2], optional
        Acceleration applied by ``predict()`` when no ``u`` is passed,
        e.g. (0, -g) for a ballistic projectile. Defaults to zero.
    joseph : bool
        Use Joseph stabilized covariance update (default: False)
    solver : str
        Solver for Kalman gain: 'lu', 'cholesky', or 'inv' (default: 'lu')

    Example
    -------
    >>> kf = KalmanEstimator(0.1, 7 * np.eye(2), np.eye(4), np.eye(4),
    ...                      [0, 0, 35.4, 35.4], control=(0.0, -9.81))
    >>> x_pred = kf.predict()
    >>> x_post = kf.update([3.5, 3.4])
    """

    def __init__(self, dt, R, Q, P0, x0, control=None, joseph=False, solver='lu'):
        if dt <= 0:
            raise ConfigurationError(f"dt must be positive, got {dt}")
        if solver not in SOLVERS:
            raise ConfigurationError(
                f"Unknown solver '{solver}', expected one of {sorted(SOLVERS)}")

        self.dt = float(dt)
        self.F, self.B, self.H = constant_velocity_matrices(self.dt)
        n_x, n_y = self.F.shape[0], self.H.shape[0]

        self._R = as_matrix(R, (n_y, n_y), 'R')
        self._Q = as_matrix(Q, (n_x, n_x), 'Q')
        P0 = as_matrix(P0, (n_x, n_x), 'P0')
        for name, M in (('R', self._R), ('Q', self._Q), ('P0', P0)):
            check_covariance(M, name)

        x0 = np.array(x0, dtype=float).reshape(-1)
        if x0.shape != (n_x,):
            raise ConfigurationError(f"x0 must have {n_x} elements, got {x0.size}")

        if control is None:
            control = np.zeros(self.B.shape[1])
        self._control = self._as_control(control)

        self.joseph = joseph
        self.solver = solver
        self._solve = SOLVERS[solver]

        self._x = x0
        self._P = P0
        self.last_innovation = None
        self.last_innovation_cov = None

    @property
    def R(self):
        return self._R.copy()

    @property
    def Q(self):
        return self._Q.copy()

    @property
    def state(self):
        """Copy of the current state vector [4]."""
        return self._x.copy()

    @property
    def covariance(self):
        """Copy of the current covariance [4, 4]."""
        return self._P.copy()

    def _as_control(self, u):
        u = np.array(u, dtype=float).reshape(-1)
        if u.shape != (self.B.shape[1],):
            raise ConfigurationError(
                f"control input must have {self.B.shape[1]} elements, got {u.size}")
        return u

    def predict(self, u=None):
        """
        Propagate the belief one step: x = F x + B u, P = F P F' + Q.

        Safe to call on every step, including steps without a measurement.

        Parameters
        ----------
        u : array_like [2], optional
            Acceleration control; defaults to the constructor's ``control``

        Returns
        -------
        ndarray [4]
            Predicted state
        """
        u = self._control if u is None else self._as_control(u)
        self._x = self.F @ self._x + self.B @ u
        self._P = self.F @ self._P @ self.F.T + self._Q
        return self._x.copy()

    def update(self, z):
        """
        Correct the belief with a position measurement.

        Parameters
        ----------
        z : array_like [2]
            Measured position (x, y); a [1, 2] single-object observation is
            accepted as well

        Returns
        -------
        ndarray [4]
            Updated state

        Raises
        ------
        MeasurementError
            If ``z`` is None or does not hold exactly two values
        SingularInnovationError
            If S = H P H' + R cannot be inverted; the state is left unchanged
        """
        if z is None:
            raise MeasurementError("update() called without a measurement")
        z = np.array(z, dtype=float).reshape(-1)
        n_y = self.H.shape[0]
        if z.shape != (n_y,):
            raise MeasurementError(f"measurement must have {n_y} elements, got {z.size}")
        if not np.all(np.isfinite(z)):
            raise MeasurementError(f"measurement contains non-finite values: {z}")

        x_pred, P_pred = self._x, self._P

        innov = z - self.H @ x_pred
        S = self.H @ P_pred @ self.H.T + self._R

        cond = np.linalg.cond(S) if np.all(np.isfinite(S)) else np.inf
        if not np.isfinite(cond) or cond > MAX_INNOVATION_COND:
            raise SingularInnovationError(f"innovation covariance is singular (cond={cond:.3e})")

        # K = P_pred @ H.T @ S^{-1}
        try:
            K = self._solve(S.T, self.H @ P_pred.T).T
        except (np.linalg.LinAlgError, sla.LinAlgError) as e:
            raise SingularInnovationError(f"innovation covariance is singular: {e}") from e

        x = x_pred + K @ innov
        if self.joseph:
            P = joseph_update(P_pred, K, self.H, self._R)
        else:
            P = standard_update(P_pred, K, self.H)

        self._x, self._P = x, symmetrize(P)
        self.last_innovation, self.last_innovation_cov = innov, S
        logger.debug("KF update: |innovation|=%.4f", np.linalg.norm(innov))
        return self._x.copy()

    def correct(self, observation):
        """Harness hook: apply ``update`` to a present observation."""
        return self.update(observation)

    def estimate(self):
        """Current state estimate [x, y, vx, vy] (copy)."""
        return self._x.copy()
