"""Common utilities for the Kalman estimator."""
import numpy as np

from ..errors import ConfigurationError


def constant_velocity_matrices(dt):
    """
    Build the constant-velocity model matrices for state [x, y, vx, vy].

    Parameters
    ----------
    dt : float
        Time step

    Returns
    -------
    F : ndarray [4, 4]
        State transition (position advances by velocity * dt)
    B : ndarray [4, 2]
        Control matrix mapping a 2D acceleration to position/velocity increments
    H : ndarray [2, 4]
        Observation matrix (position only)
    """
    F = np.array([
        [1.0, 0.0, dt, 0.0],
        [0.0, 1.0, 0.0, dt],
        [0.0, 0.0, 1.0, 0.0],
        [0.0, 0.0, 0.0, 1.0],
    ])
    B = np.array([
        [0.5 * dt**2, 0.0],
        [0.0, 0.5 * dt**2],
        [dt, 0.0],
        [0.0, dt],
    ])
    H = np.array([
        [1.0, 0.0, 0.0, 0.0],
        [0.0, 1.0, 0.0, 0.0],
    ])
    return F, B, H


def as_matrix(value, shape, name):
    """Copy `value` into a float array of exactly `shape`, or raise ConfigurationError."""
    arr = np.array(value, dtype=float, copy=True)
    if arr.shape != shape:
        raise ConfigurationError(f"{name} must have shape {shape}, got {arr.shape}")
    if not np.all(np.isfinite(arr)):
        raise ConfigurationError(f"{name} contains non-finite entries")
    return arr


def check_covariance(M, name, tol=1e-10):
    """Raise ConfigurationError unless M is symmetric positive semi-definite."""
    if not np.allclose(M, M.T, atol=tol):
        raise ConfigurationError(f"{name} must be symmetric")
    if np.linalg.eigvalsh(M).min() < -tol:
        raise ConfigurationError(f"{name} must be positive semi-definite")


def joseph_update(P_pred, K, H, R):
    """
    Compute Joseph-stabilized covariance update.

    Parameters
    ----------
    P_pred : ndarray [n_x, n_x]
        Predicted covariance
    K : ndarray [n_x, n_y]
        Kalman gain
    H : ndarray [n_y, n_x]
        Observation matrix
    R : ndarray [n_y, n_y]
        Observation noise covariance

    Returns
    -------
    ndarray [n_x, n_x]
        Updated covariance
    """
    n_x = P_pred.shape[0]
    I = np.eye(n_x)
    IKH = I - K @ H
    return IKH @ P_pred @ IKH.T + K @ R @ K.T


def standard_update(P_pred, K, H):
    """Compute standard covariance update: P = (I - KH) P_pred."""
    n_x = P_pred.shape[0]
    I = np.eye(n_x)
    return (I - K @ H) @ P_pred


def symmetrize(P):
    """Return 0.5 * (P + P'), removing round-off asymmetry."""
    return 0.5 * (P + P.T)
