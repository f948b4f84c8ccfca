"""Shared pytest fixtures for unit tests."""

import numpy as np
import pytest


@pytest.fixture
def rng():
    """Seeded random number generator."""
    return np.random.default_rng(42)


@pytest.fixture
def ball_state():
    """Ball launched from the origin at 50 m/s, 45 degrees."""
    v = 50.0 * np.cos(np.deg2rad(45.0))
    return np.array([0.0, 0.0, v, v])


@pytest.fixture
def two_balls():
    """Initial states of the two-ball particle demo."""
    return np.array([
        [0.0, 0.0, 50.0, 45.0],
        [0.0, 50.0, 50.0, 45.0],
    ])


@pytest.fixture
def kf_system(ball_state):
    """Kalman filter configuration for a single ball (dt, R, Q, P0, x0)."""
    dt = 0.1
    R = 7.0 * np.eye(2)
    Q = np.eye(4)
    P0 = np.eye(4)
    return dt, R, Q, P0, ball_state


def check_psd(matrix, tol=1e-10):
    """Check if matrix is positive semi-definite."""
    return np.all(np.linalg.eigvalsh(matrix) >= -tol)
