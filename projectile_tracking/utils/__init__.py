"""
Utility Functions.

This module contains metrics for comparing estimates against ground truth
and for checking covariance health.
"""
from .metrics import (
    compute_mse,
    compute_rmse,
    compute_position_errors,
    compute_symmetry_error,
    compute_min_eigenvalues,
    compute_nis,
    summarize_run,
)

__all__ = [
    'compute_mse',
    'compute_rmse',
    'compute_position_errors',
    'compute_symmetry_error',
    'compute_min_eigenvalues',
    'compute_nis',
    'summarize_run',
]
