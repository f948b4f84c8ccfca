"""Filtering algorithm implementations."""
from .kf import KalmanEstimator
from .pf import ParticleEstimator, multinomial_resample, systematic_resample
from .common import (constant_velocity_matrices, joseph_update, standard_update,
                     symmetrize)

__all__ = [
    # Estimators
    'KalmanEstimator',
    'ParticleEstimator',
    # Resampling
    'multinomial_resample',
    'systematic_resample',
    # Utilities
    'constant_velocity_matrices',
    'joseph_update',
    'standard_update',
    'symmetrize',
]
