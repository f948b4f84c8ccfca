"""
projectile_tracking: recursive state estimation for ballistic projectiles

This package contains implementations of:
- A projectile simulator producing noisy, lossy observations
- Kalman and particle filter estimators
- An estimation harness and evaluation metrics
"""
from .errors import (
    TrackingError,
    ConfigurationError,
    MeasurementError,
    NumericalError,
    SingularInnovationError,
    DegenerateWeightsError,
)
from .filters import KalmanEstimator, ParticleEstimator
from .ssm import TrajectorySimulator
from .harness import EstimationHarness, StepRecord, records_to_arrays
from .config import KalmanDemoConfig, ParticleDemoConfig

__version__ = '0.1.0'

__all__ = [
    'TrackingError',
    'ConfigurationError',
    'MeasurementError',
    'NumericalError',
    'SingularInnovationError',
    'DegenerateWeightsError',
    'KalmanEstimator',
    'ParticleEstimator',
    'TrajectorySimulator',
    'EstimationHarness',
    'StepRecord',
    'records_to_arrays',
    'KalmanDemoConfig',
    'ParticleDemoConfig',
]
