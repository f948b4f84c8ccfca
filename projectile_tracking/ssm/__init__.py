"""State space models used to generate ground truth."""
from .projectile import (
    TrajectorySimulator,
    propagate,
    launch_state,
    DEFAULT_GRAVITY,
    DEFAULT_DT,
    DEFAULT_LAUNCH_SPEED,
    DEFAULT_LAUNCH_ANGLE,
)

__all__ = [
    'TrajectorySimulator',
    'propagate',
    'launch_state',
    'DEFAULT_GRAVITY',
    'DEFAULT_DT',
    'DEFAULT_LAUNCH_SPEED',
    'DEFAULT_LAUNCH_ANGLE',
]
