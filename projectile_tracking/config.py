"""
Demo configurations.

Defaults describe the two demos: a single ball tracked by the
Kalman filter with 10% measurement dropout, and two balls tracked jointly
by a 70-particle filter.
"""
from dataclasses import dataclass, field
from typing import Optional, Tuple

import numpy as np

from .errors import ConfigurationError
from .filters import KalmanEstimator, ParticleEstimator
from .ssm import TrajectorySimulator, launch_state


def _check_common(dt, measurement_noise, dropout, n_steps):
    if dt <= 0:
        raise ConfigurationError(f"dt must be positive, got {dt}")
    if measurement_noise < 0:
        raise ConfigurationError(f"measurement_noise must be >= 0, got {measurement_noise}")
    if not 0.0 <= dropout <= 1.0:
        raise ConfigurationError(f"dropout must lie in [0, 1], got {dropout}")
    if n_steps < 0:
        raise ConfigurationError(f"n_steps must be >= 0, got {n_steps}")


@dataclass(frozen=True)
class KalmanDemoConfig:
    """Single projectile tracked by the Kalman filter."""
    dt: float = 0.1
    n_steps: int = 70
    launch_position: Tuple[float, float] = (0.0, 0.0)
    launch_speed: float = 50.0
    launch_angle: float = 45.0
    gravity: float = 9.81
    measurement_noise: float = 7.0
    dropout: float = 0.1
    process_noise: float = 1.0
    initial_uncertainty: float = 1.0
    joseph: bool = False
    solver: str = 'lu'
    seed: Optional[int] = None

    def __post_init__(self):
        self.validate()

    def validate(self):
        _check_common(self.dt, self.measurement_noise, self.dropout, self.n_steps)
        if self.process_noise < 0 or self.initial_uncertainty < 0:
            raise ConfigurationError("process_noise and initial_uncertainty must be >= 0")

    def build_simulator(self, rng=None):
        rng = rng if rng is not None else np.random.default_rng(self.seed)
        return TrajectorySimulator(
            initial_position=self.launch_position, launch_speed=self.launch_speed,
            launch_angle=self.launch_angle, gravity=self.gravity, dt=self.dt,
            measurement_noise=self.measurement_noise, dropout=self.dropout, rng=rng)

    def build_estimator(self):
        # R scales with the noise magnitude, not its square
        x0 = launch_state(self.launch_position, self.launch_speed, self.launch_angle)
        return KalmanEstimator(
            dt=self.dt,
            R=self.measurement_noise * np.eye(2),
            Q=self.process_noise * np.eye(4),
            P0=self.initial_uncertainty * np.eye(4),
            x0=x0,
            control=(0.0, -self.gravity),
            joseph=self.joseph,
            solver=self.solver,
        )


@dataclass(frozen=True)
class ParticleDemoConfig:
    """Two projectiles tracked jointly by the particle filter."""
    dt: float = 0.1
    n_steps: int = 100
    initial_states: Tuple[Tuple[float, float, float, float], ...] = field(
        default=((0.0, 0.0, 50.0, 45.0), (0.0, 50.0, 50.0, 45.0)))
    gravity: float = 9.8
    n_particles: int = 70
    sigma: float = 10.0
    # Uniform noise width; 2 * sigma gives +/- sigma per axis
    measurement_noise: float = 20.0
    dropout: float = 0.0
    resampling: str = 'multinomial'
    process_noise: float = 0.0
    seed: Optional[int] = None

    def __post_init__(self):
        self.validate()

    def validate(self):
        _check_common(self.dt, self.measurement_noise, self.dropout, self.n_steps)
        if self.n_particles <= 0:
            raise ConfigurationError(f"n_particles must be positive, got {self.n_particles}")
        if self.sigma <= 0:
            raise ConfigurationError(f"sigma must be positive, got {self.sigma}")
        self.states_array()

    def states_array(self):
        """Initial states as an [n_objects, 4] array; a single flat row is one object."""
        try:
            states = np.atleast_2d(np.asarray(self.initial_states, dtype=float))
        except ValueError as e:
            raise ConfigurationError(f"initial_states is not a rectangular array: {e}") from e
        if states.ndim != 2 or states.shape[1] != 4 or states.shape[0] == 0:
            raise ConfigurationError(
                f"initial_states must have shape [n_objects, 4], got {states.shape}")
        return states

    @property
    def n_objects(self):
        return self.states_array().shape[0]

    def _streams(self):
        # Simulator and filter draw from independent children of one seed
        sim_seq, pf_seq = np.random.SeedSequence(self.seed).spawn(2)
        return np.random.default_rng(sim_seq), np.random.default_rng(pf_seq)

    def build_simulator(self, rng=None):
        rng = rng if rng is not None else self._streams()[0]
        return TrajectorySimulator.from_states(
            self.states_array(), gravity=self.gravity, dt=self.dt,
            measurement_noise=self.measurement_noise, dropout=self.dropout, rng=rng)

    def build_estimator(self, rng=None):
        rng = rng if rng is not None else self._streams()[1]
        return ParticleEstimator(
            self.states_array(), n_particles=self.n_particles, sigma=self.sigma,
            dt=self.dt, gravity=self.gravity, rng=rng, resampling=self.resampling,
            process_noise=self.process_noise)
