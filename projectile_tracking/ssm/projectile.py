"""Ballistic projectile model: ground truth and noisy, lossy observations."""
import numpy as np

from ..errors import ConfigurationError

# Default Constants

DEFAULT_GRAVITY = 9.81          # Gravitational constant (m/s^2)
DEFAULT_DT = 0.1                # Time step (s)
DEFAULT_LAUNCH_SPEED = 50.0     # Launch speed (m/s)
DEFAULT_LAUNCH_ANGLE = 45.0     # Launch angle (degrees)


def launch_state(position, speed, angle_deg):
    """
    Build the initial [x, y, vx, vy] state of a launched projectile.

    Parameters
    ----------
    position : array_like [2]
        Launch position (x, y)
    speed : float
        Launch speed
    angle_deg : float
        Launch angle above the horizontal, in degrees

    Returns
    -------
    ndarray [4]
        State vector [x, y, vx, vy]
    """
    theta = np.deg2rad(angle_deg)
    return np.array([position[0], position[1],
                     speed * np.cos(theta), speed * np.sin(theta)], dtype=float)


def propagate(states, dt, gravity=DEFAULT_GRAVITY):
    """
    Advance projectile states by one Euler step under constant gravity.

    x += vx*dt, y += vy*dt - 0.5*g*dt^2, vy -= g*dt. There is no
    ground-collision handling; projectiles keep falling below y = 0.

    Parameters
    ----------
    states : ndarray [..., 4]
        Any stack of [x, y, vx, vy] rows (objects, particles x objects, ...)
    dt : float
        Time step
    gravity : float
        Gravitational constant

    Returns
    -------
    ndarray [..., 4]
        New states (the input is not modified)
    """
    new = np.array(states, dtype=float, copy=True)
    new[..., 0] += new[..., 2] * dt
    new[..., 1] += new[..., 3] * dt - 0.5 * gravity * dt**2
    new[..., 3] -= gravity * dt
    return new


class TrajectorySimulator:
    """Ground-truth generator for one or more projectiles.

    Owns the true state of every projectile and advances it with
    :func:`propagate`. Observations are the true positions plus uniform
    noise in [-noise/2, noise/2] per axis, replaced entirely by ``None``
    with probability ``dropout``.

    Parameters
    ----------
    initial_position : array_like [2] or [n_objects, 2]
        Launch position of each projectile
    launch_speed : float or array_like [n_objects]
        Launch speed(s)
    launch_angle : float or array_like [n_objects]
        Launch angle(s) in degrees
    gravity : float
        Gravitational constant
    dt : float
        Time step
    measurement_noise : float
        Width of the uniform measurement noise
    dropout : float
        Probability in [0, 1] that a step yields no observation
    rng : numpy.random.Generator, optional
    """

    def __init__(self, initial_position=(0.0, 0.0), launch_speed=DEFAULT_LAUNCH_SPEED,
                 launch_angle=DEFAULT_LAUNCH_ANGLE, gravity=DEFAULT_GRAVITY, dt=DEFAULT_DT,
                 measurement_noise=0.0, dropout=0.0, rng=None):
        positions = np.atleast_2d(np.asarray(initial_position, dtype=float))
        if positions.ndim != 2 or positions.shape[1] != 2:
            raise ConfigurationError(
                f"initial_position must have shape [2] or [n_objects, 2], got {positions.shape}")
        n_objects = positions.shape[0]

        try:
            speeds = np.broadcast_to(np.asarray(launch_speed, dtype=float), (n_objects,))
            angles = np.broadcast_to(np.asarray(launch_angle, dtype=float), (n_objects,))
        except ValueError as e:
            raise ConfigurationError(
                f"launch_speed/launch_angle do not match {n_objects} objects") from e

        states = np.array([launch_state(p, s, a) for p, s, a in zip(positions, speeds, angles)])
        self._init(states, gravity, dt, measurement_noise, dropout, rng)

    @classmethod
    def from_states(cls, states, gravity=DEFAULT_GRAVITY, dt=DEFAULT_DT,
                    measurement_noise=0.0, dropout=0.0, rng=None):
        """Build a simulator from explicit [x, y, vx, vy] rows."""
        states = np.atleast_2d(np.asarray(states, dtype=float))
        if states.ndim != 2 or states.shape[1] != 4:
            raise ConfigurationError(
                f"states must have shape [4] or [n_objects, 4], got {states.shape}")
        sim = cls.__new__(cls)
        sim._init(states, gravity, dt, measurement_noise, dropout, rng)
        return sim

    def _init(self, states, gravity, dt, measurement_noise, dropout, rng):
        if dt <= 0:
            raise ConfigurationError(f"dt must be positive, got {dt}")
        if measurement_noise < 0:
            raise ConfigurationError(f"measurement_noise must be >= 0, got {measurement_noise}")
        if not 0.0 <= dropout <= 1.0:
            raise ConfigurationError(f"dropout must lie in [0, 1], got {dropout}")

        self.gravity = float(gravity)
        self.dt = float(dt)
        self.measurement_noise = float(measurement_noise)
        self.dropout = float(dropout)
        self.rng = rng if rng is not None else np.random.default_rng()
        self._state = states.copy()
        self.steps_taken = 0

    @property
    def n_objects(self):
        return self._state.shape[0]

    @property
    def state(self):
        """Copy of the current true state [n_objects, 4]."""
        return self._state.copy()

    def advance(self):
        """Integrate one time step and return the new true state."""
        self._state = propagate(self._state, self.dt, self.gravity)
        self.steps_taken += 1
        return self._state.copy()

    def observe(self, true_state):
        """
        Produce a noisy observation of the given true state.

        Parameters
        ----------
        true_state : ndarray [n_objects, 4]

        Returns
        -------
        ndarray [n_objects, 2] or None
            Noisy positions, or None when the measurement dropped out
        """
        true_state = np.atleast_2d(true_state)
        noise = self.measurement_noise * (self.rng.random((true_state.shape[0], 2)) - 0.5)
        measurement = true_state[:, :2] + noise

        # Dropout overrides the noisy sample for this step
        if self.rng.random() < self.dropout:
            return None
        return measurement

    def simulate(self, T):
        """
        Roll the simulator forward T steps.

        Parameters
        ----------
        T : int
            Number of time steps

        Returns
        -------
        xs : ndarray [T, n_objects, 4]
            True states
        ys : ndarray [T, n_objects, 2]
            Observations, NaN where the measurement dropped out
        """
        xs = np.zeros((T, self.n_objects, 4))
        ys = np.full((T, self.n_objects, 2), np.nan)

        for t in range(T):
            xs[t] = self.advance()
            y = self.observe(xs[t])
            if y is not None:
                ys[t] = y

        return xs, ys
