"""Bootstrap Particle Filter for multiple ballistic projectiles."""
import logging

import numpy as np

from ..errors import ConfigurationError, DegenerateWeightsError, MeasurementError
from ..ssm.projectile import DEFAULT_DT, DEFAULT_GRAVITY, propagate

logger = logging.getLogger(__name__)

DEFAULT_N_PARTICLES = 70
DEFAULT_SIGMA = 10.0


def multinomial_resample(w, rng):
    """
    Multinomial resampling by inverse-CDF lookup.

    For each draw r ~ U[0, 1) pick the first index whose cumulative weight
    is >= r. Round-off can leave r beyond the last prefix sum; such draws
    select the last particle.
    """
    N = len(w)
    cumsum = np.cumsum(w)
    r = rng.random(N)
    return np.clip(np.searchsorted(cumsum, r, side='left'), 0, N - 1)


def systematic_resample(w, rng):
    """Systematic resampling (low variance)."""
    N = len(w)
    cumsum = np.cumsum(w)
    u = rng.uniform(0, 1.0 / N) + np.arange(N) / N
    return np.clip(np.searchsorted(cumsum, u), 0, N - 1)


RESAMPLERS = {
    'multinomial': multinomial_resample,
    'systematic': systematic_resample,
}


class ParticleEstimator:
    """
    Particle filter tracking one or more projectiles jointly.

    Each particle holds a full [x, y, vx, vy] state for every tracked
    object; particles are stored as rows of an [N, n_objects, 4] array.
    Prediction uses the same deterministic motion step as the simulator.
    Weighting multiplies exp(-e_k / (2 sigma^2)) over objects, where e_k is
    the Euclidean position error of object k.

    Parameters
    ----------
    initial_state : array_like [4] or [n_objects, 4]
        True initial state; every particle is seeded with it
    n_particles : int
        Population size N, fixed for the filter's lifetime
    sigma : float
        Observation noise scale used by the likelihood
    dt : float
        Time step
    gravity : float
        Gravitational constant
    rng : numpy.random.Generator, optional
    resampling : str
        'multinomial' (default) or 'systematic'
    process_noise : float
        Std of Gaussian jitter added to every particle in ``predict``.
        Zero (default) reproduces the purely deterministic motion step,
        which can collapse the population onto a single hypothesis over
        long runs.
    """

    def __init__(self, initial_state, n_particles=DEFAULT_N_PARTICLES, sigma=DEFAULT_SIGMA,
                 dt=DEFAULT_DT, gravity=DEFAULT_GRAVITY, rng=None,
                 resampling='multinomial', process_noise=0.0):
        state = np.atleast_2d(np.asarray(initial_state, dtype=float))
        if state.ndim != 2 or state.shape[1] != 4:
            raise ConfigurationError(
                f"initial_state must have shape [4] or [n_objects, 4], got {state.shape}")
        if int(n_particles) != n_particles or n_particles <= 0:
            raise ConfigurationError(f"n_particles must be a positive integer, got {n_particles}")
        if sigma <= 0:
            raise ConfigurationError(f"sigma must be positive, got {sigma}")
        if dt <= 0:
            raise ConfigurationError(f"dt must be positive, got {dt}")
        if process_noise < 0:
            raise ConfigurationError(f"process_noise must be >= 0, got {process_noise}")
        if resampling not in RESAMPLERS:
            raise ConfigurationError(
                f"Unknown resampling '{resampling}', expected one of {sorted(RESAMPLERS)}")

        self._N = int(n_particles)
        self.sigma = float(sigma)
        self.dt = float(dt)
        self.gravity = float(gravity)
        self.process_noise = float(process_noise)
        self.resampling = resampling
        self._resample_fn = RESAMPLERS[resampling]
        self.rng = rng if rng is not None else np.random.default_rng()
        self.resample_count = 0

        self.reseed(state)

    @property
    def n_particles(self):
        """Population size N (read-only)."""
        return self._N

    @property
    def n_objects(self):
        return self._particles.shape[1]

    @property
    def particles(self):
        """Copy of the particle array [N, n_objects, 4]."""
        return self._particles.copy()

    @property
    def weights(self):
        """Copy of the weight vector [N]."""
        return self._weights.copy()

    def reseed(self, state):
        """Replace the population with N identical copies of `state` and uniform weights."""
        state = np.atleast_2d(np.asarray(state, dtype=float))
        if hasattr(self, '_particles') and state.shape != self._particles.shape[1:]:
            raise ConfigurationError(
                f"reseed state must have shape {self._particles.shape[1:]}, got {state.shape}")
        self._particles = np.repeat(state[np.newaxis], self._N, axis=0)
        self._weights = np.full(self._N, 1.0 / self._N)

    def predict(self):
        """Advance every particle by one motion step."""
        particles = propagate(self._particles, self.dt, self.gravity)
        if self.process_noise > 0:
            particles += self.process_noise * self.rng.standard_normal(particles.shape)
        self._particles = particles
        return self.estimate()

    def _validate_observation(self, observation):
        if observation is None:
            raise MeasurementError("weight() called without an observation")
        z = np.atleast_2d(np.asarray(observation, dtype=float))
        if z.shape != (self.n_objects, 2):
            raise MeasurementError(
                f"observation must have shape {(self.n_objects, 2)}, got {z.shape}")
        if not np.all(np.isfinite(z)):
            raise MeasurementError("observation contains non-finite values")
        return z

    def likelihood(self, observation):
        """
        Unnormalized weight of every particle given an observation.

        Parameters
        ----------
        observation : array_like [n_objects, 2]

        Returns
        -------
        ndarray [N]
        """
        z = self._validate_observation(observation)
        errors = np.linalg.norm(self._particles[:, :, :2] - z[np.newaxis], axis=-1)
        return np.prod(np.exp(-errors / (2.0 * self.sigma**2)), axis=1)

    def weight(self, observation):
        """Set particle weights from the observation likelihood (unnormalized)."""
        self._weights = self.likelihood(observation)
        return self._weights.copy()

    def normalize(self):
        """
        Divide weights by their sum.

        Raises
        ------
        DegenerateWeightsError
            If the total weight is zero or not finite; weights are left as they were
        """
        total = self._weights.sum()
        if not np.isfinite(total) or total <= 0.0:
            raise DegenerateWeightsError(
                f"total particle weight is {total}; every particle is implausible")
        self._weights = self._weights / total
        return self._weights.copy()

    def resample(self):
        """Draw a fresh generation of N particles proportional to weight."""
        idx = self._resample_fn(self._weights, self.rng)
        # Fancy indexing copies, so the new generation shares nothing with the old
        self._particles = self._particles[idx]
        self._weights = np.full(self._N, 1.0 / self._N)
        self.resample_count += 1
        return idx

    def correct(self, observation):
        """
        Weight, normalize and resample against one observation.

        On DegenerateWeightsError the previous weights are restored before
        the error propagates, so the caller can skip the step or reseed.
        """
        prior = self._weights
        self.weight(observation)
        try:
            self.normalize()
        except DegenerateWeightsError:
            self._weights = prior
            raise
        ess = self.effective_sample_size()
        self.resample()
        logger.debug("PF correct: ESS before resampling %.2f / %d", ess, self._N)
        return self.estimate()

    def effective_sample_size(self):
        """ESS = 1 / sum(w^2) of the current (normalized) weights."""
        return 1.0 / np.sum(self._weights**2)

    def estimate(self):
        """Weighted mean state of every object [n_objects, 4]."""
        return np.einsum('i,ijk->jk', self._weights, self._particles)

    def covariance(self):
        """Weighted spread of each object's state [n_objects, 4, 4]."""
        diff = self._particles - self.estimate()[np.newaxis]
        return np.einsum('i,ijk,ijl->jkl', self._weights, diff, diff)
