"""
Estimation harness: drive a simulator and an estimator for a fixed number of steps.

Each step runs simulate -> observe -> predict -> (correct if observed) -> record.
"""
import logging
from dataclasses import dataclass
from typing import List, Optional

import numpy as np

from .errors import ConfigurationError, NumericalError, TrackingError

logger = logging.getLogger(__name__)

DEGENERACY_POLICIES = ('raise', 'skip')


@dataclass
class StepRecord:
    """Container for one step's truth, observation and estimate."""
    step: int
    truth: np.ndarray
    observation: Optional[np.ndarray]
    estimate: np.ndarray
    skipped: bool = False


class EstimationHarness:
    """
    Wire a TrajectorySimulator to an estimator.

    The estimator must provide ``predict()``, ``correct(observation)`` and
    ``estimate()``; both KalmanEstimator and ParticleEstimator do.

    Parameters
    ----------
    simulator : TrajectorySimulator
        Source of ground truth and observations
    estimator : KalmanEstimator or ParticleEstimator
    on_degenerate : str
        What to do when ``correct`` raises a NumericalError:
        'raise' (default) re-raises with the step index attached,
        'skip' logs a warning and keeps the prediction for that step.
    """

    def __init__(self, simulator, estimator, on_degenerate='raise'):
        if on_degenerate not in DEGENERACY_POLICIES:
            raise ConfigurationError(
                f"on_degenerate must be one of {DEGENERACY_POLICIES}, got '{on_degenerate}'")
        self.simulator = simulator
        self.estimator = estimator
        self.on_degenerate = on_degenerate

    def step(self, t):
        """Run step `t` and return its record."""
        truth = self.simulator.advance()
        observation = self.simulator.observe(truth)
        skipped = False

        try:
            self.estimator.predict()
            if observation is not None:
                self.estimator.correct(observation)
        except NumericalError as e:
            e.step = t
            if self.on_degenerate == 'raise':
                logger.error("Estimation failed: %s", e)
                raise
            logger.warning("Skipping correction: %s", e)
            skipped = True
        except TrackingError as e:
            e.step = t
            logger.error("Estimation failed: %s", e)
            raise

        if observation is None:
            logger.debug("step %d: no observation, prediction only", t)

        return StepRecord(step=t, truth=truth, observation=observation,
                          estimate=self.estimator.estimate(), skipped=skipped)

    def run(self, n_steps) -> List[StepRecord]:
        """
        Run exactly `n_steps` steps.

        Parameters
        ----------
        n_steps : int
            Number of steps; there is no early stopping

        Returns
        -------
        list[StepRecord]
        """
        if n_steps < 0:
            raise ConfigurationError(f"n_steps must be >= 0, got {n_steps}")

        logger.info("Running %d steps with %s", n_steps, type(self.estimator).__name__)
        records = [self.step(t) for t in range(n_steps)]

        n_missing = sum(r.observation is None for r in records)
        n_skipped = sum(r.skipped for r in records)
        logger.info("Finished: %d steps, %d dropouts, %d skipped corrections",
                    n_steps, n_missing, n_skipped)
        return records


def records_to_arrays(records):
    """
    Stack step records into arrays.

    Parameters
    ----------
    records : list[StepRecord]

    Returns
    -------
    dict
        'truth' [T, n_objects, 4], 'observations' [T, n_objects, 2] (NaN on
        dropout), 'estimates' [T, ...] as returned by the estimator,
        'observed' [T] bool mask. An empty run gives zero-length arrays.
    """
    if not records:
        return {
            'truth': np.zeros((0, 0, 4)),
            'observations': np.zeros((0, 0, 2)),
            'estimates': np.zeros((0, 0, 4)),
            'observed': np.zeros(0, dtype=bool),
        }

    truth = np.array([r.truth for r in records])
    estimates = np.array([r.estimate for r in records])
    observations = np.full(truth.shape[:-1] + (2,), np.nan)
    observed = np.zeros(len(records), dtype=bool)

    for t, r in enumerate(records):
        if r.observation is not None:
            observations[t] = np.reshape(r.observation, observations.shape[1:])
            observed[t] = True

    return {
        'truth': truth,
        'observations': observations,
        'estimates': estimates,
        'observed': observed,
    }
