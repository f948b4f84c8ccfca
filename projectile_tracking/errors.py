"""Exceptions raised by the estimators and the estimation harness."""


class TrackingError(Exception):
    """Base class for all tracking errors.

    Parameters
    ----------
    message : str
        Human readable description
    step : int, optional
        Index of the harness step at which the error occurred. Estimators
        do not know the step index; the harness fills it in.
    """

    def __init__(self, message, step=None):
        super().__init__(message)
        self.message = message
        self.step = step

    def __str__(self):
        if self.step is None:
            return self.message
        return f"step {self.step}: {self.message}"


class ConfigurationError(TrackingError, ValueError):
    """Malformed construction-time configuration (shapes, noise, counts)."""


class MeasurementError(TrackingError, ValueError):
    """Observation present but with the wrong dimensionality."""


class NumericalError(TrackingError, ArithmeticError):
    """Numerical degeneracy the caller has to decide how to recover from."""


class SingularInnovationError(NumericalError):
    """Innovation covariance S could not be inverted."""


class DegenerateWeightsError(NumericalError):
    """All particle weights vanished, so they cannot be normalized."""
