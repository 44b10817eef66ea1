"""Exception classes for sat_predict errors."""

from typing import Optional


# SGP4 error code meanings
SGP4_ERROR_CODES = {
    0: "No error",
    1: "Mean eccentricity < 0.0 or >= 1.0",
    2: "Mean motion <= 0.0",
    3: "Perturbed eccentricity < 0.0 or > 1.0",
    4: "Semi-latus rectum < 0.0",
    5: "Satellite has decayed (mean semi-major axis below Earth radius)",
    6: "Satellite has decayed (orbital radius below Earth radius)",
    7: "Iteration did not converge",
}


class SatPredictError(Exception):
    """Base exception for sat_predict errors."""

    pass


class UsageError(SatPredictError):
    """Invalid call arguments or out-of-domain values."""

    pass


class ParseError(SatPredictError):
    """
    TLE text could not be parsed.

    Attributes
    ----------
    rule : str
        The violated rule: ``length``, ``line_number``, ``checksum``,
        ``field``, ``range`` or ``catalog_mismatch``.
    line_number : int, optional
        TLE line (1 or 2) the problem was found on.
    """

    def __init__(self, rule: str, message: str, line_number: Optional[int] = None):
        self.rule = rule
        self.line_number = line_number
        prefix = f"line {line_number}: " if line_number else ""
        super().__init__(f"{prefix}{message} [{rule}]")


class PropagationError(SatPredictError):
    """
    Propagation failed for a single instant.

    The satellite stays usable; a call at another instant may succeed.
    """

    def __init__(
        self,
        code: int,
        minutes_since_epoch: Optional[float] = None,
        message: Optional[str] = None,
    ):
        self.code = code
        self.minutes_since_epoch = minutes_since_epoch
        if message is None:
            message = SGP4_ERROR_CODES.get(code, f"Unknown error code {code}")
        if minutes_since_epoch is not None:
            message = f"{message} (t={minutes_since_epoch:.3f} min)"
        super().__init__(message)


class ConvergenceError(PropagationError):
    """Kepler or geodetic-latitude iteration exceeded its cap."""

    def __init__(
        self, minutes_since_epoch: Optional[float] = None, message: Optional[str] = None
    ):
        super().__init__(7, minutes_since_epoch, message)


class DecayError(PropagationError):
    """Propagated orbit lies below the Earth's surface."""

    pass


class DegenerateOrbitError(PropagationError):
    """Drag or perturbations drove the mean elements out of their domain."""

    pass
