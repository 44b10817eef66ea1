"""Angle normalization helpers."""

import math

import numpy as np

from sat_predict.config import TWOPI


def wrap_longitude(angle: float) -> float:
    """Normalize an angle in radians to (-pi, pi]."""
    return angle - TWOPI * math.ceil((angle - math.pi) / TWOPI)


def wrap_longitudes(angles: np.ndarray) -> np.ndarray:
    """Vectorized ``wrap_longitude``."""
    return angles - TWOPI * np.ceil((angles - np.pi) / TWOPI)


def wrap_two_pi(angle: float) -> float:
    """Normalize an angle in radians to [0, 2*pi)."""
    wrapped = angle % TWOPI
    return 0.0 if wrapped == TWOPI else wrapped
