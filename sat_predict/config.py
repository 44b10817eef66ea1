"""
Prediction Configuration and Constants

This module contains the gravity models, physical constants, iteration limits
and environment-driven defaults used throughout the package.

Gravity models:
    WGS-72 is the model two-line element sets are generated with and is the
    default. WGS-72 "old" and WGS-84 are provided for comparison work; the
    constants follow Vallado et al. (2006, AIAA 2006-6753), Appendix B.

Fallback TLE Data:
    Hardcoded ISS TLE data for demonstrations and testing.

    IMPORTANT: element sets age quickly.
    - Low Earth Orbit (LEO) satellites: Update weekly
    - Medium Earth Orbit (MEO): Update monthly
    - Geostationary (GEO): Update quarterly

References:
    Vallado, D. A., Crawford, P., Hujsak, R., & Kelso, T. S. (2006).
    Revisiting Spacetrack Report #3. AIAA 2006-6753.
"""

import math
import os
from typing import Any, Dict, NamedTuple

from sat_predict.exceptions import UsageError

TWOPI: float = 2.0 * math.pi
DEG2RAD: float = math.pi / 180.0
RAD2DEG: float = 180.0 / math.pi
MINUTES_PER_DAY: float = 1440.0
XPDOTP: float = MINUTES_PER_DAY / TWOPI  # rev/day per rad/min


class GravityModel(NamedTuple):
    """Earth gravity field and reference ellipsoid used by SGP4."""

    name: str
    mu: float  # km^3/s^2
    radius_km: float  # equatorial radius
    xke: float  # sqrt(mu) in Earth radii^1.5 per minute
    tumin: float  # minutes per canonical time unit
    j2: float
    j3: float
    j4: float
    j3oj2: float
    flattening: float


def _gravity_model(name, mu, radius_km, j2, j3, j4, flattening, xke=None):
    if xke is None:
        xke = 60.0 / math.sqrt(radius_km ** 3 / mu)
    return GravityModel(
        name=name,
        mu=mu,
        radius_km=radius_km,
        xke=xke,
        tumin=1.0 / xke,
        j2=j2,
        j3=j3,
        j4=j4,
        j3oj2=j3 / j2,
        flattening=flattening,
    )


WGS72OLD = _gravity_model(
    "wgs72old", 398600.79964, 6378.135,
    0.001082616, -0.00000253881, -0.00000165597,
    1.0 / 298.26, xke=0.0743669161,
)
WGS72 = _gravity_model(
    "wgs72", 398600.8, 6378.135,
    0.001082616, -0.00000253881, -0.00000165597,
    1.0 / 298.26,
)
WGS84 = _gravity_model(
    "wgs84", 398600.5, 6378.137,
    0.00108262998905, -0.00000253215306, -0.00000161098761,
    1.0 / 298.257223563,
)

GRAVITY_MODELS: Dict[str, GravityModel] = {
    model.name: model for model in (WGS72OLD, WGS72, WGS84)
}


def get_gravity_model(name: str) -> GravityModel:
    """Look up a gravity model by name (case-insensitive)."""
    try:
        return GRAVITY_MODELS[name.lower().replace("-", "")]
    except KeyError:
        raise UsageError(
            f"Unknown gravity model {name!r}; expected one of {sorted(GRAVITY_MODELS)}"
        ) from None


# Orbits with a period at or above this use the deep-space branch
DEEP_SPACE_PERIOD_MINUTES: float = 225.0

# Earth rotation rate (rad/s)
EARTH_ROTATION_RATE: float = 7.29211514670698e-5

# Kepler's equation (Newton iteration with step limiting)
KEPLER_TOLERANCE: float = 1.0e-12
KEPLER_MAX_ITERATIONS: int = 25

# Geodetic latitude fixed-point iteration
GEODETIC_TOLERANCE: float = 1.0e-12
GEODETIC_MAX_ITERATIONS: int = 10

# Footprint polygon
DEFAULT_FOOTPRINT_POINTS: int = 60
MIN_FOOTPRINT_POINTS: int = 3

# Thread pool size for batch prediction
DEFAULT_BATCH_WORKERS: int = 8


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        return int(value)
    except ValueError:
        raise UsageError(f"{name} must be an integer, got {value!r}") from None


class PredictionConfig:
    """
    Environment-driven defaults.

    Integer settings are read from the environment on each call and raise
    ``UsageError`` when malformed.
    """

    GRAVITY_MODEL = os.getenv("SAT_PREDICT_GRAVITY_MODEL", "wgs72")
    LOG_LEVEL = os.getenv("SAT_PREDICT_LOG_LEVEL", "INFO")

    @classmethod
    def gravity(cls) -> GravityModel:
        return get_gravity_model(cls.GRAVITY_MODEL)

    @staticmethod
    def footprint_points() -> int:
        return _env_int("SAT_PREDICT_FOOTPRINT_POINTS", DEFAULT_FOOTPRINT_POINTS)

    @staticmethod
    def batch_workers() -> int:
        return _env_int("SAT_PREDICT_BATCH_WORKERS", DEFAULT_BATCH_WORKERS)


# Fallback ISS TLE for demonstrations and testing
# Last updated: 2023-09-16
FALLBACK_ISS_TLE: Dict[str, Any] = {
    'name': 'ISS (ZARYA)',
    'norad_id': 25544,
    'line1': '1 25544U 98067A   23259.57580000  .00012022  00000-0  21844-3 0  9995',
    'line2': '2 25544  51.6416 220.9944 0004263 122.0101 312.2755 15.49541986415598',
    'epoch': '2023-09-16T13:49:09Z',
    'mean_motion': 15.49541986,
    'inclination': 51.6416,
    'eccentricity': 0.0004263
}
