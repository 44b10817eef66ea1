"""
Coordinate Transformations

Conversions between the TEME inertial frame produced by SGP4 and geodetic
latitude, longitude and altitude on the gravity model's reference ellipsoid.

The Earth is rotated by Greenwich Mean Sidereal Time (IAU-82 model), which is
the rotation SGP4 element sets are consistent with. Polar motion, nutation and
the TEME/true-of-date distinction are ignored.
"""

import math
from datetime import datetime
from typing import Tuple

import numpy as np

from sat_predict import config
from sat_predict.angles import wrap_longitude
from sat_predict.config import DEG2RAD, EARTH_ROTATION_RATE, TWOPI, WGS72, GravityModel
from sat_predict.exceptions import ConvergenceError
from sat_predict.models import EciVector, GeodeticCoordinate
from sat_predict.time_utils import J2000_JD, julian_date

__all__ = [
    "gstime",
    "gmst",
    "eci_to_ecef",
    "to_geodetic",
    "to_eci",
    "geodetic_to_ecef",
    "wrap_longitude",
]


def gstime(jd_ut1: float) -> float:
    """
    Greenwich mean sidereal angle (rad, [0, 2*pi)) at a UT1 Julian date.

    IAU-82 polynomial, evaluated in seconds of time and scaled to radians.
    """
    tut1 = (jd_ut1 - J2000_JD) / 36525.0
    temp = (
        -6.2e-6 * tut1 * tut1 * tut1
        + 0.093104 * tut1 * tut1
        + (876600.0 * 3600.0 + 8640184.812866) * tut1
        + 67310.54841
    )
    # 360 deg / 86400 s = 1/240 deg per second of time
    temp = math.fmod(temp * DEG2RAD / 240.0, TWOPI)
    if temp < 0.0:
        temp += TWOPI
    return temp


def gmst(instant: datetime) -> float:
    """Greenwich mean sidereal angle at ``instant`` (UTC taken as UT1)."""
    return gstime(julian_date(instant))


def eci_to_ecef(position, theta: float) -> np.ndarray:
    """Rotate an inertial position about the z axis by sidereal angle ``theta``."""
    cos_t = math.cos(theta)
    sin_t = math.sin(theta)
    rotation = np.array([
        [cos_t, sin_t, 0.0],
        [-sin_t, cos_t, 0.0],
        [0.0, 0.0, 1.0],
    ])
    return rotation @ np.asarray(position, dtype=float)


def _eccentricity_squared(gravity: GravityModel) -> float:
    f = gravity.flattening
    return f * (2.0 - f)


def to_geodetic(eci: EciVector, gravity: GravityModel = WGS72) -> GeodeticCoordinate:
    """
    Convert an inertial position to geodetic coordinates.

    Latitude is found by fixed-point iteration on the ellipsoid normal;
    altitude uses the form ``r cos(lat) + z sin(lat) - a sqrt(1 - e2 sin^2 lat)``
    which stays well conditioned at the poles.

    Args:
        eci: Position (km) and time of the state
        gravity: Gravity model whose ellipsoid is used

    Returns:
        GeodeticCoordinate with longitude in (-pi, pi] and altitude in km

    Raises:
        ConvergenceError: if latitude does not settle within the iteration cap
    """
    x, y, z = eci.position
    a = gravity.radius_km
    e2 = _eccentricity_squared(gravity)

    theta = gmst(eci.time)
    lon = wrap_longitude(math.atan2(y, x) - theta)

    r = math.sqrt(x * x + y * y)
    lat = math.atan2(z, r)

    max_iterations = config.GEODETIC_MAX_ITERATIONS
    converged = False
    for _ in range(max_iterations):
        sin_lat = math.sin(lat)
        c = 1.0 / math.sqrt(1.0 - e2 * sin_lat * sin_lat)
        new_lat = math.atan2(z + a * c * e2 * sin_lat, r)
        delta = abs(new_lat - lat)
        lat = new_lat
        if delta < config.GEODETIC_TOLERANCE:
            converged = True
            break

    if not converged:
        raise ConvergenceError(
            message=f"geodetic latitude did not converge in {max_iterations} iterations"
        )

    sin_lat = math.sin(lat)
    alt = r * math.cos(lat) + z * sin_lat - a * math.sqrt(1.0 - e2 * sin_lat * sin_lat)

    return GeodeticCoordinate(latitude=lat, longitude=lon, altitude=alt)


def to_eci(
    location: GeodeticCoordinate, instant: datetime, gravity: GravityModel = WGS72
) -> EciVector:
    """
    Convert a geodetic point to an inertial state at ``instant``.

    The velocity is that of a point fixed to the rotating Earth.
    """
    a = gravity.radius_km
    e2 = _eccentricity_squared(gravity)
    lat = location.latitude
    h = location.altitude

    sin_lat = math.sin(lat)
    cos_lat = math.cos(lat)
    n = a / math.sqrt(1.0 - e2 * sin_lat * sin_lat)

    theta = location.longitude + gmst(instant)
    x = (n + h) * cos_lat * math.cos(theta)
    y = (n + h) * cos_lat * math.sin(theta)
    z = (n * (1.0 - e2) + h) * sin_lat

    velocity = (-EARTH_ROTATION_RATE * y, EARTH_ROTATION_RATE * x, 0.0)
    return EciVector(time=instant, position=(x, y, z), velocity=velocity)


def geodetic_to_ecef(
    location: GeodeticCoordinate, gravity: GravityModel = WGS72
) -> Tuple[float, float, float]:
    """Earth-fixed Cartesian position (km) of a geodetic point."""
    a = gravity.radius_km
    e2 = _eccentricity_squared(gravity)
    sin_lat = math.sin(location.latitude)
    cos_lat = math.cos(location.latitude)
    n = a / math.sqrt(1.0 - e2 * sin_lat * sin_lat)
    h = location.altitude
    return (
        (n + h) * cos_lat * math.cos(location.longitude),
        (n + h) * cos_lat * math.sin(location.longitude),
        (n * (1.0 - e2) + h) * sin_lat,
    )
