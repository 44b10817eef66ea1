"""
Visibility Footprint

The footprint is the region of the Earth's surface from which the satellite
is above a flat horizon. It is modelled as a spherical cap of central angle
``acos(R / (R + h))`` around the sub-satellite point, with R the gravity
model's equatorial radius and h the satellite altitude.
"""

import logging
import math
from typing import List

import numpy as np

from sat_predict.angles import wrap_longitudes
from sat_predict.config import DEFAULT_FOOTPRINT_POINTS, MIN_FOOTPRINT_POINTS, TWOPI, WGS72, GravityModel
from sat_predict.exceptions import UsageError
from sat_predict.models import GeodeticCoordinate

logger = logging.getLogger(__name__)


def footprint_radius(altitude_km: float, gravity: GravityModel = WGS72) -> float:
    """
    Angular radius (rad) of the footprint for a satellite at ``altitude_km``.

    Negative altitudes are clamped to zero, giving an empty footprint.
    """
    if altitude_km < 0.0:
        logger.warning(f"Negative altitude {altitude_km:.3f} km clamped to 0 for footprint")
        altitude_km = 0.0
    earth_radius = gravity.radius_km
    return math.acos(earth_radius / (earth_radius + altitude_km))


def footprint_polygon(
    center: GeodeticCoordinate,
    num_points: int = DEFAULT_FOOTPRINT_POINTS,
    gravity: GravityModel = WGS72,
) -> List[GeodeticCoordinate]:
    """
    Boundary of the footprint around a sub-satellite point.

    Points are generated on the great circle at the footprint radius for
    bearings ``2*pi*i/num_points``, i = 0..num_points-1, starting due north
    and proceeding clockwise as seen from above. Points lie on the ellipsoid
    surface (altitude 0).

    Args:
        center: Sub-satellite point; its altitude sets the footprint size
        num_points: Number of boundary points (at least 3)
        gravity: Gravity model whose radius is used

    Returns:
        List of ``num_points`` GeodeticCoordinate values

    Raises:
        UsageError: if ``num_points`` is below 3
    """
    if isinstance(num_points, bool) or not isinstance(num_points, (int, np.integer)):
        raise UsageError(f"num_points must be an integer, got {num_points!r}")
    if num_points < MIN_FOOTPRINT_POINTS:
        raise UsageError(
            f"num_points must be at least {MIN_FOOTPRINT_POINTS}, got {num_points}"
        )

    d = footprint_radius(center.altitude, gravity)
    lat0 = center.latitude
    lon0 = center.longitude

    bearings = TWOPI * np.arange(num_points) / num_points
    sin_lat0 = math.sin(lat0)
    cos_lat0 = math.cos(lat0)
    sin_d = math.sin(d)
    cos_d = math.cos(d)

    sin_lat = sin_lat0 * cos_d + cos_lat0 * sin_d * np.cos(bearings)
    lats = np.arcsin(np.clip(sin_lat, -1.0, 1.0))
    # cos(lat0) divided out of both arguments; exact at the poles
    lons = lon0 + np.arctan2(
        np.sin(bearings) * sin_d,
        cos_lat0 * cos_d - sin_lat0 * sin_d * np.cos(bearings),
    )
    lons = wrap_longitudes(lons)

    return [
        GeodeticCoordinate(latitude=float(lat), longitude=float(lon), altitude=0.0)
        for lat, lon in zip(lats, lons)
    ]
