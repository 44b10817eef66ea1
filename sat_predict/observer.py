"""
Ground Station Observations

Look angles (azimuth, elevation), slant range and range rate of a satellite
seen from a fixed point on the Earth, computed in the station's local
east-north-up frame.
"""

import logging
import math
from datetime import datetime
from typing import Optional

import numpy as np

from sat_predict.angles import wrap_two_pi
from sat_predict.config import EARTH_ROTATION_RATE, WGS72, GravityModel
from sat_predict.coordinates import eci_to_ecef, geodetic_to_ecef, gmst
from sat_predict.exceptions import UsageError
from sat_predict.models import GeodeticCoordinate, TopocentricObservation

logger = logging.getLogger(__name__)


class GroundStation:
    """
    An observer fixed to the rotating Earth.

    Args:
        location: Geodetic position of the station
        min_elevation: Elevation mask in radians for ``is_visible``
        name: Optional label
        gravity: Ellipsoid used to place the station
    """

    def __init__(
        self,
        location: GeodeticCoordinate,
        min_elevation: float = 0.0,
        name: str = "Station",
        gravity: GravityModel = WGS72,
    ):
        if not -math.pi / 2.0 <= min_elevation <= math.pi / 2.0:
            raise UsageError(
                f"Minimum elevation must lie in [-pi/2, pi/2], got {min_elevation}"
            )
        self.location = location
        self.min_elevation = min_elevation
        self.name = name
        self.gravity = gravity
        self._ecef = np.array(geodetic_to_ecef(location, gravity))

        lat = location.latitude
        lon = location.longitude
        # Rows are the local east, north and up unit vectors in ECEF
        self._enu = np.array([
            [-math.sin(lon), math.cos(lon), 0.0],
            [-math.sin(lat) * math.cos(lon), -math.sin(lat) * math.sin(lon), math.cos(lat)],
            [math.cos(lat) * math.cos(lon), math.cos(lat) * math.sin(lon), math.sin(lat)],
        ])

    def __repr__(self):
        return (
            f"GroundStation(name={self.name!r}, lat={self.location.latitude_deg:.4f}, "
            f"lon={self.location.longitude_deg:.4f})"
        )

    def observe(self, satellite, instant: Optional[datetime] = None) -> TopocentricObservation:
        """
        Look angles to ``satellite`` at ``instant`` (default: the satellite's clock).

        Raises:
            PropagationError: if the satellite cannot be propagated to ``instant``
        """
        eci = satellite.predict(instant).eci
        theta = gmst(eci.time)

        r_ecef = eci_to_ecef(eci.position, theta)
        # Earth-fixed velocity removes the frame rotation
        omega = np.array([0.0, 0.0, EARTH_ROTATION_RATE])
        v_ecef = eci_to_ecef(eci.velocity, theta) - np.cross(omega, r_ecef)

        rho = r_ecef - self._ecef
        range_km = float(np.linalg.norm(rho))
        if range_km == 0.0:
            raise UsageError("Satellite coincides with the ground station")

        east, north, up = self._enu @ rho
        azimuth = wrap_two_pi(math.atan2(east, north))
        elevation = math.asin(max(-1.0, min(1.0, up / range_km)))
        range_rate = float(np.dot(rho, v_ecef)) / range_km

        return TopocentricObservation(
            time=eci.time,
            azimuth=azimuth,
            elevation=elevation,
            range_km=range_km,
            range_rate_km_s=range_rate,
        )

    def is_visible(self, satellite, instant: Optional[datetime] = None) -> bool:
        """True when the satellite is above the station's elevation mask."""
        observation = self.observe(satellite, instant)
        visible = observation.elevation >= self.min_elevation
        logger.debug(
            f"{satellite.name} from {self.name}: elevation "
            f"{observation.elevation_deg:.2f} deg, visible={visible}"
        )
        return visible
