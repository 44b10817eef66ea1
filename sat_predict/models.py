"""
Data Models

Immutable value types exchanged by the parser, the propagator, the coordinate
transforms and the satellite facade. Angles are radians, distances km,
velocities km/s and instants UTC.
"""

import math
from datetime import datetime
from typing import NamedTuple, Optional, Tuple

import numpy as np
from pydantic import BaseModel, ConfigDict, field_validator, model_validator

from sat_predict.angles import wrap_longitude
from sat_predict.config import MINUTES_PER_DAY, RAD2DEG, DEG2RAD, TWOPI, WGS72
from sat_predict.exceptions import UsageError
from sat_predict.time_utils import as_utc

# Tolerance for latitudes produced by asin/atan2 at the poles
_LATITUDE_SLACK = 1e-12


class OrbitalElements(BaseModel):
    """
    Mean orbital elements of one two-line element set.

    Attributes
    ----------
    mean_motion : float
        Revolutions per day (Kozai mean motion, as published).
    mean_motion_dot, mean_motion_ddot : float
        First derivative of mean motion divided by two (rev/day^2) and second
        derivative divided by six (rev/day^3), as printed in the TLE.
    bstar : float
        Drag term in inverse Earth radii.
    inclination, raan, arg_perigee, mean_anomaly : float
        Radians.
    """

    model_config = ConfigDict(frozen=True)

    name: str = "Unnamed"
    catalog_number: int
    classification: str = "U"
    international_designator: str = ""
    epoch: datetime
    mean_motion: float
    eccentricity: float
    inclination: float
    raan: float
    arg_perigee: float
    mean_anomaly: float
    mean_motion_dot: float = 0.0
    mean_motion_ddot: float = 0.0
    bstar: float = 0.0
    ephemeris_type: int = 0
    element_set_number: int = 0
    revolution_number: int = 0
    line1: Optional[str] = None
    line2: Optional[str] = None

    @field_validator("epoch")
    @classmethod
    def _epoch_in_utc(cls, value: datetime) -> datetime:
        return as_utc(value)

    @model_validator(mode="after")
    def _check_domain(self) -> "OrbitalElements":
        if not math.isfinite(self.mean_motion) or self.mean_motion <= 0.0:
            raise UsageError(f"Mean motion must be positive, got {self.mean_motion}")
        if not 0.0 <= self.eccentricity < 1.0:
            raise UsageError(f"Eccentricity must lie in [0, 1), got {self.eccentricity}")
        if not 0.0 <= self.inclination <= math.pi:
            raise UsageError(
                f"Inclination must lie in [0, pi], got {self.inclination}"
            )
        for field in ("raan", "arg_perigee", "mean_anomaly"):
            value = getattr(self, field)
            if not 0.0 <= value < TWOPI:
                raise UsageError(f"{field} must lie in [0, 2*pi), got {value}")
        return self

    @property
    def period_minutes(self) -> float:
        """Orbital period implied by the published mean motion."""
        return MINUTES_PER_DAY / self.mean_motion

    @property
    def semi_major_axis_km(self) -> float:
        """Two-body semi-major axis from the published mean motion (WGS-72)."""
        n = self.mean_motion * TWOPI / 86400.0  # rad/s
        return (WGS72.mu / (n * n)) ** (1.0 / 3.0)

    @property
    def perigee_altitude_km(self) -> float:
        return self.semi_major_axis_km * (1.0 - self.eccentricity) - WGS72.radius_km

    @property
    def apogee_altitude_km(self) -> float:
        return self.semi_major_axis_km * (1.0 + self.eccentricity) - WGS72.radius_km

    @property
    def inclination_deg(self) -> float:
        return self.inclination * RAD2DEG


class EciVector(BaseModel):
    """Position (km) and velocity (km/s) in the TEME inertial frame at ``time``."""

    model_config = ConfigDict(frozen=True)

    time: datetime
    position: Tuple[float, float, float]
    velocity: Tuple[float, float, float] = (0.0, 0.0, 0.0)

    @field_validator("time")
    @classmethod
    def _time_in_utc(cls, value: datetime) -> datetime:
        return as_utc(value)

    @property
    def position_array(self) -> np.ndarray:
        return np.array(self.position)

    @property
    def velocity_array(self) -> np.ndarray:
        return np.array(self.velocity)

    @property
    def radius(self) -> float:
        """Distance from the Earth's center (km)."""
        return float(np.linalg.norm(self.position))

    @property
    def speed(self) -> float:
        return float(np.linalg.norm(self.velocity))


class GeodeticCoordinate(BaseModel):
    """
    Point referenced to the reference ellipsoid.

    Longitude is normalized to (-pi, pi] on construction.
    """

    model_config = ConfigDict(frozen=True)

    latitude: float
    longitude: float
    altitude: float = 0.0

    @field_validator("latitude")
    @classmethod
    def _check_latitude(cls, value: float) -> float:
        if not abs(value) <= math.pi / 2.0 + _LATITUDE_SLACK:
            raise UsageError(f"Latitude must lie in [-pi/2, pi/2], got {value}")
        return max(-math.pi / 2.0, min(math.pi / 2.0, value))

    @field_validator("longitude")
    @classmethod
    def _normalize_longitude(cls, value: float) -> float:
        if not math.isfinite(value):
            raise UsageError(f"Longitude must be finite, got {value}")
        return wrap_longitude(value)

    @classmethod
    def from_degrees(
        cls, latitude: float, longitude: float, altitude: float = 0.0
    ) -> "GeodeticCoordinate":
        return cls(
            latitude=latitude * DEG2RAD,
            longitude=longitude * DEG2RAD,
            altitude=altitude,
        )

    @property
    def latitude_deg(self) -> float:
        return self.latitude * RAD2DEG

    @property
    def longitude_deg(self) -> float:
        return self.longitude * RAD2DEG


class Prediction(NamedTuple):
    """Result of one prediction: inertial state and sub-satellite point."""

    eci: EciVector
    geodetic: GeodeticCoordinate


class TopocentricObservation(BaseModel):
    """A satellite as seen from a ground station."""

    model_config = ConfigDict(frozen=True)

    time: datetime
    azimuth: float  # radians, clockwise from north in [0, 2*pi)
    elevation: float  # radians
    range_km: float
    range_rate_km_s: float

    @property
    def azimuth_deg(self) -> float:
        return self.azimuth * RAD2DEG

    @property
    def elevation_deg(self) -> float:
        return self.elevation * RAD2DEG
