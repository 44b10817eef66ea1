"""
Satellite Position Prediction Package

Parses two-line element sets, propagates them with SGP4/SDP4 and converts the
result to geodetic coordinates, visibility footprints and ground-station look
angles.

Modules:
    tle_parser: TLE parsing, checksum validation and formatting
    propagator: SGP4 near-earth and SDP4 deep-space propagators
    deep_space: Lunar-solar and resonance terms for the deep-space branch
    coordinates: Sidereal time and ECI/geodetic conversions
    footprint: Visibility footprint geometry
    satellite: Satellite facade and batch prediction
    observer: Ground-station look angles

References:
    Vallado, D. A., Crawford, P., Hujsak, R., & Kelso, T. S. (2006).
    Revisiting Spacetrack Report #3. AIAA 2006-6753.
"""

from sat_predict.clock import FixedClock, SystemClock
from sat_predict.config import WGS72, WGS72OLD, WGS84, PredictionConfig, get_gravity_model
from sat_predict.coordinates import gmst, to_eci, to_geodetic, wrap_longitude
from sat_predict.exceptions import (
    ConvergenceError,
    DecayError,
    DegenerateOrbitError,
    ParseError,
    PropagationError,
    SatPredictError,
    UsageError,
)
from sat_predict.footprint import footprint_polygon, footprint_radius
from sat_predict.models import (
    EciVector,
    GeodeticCoordinate,
    OrbitalElements,
    Prediction,
    TopocentricObservation,
)
from sat_predict.observer import GroundStation
from sat_predict.propagator import (
    DeepSpacePropagator,
    NearEarthPropagator,
    Propagator,
    PropagatorState,
    create_propagator,
    propagate,
)
from sat_predict.satellite import BatchResult, Satellite, predict_batch
from sat_predict.tle_parser import elements_to_lines, parse_tle

__version__ = "1.0.0"
