"""
Satellite Facade

Binds one parsed element set and its propagator to a name and answers
"where is it" questions: ECI state and sub-satellite point, visibility
footprint, ground track, and batch prediction across many satellites.

Construction fails with ``ParseError`` on bad TLE text, so every
``Satellite`` that exists is valid. Per-call propagation errors are raised
from the call that hit them and leave the instance usable.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timedelta
from typing import List, NamedTuple, Optional, Sequence

from sat_predict.clock import SystemClock
from sat_predict.config import PredictionConfig, GravityModel
from sat_predict.coordinates import to_geodetic
from sat_predict.exceptions import PropagationError, SatPredictError, UsageError
from sat_predict.footprint import footprint_polygon
from sat_predict.models import GeodeticCoordinate, OrbitalElements, Prediction
from sat_predict.propagator import Propagator, create_propagator
from sat_predict.time_utils import as_utc
from sat_predict.tle_parser import parse_tle

logger = logging.getLogger(__name__)


class Satellite:
    """
    A named satellite ready for prediction.

    Args:
        name: Display name
        line1: First TLE line
        line2: Second TLE line
        clock: Source of "now" for calls without an instant (default: system clock)
        gravity: Gravity model (default: ``PredictionConfig.gravity()``)
    """

    def __init__(
        self,
        name: str,
        line1: str,
        line2: str,
        clock=None,
        gravity: Optional[GravityModel] = None,
    ):
        elements = parse_tle(line1, line2, name)
        self._bind(name, elements, clock, gravity)

    @classmethod
    def from_elements(
        cls,
        elements: OrbitalElements,
        clock=None,
        gravity: Optional[GravityModel] = None,
    ) -> "Satellite":
        """Build a satellite from already-parsed elements."""
        satellite = cls.__new__(cls)
        satellite._bind(elements.name, elements, clock, gravity)
        return satellite

    def _bind(self, name, elements, clock, gravity):
        self.name = name
        self.elements = elements
        self.gravity = gravity if gravity is not None else PredictionConfig.gravity()
        self.clock = clock if clock is not None else SystemClock()
        self.propagator: Propagator = create_propagator(elements, self.gravity)

    def __repr__(self):
        return (
            f"Satellite(name={self.name!r}, catalog_number={self.elements.catalog_number}, "
            f"method={self.propagator.method!r})"
        )

    @property
    def catalog_number(self) -> int:
        return self.elements.catalog_number

    @property
    def is_deep_space(self) -> bool:
        return self.propagator.state.is_deep_space

    def _resolve(self, instant: Optional[datetime]) -> datetime:
        if instant is None:
            return self.clock.now()
        return as_utc(instant)

    def predict(self, instant: Optional[datetime] = None) -> Prediction:
        """
        ECI state and sub-satellite point at ``instant`` (default: now).

        Raises:
            PropagationError: DecayError, ConvergenceError or
                DegenerateOrbitError for this instant only
        """
        instant = self._resolve(instant)
        try:
            eci = self.propagator.propagate(instant)
            geodetic = to_geodetic(eci, self.gravity)
        except PropagationError as e:
            logger.warning(
                f"Prediction failed for {self.name} ({self.catalog_number}) "
                f"at {instant.isoformat()}: SGP4 error {e.code}: {e}"
            )
            raise
        return Prediction(eci=eci, geodetic=geodetic)

    def get_footprint(
        self, instant: Optional[datetime] = None, num_points: Optional[int] = None
    ) -> List[GeodeticCoordinate]:
        """
        Visibility footprint around the sub-satellite point at ``instant``.

        Args:
            instant: Time of the prediction (default: now)
            num_points: Boundary points (default: ``PredictionConfig.footprint_points()``)
        """
        if num_points is None:
            num_points = PredictionConfig.footprint_points()
        prediction = self.predict(instant)
        return footprint_polygon(prediction.geodetic, num_points, self.gravity)

    def ground_track(
        self, start: datetime, end: datetime, step: timedelta
    ) -> List[Prediction]:
        """
        Predictions from ``start`` to ``end`` inclusive every ``step``.

        Raises:
            UsageError: if ``step`` is not positive or ``end`` precedes ``start``
            PropagationError: from the first instant that fails
        """
        start = as_utc(start)
        end = as_utc(end)
        if step <= timedelta(0):
            raise UsageError(f"Ground track step must be positive, got {step}")
        if end < start:
            raise UsageError("Ground track end precedes start")

        track = []
        instant = start
        while instant <= end:
            track.append(self.predict(instant))
            instant = instant + step
        return track


class BatchResult(NamedTuple):
    """Outcome of one satellite in ``predict_batch``."""

    satellite: Satellite
    prediction: Optional[Prediction]
    error: Optional[SatPredictError]

    @property
    def ok(self) -> bool:
        return self.error is None


def _predict_one(satellite: Satellite, instant: datetime) -> BatchResult:
    try:
        return BatchResult(satellite, satellite.predict(instant), None)
    except SatPredictError as e:
        return BatchResult(satellite, None, e)


def predict_batch(
    satellites: Sequence[Satellite],
    instant: Optional[datetime] = None,
    max_workers: Optional[int] = None,
    clock=None,
) -> List[BatchResult]:
    """
    Predict many satellites at one instant concurrently.

    Failures are recorded per satellite in the result instead of aborting
    the batch. Results keep the order of ``satellites``.

    Args:
        satellites: Satellites to predict
        instant: Common instant (default: now, read once for the whole batch)
        max_workers: Thread pool size (default: ``PredictionConfig.batch_workers()``)
        clock: Source of "now" when ``instant`` is omitted (default: the
            first satellite's clock)
    """
    if max_workers is None:
        max_workers = PredictionConfig.batch_workers()
    if max_workers < 1:
        raise UsageError(f"max_workers must be at least 1, got {max_workers}")
    if not satellites:
        return []

    if instant is None:
        if clock is None:
            clock = satellites[0].clock
        instant = clock.now()
    instant = as_utc(instant)

    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        results = list(executor.map(lambda sat: _predict_one(sat, instant), satellites))

    failures = sum(1 for result in results if not result.ok)
    logger.info(
        f"Batch prediction at {instant.isoformat()}: "
        f"{len(results) - failures} succeeded, {failures} failed"
    )
    return results
