"""
Unit Tests for the Satellite Facade and Batch Prediction

Run with:
    python -m pytest tests/test_satellite.py -v
"""

import math
import unittest
from datetime import timedelta
from unittest import mock

from sat_predict.clock import FixedClock
from sat_predict.config import WGS84, PredictionConfig
from sat_predict.exceptions import DecayError, ParseError, UsageError
from sat_predict.models import Prediction
from sat_predict.satellite import Satellite, predict_batch
from sat_predict.tle_parser import parse_tle

ISS_LINE1 = "1 25544U 98067A   23259.57580000  .00012022  00000-0  21844-3 0  9995"
ISS_LINE2 = "2 25544  51.6416 220.9944 0004263 122.0101 312.2755 15.49541986415598"

EQUATORIAL = (
    "1 90001U 24001A   24001.50000000  .00000000  00000-0  00000-0 0  9999",
    "2 90001   0.0000   0.0000 0000000   0.0000   0.0000 15.50000000    14",
)
GEO = (
    "1 90002U 24002A   24001.50000000  .00000000  00000-0  00000-0 0  9991",
    "2 90002   0.0000   0.0000 0000000   0.0000   0.0000  1.00273791    14",
)
DECAYING = (
    "1 90006U 24006A   24001.50000000  .00000000  00000-0  50000-2 0  9996",
    "2 90006  51.6400 100.0000 0005000  90.0000 270.0000 16.40000000    19",
)


class TestSatellite(unittest.TestCase):
    """Single-satellite prediction"""

    def setUp(self):
        self.satellite = Satellite("ISS (ZARYA)", ISS_LINE1, ISS_LINE2)
        self.epoch = self.satellite.elements.epoch

    def test_construction(self):
        self.assertEqual(self.satellite.name, "ISS (ZARYA)")
        self.assertEqual(self.satellite.catalog_number, 25544)
        self.assertFalse(self.satellite.is_deep_space)
        self.assertEqual(self.satellite.gravity, PredictionConfig.gravity())
        self.assertIn("25544", repr(self.satellite))

    def test_bad_tle_fails_at_construction(self):
        with self.assertRaises(ParseError):
            Satellite("ISS", ISS_LINE1[:68] + "4", ISS_LINE2)

    def test_predict_at_epoch(self):
        prediction = self.satellite.predict(self.epoch)
        self.assertIsInstance(prediction, Prediction)
        self.assertEqual(prediction.eci.time, self.epoch)
        self.assertGreater(prediction.geodetic.altitude, 380.0)
        self.assertLess(prediction.geodetic.altitude, 450.0)
        # Sub-satellite latitude never exceeds the inclination
        self.assertLessEqual(abs(prediction.geodetic.latitude_deg), 51.7)

    def test_default_instant_comes_from_clock(self):
        instant = self.epoch + timedelta(hours=1)
        satellite = Satellite("ISS", ISS_LINE1, ISS_LINE2, clock=FixedClock(instant))
        self.assertEqual(satellite.predict(), satellite.predict(instant))

    def test_clock_advance(self):
        clock = FixedClock(self.epoch)
        satellite = Satellite("ISS", ISS_LINE1, ISS_LINE2, clock=clock)
        first = satellite.predict()
        clock.advance(timedelta(minutes=10))
        second = satellite.predict()
        self.assertEqual(second.eci.time - first.eci.time, timedelta(minutes=10))
        self.assertNotEqual(first.eci.position, second.eci.position)

    def test_naive_instant_is_utc(self):
        naive = self.epoch.replace(tzinfo=None) + timedelta(minutes=5)
        aware = self.epoch + timedelta(minutes=5)
        self.assertEqual(self.satellite.predict(naive), self.satellite.predict(aware))

    def test_gravity_override(self):
        satellite = Satellite("ISS", ISS_LINE1, ISS_LINE2, gravity=WGS84)
        self.assertEqual(satellite.gravity, WGS84)
        instant = self.epoch + timedelta(minutes=30)
        a = self.satellite.predict(instant).eci.position_array
        b = satellite.predict(instant).eci.position_array
        self.assertGreater(math.dist(a, b), 0.0)

    def test_from_elements(self):
        elements = parse_tle(ISS_LINE1, ISS_LINE2, "ISS (ZARYA)")
        satellite = Satellite.from_elements(elements)
        instant = self.epoch + timedelta(minutes=45)
        self.assertEqual(satellite.name, "ISS (ZARYA)")
        self.assertEqual(satellite.predict(instant), self.satellite.predict(instant))


class TestFootprintAndTrack(unittest.TestCase):

    def setUp(self):
        self.satellite = Satellite("ISS", ISS_LINE1, ISS_LINE2)
        self.epoch = self.satellite.elements.epoch

    def test_default_footprint(self):
        footprint = self.satellite.get_footprint(self.epoch)
        self.assertEqual(len(footprint), PredictionConfig.footprint_points())

    def test_footprint_point_count(self):
        self.assertEqual(len(self.satellite.get_footprint(self.epoch, 12)), 12)
        with self.assertRaises(UsageError):
            self.satellite.get_footprint(self.epoch, 2)

    def test_ground_track_inclusive(self):
        track = self.satellite.ground_track(
            self.epoch, self.epoch + timedelta(minutes=10), timedelta(minutes=1)
        )
        self.assertEqual(len(track), 11)
        self.assertEqual(track[0].eci.time, self.epoch)
        self.assertEqual(track[-1].eci.time, self.epoch + timedelta(minutes=10))

    def test_ground_track_single_point(self):
        track = self.satellite.ground_track(self.epoch, self.epoch, timedelta(minutes=1))
        self.assertEqual(len(track), 1)

    def test_ground_track_bad_arguments(self):
        end = self.epoch + timedelta(minutes=10)
        with self.assertRaises(UsageError):
            self.satellite.ground_track(self.epoch, end, timedelta(0))
        with self.assertRaises(UsageError):
            self.satellite.ground_track(self.epoch, end, timedelta(minutes=-1))
        with self.assertRaises(UsageError):
            self.satellite.ground_track(end, self.epoch, timedelta(minutes=1))


class TestPropagationFailures(unittest.TestCase):
    """Errors are per call, not per satellite"""

    def setUp(self):
        self.satellite = Satellite("DECAYING", *DECAYING)
        self.epoch = self.satellite.elements.epoch

    def test_decay_then_recover(self):
        with self.assertLogs("sat_predict.satellite", level="WARNING"):
            with self.assertRaises(DecayError):
                self.satellite.predict(self.epoch + timedelta(days=30))
        prediction = self.satellite.predict(self.epoch)
        self.assertGreater(prediction.geodetic.altitude, 0.0)

    def test_footprint_propagates_error(self):
        with self.assertRaises(DecayError):
            self.satellite.get_footprint(self.epoch + timedelta(days=30))


class TestPredictBatch(unittest.TestCase):
    """Concurrent prediction across satellites"""

    def setUp(self):
        self.equatorial = Satellite("EQUATORIAL", *EQUATORIAL)
        self.geo = Satellite("GEO", *GEO)
        self.decaying = Satellite("DECAYING", *DECAYING)
        self.instant = self.equatorial.elements.epoch + timedelta(days=30)

    def test_failures_are_recorded_in_order(self):
        satellites = [self.equatorial, self.decaying, self.geo]
        results = predict_batch(satellites, self.instant, max_workers=2)
        self.assertEqual([r.satellite for r in results], satellites)
        self.assertEqual([r.ok for r in results], [True, False, True])
        self.assertIsInstance(results[1].error, DecayError)
        self.assertIsNone(results[1].prediction)
        self.assertIsNotNone(results[0].prediction)

    def test_matches_sequential(self):
        satellites = [self.equatorial, self.geo] * 10
        results = predict_batch(satellites, self.instant, max_workers=4)
        self.assertEqual(len(results), 20)
        for satellite, result in zip(satellites, results):
            self.assertEqual(result.prediction, satellite.predict(self.instant))

    def test_empty_batch(self):
        self.assertEqual(predict_batch([], self.instant), [])

    def test_bad_worker_count(self):
        with self.assertRaises(UsageError):
            predict_batch([self.geo], self.instant, max_workers=0)

    def test_non_propagation_errors_are_recorded(self):
        with mock.patch.object(
            self.geo, "predict", side_effect=UsageError("bad coordinate")
        ):
            results = predict_batch([self.equatorial, self.geo], self.instant)
        self.assertTrue(results[0].ok)
        self.assertFalse(results[1].ok)
        self.assertIsInstance(results[1].error, UsageError)

    def test_default_instant_from_first_satellite_clock(self):
        clock = FixedClock(self.instant)
        equatorial = Satellite("EQUATORIAL", *EQUATORIAL, clock=clock)
        results = predict_batch([equatorial, self.geo])
        for result in results:
            self.assertEqual(result.prediction.eci.time, self.instant)

    def test_explicit_clock(self):
        instant = self.instant + timedelta(hours=2)
        results = predict_batch([self.equatorial, self.geo], clock=FixedClock(instant))
        self.assertEqual(
            [r.prediction for r in results],
            [self.equatorial.predict(instant), self.geo.predict(instant)],
        )

    def test_worker_count_from_environment(self):
        with mock.patch.dict("os.environ", {"SAT_PREDICT_BATCH_WORKERS": "many"}):
            with self.assertRaises(UsageError):
                predict_batch([self.geo], self.instant)
        with mock.patch.dict("os.environ", {"SAT_PREDICT_BATCH_WORKERS": "2"}):
            self.assertTrue(predict_batch([self.geo], self.instant)[0].ok)

    def test_summary_logged(self):
        with self.assertLogs("sat_predict.satellite", level="INFO") as logs:
            predict_batch([self.geo, self.decaying], self.instant)
        self.assertTrue(any("1 succeeded, 1 failed" in line for line in logs.output))


if __name__ == "__main__":
    unittest.main()
