"""
Unit Tests for Ground Station Observations

Run with:
    python -m pytest tests/test_observer.py -v
"""

import math
import unittest
from datetime import timedelta

from sat_predict.exceptions import UsageError
from sat_predict.models import GeodeticCoordinate
from sat_predict.observer import GroundStation
from sat_predict.satellite import Satellite

ISS_LINE1 = "1 25544U 98067A   23259.57580000  .00012022  00000-0  21844-3 0  9995"
ISS_LINE2 = "2 25544  51.6416 220.9944 0004263 122.0101 312.2755 15.49541986415598"


class TestGroundStation(unittest.TestCase):

    def setUp(self):
        self.satellite = Satellite("ISS", ISS_LINE1, ISS_LINE2)
        self.instant = self.satellite.elements.epoch + timedelta(minutes=20)
        self.subpoint = self.satellite.predict(self.instant).geodetic

    def test_overhead_pass(self):
        station = GroundStation(
            GeodeticCoordinate(
                latitude=self.subpoint.latitude, longitude=self.subpoint.longitude
            )
        )
        observation = station.observe(self.satellite, self.instant)
        self.assertAlmostEqual(observation.elevation, math.pi / 2.0, places=6)
        self.assertAlmostEqual(observation.range_km, self.subpoint.altitude, places=4)
        self.assertTrue(station.is_visible(self.satellite, self.instant))

    def test_antipodal_station(self):
        station = GroundStation(
            GeodeticCoordinate(
                latitude=-self.subpoint.latitude,
                longitude=self.subpoint.longitude + math.pi,
            )
        )
        observation = station.observe(self.satellite, self.instant)
        self.assertLess(observation.elevation, 0.0)
        self.assertGreater(observation.range_km, 12000.0)
        self.assertFalse(station.is_visible(self.satellite, self.instant))

    def test_angle_ranges(self):
        station = GroundStation(GeodeticCoordinate.from_degrees(51.4779, -0.0015, 0.046))
        for minutes in range(0, 180, 7):
            instant = self.instant + timedelta(minutes=minutes)
            observation = station.observe(self.satellite, instant)
            with self.subTest(minutes=minutes):
                self.assertGreaterEqual(observation.azimuth, 0.0)
                self.assertLess(observation.azimuth, 2.0 * math.pi)
                self.assertGreaterEqual(observation.elevation, -math.pi / 2.0)
                self.assertLessEqual(observation.elevation, math.pi / 2.0)
                self.assertEqual(observation.time, instant)

    def test_range_rate_matches_finite_difference(self):
        station = GroundStation(GeodeticCoordinate.from_degrees(40.0, -75.0, 0.1))
        dt = 0.5
        before = station.observe(self.satellite, self.instant - timedelta(seconds=dt))
        now = station.observe(self.satellite, self.instant)
        after = station.observe(self.satellite, self.instant + timedelta(seconds=dt))
        estimate = (after.range_km - before.range_km) / (2.0 * dt)
        self.assertAlmostEqual(now.range_rate_km_s, estimate, places=3)
        # A LEO satellite never moves faster than about 8 km/s relative to the ground
        self.assertLess(abs(now.range_rate_km_s), 8.0)

    def test_elevation_mask(self):
        location = GeodeticCoordinate(
            latitude=self.subpoint.latitude, longitude=self.subpoint.longitude
        )
        station = GroundStation(location, min_elevation=math.pi / 2.0)
        # Directly overhead can still fall a hair below exactly pi/2
        observation = station.observe(self.satellite, self.instant)
        self.assertEqual(
            station.is_visible(self.satellite, self.instant),
            observation.elevation >= math.pi / 2.0,
        )

    def test_invalid_elevation_mask(self):
        location = GeodeticCoordinate.from_degrees(0.0, 0.0)
        for mask in (2.0, -2.0):
            with self.assertRaises(UsageError):
                GroundStation(location, min_elevation=mask)


if __name__ == "__main__":
    unittest.main()
