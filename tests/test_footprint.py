"""
Unit Tests for Footprint Geometry

Run with:
    python -m pytest tests/test_footprint.py -v
"""

import math
import unittest

from sat_predict.angles import wrap_longitude
from sat_predict.config import WGS72
from sat_predict.exceptions import UsageError
from sat_predict.footprint import footprint_polygon, footprint_radius
from sat_predict.models import GeodeticCoordinate


def central_angle(a, b):
    """Great-circle angle between two points (haversine)."""
    dlat = b.latitude - a.latitude
    dlon = b.longitude - a.longitude
    h = (
        math.sin(dlat / 2.0) ** 2
        + math.cos(a.latitude) * math.cos(b.latitude) * math.sin(dlon / 2.0) ** 2
    )
    return 2.0 * math.asin(min(1.0, math.sqrt(h)))


class TestFootprintRadius(unittest.TestCase):

    def test_leo(self):
        expected = math.acos(WGS72.radius_km / (WGS72.radius_km + 420.0))
        self.assertAlmostEqual(footprint_radius(420.0), expected, places=15)
        # About 20.25 degrees for the ISS
        self.assertAlmostEqual(math.degrees(footprint_radius(420.0)), 20.25, delta=0.05)

    def test_geostationary(self):
        self.assertAlmostEqual(math.degrees(footprint_radius(35786.0)), 81.3, delta=0.05)

    def test_zero_altitude(self):
        self.assertEqual(footprint_radius(0.0), 0.0)

    def test_negative_altitude_is_clamped(self):
        with self.assertLogs("sat_predict.footprint", level="WARNING"):
            self.assertEqual(footprint_radius(-5.0), 0.0)


class TestFootprintPolygon(unittest.TestCase):

    def setUp(self):
        self.center = GeodeticCoordinate(latitude=0.0, longitude=0.0, altitude=420.0)

    def test_default_point_count(self):
        polygon = footprint_polygon(self.center)
        self.assertEqual(len(polygon), 60)
        for point in polygon:
            self.assertIsInstance(point, GeodeticCoordinate)
            self.assertEqual(point.altitude, 0.0)

    def test_custom_point_count(self):
        for count in (3, 7, 360):
            self.assertEqual(len(footprint_polygon(self.center, count)), count)

    def test_too_few_points(self):
        for count in (-1, 0, 1, 2):
            with self.assertRaises(UsageError):
                footprint_polygon(self.center, count)

    def test_non_integer_point_count(self):
        with self.assertRaises(UsageError):
            footprint_polygon(self.center, 10.5)

    def test_first_point_due_north(self):
        polygon = footprint_polygon(self.center, 8)
        d = footprint_radius(420.0)
        self.assertAlmostEqual(polygon[0].latitude, d, places=12)
        self.assertAlmostEqual(polygon[0].longitude, 0.0, places=12)
        # Quarter turn is due east
        self.assertAlmostEqual(polygon[2].latitude, 0.0, places=12)
        self.assertAlmostEqual(polygon[2].longitude, d, places=12)

    def test_symmetric_about_meridian(self):
        polygon = footprint_polygon(self.center, 60)
        n = len(polygon)
        for i in range(1, n):
            mirror = polygon[n - i]
            self.assertAlmostEqual(polygon[i].latitude, mirror.latitude, places=12)
            self.assertAlmostEqual(polygon[i].longitude, -mirror.longitude, places=12)

    def test_points_on_circle(self):
        center = GeodeticCoordinate.from_degrees(37.0, -100.0, 800.0)
        d = footprint_radius(800.0)
        for point in footprint_polygon(center, 36):
            self.assertAlmostEqual(central_angle(center, point), d, places=9)

    def test_crosses_antimeridian(self):
        center = GeodeticCoordinate.from_degrees(10.0, 178.0, 1000.0)
        polygon = footprint_polygon(center, 72)
        longitudes = [p.longitude for p in polygon]
        self.assertTrue(all(-math.pi < lon <= math.pi for lon in longitudes))
        self.assertTrue(any(lon < 0.0 for lon in longitudes))
        self.assertTrue(any(lon > 0.0 for lon in longitudes))

    def test_crosses_pole(self):
        center = GeodeticCoordinate.from_degrees(85.0, 30.0, 2000.0)
        d = footprint_radius(2000.0)
        polygon = footprint_polygon(center, 90)
        self.assertEqual(len(polygon), 90)
        for point in polygon:
            self.assertLessEqual(abs(point.latitude), math.pi / 2.0)
            self.assertGreater(point.longitude, -math.pi)
            self.assertLessEqual(point.longitude, math.pi)
            self.assertAlmostEqual(central_angle(center, point), d, places=9)
        # The ring encircles the pole, so it spans every longitude band
        bands = {min(3, int((p.longitude + math.pi) // (math.pi / 2.0))) for p in polygon}
        self.assertEqual(len(bands), 4)

    def test_centered_exactly_on_pole(self):
        d = footprint_radius(500.0)
        for sign in (1.0, -1.0):
            center = GeodeticCoordinate.from_degrees(sign * 90.0, 0.0, 500.0)
            polygon = footprint_polygon(center, 4)
            with self.subTest(pole=sign):
                longitudes = [round(math.degrees(p.longitude), 6) for p in polygon]
                self.assertEqual(len(set(longitudes)), 4)
                for point in polygon:
                    self.assertAlmostEqual(
                        point.latitude, sign * (math.pi / 2.0 - d), places=12
                    )
                    self.assertAlmostEqual(central_angle(center, point), d, places=9)

    def test_pole_ring_follows_bearings(self):
        center = GeodeticCoordinate.from_degrees(90.0, 0.0, 500.0)
        polygon = footprint_polygon(center, 36)
        # From the north pole every bearing b points down meridian pi - b
        for i, point in enumerate(polygon):
            bearing = 2.0 * math.pi * i / 36
            expected = wrap_longitude(math.pi - bearing)
            self.assertAlmostEqual(
                wrap_longitude(point.longitude - expected), 0.0, places=9
            )

    def test_empty_footprint_at_zero_altitude(self):
        center = GeodeticCoordinate.from_degrees(12.0, 34.0, 0.0)
        for point in footprint_polygon(center, 5):
            self.assertAlmostEqual(point.latitude, center.latitude, places=12)
            self.assertAlmostEqual(point.longitude, center.longitude, places=12)


if __name__ == "__main__":
    unittest.main()
