"""
Unit Tests for the TLE Parser

Run with:
    python -m pytest tests/test_tle_parser.py -v
"""

import math
import unittest
from datetime import datetime, timezone

from sat_predict.exceptions import ParseError, UsageError
from sat_predict.models import OrbitalElements
from sat_predict.tle_parser import (
    compute_checksum,
    decode_catalog_number,
    decode_exponent,
    elements_to_lines,
    encode_catalog_number,
    format_exponent,
    parse_tle,
    verify_checksum,
)

ISS_NAME = "ISS (ZARYA)"
ISS_LINE1 = "1 25544U 98067A   23259.57580000  .00012022  00000-0  21844-3 0  9995"
ISS_LINE2 = "2 25544  51.6416 220.9944 0004263 122.0101 312.2755 15.49541986415598"

ZERO_LINE1 = "1 90001U 24001A   24001.50000000  .00000000  00000-0  00000-0 0  9999"
ZERO_LINE2 = "2 90001   0.0000   0.0000 0000000   0.0000   0.0000 15.50000000    14"


class TestTLEParser(unittest.TestCase):
    """Test cases for TLE parsing"""

    def setUp(self):
        self.elements = parse_tle(ISS_LINE1, ISS_LINE2, ISS_NAME)

    def test_parse_tle_basic(self):
        """Test basic TLE parsing"""
        self.assertIsInstance(self.elements, OrbitalElements)
        self.assertEqual(self.elements.catalog_number, 25544)
        self.assertEqual(self.elements.name, ISS_NAME)
        self.assertEqual(self.elements.classification, "U")
        self.assertEqual(self.elements.international_designator, "98067A")
        self.assertAlmostEqual(self.elements.inclination_deg, 51.6416, places=10)
        self.assertAlmostEqual(self.elements.eccentricity, 0.0004263, places=12)
        self.assertAlmostEqual(self.elements.mean_motion, 15.49541986, places=10)
        self.assertAlmostEqual(math.degrees(self.elements.raan), 220.9944, places=10)
        self.assertAlmostEqual(math.degrees(self.elements.arg_perigee), 122.0101, places=10)
        self.assertAlmostEqual(math.degrees(self.elements.mean_anomaly), 312.2755, places=10)

    def test_drag_and_bookkeeping_fields(self):
        self.assertAlmostEqual(self.elements.mean_motion_dot, 0.00012022, places=12)
        self.assertEqual(self.elements.mean_motion_ddot, 0.0)
        self.assertAlmostEqual(self.elements.bstar, 2.1844e-4, places=12)
        self.assertEqual(self.elements.ephemeris_type, 0)
        self.assertEqual(self.elements.element_set_number, 999)
        self.assertEqual(self.elements.revolution_number, 41559)
        self.assertEqual(self.elements.line1, ISS_LINE1)
        self.assertEqual(self.elements.line2, ISS_LINE2)

    def test_epoch(self):
        """Day 259.5758 of 2023 is 16 September 13:49:09.12 UTC"""
        expected = datetime(2023, 9, 16, 13, 49, 9, 120000, tzinfo=timezone.utc)
        delta = abs((self.elements.epoch - expected).total_seconds())
        self.assertLess(delta, 1e-3)
        self.assertEqual(self.elements.epoch.tzinfo, timezone.utc)

    def test_default_name(self):
        elements = parse_tle(ISS_LINE1, ISS_LINE2)
        self.assertEqual(elements.name, "Unnamed")

    def test_trailing_newline_accepted(self):
        elements = parse_tle(ISS_LINE1 + "\n", ISS_LINE2 + "\r\n")
        self.assertEqual(elements.catalog_number, 25544)

    def test_zero_eccentricity_and_inclination(self):
        elements = parse_tle(ZERO_LINE1, ZERO_LINE2)
        self.assertEqual(elements.eccentricity, 0.0)
        self.assertEqual(elements.inclination, 0.0)
        self.assertEqual(elements.bstar, 0.0)

    def test_elements_are_immutable(self):
        with self.assertRaises(Exception):
            self.elements.eccentricity = 0.5

    def test_derived_properties(self):
        self.assertAlmostEqual(self.elements.period_minutes, 1440.0 / 15.49541986, places=9)
        # ISS orbits roughly 400-430 km up
        self.assertGreater(self.elements.perigee_altitude_km, 380.0)
        self.assertLess(self.elements.apogee_altitude_km, 450.0)


class TestChecksum(unittest.TestCase):
    """Checksum computation and corruption detection"""

    def test_compute_checksum(self):
        self.assertEqual(compute_checksum(ISS_LINE1), 5)
        self.assertEqual(compute_checksum(ISS_LINE2), 8)

    def test_minus_counts_as_one(self):
        # "00000-0" contributes 1 for the minus sign
        self.assertEqual(compute_checksum("1 -"), 2)

    def test_verify_checksum(self):
        verify_checksum(ISS_LINE1)
        with self.assertRaises(ParseError) as ctx:
            verify_checksum(ISS_LINE1[:68] + "4", 1)
        self.assertEqual(ctx.exception.rule, "checksum")
        self.assertEqual(ctx.exception.line_number, 1)

    def test_single_digit_corruption_detected(self):
        """Changing any one digit of either line must fail to parse"""
        for line_index, line in enumerate((ISS_LINE1, ISS_LINE2)):
            for column, char in enumerate(line):
                if not char.isdigit():
                    continue
                corrupted = line[:column] + str((int(char) + 1) % 10) + line[column + 1:]
                lines = [ISS_LINE1, ISS_LINE2]
                lines[line_index] = corrupted
                with self.subTest(line=line_index + 1, column=column + 1):
                    with self.assertRaises(ParseError):
                        parse_tle(*lines)

    def test_checksum_rule_reported(self):
        corrupted = ISS_LINE2[:22] + "5" + ISS_LINE2[23:]
        with self.assertRaises(ParseError) as ctx:
            parse_tle(ISS_LINE1, corrupted)
        self.assertEqual(ctx.exception.rule, "checksum")
        self.assertEqual(ctx.exception.line_number, 2)


class TestValidation(unittest.TestCase):
    """Structural and range validation"""

    def assertRule(self, rule, line1, line2):
        with self.assertRaises(ParseError) as ctx:
            parse_tle(line1, line2)
        self.assertEqual(ctx.exception.rule, rule)
        return ctx.exception

    def test_short_line(self):
        error = self.assertRule("length", ISS_LINE1[:68], ISS_LINE2)
        self.assertEqual(error.line_number, 1)

    def test_long_line(self):
        self.assertRule("length", ISS_LINE1, ISS_LINE2 + " ")

    def test_swapped_lines(self):
        self.assertRule("line_number", ISS_LINE2, ISS_LINE1)

    def test_catalog_mismatch(self):
        line2 = "2 90002   0.0000   0.0000 0000000   0.0000   0.0000  1.00273791    14"
        self.assertRule("catalog_mismatch", ZERO_LINE1, line2)

    def test_inclination_out_of_range(self):
        line2 = "2 90001 190.0000   0.0000 0000000   0.0000   0.0000 15.50000000    14"
        error = self.assertRule("range", ZERO_LINE1, line2)
        self.assertIn("inclination", str(error))

    def test_epoch_day_out_of_range(self):
        line1 = "1 90001U 24001A   24000.50000000  .00000000  00000-0  00000-0 0  9998"
        self.assertRule("range", line1, ZERO_LINE2)

    def test_malformed_field(self):
        line2 = "2 90001   0.0000   0.0000 00a0000   0.0000   0.0000 15.50000000    14"
        error = self.assertRule("field", ZERO_LINE1, line2)
        self.assertIn("eccentricity", str(error))

    def test_non_numeric_literals_rejected(self):
        """Text that Python's float()/int() would accept is still malformed"""
        cases = [
            (2, 52, 63, "        nan", "mean motion"),
            (2, 52, 63, "        inf", "mean motion"),
            (2, 52, 63, "    1.5e+01", "mean motion"),
            (2, 8, 16, "   1_0.0", "inclination"),
            (2, 63, 68, "41_59", "revolution number"),
            (1, 33, 43, "       nan", "mean motion derivative"),
            (1, 20, 32, "0_1.50000000", "epoch day"),
            (1, 2, 7, "9_001", "catalog number"),
        ]
        for line_number, start, end, text, label in cases:
            lines = [ZERO_LINE1, ZERO_LINE2]
            line = lines[line_number - 1]
            line = line[:start] + text + line[end:68]
            lines[line_number - 1] = line + str(compute_checksum(line))
            with self.subTest(text=text, label=label):
                error = self.assertRule("field", *lines)
                self.assertIn(label, str(error))
                self.assertEqual(error.line_number, line_number)


class TestExponentFields(unittest.TestCase):
    """Compact scientific notation"""

    def test_decode(self):
        self.assertAlmostEqual(decode_exponent(" 12808-3"), 0.12808e-3, places=15)
        self.assertAlmostEqual(decode_exponent("-11606-4"), -0.11606e-4, places=15)
        self.assertAlmostEqual(decode_exponent(" 14311-1"), 0.014311, places=15)
        self.assertEqual(decode_exponent(" 00000-0"), 0.0)
        self.assertEqual(decode_exponent(" 00000+0"), 0.0)

    def test_decode_rejects_garbage(self):
        with self.assertRaises(ValueError):
            decode_exponent(" 1a808-3")

    def test_format(self):
        self.assertEqual(format_exponent(2.1844e-4), " 21844-3")
        self.assertEqual(format_exponent(-1.1606e-5), "-11606-4")
        self.assertEqual(format_exponent(0.0), " 00000-0")

    def test_format_out_of_range(self):
        with self.assertRaises(UsageError):
            format_exponent(1e20)


class TestCatalogNumbers(unittest.TestCase):
    """Five-digit and Alpha-5 catalog numbers"""

    def test_numeric(self):
        self.assertEqual(decode_catalog_number("25544"), 25544)
        self.assertEqual(encode_catalog_number(5), "00005")

    def test_alpha5(self):
        self.assertEqual(decode_catalog_number("A0000"), 100000)
        self.assertEqual(decode_catalog_number("Z9999"), 339999)
        self.assertEqual(encode_catalog_number(100000), "A0000")
        self.assertEqual(encode_catalog_number(339999), "Z9999")

    def test_alpha5_skips_i_and_o(self):
        with self.assertRaises(ValueError):
            decode_catalog_number("I0000")
        self.assertEqual(decode_catalog_number("J0000"), 180000)


class TestTLEFormatting(unittest.TestCase):
    """Re-emitting elements as TLE text"""

    def test_reconstruct_iss(self):
        elements = parse_tle(ISS_LINE1, ISS_LINE2, ISS_NAME)
        line1, line2 = elements_to_lines(elements)
        self.assertEqual(line1, ISS_LINE1)
        self.assertEqual(line2, ISS_LINE2)

    def test_modified_elements_get_fresh_checksums(self):
        elements = parse_tle(ISS_LINE1, ISS_LINE2, ISS_NAME)
        modified = elements.model_copy(update={"bstar": elements.bstar * 1.5})
        line1, line2 = elements_to_lines(modified)
        self.assertEqual(len(line1), 69)
        reparsed = parse_tle(line1, line2)
        self.assertAlmostEqual(reparsed.bstar, 3.2766e-4, places=12)


if __name__ == "__main__":
    unittest.main()
