"""
Unit Tests for TLE Parsing

Run with:
    python -m pytest tests/test_tle_parser.py -v
"""

import unittest
from datetime import datetime, timezone

from orbit_tracker.errors import ParseError
from orbit_tracker.tle_parser import (
    TLEParser,
    checksum,
    epoch_to_datetime,
    parse_catalog_number,
)
from tests.tle_samples import (
    ISS_LINE1,
    ISS_LINE2,
    ISS_NAME,
    ISS_ROUND_EPOCH_LINE1,
    NOAA_LINE2,
    ROUND_EPOCH,
)


class TestFieldHelpers(unittest.TestCase):
    """Test suite for the fixed-width field helpers."""

    def test_checksum(self):
        """Test modulo-10 checksum against column 69."""
        self.assertEqual(checksum(ISS_LINE1), int(ISS_LINE1[68]))
        self.assertEqual(checksum(ISS_LINE2), int(ISS_LINE2[68]))

    def test_catalog_numbers(self):
        """Test plain and Alpha-5 catalog numbers."""
        self.assertEqual(parse_catalog_number("25544"), 25544)
        self.assertEqual(parse_catalog_number("00005"), 5)
        self.assertEqual(parse_catalog_number("A0001"), 100001)
        self.assertEqual(parse_catalog_number("Z9999"), 339999)

        with self.assertRaises(ValueError):
            parse_catalog_number("I0001")
        with self.assertRaises(ValueError):
            parse_catalog_number("     ")

    def test_epoch_conversion(self):
        """Test two-digit year and fractional day-of-year conversion."""
        self.assertEqual(epoch_to_datetime(98, 1.0), datetime(1998, 1, 1, tzinfo=timezone.utc))
        self.assertEqual(epoch_to_datetime(0, 1.5), datetime(2000, 1, 1, 12, tzinfo=timezone.utc))

        epoch = epoch_to_datetime(24, 36.56041667)
        self.assertLess(abs((epoch - ROUND_EPOCH).total_seconds()), 0.01)


class TestTLEParser(unittest.TestCase):
    """Test suite for TLE parser."""

    def setUp(self):
        """Set up test fixtures."""
        self.parser = TLEParser()

    def test_tle_parsing(self):
        """Test TLE parsing extracts correct values."""
        tle_data = self.parser.parse_tle(ISS_LINE1, ISS_LINE2, ISS_NAME)

        self.assertEqual(tle_data["name"], ISS_NAME)
        self.assertEqual(tle_data["norad_id"], 25544)
        self.assertEqual(tle_data["classification"], "U")
        self.assertEqual(tle_data["international_designator"], "98067A")
        self.assertEqual(tle_data["epoch_year"], 24)
        self.assertAlmostEqual(tle_data["inclination_deg"], 51.6401, places=4)
        self.assertAlmostEqual(tle_data["raan_deg"], 195.9620, places=4)
        self.assertAlmostEqual(tle_data["eccentricity"], 0.0004567, places=7)
        self.assertAlmostEqual(tle_data["mean_motion_rev_per_day"], 15.49651543, places=8)
        self.assertEqual(tle_data["epoch_datetime"].date(), ROUND_EPOCH.date())

    def test_default_name(self):
        """Test unnamed blocks get a name from the catalog number."""
        tle_data = self.parser.parse_tle(ISS_LINE1, ISS_LINE2)
        self.assertEqual(tle_data["name"], "SAT_25544")

    def test_malformed_lines(self):
        """Test that layout errors raise ParseError."""
        bad_cases = [
            (ISS_LINE2, ISS_LINE2),  # wrong line number
            (ISS_LINE1, ISS_LINE1),
            (ISS_LINE1[:60], ISS_LINE2),  # truncated
            (ISS_LINE1, NOAA_LINE2),  # catalog numbers differ
            (ISS_LINE1[:20] + "000.00000000" + ISS_LINE1[32:], ISS_LINE2),  # day 0
            (ISS_LINE1, ISS_LINE2[:52] + " 0.00000000" + ISS_LINE2[63:]),  # no mean motion
            (ISS_LINE1[:20] + "xxx.xxxxxxxx" + ISS_LINE1[32:], ISS_LINE2),
        ]
        for line1, line2 in bad_cases:
            with self.subTest(line1=line1, line2=line2):
                with self.assertRaises(ParseError) as ctx:
                    self.parser.parse_tle(line1, line2, "BROKEN")
                self.assertEqual(ctx.exception.name, "BROKEN")

    def test_parse_error_is_value_error(self):
        """Test ParseError can be caught as ValueError."""
        with self.assertRaises(ValueError):
            self.parser.parse_tle("junk", ISS_LINE2)

    def test_checksum_verification(self):
        """Test checksum mismatches are only rejected when verification is on."""
        corrupted = ISS_LINE1[:68] + str((int(ISS_LINE1[68]) + 1) % 10)

        self.parser.parse_tle(corrupted, ISS_LINE2)

        strict = TLEParser(verify_checksum=True)
        strict.parse_tle(ISS_LINE1, ISS_LINE2)
        with self.assertRaises(ParseError):
            strict.parse_tle(corrupted, ISS_LINE2)

    def test_iter_blocks(self):
        """Test block splitting ignores blank lines and re-synchronizes."""
        text = "\n".join([
            "",
            "BROKEN SAT",
            ISS_LINE1,
            "   ",
            ISS_NAME,
            ISS_ROUND_EPOCH_LINE1,
            ISS_LINE2,
            "",
            "TRAILING NAME",
        ])

        blocks = list(self.parser.iter_blocks(text))

        self.assertEqual(blocks, [(ISS_NAME, ISS_ROUND_EPOCH_LINE1, ISS_LINE2)])

    def test_iter_blocks_strips_whitespace(self):
        """Test CRLF and padded lines are accepted."""
        text = f"  {ISS_NAME}  \r\n{ISS_LINE1}  \r\n{ISS_LINE2}\r\n"

        name, line1, line2 = next(self.parser.iter_blocks(text))

        self.assertEqual(name, ISS_NAME)
        self.assertEqual(line1, ISS_LINE1)
        self.assertEqual(line2, ISS_LINE2)


if __name__ == "__main__":
    unittest.main()
