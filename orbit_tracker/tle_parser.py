"""
TLE Parser Module

Provides utilities for splitting a TLE text blob into 3-line blocks and
parsing the fixed-width fields of each block into a structured record.

The parser only validates the layout (line numbers, widths, numeric fields,
matching catalog numbers). Building the SGP4 record from the lines is left to
the propagation service, which does it lazily.

TLE Format:
    Line 0: Satellite name
    Line 1: Catalog number, epoch, drag terms, element set number, checksum
    Line 2: Inclination, RAAN, eccentricity, argument of perigee,
            mean anomaly, mean motion, revolution number, checksum
"""

from datetime import datetime, timezone, timedelta
from typing import Dict, Iterator, Tuple, Any

from orbit_tracker.errors import ParseError

TLE_LINE_LENGTH = 69

# Alpha-5 catalog numbers skip I and O
_ALPHA5_LETTERS = "ABCDEFGHJKLMNPQRSTUVWXYZ"


def checksum(line: str) -> int:
    """Calculate the modulo-10 TLE checksum of the first 68 columns."""
    total = 0
    for char in line[:68]:
        if char.isdigit():
            total += int(char)
        elif char == "-":
            total += 1
    return total % 10


def parse_catalog_number(field: str) -> int:
    """
    Parse a 5-column catalog number, including the Alpha-5 extension.

    Alpha-5 replaces the leading digit with a letter so that 'A0000' is
    100000 and 'Z9999' is 339999.
    """
    field = field.strip()
    if not field:
        raise ValueError("empty catalog number")
    lead = field[0].upper()
    if lead.isalpha():
        index = _ALPHA5_LETTERS.find(lead)
        if index < 0:
            raise ValueError(f"invalid Alpha-5 prefix {lead!r}")
        return (index + 10) * 10000 + int(field[1:])
    return int(field)


def epoch_to_datetime(epoch_year: int, epoch_days: float) -> datetime:
    """
    Convert TLE epoch to datetime.

    Args:
        epoch_year: Two-digit year (57-99 -> 19xx, 00-56 -> 20xx)
        epoch_days: Day of year with fractional part (1.0 is Jan 1 00:00)

    Returns:
        Datetime object in UTC
    """
    year = 1900 + epoch_year if epoch_year >= 57 else 2000 + epoch_year
    return datetime(year, 1, 1, tzinfo=timezone.utc) + timedelta(days=epoch_days - 1.0)


class TLEParser:
    """
    Parser for 3-line TLE blocks.

    Args:
        verify_checksum: Reject lines whose column 69 does not match the
            computed checksum.
    """

    def __init__(self, verify_checksum: bool = False):
        self.verify_checksum = verify_checksum

    def iter_blocks(self, text: str) -> Iterator[Tuple[str, str, str]]:
        """
        Yield (name, line1, line2) triples from a TLE text blob.

        Blank lines are ignored. A line that does not start a
        ``name / 1 ... / 2 ...`` triple is skipped, so a broken block only
        costs that block and the parser picks up at the next name.
        """
        lines = [line.strip() for line in text.splitlines()]
        lines = [line for line in lines if line]

        i = 0
        while i + 2 < len(lines):
            name, line1, line2 = lines[i], lines[i + 1], lines[i + 2]
            if line1.startswith("1 ") and line2.startswith("2 ") and not name.startswith(("1 ", "2 ")):
                yield name, line1, line2
                i += 3
            else:
                i += 1

    def parse_tle(self, line1: str, line2: str, name: str = "") -> Dict[str, Any]:
        """
        Parse TLE lines into structured data.

        Args:
            line1: First line of TLE
            line2: Second line of TLE
            name: Satellite name

        Returns:
            Dictionary containing parsed TLE data

        Raises:
            ParseError: if the lines are malformed
        """
        line1 = line1.strip()
        line2 = line2.strip()
        name = name.strip()

        if not line1.startswith("1 "):
            raise ParseError("Line 1 must start with '1 '", name)
        if not line2.startswith("2 "):
            raise ParseError("Line 2 must start with '2 '", name)
        for number, line in ((1, line1), (2, line2)):
            if len(line) < TLE_LINE_LENGTH:
                raise ParseError(
                    f"Line {number} has {len(line)} columns, expected {TLE_LINE_LENGTH}", name
                )
            if self.verify_checksum and line[68] != str(checksum(line)):
                raise ParseError(f"Checksum mismatch on line {number}", name)

        try:
            norad_id = parse_catalog_number(line1[2:7])
            epoch_year = int(line1[18:20])
            epoch_days = float(line1[20:32])
        except ValueError as e:
            raise ParseError(f"Error parsing TLE line 1: {e}", name) from e

        if not 1.0 <= epoch_days < 367.0:
            raise ParseError(f"Epoch day {epoch_days} out of range", name)

        try:
            line2_norad_id = parse_catalog_number(line2[2:7])
            inclination = float(line2[8:16])
            raan = float(line2[17:25])
            # Eccentricity is stored without the leading decimal point
            eccentricity = float("0." + line2[26:33].strip())
            arg_perigee = float(line2[34:42])
            mean_anomaly = float(line2[43:51])
            mean_motion = float(line2[52:63])
        except ValueError as e:
            raise ParseError(f"Error parsing TLE line 2: {e}", name) from e

        if line2_norad_id != norad_id:
            raise ParseError("Catalog number mismatch between lines", name)
        if mean_motion <= 0.0:
            raise ParseError(f"Mean motion must be positive, got {mean_motion}", name)

        return {
            "name": name or f"SAT_{norad_id}",
            "norad_id": norad_id,
            "classification": line1[7].strip() or "U",
            "international_designator": line1[9:17].strip(),
            "epoch_year": epoch_year,
            "epoch_days": epoch_days,
            "epoch_datetime": epoch_to_datetime(epoch_year, epoch_days),
            "inclination_deg": inclination,
            "raan_deg": raan,
            "eccentricity": eccentricity,
            "arg_perigee_deg": arg_perigee,
            "mean_anomaly_deg": mean_anomaly,
            "mean_motion_rev_per_day": mean_motion,
            "line1": line1,
            "line2": line2,
        }
