"""
Satellite Catalog

Holds the tracked objects of a session, keyed by NORAD catalog number, in the
order they appear in the source TLE text. A catalog is read-only once loaded;
reloading means building a new one.

When no TLE text is available at all the catalog falls back to the built-in
ISS record from ``config.FALLBACK_TLE`` so the tracker can still start.
"""

import math
from datetime import datetime
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Optional, Union

from pydantic import BaseModel, ConfigDict

from orbit_tracker.config import MINUTES_PER_DAY, fallback_tle_text
from orbit_tracker.errors import ParseError
from orbit_tracker.logging_config import get_logger
from orbit_tracker.tle_parser import TLEParser

logger = get_logger(__name__)


class OrbitalElements(BaseModel):
    """One catalog entry: the raw element lines plus fields derived at load."""

    model_config = ConfigDict(frozen=True)

    object_id: int
    name: str
    line1: str
    line2: str
    epoch: datetime
    designator: str = ""
    inclination_deg: float = 0.0
    eccentricity: float = 0.0
    mean_motion_rev_day: float = 0.0

    @property
    def period_minutes(self) -> Optional[float]:
        """Orbital period from the mean motion, or None if it is unusable."""
        if self.mean_motion_rev_day > 0 and math.isfinite(self.mean_motion_rev_day):
            return MINUTES_PER_DAY / self.mean_motion_rev_day
        return None

    @classmethod
    def from_tle(cls, name: str, line1: str, line2: str,
                 parser: Optional[TLEParser] = None) -> "OrbitalElements":
        """Parse one block; raises ParseError if it is malformed."""
        parser = parser or TLEParser()
        data = parser.parse_tle(line1, line2, name)
        return cls(
            object_id=data["norad_id"],
            name=data["name"],
            line1=data["line1"],
            line2=data["line2"],
            epoch=data["epoch_datetime"],
            designator=data["international_designator"],
            inclination_deg=data["inclination_deg"],
            eccentricity=data["eccentricity"],
            mean_motion_rev_day=data["mean_motion_rev_per_day"],
        )


class Catalog:
    """Ordered, read-only collection of OrbitalElements."""

    def __init__(self, entries: Iterable[OrbitalElements] = ()):
        self._entries: Dict[int, OrbitalElements] = {}
        for elements in entries:
            if elements.object_id in self._entries:
                logger.warning(
                    f"Duplicate catalog number {elements.object_id}, keeping first entry",
                    dropped=elements.name,
                )
                continue
            self._entries[elements.object_id] = elements

    @classmethod
    def load(cls, raw_text: Optional[str], verify_checksum: bool = False) -> "Catalog":
        """
        Build a catalog from a TLE text blob.

        Malformed blocks are dropped and logged. ``None`` means no blob was
        available, in which case the built-in fallback record is used.

        Args:
            raw_text: TLE text, or None if no data could be obtained
            verify_checksum: Reject lines with a bad checksum

        Returns:
            Catalog
        """
        if raw_text is None:
            logger.warning("No TLE data available, using built-in fallback (ISS only)")
            raw_text = fallback_tle_text()

        parser = TLEParser(verify_checksum=verify_checksum)
        entries: List[OrbitalElements] = []
        dropped = 0
        for name, line1, line2 in parser.iter_blocks(raw_text):
            try:
                entries.append(OrbitalElements.from_tle(name, line1, line2, parser))
            except ParseError as e:
                dropped += 1
                logger.warning(f"Dropping malformed TLE block for {name!r}: {e}")

        catalog = cls(entries)
        logger.info(f"Loaded {len(catalog)} satellites", dropped=dropped)
        return catalog

    @classmethod
    def from_file(cls, path: Union[str, Path], verify_checksum: bool = False) -> "Catalog":
        """Load a local TLE file, falling back to the built-in record if it cannot be read."""
        try:
            raw_text = Path(path).read_text(encoding="utf-8", errors="replace")
        except OSError as e:
            logger.warning(f"Cannot read TLE file {path}: {e}")
            raw_text = None
        return cls.load(raw_text, verify_checksum=verify_checksum)

    def get(self, object_id: int) -> Optional[OrbitalElements]:
        return self._entries.get(object_id)

    def ids(self) -> List[int]:
        return list(self._entries)

    def __contains__(self, object_id: object) -> bool:
        return object_id in self._entries

    def __iter__(self) -> Iterator[OrbitalElements]:
        return iter(self._entries.values())

    def __len__(self) -> int:
        return len(self._entries)
