"""
Catalog view filter.

A name search plus optional altitude and speed windows. The windows are
evaluated by propagating each object to the given instant, so they are only
applied when ``advanced`` is set.
"""

from datetime import datetime
from typing import List, Tuple

from pydantic import BaseModel, ConfigDict, field_validator

from orbit_tracker.catalog import Catalog, OrbitalElements
from orbit_tracker.config import FILTER_ALTITUDE_RANGE_KM, FILTER_VELOCITY_RANGE_KMH
from orbit_tracker.logging_config import get_logger
from orbit_tracker.propagation import PropagationService

logger = get_logger(__name__)


class CatalogFilter(BaseModel):
    """Criteria for the visible subset of a catalog."""

    model_config = ConfigDict(frozen=True)

    query: str = ""
    advanced: bool = False
    altitude_km: Tuple[float, float] = FILTER_ALTITUDE_RANGE_KM
    velocity_kmh: Tuple[float, float] = FILTER_VELOCITY_RANGE_KMH

    @field_validator("altitude_km", "velocity_kmh")
    @classmethod
    def _window_ordered(cls, value: Tuple[float, float]) -> Tuple[float, float]:
        low, high = value
        if low > high:
            raise ValueError(f"window minimum {low} is greater than maximum {high}")
        return value

    @property
    def is_empty(self) -> bool:
        """True if the filter lets every object through."""
        return not self.query.strip() and not self.advanced

    def matches_name(self, elements: OrbitalElements) -> bool:
        q = self.query.strip().upper()
        return not q or q in (elements.name or "").upper()

    def matches_state(self, elements: OrbitalElements, service: PropagationService,
                      instant: datetime) -> bool:
        """Window check at ``instant``; objects without a position are hidden."""
        result = service.try_propagate(elements, instant)
        if result is None:
            return False

        velocity_kmh = result.velocity_kmh
        if velocity_kmh < self.velocity_kmh[0] or velocity_kmh > self.velocity_kmh[1]:
            return False
        if result.altitude_km < self.altitude_km[0] or result.altitude_km > self.altitude_km[1]:
            return False
        return True

    def apply(self, catalog: Catalog, service: PropagationService,
              instant: datetime) -> List[OrbitalElements]:
        """Visible elements, in catalog order."""
        visible = [elements for elements in catalog if self.matches_name(elements)]
        if self.advanced:
            visible = [
                elements for elements in visible
                if self.matches_state(elements, service, instant)
            ]
        logger.debug(f"Filter shows {len(visible)} of {len(catalog)} satellites")
        return visible
