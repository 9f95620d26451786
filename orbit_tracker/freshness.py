"""
TLE Freshness Classification

Element sets are most accurate at their epoch and degrade with distance from
it. This module labels the age of a set at a given instant and decides
whether the instant is still inside the trusted horizon.

Labels (age in days):
    < 3   FRESH
    < 14  OK
    < 30  OLD
    else  VERY_OLD

Negative ages (instant before epoch) are FRESH. Past the horizon an object is
"out of range": a position can still be computed but is only advisory, and
orbit paths are not sampled.
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict

from orbit_tracker.catalog import OrbitalElements
from orbit_tracker.config import SECONDS_PER_DAY, TrackerSettings, DEFAULT_SETTINGS
from orbit_tracker.frames import to_utc


class FreshnessLabel(Enum):
    """TLE age categories"""

    FRESH = "FRESH"
    OK = "OK"
    OLD = "OLD"
    VERY_OLD = "VERY_OLD"


class FreshnessState(BaseModel):
    """Age of an element set at an instant."""

    model_config = ConfigDict(frozen=True)

    age_days: float
    label: FreshnessLabel
    valid: bool
    horizon_days: float

    @property
    def warning(self) -> Optional[str]:
        if self.valid:
            return None
        return (
            f"TLE out of range (+{self.horizon_days:g} days). "
            "Orbit path disabled; data may be inaccurate."
        )


def age_days(elements: OrbitalElements, instant: datetime) -> float:
    """Days from the epoch of ``elements`` to ``instant`` (negative before epoch)."""
    return (to_utc(instant) - elements.epoch).total_seconds() / SECONDS_PER_DAY


class FreshnessClassifier:
    """Classifier for element-set age and validity"""

    def __init__(self, settings: Optional[TrackerSettings] = None):
        self.settings = settings or DEFAULT_SETTINGS

    def classify_age(self, age: float) -> FreshnessLabel:
        """Classify an age in days"""
        if age < self.settings.fresh_max_age_days:
            return FreshnessLabel.FRESH
        elif age < self.settings.ok_max_age_days:
            return FreshnessLabel.OK
        elif age < self.settings.old_max_age_days:
            return FreshnessLabel.OLD
        else:
            return FreshnessLabel.VERY_OLD

    def is_valid(self, age: float) -> bool:
        return age <= self.settings.horizon_days

    def classify(self, elements: OrbitalElements, instant: datetime) -> FreshnessState:
        age = age_days(elements, instant)
        return FreshnessState(
            age_days=age,
            label=self.classify_age(age),
            valid=self.is_valid(age),
            horizon_days=self.settings.horizon_days,
        )
