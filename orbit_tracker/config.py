"""
Tracker Configuration and Constants

This module contains the fallback TLE record, physical constants and the
default tracking policy used throughout the project.

Constants:
    WGS-84 ellipsoid parameters for the geodetic conversion and the Earth
    rotation rate used by the TEME to ECEF transformation.

Tracking policy:
    Freshness thresholds, the trusted propagation horizon, orbit path
    sampling windows and the proximity scanner cadence. Every component takes
    an optional ``TrackerSettings`` instance; the defaults below apply when
    none is given.

Fallback TLE Data:
    A single ISS record used when no TLE blob is available, so a session can
    still start. It is not meant for accuracy: the record ages past the
    horizon within a month of its epoch.

    Current TLE epoch: 2024-02-05

    Sources for updated TLEs:
    - CelesTrak.org (public access)
    - Space-Track.org (requires free registration)
"""

import math
from typing import Dict, Any

from pydantic import BaseModel, Field, field_validator, model_validator

# WGS-84 ellipsoid
WGS84_A_KM: float = 6378.137  # Equatorial radius (km)
WGS84_F: float = 1.0 / 298.257223563  # Flattening
WGS84_B_KM: float = WGS84_A_KM * (1.0 - WGS84_F)  # Polar radius (km)
WGS84_E2: float = 2.0 * WGS84_F - WGS84_F * WGS84_F  # First eccentricity squared

OMEGA_EARTH_RAD_S: float = 7.2921159e-5  # Earth rotation rate (rad/s)

MINUTES_PER_DAY: float = 1440.0
SECONDS_PER_DAY: float = 86400.0

# Freshness labels: age < threshold (days)
FRESH_MAX_AGE_DAYS: float = 3.0
OK_MAX_AGE_DAYS: float = 14.0
OLD_MAX_AGE_DAYS: float = 30.0

# Maximum forward offset from epoch for which elements are trusted
HORIZON_DAYS: float = 30.0
# Wall-clock ceiling for direct time jumps (now + days)
GLOBAL_HORIZON_DAYS: float = 30.0

# Orbit path sampling
HISTORY_WINDOW_MINUTES: int = 240  # +/- around the center instant
HISTORY_STEP_MINUTES: int = 2
FUTURE_HORIZON_MINUTES: int = 90
FUTURE_STEP_MINUTES: int = 1

# Proximity scanner
SCAN_MAX_OBJECTS: int = 1000
SCAN_INTERVAL_SECONDS: float = 2.0
SCAN_RADIUS_KM: float = 500.0

# Simulation clock
DEFAULT_MULTIPLIER: float = 10.0

# Catalog view filter windows
FILTER_ALTITUDE_RANGE_KM = (0.0, 40000.0)
FILTER_VELOCITY_RANGE_KMH = (0.0, 40000.0)

# Fallback ISS TLE, used when no TLE data is available
FALLBACK_TLE: Dict[str, Any] = {
    'name': 'ISS (ZARYA)',
    'norad_id': 25544,
    'line1': '1 25544U 98067A   24036.56038380  .00014798  00000-0  26998-3 0  9994',
    'line2': '2 25544  51.6401 195.9620 0004567 114.7672 344.9754 15.49651543437633',
    'epoch': '2024-02-05T13:26:57Z',
    'mean_motion': 15.49651543,
    'inclination': 51.6401,
    'eccentricity': 0.0004567
}


def fallback_tle_text() -> str:
    """Return the fallback record as a 3-line TLE block."""
    return "\n".join(
        [FALLBACK_TLE['name'], FALLBACK_TLE['line1'], FALLBACK_TLE['line2']]
    )


class TrackerSettings(BaseModel):
    """Tracking policy shared by every component of a session."""

    fresh_max_age_days: float = FRESH_MAX_AGE_DAYS
    ok_max_age_days: float = OK_MAX_AGE_DAYS
    old_max_age_days: float = OLD_MAX_AGE_DAYS

    horizon_days: float = Field(HORIZON_DAYS, gt=0)
    global_horizon_days: float = Field(GLOBAL_HORIZON_DAYS, gt=0)

    history_window_minutes: int = Field(HISTORY_WINDOW_MINUTES, gt=0)
    history_step_minutes: int = Field(HISTORY_STEP_MINUTES, gt=0)
    future_horizon_minutes: int = Field(FUTURE_HORIZON_MINUTES, gt=0)
    future_step_minutes: int = Field(FUTURE_STEP_MINUTES, gt=0)

    scan_max_objects: int = Field(SCAN_MAX_OBJECTS, gt=0)
    scan_interval_seconds: float = Field(SCAN_INTERVAL_SECONDS, ge=0)
    scan_radius_km: float = Field(SCAN_RADIUS_KM, gt=0)

    default_multiplier: float = DEFAULT_MULTIPLIER

    @field_validator("default_multiplier")
    @classmethod
    def _multiplier_nonzero(cls, value: float) -> float:
        if value == 0 or not math.isfinite(value):
            raise ValueError("multiplier must be a finite, non-zero number")
        return value

    @model_validator(mode="after")
    def _thresholds_ascending(self) -> "TrackerSettings":
        if not (self.fresh_max_age_days < self.ok_max_age_days < self.old_max_age_days):
            raise ValueError("freshness thresholds must be strictly ascending")
        return self

    @property
    def future_steps(self) -> int:
        """Maximum number of samples a future path may contain."""
        return self.future_horizon_minutes // self.future_step_minutes + 1


DEFAULT_SETTINGS = TrackerSettings()
