#!/usr/bin/env python3
"""
Ground Proximity Scanning

Finds the catalog objects currently within a radius of a ground point.

For each candidate the scanner propagates the object to the scan instant,
converts its geodetic position to Earth-fixed coordinates and measures the
straight-line distance to the target point on the WGS-84 surface. Objects
closer than the radius are reported nearest first; ties keep catalog order.

The scan is bounded: only the first ``max_objects`` candidates are checked
per cycle. It runs on its own wall-clock cadence (default every 2 seconds),
independent of the per-tick selection updates.
"""

import math
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from typing import Iterable, List, Optional, Tuple

import numpy as np
from pydantic import BaseModel, ConfigDict, Field

from orbit_tracker.catalog import OrbitalElements
from orbit_tracker.config import TrackerSettings, DEFAULT_SETTINGS, SCAN_RADIUS_KM
from orbit_tracker.frames import geodetic_to_ecef
from orbit_tracker.logging_config import get_logger
from orbit_tracker.propagation import PropagationService

logger = get_logger(__name__)


class GroundTarget(BaseModel):
    """Ground point and scan radius"""

    model_config = ConfigDict(frozen=True)

    latitude: float = Field(ge=-90.0, le=90.0)
    longitude: float = Field(ge=-180.0, le=180.0)
    radius_km: float = Field(SCAN_RADIUS_KM, gt=0)
    name: str = "CUSTOM COORDS"

    def ecef(self) -> np.ndarray:
        return geodetic_to_ecef(self.latitude, self.longitude, 0.0)


class InterceptResult(BaseModel):
    """Object found within the scan radius"""

    model_config = ConfigDict(frozen=True)

    object_id: int
    name: str
    distance_km: float = Field(ge=0)


class ProximityScanner:
    """
    Scanner for objects near a ground target.

    Args:
        service: Propagation service shared with the rest of the session
        settings: Tracking policy (max objects, cadence)
        max_workers: Propagate candidates on a thread pool of this size;
            None or 1 scans sequentially
    """

    def __init__(self, service: PropagationService,
                 settings: Optional[TrackerSettings] = None,
                 max_workers: Optional[int] = None):
        self.service = service
        self.settings = settings or DEFAULT_SETTINGS
        self.max_workers = max_workers

        self._target: Optional[GroundTarget] = None
        self._results: Tuple[InterceptResult, ...] = ()
        self._generation = 0
        self._last_scan_wall: Optional[float] = None

    @property
    def target(self) -> Optional[GroundTarget]:
        return self._target

    @property
    def results(self) -> Tuple[InterceptResult, ...]:
        return self._results

    def set_target(self, target: GroundTarget) -> None:
        """Replace the target; results of the previous target are discarded."""
        self._generation += 1
        self._target = target
        self._results = ()
        self._last_scan_wall = None
        logger.info(
            f"Ground target set to {target.name}",
            latitude=target.latitude, longitude=target.longitude, radius_km=target.radius_km,
        )

    def clear_target(self) -> None:
        self._generation += 1
        self._target = None
        self._results = ()
        self._last_scan_wall = None

    def _distance_km(self, elements: OrbitalElements, instant: datetime,
                     target_ecef: np.ndarray) -> Optional[float]:
        result = self.service.try_propagate(elements, instant)
        if result is None:
            return None
        sat_ecef = geodetic_to_ecef(result.latitude, result.longitude, result.altitude_km)
        distance = float(np.linalg.norm(sat_ecef - target_ecef))
        return distance if math.isfinite(distance) else None

    def scan(self, target: GroundTarget, candidates: Iterable[OrbitalElements],
             instant: datetime) -> List[InterceptResult]:
        """
        Compute the intercept list for ``target`` at ``instant``.

        Args:
            target: Ground point and radius
            candidates: Objects to check, in catalog order
            instant: Scan time

        Returns:
            Results with distance < radius, nearest first
        """
        subset = []
        for elements in candidates:
            if len(subset) >= self.settings.scan_max_objects:
                break
            subset.append(elements)

        target_ecef = target.ecef()

        if self.max_workers and self.max_workers > 1 and len(subset) > 1:
            with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
                distances = list(executor.map(
                    lambda elements: self._distance_km(elements, instant, target_ecef), subset
                ))
        else:
            distances = [self._distance_km(elements, instant, target_ecef) for elements in subset]

        found = [
            InterceptResult(object_id=elements.object_id, name=elements.name, distance_km=distance)
            for elements, distance in zip(subset, distances)
            if distance is not None and distance < target.radius_km
        ]
        # sorted() is stable, so equal distances keep catalog order
        found = sorted(found, key=lambda r: r.distance_km)

        logger.debug(f"Scan of {len(subset)} objects found {len(found)} within {target.radius_km} km")
        return found

    def due(self, wall_time_s: float) -> bool:
        """True if a target is set and the scan interval has elapsed."""
        if self._target is None:
            return False
        if self._last_scan_wall is None:
            return True
        return wall_time_s - self._last_scan_wall >= self.settings.scan_interval_seconds

    def maybe_scan(self, candidates: Iterable[OrbitalElements], instant: datetime,
                   wall_time_s: float) -> Optional[Tuple[InterceptResult, ...]]:
        """
        Scan if one is due and store the result.

        Returns the new results, or None if no scan ran or the target changed
        while scanning.
        """
        if not self.due(wall_time_s):
            return None

        self._last_scan_wall = wall_time_s
        generation = self._generation
        target = self._target
        found = self.scan(target, candidates, instant)

        if generation != self._generation:
            logger.debug("Discarding scan results for a replaced target")
            return None

        self._results = tuple(found)
        return self._results
