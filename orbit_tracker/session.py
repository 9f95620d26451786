"""
Tracking session.

Wires one instance of each component around a catalog and exposes the
operations a front end needs. The host drives the loop:

    session = TrackingSession(Catalog.from_file("active.tle"))
    while True:
        snapshot = session.tick(real_elapsed_s, time.monotonic())
        render(snapshot)

Each tick advances the clock, lets the selection controller re-evaluate the
tracked object and, on its own wall-clock cadence, runs the proximity scan
over the visible objects.
"""

import time
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, List, Optional, Tuple

from orbit_tracker.catalog import Catalog, OrbitalElements
from orbit_tracker.clock import ClockSnapshot, ClockState, ClockTick, SimulationClock, utc_now
from orbit_tracker.config import TrackerSettings, DEFAULT_SETTINGS
from orbit_tracker.filters import CatalogFilter
from orbit_tracker.freshness import FreshnessClassifier
from orbit_tracker.logging_config import get_logger
from orbit_tracker.orbit_path import OrbitPathSampler, PathSample
from orbit_tracker.propagation import PropagationService
from orbit_tracker.proximity import GroundTarget, InterceptResult, ProximityScanner
from orbit_tracker.selection import SelectionController, SelectionSnapshot

logger = get_logger(__name__)


@dataclass(frozen=True)
class SessionSnapshot:
    """Everything a renderer needs for one frame."""

    clock: ClockSnapshot
    selection: SelectionSnapshot
    target: Optional[GroundTarget]
    intercepts: Tuple[InterceptResult, ...]
    visible_count: int
    catalog_size: int


class TrackingSession:
    """
    One tracker session over a catalog.

    Args:
        catalog: Loaded catalog
        settings: Tracking policy shared by all components
        now: Wall-clock source for the clock
        start: Initial simulated instant (defaults to ``now()``)
        max_workers: Thread pool size for proximity scans
    """

    def __init__(self, catalog: Catalog, settings: Optional[TrackerSettings] = None,
                 now: Callable[[], datetime] = utc_now, start: Optional[datetime] = None,
                 max_workers: Optional[int] = None):
        self.settings = settings or DEFAULT_SETTINGS
        self.catalog = catalog

        self.service = PropagationService()
        self.classifier = FreshnessClassifier(self.settings)
        self.sampler = OrbitPathSampler(self.service, self.settings)
        self.clock = SimulationClock(self.settings, now=now, start=start)
        self.controller = SelectionController(catalog, self.service, self.classifier, self.sampler)
        self.scanner = ProximityScanner(self.service, self.settings, max_workers=max_workers)

        self._filter = CatalogFilter()
        self._visible: List[OrbitalElements] = list(catalog)

        self.clock.add_listener(self._on_clock_tick)
        logger.info(f"Session started with {len(catalog)} satellites", instant=self.clock.instant.isoformat())

    @property
    def filter(self) -> CatalogFilter:
        return self._filter

    @property
    def visible(self) -> List[OrbitalElements]:
        return list(self._visible)

    def _on_clock_tick(self, tick: ClockTick) -> None:
        if tick.jumped:
            self.controller.on_time_jump(tick.instant)
        else:
            self.controller.on_tick(tick.instant)

    def _scan_candidates(self) -> List[OrbitalElements]:
        # An empty filtered view scans the whole catalog
        return self._visible if self._visible else list(self.catalog)

    def tick(self, real_elapsed_s: float, wall_time_s: Optional[float] = None) -> SessionSnapshot:
        """
        Run one loop iteration.

        Args:
            real_elapsed_s: Real seconds since the previous tick
            wall_time_s: Monotonic wall time used for the scan cadence
                (defaults to ``time.monotonic()``)

        Returns:
            SessionSnapshot after the tick
        """
        if wall_time_s is None:
            wall_time_s = time.monotonic()

        self.clock.advance(real_elapsed_s)
        self.scanner.maybe_scan(self._scan_candidates(), self.clock.instant, wall_time_s)
        return self.snapshot()

    def set_instant(self, instant: datetime) -> datetime:
        """Jump the clock, clamped around the tracked object if any. Returns the instant set."""
        return self.clock.set_instant(instant, self.controller.tracked)

    def toggle_play(self) -> ClockState:
        return self.clock.toggle_play()

    def set_multiplier(self, multiplier: float) -> None:
        self.clock.set_multiplier(multiplier)

    def select(self, object_id: int, follow: bool = False) -> SelectionSnapshot:
        return self.controller.select(object_id, self.clock.instant, follow=follow)

    def clear_selection(self) -> None:
        self.controller.clear()

    def set_follow(self, enabled: bool) -> None:
        self.controller.set_follow(enabled)

    def future_path(self) -> List[PathSample]:
        """Look-ahead path of the tracked object from the current instant."""
        return self.controller.future_path(self.clock.instant)

    def set_filter(self, catalog_filter: CatalogFilter) -> bool:
        """Replace the view filter. Returns True if the tracked object was deselected."""
        self._filter = catalog_filter
        return self.refresh_filter()

    def refresh_filter(self) -> bool:
        """Re-evaluate the current filter at the current instant."""
        self._visible = self._filter.apply(self.catalog, self.service, self.clock.instant)
        return self.controller.on_filter_changed(elements.object_id for elements in self._visible)

    def set_ground_target(self, target: GroundTarget) -> None:
        self.scanner.set_target(target)

    def clear_ground_target(self) -> None:
        self.scanner.clear_target()

    def reload_catalog(self, catalog: Catalog) -> None:
        """
        Swap in a newly loaded catalog.

        Records of removed objects are dropped. The tracked object stays
        selected if it is still present and visible.
        """
        tracked_id = self.controller.tracked_id
        follow = self.controller.follow

        self.catalog = catalog
        dropped = self.service.prune(catalog.ids())
        self.controller = SelectionController(catalog, self.service, self.classifier, self.sampler)
        self.refresh_filter()
        logger.info(f"Catalog reloaded with {len(catalog)} satellites", pruned_records=dropped)

        if tracked_id is not None and tracked_id in self.controller.visible_ids:
            self.controller.select(tracked_id, self.clock.instant, follow=follow)
        elif tracked_id is not None:
            logger.info(f"Satellite {tracked_id} no longer in the catalog view, deselecting")

    def snapshot(self) -> SessionSnapshot:
        return SessionSnapshot(
            clock=self.clock.snapshot(),
            selection=self.controller.snapshot(),
            target=self.scanner.target,
            intercepts=self.scanner.results,
            visible_count=len(self._visible),
            catalog_size=len(self.catalog),
        )
