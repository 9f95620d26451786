"""
Tracked-object selection.

A small state machine: IDLE (nothing tracked) or TRACKING(object_id). The
controller decides when the history path of the tracked object is sampled or
discarded:

- select: sample if the elements are valid at the current instant;
- on_tick: re-sample when validity comes back, discard when it goes;
- on_time_jump: re-sample around the new instant while valid;
- on_filter_changed: deselect when the tracked object is filtered out.

An out-of-range object keeps its selection and info (a plain marker) but has
no path. Each sampling request carries the generation of the selection it
was made for; a result that arrives after the selection changed is dropped.
"""

from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from typing import Iterable, List, Optional, Set

from orbit_tracker.catalog import Catalog, OrbitalElements
from orbit_tracker.errors import PropagationError, SelectionError
from orbit_tracker.freshness import FreshnessClassifier, FreshnessState
from orbit_tracker.logging_config import get_logger
from orbit_tracker.orbit_path import OrbitPath, OrbitPathSampler, PathSample
from orbit_tracker.propagation import PropagationService

logger = get_logger(__name__)


class SelectionState(Enum):
    IDLE = "IDLE"
    TRACKING = "TRACKING"


@dataclass(frozen=True)
class TrackedObjectInfo:
    """Details of the tracked object at the current instant."""

    object_id: int
    name: str
    designator: str
    age_days: float
    age_label: str
    period_minutes: Optional[float]
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    altitude_km: Optional[float] = None
    velocity_kmh: Optional[float] = None


@dataclass(frozen=True)
class SelectionSnapshot:
    state: SelectionState
    object_id: Optional[int]
    freshness: Optional[FreshnessState]
    path: Optional[OrbitPath]
    info: Optional[TrackedObjectInfo]
    follow: bool

    @property
    def warning(self) -> Optional[str]:
        return self.freshness.warning if self.freshness is not None else None


class SelectionController:
    """
    Coordinates the tracked object with the catalog view and the clock.

    The visible set starts as the whole catalog and is replaced by
    ``on_filter_changed``.
    """

    def __init__(self, catalog: Catalog, service: PropagationService,
                 classifier: FreshnessClassifier, sampler: OrbitPathSampler):
        self.catalog = catalog
        self.service = service
        self.classifier = classifier
        self.sampler = sampler

        self._visible: Set[int] = set(catalog.ids())
        self._state = SelectionState.IDLE
        self._elements: Optional[OrbitalElements] = None
        self._freshness: Optional[FreshnessState] = None
        self._path: Optional[OrbitPath] = None
        self._info: Optional[TrackedObjectInfo] = None
        self._follow = False
        self._generation = 0

    @property
    def state(self) -> SelectionState:
        return self._state

    @property
    def tracked(self) -> Optional[OrbitalElements]:
        return self._elements

    @property
    def tracked_id(self) -> Optional[int]:
        return self._elements.object_id if self._elements is not None else None

    @property
    def freshness(self) -> Optional[FreshnessState]:
        return self._freshness

    @property
    def path(self) -> Optional[OrbitPath]:
        return self._path

    @property
    def info(self) -> Optional[TrackedObjectInfo]:
        return self._info

    @property
    def follow(self) -> bool:
        return self._follow

    @property
    def visible_ids(self) -> Set[int]:
        return set(self._visible)

    def snapshot(self) -> SelectionSnapshot:
        return SelectionSnapshot(
            state=self._state,
            object_id=self.tracked_id,
            freshness=self._freshness,
            path=self._path,
            info=self._info,
            follow=self._follow,
        )

    def select(self, object_id: int, instant: datetime, follow: bool = False) -> SelectionSnapshot:
        """
        Start tracking ``object_id``.

        Raises:
            SelectionError: if the object is not in the visible view
        """
        elements = self.catalog.get(object_id)
        if elements is None or object_id not in self._visible:
            raise SelectionError(f"Satellite {object_id} is not in the current view")

        self._generation += 1
        self._state = SelectionState.TRACKING
        self._elements = elements
        self._path = None
        self._follow = follow

        self._freshness = self.classifier.classify(elements, instant)
        logger.info(
            f"Tracking {elements.name} ({object_id})",
            age_days=round(self._freshness.age_days, 2),
            valid=self._freshness.valid,
        )
        if self._freshness.valid:
            if not self._resample(instant):
                return self.snapshot()
        else:
            logger.warning(self._freshness.warning, object_id=object_id)

        self._refresh_info(instant)
        return self.snapshot()

    def clear(self) -> None:
        """Return to IDLE from any state."""
        if self._state is SelectionState.TRACKING:
            logger.info(f"Stopped tracking {self.tracked_id}")
        self._generation += 1
        self._state = SelectionState.IDLE
        self._elements = None
        self._freshness = None
        self._path = None
        self._info = None
        self._follow = False

    def set_follow(self, enabled: bool) -> None:
        """Camera-follow request; only meaningful while tracking."""
        self._follow = bool(enabled) and self._state is SelectionState.TRACKING

    def on_filter_changed(self, visible_ids: Iterable[int]) -> bool:
        """
        Replace the visible set. Returns True if the tracked object was
        filtered out and the selection was cleared.
        """
        self._visible = set(visible_ids)
        if self._state is SelectionState.TRACKING and self.tracked_id not in self._visible:
            logger.info(f"Satellite {self.tracked_id} left the filtered view, deselecting")
            self.clear()
            return True
        return False

    def on_tick(self, instant: datetime) -> None:
        """Re-evaluate freshness; sample or discard the path on validity changes."""
        if self._state is not SelectionState.TRACKING:
            return

        was_valid = self._freshness.valid if self._freshness is not None else False
        self._freshness = self.classifier.classify(self._elements, instant)

        if self._freshness.valid and not was_valid:
            logger.info(f"Satellite {self.tracked_id} back in range, resampling orbit")
            if not self._resample(instant):
                return
        elif was_valid and not self._freshness.valid:
            logger.warning(self._freshness.warning, object_id=self.tracked_id)
            self._path = None

        self._refresh_info(instant)

    def on_time_jump(self, instant: datetime) -> None:
        """Handle a direct time set: the old path no longer surrounds the instant."""
        if self._state is not SelectionState.TRACKING:
            return

        self._freshness = self.classifier.classify(self._elements, instant)
        if self._freshness.valid:
            if not self._resample(instant):
                return
        else:
            self._path = None
        self._refresh_info(instant)

    def future_path(self, instant: datetime) -> List[PathSample]:
        """Look-ahead samples from ``instant``; empty when idle or out of range."""
        if self._state is not SelectionState.TRACKING:
            return []
        if self._freshness is None or not self._freshness.valid:
            return []
        return list(self.sampler.sample_future(self._elements, instant))

    def _resample(self, instant: datetime) -> bool:
        """Sample the history path; False if the selection changed meanwhile."""
        generation = self._generation
        path = self.sampler.sample_history(self._elements, instant)
        return self._store_path(generation, path)

    def _store_path(self, generation: int, path: OrbitPath) -> bool:
        if generation != self._generation or path.object_id != self.tracked_id:
            logger.debug(f"Discarding stale orbit path for {path.object_id}")
            return False
        self._path = path
        return True

    def _refresh_info(self, instant: datetime) -> None:
        elements = self._elements
        freshness = self._freshness
        info = TrackedObjectInfo(
            object_id=elements.object_id,
            name=elements.name,
            designator=elements.designator,
            age_days=round(freshness.age_days, 2),
            age_label=freshness.label.value,
            period_minutes=(
                round(elements.period_minutes, 1) if elements.period_minutes is not None else None
            ),
        )
        try:
            result = self.service.propagate(elements, instant)
        except PropagationError as e:
            logger.debug(f"No live position for tracked satellite: {e}")
        else:
            info = replace(
                info,
                latitude=result.latitude,
                longitude=result.longitude,
                altitude_km=result.altitude_km,
                velocity_kmh=round(result.velocity_kmh),
            )
        self._info = info
