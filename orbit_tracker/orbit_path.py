"""
Orbit path sampling.

Two kinds of path are produced for a tracked object:

- history: a fixed window around an instant (default +/- 4 hours every 2
  minutes), built once per selection and kept by the caller;
- future: a short look-ahead (default 90 minutes every minute) that is
  always anchored to the moving "now", so it is generated lazily on every
  request and never cached.

Steps whose propagation fails are skipped; renderers tolerate gaps. The
sampler does not check freshness itself: callers must not sample an object
whose FreshnessState is not valid.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Iterator, Optional, Tuple

from orbit_tracker.catalog import OrbitalElements
from orbit_tracker.config import TrackerSettings, DEFAULT_SETTINGS
from orbit_tracker.errors import DegenerateStateError, InvalidElementsError
from orbit_tracker.frames import to_utc
from orbit_tracker.logging_config import get_logger
from orbit_tracker.propagation import PropagationService

logger = get_logger(__name__)


@dataclass(frozen=True)
class PathSample:
    instant: datetime
    latitude: float
    longitude: float
    altitude_km: float


@dataclass(frozen=True)
class OrbitPath:
    """Samples of one object, in increasing instant order."""

    object_id: int
    center: datetime
    samples: Tuple[PathSample, ...]

    @property
    def start(self) -> Optional[datetime]:
        return self.samples[0].instant if self.samples else None

    @property
    def end(self) -> Optional[datetime]:
        return self.samples[-1].instant if self.samples else None

    def covers(self, instant: datetime) -> bool:
        """True if ``instant`` lies within the sampled span."""
        if not self.samples:
            return False
        return self.start <= to_utc(instant) <= self.end

    def __iter__(self) -> Iterator[PathSample]:
        return iter(self.samples)

    def __len__(self) -> int:
        return len(self.samples)


class OrbitPathSampler:
    """Builds history and future paths from a PropagationService."""

    def __init__(self, service: PropagationService, settings: Optional[TrackerSettings] = None):
        self.service = service
        self.settings = settings or DEFAULT_SETTINGS

    @property
    def future_steps(self) -> int:
        return self.settings.future_steps

    def _sample(self, elements: OrbitalElements, instant: datetime) -> Optional[PathSample]:
        try:
            result = self.service.propagate(elements, instant)
        except DegenerateStateError as e:
            logger.debug(f"Skipping path sample: {e}")
            return None
        return PathSample(instant, result.latitude, result.longitude, result.altitude_km)

    def _iter_offsets(self, elements: OrbitalElements, origin: datetime,
                      first_minute: int, last_minute: int, step: int) -> Iterator[PathSample]:
        try:
            self.service.record_for(elements)
        except InvalidElementsError as e:
            logger.debug(f"No path for untrackable object: {e}")
            return

        for minute in range(first_minute, last_minute + 1, step):
            try:
                instant = origin + timedelta(minutes=minute)
            except OverflowError:
                continue
            sample = self._sample(elements, instant)
            if sample is not None:
                yield sample

    def sample_history(self, elements: OrbitalElements, center: datetime) -> OrbitPath:
        """Sample +/- history_window_minutes around ``center`` every history_step_minutes."""
        center = to_utc(center)
        window = self.settings.history_window_minutes
        samples = tuple(self._iter_offsets(
            elements, center, -window, window, self.settings.history_step_minutes
        ))
        logger.debug(f"Sampled {len(samples)} history points for {elements.object_id}")
        return OrbitPath(elements.object_id, center, samples)

    def sample_future(self, elements: OrbitalElements, start: datetime) -> Iterator[PathSample]:
        """Lazily yield at most ``future_steps`` samples from ``start`` forward."""
        return self._iter_offsets(
            elements, to_utc(start), 0,
            self.settings.future_horizon_minutes, self.settings.future_step_minutes,
        )
