"""
Simulation clock.

Owns the simulated instant, the rate multiplier and the run state. The clock
does not wake itself up: the host loop calls ``advance`` with the real time
elapsed since its previous call, and the clock notifies its listeners.
"""

import math
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Callable, List, Optional

from orbit_tracker.catalog import OrbitalElements
from orbit_tracker.config import TrackerSettings, DEFAULT_SETTINGS
from orbit_tracker.frames import to_utc
from orbit_tracker.logging_config import get_logger

logger = get_logger(__name__)


class ClockState(Enum):
    RUNNING = "RUNNING"
    PAUSED = "PAUSED"


@dataclass(frozen=True)
class ClockSnapshot:
    instant: datetime
    multiplier: float
    running: bool


@dataclass(frozen=True)
class ClockTick:
    """Notification sent to listeners after the instant moves (or is set)."""

    instant: datetime
    elapsed_simulated_s: float
    jumped: bool = False


TickListener = Callable[[ClockTick], None]

EARLIEST_INSTANT = datetime.min.replace(tzinfo=timezone.utc)
LATEST_INSTANT = datetime.max.replace(tzinfo=timezone.utc)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class SimulationClock:
    """
    Simulated time source.

    Args:
        settings: Tracking policy (default multiplier, horizons)
        now: Wall-clock source, used for the initial instant and for the
            global ceiling of ``set_instant``
        start: Initial instant (defaults to ``now()``)
    """

    def __init__(self, settings: Optional[TrackerSettings] = None,
                 now: Callable[[], datetime] = utc_now,
                 start: Optional[datetime] = None):
        self.settings = settings or DEFAULT_SETTINGS
        self._now = now
        self._instant = to_utc(start) if start is not None else to_utc(now())
        self._multiplier = self.settings.default_multiplier
        self._state = ClockState.RUNNING
        self._listeners: List[TickListener] = []

    @property
    def instant(self) -> datetime:
        return self._instant

    @property
    def multiplier(self) -> float:
        return self._multiplier

    @property
    def state(self) -> ClockState:
        return self._state

    @property
    def running(self) -> bool:
        return self._state is ClockState.RUNNING

    def snapshot(self) -> ClockSnapshot:
        return ClockSnapshot(self._instant, self._multiplier, self.running)

    def add_listener(self, listener: TickListener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: TickListener) -> None:
        self._listeners.remove(listener)

    def toggle_play(self) -> ClockState:
        """Flip RUNNING <-> PAUSED without moving the instant."""
        if self._state is ClockState.RUNNING:
            self._state = ClockState.PAUSED
        else:
            self._state = ClockState.RUNNING
        logger.debug(f"Clock {self._state.value}")
        return self._state

    def set_multiplier(self, multiplier: float) -> None:
        """
        Change the rate of simulated time; also resumes a paused clock.

        Raises:
            ValueError: if ``multiplier`` is zero or not a finite number
        """
        value = float(multiplier)
        if value == 0 or not math.isfinite(value):
            raise ValueError(f"Clock multiplier must be a finite, non-zero number, got {multiplier!r}")
        self._multiplier = value
        self._state = ClockState.RUNNING

    def clamp(self, instant: datetime, tracked: Optional[OrbitalElements] = None) -> datetime:
        """
        Clamp a requested instant.

        With a tracked object the instant is kept in
        [epoch, epoch + horizon_days]. Independently, it never goes past
        now + global_horizon_days.
        """
        t = to_utc(instant)
        if tracked is not None:
            lower = tracked.epoch
            upper = tracked.epoch + timedelta(days=self.settings.horizon_days)
            t = min(max(t, lower), upper)

        ceiling = to_utc(self._now()) + timedelta(days=self.settings.global_horizon_days)
        return min(t, ceiling)

    def set_instant(self, instant: datetime, tracked: Optional[OrbitalElements] = None) -> datetime:
        """Jump to ``instant`` (clamped, see ``clamp``). Returns the instant actually set."""
        target = self.clamp(instant, tracked)
        if target != to_utc(instant):
            logger.info(f"Requested time {to_utc(instant).isoformat()} clamped to {target.isoformat()}")
        delta = (target - self._instant).total_seconds()
        self._instant = target
        self._notify(ClockTick(target, delta, jumped=True))
        return target

    def advance(self, real_elapsed_s: float) -> ClockTick:
        """
        Advance by ``real_elapsed_s * multiplier`` when running and notify listeners.

        A negative elapsed time is treated as zero. A step past the datetime
        range stops the clock at the edge of the range.
        """
        simulated = 0.0
        if self.running and real_elapsed_s > 0:
            simulated = real_elapsed_s * self._multiplier
            try:
                self._instant = self._instant + timedelta(seconds=simulated)
            except OverflowError:
                limit = LATEST_INSTANT if simulated > 0 else EARLIEST_INSTANT
                logger.warning(f"Simulated time out of range, clock held at {limit.isoformat()}")
                simulated = (limit - self._instant).total_seconds()
                self._instant = limit

        tick = ClockTick(self._instant, simulated)
        self._notify(tick)
        return tick

    def _notify(self, tick: ClockTick) -> None:
        for listener in list(self._listeners):
            listener(tick)
