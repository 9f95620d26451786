"""
SGP4 Propagation Service

Provides satellite positions using the proven sgp4 library.

The expensive part of SGP4 is building the ``Satrec`` record from the element
lines (reparsing and coefficient derivation). The service builds one record
per catalog entry on first use and reuses it for every later instant, so
sampling a path or scanning the whole catalog only pays for the cheap
per-instant evaluation.

Failure modes:
- InvalidElementsError: the record cannot be built. The failure is cached,
  so the object stays non-trackable without retrying construction.
- DegenerateStateError: SGP4 returns a non-zero error code or a non-finite
  state at the requested instant (decayed objects, instants far outside the
  model's validity envelope). This is a gap for that instant only.

Callers treat both as "no data for this instant".
"""

import math
import threading
from datetime import datetime
from typing import Callable, Dict, Iterable, Optional, Tuple, Union

import numpy as np
from pydantic import BaseModel, ConfigDict
from sgp4.api import Satrec

from orbit_tracker.catalog import OrbitalElements
from orbit_tracker.errors import (
    SGP4_ERROR_CODES,
    DegenerateStateError,
    InvalidElementsError,
    PropagationError,
)
from orbit_tracker.frames import datetime_to_jd_fr, ecef_to_geodetic, gmst, teme_to_ecef, to_utc
from orbit_tracker.logging_config import get_logger

logger = get_logger(__name__)

RecordFactory = Callable[[str, str], Satrec]


class PropagationResult(BaseModel):
    """Position and speed of one object at one instant."""

    model_config = ConfigDict(frozen=True)

    object_id: int
    timestamp: datetime
    latitude: float
    longitude: float
    altitude_km: float
    velocity_kms: float
    position_teme_km: Tuple[float, float, float]
    velocity_teme_kms: Tuple[float, float, float]

    @property
    def velocity_kmh(self) -> float:
        return self.velocity_kms * 3600.0


class PropagationService:
    """
    Memoizing SGP4 propagator.

    Records are keyed by ``object_id``. A record is rebuilt only if a reload
    brings different element lines for the same id. The memo is guarded by a
    lock so several threads may propagate different objects at once; built
    records are only read afterwards.

    Args:
        record_factory: Builds a record from (line1, line2). Defaults to
            ``Satrec.twoline2rv``.
    """

    def __init__(self, record_factory: Optional[RecordFactory] = None):
        self._record_factory = record_factory or Satrec.twoline2rv
        self._records: Dict[int, Tuple[str, str, Union[Satrec, str]]] = {}
        self._lock = threading.Lock()

    def record_for(self, elements: OrbitalElements) -> Satrec:
        """
        Return the cached SGP4 record for ``elements``, building it on first use.

        Raises:
            InvalidElementsError: if the record cannot be built
        """
        key = elements.object_id
        with self._lock:
            cached = self._records.get(key)
            if cached is None or cached[0] != elements.line1 or cached[1] != elements.line2:
                cached = (elements.line1, elements.line2, self._build_record(elements))
                self._records[key] = cached

        record = cached[2]
        if isinstance(record, str):
            # new instance on every call
            raise InvalidElementsError(record, key)
        return record

    def _build_record(self, elements: OrbitalElements) -> Union[Satrec, str]:
        """Build the record, or return the failure message to cache in its place."""
        try:
            satellite = self._record_factory(elements.line1, elements.line2)
        except Exception as e:
            logger.warning(f"Failed to load satellite {elements.object_id}: {e}")
            return f"Cannot build SGP4 record for {elements.object_id}: {e}"

        error = getattr(satellite, "error", 0)
        if error:
            message = SGP4_ERROR_CODES.get(error, f"Unknown error code {error}")
            logger.warning(f"SGP4 initialisation error {error} for satellite {elements.object_id}: {message}")
            return f"SGP4 error {error} initialising {elements.object_id}: {message}"

        return satellite

    def is_trackable(self, elements: OrbitalElements) -> bool:
        """True unless the record for ``elements`` cannot be built."""
        try:
            self.record_for(elements)
        except InvalidElementsError:
            return False
        return True

    def propagate(self, elements: OrbitalElements, instant: datetime) -> PropagationResult:
        """
        Propagate one object to ``instant``.

        Args:
            elements: Catalog entry
            instant: Target time (naive values are taken as UTC)

        Returns:
            PropagationResult with geodetic position and speed

        Raises:
            InvalidElementsError: if the record cannot be built
            DegenerateStateError: if SGP4 fails at this instant
        """
        satellite = self.record_for(elements)

        jd, fr = datetime_to_jd_fr(instant)
        error, position, velocity = satellite.sgp4(jd, fr)

        if error != 0:
            message = SGP4_ERROR_CODES.get(error, f"Unknown error code {error}")
            raise DegenerateStateError(
                f"SGP4 error {error} for satellite {elements.object_id}: {message}",
                elements.object_id,
                error,
            )

        r_teme = np.asarray(position, dtype=float)
        v_teme = np.asarray(velocity, dtype=float)
        if not (np.all(np.isfinite(r_teme)) and np.all(np.isfinite(v_teme))):
            raise DegenerateStateError(
                f"Non-finite state vector for satellite {elements.object_id}", elements.object_id
            )

        r_ecef, _ = teme_to_ecef(r_teme, v_teme, gmst(jd, fr))
        lat, lon, alt = ecef_to_geodetic(r_ecef)
        if not all(math.isfinite(value) for value in (lat, lon, alt)):
            raise DegenerateStateError(
                f"Non-finite geodetic position for satellite {elements.object_id}", elements.object_id
            )

        return PropagationResult(
            object_id=elements.object_id,
            timestamp=to_utc(instant),
            latitude=lat,
            longitude=lon,
            altitude_km=alt,
            velocity_kms=float(np.linalg.norm(v_teme)),
            position_teme_km=tuple(float(c) for c in r_teme),
            velocity_teme_kms=tuple(float(c) for c in v_teme),
        )

    def try_propagate(self, elements: OrbitalElements, instant: datetime) -> Optional[PropagationResult]:
        """Like ``propagate`` but returns None when there is no data for the instant."""
        try:
            return self.propagate(elements, instant)
        except PropagationError as e:
            logger.debug(f"No position for {elements.object_id}: {e}")
            return None

    def prune(self, keep_ids: Iterable[int]) -> int:
        """Drop records whose object is no longer in the catalog. Returns the number dropped."""
        keep = set(keep_ids)
        with self._lock:
            stale = [key for key in self._records if key not in keep]
            for key in stale:
                del self._records[key]
        return len(stale)

    def __len__(self) -> int:
        return len(self._records)
