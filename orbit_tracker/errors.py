"""
Tracker exception hierarchy.

Parsing and propagation failures are recovered where they occur: a bad TLE
block is dropped from the catalog, an object whose record cannot be built is
never trackable, and a degenerate state at one instant is a gap in a path.
Only caller mistakes (selecting a hidden object, a zero clock multiplier)
reach the caller.
"""

from typing import Optional


# SGP4 error code meanings
SGP4_ERROR_CODES = {
    0: "No error",
    1: "Mean eccentricity < 0.0 or > 1.0",
    2: "Mean motion < 0.0",
    3: "Perturbed eccentricity < 0.0 or > 1.0",
    4: "Semi-latus rectum < 0.0",
    5: "Satellite has decayed",
    6: "Satellite has decayed (low altitude)",
}


class TrackerError(Exception):
    """Base class for all tracker errors."""


class ParseError(TrackerError, ValueError):
    """A TLE block is malformed or incomplete."""

    def __init__(self, message: str, name: str = ""):
        super().__init__(message)
        self.name = name


class PropagationError(TrackerError):
    """No position is available for an object at an instant."""

    def __init__(self, message: str, object_id: Optional[int] = None):
        super().__init__(message)
        self.object_id = object_id


class InvalidElementsError(PropagationError):
    """The SGP4 record cannot be built from the element lines."""


class DegenerateStateError(PropagationError):
    """SGP4 produced an error code or a non-finite state vector."""

    def __init__(self, message: str, object_id: Optional[int] = None, error_code: int = 0):
        super().__init__(message, object_id)
        self.error_code = error_code

    @property
    def error_message(self) -> str:
        return SGP4_ERROR_CODES.get(self.error_code, f"Unknown error code {self.error_code}")


class SelectionError(TrackerError, LookupError):
    """The requested object is not part of the visible catalog view."""
