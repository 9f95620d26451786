"""
Unit Tests for Orbit Path Sampling

Run with:
    python -m pytest tests/test_orbit_path.py -v
"""

import unittest
from datetime import datetime, timedelta, timezone
from unittest import mock

from orbit_tracker.catalog import OrbitalElements
from orbit_tracker.config import TrackerSettings
from orbit_tracker.errors import DegenerateStateError, InvalidElementsError
from orbit_tracker.orbit_path import OrbitPathSampler
from orbit_tracker.propagation import PropagationResult, PropagationService
from tests.tle_samples import ISS_LINE1, ISS_LINE2, ISS_NAME, make_elements


def result_at(elements, instant, latitude=0.0, longitude=0.0, altitude_km=400.0):
    return PropagationResult(
        object_id=elements.object_id,
        timestamp=instant,
        latitude=latitude,
        longitude=longitude,
        altitude_km=altitude_km,
        velocity_kms=7.6,
        position_teme_km=(6778.0, 0.0, 0.0),
        velocity_teme_kms=(0.0, 7.6, 0.0),
    )


class TestOrbitPathSampler(unittest.TestCase):
    """Test suite for history and future sampling with real propagation."""

    def setUp(self):
        """Set up test fixtures."""
        self.iss = OrbitalElements.from_tle(ISS_NAME, ISS_LINE1, ISS_LINE2)
        self.sampler = OrbitPathSampler(PropagationService())
        self.center = self.iss.epoch + timedelta(days=1)

    def test_history_window(self):
        """Test history covers +/- 4 hours every 2 minutes."""
        path = self.sampler.sample_history(self.iss, self.center)

        self.assertEqual(path.object_id, 25544)
        self.assertEqual(len(path), 241)
        self.assertEqual(path.start, self.center - timedelta(hours=4))
        self.assertEqual(path.end, self.center + timedelta(hours=4))
        self.assertTrue(path.covers(self.center))
        self.assertFalse(path.covers(self.center + timedelta(hours=5)))

    def test_history_ordered(self):
        """Test history samples are strictly increasing in time."""
        instants = [sample.instant for sample in self.sampler.sample_history(self.iss, self.center)]
        self.assertEqual(instants, sorted(set(instants)))

    def test_future_bounded(self):
        """Test the look-ahead never exceeds future_steps samples."""
        samples = list(self.sampler.sample_future(self.iss, self.center))

        self.assertEqual(self.sampler.future_steps, 91)
        self.assertLessEqual(len(samples), self.sampler.future_steps)
        self.assertEqual(samples[0].instant, self.center)
        self.assertEqual(samples[-1].instant, self.center + timedelta(minutes=90))

    def test_future_is_lazy(self):
        """Test the look-ahead is produced on demand."""
        future = self.sampler.sample_future(self.iss, self.center)
        first = next(future)
        self.assertEqual(first.instant, self.center)

    def test_custom_windows(self):
        """Test sampling windows follow the settings."""
        settings = TrackerSettings(
            history_window_minutes=10, history_step_minutes=5,
            future_horizon_minutes=10, future_step_minutes=3,
        )
        sampler = OrbitPathSampler(PropagationService(), settings)

        self.assertEqual(len(sampler.sample_history(self.iss, self.center)), 5)
        self.assertEqual(len(list(sampler.sample_future(self.iss, self.center))), 4)
        self.assertEqual(sampler.future_steps, 4)


class TestOrbitPathGaps(unittest.TestCase):
    """Test suite for propagation failures while sampling."""

    def setUp(self):
        """Set up test fixtures."""
        self.elements = make_elements(90001)
        self.service = mock.Mock(spec=PropagationService)
        self.settings = TrackerSettings(history_window_minutes=4, history_step_minutes=2)
        self.sampler = OrbitPathSampler(self.service, self.settings)
        self.center = self.elements.epoch + timedelta(hours=1)

    def test_degenerate_samples_skipped(self):
        """Test failed instants are gaps, not errors."""
        bad_instant = self.center + timedelta(minutes=2)

        def propagate(elements, instant):
            if instant == bad_instant:
                raise DegenerateStateError("decayed", elements.object_id, 6)
            return result_at(elements, instant)

        self.service.propagate.side_effect = propagate

        path = self.sampler.sample_history(self.elements, self.center)

        self.assertEqual(len(path), 4)
        self.assertNotIn(bad_instant, [sample.instant for sample in path])

    def test_samples_outside_datetime_range_skipped(self):
        """Test offsets before the earliest representable instant are gaps."""
        self.service.propagate.side_effect = result_at
        earliest = datetime.min.replace(tzinfo=timezone.utc)

        path = self.sampler.sample_history(self.elements, earliest)

        self.assertEqual(
            [sample.instant for sample in path],
            [earliest + timedelta(minutes=m) for m in (0, 2, 4)],
        )

    def test_invalid_elements_give_empty_path(self):
        """Test an untrackable object yields no samples."""
        self.service.record_for.side_effect = InvalidElementsError("bad", 90001)

        path = self.sampler.sample_history(self.elements, self.center)

        self.assertEqual(len(path), 0)
        self.assertIsNone(path.start)
        self.assertFalse(path.covers(self.center))
        self.assertEqual(list(self.sampler.sample_future(self.elements, self.center)), [])
        self.service.propagate.assert_not_called()


if __name__ == "__main__":
    unittest.main()
