"""
Unit Tests for Ground Proximity Scanning

Run with:
    python -m pytest tests/test_proximity.py -v
"""

import unittest
from datetime import timedelta
from unittest import mock

from pydantic import ValidationError

from orbit_tracker.catalog import OrbitalElements
from orbit_tracker.config import TrackerSettings
from orbit_tracker.propagation import PropagationResult, PropagationService
from orbit_tracker.proximity import GroundTarget, InterceptResult, ProximityScanner
from tests.tle_samples import ISS_LINE1, ISS_LINE2, ISS_NAME, ROUND_EPOCH, make_elements


def fake_service(positions):
    """Service whose try_propagate returns (lat, lon, alt) per object id, or None."""
    service = mock.Mock(spec=PropagationService)

    def try_propagate(elements, instant):
        position = positions.get(elements.object_id)
        if position is None:
            return None
        latitude, longitude, altitude_km = position
        return PropagationResult(
            object_id=elements.object_id,
            timestamp=instant,
            latitude=latitude,
            longitude=longitude,
            altitude_km=altitude_km,
            velocity_kms=7.5,
            position_teme_km=(7000.0, 0.0, 0.0),
            velocity_teme_kms=(0.0, 7.5, 0.0),
        )

    service.try_propagate.side_effect = try_propagate
    return service


class TestGroundTarget(unittest.TestCase):
    """Test suite for GroundTarget validation."""

    def test_defaults(self):
        """Test default radius and name."""
        target = GroundTarget(latitude=10.0, longitude=20.0)
        self.assertEqual(target.radius_km, 500.0)
        self.assertEqual(target.name, "CUSTOM COORDS")

    def test_invalid_values(self):
        """Test out-of-range coordinates and non-positive radii are rejected."""
        bad = [
            dict(latitude=91.0, longitude=0.0),
            dict(latitude=-90.5, longitude=0.0),
            dict(latitude=0.0, longitude=180.5),
            dict(latitude=0.0, longitude=0.0, radius_km=0.0),
            dict(latitude=0.0, longitude=0.0, radius_km=-5.0),
        ]
        for kwargs in bad:
            with self.subTest(**kwargs):
                with self.assertRaises(ValidationError):
                    GroundTarget(**kwargs)


class TestScan(unittest.TestCase):
    """Test suite for ProximityScanner.scan."""

    def setUp(self):
        """Set up test fixtures."""
        self.target = GroundTarget(latitude=0.0, longitude=0.0, radius_km=500.0)
        self.instant = ROUND_EPOCH + timedelta(hours=1)

    def test_radius_filter(self):
        """Test only objects closer than the radius are reported."""
        low = make_elements(1, "LOW")
        high = make_elements(2, "HIGH")
        scanner = ProximityScanner(fake_service({1: (0.0, 0.0, 100.0), 2: (0.0, 0.0, 800.0)}))

        results = scanner.scan(self.target, [low, high], self.instant)

        self.assertEqual([r.object_id for r in results], [1])
        self.assertAlmostEqual(results[0].distance_km, 100.0, places=6)
        self.assertEqual(results[0].name, "LOW")

    def test_radius_is_exclusive(self):
        """Test an object exactly at the radius is not reported."""
        scanner = ProximityScanner(fake_service({1: (0.0, 0.0, 420.0)}))
        candidates = [make_elements(1)]
        distance = scanner.scan(self.target, candidates, self.instant)[0].distance_km

        at_radius = GroundTarget(latitude=0.0, longitude=0.0, radius_km=distance)

        self.assertEqual(scanner.scan(at_radius, candidates, self.instant), [])

    def test_sorted_and_stable(self):
        """Test results are nearest first with catalog order breaking ties."""
        candidates = [make_elements(i) for i in (1, 2, 3, 4)]
        scanner = ProximityScanner(fake_service({
            1: (0.0, 0.0, 300.0),
            2: (0.0, 0.0, 150.0),
            3: (0.0, 0.0, 150.0),
            4: (0.0, 0.0, 50.0),
        }))

        results = scanner.scan(self.target, candidates, self.instant)

        self.assertEqual([r.object_id for r in results], [4, 2, 3, 1])
        distances = [r.distance_km for r in results]
        self.assertEqual(distances, sorted(distances))
        self.assertTrue(all(d < self.target.radius_km for d in distances))

    def test_failures_excluded(self):
        """Test objects without a position are skipped."""
        scanner = ProximityScanner(fake_service({2: (0.0, 0.0, 100.0)}))

        results = scanner.scan(self.target, [make_elements(1), make_elements(2)], self.instant)

        self.assertEqual([r.object_id for r in results], [2])

    def test_horizontal_distance(self):
        """Test ground offset contributes to the distance."""
        # 1 degree of longitude at the equator is about 111.3 km
        scanner = ProximityScanner(fake_service({1: (0.0, 1.0, 0.0)}))

        results = scanner.scan(self.target, [make_elements(1)], self.instant)

        self.assertAlmostEqual(results[0].distance_km, 111.3, delta=0.5)

    def test_max_objects(self):
        """Test only the first max_objects candidates are checked."""
        service = fake_service({i: (0.0, 0.0, 100.0) for i in range(1, 6)})
        scanner = ProximityScanner(service, TrackerSettings(scan_max_objects=3))

        results = scanner.scan(self.target, (make_elements(i) for i in range(1, 6)), self.instant)

        self.assertEqual([r.object_id for r in results], [1, 2, 3])
        self.assertEqual(service.try_propagate.call_count, 3)

    def test_thread_pool_matches_sequential(self):
        """Test a parallel scan gives the same ordered results."""
        positions = {i: (0.0, 0.0, float(i * 37 % 450)) for i in range(1, 40)}
        candidates = [make_elements(i) for i in range(1, 40)]

        sequential = ProximityScanner(fake_service(positions)).scan(self.target, candidates, self.instant)
        parallel = ProximityScanner(fake_service(positions), max_workers=4).scan(
            self.target, candidates, self.instant
        )

        self.assertEqual(parallel, sequential)

    def test_real_propagation(self):
        """Test a target under the ISS finds it at roughly its altitude."""
        iss = OrbitalElements.from_tle(ISS_NAME, ISS_LINE1, ISS_LINE2)
        service = PropagationService()
        instant = iss.epoch + timedelta(minutes=30)
        position = service.propagate(iss, instant)
        target = GroundTarget(latitude=position.latitude, longitude=position.longitude)

        results = ProximityScanner(service).scan(target, [iss], instant)

        self.assertEqual(len(results), 1)
        self.assertIsInstance(results[0], InterceptResult)
        self.assertAlmostEqual(results[0].distance_km, position.altitude_km, places=3)


class TestScanCadence(unittest.TestCase):
    """Test suite for target handling and the scan cadence."""

    def setUp(self):
        """Set up test fixtures."""
        self.service = fake_service({1: (0.0, 0.0, 100.0)})
        self.scanner = ProximityScanner(self.service)
        self.candidates = [make_elements(1)]
        self.target = GroundTarget(latitude=0.0, longitude=0.0)

    def test_no_target(self):
        """Test nothing is scanned without a target."""
        self.assertFalse(self.scanner.due(0.0))
        self.assertIsNone(self.scanner.maybe_scan(self.candidates, ROUND_EPOCH, 0.0))
        self.service.try_propagate.assert_not_called()

    def test_cadence(self):
        """Test scans run at most every scan_interval_seconds."""
        self.scanner.set_target(self.target)

        first = self.scanner.maybe_scan(self.candidates, ROUND_EPOCH, 100.0)
        self.assertEqual([r.object_id for r in first], [1])
        self.assertEqual(self.scanner.results, first)

        self.assertIsNone(self.scanner.maybe_scan(self.candidates, ROUND_EPOCH, 101.0))
        self.assertIsNotNone(self.scanner.maybe_scan(self.candidates, ROUND_EPOCH, 102.0))
        self.assertEqual(self.service.try_propagate.call_count, 2)

    def test_set_target_clears_results(self):
        """Test replacing or clearing the target drops old results."""
        self.scanner.set_target(self.target)
        self.scanner.maybe_scan(self.candidates, ROUND_EPOCH, 0.0)
        self.assertEqual(len(self.scanner.results), 1)

        self.scanner.set_target(GroundTarget(latitude=45.0, longitude=45.0))
        self.assertEqual(self.scanner.results, ())
        self.assertTrue(self.scanner.due(0.5))

        self.scanner.clear_target()
        self.assertIsNone(self.scanner.target)
        self.assertEqual(self.scanner.results, ())

    def test_target_changed_during_scan(self):
        """Test results for a replaced target are discarded."""
        replacement = GroundTarget(latitude=-10.0, longitude=30.0)
        original = self.service.try_propagate.side_effect

        def change_target(elements, instant):
            self.scanner.set_target(replacement)
            return original(elements, instant)

        self.service.try_propagate.side_effect = change_target
        self.scanner.set_target(self.target)

        self.assertIsNone(self.scanner.maybe_scan(self.candidates, ROUND_EPOCH, 0.0))
        self.assertEqual(self.scanner.results, ())
        self.assertEqual(self.scanner.target, replacement)


if __name__ == "__main__":
    unittest.main()
