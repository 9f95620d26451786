"""
Satellite Tracking Demonstration

This script runs a tracking session over a TLE catalog without a front end:
- Catalog loading (with the built-in ISS fallback)
- Object selection with freshness classification and orbit path sampling
- Ground-target proximity scanning
- A simulated clock driven by a fixed number of ticks

Usage:
    python -m orbit_tracker.demo [--tle-file FILE] [--select NORAD_ID] [--target LAT,LON]
                                 [--radius KM] [--ticks N] [--multiplier X] [--verbose]

Arguments:
    --tle-file: TLE text file (3-line records); the fallback record is used if absent
    --select: NORAD catalog number to track
    --target: Ground point for the proximity scan, as "lat,lon"
    --radius: Scan radius in km
    --ticks: Number of one-second ticks to simulate
    --multiplier: Simulated seconds per real second
    --verbose: Enable debug logging
"""

import argparse
import logging
from typing import Tuple

from orbit_tracker.catalog import Catalog
from orbit_tracker.config import DEFAULT_MULTIPLIER
from orbit_tracker.errors import SelectionError
from orbit_tracker.logging_config import configure_logging, get_logger
from orbit_tracker.proximity import GroundTarget
from orbit_tracker.session import SessionSnapshot, TrackingSession

logger = get_logger(__name__)


def parse_target(value: str) -> Tuple[float, float]:
    """Parse a "lat,lon" command-line value."""
    try:
        lat_text, lon_text = value.split(",")
        return float(lat_text), float(lon_text)
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected LAT,LON, got {value!r}")


def report_snapshot(snapshot: SessionSnapshot) -> None:
    """Log one session snapshot."""
    clock = snapshot.clock
    logger.info(
        f"t={clock.instant.isoformat()} x{clock.multiplier:g} "
        f"{'running' if clock.running else 'paused'} "
        f"visible={snapshot.visible_count}/{snapshot.catalog_size}"
    )

    selection = snapshot.selection
    info = selection.info
    if info is not None:
        if info.latitude is not None:
            logger.info(
                f"  {info.name} ({info.object_id}): "
                f"lat={info.latitude:7.3f} lon={info.longitude:8.3f} "
                f"alt={info.altitude_km:7.1f}km v={info.velocity_kmh:,}km/h "
                f"age={info.age_days}d [{info.age_label}]"
            )
        else:
            logger.info(f"  {info.name} ({info.object_id}): no position [{info.age_label}]")
        if selection.path is not None:
            logger.info(f"  orbit path: {len(selection.path)} samples")
        if selection.warning:
            logger.warning(f"  {selection.warning}")

    if snapshot.target is not None:
        logger.info(f"  {len(snapshot.intercepts)} objects within {snapshot.target.radius_km:g} km")
        for result in snapshot.intercepts[:5]:
            logger.info(f"    {result.name:<24} {result.distance_km:8.1f} km")


def main() -> None:
    """Main demonstration entry point."""
    parser = argparse.ArgumentParser(description="Satellite Tracking Demonstration")
    parser.add_argument("--tle-file", help="TLE text file (3-line records)")
    parser.add_argument("--select", type=int, help="NORAD catalog number to track")
    parser.add_argument("--target", type=parse_target, help="Ground point as LAT,LON")
    parser.add_argument("--radius", type=float, help="Scan radius (km), defaults to the tracker setting")
    parser.add_argument("--ticks", type=int, default=5, help="Number of one-second ticks")
    parser.add_argument(
        "--multiplier", type=float, default=DEFAULT_MULTIPLIER, help="Simulated seconds per real second"
    )
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")

    args = parser.parse_args()

    # Configure logging
    if args.verbose:
        configure_logging(level=logging.DEBUG)

    logger.info("Satellite Tracking Demonstration")
    logger.info("=" * 60)

    if args.tle_file:
        catalog = Catalog.from_file(args.tle_file)
    else:
        catalog = Catalog.load(None)

    session = TrackingSession(catalog)
    session.set_multiplier(args.multiplier)

    if args.select is not None:
        try:
            session.select(args.select)
        except SelectionError as e:
            logger.error(str(e))

    if args.target is not None:
        latitude, longitude = args.target
        session.set_ground_target(
            GroundTarget(
                latitude=latitude,
                longitude=longitude,
                radius_km=args.radius or session.settings.scan_radius_km,
            )
        )

    for tick in range(args.ticks):
        snapshot = session.tick(1.0, wall_time_s=float(tick))
        report_snapshot(snapshot)

    future = session.future_path()
    if future:
        logger.info(f"Look-ahead path: {len(future)} samples until {future[-1].instant.isoformat()}")

    logger.info("=" * 60)
    logger.info("Demonstration complete")


if __name__ == "__main__":
    main()
