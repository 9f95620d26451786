"""
Satellite Tracking Core

This package tracks Earth-orbiting objects from TLE element sets using the
sgp4 library, driven by a simulated clock.

Modules:
    catalog: TLE catalog loading and the OrbitalElements record
    tle_parser: Fixed-width TLE field parsing
    propagation: Memoized SGP4 propagation to geodetic positions
    frames: TEME, ECEF and WGS-84 geodetic conversions
    freshness: Element-set age labels and validity horizon
    clock: Simulation clock
    orbit_path: History and look-ahead path sampling
    selection: Tracked-object state machine
    proximity: Ground-point proximity scanner
    filters: Catalog view filter
    session: Component wiring and the host-driven tick loop
    demo: Command-line demonstration (orbit-tracker-demo)

References:
    Vallado, D. A., Crawford, P., Hujsak, R., & Kelso, T. S. (2006).
    Revisiting Spacetrack Report #3. AIAA 2006-6753.
"""

__version__ = "1.0.0"
