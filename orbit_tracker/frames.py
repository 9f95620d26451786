"""
Reference frame conversions.

SGP4 returns positions in the TEME (True Equator, Mean Equinox) frame. This
module rotates them into the Earth-fixed frame with Greenwich mean sidereal
time and converts Earth-fixed positions to and from WGS-84 geodetic
coordinates.
"""

import math
from datetime import datetime, timezone
from typing import Tuple

import numpy as np
from sgp4.api import jday

from orbit_tracker.config import OMEGA_EARTH_RAD_S, WGS84_A_KM, WGS84_B_KM, WGS84_E2, WGS84_F


def to_utc(instant: datetime) -> datetime:
    """Return ``instant`` as an aware UTC datetime; naive values are taken as UTC."""
    if instant.tzinfo is None:
        return instant.replace(tzinfo=timezone.utc)
    return instant.astimezone(timezone.utc)


def datetime_to_jd_fr(instant: datetime) -> Tuple[float, float]:
    """
    Convert datetime to Julian date and fraction.

    Args:
        instant: Datetime object (naive values are taken as UTC)

    Returns:
        Tuple of (julian_day, fraction)
    """
    t = to_utc(instant)
    seconds = t.second + t.microsecond / 1e6
    return jday(t.year, t.month, t.day, t.hour, t.minute, seconds)


def gmst(jd: float, fr: float) -> float:
    """
    Greenwich mean sidereal time (IAU-82) in radians, in [0, 2*pi).

    Args:
        jd: Julian day (integer-and-a-half part)
        fr: Fraction of day
    """
    T = (jd - 2451545.0 + fr) / 36525.0

    gmst_sec = (
        67310.54841 +
        (876600.0 * 3600.0 + 8640184.812866) * T +
        0.093104 * T * T -
        6.2e-6 * T * T * T
    )

    return (gmst_sec % 86400.0) * (2.0 * math.pi / 86400.0)


def teme_to_ecef(r_teme: np.ndarray, v_teme: np.ndarray,
                 theta: float) -> Tuple[np.ndarray, np.ndarray]:
    """
    Rotate TEME position/velocity into the Earth-fixed frame.

    Args:
        r_teme: Position vector in TEME coordinates [x, y, z] (km)
        v_teme: Velocity vector in TEME coordinates [vx, vy, vz] (km/s)
        theta: Greenwich sidereal angle (rad)

    Returns:
        Tuple of (r_ecef, v_ecef)
    """
    cos_t = math.cos(theta)
    sin_t = math.sin(theta)

    r_ecef = np.array([
        cos_t * r_teme[0] + sin_t * r_teme[1],
        -sin_t * r_teme[0] + cos_t * r_teme[1],
        r_teme[2]
    ])

    # Earth-fixed velocity loses the rotation of the frame itself
    v_ecef = np.array([
        cos_t * v_teme[0] + sin_t * v_teme[1] + OMEGA_EARTH_RAD_S * r_ecef[1],
        -sin_t * v_teme[0] + cos_t * v_teme[1] - OMEGA_EARTH_RAD_S * r_ecef[0],
        v_teme[2]
    ])

    return r_ecef, v_ecef


def ecef_to_geodetic(r_ecef: np.ndarray) -> Tuple[float, float, float]:
    """
    ECEF to WGS-84 geodetic conversion using Bowring's method.

    Args:
        r_ecef: Position vector in ECEF coordinates [x, y, z] (km)

    Returns:
        Tuple of (latitude_deg, longitude_deg, altitude_km); longitude is in
        [-180, 180]
    """
    a = WGS84_A_KM
    b = WGS84_B_KM
    e2 = WGS84_E2
    ep2 = e2 / (1.0 - e2)

    x, y, z = (float(c) for c in r_ecef)

    lon = math.atan2(y, x)

    # Distance from z-axis
    p = math.sqrt(x * x + y * y)

    # Handle pole cases
    if p < 1e-10:
        lat = math.pi / 2.0 if z >= 0 else -math.pi / 2.0
        return math.degrees(lat), math.degrees(lon), abs(z) - b

    # Reduced latitude, refined a few times (converges in 2-3 iterations)
    theta = math.atan2(z * a, p * b)
    lat = theta
    for _ in range(5):
        sin_theta = math.sin(theta)
        cos_theta = math.cos(theta)

        lat = math.atan2(
            z + ep2 * b * sin_theta ** 3,
            p - e2 * a * cos_theta ** 3
        )

        new_theta = math.atan2((1.0 - WGS84_F) * math.sin(lat), math.cos(lat))
        if abs(new_theta - theta) < 1e-12:
            break
        theta = new_theta

    sin_lat = math.sin(lat)
    cos_lat = math.cos(lat)
    N = a / math.sqrt(1.0 - e2 * sin_lat * sin_lat)

    if cos_lat > 1e-10:
        alt = p / cos_lat - N
    else:
        alt = z / sin_lat - N * (1.0 - e2)

    return math.degrees(lat), math.degrees(lon), alt


def geodetic_to_ecef(latitude_deg: float, longitude_deg: float,
                     altitude_km: float = 0.0) -> np.ndarray:
    """WGS-84 geodetic coordinates to an ECEF position vector (km)."""
    lat = math.radians(latitude_deg)
    lon = math.radians(longitude_deg)
    sin_lat = math.sin(lat)
    cos_lat = math.cos(lat)
    N = WGS84_A_KM / math.sqrt(1.0 - WGS84_E2 * sin_lat * sin_lat)

    return np.array([
        (N + altitude_km) * cos_lat * math.cos(lon),
        (N + altitude_km) * cos_lat * math.sin(lon),
        (N * (1.0 - WGS84_E2) + altitude_km) * sin_lat,
    ])
