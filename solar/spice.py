"""High-precision ephemeris provider backed by JPL DE kernels."""

from __future__ import annotations

import json
import logging
import math
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from pathlib import Path
from threading import Lock
from typing import Callable, Dict, List, Optional, Tuple

import erfa
import numpy as np
import spiceypy as spice
from spiceypy.utils.exceptions import SpiceyError

from .ephemeris import ZONE_EVENTS, ZONE_KINDS, SunPosition, SunTimes

__all__ = [
    "EphemerisError",
    "SpiceEphemeris",
    "load_ephemeris",
    "loaded_kernels",
    "unload_ephemeris",
]

LOGGER = logging.getLogger(__name__)

EARTH_EQUATORIAL_RADIUS_KM = 6378.137  # WGS84 equatorial radius in kilometers.
EARTH_FLATTENING = 1.0 / 298.257223563  # WGS84 flattening.

SAMPLE_STEP = timedelta(minutes=5)
HALF_WINDOW = timedelta(hours=12)
NADIR_MARGIN = timedelta(hours=1)

_LOADED_FILES: Optional[List[str]] = None
_LOAD_LOCK = Lock()
# CSPICE keeps global state; calls from precompute threads are serialised.
_CALL_LOCK = Lock()


class EphemerisError(RuntimeError):
    """Raised when ephemeris loading or computation fails."""


@dataclass(frozen=True)
class _TimeScales:
    """Container for time-scale representations of a UTC instant."""

    ut1: Tuple[float, float]
    tt: Tuple[float, float]
    et: float


@dataclass(frozen=True)
class _Site:
    """Observer position and local East/North/Up basis in ITRF."""

    vector: np.ndarray
    east: np.ndarray
    north: np.ndarray
    up: np.ndarray


def _kernel_files(path: Path) -> List[Path]:
    if path.is_file() and path.suffix.lower() == ".bsp":
        return [path]
    if not path.is_dir():
        raise EphemerisError(f"Ephemeris source not found: {path}")
    files = sorted(item for item in path.glob("*") if item.is_file() and item.suffix.lower() == ".bsp")
    if not files:
        raise EphemerisError(f"No .bsp ephemeris files found in directory: {path}")
    return files


def load_ephemeris(source: str) -> List[str]:
    """Furnish the SPK kernels at *source*, a ``.bsp`` file or a directory of them.

    Loading happens once per process; later calls return the names already
    loaded until :func:`unload_ephemeris` is called. Raises
    :class:`EphemerisError` when nothing loadable is found.
    """

    global _LOADED_FILES

    if _LOADED_FILES is not None:
        return _LOADED_FILES
    files = _kernel_files(Path(source).expanduser())

    with _LOAD_LOCK:
        if _LOADED_FILES is not None:
            return _LOADED_FILES
        for kernel in files:
            try:
                spice.furnsh(str(kernel))
            except SpiceyError as exc:
                spice.kclear()
                raise EphemerisError(f"Failed to load ephemeris file '{kernel}': {exc}") from exc

        _LOADED_FILES = [kernel.name for kernel in files]
        LOGGER.info(json.dumps({"event": "ephemeris_loaded", "files": _LOADED_FILES}))
        return _LOADED_FILES


def loaded_kernels() -> List[str]:
    return list(_LOADED_FILES or [])


def unload_ephemeris() -> None:
    """Clear every loaded kernel so a different source can be loaded."""

    global _LOADED_FILES

    with _LOAD_LOCK:
        spice.kclear()
        _LOADED_FILES = None


def _datetime_to_timescales(dt: datetime) -> _TimeScales:
    """Convert a timezone-aware datetime into the time scales SPICE and ERFA need."""

    if dt.tzinfo is None:
        raise ValueError("datetime must be timezone-aware (UTC)")
    dt_utc = dt.astimezone(UTC)
    utc1, utc2 = erfa.dtf2d(
        "UTC",
        dt_utc.year,
        dt_utc.month,
        dt_utc.day,
        dt_utc.hour,
        dt_utc.minute,
        dt_utc.second + dt_utc.microsecond / 1_000_000,
    )
    tai1, tai2 = erfa.utctai(utc1, utc2)
    tt1, tt2 = erfa.taitt(tai1, tai2)
    ut11, ut12 = erfa.utcut1(utc1, utc2, 0.0)
    et = (tt1 - erfa.DJ00) * erfa.DAYSEC + tt2 * erfa.DAYSEC
    return _TimeScales(ut1=(ut11, ut12), tt=(tt1, tt2), et=et)


def _site(lat: float, lon: float) -> _Site:
    lat_rad = math.radians(lat)
    lon_rad = math.radians(lon)
    vector = np.array(
        spice.georec(lon_rad, lat_rad, 0.0, EARTH_EQUATORIAL_RADIUS_KM, EARTH_FLATTENING),
        dtype=float,
    )
    sin_lat, cos_lat = math.sin(lat_rad), math.cos(lat_rad)
    sin_lon, cos_lon = math.sin(lon_rad), math.cos(lon_rad)
    return _Site(
        vector=vector,
        east=np.array([-sin_lon, cos_lon, 0.0]),
        north=np.array([-sin_lat * cos_lon, -sin_lat * sin_lon, cos_lat]),
        up=np.array([cos_lat * cos_lon, cos_lat * sin_lon, sin_lat]),
    )


def _sun_direction(dt: datetime, site: _Site) -> np.ndarray:
    """Unit vector from the observer to the sun in ITRF."""

    times = _datetime_to_timescales(dt)
    with _CALL_LOCK:
        sun_vector, _ = spice.spkpos("SUN", times.et, "J2000", "LT+S", "EARTH")
    rotation = np.array(erfa.c2t06a(*times.tt, *times.ut1, 0.0, 0.0), dtype=float)
    topocentric = rotation @ np.array(sun_vector, dtype=float) - site.vector
    norm = np.linalg.norm(topocentric)
    if norm == 0:
        raise EphemerisError("Degenerate topocentric vector encountered")
    return topocentric / norm


def _altitude_degrees(dt: datetime, site: _Site) -> float:
    direction = _sun_direction(dt, site)
    return math.degrees(math.asin(float(np.clip(np.dot(direction, site.up), -1.0, 1.0))))


def _sample(
    centre: datetime, altitude: Callable[[datetime], float]
) -> Tuple[List[datetime], List[float]]:
    """Altitude every five minutes over the day-long window centred on *centre*."""

    stamps: List[datetime] = []
    samples: List[float] = []
    current = centre - HALF_WINDOW
    while current <= centre + HALF_WINDOW:
        stamps.append(current)
        samples.append(altitude(current))
        current += SAMPLE_STEP
    return stamps, samples


def _refine_crossing(
    start_dt: datetime,
    end_dt: datetime,
    altitude: Callable[[datetime], float],
    threshold: float,
    max_iterations: int = 24,
) -> datetime:
    """Refine the crossing between *start_dt* and *end_dt* via binary search."""

    value_start = altitude(start_dt) - threshold
    value_end = altitude(end_dt) - threshold
    if value_start == 0:
        return start_dt
    if value_end == 0:
        return end_dt
    low_dt, low_val = start_dt, value_start
    high_dt = end_dt
    for _ in range(max_iterations):
        mid_dt = low_dt + (high_dt - low_dt) / 2
        mid_val = altitude(mid_dt) - threshold
        if abs(mid_val) < 1e-4 or (high_dt - low_dt) <= timedelta(seconds=1):
            return mid_dt
        if low_val * mid_val <= 0:
            high_dt = mid_dt
        else:
            low_dt, low_val = mid_dt, mid_val
    return low_dt + (high_dt - low_dt) / 2


def _refine_extremum(
    start_dt: datetime,
    end_dt: datetime,
    altitude: Callable[[datetime], float],
    sign: float,
    max_iterations: int = 24,
) -> datetime:
    """Ternary search for the altitude maximum (``sign=1``) or minimum (``sign=-1``)."""

    low_dt, high_dt = start_dt, end_dt
    for _ in range(max_iterations):
        if (high_dt - low_dt) <= timedelta(seconds=1):
            break
        third = (high_dt - low_dt) / 3
        left, right = low_dt + third, high_dt - third
        if sign * altitude(left) < sign * altitude(right):
            low_dt = left
        else:
            high_dt = right
    return low_dt + (high_dt - low_dt) / 2


class SpiceEphemeris:
    """Ephemeris provider reading the sun's apparent position from SPK kernels.

    Kernels must be loaded with :func:`load_ephemeris` first. Solar noon is
    the altitude peak in a day-long window around the reference instant. The
    window is then re-centred on that noon: the rising crossing is the last
    upward one before noon and the setting crossing the first downward one
    after it.
    """

    def __init__(self) -> None:
        if _LOADED_FILES is None:
            raise EphemerisError("Ephemeris kernels have not been loaded")

    def position(self, instant: datetime, lat: float, lon: float) -> SunPosition:
        site = _site(lat, lon)
        direction = _sun_direction(instant, site)
        altitude = math.degrees(math.asin(float(np.clip(np.dot(direction, site.up), -1.0, 1.0))))
        compass = math.degrees(
            math.atan2(float(np.dot(direction, site.east)), float(np.dot(direction, site.north)))
        )
        # Provider convention: 0 at South, increasing westward.
        azimuth = compass % 360.0 - 180.0
        return SunPosition(altitude_deg=altitude, azimuth_deg=azimuth)

    def times(self, instant: datetime, lat: float, lon: float) -> SunTimes:
        site = _site(lat, lon)

        def altitude(dt: datetime) -> float:
            return _altitude_degrees(dt, site)

        stamps, samples = _sample(instant.astimezone(UTC), altitude)
        peak = int(np.argmax(samples))
        solar_noon = _refine_extremum(
            stamps[max(peak - 1, 0)], stamps[min(peak + 1, len(stamps) - 1)], altitude, 1.0
        )
        nadir = _refine_extremum(
            solar_noon - HALF_WINDOW - NADIR_MARGIN,
            solar_noon - HALF_WINDOW + NADIR_MARGIN,
            altitude,
            -1.0,
        )

        # Crossings belong to the solar day bracketing the refined noon.
        stamps, samples = _sample(solar_noon, altitude)
        middle = len(stamps) // 2
        events: Dict[str, Optional[datetime]] = {}
        for zone, threshold in ZONE_KINDS:
            rising_name, setting_name = ZONE_EVENTS[zone]
            rising: Optional[datetime] = None
            setting: Optional[datetime] = None
            for idx in range(middle, 0, -1):
                if samples[idx - 1] - threshold < 0 <= samples[idx] - threshold:
                    rising = _refine_crossing(stamps[idx - 1], stamps[idx], altitude, threshold)
                    break
            for idx in range(middle + 1, len(stamps)):
                if samples[idx - 1] - threshold >= 0 > samples[idx] - threshold:
                    setting = _refine_crossing(stamps[idx - 1], stamps[idx], altitude, threshold)
                    break
            events[rising_name] = rising
            events[setting_name] = setting

        return SunTimes(solar_noon=solar_noon, nadir=nadir, **events)
