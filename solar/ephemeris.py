"""Ephemeris provider contract and the default closed-form solar model."""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Dict, Optional, Protocol, Tuple

__all__ = [
    "TWILIGHT_ANGLES",
    "ZONE_KINDS",
    "ZONE_EVENTS",
    "SunPosition",
    "SunTimes",
    "EphemerisProvider",
    "AnalyticEphemeris",
]

TWILIGHT_ANGLES: Dict[str, float] = {
    "official": -0.833,
    "civil": -6.0,
    "nautical": -12.0,
    "astronomical": -18.0,
}

# Zone kinds in nesting order, each paired with its altitude threshold.
ZONE_KINDS: Tuple[Tuple[str, float], ...] = (
    ("daylight", TWILIGHT_ANGLES["official"]),
    ("civil", TWILIGHT_ANGLES["civil"]),
    ("nautical", TWILIGHT_ANGLES["nautical"]),
    ("astronomical", TWILIGHT_ANGLES["astronomical"]),
)

# Rising/setting event names bounding each zone.
ZONE_EVENTS: Dict[str, Tuple[str, str]] = {
    "daylight": ("sunrise", "sunset"),
    "civil": ("dawn", "dusk"),
    "nautical": ("nautical_dawn", "nautical_dusk"),
    "astronomical": ("night_end", "night"),
}

_RAD = math.pi / 180.0
_DAY_SECONDS = 86400.0
_J1970 = 2440588.0
_J2000 = 2451545.0
_J0 = 0.0009
_OBLIQUITY = _RAD * 23.4397


@dataclass(frozen=True)
class SunPosition:
    """Apparent sun direction; azimuth is 0 at South, increasing westward."""

    altitude_deg: float
    azimuth_deg: float


@dataclass(frozen=True)
class SunTimes:
    """Named solar events of one solar day; ``None`` when a crossing does not occur."""

    solar_noon: datetime
    nadir: datetime
    sunrise: Optional[datetime] = None
    sunset: Optional[datetime] = None
    dawn: Optional[datetime] = None
    dusk: Optional[datetime] = None
    nautical_dawn: Optional[datetime] = None
    nautical_dusk: Optional[datetime] = None
    night_end: Optional[datetime] = None
    night: Optional[datetime] = None

    def crossings(self, zone: str) -> Tuple[Optional[datetime], Optional[datetime]]:
        """Return the (rising, setting) instants bounding *zone*."""

        rising, setting = ZONE_EVENTS[zone]
        return getattr(self, rising), getattr(self, setting)


class EphemerisProvider(Protocol):
    def position(self, instant: datetime, lat: float, lon: float) -> SunPosition:
        ...

    def times(self, instant: datetime, lat: float, lon: float) -> SunTimes:
        ...


def _to_days(instant: datetime) -> float:
    return instant.timestamp() / _DAY_SECONDS - 0.5 + _J1970 - _J2000


def _from_julian(julian: float) -> datetime:
    return datetime.fromtimestamp((julian + 0.5 - _J1970) * _DAY_SECONDS, tz=UTC)


def _mean_anomaly(days: float) -> float:
    return _RAD * (357.5291 + 0.98560028 * days)


def _ecliptic_longitude(mean_anomaly: float) -> float:
    center = _RAD * (
        1.9148 * math.sin(mean_anomaly)
        + 0.02 * math.sin(2 * mean_anomaly)
        + 0.0003 * math.sin(3 * mean_anomaly)
    )
    perihelion = _RAD * 102.9372
    return mean_anomaly + center + perihelion + math.pi


def _declination(longitude: float) -> float:
    return math.asin(math.sin(_OBLIQUITY) * math.sin(longitude))


def _right_ascension(longitude: float) -> float:
    return math.atan2(math.sin(longitude) * math.cos(_OBLIQUITY), math.cos(longitude))


def _transit(approx: float, mean_anomaly: float, longitude: float) -> float:
    return _J2000 + approx + 0.0053 * math.sin(mean_anomaly) - 0.0069 * math.sin(2 * longitude)


class AnalyticEphemeris:
    """Low-precision solar model (equation of centre with three harmonics).

    Accuracy is around a minute for event times, well inside the tolerances
    needed for calendar-level facts.
    """

    def position(self, instant: datetime, lat: float, lon: float) -> SunPosition:
        lw = -_RAD * lon
        phi = _RAD * lat
        days = _to_days(instant)

        longitude = _ecliptic_longitude(_mean_anomaly(days))
        dec = _declination(longitude)
        ra = _right_ascension(longitude)
        hour_angle = _RAD * (280.16 + 360.9856235 * days) - lw - ra

        azimuth = math.atan2(
            math.sin(hour_angle),
            math.cos(hour_angle) * math.sin(phi) - math.tan(dec) * math.cos(phi),
        )
        altitude = math.asin(
            math.sin(phi) * math.sin(dec)
            + math.cos(phi) * math.cos(dec) * math.cos(hour_angle)
        )
        return SunPosition(altitude_deg=math.degrees(altitude), azimuth_deg=math.degrees(azimuth))

    def times(self, instant: datetime, lat: float, lon: float) -> SunTimes:
        lw = -_RAD * lon
        phi = _RAD * lat
        days = _to_days(instant)

        cycle = round(days - _J0 - lw / (2 * math.pi))
        approx = _J0 + lw / (2 * math.pi) + cycle
        mean_anomaly = _mean_anomaly(approx)
        longitude = _ecliptic_longitude(mean_anomaly)
        dec = _declination(longitude)
        j_noon = _transit(approx, mean_anomaly, longitude)

        events: Dict[str, Optional[datetime]] = {}
        for zone, threshold in ZONE_KINDS:
            rising, setting = ZONE_EVENTS[zone]
            cos_h = (math.sin(_RAD * threshold) - math.sin(phi) * math.sin(dec)) / (
                math.cos(phi) * math.cos(dec)
            )
            if not -1.0 <= cos_h <= 1.0:
                events[rising] = events[setting] = None
                continue
            hour_angle = math.acos(cos_h)
            j_set = _transit(
                _J0 + (hour_angle + lw) / (2 * math.pi) + cycle, mean_anomaly, longitude
            )
            j_rise = j_noon - (j_set - j_noon)
            events[rising] = _from_julian(j_rise)
            events[setting] = _from_julian(j_set)

        return SunTimes(
            solar_noon=_from_julian(j_noon),
            nadir=_from_julian(j_noon - 0.5),
            **events,
        )
