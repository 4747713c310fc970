"""Daylight and twilight bands of a civil day, expressed in local clock hours.

Events are first resolved in the longitude's natural solar time (UTC offset
``lon / 15`` hours, no DST), where sunrise and sunset are well ordered inside
``[0, 24]``. The resulting intervals are then rotated onto the selected
timezone's clock, splitting any interval that crosses midnight.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, date, datetime, timedelta
from typing import Dict, Iterable, List, Optional, Tuple

from .cache import CACHE_MAX_LARGE, LRUCache
from .ephemeris import ZONE_KINDS, EphemerisProvider
from .zones import ZonedCalendar

__all__ = [
    "Band",
    "TwilightZoneBands",
    "TwilightBandResolver",
    "resolve_zone",
    "rotate_bands",
    "merge_bands",
    "twilight_durations",
]

Band = Tuple[float, float]

HOURS_PER_DAY = 24.0
_EPS = 1e-9


@dataclass(frozen=True)
class TwilightZoneBands:
    daylight: Tuple[Band, ...] = ()
    civil: Tuple[Band, ...] = ()
    nautical: Tuple[Band, ...] = ()
    astronomical: Tuple[Band, ...] = ()

    def zone(self, name: str) -> Tuple[Band, ...]:
        return getattr(self, name)

    def total(self, name: str) -> float:
        return sum(end - start for start, end in self.zone(name))


def _clamp(hours: float) -> float:
    return min(max(hours, 0.0), HOURS_PER_DAY)


def merge_bands(bands: Iterable[Band]) -> Tuple[Band, ...]:
    """Sort, drop empty fragments and join fragments that touch or overlap."""

    merged: List[Band] = []
    for start, end in sorted(bands):
        if end - start <= _EPS:
            continue
        if merged and start <= merged[-1][1] + _EPS:
            merged[-1] = (merged[-1][0], max(merged[-1][1], end))
        else:
            merged.append((start, end))
    return tuple(merged)


def resolve_zone(
    rise: Optional[float],
    set_: Optional[float],
    noon_altitude: float,
    threshold: float,
) -> Tuple[Band, ...]:
    """Band(s) of one zone from its boundary crossings, in hours of the natural solar day."""

    clears = noon_altitude > threshold
    if rise is not None and set_ is not None:
        rise, set_ = _clamp(rise), _clamp(set_)
        if rise < set_:
            return ((rise, set_),)
        if rise == set_:
            return ()
        return merge_bands([(0.0, set_), (rise, HOURS_PER_DAY)])
    if rise is not None:
        return ((_clamp(rise), HOURS_PER_DAY),) if clears else ()
    if set_ is not None:
        return ((0.0, _clamp(set_)),) if clears else ()
    return ((0.0, HOURS_PER_DAY),) if clears else ()


def rotate_bands(bands: Iterable[Band], shift: float) -> Tuple[Band, ...]:
    """Shift *bands* by *shift* hours around the 24-hour clock, splitting at midnight."""

    fragments: List[Band] = []
    for start, end in bands:
        length = min(end - start, HOURS_PER_DAY)
        if length <= 0:
            continue
        begin = (start + shift) % HOURS_PER_DAY
        finish = begin + length
        if finish <= HOURS_PER_DAY:
            fragments.append((begin, finish))
        else:
            fragments.append((begin, HOURS_PER_DAY))
            fragments.append((0.0, finish - HOURS_PER_DAY))
    return merge_bands(fragments)


def twilight_durations(bands: TwilightZoneBands) -> Dict[str, float]:
    """Hours spent in each zone, from differences of the nested zone totals."""

    durations: Dict[str, float] = {}
    previous = 0.0
    for name, _ in ZONE_KINDS:
        total = bands.total(name)
        durations[name] = max(total - previous, 0.0)
        previous = max(total, previous)
    durations["night"] = max(HOURS_PER_DAY - previous, 0.0)
    return durations


class TwilightBandResolver:
    def __init__(
        self,
        provider: EphemerisProvider,
        calendar: ZonedCalendar,
        cache: Optional[LRUCache] = None,
    ) -> None:
        self.provider = provider
        self.calendar = calendar
        self._cache = cache if cache is not None else LRUCache(CACHE_MAX_LARGE)

    @staticmethod
    def natural_midnight(day: date, lon: float) -> datetime:
        return datetime(day.year, day.month, day.day, tzinfo=UTC) - timedelta(hours=lon / 15)

    def bands(
        self, day: date, lat: float, lon: float = 0.0, zone: Optional[str] = None
    ) -> TwilightZoneBands:
        key = ("bands", day, lat, lon, zone)
        return self._cache.get_or_compute(key, lambda: self._compute(day, lat, lon, zone))

    def _compute(
        self, day: date, lat: float, lon: float, zone: Optional[str]
    ) -> TwilightZoneBands:
        midnight = self.natural_midnight(day, lon)
        times = self.provider.times(midnight + timedelta(hours=12), lat, lon)
        noon_altitude = self.provider.position(times.solar_noon, lat, lon).altitude_deg

        def hours(instant: Optional[datetime]) -> Optional[float]:
            if instant is None:
                return None
            return (instant - midnight).total_seconds() / 3600

        shift = (midnight - self.calendar.midnight(day, zone)).total_seconds() / 3600

        resolved: Dict[str, Tuple[Band, ...]] = {}
        for name, threshold in ZONE_KINDS:
            rise, set_ = times.crossings(name)
            natural = resolve_zone(hours(rise), hours(set_), noon_altitude, threshold)
            resolved[name] = rotate_bands(natural, shift)
        return TwilightZoneBands(**resolved)

    def clear(self) -> None:
        self._cache.clear()
