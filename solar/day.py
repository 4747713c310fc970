"""Per-day sun facts for a single location."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, date, datetime, timedelta
from typing import List, Optional, Tuple

from .cache import CACHE_MAX_LARGE, LRUCache
from .ephemeris import EphemerisProvider, SunPosition
from .zones import ZonedCalendar

__all__ = [
    "DAY_MS",
    "SolarDay",
    "SunSample",
    "SolarDayCalculator",
    "is_leap_year",
    "days_in_year",
    "day_of_year",
    "date_from_day_of_year",
]

DAY_MS = 86_400_000
_HOUR_MS = 3_600_000


def is_leap_year(year: int) -> bool:
    return (year % 4 == 0 and year % 100 != 0) or year % 400 == 0


def days_in_year(year: int) -> int:
    return 366 if is_leap_year(year) else 365


def day_of_year(day: date) -> int:
    """1-based ordinal of *day* within its year."""
    return day.timetuple().tm_yday


def date_from_day_of_year(year: int, ordinal: int) -> date:
    return date(year, 1, 1) + timedelta(days=ordinal - 1)


@dataclass(frozen=True)
class SolarDay:
    date: date
    sunrise: Optional[datetime]
    sunset: Optional[datetime]
    solar_noon: datetime
    daylight_ms: int
    max_altitude_deg: float
    is_polar_day: bool = False
    is_polar_night: bool = False
    nadir: Optional[datetime] = None  # lowest sun, half a day before solar_noon

    @property
    def daylight_hours(self) -> float:
        return self.daylight_ms / _HOUR_MS


@dataclass(frozen=True)
class SunSample:
    time: datetime
    altitude_deg: float
    azimuth_deg: float  # compass bearing, North = 0, increasing eastward


class SolarDayCalculator:
    """Computes :class:`SolarDay` values, memoised per (date, lat, lon, zone)."""

    PATH_STEP_MINUTES = 5

    def __init__(
        self,
        provider: EphemerisProvider,
        calendar: ZonedCalendar,
        cache: Optional[LRUCache] = None,
    ) -> None:
        self.provider = provider
        self.calendar = calendar
        self._cache = cache if cache is not None else LRUCache(CACHE_MAX_LARGE)

    def reference_noon(self, day: date, lon: float = 0.0, zone: Optional[str] = None) -> datetime:
        """Noon of the calendar day, in *zone* or else in the longitude's solar time.

        Noon rather than midnight keeps the UTC-based event search on the same
        day as the civil date in zones far from UTC.
        """

        if zone:
            return self.calendar.local_noon(day, zone)
        return datetime(day.year, day.month, day.day, 12, tzinfo=UTC) - timedelta(hours=lon / 15)

    def solar_day(
        self, day: date, lat: float, lon: float = 0.0, zone: Optional[str] = None
    ) -> SolarDay:
        key = ("day", day, lat, lon, zone)
        return self._cache.get_or_compute(key, lambda: self._compute(day, lat, lon, zone))

    def _compute(self, day: date, lat: float, lon: float, zone: Optional[str]) -> SolarDay:
        times = self.provider.times(self.reference_noon(day, lon, zone), lat, lon)
        noon_altitude = self.provider.position(times.solar_noon, lat, lon).altitude_deg

        sunrise, sunset = times.sunrise, times.sunset
        is_polar_day = is_polar_night = False
        if sunrise is None or sunset is None:
            if noon_altitude > 0:
                is_polar_day = True
                daylight_ms = DAY_MS
            else:
                is_polar_night = True
                daylight_ms = 0
            sunrise = sunset = None
        else:
            daylight_ms = round((sunset - sunrise).total_seconds() * 1000)
            daylight_ms = min(max(daylight_ms, 0), DAY_MS)

        return SolarDay(
            date=day,
            sunrise=sunrise,
            sunset=sunset,
            solar_noon=times.solar_noon,
            daylight_ms=daylight_ms,
            max_altitude_deg=noon_altitude,
            is_polar_day=is_polar_day,
            is_polar_night=is_polar_night,
            nadir=times.nadir,
        )

    def sun_position(self, instant: datetime, lat: float, lon: float = 0.0) -> SunSample:
        """Altitude and compass azimuth of the sun at *instant*."""

        key = ("position", instant, lat, lon)
        position: SunPosition = self._cache.get_or_compute(
            key, lambda: self.provider.position(instant, lat, lon)
        )
        return SunSample(
            time=instant,
            altitude_deg=position.altitude_deg,
            azimuth_deg=(position.azimuth_deg + 180.0) % 360.0,
        )

    def sun_path(
        self, day: date, lat: float, lon: float = 0.0, zone: Optional[str] = None
    ) -> Tuple[SunSample, ...]:
        """Sun position every five minutes across the civil day in *zone*."""

        samples: List[SunSample] = []
        for hour in range(24):
            for minute in range(0, 60, self.PATH_STEP_MINUTES):
                if zone:
                    instant = self.calendar.instant_of(day.year, day.month, day.day, hour, minute, zone)
                else:
                    instant = datetime(day.year, day.month, day.day, hour, minute, tzinfo=UTC)
                samples.append(self.sun_position(instant, lat, lon))
        return tuple(samples)

    def clear(self) -> None:
        self._cache.clear()
