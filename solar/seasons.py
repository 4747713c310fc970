"""Solstice and equinox instants from a low-precision solar longitude."""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import UTC, date, datetime, timedelta
from typing import Dict, List, Optional, Tuple

import erfa

from .cache import CACHE_MAX_SMALL, LRUCache
from .day import day_of_year, days_in_year

__all__ = [
    "SEASON_EVENTS",
    "SeasonEvent",
    "SolsticeEquinoxSolver",
    "ecliptic_longitude",
    "season_name",
]

# Target ecliptic longitude -> (northern-hemisphere name, nominal month, nominal day).
SEASON_EVENTS: Dict[int, Tuple[str, int, int]] = {
    0: ("Spring Equinox", 3, 20),
    90: ("Summer Solstice", 6, 21),
    180: ("Autumn Equinox", 9, 22),
    270: ("Winter Solstice", 12, 21),
}

_SOUTHERN_NAMES = {
    "Winter Solstice": "Summer Solstice",
    "Summer Solstice": "Winter Solstice",
    "Spring Equinox": "Autumn Equinox",
    "Autumn Equinox": "Spring Equinox",
}


def _julian_date(instant: datetime) -> float:
    utc = instant.astimezone(UTC)
    jd1, jd2 = erfa.dtf2d(
        "UTC",
        utc.year,
        utc.month,
        utc.day,
        utc.hour,
        utc.minute,
        utc.second + utc.microsecond / 1_000_000,
    )
    return float(jd1 + jd2)


def ecliptic_longitude(instant: datetime) -> float:
    """Apparent solar ecliptic longitude in degrees [0, 360)."""

    n = _julian_date(instant) - 2451545.0
    mean_longitude = 280.466 + 0.9856474 * n
    anomaly = math.radians(357.528 + 0.9856003 * n)
    longitude = mean_longitude + 1.915 * math.sin(anomaly) + 0.020 * math.sin(2 * anomaly)
    return longitude % 360.0


def _signed_difference(angle: float, target: float) -> float:
    diff = angle - target
    if diff > 180:
        diff -= 360
    if diff < -180:
        diff += 360
    return diff


def season_name(northern_name: str, latitude: float) -> str:
    """Hemisphere-appropriate name: solstice and equinox names swap south of the equator."""

    if latitude >= 0:
        return northern_name
    return _SOUTHERN_NAMES.get(northern_name, northern_name)


@dataclass(frozen=True)
class SeasonEvent:
    name: str
    moment: datetime
    target_deg: int


class SolsticeEquinoxSolver:
    """Bisection for the instant the sun reaches a quarter-year ecliptic longitude."""

    MAX_ITERATIONS = 30
    TOLERANCE_DEG = 1e-4
    HALF_WINDOW = timedelta(days=5)

    def __init__(self, cache: Optional[LRUCache] = None) -> None:
        self._cache = cache if cache is not None else LRUCache(CACHE_MAX_SMALL)

    def moment_of(self, year: int, target_deg: int) -> datetime:
        if target_deg not in SEASON_EVENTS:
            raise ValueError(f"target longitude must be one of {sorted(SEASON_EVENTS)}")
        return self._cache.get_or_compute(
            ("season", year, target_deg), lambda: self._bisect(year, target_deg)
        )

    def _bisect(self, year: int, target_deg: int) -> datetime:
        _, month, day = SEASON_EVENTS[target_deg]
        nominal = datetime(year, month, day, tzinfo=UTC)
        low, high = nominal - self.HALF_WINDOW, nominal + self.HALF_WINDOW
        for _ in range(self.MAX_ITERATIONS):
            mid = low + (high - low) / 2
            diff = _signed_difference(ecliptic_longitude(mid), target_deg)
            if abs(diff) < self.TOLERANCE_DEG:
                return mid
            if diff < 0:
                low = mid
            else:
                high = mid
        return low + (high - low) / 2

    def march_equinox(self, year: int) -> datetime:
        return self.moment_of(year, 0)

    def june_solstice(self, year: int) -> datetime:
        return self.moment_of(year, 90)

    def september_equinox(self, year: int) -> datetime:
        return self.moment_of(year, 180)

    def december_solstice(self, year: int) -> datetime:
        return self.moment_of(year, 270)

    def events_of(self, year: int, latitude: float = 0.0) -> List[SeasonEvent]:
        return [
            SeasonEvent(
                name=season_name(name, latitude),
                moment=self.moment_of(year, target),
                target_deg=target,
            )
            for target, (name, _, _) in SEASON_EVENTS.items()
        ]

    def upcoming_events(
        self,
        selected: date,
        latitude: float = 0.0,
        count: int = 4,
        since: Optional[datetime] = None,
    ) -> List[SeasonEvent]:
        """The next *count* solstices/equinoxes from *since* (default: UTC start of *selected*)."""

        start = since or datetime(selected.year, selected.month, selected.day, tzinfo=UTC)
        candidates = self.events_of(selected.year, latitude) + self.events_of(selected.year + 1, latitude)
        candidates.sort(key=lambda event: event.moment)
        return [event for event in candidates if event.moment >= start][:count]

    def date_angle(self, day: date) -> float:
        """Angle of *day* on a circular year chart: 0 at the December solstice, clockwise."""

        solstice_ordinal = day_of_year(self.december_solstice(day.year).date())
        elapsed = (day_of_year(day) - solstice_ordinal) % days_in_year(day.year)
        return elapsed / days_in_year(day.year) * 360.0

    def clear(self) -> None:
        self._cache.clear()
