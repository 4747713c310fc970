"""Whole-year daylight series for a latitude."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import date
from typing import Dict, Iterable, Iterator, List, Optional, Tuple

from joblib import Parallel, delayed

from .cache import CACHE_MAX_SMALL, LRUCache
from .day import (
    SolarDay,
    SolarDayCalculator,
    date_from_day_of_year,
    day_of_year,
    days_in_year,
)

__all__ = [
    "YearSeries",
    "YearSeriesBuilder",
    "find_dates_with_daylight",
    "find_date_with_gain",
]

LOGGER = logging.getLogger(__name__)

_HOUR_MS = 3_600_000


@dataclass(frozen=True)
class YearSeries:
    """One :class:`SolarDay` per calendar day; index 0 is January 1."""

    latitude: float
    year: int
    days: Tuple[SolarDay, ...]

    def __len__(self) -> int:
        return len(self.days)

    def __iter__(self) -> Iterator[SolarDay]:
        return iter(self.days)

    def __getitem__(self, index: int) -> SolarDay:
        return self.days[index]

    def on(self, day: date) -> SolarDay:
        """Entry for the same day-of-year as *day* (clamped to the series length)."""
        return self.days[min(day_of_year(day), len(self.days)) - 1]

    def at_offset(self, start_ordinal: int, offset: int) -> SolarDay:
        """Entry *offset* days after the 1-based *start_ordinal*, wrapping around the year."""
        return self.days[(start_ordinal - 1 + offset) % len(self.days)]


class YearSeriesBuilder:
    """Builds and memoises :class:`YearSeries` for (latitude, year) pairs.

    Series are latitude-only aggregates, computed at longitude 0 in solar time.
    """

    def __init__(self, calculator: SolarDayCalculator, cache: Optional[LRUCache] = None) -> None:
        self.calculator = calculator
        self._cache = cache if cache is not None else LRUCache(CACHE_MAX_SMALL)

    def build(self, latitude: float, year: int) -> YearSeries:
        return self._cache.get_or_compute(
            ("year", latitude, year), lambda: self._compute(latitude, year)
        )

    def _compute(self, latitude: float, year: int) -> YearSeries:
        days = tuple(
            self.calculator.solar_day(date_from_day_of_year(year, ordinal), latitude)
            for ordinal in range(1, days_in_year(year) + 1)
        )
        return YearSeries(latitude=latitude, year=year, days=days)

    def precompute(
        self, latitudes: Iterable[float], year: int, n_jobs: int = -1
    ) -> Dict[float, YearSeries]:
        """Build the series of many latitudes in parallel threads sharing this builder's caches."""

        latitudes = list(dict.fromkeys(latitudes))
        if not latitudes:
            return {}
        results = Parallel(n_jobs=n_jobs, prefer="threads")(
            delayed(self.build)(latitude, year) for latitude in latitudes
        )
        LOGGER.info(
            json.dumps({"event": "year_series_precomputed", "year": year, "count": len(results)})
        )
        return {series.latitude: series for series in results}

    def clear(self) -> None:
        self._cache.clear()


def find_dates_with_daylight(series: YearSeries, target_hours: float) -> List[SolarDay]:
    """Up to two days on which daylight crosses *target_hours*, nearest side of each crossing."""

    target_ms = target_hours * _HOUR_MS
    crossings: List[SolarDay] = []
    for prev, curr in zip(series.days, series.days[1:]):
        rising = prev.daylight_ms < target_ms <= curr.daylight_ms
        falling = prev.daylight_ms > target_ms >= curr.daylight_ms
        if not (rising or falling):
            continue
        if abs(curr.daylight_ms - target_ms) <= abs(prev.daylight_ms - target_ms):
            crossings.append(curr)
        else:
            crossings.append(prev)

    unique: List[SolarDay] = []
    for candidate in crossings:
        ordinal = day_of_year(candidate.date)
        if all(abs(day_of_year(kept.date) - ordinal) >= 5 for kept in unique):
            unique.append(candidate)
    return unique[:2]


def find_date_with_gain(
    series: YearSeries, selected: date, gain_hours: float, tolerance_minutes: float = 5.0
) -> Optional[SolarDay]:
    """First day after *selected* whose daylight has changed by *gain_hours* (negative for a loss)."""

    start = day_of_year(selected)
    current = series.on(selected).daylight_ms
    target = current + gain_hours * _HOUR_MS
    tolerance = tolerance_minutes * 60_000
    gaining = gain_hours > 0

    for offset in range(1, len(series)):
        candidate = series.at_offset(start, offset)
        if gaining and candidate.daylight_ms <= current:
            continue
        if not gaining and candidate.daylight_ms >= current:
            continue
        reached = candidate.daylight_ms >= target if gaining else candidate.daylight_ms <= target
        if reached or abs(candidate.daylight_ms - target) <= tolerance:
            return candidate
    return None
