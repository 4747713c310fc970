"""Civil calendar conversions in IANA timezones."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import UTC, date, datetime, timedelta, tzinfo
from typing import Optional

import pytz

from .cache import CACHE_MAX_MEDIUM, LRUCache

__all__ = ["CivilFields", "ZonedCalendar"]

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class CivilFields:
    year: int
    month: int
    day: int
    hour: int
    minute: int

    @property
    def date(self) -> date:
        return date(self.year, self.month, self.day)


class ZonedCalendar:
    """Converts between UTC instants and wall-clock fields of a named timezone.

    Unknown zone names are treated as UTC so that formatting never fails.
    """

    MAX_ITERATIONS = 15

    def __init__(self, cache: Optional[LRUCache] = None) -> None:
        self._cache = cache if cache is not None else LRUCache(CACHE_MAX_MEDIUM)
        self._unknown: set[str] = set()

    def zone(self, name: Optional[str]) -> tzinfo:
        if not name:
            return pytz.utc
        try:
            return pytz.timezone(name)
        except pytz.UnknownTimeZoneError:
            if name not in self._unknown:
                self._unknown.add(name)
                LOGGER.warning(json.dumps({"event": "timezone_fallback", "zone": name}))
            return pytz.utc

    def local(self, instant: datetime, zone: Optional[str]) -> datetime:
        return instant.astimezone(self.zone(zone))

    def civil_fields_of(self, instant: datetime, zone: Optional[str]) -> CivilFields:
        local = self.local(instant, zone)
        return CivilFields(local.year, local.month, local.day, local.hour, local.minute)

    def calendar_day(self, instant: datetime, zone: Optional[str]) -> date:
        return self.local(instant, zone).date()

    def decimal_hour(self, instant: datetime, zone: Optional[str]) -> float:
        local = self.local(instant, zone)
        return local.hour + local.minute / 60

    def utc_offset_minutes(self, instant: datetime, zone: Optional[str]) -> int:
        offset = self.local(instant, zone).utcoffset() or timedelta(0)
        return int(offset.total_seconds() // 60)

    def format_time(self, instant: Optional[datetime], zone: Optional[str]) -> str:
        if instant is None:
            return "--:--"
        return self.local(instant, zone).strftime("%H:%M")

    def instant_of(
        self, year: int, month: int, day: int, hour: int, minute: int, zone: Optional[str]
    ) -> datetime:
        """Return the UTC instant showing the given wall-clock time in *zone*.

        Starts from UTC noon of the target day and corrects by the discrepancy
        observed after formatting in the zone. Local times skipped or repeated by
        a transition resolve to the closest valid instant found.
        """

        key = (year, month, day, hour, minute, zone)
        return self._cache.get_or_compute(
            key, lambda: self._search(year, month, day, hour, minute, zone)
        )

    def _search(
        self, year: int, month: int, day: int, hour: int, minute: int, zone: Optional[str]
    ) -> datetime:
        tz = self.zone(zone)
        target = datetime(year, month, day, hour, minute)
        guess = datetime(year, month, day, 12, tzinfo=UTC)
        best, best_error = guess, None
        for _ in range(self.MAX_ITERATIONS):
            error = target - guess.astimezone(tz).replace(tzinfo=None)
            if not error:
                return guess
            if best_error is None or abs(error) < best_error:
                best, best_error = guess, abs(error)
            guess += error
        return best

    def local_noon(self, day: date, zone: Optional[str]) -> datetime:
        return self.instant_of(day.year, day.month, day.day, 12, 0, zone)

    def midnight(self, day: date, zone: Optional[str]) -> datetime:
        return self.instant_of(day.year, day.month, day.day, 0, 0, zone)
