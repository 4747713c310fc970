"""Human-readable renderings of engine results."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from typing import Optional

from .day import DAY_MS, SolarDay
from .zones import ZonedCalendar

__all__ = [
    "DayStats",
    "format_duration",
    "format_duration_change",
    "format_duration_change_seconds",
    "format_date_short",
    "day_stats",
]

_MONTHS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")


def format_duration(ms: int) -> str:
    """``8h 32m`` style duration, saturating at ``24h 0m``."""
    if ms >= DAY_MS:
        return "24h 0m"
    hours, rest = divmod(max(ms, 0), 3_600_000)
    return f"{hours}h {rest // 60_000}m"


def format_duration_change(ms: int) -> str:
    sign = "+" if ms >= 0 else "-"
    hours, rest = divmod(abs(ms), 3_600_000)
    minutes = rest // 60_000
    if hours == 0:
        return f"{sign}{minutes}m"
    return f"{sign}{hours}h {minutes}m"


def format_duration_change_seconds(ms: int) -> str:
    sign = "+" if ms >= 0 else "-"
    minutes, rest = divmod(abs(ms), 60_000)
    return f"{sign}{minutes}m {rest // 1000}s"


def format_date_short(day: Optional[date]) -> str:
    if day is None:
        return "--"
    return f"{_MONTHS[day.month - 1]} {day.day}"


@dataclass(frozen=True)
class DayStats:
    date_label: str
    sunrise: str
    sunset: str
    daylight: str
    is_polar_day: bool
    is_polar_night: bool
    change: Optional[str] = None
    change_seconds: Optional[str] = None


def day_stats(
    solar_day: SolarDay,
    calendar: ZonedCalendar,
    zone: Optional[str] = None,
    previous: Optional[SolarDay] = None,
) -> DayStats:
    """Tooltip strings for one day; polar days show the condition instead of times.

    With *previous*, the change in daylight since that day is included.
    """

    change = change_seconds = None
    if previous is not None and previous.date + timedelta(days=1) == solar_day.date:
        delta = solar_day.daylight_ms - previous.daylight_ms
        change = format_duration_change(delta)
        change_seconds = format_duration_change_seconds(delta)

    if solar_day.is_polar_day:
        sunrise = sunset = "Polar day"
    elif solar_day.is_polar_night:
        sunrise = sunset = "Polar night"
    else:
        sunrise = calendar.format_time(solar_day.sunrise, zone)
        sunset = calendar.format_time(solar_day.sunset, zone)
    return DayStats(
        date_label=format_date_short(solar_day.date),
        sunrise=sunrise,
        sunset=sunset,
        daylight=format_duration(solar_day.daylight_ms),
        is_polar_day=solar_day.is_polar_day,
        is_polar_night=solar_day.is_polar_night,
        change=change,
        change_seconds=change_seconds,
    )
