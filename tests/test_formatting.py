from __future__ import annotations

from datetime import date
from pathlib import Path

import sys

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from solar import SolarEngine
from solar.day import DAY_MS
from solar.formatting import (
    format_date_short,
    format_duration,
    format_duration_change,
    format_duration_change_seconds,
)
from solar.locations import PRESET_LOCATIONS, find_preset


def test_format_duration():
    assert format_duration(8 * 3_600_000 + 32 * 60_000 + 59_000) == "8h 32m"
    assert format_duration(0) == "0h 0m"
    assert format_duration(DAY_MS) == "24h 0m"
    assert format_duration(DAY_MS + 1) == "24h 0m"


def test_format_duration_change():
    assert format_duration_change(65 * 60_000) == "+1h 5m"
    assert format_duration_change(-3 * 60_000) == "-3m"
    assert format_duration_change(0) == "+0m"
    assert format_duration_change_seconds(125_000) == "+2m 5s"
    assert format_duration_change_seconds(-61_500) == "-1m 1s"


def test_format_date_short():
    assert format_date_short(date(2024, 3, 5)) == "Mar 5"
    assert format_date_short(None) == "--"


def test_day_stats_show_polar_conditions():
    engine = SolarEngine()
    location = find_preset("Longyearbyen, Svalbard")
    assert location is not None

    winter = engine.day_stats(date(2024, 1, 1), location.latitude, location.longitude, location.timezone)
    summer = engine.day_stats(date(2024, 6, 21), location.latitude, location.longitude, location.timezone)

    assert winter.sunrise == winter.sunset == "Polar night"
    assert winter.daylight == "0h 0m"
    assert summer.sunrise == "Polar day"
    assert summer.daylight == "24h 0m"
    assert summer.date_label == "Jun 21"


def test_day_stats_show_local_times():
    engine = SolarEngine()
    stats = engine.day_stats(date(2024, 7, 1), 59.9, 10.7, "Europe/Oslo")

    hours, minutes = (int(part) for part in stats.sunrise.split(":"))
    assert 3 <= hours <= 4 and 0 <= minutes < 60
    assert stats.sunset.startswith("22:")


def test_presets():
    assert len({location.name for location in PRESET_LOCATIONS}) == len(PRESET_LOCATIONS)
    assert all(-90.0 <= location.latitude <= 90.0 for location in PRESET_LOCATIONS)
    assert find_preset("  oslo, norway ").timezone == "Europe/Oslo"
    assert find_preset("Atlantis") is None


def test_day_stats_report_change_since_previous_day():
    engine = SolarEngine()
    spring = engine.day_stats(date(2024, 3, 20), 59.9, 10.7, "Europe/Oslo")
    autumn = engine.day_stats(date(2024, 9, 22), 59.9, 10.7, "Europe/Oslo")

    assert spring.change is not None and spring.change.startswith("+")
    assert spring.change_seconds.startswith("+5m") or spring.change_seconds.startswith("+6m")
    assert autumn.change_seconds.startswith("-")

    polar = engine.day_stats(date(2024, 6, 21), 78.2, 15.6, "Arctic/Longyearbyen")
    assert polar.change == "+0m"
