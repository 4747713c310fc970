from __future__ import annotations

from datetime import UTC, date, datetime
from pathlib import Path

import sys

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

import pytest

from solar import SolarEngine
from solar.day import DAY_MS, date_from_day_of_year, day_of_year, days_in_year, is_leap_year

LONGYEARBYEN = (78.2, 15.6, "Arctic/Longyearbyen")


@pytest.fixture()
def engine() -> SolarEngine:
    return SolarEngine()


def test_calendar_helpers():
    assert is_leap_year(2024)
    assert not is_leap_year(1900)
    assert is_leap_year(2000)
    assert days_in_year(2023) == 365
    assert day_of_year(date(2024, 12, 31)) == 366
    assert date_from_day_of_year(2024, 60) == date(2024, 2, 29)


def test_polar_night_in_longyearbyen(engine: SolarEngine):
    lat, lon, zone = LONGYEARBYEN
    day = engine.solar_day(date(2024, 1, 1), lat, lon, zone)

    assert day.is_polar_night
    assert not day.is_polar_day
    assert day.daylight_ms == 0
    assert day.sunrise is None and day.sunset is None
    assert day.max_altitude_deg < 0


def test_midnight_sun_in_longyearbyen(engine: SolarEngine):
    lat, lon, zone = LONGYEARBYEN
    day = engine.solar_day(date(2024, 6, 21), lat, lon, zone)

    assert day.is_polar_day
    assert day.daylight_ms == DAY_MS
    assert day.sunrise is None and day.sunset is None


def test_equator_near_equinox_has_twelve_hours(engine: SolarEngine):
    day = engine.solar_day(date(2024, 3, 20), 0.0, 0.0)

    assert not day.is_polar_day and not day.is_polar_night
    assert abs(day.daylight_hours - 12.0) < 0.25
    assert day.max_altitude_deg > 88.0


def test_events_are_ordered_around_solar_noon(engine: SolarEngine):
    day = engine.solar_day(date(2024, 5, 1), 51.5, -0.1, "Europe/London")

    assert day.sunrise is not None and day.sunset is not None
    assert day.sunrise < day.solar_noon < day.sunset
    assert day.sunrise.astimezone(UTC).date() == date(2024, 5, 1)
    assert day.daylight_ms == round((day.sunset - day.sunrise).total_seconds() * 1000)
    assert day.nadir is not None and day.nadir < day.sunrise
    assert (day.solar_noon - day.nadir).total_seconds() == pytest.approx(43_200, abs=1)


def test_daylight_stays_within_bounds_over_a_year(engine: SolarEngine):
    for solar_day in engine.year_series(70.0, 2024):
        assert 0 <= solar_day.daylight_ms <= DAY_MS
        assert not (solar_day.is_polar_day and solar_day.is_polar_night)
        if solar_day.is_polar_day:
            assert solar_day.daylight_ms == DAY_MS
        if solar_day.is_polar_night:
            assert solar_day.daylight_ms == 0


def test_results_are_memoised(engine: SolarEngine):
    first = engine.solar_day(date(2024, 2, 2), 40.0, -3.7, "Europe/Madrid")
    second = engine.solar_day(date(2024, 2, 2), 40.0, -3.7, "Europe/Madrid")
    assert first is second

    engine.reset()
    assert engine.cache_sizes()["large"] == 0
    assert engine.solar_day(date(2024, 2, 2), 40.0, -3.7, "Europe/Madrid") == first


def test_sun_is_due_south_at_solar_noon(engine: SolarEngine):
    day = engine.solar_day(date(2024, 6, 21), 45.0, 0.0)
    sample = engine.sun_position(day.solar_noon, 45.0, 0.0)

    assert abs(sample.azimuth_deg - 180.0) < 3.0
    assert sample.altitude_deg == pytest.approx(day.max_altitude_deg)


def test_sun_path_covers_the_civil_day(engine: SolarEngine):
    samples = engine.sun_path(date(2024, 6, 21), 51.5, -0.1, "Europe/London")

    assert len(samples) == 24 * 12
    assert samples[0].time == datetime(2024, 6, 20, 23, 0, tzinfo=UTC)
    assert all(0.0 <= sample.azimuth_deg < 360.0 for sample in samples)
    assert max(sample.altitude_deg for sample in samples) > 60.0
