from __future__ import annotations

from datetime import date
from pathlib import Path

import sys

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

import pytest

from solar import SolarEngine
from solar.ephemeris import ZONE_KINDS
from solar.twilight import merge_bands, resolve_zone, rotate_bands, twilight_durations

ZONE_NAMES = [name for name, _ in ZONE_KINDS]


@pytest.fixture(scope="module")
def engine() -> SolarEngine:
    return SolarEngine()


def _flatten(bands):
    return [value for band in bands for value in band]


def test_resolve_zone_ordinary_day():
    assert resolve_zone(6.0, 18.0, 45.0, -0.833) == ((6.0, 18.0),)


def test_resolve_zone_without_crossings_uses_noon_altitude():
    assert resolve_zone(None, None, 10.0, -0.833) == ((0.0, 24.0),)
    assert resolve_zone(None, None, -30.0, -0.833) == ()


def test_resolve_zone_single_crossing():
    assert resolve_zone(None, 3.0, 5.0, -6.0) == ((0.0, 3.0),)
    assert resolve_zone(21.0, None, 5.0, -6.0) == ((21.0, 24.0),)
    assert resolve_zone(21.0, None, -10.0, -6.0) == ()


def test_resolve_zone_wraps_unordered_crossings():
    assert resolve_zone(20.0, 4.0, 5.0, -0.833) == ((0.0, 4.0), (20.0, 24.0))
    assert resolve_zone(5.0, 5.0, 5.0, -0.833) == ()


def test_resolve_zone_clamps_to_the_day():
    assert resolve_zone(-0.5, 24.5, 5.0, -0.833) == ((0.0, 24.0),)


def test_rotate_bands_splits_at_midnight():
    assert rotate_bands(((6.0, 18.0),), 1.0) == ((7.0, 19.0),)
    assert rotate_bands(((20.0, 23.0),), 2.0) == ((0.0, 1.0), (22.0, 24.0))


def test_rotate_bands_is_invertible():
    original = ((6.0, 18.0),)
    rotated = rotate_bands(original, 10.0)
    assert rotated == ((0.0, 4.0), (16.0, 24.0))
    assert _flatten(rotate_bands(rotated, -10.0)) == pytest.approx(_flatten(original))


def test_merge_bands_drops_empty_and_joins_touching():
    assert merge_bands([(5.0, 5.0), (3.0, 4.0), (1.0, 3.0)]) == ((1.0, 4.0),)


def test_bands_are_nested_and_bounded(engine: SolarEngine):
    bands = engine.bands(date(2024, 6, 21), 51.5, -0.1, "Europe/London")

    totals = [bands.total(name) for name in ZONE_NAMES]
    assert totals == sorted(totals)
    for name in ZONE_NAMES:
        zone = bands.zone(name)
        assert len(zone) <= 2
        for start, end in zone:
            assert 0.0 <= start < end <= 24.0

    # Astronomical twilight never ends around the June solstice in London.
    assert bands.astronomical == ((0.0, 24.0),)


def test_daylight_band_matches_local_sunrise(engine: SolarEngine):
    day = date(2024, 6, 21)
    bands = engine.bands(day, 51.5, -0.1, "Europe/London")
    solar_day = engine.solar_day(day, 51.5, -0.1, "Europe/London")

    ((start, end),) = bands.daylight
    assert start == pytest.approx(engine.calendar.decimal_hour(solar_day.sunrise, "Europe/London"), abs=0.05)
    assert end == pytest.approx(engine.calendar.decimal_hour(solar_day.sunset, "Europe/London"), abs=0.05)


def test_polar_night_has_no_daylight_band(engine: SolarEngine):
    bands = engine.bands(date(2024, 1, 1), 78.2, 15.6, "Arctic/Longyearbyen")
    assert bands.daylight == ()
    assert bands.astronomical


def test_durations_add_up_to_a_day(engine: SolarEngine):
    bands = engine.bands(date(2024, 3, 1), 40.7, -74.0, "America/New_York")
    durations = twilight_durations(bands)

    assert set(durations) == {*ZONE_NAMES, "night"}
    assert sum(durations.values()) == pytest.approx(24.0)
    assert durations["civil"] == pytest.approx(bands.total("civil") - bands.total("daylight"))
