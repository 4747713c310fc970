from __future__ import annotations

import logging
from datetime import UTC, date, datetime
from pathlib import Path

import sys

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

import pytest
import pytz

from solar.zones import CivilFields, ZonedCalendar


@pytest.fixture()
def calendar() -> ZonedCalendar:
    return ZonedCalendar()


def test_instant_of_inverts_local_time(calendar: ZonedCalendar):
    instant = calendar.instant_of(2024, 7, 1, 12, 0, "Europe/Oslo")
    assert instant == datetime(2024, 7, 1, 10, 0, tzinfo=UTC)
    assert calendar.civil_fields_of(instant, "Europe/Oslo") == CivilFields(2024, 7, 1, 12, 0)


def test_instant_of_handles_large_offsets(calendar: ZonedCalendar):
    instant = calendar.instant_of(2024, 1, 1, 0, 0, "Pacific/Kiritimati")
    assert instant == datetime(2023, 12, 31, 10, 0, tzinfo=UTC)
    assert calendar.calendar_day(instant, "Pacific/Kiritimati") == date(2024, 1, 1)


def test_skipped_local_time_resolves_to_neighbouring_instant(calendar: ZonedCalendar):
    # 02:30 does not exist in Oslo on the spring-forward night.
    instant = calendar.instant_of(2024, 3, 31, 2, 30, "Europe/Oslo")
    assert instant in (
        datetime(2024, 3, 31, 0, 30, tzinfo=UTC),
        datetime(2024, 3, 31, 1, 30, tzinfo=UTC),
    )


def test_unknown_zone_falls_back_to_utc(calendar: ZonedCalendar, caplog: pytest.LogCaptureFixture):
    with caplog.at_level(logging.WARNING):
        assert calendar.zone("Mars/Olympus_Mons") is pytz.utc
        instant = calendar.instant_of(2024, 5, 5, 8, 15, "Mars/Olympus_Mons")

    assert instant == datetime(2024, 5, 5, 8, 15, tzinfo=UTC)
    fallbacks = [record for record in caplog.records if "timezone_fallback" in record.getMessage()]
    assert len(fallbacks) == 1


def test_offsets_and_formatting(calendar: ZonedCalendar):
    summer = datetime(2024, 7, 1, 12, 0, tzinfo=UTC)
    winter = datetime(2024, 1, 15, 7, 5, tzinfo=UTC)

    assert calendar.utc_offset_minutes(summer, "Europe/Oslo") == 120
    assert calendar.utc_offset_minutes(winter, "Europe/Oslo") == 60
    assert calendar.utc_offset_minutes(summer, None) == 0
    assert calendar.format_time(winter, "Europe/Oslo") == "08:05"
    assert calendar.format_time(None, "Europe/Oslo") == "--:--"
    assert calendar.decimal_hour(winter, "Europe/Oslo") == pytest.approx(8 + 5 / 60)


def test_calendar_day_follows_the_zone(calendar: ZonedCalendar):
    late = datetime(2024, 1, 1, 23, 30, tzinfo=UTC)
    assert calendar.calendar_day(late, "Asia/Tokyo") == date(2024, 1, 2)
    assert calendar.calendar_day(late, "UTC") == date(2024, 1, 1)


def test_local_noon_and_midnight(calendar: ZonedCalendar):
    day = date(2024, 12, 1)
    assert calendar.local_noon(day, "America/New_York") == datetime(2024, 12, 1, 17, 0, tzinfo=UTC)
    assert calendar.midnight(day, "America/New_York") == datetime(2024, 12, 1, 5, 0, tzinfo=UTC)
