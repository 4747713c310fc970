from __future__ import annotations

from datetime import date
from pathlib import Path

import sys

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

import pytest

from solar import SolarEngine
from solar.mirror import MIRROR_LATITUDE


@pytest.fixture(scope="module")
def engine() -> SolarEngine:
    return SolarEngine()


def test_spring_date_mirrors_into_late_summer(engine: SolarEngine):
    mirror = engine.mirror_of(date(2024, 5, 1))

    assert mirror is not None
    assert date(2024, 8, 1) <= mirror <= date(2024, 8, 20)
    series = engine.year_series(MIRROR_LATITUDE, 2024)
    diff_ms = abs(series.on(mirror).daylight_ms - series.on(date(2024, 5, 1)).daylight_ms)
    assert diff_ms < 5 * 60_000


def test_mirror_is_roughly_symmetric(engine: SolarEngine):
    day = date(2024, 4, 10)
    mirror = engine.mirror_of(day)
    assert mirror is not None
    back = engine.mirror_of(mirror)
    assert back is not None
    assert abs((back - day).days) <= 2


def test_winter_date_mirrors_into_autumn(engine: SolarEngine):
    mirror = engine.mirror_of(date(2024, 2, 14))
    assert mirror is not None
    assert mirror.month in (10, 11)
