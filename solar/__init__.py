"""Solar time engine: daylight, twilight, milestones and seasons for any place and date."""

from .cache import CACHE_MAX_LARGE, CACHE_MAX_MEDIUM, CACHE_MAX_SMALL, LRUCache
from .config import EngineConfig
from .day import SolarDay, SolarDayCalculator, day_of_year, days_in_year, is_leap_year
from .engine import SolarEngine
from .ephemeris import TWILIGHT_ANGLES, AnalyticEphemeris, EphemerisProvider, SunPosition, SunTimes
from .milestones import Milestone, MilestoneKind, ScanSettings, group_by_date
from .seasons import SolsticeEquinoxSolver, ecliptic_longitude, season_name
from .twilight import TwilightZoneBands, resolve_zone, rotate_bands
from .zones import ZonedCalendar

__all__ = [
    "CACHE_MAX_LARGE",
    "CACHE_MAX_MEDIUM",
    "CACHE_MAX_SMALL",
    "LRUCache",
    "EngineConfig",
    "SolarDay",
    "SolarDayCalculator",
    "day_of_year",
    "days_in_year",
    "is_leap_year",
    "SolarEngine",
    "TWILIGHT_ANGLES",
    "AnalyticEphemeris",
    "EphemerisProvider",
    "SunPosition",
    "SunTimes",
    "Milestone",
    "MilestoneKind",
    "ScanSettings",
    "group_by_date",
    "SolsticeEquinoxSolver",
    "ecliptic_longitude",
    "season_name",
    "TwilightZoneBands",
    "resolve_zone",
    "rotate_bands",
    "ZonedCalendar",
]
