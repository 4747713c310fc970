"""Engine facade owning the providers, calculators and their caches."""

from __future__ import annotations

import json
import logging
from datetime import date, datetime, timedelta
from typing import Dict, Iterable, List, Optional, Tuple

from .cache import LRUCache
from .config import EngineConfig
from .day import SolarDay, SolarDayCalculator, SunSample
from .ephemeris import AnalyticEphemeris, EphemerisProvider
from .formatting import DayStats, day_stats
from .kernels import resolve_ephemeris_source
from .milestones import Milestone, MilestoneScanner, ScanSettings
from .mirror import MirrorDateFinder
from .seasons import SeasonEvent, SolsticeEquinoxSolver
from .series import YearSeries, YearSeriesBuilder, find_date_with_gain, find_dates_with_daylight
from .spice import SpiceEphemeris, load_ephemeris
from .twilight import TwilightBandResolver, TwilightZoneBands, twilight_durations
from .zones import ZonedCalendar

__all__ = ["SolarEngine"]

LOGGER = logging.getLogger(__name__)


class SolarEngine:
    """Entry point bundling every computation over one ephemeris provider.

    Each instance owns three cache tiers (large: per-day facts, medium:
    timezone lookups, small: yearly aggregates). :meth:`reset` empties them.
    """

    def __init__(
        self,
        provider: Optional[EphemerisProvider] = None,
        settings: Optional[ScanSettings] = None,
        config: Optional[EngineConfig] = None,
    ) -> None:
        self.config = config or EngineConfig()
        self.provider = provider or AnalyticEphemeris()
        self._large: LRUCache = LRUCache(self.config.cache_large)
        self._medium: LRUCache = LRUCache(self.config.cache_medium)
        self._small: LRUCache = LRUCache(self.config.cache_small)

        self.calendar = ZonedCalendar(self._medium)
        self.days = SolarDayCalculator(self.provider, self.calendar, self._large)
        self.series = YearSeriesBuilder(self.days, self._small)
        self.twilight = TwilightBandResolver(self.provider, self.calendar, self._large)
        self.seasons = SolsticeEquinoxSolver(self._small)
        self.mirror = MirrorDateFinder(self.series, self.seasons)
        self.milestones = MilestoneScanner(
            self.days, self.series, self.calendar, self.seasons, settings, self._small
        )

    @classmethod
    def from_config(cls, config: Optional[EngineConfig] = None, settings: Optional[ScanSettings] = None) -> "SolarEngine":
        """Build an engine with the provider named by ``config.ephemeris``."""

        config = config or EngineConfig.from_env()
        provider: EphemerisProvider
        if config.ephemeris == "spice":
            load_ephemeris(str(resolve_ephemeris_source(config)))
            provider = SpiceEphemeris()
        else:
            provider = AnalyticEphemeris()
        LOGGER.info(json.dumps({"event": "engine_created", "ephemeris": config.ephemeris}))
        return cls(provider=provider, settings=settings, config=config)

    def reset(self) -> None:
        sizes = {"large": len(self._large), "medium": len(self._medium), "small": len(self._small)}
        for cache in (self._large, self._medium, self._small):
            cache.clear()
        LOGGER.info(json.dumps({"event": "engine_reset", "evicted": sizes}))

    def cache_sizes(self) -> Dict[str, int]:
        return {"large": len(self._large), "medium": len(self._medium), "small": len(self._small)}

    # Per-day facts.

    def solar_day(self, day: date, lat: float, lon: float = 0.0, zone: Optional[str] = None) -> SolarDay:
        return self.days.solar_day(day, lat, lon, zone)

    def day_stats(self, day: date, lat: float, lon: float = 0.0, zone: Optional[str] = None) -> DayStats:
        previous = self.solar_day(day - timedelta(days=1), lat, lon, zone)
        return day_stats(self.solar_day(day, lat, lon, zone), self.calendar, zone, previous)

    def sun_position(self, instant: datetime, lat: float, lon: float = 0.0) -> SunSample:
        return self.days.sun_position(instant, lat, lon)

    def sun_path(self, day: date, lat: float, lon: float = 0.0, zone: Optional[str] = None) -> Tuple[SunSample, ...]:
        return self.days.sun_path(day, lat, lon, zone)

    def bands(self, day: date, lat: float, lon: float = 0.0, zone: Optional[str] = None) -> TwilightZoneBands:
        return self.twilight.bands(day, lat, lon, zone)

    def twilight_durations(
        self, day: date, lat: float, lon: float = 0.0, zone: Optional[str] = None
    ) -> Dict[str, float]:
        return twilight_durations(self.bands(day, lat, lon, zone))

    # Yearly aggregates.

    def year_series(self, lat: float, year: int) -> YearSeries:
        return self.series.build(lat, year)

    def precompute(self, latitudes: Iterable[float], year: int, n_jobs: int = -1) -> Dict[float, YearSeries]:
        return self.series.precompute(latitudes, year, n_jobs)

    def dates_with_daylight(self, lat: float, year: int, target_hours: float) -> List[SolarDay]:
        return find_dates_with_daylight(self.year_series(lat, year), target_hours)

    def date_with_gain(self, selected: date, lat: float, gain_hours: float) -> Optional[SolarDay]:
        return find_date_with_gain(self.year_series(lat, selected.year), selected, gain_hours)

    def mirror_of(self, day: date) -> Optional[date]:
        return self.mirror.mirror_of(day)

    def moment_of(self, year: int, target_deg: int) -> datetime:
        return self.seasons.moment_of(year, target_deg)

    def upcoming_seasons(self, selected: date, lat: float = 0.0, count: int = 4) -> List[SeasonEvent]:
        return self.seasons.upcoming_events(selected, lat, count)

    def scan_milestones(
        self, selected: date, lat: float, lon: float = 0.0, zone: Optional[str] = None
    ) -> Tuple[Milestone, ...]:
        return self.milestones.scan(selected, lat, lon, zone)
