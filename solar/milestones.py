"""Upcoming calendar milestones derived from daylight, clock times and seasons.

Four independent scans feed one prioritised list:

* daylight-hour crossings from the year series, with polar-night and
  midnight-sun transitions and suppression of hour crossings around them;
* sunrise and sunset clock-hour crossings in the selected timezone;
* DST transitions detected from the UTC offset at local noon;
* solstices and equinoxes.

Every scan is a bounded loop. A scan that finds nothing returns an empty list.
"""

from __future__ import annotations

import itertools
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from enum import Enum
from typing import Dict, Iterable, List, Optional, Set, Tuple

from .cache import CACHE_MAX_SMALL, LRUCache
from .day import SolarDay, SolarDayCalculator, day_of_year
from .seasons import SolsticeEquinoxSolver
from .series import YearSeries, YearSeriesBuilder
from .zones import ZonedCalendar

__all__ = [
    "MilestoneKind",
    "Milestone",
    "ScanSettings",
    "MilestoneScanner",
    "group_by_date",
]


class MilestoneKind(str, Enum):
    """Taxonomy of milestones."""

    daylight_above = "daylight_above"
    daylight_below = "daylight_below"
    polar_night_begins = "polar_night_begins"
    polar_night_ends = "polar_night_ends"
    midnight_sun_begins = "midnight_sun_begins"
    midnight_sun_ends = "midnight_sun_ends"
    sunrise_before = "sunrise_before"
    sunrise_after = "sunrise_after"
    sunset_before = "sunset_before"
    sunset_after = "sunset_after"
    dst_begins = "dst_begins"
    dst_ends = "dst_ends"
    march_equinox = "march_equinox"
    june_solstice = "june_solstice"
    september_equinox = "september_equinox"
    december_solstice = "december_solstice"


_K = MilestoneKind

EXTREME_KINDS = (
    _K.polar_night_begins,
    _K.polar_night_ends,
    _K.midnight_sun_begins,
    _K.midnight_sun_ends,
)

_EXTREME_DESCRIPTIONS = {
    _K.polar_night_begins: "Polar night begins (0h daylight)",
    _K.polar_night_ends: "Polar night ends",
    _K.midnight_sun_begins: "Midnight sun begins (24h daylight)",
    _K.midnight_sun_ends: "Midnight sun ends",
}

_SEASON_KINDS = {
    0: _K.march_equinox,
    90: _K.june_solstice,
    180: _K.september_equinox,
    270: _K.december_solstice,
}

PRIORITIES: Dict[MilestoneKind, int] = {
    **{kind: 0 for kind in _SEASON_KINDS.values()},
    _K.dst_begins: 1,
    _K.dst_ends: 1,
    **{kind: 2 for kind in EXTREME_KINDS},
    _K.daylight_above: 3,
    _K.daylight_below: 3,
    _K.sunrise_before: 4,
    _K.sunrise_after: 4,
    _K.sunset_before: 5,
    _K.sunset_after: 5,
}

# Missing half of a pair is backfilled from the pre-scanned transitions.
_PAIRED_EXTREMES = (
    (_K.midnight_sun_begins, _K.midnight_sun_ends),
    (_K.midnight_sun_ends, _K.midnight_sun_begins),
    (_K.polar_night_begins, _K.polar_night_ends),
    (_K.polar_night_ends, _K.polar_night_begins),
)
_COMPLEMENTARY_EXTREMES = (
    (_K.midnight_sun_ends, _K.polar_night_begins),
    (_K.polar_night_ends, _K.midnight_sun_begins),
)


@dataclass(frozen=True)
class Milestone:
    date: date
    kind: MilestoneKind
    description: str
    priority: int
    threshold: Optional[float] = None
    sunrise_time: Optional[str] = None
    sunset_time: Optional[str] = None

    @property
    def key(self) -> Tuple[MilestoneKind, Optional[float]]:
        return self.kind, self.threshold


def _milestone(
    day: date, kind: MilestoneKind, description: str, threshold: Optional[float] = None, **extra
) -> Milestone:
    return Milestone(
        date=day,
        kind=kind,
        description=description,
        priority=PRIORITIES[kind],
        threshold=threshold,
        **extra,
    )


@dataclass(frozen=True)
class ScanSettings:
    """Tunable scan heuristics; override with :func:`dataclasses.replace`.

    The suppression windows are empirical: crossings of the same direction are
    hidden for ``pre_onset_days`` before polar night or midnight sun begins, and
    for ``post_conclusion_days`` after either ends.
    """

    polar_circle_deg: float = 66.5
    polar_night_hours: float = 0.1
    polar_night_hours_extreme: float = 0.5
    midnight_sun_hours: float = 23.9
    pre_onset_days: int = 30
    pre_onset_days_extreme: int = 60
    post_conclusion_days: int = 7
    daylight_count: int = 10
    sunrise_count: int = 8
    sunset_count: int = 8
    dst_count: int = 2
    season_count: int = 4
    clock_scan_days: int = 365
    dst_scan_days: int = 400
    sunrise_hours: Tuple[int, int] = (3, 12)
    sunrise_hours_extreme: Tuple[int, int] = (0, 12)
    sunset_hours: Tuple[int, int] = (15, 22)
    sunset_hours_extreme: Tuple[int, int] = (15, 23)
    # Consecutive clock hours above/below these are a midnight wrap, not a drift.
    wrap_late_hour: float = 20.0
    wrap_early_hour: float = 4.0

    def is_extreme(self, latitude: float) -> bool:
        return abs(latitude) > self.polar_circle_deg


@dataclass(frozen=True)
class _Transition:
    kind: MilestoneKind
    offset: int


def _flag_transitions(prev: SolarDay, curr: SolarDay) -> List[MilestoneKind]:
    kinds = []
    if not prev.is_polar_night and curr.is_polar_night:
        kinds.append(_K.polar_night_begins)
    if prev.is_polar_night and not curr.is_polar_night:
        kinds.append(_K.polar_night_ends)
    if not prev.is_polar_day and curr.is_polar_day:
        kinds.append(_K.midnight_sun_begins)
    if prev.is_polar_day and not curr.is_polar_day:
        kinds.append(_K.midnight_sun_ends)
    return kinds


def _threshold_transitions(
    prev_hours: float, curr_hours: float, night_hours: float, sun_hours: float
) -> List[MilestoneKind]:
    kinds = []
    if prev_hours >= night_hours > curr_hours:
        kinds.append(_K.polar_night_begins)
    if prev_hours < night_hours <= curr_hours:
        kinds.append(_K.polar_night_ends)
    if prev_hours <= sun_hours < curr_hours:
        kinds.append(_K.midnight_sun_begins)
    if prev_hours > sun_hours >= curr_hours:
        kinds.append(_K.midnight_sun_ends)
    return kinds


class MilestoneScanner:
    def __init__(
        self,
        calculator: SolarDayCalculator,
        series: YearSeriesBuilder,
        calendar: ZonedCalendar,
        solver: SolsticeEquinoxSolver,
        settings: Optional[ScanSettings] = None,
        cache: Optional[LRUCache] = None,
    ) -> None:
        self.calculator = calculator
        self.series = series
        self.calendar = calendar
        self.solver = solver
        self.settings = settings or ScanSettings()
        self._cache = cache if cache is not None else LRUCache(CACHE_MAX_SMALL)

    # -- daylight ---------------------------------------------------------

    def extreme_transitions(self, year_series: YearSeries, start_ordinal: int) -> List[_Transition]:
        """Polar transitions over a full cycle of *year_series* starting at *start_ordinal*.

        The polar flags are authoritative. Daylight thresholds are consulted only
        for series carrying no polar flag at all.
        """

        settings = self.settings
        use_flags = any(day.is_polar_day or day.is_polar_night for day in year_series)
        night_hours = (
            settings.polar_night_hours_extreme
            if settings.is_extreme(year_series.latitude)
            else settings.polar_night_hours
        )
        transitions = []
        for offset in range(len(year_series)):
            prev = year_series.at_offset(start_ordinal, offset - 1)
            curr = year_series.at_offset(start_ordinal, offset)
            if use_flags:
                kinds = _flag_transitions(prev, curr)
            else:
                kinds = _threshold_transitions(
                    prev.daylight_hours,
                    curr.daylight_hours,
                    night_hours,
                    settings.midnight_sun_hours,
                )
            transitions.extend(_Transition(kind, offset) for kind in kinds)
        return transitions

    def _suppressed(self, offset: int, decreasing: bool, transitions: Iterable[_Transition], pre_window: int) -> bool:
        post_window = self.settings.post_conclusion_days
        for transition in transitions:
            until = transition.offset - offset
            since = offset - transition.offset
            if 0 <= until <= pre_window:
                if decreasing and transition.kind is _K.polar_night_begins:
                    return True
                if not decreasing and transition.kind is _K.midnight_sun_begins:
                    return True
            if 0 <= since <= post_window:
                if decreasing and transition.kind is _K.midnight_sun_ends:
                    return True
                if not decreasing and transition.kind is _K.polar_night_ends:
                    return True
        return False

    def daylight_milestones(
        self, selected: date, latitude: float, count: Optional[int] = None
    ) -> List[Milestone]:
        settings = self.settings
        count = settings.daylight_count if count is None else count
        extreme = settings.is_extreme(latitude)
        pre_window = settings.pre_onset_days_extreme if extreme else settings.pre_onset_days

        year_series = self.series.build(latitude, selected.year)
        start = day_of_year(selected)
        transitions = self.extreme_transitions(year_series, start)
        by_offset: Dict[int, List[MilestoneKind]] = {}
        for transition in transitions:
            by_offset.setdefault(transition.offset, []).append(transition.kind)

        milestones: List[Milestone] = []
        found: Set[Tuple[MilestoneKind, Optional[float]]] = set()

        def add(milestone: Milestone) -> None:
            found.add(milestone.key)
            milestones.append(milestone)

        for offset in range(len(year_series)):
            if len(milestones) >= count:
                break
            prev_hours = year_series.at_offset(start, offset - 1).daylight_hours
            curr_hours = year_series.at_offset(start, offset).daylight_hours
            actual = selected + timedelta(days=offset)

            for kind in by_offset.get(offset, ()):
                if (kind, None) not in found:
                    add(_milestone(actual, kind, _EXTREME_DESCRIPTIONS[kind]))

            for hour in range(1, 24):
                if prev_hours < hour <= curr_hours:
                    key = (_K.daylight_above, float(hour))
                    if key not in found and not self._suppressed(offset, False, transitions, pre_window):
                        add(_milestone(actual, _K.daylight_above, f"More than {hour}h of daylight", float(hour)))
                if prev_hours >= hour > curr_hours:
                    key = (_K.daylight_below, float(hour))
                    if key not in found and not self._suppressed(offset, True, transitions, pre_window):
                        add(_milestone(actual, _K.daylight_below, f"Less than {hour}h of daylight", float(hour)))

        pairs = _PAIRED_EXTREMES + (_COMPLEMENTARY_EXTREMES if extreme else ())
        for existing, missing in pairs:
            if (existing, None) not in found or (missing, None) in found:
                continue
            match = next((t for t in transitions if t.kind is missing), None)
            if match is not None:
                add(_milestone(selected + timedelta(days=match.offset), missing, _EXTREME_DESCRIPTIONS[missing]))

        milestones.sort(key=lambda m: (m.date, m.priority))
        return milestones

    # -- sunrise / sunset -------------------------------------------------

    def sunrise_milestones(
        self,
        selected: date,
        latitude: float,
        longitude: float,
        zone: Optional[str],
        count: Optional[int] = None,
    ) -> List[Milestone]:
        settings = self.settings
        low, high = settings.sunrise_hours_extreme if settings.is_extreme(latitude) else settings.sunrise_hours
        return self._clock_milestones(
            "sunrise",
            selected,
            latitude,
            longitude,
            zone,
            range(low, high + 1),
            earlier=(_K.sunrise_before, "Sunrise before {:02d}:00"),
            later=(_K.sunrise_after, "Sunrise after {:02d}:00"),
            count=settings.sunrise_count if count is None else count,
        )

    def sunset_milestones(
        self,
        selected: date,
        latitude: float,
        longitude: float,
        zone: Optional[str],
        count: Optional[int] = None,
    ) -> List[Milestone]:
        settings = self.settings
        low, high = settings.sunset_hours_extreme if settings.is_extreme(latitude) else settings.sunset_hours
        return self._clock_milestones(
            "sunset",
            selected,
            latitude,
            longitude,
            zone,
            range(low, high + 1),
            earlier=(_K.sunset_before, "Sunset before {:02d}:00"),
            later=(_K.sunset_after, "Sunset after {:02d}:00"),
            count=settings.sunset_count if count is None else count,
        )

    def _clock_hour(self, day: date, event: str, latitude: float, longitude: float, zone: Optional[str]):
        solar = self.calculator.solar_day(day, latitude, longitude, zone)
        instant: Optional[datetime] = getattr(solar, event)
        if instant is None:
            return None, None
        return instant, self.calendar.decimal_hour(instant, zone)

    def _clock_milestones(
        self,
        event: str,
        selected: date,
        latitude: float,
        longitude: float,
        zone: Optional[str],
        hours: range,
        earlier: Tuple[MilestoneKind, str],
        later: Tuple[MilestoneKind, str],
        count: int,
    ) -> List[Milestone]:
        settings = self.settings
        milestones: List[Milestone] = []
        found: Set[Tuple[MilestoneKind, Optional[float]]] = set()

        _, prev_hour = self._clock_hour(selected - timedelta(days=1), event, latitude, longitude, zone)
        for offset in range(settings.clock_scan_days + 1):
            if len(milestones) >= count:
                break
            day = selected + timedelta(days=offset)
            instant, curr_hour = self._clock_hour(day, event, latitude, longitude, zone)
            if instant is not None and prev_hour is not None:
                wrapped = (
                    prev_hour > settings.wrap_late_hour and curr_hour < settings.wrap_early_hour
                ) or (prev_hour < settings.wrap_early_hour and curr_hour > settings.wrap_late_hour)
                if not wrapped:
                    event_date = self.calendar.calendar_day(instant, zone)
                    for hour in hours:
                        if prev_hour >= hour > curr_hour:
                            kind, template = earlier
                        elif prev_hour < hour <= curr_hour:
                            kind, template = later
                        else:
                            continue
                        if (kind, float(hour)) in found:
                            continue
                        found.add((kind, float(hour)))
                        milestones.append(_milestone(event_date, kind, template.format(hour), float(hour)))
            prev_hour = curr_hour

        return milestones[:count]

    # -- DST ----------------------------------------------------------------

    def dst_milestones(
        self,
        selected: date,
        zone: Optional[str],
        latitude: float,
        longitude: float,
        count: Optional[int] = None,
    ) -> List[Milestone]:
        """Days whose local-noon UTC offset differs from the previous day's."""

        settings = self.settings
        count = settings.dst_count if count is None else count
        milestones: List[Milestone] = []
        found: Set[MilestoneKind] = set()

        def noon_offset(day: date) -> int:
            return self.calendar.utc_offset_minutes(self.calendar.local_noon(day, zone), zone)

        prev_offset = noon_offset(selected - timedelta(days=1))
        for offset in range(settings.dst_scan_days + 1):
            if len(milestones) >= count:
                break
            day = selected + timedelta(days=offset)
            curr_offset = noon_offset(day)
            change = curr_offset - prev_offset
            prev_offset = curr_offset
            if not change:
                continue

            hours = change / 60
            if change > 0:
                kind, description = _K.dst_begins, f"DST begins (clocks +{hours:g}h)"
            else:
                kind, description = _K.dst_ends, f"DST ends (clocks {hours:g}h)"
            if kind in found:
                continue
            found.add(kind)

            solar = self.calculator.solar_day(day, latitude, longitude, zone)
            milestones.append(
                _milestone(
                    day,
                    kind,
                    description,
                    hours,
                    sunrise_time=self.calendar.format_time(solar.sunrise, zone) if solar.sunrise else None,
                    sunset_time=self.calendar.format_time(solar.sunset, zone) if solar.sunset else None,
                )
            )
        return milestones

    # -- seasons ------------------------------------------------------------

    def astronomical_milestones(
        self,
        selected: date,
        latitude: float,
        zone: Optional[str] = None,
        count: Optional[int] = None,
    ) -> List[Milestone]:
        count = self.settings.season_count if count is None else count
        since = self.calendar.midnight(selected, zone)
        return [
            _milestone(
                self.calendar.calendar_day(event.moment, zone),
                _SEASON_KINDS[event.target_deg],
                event.name,
            )
            for event in self.solver.upcoming_events(selected, latitude, count, since=since)
        ]

    # -- combined -----------------------------------------------------------

    def scan(
        self,
        selected: date,
        latitude: float,
        longitude: float = 0.0,
        zone: Optional[str] = None,
    ) -> Tuple[Milestone, ...]:
        """All milestones from *selected* onward, sorted by ``(date, priority)``."""

        key = ("milestones", selected, latitude, longitude, zone, self.settings)
        return self._cache.get_or_compute(
            key, lambda: self._scan(selected, latitude, longitude, zone)
        )

    def _scan(
        self, selected: date, latitude: float, longitude: float, zone: Optional[str]
    ) -> Tuple[Milestone, ...]:
        sources = (
            self.astronomical_milestones(selected, latitude, zone),
            self.dst_milestones(selected, zone, latitude, longitude),
            self.daylight_milestones(selected, latitude),
            self.sunrise_milestones(selected, latitude, longitude, zone),
            self.sunset_milestones(selected, latitude, longitude, zone),
        )
        combined: List[Milestone] = []
        seen: Set[Tuple[MilestoneKind, Optional[float]]] = set()
        for milestone in itertools.chain.from_iterable(sources):
            if milestone.kind in (_K.dst_begins, _K.dst_ends):
                key = (milestone.kind, None)
            else:
                key = milestone.key
            if key in seen:
                continue
            seen.add(key)
            combined.append(milestone)
        combined.sort(key=lambda m: (m.date, m.priority))
        return tuple(combined)

    def clear(self) -> None:
        self._cache.clear()


def group_by_date(milestones: Iterable[Milestone]) -> List[Tuple[date, List[Milestone]]]:
    """Group an already sorted milestone sequence by date."""

    return [
        (day, list(group))
        for day, group in itertools.groupby(milestones, key=lambda m: m.date)
    ]
