"""Same-daylight date on the other side of the June solstice."""

from __future__ import annotations

from datetime import date
from typing import Optional

from .day import date_from_day_of_year, day_of_year
from .seasons import SolsticeEquinoxSolver
from .series import YearSeriesBuilder

__all__ = ["MIRROR_LATITUDE", "MirrorDateFinder"]

# Fixed so that the mirror of a date does not depend on the viewer's location.
MIRROR_LATITUDE = 45.0


class MirrorDateFinder:
    def __init__(
        self,
        series: YearSeriesBuilder,
        solver: SolsticeEquinoxSolver,
        latitude: float = MIRROR_LATITUDE,
    ) -> None:
        self.series = series
        self.solver = solver
        self.latitude = latitude

    def mirror_of(self, day: date) -> Optional[date]:
        year_series = self.series.build(self.latitude, day.year)
        current_ordinal = day_of_year(day)
        current = year_series.on(day)
        solstice_ordinal = day_of_year(self.solver.june_solstice(day.year).date())

        if current_ordinal <= solstice_ordinal:
            candidates = range(solstice_ordinal + 1, len(year_series) + 1)
        else:
            candidates = range(1, solstice_ordinal)

        best_ordinal: Optional[int] = None
        best_diff: Optional[int] = None
        for ordinal in candidates:
            if ordinal == current_ordinal:
                continue
            diff = abs(year_series[ordinal - 1].daylight_ms - current.daylight_ms)
            if best_diff is None or diff < best_diff:
                best_ordinal, best_diff = ordinal, diff

        if best_ordinal is None:
            return None
        return date_from_day_of_year(day.year, best_ordinal)
