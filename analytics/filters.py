"""Trip filtering by year, vehicle and month.

``FilterState`` is the single immutable value threaded through every
aggregation call; it is hashable so the API can key cached views on it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Optional

from analytics.records import Row, month_code, trip_year, vehicle_id


@dataclass(frozen=True)
class FilterState:
    """Active year, optional comparison year and vehicle/month selections.

    Empty ``vehicles`` / ``months`` mean "no restriction".  Month codes are
    stored lower-cased and vehicle ids trimmed.
    """

    year: str
    comparison_year: str = ""
    vehicles: frozenset[str] = field(default_factory=frozenset)
    months: frozenset[str] = field(default_factory=frozenset)

    @classmethod
    def create(cls, year: str, comparison_year: Optional[str] = "",
               vehicles: Iterable[str] = (), months: Iterable[str] = ()) -> "FilterState":
        return cls(
            year=(year or "").strip(),
            comparison_year=(comparison_year or "").strip(),
            vehicles=frozenset(v.strip() for v in vehicles if v and v.strip()),
            months=frozenset(m.strip().lower() for m in months if m and m.strip()),
        )

    @property
    def active_month_count(self) -> int:
        """Number of months salaries are pro-rated over."""
        return len(self.months) or 12

    @property
    def has_comparison(self) -> bool:
        return bool(self.comparison_year)


def apply_filters(trips: Iterable[Row], year: str,
                  vehicle_filter: Iterable[str] = (),
                  month_filter: Iterable[str] = ()) -> list[Row]:
    """Return the trips of *year* that pass the vehicle and month filters.

    Filter values are trimmed (month codes also lower-cased) the same way
    ``FilterState.create`` does.  A trip with a blank vehicle id (or month) is
    dropped as soon as that dimension is restricted and kept otherwise.
    """
    vehicles = frozenset(v.strip() for v in vehicle_filter if v and v.strip())
    months = frozenset(m.strip().lower() for m in month_filter if m and m.strip())
    year = (year or "").strip()
    kept = []
    for trip in trips:
        if trip_year(trip) != year:
            continue
        if vehicles:
            vid = vehicle_id(trip)
            if not vid or vid not in vehicles:
                continue
        if months:
            code = month_code(trip)
            if not code or code not in months:
                continue
        kept.append(trip)
    return kept


def current_trips(trips: Iterable[Row], state: FilterState) -> list[Row]:
    return apply_filters(trips, state.year, state.vehicles, state.months)


def comparison_trips(trips: Iterable[Row], state: FilterState) -> list[Row]:
    """Trips of the comparison year under the same filters; [] when unset."""
    if not state.comparison_year:
        return []
    return apply_filters(trips, state.comparison_year, state.vehicles, state.months)
