"""Immutable in-memory store of every loaded dataset.

A ``RecordStore`` is built once per data load and never mutated.  The API
swaps the whole store on reload; aggregators only read from it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Iterable, Mapping, Optional

from analytics.records import (
    AdditionalCost,
    Population,
    Revenue,
    Row,
    WasteTreatment,
    Worker,
    population_for,
    trip_year,
    vehicle_id,
)

# Dataset names, in load order.  Also the CSV file stems / workbook sheet names.
DATASETS = (
    "trips",
    "vehicles",
    "fuel",
    "maintenance",
    "areas",
    "population",
    "workers",
    "revenues",
    "treatment",
    "distance",
    "additional_costs",
)

RAW_DATASETS = ("trips", "vehicles", "fuel", "maintenance", "areas", "distance")


def _freeze_rows(rows: Iterable[Mapping[str, Any]]) -> tuple[Row, ...]:
    return tuple(MappingProxyType(dict(r)) for r in rows)


@dataclass(frozen=True)
class RecordStore:
    trips: tuple[Row, ...] = ()
    vehicles: tuple[Row, ...] = ()
    fuel: tuple[Row, ...] = ()
    maintenance: tuple[Row, ...] = ()
    areas: tuple[Row, ...] = ()
    distance: tuple[Row, ...] = ()
    population: tuple[Population, ...] = ()
    workers: tuple[Worker, ...] = ()
    revenues: tuple[Revenue, ...] = ()
    treatment: tuple[WasteTreatment, ...] = ()
    additional_costs: tuple[AdditionalCost, ...] = ()
    source: str = field(default="", compare=False)

    @classmethod
    def build(cls, source: str = "", **datasets: Iterable[Any]) -> "RecordStore":
        """Create a store from lists of rows.

        Raw sheet rows are copied into read-only mappings; normalised
        dataclass records are taken as-is.  Unknown dataset names raise
        ``TypeError`` like any unexpected keyword argument.
        """
        values: dict[str, tuple] = {}
        for name, rows in datasets.items():
            if name in RAW_DATASETS:
                values[name] = _freeze_rows(rows)
            else:
                values[name] = tuple(rows)
        return cls(source=source, **values)

    def is_empty(self) -> bool:
        return not self.trips

    def years(self) -> list[str]:
        """Distinct trip years, newest first."""
        return sorted({y for y in map(trip_year, self.trips) if y}, reverse=True)

    def latest_year(self) -> str:
        years = self.years()
        return years[0] if years else ""

    def vehicle_ids(self) -> list[str]:
        """Sorted distinct vehicle ids seen in trips."""
        return sorted({v for v in map(vehicle_id, self.trips) if v})

    def row_counts(self) -> dict[str, int]:
        return {name: len(getattr(self, name)) for name in DATASETS}

    # ── Year-scoped lookups ───────────────────────────────────────────────

    def treatment_for(self, year: str) -> Optional[WasteTreatment]:
        """Treatment record for *year* (last one wins), or None."""
        match = None
        for t in self.treatment:
            if t.year == year:
                match = t
        return match

    def additional_costs_for(self, year: str) -> Optional[AdditionalCost]:
        match = None
        for c in self.additional_costs:
            if c.year == year:
                match = c
        return match

    def revenues_for(self, year: str) -> list[Revenue]:
        return [r for r in self.revenues if r.year == year]

    def population_for(self, year: str) -> list[Population]:
        return population_for(self.population, year)
