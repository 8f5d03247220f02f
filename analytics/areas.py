"""Area and population aggregation.

Trips are attributed to areas through the vehicle → area mapping sheet of
the active year; population records supply the per-capita denominators.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Iterable, Optional, Sequence

from analytics.records import (
    UNSPECIFIED,
    OrderedSet,
    Population,
    Row,
    Worker,
    net_load_tons,
    population_for,
    vehicle_area_index,
    vehicle_id,
)
from analytics.vehicles import VehicleRow
from utils.common import percent, safe_ratio
from utils.config import KnownAreas


@dataclass(frozen=True)
class AreaPopulationRow:
    area: str
    population: float
    served: float
    total_tons: float
    kg_per_capita: float
    coverage_rate: float

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def build_vehicle_area_map(areas: Iterable[Row], year: str) -> dict[str, str]:
    """Map trimmed vehicle id → trimmed area for *year* (see ``vehicle_area_index``)."""
    return vehicle_area_index(areas, year)


def tons_by_area(trips: Iterable[Row], vehicle_area_map: dict[str, str]) -> dict[str, float]:
    """Sum trip tons per area; unmapped or blank vehicles go to ``UNSPECIFIED``."""
    totals: dict[str, float] = {}
    for trip in trips:
        area = vehicle_area_map.get(vehicle_id(trip)) or UNSPECIFIED
        totals[area] = totals.get(area, 0.0) + net_load_tons(trip)
    return totals


def aggregate_area_population(trips: Iterable[Row], areas: Iterable[Row],
                              population: Iterable[Population],
                              year: str) -> list[AreaPopulationRow]:
    """One row per population record of *year*, highest kg per capita first."""
    tons = tons_by_area(trips, build_vehicle_area_map(areas, year))
    rows = []
    for p in population_for(population, year):
        area_tons = tons.get(p.area, 0.0)
        rows.append(AreaPopulationRow(
            area=p.area,
            population=p.population,
            served=p.served,
            total_tons=area_tons,
            kg_per_capita=safe_ratio(area_tons * 1000, p.population),
            coverage_rate=percent(p.served, p.population),
        ))
    rows.sort(key=lambda r: r.kg_per_capita, reverse=True)
    return rows


def population_totals(population: Iterable[Population], year: str,
                      vehicle_rows: Optional[Sequence[VehicleRow]] = None,
                      vehicle_filter: Iterable[str] = ()) -> dict[str, float]:
    """Population and served totals for *year*.

    When a vehicle filter is active only the areas served by the filtered
    vehicles (their resolved ``area``) are counted.
    """
    restrict = None
    if frozenset(vehicle_filter) and vehicle_rows is not None:
        restrict = {r.area for r in vehicle_rows if r.area}

    total_pop = 0.0
    total_served = 0.0
    for p in population_for(population, year):
        if restrict is not None and p.area not in restrict:
            continue
        total_pop += p.population
        total_served += p.served
    return {
        "population": total_pop,
        "served": total_served,
        "coverage_rate": percent(total_served, total_pop),
    }


def area_distribution(trips: Iterable[Row], areas: Iterable[Row],
                      year: str) -> list[dict[str, Any]]:
    """Tons per area for the share chart, whole tons, largest first.

    Trips with a blank vehicle id are left out; mapped-less vehicles land in
    ``UNSPECIFIED``.
    """
    area_map = build_vehicle_area_map(areas, year)
    totals = tons_by_area((t for t in trips if vehicle_id(t)), area_map)
    items = [{"name": name, "value": int(tons + 0.5)} for name, tons in totals.items()]
    items.sort(key=lambda d: d["value"], reverse=True)
    return items


# ── Area intelligence ─────────────────────────────────────────────────────────


@dataclass(frozen=True)
class AreaIntelligenceRow:
    area: str
    tons: float
    trips: int
    fuel: float
    maintenance: float
    vehicles_count: int
    workers_count: int
    salaries: float
    population: float
    operational_cost: float
    total_budget: float
    cost_per_ton: float
    tons_per_worker: float

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def area_intelligence(vehicle_rows: Iterable[VehicleRow], workers: Iterable[Worker],
                      population: Iterable[Population], year: str,
                      active_month_count: int = 12) -> list[AreaIntelligenceRow]:
    """Operational profile of each canonical service area, most tons first.

    Every area in ``KnownAreas.AREAS`` appears, even with no data; areas
    outside that list are ignored.  Salaries are pro-rated to the active
    month count.
    """
    acc: dict[str, dict[str, Any]] = {
        name: {"tons": 0.0, "trips": 0, "fuel": 0.0, "maint": 0.0,
               "vehicles": OrderedSet(), "workers": 0, "salaries": 0.0,
               "population": 0.0}
        for name in KnownAreas.AREAS
    }

    for v in vehicle_rows:
        a = acc.get(KnownAreas.canonical(v.area))
        if a is None:
            continue
        a["tons"] += v.tons
        a["trips"] += v.trips
        a["fuel"] += v.fuel
        a["maint"] += v.maintenance
        a["vehicles"].add(v.vehicle)

    for w in workers:
        a = acc.get(KnownAreas.canonical(w.area))
        if a is None:
            continue
        a["workers"] += 1
        a["salaries"] += w.monthly_salary * active_month_count

    for p in population_for(population, year):
        a = acc.get(KnownAreas.canonical(p.area))
        if a is not None:
            a["population"] = p.population

    rows = []
    for name, a in acc.items():
        operational = a["fuel"] + a["maint"]
        budget = operational + a["salaries"]
        rows.append(AreaIntelligenceRow(
            area=name,
            tons=a["tons"],
            trips=a["trips"],
            fuel=a["fuel"],
            maintenance=a["maint"],
            vehicles_count=len(a["vehicles"]),
            workers_count=a["workers"],
            salaries=a["salaries"],
            population=a["population"],
            operational_cost=operational,
            total_budget=budget,
            cost_per_ton=safe_ratio(budget, a["tons"]),
            tons_per_worker=safe_ratio(a["tons"], a["workers"]),
        ))
    rows.sort(key=lambda r: r.tons, reverse=True)
    return rows
