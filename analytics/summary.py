"""KPI composition and the whole-dashboard pipeline.

``build_dashboard`` runs every aggregator for one ``FilterState`` against a
``RecordStore``.  It holds no state between calls; the same inputs always
produce the same ``Dashboard``.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field
from typing import Any, Iterable, Optional, Sequence

from analytics.areas import (
    AreaPopulationRow,
    aggregate_area_population,
    population_totals,
)
from analytics.drivers import DriverRow, aggregate_drivers
from analytics.filters import FilterState, comparison_trips, current_trips
from analytics.financial import FinancialSummary, aggregate_financials
from analytics.records import (
    MONTHS_ORDER,
    AdditionalCost,
    Population,
    Revenue,
    Row,
    WasteTreatment,
    Worker,
    month_code,
    net_load_tons,
    population_for,
    weigh_date,
)
from analytics.store import RecordStore
from analytics.vehicles import VehicleRow, aggregate_vehicles
from utils.common import percent, safe_ratio
from utils.config import ANALYTICS

logger = logging.getLogger(__name__)


# ── Fleet KPIs ────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class FleetKpis:
    total_tons: float
    total_trips: int
    total_fuel: float
    total_maintenance: float
    days_count: int
    avg_tons_per_day: float
    active_vehicles: int
    top_vehicle_by_trips: Optional[str]
    top_trips: int
    top_vehicle_by_tons: Optional[str]
    top_tons: float
    avg_capacity_tons: float

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def fleet_kpis(trips: Sequence[Row], vehicle_rows: Sequence[VehicleRow]) -> FleetKpis:
    """Headline figures for one filtered trip set.

    Fuel, maintenance and capacity come from the vehicle table so they agree
    with it.  Ties for the top vehicle keep the first vehicle seen.
    """
    total_tons = sum(net_load_tons(t) for t in trips)
    days = {d for d in map(weigh_date, trips) if d is not None}

    top_trips_vid, top_trips = None, 0
    top_tons_vid, top_tons = None, 0.0
    for v in vehicle_rows:
        if v.trips > top_trips:
            top_trips_vid, top_trips = v.vehicle, v.trips
        if v.tons > top_tons:
            top_tons_vid, top_tons = v.vehicle, v.tons

    active = len(vehicle_rows)
    return FleetKpis(
        total_tons=total_tons,
        total_trips=len(trips),
        total_fuel=sum(v.fuel for v in vehicle_rows),
        total_maintenance=sum(v.maintenance for v in vehicle_rows),
        days_count=len(days),
        avg_tons_per_day=safe_ratio(total_tons, len(days)),
        active_vehicles=active,
        top_vehicle_by_trips=top_trips_vid,
        top_trips=top_trips,
        top_vehicle_by_tons=top_tons_vid,
        top_tons=top_tons,
        avg_capacity_tons=safe_ratio(sum(v.cap_ton for v in vehicle_rows), active),
    )


# ── Annual summary ────────────────────────────────────────────────────────────


def compose_annual_summary(trips: Sequence[Row], vehicle_rows: Sequence[VehicleRow],
                           treatment: Optional[WasteTreatment],
                           population: Iterable[Population],
                           workers: Iterable[Worker], revenues: Iterable[Revenue],
                           additional_cost: Optional[AdditionalCost],
                           year: str, active_month_count: int = 12) -> dict[str, Any]:
    """Group the year's figures into waste, service, financial and treatment sections.

    Generated waste is collected tonnage plus treated tonnage; every ratio is
    zero-guarded.
    """
    collected = sum(net_load_tons(t) for t in trips)
    treated = treatment.total_treated if treatment else 0.0
    recyclables = treatment.recyclables_tons if treatment else 0.0
    generated = collected + treated

    year_pop = population_for(population, year)
    total_pop = sum(p.population for p in year_pop)
    total_served = sum(p.served for p in year_pop)

    financial = aggregate_financials(
        workers, vehicle_rows, additional_cost,
        [r for r in revenues if r.year == year], active_month_count,
        total_tons=generated, total_population=total_pop,
    )

    return {
        "year": year,
        "waste": {
            "collected_tons": collected,
            "generated_tons": generated,
            "waste_per_capita_kg": safe_ratio(
                safe_ratio(generated * 1000, total_pop), ANALYTICS.days_per_year),
            "national_benchmark_kg": ANALYTICS.national_waste_per_capita,
        },
        "service": {
            "population": total_pop,
            "served": total_served,
            "coverage_rate": percent(total_served, total_pop),
        },
        "financial": {
            "total_cost": financial.total_cost,
            "salaries": financial.salaries,
            "operational": financial.operational,
            "additional": financial.additional,
            "cost_per_ton": financial.cost_per_ton,
            "cost_per_capita": financial.cost_per_capita,
            "affordability_index": financial.affordability_index,
            "revenue": financial.revenue,
            "cost_recovery": financial.cost_recovery,
        },
        "treatment": {
            "total_treated": treated,
            "recyclables_tons": recyclables,
            "biowaste_tons": treatment.biowaste_tons if treatment else 0.0,
            "other_treatment_tons": treatment.other_treatment_tons if treatment else 0.0,
            "recycling_rate": percent(recyclables, generated),
            "diversion_rate": percent(treated, generated),
        },
    }


# ── Time series ───────────────────────────────────────────────────────────────


def _round_half_up(x: float) -> int:
    return int(x + 0.5) if x >= 0 else -int(-x + 0.5)


def _series_value(trip: Row, metric: str) -> int:
    if metric == "tons":
        return _round_half_up(net_load_tons(trip))
    return 1


def _group(trips: Iterable[Row], key_fn, metric: str) -> dict[str, int]:
    out: dict[str, int] = {}
    for trip in trips:
        key = key_fn(trip)
        if key:
            out[key] = out.get(key, 0) + _series_value(trip, metric)
    return out


def _merge(current: dict[str, int], comparison: dict[str, int], keys: list[str]):
    return [
        {"name": k, "current": current.get(k, 0), "comparison": comparison.get(k, 0)}
        for k in keys
    ]


def _check_metric(metric: str) -> None:
    if metric not in ("trips", "tons"):
        raise ValueError(f"Unknown metric '{metric}'; expected 'trips' or 'tons'")


def monthly_series(current: Iterable[Row], comparison: Iterable[Row],
                   metric: str = "trips") -> list[dict[str, Any]]:
    """Trips (or per-trip-rounded tons) per month code, in calendar order.

    Month codes outside the calendar list sort after it, alphabetically.
    """
    _check_metric(metric)
    cur = _group(current, month_code, metric)
    comp = _group(comparison, month_code, metric)
    order = {m: i for i, m in enumerate(MONTHS_ORDER)}
    keys = sorted(set(cur) | set(comp), key=lambda k: (order.get(k, len(order)), k))
    return _merge(cur, comp, keys)


def _month_day(trip: Row) -> str:
    d = weigh_date(trip)
    return d.strftime("%m-%d") if d else ""


def daily_series(current: Iterable[Row], comparison: Iterable[Row],
                 metric: str = "trips") -> list[dict[str, Any]]:
    """Trips or tons per ``MM-DD`` so two years line up day by day."""
    _check_metric(metric)
    cur = _group(current, _month_day, metric)
    comp = _group(comparison, _month_day, metric)
    return _merge(cur, comp, sorted(set(cur) | set(comp)))


# ── Dashboard ─────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class Dashboard:
    state: FilterState
    vehicles: list[VehicleRow] = field(default_factory=list)
    comparison_vehicles: list[VehicleRow] = field(default_factory=list)
    drivers: list[DriverRow] = field(default_factory=list)
    comparison_drivers: list[DriverRow] = field(default_factory=list)
    areas: list[AreaPopulationRow] = field(default_factory=list)
    population: dict[str, float] = field(default_factory=dict)
    financial: Optional[FinancialSummary] = None
    kpis: Optional[FleetKpis] = None
    comparison_kpis: Optional[FleetKpis] = None
    annual_summary: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        d = asdict(self)
        d["state"] = {
            "year": self.state.year,
            "comparison_year": self.state.comparison_year,
            "vehicles": sorted(self.state.vehicles),
            "months": sorted(self.state.months),
        }
        return d


def vehicle_rows_for(store: RecordStore, trips: Sequence[Row], year: str,
                     state: FilterState) -> list[VehicleRow]:
    return aggregate_vehicles(
        trips, store.vehicles, store.areas, store.fuel,
        store.maintenance, store.distance, year, state.months,
    )


def build_dashboard(store: RecordStore, state: FilterState) -> Dashboard:
    """Run the whole aggregation pipeline for *state*."""
    trips = current_trips(store.trips, state)
    comp_trips = comparison_trips(store.trips, state)

    vehicles = vehicle_rows_for(store, trips, state.year, state)
    comp_vehicles = (
        vehicle_rows_for(store, comp_trips, state.comparison_year, state)
        if state.has_comparison else []
    )
    pop_totals = population_totals(store.population, state.year, vehicles, state.vehicles)

    financial = aggregate_financials(
        store.workers, vehicles, store.additional_costs_for(state.year),
        store.revenues_for(state.year), state.active_month_count,
        total_population=pop_totals["population"],
    )

    dashboard = Dashboard(
        state=state,
        vehicles=vehicles,
        comparison_vehicles=comp_vehicles,
        drivers=aggregate_drivers(trips),
        comparison_drivers=aggregate_drivers(comp_trips),
        areas=aggregate_area_population(trips, store.areas, store.population, state.year),
        population=pop_totals,
        financial=financial,
        kpis=fleet_kpis(trips, vehicles),
        comparison_kpis=fleet_kpis(comp_trips, comp_vehicles) if state.has_comparison else None,
        annual_summary=compose_annual_summary(
            trips, vehicles, store.treatment_for(state.year), store.population,
            store.workers, store.revenues, store.additional_costs_for(state.year),
            state.year, state.active_month_count,
        ),
    )
    logger.debug(
        "Dashboard year=%s comparison=%s: %d trips, %d vehicles",
        state.year, state.comparison_year or "-", len(trips), len(vehicles),
    )
    return dashboard
