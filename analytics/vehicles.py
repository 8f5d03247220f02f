"""Per-vehicle aggregation.

Joins the filtered trips with the vehicle, area, fuel, maintenance and
distance reference sheets and derives capacity, efficiency and cost figures
for each vehicle that made at least one trip.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from typing import Any, Iterable

from analytics.records import (
    OrderedSet,
    Row,
    capacity_m3,
    distance_km,
    driver_name,
    fuel_for_months,
    index_by_vehicle,
    load_density,
    maintenance_cost,
    manufacture_year,
    net_load_tons,
    vehicle_area_index,
    vehicle_id,
)
from utils.common import safe_ratio, percent
from utils.config import ANALYTICS
from utils.strings import safe_int

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VehicleRow:
    """One row of the vehicle table."""

    vehicle: str
    area: str
    drivers: str
    manufacture_year: str
    age: int
    efficiency_rate: float
    cap_m3: float
    cap_ton: float
    actual_daily_capacity: float
    trips: int
    tons: float
    fuel: float
    maintenance: float
    total_cost: float
    cost_trip: float
    cost_ton: float
    distance: float
    km_per_trip: float

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def efficiency_rate(age: int) -> float:
    """Age-band efficiency: < 7 years full, 7-11 half, older none."""
    if age < ANALYTICS.full_efficiency_below_age:
        return 1.0
    if age <= ANALYTICS.half_efficiency_max_age:
        return 0.5
    return 0.0


def actual_daily_capacity(cap_m3: float, efficiency: float) -> float:
    return cap_m3 * ANALYTICS.derating_factor * efficiency


def aggregate_vehicles(trips: Iterable[Row], vehicles: Iterable[Row],
                       areas: Iterable[Row], fuel: Iterable[Row],
                       maintenance: Iterable[Row], distances: Iterable[Row],
                       year: str, month_filter: Iterable[str] = ()) -> list[VehicleRow]:
    """Build one ``VehicleRow`` per vehicle id in *trips* (first-seen order).

    Trips with a blank vehicle id are skipped.  A vehicle with no matching
    reference rows still appears, with zero or empty metrics.
    """
    groups: dict[str, dict[str, Any]] = {}
    for trip in trips:
        vid = vehicle_id(trip)
        if not vid:
            continue
        g = groups.get(vid)
        if g is None:
            g = groups[vid] = {"trips": 0, "tons": 0.0, "drivers": OrderedSet()}
        g["trips"] += 1
        g["tons"] += net_load_tons(trip)
        name = driver_name(trip)
        if name:
            g["drivers"].add(name)

    if not groups:
        return []

    months = tuple(sorted(m.strip().lower() for m in month_filter if m and m.strip()))
    vehicle_idx = index_by_vehicle(vehicles, year_scoped=False)
    area_map = vehicle_area_index(areas, year)
    fuel_idx = index_by_vehicle(fuel, year)
    maint_idx = index_by_vehicle(maintenance, year)
    dist_idx = index_by_vehicle(distances, year)
    active_year = safe_int(year)

    rows = []
    for vid, g in groups.items():
        ref = vehicle_idx.get(vid, {})
        made = manufacture_year(ref)
        age = active_year - made if made is not None else 0
        eff = efficiency_rate(age)
        cap_m3 = capacity_m3(ref)
        cap_ton = cap_m3 * load_density(ref)

        fuel_row = fuel_idx.get(vid)
        fuel_total = fuel_for_months(fuel_row, months) if fuel_row else 0.0
        maint_row = maint_idx.get(vid)
        maint = maintenance_cost(maint_row) if maint_row else 0.0
        dist_row = dist_idx.get(vid)
        dist = distance_km(dist_row) if dist_row else 0.0

        total_cost = fuel_total + maint
        rows.append(VehicleRow(
            vehicle=vid,
            area=area_map.get(vid, ""),
            drivers=g["drivers"].joined(),
            manufacture_year=str(made) if made is not None else "",
            age=age,
            efficiency_rate=eff,
            cap_m3=cap_m3,
            cap_ton=cap_ton,
            actual_daily_capacity=actual_daily_capacity(cap_m3, eff),
            trips=g["trips"],
            tons=g["tons"],
            fuel=fuel_total,
            maintenance=maint,
            total_cost=total_cost,
            cost_trip=safe_ratio(total_cost, g["trips"]),
            cost_ton=safe_ratio(total_cost, g["tons"]),
            distance=dist,
            km_per_trip=safe_ratio(dist, g["trips"]),
        ))

    logger.debug("Aggregated %d vehicles for year %s", len(rows), year)
    return rows


@dataclass(frozen=True)
class UtilizationRow:
    vehicle: str
    area: str
    trips: int
    tons: float
    cap_ton: float
    avg_tons_per_trip: float
    utilization: float

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def vehicle_utilization(rows: Iterable[VehicleRow]) -> list[UtilizationRow]:
    """Average load per trip against theoretical capacity, best-used first."""
    result = []
    for r in rows:
        avg = safe_ratio(r.tons, r.trips)
        result.append(UtilizationRow(
            vehicle=r.vehicle,
            area=r.area,
            trips=r.trips,
            tons=r.tons,
            cap_ton=r.cap_ton,
            avg_tons_per_trip=avg,
            utilization=percent(avg, r.cap_ton),
        ))
    result.sort(key=lambda u: u.utilization, reverse=True)
    return result
