"""
Analytics package -- fleet and waste aggregation core.

Pure functions over an immutable ``RecordStore``; re-exports the entry
points so callers can do::

    from analytics import RecordStore, FilterState, build_dashboard
"""

from analytics.store import RecordStore
from analytics.filters import FilterState, apply_filters, comparison_trips
from analytics.vehicles import VehicleRow, aggregate_vehicles, vehicle_utilization
from analytics.drivers import DriverRow, aggregate_drivers
from analytics.areas import (
    AreaPopulationRow,
    aggregate_area_population,
    area_distribution,
    area_intelligence,
    build_vehicle_area_map,
    population_totals,
    tons_by_area,
)
from analytics.financial import (
    AreaFinancialRow,
    FinancialSummary,
    additional_cost_history,
    aggregate_financials,
    revenue_breakdown,
    salary_breakdown,
)
from analytics.summary import (
    Dashboard,
    FleetKpis,
    build_dashboard,
    compose_annual_summary,
    daily_series,
    fleet_kpis,
    monthly_series,
)

__all__ = [
    "RecordStore",
    "FilterState",
    "apply_filters",
    "comparison_trips",
    "VehicleRow",
    "aggregate_vehicles",
    "vehicle_utilization",
    "DriverRow",
    "aggregate_drivers",
    "AreaPopulationRow",
    "aggregate_area_population",
    "area_distribution",
    "area_intelligence",
    "build_vehicle_area_map",
    "population_totals",
    "tons_by_area",
    "AreaFinancialRow",
    "FinancialSummary",
    "additional_cost_history",
    "aggregate_financials",
    "revenue_breakdown",
    "salary_breakdown",
    "Dashboard",
    "FleetKpis",
    "build_dashboard",
    "compose_annual_summary",
    "daily_series",
    "fleet_kpis",
    "monthly_series",
]
