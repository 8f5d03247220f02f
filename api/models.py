"""
Pydantic request/response models for the API.

Response models mirror the aggregation dataclasses field for field so that
routes can return ``row.to_dict()`` directly.  Currency amounts are in JOD,
loads in tons, distances in km.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


# ── Reference data models ─────────────────────────────────────────────────────

class YearOut(BaseModel):
    """A year present in the trip log."""
    year: str = Field(..., description="Year as written in the trip log", examples=["2024"])
    trips: int = Field(..., description="Number of trips recorded for this year", examples=[2140])


class MonthOut(BaseModel):
    code: str = Field(..., description="Lower-case month code used in filters", examples=["jan"])
    position: int = Field(..., description="Calendar position, 1-12", examples=[1])


# ── Vehicle and driver models ─────────────────────────────────────────────────

class VehicleRowOut(BaseModel):
    """One vehicle's figures for the filtered period."""
    vehicle: str = Field(..., description="Vehicle number", examples=["15-2341"])
    area: str = Field(..., description="Service area for the active year", examples=["مؤته"])
    drivers: str = Field(..., description="Distinct drivers, comma separated")
    manufacture_year: str = Field(..., description="Year of manufacture (blank when unknown)", examples=["2015"])
    age: int = Field(..., description="Age in years at the active year (0 when unknown)", examples=[9])
    efficiency_rate: float = Field(..., description="1.0, 0.5 or 0.0 depending on age", examples=[0.5])
    cap_m3: float = Field(..., description="Body capacity in cubic meters", examples=[16.0])
    cap_ton: float = Field(..., description="Theoretical load per trip in tons", examples=[7.2])
    actual_daily_capacity: float = Field(..., description="Derated daily capacity in tons", examples=[3.87])
    trips: int = Field(..., examples=[214])
    tons: float = Field(..., description="Total net load in tons", examples=[1187.4])
    fuel: float = Field(..., description="Fuel cost for the active months", examples=[5410.0])
    maintenance: float = Field(..., description="Maintenance cost for the year", examples=[880.0])
    total_cost: float = Field(..., examples=[6290.0])
    cost_trip: float = Field(..., description="Total cost per trip (0 when no trips)", examples=[29.39])
    cost_ton: float = Field(..., description="Total cost per ton (0 when no tonnage)", examples=[5.3])
    distance: float = Field(..., description="Kilometres driven", examples=[9120.0])
    km_per_trip: float = Field(..., examples=[42.6])


class UtilizationOut(BaseModel):
    vehicle: str = Field(..., examples=["15-2341"])
    area: str
    trips: int
    tons: float
    cap_ton: float
    avg_tons_per_trip: float
    utilization: float = Field(..., description="Average load as a percentage of cap_ton", examples=[76.8])


class DriverRowOut(BaseModel):
    """One driver's figures for the filtered period."""
    driver: str = Field(..., description="Driver name, or the unspecified sentinel", examples=["محمد"])
    trips: int
    tons: float
    avg_tons_per_trip: float
    vehicles: str = Field(..., description="Distinct vehicles driven, comma separated")


# ── Area models ───────────────────────────────────────────────────────────────

class AreaPopulationOut(BaseModel):
    area: str = Field(..., examples=["المزار الجنوبي"])
    population: float
    served: float
    total_tons: float
    kg_per_capita: float = Field(..., description="Collected kilograms per resident")
    coverage_rate: float = Field(..., description="Served share of the population, percent")


class PopulationTotalsOut(BaseModel):
    population: float
    served: float
    coverage_rate: float


class NameValueOut(BaseModel):
    """A chart slice."""
    name: str
    value: float


class AreaIntelligenceOut(BaseModel):
    area: str
    tons: float
    trips: int
    fuel: float
    maintenance: float
    vehicles_count: int
    workers_count: int
    salaries: float = Field(..., description="Salaries prorated to the active months")
    population: float
    operational_cost: float
    total_budget: float
    cost_per_ton: float
    tons_per_worker: float


# ── Financial models ──────────────────────────────────────────────────────────

class AreaFinancialOut(BaseModel):
    area: str
    salaries: float
    operational: float
    expense: float
    revenue: float
    net_balance: float
    recovery_rate: float
    tons: float
    cost_per_ton: float


class FinancialSummaryOut(BaseModel):
    """Cost, revenue and unit-cost figures for the filtered period."""
    salaries: float = Field(..., description="Salaries prorated to the active months")
    fuel: float
    maintenance: float
    operational: float = Field(..., description="Fuel plus maintenance")
    additional: float = Field(..., description="Insurance, clothing, cleaning and containers")
    total_cost: float
    revenue: float
    cost_recovery: float = Field(..., description="Revenue as a percentage of total cost")
    total_tons: float
    cost_per_ton: float
    total_population: float
    cost_per_capita: float
    affordability_index: float = Field(..., description="Cost per capita against the benchmark, percent")
    allocation: list[NameValueOut] = Field(default_factory=list)
    areas: list[AreaFinancialOut] = Field(default_factory=list)


# ── Dashboard models ──────────────────────────────────────────────────────────

class KpisOut(BaseModel):
    total_tons: float
    total_trips: int
    total_fuel: float
    total_maintenance: float
    days_count: int = Field(..., description="Distinct weighing days")
    avg_tons_per_day: float
    active_vehicles: int
    top_vehicle_by_trips: str | None = None
    top_trips: int
    top_vehicle_by_tons: str | None = None
    top_tons: float
    avg_capacity_tons: float


class DashboardSummaryOut(BaseModel):
    year: str = Field(..., examples=["2024"])
    comparison_year: str = Field("", examples=["2023"])
    kpis: KpisOut
    comparison_kpis: KpisOut | None = None
    population: PopulationTotalsOut
    annual_summary: dict[str, Any] = Field(
        ..., description="waste, service, financial and treatment sections",
    )


class SeriesPointOut(BaseModel):
    name: str = Field(..., description="Month code or MM-DD", examples=["jan"])
    current: int
    comparison: int


# ── AI models ─────────────────────────────────────────────────────────────────

class ReportRequest(BaseModel):
    """Narrative report request; the filter comes from the query string."""
    analysis_type: str = Field(..., description="general | holistic_ranking | detailed | specific | "
                                                "comparison | best_worst | custom",
                               examples=["best_worst"])
    vehicle_id: str | None = Field(None, description="Required for 'specific'", examples=["15-2341"])
    vehicle_ids: list[str] = Field(default_factory=list, description="At least two for 'comparison'")
    custom_prompt: str | None = Field(None, description="Required for 'custom'")
    language: str = Field("ar", description="ar | en", examples=["ar"])


class ReportOut(BaseModel):
    analysis_type: str
    year: str
    report: str


class ChatRequest(BaseModel):
    query: str = Field(..., min_length=1, description="Question about the fleet data",
                       examples=["Which vehicle has the highest cost per ton?"])
    language: str = Field("ar", examples=["en"])


class RouteRequest(BaseModel):
    """Either a vehicle (its area picks the start point) or an area."""
    vehicle_id: str | None = Field(None, examples=["15-2341"])
    area: str | None = Field(None, examples=["مؤته"])
    language: str = Field("ar")


class RouteOptionOut(BaseModel):
    name: str
    distance_km: float
    duration_min: float
    map_url: str


class RouteOptionsOut(BaseModel):
    start: str
    destination: str
    routes: list[RouteOptionOut] = Field(default_factory=list)
    summary: str = ""


# ── Data load models ──────────────────────────────────────────────────────────

class DatasetReportOut(BaseModel):
    name: str
    source: str
    status: str = Field(..., description="loaded | failed | missing", examples=["loaded"])
    elapsed_seconds: float
    rows_loaded: int
    rows_skipped: int
    skips: dict[str, int] = Field(default_factory=dict, description="Skipped rows by category")
    errors: list[str] = Field(default_factory=list)


class LoadReportOut(BaseModel):
    source: str
    started_at: str
    elapsed_seconds: float
    ok: bool
    failed: list[str] = Field(default_factory=list)
    datasets: dict[str, DatasetReportOut] = Field(default_factory=dict)
