"""
Pytest fixtures for the fleet analytics tests.

Provides a small two-year fleet (2024 with a comparison year 2023) covering
the awkward cases: a trip with no vehicle id, a trip with no driver, an area
mapping row without a year (applies to every year), a vehicle with no
maintenance row and an area with zero population.

Expected 2024 figures (no filter):
    V1: 2 trips, 3.0 t, fuel 50+50, maintenance 200, distance 120, area مؤته
    V2: 1 trip, 4.0 t, fuel 30, no maintenance row, area المزار (wildcard row)
    blank vehicle: 1 trip, 0.5 t, no driver
"""

import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from analytics.records import (  # noqa: E402
    AREA,
    CAPACITY_M3,
    DISTANCE_KM,
    DRIVER,
    LOAD_DENSITY,
    MAINTENANCE_COST,
    MANUFACTURE_YEAR,
    MONTH,
    NET_LOAD,
    VEHICLE_ID,
    WEIGH_TIME,
    YEAR,
    AdditionalCost,
    Population,
    Revenue,
    WasteTreatment,
    Worker,
)
from analytics.store import RecordStore  # noqa: E402


def trip(vehicle, kg, month, year, when="", driver=""):
    """One weighbridge row as the published sheet delivers it (all text)."""
    return {
        VEHICLE_ID: vehicle,
        NET_LOAD: str(kg),
        MONTH: month,
        YEAR: year,
        WEIGH_TIME: when,
        DRIVER: driver,
    }


TRIPS = [
    trip("V1", 1000, "Jan", "2024", "2024-01-05 08:10:00", "أحمد"),
    trip("V1", 2000, "feb", "2024", "2024-02-10 09:00:00", "محمد"),
    trip("V2", 4000, "jan", "2024", "05/01/2024 11:30", "أحمد"),
    trip("", 500, "jan", "2024", "2024-01-06", ""),
    trip("V1", 1500, "jan", "2023", "2023-01-07", "أحمد"),
]

VEHICLES = [
    {VEHICLE_ID: "V1", MANUFACTURE_YEAR: "2015", CAPACITY_M3: "16", LOAD_DENSITY: "0.45"},
    {VEHICLE_ID: "V2", MANUFACTURE_YEAR: "2020", CAPACITY_M3: "10", LOAD_DENSITY: "0.5"},
]

FUEL = [
    {VEHICLE_ID: "V1", YEAR: "2024", "jan": "50", "feb": "50"},
    {VEHICLE_ID: "V2", YEAR: "2024", "jan": "30"},
]

MAINTENANCE = [
    {VEHICLE_ID: "V1", YEAR: "2024", MAINTENANCE_COST: "200"},
]

AREAS = [
    {VEHICLE_ID: "V1", AREA: "مؤته", YEAR: "2024"},
    {VEHICLE_ID: "V2", AREA: "المزار", YEAR: ""},
]

DISTANCE = [
    {VEHICLE_ID: "V1", YEAR: "2024", DISTANCE_KM: "120"},
]

POPULATION = [
    Population(area="مؤته", year="2024", population=10000, served=8000),
    Population(area="المزار", year="2024", population=5000, served=5000),
    Population(area="سول", year="2024", population=0, served=100),
    Population(area="مؤته", year="2023", population=9500, served=7000),
]

WORKERS = [
    Worker(name="علي", role="سائق", area="مؤته", salary=3600),
    Worker(name="سعاد", role="عامل نظافة", area="المزار", salary=2400),
]

REVENUES = [
    Revenue(year="2024", household_fees=500, commercial_fees=300,
            recycling_revenue=200, area="مؤته"),
    Revenue(year="2024", household_fees=100),
    Revenue(year="2023", household_fees=700, area="مؤته"),
]

TREATMENT = [
    WasteTreatment(year="2024", recyclables_tons=1.0, biowaste_tons=2.0,
                   other_treatment_tons=1.0),
]

ADDITIONAL_COSTS = [
    AdditionalCost(year="2023", insurance=80),
    AdditionalCost(year="2024", insurance=100, clothing=50, cleaning=25, containers=25),
]


@pytest.fixture()
def store():
    """The sample fleet as a frozen ``RecordStore``."""
    return RecordStore.build(
        source="fixture",
        trips=TRIPS,
        vehicles=VEHICLES,
        fuel=FUEL,
        maintenance=MAINTENANCE,
        areas=AREAS,
        distance=DISTANCE,
        population=POPULATION,
        workers=WORKERS,
        revenues=REVENUES,
        treatment=TREATMENT,
        additional_costs=ADDITIONAL_COSTS,
    )


@pytest.fixture()
def trips_2024(store):
    return [t for t in store.trips if t[YEAR] == "2024"]
