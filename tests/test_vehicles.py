"""
Tests for analytics/vehicles.py — the vehicle table.

Covers the fuel/month interaction, the age-band efficiency step, the
reference join rule and the zero guards on per-trip / per-ton costs.
"""
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from analytics.areas import build_vehicle_area_map, population_totals
from analytics.filters import apply_filters
from analytics.financial import area_financials
from analytics.records import (
    AREA,
    MAINTENANCE_COST,
    MANUFACTURE_YEAR,
    NET_LOAD,
    VEHICLE_ID,
    YEAR,
    Population,
)
from analytics.vehicles import (
    actual_daily_capacity,
    aggregate_vehicles,
    efficiency_rate,
    vehicle_utilization,
)
from conftest import trip


def _aggregate(store, year="2024", vehicles=(), months=()):
    trips = apply_filters(store.trips, year, vehicles, months)
    return aggregate_vehicles(trips, store.vehicles, store.areas, store.fuel,
                              store.maintenance, store.distance, year, months)


def _by_vehicle(rows):
    return {r.vehicle: r for r in rows}


class TestScenarios:
    def test_two_trips_full_year_fuel(self, store):
        v1 = _by_vehicle(_aggregate(store))["V1"]
        assert v1.trips == 2
        assert v1.tons == pytest.approx(3.0)
        assert v1.fuel == pytest.approx(100.0)

    def test_month_filter_restricts_fuel(self, store):
        v1 = _by_vehicle(_aggregate(store, months={"jan"}))["V1"]
        assert v1.fuel == pytest.approx(50.0)
        assert v1.trips == 1
        # Maintenance is a yearly figure and ignores the month filter
        assert v1.maintenance == pytest.approx(200.0)


class TestVehicleRow:
    def test_costs_and_distance(self, store):
        v1 = _by_vehicle(_aggregate(store))["V1"]
        assert v1.total_cost == pytest.approx(300.0)
        assert v1.cost_trip == pytest.approx(150.0)
        assert v1.cost_ton == pytest.approx(100.0)
        assert v1.distance == pytest.approx(120.0)
        assert v1.km_per_trip == pytest.approx(60.0)

    def test_capacity_and_age(self, store):
        v1 = _by_vehicle(_aggregate(store))["V1"]
        assert v1.manufacture_year == "2015"
        assert v1.age == 9
        assert v1.efficiency_rate == 0.5
        assert v1.cap_ton == pytest.approx(7.2)
        assert v1.actual_daily_capacity == pytest.approx(16 * 0.625 * 0.9 * 0.86 * 0.5)

    def test_drivers_joined_in_first_seen_order(self, store):
        v1 = _by_vehicle(_aggregate(store))["V1"]
        assert v1.drivers == "أحمد, محمد"

    def test_wildcard_area_and_missing_maintenance(self, store):
        v2 = _by_vehicle(_aggregate(store))["V2"]
        assert v2.area == "المزار"
        assert v2.maintenance == 0.0
        assert v2.distance == 0.0
        assert v2.km_per_trip == 0.0
        assert v2.cost_ton == pytest.approx(7.5)

    def test_blank_vehicle_skipped(self, store):
        rows = _aggregate(store)
        assert [r.vehicle for r in rows] == ["V1", "V2"]

    def test_tonnage_and_trip_conservation(self, store):
        trips = [t for t in apply_filters(store.trips, "2024") if t[VEHICLE_ID]]
        rows = _aggregate(store)
        assert sum(r.trips for r in rows) == len(trips)
        assert sum(r.tons for r in rows) == pytest.approx(
            sum(float(t[NET_LOAD]) / 1000 for t in trips))

    def test_unknown_year_is_empty(self, store):
        assert _aggregate(store, year="1999") == []

    def test_idempotent(self, store):
        assert _aggregate(store) == _aggregate(store)


class TestZeroGuards:
    def test_zero_tons_and_malformed_numbers(self):
        trips = [trip("Z1", "n/a", "jan", "2024")]
        vehicles = [{VEHICLE_ID: "Z1", MANUFACTURE_YEAR: "غير معروف"}]
        maintenance = [{VEHICLE_ID: "Z1", YEAR: "2024", MAINTENANCE_COST: "12,5x"}]
        [row] = aggregate_vehicles(trips, vehicles, [], [], maintenance, [], "2024")
        assert row.tons == 0.0
        assert row.cost_ton == 0.0
        assert row.maintenance == 0.0
        assert row.manufacture_year == ""
        assert row.age == 0
        assert row.efficiency_rate == 1.0

    def test_no_reference_rows(self):
        [row] = aggregate_vehicles([trip("Z2", 1000, "jan", "2024")], [], [], [], [], [], "2024")
        assert row.area == ""
        assert row.cap_ton == 0.0
        assert row.total_cost == 0.0
        assert row.cost_trip == 0.0

    def test_empty_trips(self):
        assert aggregate_vehicles([], [], [], [], [], [], "2024") == []


class TestJoinRule:
    def test_year_row_beats_wildcard(self):
        areas = [
            {VEHICLE_ID: "A", AREA: "سول", YEAR: "2024"},
            {VEHICLE_ID: "A", AREA: "جعفر", YEAR: ""},
        ]
        [row] = aggregate_vehicles([trip("A", 1000, "jan", "2024")], [], areas, [], [], [], "2024")
        assert row.area == "سول"

    def test_last_row_of_equal_specificity_wins(self):
        areas = [
            {VEHICLE_ID: "A", AREA: "سول", YEAR: "2024"},
            {VEHICLE_ID: "A", AREA: "الطيبة", YEAR: "2024"},
            {VEHICLE_ID: "A", AREA: "العراق", YEAR: "2023"},
        ]
        [row] = aggregate_vehicles([trip("A", 1000, "jan", "2024")], [], areas, [], [], [], "2024")
        assert row.area == "الطيبة"

    def test_blank_area_row_does_not_shadow_wildcard(self):
        areas = [
            {VEHICLE_ID: "A", AREA: "مؤته", YEAR: ""},
            {VEHICLE_ID: "A", AREA: " ", YEAR: "2024"},
        ]
        maintenance = [{VEHICLE_ID: "A", YEAR: "2024", MAINTENANCE_COST: "100"}]
        [row] = aggregate_vehicles([trip("A", 2000, "jan", "2024")], [], areas, [],
                                   maintenance, [], "2024")
        assert row.area == "مؤته"
        assert row.area == build_vehicle_area_map(areas, "2024")["A"]

        # Costs, tonnage and the population restriction all land on the same area
        [fin] = area_financials([], [row], [], 12)
        assert (fin.area, fin.operational, fin.tons) == ("مؤته", 100.0, 2.0)
        population = [Population("مؤته", "2024", 1000.0, 900.0)]
        totals = population_totals(population, "2024", [row], ["A"])
        assert totals["population"] == 1000.0


class TestEfficiencyRate:
    @pytest.mark.parametrize("age,expected", [
        (0, 1.0), (6, 1.0), (7, 0.5), (11, 0.5), (12, 0.0), (30, 0.0),
    ])
    def test_age_bands(self, age, expected):
        assert efficiency_rate(age) == expected

    def test_actual_daily_capacity_zero_for_old_vehicles(self):
        assert actual_daily_capacity(20, efficiency_rate(15)) == 0.0


class TestUtilization:
    def test_sorted_and_zero_guarded(self, store):
        rows = _aggregate(store)
        util = vehicle_utilization(rows)
        by_vehicle = {u.vehicle: u for u in util}
        # V1: 1.5 t/trip of 7.2 t; V2: 4 t/trip of 5 t
        assert by_vehicle["V1"].utilization == pytest.approx(1.5 / 7.2 * 100)
        assert by_vehicle["V2"].utilization == pytest.approx(80.0)
        assert [u.vehicle for u in util] == ["V2", "V1"]

    def test_zero_capacity(self):
        [row] = aggregate_vehicles([trip("Z", 1000, "jan", "2024")], [], [], [], [], [], "2024")
        assert vehicle_utilization([row])[0].utilization == 0.0
