"""
Tests for analytics/areas.py — area attribution, per-capita figures,
population totals, the share chart and the area intelligence view.
"""
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from analytics.areas import (
    aggregate_area_population,
    area_distribution,
    area_intelligence,
    build_vehicle_area_map,
    population_totals,
    tons_by_area,
)
from analytics.filters import apply_filters
from analytics.records import (
    AREA,
    UNSPECIFIED,
    VEHICLE_ID,
    YEAR,
    Population,
    Worker,
    population_for,
)
from analytics.vehicles import aggregate_vehicles
from utils.config import KnownAreas


def _vehicle_rows(store, year="2024", vehicles=()):
    trips = apply_filters(store.trips, year, vehicles)
    return aggregate_vehicles(trips, store.vehicles, store.areas, store.fuel,
                              store.maintenance, store.distance, year)


class TestVehicleAreaMap:
    def test_year_and_wildcard_rows(self, store):
        assert build_vehicle_area_map(store.areas, "2024") == {"V1": "مؤته", "V2": "المزار"}

    def test_other_year_only_sees_wildcard(self, store):
        assert build_vehicle_area_map(store.areas, "2023") == {"V2": "المزار"}

    def test_blank_area_rows_ignored(self):
        areas = [
            {VEHICLE_ID: "A", AREA: "سول", YEAR: ""},
            {VEHICLE_ID: "A", AREA: "  ", YEAR: "2024"},
        ]
        assert build_vehicle_area_map(areas, "2024") == {"A": "سول"}

    def test_ids_and_areas_trimmed(self):
        areas = [{VEHICLE_ID: " A ", AREA: " جعفر ", YEAR: "2024"}]
        assert build_vehicle_area_map(areas, "2024") == {"A": "جعفر"}


class TestTonsByArea:
    def test_unmapped_goes_to_unspecified(self, trips_2024):
        totals = tons_by_area(trips_2024, {"V1": "مؤته"})
        assert totals["مؤته"] == pytest.approx(3.0)
        assert totals[UNSPECIFIED] == pytest.approx(4.5)


class TestAreaPopulation:
    def test_rows_sorted_by_kg_per_capita(self, store, trips_2024):
        rows = aggregate_area_population(trips_2024, store.areas, store.population, "2024")
        assert [r.area for r in rows] == ["المزار", "مؤته", "سول"]

    def test_per_capita_and_coverage(self, store, trips_2024):
        rows = {r.area: r for r in aggregate_area_population(
            trips_2024, store.areas, store.population, "2024")}
        assert rows["المزار"].kg_per_capita == pytest.approx(0.8)
        assert rows["المزار"].coverage_rate == pytest.approx(100.0)
        assert rows["مؤته"].kg_per_capita == pytest.approx(0.3)
        assert rows["مؤته"].coverage_rate == pytest.approx(80.0)

    def test_zero_population_guarded(self, store, trips_2024):
        rows = {r.area: r for r in aggregate_area_population(
            trips_2024, store.areas, store.population, "2024")}
        assert rows["سول"].kg_per_capita == 0.0
        assert rows["سول"].coverage_rate == 0.0
        assert rows["سول"].total_tons == 0.0

    def test_only_active_year_records(self, store, trips_2024):
        rows = aggregate_area_population(trips_2024, store.areas, store.population, "2024")
        assert len(rows) == 3

    def test_population_for_drops_yearless_rows(self, store):
        population = [Population("مؤته", "2024", 10.0), Population("سول", "", 20.0)]
        assert population_for(population, "2024") == [population[0]]
        assert population_for(population, "") == [population[1]]
        assert store.population_for("2024") == population_for(store.population, "2024")


class TestPopulationTotals:
    def test_unfiltered(self, store):
        totals = population_totals(store.population, "2024")
        assert totals["population"] == 15000
        assert totals["served"] == 13100
        assert totals["coverage_rate"] == pytest.approx(13100 / 15000 * 100)

    def test_vehicle_filter_restricts_to_served_areas(self, store):
        rows = _vehicle_rows(store, vehicles={"V1"})
        totals = population_totals(store.population, "2024", rows, {"V1"})
        assert totals == {"population": 10000, "served": 8000, "coverage_rate": 80.0}

    def test_rows_without_filter_are_ignored(self, store):
        rows = _vehicle_rows(store, vehicles={"V1"})
        assert population_totals(store.population, "2024", rows)["population"] == 15000

    def test_no_population(self):
        assert population_totals([], "2024")["coverage_rate"] == 0.0


class TestAreaDistribution:
    def test_whole_tons_largest_first(self, store, trips_2024):
        assert area_distribution(trips_2024, store.areas, "2024") == [
            {"name": "المزار", "value": 4},
            {"name": "مؤته", "value": 3},
        ]

    def test_blank_vehicle_left_out(self, store, trips_2024):
        names = [d["name"] for d in area_distribution(trips_2024, store.areas, "2024")]
        assert UNSPECIFIED not in names


class TestAreaIntelligence:
    def test_every_known_area_present(self, store):
        rows = area_intelligence(_vehicle_rows(store), store.workers,
                                 store.population, "2024")
        assert {r.area for r in rows} == set(KnownAreas.AREAS)
        assert rows[0].area == "المزار"

    def test_area_profile(self, store):
        rows = {r.area: r for r in area_intelligence(
            _vehicle_rows(store), store.workers, store.population, "2024")}
        mutah = rows["مؤته"]
        assert mutah.tons == pytest.approx(3.0)
        assert mutah.trips == 2
        assert mutah.vehicles_count == 1
        assert mutah.workers_count == 1
        assert mutah.salaries == pytest.approx(3600.0)
        assert mutah.operational_cost == pytest.approx(300.0)
        assert mutah.total_budget == pytest.approx(3900.0)
        assert mutah.cost_per_ton == pytest.approx(1300.0)
        assert mutah.population == 10000

    def test_salaries_prorated_to_active_months(self, store):
        rows = {r.area: r for r in area_intelligence(
            _vehicle_rows(store), store.workers, store.population, "2024",
            active_month_count=3)}
        assert rows["مؤته"].salaries == pytest.approx(900.0)

    def test_empty_area_is_zero_guarded(self, store):
        rows = {r.area: r for r in area_intelligence(
            _vehicle_rows(store), store.workers, store.population, "2024")}
        assert rows["جعفر"].cost_per_ton == 0.0
        assert rows["جعفر"].tons_per_worker == 0.0

    def test_aliases_and_unknown_areas(self):
        workers = [
            Worker(name="x", role="سائق", area="مؤتة", salary=1200),
            Worker(name="y", role="سائق", area="عمان", salary=1200),
        ]
        population = [Population(area="مؤتة", year="2024", population=50)]
        rows = {r.area: r for r in area_intelligence([], workers, population, "2024")}
        assert rows["مؤته"].workers_count == 1
        assert rows["مؤته"].population == 50
        assert "عمان" not in rows
