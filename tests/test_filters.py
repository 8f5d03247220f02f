"""
Tests for analytics/filters.py — trip filtering by year, vehicle and month.
"""
import itertools
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from analytics.filters import FilterState, apply_filters, comparison_trips, current_trips
from analytics.records import VEHICLE_ID


class TestApplyFilters:
    def test_year_only(self, store):
        assert len(apply_filters(store.trips, "2024")) == 4
        assert len(apply_filters(store.trips, "2023")) == 1

    def test_unknown_year_is_empty(self, store):
        assert apply_filters(store.trips, "1999") == []

    def test_vehicle_filter_drops_blank_vehicle(self, store):
        kept = apply_filters(store.trips, "2024", vehicle_filter={"V1"})
        assert len(kept) == 2
        assert all(t[VEHICLE_ID] == "V1" for t in kept)

    def test_month_filter_is_case_insensitive(self, store):
        kept = apply_filters(store.trips, "2024", month_filter={"JAN"})
        # "Jan" in the sheet matches; the blank-vehicle trip is kept
        assert len(kept) == 3

    def test_filter_values_are_trimmed(self, store):
        kept = apply_filters(store.trips, " 2024 ", vehicle_filter=[" V1 "], month_filter=[" JAN "])
        assert kept == apply_filters(store.trips, "2024", {"V1"}, {"jan"})
        assert len(kept) == 1

    def test_blank_filter_values_do_not_restrict(self, store):
        assert len(apply_filters(store.trips, "2024", vehicle_filter=[" "], month_filter=[""])) == 4

    def test_blank_vehicle_kept_when_unrestricted(self, store):
        kept = apply_filters(store.trips, "2024")
        assert any(not t[VEHICLE_ID] for t in kept)

    def test_result_is_subset(self, store):
        vehicles = [set(), {"V1"}, {"V2"}, {"V1", "V2"}, {"V9"}]
        months = [set(), {"jan"}, {"feb"}, {"jan", "feb"}]
        for v, m in itertools.product(vehicles, months):
            kept = apply_filters(store.trips, "2024", v, m)
            assert all(any(k is t for t in store.trips) for k in kept)

    def test_predicates_commute(self, store):
        by_year_then_vehicle = apply_filters(
            apply_filters(store.trips, "2024"), "2024", vehicle_filter={"V1"})
        by_vehicle_then_year = apply_filters(
            [t for t in store.trips if t[VEHICLE_ID] == "V1"], "2024")
        assert by_year_then_vehicle == by_vehicle_then_year
        narrowed = apply_filters(
            apply_filters(store.trips, "2024", month_filter={"jan"}), "2024",
            vehicle_filter={"V1"})
        assert narrowed == apply_filters(store.trips, "2024", {"V1"}, {"jan"})


class TestFilterState:
    def test_create_normalises(self):
        state = FilterState.create(" 2024 ", None, [" V1 ", ""], ["JAN", " feb "])
        assert state.year == "2024"
        assert state.comparison_year == ""
        assert state.vehicles == frozenset({"V1"})
        assert state.months == frozenset({"jan", "feb"})

    def test_active_month_count(self):
        assert FilterState.create("2024").active_month_count == 12
        assert FilterState.create("2024", months=["jan", "feb", "mar"]).active_month_count == 3

    def test_no_comparison_year_gives_empty_set(self, store):
        state = FilterState.create("2024")
        assert not state.has_comparison
        assert comparison_trips(store.trips, state) == []

    def test_comparison_uses_same_filters(self, store):
        state = FilterState.create("2024", "2023", vehicles=["V1"], months=["jan"])
        assert len(current_trips(store.trips, state)) == 1
        assert len(comparison_trips(store.trips, state)) == 1
