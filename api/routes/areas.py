"""
Service area endpoints.

GET /api/v1/areas/population         → per-area population, tonnage and coverage
GET /api/v1/areas/population/totals  → population, served and coverage for the year
GET /api/v1/areas/distribution       → whole tons per area for the share chart
GET /api/v1/areas/intelligence       → per-area costs, staffing and productivity
"""

from fastapi import APIRouter, Depends

from analytics.areas import area_distribution, area_intelligence
from analytics.filters import FilterState, current_trips
from analytics.store import RecordStore
from analytics.summary import Dashboard
from api.models import (
    AreaIntelligenceOut,
    AreaPopulationOut,
    NameValueOut,
    PopulationTotalsOut,
)
from api.state import DataState, get_dashboard, get_data_state, get_filters, get_store

router = APIRouter(prefix="/areas", tags=["areas"])


@router.get(
    "/population",
    response_model=list[AreaPopulationOut],
    summary="Population and tonnage by area",
)
def list_area_population(dashboard: Dashboard = Depends(get_dashboard)) -> list[dict]:
    return [r.to_dict() for r in dashboard.areas]


@router.get(
    "/population/totals",
    response_model=PopulationTotalsOut,
    summary="Population totals",
)
def get_population_totals(dashboard: Dashboard = Depends(get_dashboard)) -> dict:
    """Totals for the year, restricted to the selected vehicles' areas when
    a vehicle filter is set."""
    return dashboard.population


@router.get(
    "/distribution",
    response_model=list[NameValueOut],
    summary="Tonnage share by area",
)
def get_area_distribution(
    state: FilterState = Depends(get_filters),
    store: RecordStore = Depends(get_store),
    data: DataState = Depends(get_data_state),
) -> list[dict]:
    return data.cached(
        store,
        ("distribution", state),
        lambda: area_distribution(current_trips(store.trips, state), store.areas, state.year),
    )


@router.get(
    "/intelligence",
    response_model=list[AreaIntelligenceOut],
    summary="Area intelligence",
)
def list_area_intelligence(
    state: FilterState = Depends(get_filters),
    store: RecordStore = Depends(get_store),
    dashboard: Dashboard = Depends(get_dashboard),
) -> list[dict]:
    """Operational cost, prorated salaries and tons per worker for each area."""
    rows = area_intelligence(
        dashboard.vehicles, store.workers, store.population,
        state.year, state.active_month_count,
    )
    return [r.to_dict() for r in rows]
