"""
Dashboard endpoints.

GET /api/v1/dashboard/summary     → KPIs, population totals and the annual summary
GET /api/v1/dashboard/timeseries  → trips or tons per month (or per day), both years
"""

from fastapi import APIRouter, Depends, Query

from analytics.filters import FilterState, comparison_trips, current_trips
from analytics.store import RecordStore
from analytics.summary import Dashboard, daily_series, monthly_series
from api.models import DashboardSummaryOut, SeriesPointOut
from api.state import DataState, get_dashboard, get_data_state, get_filters, get_store

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@router.get(
    "/summary",
    response_model=DashboardSummaryOut,
    summary="Dashboard summary",
)
def get_summary(dashboard: Dashboard = Depends(get_dashboard)) -> dict:
    """Headline KPIs for the active year (and the comparison year when set)
    together with the waste, service, financial and treatment summary."""
    return {
        "year": dashboard.state.year,
        "comparison_year": dashboard.state.comparison_year,
        "kpis": dashboard.kpis.to_dict(),
        "comparison_kpis": (
            dashboard.comparison_kpis.to_dict() if dashboard.comparison_kpis else None
        ),
        "population": dashboard.population,
        "annual_summary": dashboard.annual_summary,
    }


@router.get(
    "/timeseries",
    response_model=list[SeriesPointOut],
    summary="Trips or tons over time",
)
def get_timeseries(
    group_by: str = Query("month", pattern="^(month|day)$", description="month | day"),
    metric: str = Query("trips", description="trips | tons"),
    state: FilterState = Depends(get_filters),
    store: RecordStore = Depends(get_store),
    data: DataState = Depends(get_data_state),
) -> list[dict]:
    """Tons are rounded half-up per trip before summing.

    Raises:
        ValueError (400): unknown metric.
    """
    series = monthly_series if group_by == "month" else daily_series

    def compute():
        return series(
            current_trips(store.trips, state), comparison_trips(store.trips, state), metric,
        )

    return data.cached(store, ("timeseries", group_by, metric, state), compute)
