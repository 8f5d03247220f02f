"""
Financial endpoints.

GET /api/v1/financial/summary           → costs, revenue and unit costs for the filter
GET /api/v1/financial/salaries          → annual salaries by role and area (?search=)
GET /api/v1/financial/revenues          → revenue by source and area, with comparison year
GET /api/v1/financial/additional-costs  → insurance/clothing/cleaning/containers by year
"""

from typing import Any

from fastapi import APIRouter, Depends, Query

from analytics.filters import FilterState
from analytics.financial import (
    additional_cost_history,
    revenue_breakdown,
    salary_breakdown,
)
from analytics.store import RecordStore
from analytics.summary import Dashboard
from api.models import FinancialSummaryOut
from api.state import get_dashboard, get_filters, get_store

router = APIRouter(prefix="/financial", tags=["financial"])


@router.get(
    "/summary",
    response_model=FinancialSummaryOut,
    summary="Financial summary",
)
def get_financial_summary(dashboard: Dashboard = Depends(get_dashboard)) -> dict:
    """Salaries are prorated to the number of selected months (all twelve
    when no month filter is set)."""
    return dashboard.financial.to_dict()


@router.get(
    "/salaries",
    response_model=dict[str, Any],
    summary="Salary breakdown",
)
def get_salaries(
    search: str = Query("", description="Keep workers whose name, role or area contains this"),
    store: RecordStore = Depends(get_store),
) -> dict:
    return salary_breakdown(store.workers, search)


@router.get(
    "/revenues",
    response_model=dict[str, Any],
    summary="Revenue breakdown",
)
def get_revenues(
    state: FilterState = Depends(get_filters),
    store: RecordStore = Depends(get_store),
) -> dict:
    return revenue_breakdown(store.revenues, state.year, state.comparison_year)


@router.get(
    "/additional-costs",
    response_model=dict[str, Any],
    summary="Additional cost history",
)
def get_additional_costs(store: RecordStore = Depends(get_store)) -> dict:
    return additional_cost_history(store.additional_costs)
