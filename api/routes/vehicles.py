"""
Vehicle table endpoints.

GET /api/v1/vehicles              → vehicle rows for the active year
GET /api/v1/vehicles/comparison   → vehicle rows for the comparison year
GET /api/v1/vehicles/utilization  → average load against capacity, highest first

All accept the standard filter query: year, comparison_year, vehicle, month.
"""

from fastapi import APIRouter, Depends

from analytics.summary import Dashboard
from analytics.vehicles import vehicle_utilization
from api.models import UtilizationOut, VehicleRowOut
from api.state import get_dashboard

router = APIRouter(prefix="/vehicles", tags=["vehicles"])


@router.get(
    "",
    response_model=list[VehicleRowOut],
    summary="Vehicle table",
)
def list_vehicle_rows(dashboard: Dashboard = Depends(get_dashboard)) -> list[dict]:
    """Per-vehicle trips, tonnage, costs and capacity for the filtered period.

    Rows follow the order vehicles first appear in the trip log.  Fuel
    covers the selected months only; maintenance is the year's figure.
    """
    return [r.to_dict() for r in dashboard.vehicles]


@router.get(
    "/comparison",
    response_model=list[VehicleRowOut],
    summary="Vehicle table for the comparison year",
)
def list_comparison_rows(dashboard: Dashboard = Depends(get_dashboard)) -> list[dict]:
    """Same columns as ``/vehicles``; empty when no comparison year is set."""
    return [r.to_dict() for r in dashboard.comparison_vehicles]


@router.get(
    "/utilization",
    response_model=list[UtilizationOut],
    summary="Vehicle capacity utilization",
)
def list_utilization(dashboard: Dashboard = Depends(get_dashboard)) -> list[dict]:
    return [r.to_dict() for r in vehicle_utilization(dashboard.vehicles)]
