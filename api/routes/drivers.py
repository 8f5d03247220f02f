"""
Driver endpoint.

GET /api/v1/drivers  → per-driver trips and tonnage, in first-seen order
"""

from fastapi import APIRouter, Depends, Query

from analytics.summary import Dashboard
from api.models import DriverRowOut
from api.state import get_dashboard

router = APIRouter(prefix="/drivers", tags=["drivers"])


@router.get(
    "",
    response_model=list[DriverRowOut],
    summary="Driver table",
)
def list_drivers(
    comparison: bool = Query(False, description="Return the comparison year's drivers instead"),
    dashboard: Dashboard = Depends(get_dashboard),
) -> list[dict]:
    """Trips with no driver are grouped under the unspecified sentinel."""
    rows = dashboard.comparison_drivers if comparison else dashboard.drivers
    return [r.to_dict() for r in rows]
