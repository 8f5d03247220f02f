"""
Reference data endpoints for the filter selectors.

GET /api/v1/reference/years     → years in the trip log, newest first
GET /api/v1/reference/vehicles  → vehicle ids from the trip log
GET /api/v1/reference/months    → month codes in calendar order
"""

from collections import Counter

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from analytics.records import MONTHS_ORDER, row_year
from analytics.store import RecordStore
from api.models import MonthOut, YearOut
from api.state import get_store

router = APIRouter(prefix="/reference", tags=["reference"])

_CACHE_HEADER = {"Cache-Control": "max-age=3600"}


@router.get(
    "/years",
    response_model=list[YearOut],
    summary="List years",
)
def list_years(store: RecordStore = Depends(get_store)) -> list[dict]:
    """Return every year that has trips, newest first, with its trip count."""
    counts = Counter(row_year(t) for t in store.trips)
    return [{"year": y, "trips": counts[y]} for y in store.years()]


@router.get(
    "/vehicles",
    response_model=list[str],
    summary="List vehicle ids",
)
def list_vehicles(store: RecordStore = Depends(get_store)) -> list[str]:
    return store.vehicle_ids()


@router.get(
    "/months",
    response_model=list[MonthOut],
    summary="List month codes",
)
def list_months() -> JSONResponse:
    """Return the month codes accepted by the ``month`` filter."""
    data = [{"code": m, "position": i} for i, m in enumerate(MONTHS_ORDER, start=1)]
    return JSONResponse(content=data, headers=_CACHE_HEADER)
