"""
Dataset load endpoints.

GET  /api/v1/data/status  → report of the load behind the current store
POST /api/v1/data/reload  → load every dataset from APP_DATA_SOURCE again,
                             swap the store and clear the cache
"""

from fastapi import APIRouter, Depends

from api.models import LoadReportOut
from api.state import DataState, get_data_state

router = APIRouter(prefix="/data", tags=["data"])


@router.get(
    "/status",
    summary="Last load report",
)
def get_status(data: DataState = Depends(get_data_state)) -> dict:
    return {
        "loaded": data.loaded,
        "row_counts": data.store.row_counts() if data.store else {},
        "report": data.report.to_dict() if data.report else None,
        "cache": data.cache.stats(),
    }


@router.post(
    "/reload",
    response_model=LoadReportOut,
    summary="Reload datasets",
)
def reload_data(
    data: DataState = Depends(get_data_state),
) -> dict:
    """Failed datasets come back empty and are listed under ``failed``; the
    rest of the load still replaces the store.
    """
    return data.reload().to_dict()
