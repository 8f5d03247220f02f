"""
AI collaborator endpoints.

POST /api/v1/ai/report  → narrative analysis of the filtered vehicle table
POST /api/v1/ai/chat    → streamed answer (text/plain) about the filtered data
POST /api/v1/ai/route   → route options from a vehicle's area to the landfill

These routes share the tighter RATE_LIMIT_AI budget.  Invalid requests are
400, a missing API key 503, and model failures 502.
"""

import logging
from typing import Iterator

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse

from ai.client import AiServiceError
from analytics.areas import build_vehicle_area_map
from analytics.filters import FilterState
from analytics.store import RecordStore
from analytics.summary import Dashboard
from api.models import ChatRequest, ReportOut, ReportRequest, RouteOptionsOut, RouteRequest
from api.state import DataState, get_dashboard, get_data_state, get_filters, get_store

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/ai", tags=["ai"])


@router.post(
    "/report",
    response_model=ReportOut,
    summary="Generate a narrative report",
)
def create_report(
    body: ReportRequest,
    dashboard: Dashboard = Depends(get_dashboard),
    data: DataState = Depends(get_data_state),
) -> dict:
    """Only the derived vehicle table is sent to the model."""
    options = {
        "vehicle_id": body.vehicle_id,
        "vehicle_ids": body.vehicle_ids,
        "custom_prompt": body.custom_prompt,
    }
    text = data.analyst.generate_report(
        dashboard.vehicles, body.analysis_type, options, body.language,
    )
    return {
        "analysis_type": body.analysis_type,
        "year": dashboard.state.year,
        "report": text,
    }


def _guarded(fragments: Iterator[str]) -> Iterator[str]:
    # Headers are already sent once streaming starts; report failures in-band.
    try:
        yield from fragments
    except AiServiceError as exc:
        logger.warning("Chat stream aborted: %s", exc)
        yield f"\n\n[{exc}]"


@router.post(
    "/chat",
    summary="Chat with the fleet data",
    response_class=StreamingResponse,
    responses={200: {"content": {"text/plain": {}}}},
)
def chat(
    body: ChatRequest,
    dashboard: Dashboard = Depends(get_dashboard),
    data: DataState = Depends(get_data_state),
) -> StreamingResponse:
    """Stream the answer as plain text fragments.

    The model sees the active and comparison years' vehicle tables.  A client
    that disconnects stops the stream.
    """
    fragments = data.analyst.chat_stream(
        body.query,
        dashboard.vehicles,
        dashboard.comparison_vehicles,
        dashboard.state.year,
        dashboard.state.comparison_year,
        body.language,
    )
    return StreamingResponse(_guarded(fragments), media_type="text/plain; charset=utf-8")


@router.post(
    "/route",
    response_model=RouteOptionsOut,
    summary="Suggest routes to the landfill",
)
def suggest_route(
    body: RouteRequest,
    state: FilterState = Depends(get_filters),
    store: RecordStore = Depends(get_store),
    data: DataState = Depends(get_data_state),
) -> dict:
    """Start from the given area, or from the area the vehicle serves in the
    active year.

    Raises:
        ValueError (400): neither field given, vehicle without an area, or an
            area with no configured start location.
    """
    area = (body.area or "").strip()
    if not area:
        vid = (body.vehicle_id or "").strip()
        if not vid:
            raise ValueError("Either vehicle_id or area is required")
        area = build_vehicle_area_map(store.areas, state.year).get(vid, "")
        if not area:
            raise ValueError(f"Vehicle '{vid}' has no service area for {state.year}")
    return data.analyst.suggest_routes_for_area(area, body.language).to_dict()
