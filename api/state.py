"""
Loaded-data state and request dependencies for the API.

The application holds exactly one ``DataState`` on ``app.state.data``: the
current ``RecordStore``, the report of the load that produced it, the
aggregation cache and the AI analyst.  A reload builds a new store and swaps
it in whole; requests in flight keep the store they started with.

Dependencies:
    get_data_state()  -> DataState
    get_store()       -> RecordStore (503 when nothing is loaded)
    get_filters()     -> FilterState from the year/comparison_year/vehicle/month query
    get_dashboard()   -> cached Dashboard for the request's filters
"""

from __future__ import annotations

import threading
from typing import Any, Callable, Optional

from fastapi import Depends, HTTPException, Query, Request

from ai.client import FleetAnalyst
from analytics.filters import FilterState
from analytics.store import RecordStore
from analytics.summary import Dashboard, build_dashboard
from ingest.loader import load_store
from ingest.report import LoadReport
from utils.cache import TTLCache
from utils.config import AppConfig


class DataState:
    """Mutable holder of the current immutable store."""

    def __init__(self, config: AppConfig, store: Optional[RecordStore] = None,
                 analyst: Optional[FleetAnalyst] = None) -> None:
        self.config = config
        self.store = store
        self.report: Optional[LoadReport] = None
        self.cache = TTLCache(maxsize=256, ttl_seconds=config.cache_ttl)
        self.analyst = analyst or FleetAnalyst.from_config(config)
        self._reload_lock = threading.Lock()

    @property
    def loaded(self) -> bool:
        return self.store is not None

    def replace(self, store: RecordStore, report: Optional[LoadReport] = None) -> None:
        self.store = store
        self.report = report
        self.cache.clear()

    def reload(self) -> LoadReport:
        """Load every dataset from the configured source.

        Only one reload runs at a time; the cache is cleared once the new
        store is in place.
        """
        with self._reload_lock:
            store, report = load_store(
                self.config.data_source,
                timeout=self.config.http_timeout,
            )
            self.replace(store, report)
        return report

    def cached(self, store: RecordStore, key: tuple, compute: Callable[[], Any]) -> Any:
        """Cache *compute* keyed on *store*, the store it reads.

        A result is only ever filed under the store it was computed from.
        """
        return self.cache.get_or_compute((id(store),) + key, compute)

    def dashboard(self, state: FilterState) -> Dashboard:
        store = self.store
        return self.cached(store, ("dashboard", state), lambda: build_dashboard(store, state))


def get_data_state(request: Request) -> DataState:
    return request.app.state.data


def get_store(data: DataState = Depends(get_data_state)) -> RecordStore:
    """FastAPI dependency: the loaded store, or 503 while nothing is loaded."""
    if data.store is None:
        raise HTTPException(
            status_code=503,
            detail="Datasets are not loaded yet. POST /api/v1/data/reload to load them.",
        )
    return data.store


def get_filters(
    year: Optional[str] = Query(None, description="Active year (default: newest year with trips)",
                                examples=["2024"]),
    comparison_year: Optional[str] = Query(None, description="Year to compare against",
                                           examples=["2023"]),
    vehicle: list[str] = Query(default=[], description="Restrict to these vehicle ids (repeatable)"),
    month: list[str] = Query(default=[], description="Restrict to these month codes (repeatable)",
                             examples=[["jan", "feb"]]),
    store: RecordStore = Depends(get_store),
) -> FilterState:
    """FastAPI dependency: the request's ``FilterState``."""
    return FilterState.create(
        year=year or store.latest_year(),
        comparison_year=comparison_year or "",
        vehicles=vehicle,
        months=month,
    )


def get_dashboard(
    state: FilterState = Depends(get_filters),
    data: DataState = Depends(get_data_state),
) -> Dashboard:
    return data.dashboard(state)
