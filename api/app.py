"""
FastAPI application factory.

Usage:
    python -m api.app                                  # Dev server on port 8000
    APP_DATA_SOURCE=/data/sheets.xlsx python -m api.app

OpenAPI docs available at http://localhost:8000/docs after starting.

The datasets are loaded once at startup (APP_LOAD_ON_STARTUP=0 skips it) into
an immutable RecordStore; POST /api/v1/data/reload swaps in a fresh one.

Request handling:
  - Proxy/forwarded IP handling with TRUSTED_PROXIES.
  - Per-IP rate limits: RATE_LIMIT_AI for /api/v1/ai/*, RATE_LIMIT_DEFAULT
    for everything else; bounded memory with periodic eviction.
  - Structured JSON logging when APP_LOG_FORMAT=json.
  - CORS with configurable origins via APP_CORS_ORIGINS.
"""

import asyncio
import json
import logging
import time
import uuid
from collections import defaultdict
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from ai.client import AiConfigError, AiServiceError, FleetAnalyst
from analytics.store import RecordStore
from api.routes import areas, dashboard, data, drivers, financial, reference, vehicles
from api.routes import ai as ai_routes
from api.state import DataState
from ingest.loader import DataSourceError
from utils.config import AppConfig

# ── Configuration ─────────────────────────────────────────────────────────────
_cfg = AppConfig.from_env()

# ── Structured JSON logging ───────────────────────────────────────────────────


class _JsonFormatter(logging.Formatter):
    """Emit log records as newline-delimited JSON."""

    def format(self, record: logging.LogRecord) -> str:
        data: dict = {
            "timestamp": self.formatTime(record, "%Y-%m-%dT%H:%M:%S"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        # Merge extra fields added via logger.info("...", extra={...})
        for key in ("method", "path", "status", "duration_ms", "client_ip",
                    "request_id"):
            if hasattr(record, key):
                data[key] = getattr(record, key)
        if record.exc_info:
            data["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(data, ensure_ascii=False)


_logger = logging.getLogger("fleet_waste_api")
_handler = logging.StreamHandler()
if _cfg.log_format == "json":
    _handler.setFormatter(_JsonFormatter())
else:
    _handler.setFormatter(
        logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s")
    )
logging.basicConfig(handlers=[_handler], level=logging.INFO, force=True)

# ── Rate limiting with memory bounds ──────────────────────────────────────────
_AI_PREFIX = "/api/v1/ai/"
_MAX_TRACKED_IPS = 10_000
_CLEANUP_INTERVAL = 300.0  # 5 minutes


class _RateLimiter:
    """Sliding one-minute window of request times per client IP and bucket."""

    def __init__(self, default_limit: int, ai_limit: int) -> None:
        self.default_limit = default_limit
        self.ai_limit = ai_limit
        self.counters: dict[str, dict[str, list]] = defaultdict(lambda: defaultdict(list))
        self.blocked = 0
        self._last_cleanup = 0.0

    def bucket(self, path: str) -> tuple[str, int]:
        """AI routes share one bucket; every other path is counted on its own."""
        if path.startswith(_AI_PREFIX):
            return _AI_PREFIX, self.ai_limit
        return path, self.default_limit

    def allow(self, client_ip: str, path: str) -> tuple[bool, int]:
        key, limit = self.bucket(path)
        now = time.time()
        window_start = now - 60.0
        hits = [t for t in self.counters[client_ip][key] if t > window_start]
        if len(hits) >= limit:
            self.counters[client_ip][key] = hits
            self.blocked += 1
            return False, limit
        hits.append(now)
        self.counters[client_ip][key] = hits
        return True, limit

    def cleanup(self) -> None:
        """Remove stale entries to bound memory usage."""
        now = time.time()
        if now - self._last_cleanup < _CLEANUP_INTERVAL:
            return
        self._last_cleanup = now
        window_start = now - 60.0
        to_delete = []
        for ip, paths in self.counters.items():
            for path in list(paths.keys()):
                paths[path] = [t for t in paths[path] if t > window_start]
                if not paths[path]:
                    del paths[path]
            if not paths:
                to_delete.append(ip)
        for ip in to_delete:
            del self.counters[ip]
        # If still over limit, evict the IPs with the fewest recent hits
        if len(self.counters) > _MAX_TRACKED_IPS:
            excess = len(self.counters) - _MAX_TRACKED_IPS
            quietest = sorted(
                self.counters.keys(),
                key=lambda ip: sum(len(v) for v in self.counters[ip].values()),
            )[:excess]
            for ip in quietest:
                del self.counters[ip]


# ── Extract real client IP (proxy-aware) ──────────────────────────────────────

def _get_client_ip(request: Request, trusted_proxies: set[str]) -> str:
    """Return the real client IP, respecting X-Forwarded-For from trusted proxies."""
    direct_ip = request.client.host if request.client else "unknown"
    if not trusted_proxies or direct_ip not in trusted_proxies:
        return direct_ip
    xff = request.headers.get("X-Forwarded-For", "")
    if xff:
        # Leftmost entry is the original client
        real_ip = xff.split(",")[0].strip()
        if real_ip:
            return real_ip
    return direct_ip


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Load the datasets on startup unless a store was injected."""
    state: DataState = app.state.data
    _logger.info("Starting with config %s", state.config.to_dict())
    if not state.loaded and state.config.load_on_startup:
        try:
            await asyncio.to_thread(state.reload)
        except DataSourceError as exc:
            _logger.error("Initial load failed: %s", exc)
    if not state.loaded:
        _logger.warning(
            "No datasets loaded; data routes return 503 until POST /api/v1/data/reload"
        )
    yield


def create_app(store: Optional[RecordStore] = None,
               analyst: Optional[FleetAnalyst] = None,
               config: Optional[AppConfig] = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        store: Pre-built record store (useful for testing); skips the
            startup load.
        analyst: AI analyst override (tests pass one with a mocked client).
        config: Configuration override; defaults to the environment.

    Returns:
        Configured FastAPI application instance.
    """
    cfg = config or _cfg
    limiter = _RateLimiter(cfg.rate_limit_default, cfg.rate_limit_ai)

    app = FastAPI(
        title="Fleet & Waste Analytics API",
        summary="Fleet, driver, area and financial analytics for municipal waste collection.",
        description=(
            "## Fleet & Waste Analytics API\n\n"
            "Serves metrics derived from the municipality's published waste "
            "collection sheets: weighbridge trips, vehicles, fuel, maintenance, "
            "area mapping, population, workers, revenues, treatment, distances "
            "and additional costs.\n\n"
            "### Key concepts\n"
            "- **Loads** are net tons from the weighbridge; **costs** are in JOD.\n"
            "- Every aggregate route accepts `year` (default: newest year), "
            "`comparison_year`, and repeatable `vehicle` and `month` filters.\n"
            "- Salaries are annual and prorated to the number of selected months.\n"
            "- Missing or malformed values count as zero; ratios with a zero "
            "denominator are zero.\n\n"
            "### Rate limits\n"
            f"- `/api/v1/ai/*`: {cfg.rate_limit_ai} req/min per IP (shared)\n"
            f"- All other endpoints: {cfg.rate_limit_default} req/min per IP\n\n"
            "Returns `429 Too Many Requests` with `Retry-After: 60` when exceeded."
        ),
        version="1.0.0",
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_tags=[
            {"name": "reference", "description": "Selector lists: years, vehicles, months."},
            {"name": "vehicles", "description": "Per-vehicle trips, tonnage, costs and capacity."},
            {"name": "drivers", "description": "Per-driver trips and tonnage."},
            {"name": "areas", "description": "Population, coverage, tonnage share and area intelligence."},
            {"name": "financial", "description": "Costs, salaries, revenues and cost recovery."},
            {"name": "dashboard", "description": "KPIs, annual summary and time series."},
            {
                "name": "ai",
                "description": (
                    "Narrative reports, streamed data chat and route suggestions. "
                    "Requires ANTHROPIC_API_KEY."
                ),
            },
            {"name": "data", "description": "Dataset load status and reload."},
            {"name": "meta", "description": "Health check and API metadata."},
        ],
    )
    app.state.data = DataState(cfg, store=store, analyst=analyst)
    app_start_time = time.time()
    metrics = {"request_count": 0, "error_count": 0}

    # ── CORS middleware ────────────────────────────────────────────────────────
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cfg.cors_origins,
        allow_credentials=False,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
    )

    # ── Request logging + rate limiting middleware ────────────────────────────

    @app.middleware("http")
    async def log_and_rate_limit(request: Request, call_next):
        """Log each request, enforce per-IP rate limits, and record metrics."""
        request_id = str(uuid.uuid4())[:8]
        start = time.monotonic()
        client_ip = _get_client_ip(request, cfg.trusted_proxies)
        path = request.url.path

        limiter.cleanup()

        # Health checks are never rate limited
        if path == "/health":
            return await call_next(request)

        allowed, limit = limiter.allow(client_ip, path)
        if not allowed:
            _logger.warning(
                "rate_limited ip=%s path=%s limit=%d", client_ip, path, limit
            )
            return JSONResponse(
                status_code=429,
                content={"error": "Too many requests", "status_code": 429},
                headers={"Retry-After": "60"},
            )

        metrics["request_count"] += 1
        response = await call_next(request)
        duration_ms = (time.monotonic() - start) * 1000
        if response.status_code >= 500:
            metrics["error_count"] += 1

        response.headers["X-Request-ID"] = request_id
        response.headers["X-Content-Type-Options"] = "nosniff"

        if cfg.log_format == "json":
            _logger.info(
                "request",
                extra={
                    "method": request.method,
                    "path": path,
                    "status": response.status_code,
                    "duration_ms": round(duration_ms, 1),
                    "client_ip": client_ip,
                    "request_id": request_id,
                },
            )
        else:
            _logger.info(
                "method=%s path=%s status=%d duration_ms=%.1f ip=%s rid=%s",
                request.method, path, response.status_code, duration_ms,
                client_ip, request_id,
            )
        if duration_ms > 500:
            _logger.warning(
                "slow_request method=%s path=%s duration_ms=%.1f",
                request.method, path, duration_ms,
            )
        return response

    # ── Error handling ────────────────────────────────────────────────────────

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception):
        """Catch unhandled exceptions and return JSON instead of HTML traceback."""
        _logger.exception("Unhandled error on %s", request.url.path)
        return JSONResponse(
            status_code=500,
            content={
                "error": "Internal server error",
                "detail": str(exc),
                "status_code": 500,
            },
        )

    @app.exception_handler(ValueError)
    async def value_error_handler(request: Request, exc: ValueError):
        return JSONResponse(
            status_code=400,
            content={"error": "Bad request", "detail": str(exc), "status_code": 400},
        )

    @app.exception_handler(AiServiceError)
    async def ai_service_error_handler(request: Request, exc: AiServiceError):
        return JSONResponse(
            status_code=502,
            content={"error": "AI service error", "detail": str(exc), "status_code": 502},
        )

    @app.exception_handler(AiConfigError)
    async def ai_config_error_handler(request: Request, exc: AiConfigError):
        return JSONResponse(
            status_code=503,
            content={"error": "AI service not configured", "detail": str(exc),
                     "status_code": 503},
        )

    # ── Health check ──────────────────────────────────────────────────────────

    @app.get("/health", tags=["meta"], summary="Health check")
    def health():
        """Return 200 OK with dataset row counts once data is loaded."""
        state: DataState = app.state.data
        if not state.loaded:
            return JSONResponse(
                status_code=503,
                content={"status": "no_data", "source": cfg.data_source},
            )
        return {
            "status": "ok" if state.report is None or state.report.ok else "degraded",
            "source": state.store.source,
            "row_counts": state.store.row_counts(),
        }

    @app.get(
        "/health/detailed",
        tags=["meta"],
        summary="Detailed health metrics",
        response_description="Operational metrics for monitoring dashboards",
    )
    def health_detailed():
        """Uptime, request/error counters, cache and rate-limiter stats.

        Counters reset on process restart.
        """
        state: DataState = app.state.data
        return {
            "status": "ok" if state.loaded else "no_data",
            "uptime_seconds": round(time.time() - app_start_time, 2),
            "request_count": metrics["request_count"],
            "error_count": metrics["error_count"],
            "cache": state.cache.stats(),
            "rate_limiter_stats": {
                "tracked_ips": len(limiter.counters),
                "blocked_requests": limiter.blocked,
            },
            "failed_datasets": state.report.failed if state.report else [],
        }

    # ── Register routers ──────────────────────────────────────────────────────

    prefix = "/api/v1"
    app.include_router(reference.router, prefix=prefix)
    app.include_router(vehicles.router,  prefix=prefix)
    app.include_router(drivers.router,   prefix=prefix)
    app.include_router(areas.router,     prefix=prefix)
    app.include_router(financial.router, prefix=prefix)
    app.include_router(dashboard.router, prefix=prefix)
    app.include_router(ai_routes.router, prefix=prefix)
    app.include_router(data.router,      prefix=prefix)

    return app


# Singleton instance for uvicorn
app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "api.app:app",
        host=_cfg.api_host,
        port=_cfg.api_port,
        reload=True,
        log_level="info",
    )
