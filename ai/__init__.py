"""
AI package -- narrative reports, data chat and route suggestions.

Re-exports the entry points so callers can do::

    from ai import FleetAnalyst, AiServiceError
"""

from ai.client import (
    AiConfigError,
    AiServiceError,
    FleetAnalyst,
    RouteOption,
    RouteOptions,
    directions_url,
)
from ai.prompts import ANALYSIS_TYPES, build_report_request

__all__ = [
    "AiConfigError",
    "AiServiceError",
    "FleetAnalyst",
    "RouteOption",
    "RouteOptions",
    "directions_url",
    "ANALYSIS_TYPES",
    "build_report_request",
]
