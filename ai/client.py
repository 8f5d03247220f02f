"""Anthropic-backed fleet analyst: narrative reports, data chat, route options.

Every call is a pass-through to the model.  Failures surface as
``AiServiceError`` (or ``AiConfigError`` when no API key is configured) and
never touch the aggregation state.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import asdict, dataclass, field
from typing import Any, Iterable, Iterator, Mapping, Optional
from urllib.parse import quote

import anthropic

from ai.prompts import (
    build_chat_system,
    build_report_prompt,
    build_report_request,
    build_route_prompt,
)
from analytics.vehicles import VehicleRow
from utils.config import AppConfig, KnownAreas
from utils.strings import safe_float

logger = logging.getLogger(__name__)

_JSON_OBJECT = re.compile(r"\{.*\}", re.DOTALL)


class AiServiceError(RuntimeError):
    """The model call failed or returned something unusable."""


class AiConfigError(RuntimeError):
    """The AI services are not configured (no API key)."""


@dataclass
class RouteOption:
    name: str
    distance_km: float
    duration_min: float
    map_url: str


@dataclass
class RouteOptions:
    start: str
    destination: str
    routes: list[RouteOption] = field(default_factory=list)
    summary: str = ""

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def directions_url(start: str, destination: str) -> str:
    """Google Maps driving directions link between two place names."""
    return (
        "https://www.google.com/maps/dir/?api=1"
        f"&origin={quote(start)}&destination={quote(destination)}&travelmode=driving"
    )


class FleetAnalyst:
    """Thin wrapper around ``anthropic.Anthropic`` for the three AI features.

    Usage::

        analyst = FleetAnalyst.from_config(AppConfig.from_env())
        text = analyst.generate_report(rows, "best_worst")
    """

    def __init__(self, api_key: str = "", report_model: str = "claude-haiku-4-5-20251001",
                 chat_model: str = "claude-haiku-4-5-20251001",
                 client: Optional[anthropic.Anthropic] = None,
                 max_tokens: int = 4096) -> None:
        self.api_key = api_key
        self.report_model = report_model
        self.chat_model = chat_model
        self.max_tokens = max_tokens
        self._client = client

    @classmethod
    def from_config(cls, config: AppConfig) -> "FleetAnalyst":
        return cls(
            api_key=config.anthropic_api_key,
            report_model=config.ai_report_model,
            chat_model=config.ai_chat_model,
        )

    @property
    def client(self) -> anthropic.Anthropic:
        if self._client is None:
            if not self.api_key:
                raise AiConfigError("ANTHROPIC_API_KEY is not set; AI features are disabled")
            self._client = anthropic.Anthropic(api_key=self.api_key)
        return self._client

    def _complete(self, model: str, prompt: str, max_tokens: Optional[int] = None) -> str:
        try:
            msg = self.client.messages.create(
                model=model,
                max_tokens=max_tokens or self.max_tokens,
                messages=[{"role": "user", "content": prompt}],
            )
        except anthropic.APIError as exc:
            logger.error("Model call failed (%s): %s", model, exc)
            raise AiServiceError("The AI service is unavailable, please try again later") from exc
        text = "".join(
            getattr(block, "text", "") for block in msg.content
        ).strip()
        if not text:
            raise AiServiceError("The AI service returned an empty response")
        return text

    # ── Narrative report ──────────────────────────────────────────────────

    def generate_report(self, rows: Iterable[VehicleRow], analysis_type: str,
                        options: Optional[Mapping[str, Any]] = None,
                        language: str = "ar") -> str:
        """Narrative analysis of the vehicle table.

        Raises:
            ValueError: invalid analysis type, options or language.
            AiConfigError / AiServiceError: see module docstring.
        """
        request = build_report_request(analysis_type, options)
        prompt = build_report_prompt(rows, request, language)
        logger.info("Generating %s report with %s", analysis_type, self.report_model)
        return self._complete(self.report_model, prompt)

    # ── Streamed chat ─────────────────────────────────────────────────────

    def chat_stream(self, query: str, current: Iterable[VehicleRow],
                    comparison: Iterable[VehicleRow], year: str,
                    comparison_year: str = "", language: str = "ar") -> Iterator[str]:
        """Yield the answer to *query* as text fragments.

        The caller cancels by closing the generator (or simply stops
        iterating); the underlying HTTP stream is closed with it.
        """
        if not (query or "").strip():
            raise ValueError("query must not be empty")
        system = build_chat_system(current, comparison, year, comparison_year, language)
        client = self.client
        return self._stream(client, system, query.strip())

    def _stream(self, client: anthropic.Anthropic, system: str, query: str) -> Iterator[str]:
        try:
            with client.messages.stream(
                model=self.chat_model,
                max_tokens=1024,
                temperature=0.1,
                system=system,
                messages=[{"role": "user", "content": query}],
            ) as stream:
                for text in stream.text_stream:
                    if text:
                        yield text
        except anthropic.APIError as exc:
            logger.error("Chat stream failed: %s", exc)
            raise AiServiceError("The AI chat service is unavailable") from exc

    # ── Route options ─────────────────────────────────────────────────────

    def suggest_routes(self, start: str, destination: str = KnownAreas.LANDFILL,
                       language: str = "ar") -> RouteOptions:
        """Ask the model for route options and attach a directions link to each."""
        raw = self._complete(self.report_model, build_route_prompt(start, destination, language),
                             max_tokens=1024)
        m = _JSON_OBJECT.search(raw)
        try:
            data = json.loads(m.group()) if m else None
        except json.JSONDecodeError:
            data = None
        if not isinstance(data, dict):
            logger.warning("Route response was not JSON: %.200s", raw)
            raise AiServiceError("The AI service returned an unreadable route plan")

        link = directions_url(start, destination)
        routes = []
        for item in data.get("routes") or []:
            if not isinstance(item, dict):
                continue
            routes.append(RouteOption(
                name=str(item.get("name") or "").strip(),
                distance_km=safe_float(item.get("distance_km")),
                duration_min=safe_float(item.get("duration_min")),
                map_url=link,
            ))
        return RouteOptions(
            start=start,
            destination=destination,
            routes=routes,
            summary=str(data.get("summary") or "").strip(),
        )

    def suggest_routes_for_area(self, area: str, language: str = "ar") -> RouteOptions:
        """Routes from a service area's configured start point to the landfill.

        Raises:
            ValueError: the area has no configured start location.
        """
        start = KnownAreas.route_start(area)
        if start is None:
            raise ValueError(f"No route start configured for area '{area}'")
        return self.suggest_routes(start, KnownAreas.LANDFILL, language)
