"""Prompt construction for the fleet analyst.

Only derived vehicle-table rows are ever serialised into a prompt; raw trip
rows never leave the aggregation layer.
"""

from __future__ import annotations

import json
from typing import Any, Iterable, Mapping, Optional

from analytics.vehicles import VehicleRow

ANALYSIS_TYPES = (
    "general",
    "holistic_ranking",
    "detailed",
    "specific",
    "comparison",
    "best_worst",
    "custom",
)

LANGUAGES = {"ar": "formal Arabic", "en": "English"}

# Vehicle table column -> key used in the prompt JSON
PROMPT_COLUMNS = {
    "vehicle": "veh",
    "area": "area",
    "drivers": "drivers",
    "manufacture_year": "year",
    "cap_m3": "cap_m3",
    "cap_ton": "cap_ton",
    "trips": "trips",
    "tons": "tons",
    "fuel": "fuel",
    "maintenance": "maint",
    "cost_trip": "cost_trip",
    "cost_ton": "cost_ton",
    "distance": "distance",
    "km_per_trip": "km_per_trip",
}

_COLUMN_GUIDE = (
    "veh (vehicle number), area (work zone), drivers, year (year of manufacture), "
    "cap_m3 (capacity in cubic meters), cap_ton (theoretical capacity in tons), "
    "trips (total trips), tons (total tons collected), fuel (total fuel cost), "
    "maint (total maintenance cost), cost_trip (average cost per trip), "
    "cost_ton (average cost per ton), distance (km travelled), "
    "km_per_trip (average km per trip)"
)


def _language(language: str) -> str:
    try:
        return LANGUAGES[language]
    except KeyError:
        raise ValueError(
            f"Unsupported language '{language}'; expected one of {', '.join(LANGUAGES)}"
        ) from None


def rows_to_json(rows: Iterable[VehicleRow]) -> str:
    """Serialise vehicle rows compactly, numbers rounded to two decimals."""
    out = []
    for r in rows:
        item: dict[str, Any] = {}
        for attr, key in PROMPT_COLUMNS.items():
            value = getattr(r, attr)
            item[key] = round(value, 2) if isinstance(value, float) else value
        out.append(item)
    return json.dumps(out, ensure_ascii=False)


def build_report_request(analysis_type: str, options: Optional[Mapping[str, Any]] = None) -> str:
    """Return the user request for one analysis type.

    ``options`` may carry ``vehicle_id`` (``specific``), ``vehicle_ids``
    (``comparison``, at least two) and ``custom_prompt`` (``custom``).

    Raises:
        ValueError: unknown analysis type or a missing required option.
    """
    options = options or {}
    if analysis_type == "general":
        return (
            "Provide a general fleet-wide analysis, including the holistic ranking "
            "of all vehicles as specified in the instructions. Conclude with an "
            "overall assessment of the fleet's health and high-level strategic "
            "recommendations."
        )
    if analysis_type == "holistic_ranking":
        return (
            "Rank all vehicles from best to worst as specified in the instructions. "
            "The ranking is the primary focus of the report; justify each "
            "vehicle's position with its strengths and weaknesses in the data."
        )
    if analysis_type == "detailed":
        return (
            "Provide a detailed report for each vehicle individually: performance, "
            "costs, efficiency and specific recommendations for each one."
        )
    if analysis_type == "specific":
        vehicle = str(options.get("vehicle_id") or "").strip()
        if not vehicle:
            raise ValueError("vehicle_id is required for a specific vehicle report")
        return (
            f"Provide a detailed performance and cost analysis exclusively for "
            f"vehicle number {vehicle}. Compare it to the fleet average where possible."
        )
    if analysis_type == "comparison":
        ids = [str(v).strip() for v in options.get("vehicle_ids") or [] if str(v).strip()]
        if len(ids) < 2:
            raise ValueError("At least two vehicle_ids are required for a comparison")
        return (
            f"Directly compare the performance, costs and efficiency of vehicles "
            f"{', '.join(ids)}. Highlight the key differences and name a winner per "
            f"category (e.g. most cost-effective, highest workload)."
        )
    if analysis_type == "best_worst":
        return (
            "Identify the top 3 best-performing and bottom 3 worst-performing "
            "vehicles, primarily on cost per ton and total tons collected. "
            "Justify each selection with data."
        )
    if analysis_type == "custom":
        prompt = str(options.get("custom_prompt") or "").strip()
        if not prompt:
            raise ValueError("custom_prompt is required for a custom report")
        return prompt
    raise ValueError(
        f"Invalid analysis type '{analysis_type}'; expected one of {', '.join(ANALYSIS_TYPES)}"
    )


def build_report_prompt(rows: Iterable[VehicleRow], request: str, language: str = "ar") -> str:
    lang = _language(language)
    return (
        "You are an expert fleet management analyst. Analyse the waste collection "
        "vehicle data of the Mu'tah and Al-Mazar municipality.\n\n"
        "INSTRUCTIONS:\n"
        f"1. Write the whole response in {lang}.\n"
        "2. Write every number with Western digits (e.g. 123, 45.6, 2024).\n"
        "3. When asked for a general analysis or a ranking, rank all vehicles from "
        "best to worst on a combination of cost-effectiveness (cost_ton, cost_trip), "
        "productivity (tons, trips) and manufacture year, as a numbered list with a "
        "justification for each position.\n"
        "4. Give specific, testable, actionable recommendations (for example moving "
        "a named vehicle to another zone when the data supports it).\n"
        "5. Costs are totals for the whole period covered by the data; say so when "
        "you cite them.\n"
        f"6. Data columns: {_COLUMN_GUIDE}.\n\n"
        f"VEHICLE DATA (JSON):\n{rows_to_json(rows)}\n\n"
        f"USER REQUEST:\n{request}\n"
    )


def build_chat_system(current: Iterable[VehicleRow], comparison: Iterable[VehicleRow],
                      year: str, comparison_year: str = "", language: str = "ar") -> str:
    """System prompt for the data chat, carrying both years' vehicle tables."""
    lang = _language(language)
    comp_label = comparison_year or "none"
    return (
        "You are a fast, precise assistant for the waste fleet data of the Mu'tah "
        "and Al-Mazar municipality. Answer only from the data below.\n"
        f"1. Answer in {lang}.\n"
        "2. Always write numbers with Western digits.\n"
        f"3. For comparisons, compare the selected year ({year}) with the "
        f"comparison year ({comp_label}).\n"
        "4. Be direct and brief; lead with the key figures.\n\n"
        f"Columns: {_COLUMN_GUIDE}.\n\n"
        f"DATA FOR {year}:\n{rows_to_json(current)}\n\n"
        f"DATA FOR COMPARISON YEAR ({comp_label}):\n{rows_to_json(comparison)}\n"
    )


def build_route_prompt(start: str, destination: str, language: str = "ar") -> str:
    lang = _language(language)
    return (
        "You plan routes for municipal waste collection trucks in Jordan.\n"
        f"Suggest up to three practical driving routes from \"{start}\" to "
        f"\"{destination}\" for a heavy compactor truck.\n"
        f"Write route names and the summary in {lang}, numbers with Western digits.\n"
        "Reply with ONLY a JSON object of this shape:\n"
        '{"routes": [{"name": "...", "distance_km": 0.0, "duration_min": 0}], '
        '"summary": "..."}\n'
    )
