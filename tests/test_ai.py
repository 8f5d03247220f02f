"""
Tests for the ai package — prompt construction and the FleetAnalyst wrapper.

The Anthropic client is always a MagicMock; nothing here touches the network.
"""
import json
import sys
from pathlib import Path
from unittest.mock import MagicMock

import anthropic
import httpx
import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from ai.client import AiConfigError, AiServiceError, FleetAnalyst, directions_url
from ai.prompts import (
    ANALYSIS_TYPES,
    build_chat_system,
    build_report_prompt,
    build_report_request,
    rows_to_json,
)
from analytics.filters import apply_filters
from analytics.vehicles import aggregate_vehicles
from utils.config import KnownAreas


def _api_error():
    return anthropic.APIConnectionError(
        request=httpx.Request("POST", "https://api.anthropic.com/v1/messages"))


def _reply(text):
    msg = MagicMock()
    msg.content = [MagicMock(text=text)]
    return msg


@pytest.fixture()
def rows(store):
    trips = apply_filters(store.trips, "2024")
    return aggregate_vehicles(trips, store.vehicles, store.areas, store.fuel,
                              store.maintenance, store.distance, "2024")


@pytest.fixture()
def client():
    return MagicMock()


@pytest.fixture()
def analyst(client):
    return FleetAnalyst(api_key="", client=client, report_model="report-model",
                        chat_model="chat-model")


# ── Prompts ──────────────────────────────────────────────────────────────────

class TestReportRequest:
    @pytest.mark.parametrize("kind", ["general", "holistic_ranking", "detailed", "best_worst"])
    def test_plain_types(self, kind):
        assert build_report_request(kind)

    def test_specific_needs_vehicle(self):
        assert "V1" in build_report_request("specific", {"vehicle_id": " V1 "})
        with pytest.raises(ValueError):
            build_report_request("specific")

    def test_comparison_needs_two_vehicles(self):
        assert "V1, V2" in build_report_request("comparison", {"vehicle_ids": ["V1", "V2"]})
        with pytest.raises(ValueError):
            build_report_request("comparison", {"vehicle_ids": ["V1", " "]})

    def test_custom_prompt_passed_through(self):
        assert build_report_request("custom", {"custom_prompt": " ما أفضل مركبة؟ "}) == "ما أفضل مركبة؟"
        with pytest.raises(ValueError):
            build_report_request("custom", {})

    def test_unknown_type(self):
        with pytest.raises(ValueError, match="Invalid analysis type"):
            build_report_request("forecast")

    def test_every_declared_type_is_handled(self):
        options = {"vehicle_id": "V1", "vehicle_ids": ["V1", "V2"], "custom_prompt": "x"}
        for kind in ANALYSIS_TYPES:
            assert build_report_request(kind, options)


class TestPromptSerialisation:
    def test_rows_to_json_uses_prompt_keys(self, rows):
        data = json.loads(rows_to_json(rows))
        assert data[0]["veh"] == "V1"
        assert data[0]["maint"] == 200.0
        assert data[0]["cap_ton"] == 7.2
        assert "efficiency_rate" not in data[0]

    def test_arabic_kept_readable(self, rows):
        assert "مؤته" in rows_to_json(rows)

    def test_report_prompt_language(self, rows):
        assert "English" in build_report_prompt(rows, "x", language="en")
        assert "formal Arabic" in build_report_prompt(rows, "x")
        with pytest.raises(ValueError, match="Unsupported language"):
            build_report_prompt(rows, "x", language="fr")

    def test_chat_system_carries_both_years(self, rows):
        system = build_chat_system(rows, [], "2024", "2023")
        assert "DATA FOR 2024" in system
        assert "COMPARISON YEAR (2023)" in system
        assert "(none)" in build_chat_system(rows, [], "2024")


# ── FleetAnalyst ─────────────────────────────────────────────────────────────

class TestGenerateReport:
    def test_returns_model_text(self, analyst, client, rows):
        client.messages.create.return_value = _reply("  تقرير  ")
        assert analyst.generate_report(rows, "best_worst") == "تقرير"
        kwargs = client.messages.create.call_args.kwargs
        assert kwargs["model"] == "report-model"
        assert "VEHICLE DATA" in kwargs["messages"][0]["content"]

    def test_invalid_type_never_calls_model(self, analyst, client, rows):
        with pytest.raises(ValueError):
            analyst.generate_report(rows, "nope")
        client.messages.create.assert_not_called()

    def test_api_error_wrapped(self, analyst, client, rows):
        client.messages.create.side_effect = _api_error()
        with pytest.raises(AiServiceError):
            analyst.generate_report(rows, "general")

    def test_empty_reply(self, analyst, client, rows):
        client.messages.create.return_value = _reply("   ")
        with pytest.raises(AiServiceError, match="empty"):
            analyst.generate_report(rows, "general")

    def test_missing_key(self, rows):
        with pytest.raises(AiConfigError):
            FleetAnalyst(api_key="").generate_report(rows, "general")


class TestChatStream:
    def test_yields_fragments(self, analyst, client, rows):
        stream = client.messages.stream.return_value.__enter__.return_value
        stream.text_stream = iter(["المركبة ", "", "V2"])
        chunks = list(analyst.chat_stream("أي مركبة أفضل؟", rows, [], "2024"))
        assert chunks == ["المركبة ", "V2"]
        kwargs = client.messages.stream.call_args.kwargs
        assert kwargs["model"] == "chat-model"
        assert kwargs["temperature"] == 0.1
        assert kwargs["messages"] == [{"role": "user", "content": "أي مركبة أفضل؟"}]

    def test_empty_query_rejected_eagerly(self, analyst, client, rows):
        with pytest.raises(ValueError):
            analyst.chat_stream("   ", rows, [], "2024")
        client.messages.stream.assert_not_called()

    def test_missing_key_raised_before_streaming(self, rows):
        with pytest.raises(AiConfigError):
            FleetAnalyst().chat_stream("hi", rows, [], "2024")

    def test_api_error_mid_stream(self, analyst, client, rows):
        client.messages.stream.side_effect = _api_error()
        gen = analyst.chat_stream("hi", rows, [], "2024")
        with pytest.raises(AiServiceError):
            next(gen)


class TestRoutes:
    def test_parses_json_reply(self, analyst, client):
        client.messages.create.return_value = _reply(
            'Here you go:\n{"routes": [{"name": "طريق الكرك", "distance_km": "24.5", '
            '"duration_min": 35}, "junk"], "summary": "أقصر طريق"}')
        result = analyst.suggest_routes("مؤته", "مكب")
        assert result.start == "مؤته"
        assert len(result.routes) == 1
        route = result.routes[0]
        assert route.distance_km == 24.5
        assert route.duration_min == 35.0
        assert route.map_url == directions_url("مؤته", "مكب")
        assert result.summary == "أقصر طريق"

    def test_non_json_reply(self, analyst, client):
        client.messages.create.return_value = _reply("I cannot help with that")
        with pytest.raises(AiServiceError):
            analyst.suggest_routes("مؤته")

    def test_area_start_lookup(self, analyst, client):
        client.messages.create.return_value = _reply('{"routes": []}')
        result = analyst.suggest_routes_for_area("مؤتة")
        assert result.start == KnownAreas.ROUTE_STARTS["مؤته"]
        assert result.destination == KnownAreas.LANDFILL
        assert result.to_dict()["routes"] == []

    def test_unmapped_area(self, analyst, client):
        with pytest.raises(ValueError):
            analyst.suggest_routes_for_area("عمان")
        client.messages.create.assert_not_called()

    def test_directions_url_encodes_arabic(self):
        url = directions_url("مؤته", "مكب")
        assert url.startswith("https://www.google.com/maps/dir/?api=1&origin=%D9")
        assert url.endswith("&travelmode=driving")
