"""Estimation oracle: parsing, fallbacks and the Gemini transport."""

from __future__ import annotations

import json
import math
import random

import httpx
import pytest

from tonarua.infrastructure.gemini_client import GeminiClient
from tonarua.infrastructure.oracle import (
    OFFLINE_DESCRIPTION,
    OFFLINE_ROUTE,
    EmptyQuery,
    EstimationOracle,
    OracleUnavailable,
)

from tests.conftest import StubGeminiClient


def gemini_body(text: str) -> dict:
    return {"candidates": [{"content": {"parts": [{"text": text}], "role": "model"}}]}


def mock_gemini(handler, api_key: str = "test-key") -> GeminiClient:
    http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return GeminiClient(api_key=api_key, base_url="https://gemini.test/v1beta", http=http)


class TestResolvePlace:
    @pytest.mark.asyncio
    async def test_parses_answer(self, oracle):
        place = await oracle.resolve_place("MASP")
        assert place.address.startswith("Av. Paulista")
        assert (place.lat, place.lng) == (-23.5614, -46.6559)
        assert place.description == "MASP"

    @pytest.mark.asyncio
    async def test_missing_fields_use_defaults(self):
        oracle = EstimationOracle(StubGeminiClient(place={"lat": "north"}))
        place = await oracle.resolve_place("Ibirapuera")
        assert place.address == "Ibirapuera"
        assert (place.lat, place.lng) == (-23.5505, -46.6333)
        assert place.description is None

    @pytest.mark.asyncio
    async def test_non_finite_coordinates_use_defaults(self):
        client = StubGeminiClient(place={"lat": float("inf"), "lng": float("nan")})
        place = await EstimationOracle(client).resolve_place("Ibirapuera")
        assert (place.lat, place.lng) == (-23.5505, -46.6333)

    @pytest.mark.asyncio
    async def test_empty_query_fails_fast(self, oracle, stub_client):
        with pytest.raises(EmptyQuery):
            await oracle.resolve_place("")
        assert stub_client.calls == []

    @pytest.mark.asyncio
    async def test_failure_falls_back_offline(self):
        client = StubGeminiClient(error=OracleUnavailable("quota exceeded"))
        oracle = EstimationOracle(client, rng=random.Random(1))

        place = await oracle.resolve_place("Rua Augusta")

        assert place.address == "Rua Augusta"
        assert -23.5 <= place.lat < -23.4
        assert -46.6 <= place.lng < -46.5
        assert place.description == OFFLINE_DESCRIPTION

    @pytest.mark.asyncio
    async def test_place_prompt_is_grounded(self, oracle, stub_client):
        await oracle.resolve_place("MASP")
        assert '"MASP"' in stub_client.calls[0]
        assert "in Brazil" in stub_client.calls[0]


class TestEstimateRoute:
    @pytest.mark.asyncio
    async def test_parses_answer(self, oracle):
        route = await oracle.estimate_route("MASP", "Ibirapuera")
        assert route.distance == "5 km"
        assert route.duration == "15 min"
        assert route.price == 20
        assert route.summary == "Via Av. Paulista"

    @pytest.mark.asyncio
    async def test_prompt_carries_fare_hint(self, stub_client):
        oracle = EstimationOracle(stub_client, base_fare=5.0, rate_per_km=2.5)
        await oracle.estimate_route("MASP", "Ibirapuera")
        assert "R$ 2.50 per km" in stub_client.calls[0]
        assert "R$ 5.00" in stub_client.calls[0]

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "price", ["20", None, -3, True, float("inf"), float("-inf"), float("nan")]
    )
    async def test_bad_price_uses_default(self, price):
        oracle = EstimationOracle(StubGeminiClient(route={"price": price}))
        route = await oracle.estimate_route("A", "B")
        assert route.price == 15.00
        assert route.distance == "5 km"
        assert route.duration == "15 min"
        assert route.summary == "Rota direta"

    @pytest.mark.asyncio
    async def test_overflowing_json_price_uses_default(self):
        text = '{"distance": "9 km", "duration": "20 min", "price": 1e400, "summary": "S"}'
        client = mock_gemini(lambda r: httpx.Response(200, json=gemini_body(text)))
        route = await EstimationOracle(client).estimate_route("A", "B")
        assert math.isfinite(route.price)
        assert route.price == 15.00
        assert route.distance == "9 km"

    @pytest.mark.asyncio
    async def test_failure_returns_fixed_fallback(self):
        oracle = EstimationOracle(StubGeminiClient(error=OracleUnavailable("down")))
        route = await oracle.estimate_route("A", "B")
        assert route == OFFLINE_ROUTE
        assert route.price >= 0
        assert route.distance and route.duration


class TestGeminiClient:
    @pytest.mark.asyncio
    async def test_generate_json(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["key"] = request.headers["x-goog-api-key"]
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json=gemini_body('{"price": 32.5}'))

        client = mock_gemini(handler)
        data = await client.generate_json("prompt", grounded=True, thinking_budget=0)
        await client.aclose()

        assert data == {"price": 32.5}
        assert seen["url"].endswith("/models/gemini-2.5-flash:generateContent")
        assert seen["key"] == "test-key"
        assert seen["body"]["tools"] == [{"googleMaps": {}}]
        config = seen["body"]["generationConfig"]
        assert config["responseMimeType"] == "application/json"
        assert config["thinkingConfig"] == {"thinkingBudget": 0}

    @pytest.mark.asyncio
    async def test_fenced_json(self):
        text = '```json\n{"address": "MASP"}\n```'
        client = mock_gemini(lambda r: httpx.Response(200, json=gemini_body(text)))
        assert await client.generate_json("prompt") == {"address": "MASP"}

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "response",
        [
            httpx.Response(429, json={"error": {"message": "quota"}}),
            httpx.Response(200, json={"candidates": []}),
            httpx.Response(200, json=gemini_body("not json")),
            httpx.Response(200, json=gemini_body("[1, 2]")),
            httpx.Response(200, text="<html>"),
        ],
    )
    async def test_bad_responses_are_unavailable(self, response):
        client = mock_gemini(lambda r: response)
        with pytest.raises(OracleUnavailable):
            await client.generate_json("prompt")

    @pytest.mark.asyncio
    async def test_transport_error_is_unavailable(self):
        def handler(request):
            raise httpx.ConnectError("no route to host", request=request)

        client = mock_gemini(handler)
        with pytest.raises(OracleUnavailable):
            await client.generate_json("prompt")

    @pytest.mark.asyncio
    async def test_missing_key_skips_network(self):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(200, json=gemini_body("{}"))

        client = mock_gemini(handler, api_key="")
        with pytest.raises(OracleUnavailable):
            await client.generate_json("prompt")
        assert calls == []

    @pytest.mark.asyncio
    async def test_oracle_without_key_degrades(self):
        client = mock_gemini(lambda r: httpx.Response(500), api_key="")
        oracle = EstimationOracle(client)

        route = await oracle.estimate_route("A", "B")
        place = await oracle.resolve_place("A")

        assert route == OFFLINE_ROUTE
        assert place.description == OFFLINE_DESCRIPTION
