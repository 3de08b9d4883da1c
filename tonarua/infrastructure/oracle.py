"""
Estimation Oracle
=================

Best-effort geocoding and route pricing backed by a generative model.

Each capability runs in two stages:

1. **attempt-and-parse** (``_lookup_place`` / ``_lookup_route``) -- calls
   Gemini and shapes the answer; may raise ``OracleUnavailable``.
2. **fallback substitution** (``resolve_place`` / ``estimate_route``) --
   catches ``OracleUnavailable`` and substitutes a fixed offline value, so
   callers always get a well-formed result.

The only error that reaches a caller is ``EmptyQuery``, raised before any
external call so the client can block submission.
"""

from __future__ import annotations

import logging
import math
import random
from numbers import Real
from typing import Any, Optional

from tonarua.domain.entities import Location, RouteEstimate

from .gemini_client import EmptyQuery, GeminiClient, OracleError, OracleUnavailable

logger = logging.getLogger(__name__)

__all__ = [
    "DEFAULT_ROUTE",
    "EmptyQuery",
    "EstimationOracle",
    "OFFLINE_DESCRIPTION",
    "OFFLINE_ROUTE",
    "OracleError",
    "OracleUnavailable",
]

# São Paulo city centre, used when the model omits coordinates
DEFAULT_LAT, DEFAULT_LNG = -23.5505, -46.6333
# Offline fallback: jitter within 0.1 degree of this corner
OFFLINE_LAT, OFFLINE_LNG = -23.5, -46.6
OFFLINE_DESCRIPTION = "Localização aproximada (Offline)"

DEFAULT_ROUTE = RouteEstimate(
    distance="5 km", duration="15 min", price=15.00, summary="Rota direta"
)
OFFLINE_ROUTE = RouteEstimate(
    distance="Desconhecida",
    duration="Calculando...",
    price=20.00,
    summary="Rota alternativa",
)

PLACE_PROMPT = """Find the location for: "{query}" in Brazil.
Return a JSON object with:
- address (full formatted address)
- lat (approximate latitude as number)
- lng (approximate longitude as number)
- description (short description of the place).
If specific coordinates aren't known, estimate them based on the city center."""

ROUTE_PROMPT = """Calculate a ride estimation from "{origin}" to "{destination}" in Brazil.
Assume a standard city driving speed.

Return a JSON object with:
- distance (e.g., "12 km")
- duration (e.g., "25 min")
- price (number, estimated price in BRL, assume roughly R$ {rate_per_km:.2f} per km + base fee of R$ {base_fare:.2f})
- summary (a short route description, e.g., "Via Av. Paulista and Rebouças")"""


def _number(value: Any) -> Optional[float]:
    if isinstance(value, bool) or not isinstance(value, Real):
        return None
    value = float(value)
    return value if math.isfinite(value) else None


def _text(value: Any) -> Optional[str]:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


class EstimationOracle:
    def __init__(
        self,
        client: GeminiClient,
        *,
        base_fare: float = 5.0,
        rate_per_km: float = 2.5,
        rng: Optional[random.Random] = None,
    ):
        self.client = client
        self.base_fare = base_fare
        self.rate_per_km = rate_per_km
        self.rng = rng or random.Random()

    # ── Total API ─────────────────────────────────────────────────────

    async def resolve_place(self, query: str) -> Location:
        if not query or not query.strip():
            raise EmptyQuery("Query is empty")
        try:
            return await self._lookup_place(query)
        except OracleUnavailable as exc:
            logger.warning("Place lookup failed for %r, using offline fallback: %s", query, exc)
            return self.offline_place(query)

    async def estimate_route(self, origin: str, destination: str) -> RouteEstimate:
        try:
            return await self._lookup_route(origin, destination)
        except OracleUnavailable as exc:
            logger.warning(
                "Route estimate failed for %r -> %r, using fallback: %s",
                origin,
                destination,
                exc,
            )
            return OFFLINE_ROUTE

    def offline_place(self, query: str) -> Location:
        return Location(
            address=query,
            lat=OFFLINE_LAT + self.rng.random() * 0.1,
            lng=OFFLINE_LNG + self.rng.random() * 0.1,
            description=OFFLINE_DESCRIPTION,
        )

    # ── Attempt-and-parse ─────────────────────────────────────────────

    async def _lookup_place(self, query: str) -> Location:
        data = await self.client.generate_json(
            PLACE_PROMPT.format(query=query), grounded=True
        )
        lat = _number(data.get("lat"))
        lng = _number(data.get("lng"))
        return Location(
            address=_text(data.get("address")) or query,
            lat=lat if lat else DEFAULT_LAT,
            lng=lng if lng else DEFAULT_LNG,
            description=_text(data.get("description")),
        )

    async def _lookup_route(self, origin: str, destination: str) -> RouteEstimate:
        prompt = ROUTE_PROMPT.format(
            origin=origin,
            destination=destination,
            base_fare=self.base_fare,
            rate_per_km=self.rate_per_km,
        )
        data = await self.client.generate_json(prompt, thinking_budget=0)
        price = _number(data.get("price"))
        return RouteEstimate(
            distance=_text(data.get("distance")) or DEFAULT_ROUTE.distance,
            duration=_text(data.get("duration")) or DEFAULT_ROUTE.duration,
            price=round(price, 2) if price is not None and price >= 0 else DEFAULT_ROUTE.price,
            summary=_text(data.get("summary")) or DEFAULT_ROUTE.summary,
        )

