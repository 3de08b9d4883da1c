"""
Shared test fixtures.

The Gemini client is replaced by ``StubGeminiClient`` so tests never touch the
network; it answers place prompts (grounded) and route prompts from canned
payloads, optionally after a delay or by raising.  Controllers are built with
short timers so lifecycle delays can be awaited directly.
"""

import asyncio
import random
from typing import Any, Optional

import pytest

from tonarua.domain.controller import RideLifecycleController
from tonarua.domain.entities import DriverStats
from tonarua.infrastructure.oracle import EstimationOracle

PLACE_PAYLOAD = {
    "address": "Av. Paulista, 1578 - Bela Vista, São Paulo - SP",
    "lat": -23.5614,
    "lng": -46.6559,
    "description": "MASP",
}
ROUTE_PAYLOAD = {
    "distance": "5 km",
    "duration": "15 min",
    "price": 20,
    "summary": "Via Av. Paulista",
}


class StubGeminiClient:
    def __init__(
        self,
        place: Optional[dict[str, Any]] = None,
        route: Optional[dict[str, Any]] = None,
        error: Optional[Exception] = None,
        delay: float = 0.0,
    ):
        self.place = PLACE_PAYLOAD if place is None else place
        self.route = ROUTE_PAYLOAD if route is None else route
        self.error = error
        self.delay = delay
        self.calls: list[str] = []

    async def generate_json(self, prompt, *, grounded=False, thinking_budget=None):
        self.calls.append(prompt)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return dict(self.place if grounded else self.route)


@pytest.fixture
def stub_client() -> StubGeminiClient:
    return StubGeminiClient()


@pytest.fixture
def oracle(stub_client) -> EstimationOracle:
    return EstimationOracle(stub_client, rng=random.Random(42))


@pytest.fixture
def controller(oracle):
    ctrl = RideLifecycleController(
        oracle,
        stats=DriverStats(today_earnings=100.0, total_rides=5, rating=4.9),
        broadcast_delay=0,
        completion_grace=0.05,
        pool_cap=3,
    )
    yield ctrl
    ctrl.close()
