"""
FastAPI application factory.

* Registers routes for quotes, rides, the driver and admin.
* Builds the lifecycle controller and starts / stops the background
  discovery worker via lifespan events.
* Maps lifecycle and oracle errors to HTTP status codes.
* Applies rate-limiting middleware.
* Swagger / OpenAPI UI available at ``/docs``.
"""

from contextlib import asynccontextmanager
import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from tonarua.api.middleware import limiter
from tonarua.api.routes import admin, driver, quotes, rides
from tonarua.config import settings
from tonarua.domain.controller import RideLifecycleController
from tonarua.domain.entities import (
    ActiveRideExists,
    InvalidTransition,
    LifecycleError,
    QuoteNotFound,
    RideNotFound,
)
from tonarua.infrastructure.gemini_client import GeminiClient
from tonarua.infrastructure.oracle import EmptyQuery, EstimationOracle
from tonarua.workers import discovery as _discovery

logging.basicConfig(level=logging.INFO)

ERROR_STATUS: dict[type[LifecycleError], int] = {
    RideNotFound: 404,
    QuoteNotFound: 404,
    InvalidTransition: 409,
    ActiveRideExists: 409,
}


def build_controller() -> tuple[RideLifecycleController, GeminiClient]:
    client = GeminiClient(
        api_key=settings.api_key,
        model=settings.gemini_model,
        base_url=settings.gemini_base_url,
        timeout=settings.oracle_timeout_seconds,
    )
    oracle = EstimationOracle(
        client, base_fare=settings.base_fare, rate_per_km=settings.rate_per_km
    )
    return RideLifecycleController.from_settings(oracle, settings), client


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build the controller and start the discovery worker on startup."""
    client: Optional[GeminiClient] = None
    if getattr(app.state, "controller", None) is None:
        app.state.controller, client = build_controller()
    controller: RideLifecycleController = app.state.controller

    if settings.discovery_enabled:
        await _discovery.start_discovery_loop(controller)
    yield
    if settings.discovery_enabled:
        await _discovery.stop_discovery_loop()
    controller.close()
    if client is not None:
        await client.aclose()


async def lifecycle_error_handler(request: Request, exc: LifecycleError) -> JSONResponse:
    status = ERROR_STATUS.get(type(exc), 409)
    return JSONResponse(status_code=status, content={"detail": str(exc)})


async def empty_query_handler(request: Request, exc: EmptyQuery) -> JSONResponse:
    return JSONResponse(status_code=422, content={"detail": str(exc)})


def create_app(controller: Optional[RideLifecycleController] = None) -> FastAPI:
    app = FastAPI(
        title="ToNaRua Ride API",
        description=(
            "Ride-hailing simulation: clients get AI-estimated quotes and "
            "request rides or deliveries; drivers accept pooled rides and "
            "advance them to completion."
        ),
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.controller = controller

    # Rate limiter
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    # Domain errors
    app.add_exception_handler(LifecycleError, lifecycle_error_handler)
    app.add_exception_handler(EmptyQuery, empty_query_handler)

    # Routers
    app.include_router(quotes.router, prefix="/api/v1")
    app.include_router(rides.router, prefix="/api/v1")
    app.include_router(driver.router, prefix="/api/v1")
    app.include_router(admin.router, prefix="/api/v1")

    return app
