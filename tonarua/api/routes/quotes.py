"""
Quote endpoints
===============

POST   /api/v1/quotes         -- estimate a route between two free-text places
DELETE /api/v1/quotes/current -- cancel the in-flight search / drop the quote
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Request, Response

from tonarua.api.dependencies import get_controller
from tonarua.api.middleware import limiter
from tonarua.api.schemas import (
    ErrorResponse,
    LocationResponse,
    QuoteCreateRequest,
    QuoteResponse,
    RouteEstimateResponse,
)
from tonarua.domain.controller import RideLifecycleController
from tonarua.domain.entities import Quote

router = APIRouter(prefix="/quotes", tags=["quotes"])


def to_quote_response(controller: RideLifecycleController, quote: Quote) -> QuoteResponse:
    return QuoteResponse(
        id=quote.id,
        origin=LocationResponse.model_validate(quote.origin),
        destination=LocationResponse.model_validate(quote.destination),
        estimate=RouteEstimateResponse.model_validate(quote.estimate),
        prices=controller.quote_prices(quote),
        created_at=quote.created_at,
    )


@router.post(
    "",
    response_model=QuoteResponse,
    summary="Estimate a ride",
    description=(
        "Resolves both places and the route estimate concurrently.  Oracle "
        "failures degrade to an offline estimate; an empty place is rejected."
    ),
    responses={
        409: {"model": ErrorResponse, "description": "Search was cancelled while in flight."},
        422: {"model": ErrorResponse, "description": "Origin or destination is empty."},
    },
)
@limiter.limit("100/minute")
async def create_quote(
    request: Request,
    body: QuoteCreateRequest,
    controller: RideLifecycleController = Depends(get_controller),
):
    quote = await controller.search(body.origin, body.destination)
    if quote is None:
        raise HTTPException(status_code=409, detail="Search was cancelled")
    return to_quote_response(controller, quote)


@router.delete("/current", status_code=204, summary="Cancel the current search")
@limiter.limit("100/minute")
async def cancel_quote(
    request: Request,
    controller: RideLifecycleController = Depends(get_controller),
):
    controller.cancel_search()
    return Response(status_code=204)
