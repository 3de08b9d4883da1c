"""
Ride endpoints (client side)
============================

POST  /api/v1/rides                  -- confirm a quote (returns 202 Accepted)
GET   /api/v1/rides/{ride_id}        -- check ride status
PATCH /api/v1/rides/{ride_id}/cancel -- cancel a ride
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request

from tonarua.api.dependencies import get_controller
from tonarua.api.middleware import limiter
from tonarua.api.schemas import ErrorResponse, RideCreateRequest, RideResponse
from tonarua.domain.controller import RideLifecycleController

router = APIRouter(prefix="/rides", tags=["rides"])


@router.post(
    "",
    status_code=202,
    response_model=RideResponse,
    summary="Confirm a quote as a ride request",
    responses={
        202: {"description": "Ride accepted; drivers see it after the broadcast delay."},
        404: {"model": ErrorResponse, "description": "Quote no longer available."},
    },
)
@limiter.limit("100/minute")
async def create_ride(
    request: Request,
    body: RideCreateRequest,
    controller: RideLifecycleController = Depends(get_controller),
):
    return controller.request_ride(body.quote_id, body.type, body.payment_method)


@router.get(
    "/{ride_id}",
    response_model=RideResponse,
    summary="Get ride status",
    responses={404: {"model": ErrorResponse}},
)
@limiter.limit("100/minute")
async def get_ride(
    request: Request,
    ride_id: str,
    controller: RideLifecycleController = Depends(get_controller),
):
    return controller.get_ride(ride_id)


@router.patch(
    "/{ride_id}/cancel",
    response_model=RideResponse,
    summary="Cancel a ride",
    description=(
        "Withdraws a ride that is still being broadcast or waiting in the "
        "pool, or dismisses it from the driver's active slot."
    ),
    responses={404: {"model": ErrorResponse}},
)
@limiter.limit("100/minute")
async def cancel_ride(
    request: Request,
    ride_id: str,
    controller: RideLifecycleController = Depends(get_controller),
):
    return controller.cancel(ride_id)
