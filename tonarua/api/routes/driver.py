"""
Driver endpoints
================

GET   /api/v1/driver/pool                  -- rides waiting for a driver
POST  /api/v1/driver/pool/{ride_id}/accept -- claim a pooled ride
GET   /api/v1/driver/active                -- the ride in the active slot
PATCH /api/v1/driver/active/status         -- advance the active ride
POST  /api/v1/driver/active/cancel         -- dismiss the active ride
GET   /api/v1/driver/stats                 -- earnings and ride count
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Request

from tonarua.api.dependencies import get_controller
from tonarua.api.middleware import limiter
from tonarua.api.schemas import (
    DriverStatsResponse,
    ErrorResponse,
    RideResponse,
    StatusUpdateRequest,
)
from tonarua.domain.controller import RideLifecycleController

router = APIRouter(prefix="/driver", tags=["driver"])


@router.get(
    "/pool",
    response_model=list[RideResponse],
    summary="List rides available to accept",
)
@limiter.limit("100/minute")
async def list_pool(
    request: Request,
    controller: RideLifecycleController = Depends(get_controller),
):
    return controller.pool


@router.post(
    "/pool/{ride_id}/accept",
    response_model=RideResponse,
    summary="Accept a pooled ride",
    responses={
        404: {"model": ErrorResponse, "description": "Ride no longer available."},
        409: {"model": ErrorResponse, "description": "Another ride is already active."},
    },
)
@limiter.limit("100/minute")
async def accept_ride(
    request: Request,
    ride_id: str,
    controller: RideLifecycleController = Depends(get_controller),
):
    return controller.accept_ride(ride_id)


@router.get("/active", response_model=RideResponse, summary="Get the active ride")
@limiter.limit("100/minute")
async def get_active_ride(
    request: Request,
    controller: RideLifecycleController = Depends(get_controller),
):
    ride = controller.active_ride
    if ride is None:
        raise HTTPException(status_code=404, detail="No active ride")
    return ride


@router.patch(
    "/active/status",
    response_model=RideResponse,
    summary="Advance the active ride",
    description="ACCEPTED -> IN_PROGRESS -> COMPLETED.  Completing credits the driver.",
    responses={
        404: {"model": ErrorResponse, "description": "No active ride."},
        409: {"model": ErrorResponse, "description": "Transition not allowed."},
    },
)
@limiter.limit("100/minute")
async def update_status(
    request: Request,
    body: StatusUpdateRequest,
    controller: RideLifecycleController = Depends(get_controller),
):
    return controller.advance_status(body.status)


@router.post("/active/cancel", response_model=RideResponse, summary="Dismiss the active ride")
@limiter.limit("100/minute")
async def cancel_active_ride(
    request: Request,
    controller: RideLifecycleController = Depends(get_controller),
):
    ride = controller.cancel()
    if ride is None:
        raise HTTPException(status_code=404, detail="No active ride")
    return ride


@router.get("/stats", response_model=DriverStatsResponse, summary="Driver statistics")
@limiter.limit("100/minute")
async def get_stats(
    request: Request,
    controller: RideLifecycleController = Depends(get_controller),
):
    return controller.stats
