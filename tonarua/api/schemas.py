"""Pydantic request / response schemas for the REST API."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from tonarua.domain.enums import PaymentMethod, RideStatus, RideType


# ── Requests ──────────────────────────────────────────────────────────


class QuoteCreateRequest(BaseModel):
    origin: str = Field(..., max_length=300, description="Free-text pickup place.")
    destination: str = Field(..., max_length=300, description="Free-text drop-off place.")


class RideCreateRequest(BaseModel):
    quote_id: str = Field(..., description="Id of the quote being confirmed.")
    type: RideType = RideType.RIDE
    payment_method: PaymentMethod = PaymentMethod.CARD


class StatusUpdateRequest(BaseModel):
    status: RideStatus


# ── Responses ─────────────────────────────────────────────────────────


class LocationResponse(BaseModel):
    address: str
    lat: float
    lng: float
    description: Optional[str] = None

    model_config = {"from_attributes": True}


class RouteEstimateResponse(BaseModel):
    distance: str
    duration: str
    price: float
    summary: str

    model_config = {"from_attributes": True}


class QuoteResponse(BaseModel):
    id: str
    origin: LocationResponse
    destination: LocationResponse
    estimate: RouteEstimateResponse
    prices: dict[RideType, float]
    created_at: datetime


class RideResponse(BaseModel):
    id: str
    origin: LocationResponse
    destination: LocationResponse
    distance: str
    duration: str
    price: float
    type: RideType
    payment_method: PaymentMethod
    status: RideStatus
    customer_name: str
    route_summary: Optional[str] = None
    created_at: datetime

    model_config = {"from_attributes": True}


class DriverStatsResponse(BaseModel):
    today_earnings: float
    total_rides: int
    rating: float

    model_config = {"from_attributes": True}


class HealthResponse(BaseModel):
    status: str = "ok"


class ErrorResponse(BaseModel):
    detail: str
