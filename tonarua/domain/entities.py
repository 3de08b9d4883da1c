"""
Domain entities with business logic.

Patterns used
-------------
- **State Pattern** on ``RideRequest``: enforces valid lifecycle transitions
  (PENDING -> ACCEPTED -> IN_PROGRESS -> COMPLETED | CANCELLED).
- ``Location``, ``RouteEstimate``, ``Quote`` and ``DriverStats`` are value
  objects; they never change once built.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

from .enums import RIDE_TRANSITIONS, PaymentMethod, RideStatus, RideType


# ── Errors ────────────────────────────────────────────────────────────


class LifecycleError(Exception):
    """Base class for errors reported back to the client / driver."""


class InvalidTransition(LifecycleError):
    """Raised when a ride status change violates the state machine."""


class RideNotFound(LifecycleError):
    """The ride is no longer where the caller expected it."""


class ActiveRideExists(LifecycleError):
    """The active-ride slot is already occupied."""


class QuoteNotFound(LifecycleError):
    """The quote was superseded, cancelled or already confirmed."""


def new_id() -> str:
    return uuid.uuid4().hex


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ── Value Objects ─────────────────────────────────────────────────────

# Coordinates used for text the oracle never resolved
UNRESOLVED = 0.0


@dataclass(frozen=True)
class Location:
    address: str
    lat: float = UNRESOLVED
    lng: float = UNRESOLVED
    description: Optional[str] = None

    @property
    def is_resolved(self) -> bool:
        return not (self.lat == UNRESOLVED and self.lng == UNRESOLVED)


@dataclass(frozen=True)
class RouteEstimate:
    distance: str
    duration: str
    price: float
    summary: str


@dataclass(frozen=True)
class Quote:
    origin: Location
    destination: Location
    estimate: RouteEstimate
    id: str = field(default_factory=new_id)
    created_at: datetime = field(default_factory=utcnow)


@dataclass(frozen=True)
class DriverStats:
    today_earnings: float = 0.0
    total_rides: int = 0
    rating: float = 5.0


# ── Entities ──────────────────────────────────────────────────────────


@dataclass
class RideRequest:
    origin: Location
    destination: Location
    distance: str
    duration: str
    price: float
    type: RideType = RideType.RIDE
    payment_method: PaymentMethod = PaymentMethod.CARD
    status: RideStatus = RideStatus.PENDING
    customer_name: str = ""
    route_summary: Optional[str] = None
    id: str = field(default_factory=new_id)
    created_at: datetime = field(default_factory=utcnow)

    def can_transition_to(self, new_status: RideStatus) -> bool:
        return new_status in RIDE_TRANSITIONS.get(self.status, set())

    def transition_to(self, new_status: RideStatus) -> None:
        """Move to *new_status* if the transition is legal, else raise."""
        if not self.can_transition_to(new_status):
            raise InvalidTransition(
                f"Cannot transition from {self.status.value} to {new_status.value}"
            )
        self.status = new_status
