"""
Fare Selection  (Strategy Pattern)
==================================

The oracle quotes a single base price for a route.  The requester then picks
a ride type, and the fare is fixed from that quote at creation time:

* **RIDE**     -- the quote as-is
* **DELIVERY** -- the quote minus the delivery discount (10 % by default)

Prices are never re-derived after the ride exists.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from .enums import RideType


# ── Strategy hierarchy ────────────────────────────────────────────────


class FareStrategy(ABC):
    @abstractmethod
    def calculate(self, base_price: float) -> float: ...


class StandardFare(FareStrategy):
    def calculate(self, base_price: float) -> float:
        return round(base_price, 2)


class DeliveryDiscountFare(FareStrategy):
    def __init__(self, discount: float = 0.10):
        self.discount = min(max(discount, 0.0), 1.0)

    def calculate(self, base_price: float) -> float:
        return round(base_price * (1 - self.discount), 2)


# ── Engine facade ─────────────────────────────────────────────────────


class PricingEngine:
    """High-level API used by the controller and the quote endpoint."""

    def __init__(self, delivery_discount: float = 0.10):
        self._strategies: dict[RideType, FareStrategy] = {
            RideType.RIDE: StandardFare(),
            RideType.DELIVERY: DeliveryDiscountFare(delivery_discount),
        }

    def price_for(self, base_price: float, ride_type: RideType) -> float:
        return max(0.0, self._strategies[ride_type].calculate(base_price))

    def prices_for(self, base_price: float) -> dict[RideType, float]:
        return {t: self.price_for(base_price, t) for t in RideType}
