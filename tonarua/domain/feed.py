"""
Ride feeds
==========

A feed is where a driver discovers new PENDING rides besides the ones
broadcast by clients in the same session.  ``MockRideFeed`` synthesises a
plausible ride on every call; a real deployment would plug in a feed backed
by a dispatch broadcast without touching the lifecycle controller.
"""

from __future__ import annotations

import random
from abc import ABC, abstractmethod
from typing import Optional

from .entities import Location, RideRequest
from .enums import PaymentMethod, RideStatus, RideType


class RideFeed(ABC):
    @abstractmethod
    def next_offer(self) -> Optional[RideRequest]:
        """Return the next ride to offer, or ``None`` if there is none."""


class MockRideFeed(RideFeed):
    ORIGIN = "Av. Paulista, 1000 - São Paulo"
    DESTINATION = "Rua Augusta, 500 - São Paulo"

    def __init__(self, rng: Optional[random.Random] = None):
        self.rng = rng or random.Random()

    def next_offer(self) -> RideRequest:
        return generate_mock_ride(self.rng)


def generate_mock_ride(rng: Optional[random.Random] = None) -> RideRequest:
    rng = rng or random.Random()
    return RideRequest(
        origin=Location(MockRideFeed.ORIGIN),
        destination=Location(MockRideFeed.DESTINATION),
        distance="2.4 km",
        duration="8 min",
        price=12.50,
        type=RideType.RIDE if rng.random() > 0.5 else RideType.DELIVERY,
        payment_method=PaymentMethod.PIX,
        status=RideStatus.PENDING,
        customer_name="Cliente Teste",
    )
