"""
Ride Lifecycle Controller
=========================

Owns the three pieces of session state -- the unmatched ride pool, the single
active-ride slot and the driver statistics -- plus the client's current quote.
Every mutation, including the ones fired by timers and by the discovery
worker, goes through the methods below.

Lifecycle
---------
  search -> Quote -> request_ride -> (broadcast delay) -> pool
  pool -> accept_ride -> ACCEPTED -> IN_PROGRESS -> COMPLETED -> (grace) -> idle
  PENDING / ACCEPTED -> cancel -> CANCELLED

Concurrency
-----------
Everything runs on one asyncio event loop, so no locking is needed.  Timers
are ``loop.call_later`` handles owned here and cancelled whenever the state
they would touch is torn down.  Searches carry a sequence number; a result
that arrives after the search was cancelled or superseded is dropped.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Optional, Union

from tonarua.infrastructure.oracle import EmptyQuery, EstimationOracle
from tonarua.infrastructure.repositories import RidePool, RideRepository

from .entities import (
    ActiveRideExists,
    DriverStats,
    InvalidTransition,
    Location,
    Quote,
    QuoteNotFound,
    RideNotFound,
    RideRequest,
    RouteEstimate,
)
from .enums import PaymentMethod, RideStatus, RideType
from .feed import MockRideFeed, RideFeed
from .pricing import PricingEngine
from .stats import record_completion

logger = logging.getLogger(__name__)

DEFAULT_CUSTOMER_NAME = "Usuário ToNaRua"


class RideLifecycleController:
    def __init__(
        self,
        oracle: EstimationOracle,
        *,
        feed: Optional[RideFeed] = None,
        pricing: Optional[PricingEngine] = None,
        stats: Optional[DriverStats] = None,
        broadcast_delay: float = 1.0,
        completion_grace: float = 3.0,
        pool_cap: int = 3,
        customer_name: str = DEFAULT_CUSTOMER_NAME,
    ):
        self.oracle = oracle
        self.feed = feed or MockRideFeed()
        self.pricing = pricing or PricingEngine()
        self.broadcast_delay = broadcast_delay
        self.completion_grace = completion_grace
        self.pool_cap = pool_cap
        self.customer_name = customer_name

        self._rides = RideRepository()
        self._pool = RidePool()
        self._active: Optional[RideRequest] = None
        self._stats = stats or DriverStats()
        self._quote: Optional[Quote] = None
        self._search_seq = 0

        self._broadcasts: dict[str, asyncio.TimerHandle] = {}
        self._completion: Optional[asyncio.TimerHandle] = None
        self._idle = asyncio.Event()
        self._idle.set()

    @classmethod
    def from_settings(cls, oracle: EstimationOracle, settings, feed: Optional[RideFeed] = None):
        return cls(
            oracle,
            feed=feed,
            pricing=PricingEngine(settings.delivery_discount),
            stats=DriverStats(
                today_earnings=settings.initial_today_earnings,
                total_rides=settings.initial_total_rides,
                rating=settings.initial_rating,
            ),
            broadcast_delay=settings.broadcast_delay_seconds,
            completion_grace=settings.completion_grace_seconds,
            pool_cap=settings.pool_cap,
            customer_name=settings.default_customer_name,
        )

    # ── Accessors ─────────────────────────────────────────────────────

    @property
    def pool(self) -> list[RideRequest]:
        return list(self._pool)

    @property
    def active_ride(self) -> Optional[RideRequest]:
        return self._active

    @property
    def stats(self) -> DriverStats:
        return self._stats

    @property
    def current_quote(self) -> Optional[Quote]:
        return self._quote

    def get_ride(self, ride_id: str) -> RideRequest:
        ride = self._rides.get_by_id(ride_id)
        if ride is None:
            raise RideNotFound(f"Ride {ride_id} not found")
        return ride

    def is_pending_broadcast(self, ride_id: str) -> bool:
        return ride_id in self._broadcasts

    def quote_prices(self, quote: Quote) -> dict[RideType, float]:
        return self.pricing.prices_for(quote.estimate.price)

    async def wait_until_idle(self) -> None:
        await self._idle.wait()

    # ── Client side ───────────────────────────────────────────────────

    async def search(self, origin_text: str, destination_text: str) -> Optional[Quote]:
        """Ask the oracle for both places and the route, all at once.

        Returns ``None`` when the search was cancelled or replaced by a newer
        one while the oracle calls were in flight.
        """
        if not origin_text.strip() or not destination_text.strip():
            raise EmptyQuery("Query is empty")

        seq = self._invalidate_search()
        origin, destination, estimate = await asyncio.gather(
            self.oracle.resolve_place(origin_text),
            self.oracle.resolve_place(destination_text),
            self.oracle.estimate_route(origin_text, destination_text),
        )
        if seq != self._search_seq:
            logger.info("Discarding stale search %r -> %r", origin_text, destination_text)
            return None

        self._quote = Quote(origin=origin, destination=destination, estimate=estimate)
        logger.info(
            "Quote %s: %s, %s, R$ %.2f",
            self._quote.id,
            estimate.distance,
            estimate.duration,
            estimate.price,
        )
        return self._quote

    def cancel_search(self) -> None:
        self._invalidate_search()

    def request_ride(
        self,
        quote_id: str,
        ride_type: RideType,
        payment_method: PaymentMethod,
    ) -> RideRequest:
        """Confirm the current quote and broadcast it to drivers."""
        quote = self._quote
        if quote is None or quote.id != quote_id:
            raise QuoteNotFound(f"Quote {quote_id} is no longer available")

        ride = self.create_ride(
            quote.origin, quote.destination, quote.estimate, ride_type, payment_method
        )
        self._quote = None
        self.broadcast(ride)
        return ride

    def create_ride(
        self,
        origin: Union[Location, str],
        destination: Union[Location, str],
        estimate: RouteEstimate,
        ride_type: RideType,
        payment_method: PaymentMethod,
        customer_name: Optional[str] = None,
    ) -> RideRequest:
        """Build a PENDING ride; it is not visible to drivers until broadcast."""
        if isinstance(origin, str):
            origin = Location(origin)
        if isinstance(destination, str):
            destination = Location(destination)

        ride = RideRequest(
            origin=origin,
            destination=destination,
            distance=estimate.distance,
            duration=estimate.duration,
            price=self.pricing.price_for(estimate.price, ride_type),
            type=ride_type,
            payment_method=payment_method,
            status=RideStatus.PENDING,
            customer_name=customer_name or self.customer_name,
            route_summary=estimate.summary,
        )
        logger.info("Ride %s created (%s, R$ %.2f)", ride.id, ride_type.value, ride.price)
        return ride

    def broadcast(self, ride: RideRequest) -> None:
        """Publish *ride* to the pool after the propagation delay."""
        if ride.status != RideStatus.PENDING:
            raise InvalidTransition(f"Cannot broadcast a {ride.status.value} ride")

        self._rides.add(ride)
        if self.broadcast_delay <= 0:
            self._publish(ride.id)
            return
        loop = asyncio.get_running_loop()
        self._broadcasts[ride.id] = loop.call_later(
            self.broadcast_delay, self._publish, ride.id
        )

    def cancel(self, ride_id: Optional[str] = None) -> Optional[RideRequest]:
        """Withdraw a ride.

        A ride still waiting to be broadcast, or sitting in the pool, is
        pulled out and marked CANCELLED.  Otherwise the active slot is cleared
        unconditionally; the ride only becomes CANCELLED where the state
        machine allows it.  Returns ``None`` if there was nothing to cancel.

        Withdrawing by id is a client action and also drops any in-flight
        search; a driver dismissing the slot leaves the client quote alone.
        """
        if ride_id is not None:
            self._invalidate_search()
            handle = self._broadcasts.pop(ride_id, None)
            if handle is not None:
                handle.cancel()
                return self._mark_cancelled(self.get_ride(ride_id))
            pooled = self._pool.remove(ride_id)
            if pooled is not None:
                return self._mark_cancelled(pooled)
            if self._active is None or self._active.id != ride_id:
                raise RideNotFound(f"Ride {ride_id} is not pending or active")

        ride = self._active
        if ride is None:
            return None
        self._clear_slot()
        if ride.can_transition_to(RideStatus.CANCELLED):
            ride.transition_to(RideStatus.CANCELLED)
        logger.info("Active ride %s dismissed (%s)", ride.id, ride.status.value)
        return ride

    # ── Driver side ───────────────────────────────────────────────────

    def accept_ride(self, ride_id: str) -> RideRequest:
        if ride_id not in self._pool:
            raise RideNotFound(f"Ride {ride_id} is no longer available")
        if self._active is not None:
            raise ActiveRideExists(f"Ride {self._active.id} is already active")

        ride = self._pool.remove(ride_id)
        ride.transition_to(RideStatus.ACCEPTED)
        self._install(ride)
        logger.info("Ride %s accepted", ride.id)
        return ride

    def advance_status(self, new_status: RideStatus) -> RideRequest:
        ride = self._active
        if ride is None:
            raise RideNotFound("No active ride")

        loop = None
        if new_status == RideStatus.COMPLETED and ride.can_transition_to(new_status):
            # the grace timer needs a loop; fail before touching any state
            loop = asyncio.get_running_loop()

        ride.transition_to(new_status)
        logger.info("Ride %s -> %s", ride.id, new_status.value)

        if loop is not None:
            self._stats = record_completion(self._stats, ride.price)
            self._completion = loop.call_later(
                self.completion_grace, self._clear_completed, ride.id
            )
        return ride

    def offer_from_feed(self) -> Optional[RideRequest]:
        """Pull one offer from the feed while the driver is idle and the pool has room."""
        if self._active is not None or len(self._pool) >= self.pool_cap:
            return None
        ride = self.feed.next_offer()
        if ride is None:
            return None
        if ride.status != RideStatus.PENDING:
            logger.warning("Feed offered ride %s in %s, ignoring", ride.id, ride.status.value)
            return None

        self._rides.add(ride)
        self._pool.add(ride)
        logger.info("Feed offered ride %s (pool=%d)", ride.id, len(self._pool))
        return ride

    def close(self) -> None:
        """Cancel every pending timer."""
        for handle in self._broadcasts.values():
            handle.cancel()
        self._broadcasts.clear()
        if self._completion is not None:
            self._completion.cancel()
            self._completion = None

    # ── Internals ─────────────────────────────────────────────────────

    def _invalidate_search(self) -> int:
        self._search_seq += 1
        self._quote = None
        return self._search_seq

    def _publish(self, ride_id: str) -> None:
        self._broadcasts.pop(ride_id, None)
        ride = self._rides.get_by_id(ride_id)
        if ride is None or ride.status != RideStatus.PENDING:
            return
        self._pool.add(ride)
        logger.info("Ride %s broadcast to drivers (pool=%d)", ride_id, len(self._pool))

    def _mark_cancelled(self, ride: RideRequest) -> RideRequest:
        ride.transition_to(RideStatus.CANCELLED)
        logger.info("Ride %s cancelled", ride.id)
        return ride

    def _install(self, ride: RideRequest) -> None:
        self._cancel_completion()
        self._active = ride
        self._idle.clear()

    def _clear_slot(self) -> None:
        self._cancel_completion()
        self._active = None
        self._idle.set()

    def _cancel_completion(self) -> None:
        if self._completion is not None:
            self._completion.cancel()
            self._completion = None

    def _clear_completed(self, ride_id: str) -> None:
        self._completion = None
        if self._active is not None and self._active.id == ride_id:
            self._clear_slot()
            logger.info("Ride %s cleared from active slot", ride_id)
