"""
Background Ride Discovery Worker
================================

While the driver has no active ride, offers a new ride from the feed every
``DISCOVERY_INTERVAL_SECONDS`` (default 5 s), as long as the pool holds fewer
than ``POOL_CAP`` rides.

The loop suspends on ``controller.wait_until_idle()`` while a ride is
active, so an accepted ride stops the timer and a cleared slot restarts it
with a fresh interval.  Offers go through ``offer_from_feed`` -- the same
entry point any other caller would use -- so the pool invariants hold.
"""

from __future__ import annotations

import asyncio
import logging

from tonarua.config import settings
from tonarua.domain.controller import RideLifecycleController

logger = logging.getLogger(__name__)

_task: asyncio.Task | None = None
_stop_event: asyncio.Event | None = None


# ── Public API ────────────────────────────────────────────────────────


async def start_discovery_loop(
    controller: RideLifecycleController, interval: float | None = None
) -> None:
    global _task, _stop_event
    interval = settings.discovery_interval_seconds if interval is None else interval
    _stop_event = asyncio.Event()
    _task = asyncio.create_task(_loop(controller, _stop_event, interval))
    logger.info("Discovery worker started (interval=%.1fs)", interval)


async def stop_discovery_loop() -> None:
    global _task, _stop_event
    if _stop_event:
        _stop_event.set()
    if _task:
        _task.cancel()
        try:
            await _task
        except asyncio.CancelledError:
            pass
    _task = None
    _stop_event = None
    logger.info("Discovery worker stopped")


# ── Internals ─────────────────────────────────────────────────────────


async def _loop(
    controller: RideLifecycleController, stop_event: asyncio.Event, interval: float
) -> None:
    """Periodic loop: wait for an idle driver, sleep, then offer a ride."""
    while not stop_event.is_set():
        await controller.wait_until_idle()
        # Wait for the interval or until stop is signalled
        try:
            await asyncio.wait_for(stop_event.wait(), timeout=interval)
            break
        except asyncio.TimeoutError:
            pass
        try:
            run_discovery_cycle(controller)
        except Exception:
            logger.exception("Unhandled error in discovery cycle")


def run_discovery_cycle(controller: RideLifecycleController) -> bool:
    """Execute one discovery tick.  Returns True if a ride was offered."""
    ride = controller.offer_from_feed()
    if ride is None:
        logger.debug("No offer (active ride or pool full)")
        return False
    return True
