"""Driver statistics aggregation."""

from __future__ import annotations

from dataclasses import replace

from .entities import DriverStats


def record_completion(stats: DriverStats, price: float) -> DriverStats:
    """Return *stats* with one more completed ride worth *price*.

    Earnings and ride count only ever grow; the rating is left alone.  There
    is no day boundary, so ``today_earnings`` accumulates for the session.
    """
    return replace(
        stats,
        today_earnings=round(stats.today_earnings + max(price, 0.0), 2),
        total_rides=stats.total_rides + 1,
    )
