"""
Repository Pattern -- keeps ride storage out of the lifecycle logic.

Both repositories are process-local and live for one session.  Nothing is
persisted; a restart starts from an empty pool.
"""

from __future__ import annotations

from typing import Iterator, Optional

from tonarua.domain.entities import RideRequest


class RideRepository:
    """Every ride seen in this session, by id, including terminal ones."""

    def __init__(self) -> None:
        self._rides: dict[str, RideRequest] = {}

    def add(self, ride: RideRequest) -> RideRequest:
        self._rides[ride.id] = ride
        return ride

    def get_by_id(self, ride_id: str) -> Optional[RideRequest]:
        return self._rides.get(ride_id)


class RidePool:
    """Unmatched PENDING rides visible to drivers, in arrival order."""

    def __init__(self) -> None:
        self._rides: dict[str, RideRequest] = {}

    def add(self, ride: RideRequest) -> None:
        self._rides[ride.id] = ride

    def remove(self, ride_id: str) -> Optional[RideRequest]:
        return self._rides.pop(ride_id, None)

    def __contains__(self, ride_id: object) -> bool:
        return ride_id in self._rides

    def __len__(self) -> int:
        return len(self._rides)

    def __iter__(self) -> Iterator[RideRequest]:
        return iter(list(self._rides.values()))
