"""Unit tests for ride entity state transitions (State Pattern)."""

import pytest

from tonarua.domain.entities import InvalidTransition, Location, RideRequest
from tonarua.domain.enums import RideStatus


def make_ride(status: RideStatus = RideStatus.PENDING) -> RideRequest:
    return RideRequest(
        origin=Location("A"),
        destination=Location("B"),
        distance="5 km",
        duration="15 min",
        price=20.0,
        status=status,
    )


class TestRideStateMachine:
    def test_initial_status_is_pending(self):
        ride = make_ride()
        assert ride.status == RideStatus.PENDING

    def test_ids_are_unique(self):
        assert make_ride().id != make_ride().id

    def test_unresolved_location(self):
        assert not Location("Rua Augusta").is_resolved
        assert Location("MASP", lat=-23.56, lng=-46.65).is_resolved

    # ── Valid transitions ─────────────────────────────────────────

    def test_pending_to_accepted(self):
        ride = make_ride(RideStatus.PENDING)
        ride.transition_to(RideStatus.ACCEPTED)
        assert ride.status == RideStatus.ACCEPTED

    def test_pending_to_cancelled(self):
        ride = make_ride(RideStatus.PENDING)
        ride.transition_to(RideStatus.CANCELLED)
        assert ride.status == RideStatus.CANCELLED

    def test_accepted_to_in_progress(self):
        ride = make_ride(RideStatus.ACCEPTED)
        ride.transition_to(RideStatus.IN_PROGRESS)
        assert ride.status == RideStatus.IN_PROGRESS

    def test_accepted_to_cancelled(self):
        ride = make_ride(RideStatus.ACCEPTED)
        ride.transition_to(RideStatus.CANCELLED)
        assert ride.status == RideStatus.CANCELLED

    def test_in_progress_to_completed(self):
        ride = make_ride(RideStatus.IN_PROGRESS)
        ride.transition_to(RideStatus.COMPLETED)
        assert ride.status == RideStatus.COMPLETED

    # ── Invalid transitions ───────────────────────────────────────

    def test_pending_to_completed_fails(self):
        ride = make_ride(RideStatus.PENDING)
        with pytest.raises(InvalidTransition):
            ride.transition_to(RideStatus.COMPLETED)
        assert ride.status == RideStatus.PENDING

    def test_pending_to_in_progress_fails(self):
        ride = make_ride(RideStatus.PENDING)
        with pytest.raises(InvalidTransition):
            ride.transition_to(RideStatus.IN_PROGRESS)

    def test_completed_to_anything_fails(self):
        ride = make_ride(RideStatus.COMPLETED)
        with pytest.raises(InvalidTransition):
            ride.transition_to(RideStatus.PENDING)

    def test_cancelled_to_anything_fails(self):
        ride = make_ride(RideStatus.CANCELLED)
        with pytest.raises(InvalidTransition):
            ride.transition_to(RideStatus.ACCEPTED)

    def test_in_progress_to_cancelled_fails(self):
        """Once in progress, can only complete -- not cancel."""
        ride = make_ride(RideStatus.IN_PROGRESS)
        with pytest.raises(InvalidTransition):
            ride.transition_to(RideStatus.CANCELLED)
