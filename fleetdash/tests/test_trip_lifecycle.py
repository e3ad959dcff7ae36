"""
Trip lifecycle rule tests.
"""

import pytest

from fleetdash.app.core.exceptions import InvalidTripTransitionError
from fleetdash.app.domain.trips import lifecycle
from fleetdash.app.models.enums import TripStatus, DriverStatus, VehicleStatus


@pytest.mark.parametrize("current,target", [
    (TripStatus.PENDING, TripStatus.IN_PROGRESS),
    (TripStatus.PENDING, TripStatus.CANCELLED),
    (TripStatus.IN_PROGRESS, TripStatus.COMPLETED),
    (TripStatus.IN_PROGRESS, TripStatus.CANCELLED),
])
def test_allowed_moves(current, target):
    assert lifecycle.can_transition(current, target)
    lifecycle.ensure_transition(current, target)


@pytest.mark.parametrize("current,target", [
    (TripStatus.PENDING, TripStatus.COMPLETED),
    (TripStatus.IN_PROGRESS, TripStatus.PENDING),
    (TripStatus.COMPLETED, TripStatus.IN_PROGRESS),
    (TripStatus.COMPLETED, TripStatus.CANCELLED),
    (TripStatus.CANCELLED, TripStatus.IN_PROGRESS),
])
def test_rejected_moves(current, target):
    assert not lifecycle.can_transition(current, target)
    with pytest.raises(InvalidTripTransitionError) as exc_info:
        lifecycle.ensure_transition(current, target)
    assert exc_info.value.status_code == 409
    assert exc_info.value.details == {"current_status": current.value, "target_status": target.value}


def test_accepts_raw_status_strings():
    assert lifecycle.can_transition("pending", "in_progress")


def test_side_effects_follow_trip_status():
    assert lifecycle.side_effects(TripStatus.PENDING) == (DriverStatus.ASSIGNED, VehicleStatus.IN_USE)
    assert lifecycle.side_effects(TripStatus.IN_PROGRESS) == (DriverStatus.ON_TRIP, VehicleStatus.IN_USE)
    assert lifecycle.side_effects(TripStatus.COMPLETED) == (DriverStatus.AVAILABLE, VehicleStatus.AVAILABLE)
    assert lifecycle.side_effects(TripStatus.CANCELLED) == (DriverStatus.AVAILABLE, VehicleStatus.AVAILABLE)


def test_open_statuses():
    assert lifecycle.is_open(TripStatus.PENDING)
    assert lifecycle.is_open(TripStatus.IN_PROGRESS)
    assert not lifecycle.is_open(TripStatus.COMPLETED)
    assert not lifecycle.is_open(TripStatus.CANCELLED)


@pytest.mark.parametrize("trip_statuses,expected", [
    ([TripStatus.IN_PROGRESS, TripStatus.PENDING], DriverStatus.ON_TRIP),
    ([TripStatus.PENDING, TripStatus.PENDING], DriverStatus.ASSIGNED),
    ([TripStatus.PENDING, TripStatus.COMPLETED], DriverStatus.ASSIGNED),
    (["in_progress", "cancelled"], DriverStatus.ON_TRIP),
    ([TripStatus.COMPLETED, TripStatus.CANCELLED], DriverStatus.AVAILABLE),
    ([], DriverStatus.AVAILABLE),
])
def test_driver_status_derived_from_all_trips(trip_statuses, expected):
    assert lifecycle.driver_status_for(trip_statuses) == expected
