"""
Trip lifecycle rules.

A trip moves along these edges only:

    pending     -> in_progress | cancelled
    in_progress -> completed   | cancelled

Completed and cancelled trips are terminal. Each status also dictates the
status the assigned vehicle should carry. A driver can hold several open
trips, so their status is derived from all of them.
"""

from typing import Dict, FrozenSet, Iterable, Optional, Tuple

from fleetdash.app.core.exceptions import InvalidTripTransitionError
from fleetdash.app.models.enums import TripStatus, DriverStatus, VehicleStatus


ALLOWED_TRANSITIONS: Dict[TripStatus, FrozenSet[TripStatus]] = {
    TripStatus.PENDING: frozenset({TripStatus.IN_PROGRESS, TripStatus.CANCELLED}),
    TripStatus.IN_PROGRESS: frozenset({TripStatus.COMPLETED, TripStatus.CANCELLED}),
    TripStatus.COMPLETED: frozenset(),
    TripStatus.CANCELLED: frozenset(),
}

# Trip status -> (driver status, vehicle status) to mirror
_SIDE_EFFECTS: Dict[TripStatus, Tuple[DriverStatus, VehicleStatus]] = {
    TripStatus.PENDING: (DriverStatus.ASSIGNED, VehicleStatus.IN_USE),
    TripStatus.IN_PROGRESS: (DriverStatus.ON_TRIP, VehicleStatus.IN_USE),
    TripStatus.COMPLETED: (DriverStatus.AVAILABLE, VehicleStatus.AVAILABLE),
    TripStatus.CANCELLED: (DriverStatus.AVAILABLE, VehicleStatus.AVAILABLE),
}

OPEN_STATUSES = frozenset({TripStatus.PENDING, TripStatus.IN_PROGRESS})


def can_transition(current: TripStatus, target: TripStatus) -> bool:
    """Return True if `current -> target` is an allowed lifecycle move."""
    return target in ALLOWED_TRANSITIONS.get(TripStatus(current), frozenset())


def ensure_transition(current: TripStatus, target: TripStatus) -> None:
    """Raise InvalidTripTransitionError unless `current -> target` is allowed."""
    if not can_transition(current, target):
        raise InvalidTripTransitionError(TripStatus(current).value, TripStatus(target).value)


def side_effects(status: TripStatus) -> Tuple[Optional[DriverStatus], Optional[VehicleStatus]]:
    """Driver and vehicle statuses that go with a trip entering `status`."""
    return _SIDE_EFFECTS.get(TripStatus(status), (None, None))


def is_open(status: TripStatus) -> bool:
    return TripStatus(status) in OPEN_STATUSES


def driver_status_for(trip_statuses: Iterable[TripStatus]) -> DriverStatus:
    """
    Status a driver should carry given the statuses of all their trips.

    An in-progress trip wins over a pending one; with no open trip left
    the driver is available again.
    """
    open_statuses = {TripStatus(s) for s in trip_statuses if is_open(s)}
    for status in (TripStatus.IN_PROGRESS, TripStatus.PENDING):
        if status in open_statuses:
            return side_effects(status)[0]
    return DriverStatus.AVAILABLE
