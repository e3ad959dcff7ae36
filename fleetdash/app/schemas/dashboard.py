"""
Admin dashboard schemas.
"""

from pydantic import BaseModel
from fleetdash.app.schemas.auth import UserResponse
from fleetdash.app.schemas.trip import TripRecordDetail
from fleetdash.app.schemas.vehicle import VehicleResponse


class DashboardStats(BaseModel):
    """Headline numbers for the admin dashboard."""
    total_trips: int
    completed_trips: int
    active_trips: int
    total_distance: float
    total_vehicles: int
    available_vehicles: int
    unavailable_vehicles: int
    total_drivers: int
    available_drivers: int
    active_drivers: int


class DriverDetailResponse(TripRecordDetail):
    """Driver detail page payload."""
    driver: UserResponse


class VehicleDetailResponse(TripRecordDetail):
    """Vehicle detail page payload."""
    vehicle: VehicleResponse
