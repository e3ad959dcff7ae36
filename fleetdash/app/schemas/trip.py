"""
Trip schemas.

Schemas for trip assignment, lifecycle actions, live tracking and history.
"""

from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime
from fleetdash.app.models.enums import TripStatus
from fleetdash.app.schemas.auth import UserResponse
from fleetdash.app.schemas.vehicle import VehicleResponse


class TripAssign(BaseModel):
    """Schema for assigning a new trip to a driver and vehicle."""
    driver_id: int
    vehicle_id: int
    start_location: str = Field(..., min_length=1, max_length=255)
    end_location: str = Field(..., min_length=1, max_length=255)
    distance: float = Field(0, ge=0, description="Estimated distance in km")
    estimated_duration: int = Field(0, ge=0, description="Estimated duration in minutes")


class TripResponse(BaseModel):
    """Schema for trip response, with driver and vehicle embedded."""
    id: int
    driver_id: Optional[int]
    vehicle_id: Optional[int]
    start_location: str
    end_location: str
    status: TripStatus
    start_time: Optional[datetime]
    end_time: Optional[datetime]
    estimated_duration: int
    distance: float
    distance_travelled: float
    current_lat: Optional[float]
    current_lng: Optional[float]
    created_at: datetime
    updated_at: datetime
    driver: Optional[UserResponse] = None
    vehicle: Optional[VehicleResponse] = None

    class Config:
        from_attributes = True


class LocationUpdate(BaseModel):
    """Schema for a GPS sample from the driver's device."""
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)


class LocationUpdateResponse(BaseModel):
    """Response after recording a location."""
    trip_id: int
    current_lat: float
    current_lng: float
    distance_travelled: float
    updated_at: datetime


class LiveTripMarker(BaseModel):
    """In-progress trip projected for the live map."""
    trip_id: int
    driver_id: Optional[int]
    driver_name: Optional[str]
    vehicle_label: Optional[str]
    start_location: str
    end_location: str
    start_time: Optional[datetime]
    latitude: Optional[float]
    longitude: Optional[float]
    has_position: bool


class MonthGroup(BaseModel):
    """Trips filed under one month."""
    month: str
    trips: List[TripResponse]


class TripHistoryResponse(BaseModel):
    """Driver's completed trips grouped by month."""
    months: List[str]
    selected_month: str
    groups: List[MonthGroup]
    total: int


class TripRecordDetail(BaseModel):
    """Trips of one driver or vehicle with month filtering applied."""
    trips: List[TripResponse]
    available_months: List[str]
    selected_month: str
    filtered_trips: List[TripResponse]
    completed_trips: int
