"""
Vehicle Pydantic schemas.

Defines request and response models for vehicle management.
"""

from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional
from fleetdash.app.models.enums import VehicleStatus


class VehicleCreate(BaseModel):
    """Schema for adding a vehicle."""
    make: str = Field(..., min_length=1, max_length=100)
    model: str = Field(..., min_length=1, max_length=100)
    year: int = Field(..., ge=1900, le=2100)
    license_plate: str = Field(..., min_length=1, max_length=50, description="Unique license plate")
    status: VehicleStatus = Field(default=VehicleStatus.AVAILABLE)


class VehicleUpdate(BaseModel):
    """Schema for updating an existing vehicle."""
    make: Optional[str] = Field(None, min_length=1, max_length=100)
    model: Optional[str] = Field(None, min_length=1, max_length=100)
    year: Optional[int] = Field(None, ge=1900, le=2100)
    license_plate: Optional[str] = Field(None, min_length=1, max_length=50)
    status: Optional[VehicleStatus] = None


class VehicleResponse(BaseModel):
    """Schema for vehicle response."""
    id: int
    make: str
    model: str
    year: int
    license_plate: str
    status: VehicleStatus
    created_at: datetime

    class Config:
        from_attributes = True
