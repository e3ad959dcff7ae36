"""
Driver management schemas.
"""

from pydantic import BaseModel, EmailStr, Field
from typing import Optional
from fleetdash.app.models.enums import UserRole, DriverStatus


class DriverUpdate(BaseModel):
    """Schema for an admin edit of a user profile."""
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    email: Optional[EmailStr] = None
    status: Optional[DriverStatus] = None
    role: Optional[UserRole] = None
