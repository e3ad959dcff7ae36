"""
Authentication Pydantic schemas.

Defines request and response schemas for authentication endpoints.
"""

from pydantic import BaseModel, EmailStr, Field
from datetime import datetime
from typing import Optional
from fleetdash.app.models.enums import UserRole, DriverStatus


class UserRegister(BaseModel):
    """
    Schema for account signup.

    Used by POST /auth/register endpoint.
    Default role is driver.
    """
    email: EmailStr = Field(..., description="User email address")
    password: str = Field(..., min_length=6, description="Password (min 6 characters)")
    name: Optional[str] = Field(default=None, max_length=255, description="Display name")
    role: Optional[UserRole] = Field(default=UserRole.DRIVER, description="User role (defaults to driver)")


class UserLogin(BaseModel):
    """
    Schema for login.

    Used by POST /auth/login endpoint.
    """
    email: EmailStr = Field(..., description="Account email")
    password: str = Field(..., description="Password")


class UserResponse(BaseModel):
    """
    Schema for a user profile.

    Used by GET /auth/me and the admin driver/user listings.
    """
    id: int
    email: str
    name: str
    role: UserRole
    status: DriverStatus
    created_at: datetime

    class Config:
        from_attributes = True  # Pydantic v2 (was orm_mode in v1)


class TokenResponse(BaseModel):
    """
    Schema for JWT token response.

    Returned by successful login/register operations. `dashboard` is the
    route the client should open for the user's role.
    """
    access_token: str = Field(..., description="JWT access token")
    token_type: str = Field(default="bearer", description="Token type")
    user: UserResponse
    dashboard: str = Field(..., description="Dashboard route for the role (/admin or /driver)")
