"""
Authentication API endpoints.

Provides signup, login, and current-profile endpoints for the dashboard.
"""

import logging
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from fleetdash.app.db.session import get_db
from fleetdash.app.models.auth_account import AuthAccount
from fleetdash.app.models.user import User
from fleetdash.app.models.enums import UserRole
from fleetdash.app.schemas.auth import UserRegister, UserLogin, TokenResponse, UserResponse
from fleetdash.app.core.security import get_password_hash, verify_password
from fleetdash.app.core.jwt import create_access_token
from fleetdash.app.core.dependencies import get_current_user
from fleetdash.app.services.profile_service import ProfileService

router = APIRouter(prefix="/auth", tags=["Authentication"])
logger = logging.getLogger("fleetdash.auth")


def dashboard_for(role: UserRole) -> str:
    """Route a role to its dashboard."""
    return "/admin" if role == UserRole.ADMIN else "/driver"


def issue_token(profile: User) -> TokenResponse:
    jwt_payload = {
        "sub": profile.email,
        "user_id": profile.id,
        "role": profile.role.value,
    }
    return TokenResponse(
        access_token=create_access_token(data=jwt_payload),
        token_type="bearer",
        user=UserResponse.model_validate(profile),
        dashboard=dashboard_for(profile.role),
    )


@router.post("/register", response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
async def register(
    user_data: UserRegister,
    db: AsyncSession = Depends(get_db)
):
    """
    Sign up a new account.

    - Admin accounts cannot be created via API (use the seed script).
    - The profile row is created together with the account.
    """
    if user_data.role == UserRole.ADMIN:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin users cannot be registered via API"
        )

    result = await db.execute(select(AuthAccount).where(AuthAccount.email == user_data.email))
    if result.scalar_one_or_none():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Email already registered"
        )

    account = AuthAccount(
        email=user_data.email,
        hashed_password=get_password_hash(user_data.password),
        meta_name=user_data.name,
        meta_role=(user_data.role or UserRole.DRIVER).value,
        is_active=True,
    )
    db.add(account)
    await db.flush()

    profile = await ProfileService.create_profile(db, account)
    await db.commit()

    logger.info("Account registered", extra={"user_id": account.id, "role": profile.role.value})
    return issue_token(profile)


@router.post("/login", response_model=TokenResponse)
async def login(
    credentials: UserLogin,
    db: AsyncSession = Depends(get_db)
):
    """
    Login and return a JWT token.

    Makes sure the account has a profile row, creating one from the
    signup metadata if it is still missing after the bounded lookup.
    """
    result = await db.execute(select(AuthAccount).where(AuthAccount.email == credentials.email))
    account = result.scalar_one_or_none()

    if not account or not verify_password(credentials.password, account.hashed_password):
        logger.warning("Login failed", extra={"email": credentials.email})
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if not account.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Inactive user account"
        )

    profile = await ProfileService.ensure_profile(db, account)
    await db.commit()

    return issue_token(profile)


@router.get("/me", response_model=UserResponse)
async def get_current_user_info(
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Get the current user's profile.

    Requires valid JWT token in Authorization header.
    """
    profile = await ProfileService.get_profile(db, current_user["user_id"])

    if not profile:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found"
        )

    return UserResponse.model_validate(profile)
