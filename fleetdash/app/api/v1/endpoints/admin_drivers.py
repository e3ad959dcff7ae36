"""
Admin Driver API Endpoints.

Driver and user management: list, edit and delete profiles, and the
driver detail view with its trip history.
"""

from typing import List
from fastapi import APIRouter, Depends, HTTPException, status, Path, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func

from fleetdash.app.db.session import get_db
from fleetdash.app.core.redis_client import get_redis
from fleetdash.app.core.guards import require_admin
from fleetdash.app.domain.trips.lifecycle import OPEN_STATUSES
from fleetdash.app.models.auth_account import AuthAccount
from fleetdash.app.models.enums import ChangeEventType, UserRole
from fleetdash.app.models.trip import Trip
from fleetdash.app.models.user import User
from fleetdash.app.schemas.auth import UserResponse
from fleetdash.app.schemas.driver import DriverUpdate
from fleetdash.app.schemas.trip import TripResponse
from fleetdash.app.schemas.dashboard import DriverDetailResponse
from fleetdash.app.services import change_feed
from fleetdash.app.services.trip_history import summarize_trips
from fleetdash.app.services.trip_service import TripService

router = APIRouter(prefix="/admin", tags=["Admin - Drivers"])


async def get_user_or_404(db: AsyncSession, user_id: int) -> User:
    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if not user:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found"
        )
    return user


@router.get("/users", response_model=List[UserResponse])
async def list_users(
    admin: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """List every profile (admins and drivers), newest first."""
    result = await db.execute(select(User).order_by(User.created_at.desc(), User.id.desc()))
    return [UserResponse.model_validate(u) for u in result.scalars().all()]


@router.get("/drivers", response_model=List[UserResponse])
async def list_drivers(
    admin: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """List driver profiles, newest first."""
    result = await db.execute(
        select(User).where(User.role == UserRole.DRIVER).order_by(User.created_at.desc(), User.id.desc())
    )
    return [UserResponse.model_validate(u) for u in result.scalars().all()]


@router.get("/drivers/{user_id}", response_model=UserResponse)
async def get_driver(
    user_id: int = Path(..., description="User ID"),
    admin: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    user = await get_user_or_404(db, user_id)
    return UserResponse.model_validate(user)


@router.patch("/drivers/{user_id}", response_model=UserResponse)
async def update_driver(
    user_id: int = Path(..., description="User ID"),
    driver_data: DriverUpdate = ...,
    admin: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
    redis=Depends(get_redis)
):
    """
    Edit a profile's name, email, status or role.

    The account email follows the profile email so the user keeps
    logging in with the address shown on the dashboard. Fields sent as
    null are left unchanged.
    """
    user = await get_user_or_404(db, user_id)
    update_data = driver_data.model_dump(exclude_unset=True, exclude_none=True)

    if "email" in update_data and update_data["email"] != user.email:
        taken = await db.execute(
            select(AuthAccount.id).where(AuthAccount.email == update_data["email"], AuthAccount.id != user.id)
        )
        if taken.scalar_one_or_none() is not None:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Email already registered"
            )
        account = (await db.execute(select(AuthAccount).where(AuthAccount.id == user.id))).scalar_one_or_none()
        if account is not None:
            account.email = update_data["email"]

    for field, value in update_data.items():
        setattr(user, field, value)

    await db.commit()
    await db.refresh(user)

    response = UserResponse.model_validate(user)
    await change_feed.publish_row(
        redis, change_feed.USERS, ChangeEventType.UPDATE, user.id,
        new=response.model_dump(mode="json"), driver_id=user.id
    )
    return response


@router.delete("/drivers/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_driver(
    user_id: int = Path(..., description="User ID"),
    admin: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
    redis=Depends(get_redis)
):
    """
    Delete a user and their account.

    Refused for the calling admin and while the user has open trips.
    Past trips keep their history with the driver reference cleared.
    """
    if user_id == admin["user_id"]:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Admins cannot delete their own account"
        )

    user = await get_user_or_404(db, user_id)

    open_trips = (await db.execute(
        select(func.count(Trip.id)).where(
            Trip.driver_id == user.id,
            Trip.status.in_(list(OPEN_STATUSES))
        )
    )).scalar() or 0
    if open_trips:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Driver {user.id} has {open_trips} open trip(s)"
        )

    account = (await db.execute(select(AuthAccount).where(AuthAccount.id == user.id))).scalar_one_or_none()
    await db.delete(user)
    await db.flush()
    if account is not None:
        await db.delete(account)
    await db.commit()

    await change_feed.publish_row(redis, change_feed.USERS, ChangeEventType.DELETE, user_id, driver_id=user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/drivers/{user_id}/trips", response_model=DriverDetailResponse)
async def get_driver_detail(
    user_id: int = Path(..., description="User ID"),
    month: str = Query("all", description="YYYY-MM or 'all'"),
    admin: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """Driver detail: the profile, its trips and a month-filtered view."""
    user = await get_user_or_404(db, user_id)
    trips = await TripService.list_trips(db, driver_id=user.id, order_by_start_time=True)

    try:
        summary = summarize_trips(trips, month, TripResponse.model_validate)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))

    return DriverDetailResponse(driver=UserResponse.model_validate(user), **summary)
