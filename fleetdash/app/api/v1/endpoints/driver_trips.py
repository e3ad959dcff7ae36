"""
Driver Trip API Endpoints.

Drivers see their own trips, move the active one through its lifecycle
and stream GPS positions onto it.
"""

from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, status, Path, Query, Body
from sqlalchemy.ext.asyncio import AsyncSession

from fleetdash.app.db.session import get_db
from fleetdash.app.core.redis_client import get_redis
from fleetdash.app.core.guards import require_role, enforce_trip_owner
from fleetdash.app.models.enums import TripStatus, UserRole
from fleetdash.app.schemas.trip import (
    TripResponse, LocationUpdate, LocationUpdateResponse,
    TripHistoryResponse, MonthGroup
)
from fleetdash.app.services.trip_history import (
    ALL_MONTHS, available_months, filter_trips_by_month, group_trips_by_month
)
from fleetdash.app.services.trip_service import TripService

router = APIRouter(prefix="/driver", tags=["Driver - Trips"])

require_driver = require_role([UserRole.DRIVER])


async def get_own_trip(db: AsyncSession, trip_id: int, current_user: dict):
    trip = await TripService.get_trip_or_404(db, trip_id)
    enforce_trip_owner(trip, current_user)
    return trip


@router.get("/trips", response_model=List[TripResponse])
async def list_my_trips(
    current_user: dict = Depends(require_driver),
    db: AsyncSession = Depends(get_db)
):
    """The driver's trips, newest first."""
    trips = await TripService.list_trips(db, driver_id=current_user["user_id"])
    return [TripResponse.model_validate(t) for t in trips]


@router.get("/trips/active", response_model=Optional[TripResponse])
async def get_active_trip(
    current_user: dict = Depends(require_driver),
    db: AsyncSession = Depends(get_db)
):
    """The newest pending or in-progress trip, or null."""
    trip = await TripService.active_trip_for_driver(db, current_user["user_id"])
    return TripResponse.model_validate(trip) if trip else None


@router.get("/trips/pending", response_model=List[TripResponse])
async def list_pending_trips(
    current_user: dict = Depends(require_driver),
    db: AsyncSession = Depends(get_db)
):
    trips = await TripService.list_trips(db, driver_id=current_user["user_id"], status=TripStatus.PENDING)
    return [TripResponse.model_validate(t) for t in trips]


@router.get("/trips/history", response_model=TripHistoryResponse)
async def trip_history(
    month: str = Query(ALL_MONTHS, description="YYYY-MM or 'all'"),
    current_user: dict = Depends(require_driver),
    db: AsyncSession = Depends(get_db)
):
    """Completed trips grouped by month, optionally narrowed to one month."""
    trips = await TripService.list_trips(
        db, driver_id=current_user["user_id"], status=TripStatus.COMPLETED, order_by_start_time=True
    )

    try:
        selected = filter_trips_by_month(trips, month)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))

    groups = [
        MonthGroup(month=key, trips=[TripResponse.model_validate(t) for t in month_trips])
        for key, month_trips in group_trips_by_month(selected).items()
    ]
    return TripHistoryResponse(
        months=available_months(trips),
        selected_month=month,
        groups=groups,
        total=len(selected),
    )


@router.get("/trips/{trip_id}", response_model=TripResponse)
async def get_my_trip(
    trip_id: int = Path(..., description="Trip ID"),
    current_user: dict = Depends(require_driver),
    db: AsyncSession = Depends(get_db)
):
    trip = await get_own_trip(db, trip_id, current_user)
    return TripResponse.model_validate(trip)


@router.post("/trips/{trip_id}/start", response_model=TripResponse)
async def start_trip(
    trip_id: int = Path(..., description="Trip ID"),
    current_user: dict = Depends(require_driver),
    db: AsyncSession = Depends(get_db),
    redis=Depends(get_redis)
):
    """
    Start a pending trip.

    Stamps start_time; the driver goes on_trip and the vehicle in_use.
    """
    trip = await get_own_trip(db, trip_id, current_user)
    trip = await TripService.start_trip(db, trip, redis=redis)
    return TripResponse.model_validate(trip)


@router.post("/trips/{trip_id}/complete", response_model=TripResponse)
async def complete_trip(
    trip_id: int = Path(..., description="Trip ID"),
    current_user: dict = Depends(require_driver),
    db: AsyncSession = Depends(get_db),
    redis=Depends(get_redis)
):
    """
    Complete an in-progress trip.

    Stamps end_time; driver and vehicle become available.
    """
    trip = await get_own_trip(db, trip_id, current_user)
    trip = await TripService.complete_trip(db, trip, redis=redis)
    return TripResponse.model_validate(trip)


@router.post("/trips/{trip_id}/cancel", response_model=TripResponse)
async def cancel_trip(
    trip_id: int = Path(..., description="Trip ID"),
    current_user: dict = Depends(require_driver),
    db: AsyncSession = Depends(get_db),
    redis=Depends(get_redis)
):
    """Cancel a pending or in-progress trip; driver and vehicle become available."""
    trip = await get_own_trip(db, trip_id, current_user)
    trip = await TripService.cancel_trip(db, trip, redis=redis)
    return TripResponse.model_validate(trip)


@router.post("/trips/{trip_id}/location", response_model=LocationUpdateResponse)
async def record_location(
    trip_id: int = Path(..., description="Trip ID"),
    location: LocationUpdate = Body(...),
    current_user: dict = Depends(require_driver),
    db: AsyncSession = Depends(get_db),
    redis=Depends(get_redis)
):
    """
    Record the device's current position on an in-progress trip.

    Called once per geolocation sample; no batching.
    """
    trip = await get_own_trip(db, trip_id, current_user)
    trip = await TripService.record_location(db, trip, location.latitude, location.longitude, redis=redis)
    return LocationUpdateResponse(
        trip_id=trip.id,
        current_lat=trip.current_lat,
        current_lng=trip.current_lng,
        distance_travelled=trip.distance_travelled,
        updated_at=trip.updated_at,
    )
