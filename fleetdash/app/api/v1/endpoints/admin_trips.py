"""
Admin Trip API Endpoints.

Trip assignment, the trip tables, the live map feed and the dashboard
headline numbers.
"""

from typing import List, Optional
from fastapi import APIRouter, Depends, status, Path, Query
from sqlalchemy.ext.asyncio import AsyncSession

from fleetdash.app.db.session import get_db
from fleetdash.app.core.config import settings
from fleetdash.app.core.redis_client import get_redis
from fleetdash.app.core.guards import require_admin
from fleetdash.app.models.enums import TripStatus
from fleetdash.app.schemas.trip import TripAssign, TripResponse, LiveTripMarker
from fleetdash.app.schemas.dashboard import DashboardStats
from fleetdash.app.services.trip_service import TripService
from fleetdash.app.services.dashboard_stats import DashboardService

router = APIRouter(prefix="/admin", tags=["Admin - Trips"])


def to_marker(trip) -> LiveTripMarker:
    """Project an in-progress trip onto a live map marker."""
    vehicle_label = None
    if trip.vehicle is not None:
        vehicle_label = f"{trip.vehicle.make} {trip.vehicle.model} ({trip.vehicle.license_plate})"
    has_position = trip.current_lat is not None and trip.current_lng is not None
    return LiveTripMarker(
        trip_id=trip.id,
        driver_id=trip.driver_id,
        driver_name=trip.driver.name if trip.driver is not None else None,
        vehicle_label=vehicle_label,
        start_location=trip.start_location,
        end_location=trip.end_location,
        start_time=trip.start_time,
        latitude=trip.current_lat,
        longitude=trip.current_lng,
        has_position=has_position,
    )


@router.get("/trips", response_model=List[TripResponse])
async def list_trips(
    status_filter: Optional[TripStatus] = Query(None, alias="status", description="Filter by trip status"),
    admin: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """All trips with driver and vehicle, newest first."""
    trips = await TripService.list_trips(db, status=status_filter)
    return [TripResponse.model_validate(t) for t in trips]


@router.post("/trips", response_model=TripResponse, status_code=status.HTTP_201_CREATED)
async def assign_trip(
    trip_data: TripAssign,
    admin: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
    redis=Depends(get_redis)
):
    """
    Assign a new trip.

    The vehicle must be available. The trip starts out pending; the
    driver becomes assigned and the vehicle in use.
    """
    trip = await TripService.assign_trip(db, trip_data, redis=redis)
    return TripResponse.model_validate(trip)


@router.get("/trips/recent", response_model=List[TripResponse])
async def recent_trips(
    admin: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """Latest trips for the dashboard's recent-trips card."""
    trips = await TripService.list_trips(db, limit=settings.recent_trips_limit)
    return [TripResponse.model_validate(t) for t in trips]


@router.get("/trips/live", response_model=List[LiveTripMarker])
async def live_trips(
    admin: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """In-progress trips with their last known positions, for the live map."""
    trips = await TripService.list_trips(db, status=TripStatus.IN_PROGRESS)
    return [to_marker(t) for t in trips]


@router.get("/trips/{trip_id}", response_model=TripResponse)
async def get_trip(
    trip_id: int = Path(..., description="Trip ID"),
    admin: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    trip = await TripService.get_trip_or_404(db, trip_id)
    return TripResponse.model_validate(trip)


@router.post("/trips/{trip_id}/cancel", response_model=TripResponse)
async def cancel_trip(
    trip_id: int = Path(..., description="Trip ID"),
    admin: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
    redis=Depends(get_redis)
):
    """Cancel a pending or in-progress trip and free its vehicle."""
    trip = await TripService.get_trip_or_404(db, trip_id)
    trip = await TripService.cancel_trip(db, trip, redis=redis)
    return TripResponse.model_validate(trip)


@router.get("/dashboard/stats", response_model=DashboardStats)
async def dashboard_stats(
    admin: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """Headline numbers for the admin dashboard."""
    return await DashboardService.get_stats(db)
