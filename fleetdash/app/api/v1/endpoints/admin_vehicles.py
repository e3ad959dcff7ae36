"""
Admin Vehicle API Endpoints.

Fleet inventory management: add, list, edit and delete vehicles, and the
vehicle detail view with its trip history.
"""

from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, status, Path, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func

from fleetdash.app.db.session import get_db
from fleetdash.app.core.redis_client import get_redis
from fleetdash.app.core.guards import require_admin
from fleetdash.app.domain.trips.lifecycle import OPEN_STATUSES
from fleetdash.app.models.enums import ChangeEventType
from fleetdash.app.models.trip import Trip
from fleetdash.app.models.vehicle import Vehicle
from fleetdash.app.schemas.vehicle import VehicleCreate, VehicleUpdate, VehicleResponse
from fleetdash.app.schemas.trip import TripResponse
from fleetdash.app.schemas.dashboard import VehicleDetailResponse
from fleetdash.app.services import change_feed
from fleetdash.app.services.trip_history import summarize_trips
from fleetdash.app.services.trip_service import TripService

router = APIRouter(prefix="/admin/vehicles", tags=["Admin - Vehicles"])


async def get_vehicle_or_404(db: AsyncSession, vehicle_id: int) -> Vehicle:
    result = await db.execute(select(Vehicle).where(Vehicle.id == vehicle_id))
    vehicle = result.scalar_one_or_none()
    if not vehicle:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Vehicle not found"
        )
    return vehicle


async def ensure_plate_free(db: AsyncSession, license_plate: str, exclude_id: Optional[int] = None) -> None:
    query = select(Vehicle.id).where(Vehicle.license_plate == license_plate)
    if exclude_id is not None:
        query = query.where(Vehicle.id != exclude_id)
    if (await db.execute(query)).scalar_one_or_none() is not None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"License plate {license_plate} is already registered"
        )


@router.get("", response_model=List[VehicleResponse])
async def list_vehicles(
    admin: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """List all vehicles, newest first."""
    result = await db.execute(select(Vehicle).order_by(Vehicle.created_at.desc(), Vehicle.id.desc()))
    return [VehicleResponse.model_validate(v) for v in result.scalars().all()]


@router.post("", response_model=VehicleResponse, status_code=status.HTTP_201_CREATED)
async def create_vehicle(
    vehicle_data: VehicleCreate,
    admin: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
    redis=Depends(get_redis)
):
    """Add a vehicle to the fleet (status defaults to available)."""
    await ensure_plate_free(db, vehicle_data.license_plate)

    vehicle = Vehicle(**vehicle_data.model_dump())
    db.add(vehicle)
    await db.commit()
    await db.refresh(vehicle)

    response = VehicleResponse.model_validate(vehicle)
    await change_feed.publish_row(
        redis, change_feed.VEHICLES, ChangeEventType.INSERT, vehicle.id,
        new=response.model_dump(mode="json")
    )
    return response


@router.get("/{vehicle_id}", response_model=VehicleResponse)
async def get_vehicle(
    vehicle_id: int = Path(..., description="Vehicle ID"),
    admin: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    vehicle = await get_vehicle_or_404(db, vehicle_id)
    return VehicleResponse.model_validate(vehicle)


@router.patch("/{vehicle_id}", response_model=VehicleResponse)
async def update_vehicle(
    vehicle_id: int = Path(..., description="Vehicle ID"),
    vehicle_data: VehicleUpdate = ...,
    admin: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
    redis=Depends(get_redis)
):
    """
    Edit vehicle details.

    Status can be set directly here (e.g. maintenance); it is also
    mirrored by the trip lifecycle, and the last write wins. Fields sent
    as null are left unchanged.
    """
    vehicle = await get_vehicle_or_404(db, vehicle_id)

    update_data = vehicle_data.model_dump(exclude_unset=True, exclude_none=True)
    if "license_plate" in update_data:
        await ensure_plate_free(db, update_data["license_plate"], exclude_id=vehicle.id)

    for field, value in update_data.items():
        setattr(vehicle, field, value)

    await db.commit()
    await db.refresh(vehicle)

    response = VehicleResponse.model_validate(vehicle)
    await change_feed.publish_row(
        redis, change_feed.VEHICLES, ChangeEventType.UPDATE, vehicle.id,
        new=response.model_dump(mode="json")
    )
    return response


@router.delete("/{vehicle_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_vehicle(
    vehicle_id: int = Path(..., description="Vehicle ID"),
    admin: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
    redis=Depends(get_redis)
):
    """
    Delete a vehicle.

    Refused while the vehicle is on a pending or in-progress trip. Past
    trips keep their history with the vehicle reference cleared.
    """
    vehicle = await get_vehicle_or_404(db, vehicle_id)

    open_trips = (await db.execute(
        select(func.count(Trip.id)).where(
            Trip.vehicle_id == vehicle.id,
            Trip.status.in_(list(OPEN_STATUSES))
        )
    )).scalar() or 0
    if open_trips:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Vehicle {vehicle.id} has {open_trips} open trip(s)"
        )

    await db.delete(vehicle)
    await db.commit()

    await change_feed.publish_row(redis, change_feed.VEHICLES, ChangeEventType.DELETE, vehicle_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{vehicle_id}/trips", response_model=VehicleDetailResponse)
async def get_vehicle_detail(
    vehicle_id: int = Path(..., description="Vehicle ID"),
    month: str = Query("all", description="YYYY-MM or 'all'"),
    admin: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """Vehicle detail: the vehicle, its trips and a month-filtered view."""
    vehicle = await get_vehicle_or_404(db, vehicle_id)
    trips = await TripService.list_trips(db, vehicle_id=vehicle.id, order_by_start_time=True)

    try:
        summary = summarize_trips(trips, month, TripResponse.model_validate)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))

    return VehicleDetailResponse(vehicle=VehicleResponse.model_validate(vehicle), **summary)
