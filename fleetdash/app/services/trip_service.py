"""
Trip Service.

Assignment, lifecycle moves and live location for trips. Every move writes
the trip row and mirrors the driver and vehicle status in one commit, then
publishes the changed rows on the change feed.
"""

import logging
from typing import List, Optional

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from fleetdash.app.core.exceptions import ConflictError, ResourceNotFoundError
from fleetdash.app.db.session import utcnow
from fleetdash.app.domain.trips import lifecycle
from fleetdash.app.models.enums import ChangeEventType, TripStatus, UserRole, VehicleStatus
from fleetdash.app.models.trip import Trip
from fleetdash.app.models.user import User
from fleetdash.app.models.vehicle import Vehicle
from fleetdash.app.schemas.auth import UserResponse
from fleetdash.app.schemas.trip import TripAssign, TripResponse
from fleetdash.app.schemas.vehicle import VehicleResponse
from fleetdash.app.services import change_feed
from fleetdash.app.services.geo import haversine_km

logger = logging.getLogger("fleetdash.trips")


class TripService:

    # --- Reads ---

    @staticmethod
    def _trip_query():
        return select(Trip).options(
            selectinload(Trip.driver),
            selectinload(Trip.vehicle),
        ).execution_options(populate_existing=True)

    @staticmethod
    async def load_trip(db: AsyncSession, trip_id: int) -> Optional[Trip]:
        """Fetch a trip with its driver and vehicle freshly loaded."""
        result = await db.execute(TripService._trip_query().where(Trip.id == trip_id))
        return result.scalar_one_or_none()

    @staticmethod
    async def get_trip_or_404(db: AsyncSession, trip_id: int) -> Trip:
        trip = await TripService.load_trip(db, trip_id)
        if trip is None:
            raise ResourceNotFoundError("Trip", trip_id)
        return trip

    @staticmethod
    async def list_trips(
        db: AsyncSession,
        status: Optional[TripStatus] = None,
        driver_id: Optional[int] = None,
        vehicle_id: Optional[int] = None,
        order_by_start_time: bool = False,
        limit: Optional[int] = None,
    ) -> List[Trip]:
        """
        List trips, newest first.

        Ordered by creation time unless `order_by_start_time` is set, in
        which case trips are ordered by start time (unstarted trips last).
        """
        query = TripService._trip_query()
        if status is not None:
            query = query.where(Trip.status == status)
        if driver_id is not None:
            query = query.where(Trip.driver_id == driver_id)
        if vehicle_id is not None:
            query = query.where(Trip.vehicle_id == vehicle_id)

        if order_by_start_time:
            query = query.order_by(Trip.start_time.desc().nulls_last(), Trip.created_at.desc(), Trip.id.desc())
        else:
            query = query.order_by(Trip.created_at.desc(), Trip.id.desc())

        if limit is not None:
            query = query.limit(limit)

        result = await db.execute(query)
        return list(result.scalars().all())

    @staticmethod
    async def active_trip_for_driver(db: AsyncSession, driver_id: int) -> Optional[Trip]:
        """Newest pending or in-progress trip of a driver."""
        result = await db.execute(
            TripService._trip_query().where(
                Trip.driver_id == driver_id,
                Trip.status.in_(list(lifecycle.OPEN_STATUSES)),
            ).order_by(Trip.created_at.desc(), Trip.id.desc()).limit(1)
        )
        return result.scalar_one_or_none()

    @staticmethod
    async def count_driver_in_progress_trips(
        db: AsyncSession, driver_id: int, exclude_trip_id: Optional[int] = None
    ) -> int:
        query = select(func.count(Trip.id)).where(
            Trip.driver_id == driver_id,
            Trip.status == TripStatus.IN_PROGRESS,
        )
        if exclude_trip_id is not None:
            query = query.where(Trip.id != exclude_trip_id)
        result = await db.execute(query)
        return result.scalar() or 0

    # --- Writes ---

    @staticmethod
    async def sync_driver_status(db: AsyncSession, driver: User) -> None:
        """Set the driver's status from their open trips (caller flushes first and commits)."""
        result = await db.execute(
            select(Trip.status).where(
                Trip.driver_id == driver.id,
                Trip.status.in_(list(lifecycle.OPEN_STATUSES)),
            )
        )
        driver.status = lifecycle.driver_status_for(result.scalars().all())

    @staticmethod
    async def assign_trip(db: AsyncSession, data: TripAssign, redis=None) -> Trip:
        """
        Create a pending trip for a driver and an available vehicle.

        Raises:
            ResourceNotFoundError: Unknown driver or vehicle
            ConflictError: User is not a driver, or vehicle is not available
        """
        driver = (await db.execute(select(User).where(User.id == data.driver_id))).scalar_one_or_none()
        if driver is None:
            raise ResourceNotFoundError("Driver", data.driver_id)
        if driver.role != UserRole.DRIVER:
            raise ConflictError("Trips can only be assigned to drivers", {"user_id": driver.id})

        vehicle = (await db.execute(select(Vehicle).where(Vehicle.id == data.vehicle_id))).scalar_one_or_none()
        if vehicle is None:
            raise ResourceNotFoundError("Vehicle", data.vehicle_id)
        if vehicle.status != VehicleStatus.AVAILABLE:
            raise ConflictError(
                f"Vehicle {vehicle.id} is not available (status: {vehicle.status.value})",
                {"vehicle_id": vehicle.id, "status": vehicle.status.value},
            )

        trip = Trip(
            driver_id=driver.id,
            vehicle_id=vehicle.id,
            start_location=data.start_location,
            end_location=data.end_location,
            distance=data.distance,
            estimated_duration=data.estimated_duration,
            status=TripStatus.PENDING,
        )
        db.add(trip)

        _, vehicle_status = lifecycle.side_effects(TripStatus.PENDING)
        vehicle.status = vehicle_status
        await db.flush()
        await TripService.sync_driver_status(db, driver)

        await db.commit()
        trip = await TripService.load_trip(db, trip.id)

        logger.info("Trip assigned", extra={"trip_id": trip.id, "driver_id": driver.id, "vehicle_id": vehicle.id})
        await TripService.publish(redis, trip, ChangeEventType.INSERT)
        return trip

    @staticmethod
    async def start_trip(db: AsyncSession, trip: Trip, redis=None) -> Trip:
        """
        Move a pending trip to in_progress.

        Raises:
            ConflictError: Driver already has another in-progress trip
        """
        lifecycle.ensure_transition(trip.status, TripStatus.IN_PROGRESS)
        if trip.driver_id is not None:
            in_progress = await TripService.count_driver_in_progress_trips(db, trip.driver_id, exclude_trip_id=trip.id)
            if in_progress > 0:
                raise ConflictError(
                    "Driver already has an in-progress trip. Complete it before starting another.",
                    {"driver_id": trip.driver_id},
                )
        return await TripService._transition(db, trip, TripStatus.IN_PROGRESS, redis)

    @staticmethod
    async def complete_trip(db: AsyncSession, trip: Trip, redis=None) -> Trip:
        return await TripService._transition(db, trip, TripStatus.COMPLETED, redis)

    @staticmethod
    async def cancel_trip(db: AsyncSession, trip: Trip, redis=None) -> Trip:
        return await TripService._transition(db, trip, TripStatus.CANCELLED, redis)

    @staticmethod
    async def _transition(db: AsyncSession, trip: Trip, target: TripStatus, redis=None) -> Trip:
        previous = trip.status
        lifecycle.ensure_transition(previous, target)

        now = utcnow()
        trip.status = target
        if target == TripStatus.IN_PROGRESS:
            trip.start_time = now
        else:
            trip.end_time = now

        _, vehicle_status = lifecycle.side_effects(target)
        if trip.vehicle is not None and vehicle_status is not None:
            trip.vehicle.status = vehicle_status
        await db.flush()
        if trip.driver is not None:
            await TripService.sync_driver_status(db, trip.driver)

        await db.commit()
        trip = await TripService.load_trip(db, trip.id)

        logger.info(
            "Trip status changed",
            extra={"trip_id": trip.id, "from_status": previous.value, "to_status": target.value},
        )
        await TripService.publish(redis, trip, ChangeEventType.UPDATE)
        return trip

    @staticmethod
    async def record_location(db: AsyncSession, trip: Trip, latitude: float, longitude: float, redis=None) -> Trip:
        """
        Store the driver's current position on an in-progress trip.

        The haversine distance from the previous position is added to
        `distance_travelled`.

        Raises:
            ConflictError: Trip is not in progress
        """
        if trip.status != TripStatus.IN_PROGRESS:
            raise ConflictError(
                f"Can only record location for in_progress trip, current status: {trip.status.value}",
                {"trip_id": trip.id, "status": trip.status.value},
            )

        if trip.current_lat is not None and trip.current_lng is not None:
            trip.distance_travelled = (trip.distance_travelled or 0) + haversine_km(
                trip.current_lat, trip.current_lng, latitude, longitude
            )
        trip.current_lat = latitude
        trip.current_lng = longitude
        trip.updated_at = utcnow()

        await db.commit()
        trip = await TripService.load_trip(db, trip.id)
        await TripService.publish(redis, trip, ChangeEventType.UPDATE, include_related=False)
        return trip

    # --- Change feed ---

    @staticmethod
    async def publish(redis, trip: Trip, event: ChangeEventType, include_related: bool = True) -> None:
        """Publish the trip row and, optionally, its mirrored driver and vehicle rows."""
        if redis is None:
            return

        await change_feed.publish_row(
            redis, change_feed.TRIPS, event, trip.id,
            new=TripResponse.model_validate(trip).model_dump(mode="json"),
            driver_id=trip.driver_id,
        )
        if not include_related:
            return
        if trip.driver is not None:
            await change_feed.publish_row(
                redis, change_feed.USERS, ChangeEventType.UPDATE, trip.driver.id,
                new=UserResponse.model_validate(trip.driver).model_dump(mode="json"),
                driver_id=trip.driver.id,
            )
        if trip.vehicle is not None:
            await change_feed.publish_row(
                redis, change_feed.VEHICLES, ChangeEventType.UPDATE, trip.vehicle.id,
                new=VehicleResponse.model_validate(trip.vehicle).model_dump(mode="json"),
                driver_id=trip.driver_id,
            )
