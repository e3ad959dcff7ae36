"""
Dashboard Stats Service.

Aggregates the admin dashboard headline numbers. The computation is a
pure function of the trip, vehicle and user lists the dashboard already
holds; the async wrapper just loads those lists.
"""

from typing import Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from fleetdash.app.models.enums import DriverStatus, TripStatus, UserRole, VehicleStatus
from fleetdash.app.models.trip import Trip
from fleetdash.app.models.user import User
from fleetdash.app.models.vehicle import Vehicle
from fleetdash.app.schemas.dashboard import DashboardStats


def compute_dashboard_stats(trips: Sequence, vehicles: Sequence, users: Sequence) -> DashboardStats:
    available_vehicles = sum(1 for v in vehicles if v.status == VehicleStatus.AVAILABLE)
    return DashboardStats(
        total_trips=len(trips),
        completed_trips=sum(1 for t in trips if t.status == TripStatus.COMPLETED),
        active_trips=sum(1 for t in trips if t.status == TripStatus.IN_PROGRESS),
        total_distance=float(sum(t.distance or 0 for t in trips)),
        total_vehicles=len(vehicles),
        available_vehicles=available_vehicles,
        unavailable_vehicles=len(vehicles) - available_vehicles,
        total_drivers=sum(1 for u in users if u.role == UserRole.DRIVER),
        available_drivers=sum(1 for u in users if u.status == DriverStatus.AVAILABLE),
        active_drivers=sum(1 for u in users if u.status == DriverStatus.ON_TRIP),
    )


class DashboardService:

    @staticmethod
    async def get_stats(db: AsyncSession) -> DashboardStats:
        """Load every trip, vehicle and user and compute the dashboard numbers."""
        trips = (await db.execute(select(Trip))).scalars().all()
        vehicles = (await db.execute(select(Vehicle))).scalars().all()
        users = (await db.execute(select(User))).scalars().all()
        return compute_dashboard_stats(trips, vehicles, users)
