"""
API v1 Router.

Aggregates all v1 API endpoints.
"""

from fastapi import APIRouter
from fleetdash.app.api.v1.endpoints import (
    auth, admin_vehicles, admin_drivers, admin_trips,
    driver_trips, realtime
)

router = APIRouter()

# Authentication
router.include_router(auth.router)

# Admin dashboard
router.include_router(admin_vehicles.router)
router.include_router(admin_drivers.router)
router.include_router(admin_trips.router)

# Driver dashboard
router.include_router(driver_trips.router)

# Change feed
router.include_router(realtime.router)
