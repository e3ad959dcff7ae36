"""
Enumerations for the fleet dashboard.

Stored values are the lowercase strings the dashboard clients send and
display.
"""

import enum


class UserRole(str, enum.Enum):
    """
    User role enumeration.

    Roles:
        ADMIN: Assigns trips and manages fleet inventory
        DRIVER: Executes assigned trips (default role)
    """
    ADMIN = "admin"
    DRIVER = "driver"


class DriverStatus(str, enum.Enum):
    """Availability of a user profile, mirrored from the trip lifecycle."""
    AVAILABLE = "available"
    ASSIGNED = "assigned"  # Has a pending trip
    ON_TRIP = "on_trip"  # Has an in-progress trip
    OFFLINE = "offline"
    BUSY = "busy"


class VehicleStatus(str, enum.Enum):
    """Vehicle status enumeration."""
    AVAILABLE = "available"
    IN_USE = "in_use"
    MAINTENANCE = "maintenance"


class TripStatus(str, enum.Enum):
    """Trip status enumeration."""
    PENDING = "pending"  # Assigned, not started
    IN_PROGRESS = "in_progress"  # Driver has started
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class ChangeEventType(str, enum.Enum):
    """Row change kinds published on the change feed."""
    INSERT = "INSERT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


def enum_values(enum_cls):
    """Persist enum values (not member names) in SQLAlchemy Enum columns."""
    return [member.value for member in enum_cls]
