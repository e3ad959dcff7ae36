"""
User profile database model.

The profile row shares its primary key with the auth account it belongs to.
"""

from sqlalchemy import Column, Integer, String, DateTime, Enum, ForeignKey
from sqlalchemy.sql import func
from fleetdash.app.db.session import Base, utcnow
from fleetdash.app.models.enums import UserRole, DriverStatus, enum_values


class User(Base):
    """
    User profile for admins and drivers.

    `status` is mirrored from the trip lifecycle and can also be set
    directly by an admin.
    """
    __tablename__ = "users"

    id = Column(Integer, ForeignKey("auth_accounts.id", ondelete="CASCADE"), primary_key=True, index=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    name = Column(String(255), nullable=False)

    role = Column(
        Enum(UserRole, name="user_role", values_callable=enum_values),
        default=UserRole.DRIVER,
        nullable=False,
        index=True,
    )
    status = Column(
        Enum(DriverStatus, name="driver_status", values_callable=enum_values),
        default=DriverStatus.AVAILABLE,
        nullable=False,
    )

    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<User(id={self.id}, email='{self.email}', role='{self.role.value}')>"
