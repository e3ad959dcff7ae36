"""
Trip database model.

Trips are created by an admin assignment and moved through their
lifecycle by the assigned driver.
"""

from sqlalchemy import Column, Integer, String, Float, ForeignKey, DateTime, Enum
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from fleetdash.app.db.session import Base, utcnow
from fleetdash.app.models.enums import TripStatus, enum_values


class Trip(Base):
    """
    Trip model.

    `distance` is the admin's estimate in km; `distance_travelled` is
    accumulated from the driver's GPS samples. Driver and vehicle are
    loaded eagerly because every trip view shows them.
    """
    __tablename__ = "trips"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    # Assignment (kept as history when the driver or vehicle is deleted)
    driver_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    vehicle_id = Column(Integer, ForeignKey("vehicles.id", ondelete="SET NULL"), nullable=True, index=True)

    # Route
    start_location = Column(String(255), nullable=False)
    end_location = Column(String(255), nullable=False)
    distance = Column(Float, default=0, nullable=False)
    estimated_duration = Column(Integer, default=0, nullable=False)  # minutes

    # Status
    status = Column(
        Enum(TripStatus, name="trip_status", values_callable=enum_values),
        default=TripStatus.PENDING,
        nullable=False,
        index=True,
    )

    # Live position
    current_lat = Column(Float, nullable=True)
    current_lng = Column(Float, nullable=True)
    distance_travelled = Column(Float, default=0, nullable=False)

    # Timestamps
    start_time = Column(DateTime(timezone=True), nullable=True)
    end_time = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, server_default=func.now(), nullable=False)

    driver = relationship("User", lazy="selectin")
    vehicle = relationship("Vehicle", lazy="selectin")

    def __repr__(self):
        return f"<Trip(id={self.id}, driver_id={self.driver_id}, status='{self.status.value}')>"
