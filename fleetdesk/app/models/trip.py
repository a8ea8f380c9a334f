"""
Trip database model.

A trip is the tracked execution of an assigned request, bounded by start and
end evidence (odometer reading, meter photo, GPS fix).
"""

from sqlalchemy import Column, Integer, Float, String, ForeignKey, DateTime, Enum
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from fleetdesk.app.db.session import Base
from fleetdesk.app.models.trip_enums import TripStatus


class Trip(Base):
    """
    Trip model.

    At most one trip per request (unique ``request_id``). Completion is terminal.
    """
    __tablename__ = "trips"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    request_id = Column(Integer, ForeignKey("trip_requests.id"), nullable=False, unique=True, index=True)
    employee_id = Column(Integer, ForeignKey("profiles.id"), nullable=False, index=True)
    vehicle_id = Column(Integer, ForeignKey("vehicles.id"), nullable=False, index=True)

    status = Column(
        Enum(TripStatus, values_callable=lambda e: [m.value for m in e]),
        default=TripStatus.ACTIVE,
        nullable=False,
        index=True,
    )

    # Start evidence
    start_time = Column(DateTime(timezone=True), nullable=False, index=True)
    start_reading = Column(Float, nullable=False)
    start_meter_photo = Column(String(1024), nullable=False)
    start_location_lat = Column(Float, nullable=False)
    start_location_lng = Column(Float, nullable=False)

    # End evidence
    end_time = Column(DateTime(timezone=True), nullable=True)
    end_reading = Column(Float, nullable=True)
    end_meter_photo = Column(String(1024), nullable=True)
    end_location_lat = Column(Float, nullable=True)
    end_location_lng = Column(Float, nullable=True)

    distance = Column(Float, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    request = relationship("TripRequest", back_populates="trip", lazy="selectin")
    employee = relationship("Profile", lazy="selectin")
    vehicle = relationship("Vehicle", lazy="selectin")

    def __repr__(self):
        return f"<Trip(id={self.id}, request_id={self.request_id}, status='{self.status.value}')>"
