"""
Vehicle database model.

Managers register vehicles; the trip lifecycle flips ``status`` between
available and in_use on assignment and trip completion.
"""

from sqlalchemy import Column, Integer, String, Text, DateTime, Enum
from sqlalchemy.sql import func
from fleetdesk.app.db.session import Base
from fleetdesk.app.models.enums import VehicleStatus


class Vehicle(Base):
    """
    Fleet vehicle.

    ``status == in_use`` iff the vehicle is bound to exactly one request
    whose trip has not completed.
    """
    __tablename__ = "vehicles"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    name = Column(String(100), nullable=False, index=True)
    number_plate = Column(String(50), unique=True, nullable=False, index=True)
    description = Column(Text, nullable=True)

    status = Column(
        Enum(VehicleStatus, values_callable=lambda e: [m.value for m in e]),
        default=VehicleStatus.AVAILABLE,
        nullable=False,
        index=True,
    )

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    def __repr__(self):
        return f"<Vehicle(id={self.id}, plate='{self.number_plate}', status='{self.status.value}')>"
