"""
Trip request database model.

Employees create requests; managers approve or reject them and then bind a
vehicle to approved ones.
"""

from sqlalchemy import Column, Integer, String, Text, ForeignKey, DateTime, Enum
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from fleetdesk.app.db.session import Base
from fleetdesk.app.models.enums import ApprovalStatus


class TripRequest(Base):
    """
    Trip request.

    Lifecycle: pending -> approved -> assigned, or pending -> rejected.
    """
    __tablename__ = "trip_requests"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    employee_id = Column(Integer, ForeignKey("profiles.id"), nullable=False, index=True)
    vehicle_id = Column(Integer, ForeignKey("vehicles.id"), nullable=True, index=True)

    destination = Column(String(255), nullable=False)
    purpose = Column(Text, nullable=False)
    expected_time = Column(DateTime(timezone=True), nullable=False)

    approval_status = Column(
        Enum(ApprovalStatus, values_callable=lambda e: [m.value for m in e]),
        default=ApprovalStatus.PENDING,
        nullable=False,
        index=True,
    )
    approved_by = Column(Integer, ForeignKey("profiles.id"), nullable=True)
    approved_at = Column(DateTime(timezone=True), nullable=True)
    rejection_reason = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    employee = relationship("Profile", foreign_keys=[employee_id], lazy="selectin")
    vehicle = relationship("Vehicle", lazy="selectin")
    trip = relationship("Trip", back_populates="request", uselist=False, lazy="selectin")

    def __repr__(self):
        return f"<TripRequest(id={self.id}, employee_id={self.employee_id}, status='{self.approval_status.value}')>"
