"""
Trip request schemas.

Typed views of the request joins the lifecycle endpoints return.
"""

from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime
from typing import Optional, List
from fleetdesk.app.models.enums import ApprovalStatus
from fleetdesk.app.models.trip_enums import TripStatus
from fleetdesk.app.schemas.vehicle import VehicleBrief


class TripRequestCreate(BaseModel):
    """Employee's ask to travel."""
    destination: str = Field(..., min_length=1, max_length=255)
    purpose: str = Field(..., min_length=1)
    expected_time: datetime = Field(..., description="When the employee expects to leave")


class RejectRequest(BaseModel):
    """Rejection needs a reason; blank reasons are refused by the coordinator."""
    reason: str = Field("", description="Shown to the employee")


class AssignVehicleRequest(BaseModel):
    vehicle_id: int = Field(..., description="Vehicle currently available")


class EmployeeBrief(BaseModel):
    """Profile fields embedded in request and trip views."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    full_name: str
    email: str
    phone: Optional[str] = None


class TripSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    status: TripStatus


class TripRequestResponse(BaseModel):
    """Request with its employee, vehicle and trip (if any)."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    employee_id: int
    vehicle_id: Optional[int]
    destination: str
    purpose: str
    expected_time: datetime
    approval_status: ApprovalStatus
    approved_by: Optional[int]
    approved_at: Optional[datetime]
    rejection_reason: Optional[str]
    created_at: datetime
    employee: Optional[EmployeeBrief] = None
    vehicle: Optional[VehicleBrief] = None
    trip: Optional[TripSummary] = None


class TripRequestListResponse(BaseModel):
    requests: List[TripRequestResponse]
    total: int
