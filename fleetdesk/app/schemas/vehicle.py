"""
Vehicle Pydantic schemas.

Defines request and response models for vehicle management.
"""

from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime
from typing import Optional, List
from fleetdesk.app.models.enums import VehicleStatus


class VehicleCreate(BaseModel):
    """Schema for registering a new vehicle."""
    name: str = Field(..., min_length=1, max_length=100, description="Display name, e.g. 'Toyota Innova'")
    number_plate: str = Field(..., min_length=1, max_length=50, description="Unique registration plate")
    description: Optional[str] = Field(None, description="Free-text notes")
    status: VehicleStatus = Field(VehicleStatus.AVAILABLE, description="available or maintenance")


class VehicleUpdate(BaseModel):
    """Schema for updating an existing vehicle."""
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    number_plate: Optional[str] = Field(None, min_length=1, max_length=50)
    description: Optional[str] = None
    status: Optional[VehicleStatus] = None


class VehicleResponse(BaseModel):
    """Schema for vehicle response."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    number_plate: str
    description: Optional[str]
    status: VehicleStatus
    created_at: datetime
    updated_at: datetime


class VehicleBrief(BaseModel):
    """Vehicle fields embedded in request and trip views."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    number_plate: str


class VehicleListResponse(BaseModel):
    vehicles: List[VehicleResponse]
    total: int
