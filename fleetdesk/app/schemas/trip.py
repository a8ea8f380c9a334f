"""
Trip schemas.

Start/end payloads arrive as multipart forms (photo + fields); the
coordinator receives them as TripEvidence.
"""

from dataclasses import dataclass
from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime
from typing import Optional, List
from fleetdesk.app.models.trip_enums import TripStatus
from fleetdesk.app.schemas.trip_request import EmployeeBrief
from fleetdesk.app.schemas.vehicle import VehicleBrief


class GeoPoint(BaseModel):
    """GPS fix captured by the client when the trip starts or ends."""
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)


@dataclass
class MeterPhoto:
    """Raw odometer photo as uploaded, before compression."""
    filename: str
    content_type: str
    data: bytes


@dataclass
class TripEvidence:
    """Reading, photo and location required to start or end a trip."""
    reading: float
    photo: MeterPhoto
    location: GeoPoint


class RequestBrief(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    destination: str
    purpose: str


class TripResponse(BaseModel):
    """Trip with start/end evidence."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    request_id: int
    employee_id: int
    vehicle_id: int
    status: TripStatus
    start_time: datetime
    start_reading: float
    start_meter_photo: str
    start_location_lat: float
    start_location_lng: float
    end_time: Optional[datetime] = None
    end_reading: Optional[float] = None
    end_meter_photo: Optional[str] = None
    end_location_lat: Optional[float] = None
    end_location_lng: Optional[float] = None
    distance: Optional[float] = None


class ActiveTripResponse(TripResponse):
    """Trip joined with employee, vehicle and request for the manager view."""
    employee: Optional[EmployeeBrief] = None
    vehicle: Optional[VehicleBrief] = None
    request: Optional[RequestBrief] = None


class ActiveTripListResponse(BaseModel):
    trips: List[ActiveTripResponse]
    total: int
