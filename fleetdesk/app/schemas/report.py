"""
Report schemas.

TripReportRow is the flat, typed shape every report function consumes;
the endpoint builds it from the trip/vehicle/profile/request join.
"""

from pydantic import BaseModel
from typing import List, Optional
from datetime import datetime


class TripReportRow(BaseModel):
    id: int
    vehicle_name: str
    vehicle_number_plate: str
    employee_name: str
    employee_email: str
    purpose: str
    destination: str
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    distance: Optional[float] = None
    status: str
    approval_status: str
    start_reading: Optional[float] = None
    end_reading: Optional[float] = None
    approved_by: Optional[int] = None
    approved_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None
    created_at: Optional[datetime] = None


class WeeklyReportSummary(BaseModel):
    week_start: datetime
    week_end: datetime
    total_trips: int
    completed_trips: int
    active_trips: int
    pending_trips: int
    approved_trips: int
    rejected_trips: int
    total_distance: float
    avg_distance_per_trip: float
    total_vehicles: int
    total_employees: int
    avg_trips_per_vehicle: float
    avg_trips_per_employee: float


class VehicleUtilization(BaseModel):
    vehicle_name: str
    vehicle_number: str
    total_trips: int
    total_distance: float
    avg_distance: float
    utilization_days: int
    utilization_percentage: float


class EmployeeActivity(BaseModel):
    employee_name: str
    employee_email: str
    total_trips: int
    completed_trips: int
    total_distance: float
    avg_distance_per_trip: float


class WeekOption(BaseModel):
    value: int
    label: str
    start: datetime
    end: datetime


class WeeklyReportResponse(BaseModel):
    summary: WeeklyReportSummary
    vehicle_utilization: List[VehicleUtilization]
    employee_activity: List[EmployeeActivity]
    filter_label: Optional[str] = None


class FleetOverview(BaseModel):
    """All-time completed-trip totals."""
    total_trips: int
    total_distance: float
    active_employees: int
    most_used_vehicle: str
