"""
Loads report rows from the database.

Joins trips with vehicle, employee profile and request and flattens them into
TripReportRow so the report functions never see ORM objects.
"""

from datetime import datetime
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from fleetdesk.app.models.trip import Trip
from fleetdesk.app.schemas.report import TripReportRow
from fleetdesk.app.services.report_generator import UNASSIGNED_VEHICLE


def to_report_row(trip: Trip) -> TripReportRow:
    vehicle = trip.vehicle
    employee = trip.employee
    request = trip.request
    return TripReportRow(
        id=trip.id,
        vehicle_name=vehicle.name if vehicle else UNASSIGNED_VEHICLE,
        vehicle_number_plate=vehicle.number_plate if vehicle else "-",
        employee_name=employee.full_name if employee else "Unknown",
        employee_email=employee.email if employee else "-",
        purpose=request.purpose if request else "-",
        destination=request.destination if request else "-",
        start_time=trip.start_time,
        end_time=trip.end_time,
        distance=trip.distance,
        status=trip.status.value,
        approval_status=request.approval_status.value if request else "pending",
        start_reading=trip.start_reading,
        end_reading=trip.end_reading,
        approved_by=request.approved_by if request else None,
        approved_at=request.approved_at if request else None,
        rejection_reason=request.rejection_reason if request else None,
        created_at=trip.created_at,
    )


class ReportDataService:

    @staticmethod
    async def load_rows(
        db: AsyncSession,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> List[TripReportRow]:
        """Trips whose start_time falls inside [start, end], newest first."""
        query = select(Trip)
        if start is not None:
            query = query.where(Trip.start_time >= start)
        if end is not None:
            query = query.where(Trip.start_time <= end)
        query = query.order_by(Trip.start_time.desc(), Trip.id.desc())

        result = await db.execute(query)
        return [to_report_row(trip) for trip in result.scalars().all()]
