"""
Report API Endpoints.

Weekly trip reports and the Excel download for vehicle managers and admins.
"""

from typing import Optional, List, Tuple
from urllib.parse import quote

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession

from fleetdesk.app.db.session import get_db
from fleetdesk.app.core.guards import require_role
from fleetdesk.app.core.roles import MANAGER_ROLES
from fleetdesk.app.schemas.report import WeekOption, WeeklyReportResponse, FleetOverview
from fleetdesk.app.services import report_generator
from fleetdesk.app.services.report_data import ReportDataService

router = APIRouter(prefix="/reports", tags=["Reports"])

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def _report_filter(vehicle_name: Optional[str], employee_name: Optional[str]) -> Tuple[str, Optional[str]]:
    """(report_type, filter_name) for the export header and file name."""
    if vehicle_name:
        return "vehicle", vehicle_name
    if employee_name:
        return "employee", employee_name
    return "all", None


def _content_disposition(filename: str) -> str:
    """ASCII fallback plus the RFC 5987 UTF-8 name; headers must be latin-1."""
    fallback = filename.encode("ascii", "replace").decode("ascii").replace("?", "_").replace('"', "")
    return f"attachment; filename=\"{fallback}\"; filename*=UTF-8''{quote(filename)}"


@router.get("/weeks", response_model=List[WeekOption])
async def list_report_weeks(
    current_user: dict = Depends(require_role(MANAGER_ROLES))
):
    """The current and previous 11 weeks, newest first."""
    return report_generator.available_weeks()


@router.get("/weekly", response_model=WeeklyReportResponse)
async def get_weekly_report(
    weeks_ago: int = Query(0, ge=0, le=52, description="0 = current week"),
    vehicle_name: Optional[str] = Query(None),
    employee_name: Optional[str] = Query(None),
    current_user: dict = Depends(require_role(MANAGER_ROLES)),
    db: AsyncSession = Depends(get_db)
):
    """
    Summary, vehicle utilization and employee activity for one week.
    """
    week_start, week_end = report_generator.get_week_range(weeks_ago)
    rows = await ReportDataService.load_rows(db, week_start, week_end)
    rows = report_generator.filter_rows(rows, vehicle_name, employee_name)

    report_type, filter_name = _report_filter(vehicle_name, employee_name)
    filter_label = None
    if filter_name:
        filter_label = f"{report_type.capitalize()}: {filter_name}"

    return WeeklyReportResponse(
        summary=report_generator.generate_summary(rows, week_start, week_end),
        vehicle_utilization=report_generator.vehicle_utilization(rows),
        employee_activity=report_generator.employee_activity(rows),
        filter_label=filter_label,
    )


@router.get("/weekly/export")
async def export_weekly_report(
    weeks_ago: int = Query(0, ge=0, le=52, description="0 = current week"),
    vehicle_name: Optional[str] = Query(None),
    employee_name: Optional[str] = Query(None),
    current_user: dict = Depends(require_role(MANAGER_ROLES)),
    db: AsyncSession = Depends(get_db)
):
    """
    Download the week's trips as an .xlsx workbook.
    """
    week_start, week_end = report_generator.get_week_range(weeks_ago)
    rows = await ReportDataService.load_rows(db, week_start, week_end)
    rows = report_generator.filter_rows(rows, vehicle_name, employee_name)

    report_type, filter_name = _report_filter(vehicle_name, employee_name)
    filename, content = report_generator.export_weekly_report(
        rows, week_start, week_end, report_type=report_type, filter_name=filter_name
    )

    return Response(
        content=content,
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": _content_disposition(filename)},
    )


@router.get("/overview", response_model=FleetOverview)
async def get_fleet_overview(
    current_user: dict = Depends(require_role(MANAGER_ROLES)),
    db: AsyncSession = Depends(get_db)
):
    """All-time totals over completed trips."""
    rows = await ReportDataService.load_rows(db)
    return report_generator.fleet_overview(rows)
