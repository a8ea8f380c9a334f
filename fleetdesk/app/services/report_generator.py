"""
Weekly trip reports.

Pure functions over TripReportRow lists: week windows, summary statistics,
per-vehicle and per-employee breakdowns, and the Excel export. Nothing here
touches the database; the reports endpoint loads the rows.
"""

import io
import re
from collections import OrderedDict
from datetime import date, datetime, time, timedelta, timezone
from typing import Dict, Iterable, List, Optional, Tuple

from openpyxl import Workbook
from openpyxl.styles import Font

from fleetdesk.app.schemas.report import (
    EmployeeActivity,
    FleetOverview,
    TripReportRow,
    VehicleUtilization,
    WeekOption,
    WeeklyReportSummary,
)

DAYS_IN_WEEK = 7
SHEET_TITLE = "Weekly Report"
REPORT_TITLE = "Weekly Vehicle Report"
UNASSIGNED_VEHICLE = "Not Assigned"

EXPORT_COLUMNS = [
    ("Sr. No.", 8),
    ("Date", 14),
    ("Employee Name", 22),
    ("Vehicle Number", 16),
    ("Start Meter", 14),
    ("End Meter", 14),
    ("Total Distance (km)", 18),
    ("Trip Purpose", 35),
    ("Status", 12),
]

STATUS_LABELS = {"completed": "Completed", "active": "Active"}


def get_week_range(weeks_ago: int = 0, today: Optional[date] = None) -> Tuple[datetime, datetime]:
    """Monday 00:00 to Sunday 23:59:59.999999 (UTC) of the week ``weeks_ago`` weeks back."""
    today = today or datetime.now(timezone.utc).date()
    target = today - timedelta(weeks=weeks_ago)
    monday = target - timedelta(days=target.weekday())
    sunday = monday + timedelta(days=6)
    return (
        datetime.combine(monday, time.min, tzinfo=timezone.utc),
        datetime.combine(sunday, time.max, tzinfo=timezone.utc),
    )


def available_weeks(count: int = 12, today: Optional[date] = None) -> List[WeekOption]:
    weeks = []
    for weeks_ago in range(count):
        start, end = get_week_range(weeks_ago, today)
        weeks.append(WeekOption(
            value=weeks_ago,
            label=f"{start:%d %b} - {end:%d %b %Y}",
            start=start,
            end=end,
        ))
    return weeks


def filter_rows(
    rows: Iterable[TripReportRow],
    vehicle_name: Optional[str] = None,
    employee_name: Optional[str] = None,
) -> List[TripReportRow]:
    """Narrow the week's rows to one vehicle and/or one employee."""
    selected = list(rows)
    if vehicle_name:
        selected = [row for row in selected if row.vehicle_name == vehicle_name]
    if employee_name:
        selected = [row for row in selected if row.employee_name == employee_name]
    return selected


def _distance(row: TripReportRow) -> float:
    return row.distance or 0.0


def _assigned(row: TripReportRow) -> bool:
    return bool(row.vehicle_name) and row.vehicle_name != UNASSIGNED_VEHICLE


def generate_summary(rows: List[TripReportRow], week_start: datetime, week_end: datetime) -> WeeklyReportSummary:
    total = len(rows)
    total_distance = sum(_distance(row) for row in rows)
    vehicles = {row.vehicle_name for row in rows if _assigned(row)}
    employees = {row.employee_name for row in rows}

    return WeeklyReportSummary(
        week_start=week_start,
        week_end=week_end,
        total_trips=total,
        completed_trips=sum(1 for row in rows if row.status == "completed"),
        active_trips=sum(1 for row in rows if row.status == "active"),
        pending_trips=sum(1 for row in rows if row.approval_status == "pending"),
        approved_trips=sum(1 for row in rows if row.approval_status == "approved"),
        rejected_trips=sum(1 for row in rows if row.approval_status == "rejected"),
        total_distance=total_distance,
        avg_distance_per_trip=total_distance / total if total else 0.0,
        total_vehicles=len(vehicles),
        total_employees=len(employees),
        avg_trips_per_vehicle=total / len(vehicles) if vehicles else 0.0,
        avg_trips_per_employee=total / len(employees) if employees else 0.0,
    )


def _group_by(rows: Iterable[TripReportRow], key) -> Dict[str, List[TripReportRow]]:
    groups: Dict[str, List[TripReportRow]] = OrderedDict()
    for row in rows:
        groups.setdefault(key(row), []).append(row)
    return groups


def vehicle_utilization(rows: List[TripReportRow]) -> List[VehicleUtilization]:
    """
    Per-vehicle breakdown, busiest first.

    Utilization is the share of the week's 7 days with at least one trip start.
    """
    groups = _group_by((row for row in rows if _assigned(row)), lambda row: row.vehicle_name)

    utilization = []
    for name, trips in groups.items():
        total_distance = sum(_distance(row) for row in trips)
        days = {row.start_time.date() for row in trips if row.start_time}
        utilization.append(VehicleUtilization(
            vehicle_name=name,
            vehicle_number=trips[0].vehicle_number_plate or "-",
            total_trips=len(trips),
            total_distance=total_distance,
            avg_distance=total_distance / len(trips),
            utilization_days=len(days),
            utilization_percentage=len(days) / DAYS_IN_WEEK * 100,
        ))

    return sorted(utilization, key=lambda item: item.total_trips, reverse=True)


def employee_activity(rows: List[TripReportRow]) -> List[EmployeeActivity]:
    groups = _group_by(rows, lambda row: row.employee_name)

    activity = []
    for name, trips in groups.items():
        total_distance = sum(_distance(row) for row in trips)
        activity.append(EmployeeActivity(
            employee_name=name,
            employee_email=trips[0].employee_email,
            total_trips=len(trips),
            completed_trips=sum(1 for row in trips if row.status == "completed"),
            total_distance=total_distance,
            avg_distance_per_trip=total_distance / len(trips),
        ))

    return sorted(activity, key=lambda item: item.total_trips, reverse=True)


def fleet_overview(rows: List[TripReportRow]) -> FleetOverview:
    """All-time figures over completed trips."""
    completed = [row for row in rows if row.status == "completed"]

    counts: Dict[str, int] = OrderedDict()
    for row in completed:
        if _assigned(row):
            counts[row.vehicle_name] = counts.get(row.vehicle_name, 0) + 1
    most_used = max(counts, key=counts.get) if counts else "N/A"

    return FleetOverview(
        total_trips=len(completed),
        total_distance=sum(_distance(row) for row in completed),
        active_employees=len({row.employee_email for row in completed}),
        most_used_vehicle=most_used,
    )


def status_label(status: str) -> str:
    return STATUS_LABELS.get(status, "Pending")


def format_trip_rows(rows: List[TripReportRow]) -> List[list]:
    """One export row per trip, in input order."""
    formatted = []
    for index, row in enumerate(rows, start=1):
        formatted.append([
            index,
            f"{row.start_time:%d %b %Y}" if row.start_time else "-",
            row.employee_name,
            row.vehicle_number_plate or "-",
            row.start_reading if row.start_reading is not None else "-",
            row.end_reading if row.end_reading is not None else "-",
            round(row.distance, 2) if row.distance is not None else "-",
            row.purpose,
            status_label(row.status),
        ])
    return formatted


def report_filename(week_start: datetime, filter_name: Optional[str] = None) -> str:
    suffix = "_" + re.sub(r"\s+", "_", filter_name) if filter_name else ""
    return f"Trip_Report_{week_start:%Y-%m-%d}{suffix}.xlsx"


def export_weekly_report(
    rows: List[TripReportRow],
    week_start: datetime,
    week_end: datetime,
    report_type: str = "all",
    filter_name: Optional[str] = None,
    generated_at: Optional[datetime] = None,
) -> Tuple[str, bytes]:
    """
    Build the single-sheet workbook.

    Layout: title, period, generation time, optional Vehicle:/Employee: line,
    total count, a blank row, then the header and one row per trip.

    Returns:
        (filename, xlsx bytes)
    """
    generated_at = generated_at or datetime.now()

    workbook = Workbook()
    sheet = workbook.active
    sheet.title = SHEET_TITLE

    header_block = [
        [REPORT_TITLE],
        ["Report Period:", f"{week_start:%d %b %Y} - {week_end:%d %b %Y}"],
        ["Generated On:", f"{generated_at:%d %b %Y %H:%M}"],
        ["Total Trips:", str(len(rows))],
        [],
    ]
    if report_type != "all" and filter_name:
        label = "Vehicle:" if report_type == "vehicle" else "Employee:"
        header_block.insert(3, [label, filter_name])

    for line in header_block:
        sheet.append(line)
    sheet["A1"].font = Font(bold=True, size=14)

    sheet.append([title for title, _ in EXPORT_COLUMNS])
    header_row = sheet.max_row
    for cell in sheet[header_row]:
        cell.font = Font(bold=True)

    distance_column = [title for title, _ in EXPORT_COLUMNS].index("Total Distance (km)") + 1
    for values in format_trip_rows(rows):
        sheet.append(values)
        cell = sheet.cell(row=sheet.max_row, column=distance_column)
        if isinstance(cell.value, float):
            cell.number_format = "0.00"

    for index, (_, width) in enumerate(EXPORT_COLUMNS, start=1):
        sheet.column_dimensions[sheet.cell(row=header_row, column=index).column_letter].width = width

    buffer = io.BytesIO()
    workbook.save(buffer)
    return report_filename(week_start, filter_name), buffer.getvalue()
