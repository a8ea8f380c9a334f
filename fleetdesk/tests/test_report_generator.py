"""
Weekly report tests: week windows, aggregation and the Excel export.
"""

import io
from datetime import date, datetime, timedelta, timezone

import pytest
from openpyxl import load_workbook

from fleetdesk.app.schemas.report import TripReportRow
from fleetdesk.app.services import report_generator
from fleetdesk.app.services.report_generator import (
    available_weeks,
    employee_activity,
    export_weekly_report,
    filter_rows,
    fleet_overview,
    generate_summary,
    get_week_range,
    report_filename,
    vehicle_utilization,
)

from conftest import auth_headers, make_jpeg

MONDAY = datetime(2026, 10, 19, tzinfo=timezone.utc)


def _row(id, vehicle, employee, distance=None, status="completed", approval="assigned", day=0, **extra):
    values = dict(
        id=id,
        vehicle_name=vehicle,
        vehicle_number_plate={"Innova": "KA-01-1234", "Dzire": "KA-02-5678"}.get(vehicle, "-"),
        employee_name=employee,
        employee_email=f"{employee.lower()}@fleetdesk.test",
        purpose="Client visit",
        destination="Whitefield",
        start_time=MONDAY + timedelta(days=day, hours=9),
        distance=distance,
        status=status,
        approval_status=approval,
        start_reading=1000.0,
        end_reading=1000.0 + distance if distance is not None else None,
    )
    values.update(extra)
    return TripReportRow(**values)


@pytest.fixture
def week_rows():
    return [
        _row(1, "Innova", "Emma", distance=50.0, day=0),
        _row(2, "Innova", "Omar", distance=None, status="active", day=0),
        _row(3, "Dzire", "Emma", distance=30.0, day=2),
        _row(4, "Innova", "Emma", distance=20.456, day=4),
    ]


def test_week_range_is_monday_to_sunday():
    start, end = get_week_range(0, today=date(2026, 10, 22))
    assert start == datetime(2026, 10, 19, 0, 0, tzinfo=timezone.utc)
    assert end == datetime(2026, 10, 25, 23, 59, 59, 999999, tzinfo=timezone.utc)

    start, end = get_week_range(1, today=date(2026, 10, 19))
    assert start.date() == date(2026, 10, 12)
    assert end.date() == date(2026, 10, 18)


def test_available_weeks():
    weeks = available_weeks(today=date(2026, 10, 22))
    assert len(weeks) == 12
    assert weeks[0].value == 0
    assert weeks[0].label == "19 Oct - 25 Oct 2026"
    assert weeks[11].start.date() == date(2026, 8, 3)


def test_summary(week_rows):
    summary = generate_summary(week_rows, *get_week_range(0, today=date(2026, 10, 19)))

    assert summary.total_trips == 4
    assert summary.completed_trips == 3
    assert summary.active_trips == 1
    assert summary.total_distance == pytest.approx(100.456)
    assert summary.avg_distance_per_trip == pytest.approx(25.114)
    assert summary.total_vehicles == 2
    assert summary.total_employees == 2
    assert summary.avg_trips_per_vehicle == pytest.approx(2.0)
    assert summary.avg_trips_per_employee == pytest.approx(2.0)


def test_summary_of_empty_week():
    summary = generate_summary([], MONDAY, MONDAY + timedelta(days=6))
    assert summary.total_trips == 0
    assert summary.total_distance == 0
    assert summary.avg_distance_per_trip == 0
    assert summary.avg_trips_per_vehicle == 0


def test_unassigned_vehicle_not_counted():
    rows = [_row(1, report_generator.UNASSIGNED_VEHICLE, "Emma", distance=5.0)]
    assert generate_summary(rows, MONDAY, MONDAY).total_vehicles == 0
    assert vehicle_utilization(rows) == []


def test_vehicle_utilization(week_rows):
    utilization = vehicle_utilization(week_rows)

    assert [u.vehicle_name for u in utilization] == ["Innova", "Dzire"]
    innova = utilization[0]
    assert innova.total_trips == 3
    assert innova.vehicle_number == "KA-01-1234"
    assert innova.total_distance == pytest.approx(70.456)
    assert innova.utilization_days == 2
    assert innova.utilization_percentage == pytest.approx(2 / 7 * 100)


def test_employee_activity(week_rows):
    activity = employee_activity(week_rows)

    assert [a.employee_name for a in activity] == ["Emma", "Omar"]
    assert activity[0].total_trips == 3
    assert activity[0].completed_trips == 3
    assert activity[1].completed_trips == 0
    assert activity[1].total_distance == 0


def test_filter_rows(week_rows):
    assert [r.id for r in filter_rows(week_rows, vehicle_name="Dzire")] == [3]
    assert [r.id for r in filter_rows(week_rows, employee_name="Emma")] == [1, 3, 4]
    assert [r.id for r in filter_rows(week_rows, "Innova", "Emma")] == [1, 4]


def test_fleet_overview(week_rows):
    overview = fleet_overview(week_rows)
    assert overview.total_trips == 3
    assert overview.active_employees == 1
    assert overview.most_used_vehicle == "Innova"
    assert fleet_overview([]).most_used_vehicle == "N/A"


def test_report_filename():
    assert report_filename(MONDAY) == "Trip_Report_2026-10-19.xlsx"
    assert report_filename(MONDAY, "Toyota  Innova") == "Trip_Report_2026-10-19_Toyota_Innova.xlsx"


def test_export_layout(week_rows):
    start, end = MONDAY, MONDAY + timedelta(days=6, hours=23, minutes=59)
    filename, content = export_weekly_report(
        week_rows, start, end, generated_at=datetime(2026, 10, 26, 8, 15)
    )
    assert filename == "Trip_Report_2026-10-19.xlsx"

    sheet = load_workbook(io.BytesIO(content)).active
    assert sheet.title == "Weekly Report"
    assert sheet["A1"].value == "Weekly Vehicle Report"
    assert sheet["B2"].value == "19 Oct 2026 - 25 Oct 2026"
    assert sheet["B3"].value == "26 Oct 2026 08:15"
    assert sheet["A4"].value == "Total Trips:"
    assert sheet["B4"].value == "4"
    assert sheet["A5"].value is None

    header = [cell.value for cell in sheet[6]]
    assert header == [title for title, _ in report_generator.EXPORT_COLUMNS]

    rows = [[cell.value for cell in row] for row in sheet.iter_rows(min_row=7)]
    assert len(rows) == 4
    assert rows[0] == [1, "19 Oct 2026", "Emma", "KA-01-1234", 1000, 1050, 50, "Client visit", "Completed"]
    assert rows[1][5] == "-"
    assert rows[1][6] == "-"
    assert rows[1][8] == "Active"
    assert rows[3][6] == pytest.approx(20.46)
    assert sheet.cell(row=10, column=7).number_format == "0.00"


def test_export_with_vehicle_filter(week_rows):
    rows = filter_rows(week_rows, vehicle_name="Innova")
    filename, content = export_weekly_report(rows, MONDAY, MONDAY, report_type="vehicle", filter_name="Innova")
    assert filename == "Trip_Report_2026-10-19_Innova.xlsx"

    sheet = load_workbook(io.BytesIO(content)).active
    assert sheet["A4"].value == "Vehicle:"
    assert sheet["B4"].value == "Innova"
    assert sheet["A5"].value == "Total Trips:"
    assert sheet["B5"].value == "3"
    assert sheet["A7"].value == "Sr. No."


def test_zero_distance_is_exported_as_number():
    _, content = export_weekly_report([_row(1, "Innova", "Emma", distance=0.0)], MONDAY, MONDAY)
    sheet = load_workbook(io.BytesIO(content)).active
    assert sheet.cell(row=7, column=7).value == 0


@pytest.mark.asyncio
async def test_weekly_report_endpoints(client, employee, manager, vehicle):
    created = await client.post(
        "/v1/trip-requests",
        json={"destination": "Depot", "purpose": "Stock pickup", "expected_time": "2026-10-20T09:00:00Z"},
        headers=auth_headers(employee),
    )
    request_id = created.json()["id"]
    await client.post(f"/v1/trip-requests/{request_id}/approve", headers=auth_headers(manager))
    await client.post(
        f"/v1/trip-requests/{request_id}/assign", json={"vehicle_id": vehicle.id}, headers=auth_headers(manager)
    )
    for stage, reading in (("start", 1000), ("end", 1050)):
        response = await client.post(
            f"/v1/trips/{request_id}/{stage}",
            data={"reading": str(reading), "latitude": "12.97", "longitude": "77.59"},
            files={"photo": ("meter.jpg", make_jpeg(), "image/jpeg")},
            headers=auth_headers(employee),
        )
        assert response.status_code == 200, response.text

    weekly = await client.get("/v1/reports/weekly", headers=auth_headers(manager))
    assert weekly.status_code == 200
    data = weekly.json()
    assert data["summary"]["total_trips"] == 1
    assert data["summary"]["completed_trips"] == 1
    assert data["summary"]["total_distance"] == pytest.approx(50)
    assert data["vehicle_utilization"][0]["vehicle_name"] == "Toyota Innova"
    assert data["employee_activity"][0]["employee_name"] == "Emma Employee"

    filtered = await client.get(
        "/v1/reports/weekly", params={"vehicle_name": "Nope"}, headers=auth_headers(manager)
    )
    assert filtered.json()["summary"]["total_trips"] == 0
    assert filtered.json()["filter_label"] == "Vehicle: Nope"

    export = await client.get(
        "/v1/reports/weekly/export", params={"vehicle_name": "Toyota Innova"}, headers=auth_headers(manager)
    )
    assert export.status_code == 200
    assert export.headers["content-type"].startswith(
        "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
    )
    assert "_Toyota_Innova.xlsx" in export.headers["content-disposition"]
    sheet = load_workbook(io.BytesIO(export.content)).active
    assert sheet["B4"].value == "Toyota Innova"
    assert sheet.cell(row=8, column=7).value == 50

    overview = await client.get("/v1/reports/overview", headers=auth_headers(manager))
    assert overview.json()["most_used_vehicle"] == "Toyota Innova"

    weeks = await client.get("/v1/reports/weeks", headers=auth_headers(manager))
    assert len(weeks.json()) == 12

    forbidden = await client.get("/v1/reports/weekly", headers=auth_headers(employee))
    assert forbidden.status_code == 403


@pytest.mark.asyncio
async def test_export_with_non_latin_filter_name(client, manager):
    response = await client.get(
        "/v1/reports/weekly/export", params={"employee_name": "Łukasz Nowak"}, headers=auth_headers(manager)
    )
    assert response.status_code == 200
    disposition = response.headers["content-disposition"]
    assert 'filename="Trip_Report_' in disposition
    assert "_ukasz_Nowak.xlsx" in disposition
    assert "filename*=UTF-8''Trip_Report_" in disposition
    assert "%C5%81ukasz_Nowak.xlsx" in disposition
    sheet = load_workbook(io.BytesIO(response.content)).active
    assert sheet["B4"].value == "Łukasz Nowak"
