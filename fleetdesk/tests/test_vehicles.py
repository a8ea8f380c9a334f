"""
Vehicle management endpoint tests.
"""

import pytest

from fleetdesk.app.models.enums import VehicleStatus
from fleetdesk.app.models.vehicle import Vehicle

from conftest import auth_headers


@pytest.mark.asyncio
async def test_manager_registers_vehicle(client, manager):
    response = await client.post(
        "/v1/vehicles",
        json={"name": "Mahindra XUV", "number_plate": "KA-03-4321", "description": "Diesel"},
        headers=auth_headers(manager),
    )
    assert response.status_code == 201, response.text
    data = response.json()
    assert data["status"] == "available"
    assert data["number_plate"] == "KA-03-4321"


@pytest.mark.asyncio
async def test_duplicate_plate_rejected(client, manager, vehicle):
    response = await client.post(
        "/v1/vehicles",
        json={"name": "Another", "number_plate": vehicle.number_plate},
        headers=auth_headers(manager),
    )
    assert response.status_code == 400
    assert "already exists" in response.json()["error"]


@pytest.mark.asyncio
async def test_employee_cannot_manage_vehicles(client, employee):
    response = await client.post(
        "/v1/vehicles",
        json={"name": "Sneaky", "number_plate": "KA-00-0000"},
        headers=auth_headers(employee),
    )
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_in_use_is_not_a_manual_status(client, manager, vehicle):
    response = await client.patch(
        f"/v1/vehicles/{vehicle.id}",
        json={"status": "in_use"},
        headers=auth_headers(manager),
    )
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_maintenance_hides_vehicle_from_assignment(client, manager, vehicle):
    response = await client.patch(
        f"/v1/vehicles/{vehicle.id}",
        json={"status": "maintenance"},
        headers=auth_headers(manager),
    )
    assert response.status_code == 200
    assert response.json()["status"] == "maintenance"

    available = await client.get("/v1/vehicles/available", headers=auth_headers(manager))
    assert available.json()["total"] == 0

    everything = await client.get("/v1/vehicles", headers=auth_headers(manager))
    assert everything.json()["total"] == 1


@pytest.mark.asyncio
async def test_vehicle_in_use_cannot_be_deleted(client, db_session, manager):
    car = Vehicle(name="Honda City", number_plate="KA-02-7777", status=VehicleStatus.IN_USE)
    db_session.add(car)
    await db_session.commit()

    response = await client.delete(f"/v1/vehicles/{car.id}", headers=auth_headers(manager))
    assert response.status_code == 409


@pytest.mark.asyncio
async def test_delete_idle_vehicle(client, manager, vehicle):
    response = await client.delete(f"/v1/vehicles/{vehicle.id}", headers=auth_headers(manager))
    assert response.status_code == 204

    listing = await client.get("/v1/vehicles", headers=auth_headers(manager))
    assert listing.json()["total"] == 0


@pytest.mark.asyncio
async def test_vehicles_sorted_by_name(client, db_session, manager):
    for name, plate in (("Zen", "P-1"), ("Alto", "P-2"), ("Innova", "P-3")):
        db_session.add(Vehicle(name=name, number_plate=plate, status=VehicleStatus.AVAILABLE))
    await db_session.commit()

    response = await client.get("/v1/vehicles", headers=auth_headers(manager))
    assert [v["name"] for v in response.json()["vehicles"]] == ["Alto", "Innova", "Zen"]
