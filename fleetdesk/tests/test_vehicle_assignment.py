"""
Vehicle assignment race tests.

Two managers looking at the same available vehicle: whoever lands second
must get a conflict, and the vehicle ends up bound to exactly one request.
"""

import pytest
from sqlalchemy import select

from fleetdesk.app.models.enums import AppRole, ApprovalStatus, VehicleStatus
from fleetdesk.app.models.trip_request import TripRequest
from fleetdesk.app.models.vehicle import Vehicle
from fleetdesk.app.services.vehicle_assignment import claim_vehicle, release_vehicle

from conftest import auth_headers, create_user

REQUEST_BODY = {
    "destination": "Airport",
    "purpose": "Pick up auditors",
    "expected_time": "2026-10-21T06:30:00Z",
}


async def _approved_request(client, employee, manager):
    created = await client.post("/v1/trip-requests", json=REQUEST_BODY, headers=auth_headers(employee))
    request_id = created.json()["id"]
    await client.post(f"/v1/trip-requests/{request_id}/approve", headers=auth_headers(manager))
    return request_id


@pytest.mark.asyncio
async def test_claim_is_conditional(db_session, vehicle):
    assert await claim_vehicle(db_session, vehicle.id) is True
    assert await claim_vehicle(db_session, vehicle.id) is False
    await db_session.commit()

    assert await release_vehicle(db_session, vehicle.id) is True
    assert await release_vehicle(db_session, vehicle.id) is False
    await db_session.commit()


@pytest.mark.asyncio
async def test_maintenance_vehicle_cannot_be_claimed(db_session):
    car = Vehicle(name="Maruti Eeco", number_plate="KA-05-9999", status=VehicleStatus.MAINTENANCE)
    db_session.add(car)
    await db_session.commit()

    assert await claim_vehicle(db_session, car.id) is False


@pytest.mark.asyncio
async def test_two_managers_assign_same_vehicle(client, db_session, session_factory, employee, manager, vehicle):
    second_manager = await create_user(db_session, "mira@fleetdesk.test", [AppRole.VEHICLE_MANAGER], "Mira Manager")
    first_request = await _approved_request(client, employee, manager)
    second_request = await _approved_request(client, employee, manager)

    # Both managers saw the vehicle as available
    for user in (manager, second_manager):
        listing = await client.get("/v1/vehicles/available", headers=auth_headers(user))
        assert [v["id"] for v in listing.json()["vehicles"]] == [vehicle.id]

    first = await client.post(
        f"/v1/trip-requests/{first_request}/assign",
        json={"vehicle_id": vehicle.id},
        headers=auth_headers(manager),
    )
    second = await client.post(
        f"/v1/trip-requests/{second_request}/assign",
        json={"vehicle_id": vehicle.id},
        headers=auth_headers(second_manager),
    )

    assert first.status_code == 200
    assert second.status_code == 409
    assert second.json()["error_code"] == "ERR_CONFLICT_001"

    async with session_factory() as session:
        result = await session.execute(select(TripRequest).order_by(TripRequest.id))
        requests = result.scalars().all()
        assert [r.approval_status for r in requests] == [ApprovalStatus.ASSIGNED, ApprovalStatus.APPROVED]
        assert requests[1].vehicle_id is None

        bound = [r for r in requests if r.vehicle_id == vehicle.id]
        assert len(bound) == 1
        assert (await session.get(Vehicle, vehicle.id)).status == VehicleStatus.IN_USE

    listing = await client.get("/v1/vehicles/available", headers=auth_headers(second_manager))
    assert listing.json()["total"] == 0


@pytest.mark.asyncio
async def test_assign_unknown_vehicle(client, employee, manager):
    request_id = await _approved_request(client, employee, manager)

    response = await client.post(
        f"/v1/trip-requests/{request_id}/assign",
        json={"vehicle_id": 4040},
        headers=auth_headers(manager),
    )
    assert response.status_code == 404
