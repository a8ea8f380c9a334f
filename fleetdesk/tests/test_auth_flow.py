"""
Integration tests for the authentication flow.

Verifies Login -> Me -> Logout and role-based routing.
"""

import pytest
from redis.exceptions import RedisError

from fleetdesk.app.core.jwt import decode_access_token
from fleetdesk.app.models.enums import AppRole

from conftest import TEST_PASSWORD, create_user


async def _login(client, email, password=TEST_PASSWORD):
    return await client.post("/v1/auth/login", json={"email": email, "password": password})


@pytest.mark.asyncio
async def test_login_routes_employee(client, employee):
    response = await _login(client, employee.email)
    assert response.status_code == 200
    data = response.json()
    assert data["token_type"] == "bearer"
    assert data["roles"] == ["employee"]
    assert data["primary_role"] == "employee"
    assert data["dashboard"] == "/employee"
    assert data["full_name"] == "Emma Employee"

    payload = decode_access_token(data["access_token"])
    assert payload["user_id"] == employee.id
    assert payload["role"] == "employee"


@pytest.mark.asyncio
async def test_login_picks_highest_role(client, db_session):
    user = await create_user(
        db_session, "both@fleetdesk.test", [AppRole.EMPLOYEE, AppRole.VEHICLE_MANAGER], "Bo Both"
    )
    response = await _login(client, user.email)
    assert response.status_code == 200
    assert response.json()["primary_role"] == "vehicle_manager"
    assert response.json()["dashboard"] == "/manager"
    assert sorted(response.json()["roles"]) == ["employee", "vehicle_manager"]


@pytest.mark.asyncio
async def test_login_without_role_is_refused(client, db_session):
    user = await create_user(db_session, "nobody@fleetdesk.test", [], "No Role")
    response = await _login(client, user.email)
    assert response.status_code == 403
    assert response.json()["error"] == "No role assigned. Please contact admin."


@pytest.mark.asyncio
async def test_login_wrong_password(client, employee):
    response = await _login(client, employee.email, "wrong-password")
    assert response.status_code == 401
    assert response.json()["error"] == "Invalid email or password"


@pytest.mark.asyncio
async def test_me_returns_profile(client, admin):
    token = (await _login(client, admin.email)).json()["access_token"]
    response = await client.get("/v1/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 200
    assert response.json()["email"] == admin.email
    assert response.json()["primary_role"] == "admin"
    assert response.json()["dashboard"] == "/admin"


@pytest.mark.asyncio
async def test_logout_ends_session(client, employee, mock_redis):
    token = (await _login(client, employee.email)).json()["access_token"]
    headers = {"Authorization": f"Bearer {token}"}

    response = await client.post("/v1/auth/logout", headers=headers)
    assert response.status_code == 200
    assert len(mock_redis.store) == 1

    response = await client.get("/v1/auth/me", headers=headers)
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_logout_reports_failure_when_blacklist_is_down(client, employee, mock_redis, monkeypatch):
    token = (await _login(client, employee.email)).json()["access_token"]
    headers = {"Authorization": f"Bearer {token}"}

    async def failing_setex(key, seconds, value):
        raise RedisError("connection refused")

    monkeypatch.setattr(mock_redis, "setex", failing_setex)

    response = await client.post("/v1/auth/logout", headers=headers)
    assert response.status_code == 503
    assert response.json()["error"] == "Could not sign out, please retry"
    assert mock_redis.store == {}

    monkeypatch.undo()
    assert (await client.post("/v1/auth/logout", headers=headers)).status_code == 200
    assert (await client.get("/v1/auth/me", headers=headers)).status_code == 401


@pytest.mark.asyncio
async def test_missing_and_garbage_tokens(client):
    assert (await client.get("/v1/auth/me")).status_code == 401
    response = await client.get("/v1/auth/me", headers={"Authorization": "Bearer not-a-jwt"})
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_health_echoes_correlation_id(client):
    response = await client.get("/health", headers={"X-Correlation-ID": "trace-42"})
    assert response.status_code == 200
    assert response.json()["redis"] == "up"
    assert response.headers["X-Correlation-ID"] == "trace-42"
    assert "X-Process-Time" in response.headers
