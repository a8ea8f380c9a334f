"""
Role precedence tests.
"""

import pytest

from fleetdesk.app.core.roles import dashboard_for, primary_role
from fleetdesk.app.models.enums import AppRole


@pytest.mark.parametrize(
    "roles, expected",
    [
        (["employee"], AppRole.EMPLOYEE),
        (["employee", "vehicle_manager"], AppRole.VEHICLE_MANAGER),
        (["vehicle_manager", "admin"], AppRole.ADMIN),
        (["employee", "admin", "vehicle_manager"], AppRole.ADMIN),
        ([AppRole.EMPLOYEE, AppRole.VEHICLE_MANAGER], AppRole.VEHICLE_MANAGER),
        (["driver", "employee"], AppRole.EMPLOYEE),
    ],
)
def test_primary_role_precedence(roles, expected):
    assert primary_role(roles) == expected


def test_primary_role_empty():
    assert primary_role([]) is None
    assert primary_role(["driver"]) is None


def test_dashboards():
    assert dashboard_for(AppRole.ADMIN) == "/admin"
    assert dashboard_for(AppRole.VEHICLE_MANAGER) == "/manager"
    assert dashboard_for(AppRole.EMPLOYEE) == "/employee"
    assert dashboard_for(None) is None
