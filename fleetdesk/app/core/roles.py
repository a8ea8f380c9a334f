"""
Role precedence.

A user can hold several roles; exactly one drives dashboard routing and the
``role`` token claim.
"""

from typing import Iterable, Optional

from fleetdesk.app.models.enums import AppRole

ROLE_PRECEDENCE = (AppRole.ADMIN, AppRole.VEHICLE_MANAGER, AppRole.EMPLOYEE)

DASHBOARDS = {
    AppRole.ADMIN: "/admin",
    AppRole.VEHICLE_MANAGER: "/manager",
    AppRole.EMPLOYEE: "/employee",
}

MANAGER_ROLES = [AppRole.ADMIN, AppRole.VEHICLE_MANAGER]


def primary_role(roles: Iterable) -> Optional[AppRole]:
    """Pick the highest-precedence role: admin > vehicle_manager > employee."""
    held = set()
    for role in roles:
        try:
            held.add(AppRole(role))
        except ValueError:
            continue
    for candidate in ROLE_PRECEDENCE:
        if candidate in held:
            return candidate
    return None


def dashboard_for(role: Optional[AppRole]) -> Optional[str]:
    if role is None:
        return None
    return DASHBOARDS[role]
