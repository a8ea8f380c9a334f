"""
Security guards for role-based and ownership-based access control.

These stand in for the store's row-level policies: every endpoint declares
which role labels may call it, and employee-owned rows are checked with
``enforce_owner``.
"""

from typing import List
from fastapi import Depends, HTTPException, status
from fleetdesk.app.models.enums import AppRole
from fleetdesk.app.core.dependencies import get_current_user


def require_role(allowed_roles: List[AppRole]):
    """
    Dependency factory for role-based access control.

    Usage:
        @router.post("/trip-requests/{request_id}/approve")
        async def approve(current_user: dict = Depends(require_role(MANAGER_ROLES))):
            ...

    The caller passes when ANY of their role labels is in ``allowed_roles``.

    Raises:
        HTTPException 403 if no held role is allowed
    """
    allowed = {role.value for role in allowed_roles}

    async def role_checker(current_user: dict = Depends(get_current_user)) -> dict:
        held = set(current_user.get("roles") or [])

        if not held:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="No role assigned. Please contact admin."
            )

        if not held & allowed:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Access denied. Required role: {', '.join(sorted(allowed))}"
            )

        return current_user

    return role_checker


def require_admin(current_user: dict = Depends(get_current_user)) -> dict:
    """
    Dependency for admin-only endpoints.

    Returns:
        User payload if the role set contains admin, raises 403 otherwise
    """
    if AppRole.ADMIN.value not in (current_user.get("roles") or []):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Forbidden: admin only"
        )

    return current_user


def enforce_owner(owner_id: int, current_user: dict, resource_name: str = "resource") -> None:
    """
    Raise 403 unless the caller owns the row.

    Employees act only on their own requests and trips; manager roles never
    pass through here.
    """
    if owner_id != current_user.get("user_id"):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"Access denied. This {resource_name} does not belong to you."
        )
