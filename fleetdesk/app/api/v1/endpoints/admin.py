"""
Admin API Endpoints.

Account provisioning and the user directory, admin-only.
"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from fleetdesk.app.db.session import get_db
from fleetdesk.app.models.user import User
from fleetdesk.app.schemas.admin import (
    CreateUserRequest, CreateUserResponse, UserListResponse, UserListItem
)
from fleetdesk.app.core.guards import require_admin
from fleetdesk.app.core.roles import primary_role
from fleetdesk.app.models.enums import AppRole
from fleetdesk.app.services.account_provisioning import AccountProvisioningService

# POST /create-user lives at the API root; the directory under /admin
provisioning_router = APIRouter(tags=["Admin"])
router = APIRouter(prefix="/admin", tags=["Admin"])


@provisioning_router.post("/create-user", response_model=CreateUserResponse, response_model_by_alias=True)
async def create_user(
    user_data: CreateUserRequest,
    admin: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """
    Create an employee or vehicle-manager account (admin-only).

    The account is confirmed immediately and holds exactly the requested role.
    """
    user = await AccountProvisioningService.create_user(db, user_data, admin["user_id"])
    return CreateUserResponse(success=True, user_id=user.id, role=AppRole(user_data.role.strip()))


def _to_list_item(user: User) -> UserListItem:
    profile = user.profile
    roles = sorted(user.role_set, key=lambda role: role.value)
    return UserListItem(
        id=user.id,
        full_name=profile.full_name if profile else user.email,
        email=user.email,
        phone=profile.phone if profile else None,
        roles=roles,
        primary_role=primary_role(roles),
        created_at=user.created_at,
    )


@router.get("/users", response_model=UserListResponse)
async def list_users(
    page: int = Query(1, ge=1, description="Page number"),
    page_size: int = Query(50, ge=1, le=100, description="Items per page"),
    admin: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """
    List all users with their role labels (admin-only).
    """
    total_result = await db.execute(select(func.count(User.id)))
    total = total_result.scalar()

    offset = (page - 1) * page_size
    result = await db.execute(
        select(User).order_by(User.created_at.desc(), User.id.desc()).offset(offset).limit(page_size)
    )
    users = result.scalars().all()

    return UserListResponse(
        users=[_to_list_item(user) for user in users],
        total=total,
        page=page,
        page_size=page_size
    )
