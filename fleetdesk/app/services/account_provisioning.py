"""
Account provisioning.

Admins create employee and vehicle-manager accounts. The identity, profile
and role rows are written in one transaction so a failure never leaves an
account without a role.
"""

import logging
from datetime import datetime, timezone

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from fleetdesk.app.core.exceptions import ProvisioningFailedError, ValidationFailedError
from fleetdesk.app.core.security import get_password_hash
from fleetdesk.app.models.enums import AppRole
from fleetdesk.app.models.profile import Profile
from fleetdesk.app.models.user import User
from fleetdesk.app.models.user_role import UserRoleAssignment
from fleetdesk.app.schemas.admin import CreateUserRequest

logger = logging.getLogger(__name__)

# Admins are seeded, never provisioned through the API
PROVISIONABLE_ROLES = {AppRole.EMPLOYEE.value, AppRole.VEHICLE_MANAGER.value}


def _clean(value):
    if not isinstance(value, str):
        return None
    value = value.strip()
    return value or None


class AccountProvisioningService:

    @staticmethod
    def validate(data: CreateUserRequest) -> dict:
        """
        Normalise the payload.

        Raises:
            ValidationFailedError: "Missing required fields" or "Invalid role"
        """
        fields = {
            "full_name": _clean(data.full_name),
            "email": _clean(data.email),
            "password": data.password if isinstance(data.password, str) and data.password else None,
            "phone": _clean(data.phone),
            "role": _clean(data.role),
        }
        if data.role is not None and not isinstance(data.role, str):
            raise ValidationFailedError("Invalid role", details={"role": data.role})

        missing = [name for name in ("full_name", "email", "password", "role") if not fields[name]]
        if missing:
            raise ValidationFailedError("Missing required fields", details={"missing": missing})

        if fields["role"] not in PROVISIONABLE_ROLES:
            raise ValidationFailedError("Invalid role", details={"role": fields["role"]})

        fields["email"] = fields["email"].lower()
        return fields

    @staticmethod
    async def create_user(db: AsyncSession, data: CreateUserRequest, admin_id: int) -> User:
        """
        Create a pre-confirmed identity, its profile and exactly one role.

        Any role rows already attached to the new id are cleared first, so the
        account ends up with the requested role only.
        """
        fields = AccountProvisioningService.validate(data)
        role = AppRole(fields["role"])

        existing = await db.execute(select(User.id).where(User.email == fields["email"]))
        if existing.scalar_one_or_none() is not None:
            raise ValidationFailedError("A user with this email address has already been registered")

        try:
            user = User(
                email=fields["email"],
                hashed_password=get_password_hash(fields["password"]),
                is_active=True,
                email_confirmed_at=datetime.now(timezone.utc),
            )
            db.add(user)
            await db.flush()

            db.add(Profile(
                id=user.id,
                full_name=fields["full_name"],
                email=fields["email"],
                phone=fields["phone"],
            ))
            await db.execute(delete(UserRoleAssignment).where(UserRoleAssignment.user_id == user.id))
            db.add(UserRoleAssignment(user_id=user.id, role=role))

            await db.commit()
        except SQLAlchemyError as exc:
            await db.rollback()
            logger.error("Provisioning %s failed: %s", fields["email"], exc)
            raise ProvisioningFailedError() from exc

        logger.info("User %s (%s) created by admin %s", user.id, role.value, admin_id)
        return user
