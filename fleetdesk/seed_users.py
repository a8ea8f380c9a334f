"""
Database seeding script for the first admin account.

Admins cannot be provisioned through the API, so the first one is created
here. Run this script after the database is set up but before first use.

    SEED_ADMIN_EMAIL=... SEED_ADMIN_PASSWORD=... python -m fleetdesk.seed_users
"""

import asyncio
import logging
import os
from datetime import datetime, timezone

from sqlalchemy import select

from fleetdesk.app.core.observability import configure_logging
from fleetdesk.app.core.security import get_password_hash
from fleetdesk.app.db.session import AsyncSessionLocal, Base, engine
from fleetdesk.app.models.enums import AppRole
from fleetdesk.app.models.profile import Profile
from fleetdesk.app.models.user import User
from fleetdesk.app.models.user_role import UserRoleAssignment
from fleetdesk.app.models.vehicle import Vehicle  # noqa: F401
from fleetdesk.app.models.trip_request import TripRequest  # noqa: F401
from fleetdesk.app.models.trip import Trip  # noqa: F401

logger = logging.getLogger("fleetdesk.seed")


async def seed_admin(email: str, password: str, full_name: str = "Administrator") -> None:
    """
    Create the admin identity, profile and role if the email is unused.
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with AsyncSessionLocal() as db:
        result = await db.execute(select(User).where(User.email == email))
        if result.scalar_one_or_none():
            logger.info("Admin %s already exists, skipping seeding", email)
            return

        admin = User(
            email=email,
            hashed_password=get_password_hash(password),
            is_active=True,
            email_confirmed_at=datetime.now(timezone.utc),
        )
        db.add(admin)
        await db.flush()

        db.add(Profile(id=admin.id, full_name=full_name, email=email))
        db.add(UserRoleAssignment(user_id=admin.id, role=AppRole.ADMIN))
        await db.commit()

        logger.info("Created admin %s (id=%s)", email, admin.id)


async def main() -> None:
    try:
        await seed_admin(
            os.environ.get("SEED_ADMIN_EMAIL", "admin@fleetdesk.local"),
            os.environ.get("SEED_ADMIN_PASSWORD", "admin123"),
        )
    finally:
        await engine.dispose()


if __name__ == "__main__":
    configure_logging()
    asyncio.run(main())
