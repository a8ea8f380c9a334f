"""
Authentication dependencies for FastAPI.

This module provides dependencies for protecting routes with JWT authentication.
"""

from typing import Optional
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from fleetdesk.app.core.jwt import decode_access_token
from fleetdesk.app.core.roles import primary_role
from fleetdesk.app.core.token_revocation import is_token_revoked
from fleetdesk.app.db.session import get_db
from fleetdesk.app.models.user import User

# Missing credentials are answered with 401 below, not the scheme's default
security = HTTPBearer(auto_error=False)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: AsyncSession = Depends(get_db)
) -> dict:
    """
    Resolve the caller from the bearer token.

    Checks:
    1. Token present, signature and expiry valid
    2. Token not revoked by sign-out
    3. User still exists and is active (real-time database check)
    4. Role set reloaded from user_roles, so role changes apply immediately

    Returns:
        {"user_id", "sub", "token", "roles": [str], "role": primary role or None}

    Raises:
        HTTPException: 401 if authentication fails, 403 if the account is inactive
    """
    if credentials is None or not credentials.credentials:
        raise _unauthorized("Unauthorized")

    token = credentials.credentials

    payload = decode_access_token(token)
    if payload is None:
        raise _unauthorized("Could not validate credentials")

    user_id = payload.get("user_id")
    if not user_id:
        raise _unauthorized("Invalid token payload")

    if await is_token_revoked(token):
        raise _unauthorized("Session has ended, please sign in again")

    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()

    if not user:
        raise _unauthorized("User not found")

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User account is inactive",
        )

    roles = sorted(role.value for role in user.role_set)
    main_role = primary_role(roles)

    return {
        "user_id": user.id,
        "sub": user.email,
        "token": token,
        "roles": roles,
        "role": main_role.value if main_role else None,
    }
