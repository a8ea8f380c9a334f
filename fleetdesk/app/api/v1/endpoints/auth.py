"""
Authentication API endpoints.

Provides login, logout, and user info endpoints for the web client.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from fleetdesk.app.db.session import get_db
from fleetdesk.app.models.user import User
from fleetdesk.app.schemas.auth import UserLogin, TokenResponse, UserResponse, LogoutResponse
from fleetdesk.app.core.security import verify_password
from fleetdesk.app.core.jwt import create_access_token
from fleetdesk.app.core.dependencies import get_current_user
from fleetdesk.app.core.roles import primary_role, dashboard_for
from fleetdesk.app.core.token_revocation import revoke_token
from fleetdesk.app.core.exceptions import SignOutFailedError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post("/login", response_model=TokenResponse)
async def login(
    credentials: UserLogin,
    db: AsyncSession = Depends(get_db)
):
    """
    Login with email and password.

    The token carries every role label plus the primary role; ``dashboard``
    is where the client should route the user.
    """
    result = await db.execute(
        select(User).where(User.email == credentials.email.strip().lower())
    )
    user = result.scalar_one_or_none()

    if not user or not verify_password(credentials.password, user.hashed_password):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User account is inactive"
        )

    roles = sorted(role.value for role in user.role_set)
    main_role = primary_role(roles)
    if main_role is None:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="No role assigned. Please contact admin."
        )

    access_token = create_access_token(
        data={
            "sub": user.email,
            "user_id": user.id,
            "roles": roles,
            "role": main_role.value,
        }
    )

    logger.info("User %s signed in as %s", user.id, main_role.value)

    return TokenResponse(
        access_token=access_token,
        token_type="bearer",
        user_id=user.id,
        email=user.email,
        full_name=user.profile.full_name if user.profile else None,
        roles=roles,
        primary_role=main_role,
        dashboard=dashboard_for(main_role),
    )


@router.post("/logout", response_model=LogoutResponse)
async def logout(current_user: dict = Depends(get_current_user)):
    """
    Sign out: the presented token is rejected from now on.

    Returns 503 when the blacklist cannot be written; the token is still
    valid then and the client should retry.
    """
    if not await revoke_token(current_user["token"], current_user["user_id"]):
        raise SignOutFailedError()
    logger.info("User %s signed out", current_user["user_id"])
    return LogoutResponse()


@router.get("/me", response_model=UserResponse)
async def get_me(
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Get current authenticated user information.
    """
    result = await db.execute(
        select(User).where(User.id == current_user["user_id"])
    )
    user = result.scalar_one_or_none()

    if not user:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found"
        )

    main_role = primary_role(current_user["roles"])
    profile = user.profile

    return UserResponse(
        id=user.id,
        email=user.email,
        full_name=profile.full_name if profile else None,
        phone=profile.phone if profile else None,
        roles=current_user["roles"],
        primary_role=main_role,
        dashboard=dashboard_for(main_role),
        is_active=user.is_active,
        created_at=user.created_at,
    )
