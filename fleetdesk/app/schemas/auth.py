"""
Authentication Pydantic schemas.

Defines request and response schemas for authentication endpoints.
"""

from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional, List
from fleetdesk.app.models.enums import AppRole


class UserLogin(BaseModel):
    """
    Schema for user login.

    Used by POST /auth/login endpoint.
    """
    email: str = Field(..., min_length=3, description="Account email address")
    password: str = Field(..., min_length=1, description="Password")


class TokenResponse(BaseModel):
    """
    Schema for JWT token response.

    ``dashboard`` tells the client where to route the user.
    """
    access_token: str = Field(..., description="JWT access token")
    token_type: str = Field(default="bearer", description="Token type")
    user_id: int = Field(..., description="User ID")
    email: str = Field(..., description="Email address")
    full_name: Optional[str] = Field(default=None, description="Profile display name")
    roles: List[AppRole] = Field(..., description="All role labels held")
    primary_role: AppRole = Field(..., description="Role used for routing")
    dashboard: str = Field(..., description="Dashboard path for the primary role")


class UserResponse(BaseModel):
    """
    Schema for user information response.

    Used by GET /auth/me endpoint.
    """
    id: int
    email: str
    full_name: Optional[str] = None
    phone: Optional[str] = None
    roles: List[AppRole]
    primary_role: Optional[AppRole] = None
    dashboard: Optional[str] = None
    is_active: bool
    created_at: datetime


class LogoutResponse(BaseModel):
    success: bool = True
    message: str = "Signed out"
