"""
Admin API Schema Definitions.

Pydantic schemas for account provisioning and user listing.
"""

from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime
from typing import Any, Optional, List
from fleetdesk.app.models.enums import AppRole


class CreateUserRequest(BaseModel):
    """
    Body of POST /create-user.

    Fields are left untyped at the schema level so that missing or mistyped
    values are reported as 400 by the provisioning service instead of 422.
    """
    model_config = ConfigDict(populate_by_name=True)

    full_name: Any = Field(None, alias="fullName")
    email: Any = None
    password: Any = None
    phone: Any = None
    role: Any = None


class CreateUserResponse(BaseModel):
    """Successful provisioning result."""
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    user_id: int = Field(..., serialization_alias="userId")
    role: AppRole


class UserListItem(BaseModel):
    """Schema for user in list response."""
    id: int
    full_name: str
    email: str
    phone: Optional[str] = None
    roles: List[AppRole]
    primary_role: Optional[AppRole] = None
    created_at: datetime


class UserListResponse(BaseModel):
    """Schema for list users response."""
    users: List[UserListItem]
    total: int
    page: int
    page_size: int
