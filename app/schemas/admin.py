"""Admin account and authentication schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from app.models.enums import AdminRole


class LoginRequest(BaseModel):
    login_id: str
    password: str


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"
    admin_id: str
    role: AdminRole


class AdminInvite(BaseModel):
    login_id: str = Field(..., min_length=3, max_length=100)
    password: str = Field(..., min_length=8, description="Password must be at least 8 characters")
    display_name: str = Field(..., min_length=1, max_length=100)
    role: AdminRole = AdminRole.ADMIN


class AdminResponse(BaseModel):
    id: UUID
    login_id: str
    display_name: str
    role: AdminRole
    is_active: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class AdminInviteResult(BaseModel):
    """
    `session_invalidated` tells the caller whether creating the account
    logged them out. Accounts live in this service, so it never does.
    """
    admin: AdminResponse
    session_invalidated: bool = False
