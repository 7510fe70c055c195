### Description ###
# Noxera Plus - Church Operations Platform API
# - User Schemas -
# Author: Bailey Dixon
# Date: 01/03/2026
# Python: 3.11
####################

"""
User Schemas

Pydantic models for tenant and platform user management endpoints.
"""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

UserStatusValue = Literal["Invited", "Active", "Suspended"]
BranchScopeValue = Literal["ALL", "RESTRICTED"]


class UserInvite(BaseModel):
    """Invite a user into the tenant"""
    email: str = Field(..., min_length=3, max_length=255)
    name: str = Field(..., min_length=1, max_length=150)
    role_id: str = Field(..., description="Role in this tenant")
    branch_scope_mode: BranchScopeValue = "ALL"
    branch_ids: list[str] = Field(default_factory=list, description="Grants (RESTRICTED only)")
    default_branch_id: str | None = None


class UserUpdate(BaseModel):
    """
    Update a tenant user.

    Only fields present in the request are changed; default_branch_id=null
    clears the default branch.
    """
    name: str | None = Field(None, max_length=150)
    status: UserStatusValue | None = None
    role_id: str | None = None
    branch_scope_mode: BranchScopeValue | None = None
    branch_ids: list[str] | None = None
    default_branch_id: str | None = None


class PlatformStatusUpdate(BaseModel):
    """Platform override of a user's status"""
    status: UserStatusValue


class PlatformRoleUpdate(BaseModel):
    """Platform override of a user's role"""
    role_id: str


class UserResponse(BaseModel):
    """User response"""
    id: str
    tenant_id: str
    email: str
    name: str
    status: str
    role_id: str
    branch_scope_mode: str
    branch_ids: list[str] = Field(default_factory=list)
    default_branch_id: str | None = None
    invited_at: datetime | None = None
    activated_at: datetime | None = None
    last_login_at: datetime | None = None
    last_sign_in_provider: str | None = None
    created_at: datetime

    class Config:
        from_attributes = True
