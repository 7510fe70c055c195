"""
Role Schemas

Pydantic models for tenant role management endpoints.
"""

from datetime import datetime

from pydantic import BaseModel, Field


class RoleCreate(BaseModel):
    """Create a custom role"""
    name: str = Field(..., min_length=1, max_length=100)
    permissions: list[str] = Field(..., description="Permissions from the catalog")


class RoleUpdate(BaseModel):
    """Rename a custom role and/or replace its permissions"""
    name: str | None = Field(None, max_length=100)
    permissions: list[str] | None = None


class RoleResponse(BaseModel):
    """Role response"""
    id: str
    name: str
    permissions: list[str]
    is_system: bool
    user_count: int | None = None
    created_at: datetime

    class Config:
        from_attributes = True
