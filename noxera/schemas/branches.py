"""
Branch Schemas

Pydantic models for branch management endpoints.
"""

from datetime import datetime

from pydantic import BaseModel, Field


class BranchCreate(BaseModel):
    """Create a branch"""
    name: str = Field(..., min_length=1, max_length=150)
    location: str | None = Field(None, max_length=255)


class BranchUpdate(BaseModel):
    """Rename or relocate a branch (send location=null to clear it)"""
    name: str | None = Field(None, max_length=150)
    location: str | None = Field(None, max_length=255)


class BranchResponse(BaseModel):
    """Branch response"""
    id: str
    name: str
    location: str | None = None
    is_active: bool
    created_at: datetime
    updated_at: datetime | None = None

    class Config:
        from_attributes = True
