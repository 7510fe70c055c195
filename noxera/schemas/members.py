"""
Member Schemas
"""

from datetime import datetime

from pydantic import BaseModel, Field


class MemberCreate(BaseModel):
    """Create a member (branch required for branch-restricted callers)"""
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    email: str | None = Field(None, max_length=255)
    branch_id: str | None = None


class MemberResponse(BaseModel):
    """Member response"""
    id: str
    branch_id: str
    first_name: str
    last_name: str
    email: str | None = None
    created_at: datetime

    class Config:
        from_attributes = True
