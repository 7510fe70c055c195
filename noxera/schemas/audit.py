"""
Audit Schemas
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field


class AuditEntryResponse(BaseModel):
    """Audit entry response"""
    id: int
    tenant_id: str | None = None
    action: str
    resource: str
    details: dict[str, Any] = Field(default_factory=dict)
    actor_email: str | None = None
    created_at: datetime

    class Config:
        from_attributes = True
