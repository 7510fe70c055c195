### Description ###
# Noxera Plus - Church Operations Platform API
# - Tenant Schemas -
# Author: Bailey Dixon
# Date: 01/03/2026
# Python: 3.11
####################

"""
Tenant Schemas

Pydantic models for platform tenant management endpoints.
"""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field


class TenantCreate(BaseModel):
    """Onboard a new church"""
    name: str = Field(..., min_length=1, max_length=150, description="Church name")
    domain: str = Field(..., min_length=1, max_length=150, description="Unique workspace domain")
    plan: str = Field("basic", max_length=50, description="Plan name")
    admin_email: str = Field(..., min_length=3, max_length=255, description="Owner's email")
    admin_name: str | None = Field(None, max_length=150, description="Owner's name")
    branch_name: str | None = Field(None, max_length=150, description="First branch (default 'Main Campus')")


class TenantUpdate(BaseModel):
    """Update tenant fields"""
    name: str | None = Field(None, min_length=1, max_length=150)
    plan: str | None = Field(None, min_length=1, max_length=50)
    status: Literal["Active", "Suspended"] | None = None


class TenantResponse(BaseModel):
    """Tenant response"""
    id: str
    name: str
    domain: str
    plan: str
    status: str
    created_at: datetime
    updated_at: datetime | None = None

    class Config:
        from_attributes = True
