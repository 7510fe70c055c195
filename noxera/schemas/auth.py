### Description ###
# Noxera Plus - Church Operations Platform API
# - Session & Impersonation Schemas -
# Author: Bailey Dixon
# Date: 01/03/2026
# Python: 3.11
####################

"""
Session & Impersonation Schemas

Pydantic models for the session endpoints and impersonation lifecycle.
"""

from datetime import datetime

from pydantic import BaseModel, Field

from noxera.services.security_context import ImpersonationGrant, SecurityContext


class TokenRequest(BaseModel):
    """Credential submitted in a request body"""
    token: str = Field(..., min_length=1, description="Bearer credential")


class ImpersonationWindow(BaseModel):
    """Validity window of an impersonation session"""
    super_admin_email: str
    tenant_id: str
    started_at: datetime
    expires_at: datetime

    @classmethod
    def from_grant(cls, grant: ImpersonationGrant) -> "ImpersonationWindow":
        return cls(
            super_admin_email=grant.super_admin_email,
            tenant_id=grant.tenant_id,
            started_at=grant.started_at,
            expires_at=grant.expires_at,
        )


class SessionPayload(BaseModel):
    """Flattened security context for a front-end to cache"""
    uid: str
    email: str | None = None
    kind: str = Field(..., description="tenant, platform_admin or impersonation")
    is_super_admin: bool
    tenant_id: str | None = None
    tenant_name: str | None = None
    user_id: str | None = None
    role_id: str | None = None
    role_name: str | None = None
    permissions: list[str] = Field(default_factory=list)
    user_status: str | None = None
    branch_scope_mode: str
    allowed_branch_ids: list[str] = Field(default_factory=list)
    default_branch_id: str | None = None
    sign_in_provider: str | None = None
    impersonation: ImpersonationWindow | None = None

    @classmethod
    def from_context(cls, context: SecurityContext) -> "SessionPayload":
        data = context.to_dict()
        data["impersonation"] = (
            ImpersonationWindow.from_grant(context.impersonation) if context.impersonation else None
        )
        return cls(**data)


class ImpersonationStartResponse(BaseModel):
    """Issued impersonation token (shown once)"""
    token: str
    tenant_id: str
    tenant_name: str | None = None
    super_admin_email: str
    started_at: datetime
    expires_at: datetime


class ImpersonationSessionResponse(BaseModel):
    """Resolved impersonation session"""
    session: SessionPayload
    impersonation: ImpersonationWindow
