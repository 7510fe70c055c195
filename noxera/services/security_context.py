### Description ###
# Noxera Plus - Church Operations Platform API
# - Security Context -
# Author: Bailey Dixon
# Date: 01/03/2026
# Python: 3.11
####################

"""
Security Context

The resolved, immutable description of who is acting on a request. Built
once per request by the SessionResolver and never cached.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from noxera.models.enums import BranchScopeMode


class ContextKind(str, Enum):
    """The three mutually exclusive kinds of caller"""

    TENANT = "tenant"
    PLATFORM_ADMIN = "platform_admin"
    IMPERSONATION = "impersonation"


@dataclass(frozen=True)
class ImpersonationGrant:
    """Time-boxed authorization for a platform admin to act inside one tenant"""

    token_id: str
    super_admin_email: str
    tenant_id: str
    started_at: datetime
    expires_at: datetime

    def to_dict(self) -> dict[str, Any]:
        return {
            "super_admin_email": self.super_admin_email,
            "tenant_id": self.tenant_id,
            "started_at": self.started_at.isoformat(),
            "expires_at": self.expires_at.isoformat(),
        }


@dataclass(frozen=True)
class SecurityContext:
    """
    Resolved caller.

    Exactly one of tenant-linked, platform-admin or impersonation holds,
    see `kind`. allowed_branch_ids only has meaning for RESTRICTED callers.
    """

    subject_id: str
    email: str | None
    is_platform_admin: bool = False
    tenant_id: str | None = None
    tenant_name: str | None = None
    user_id: str | None = None
    role_id: str | None = None
    role_name: str | None = None
    permissions: frozenset[str] = field(default_factory=frozenset)
    user_status: str | None = None
    branch_scope_mode: str = BranchScopeMode.ALL.value
    allowed_branch_ids: tuple[str, ...] = ()
    default_branch_id: str | None = None
    identity_provider: str | None = None
    impersonation: ImpersonationGrant | None = None

    @property
    def kind(self) -> ContextKind:
        if self.impersonation is not None:
            return ContextKind.IMPERSONATION
        if self.is_platform_admin:
            return ContextKind.PLATFORM_ADMIN
        return ContextKind.TENANT

    @property
    def is_impersonation(self) -> bool:
        return self.impersonation is not None

    @property
    def is_restricted(self) -> bool:
        return self.branch_scope_mode == BranchScopeMode.RESTRICTED.value

    def to_dict(self) -> dict[str, Any]:
        """Flattened payload returned by the session endpoints"""
        return {
            "uid": self.subject_id,
            "email": self.email,
            "kind": self.kind.value,
            "is_super_admin": self.is_platform_admin,
            "tenant_id": self.tenant_id,
            "tenant_name": self.tenant_name,
            "user_id": self.user_id,
            "role_id": self.role_id,
            "role_name": self.role_name,
            "permissions": sorted(self.permissions),
            "user_status": self.user_status,
            "branch_scope_mode": self.branch_scope_mode,
            "allowed_branch_ids": list(self.allowed_branch_ids),
            "default_branch_id": self.default_branch_id,
            "sign_in_provider": self.identity_provider,
            "impersonation": self.impersonation.to_dict() if self.impersonation else None,
        }
