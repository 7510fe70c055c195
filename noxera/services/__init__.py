### Description ###
# Noxera Plus - Church Operations Platform API
# - API Services Package -
# Author: Bailey Dixon
# Date: 01/03/2026
# Python: 3.11
####################

"""
API Services Package

Authorization core:
- session_resolver: bearer credential -> SecurityContext
- branch_scope: read/write branch filters
- authorizer: permission checks
- impersonation: time-boxed platform-admin sessions
- audit: append-only audit trail

Management services built on it:
- tenants, roles, branches, users, members
"""

from .audit import AuditRecorder
from .authorizer import authorize
from .branch_scope import (
    BranchScope,
    ensure_branch_in_tenant,
    resolve_read_scope,
    resolve_write_scope,
)
from .identity import HttpIdentityVerifier, IdentityClaims, JwtIdentityVerifier
from .impersonation import ImpersonationManager, is_impersonation_token
from .security_context import ContextKind, ImpersonationGrant, SecurityContext
from .session_resolver import SessionResolver

__all__ = [
    "AuditRecorder",
    "BranchScope",
    "ContextKind",
    "HttpIdentityVerifier",
    "IdentityClaims",
    "ImpersonationGrant",
    "ImpersonationManager",
    "JwtIdentityVerifier",
    "SecurityContext",
    "SessionResolver",
    "authorize",
    "ensure_branch_in_tenant",
    "is_impersonation_token",
    "resolve_read_scope",
    "resolve_write_scope",
]
