### Description ###
# Noxera Plus - Church Operations Platform API
# - API Models Package -
# Author: Bailey Dixon
# Date: 01/03/2026
# Python: 3.11
####################

"""
API Models Package

Contains SQLAlchemy models for the record store:
- Tenant: Church workspace, outermost isolation boundary
- Branch / UserBranchAccess: Campuses and restricted-user grants
- Role: Tenant permission sets (system + custom)
- User: Tenant members who can sign in
- AuditEntry: Append-only privileged change log
- ImpersonationRevocation: Stopped impersonation sessions
- Member: Branch-scoped congregation record
"""

from noxera.models.enums import OWNER_ROLE_NAME, BranchScopeMode, TenantStatus, UserStatus
from noxera.models.tenant import Tenant
from noxera.models.branch import Branch, UserBranchAccess
from noxera.models.role import Role
from noxera.models.user import User
from noxera.models.audit_entry import AuditEntry
from noxera.models.impersonation import ImpersonationRevocation
from noxera.models.member import Member

__all__ = [
    "OWNER_ROLE_NAME",
    "AuditEntry",
    "Branch",
    "BranchScopeMode",
    "ImpersonationRevocation",
    "Member",
    "Role",
    "Tenant",
    "TenantStatus",
    "User",
    "UserBranchAccess",
    "UserStatus",
]
