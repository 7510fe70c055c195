### Description ###
# Noxera Plus - Church Operations Platform API
# - Session Authentication Dependencies -
# Author: Bailey Dixon
# Date: 01/03/2026
# Python: 3.11
####################

"""
Session Authentication

Resolves the bearer credential of every protected request into a
SecurityContext, stores it on request.state.security_context, and
enforces the caller kind and declared permissions before handlers run.

Handlers pick one of:
- get_tenant_context: tenant users and impersonation sessions
- get_platform_admin_context: platform administrators only
- require_permissions(...): tenant context + permission check
"""

import logging

from fastapi import Depends, Request, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from noxera.database import get_db
from noxera.dependencies import get_session_resolver
from noxera.errors import ForbiddenError
from noxera.services.authorizer import authorize, missing_permissions
from noxera.services.security_context import SecurityContext
from noxera.services.session_resolver import SessionResolver

logger = logging.getLogger(__name__)

# Bearer token (identity provider token or imp_ impersonation token)
bearer_scheme = HTTPBearer(
    auto_error=False,
    description="Identity provider token, or an imp_ impersonation token",
)


async def get_security_context(
    request: Request,
    bearer: HTTPAuthorizationCredentials | None = Security(bearer_scheme),
    db: Session = Depends(get_db),
    resolver: SessionResolver = Depends(get_session_resolver),
) -> SecurityContext:
    """
    Resolve the caller of this request.

    Raises:
        UnauthenticatedError: Missing or unverifiable credential
        ForbiddenError: Account not linked, suspended or without branch access
    """
    credential = bearer.credentials if bearer else None
    context = await resolver.resolve_context(db, credential)

    # Read by handlers and the request logging middleware
    request.state.security_context = context
    return context


async def get_tenant_context(
    context: SecurityContext = Depends(get_security_context),
) -> SecurityContext:
    """Tenant-scoped routes: platform admins must impersonate first"""
    if context.is_platform_admin:
        raise ForbiddenError(
            "Super-admins must use explicit impersonation to access church-admin routes."
        )
    if not context.tenant_id:
        raise ForbiddenError(
            "Your account is not linked to a church workspace. Contact support or onboarding admin."
        )
    return context


async def get_platform_admin_context(
    context: SecurityContext = Depends(get_security_context),
) -> SecurityContext:
    """Platform routes: only allow-listed administrators (never impersonation)"""
    if not context.is_platform_admin:
        raise ForbiddenError("Platform administrator access required.")
    return context


def require_permissions(*permissions: str):
    """
    Dependency factory for permission checking

    Usage:
        @router.post("/branches")
        async def create_branch(
            context: SecurityContext = Depends(require_permissions("branches.manage")),
        ):
            ...

    With several permissions all are required. With none, any tenant
    context passes.
    """
    required = frozenset(permissions)

    async def check_permissions(
        context: SecurityContext = Depends(get_tenant_context),
    ) -> SecurityContext:
        authorize(context, required)
        return context

    return check_permissions


def require_any_permission(*permissions: str):
    """Like require_permissions, but holding one of the permissions is enough"""

    async def check_any_permission(
        context: SecurityContext = Depends(get_tenant_context),
    ) -> SecurityContext:
        for permission in permissions:
            if not missing_permissions(context, {permission}):
                return context
        raise ForbiddenError(
            f"Missing required permission: one of {', '.join(sorted(permissions))}"
        )

    return check_any_permission


# Convenience dependencies for common permissions
require_branches_manage = require_permissions("branches.manage")
require_users_manage = require_permissions("users.manage")
require_roles_manage = require_permissions("roles.manage")
require_members_manage = require_permissions("members.manage")
require_members_read = require_any_permission("members.view", "members.manage")
