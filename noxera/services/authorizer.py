### Description ###
# Noxera Plus - Church Operations Platform API
# - Permission Authorizer -
# Author: Bailey Dixon
# Date: 01/03/2026
# Python: 3.11
####################

"""
Permission Authorizer

Plain set containment: no hierarchy between permissions, no caching.
The wildcard "*" (impersonation sessions only) satisfies everything.
"""

from collections.abc import Iterable

from noxera.errors import ForbiddenError
from noxera.services.permission_catalog import WILDCARD_PERMISSION
from noxera.services.security_context import SecurityContext


def missing_permissions(context: SecurityContext, required: Iterable[str]) -> list[str]:
    """Return the required permissions the caller lacks, sorted"""
    required_set = set(required)
    if not required_set or WILDCARD_PERMISSION in context.permissions:
        return []
    return sorted(required_set - context.permissions)


def authorize(context: SecurityContext, required: Iterable[str]) -> None:
    """
    Allow or deny an action.

    Args:
        context: Resolved caller
        required: Permissions the action declares (all must be held)

    Raises:
        ForbiddenError: Naming the missing permissions
    """
    missing = missing_permissions(context, required)
    if missing:
        raise ForbiddenError(f"Missing required permission(s): {', '.join(missing)}")
