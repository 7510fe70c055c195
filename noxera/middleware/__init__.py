### Description ###
# Noxera Plus - Church Operations Platform API
# - API Middleware Package -
# Author: Bailey Dixon
# Date: 01/03/2026
# Python: 3.11
####################

"""
API Middleware Package

Contains middleware for request processing:
- auth: Session resolution, caller kind and permission dependencies
- logging: Request/response logging
- rate_limit: Per-credential rate limiting
"""

from .auth import (
    get_platform_admin_context,
    get_security_context,
    get_tenant_context,
    require_any_permission,
    require_permissions,
)
from .logging import RequestLoggingMiddleware

__all__ = [
    "RequestLoggingMiddleware",
    "get_platform_admin_context",
    "get_security_context",
    "get_tenant_context",
    "require_any_permission",
    "require_permissions",
]
