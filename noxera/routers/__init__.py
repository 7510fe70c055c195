### Description ###
# Noxera Plus - Church Operations Platform API
# - API Routers Package -
# Author: Bailey Dixon
# Date: 01/03/2026
# Python: 3.11
####################

"""
API Routers Package

Contains endpoint routers for different resources:
- auth: Session and impersonation-session endpoints
- platform: Platform administration (tenants, impersonation, audit logs)
- roles, branches, users: Tenant administration
- members: Branch-scoped member data
"""

from .auth import router as auth_router
from .branches import router as branches_router
from .members import router as members_router
from .platform import router as platform_router
from .roles import router as roles_router
from .users import router as users_router

__all__ = [
    "auth_router",
    "branches_router",
    "members_router",
    "platform_router",
    "roles_router",
    "users_router",
]
