### Description ###
# Noxera Plus - Church Operations Platform API
# - API Schemas Package -
# Author: Bailey Dixon
# Date: 01/03/2026
# Python: 3.11
####################

"""
API Schemas Package

Contains Pydantic models for request/response validation:
- auth: Session and impersonation schemas
- tenants, roles, branches, users, members: Resource schemas
- audit: Audit entry schemas
- responses: Common response schemas
"""

from .responses import APIResponse, ErrorResponse, PaginatedResponse, build_pagination

__all__ = [
    "APIResponse",
    "ErrorResponse",
    "PaginatedResponse",
    "build_pagination",
]
