"""
Test fixtures and factories for Noxera Plus API tests.
"""

from tests.fixtures.factories import (
    create_branch,
    create_member,
    create_role,
    create_tenant,
    create_user,
    get_role,
    grant_branch,
)

__all__ = [
    "create_branch",
    "create_member",
    "create_role",
    "create_tenant",
    "create_user",
    "get_role",
    "grant_branch",
]
