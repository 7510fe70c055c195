"""
Model Enumerations

Stored as their string values.
"""

from enum import Enum


class TenantStatus(str, Enum):
    ACTIVE = "Active"
    SUSPENDED = "Suspended"


class UserStatus(str, Enum):
    INVITED = "Invited"
    ACTIVE = "Active"
    SUSPENDED = "Suspended"


class BranchScopeMode(str, Enum):
    ALL = "ALL"
    RESTRICTED = "RESTRICTED"


# Name of the system role that must always keep an active holder
OWNER_ROLE_NAME = "Owner"
