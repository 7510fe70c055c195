### Description ###
# Noxera Plus - Church Operations Platform API
# - Branch Models -
# Author: Bailey Dixon
# Date: 01/03/2026
# Python: 3.11
####################

"""
Branch Models

- Branch: a sub-unit of a tenant (e.g. a campus), the inner isolation boundary
- UserBranchAccess: explicit branch grant for a RESTRICTED user
"""

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Index,
    String,
    UniqueConstraint,
    text,
)
from sqlalchemy.orm import relationship, validates

from noxera.database import Base
from noxera.utils import generate_id, utcnow


class Branch(Base):
    """
    Branch model.

    Names are unique among the *active* branches of a tenant, compared
    case-insensitively through name_key. Archived branches keep their name
    and may collide with active ones.
    """

    __tablename__ = "branches"

    id = Column(String(36), primary_key=True, default=generate_id)
    tenant_id = Column(String(36), ForeignKey("tenants.id"), nullable=False, index=True)
    name = Column(String(150), nullable=False)
    name_key = Column(String(150), nullable=False)  # lower(name)
    location = Column(String(255), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    __table_args__ = (
        Index(
            "uq_branches_tenant_active_name",
            "tenant_id",
            "name_key",
            unique=True,
            sqlite_where=text("is_active = 1"),
            postgresql_where=text("is_active"),
        ),
    )

    # Relationships
    tenant = relationship("Tenant", back_populates="branches")
    access_grants = relationship("UserBranchAccess", back_populates="branch")

    @validates("name")
    def _sync_name_key(self, key, value):
        self.name_key = value.strip().lower() if value else value
        return value

    def __repr__(self):
        return f"<Branch(id={self.id}, name='{self.name}', active={self.is_active})>"


class UserBranchAccess(Base):
    """Grant giving a branch-restricted user access to one branch"""

    __tablename__ = "user_branch_access"

    id = Column(String(36), primary_key=True, default=generate_id)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    branch_id = Column(String(36), ForeignKey("branches.id"), nullable=False, index=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    __table_args__ = (UniqueConstraint("user_id", "branch_id", name="uq_user_branch_access"),)

    # Relationships
    user = relationship("User", back_populates="branch_access")
    branch = relationship("Branch", back_populates="access_grants")

    def __repr__(self):
        return f"<UserBranchAccess(user_id={self.user_id}, branch_id={self.branch_id})>"
