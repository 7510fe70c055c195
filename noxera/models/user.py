### Description ###
# Noxera Plus - Church Operations Platform API
# - User Model -
# Author: Bailey Dixon
# Date: 01/03/2026
# Python: 3.11
####################

"""
User Model

A tenant member who can sign in. Platform administrators are not stored
here; they are recognized from the configured allow-list.
"""

from sqlalchemy import Column, DateTime, ForeignKey, String
from sqlalchemy.orm import relationship

from noxera.database import Base
from noxera.models.enums import BranchScopeMode, UserStatus
from noxera.utils import generate_id, utcnow


class User(Base):
    """
    Tenant user.

    Invariants (enforced by UserService):
    - RESTRICTED users always hold at least one branch grant
    - default_branch_id, when set, is one of the grants for RESTRICTED users
    """

    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=generate_id)
    tenant_id = Column(String(36), ForeignKey("tenants.id"), nullable=False, index=True)
    email = Column(String(255), nullable=False, unique=True)  # stored lowercase
    name = Column(String(150), nullable=False)
    status = Column(String(20), default=UserStatus.INVITED.value, nullable=False)
    role_id = Column(String(36), ForeignKey("roles.id"), nullable=False)
    branch_scope_mode = Column(String(20), default=BranchScopeMode.ALL.value, nullable=False)
    default_branch_id = Column(String(36), ForeignKey("branches.id"), nullable=True)

    # Lifecycle tracking
    invited_at = Column(DateTime, default=utcnow, nullable=True)
    activated_at = Column(DateTime, nullable=True)
    last_login_at = Column(DateTime, nullable=True)
    last_sign_in_provider = Column(String(50), nullable=True)

    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    # Relationships
    tenant = relationship("Tenant", back_populates="users")
    role = relationship("Role", back_populates="users")
    default_branch = relationship("Branch", foreign_keys=[default_branch_id])
    branch_access = relationship(
        "UserBranchAccess",
        back_populates="user",
        cascade="all, delete-orphan",
        order_by="UserBranchAccess.created_at",
    )

    @property
    def branch_ids(self) -> list[str]:
        """Ids of explicitly granted branches, in grant order"""
        return [grant.branch_id for grant in self.branch_access]

    @property
    def is_restricted(self) -> bool:
        return self.branch_scope_mode == BranchScopeMode.RESTRICTED.value

    def __repr__(self):
        return f"<User(id={self.id}, email='{self.email}', status='{self.status}')>"
