### Description ###
# Noxera Plus - Church Operations Platform API
# - Role Model -
# Author: Bailey Dixon
# Date: 01/03/2026
# Python: 3.11
####################

"""
Role Model

A named permission set belonging to one tenant. Permissions are drawn from
the fixed catalog in noxera.services.permission_catalog.
"""

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship, validates

from noxera.database import Base
from noxera.utils import generate_id, utcnow


class Role(Base):
    """
    Role model.

    System roles (Owner, Admin, Staff, Viewer) are seeded per tenant with
    is_system=True. Name uniqueness is case-insensitive per tenant and is
    enforced by the (tenant_id, name_key) unique constraint.
    """

    __tablename__ = "roles"

    id = Column(String(36), primary_key=True, default=generate_id)
    tenant_id = Column(String(36), ForeignKey("tenants.id"), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    name_key = Column(String(100), nullable=False)  # lower(name)

    # e.g., ["members.manage", "reports.view"]
    permissions = Column(JSON, default=list, nullable=False)

    is_system = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    __table_args__ = (UniqueConstraint("tenant_id", "name_key", name="uq_roles_tenant_name"),)

    # Relationships
    tenant = relationship("Tenant", back_populates="roles")
    users = relationship("User", back_populates="role")

    @validates("name")
    def _sync_name_key(self, key, value):
        self.name_key = value.strip().lower() if value else value
        return value

    def __repr__(self):
        return f"<Role(id={self.id}, name='{self.name}', system={self.is_system})>"
