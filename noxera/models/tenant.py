### Description ###
# Noxera Plus - Church Operations Platform API
# - Tenant Model -
# Author: Bailey Dixon
# Date: 01/03/2026
# Python: 3.11
####################

"""
Tenant Model

Represents one customer organization (a church). The outermost isolation
boundary: every branch, role, user and domain record belongs to exactly one
tenant.
"""

from sqlalchemy import Column, DateTime, Integer, String
from sqlalchemy.orm import relationship

from noxera.database import Base
from noxera.models.enums import TenantStatus
from noxera.utils import generate_id, utcnow


class Tenant(Base):
    """
    Tenant model - represents a church workspace.

    lock_version is bumped at the start of every invariant-guarded mutation
    (owner retention, branch archival) so that concurrent requests for the
    same tenant serialize on the tenant row.
    """

    __tablename__ = "tenants"

    id = Column(String(36), primary_key=True, default=generate_id)
    name = Column(String(150), nullable=False)
    domain = Column(String(150), nullable=False, unique=True)
    plan = Column(String(50), default="basic", nullable=False)
    status = Column(String(20), default=TenantStatus.ACTIVE.value, nullable=False)
    lock_version = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    # Relationships
    branches = relationship("Branch", back_populates="tenant", cascade="all, delete-orphan")
    roles = relationship("Role", back_populates="tenant", cascade="all, delete-orphan")
    users = relationship("User", back_populates="tenant", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<Tenant(id={self.id}, name='{self.name}')>"
