"""
Member Model

Congregation member record. The representative branch-scoped domain
record: every read and write goes through the branch scope resolver.
"""

from sqlalchemy import Column, DateTime, ForeignKey, String

from noxera.database import Base
from noxera.utils import generate_id, utcnow


class Member(Base):
    """Member of a tenant, attached to one branch"""

    __tablename__ = "members"

    id = Column(String(36), primary_key=True, default=generate_id)
    tenant_id = Column(String(36), ForeignKey("tenants.id"), nullable=False, index=True)
    branch_id = Column(String(36), ForeignKey("branches.id"), nullable=False, index=True)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    email = Column(String(255), nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    def __repr__(self):
        return f"<Member(id={self.id}, name='{self.first_name} {self.last_name}')>"
