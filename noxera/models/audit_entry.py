### Description ###
# Noxera Plus - Church Operations Platform API
# - Audit Entry Model -
# Author: Bailey Dixon
# Date: 01/03/2026
# Python: 3.11
####################

"""
Audit Entry Model

Append-only record of privileged state changes:
- Who: actor email
- What: action tag, resource, structured before/after details
- Where: tenant (null for platform-scope events)
- When: timestamp

Rows are never updated or deleted by the application.
"""

from sqlalchemy import JSON, Column, DateTime, ForeignKey, Index, Integer, String

from noxera.database import Base
from noxera.utils import utcnow


class AuditEntry(Base):
    """
    Audit entry model.

    Action tags are upper snake case, e.g. USER_UPDATED, BRANCH_ARCHIVED,
    IMPERSONATION_STARTED.
    """

    __tablename__ = "audit_entries"

    id = Column(Integer, primary_key=True, autoincrement=True)
    tenant_id = Column(String(36), ForeignKey("tenants.id"), nullable=True)
    action = Column(String(100), nullable=False)
    resource = Column(String(100), nullable=False)
    details = Column(JSON, default=dict, nullable=False)
    actor_email = Column(String(255), nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False, index=True)

    # Indexes for common queries
    __table_args__ = (
        Index("ix_audit_entries_tenant_created", "tenant_id", "created_at"),
        Index("ix_audit_entries_action_created", "action", "created_at"),
    )

    def __repr__(self):
        return f"<AuditEntry(id={self.id}, action='{self.action}', tenant_id={self.tenant_id})>"

    @classmethod
    def create(
        cls,
        action: str,
        resource: str,
        details: dict | None = None,
        tenant_id: str | None = None,
        actor_email: str | None = None,
    ) -> "AuditEntry":
        """
        Build an audit entry (not yet added to a session).

        Args:
            action: Action tag (e.g. "USER_UPDATED")
            resource: Resource kind (e.g. "User")
            details: JSON-serializable before/after payload
            tenant_id: Owning tenant, None for platform events
            actor_email: Email of the acting user or super-admin

        Returns:
            AuditEntry instance
        """
        return cls(
            tenant_id=tenant_id,
            action=action,
            resource=resource,
            details=details or {},
            actor_email=actor_email,
        )
