### Description ###
# Noxera Plus - Church Operations Platform API
# - Audit Recorder -
# Author: Bailey Dixon
# Date: 01/03/2026
# Python: 3.11
####################

"""
Audit Recorder

Appends AuditEntry rows in a session of its own, after the business
transaction has committed. A failed write is logged and dropped, except
for entries marked required (impersonation start/stop), which raise.

Also provides the platform-admin listing queries.
"""

import logging
from datetime import datetime
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from noxera.models import AuditEntry

logger = logging.getLogger(__name__)

IMPERSONATION_ACTION_PREFIX = "IMPERSONATION_"


class AuditRecorder:
    """Append-only writer for privileged state changes"""

    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    def record(
        self,
        tenant_id: str | None,
        action: str,
        resource: str,
        details: dict[str, Any] | None = None,
        actor_email: str | None = None,
        required: bool = False,
    ) -> AuditEntry | None:
        """
        Write one audit entry.

        Args:
            tenant_id: Owning tenant (None for platform-scope events)
            action: Action tag, e.g. "BRANCH_ARCHIVED"
            resource: Resource kind, e.g. "Branch"
            details: Before/after payload
            actor_email: Who made the change
            required: Raise instead of logging when the write fails

        Returns:
            The stored entry, or None if a best-effort write failed

        Raises:
            SQLAlchemyError: Only when required=True
        """
        entry = AuditEntry.create(
            action=action,
            resource=resource,
            details=details,
            tenant_id=tenant_id,
            actor_email=actor_email,
        )

        db = self._session_factory()
        try:
            db.add(entry)
            db.commit()
            db.refresh(entry)
            db.expunge(entry)
            return entry
        except SQLAlchemyError as e:
            db.rollback()
            if required:
                logger.error(f"Required audit entry {action} for tenant {tenant_id} failed: {e!s}")
                raise
            logger.error(f"Failed to save audit entry {action} for tenant {tenant_id}: {e!s}")
            return None
        finally:
            db.close()


def list_audit_entries(
    db: Session,
    tenant_id: str | None = None,
    action: str | None = None,
    date_from: datetime | None = None,
    date_to: datetime | None = None,
    impersonation_only: bool = False,
    page: int = 1,
    page_size: int = 20,
) -> tuple[list[AuditEntry], int]:
    """
    List audit entries, newest first.

    Args:
        action: Case-insensitive substring of the action tag
        impersonation_only: Restrict to IMPERSONATION_* actions

    Returns:
        (entries for the page, total matching)
    """
    query = db.query(AuditEntry)

    if tenant_id:
        query = query.filter(AuditEntry.tenant_id == tenant_id)
    if impersonation_only:
        query = query.filter(AuditEntry.action.startswith(IMPERSONATION_ACTION_PREFIX))
    if action and action.strip():
        query = query.filter(AuditEntry.action.ilike(f"%{action.strip()}%"))
    if date_from:
        query = query.filter(AuditEntry.created_at >= date_from)
    if date_to:
        query = query.filter(AuditEntry.created_at <= date_to)

    total = query.count()
    entries = (
        query.order_by(AuditEntry.created_at.desc(), AuditEntry.id.desc())
        .offset((page - 1) * page_size)
        .limit(page_size)
        .all()
    )
    return entries, total
