### Description ###
# Noxera Plus - Church Operations Platform API
# - Branch Service -
# Author: Bailey Dixon
# Date: 01/03/2026
# Python: 3.11
####################

"""
Branch Service

Branch lifecycle within a tenant. Archival is guarded by two independent
checks, both evaluated under the tenant lock:
- the tenant keeps at least one active branch
- no RESTRICTED user loses their only branch grant
"""

import logging

from sqlalchemy import and_, exists
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from noxera.errors import BadRequestError, NotFoundError, NoxeraError
from noxera.models import Branch, BranchScopeMode, User, UserBranchAccess
from noxera.services.audit import AuditRecorder
from noxera.services.security_context import SecurityContext
from noxera.services.tenant_lock import lock_tenant

logger = logging.getLogger(__name__)

DUPLICATE_ACTIVE_NAME = "An active branch with this name already exists."
DUPLICATE_OTHER_NAME = "Another active branch already uses this name."


def _snapshot(branch: Branch) -> dict:
    return {"name": branch.name, "location": branch.location, "is_active": branch.is_active}


class BranchService:
    """Branch CRUD and archival for one request"""

    def __init__(self, db: Session, recorder: AuditRecorder):
        self.db = db
        self.recorder = recorder

    def _active_name_taken(self, tenant_id: str, name: str, exclude_id: str | None = None) -> bool:
        query = self.db.query(Branch.id).filter(
            Branch.tenant_id == tenant_id,
            Branch.is_active.is_(True),
            Branch.name_key == name.strip().lower(),
        )
        if exclude_id:
            query = query.filter(Branch.id != exclude_id)
        return query.first() is not None

    def _audit(self, context: SecurityContext, action: str, details: dict) -> None:
        self.recorder.record(
            tenant_id=context.tenant_id,
            action=action,
            resource="Branch",
            details=details,
            actor_email=context.email,
        )

    def list_branches(self, tenant_id: str, include_archived: bool = False) -> list[Branch]:
        query = self.db.query(Branch).filter(Branch.tenant_id == tenant_id)
        if not include_archived:
            query = query.filter(Branch.is_active.is_(True))
        return query.order_by(Branch.name_key.asc()).all()

    def get_branch(self, tenant_id: str, branch_id: str) -> Branch:
        branch = (
            self.db.query(Branch)
            .filter(Branch.id == branch_id, Branch.tenant_id == tenant_id)
            .first()
        )
        if branch is None:
            raise NotFoundError("Branch not found.")
        return branch

    def create_branch(
        self, context: SecurityContext, name: str, location: str | None = None
    ) -> Branch:
        tenant_id = context.tenant_id
        normalized_name = (name or "").strip()
        if not normalized_name:
            raise BadRequestError("Branch name is required.")
        if self._active_name_taken(tenant_id, normalized_name):
            raise BadRequestError(DUPLICATE_ACTIVE_NAME)

        branch = Branch(
            tenant_id=tenant_id,
            name=normalized_name,
            location=(location or "").strip() or None,
            is_active=True,
        )
        self.db.add(branch)
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            raise BadRequestError(DUPLICATE_ACTIVE_NAME) from e
        self.db.refresh(branch)

        self._audit(context, "BRANCH_CREATED", {"branch_id": branch.id, "after": _snapshot(branch)})
        return branch

    def update_branch(
        self,
        context: SecurityContext,
        branch_id: str,
        name: str | None = None,
        location: str | None = None,
        location_set: bool = False,
    ) -> Branch:
        """
        Rename or relocate a branch.

        location_set distinguishes "clear the location" from "leave it".
        """
        branch = self.get_branch(context.tenant_id, branch_id)
        before = _snapshot(branch)

        if name is not None:
            next_name = name.strip()
            if not next_name:
                raise BadRequestError("Branch name cannot be empty.")
            if (
                next_name.lower() != branch.name_key
                and branch.is_active
                and self._active_name_taken(context.tenant_id, next_name, exclude_id=branch.id)
            ):
                raise BadRequestError(DUPLICATE_OTHER_NAME)
            branch.name = next_name

        if location_set:
            branch.location = (location or "").strip() or None

        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            raise BadRequestError(DUPLICATE_OTHER_NAME) from e
        self.db.refresh(branch)

        self._audit(
            context,
            "BRANCH_UPDATED",
            {"branch_id": branch.id, "before": before, "after": _snapshot(branch)},
        )
        return branch

    def _check_archivable(self, tenant_id: str, branch: Branch) -> None:
        active_count = (
            self.db.query(Branch)
            .filter(Branch.tenant_id == tenant_id, Branch.is_active.is_(True))
            .count()
        )
        if active_count <= 1:
            raise BadRequestError("Cannot archive the last active branch.")

        grant_here = exists().where(
            and_(UserBranchAccess.user_id == User.id, UserBranchAccess.branch_id == branch.id)
        )
        grant_elsewhere = exists().where(
            and_(UserBranchAccess.user_id == User.id, UserBranchAccess.branch_id != branch.id)
        )
        dependent_users = (
            self.db.query(User)
            .filter(
                User.tenant_id == tenant_id,
                User.branch_scope_mode == BranchScopeMode.RESTRICTED.value,
                grant_here,
                ~grant_elsewhere,
            )
            .count()
        )
        if dependent_users > 0:
            raise BadRequestError(
                "Cannot archive branch while restricted users depend on it as their only access."
            )

    def archive_branch(self, context: SecurityContext, branch_id: str) -> Branch:
        """
        Archive a branch and delete every grant to it.

        Archiving an archived branch is a no-op.

        Raises:
            BadRequestError: Last active branch, or sole grant of a restricted user
        """
        tenant_id = context.tenant_id
        try:
            lock_tenant(self.db, tenant_id)
            branch = self.get_branch(tenant_id, branch_id)
            if not branch.is_active:
                self.db.rollback()
                return branch

            self._check_archivable(tenant_id, branch)

            removed_grants = (
                self.db.query(UserBranchAccess)
                .filter(UserBranchAccess.branch_id == branch.id)
                .delete(synchronize_session=False)
            )
            # Defaults must point at active branches
            self.db.query(User).filter(
                User.tenant_id == tenant_id, User.default_branch_id == branch.id
            ).update({User.default_branch_id: None}, synchronize_session=False)

            branch.is_active = False
            self.db.commit()
        except (NoxeraError, SQLAlchemyError):
            self.db.rollback()
            raise

        self.db.expire_all()
        self.db.refresh(branch)

        logger.info(f"Branch {branch.id} archived in tenant {tenant_id} ({removed_grants} grants removed)")
        self._audit(
            context,
            "BRANCH_ARCHIVED",
            {"branch_id": branch.id, "name": branch.name, "removed_grants": removed_grants},
        )
        return branch

    def unarchive_branch(self, context: SecurityContext, branch_id: str) -> Branch:
        """Reactivate a branch. Removed grants are not restored."""
        tenant_id = context.tenant_id
        try:
            lock_tenant(self.db, tenant_id)
            branch = self.get_branch(tenant_id, branch_id)
            if branch.is_active:
                self.db.rollback()
                return branch

            if self._active_name_taken(tenant_id, branch.name, exclude_id=branch.id):
                raise BadRequestError(DUPLICATE_OTHER_NAME)

            branch.is_active = True
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            raise BadRequestError(DUPLICATE_OTHER_NAME) from e
        except (NoxeraError, SQLAlchemyError):
            self.db.rollback()
            raise
        self.db.refresh(branch)

        self._audit(context, "BRANCH_UNARCHIVED", {"branch_id": branch.id, "name": branch.name})
        return branch
