### Description ###
# Noxera Plus - Church Operations Platform API
# - User Service -
# Author: Bailey Dixon
# Date: 01/03/2026
# Python: 3.11
####################

"""
User Service

Tenant user management (invite, update, suspend, reactivate, resend
invite), the platform-admin overrides, and sign-in bookkeeping.

Every role or status change runs under the tenant lock and checks owner
retention first: a tenant always keeps at least one non-suspended user on
the Owner role.
"""

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import Any

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from noxera.errors import BadRequestError, NotFoundError, NoxeraError
from noxera.models import (
    OWNER_ROLE_NAME,
    Branch,
    BranchScopeMode,
    Role,
    User,
    UserBranchAccess,
    UserStatus,
)
from noxera.services.audit import AuditRecorder
from noxera.services.security_context import SecurityContext
from noxera.services.tenant_lock import lock_tenant
from noxera.utils import utcnow

logger = logging.getLogger(__name__)

LAST_OWNER = "Cannot remove or suspend the last active Owner in this tenant."
RESTRICTED_NEEDS_GRANT = "Restricted users must have at least one branch access assignment."
USER_NOT_FOUND = "User not found for this tenant."
PLATFORM_USER_NOT_FOUND = "Platform user not found."

_UNSET: Any = object()


@dataclass
class UserChanges:
    """
    Requested user changes. Fields left at _UNSET are not touched;
    default_branch_id=None clears the default branch.
    """

    name: Any = _UNSET
    status: Any = _UNSET
    role_id: Any = _UNSET
    branch_scope_mode: Any = _UNSET
    branch_ids: Any = _UNSET
    default_branch_id: Any = _UNSET

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "UserChanges":
        """Build from a dict of explicitly provided fields"""
        return cls(**{key: value for key, value in data.items() if key in cls.__dataclass_fields__})

    def provided(self) -> dict[str, Any]:
        return {
            key: getattr(self, key)
            for key in self.__dataclass_fields__
            if getattr(self, key) is not _UNSET
        }


def assert_owner_retention(
    db: Session,
    tenant_id: str,
    user: User,
    next_role: Role | None,
    next_status: str | None,
) -> None:
    """
    Reject a change that would leave the tenant without an active Owner.

    Call after lock_tenant, in the transaction that applies the change.

    Args:
        user: Target user (current role and status)
        next_role: Role after the change (None = unchanged)
        next_status: Status after the change (None = unchanged)

    Raises:
        BadRequestError: The target is the last non-suspended Owner
    """
    # Only an active Owner counts towards retention
    if (
        user.role is None
        or user.role.name != OWNER_ROLE_NAME
        or user.status == UserStatus.SUSPENDED.value
    ):
        return

    still_owner = next_role is None or next_role.name == OWNER_ROLE_NAME
    if still_owner and next_status != UserStatus.SUSPENDED.value:
        return

    other_active_owners = (
        db.query(User)
        .join(Role, User.role_id == Role.id)
        .filter(
            User.tenant_id == tenant_id,
            User.id != user.id,
            User.status != UserStatus.SUSPENDED.value,
            Role.name == OWNER_ROLE_NAME,
        )
        .count()
    )
    if other_active_owners == 0:
        raise BadRequestError(LAST_OWNER)


def _snapshot(user: User) -> dict[str, Any]:
    return {
        "name": user.name,
        "status": user.status,
        "role_id": user.role_id,
        "branch_scope_mode": user.branch_scope_mode,
        "branch_ids": list(user.branch_ids),
        "default_branch_id": user.default_branch_id,
    }


class UserService:
    """Tenant and platform user management for one request"""

    def __init__(
        self,
        db: Session,
        recorder: AuditRecorder,
        is_platform_admin: Callable[[str | None], bool] = lambda email: False,
    ):
        self.db = db
        self.recorder = recorder
        self.is_platform_admin = is_platform_admin

    # ========================================
    # Validation helpers
    # ========================================

    def _validate_status(self, status: str) -> str:
        valid = {item.value for item in UserStatus}
        if status not in valid:
            raise BadRequestError(f"Invalid status '{status}'. Use one of: {', '.join(sorted(valid))}")
        return status

    def _validate_scope(self, scope: str) -> str:
        valid = {item.value for item in BranchScopeMode}
        if scope not in valid:
            raise BadRequestError(f"Invalid branch_scope_mode '{scope}'. Use ALL or RESTRICTED")
        return scope

    def _tenant_role(self, tenant_id: str, role_id: str | None, message: str) -> Role:
        role = (
            self.db.query(Role).filter(Role.id == role_id, Role.tenant_id == tenant_id).first()
            if role_id
            else None
        )
        if role is None:
            raise BadRequestError(message)
        return role

    def validate_branch_ids(self, tenant_id: str, branch_ids: Iterable[str]) -> list[str]:
        """Trim and de-duplicate; every id must be an active branch of the tenant"""
        normalized: list[str] = []
        for branch_id in branch_ids or []:
            value = (branch_id or "").strip()
            if value and value not in normalized:
                normalized.append(value)
        if not normalized:
            return []

        found = (
            self.db.query(Branch.id)
            .filter(
                Branch.tenant_id == tenant_id,
                Branch.id.in_(normalized),
                Branch.is_active.is_(True),
            )
            .count()
        )
        if found != len(normalized):
            raise BadRequestError("One or more branch IDs are invalid for this tenant.")
        return normalized

    def validate_default_branch(
        self,
        tenant_id: str,
        default_branch_id: str | None,
        branch_ids: list[str],
        scope: str,
    ) -> str | None:
        if not default_branch_id or not default_branch_id.strip():
            return None
        normalized = default_branch_id.strip()

        branch = (
            self.db.query(Branch.id)
            .filter(
                Branch.id == normalized,
                Branch.tenant_id == tenant_id,
                Branch.is_active.is_(True),
            )
            .first()
        )
        if branch is None:
            raise BadRequestError("default_branch_id is invalid for this tenant.")
        if scope == BranchScopeMode.RESTRICTED.value and normalized not in branch_ids:
            raise BadRequestError("default_branch_id must be included in restricted branch access list.")
        return normalized

    def _replace_branch_access(self, user: User, scope: str, branch_ids: list[str]) -> None:
        user.branch_access.clear()
        self.db.flush()
        if scope == BranchScopeMode.RESTRICTED.value:
            for branch_id in branch_ids:
                user.branch_access.append(UserBranchAccess(branch_id=branch_id))

    # ========================================
    # Tenant user queries
    # ========================================

    def list_users(
        self,
        tenant_id: str,
        search: str | None = None,
        status: str | None = None,
        role_id: str | None = None,
        page: int = 1,
        page_size: int = 20,
    ) -> tuple[list[User], int]:
        query = self.db.query(User).filter(User.tenant_id == tenant_id)
        if status:
            query = query.filter(User.status == status)
        if role_id:
            query = query.filter(User.role_id == role_id)
        if search and search.strip():
            pattern = f"%{search.strip()}%"
            query = query.filter(or_(User.name.ilike(pattern), User.email.ilike(pattern)))

        total = query.count()
        users = (
            query.order_by(User.created_at.desc())
            .offset((page - 1) * page_size)
            .limit(page_size)
            .all()
        )
        return users, total

    def get_user(self, tenant_id: str, user_id: str) -> User:
        user = self.db.query(User).filter(User.id == user_id, User.tenant_id == tenant_id).first()
        if user is None:
            raise NotFoundError(USER_NOT_FOUND)
        return user

    # ========================================
    # Tenant user mutations
    # ========================================

    def invite_user(
        self,
        context: SecurityContext,
        email: str,
        name: str,
        role_id: str,
        branch_scope_mode: str = BranchScopeMode.ALL.value,
        branch_ids: list[str] | None = None,
        default_branch_id: str | None = None,
    ) -> User:
        """
        Invite a user into the caller's tenant.

        Re-inviting an existing user of the same tenant resets them to
        Invited with the new role and scope.
        """
        tenant_id = context.tenant_id
        normalized_email = (email or "").strip().lower()
        normalized_name = (name or "").strip()
        if not normalized_email or not normalized_name:
            raise BadRequestError("name and email are required.")
        if self.is_platform_admin(normalized_email):
            raise BadRequestError("Cannot convert super-admin account to tenant user via invite flow.")

        scope = self._validate_scope(branch_scope_mode or BranchScopeMode.ALL.value)

        try:
            lock_tenant(self.db, tenant_id)
            role = self._tenant_role(tenant_id, role_id, "role_id is invalid for this tenant.")
            valid_branch_ids = self.validate_branch_ids(tenant_id, branch_ids or [])
            if scope == BranchScopeMode.RESTRICTED.value and not valid_branch_ids:
                raise BadRequestError(RESTRICTED_NEEDS_GRANT)
            valid_default = self.validate_default_branch(
                tenant_id, default_branch_id, valid_branch_ids, scope
            )

            user = self.db.query(User).filter(User.email == normalized_email).first()
            if user is not None and user.tenant_id != tenant_id:
                raise BadRequestError("This email already belongs to a different tenant.")

            if user is None:
                user = User(tenant_id=tenant_id, email=normalized_email)
                self.db.add(user)
            else:
                assert_owner_retention(self.db, tenant_id, user, role, UserStatus.INVITED.value)

            user.name = normalized_name
            user.role_id = role.id
            user.status = UserStatus.INVITED.value
            user.invited_at = utcnow()
            user.branch_scope_mode = scope
            user.default_branch_id = valid_default
            self.db.flush()
            self._replace_branch_access(user, scope, valid_branch_ids)
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            raise BadRequestError("This email is already in use.") from e
        except (NoxeraError, SQLAlchemyError):
            self.db.rollback()
            raise
        self.db.refresh(user)

        self.recorder.record(
            tenant_id=tenant_id,
            action="USER_INVITE_CREATED",
            resource="User",
            details={
                "target_user_id": user.id,
                "email": user.email,
                "role_id": role.id,
                "branch_scope_mode": scope,
                "branch_ids": valid_branch_ids,
            },
            actor_email=context.email,
        )
        return user

    def update_user(self, context: SecurityContext, user_id: str, changes: UserChanges) -> User:
        """
        Apply changes to a tenant user.

        Raises:
            NotFoundError: User not in the caller's tenant
            BadRequestError: Invalid values, scope invariant or owner retention
        """
        tenant_id = context.tenant_id
        requested = changes.provided()

        try:
            lock_tenant(self.db, tenant_id)
            user = self.get_user(tenant_id, user_id)
            before = _snapshot(user)

            next_role = None
            if "role_id" in requested:
                next_role = self._tenant_role(
                    tenant_id, requested["role_id"], "Selected role does not exist in this tenant."
                )
            next_status = None
            if "status" in requested:
                next_status = self._validate_status(requested["status"])

            assert_owner_retention(self.db, tenant_id, user, next_role, next_status)

            scope = (
                self._validate_scope(requested["branch_scope_mode"])
                if "branch_scope_mode" in requested
                else user.branch_scope_mode
            )
            next_branch_ids = (
                self.validate_branch_ids(tenant_id, requested["branch_ids"] or [])
                if "branch_ids" in requested
                else list(user.branch_ids)
            )
            if scope == BranchScopeMode.RESTRICTED.value and not next_branch_ids:
                raise BadRequestError(RESTRICTED_NEEDS_GRANT)

            next_default = self.validate_default_branch(
                tenant_id,
                requested["default_branch_id"]
                if "default_branch_id" in requested
                else user.default_branch_id,
                next_branch_ids,
                scope,
            )

            if "name" in requested:
                next_name = (requested["name"] or "").strip()
                if not next_name:
                    raise BadRequestError("Name cannot be empty.")
                user.name = next_name
            if next_status is not None:
                user.status = next_status
            if next_role is not None:
                user.role_id = next_role.id
            user.branch_scope_mode = scope
            user.default_branch_id = next_default

            if "branch_ids" in requested or "branch_scope_mode" in requested:
                self._replace_branch_access(user, scope, next_branch_ids)

            self.db.commit()
        except (NoxeraError, SQLAlchemyError):
            self.db.rollback()
            raise
        self.db.refresh(user)

        self.recorder.record(
            tenant_id=tenant_id,
            action="USER_UPDATED",
            resource="User",
            details={"target_user_id": user.id, "before": before, "after": _snapshot(user)},
            actor_email=context.email,
        )
        return user

    def suspend_user(self, context: SecurityContext, user_id: str) -> User:
        return self.update_user(context, user_id, UserChanges(status=UserStatus.SUSPENDED.value))

    def reactivate_user(self, context: SecurityContext, user_id: str) -> User:
        return self.update_user(context, user_id, UserChanges(status=UserStatus.ACTIVE.value))

    def resend_invite(self, context: SecurityContext, user_id: str) -> User:
        tenant_id = context.tenant_id
        user = self.get_user(tenant_id, user_id)
        previous_status = user.status

        user.status = UserStatus.INVITED.value
        user.invited_at = utcnow()
        self.db.commit()
        self.db.refresh(user)

        self.recorder.record(
            tenant_id=tenant_id,
            action="USER_INVITE_RESENT",
            resource="User",
            details={
                "target_user_id": user.id,
                "email": user.email,
                "previous_status": previous_status,
            },
            actor_email=context.email,
        )
        return user

    # ========================================
    # Platform-admin overrides
    # ========================================

    def get_platform_user(self, user_id: str) -> User:
        user = self.db.query(User).filter(User.id == user_id).first()
        if user is None:
            raise NotFoundError(PLATFORM_USER_NOT_FOUND)
        return user

    def platform_update_status(self, context: SecurityContext, user_id: str, status: str) -> User:
        next_status = self._validate_status(status)
        try:
            user = self.get_platform_user(user_id)
            tenant_id = user.tenant_id
            lock_tenant(self.db, tenant_id)
            assert_owner_retention(self.db, tenant_id, user, None, next_status)

            previous_status = user.status
            user.status = next_status
            self.db.commit()
        except (NoxeraError, SQLAlchemyError):
            self.db.rollback()
            raise
        self.db.refresh(user)

        self.recorder.record(
            tenant_id=tenant_id,
            action="SUPER_ADMIN_USER_STATUS_UPDATED",
            resource="User",
            details={
                "target_user_id": user.id,
                "previous_status": previous_status,
                "status": next_status,
            },
            actor_email=context.email,
        )
        return user

    def platform_update_role(self, context: SecurityContext, user_id: str, role_id: str) -> User:
        try:
            user = self.get_platform_user(user_id)
            tenant_id = user.tenant_id
            lock_tenant(self.db, tenant_id)
            next_role = self._tenant_role(tenant_id, role_id, "Role does not belong to user tenant.")
            assert_owner_retention(self.db, tenant_id, user, next_role, None)

            previous_role_id = user.role_id
            user.role_id = next_role.id
            self.db.commit()
        except (NoxeraError, SQLAlchemyError):
            self.db.rollback()
            raise
        self.db.refresh(user)

        self.recorder.record(
            tenant_id=tenant_id,
            action="SUPER_ADMIN_USER_ROLE_UPDATED",
            resource="User",
            details={
                "target_user_id": user.id,
                "previous_role_id": previous_role_id,
                "role_id": next_role.id,
                "role_name": next_role.name,
            },
            actor_email=context.email,
        )
        return user

    # ========================================
    # Sign-in bookkeeping
    # ========================================

    def record_sign_in(self, context: SecurityContext) -> None:
        """
        Mark a tenant user's sign-in: Invited users become Active.

        No-op for platform-admin and impersonation contexts.
        """
        if context.user_id is None or context.is_impersonation:
            return

        user = self.db.query(User).filter(User.id == context.user_id).first()
        if user is None:
            return

        now = utcnow()
        if user.status == UserStatus.INVITED.value:
            user.status = UserStatus.ACTIVE.value
            user.activated_at = now
            logger.info(f"User {user.email} claimed their invitation in tenant {user.tenant_id}")
        user.last_login_at = now
        user.last_sign_in_provider = context.identity_provider
        self.db.commit()
