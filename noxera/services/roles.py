### Description ###
# Noxera Plus - Church Operations Platform API
# - Role Service -
# Author: Bailey Dixon
# Date: 01/03/2026
# Python: 3.11
####################

"""
Role Service

Tenant role management. System roles (Owner, Admin, Staff, Viewer) are
seeded from the templates and can have their permissions edited, but can
neither be renamed nor deleted.
"""

import logging
from collections.abc import Iterable

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from noxera.errors import BadRequestError, NotFoundError, NoxeraError
from noxera.models import Role, User
from noxera.services.audit import AuditRecorder
from noxera.services.permission_catalog import (
    PERMISSION_CATALOG,
    SYSTEM_ROLE_TEMPLATES,
    WILDCARD_PERMISSION,
)
from noxera.services.security_context import SecurityContext
from noxera.services.tenant_lock import lock_tenant

logger = logging.getLogger(__name__)


def normalize_permissions(permissions: Iterable[str] | None) -> list[str]:
    """
    Trim, drop unknown entries and de-duplicate (order kept).

    Raises:
        BadRequestError: "*" requested, or nothing valid left
    """
    normalized: list[str] = []
    for permission in permissions or []:
        value = permission.strip()
        if value == WILDCARD_PERMISSION:
            raise BadRequestError("The '*' permission is reserved and cannot be assigned to a role.")
        if value in PERMISSION_CATALOG and value not in normalized:
            normalized.append(value)

    if not normalized:
        raise BadRequestError("At least one valid permission is required.")
    return normalized


def seed_system_roles(db: Session, tenant_id: str) -> list[Role]:
    """
    Add any missing system roles to a tenant (not committed).

    Returns:
        The roles that were added
    """
    existing = {
        name_key
        for (name_key,) in db.query(Role.name_key).filter(Role.tenant_id == tenant_id).all()
    }
    added = []
    for name, permissions in SYSTEM_ROLE_TEMPLATES.items():
        if name.lower() in existing:
            continue
        role = Role(tenant_id=tenant_id, name=name, permissions=list(permissions), is_system=True)
        db.add(role)
        added.append(role)
    return added


def _snapshot(role: Role) -> dict:
    return {"name": role.name, "permissions": list(role.permissions or [])}


class RoleService:
    """Role CRUD for one request"""

    def __init__(self, db: Session, recorder: AuditRecorder):
        self.db = db
        self.recorder = recorder

    def get_permission_catalog(self) -> list[str]:
        return list(PERMISSION_CATALOG)

    def ensure_system_roles(self, tenant_id: str) -> None:
        if seed_system_roles(self.db, tenant_id):
            try:
                self.db.commit()
            except IntegrityError:
                # Seeded concurrently
                self.db.rollback()

    def list_roles(
        self,
        tenant_id: str,
        search: str | None = None,
        page: int = 1,
        page_size: int = 20,
    ) -> tuple[list[tuple[Role, int]], int]:
        """
        List roles with their user counts, system roles first.

        Returns:
            ([(role, user_count)], total)
        """
        self.ensure_system_roles(tenant_id)

        query = self.db.query(Role).filter(Role.tenant_id == tenant_id)
        if search and search.strip():
            query = query.filter(Role.name_key.contains(search.strip().lower()))

        total = query.count()
        roles = (
            query.order_by(Role.is_system.desc(), Role.name_key.asc())
            .offset((page - 1) * page_size)
            .limit(page_size)
            .all()
        )

        counts = dict(
            self.db.query(User.role_id, func.count(User.id))
            .filter(User.role_id.in_([role.id for role in roles]))
            .group_by(User.role_id)
            .all()
        ) if roles else {}

        return [(role, counts.get(role.id, 0)) for role in roles], total

    def get_role(self, tenant_id: str, role_id: str) -> Role:
        role = self.db.query(Role).filter(Role.id == role_id, Role.tenant_id == tenant_id).first()
        if role is None:
            raise NotFoundError("Role not found.")
        return role

    def _name_taken(self, tenant_id: str, name: str, exclude_id: str | None = None) -> bool:
        query = self.db.query(Role.id).filter(
            Role.tenant_id == tenant_id, Role.name_key == name.lower()
        )
        if exclude_id:
            query = query.filter(Role.id != exclude_id)
        return query.first() is not None

    def create_role(
        self,
        context: SecurityContext,
        name: str,
        permissions: list[str],
    ) -> Role:
        tenant_id = context.tenant_id
        normalized_name = (name or "").strip()
        if not normalized_name:
            raise BadRequestError("Role name is required.")

        normalized_permissions = normalize_permissions(permissions)

        try:
            lock_tenant(self.db, tenant_id)
            if self._name_taken(tenant_id, normalized_name):
                raise BadRequestError("Role name already exists in this tenant.")

            role = Role(
                tenant_id=tenant_id,
                name=normalized_name,
                permissions=normalized_permissions,
                is_system=False,
            )
            self.db.add(role)
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            raise BadRequestError("Role name already exists in this tenant.") from e
        except (NoxeraError, SQLAlchemyError):
            self.db.rollback()
            raise
        self.db.refresh(role)

        self.recorder.record(
            tenant_id=tenant_id,
            action="ROLE_CREATED",
            resource="Role",
            details={"role_id": role.id, "after": _snapshot(role)},
            actor_email=context.email,
        )
        return role

    def update_role(
        self,
        context: SecurityContext,
        role_id: str,
        name: str | None = None,
        permissions: list[str] | None = None,
    ) -> Role:
        tenant_id = context.tenant_id

        try:
            lock_tenant(self.db, tenant_id)
            role = self.get_role(tenant_id, role_id)
            before = _snapshot(role)

            if name is not None:
                normalized_name = name.strip()
                if not normalized_name:
                    raise BadRequestError("Role name cannot be empty.")
                if normalized_name.lower() != role.name_key:
                    if role.is_system:
                        raise BadRequestError("System roles cannot be renamed.")
                    if self._name_taken(tenant_id, normalized_name, exclude_id=role.id):
                        raise BadRequestError("Another role already uses this name.")
                if not role.is_system:
                    role.name = normalized_name

            if permissions is not None:
                role.permissions = normalize_permissions(permissions)

            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            raise BadRequestError("Another role already uses this name.") from e
        except (NoxeraError, SQLAlchemyError):
            self.db.rollback()
            raise
        self.db.refresh(role)

        self.recorder.record(
            tenant_id=tenant_id,
            action="ROLE_UPDATED",
            resource="Role",
            details={"role_id": role.id, "before": before, "after": _snapshot(role)},
            actor_email=context.email,
        )
        return role

    def delete_role(
        self,
        context: SecurityContext,
        role_id: str,
        reassign_role_id: str | None = None,
    ) -> None:
        """
        Delete a custom role.

        Users holding it are moved to reassign_role_id, which is then
        mandatory. Runs under the tenant lock, so a concurrent invite or
        update cannot assign the role between the count and the delete.
        """
        tenant_id = context.tenant_id

        try:
            lock_tenant(self.db, tenant_id)
            role = self.get_role(tenant_id, role_id)
            if role.is_system:
                raise BadRequestError("System roles cannot be deleted.")

            assigned = self.db.query(User).filter(User.tenant_id == tenant_id, User.role_id == role.id)
            assigned_count = assigned.count()
            replacement = None

            if assigned_count > 0:
                if not reassign_role_id:
                    raise BadRequestError("Role is assigned to users. Provide reassign_role_id.")
                replacement = (
                    self.db.query(Role)
                    .filter(Role.id == reassign_role_id, Role.tenant_id == tenant_id)
                    .first()
                )
                if replacement is None or replacement.id == role.id:
                    raise BadRequestError("Reassignment role not found in this tenant.")
                assigned.update({User.role_id: replacement.id}, synchronize_session=False)

            before = _snapshot(role)
            self.db.delete(role)
            self.db.commit()
        except (NoxeraError, SQLAlchemyError):
            self.db.rollback()
            raise

        self.recorder.record(
            tenant_id=tenant_id,
            action="ROLE_DELETED",
            resource="Role",
            details={
                "role_id": role_id,
                "before": before,
                "reassigned_to": replacement.id if replacement else None,
                "reassigned_users": assigned_count,
            },
            actor_email=context.email,
        )
