### Description ###
# Noxera Plus - Church Operations Platform API
# - Tenant Service -
# Author: Bailey Dixon
# Date: 01/03/2026
# Python: 3.11
####################

"""
Tenant Service

Platform-level tenant onboarding and plan/status management.
"""

import logging
from collections.abc import Callable

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from noxera.errors import BadRequestError, NotFoundError
from noxera.models import (
    OWNER_ROLE_NAME,
    Branch,
    BranchScopeMode,
    Role,
    Tenant,
    User,
    UserStatus,
)
from noxera.services.audit import AuditRecorder
from noxera.services.roles import seed_system_roles
from noxera.services.security_context import SecurityContext
from noxera.utils import utcnow

logger = logging.getLogger(__name__)

DEFAULT_BRANCH_NAME = "Main Campus"


def _snapshot(tenant: Tenant) -> dict:
    return {"name": tenant.name, "plan": tenant.plan, "status": tenant.status}


class TenantService:
    """Tenant onboarding and administration (platform admins only)"""

    def __init__(
        self,
        db: Session,
        recorder: AuditRecorder,
        is_platform_admin: Callable[[str | None], bool] = lambda email: False,
    ):
        self.db = db
        self.recorder = recorder
        self.is_platform_admin = is_platform_admin

    def create_tenant(
        self,
        context: SecurityContext,
        name: str,
        domain: str,
        admin_email: str,
        plan: str = "basic",
        admin_name: str | None = None,
        branch_name: str | None = None,
    ) -> Tenant:
        """
        Onboard a church.

        Creates the tenant, its system roles, a first branch and the owner
        (Invited, on the Owner role).
        """
        normalized_name = (name or "").strip()
        normalized_domain = (domain or "").strip().lower()
        owner_email = (admin_email or "").strip().lower()
        if not normalized_name or not normalized_domain or not owner_email:
            raise BadRequestError("name, domain and admin_email are required.")

        if self.db.query(Tenant.id).filter(Tenant.domain == normalized_domain).first():
            raise BadRequestError("Domain is already taken")
        if self.is_platform_admin(owner_email):
            raise BadRequestError("Cannot convert super-admin account to tenant user via invite flow.")
        if self.db.query(User.id).filter(User.email == owner_email).first():
            raise BadRequestError("This email already belongs to a different tenant.")

        tenant = Tenant(
            name=normalized_name,
            domain=normalized_domain,
            plan=(plan or "basic").strip().lower(),
        )
        self.db.add(tenant)
        self.db.flush()

        seed_system_roles(self.db, tenant.id)
        branch = Branch(
            tenant_id=tenant.id,
            name=(branch_name or "").strip() or DEFAULT_BRANCH_NAME,
            is_active=True,
        )
        self.db.add(branch)
        self.db.flush()

        owner_role = (
            self.db.query(Role)
            .filter(Role.tenant_id == tenant.id, Role.name == OWNER_ROLE_NAME)
            .one()
        )
        owner = User(
            tenant_id=tenant.id,
            email=owner_email,
            name=(admin_name or "").strip() or "Church Owner",
            status=UserStatus.INVITED.value,
            role_id=owner_role.id,
            branch_scope_mode=BranchScopeMode.ALL.value,
            default_branch_id=branch.id,
            invited_at=utcnow(),
        )
        self.db.add(owner)

        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            raise BadRequestError("Domain or owner email is already in use.") from e
        self.db.refresh(tenant)

        logger.info(f"Tenant created: {tenant.name} ({tenant.domain})")
        self.recorder.record(
            tenant_id=tenant.id,
            action="TENANT_CREATED",
            resource="Tenant",
            details={
                "after": {**_snapshot(tenant), "domain": tenant.domain},
                "owner_email": owner_email,
                "branch_id": branch.id,
            },
            actor_email=context.email,
        )
        return tenant

    def list_tenants(
        self,
        search: str | None = None,
        status: str | None = None,
        page: int = 1,
        page_size: int = 20,
    ) -> tuple[list[Tenant], int]:
        query = self.db.query(Tenant)
        if search and search.strip():
            pattern = f"%{search.strip()}%"
            query = query.filter(or_(Tenant.name.ilike(pattern), Tenant.domain.ilike(pattern)))
        if status:
            query = query.filter(Tenant.status == status)

        total = query.count()
        tenants = (
            query.order_by(Tenant.created_at.desc())
            .offset((page - 1) * page_size)
            .limit(page_size)
            .all()
        )
        return tenants, total

    def get_tenant(self, tenant_id: str) -> Tenant:
        tenant = self.db.query(Tenant).filter(Tenant.id == tenant_id).first()
        if tenant is None:
            raise NotFoundError("Tenant not found.")
        return tenant

    def update_tenant(
        self,
        context: SecurityContext,
        tenant_id: str,
        name: str | None = None,
        plan: str | None = None,
        status: str | None = None,
    ) -> Tenant:
        tenant = self.get_tenant(tenant_id)
        before = _snapshot(tenant)

        if name is not None:
            if not name.strip():
                raise BadRequestError("Tenant name cannot be empty.")
            tenant.name = name.strip()
        if plan is not None:
            if not plan.strip():
                raise BadRequestError("Plan cannot be empty.")
            tenant.plan = plan.strip().lower()
        if status is not None:
            tenant.status = status

        self.db.commit()
        self.db.refresh(tenant)

        self.recorder.record(
            tenant_id=tenant.id,
            action="TENANT_UPDATED",
            resource="Tenant",
            details={"before": before, "after": _snapshot(tenant)},
            actor_email=context.email,
        )
        return tenant
