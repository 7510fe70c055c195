"""
Unit tests for tenant onboarding and administration.
"""

import pytest
from sqlalchemy.orm import Session

from noxera.errors import BadRequestError, NotFoundError
from noxera.models import AuditEntry, Branch, Role, User
from noxera.services.tenant_lock import lock_tenant
from noxera.services.tenants import TenantService

from tests.fixtures.auth import PLATFORM_ADMIN_EMAIL


@pytest.fixture
def service(test_db, recorder) -> TenantService:
    return TenantService(test_db, recorder, is_platform_admin=lambda email: email == PLATFORM_ADMIN_EMAIL)


class TestCreateTenant:
    def test_onboards_church(self, test_db: Session, service, platform_admin_context):
        tenant = service.create_tenant(
            platform_admin_context,
            name="Bethel Church",
            domain=" Bethel ",
            admin_email="Lead@Bethel.test",
            plan="Pro",
            admin_name="Rev. Owusu",
        )

        assert tenant.domain == "bethel"
        assert tenant.plan == "pro"
        assert tenant.status == "Active"

        roles = {role.name for role in test_db.query(Role).filter(Role.tenant_id == tenant.id)}
        assert roles == {"Owner", "Admin", "Staff", "Viewer"}

        branch = test_db.query(Branch).filter(Branch.tenant_id == tenant.id).one()
        assert branch.name == "Main Campus"

        owner = test_db.query(User).filter(User.tenant_id == tenant.id).one()
        assert owner.email == "lead@bethel.test"
        assert owner.status == "Invited"
        assert owner.role.name == "Owner"
        assert owner.default_branch_id == branch.id

        entry = test_db.query(AuditEntry).filter(AuditEntry.action == "TENANT_CREATED").one()
        assert entry.tenant_id == tenant.id
        assert entry.actor_email == PLATFORM_ADMIN_EMAIL

    def test_custom_branch_name(self, test_db, service, platform_admin_context):
        tenant = service.create_tenant(
            platform_admin_context, "Bethel Church", "bethel", "lead@bethel.test", branch_name="Downtown"
        )
        assert test_db.query(Branch).filter(Branch.tenant_id == tenant.id).one().name == "Downtown"

    def test_duplicate_domain(self, service, platform_admin_context, tenant):
        with pytest.raises(BadRequestError) as exc_info:
            service.create_tenant(platform_admin_context, "Copy", "GRACE-CHAPEL", "x@copy.test")
        assert exc_info.value.message == "Domain is already taken"

    def test_admin_email_rejected(self, service, platform_admin_context):
        with pytest.raises(BadRequestError):
            service.create_tenant(platform_admin_context, "Bethel", "bethel", PLATFORM_ADMIN_EMAIL)

    def test_existing_user_email_rejected(self, service, platform_admin_context, owner):
        with pytest.raises(BadRequestError):
            service.create_tenant(platform_admin_context, "Bethel", "bethel", owner.email)

    def test_missing_fields(self, service, platform_admin_context):
        with pytest.raises(BadRequestError):
            service.create_tenant(platform_admin_context, "  ", "bethel", "lead@bethel.test")


class TestQueryAndUpdate:
    def test_list_search_and_status(self, test_db, service, tenant, other_tenant):
        other_tenant.status = "Suspended"
        test_db.commit()

        tenants, total = service.list_tenants(search="grace")
        assert total == 1
        assert tenants[0].id == tenant.id

        _, total = service.list_tenants(status="Suspended")
        assert total == 1

    def test_get_missing(self, service):
        with pytest.raises(NotFoundError):
            service.get_tenant("missing")

    def test_update_audited(self, test_db, service, platform_admin_context, tenant):
        updated = service.update_tenant(platform_admin_context, tenant.id, plan=" Premium ", status="Suspended")

        assert updated.plan == "premium"
        assert updated.status == "Suspended"
        entry = test_db.query(AuditEntry).filter(AuditEntry.action == "TENANT_UPDATED").one()
        assert entry.details["before"]["status"] == "Active"
        assert entry.details["after"]["status"] == "Suspended"

    def test_empty_name_rejected(self, service, platform_admin_context, tenant):
        with pytest.raises(BadRequestError):
            service.update_tenant(platform_admin_context, tenant.id, name=" ")


class TestLockTenant:
    def test_bumps_lock_version(self, test_db, tenant):
        before = tenant.lock_version
        lock_tenant(test_db, tenant.id)
        test_db.commit()

        test_db.refresh(tenant)
        assert tenant.lock_version == before + 1

    def test_unknown_tenant(self, test_db):
        with pytest.raises(NotFoundError):
            lock_tenant(test_db, "missing")
