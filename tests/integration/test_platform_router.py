"""
Integration tests for the platform administration router.

Tests tenant onboarding, impersonation start/stop, user overrides and
audit logs at /api/v1/platform.
"""

from noxera.models import AuditEntry, Tenant

from tests.fixtures.auth import PLATFORM_ADMIN_EMAIL, bearer
from tests.fixtures.factories import create_user, get_role


class TestPlatformAccess:
    """Only allow-listed administrators reach /platform."""

    def test_tenant_owner_denied(self, client, owner, headers_for):
        response = client.get("/api/v1/platform/tenants", headers=headers_for(owner))
        assert response.status_code == 403
        assert response.json()["error"] == "Platform administrator access required."

    def test_impersonation_token_denied(self, client, impersonation_manager, tenant):
        token, _ = impersonation_manager.issue(PLATFORM_ADMIN_EMAIL, tenant.id)
        response = client.get("/api/v1/platform/tenants", headers=bearer(token))
        assert response.status_code == 403

    def test_anonymous(self, client):
        assert client.get("/api/v1/platform/tenants").status_code == 401


class TestTenants:
    """Test /api/v1/platform/tenants endpoints."""

    def test_create_tenant(self, client, test_db, admin_headers):
        response = client.post(
            "/api/v1/platform/tenants",
            headers=admin_headers,
            json={
                "name": "Bethel Church",
                "domain": "bethel",
                "admin_email": "lead@bethel.test",
                "plan": "pro",
            },
        )

        assert response.status_code == 201
        data = response.json()["data"]
        assert data["domain"] == "bethel"
        assert data["status"] == "Active"
        assert test_db.query(Tenant).filter(Tenant.id == data["id"]).count() == 1

    def test_duplicate_domain(self, client, admin_headers, tenant):
        response = client.post(
            "/api/v1/platform/tenants",
            headers=admin_headers,
            json={"name": "Copy", "domain": "grace-chapel", "admin_email": "x@copy.test"},
        )
        assert response.status_code == 400
        assert response.json()["error"] == "Domain is already taken"

    def test_list_paginated(self, client, admin_headers, tenant, other_tenant):
        response = client.get("/api/v1/platform/tenants?page=1&page_size=1", headers=admin_headers)

        assert response.status_code == 200
        body = response.json()
        assert len(body["data"]) == 1
        assert body["pagination"]["total_items"] == 2
        assert body["pagination"]["has_next"] is True

    def test_suspend_tenant(self, client, admin_headers, tenant):
        response = client.patch(
            f"/api/v1/platform/tenants/{tenant.id}", headers=admin_headers, json={"status": "Suspended"}
        )
        assert response.status_code == 200
        assert response.json()["data"]["status"] == "Suspended"

    def test_invalid_status(self, client, admin_headers, tenant):
        response = client.patch(
            f"/api/v1/platform/tenants/{tenant.id}", headers=admin_headers, json={"status": "Deleted"}
        )
        assert response.status_code == 422

    def test_get_missing(self, client, admin_headers):
        assert client.get("/api/v1/platform/tenants/missing", headers=admin_headers).status_code == 404


class TestImpersonation:
    """Impersonation lifecycle over HTTP."""

    def test_admin_needs_impersonation_for_tenant_routes(self, client, admin_headers, main_branch):
        response = client.get("/api/v1/branches", headers=admin_headers)

        assert response.status_code == 403
        assert response.json()["error"] == (
            "Super-admins must use explicit impersonation to access church-admin routes."
        )

    def test_start_use_and_stop(self, client, test_db, admin_headers, tenant, main_branch):
        started = client.post(f"/api/v1/platform/tenants/{tenant.id}/impersonate", headers=admin_headers)

        assert started.status_code == 201
        data = started.json()["data"]
        assert data["token"].startswith("imp_")
        assert data["tenant_name"] == "Grace Chapel"
        token = data["token"]

        branches = client.get("/api/v1/branches", headers=bearer(token))
        assert branches.status_code == 200
        assert [b["id"] for b in branches.json()["data"]] == [main_branch.id]

        stopped = client.post("/api/v1/platform/impersonation/stop", headers=admin_headers, json={"token": token})
        assert stopped.status_code == 200
        assert stopped.json()["data"]["tenant_id"] == tenant.id

        assert client.get("/api/v1/branches", headers=bearer(token)).status_code == 401

        actions = [
            entry.action
            for entry in test_db.query(AuditEntry).filter(AuditEntry.tenant_id == tenant.id)
        ]
        assert "IMPERSONATION_STARTED" in actions
        assert "IMPERSONATION_ENDED" in actions

    def test_impersonation_cannot_reach_other_tenant(self, client, impersonation_manager, tenant, other_branch):
        token, _ = impersonation_manager.issue(PLATFORM_ADMIN_EMAIL, tenant.id)
        response = client.get(f"/api/v1/branches/{other_branch.id}", headers=bearer(token))
        assert response.status_code == 404

    def test_start_unknown_tenant(self, client, admin_headers):
        response = client.post("/api/v1/platform/tenants/missing/impersonate", headers=admin_headers)
        assert response.status_code == 404

    def test_stop_garbage_token(self, client, admin_headers):
        response = client.post(
            "/api/v1/platform/impersonation/stop", headers=admin_headers, json={"token": "imp_garbage"}
        )
        assert response.status_code == 401


class TestUserOverrides:
    """Test /api/v1/platform/users overrides."""

    def test_sole_owner_cannot_be_suspended(self, client, admin_headers, owner):
        response = client.patch(
            f"/api/v1/platform/users/{owner.id}/status", headers=admin_headers, json={"status": "Suspended"}
        )

        assert response.status_code == 400
        assert response.json()["error"] == "Cannot remove or suspend the last active Owner in this tenant."

    def test_suspend_staff(self, client, test_db, admin_headers, tenant, owner):
        staff = create_user(test_db, tenant, "usher@grace.test", role_name="Staff")

        response = client.patch(
            f"/api/v1/platform/users/{staff.id}/status", headers=admin_headers, json={"status": "Suspended"}
        )

        assert response.status_code == 200
        assert response.json()["data"]["status"] == "Suspended"
        entry = test_db.query(AuditEntry).filter(AuditEntry.action == "SUPER_ADMIN_USER_STATUS_UPDATED").one()
        assert entry.actor_email == PLATFORM_ADMIN_EMAIL

    def test_role_from_other_tenant(self, client, test_db, admin_headers, tenant, owner, other_tenant):
        staff = create_user(test_db, tenant, "usher@grace.test", role_name="Staff")
        foreign = get_role(test_db, other_tenant, "Admin")

        response = client.patch(
            f"/api/v1/platform/users/{staff.id}/role", headers=admin_headers, json={"role_id": foreign.id}
        )
        assert response.status_code == 400

    def test_unknown_user(self, client, admin_headers):
        response = client.patch(
            "/api/v1/platform/users/missing/status", headers=admin_headers, json={"status": "Active"}
        )
        assert response.status_code == 404


class TestAuditLogs:
    """Test /api/v1/platform/audit-logs endpoints."""

    def test_lists_entries_newest_first(self, client, admin_headers, tenant, main_branch):
        client.post(f"/api/v1/platform/tenants/{tenant.id}/impersonate", headers=admin_headers)
        client.patch(f"/api/v1/platform/tenants/{tenant.id}", headers=admin_headers, json={"plan": "pro"})

        response = client.get(f"/api/v1/platform/audit-logs?tenant_id={tenant.id}", headers=admin_headers)

        assert response.status_code == 200
        actions = [entry["action"] for entry in response.json()["data"]]
        assert actions == ["TENANT_UPDATED", "IMPERSONATION_STARTED"]

    def test_impersonation_subset(self, client, admin_headers, tenant):
        client.post(f"/api/v1/platform/tenants/{tenant.id}/impersonate", headers=admin_headers)
        client.patch(f"/api/v1/platform/tenants/{tenant.id}", headers=admin_headers, json={"plan": "pro"})

        response = client.get("/api/v1/platform/audit-logs/impersonation", headers=admin_headers)

        assert [entry["action"] for entry in response.json()["data"]] == ["IMPERSONATION_STARTED"]

    def test_owner_denied(self, client, owner, headers_for):
        assert client.get("/api/v1/platform/audit-logs", headers=headers_for(owner)).status_code == 403
