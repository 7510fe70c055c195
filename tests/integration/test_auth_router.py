"""
Integration tests for the session endpoints.

Tests /api/v1/auth/session, /api/v1/auth/impersonation/session and
/api/v1/auth/me.
"""

from noxera.models import User

from tests.fixtures.auth import PLATFORM_ADMIN_EMAIL, bearer, identity_token
from tests.fixtures.factories import create_user


class TestCreateSession:
    """Test POST /api/v1/auth/session endpoint."""

    def test_tenant_session_payload(self, client, tenant, owner, main_branch):
        response = client.post(
            "/api/v1/auth/session",
            json={"token": identity_token(owner.email, provider="google")},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        data = body["data"]
        assert data["kind"] == "tenant"
        assert data["is_super_admin"] is False
        assert data["tenant_id"] == tenant.id
        assert data["tenant_name"] == "Grace Chapel"
        assert data["role_name"] == "Owner"
        assert "users.manage" in data["permissions"]
        assert data["default_branch_id"] == main_branch.id
        assert data["sign_in_provider"] == "google"
        assert data["impersonation"] is None

    def test_invited_user_becomes_active(self, client, test_db, tenant):
        user = create_user(test_db, tenant, "new@grace.test", role_name="Viewer", status="Invited")

        response = client.post("/api/v1/auth/session", json={"token": identity_token(user.email)})

        assert response.status_code == 200
        test_db.expire_all()
        stored = test_db.query(User).filter(User.id == user.id).one()
        assert stored.status == "Active"
        assert stored.last_login_at is not None

    def test_platform_admin_session(self, client):
        response = client.post("/api/v1/auth/session", json={"token": identity_token(PLATFORM_ADMIN_EMAIL)})

        data = response.json()["data"]
        assert data["kind"] == "platform_admin"
        assert data["is_super_admin"] is True
        assert data["tenant_id"] is None
        assert data["permissions"] == []

    def test_invalid_token_gives_generic_401(self, client):
        response = client.post("/api/v1/auth/session", json={"token": "garbage"})

        assert response.status_code == 401
        assert response.headers["WWW-Authenticate"] == "Bearer"
        body = response.json()
        assert body["success"] is False
        assert body["error"] == "Invalid or expired credentials"

    def test_unlinked_account(self, client, tenant):
        response = client.post("/api/v1/auth/session", json={"token": identity_token("stranger@else.test")})
        assert response.status_code == 403

    def test_suspended_account(self, client, test_db, tenant):
        user = create_user(test_db, tenant, "gone@grace.test", role_name="Staff", status="Suspended")
        response = client.post("/api/v1/auth/session", json={"token": identity_token(user.email)})
        assert response.status_code == 403

    def test_empty_token_rejected(self, client):
        response = client.post("/api/v1/auth/session", json={"token": ""})
        assert response.status_code == 422


class TestImpersonationSession:
    """Test POST /api/v1/auth/impersonation/session endpoint."""

    def test_returns_session_and_window(self, client, impersonation_manager, tenant):
        token, grant = impersonation_manager.issue(PLATFORM_ADMIN_EMAIL, tenant.id)

        response = client.post("/api/v1/auth/impersonation/session", json={"token": token})

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["session"]["kind"] == "impersonation"
        assert data["session"]["is_super_admin"] is False
        assert data["session"]["permissions"] == ["*"]
        assert data["session"]["uid"] == f"impersonation:{tenant.id}"
        assert data["impersonation"]["super_admin_email"] == PLATFORM_ADMIN_EMAIL
        assert data["impersonation"]["tenant_id"] == tenant.id

    def test_identity_token_rejected(self, client, owner):
        response = client.post("/api/v1/auth/impersonation/session", json={"token": identity_token(owner.email)})
        assert response.status_code == 401

    def test_expired_token_rejected(self, client, impersonation_manager, clock, tenant):
        token, _ = impersonation_manager.issue(PLATFORM_ADMIN_EMAIL, tenant.id)
        clock.advance(minutes=31)

        response = client.post("/api/v1/auth/impersonation/session", json={"token": token})
        assert response.status_code == 401


class TestMe:
    """Test GET /api/v1/auth/me endpoint."""

    def test_requires_credential(self, client):
        response = client.get("/api/v1/auth/me")
        assert response.status_code == 401
        assert response.headers["WWW-Authenticate"] == "Bearer"

    def test_restricted_user(self, client, test_db, tenant, main_branch, east_branch, headers_for):
        user = create_user(
            test_db, tenant, "usher@grace.test", role_name="Staff",
            branch_scope_mode="RESTRICTED", branches=[east_branch],
        )

        response = client.get("/api/v1/auth/me", headers=headers_for(user))

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["branch_scope_mode"] == "RESTRICTED"
        assert data["allowed_branch_ids"] == [east_branch.id]

    def test_does_not_record_sign_in(self, client, test_db, tenant, headers_for):
        user = create_user(test_db, tenant, "new@grace.test", role_name="Viewer", status="Invited")

        client.get("/api/v1/auth/me", headers=headers_for(user))

        test_db.expire_all()
        assert test_db.query(User).filter(User.id == user.id).one().status == "Invited"

    def test_impersonation_bearer(self, client, impersonation_manager, tenant):
        token, _ = impersonation_manager.issue(PLATFORM_ADMIN_EMAIL, tenant.id)
        response = client.get("/api/v1/auth/me", headers=bearer(token))
        assert response.json()["data"]["kind"] == "impersonation"
