"""
Unit tests for session resolution.

Tests the caller kinds (tenant user, platform admin, impersonation), the
account checks and the branch-grant filtering, plus the identity
verifiers the resolver delegates to.
"""

import httpx
import jwt
import pytest

from noxera.errors import (
    AccountNotLinkedError,
    AccountSuspendedError,
    NoBranchAccessError,
    UnauthenticatedError,
)
from noxera.services.identity import IdentityClaims, JwtIdentityVerifier, issue_identity_token
from noxera.services.security_context import ContextKind
from noxera.services.session_resolver import SessionResolver, normalize_email

from tests.fixtures.auth import PLATFORM_ADMIN_EMAIL, TEST_IDENTITY_SECRET, identity_token
from tests.fixtures.factories import create_branch, create_user, grant_branch
from tests.mocks import StaticIdentityVerifier, create_http_verifier


class TestNormalizeEmail:
    def test_lowercases_and_trims(self):
        assert normalize_email("  Pastor@Grace.TEST ") == "pastor@grace.test"

    @pytest.mark.parametrize("value", [None, "", "   "])
    def test_blank(self, value):
        assert normalize_email(value) is None


class TestResolveContext:
    """Test SessionResolver.resolve_context."""

    async def test_missing_credential(self, test_db, resolver):
        with pytest.raises(UnauthenticatedError):
            await resolver.resolve_context(test_db, None)

        with pytest.raises(UnauthenticatedError):
            await resolver.resolve_context(test_db, "   ")

    async def test_invalid_credential(self, test_db, resolver):
        with pytest.raises(UnauthenticatedError):
            await resolver.resolve_context(test_db, "not-a-jwt")

    async def test_tenant_user(self, test_db, resolver, tenant, owner, main_branch):
        context = await resolver.resolve_context(test_db, identity_token(owner.email, provider="google"))

        assert context.kind == ContextKind.TENANT
        assert context.tenant_id == tenant.id
        assert context.tenant_name == "Grace Chapel"
        assert context.user_id == owner.id
        assert context.role_name == "Owner"
        assert "users.manage" in context.permissions
        assert context.default_branch_id == main_branch.id
        assert context.identity_provider == "google"
        assert context.allowed_branch_ids == ()

    async def test_email_matched_case_insensitively(self, test_db, resolver, owner):
        context = await resolver.resolve_context(test_db, identity_token("PASTOR@grace.test"))
        assert context.user_id == owner.id

    async def test_platform_admin(self, test_db, resolver):
        context = await resolver.resolve_context(test_db, identity_token(PLATFORM_ADMIN_EMAIL.upper()))

        assert context.kind == ContextKind.PLATFORM_ADMIN
        assert context.is_platform_admin is True
        assert context.tenant_id is None
        assert context.permissions == frozenset()

    async def test_platform_admin_wins_over_tenant_user(self, test_db, impersonation_manager, tenant, owner):
        resolver = SessionResolver(
            verifier=JwtIdentityVerifier(TEST_IDENTITY_SECRET),
            impersonation_manager=impersonation_manager,
            platform_admin_emails=[owner.email],
        )
        context = await resolver.resolve_context(test_db, identity_token(owner.email))
        assert context.is_platform_admin is True
        assert context.tenant_id is None

    async def test_not_linked(self, test_db, resolver, tenant):
        with pytest.raises(AccountNotLinkedError) as exc_info:
            await resolver.resolve_context(test_db, identity_token("stranger@else.test"))
        assert exc_info.value.status_code == 403

    async def test_suspended(self, test_db, resolver, tenant):
        user = create_user(test_db, tenant, "gone@grace.test", role_name="Staff", status="Suspended")
        with pytest.raises(AccountSuspendedError):
            await resolver.resolve_context(test_db, identity_token(user.email))

    async def test_invited_user_resolves(self, test_db, resolver, tenant):
        user = create_user(test_db, tenant, "new@grace.test", role_name="Viewer", status="Invited")
        context = await resolver.resolve_context(test_db, identity_token(user.email))
        assert context.user_status == "Invited"

    async def test_impersonation_token_skips_identity_verifier(
        self, test_db, impersonation_manager, tenant
    ):
        verifier = StaticIdentityVerifier()
        resolver = SessionResolver(verifier, impersonation_manager, [PLATFORM_ADMIN_EMAIL])
        token, _ = impersonation_manager.issue(PLATFORM_ADMIN_EMAIL, tenant.id)

        context = await resolver.resolve_context(test_db, token)

        assert verifier.calls == []
        assert context.kind == ContextKind.IMPERSONATION
        assert context.tenant_id == tenant.id


class TestRestrictedGrants:
    """Grants are filtered to active branches of the user's tenant."""

    async def test_grants_become_allowed_branches(self, test_db, resolver, tenant, main_branch, east_branch):
        user = create_user(
            test_db, tenant, "usher@grace.test", role_name="Staff",
            branch_scope_mode="RESTRICTED", branches=[main_branch, east_branch],
        )
        context = await resolver.resolve_context(test_db, identity_token(user.email))

        assert context.is_restricted
        assert set(context.allowed_branch_ids) == {main_branch.id, east_branch.id}

    async def test_archived_branch_grant_ignored(self, test_db, resolver, tenant, main_branch):
        archived = create_branch(test_db, tenant, name="Old Campus", is_active=False)
        user = create_user(
            test_db, tenant, "usher@grace.test", role_name="Staff",
            branch_scope_mode="RESTRICTED", branches=[main_branch, archived],
        )
        context = await resolver.resolve_context(test_db, identity_token(user.email))
        assert context.allowed_branch_ids == (main_branch.id,)

    async def test_cross_tenant_grant_ignored(self, test_db, resolver, tenant, main_branch, other_branch):
        user = create_user(
            test_db, tenant, "usher@grace.test", role_name="Staff",
            branch_scope_mode="RESTRICTED", branches=[main_branch],
        )
        grant_branch(test_db, user, other_branch)

        context = await resolver.resolve_context(test_db, identity_token(user.email))
        assert context.allowed_branch_ids == (main_branch.id,)

    async def test_no_usable_grant(self, test_db, resolver, tenant):
        archived = create_branch(test_db, tenant, name="Old Campus", is_active=False)
        user = create_user(
            test_db, tenant, "usher@grace.test", role_name="Staff",
            branch_scope_mode="RESTRICTED", branches=[archived],
        )
        with pytest.raises(NoBranchAccessError):
            await resolver.resolve_context(test_db, identity_token(user.email))


class TestJwtIdentityVerifier:
    async def test_valid_token(self):
        verifier = JwtIdentityVerifier(TEST_IDENTITY_SECRET)
        claims = await verifier.verify(
            issue_identity_token(TEST_IDENTITY_SECRET, "uid-7", "a@b.test", provider="google")
        )
        assert claims == IdentityClaims(subject_id="uid-7", email="a@b.test", provider="google")

    async def test_wrong_secret(self):
        verifier = JwtIdentityVerifier(TEST_IDENTITY_SECRET)
        with pytest.raises(UnauthenticatedError):
            await verifier.verify(issue_identity_token("another-secret", "uid-7", "a@b.test"))

    async def test_expired(self):
        verifier = JwtIdentityVerifier(TEST_IDENTITY_SECRET)
        with pytest.raises(UnauthenticatedError):
            await verifier.verify(
                issue_identity_token(TEST_IDENTITY_SECRET, "uid-7", "a@b.test", expires_minutes=-5)
            )

    async def test_impersonation_typed_token_rejected(self):
        token = jwt.encode(
            {"sub": "x", "exp": 4102444800, "type": "impersonation"},
            TEST_IDENTITY_SECRET,
            algorithm="HS256",
        )
        with pytest.raises(UnauthenticatedError):
            await JwtIdentityVerifier(TEST_IDENTITY_SECRET).verify(token)


class TestHttpIdentityVerifier:
    async def test_valid_response(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"uid": "u-1", "email": "a@b.test", "provider": "google"})

        verifier = create_http_verifier(handler)
        claims = await verifier.verify("token")
        await verifier.close()

        assert claims.subject_id == "u-1"
        assert claims.provider == "google"

    async def test_rejected_token(self):
        verifier = create_http_verifier(lambda request: httpx.Response(401, json={"error": "bad"}))
        with pytest.raises(UnauthenticatedError):
            await verifier.verify("token")
        await verifier.close()

    async def test_timeout_fails_closed(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        verifier = create_http_verifier(handler)
        with pytest.raises(UnauthenticatedError) as exc_info:
            await verifier.verify("token")
        await verifier.close()
        assert "timed out" in exc_info.value.message

    async def test_missing_uid(self):
        verifier = create_http_verifier(lambda request: httpx.Response(200, json={"email": "a@b.test"}))
        with pytest.raises(UnauthenticatedError):
            await verifier.verify("token")
        await verifier.close()
