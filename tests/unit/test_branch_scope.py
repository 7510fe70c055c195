"""
Unit tests for branch scope resolution.

Tests read/write scope rules for unrestricted and branch-restricted
callers, and the tenant re-check of concrete branch ids.
"""

import pytest

from noxera.errors import BadRequestError, ForbiddenError, NotFoundError
from noxera.models import Member
from noxera.services.branch_scope import (
    BRANCH_REQUIRED,
    OUTSIDE_SCOPE,
    BranchScope,
    ensure_branch_in_tenant,
    normalize_branch_id,
    resolve_read_scope,
    resolve_write_scope,
)
from noxera.services.security_context import SecurityContext

from tests.fixtures.factories import create_member


def make_context(scope: str = "ALL", allowed: tuple[str, ...] = (), tenant_id: str = "t-1") -> SecurityContext:
    return SecurityContext(
        subject_id="uid-1",
        email="staff@grace.test",
        tenant_id=tenant_id,
        user_id="u-1",
        permissions=frozenset({"members.view"}),
        user_status="Active",
        branch_scope_mode=scope,
        allowed_branch_ids=allowed,
    )


class TestNormalizeBranchId:
    """Test normalize_branch_id helper."""

    @pytest.mark.parametrize("value", [None, "", "   "])
    def test_blank_means_not_requested(self, value):
        assert normalize_branch_id(value) is None

    def test_trims(self):
        assert normalize_branch_id("  b-1 ") == "b-1"


class TestReadScopeUnrestricted:
    """ALL-scope callers are never rejected by scope."""

    def test_no_branch_requested(self):
        scope = resolve_read_scope(make_context())
        assert scope.branch_id is None
        assert scope.allowed_branch_ids is None

    def test_any_branch_passes_through(self):
        scope = resolve_read_scope(make_context(), "b-anything")
        assert scope.branch_id == "b-anything"


class TestReadScopeRestricted:
    """RESTRICTED callers read only inside their grants."""

    def test_granted_branch_accepted(self):
        scope = resolve_read_scope(make_context("RESTRICTED", ("b-1", "b-2")), "b-2")
        assert scope.branch_id == "b-2"

    def test_ungranted_branch_rejected(self):
        with pytest.raises(ForbiddenError) as exc_info:
            resolve_read_scope(make_context("RESTRICTED", ("b-1",)), "b-9")
        assert exc_info.value.message == OUTSIDE_SCOPE

    def test_single_grant_auto_narrows(self):
        scope = resolve_read_scope(make_context("RESTRICTED", ("b-1",)))
        assert scope.branch_id == "b-1"
        assert scope.allowed_branch_ids is None

    def test_multiple_grants_return_set(self):
        scope = resolve_read_scope(make_context("RESTRICTED", ("b-1", "b-2")))
        assert scope.branch_id is None
        assert set(scope.allowed_branch_ids) == {"b-1", "b-2"}

    def test_no_grants_rejected(self):
        with pytest.raises(ForbiddenError):
            resolve_read_scope(make_context("RESTRICTED", ()))


class TestWriteScope:
    """Writes never auto-narrow."""

    def test_unrestricted_without_branch(self):
        assert resolve_write_scope(make_context()).branch_id is None

    def test_restricted_requires_branch_even_with_single_grant(self):
        with pytest.raises(BadRequestError) as exc_info:
            resolve_write_scope(make_context("RESTRICTED", ("b-1",)))
        assert exc_info.value.message == BRANCH_REQUIRED

    def test_restricted_outside_scope(self):
        with pytest.raises(ForbiddenError):
            resolve_write_scope(make_context("RESTRICTED", ("b-1",)), "b-2")

    def test_restricted_inside_scope(self):
        assert resolve_write_scope(make_context("RESTRICTED", ("b-1",)), " b-1 ").branch_id == "b-1"


class TestBranchScopeApply:
    """Test BranchScope.apply on a query."""

    def test_filters_by_single_branch(self, test_db, tenant, main_branch, east_branch):
        create_member(test_db, tenant, main_branch, first_name="Kofi")
        create_member(test_db, tenant, east_branch, first_name="Esi")

        query = BranchScope(branch_id=main_branch.id).apply(test_db.query(Member), Member.branch_id)
        assert [m.first_name for m in query.all()] == ["Kofi"]

    def test_filters_by_allowed_set(self, test_db, tenant, main_branch, east_branch):
        create_member(test_db, tenant, main_branch)
        create_member(test_db, tenant, east_branch)

        scope = BranchScope(allowed_branch_ids=(east_branch.id,))
        assert scope.apply(test_db.query(Member), Member.branch_id).count() == 1

    def test_unrestricted_leaves_query(self, test_db, tenant, main_branch, east_branch):
        create_member(test_db, tenant, main_branch)
        create_member(test_db, tenant, east_branch)

        assert BranchScope().apply(test_db.query(Member), Member.branch_id).count() == 2


class TestEnsureBranchInTenant:
    """Concrete branch ids are re-checked against the tenant."""

    def test_own_branch(self, test_db, tenant, main_branch):
        context = make_context(tenant_id=tenant.id)
        assert ensure_branch_in_tenant(test_db, context, main_branch.id).id == main_branch.id

    def test_other_tenant_branch_looks_missing(self, test_db, tenant, other_branch):
        context = make_context(tenant_id=tenant.id)
        with pytest.raises(NotFoundError) as exc_info:
            ensure_branch_in_tenant(test_db, context, other_branch.id)
        assert exc_info.value.message == "Branch not found."

    def test_unknown_branch(self, test_db, tenant):
        with pytest.raises(NotFoundError):
            ensure_branch_in_tenant(test_db, make_context(tenant_id=tenant.id), "does-not-exist")
