### Description ###
# Noxera Plus - Church Operations Platform API
# - Branch Scope Resolver -
# Author: Bailey Dixon
# Date: 01/03/2026
# Python: 3.11
####################

"""
Branch Scope Resolver

Computes the effective branch filter for a read or a write made by a
resolved caller. Every branch-scoped domain service goes through here
instead of filtering ad hoc.

Read scope (RESTRICTED callers):
- requested branch must be granted
- no request + one grant: narrowed to that grant
- no request + several grants: filtered to the whole grant set

Write scope (RESTRICTED callers):
- a branch must be named explicitly and must be granted
"""

from dataclasses import dataclass

from sqlalchemy.orm import Query, Session

from noxera.errors import BadRequestError, ForbiddenError, NotFoundError
from noxera.models import Branch
from noxera.services.security_context import SecurityContext

NO_BRANCH_ACCESS = "No branch access assigned for this account."
OUTSIDE_SCOPE = "Branch is outside your allowed scope."
BRANCH_REQUIRED = (
    "Branch is required for this account because your access is branch-restricted."
)
BRANCH_NOT_FOUND = "Branch not found."


@dataclass(frozen=True)
class BranchScope:
    """
    Effective branch filter.

    branch_id set: exactly that branch. allowed_branch_ids set: any of them.
    Neither set: every branch of the tenant.
    """

    branch_id: str | None = None
    allowed_branch_ids: tuple[str, ...] | None = None

    def apply(self, query: Query, column) -> Query:
        """Filter a query on `column` (e.g. Member.branch_id)"""
        if self.branch_id:
            return query.filter(column == self.branch_id)
        if self.allowed_branch_ids is not None:
            return query.filter(column.in_(self.allowed_branch_ids))
        return query


def normalize_branch_id(value: str | None) -> str | None:
    """Trim a requested branch id; blank means not requested"""
    if not value:
        return None
    trimmed = value.strip()
    return trimmed or None


def resolve_read_scope(
    context: SecurityContext, requested_branch_id: str | None = None
) -> BranchScope:
    branch_id = normalize_branch_id(requested_branch_id)
    if not context.is_restricted:
        return BranchScope(branch_id=branch_id)

    allowed = context.allowed_branch_ids
    if not allowed:
        raise ForbiddenError(NO_BRANCH_ACCESS)

    if branch_id:
        if branch_id not in allowed:
            raise ForbiddenError(OUTSIDE_SCOPE)
        return BranchScope(branch_id=branch_id)

    if len(allowed) == 1:
        return BranchScope(branch_id=allowed[0])

    return BranchScope(allowed_branch_ids=tuple(allowed))


def resolve_write_scope(
    context: SecurityContext, requested_branch_id: str | None = None
) -> BranchScope:
    branch_id = normalize_branch_id(requested_branch_id)
    if not context.is_restricted:
        return BranchScope(branch_id=branch_id)

    # No auto-narrowing on writes
    if not branch_id:
        raise BadRequestError(BRANCH_REQUIRED)

    if branch_id not in context.allowed_branch_ids:
        raise ForbiddenError(OUTSIDE_SCOPE)

    return BranchScope(branch_id=branch_id)


def ensure_branch_in_tenant(db: Session, context: SecurityContext, branch_id: str) -> Branch:
    """
    Re-check a concrete branch id against the store.

    The branch must exist and belong to the caller's tenant. Ids of other
    tenants are reported exactly like ids that do not exist.

    Raises:
        NotFoundError: If the branch is not in the caller's tenant
    """
    if not context.tenant_id:
        raise NotFoundError(BRANCH_NOT_FOUND)

    branch = (
        db.query(Branch)
        .filter(Branch.id == branch_id, Branch.tenant_id == context.tenant_id)
        .first()
    )
    if branch is None:
        raise NotFoundError(BRANCH_NOT_FOUND)
    return branch
