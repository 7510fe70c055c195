"""
Member Service

Representative branch-scoped domain service. Reads and writes are
filtered through the branch scope resolver, and every concrete branch id
is re-checked against the caller's tenant.
"""

from sqlalchemy import or_
from sqlalchemy.orm import Session

from noxera.errors import BadRequestError
from noxera.models import Member
from noxera.services.branch_scope import (
    ensure_branch_in_tenant,
    resolve_read_scope,
    resolve_write_scope,
)
from noxera.services.security_context import SecurityContext


class MemberService:
    """Member listing and creation for one request"""

    def __init__(self, db: Session):
        self.db = db

    def list_members(
        self,
        context: SecurityContext,
        branch_id: str | None = None,
        search: str | None = None,
        page: int = 1,
        page_size: int = 20,
    ) -> tuple[list[Member], int]:
        scope = resolve_read_scope(context, branch_id)
        if scope.branch_id:
            ensure_branch_in_tenant(self.db, context, scope.branch_id)

        query = self.db.query(Member).filter(Member.tenant_id == context.tenant_id)
        query = scope.apply(query, Member.branch_id)
        if search and search.strip():
            pattern = f"%{search.strip()}%"
            query = query.filter(
                or_(
                    Member.first_name.ilike(pattern),
                    Member.last_name.ilike(pattern),
                    Member.email.ilike(pattern),
                )
            )

        total = query.count()
        members = (
            query.order_by(Member.last_name.asc(), Member.first_name.asc())
            .offset((page - 1) * page_size)
            .limit(page_size)
            .all()
        )
        return members, total

    def create_member(
        self,
        context: SecurityContext,
        first_name: str,
        last_name: str,
        email: str | None = None,
        branch_id: str | None = None,
    ) -> Member:
        """
        Create a member on one branch.

        Unrestricted callers that name no branch fall back to their default
        branch.
        """
        scope = resolve_write_scope(context, branch_id)
        target_branch_id = scope.branch_id or context.default_branch_id
        if not target_branch_id:
            raise BadRequestError("Branch is required.")

        branch = ensure_branch_in_tenant(self.db, context, target_branch_id)
        if not branch.is_active:
            raise BadRequestError("Branch is archived.")

        first = (first_name or "").strip()
        last = (last_name or "").strip()
        if not first or not last:
            raise BadRequestError("first_name and last_name are required.")

        member = Member(
            tenant_id=context.tenant_id,
            branch_id=branch.id,
            first_name=first,
            last_name=last,
            email=(email or "").strip().lower() or None,
        )
        self.db.add(member)
        self.db.commit()
        self.db.refresh(member)
        return member
