### Description ###
# Noxera Plus - Church Operations Platform API
# - Session Resolver -
# Author: Bailey Dixon
# Date: 01/03/2026
# Python: 3.11
####################

"""
Session Resolver

Turns a bearer credential into exactly one SecurityContext:
1. "imp_" tokens -> impersonation context (ImpersonationManager)
2. Allow-listed emails -> platform-admin context (no tenant)
3. Linked tenant users -> tenant context

Resolution is a pure lookup. Sign-in bookkeeping (activating invited
users, last login) is done separately by UserService.record_sign_in.
"""

import logging
from collections.abc import Iterable

from sqlalchemy.orm import Session

from noxera.errors import (
    AccountNotLinkedError,
    AccountSuspendedError,
    NoBranchAccessError,
    UnauthenticatedError,
)
from noxera.models import User, UserStatus
from noxera.services.identity import IdentityClaims, IdentityVerifier
from noxera.services.impersonation import ImpersonationManager, is_impersonation_token
from noxera.services.security_context import SecurityContext

logger = logging.getLogger(__name__)


def normalize_email(email: str | None) -> str | None:
    if not email:
        return None
    normalized = email.strip().lower()
    return normalized or None


class SessionResolver:
    """
    Resolves the caller of a request.

    The platform-admin allow-list is fixed at construction; build a new
    resolver to change it.
    """

    def __init__(
        self,
        verifier: IdentityVerifier,
        impersonation_manager: ImpersonationManager,
        platform_admin_emails: Iterable[str] = (),
    ):
        self.verifier = verifier
        self.impersonation_manager = impersonation_manager
        self._platform_admin_emails = frozenset(
            email for email in (normalize_email(e) for e in platform_admin_emails) if email
        )

    def is_platform_admin(self, email: str | None) -> bool:
        normalized = normalize_email(email)
        return normalized is not None and normalized in self._platform_admin_emails

    async def resolve_context(self, db: Session, credential: str | None) -> SecurityContext:
        """
        Resolve a bearer credential.

        Raises:
            UnauthenticatedError: Missing, invalid or expired credential
            AccountNotLinkedError: Verified, but no tenant user
            AccountSuspendedError: Tenant user is suspended
            NoBranchAccessError: Restricted user with no usable grant
        """
        token = (credential or "").strip()
        if not token:
            raise UnauthenticatedError("Missing authorization token")

        if is_impersonation_token(token):
            context, _ = self.impersonation_manager.validate(db, token)
            return context

        claims = await self.verifier.verify(token)
        return self.build_context(db, claims)

    def build_context(self, db: Session, claims: IdentityClaims) -> SecurityContext:
        """Build the context for verified (non-impersonation) claims"""
        email = normalize_email(claims.email)

        if self.is_platform_admin(email):
            return SecurityContext(
                subject_id=claims.subject_id,
                email=email,
                is_platform_admin=True,
                identity_provider=claims.provider,
            )

        user = db.query(User).filter(User.email == email).first() if email else None
        if user is None:
            raise AccountNotLinkedError()

        if user.status == UserStatus.SUSPENDED.value:
            raise AccountSuspendedError()

        allowed_branch_ids: tuple[str, ...] = ()
        if user.is_restricted:
            # Grants are only honoured for active branches of the user's own tenant
            allowed_branch_ids = tuple(
                grant.branch_id
                for grant in user.branch_access
                if grant.branch is not None
                and grant.branch.tenant_id == user.tenant_id
                and grant.branch.is_active
            )
            if not allowed_branch_ids:
                raise NoBranchAccessError()

        role = user.role
        return SecurityContext(
            subject_id=claims.subject_id,
            email=email,
            is_platform_admin=False,
            tenant_id=user.tenant_id,
            tenant_name=user.tenant.name if user.tenant else None,
            user_id=user.id,
            role_id=user.role_id,
            role_name=role.name if role else None,
            permissions=frozenset(role.permissions or []) if role else frozenset(),
            user_status=user.status,
            branch_scope_mode=user.branch_scope_mode,
            allowed_branch_ids=allowed_branch_ids,
            default_branch_id=user.default_branch_id,
            identity_provider=claims.provider,
        )
