### Description ###
# Noxera Plus - Church Operations Platform API
# - Impersonation Manager -
# Author: Bailey Dixon
# Date: 01/03/2026
# Python: 3.11
####################

"""
Impersonation Manager

Issues, validates and revokes time-boxed sessions that let a platform
admin act inside one tenant with full authority.

Tokens are "imp_" + an HS256 JWT signed with the impersonation secret:
    {sub: admin email, tenant_id, iat, exp, jti, type: "impersonation"}

Stopping a session stores the token id in impersonation_revocations, so a
stopped token is rejected immediately rather than at natural expiry.
Start and stop audit entries are required: if they cannot be written the
operation fails. A retried stop writes the end entry if the first attempt
revoked the token but could not record it.
"""

import logging
import uuid
from collections.abc import Callable
from datetime import datetime, timedelta, timezone

import jwt
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from noxera.errors import ForbiddenError, NotFoundError, UnauthenticatedError
from noxera.models import AuditEntry, BranchScopeMode, ImpersonationRevocation, Tenant, UserStatus
from noxera.services.audit import AuditRecorder
from noxera.services.permission_catalog import WILDCARD_PERMISSION
from noxera.services.security_context import ImpersonationGrant, SecurityContext
from noxera.utils import utcnow

logger = logging.getLogger(__name__)

IMPERSONATION_TOKEN_PREFIX = "imp_"
TOKEN_TYPE = "impersonation"
IMPERSONATION_ROLE_NAME = "Impersonation"
IMPERSONATION_PROVIDER = "impersonation"
ENDED_ACTION = "IMPERSONATION_ENDED"


def is_impersonation_token(token: str | None) -> bool:
    """Structural check, made before either verification path is called"""
    return bool(token) and token.startswith(IMPERSONATION_TOKEN_PREFIX)


def _from_timestamp(value: int | float) -> datetime:
    return datetime.fromtimestamp(value, tz=timezone.utc).replace(tzinfo=None)


class ImpersonationManager:
    """
    Impersonation session lifecycle.

    Args:
        secret: HS256 signing secret (dedicated to impersonation)
        ttl_seconds: Session lifetime
        clock: Returns the current naive UTC time
    """

    def __init__(
        self,
        secret: str,
        ttl_seconds: int = 30 * 60,
        clock: Callable[[], datetime] = utcnow,
    ):
        self._secret = secret
        self.ttl_seconds = ttl_seconds
        self._clock = clock

    def issue(self, super_admin_email: str, tenant_id: str) -> tuple[str, ImpersonationGrant]:
        """Sign a new grant starting now"""
        # Whole seconds so the grant matches what the token carries
        started_at = self._clock().replace(microsecond=0)
        grant = ImpersonationGrant(
            token_id=uuid.uuid4().hex,
            super_admin_email=super_admin_email.strip().lower(),
            tenant_id=tenant_id,
            started_at=started_at,
            expires_at=started_at + timedelta(seconds=self.ttl_seconds),
        )
        payload = {
            "sub": grant.super_admin_email,
            "tenant_id": grant.tenant_id,
            "iat": grant.started_at,
            "exp": grant.expires_at,
            "jti": grant.token_id,
            "type": TOKEN_TYPE,
        }
        token = jwt.encode(payload, self._secret, algorithm="HS256")
        return f"{IMPERSONATION_TOKEN_PREFIX}{token}", grant

    def decode(self, token: str, allow_expired: bool = False) -> ImpersonationGrant:
        """
        Check format, signature and claims of a token.

        Expiry is judged against the injected clock, not the system clock.

        Raises:
            UnauthenticatedError: Malformed, forged or (unless allowed) expired
        """
        if not is_impersonation_token(token):
            raise UnauthenticatedError("Invalid impersonation token format")

        try:
            payload = jwt.decode(
                token[len(IMPERSONATION_TOKEN_PREFIX):],
                self._secret,
                algorithms=["HS256"],
                options={
                    "verify_exp": False,
                    "verify_iat": False,
                    "require": ["sub", "tenant_id", "iat", "exp", "jti", "type"],
                },
            )
        except jwt.InvalidTokenError as e:
            raise UnauthenticatedError(f"Invalid impersonation token: {e}") from e

        if payload.get("type") != TOKEN_TYPE:
            raise UnauthenticatedError("Invalid impersonation token content")

        try:
            grant = ImpersonationGrant(
                token_id=str(payload["jti"]),
                super_admin_email=str(payload["sub"]),
                tenant_id=str(payload["tenant_id"]),
                started_at=_from_timestamp(payload["iat"]),
                expires_at=_from_timestamp(payload["exp"]),
            )
        except (TypeError, ValueError, OverflowError) as e:
            raise UnauthenticatedError("Invalid impersonation token content") from e

        if not allow_expired and self._clock() >= grant.expires_at:
            raise UnauthenticatedError("Impersonation token expired")

        return grant

    def is_revoked(self, db: Session, token_id: str) -> bool:
        return (
            db.query(ImpersonationRevocation)
            .filter(ImpersonationRevocation.jti == token_id)
            .first()
            is not None
        )

    def validate(self, db: Session, token: str) -> tuple[SecurityContext, ImpersonationGrant]:
        """
        Validate a token presented on a request.

        Returns:
            (tenant-shaped context with "*" authority, grant)

        Raises:
            UnauthenticatedError: Invalid, expired, revoked, or tenant gone
        """
        grant = self.decode(token)

        if self.is_revoked(db, grant.token_id):
            raise UnauthenticatedError("Impersonation session was stopped")

        tenant = db.query(Tenant).filter(Tenant.id == grant.tenant_id).first()
        if tenant is None:
            raise UnauthenticatedError("Impersonation tenant no longer exists")

        context = SecurityContext(
            subject_id=f"impersonation:{tenant.id}",
            email=grant.super_admin_email,
            is_platform_admin=False,
            tenant_id=tenant.id,
            tenant_name=tenant.name,
            role_name=IMPERSONATION_ROLE_NAME,
            permissions=frozenset({WILDCARD_PERMISSION}),
            user_status=UserStatus.ACTIVE.value,
            branch_scope_mode=BranchScopeMode.ALL.value,
            identity_provider=IMPERSONATION_PROVIDER,
            impersonation=grant,
        )
        return context, grant

    def start(
        self,
        db: Session,
        recorder: AuditRecorder,
        context: SecurityContext,
        tenant_id: str,
    ) -> tuple[str, ImpersonationGrant]:
        """
        Start impersonating a tenant.

        Raises:
            ForbiddenError: Caller is not a platform admin
            NotFoundError: Tenant does not exist
        """
        if not context.is_platform_admin or not context.email:
            raise ForbiddenError("Only platform administrators can start impersonation.")

        tenant = db.query(Tenant).filter(Tenant.id == tenant_id).first()
        if tenant is None:
            raise NotFoundError("Tenant not found.")

        token, grant = self.issue(context.email, tenant.id)

        # Required entry: no token is handed out if this fails
        recorder.record(
            tenant_id=tenant.id,
            action="IMPERSONATION_STARTED",
            resource="Tenant",
            details={
                "tenant_name": tenant.name,
                "super_admin_email": grant.super_admin_email,
                "started_at": grant.started_at.isoformat(),
                "expires_at": grant.expires_at.isoformat(),
            },
            actor_email=context.email,
            required=True,
        )
        logger.info(
            f"Impersonation started by {grant.super_admin_email} for tenant {tenant.id} "
            f"(expires {grant.expires_at.isoformat()})"
        )
        return token, grant

    def _end_recorded(self, db: Session, grant: ImpersonationGrant) -> bool:
        entries = (
            db.query(AuditEntry.details)
            .filter(
                AuditEntry.tenant_id == grant.tenant_id,
                AuditEntry.action == ENDED_ACTION,
            )
            .all()
        )
        return any((details or {}).get("token_id") == grant.token_id for (details,) in entries)

    def stop(
        self,
        db: Session,
        recorder: AuditRecorder,
        context: SecurityContext,
        token: str,
    ) -> ImpersonationGrant:
        """
        Stop an impersonation session and revoke its token.

        Expired tokens may still be stopped. Stopping an already revoked
        token only writes the end entry if an earlier stop failed to.

        Raises:
            ForbiddenError: Caller is not a platform admin
            UnauthenticatedError: Token is malformed or forged
        """
        if not context.is_platform_admin or not context.email:
            raise ForbiddenError("Only platform administrators can stop impersonation.")

        grant = self.decode(token, allow_expired=True)
        if self.is_revoked(db, grant.token_id):
            if not self._end_recorded(db, grant):
                self._record_end(recorder, context, grant)
            return grant

        db.add(
            ImpersonationRevocation(
                jti=grant.token_id,
                tenant_id=grant.tenant_id,
                revoked_by=context.email,
                expires_at=grant.expires_at,
            )
        )
        try:
            db.commit()
        except IntegrityError:
            # Stopped concurrently by another request
            db.rollback()
            return grant

        self._record_end(recorder, context, grant)
        logger.info(f"Impersonation stopped by {context.email} for tenant {grant.tenant_id}")
        return grant

    def _record_end(self, recorder: AuditRecorder, context: SecurityContext, grant: ImpersonationGrant) -> None:
        recorder.record(
            tenant_id=grant.tenant_id,
            action=ENDED_ACTION,
            resource="Tenant",
            details={
                "token_id": grant.token_id,
                "super_admin_email": grant.super_admin_email,
                "started_at": grant.started_at.isoformat(),
                "expires_at": grant.expires_at.isoformat(),
                "stopped_at": self._clock().isoformat(),
            },
            actor_email=context.email,
            required=True,
        )

    def prune_revocations(self, db: Session) -> int:
        """Delete revocations of tokens that have expired anyway"""
        deleted = (
            db.query(ImpersonationRevocation)
            .filter(ImpersonationRevocation.expires_at <= self._clock())
            .delete(synchronize_session=False)
        )
        db.commit()
        return deleted
