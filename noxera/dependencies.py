### Description ###
# Noxera Plus - Church Operations Platform API
# - FastAPI Dependencies -
# Author: Bailey Dixon
# Date: 01/03/2026
# Python: 3.11
####################

"""
FastAPI Dependencies

Provides dependency injection for:
- Identity verifier, impersonation manager and session resolver
  (built from config.yaml on first request, reused)
- Audit recorder and the per-request management services

Tests swap any of these through app.dependency_overrides.
"""

from fastapi import Depends
from sqlalchemy.orm import Session, sessionmaker

from noxera.config import get_app_config
from noxera.database import get_db, get_session_factory
from noxera.services.audit import AuditRecorder
from noxera.services.branches import BranchService
from noxera.services.identity import HttpIdentityVerifier, IdentityVerifier, JwtIdentityVerifier
from noxera.services.impersonation import ImpersonationManager
from noxera.services.members import MemberService
from noxera.services.roles import RoleService
from noxera.services.session_resolver import SessionResolver
from noxera.services.tenants import TenantService
from noxera.services.users import UserService

# Service instances (created on first request, reused)
_identity_verifier: IdentityVerifier | None = None
_impersonation_manager: ImpersonationManager | None = None
_session_resolver: SessionResolver | None = None


def get_identity_verifier() -> IdentityVerifier:
    """
    Identity verifier selected by identity.provider in config.yaml:
    1. http: token introspection endpoint (identity.url)
    2. jwt: HS256 tokens signed with identity.jwt_secret
    """
    global _identity_verifier

    if _identity_verifier is None:
        identity = get_app_config().identity
        if identity.provider == "http":
            _identity_verifier = HttpIdentityVerifier(
                url=identity.url,
                timeout=identity.timeout_seconds,
            )
        else:
            _identity_verifier = JwtIdentityVerifier(secret=identity.jwt_secret)

    return _identity_verifier


def get_impersonation_manager() -> ImpersonationManager:
    global _impersonation_manager

    if _impersonation_manager is None:
        auth = get_app_config().auth
        _impersonation_manager = ImpersonationManager(
            secret=auth.impersonation_secret,
            ttl_seconds=auth.impersonation_ttl_minutes * 60,
        )

    return _impersonation_manager


def get_session_resolver() -> SessionResolver:
    global _session_resolver

    if _session_resolver is None:
        _session_resolver = SessionResolver(
            verifier=get_identity_verifier(),
            impersonation_manager=get_impersonation_manager(),
            platform_admin_emails=get_app_config().auth.super_admin_emails,
        )

    return _session_resolver


def get_audit_recorder(
    session_factory: sessionmaker = Depends(get_session_factory),
) -> AuditRecorder:
    return AuditRecorder(session_factory)


def get_tenant_service(
    db: Session = Depends(get_db),
    recorder: AuditRecorder = Depends(get_audit_recorder),
    resolver: SessionResolver = Depends(get_session_resolver),
) -> TenantService:
    return TenantService(db, recorder, is_platform_admin=resolver.is_platform_admin)


def get_role_service(
    db: Session = Depends(get_db),
    recorder: AuditRecorder = Depends(get_audit_recorder),
) -> RoleService:
    return RoleService(db, recorder)


def get_branch_service(
    db: Session = Depends(get_db),
    recorder: AuditRecorder = Depends(get_audit_recorder),
) -> BranchService:
    return BranchService(db, recorder)


def get_user_service(
    db: Session = Depends(get_db),
    recorder: AuditRecorder = Depends(get_audit_recorder),
    resolver: SessionResolver = Depends(get_session_resolver),
) -> UserService:
    return UserService(db, recorder, is_platform_admin=resolver.is_platform_admin)


def get_member_service(db: Session = Depends(get_db)) -> MemberService:
    return MemberService(db)


async def close_services():
    """Close network clients (call on shutdown)"""
    global _identity_verifier, _impersonation_manager, _session_resolver

    if isinstance(_identity_verifier, HttpIdentityVerifier):
        await _identity_verifier.close()

    _identity_verifier = None
    _impersonation_manager = None
    _session_resolver = None


def reset_services():
    """
    Reset cached services (forces recreation on next request).

    Call this when config changes require new instances.
    """
    global _identity_verifier, _impersonation_manager, _session_resolver

    _identity_verifier = None
    _impersonation_manager = None
    _session_resolver = None
