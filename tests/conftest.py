"""
Shared pytest fixtures for Noxera Plus API tests.

Provides:
- Isolated file-based SQLite database per test
- FastAPI TestClient with dependency overrides
- Session resolver with a test identity secret and admin allow-list
- Tenant fixtures (church, branches, owner) and bearer-token helpers
"""

import os
import tempfile

# Keep config, logs and the app database out of the working tree
_TEST_DIR = tempfile.mkdtemp(prefix="noxera-tests-")
os.environ.setdefault("NOXERA_CONFIG_PATH", os.path.join(_TEST_DIR, "config.yaml"))
os.environ.setdefault("NOXERA_LOG_DIR", os.path.join(_TEST_DIR, "logs"))
os.environ.setdefault("NOXERA_DATABASE_URL", f"sqlite:///{os.path.join(_TEST_DIR, 'app.db')}")

import pytest
from typing import Generator
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from noxera.database import Base, get_db, get_session_factory
from noxera.dependencies import get_impersonation_manager, get_session_resolver
from noxera.main import app
from noxera.middleware.rate_limit import limiter
from noxera.models import Branch, Tenant, User
from noxera.services.audit import AuditRecorder
from noxera.services.identity import IdentityClaims, JwtIdentityVerifier
from noxera.services.impersonation import ImpersonationManager
from noxera.services.security_context import SecurityContext
from noxera.services.session_resolver import SessionResolver

from tests.fixtures.auth import (
    PLATFORM_ADMIN_EMAIL,
    TEST_IDENTITY_SECRET,
    TEST_IMPERSONATION_SECRET,
    bearer,
    identity_token,
)
from tests.fixtures.factories import create_branch, create_tenant, create_user
from tests.mocks.mock_clock import FakeClock

# ============================================
# Database Fixtures
# ============================================


@pytest.fixture(scope="function")
def test_engine(tmp_path):
    """
    Create an isolated SQLite database engine for each test.

    Uses a file-based database in tmp_path so the audit recorder's own
    sessions see the same data as the request session.
    """
    db_path = tmp_path / "test.db"
    engine = create_engine(
        f"sqlite:///{db_path}",
        connect_args={"check_same_thread": False},
    )
    return engine


@pytest.fixture(scope="function")
def session_factory(test_engine) -> sessionmaker:
    """Session factory bound to the test engine"""
    return sessionmaker(autocommit=False, autoflush=False, bind=test_engine)


@pytest.fixture(scope="function")
def test_db(test_engine, session_factory) -> Generator[Session, None, None]:
    """
    Create database tables and provide a session.

    Yields a Session that is isolated to this test.
    Tables are created before and dropped after.
    """
    # Import all models to ensure they're registered with Base.metadata
    from noxera.models import audit_entry, branch, impersonation, member, role, tenant, user  # noqa: F401

    Base.metadata.create_all(bind=test_engine)

    db = session_factory()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=test_engine)


@pytest.fixture
def recorder(session_factory, test_db) -> AuditRecorder:
    """Audit recorder writing to the test database"""
    return AuditRecorder(session_factory)


# ============================================
# Authorization Core Fixtures
# ============================================


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def impersonation_manager(clock: FakeClock) -> ImpersonationManager:
    return ImpersonationManager(secret=TEST_IMPERSONATION_SECRET, ttl_seconds=30 * 60, clock=clock)


@pytest.fixture
def resolver(impersonation_manager: ImpersonationManager) -> SessionResolver:
    """Session resolver accepting test identity tokens"""
    return SessionResolver(
        verifier=JwtIdentityVerifier(secret=TEST_IDENTITY_SECRET),
        impersonation_manager=impersonation_manager,
        platform_admin_emails=[PLATFORM_ADMIN_EMAIL],
    )


@pytest.fixture
def context_for(test_db: Session, resolver: SessionResolver):
    """
    Build the security context of a user the way a request would.

    Usage:
        context = context_for(owner)
    """

    def _context_for(user_or_email) -> SecurityContext:
        email = user_or_email if isinstance(user_or_email, str) else user_or_email.email
        return resolver.build_context(test_db, IdentityClaims(subject_id=f"uid-{email}", email=email))

    return _context_for


@pytest.fixture
def platform_admin_context(context_for) -> SecurityContext:
    return context_for(PLATFORM_ADMIN_EMAIL)


# ============================================
# Client Fixtures
# ============================================


@pytest.fixture(scope="function")
def client(
    test_db: Session,
    session_factory: sessionmaker,
    resolver: SessionResolver,
    impersonation_manager: ImpersonationManager,
) -> Generator[TestClient, None, None]:
    """
    FastAPI TestClient with database and session resolution overridden.

    Uses the test_db session instead of the production database.
    """

    def override_get_db():
        try:
            yield test_db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    app.dependency_overrides[get_session_resolver] = lambda: resolver
    app.dependency_overrides[get_impersonation_manager] = lambda: impersonation_manager
    limiter.reset()

    with TestClient(app, raise_server_exceptions=False) as test_client:
        yield test_client

    app.dependency_overrides.clear()


# ============================================
# Authentication Fixtures
# ============================================


@pytest.fixture
def headers_for():
    """
    HTTP headers carrying an identity token for a user or email.

    Usage:
        response = client.get("/api/v1/branches", headers=headers_for(owner))
    """

    def _headers_for(user_or_email) -> dict[str, str]:
        email = user_or_email if isinstance(user_or_email, str) else user_or_email.email
        return bearer(identity_token(email))

    return _headers_for


@pytest.fixture
def admin_headers(headers_for) -> dict[str, str]:
    """Headers of the allow-listed platform administrator"""
    return headers_for(PLATFORM_ADMIN_EMAIL)


# ============================================
# Tenant Fixtures
# ============================================


@pytest.fixture
def tenant(test_db: Session) -> Tenant:
    """A church with its system roles"""
    return create_tenant(test_db, name="Grace Chapel", domain="grace-chapel")


@pytest.fixture
def main_branch(test_db: Session, tenant: Tenant) -> Branch:
    return create_branch(test_db, tenant, name="Main Campus", location="Accra")


@pytest.fixture
def east_branch(test_db: Session, tenant: Tenant) -> Branch:
    return create_branch(test_db, tenant, name="East Campus", location="Tema")


@pytest.fixture
def owner(test_db: Session, tenant: Tenant, main_branch: Branch) -> User:
    """Active Owner with access to every branch"""
    return create_user(
        test_db,
        tenant,
        email="pastor@grace.test",
        role_name="Owner",
        default_branch=main_branch,
    )


@pytest.fixture
def other_tenant(test_db: Session) -> Tenant:
    return create_tenant(test_db, name="Hope Assembly", domain="hope-assembly")


@pytest.fixture
def other_branch(test_db: Session, other_tenant: Tenant) -> Branch:
    return create_branch(test_db, other_tenant, name="Hope Main")
