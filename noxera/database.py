### Description ###
# Noxera Plus - Church Operations Platform API
# - App Database Setup -
# Author: Bailey Dixon
# Date: 01/03/2026
# Python: 3.11
####################

"""
App Database Setup

Record store for the authorization core:
- Tenants, branches and branch-access grants
- Roles and tenant users
- Audit entries and impersonation revocations
- Members (representative domain data)

Uses synchronous SQLAlchemy (no greenlet dependency).
"""

from pathlib import Path

from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from noxera.config import get_app_config
from noxera.utils import setup_logger

logger = setup_logger(__name__)

# Database file location (used when no URL is configured)
DATA_DIR = Path(__file__).parent.parent / "data"
DATA_DIR.mkdir(exist_ok=True)
DATABASE_PATH = DATA_DIR / "noxera.db"

_db_config = get_app_config().database
DATABASE_URL = _db_config.url or f"sqlite:///{DATABASE_PATH}"

# Create engine (synchronous)
engine = create_engine(
    DATABASE_URL,
    # Allow multi-threaded access for SQLite
    connect_args={"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {},
    echo=_db_config.echo,
)

# Session factory
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Base class for models
Base = declarative_base()


def get_db():
    """
    Dependency that provides a database session.

    Usage:
        @app.get("/endpoint")
        def endpoint(db: Session = Depends(get_db)):
            ...
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_session_factory() -> sessionmaker:
    """
    Dependency that provides the session factory itself.

    Used by components that must write in their own transaction
    (the audit recorder).
    """
    return SessionLocal


def init_db():
    """
    Initialize the database - create all tables.

    Call this on application startup.
    """
    # Import models to register them with Base
    from noxera.models import audit_entry, branch, impersonation, member, role, tenant, user  # noqa: F401

    Base.metadata.create_all(bind=engine)
    logger.info(f"Database initialized at: {DATABASE_URL}")
