### Description ###
# Noxera Plus - Church Operations Platform API
# - API Server -
# Author: Bailey Dixon
# Date: 01/03/2026
# Python: 3.11
####################

"""
Noxera Plus API - Main Application

FastAPI application entry point that provides:
- Session resolution for tenant users, platform admins and impersonation
- Tenant, role, branch, user and member administration
- Audit trail and request logging
- OpenAPI documentation at /api/docs

Usage:
    # Development
    uvicorn noxera.main:app --reload --port 8000

    # Production
    uvicorn noxera.main:app --host 0.0.0.0 --port 8000
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from sqlalchemy import text

from noxera.config import get_api_settings, get_app_config
from noxera.database import SessionLocal, engine, init_db
from noxera.dependencies import close_services, get_impersonation_manager
from noxera.errors import NoxeraError, UnauthenticatedError
from noxera.middleware import RequestLoggingMiddleware
from noxera.middleware.rate_limit import limiter, rate_limit_exceeded_handler
from noxera.routers import (
    auth_router,
    branches_router,
    members_router,
    platform_router,
    roles_router,
    users_router,
)
from noxera.schemas.responses import ErrorResponse, HealthResponse
from noxera.utils import set_log_level, setup_logger

logger = setup_logger(__name__)

# Load settings
settings = get_api_settings()


def _check_pending_migrations():
    """
    Check for pending Alembic migrations on startup.

    Logs a warning if the database schema is not up to date.
    Does not block startup - just warns the administrator.
    """
    try:
        from alembic.config import Config
        from alembic.runtime.migration import MigrationContext
        from alembic.script import ScriptDirectory

        alembic_cfg = Config("alembic.ini")
        script = ScriptDirectory.from_config(alembic_cfg)

        with engine.connect() as conn:
            context = MigrationContext.configure(conn)
            current_rev = context.get_current_revision()

        head_rev = script.get_current_head()

        if current_rev is None:
            logger.warning(
                "Database has not been initialized with Alembic. "
                "Stamp an existing database with 'alembic stamp head', "
                "or run 'alembic upgrade head' for a new one."
            )
        elif current_rev != head_rev:
            logger.warning(
                f"Pending database migrations (current: {current_rev}, latest: {head_rev}). "
                "Run 'alembic upgrade head'."
            )
        else:
            logger.info(f"Database schema is up to date (revision: {current_rev})")

    except Exception as e:
        # Don't fail startup on migration check errors
        logger.warning(f"Could not check migrations: {e}")


def _prune_impersonation_revocations():
    """Drop revocations whose tokens have expired anyway"""
    db = SessionLocal()
    try:
        deleted = get_impersonation_manager().prune_revocations(db)
        if deleted:
            logger.info(f"Pruned {deleted} expired impersonation revocation(s)")
    finally:
        db.close()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager

    Handles startup and shutdown events:
    - Startup: Apply log level, initialize database, prune revocations
    - Shutdown: Close the identity verifier client
    """
    # Startup
    app_config = get_app_config()
    set_log_level(app_config.application.logging.level)
    logger.info(f"Starting {settings.api_title} v{settings.api_version}")
    logger.info(f"API documentation available at: http://localhost:{settings.port}/api/docs")

    init_db()
    app.state.app_db_connected = True

    _check_pending_migrations()
    _prune_impersonation_revocations()

    if not app_config.auth.super_admin_emails:
        logger.warning("No platform administrators configured (auth.super_admin_emails)")

    yield

    # Shutdown
    logger.info("Shutting down Noxera Plus API...")
    await close_services()


# Create FastAPI application
app = FastAPI(
    title=settings.api_title,
    version=settings.api_version,
    description="""
## Noxera Plus API

Multi-tenant church operations platform.

### Features
- **Sessions**: Identity-provider tokens resolved into tenant-scoped sessions
- **Branch scope**: Restricted staff only see the branches granted to them
- **Roles**: System and custom roles from a fixed permission catalog
- **Impersonation**: Audited, time-bounded platform support sessions
- **Audit**: Every privileged change is recorded

### Authentication
All endpoints except `/auth/session` require a bearer token.

```
Authorization: Bearer <identity token | imp_ impersonation token>
```
    """,
    lifespan=lifespan,
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    openapi_url="/api/openapi.json",
)

# Add rate limiter
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure appropriately for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Add request logging middleware
app.add_middleware(RequestLoggingMiddleware)


@app.exception_handler(NoxeraError)
async def noxera_exception_handler(request: Request, exc: NoxeraError) -> JSONResponse:
    """Render service errors; 401 reasons are logged, never returned"""
    request_id = getattr(request.state, "request_id", None)

    if isinstance(exc, UnauthenticatedError):
        logger.info(f"[{request_id}] Unauthenticated {request.method} {request.url.path}: {exc.message}")
        return JSONResponse(
            status_code=status.HTTP_401_UNAUTHORIZED,
            content=ErrorResponse(error=exc.public_message, request_id=request_id).model_dump(),
            headers={"WWW-Authenticate": "Bearer"},
        )

    if exc.status_code == status.HTTP_403_FORBIDDEN:
        logger.info(f"[{request_id}] Forbidden {request.method} {request.url.path}: {exc.message}")

    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(error=exc.message, request_id=request_id).model_dump(),
    )


# Global exception handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle uncaught exceptions"""
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=ErrorResponse(
            error="Internal server error",
            details=[{"message": str(exc)}] if settings.debug else None,
            request_id=getattr(request.state, "request_id", None),
        ).model_dump(),
    )


# Health check endpoint
@app.get(
    "/health",
    response_model=HealthResponse,
    tags=["System"],
    summary="Health check",
    description="Check API health and record store connectivity",
)
async def health_check() -> HealthResponse:
    """
    Health check endpoint

    Returns the health status of the API including:
    - API version
    - App database connectivity
    - Configured identity provider
    """
    app_db_connected = False
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        app_db_connected = True
    except Exception as e:
        logger.error(f"Health check database probe failed: {e}")

    return HealthResponse(
        status="healthy" if app_db_connected else "degraded",
        version=settings.api_version,
        app_db_connected=app_db_connected,
        identity_provider=get_app_config().identity.provider,
    )


# Root endpoint
@app.get("/", tags=["System"], summary="API Info")
async def root():
    """API root - returns basic API information"""
    return {
        "name": settings.api_title,
        "version": settings.api_version,
        "docs": "/api/docs",
        "health": "/health",
    }


# Include routers
app.include_router(
    auth_router,
    prefix=f"{settings.api_prefix}/auth",
    tags=["Auth"],
)

app.include_router(
    platform_router,
    prefix=f"{settings.api_prefix}/platform",
    tags=["Platform"],
)

app.include_router(
    roles_router,
    prefix=f"{settings.api_prefix}/roles",
    tags=["Roles"],
)

app.include_router(
    branches_router,
    prefix=f"{settings.api_prefix}/branches",
    tags=["Branches"],
)

app.include_router(
    users_router,
    prefix=f"{settings.api_prefix}/users",
    tags=["Users"],
)

app.include_router(
    members_router,
    prefix=f"{settings.api_prefix}/members",
    tags=["Members"],
)


# Entry point for running directly
if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "noxera.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )
