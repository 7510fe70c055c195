### Description ###
# Noxera Plus - Church Operations Platform API
# - Rate Limiting Middleware -
# Author: Bailey Dixon
# Date: 01/03/2026
# Python: 3.11
####################

"""
Rate Limiting Middleware

Implements per-credential rate limiting using slowapi.
Requests are keyed by bearer token prefix, falling back to client IP.
"""

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from noxera.config import get_api_settings


def get_credential_identifier(request: Request) -> str:
    """
    Get rate limit identifier from the bearer token.
    Falls back to IP address if no token present.
    """
    authorization = request.headers.get("Authorization", "")
    if authorization.lower().startswith("bearer "):
        token = authorization[7:].strip()
        if token:
            # Prefix is enough to tell callers apart
            return f"token:{token[:16]}"
    return f"ip:{get_remote_address(request)}"


# Create limiter instance
limiter = Limiter(
    key_func=get_credential_identifier,
    default_limits=[f"{get_api_settings().rate_limit_per_minute}/minute"],
    storage_uri="memory://",
)


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> Response:
    """Custom handler for rate limit exceeded errors"""
    return JSONResponse(
        status_code=429,
        content={
            "success": False,
            "error": f"Rate limit exceeded. {exc.detail}",
            "request_id": getattr(request.state, "request_id", None),
            "retry_after": getattr(exc, "retry_after", 60),
        },
        headers={"Retry-After": str(getattr(exc, "retry_after", 60))},
    )
