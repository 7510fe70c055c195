### Description ###
# Noxera Plus - Church Operations Platform API
# - Request Logging Middleware -
# Author: Bailey Dixon
# Date: 01/03/2026
# Python: 3.11
####################

"""
Request Logging Middleware

Logs all API requests with attribution information:
- Who: masked bearer token, resolved caller kind and tenant
- What: Endpoint, method, parameters
- When: Timestamp
- Result: Status code, response time

Privileged changes are recorded separately in the audit trail.
"""

import time
import uuid
from collections.abc import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from noxera.utils import setup_logger

# Set up API logger
api_logger = setup_logger("noxera_api", log_to_file=True, log_to_console=False)


def mask_bearer(authorization: str | None) -> str:
    """Keep only a short prefix of the bearer token"""
    if not authorization:
        return "none"
    token = authorization.split(" ", 1)[1].strip() if " " in authorization else authorization
    return token[:8] + "..." if len(token) > 8 else "***"


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Middleware for logging all API requests

    Captures:
    - Request ID (short UUID, echoed in X-Request-ID)
    - Method and path
    - Bearer token (masked)
    - Caller kind and tenant (when a session was resolved)
    - Client IP
    - Response status and time
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        # Generate request ID
        request_id = str(uuid.uuid4())[:8]
        request.state.request_id = request_id

        # Capture start time
        start_time = time.time()

        # Extract request info
        method = request.method
        path = request.url.path
        query = str(request.url.query) if request.url.query else ""
        client_ip = request.client.host if request.client else "unknown"
        masked_token = mask_bearer(request.headers.get("Authorization"))

        # Process request
        try:
            response = await call_next(request)
            status_code = response.status_code
        except Exception as e:
            api_logger.error(f"[{request_id}] ERROR {method} {path} - {e!s}")
            raise

        # Calculate response time
        response_time = (time.time() - start_time) * 1000  # ms

        # Set by the session dependency
        context = getattr(request.state, "security_context", None)
        caller = f"{context.kind.value}:{context.tenant_id or '-'}" if context else "anonymous"

        log_entry = (
            f"[{request_id}] "
            f"{method} {path}"
            f"{f'?{query}' if query else ''} "
            f"| token={masked_token} "
            f"| caller={caller} "
            f"| ip={client_ip} "
            f"| status={status_code} "
            f"| time={response_time:.2f}ms"
        )

        # Log at appropriate level
        if status_code >= 500:
            api_logger.error(log_entry)
        elif status_code >= 400:
            api_logger.warning(log_entry)
        else:
            api_logger.info(log_entry)

        # Add request ID to response headers
        response.headers["X-Request-ID"] = request_id

        return response
