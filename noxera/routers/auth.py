### Description ###
# Noxera Plus - Church Operations Platform API
# - Session Router -
# Author: Bailey Dixon
# Date: 01/03/2026
# Python: 3.11
####################

"""
Session API Endpoints

Front-ends exchange an identity-provider token (or an imp_ impersonation
token) for the flattened security context they cache client-side:
- POST /auth/session: resolve any credential, record the sign-in
- POST /auth/impersonation/session: resolve an impersonation token only
- GET /auth/me: context of the bearer credential on this request
"""

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from noxera.database import get_db
from noxera.dependencies import get_session_resolver, get_user_service
from noxera.errors import UnauthenticatedError
from noxera.middleware.auth import get_security_context
from noxera.middleware.rate_limit import limiter
from noxera.schemas.auth import (
    ImpersonationSessionResponse,
    ImpersonationWindow,
    SessionPayload,
    TokenRequest,
)
from noxera.schemas.responses import APIResponse
from noxera.services.impersonation import is_impersonation_token
from noxera.services.security_context import SecurityContext
from noxera.services.session_resolver import SessionResolver
from noxera.services.users import UserService

router = APIRouter()


@router.post(
    "/session",
    response_model=APIResponse[SessionPayload],
    summary="Create session",
    description="Verify a token and return the caller's security context",
)
@limiter.limit("30/minute")
async def create_session(
    request: Request,
    data: TokenRequest,
    db: Session = Depends(get_db),
    resolver: SessionResolver = Depends(get_session_resolver),
    users: UserService = Depends(get_user_service),
) -> APIResponse[SessionPayload]:
    """
    Resolve a credential into a session payload.

    An Invited user signing in for the first time becomes Active.
    """
    context = await resolver.resolve_context(db, data.token)
    request.state.security_context = context
    users.record_sign_in(context)

    return APIResponse(success=True, data=SessionPayload.from_context(context), message="Session valid")


@router.post(
    "/impersonation/session",
    response_model=APIResponse[ImpersonationSessionResponse],
    summary="Resolve impersonation session",
    description="Validate an impersonation token and return its session and window",
)
@limiter.limit("30/minute")
async def impersonation_session(
    request: Request,
    data: TokenRequest,
    db: Session = Depends(get_db),
    resolver: SessionResolver = Depends(get_session_resolver),
) -> APIResponse[ImpersonationSessionResponse]:
    if not is_impersonation_token(data.token):
        raise UnauthenticatedError("Credential is not an impersonation token")

    context = await resolver.resolve_context(db, data.token)
    request.state.security_context = context

    return APIResponse(
        success=True,
        data=ImpersonationSessionResponse(
            session=SessionPayload.from_context(context),
            impersonation=ImpersonationWindow.from_grant(context.impersonation),
        ),
    )


@router.get(
    "/me",
    response_model=APIResponse[SessionPayload],
    summary="Current session",
    description="Security context of the bearer credential",
)
async def get_me(
    context: SecurityContext = Depends(get_security_context),
) -> APIResponse[SessionPayload]:
    return APIResponse(success=True, data=SessionPayload.from_context(context))
