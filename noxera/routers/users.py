### Description ###
# Noxera Plus - Church Operations Platform API
# - User Management Router -
# Author: Bailey Dixon
# Date: 01/03/2026
# Python: 3.11
####################

"""
User Management API Endpoints

Invite and manage the users of the caller's tenant. Requires the
'users.manage' permission. Every change keeps at least one active Owner.
"""

from fastapi import APIRouter, Depends, Query, status

from noxera.dependencies import get_user_service
from noxera.middleware.auth import require_users_manage
from noxera.schemas.responses import APIResponse, PaginatedResponse, build_pagination
from noxera.schemas.users import UserInvite, UserResponse, UserUpdate
from noxera.services.security_context import SecurityContext
from noxera.services.users import UserChanges, UserService

router = APIRouter()


@router.get(
    "",
    response_model=PaginatedResponse[UserResponse],
    summary="List users",
)
async def list_users(
    context: SecurityContext = Depends(require_users_manage),
    service: UserService = Depends(get_user_service),
    search: str | None = Query(None, description="Search name or email"),
    user_status: str | None = Query(None, alias="status", description="Invited, Active or Suspended"),
    role_id: str | None = Query(None, description="Filter by role"),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
) -> PaginatedResponse[UserResponse]:
    users, total = service.list_users(
        context.tenant_id,
        search=search,
        status=user_status,
        role_id=role_id,
        page=page,
        page_size=page_size,
    )
    return PaginatedResponse(
        success=True,
        data=[UserResponse.model_validate(user) for user in users],
        pagination=build_pagination(page, page_size, total),
    )


@router.get("/{user_id}", response_model=APIResponse[UserResponse], summary="Get user")
async def get_user(
    user_id: str,
    context: SecurityContext = Depends(require_users_manage),
    service: UserService = Depends(get_user_service),
) -> APIResponse[UserResponse]:
    return APIResponse(
        success=True, data=UserResponse.model_validate(service.get_user(context.tenant_id, user_id))
    )


@router.post(
    "/invite",
    response_model=APIResponse[UserResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Invite user",
)
async def invite_user(
    data: UserInvite,
    context: SecurityContext = Depends(require_users_manage),
    service: UserService = Depends(get_user_service),
) -> APIResponse[UserResponse]:
    user = service.invite_user(
        context,
        email=data.email,
        name=data.name,
        role_id=data.role_id,
        branch_scope_mode=data.branch_scope_mode,
        branch_ids=data.branch_ids,
        default_branch_id=data.default_branch_id,
    )
    return APIResponse(success=True, data=UserResponse.model_validate(user), message="Invitation created")


@router.patch(
    "/{user_id}",
    response_model=APIResponse[UserResponse],
    summary="Update user",
    description="Change name, status, role, branch scope, grants or default branch",
)
async def update_user(
    user_id: str,
    data: UserUpdate,
    context: SecurityContext = Depends(require_users_manage),
    service: UserService = Depends(get_user_service),
) -> APIResponse[UserResponse]:
    changes = UserChanges.from_dict(data.model_dump(exclude_unset=True))
    user = service.update_user(context, user_id, changes)
    return APIResponse(success=True, data=UserResponse.model_validate(user), message="User updated successfully")


@router.post("/{user_id}/suspend", response_model=APIResponse[UserResponse], summary="Suspend user")
async def suspend_user(
    user_id: str,
    context: SecurityContext = Depends(require_users_manage),
    service: UserService = Depends(get_user_service),
) -> APIResponse[UserResponse]:
    user = service.suspend_user(context, user_id)
    return APIResponse(success=True, data=UserResponse.model_validate(user), message="User suspended")


@router.post("/{user_id}/reactivate", response_model=APIResponse[UserResponse], summary="Reactivate user")
async def reactivate_user(
    user_id: str,
    context: SecurityContext = Depends(require_users_manage),
    service: UserService = Depends(get_user_service),
) -> APIResponse[UserResponse]:
    user = service.reactivate_user(context, user_id)
    return APIResponse(success=True, data=UserResponse.model_validate(user), message="User reactivated")


@router.post("/{user_id}/resend-invite", response_model=APIResponse[UserResponse], summary="Resend invite")
async def resend_invite(
    user_id: str,
    context: SecurityContext = Depends(require_users_manage),
    service: UserService = Depends(get_user_service),
) -> APIResponse[UserResponse]:
    user = service.resend_invite(context, user_id)
    return APIResponse(success=True, data=UserResponse.model_validate(user), message="Invitation resent")
