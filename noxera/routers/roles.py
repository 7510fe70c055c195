### Description ###
# Noxera Plus - Church Operations Platform API
# - Role Management Router -
# Author: Bailey Dixon
# Date: 01/03/2026
# Python: 3.11
####################

"""
Role Management API Endpoints

Requires the 'roles.manage' permission.
"""

from fastapi import APIRouter, Depends, Query, status

from noxera.dependencies import get_role_service
from noxera.middleware.auth import require_roles_manage
from noxera.schemas.responses import APIResponse, PaginatedResponse, build_pagination
from noxera.schemas.roles import RoleCreate, RoleResponse, RoleUpdate
from noxera.services.roles import RoleService
from noxera.services.security_context import SecurityContext

router = APIRouter()


@router.get(
    "/permissions",
    response_model=APIResponse[list[str]],
    summary="Permission catalog",
    description="Permissions that can be granted to custom roles",
)
async def get_permission_catalog(
    context: SecurityContext = Depends(require_roles_manage),
    service: RoleService = Depends(get_role_service),
) -> APIResponse[list[str]]:
    return APIResponse(success=True, data=service.get_permission_catalog())


@router.get(
    "",
    response_model=PaginatedResponse[RoleResponse],
    summary="List roles",
    description="Roles of the tenant with user counts, system roles first",
)
async def list_roles(
    context: SecurityContext = Depends(require_roles_manage),
    service: RoleService = Depends(get_role_service),
    search: str | None = Query(None, description="Search role name"),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
) -> PaginatedResponse[RoleResponse]:
    rows, total = service.list_roles(context.tenant_id, search=search, page=page, page_size=page_size)

    responses = []
    for role, user_count in rows:
        response = RoleResponse.model_validate(role)
        response.user_count = user_count
        responses.append(response)

    return PaginatedResponse(
        success=True,
        data=responses,
        pagination=build_pagination(page, page_size, total),
    )


@router.get("/{role_id}", response_model=APIResponse[RoleResponse], summary="Get role")
async def get_role(
    role_id: str,
    context: SecurityContext = Depends(require_roles_manage),
    service: RoleService = Depends(get_role_service),
) -> APIResponse[RoleResponse]:
    return APIResponse(
        success=True, data=RoleResponse.model_validate(service.get_role(context.tenant_id, role_id))
    )


@router.post(
    "",
    response_model=APIResponse[RoleResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Create role",
)
async def create_role(
    data: RoleCreate,
    context: SecurityContext = Depends(require_roles_manage),
    service: RoleService = Depends(get_role_service),
) -> APIResponse[RoleResponse]:
    role = service.create_role(context, name=data.name, permissions=data.permissions)
    return APIResponse(success=True, data=RoleResponse.model_validate(role), message="Role created successfully")


@router.patch(
    "/{role_id}",
    response_model=APIResponse[RoleResponse],
    summary="Update role",
    description="Rename a custom role or replace a role's permissions",
)
async def update_role(
    role_id: str,
    data: RoleUpdate,
    context: SecurityContext = Depends(require_roles_manage),
    service: RoleService = Depends(get_role_service),
) -> APIResponse[RoleResponse]:
    role = service.update_role(context, role_id, name=data.name, permissions=data.permissions)
    return APIResponse(success=True, data=RoleResponse.model_validate(role), message="Role updated successfully")


@router.delete(
    "/{role_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete role",
    description="Delete a custom role; its users move to reassign_role_id",
)
async def delete_role(
    role_id: str,
    context: SecurityContext = Depends(require_roles_manage),
    service: RoleService = Depends(get_role_service),
    reassign_role_id: str | None = Query(None, description="Role for users currently holding this one"),
):
    """Delete role (system roles are protected)"""
    service.delete_role(context, role_id, reassign_role_id=reassign_role_id)
