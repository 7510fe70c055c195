### Description ###
# Noxera Plus - Church Operations Platform API
# - Branch Router -
# Author: Bailey Dixon
# Date: 01/03/2026
# Python: 3.11
####################

"""
Branch API Endpoints

Any tenant session may list and read branches; changes require
'branches.manage'.
"""

from fastapi import APIRouter, Depends, Query, status

from noxera.dependencies import get_branch_service
from noxera.middleware.auth import get_tenant_context, require_branches_manage
from noxera.schemas.branches import BranchCreate, BranchResponse, BranchUpdate
from noxera.schemas.responses import APIResponse
from noxera.services.branches import BranchService
from noxera.services.security_context import SecurityContext

router = APIRouter()


@router.get("", response_model=APIResponse[list[BranchResponse]], summary="List branches")
async def list_branches(
    context: SecurityContext = Depends(get_tenant_context),
    service: BranchService = Depends(get_branch_service),
    include_archived: bool = Query(False, description="Include archived branches"),
) -> APIResponse[list[BranchResponse]]:
    branches = service.list_branches(context.tenant_id, include_archived=include_archived)
    return APIResponse(success=True, data=[BranchResponse.model_validate(b) for b in branches])


@router.get("/{branch_id}", response_model=APIResponse[BranchResponse], summary="Get branch")
async def get_branch(
    branch_id: str,
    context: SecurityContext = Depends(get_tenant_context),
    service: BranchService = Depends(get_branch_service),
) -> APIResponse[BranchResponse]:
    branch = service.get_branch(context.tenant_id, branch_id)
    return APIResponse(success=True, data=BranchResponse.model_validate(branch))


@router.post(
    "",
    response_model=APIResponse[BranchResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Create branch",
)
async def create_branch(
    data: BranchCreate,
    context: SecurityContext = Depends(require_branches_manage),
    service: BranchService = Depends(get_branch_service),
) -> APIResponse[BranchResponse]:
    branch = service.create_branch(context, name=data.name, location=data.location)
    return APIResponse(
        success=True, data=BranchResponse.model_validate(branch), message="Branch created successfully"
    )


@router.patch("/{branch_id}", response_model=APIResponse[BranchResponse], summary="Update branch")
async def update_branch(
    branch_id: str,
    data: BranchUpdate,
    context: SecurityContext = Depends(require_branches_manage),
    service: BranchService = Depends(get_branch_service),
) -> APIResponse[BranchResponse]:
    branch = service.update_branch(
        context,
        branch_id,
        name=data.name,
        location=data.location,
        location_set="location" in data.model_fields_set,
    )
    return APIResponse(
        success=True, data=BranchResponse.model_validate(branch), message="Branch updated successfully"
    )


@router.post(
    "/{branch_id}/archive",
    response_model=APIResponse[BranchResponse],
    summary="Archive branch",
    description="Deactivate a branch and remove every grant to it",
)
async def archive_branch(
    branch_id: str,
    context: SecurityContext = Depends(require_branches_manage),
    service: BranchService = Depends(get_branch_service),
) -> APIResponse[BranchResponse]:
    branch = service.archive_branch(context, branch_id)
    return APIResponse(success=True, data=BranchResponse.model_validate(branch), message="Branch archived")


@router.post(
    "/{branch_id}/unarchive",
    response_model=APIResponse[BranchResponse],
    summary="Unarchive branch",
)
async def unarchive_branch(
    branch_id: str,
    context: SecurityContext = Depends(require_branches_manage),
    service: BranchService = Depends(get_branch_service),
) -> APIResponse[BranchResponse]:
    branch = service.unarchive_branch(context, branch_id)
    return APIResponse(success=True, data=BranchResponse.model_validate(branch), message="Branch unarchived")
