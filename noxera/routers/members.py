"""
Member API Endpoints

Branch-scoped member data: reads go through the read scope, creation
through the write scope of the caller.
"""

from fastapi import APIRouter, Depends, Query, status

from noxera.dependencies import get_member_service
from noxera.middleware.auth import require_members_manage, require_members_read
from noxera.schemas.members import MemberCreate, MemberResponse
from noxera.schemas.responses import APIResponse, PaginatedResponse, build_pagination
from noxera.services.members import MemberService
from noxera.services.security_context import SecurityContext

router = APIRouter()


@router.get(
    "",
    response_model=PaginatedResponse[MemberResponse],
    summary="List members",
    description="Members visible to the caller; restricted users see their branches only",
)
async def list_members(
    context: SecurityContext = Depends(require_members_read),
    service: MemberService = Depends(get_member_service),
    branch_id: str | None = Query(None, description="Filter by branch"),
    search: str | None = Query(None, description="Search name or email"),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
) -> PaginatedResponse[MemberResponse]:
    members, total = service.list_members(
        context, branch_id=branch_id, search=search, page=page, page_size=page_size
    )
    return PaginatedResponse(
        success=True,
        data=[MemberResponse.model_validate(member) for member in members],
        pagination=build_pagination(page, page_size, total),
    )


@router.post(
    "",
    response_model=APIResponse[MemberResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Create member",
)
async def create_member(
    data: MemberCreate,
    context: SecurityContext = Depends(require_members_manage),
    service: MemberService = Depends(get_member_service),
) -> APIResponse[MemberResponse]:
    member = service.create_member(
        context,
        first_name=data.first_name,
        last_name=data.last_name,
        email=data.email,
        branch_id=data.branch_id,
    )
    return APIResponse(success=True, data=MemberResponse.model_validate(member), message="Member created")
