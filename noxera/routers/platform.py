### Description ###
# Noxera Plus - Church Operations Platform API
# - Platform Administration Router -
# Author: Bailey Dixon
# Date: 01/03/2026
# Python: 3.11
####################

"""
Platform Administration API Endpoints

Endpoints reserved for allow-listed platform administrators:
- Tenants: onboard, list, get, update plan/status
- Impersonation: start and stop tenant impersonation sessions
- Users: status and role overrides across tenants
- Audit logs: full log and the impersonation subset

Impersonation sessions cannot use these endpoints.
"""

from datetime import datetime

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from noxera.database import get_db
from noxera.dependencies import (
    get_audit_recorder,
    get_impersonation_manager,
    get_tenant_service,
    get_user_service,
)
from noxera.middleware.auth import get_platform_admin_context
from noxera.schemas.audit import AuditEntryResponse
from noxera.schemas.auth import ImpersonationStartResponse, ImpersonationWindow, TokenRequest
from noxera.schemas.responses import APIResponse, PaginatedResponse, build_pagination
from noxera.schemas.tenants import TenantCreate, TenantResponse, TenantUpdate
from noxera.schemas.users import PlatformRoleUpdate, PlatformStatusUpdate, UserResponse
from noxera.services.audit import AuditRecorder, list_audit_entries
from noxera.services.impersonation import ImpersonationManager
from noxera.services.security_context import SecurityContext
from noxera.services.tenants import TenantService
from noxera.services.users import UserService

router = APIRouter()


# ========================================
# Tenant Endpoints
# ========================================

@router.get(
    "/tenants",
    response_model=PaginatedResponse[TenantResponse],
    summary="List tenants",
    description="List all tenants with pagination",
)
async def list_tenants(
    context: SecurityContext = Depends(get_platform_admin_context),
    service: TenantService = Depends(get_tenant_service),
    search: str | None = Query(None, description="Search name or domain"),
    tenant_status: str | None = Query(None, alias="status", description="Active or Suspended"),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
) -> PaginatedResponse[TenantResponse]:
    tenants, total = service.list_tenants(
        search=search, status=tenant_status, page=page, page_size=page_size
    )
    return PaginatedResponse(
        success=True,
        data=[TenantResponse.model_validate(tenant) for tenant in tenants],
        pagination=build_pagination(page, page_size, total),
    )


@router.post(
    "/tenants",
    response_model=APIResponse[TenantResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Create tenant",
    description="Onboard a church with its system roles, first branch and owner invite",
)
async def create_tenant(
    data: TenantCreate,
    context: SecurityContext = Depends(get_platform_admin_context),
    service: TenantService = Depends(get_tenant_service),
) -> APIResponse[TenantResponse]:
    tenant = service.create_tenant(
        context,
        name=data.name,
        domain=data.domain,
        admin_email=data.admin_email,
        plan=data.plan,
        admin_name=data.admin_name,
        branch_name=data.branch_name,
    )
    return APIResponse(
        success=True,
        data=TenantResponse.model_validate(tenant),
        message="Tenant created successfully",
    )


@router.get(
    "/tenants/{tenant_id}",
    response_model=APIResponse[TenantResponse],
    summary="Get tenant",
)
async def get_tenant(
    tenant_id: str,
    context: SecurityContext = Depends(get_platform_admin_context),
    service: TenantService = Depends(get_tenant_service),
) -> APIResponse[TenantResponse]:
    return APIResponse(success=True, data=TenantResponse.model_validate(service.get_tenant(tenant_id)))


@router.patch(
    "/tenants/{tenant_id}",
    response_model=APIResponse[TenantResponse],
    summary="Update tenant",
    description="Update a tenant's name, plan or status",
)
async def update_tenant(
    tenant_id: str,
    data: TenantUpdate,
    context: SecurityContext = Depends(get_platform_admin_context),
    service: TenantService = Depends(get_tenant_service),
) -> APIResponse[TenantResponse]:
    tenant = service.update_tenant(
        context, tenant_id, name=data.name, plan=data.plan, status=data.status
    )
    return APIResponse(
        success=True,
        data=TenantResponse.model_validate(tenant),
        message="Tenant updated successfully",
    )


# ========================================
# Impersonation Endpoints
# ========================================

@router.post(
    "/tenants/{tenant_id}/impersonate",
    response_model=APIResponse[ImpersonationStartResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Start impersonation",
    description="Issue a time-bounded impersonation token for a tenant (shown once)",
)
async def start_impersonation(
    tenant_id: str,
    context: SecurityContext = Depends(get_platform_admin_context),
    db: Session = Depends(get_db),
    recorder: AuditRecorder = Depends(get_audit_recorder),
    manager: ImpersonationManager = Depends(get_impersonation_manager),
    tenants: TenantService = Depends(get_tenant_service),
) -> APIResponse[ImpersonationStartResponse]:
    token, grant = manager.start(db, recorder, context, tenant_id)
    tenant = tenants.get_tenant(grant.tenant_id)

    return APIResponse(
        success=True,
        data=ImpersonationStartResponse(
            token=token,
            tenant_id=grant.tenant_id,
            tenant_name=tenant.name,
            super_admin_email=grant.super_admin_email,
            started_at=grant.started_at,
            expires_at=grant.expires_at,
        ),
        message="Impersonation started",
    )


@router.post(
    "/impersonation/stop",
    response_model=APIResponse[ImpersonationWindow],
    summary="Stop impersonation",
    description="Revoke an impersonation token immediately",
)
async def stop_impersonation(
    data: TokenRequest,
    context: SecurityContext = Depends(get_platform_admin_context),
    db: Session = Depends(get_db),
    recorder: AuditRecorder = Depends(get_audit_recorder),
    manager: ImpersonationManager = Depends(get_impersonation_manager),
) -> APIResponse[ImpersonationWindow]:
    grant = manager.stop(db, recorder, context, data.token)
    return APIResponse(
        success=True,
        data=ImpersonationWindow.from_grant(grant),
        message="Impersonation stopped",
    )


# ========================================
# Platform User Overrides
# ========================================

@router.patch(
    "/users/{user_id}/status",
    response_model=APIResponse[UserResponse],
    summary="Override user status",
)
async def update_user_status(
    user_id: str,
    data: PlatformStatusUpdate,
    context: SecurityContext = Depends(get_platform_admin_context),
    service: UserService = Depends(get_user_service),
) -> APIResponse[UserResponse]:
    user = service.platform_update_status(context, user_id, data.status)
    return APIResponse(success=True, data=UserResponse.model_validate(user), message="User status updated")


@router.patch(
    "/users/{user_id}/role",
    response_model=APIResponse[UserResponse],
    summary="Override user role",
)
async def update_user_role(
    user_id: str,
    data: PlatformRoleUpdate,
    context: SecurityContext = Depends(get_platform_admin_context),
    service: UserService = Depends(get_user_service),
) -> APIResponse[UserResponse]:
    user = service.platform_update_role(context, user_id, data.role_id)
    return APIResponse(success=True, data=UserResponse.model_validate(user), message="User role updated")


# ========================================
# Audit Log Endpoints
# ========================================

@router.get(
    "/audit-logs",
    response_model=PaginatedResponse[AuditEntryResponse],
    summary="List audit logs",
    description="Audit entries across tenants, newest first",
)
async def list_audit_logs(
    context: SecurityContext = Depends(get_platform_admin_context),
    db: Session = Depends(get_db),
    tenant_id: str | None = Query(None, description="Filter by tenant"),
    action: str | None = Query(None, description="Action contains (case-insensitive)"),
    date_from: datetime | None = Query(None, description="Entries at or after"),
    date_to: datetime | None = Query(None, description="Entries at or before"),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
) -> PaginatedResponse[AuditEntryResponse]:
    entries, total = list_audit_entries(
        db,
        tenant_id=tenant_id,
        action=action,
        date_from=date_from,
        date_to=date_to,
        page=page,
        page_size=page_size,
    )
    return PaginatedResponse(
        success=True,
        data=[AuditEntryResponse.model_validate(entry) for entry in entries],
        pagination=build_pagination(page, page_size, total),
    )


@router.get(
    "/audit-logs/impersonation",
    response_model=PaginatedResponse[AuditEntryResponse],
    summary="List impersonation audit logs",
)
async def list_impersonation_logs(
    context: SecurityContext = Depends(get_platform_admin_context),
    db: Session = Depends(get_db),
    tenant_id: str | None = Query(None, description="Filter by tenant"),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
) -> PaginatedResponse[AuditEntryResponse]:
    entries, total = list_audit_entries(
        db,
        tenant_id=tenant_id,
        impersonation_only=True,
        page=page,
        page_size=page_size,
    )
    return PaginatedResponse(
        success=True,
        data=[AuditEntryResponse.model_validate(entry) for entry in entries],
        pagination=build_pagination(page, page_size, total),
    )
