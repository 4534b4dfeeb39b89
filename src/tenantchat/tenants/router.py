"""Tenant API router - staff principals vouched for by the gateway."""

from fastapi import APIRouter, Depends, Query

from tenantchat.common.security import get_staff_principal
from tenantchat.identity.principal import InternalPrincipal
from tenantchat.tenants.models import TenantModel
from tenantchat.tenants.schemas import (
    AdminAssign,
    TenantAdminResponse,
    TenantCreate,
    TenantDetailResponse,
    TenantResponse,
    TenantUpdate,
)

router = APIRouter(prefix="/tenants", tags=["tenants"])


def _get_service():
    from tenantchat.deps import get_tenant_service
    return get_tenant_service()


def _get_policy():
    from tenantchat.deps import get_visibility_policy
    return get_visibility_policy()


def _get_db():
    from tenantchat.deps import get_db
    return get_db()


def _to_response(tenant: TenantModel) -> TenantResponse:
    return TenantResponse(
        id=tenant.id,
        name=tenant.name,
        description=tenant.description,
        status=tenant.status,
        created_by=tenant.created_by,
        admin_ids=[a.account_id for a in tenant.admins],
        created_at=tenant.created_at,
    )


async def _to_detail(session, tenant: TenantModel) -> TenantDetailResponse:
    admins = await _get_service().admin_details(session, tenant)
    return TenantDetailResponse(
        **_to_response(tenant).model_dump(),
        admins=[TenantAdminResponse(**a) for a in admins],
    )


@router.post("", response_model=TenantDetailResponse, status_code=201)
async def create_tenant(
    body: TenantCreate,
    principal: InternalPrincipal = Depends(get_staff_principal),
):
    svc = _get_service()
    db = _get_db()
    async with db.get_session() as session:
        tenant = await svc.create_tenant(
            session,
            name=body.name,
            created_by=principal.account_id,
            description=body.description,
        )
        return await _to_detail(session, tenant)


@router.get("", response_model=list[TenantResponse])
async def list_tenants(
    status: str | None = Query(None),
    principal: InternalPrincipal = Depends(get_staff_principal),
):
    """Superadmins see every tenant; admins see the tenants they are assigned to."""
    svc = _get_service()
    db = _get_db()
    async with db.get_session() as session:
        if principal.is_superadmin:
            tenants = await svc.list_tenants(session, status=status)
        else:
            tenants = await svc.list_admins_of(session, principal.account_id)
            if status is not None:
                tenants = [t for t in tenants if t.status == status]
        return [_to_response(t) for t in tenants]


@router.get("/{tenant_id}", response_model=TenantDetailResponse)
async def get_tenant(
    tenant_id: str,
    principal: InternalPrincipal = Depends(get_staff_principal),
):
    svc = _get_service()
    db = _get_db()
    async with db.get_session() as session:
        tenant = await svc.get(session, tenant_id)
        await _get_policy().authorize_read(session, principal, tenant)
        return await _to_detail(session, tenant)


@router.patch("/{tenant_id}", response_model=TenantResponse)
async def update_tenant(
    tenant_id: str,
    body: TenantUpdate,
    principal: InternalPrincipal = Depends(get_staff_principal),
):
    svc = _get_service()
    db = _get_db()
    async with db.get_session() as session:
        tenant = await svc.get(session, tenant_id)
        _get_policy().authorize_manage(principal, tenant)
        tenant = await svc.update_tenant(
            session, tenant_id, **body.model_dump(exclude_none=True)
        )
        return _to_response(tenant)


@router.delete("/{tenant_id}", status_code=204)
async def delete_tenant(
    tenant_id: str,
    principal: InternalPrincipal = Depends(get_staff_principal),
):
    _get_policy().require_superadmin(principal)
    svc = _get_service()
    db = _get_db()
    async with db.get_session() as session:
        await svc.delete_tenant(session, tenant_id)


@router.post("/{tenant_id}/admins", response_model=TenantAdminResponse, status_code=201)
async def add_admin(
    tenant_id: str,
    body: AdminAssign,
    principal: InternalPrincipal = Depends(get_staff_principal),
):
    svc = _get_service()
    db = _get_db()
    async with db.get_session() as session:
        tenant = await svc.get(session, tenant_id)
        _get_policy().authorize_manage(principal, tenant)
        await svc.add_admin(
            session, tenant_id, body.account_id, added_by=principal.account_id,
        )
        admins = await svc.admin_details(session, tenant)
        added = next(a for a in admins if a["account_id"] == body.account_id)
        return TenantAdminResponse(**added)


@router.delete("/{tenant_id}/admins/{account_id}", status_code=204)
async def remove_admin(
    tenant_id: str,
    account_id: str,
    principal: InternalPrincipal = Depends(get_staff_principal),
):
    svc = _get_service()
    db = _get_db()
    async with db.get_session() as session:
        tenant = await svc.get(session, tenant_id)
        _get_policy().authorize_manage(principal, tenant)
        await svc.remove_admin(session, tenant_id, account_id)
