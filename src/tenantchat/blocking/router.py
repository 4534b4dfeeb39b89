"""Block registry API router - staff with write access to the tenant."""

from fastapi import APIRouter, Depends, Query

from tenantchat.blocking.schemas import (
    BlockEntryEnvelope,
    BlockEntryResponse,
    BlockedUsersResponse,
    BlockRequest,
    UnblockRequest,
)
from tenantchat.common.security import get_staff_principal
from tenantchat.identity.principal import InternalPrincipal

router = APIRouter(prefix="/tenants/{tenant_id}", tags=["blocking"])


def _get_service():
    from tenantchat.deps import get_block_service
    return get_block_service()


def _get_db():
    from tenantchat.deps import get_db
    return get_db()


async def _authorized_tenant(session, tenant_id: str, principal: InternalPrincipal):
    from tenantchat.deps import get_tenant_service, get_visibility_policy

    tenant = await get_tenant_service().get(session, tenant_id)
    await get_visibility_policy().authorize_write(session, principal, tenant)
    return tenant


@router.post("/block", response_model=BlockEntryEnvelope, status_code=201)
async def block_user(
    tenant_id: str,
    body: BlockRequest,
    principal: InternalPrincipal = Depends(get_staff_principal),
):
    svc = _get_service()
    db = _get_db()
    async with db.get_session() as session:
        await _authorized_tenant(session, tenant_id, principal)
        entry = await svc.block(
            session, tenant_id, body.phone_number,
            blocked_by=principal.account_id, reason=body.reason,
        )
        return BlockEntryEnvelope(block_entry=BlockEntryResponse.model_validate(entry))


@router.post("/unblock", response_model=BlockEntryEnvelope)
async def unblock_user(
    tenant_id: str,
    body: UnblockRequest,
    principal: InternalPrincipal = Depends(get_staff_principal),
):
    svc = _get_service()
    db = _get_db()
    async with db.get_session() as session:
        await _authorized_tenant(session, tenant_id, principal)
        entry = await svc.unblock(
            session, tenant_id, body.phone_number, unblocked_by=principal.account_id,
        )
        return BlockEntryEnvelope(block_entry=BlockEntryResponse.model_validate(entry))


@router.get("/blocked", response_model=BlockedUsersResponse)
async def list_blocked_users(
    tenant_id: str,
    principal: InternalPrincipal = Depends(get_staff_principal),
):
    svc = _get_service()
    db = _get_db()
    async with db.get_session() as session:
        await _authorized_tenant(session, tenant_id, principal)
        entries = await svc.list_active(session, tenant_id)
        return BlockedUsersResponse(
            blocked_users=[BlockEntryResponse.model_validate(e) for e in entries]
        )


@router.get("/blocks/history", response_model=list[BlockEntryResponse])
async def block_history(
    tenant_id: str,
    phone_number: str | None = Query(None, alias="phoneNumber"),
    principal: InternalPrincipal = Depends(get_staff_principal),
):
    svc = _get_service()
    db = _get_db()
    async with db.get_session() as session:
        await _authorized_tenant(session, tenant_id, principal)
        entries = await svc.history(session, tenant_id, phone_number=phone_number)
        return [BlockEntryResponse.model_validate(e) for e in entries]
