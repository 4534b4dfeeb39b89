"""Staff account API router - requires the super-admin key."""

from fastapi import APIRouter, Depends, Query

from tenantchat.accounts.schemas import AccountCreate, AccountResponse
from tenantchat.common.security import require_super_admin

router = APIRouter(prefix="/accounts", tags=["accounts"])


def _get_service():
    from tenantchat.deps import get_account_service
    return get_account_service()


def _get_db():
    from tenantchat.deps import get_db
    return get_db()


@router.post("", response_model=AccountResponse, status_code=201)
async def create_account(body: AccountCreate, _=Depends(require_super_admin)):
    svc = _get_service()
    db = _get_db()
    async with db.get_session() as session:
        account = await svc.create_account(
            session, name=body.name, phone_number=body.phone_number, role=body.role,
        )
        return AccountResponse.model_validate(account)


@router.get("", response_model=list[AccountResponse])
async def list_accounts(
    role: str | None = Query(None),
    _=Depends(require_super_admin),
):
    svc = _get_service()
    db = _get_db()
    async with db.get_session() as session:
        accounts = await svc.list_accounts(session, role=role)
        return [AccountResponse.model_validate(a) for a in accounts]


@router.delete("/{account_id}", response_model=AccountResponse)
async def deactivate_account(account_id: str, _=Depends(require_super_admin)):
    svc = _get_service()
    db = _get_db()
    async with db.get_session() as session:
        account = await svc.deactivate_account(session, account_id)
        return AccountResponse.model_validate(account)
