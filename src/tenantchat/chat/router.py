"""Chat API router.

End-users (``role: user``) call these routes directly with their phone
number. Staff roles are only honoured when the request arrives through the
gateway, i.e. carries the gateway key.
"""

from fastapi import APIRouter, Header

from tenantchat.chat.schemas import (
    ChatRequest,
    ListMessagesRequest,
    ListMessagesResponse,
    MessageResponse,
    SendMessageRequest,
    SendMessageResponse,
    UpdateStatusRequest,
)
from tenantchat.common.security import verify_gateway_key
from tenantchat.identity.principal import ROLE_USER

router = APIRouter(prefix="/chat", tags=["chat"])


def _get_service():
    from tenantchat.deps import get_chat_service
    return get_chat_service()


def _get_db():
    from tenantchat.deps import get_db
    return get_db()


def _check_staff_claim(body: ChatRequest, gateway_key: str | None) -> None:
    if body.role != ROLE_USER:
        verify_gateway_key(gateway_key)


@router.post("/send", response_model=SendMessageResponse, status_code=201)
async def send_message(
    body: SendMessageRequest,
    x_tenantchat_api_key: str | None = Header(None, alias="X-TenantChat-Api-Key"),
):
    _check_staff_claim(body, x_tenantchat_api_key)
    svc = _get_service()
    db = _get_db()
    async with db.get_session() as session:
        message = await svc.send_message(
            session,
            tenant_ref=body.tenant_ref,
            role=body.role,
            content=body.content,
            phone_number=body.phone_number,
            account_id=body.account_id,
            receiver_ref=body.receiver_ref,
            metadata=body.metadata,
            client_message_id=body.client_message_id,
            reply_to_id=body.reply_to_id,
        )
        return SendMessageResponse(message=MessageResponse.from_model(message))


@router.post("/messages", response_model=ListMessagesResponse)
async def list_messages(
    body: ListMessagesRequest,
    x_tenantchat_api_key: str | None = Header(None, alias="X-TenantChat-Api-Key"),
):
    _check_staff_claim(body, x_tenantchat_api_key)
    svc = _get_service()
    db = _get_db()
    async with db.get_session() as session:
        page = await svc.list_messages(
            session,
            tenant_ref=body.tenant_ref,
            role=body.role,
            phone_number=body.phone_number,
            account_id=body.account_id,
            cursor=body.cursor,
            limit=body.limit,
        )
        return ListMessagesResponse(
            messages=[MessageResponse.from_model(m) for m in page.messages],
            next_cursor=page.next_cursor,
            has_more=page.has_more,
        )


@router.post("/messages/{message_id}/read", response_model=MessageResponse)
async def mark_message_read(
    message_id: str,
    body: ChatRequest,
    x_tenantchat_api_key: str | None = Header(None, alias="X-TenantChat-Api-Key"),
):
    _check_staff_claim(body, x_tenantchat_api_key)
    svc = _get_service()
    db = _get_db()
    async with db.get_session() as session:
        message = await svc.mark_read(
            session,
            message_id,
            tenant_ref=body.tenant_ref,
            role=body.role,
            phone_number=body.phone_number,
            account_id=body.account_id,
        )
        return MessageResponse.from_model(message)


@router.post("/messages/{message_id}/status", response_model=MessageResponse)
async def update_message_status(
    message_id: str,
    body: UpdateStatusRequest,
    x_tenantchat_api_key: str | None = Header(None, alias="X-TenantChat-Api-Key"),
):
    _check_staff_claim(body, x_tenantchat_api_key)
    svc = _get_service()
    db = _get_db()
    async with db.get_session() as session:
        message = await svc.update_status(
            session,
            message_id,
            body.status,
            tenant_ref=body.tenant_ref,
            role=body.role,
            phone_number=body.phone_number,
            account_id=body.account_id,
        )
        return MessageResponse.from_model(message)
