"""Pydantic schemas for chat endpoints."""

from datetime import datetime
from typing import Any, Literal, Optional

from pydantic import Field

from tenantchat.common.schemas import CamelModel
from tenantchat.identity.principal import ExternalPrincipal, Principal
from tenantchat.messages.models import MessageModel

Role = Literal["user", "admin", "superadmin"]
MessageStatus = Literal["pending", "answered", "closed"]


class ChatRequest(CamelModel):
    """Identity fields every chat request carries."""

    tenant_ref: str = Field(..., min_length=1, max_length=255)
    role: Role
    phone_number: Optional[str] = Field(None, max_length=32)
    account_id: Optional[str] = Field(None, max_length=36)


class SendMessageRequest(ChatRequest):
    content: str = Field(..., min_length=1, max_length=10000)
    receiver_ref: Optional[str] = Field(None, max_length=64)
    metadata: dict[str, Any] = {}
    client_message_id: Optional[str] = Field(None, min_length=1, max_length=64)
    reply_to_id: Optional[str] = Field(None, max_length=36)


class ListMessagesRequest(ChatRequest):
    cursor: Optional[str] = Field(None, max_length=512)
    limit: Optional[int] = Field(None, ge=1)


class UpdateStatusRequest(ChatRequest):
    status: MessageStatus


class PrincipalResponse(CamelModel):
    kind: str
    role: str
    account_id: Optional[str] = None
    tenant_id: Optional[str] = None
    phone_number: Optional[str] = None

    @classmethod
    def from_principal(cls, principal: Principal) -> "PrincipalResponse":
        if isinstance(principal, ExternalPrincipal):
            return cls(
                kind=principal.kind, role=principal.role,
                tenant_id=principal.tenant_id, phone_number=principal.phone_number,
            )
        return cls(kind=principal.kind, role=principal.role, account_id=principal.account_id)


class MessageResponse(CamelModel):
    id: str
    tenant_id: str
    sender: PrincipalResponse
    receivers: list[PrincipalResponse]
    content: str
    metadata: dict[str, Any] = {}
    client_message_id: Optional[str] = None
    reply_to_id: Optional[str] = None
    status: str
    created_at: datetime
    is_read: bool = False
    read_at: Optional[datetime] = None

    @classmethod
    def from_model(cls, message: MessageModel) -> "MessageResponse":
        receivers = sorted(message.receiver_principals, key=lambda p: p.identity_key)
        return cls(
            id=message.id,
            tenant_id=message.tenant_id,
            sender=PrincipalResponse.from_principal(message.sender),
            receivers=[PrincipalResponse.from_principal(r) for r in receivers],
            content=message.content,
            metadata=message.metadata_ or {},
            client_message_id=message.client_message_id,
            reply_to_id=message.reply_to_id,
            status=message.status,
            created_at=message.created_at,
            is_read=message.is_read,
            read_at=message.read_at,
        )


class SendMessageResponse(CamelModel):
    message: MessageResponse


class ListMessagesResponse(CamelModel):
    messages: list[MessageResponse]
    next_cursor: Optional[str] = None
    has_more: bool = False
