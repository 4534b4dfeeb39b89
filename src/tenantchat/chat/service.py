"""Chat routing: send and list messages for any principal.

Composes identity resolution, block checks, the visibility policy and the
message store. Holds no state of its own.
"""

import logging
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from tenantchat.common.exceptions import (
    ForbiddenError,
    InvalidInputError,
    InvalidPhoneFormatError,
    MessageNotFoundError,
    SenderBlockedError,
)
from tenantchat.common.logging import mask_phone
from tenantchat.identity.principal import (
    ExternalPrincipal,
    InternalPrincipal,
    Principal,
)
from tenantchat.identity.resolver import normalize_phone
from tenantchat.messages.models import MessageModel
from tenantchat.messages.service import MessagePage
from tenantchat.tenants.models import TenantModel

logger = logging.getLogger(__name__)


class ChatService:
    """sendMessage / listMessages orchestration."""

    def __init__(
        self,
        settings,
        resolver,
        account_service,
        tenant_service,
        policy,
        message_service,
    ):
        self.settings = settings
        self.resolver = resolver
        self.account_service = account_service
        self.tenant_service = tenant_service
        self.policy = policy
        self.message_service = message_service

    async def resolve_request(
        self,
        session: AsyncSession,
        tenant_ref: str,
        role: str,
        phone_number: str | None = None,
        account_id: str | None = None,
    ) -> tuple[TenantModel, Principal]:
        """Resolve the tenant reference, then the acting principal within it."""
        tenant = await self.tenant_service.resolve_ref(session, tenant_ref)
        principal = await self.resolver.resolve(
            session, role, tenant_id=tenant.id,
            phone_number=phone_number, account_id=account_id,
        )
        return tenant, principal

    async def send_message(
        self,
        session: AsyncSession,
        tenant_ref: str,
        role: str,
        content: str,
        phone_number: str | None = None,
        account_id: str | None = None,
        receiver_ref: str | None = None,
        metadata: dict[str, Any] | None = None,
        client_message_id: str | None = None,
        reply_to_id: str | None = None,
    ) -> MessageModel:
        tenant, sender = await self.resolve_request(
            session, tenant_ref, role, phone_number, account_id,
        )
        try:
            await self.policy.authorize_write(session, sender, tenant)
        except SenderBlockedError:
            logger.warning(
                "Rejected message from blocked sender %s on tenant %s",
                mask_phone(sender.phone_number), tenant.id,
            )
            raise

        receivers = await self._resolve_receivers(session, sender, tenant, receiver_ref)
        return await self.message_service.append(
            session,
            tenant.id,
            sender,
            content,
            receivers=receivers,
            metadata=metadata,
            client_message_id=client_message_id,
            reply_to_id=reply_to_id,
        )

    async def list_messages(
        self,
        session: AsyncSession,
        tenant_ref: str,
        role: str,
        phone_number: str | None = None,
        account_id: str | None = None,
        cursor: str | None = None,
        limit: int | None = None,
    ) -> MessagePage:
        tenant, principal = await self.resolve_request(
            session, tenant_ref, role, phone_number, account_id,
        )
        predicate = await self.policy.build_predicate(session, principal, tenant)
        return await self.message_service.scan(
            session,
            predicate,
            tenant.id,
            cursor=cursor,
            limit=self.settings.clamp_page_size(limit),
        )

    async def mark_read(
        self,
        session: AsyncSession,
        message_id: str,
        tenant_ref: str,
        role: str,
        phone_number: str | None = None,
        account_id: str | None = None,
    ) -> MessageModel:
        tenant, reader = await self.resolve_request(
            session, tenant_ref, role, phone_number, account_id,
        )
        predicate = await self.policy.build_predicate(session, reader, tenant)
        message = await self.message_service.get(session, message_id)
        # Invisible messages are reported as missing, not forbidden.
        if message.tenant_id != tenant.id or not predicate.matches(message):
            raise MessageNotFoundError()
        if message.sender == reader:
            raise ForbiddenError("Senders cannot mark their own messages as read")
        return await self.message_service.mark_read(session, message, reader)

    async def update_status(
        self,
        session: AsyncSession,
        message_id: str,
        status: str,
        tenant_ref: str,
        role: str,
        phone_number: str | None = None,
        account_id: str | None = None,
    ) -> MessageModel:
        """Set the workflow status of a visible message. Staff only."""
        tenant, actor = await self.resolve_request(
            session, tenant_ref, role, phone_number, account_id,
        )
        if not isinstance(actor, InternalPrincipal):
            raise ForbiddenError("Only staff can change message status")
        predicate = await self.policy.build_predicate(session, actor, tenant)
        message = await self.message_service.get(session, message_id)
        if message.tenant_id != tenant.id or not predicate.matches(message):
            raise MessageNotFoundError()
        return await self.message_service.set_status(session, message, status)

    async def _resolve_receivers(
        self,
        session: AsyncSession,
        sender: Principal,
        tenant: TenantModel,
        receiver_ref: str | None,
    ) -> frozenset:
        """Explicit receiver, or none: an open message any tenant admin may pick up."""
        if not receiver_ref:
            if isinstance(sender, InternalPrincipal):
                raise InvalidInputError("receiverRef is required for staff messages")
            return frozenset()

        account = await self.account_service.get_active(session, receiver_ref)
        if account is not None:
            receiver = InternalPrincipal(account_id=account.id, role=account.role)
            if not receiver.is_superadmin and not await self.tenant_service.is_admin(
                session, tenant.id, account.id
            ):
                raise InvalidInputError("Receiver is not staff of this tenant")
            return frozenset({receiver})

        if isinstance(sender, ExternalPrincipal):
            raise InvalidInputError("End-users can only message staff")
        try:
            phone = normalize_phone(receiver_ref, self.settings.phone_digits)
        except InvalidPhoneFormatError as exc:
            raise InvalidInputError("receiverRef is neither an account nor a phone number") from exc
        return frozenset({ExternalPrincipal(tenant_id=tenant.id, phone_number=phone)})
