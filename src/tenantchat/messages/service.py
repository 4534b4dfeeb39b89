"""Message store: append-only log per tenant with filtered, cursor-paged scans."""

import logging
from dataclasses import dataclass
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from tenantchat.common.exceptions import (
    InvalidCursorError,
    InvalidInputError,
    MessageNotFoundError,
)
from tenantchat.common.models import utcnow
from tenantchat.identity.principal import (
    KIND_EXTERNAL,
    KIND_INTERNAL,
    STAFF_ROLES,
    ExternalPrincipal,
    InternalPrincipal,
    Principal,
)
from tenantchat.messages.cursor import Cursor
from tenantchat.messages.models import (
    MESSAGE_STATUSES,
    STATUS_ANSWERED,
    STATUS_PENDING,
    MessageModel,
    MessageReceiverModel,
)

logger = logging.getLogger(__name__)


@dataclass
class MessagePage:
    messages: list[MessageModel]
    next_cursor: str | None
    has_more: bool


class MessageService:
    """Append and scan operations over the message log."""

    def __init__(self, tenant_service):
        self.tenant_service = tenant_service

    # ── Write ──

    async def append(
        self,
        session: AsyncSession,
        tenant_id: str,
        sender: Principal,
        content: str,
        receivers: frozenset | set | tuple = (),
        metadata: dict[str, Any] | None = None,
        client_message_id: str | None = None,
        reply_to_id: str | None = None,
    ) -> MessageModel:
        """Store a new message and return it.

        A repeated ``client_message_id`` from the same sender in the same tenant
        returns the message stored the first time instead of a duplicate.
        """
        await self.tenant_service.get(session, tenant_id)
        self._check_principal(sender, tenant_id, "sender")
        receiver_set = frozenset(receivers)
        for receiver in receiver_set:
            self._check_principal(receiver, tenant_id, "receiver")
        if not content or not content.strip():
            raise InvalidInputError("Message content is required")

        if client_message_id:
            existing = await self._find_by_client_id(
                session, tenant_id, sender, client_message_id,
            )
            if existing is not None:
                return existing

        if reply_to_id:
            parent = await self.get_by_id(session, reply_to_id)
            if parent is None or parent.tenant_id != tenant_id:
                raise InvalidInputError("replyToId does not reference a message in this tenant")
            # A staff reply answers a pending end-user message.
            if (
                isinstance(sender, InternalPrincipal)
                and parent.sender_kind == KIND_EXTERNAL
                and parent.status == STATUS_PENDING
            ):
                parent.status = STATUS_ANSWERED

        message = MessageModel(
            tenant_id=tenant_id,
            content=content,
            metadata_=metadata or {},
            client_message_id=client_message_id,
            reply_to_id=reply_to_id,
            status=STATUS_PENDING,
            created_at=utcnow(),
            receivers=[MessageReceiverModel.for_principal(r) for r in receiver_set],
            **self._sender_columns(sender),
        )
        session.add(message)
        try:
            await session.flush()
        except IntegrityError as exc:
            raise InvalidInputError("Duplicate clientMessageId") from exc
        return message

    async def mark_read(
        self, session: AsyncSession, message: MessageModel, reader: Principal,
    ) -> MessageModel:
        """Stamp the first read; ordering and visibility are untouched."""
        if message.read_at is None:
            message.read_at = utcnow()
            message.read_by = reader.display
            await session.flush()
        return message

    async def set_status(
        self, session: AsyncSession, message: MessageModel, status: str,
    ) -> MessageModel:
        if status not in MESSAGE_STATUSES:
            raise InvalidInputError(f"Unknown message status: {status}")
        if message.status != status:
            logger.info("Message %s status %s -> %s", message.id, message.status, status)
            message.status = status
            await session.flush()
        return message

    # ── Read ──

    async def get_by_id(
        self, session: AsyncSession, message_id: str,
    ) -> MessageModel | None:
        result = await session.execute(
            select(MessageModel).where(MessageModel.id == message_id)
        )
        return result.scalar_one_or_none()

    async def get(self, session: AsyncSession, message_id: str) -> MessageModel:
        message = await self.get_by_id(session, message_id)
        if message is None:
            raise MessageNotFoundError()
        return message

    async def scan(
        self,
        session: AsyncSession,
        predicate,
        tenant_id: str,
        cursor: str | None = None,
        limit: int = 50,
    ) -> MessagePage:
        """Messages of one tenant matching ``predicate``, oldest first.

        ``next_cursor`` always points after the last message returned (or
        echoes the given cursor on an empty page), so a client can keep polling
        the feed with it; ``has_more`` tells whether another page is ready now.
        """
        if limit < 1:
            raise InvalidInputError("limit must be positive")

        query = select(MessageModel).where(
            MessageModel.tenant_id == tenant_id, predicate.clause(),
        )
        if cursor:
            position = await self._resolve_cursor(session, tenant_id, cursor)
            # Assumes commits land in seq order, which holds with a single writer.
            query = query.where(MessageModel.seq > position.seq)
        query = query.order_by(MessageModel.seq.asc()).limit(limit + 1)

        result = await session.execute(query)
        rows = list(result.scalars().all())
        has_more = len(rows) > limit
        messages = rows[:limit]

        if messages:
            last = messages[-1]
            next_cursor = Cursor(seq=last.seq, message_id=last.id).encode()
        else:
            next_cursor = cursor
        return MessagePage(messages=messages, next_cursor=next_cursor, has_more=has_more)

    async def count_by_tenant(self, session: AsyncSession) -> dict[str, int]:
        result = await session.execute(
            select(MessageModel.tenant_id, func.count(MessageModel.seq))
            .group_by(MessageModel.tenant_id)
        )
        return {tenant_id: count for tenant_id, count in result.all()}

    # ── Internal helpers ──

    async def _resolve_cursor(
        self, session: AsyncSession, tenant_id: str, token: str,
    ) -> Cursor:
        position = Cursor.decode(token)
        result = await session.execute(
            select(MessageModel.seq).where(
                MessageModel.seq == position.seq,
                MessageModel.id == position.message_id,
                MessageModel.tenant_id == tenant_id,
            )
        )
        if result.first() is None:
            raise InvalidCursorError()
        return position

    async def _find_by_client_id(
        self,
        session: AsyncSession,
        tenant_id: str,
        sender: Principal,
        client_message_id: str,
    ) -> MessageModel | None:
        query = select(MessageModel).where(
            MessageModel.tenant_id == tenant_id,
            MessageModel.client_message_id == client_message_id,
        )
        if isinstance(sender, InternalPrincipal):
            query = query.where(
                MessageModel.sender_kind == KIND_INTERNAL,
                MessageModel.sender_account_id == sender.account_id,
            )
        else:
            query = query.where(
                MessageModel.sender_kind == KIND_EXTERNAL,
                MessageModel.sender_phone == sender.phone_number,
            )
        result = await session.execute(query)
        return result.scalar_one_or_none()

    @staticmethod
    def _sender_columns(sender: Principal) -> dict[str, Any]:
        if isinstance(sender, InternalPrincipal):
            return {
                "sender_kind": KIND_INTERNAL,
                "sender_account_id": sender.account_id,
                "sender_role": sender.role,
                "sender_phone": None,
            }
        return {
            "sender_kind": KIND_EXTERNAL,
            "sender_account_id": None,
            "sender_role": None,
            "sender_phone": sender.phone_number,
        }

    @staticmethod
    def _check_principal(principal: Principal, tenant_id: str, label: str) -> None:
        if isinstance(principal, InternalPrincipal):
            if not principal.account_id or principal.role not in STAFF_ROLES:
                raise InvalidInputError(f"Malformed internal {label}")
            return
        if isinstance(principal, ExternalPrincipal):
            if not (principal.phone_number.isascii() and principal.phone_number.isdigit()):
                raise InvalidInputError(f"Malformed external {label}")
            if principal.tenant_id != tenant_id:
                raise InvalidInputError(f"External {label} belongs to another tenant")
            return
        raise InvalidInputError(f"Unknown {label} type")
