"""Block registry: per-tenant denial of external identities, with audit history."""

import logging

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from tenantchat.blocking.models import DEFAULT_REASON, BlockEntryModel
from tenantchat.common.exceptions import AlreadyBlockedError, NotBlockedError
from tenantchat.common.logging import mask_phone
from tenantchat.common.models import utcnow
from tenantchat.identity.resolver import DEFAULT_PHONE_DIGITS, normalize_phone

logger = logging.getLogger(__name__)


class BlockService:
    """Block, unblock and query blocked (tenant, phone) pairs.

    Entries are never deleted. Unblocking flips ``is_active`` with a
    compare-and-swap so two concurrent unblocks cannot both succeed, and a
    partial unique index keeps a second concurrent block from creating another
    active entry.
    """

    def __init__(self, tenant_service, phone_digits: int = DEFAULT_PHONE_DIGITS):
        self.tenant_service = tenant_service
        self.phone_digits = phone_digits

    async def block(
        self,
        session: AsyncSession,
        tenant_id: str,
        phone_number: str,
        blocked_by: str,
        reason: str | None = None,
    ) -> BlockEntryModel:
        await self.tenant_service.get(session, tenant_id)
        phone = normalize_phone(phone_number, self.phone_digits)

        if await self.get_active(session, tenant_id, phone) is not None:
            raise AlreadyBlockedError()

        entry = BlockEntryModel(
            tenant_id=tenant_id,
            phone_number=phone,
            blocked_by=blocked_by,
            reason=reason or DEFAULT_REASON,
            is_active=True,
            blocked_at=utcnow(),
        )
        session.add(entry)
        try:
            await session.flush()
        except IntegrityError as exc:
            raise AlreadyBlockedError() from exc
        logger.info(
            "Blocked %s on tenant %s by %s", mask_phone(phone), tenant_id, blocked_by,
        )
        return entry

    async def unblock(
        self,
        session: AsyncSession,
        tenant_id: str,
        phone_number: str,
        unblocked_by: str,
    ) -> BlockEntryModel:
        await self.tenant_service.get(session, tenant_id)
        phone = normalize_phone(phone_number, self.phone_digits)

        entry = await self.get_active(session, tenant_id, phone)
        if entry is None:
            raise NotBlockedError()

        result = await session.execute(
            update(BlockEntryModel)
            .where(BlockEntryModel.id == entry.id, BlockEntryModel.is_active.is_(True))
            .values(is_active=False, unblocked_at=utcnow(), unblocked_by=unblocked_by)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            # Another request unblocked it between our read and write.
            raise NotBlockedError()
        await session.refresh(entry)
        logger.info(
            "Unblocked %s on tenant %s by %s", mask_phone(phone), tenant_id, unblocked_by,
        )
        return entry

    async def get_active(
        self, session: AsyncSession, tenant_id: str, phone_number: str,
    ) -> BlockEntryModel | None:
        result = await session.execute(
            select(BlockEntryModel).where(
                BlockEntryModel.tenant_id == tenant_id,
                BlockEntryModel.phone_number == phone_number,
                BlockEntryModel.is_active.is_(True),
            )
        )
        return result.scalar_one_or_none()

    async def is_blocked(
        self, session: AsyncSession, tenant_id: str, phone_number: str,
    ) -> bool:
        """Single indexed lookup on the active entry for the pair."""
        result = await session.execute(
            select(BlockEntryModel.id).where(
                BlockEntryModel.tenant_id == tenant_id,
                BlockEntryModel.phone_number == phone_number,
                BlockEntryModel.is_active.is_(True),
            ).limit(1)
        )
        return result.first() is not None

    async def list_active(
        self, session: AsyncSession, tenant_id: str,
    ) -> list[BlockEntryModel]:
        result = await session.execute(
            select(BlockEntryModel)
            .where(
                BlockEntryModel.tenant_id == tenant_id,
                BlockEntryModel.is_active.is_(True),
            )
            .order_by(BlockEntryModel.blocked_at.asc())
        )
        return list(result.scalars().all())

    async def history(
        self,
        session: AsyncSession,
        tenant_id: str,
        phone_number: str | None = None,
    ) -> list[BlockEntryModel]:
        """Every entry, active or not, newest first."""
        query = select(BlockEntryModel).where(BlockEntryModel.tenant_id == tenant_id)
        if phone_number is not None:
            query = query.where(
                BlockEntryModel.phone_number == normalize_phone(phone_number, self.phone_digits)
            )
        query = query.order_by(BlockEntryModel.blocked_at.desc())
        result = await session.execute(query)
        return list(result.scalars().all())

    async def count_active(self, session: AsyncSession) -> int:
        result = await session.execute(
            select(func.count(BlockEntryModel.id)).where(BlockEntryModel.is_active.is_(True))
        )
        return result.scalar_one()
