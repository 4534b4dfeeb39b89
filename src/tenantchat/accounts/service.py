"""Staff account registry."""

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from tenantchat.accounts.models import AccountModel
from tenantchat.common.exceptions import (
    AccountNotFoundError,
    DuplicateAccountError,
    InvalidInputError,
)
from tenantchat.common.logging import mask_phone
from tenantchat.identity.principal import STAFF_ROLES
from tenantchat.identity.resolver import DEFAULT_PHONE_DIGITS, normalize_phone

logger = logging.getLogger(__name__)


class AccountService:
    """Create and look up staff (admin / superadmin) accounts."""

    def __init__(self, phone_digits: int = DEFAULT_PHONE_DIGITS):
        self.phone_digits = phone_digits

    async def create_account(
        self,
        session: AsyncSession,
        name: str,
        phone_number: str,
        role: str = "admin",
    ) -> AccountModel:
        if role not in STAFF_ROLES:
            raise InvalidInputError(f"Unknown staff role: {role!r}")
        phone = normalize_phone(phone_number, self.phone_digits)
        if await self.get_by_phone(session, phone) is not None:
            raise DuplicateAccountError()

        account = AccountModel(name=name.strip(), phone_number=phone, role=role)
        session.add(account)
        await session.flush()
        logger.info("Created %s account %s (%s)", role, account.id, mask_phone(phone))
        return account

    async def get_by_id(
        self, session: AsyncSession, account_id: str
    ) -> AccountModel | None:
        return await session.get(AccountModel, account_id)

    async def get_active(
        self, session: AsyncSession, account_id: str
    ) -> AccountModel | None:
        account = await self.get_by_id(session, account_id)
        if account is None or not account.is_active:
            return None
        return account

    async def get_by_phone(
        self, session: AsyncSession, phone_number: str
    ) -> AccountModel | None:
        result = await session.execute(
            select(AccountModel).where(AccountModel.phone_number == phone_number)
        )
        return result.scalar_one_or_none()

    async def list_accounts(
        self, session: AsyncSession, role: str | None = None
    ) -> list[AccountModel]:
        query = select(AccountModel).order_by(AccountModel.created_at.asc())
        if role is not None:
            query = query.where(AccountModel.role == role)
        result = await session.execute(query)
        return list(result.scalars().all())

    async def deactivate_account(
        self, session: AsyncSession, account_id: str
    ) -> AccountModel:
        account = await self.get_by_id(session, account_id)
        if account is None:
            raise AccountNotFoundError()
        account.is_active = False
        await session.flush()
        logger.info("Deactivated account %s", account_id)
        return account
