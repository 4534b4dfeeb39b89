"""System analytics: aggregate counts across tenants, accounts and messages."""

from typing import Any

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from tenantchat.accounts.models import AccountModel
from tenantchat.tenants.models import TenantModel


class AnalyticsService:
    def __init__(self, message_service, block_service):
        self.message_service = message_service
        self.block_service = block_service

    async def summary(self, session: AsyncSession) -> dict[str, Any]:
        tenants = await session.execute(
            select(func.count(TenantModel.id)).where(TenantModel.deleted_at.is_(None))
        )
        roles = await session.execute(
            select(AccountModel.role, func.count(AccountModel.id))
            .where(AccountModel.is_active.is_(True))
            .group_by(AccountModel.role)
        )
        accounts_by_role = {role: count for role, count in roles.all()}
        messages_by_tenant = await self.message_service.count_by_tenant(session)

        return {
            "total_tenants": tenants.scalar_one(),
            "total_accounts": sum(accounts_by_role.values()),
            "accounts_by_role": accounts_by_role,
            "total_messages": sum(messages_by_tenant.values()),
            "messages_by_tenant": messages_by_tenant,
            "active_blocks": await self.block_service.count_active(session),
        }
