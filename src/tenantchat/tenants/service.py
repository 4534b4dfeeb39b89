"""Tenant registry: tenants, their lifecycle and their admin sets."""

import logging
import re

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from tenantchat.accounts.models import AccountModel
from tenantchat.common.exceptions import (
    AccountNotFoundError,
    AlreadyAdminError,
    ConflictError,
    DuplicateNameError,
    InvalidInputError,
    TenantNotFoundError,
)
from tenantchat.common.models import utcnow
from tenantchat.tenants.models import TENANT_STATUSES, TenantAdminModel, TenantModel

logger = logging.getLogger(__name__)

_WHITESPACE = re.compile(r"\s+")


def normalize_name(name: str) -> str:
    """Case-insensitive lookup key for a tenant name."""
    return name.strip().lower()


def admin_handle(tenant_name: str, position: int, phone_number: str) -> str:
    """Display handle for an admin: squashed tenant name, position, last 4 digits."""
    squashed = _WHITESPACE.sub("", tenant_name.lower())
    return f"{squashed}{position}{phone_number[-4:]}"


class TenantService:
    """Tenant management operations."""

    def __init__(self, account_service):
        self.account_service = account_service

    # ── Create ──

    async def create_tenant(
        self,
        session: AsyncSession,
        name: str,
        created_by: str,
        description: str = "",
    ) -> TenantModel:
        """Create a tenant; its creator is seeded as the first admin."""
        display_name = name.strip()
        name_key = normalize_name(name)
        if not name_key:
            raise InvalidInputError("Tenant name is required")
        if await self.get_by_name(session, name_key) is not None:
            raise DuplicateNameError()
        if await self.account_service.get_active(session, created_by) is None:
            raise AccountNotFoundError()

        tenant = TenantModel(
            name=display_name,
            name_key=name_key,
            description=description,
            created_by=created_by,
            admins=[TenantAdminModel(account_id=created_by, position=1, added_by=created_by)],
        )
        session.add(tenant)
        try:
            await session.flush()
        except IntegrityError as exc:
            # Lost a race with a concurrent create of the same name.
            raise DuplicateNameError() from exc
        logger.info("Created tenant %s (%s) by %s", tenant.id, name_key, created_by)
        return tenant

    # ── Lookup ──

    async def get_by_id(
        self, session: AsyncSession, tenant_id: str, include_deleted: bool = False,
    ) -> TenantModel | None:
        tenant = await session.get(TenantModel, tenant_id)
        if tenant is None or (tenant.is_deleted and not include_deleted):
            return None
        return tenant

    async def get(self, session: AsyncSession, tenant_id: str) -> TenantModel:
        tenant = await self.get_by_id(session, tenant_id)
        if tenant is None:
            raise TenantNotFoundError()
        return tenant

    async def get_by_name(
        self, session: AsyncSession, name: str
    ) -> TenantModel | None:
        result = await session.execute(
            select(TenantModel).where(
                TenantModel.name_key == normalize_name(name),
                TenantModel.deleted_at.is_(None),
            )
        )
        return result.scalar_one_or_none()

    async def resolve_ref(self, session: AsyncSession, ref: str | None) -> TenantModel:
        """Resolve a tenant reference that is either an id or a name."""
        if not ref or not ref.strip():
            raise InvalidInputError("Tenant reference is required")
        tenant = await self.get_by_id(session, ref.strip())
        if tenant is None:
            tenant = await self.get_by_name(session, ref)
        if tenant is None:
            raise TenantNotFoundError()
        return tenant

    async def list_tenants(
        self, session: AsyncSession, status: str | None = None,
    ) -> list[TenantModel]:
        query = (
            select(TenantModel)
            .where(TenantModel.deleted_at.is_(None))
            .order_by(TenantModel.created_at.desc())
        )
        if status is not None:
            query = query.where(TenantModel.status == status)
        result = await session.execute(query)
        return list(result.scalars().all())

    async def list_admins_of(
        self, session: AsyncSession, account_id: str
    ) -> list[TenantModel]:
        """Tenants the given account administers."""
        result = await session.execute(
            select(TenantModel)
            .join(TenantAdminModel, TenantAdminModel.tenant_id == TenantModel.id)
            .where(
                TenantAdminModel.account_id == account_id,
                TenantModel.deleted_at.is_(None),
            )
            .order_by(TenantModel.created_at.asc())
        )
        return list(result.scalars().unique().all())

    async def is_admin(
        self, session: AsyncSession, tenant_id: str, account_id: str
    ) -> bool:
        result = await session.execute(
            select(TenantAdminModel.id).where(
                TenantAdminModel.tenant_id == tenant_id,
                TenantAdminModel.account_id == account_id,
            )
        )
        return result.first() is not None

    # ── Admin set ──

    async def add_admin(
        self,
        session: AsyncSession,
        tenant_id: str,
        account_id: str,
        added_by: str | None = None,
    ) -> TenantAdminModel:
        tenant = await self.get(session, tenant_id)
        if await self.account_service.get_active(session, account_id) is None:
            raise AccountNotFoundError()
        if account_id in tenant.admin_ids:
            raise AlreadyAdminError()

        position = max((a.position for a in tenant.admins), default=0) + 1
        assignment = TenantAdminModel(
            account_id=account_id, position=position, added_by=added_by,
        )
        tenant.admins.append(assignment)
        try:
            await session.flush()
        except IntegrityError as exc:
            raise AlreadyAdminError() from exc
        logger.info("Added admin %s to tenant %s", account_id, tenant_id)
        return assignment

    async def remove_admin(
        self, session: AsyncSession, tenant_id: str, account_id: str,
    ) -> None:
        tenant = await self.get(session, tenant_id)
        if account_id == tenant.created_by:
            raise ConflictError("The tenant creator cannot be removed", code="CREATOR_REQUIRED")
        assignment = next((a for a in tenant.admins if a.account_id == account_id), None)
        if assignment is None:
            raise AccountNotFoundError("Account is not an admin of this tenant")
        tenant.admins.remove(assignment)
        await session.flush()
        logger.info("Removed admin %s from tenant %s", account_id, tenant_id)

    async def admin_details(
        self, session: AsyncSession, tenant: TenantModel
    ) -> list[dict]:
        """Admins of a tenant with their display handles, in assignment order."""
        result = await session.execute(
            select(TenantAdminModel, AccountModel)
            .join(AccountModel, AccountModel.id == TenantAdminModel.account_id)
            .where(TenantAdminModel.tenant_id == tenant.id)
            .order_by(TenantAdminModel.position.asc())
        )
        return [
            {
                "account_id": account.id,
                "name": account.name,
                "phone_number": account.phone_number,
                "role": account.role,
                "handle": admin_handle(tenant.name, assignment.position, account.phone_number),
            }
            for assignment, account in result.all()
        ]

    # ── Lifecycle ──

    async def update_tenant(
        self, session: AsyncSession, tenant_id: str, **updates
    ) -> TenantModel:
        tenant = await self.get(session, tenant_id)
        status = updates.get("status")
        if status is not None:
            if status not in TENANT_STATUSES:
                raise InvalidInputError(f"Unknown tenant status: {status!r}")
            if status != tenant.status:
                logger.info("Tenant %s status %s -> %s", tenant_id, tenant.status, status)
            tenant.status = status
        if updates.get("description") is not None:
            tenant.description = updates["description"]
        await session.flush()
        return tenant

    async def delete_tenant(self, session: AsyncSession, tenant_id: str) -> None:
        """Soft delete; the name becomes available again."""
        tenant = await self.get(session, tenant_id)
        tenant.deleted_at = utcnow()
        await session.flush()
        logger.info("Deleted tenant %s", tenant_id)
