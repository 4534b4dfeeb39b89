"""Visibility policy: the single place that decides who may read or write a tenant's chat."""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from tenantchat.common.exceptions import ForbiddenError, SenderBlockedError
from tenantchat.identity.principal import (
    ExternalPrincipal,
    InternalPrincipal,
    Principal,
)
from tenantchat.tenants.models import TenantModel
from tenantchat.visibility.predicates import (
    MatchAll,
    Predicate,
    admin_inbox,
    external_thread,
)

logger = logging.getLogger(__name__)


class VisibilityPolicy:
    """Read predicates and write authorization per principal and tenant.

    superadmin: every message of every tenant.
    admin: only tenants it is assigned to; within them, external traffic and
    its own messages.
    end-user: only its own thread, only in its own tenant.
    """

    def __init__(self, tenant_service, block_service):
        self.tenant_service = tenant_service
        self.block_service = block_service

    async def build_predicate(
        self, session: AsyncSession, principal: Principal, tenant: TenantModel,
    ) -> Predicate:
        """Return the read predicate, or raise ForbiddenError."""
        await self.authorize_read(session, principal, tenant)
        if isinstance(principal, ExternalPrincipal):
            return external_thread(principal)
        if principal.is_superadmin:
            return MatchAll()
        return admin_inbox(principal)

    async def authorize_read(
        self, session: AsyncSession, principal: Principal, tenant: TenantModel,
    ) -> None:
        if isinstance(principal, ExternalPrincipal):
            if principal.tenant_id != tenant.id:
                raise ForbiddenError()
            return
        await self._authorize_staff(session, principal, tenant)

    async def authorize_write(
        self, session: AsyncSession, principal: Principal, tenant: TenantModel,
    ) -> None:
        """Raise unless ``principal`` may post into ``tenant``'s chat."""
        if isinstance(principal, ExternalPrincipal):
            if principal.tenant_id != tenant.id:
                raise ForbiddenError()
            if await self.block_service.is_blocked(session, tenant.id, principal.phone_number):
                raise SenderBlockedError()
            if tenant.status != "active":
                raise ForbiddenError("Tenant is not accepting messages")
            return
        await self._authorize_staff(session, principal, tenant)

    def require_superadmin(self, principal: Principal) -> None:
        if not isinstance(principal, InternalPrincipal) or not principal.is_superadmin:
            raise ForbiddenError("Superadmin role required")

    def authorize_manage(self, principal: Principal, tenant: TenantModel) -> None:
        """Tenant settings and admin set: superadmins and the tenant's creator."""
        if isinstance(principal, InternalPrincipal) and (
            principal.is_superadmin or principal.account_id == tenant.created_by
        ):
            return
        raise ForbiddenError("Only a superadmin or the tenant creator may manage this tenant")

    async def _authorize_staff(
        self, session: AsyncSession, principal: InternalPrincipal, tenant: TenantModel,
    ) -> None:
        if principal.is_superadmin:
            return
        if not await self.tenant_service.is_admin(session, tenant.id, principal.account_id):
            logger.info(
                "Denied %s access to tenant %s", principal.display, tenant.id,
            )
            raise ForbiddenError()
