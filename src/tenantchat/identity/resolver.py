"""Identity resolution: raw request fields -> canonical Principal."""

import unicodedata

from sqlalchemy.ext.asyncio import AsyncSession

from tenantchat.common.exceptions import (
    AccountNotFoundError,
    InvalidInputError,
    InvalidPhoneFormatError,
)
from tenantchat.identity.principal import (
    ROLE_USER,
    STAFF_ROLES,
    ExternalPrincipal,
    InternalPrincipal,
    Principal,
)

DEFAULT_PHONE_DIGITS = 10


def normalize_phone(raw: str | None, digits: int = DEFAULT_PHONE_DIGITS) -> str:
    """Keep only decimal digits, folded to ASCII; exactly ``digits`` must remain.

    Any script's decimal digits (fullwidth, Arabic-Indic, ...) map to their
    ASCII value, so one number always yields one identity.
    """
    if not raw or not isinstance(raw, str):
        raise InvalidPhoneFormatError("Phone number is required")
    cleaned = "".join(str(unicodedata.decimal(c)) for c in raw if c.isdecimal())
    if len(cleaned) != digits:
        raise InvalidPhoneFormatError(
            f"Phone number must contain exactly {digits} digits"
        )
    return cleaned


def resolve_external(
    tenant_id: str, phone_number: str | None, digits: int = DEFAULT_PHONE_DIGITS,
) -> ExternalPrincipal:
    """Build the external principal for (tenant, phone). Pure and deterministic."""
    if not tenant_id:
        raise InvalidInputError("Tenant reference is required")
    return ExternalPrincipal(
        tenant_id=tenant_id,
        phone_number=normalize_phone(phone_number, digits),
    )


class IdentityResolver:
    """Maps (role, tenant, phone, account) request fields to a Principal.

    Staff principals are looked up in the account registry and carry the
    stored role, whatever role the request claimed. External principals are
    built without touching storage; tenant existence is checked by callers.
    """

    def __init__(self, account_service, phone_digits: int = DEFAULT_PHONE_DIGITS):
        self.account_service = account_service
        self.phone_digits = phone_digits

    async def resolve(
        self,
        session: AsyncSession,
        role: str,
        tenant_id: str | None = None,
        phone_number: str | None = None,
        account_id: str | None = None,
    ) -> Principal:
        if role in STAFF_ROLES:
            return await self.resolve_internal(session, account_id)
        if role == ROLE_USER:
            return resolve_external(tenant_id or "", phone_number, self.phone_digits)
        raise InvalidInputError(f"Unknown role: {role!r}")

    async def resolve_internal(
        self, session: AsyncSession, account_id: str | None,
    ) -> InternalPrincipal:
        if not account_id:
            raise InvalidInputError("Account id is required for staff roles")
        account = await self.account_service.get_active(session, account_id)
        if account is None:
            raise AccountNotFoundError()
        return InternalPrincipal(account_id=account.id, role=account.role)
