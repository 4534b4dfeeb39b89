"""Auth-boundary dependencies.

Sessions, OTP and token handling live in the gateway in front of this
service. The gateway proves itself with a shared key and forwards the
verified staff account id; end-users never authenticate.
"""

import hmac

from fastapi import Header

from tenantchat.common.exceptions import ForbiddenError
from tenantchat.identity.principal import InternalPrincipal


def _keys_match(presented: str | None, expected: str) -> bool:
    if not presented:
        return False
    return hmac.compare_digest(presented.encode(), expected.encode())


def verify_gateway_key(presented: str | None) -> None:
    """Raise unless ``presented`` is the configured gateway key."""
    from tenantchat.common.config import get_settings

    if not _keys_match(presented, get_settings().api_key):
        raise ForbiddenError("Invalid or missing gateway key")


async def require_super_admin(
    x_tenantchat_super_admin_key: str | None = Header(
        None, alias="X-TenantChat-Super-Admin-Key"
    ),
) -> str:
    """FastAPI dependency that validates the super-admin key header."""
    from tenantchat.common.config import get_settings

    if not _keys_match(x_tenantchat_super_admin_key, get_settings().super_admin_key):
        raise ForbiddenError("Invalid super-admin key")
    return x_tenantchat_super_admin_key


async def get_staff_principal(
    x_tenantchat_api_key: str | None = Header(None, alias="X-TenantChat-Api-Key"),
    x_account_id: str | None = Header(None, alias="X-Account-Id"),
) -> InternalPrincipal:
    """Resolve the staff principal the gateway vouches for."""
    verify_gateway_key(x_tenantchat_api_key)

    from tenantchat.deps import get_db, get_identity_resolver

    resolver = get_identity_resolver()
    async with get_db().get_session() as session:
        return await resolver.resolve_internal(session, x_account_id)
