"""tenantchat: multi-tenant support chat backend."""

from tenantchat.identity.principal import ExternalPrincipal, InternalPrincipal, Principal
from tenantchat.identity.resolver import normalize_phone, resolve_external

__all__ = [
    "ExternalPrincipal",
    "InternalPrincipal",
    "Principal",
    "normalize_phone",
    "resolve_external",
]
__version__ = "0.1.0"
