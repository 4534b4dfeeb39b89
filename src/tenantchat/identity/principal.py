"""Principal types: the resolved identity of whoever sends or reads messages.

A principal is either an internal staff account or an external end-user. The
external kind has no stored record; it is the pair (tenant, phone number) and
is rebuilt from request fields every time. Identity keys are composite tuples,
never concatenated strings, so no (tenant, phone) pair can collide with
another.
"""

from dataclasses import dataclass, field
from typing import Union

ROLE_USER = "user"
ROLE_ADMIN = "admin"
ROLE_SUPERADMIN = "superadmin"

STAFF_ROLES = (ROLE_ADMIN, ROLE_SUPERADMIN)

KIND_INTERNAL = "internal"
KIND_EXTERNAL = "external"


@dataclass(frozen=True)
class InternalPrincipal:
    """A registered staff account."""

    account_id: str
    # Role is a property of the account, not part of its identity.
    role: str = field(compare=False)

    kind = KIND_INTERNAL

    @property
    def identity_key(self) -> tuple[str, str]:
        return (KIND_INTERNAL, self.account_id)

    @property
    def is_superadmin(self) -> bool:
        return self.role == ROLE_SUPERADMIN

    @property
    def display(self) -> str:
        return f"{self.role}:{self.account_id}"


@dataclass(frozen=True)
class ExternalPrincipal:
    """An anonymous end-user of one tenant, identified by normalized phone."""

    tenant_id: str
    phone_number: str

    kind = KIND_EXTERNAL
    role = ROLE_USER

    @property
    def identity_key(self) -> tuple[str, str, str]:
        return (KIND_EXTERNAL, self.tenant_id, self.phone_number)

    @property
    def display(self) -> str:
        return f"user:{self.tenant_id}/{self.phone_number}"


Principal = Union[InternalPrincipal, ExternalPrincipal]
