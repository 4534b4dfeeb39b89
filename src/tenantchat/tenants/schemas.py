"""Pydantic schemas for tenant endpoints."""

from datetime import datetime
from typing import Literal, Optional

from pydantic import Field

from tenantchat.common.schemas import CamelModel


class TenantCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: str = Field("", max_length=2000)


class TenantUpdate(CamelModel):
    status: Optional[Literal["active", "inactive", "suspended"]] = None
    description: Optional[str] = Field(None, max_length=2000)


class AdminAssign(CamelModel):
    account_id: str = Field(..., min_length=1, max_length=36)


class TenantAdminResponse(CamelModel):
    account_id: str
    name: str
    phone_number: str
    role: str
    handle: str


class TenantResponse(CamelModel):
    id: str
    name: str
    description: str
    status: str
    created_by: str
    admin_ids: list[str]
    created_at: datetime


class TenantDetailResponse(TenantResponse):
    """Includes admin display details - returned by the single-tenant view."""
    admins: list[TenantAdminResponse]
