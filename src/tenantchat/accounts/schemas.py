"""Pydantic schemas for staff account endpoints."""

from datetime import datetime
from typing import Literal

from pydantic import Field

from tenantchat.common.schemas import CamelModel


class AccountCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=255)
    phone_number: str = Field(..., min_length=1, max_length=32)
    role: Literal["admin", "superadmin"] = "admin"


class AccountResponse(CamelModel):
    id: str
    name: str
    phone_number: str
    role: str
    is_active: bool
    created_at: datetime
