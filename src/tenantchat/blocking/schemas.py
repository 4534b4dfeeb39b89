"""Pydantic schemas for block registry endpoints."""

from datetime import datetime
from typing import Optional

from pydantic import Field

from tenantchat.common.schemas import CamelModel


class BlockRequest(CamelModel):
    phone_number: str = Field(..., min_length=1, max_length=32)
    reason: Optional[str] = Field(None, max_length=1000)


class UnblockRequest(CamelModel):
    phone_number: str = Field(..., min_length=1, max_length=32)


class BlockEntryResponse(CamelModel):
    id: str
    tenant_id: str
    phone_number: str
    blocked_by: str
    reason: str
    blocked_at: datetime
    is_active: bool
    unblocked_at: Optional[datetime] = None
    unblocked_by: Optional[str] = None


class BlockEntryEnvelope(CamelModel):
    block_entry: BlockEntryResponse


class BlockedUsersResponse(CamelModel):
    blocked_users: list[BlockEntryResponse]
