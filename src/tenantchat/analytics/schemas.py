"""Pydantic schemas for analytics responses."""

from tenantchat.common.schemas import CamelModel


class AnalyticsResponse(CamelModel):
    total_tenants: int
    total_accounts: int
    accounts_by_role: dict[str, int]
    total_messages: int
    messages_by_tenant: dict[str, int]
    active_blocks: int
