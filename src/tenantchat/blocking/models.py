"""SQLAlchemy model for per-tenant block entries."""

from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column

from tenantchat.common.models import Base, TimestampMixin, generate_uuid, utcnow

DEFAULT_REASON = "No reason provided"


class BlockEntryModel(Base, TimestampMixin):
    __tablename__ = "block_entries"
    __table_args__ = (
        # At most one active entry per (tenant, phone); history rows are unconstrained.
        Index(
            "uq_block_active_pair",
            "tenant_id",
            "phone_number",
            unique=True,
            sqlite_where=text("is_active = 1"),
            postgresql_where=text("is_active"),
        ),
        Index("ix_block_pair", "tenant_id", "phone_number"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    tenant_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("tenants.id"), nullable=False, index=True
    )
    phone_number: Mapped[str] = mapped_column(String(20), nullable=False)
    blocked_by: Mapped[str] = mapped_column(
        String(36), ForeignKey("accounts.id"), nullable=False
    )
    reason: Mapped[str] = mapped_column(Text, default=DEFAULT_REASON)
    blocked_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    unblocked_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    unblocked_by: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("accounts.id"), nullable=True
    )
