"""SQLAlchemy models for tenants and their admin assignments."""

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Index, String, Text, UniqueConstraint, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from tenantchat.common.models import Base, SoftDeleteMixin, TimestampMixin, generate_uuid, utcnow

TENANT_STATUSES = ("active", "inactive", "suspended")


class TenantModel(Base, TimestampMixin, SoftDeleteMixin):
    __tablename__ = "tenants"
    __table_args__ = (
        # Normalized names are unique among live tenants only.
        Index(
            "uq_tenant_name_key_live",
            "name_key",
            unique=True,
            sqlite_where=text("deleted_at IS NULL"),
            postgresql_where=text("deleted_at IS NULL"),
        ),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    name_key: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    description: Mapped[str] = mapped_column(Text, default="")
    status: Mapped[str] = mapped_column(String(20), default="active", nullable=False)
    created_by: Mapped[str] = mapped_column(
        String(36), ForeignKey("accounts.id"), nullable=False
    )

    admins: Mapped[list["TenantAdminModel"]] = relationship(
        back_populates="tenant",
        order_by="TenantAdminModel.position",
        lazy="selectin",
        cascade="all, delete-orphan",
    )

    @property
    def admin_ids(self) -> set[str]:
        return {a.account_id for a in self.admins}


class TenantAdminModel(Base):
    __tablename__ = "tenant_admins"
    __table_args__ = (
        UniqueConstraint("tenant_id", "account_id", name="uq_tenant_admin"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    tenant_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("tenants.id"), nullable=False, index=True
    )
    account_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("accounts.id"), nullable=False, index=True
    )
    # 1-based order of assignment, used for admin display handles.
    position: Mapped[int] = mapped_column(nullable=False, default=1)
    added_by: Mapped[str | None] = mapped_column(String(36), nullable=True)
    added_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )

    tenant: Mapped["TenantModel"] = relationship(back_populates="admins")
