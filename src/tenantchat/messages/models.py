"""SQLAlchemy models for the append-only message log."""

from datetime import datetime

from sqlalchemy import JSON, BigInteger, DateTime, ForeignKey, Index, Integer, String, Text, func, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from tenantchat.common.exceptions import DataIntegrityError
from tenantchat.common.models import Base, generate_uuid, utcnow
from tenantchat.identity.principal import (
    KIND_EXTERNAL,
    KIND_INTERNAL,
    ExternalPrincipal,
    InternalPrincipal,
    Principal,
)

# SQLite only autoincrements INTEGER PRIMARY KEY columns.
SeqType = BigInteger().with_variant(Integer, "sqlite")

STATUS_PENDING = "pending"
STATUS_ANSWERED = "answered"
STATUS_CLOSED = "closed"
MESSAGE_STATUSES = (STATUS_PENDING, STATUS_ANSWERED, STATUS_CLOSED)


class MessageModel(Base):
    __tablename__ = "messages"
    __table_args__ = {"sqlite_autoincrement": True}

    # Monotonic append order; the scan cursor is built on it.
    seq: Mapped[int] = mapped_column(SeqType, primary_key=True, autoincrement=True)
    id: Mapped[str] = mapped_column(
        String(36), unique=True, nullable=False, index=True, default=generate_uuid
    )
    tenant_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("tenants.id"), nullable=False, index=True
    )

    sender_kind: Mapped[str] = mapped_column(String(10), nullable=False)
    sender_account_id: Mapped[str | None] = mapped_column(String(36), nullable=True, index=True)
    sender_role: Mapped[str | None] = mapped_column(String(20), nullable=True)
    sender_phone: Mapped[str | None] = mapped_column(String(20), nullable=True, index=True)

    content: Mapped[str] = mapped_column(Text, nullable=False)
    metadata_: Mapped[dict] = mapped_column("metadata", JSON, default=dict)
    client_message_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    reply_to_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default=STATUS_PENDING)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )
    read_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    read_by: Mapped[str | None] = mapped_column(String(64), nullable=True)

    receivers: Mapped[list["MessageReceiverModel"]] = relationship(
        back_populates="message",
        lazy="selectin",
        cascade="all, delete-orphan",
    )

    @property
    def sender(self) -> Principal:
        if self.sender_kind == KIND_INTERNAL and self.sender_account_id:
            return InternalPrincipal(
                account_id=self.sender_account_id, role=self.sender_role or "admin",
            )
        if self.sender_kind == KIND_EXTERNAL and self.sender_phone:
            return ExternalPrincipal(tenant_id=self.tenant_id, phone_number=self.sender_phone)
        raise DataIntegrityError(f"Message {self.id} has an unresolvable sender")

    @property
    def receiver_principals(self) -> frozenset:
        return frozenset(r.to_principal(self.tenant_id) for r in self.receivers)

    @property
    def is_read(self) -> bool:
        return self.read_at is not None


Index(
    "uq_message_client_id",
    MessageModel.tenant_id,
    MessageModel.sender_kind,
    func.coalesce(MessageModel.sender_account_id, ""),
    func.coalesce(MessageModel.sender_phone, ""),
    MessageModel.client_message_id,
    unique=True,
    sqlite_where=text("client_message_id IS NOT NULL"),
    postgresql_where=text("client_message_id IS NOT NULL"),
)


class MessageReceiverModel(Base):
    __tablename__ = "message_receivers"
    __table_args__ = (
        Index("ix_receiver_lookup", "message_seq", "kind", "account_id", "phone_number"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    message_seq: Mapped[int] = mapped_column(
        SeqType, ForeignKey("messages.seq"), nullable=False, index=True
    )
    kind: Mapped[str] = mapped_column(String(10), nullable=False)
    account_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    role: Mapped[str | None] = mapped_column(String(20), nullable=True)
    phone_number: Mapped[str | None] = mapped_column(String(20), nullable=True)

    message: Mapped["MessageModel"] = relationship(back_populates="receivers")

    @classmethod
    def for_principal(cls, principal: Principal) -> "MessageReceiverModel":
        if isinstance(principal, InternalPrincipal):
            return cls(kind=KIND_INTERNAL, account_id=principal.account_id, role=principal.role)
        return cls(kind=KIND_EXTERNAL, phone_number=principal.phone_number)

    def to_principal(self, tenant_id: str) -> Principal:
        if self.kind == KIND_INTERNAL and self.account_id:
            return InternalPrincipal(account_id=self.account_id, role=self.role or "admin")
        if self.kind == KIND_EXTERNAL and self.phone_number:
            return ExternalPrincipal(
                tenant_id=tenant_id, phone_number=self.phone_number,
            )
        raise DataIntegrityError(f"Receiver {self.id} is unresolvable")
