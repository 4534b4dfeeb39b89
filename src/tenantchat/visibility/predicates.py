"""Visibility predicates over a message's (sender, receivers).

Each predicate compiles to a SQLAlchemy clause for the store scan and also
evaluates directly against a loaded message. Both forms must agree; the test
suite checks them against each other.
"""

from dataclasses import dataclass

from sqlalchemy import and_, exists, false, or_, select, true
from sqlalchemy.sql.elements import ColumnElement

from tenantchat.identity.principal import (
    KIND_EXTERNAL,
    KIND_INTERNAL,
    ExternalPrincipal,
    InternalPrincipal,
    Principal,
)
from tenantchat.messages.models import MessageModel, MessageReceiverModel


class Predicate:
    def clause(self) -> ColumnElement[bool]:
        raise NotImplementedError

    def matches(self, message: MessageModel) -> bool:
        raise NotImplementedError


@dataclass(frozen=True)
class MatchAll(Predicate):
    def clause(self):
        return true()

    def matches(self, message):
        return True


@dataclass(frozen=True)
class SenderKind(Predicate):
    kind: str

    def clause(self):
        return MessageModel.sender_kind == self.kind

    def matches(self, message):
        return message.sender.kind == self.kind


@dataclass(frozen=True)
class SenderIs(Predicate):
    principal: Principal

    def clause(self):
        p = self.principal
        if isinstance(p, InternalPrincipal):
            return and_(
                MessageModel.sender_kind == KIND_INTERNAL,
                MessageModel.sender_account_id == p.account_id,
            )
        return and_(
            MessageModel.sender_kind == KIND_EXTERNAL,
            MessageModel.tenant_id == p.tenant_id,
            MessageModel.sender_phone == p.phone_number,
        )

    def matches(self, message):
        return message.sender == self.principal


def _receiver_exists(*criteria) -> ColumnElement[bool]:
    return exists(
        select(MessageReceiverModel.id).where(
            MessageReceiverModel.message_seq == MessageModel.seq, *criteria
        )
    )


@dataclass(frozen=True)
class ReceiverKind(Predicate):
    kind: str

    def clause(self):
        return _receiver_exists(MessageReceiverModel.kind == self.kind)

    def matches(self, message):
        return any(r.kind == self.kind for r in message.receiver_principals)


@dataclass(frozen=True)
class ReceiverIncludes(Predicate):
    principal: Principal

    def clause(self):
        p = self.principal
        if isinstance(p, InternalPrincipal):
            return _receiver_exists(
                MessageReceiverModel.kind == KIND_INTERNAL,
                MessageReceiverModel.account_id == p.account_id,
            )
        return and_(
            MessageModel.tenant_id == p.tenant_id,
            _receiver_exists(
                MessageReceiverModel.kind == KIND_EXTERNAL,
                MessageReceiverModel.phone_number == p.phone_number,
            ),
        )

    def matches(self, message):
        return self.principal in message.receiver_principals


@dataclass(frozen=True)
class AnyOf(Predicate):
    options: tuple[Predicate, ...]

    def clause(self):
        if not self.options:
            return false()
        return or_(*(p.clause() for p in self.options))

    def matches(self, message):
        return any(p.matches(message) for p in self.options)


def external_thread(principal: ExternalPrincipal) -> Predicate:
    """Messages an end-user sent or received."""
    return AnyOf((SenderIs(principal), ReceiverIncludes(principal)))


def admin_inbox(principal: InternalPrincipal) -> Predicate:
    """External traffic in either direction plus the admin's own messages."""
    return AnyOf((
        SenderKind(KIND_EXTERNAL),
        ReceiverKind(KIND_EXTERNAL),
        ReceiverIncludes(principal),
        SenderIs(principal),
    ))
