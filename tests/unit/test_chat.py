"""Tests for chat routing - send, list and read across principals."""

import pytest

from tenantchat.accounts.service import AccountService
from tenantchat.blocking.service import BlockService
from tenantchat.chat.service import ChatService
from tenantchat.common.config import TenantChatSettings
from tenantchat.common.database import DatabaseManager
from tenantchat.common.exceptions import (
    ForbiddenError,
    InvalidInputError,
    InvalidPhoneFormatError,
    MessageNotFoundError,
    SenderBlockedError,
    TenantNotFoundError,
)
from tenantchat.identity.principal import ExternalPrincipal
from tenantchat.identity.resolver import IdentityResolver
from tenantchat.messages.service import MessageService
from tenantchat.tenants.service import TenantService
from tenantchat.visibility.policy import VisibilityPolicy

USER_PHONE = "9998887776"


def make_settings(**overrides) -> TenantChatSettings:
    defaults = {"db_url": "sqlite+aiosqlite://", "default_page_size": 50, "max_page_size": 100}
    defaults.update(overrides)
    return TenantChatSettings(**defaults)


@pytest.fixture
async def db():
    manager = DatabaseManager(make_settings())
    await manager.init()
    await manager.create_all()
    yield manager
    await manager.close()


@pytest.fixture
def accounts():
    return AccountService()


@pytest.fixture
def tenants(accounts):
    return TenantService(accounts)


@pytest.fixture
def blocks(tenants):
    return BlockService(tenants)


@pytest.fixture
def chat(accounts, tenants, blocks):
    return ChatService(
        make_settings(),
        resolver=IdentityResolver(accounts),
        account_service=accounts,
        tenant_service=tenants,
        policy=VisibilityPolicy(tenants, blocks),
        message_service=MessageService(tenants),
    )


@pytest.fixture
async def ids(db, accounts, tenants):
    """S1 superadmin, A1 creator of acme, A2 unassigned admin."""
    async with db.get_session() as session:
        s1 = await accounts.create_account(session, "S1", "5550000001", role="superadmin")
        a1 = await accounts.create_account(session, "A1", "5550000002")
        a2 = await accounts.create_account(session, "A2", "5550000003")
        acme = await tenants.create_tenant(session, name="acme", created_by=a1.id)
    return {"S1": s1.id, "A1": a1.id, "A2": a2.id, "acme": acme.id}


async def user_says(db, chat, content, phone=USER_PHONE, **kwargs):
    async with db.get_session() as session:
        return await chat.send_message(
            session, "acme", "user", content, phone_number=phone, **kwargs,
        )


async def staff_lists(db, chat, account_id, **kwargs):
    async with db.get_session() as session:
        return await chat.list_messages(
            session, "acme", "admin", account_id=account_id, **kwargs,
        )


class TestSupportScenario:
    async def test_end_to_end(self, db, chat, blocks, ids):
        msg = await user_says(db, chat, "hello")
        assert msg.sender == ExternalPrincipal(ids["acme"], USER_PHONE)

        for staff in ("A1", "S1"):
            page = await staff_lists(db, chat, ids[staff])
            assert [m.content for m in page.messages] == ["hello"]

        with pytest.raises(ForbiddenError):
            await staff_lists(db, chat, ids["A2"])

        async with db.get_session() as session:
            await blocks.block(session, ids["acme"], USER_PHONE, blocked_by=ids["A1"])

        with pytest.raises(SenderBlockedError):
            await user_says(db, chat, "are you there?")

        page = await staff_lists(db, chat, ids["A1"])
        assert [m.content for m in page.messages] == ["hello"]

    async def test_admin_reply_reaches_user_only(self, db, chat, ids):
        await user_says(db, chat, "hello")
        await user_says(db, chat, "me too", phone="9998887775")
        async with db.get_session() as session:
            await chat.send_message(
                session, "acme", "admin", "hi there",
                account_id=ids["A1"], receiver_ref="999-888-7776",
            )
        async with db.get_session() as session:
            page = await chat.list_messages(session, "acme", "user", phone_number=USER_PHONE)
            assert [m.content for m in page.messages] == ["hello", "hi there"]
        async with db.get_session() as session:
            page = await chat.list_messages(session, "acme", "user", phone_number="9998887775")
            assert [m.content for m in page.messages] == ["me too"]


class TestSend:
    async def test_unknown_tenant(self, db, chat, ids):
        async with db.get_session() as session:
            with pytest.raises(TenantNotFoundError):
                await chat.send_message(
                    session, "nope", "user", "hi", phone_number=USER_PHONE,
                )

    async def test_bad_phone(self, db, chat, ids):
        with pytest.raises(InvalidPhoneFormatError):
            await user_says(db, chat, "hi", phone="123")

    async def test_user_may_address_tenant_admin(self, db, chat, ids):
        msg = await user_says(db, chat, "for a1", receiver_ref=ids["A1"])
        assert {r.account_id for r in msg.receiver_principals} == {ids["A1"]}

    async def test_user_may_not_address_unassigned_admin(self, db, chat, ids):
        with pytest.raises(InvalidInputError):
            await user_says(db, chat, "for a2", receiver_ref=ids["A2"])

    async def test_user_may_not_address_another_user(self, db, chat, ids):
        with pytest.raises(InvalidInputError):
            await user_says(db, chat, "psst", receiver_ref="9998887775")

    async def test_staff_needs_receiver(self, db, chat, ids):
        async with db.get_session() as session:
            with pytest.raises(InvalidInputError):
                await chat.send_message(session, "acme", "admin", "hi", account_id=ids["A1"])

    async def test_unassigned_admin_cannot_send(self, db, chat, ids):
        async with db.get_session() as session:
            with pytest.raises(ForbiddenError):
                await chat.send_message(
                    session, "acme", "admin", "hi",
                    account_id=ids["A2"], receiver_ref=USER_PHONE,
                )

    async def test_superadmin_can_send_anywhere(self, db, chat, ids):
        async with db.get_session() as session:
            msg = await chat.send_message(
                session, "acme", "superadmin", "hi",
                account_id=ids["S1"], receiver_ref=ids["A1"],
            )
            assert msg.sender.is_superadmin

    async def test_idempotent_send(self, db, chat, ids):
        first = await user_says(db, chat, "hello", client_message_id="c-1")
        second = await user_says(db, chat, "hello", client_message_id="c-1")
        assert first.id == second.id


class TestList:
    async def test_page_size_clamped(self, db, chat, ids):
        for i in range(3):
            await user_says(db, chat, f"m{i}")
        page = await staff_lists(db, chat, ids["A1"], limit=2)
        assert len(page.messages) == 2
        assert page.has_more is True
        rest = await staff_lists(db, chat, ids["A1"], cursor=page.next_cursor, limit=2)
        assert [m.content for m in rest.messages] == ["m2"]


class TestMarkRead:
    async def test_admin_marks_user_message(self, db, chat, ids):
        msg = await user_says(db, chat, "hello")
        async with db.get_session() as session:
            read = await chat.mark_read(session, msg.id, "acme", "admin", account_id=ids["A1"])
            assert read.is_read
            assert read.read_by == f"admin:{ids['A1']}"

    async def test_sender_cannot_mark_own(self, db, chat, ids):
        msg = await user_says(db, chat, "hello")
        async with db.get_session() as session:
            with pytest.raises(ForbiddenError):
                await chat.mark_read(session, msg.id, "acme", "user", phone_number=USER_PHONE)

    async def test_invisible_message_reported_missing(self, db, chat, ids):
        msg = await user_says(db, chat, "hello")
        async with db.get_session() as session:
            with pytest.raises(MessageNotFoundError):
                await chat.mark_read(
                    session, msg.id, "acme", "user", phone_number="9998887775",
                )


class TestStatus:
    async def test_admin_closes_user_message(self, db, chat, ids):
        msg = await user_says(db, chat, "hello")
        async with db.get_session() as session:
            closed = await chat.update_status(
                session, msg.id, "closed", "acme", "admin", account_id=ids["A1"],
            )
            assert closed.status == "closed"

    async def test_admin_reply_marks_answered(self, db, chat, ids):
        msg = await user_says(db, chat, "hello")
        async with db.get_session() as session:
            await chat.send_message(
                session, "acme", "admin", "hi there",
                account_id=ids["A1"], receiver_ref=USER_PHONE, reply_to_id=msg.id,
            )
        page = await staff_lists(db, chat, ids["A1"])
        assert [m.status for m in page.messages] == ["answered", "pending"]

    async def test_user_cannot_change_status(self, db, chat, ids):
        msg = await user_says(db, chat, "hello")
        async with db.get_session() as session:
            with pytest.raises(ForbiddenError):
                await chat.update_status(
                    session, msg.id, "closed", "acme", "user", phone_number=USER_PHONE,
                )

    async def test_unassigned_admin_cannot_change_status(self, db, chat, ids):
        msg = await user_says(db, chat, "hello")
        async with db.get_session() as session:
            with pytest.raises(ForbiddenError):
                await chat.update_status(
                    session, msg.id, "closed", "acme", "admin", account_id=ids["A2"],
                )
