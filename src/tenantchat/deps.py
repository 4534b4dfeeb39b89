"""Dependency injection singletons for tenantchat."""

from tenantchat.common.config import get_settings
from tenantchat.common.database import DatabaseManager
from tenantchat.accounts.service import AccountService
from tenantchat.analytics.service import AnalyticsService
from tenantchat.blocking.service import BlockService
from tenantchat.chat.service import ChatService
from tenantchat.identity.resolver import IdentityResolver
from tenantchat.messages.service import MessageService
from tenantchat.tenants.service import TenantService
from tenantchat.visibility.policy import VisibilityPolicy

_db: DatabaseManager | None = None
_accounts: AccountService | None = None
_resolver: IdentityResolver | None = None
_tenants: TenantService | None = None
_blocks: BlockService | None = None
_messages: MessageService | None = None
_policy: VisibilityPolicy | None = None
_chat: ChatService | None = None
_analytics: AnalyticsService | None = None


def get_db() -> DatabaseManager:
    global _db
    if _db is None:
        _db = DatabaseManager(get_settings())
    return _db


def get_account_service() -> AccountService:
    global _accounts
    if _accounts is None:
        _accounts = AccountService(phone_digits=get_settings().phone_digits)
    return _accounts


def get_identity_resolver() -> IdentityResolver:
    global _resolver
    if _resolver is None:
        _resolver = IdentityResolver(
            get_account_service(), phone_digits=get_settings().phone_digits,
        )
    return _resolver


def get_tenant_service() -> TenantService:
    global _tenants
    if _tenants is None:
        _tenants = TenantService(get_account_service())
    return _tenants


def get_block_service() -> BlockService:
    global _blocks
    if _blocks is None:
        _blocks = BlockService(
            get_tenant_service(), phone_digits=get_settings().phone_digits,
        )
    return _blocks


def get_message_service() -> MessageService:
    global _messages
    if _messages is None:
        _messages = MessageService(get_tenant_service())
    return _messages


def get_visibility_policy() -> VisibilityPolicy:
    global _policy
    if _policy is None:
        _policy = VisibilityPolicy(get_tenant_service(), get_block_service())
    return _policy


def get_chat_service() -> ChatService:
    global _chat
    if _chat is None:
        _chat = ChatService(
            get_settings(),
            resolver=get_identity_resolver(),
            account_service=get_account_service(),
            tenant_service=get_tenant_service(),
            policy=get_visibility_policy(),
            message_service=get_message_service(),
        )
    return _chat


def get_analytics_service() -> AnalyticsService:
    global _analytics
    if _analytics is None:
        _analytics = AnalyticsService(get_message_service(), get_block_service())
    return _analytics


def reset_singletons() -> None:
    """Reset all singletons (for testing)."""
    global _db, _accounts, _resolver, _tenants, _blocks, _messages, _policy, _chat, _analytics
    _db = None
    _accounts = None
    _resolver = None
    _tenants = None
    _blocks = None
    _messages = None
    _policy = None
    _chat = None
    _analytics = None
