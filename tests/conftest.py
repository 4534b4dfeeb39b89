"""Shared test fixtures for tenantchat."""

import os
import pytest
from httpx import ASGITransport, AsyncClient


GATEWAY_KEY = "test-gateway-key"
SUPER_ADMIN_KEY = "test-super-admin-key"


@pytest.fixture
def app():
    """Create a test app with in-memory DB."""
    os.environ["TENANTCHAT_DB_URL"] = "sqlite+aiosqlite://"
    os.environ["TENANTCHAT_API_KEY"] = GATEWAY_KEY
    os.environ["TENANTCHAT_SUPER_ADMIN_KEY"] = SUPER_ADMIN_KEY
    os.environ["TENANTCHAT_LOG_JSON"] = "false"

    # Clear caches and singletons so new env vars take effect
    from tenantchat.common.config import get_settings
    get_settings.cache_clear()

    from tenantchat.deps import reset_singletons
    reset_singletons()

    from tenantchat.app import create_app
    return create_app()


@pytest.fixture
async def client(app):
    # Manually init DB since ASGITransport doesn't run lifespan
    from tenantchat.deps import get_db
    db = get_db()
    await db.init()
    await db.create_all()

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    await db.close()


@pytest.fixture
def super_admin_headers():
    return {"X-TenantChat-Super-Admin-Key": SUPER_ADMIN_KEY}


@pytest.fixture
def staff_headers():
    """Build gateway headers for a staff account id."""
    def _headers(account_id: str) -> dict:
        return {"X-TenantChat-Api-Key": GATEWAY_KEY, "X-Account-Id": account_id}
    return _headers


@pytest.fixture
async def accounts(client, super_admin_headers):
    """Superadmin S1, admins A1 and A2, created through the API."""
    created = {}
    for label, phone, role in (
        ("S1", "5550000001", "superadmin"),
        ("A1", "5550000002", "admin"),
        ("A2", "5550000003", "admin"),
    ):
        resp = await client.post(
            "/accounts",
            json={"name": label, "phoneNumber": phone, "role": role},
            headers=super_admin_headers,
        )
        assert resp.status_code == 201, resp.text
        created[label] = resp.json()["id"]
    return created


@pytest.fixture
async def acme(client, accounts, staff_headers):
    """Tenant "acme" created by admin A1."""
    resp = await client.post(
        "/tenants", json={"name": "Acme"}, headers=staff_headers(accounts["A1"]),
    )
    assert resp.status_code == 201, resp.text
    return resp.json()
