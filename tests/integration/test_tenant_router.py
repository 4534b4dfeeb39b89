"""Integration tests for the tenant router - gateway-vouched staff only."""


class TestTenantRouter:
    async def test_requires_gateway_key(self, client, accounts):
        resp = await client.post(
            "/tenants", json={"name": "Acme"}, headers={"X-Account-Id": accounts["A1"]},
        )
        assert resp.status_code == 403
        assert resp.json()["error"] == "FORBIDDEN"

    async def test_unknown_account(self, client, staff_headers):
        resp = await client.get("/tenants", headers=staff_headers("ghost"))
        assert resp.status_code == 404
        assert resp.json()["error"] == "ACCOUNT_NOT_FOUND"

    async def test_create(self, acme, accounts):
        assert acme["name"] == "Acme"
        assert acme["status"] == "active"
        assert acme["createdBy"] == accounts["A1"]
        assert acme["adminIds"] == [accounts["A1"]]
        assert acme["admins"][0]["handle"] == "acme10002"

    async def test_duplicate_name(self, client, acme, accounts, staff_headers):
        resp = await client.post(
            "/tenants", json={"name": "ACME"}, headers=staff_headers(accounts["A2"]),
        )
        assert resp.status_code == 409
        assert resp.json()["error"] == "DUPLICATE_NAME"

    async def test_missing_name(self, client, accounts, staff_headers):
        resp = await client.post("/tenants", json={}, headers=staff_headers(accounts["A1"]))
        assert resp.status_code == 400
        assert resp.json()["error"] == "INVALID_INPUT"

    async def test_list_scoped_to_assignments(self, client, acme, accounts, staff_headers):
        resp = await client.get("/tenants", headers=staff_headers(accounts["A1"]))
        assert [t["id"] for t in resp.json()] == [acme["id"]]

        resp = await client.get("/tenants", headers=staff_headers(accounts["A2"]))
        assert resp.json() == []

        resp = await client.get("/tenants", headers=staff_headers(accounts["S1"]))
        assert [t["id"] for t in resp.json()] == [acme["id"]]

    async def test_get_requires_assignment(self, client, acme, accounts, staff_headers):
        resp = await client.get(f"/tenants/{acme['id']}", headers=staff_headers(accounts["A2"]))
        assert resp.status_code == 403

        resp = await client.get(f"/tenants/{acme['id']}", headers=staff_headers(accounts["S1"]))
        assert resp.status_code == 200
        assert resp.json()["name"] == "Acme"

    async def test_get_missing(self, client, accounts, staff_headers):
        resp = await client.get("/tenants/nope", headers=staff_headers(accounts["S1"]))
        assert resp.status_code == 404
        assert resp.json()["error"] == "TENANT_NOT_FOUND"

    async def test_add_and_remove_admin(self, client, acme, accounts, staff_headers):
        url = f"/tenants/{acme['id']}/admins"
        resp = await client.post(
            url, json={"accountId": accounts["A2"]}, headers=staff_headers(accounts["A1"]),
        )
        assert resp.status_code == 201
        assert resp.json()["handle"] == "acme20003"

        resp = await client.get(f"/tenants/{acme['id']}", headers=staff_headers(accounts["A2"]))
        assert resp.status_code == 200

        resp = await client.delete(
            f"{url}/{accounts['A2']}", headers=staff_headers(accounts["A1"]),
        )
        assert resp.status_code == 204

        resp = await client.get(f"/tenants/{acme['id']}", headers=staff_headers(accounts["A2"]))
        assert resp.status_code == 403

    async def test_add_admin_twice(self, client, acme, accounts, staff_headers):
        resp = await client.post(
            f"/tenants/{acme['id']}/admins",
            json={"accountId": accounts["A1"]},
            headers=staff_headers(accounts["A1"]),
        )
        assert resp.status_code == 409
        assert resp.json()["error"] == "ALREADY_ADMIN"

    async def test_only_creator_or_superadmin_manages(self, client, acme, accounts, staff_headers):
        resp = await client.patch(
            f"/tenants/{acme['id']}",
            json={"status": "suspended"},
            headers=staff_headers(accounts["A2"]),
        )
        assert resp.status_code == 403

        resp = await client.patch(
            f"/tenants/{acme['id']}",
            json={"status": "suspended"},
            headers=staff_headers(accounts["S1"]),
        )
        assert resp.status_code == 200
        assert resp.json()["status"] == "suspended"

    async def test_unknown_status_rejected(self, client, acme, accounts, staff_headers):
        resp = await client.patch(
            f"/tenants/{acme['id']}",
            json={"status": "paused"},
            headers=staff_headers(accounts["A1"]),
        )
        assert resp.status_code == 400

    async def test_delete_superadmin_only(self, client, acme, accounts, staff_headers):
        resp = await client.delete(f"/tenants/{acme['id']}", headers=staff_headers(accounts["A1"]))
        assert resp.status_code == 403

        resp = await client.delete(f"/tenants/{acme['id']}", headers=staff_headers(accounts["S1"]))
        assert resp.status_code == 204

        resp = await client.get(f"/tenants/{acme['id']}", headers=staff_headers(accounts["S1"]))
        assert resp.status_code == 404
