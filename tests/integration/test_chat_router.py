"""Integration tests for the chat router - end-users and gateway-vouched staff."""

import base64
import json

GATEWAY_KEY = "test-gateway-key"

USER_PHONE = "9998887776"
GATEWAY = {"X-TenantChat-Api-Key": GATEWAY_KEY}


def user_body(**extra):
    body = {"tenantRef": "acme", "role": "user", "phoneNumber": USER_PHONE}
    body.update(extra)
    return body


def staff_body(account_id, role="admin", **extra):
    body = {"tenantRef": "acme", "role": role, "accountId": account_id}
    body.update(extra)
    return body


class TestSupportScenario:
    async def test_end_to_end(self, client, acme, accounts, staff_headers):
        resp = await client.post("/chat/send", json=user_body(content="hello"))
        assert resp.status_code == 201
        message = resp.json()["message"]
        assert message["sender"]["kind"] == "external"
        assert message["sender"]["phoneNumber"] == USER_PHONE
        assert message["tenantId"] == acme["id"]

        for staff, role in (("A1", "admin"), ("S1", "superadmin")):
            resp = await client.post(
                "/chat/messages", json=staff_body(accounts[staff], role), headers=GATEWAY,
            )
            assert resp.status_code == 200
            assert [m["content"] for m in resp.json()["messages"]] == ["hello"]

        resp = await client.post(
            "/chat/messages", json=staff_body(accounts["A2"]), headers=GATEWAY,
        )
        assert resp.status_code == 403
        assert resp.json()["error"] == "FORBIDDEN"

        resp = await client.post(
            f"/tenants/{acme['id']}/block",
            json={"phoneNumber": USER_PHONE},
            headers=staff_headers(accounts["A1"]),
        )
        assert resp.status_code == 201

        resp = await client.post("/chat/send", json=user_body(content="still there?"))
        assert resp.status_code == 403
        assert resp.json()["error"] == "SENDER_BLOCKED"

        resp = await client.post(
            "/chat/messages", json=staff_body(accounts["A1"]), headers=GATEWAY,
        )
        assert [m["content"] for m in resp.json()["messages"]] == ["hello"]


class TestSend:
    async def test_staff_role_requires_gateway(self, client, acme, accounts):
        resp = await client.post(
            "/chat/send",
            json=staff_body(accounts["A1"], content="hi", receiverRef=USER_PHONE),
        )
        assert resp.status_code == 403

    async def test_staff_reply(self, client, acme, accounts):
        await client.post("/chat/send", json=user_body(content="hello"))
        resp = await client.post(
            "/chat/send",
            json=staff_body(accounts["A1"], content="hi there", receiverRef=USER_PHONE),
            headers=GATEWAY,
        )
        assert resp.status_code == 201
        receivers = resp.json()["message"]["receivers"]
        assert receivers == [{
            "kind": "external",
            "role": "user",
            "accountId": None,
            "tenantId": acme["id"],
            "phoneNumber": USER_PHONE,
        }]

        resp = await client.post("/chat/messages", json=user_body())
        assert [m["content"] for m in resp.json()["messages"]] == ["hello", "hi there"]

    async def test_unknown_tenant(self, client, accounts):
        resp = await client.post(
            "/chat/send", json=user_body(tenantRef="nope", content="hello"),
        )
        assert resp.status_code == 404
        assert resp.json()["error"] == "TENANT_NOT_FOUND"

    async def test_tenant_by_id(self, client, acme):
        resp = await client.post(
            "/chat/send", json=user_body(tenantRef=acme["id"], content="hello"),
        )
        assert resp.status_code == 201

    async def test_bad_phone(self, client, acme):
        resp = await client.post(
            "/chat/send", json=user_body(phoneNumber="12", content="hello"),
        )
        assert resp.status_code == 400
        assert resp.json()["error"] == "INVALID_INPUT"

    async def test_missing_content(self, client, acme):
        resp = await client.post("/chat/send", json=user_body())
        assert resp.status_code == 400
        assert resp.json()["error"] == "INVALID_INPUT"

    async def test_block_holds_for_fullwidth_digits(self, client, acme, accounts, staff_headers):
        resp = await client.post(
            f"/tenants/{acme['id']}/block",
            json={"phoneNumber": USER_PHONE},
            headers=staff_headers(accounts["A1"]),
        )
        assert resp.status_code == 201

        resp = await client.post(
            "/chat/send",
            json=user_body(phoneNumber="９９９８８８７７７６", content="are you there?"),
        )
        assert resp.status_code == 403
        assert resp.json()["error"] == "SENDER_BLOCKED"

    async def test_fullwidth_phone_stored_as_ascii(self, client, acme):
        resp = await client.post(
            "/chat/send",
            json=user_body(phoneNumber="９９９８８８７７７６", content="hello"),
        )
        assert resp.status_code == 201
        assert resp.json()["message"]["sender"]["phoneNumber"] == USER_PHONE

    async def test_unknown_role(self, client, acme):
        resp = await client.post("/chat/send", json=user_body(role="root", content="hi"))
        assert resp.status_code == 400

    async def test_client_message_id_dedup(self, client, acme):
        body = user_body(content="hello", clientMessageId="c-1")
        first = await client.post("/chat/send", json=body)
        second = await client.post("/chat/send", json=body)
        assert first.json()["message"]["id"] == second.json()["message"]["id"]
        resp = await client.post("/chat/messages", json=user_body())
        assert len(resp.json()["messages"]) == 1


class TestList:
    async def test_pagination(self, client, acme, accounts):
        for i in range(3):
            await client.post("/chat/send", json=user_body(content=f"m{i}"))

        resp = await client.post(
            "/chat/messages", json=staff_body(accounts["A1"], limit=2), headers=GATEWAY,
        )
        data = resp.json()
        assert [m["content"] for m in data["messages"]] == ["m0", "m1"]
        assert data["hasMore"] is True

        resp = await client.post(
            "/chat/messages",
            json=staff_body(accounts["A1"], limit=2, cursor=data["nextCursor"]),
            headers=GATEWAY,
        )
        data = resp.json()
        assert [m["content"] for m in data["messages"]] == ["m2"]
        assert data["hasMore"] is False

    async def test_invalid_cursor(self, client, acme):
        resp = await client.post("/chat/messages", json=user_body(cursor="garbage"))
        assert resp.status_code == 400
        assert resp.json()["error"] == "INVALID_INPUT"

    async def test_out_of_range_cursor(self, client, acme):
        raw = json.dumps({"s": 10**30, "id": "x"}).encode()
        cursor = base64.urlsafe_b64encode(raw).decode().rstrip("=")
        resp = await client.post("/chat/messages", json=user_body(cursor=cursor))
        assert resp.status_code == 400
        assert resp.json()["error"] == "INVALID_INPUT"

    async def test_users_see_only_their_thread(self, client, acme):
        await client.post("/chat/send", json=user_body(content="mine"))
        await client.post(
            "/chat/send", json=user_body(phoneNumber="9998887775", content="theirs"),
        )
        resp = await client.post("/chat/messages", json=user_body())
        assert [m["content"] for m in resp.json()["messages"]] == ["mine"]


class TestMarkRead:
    async def test_admin_marks_read(self, client, acme, accounts):
        sent = await client.post("/chat/send", json=user_body(content="hello"))
        message_id = sent.json()["message"]["id"]
        resp = await client.post(
            f"/chat/messages/{message_id}/read",
            json=staff_body(accounts["A1"]),
            headers=GATEWAY,
        )
        assert resp.status_code == 200
        assert resp.json()["isRead"] is True

    async def test_unknown_message(self, client, acme, accounts):
        resp = await client.post(
            "/chat/messages/nope/read", json=staff_body(accounts["A1"]), headers=GATEWAY,
        )
        assert resp.status_code == 404
        assert resp.json()["error"] == "MESSAGE_NOT_FOUND"


class TestStatus:
    async def test_reply_then_close(self, client, acme, accounts):
        sent = await client.post("/chat/send", json=user_body(content="hello"))
        message = sent.json()["message"]
        assert message["status"] == "pending"

        await client.post(
            "/chat/send",
            json=staff_body(
                accounts["A1"], content="hi there",
                receiverRef=USER_PHONE, replyToId=message["id"],
            ),
            headers=GATEWAY,
        )
        resp = await client.post("/chat/messages", json=user_body())
        assert resp.json()["messages"][0]["status"] == "answered"

        resp = await client.post(
            f"/chat/messages/{message['id']}/status",
            json=staff_body(accounts["A1"], status="closed"),
            headers=GATEWAY,
        )
        assert resp.status_code == 200
        assert resp.json()["status"] == "closed"

    async def test_user_cannot_change_status(self, client, acme):
        sent = await client.post("/chat/send", json=user_body(content="hello"))
        resp = await client.post(
            f"/chat/messages/{sent.json()['message']['id']}/status",
            json=user_body(status="closed"),
        )
        assert resp.status_code == 403
        assert resp.json()["error"] == "FORBIDDEN"

    async def test_unknown_status(self, client, acme, accounts):
        sent = await client.post("/chat/send", json=user_body(content="hello"))
        resp = await client.post(
            f"/chat/messages/{sent.json()['message']['id']}/status",
            json=staff_body(accounts["A1"], status="archived"),
            headers=GATEWAY,
        )
        assert resp.status_code == 400
        assert resp.json()["error"] == "INVALID_INPUT"
