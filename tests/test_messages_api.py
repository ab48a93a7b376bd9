"""Message API tests — sending, viewing, and marking read.

Pattern: register real users (alice, bob, carol fixtures), then drive the
API with their bearer tokens. Covers the authorization rules:
- only sender/recipient may view
- only recipient may mark read
"""

from datetime import datetime

import pytest


async def _send(client, headers, to_username="bob", body="hi") -> dict:
    r = await client.post(
        "/api/v1/messages",
        json={"to_username": to_username, "body": body},
        headers=headers,
    )
    assert r.status_code == 201, r.text
    return r.json()["message"]


# ═══════════════════════════════════════════════════════════
# Send
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_send_message(client, alice, bob):
    msg = await _send(client, alice)
    assert msg["from_username"] == "alice"
    assert msg["to_username"] == "bob"
    assert msg["body"] == "hi"
    assert isinstance(msg["id"], int)
    assert msg["sent_at"]
    assert set(msg) == {"id", "from_username", "to_username", "body", "sent_at"}


@pytest.mark.asyncio
async def test_send_requires_auth(client, bob):
    r = await client.post(
        "/api/v1/messages", json={"to_username": "bob", "body": "hi"}
    )
    assert r.status_code == 401


@pytest.mark.asyncio
async def test_send_to_unknown_user(client, alice):
    r = await client.post(
        "/api/v1/messages",
        json={"to_username": "ghost", "body": "hello?"},
        headers=alice,
    )
    assert r.status_code == 400
    assert r.json()["error"] == "validation_error"


@pytest.mark.asyncio
async def test_send_blank_body(client, alice, bob):
    r = await client.post(
        "/api/v1/messages",
        json={"to_username": "bob", "body": "   "},
        headers=alice,
    )
    assert r.status_code == 400


@pytest.mark.asyncio
async def test_send_missing_body(client, alice, bob):
    r = await client.post(
        "/api/v1/messages", json={"to_username": "bob"}, headers=alice
    )
    assert r.status_code == 422


@pytest.mark.asyncio
async def test_send_to_self_allowed(client, alice):
    msg = await _send(client, alice, to_username="alice", body="note to self")
    assert msg["from_username"] == msg["to_username"] == "alice"


# ═══════════════════════════════════════════════════════════
# View
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_get_message_as_sender_and_recipient(client, alice, bob):
    msg = await _send(client, alice)

    for headers in (alice, bob):
        r = await client.get(f"/api/v1/messages/{msg['id']}", headers=headers)
        assert r.status_code == 200
        detail = r.json()["message"]
        assert detail["id"] == msg["id"]
        assert detail["body"] == "hi"
        assert detail["read_at"] is None
        assert detail["from_user"] == {
            "username": "alice",
            "first_name": "Alice",
            "last_name": "Tester",
            "phone": "555-0100",
        }
        assert detail["to_user"]["username"] == "bob"


@pytest.mark.asyncio
async def test_get_message_as_third_party_forbidden(client, alice, bob, carol):
    msg = await _send(client, alice, body="secret-body-7f3a")
    r = await client.get(f"/api/v1/messages/{msg['id']}", headers=carol)
    assert r.status_code == 403
    assert r.json()["error"] == "forbidden"
    assert "secret-body-7f3a" not in r.text


@pytest.mark.asyncio
async def test_get_missing_message(client, alice):
    r = await client.get("/api/v1/messages/9999", headers=alice)
    assert r.status_code == 404
    assert r.json()["error"] == "not_found"


# ═══════════════════════════════════════════════════════════
# Mark read
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_read_flow(client, alice, bob):
    """alice → bob "hi"; bob reads it; alice can't mark it read."""
    msg = await _send(client, alice)

    r = await client.post(f"/api/v1/messages/{msg['id']}/read", headers=bob)
    assert r.status_code == 200
    receipt = r.json()["message"]
    assert receipt["id"] == msg["id"]
    assert receipt["read_at"] is not None

    r = await client.get(f"/api/v1/messages/{msg['id']}", headers=alice)
    detail = r.json()["message"]
    assert detail["read_at"] is not None
    assert datetime.fromisoformat(detail["read_at"]) >= datetime.fromisoformat(
        detail["sent_at"]
    )

    r = await client.post(f"/api/v1/messages/{msg['id']}/read", headers=alice)
    assert r.status_code == 403


@pytest.mark.asyncio
async def test_mark_read_twice_keeps_first_timestamp(client, alice, bob):
    msg = await _send(client, alice)
    r1 = await client.post(f"/api/v1/messages/{msg['id']}/read", headers=bob)
    r2 = await client.post(f"/api/v1/messages/{msg['id']}/read", headers=bob)
    assert r2.status_code == 200
    assert r1.json()["message"]["read_at"] == r2.json()["message"]["read_at"]


@pytest.mark.asyncio
async def test_mark_read_third_party_forbidden(client, alice, bob, carol):
    msg = await _send(client, alice)
    r = await client.post(f"/api/v1/messages/{msg['id']}/read", headers=carol)
    assert r.status_code == 403

    r = await client.get(f"/api/v1/messages/{msg['id']}", headers=bob)
    assert r.json()["message"]["read_at"] is None


@pytest.mark.asyncio
async def test_mark_read_missing_message(client, bob):
    r = await client.post("/api/v1/messages/9999/read", headers=bob)
    assert r.status_code == 404


@pytest.mark.asyncio
async def test_oversized_message_id_is_not_found(client, bob):
    huge = 2**63
    r = await client.get(f"/api/v1/messages/{huge}", headers=bob)
    assert r.status_code == 404
    assert r.json()["error"] == "not_found"

    r = await client.post(f"/api/v1/messages/{huge}/read", headers=bob)
    assert r.status_code == 404
    assert r.json()["error"] == "not_found"
