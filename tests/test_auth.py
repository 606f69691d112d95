"""Tests for JWT cookie auth, the dev mock login and the users router."""
import pytest

from hitit.routers.auth import COOKIE_KEY, create_access_token, decode_user_id
from tests.conftest import auth_headers


def test_token_round_trip():
    token = create_access_token({"sub": "12"})
    assert decode_user_id(token) == 12


@pytest.mark.parametrize("token", [None, "", "garbage", create_access_token({"sub": "abc"})])
def test_bad_tokens_decode_to_none(token):
    assert decode_user_id(token) is None


@pytest.mark.asyncio
async def test_me_requires_login(client):
    resp = await client.get("/users/me")
    assert resp.status_code == 401
    assert resp.json() == {
        "success": False,
        "error": "Not authenticated",
        "message": "Please log in to continue",
    }


@pytest.mark.asyncio
async def test_me_with_cookie(client, alice):
    resp = await client.get("/users/me", headers=auth_headers(alice))
    assert resp.status_code == 200
    assert resp.json()["userName"] == "Alice"
    assert resp.json()["avatarUrl"] is None


@pytest.mark.asyncio
async def test_unknown_user_is_404(client):
    resp = await client.get("/users/9999")
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_mock_login_sets_cookie(client, bob):
    resp = await client.get(f"/mock-login/{bob.id}")
    assert resp.status_code == 200
    assert COOKIE_KEY in resp.cookies
    assert decode_user_id(resp.cookies[COOKIE_KEY]) == bob.id


@pytest.mark.asyncio
async def test_notifications_read_flow(client, db_session, owner, alice):
    from hitit.services import jams as jam_service

    jam = await jam_service.create_jam(db_session, owner, title="Pings", genre="idm")
    await jam_service.like_jam(db_session, jam.id, alice)
    await jam_service.like_jam(db_session, jam.id, alice)

    listing = (await client.get("/notifications", headers=auth_headers(owner))).json()
    first = listing["notifications"][0]["id"]

    resp = await client.post(f"/notifications/read/{first}", headers=auth_headers(owner))
    assert resp.status_code == 200
    assert (await client.get("/notifications", headers=auth_headers(owner))).json()["unreadCount"] == 1

    resp = await client.post(f"/notifications/read/{first}", headers=auth_headers(alice))
    assert resp.status_code == 404

    await client.post("/notifications/read-all", headers=auth_headers(owner))
    assert (await client.get("/notifications", headers=auth_headers(owner))).json()["unreadCount"] == 0
