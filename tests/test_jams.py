"""
Tests for the jams API: creation, detail permissions, clip membership,
collaborator management and likes.
"""
import pytest

from tests.conftest import auth_headers


async def _create_jam(client, user, **overrides):
    body = {"title": "Night Drive", "genre": "synthwave", "description": "late mix", "image": "cover.png"}
    body.update(overrides)
    resp = await client.post("/api/jams", json=body, headers=auth_headers(user))
    assert resp.status_code == 201, resp.text
    return resp.json()


# =============================================================================
# Create & read
# =============================================================================

@pytest.mark.asyncio
async def test_create_jam_returns_camel_case(client, owner):
    jam = await _create_jam(client, owner, isPrivate=True)
    assert jam["userId"] == owner.id
    assert jam["isPrivate"] is True
    assert jam["clipIds"] == []
    assert jam["collaborators"] == []
    assert jam["likes"] == 0


@pytest.mark.asyncio
async def test_create_jam_requires_login(client, owner):
    resp = await client.post("/api/jams", json={"title": "x", "genre": "y"})
    assert resp.status_code == 401
    assert resp.json()["success"] is False


@pytest.mark.asyncio
async def test_private_jam_hidden_from_strangers(client, owner, alice):
    jam = await _create_jam(client, owner, isPrivate=True)

    resp = await client.get(f"/api/jams/{jam['id']}", headers=auth_headers(alice))
    assert resp.status_code == 403
    assert resp.json() == {
        "success": False,
        "error": "Forbidden",
        "message": "This jam is private. You need to be a collaborator to view it.",
    }

    resp = await client.get(f"/api/jams/{jam['id']}", headers=auth_headers(owner))
    assert resp.status_code == 200
    assert resp.json()["permissions"]["isOwner"] is True


@pytest.mark.asyncio
async def test_public_jam_detail_for_anonymous(client, owner):
    jam = await _create_jam(client, owner)
    resp = await client.get(f"/api/jams/{jam['id']}")
    assert resp.status_code == 200
    perms = resp.json()["permissions"]
    assert perms["role"] is None
    assert perms["canView"] is True
    assert perms["canEdit"] is False


@pytest.mark.asyncio
async def test_missing_jam_is_404(client, owner):
    resp = await client.get("/api/jams/4040", headers=auth_headers(owner))
    assert resp.status_code == 404
    assert resp.json()["message"] == "Jam not found"


# =============================================================================
# Clips
# =============================================================================

@pytest.mark.asyncio
async def test_clip_list_is_an_ordered_set(client, owner, clips):
    jam = await _create_jam(client, owner)
    headers = auth_headers(owner)

    for clip in (clips[2], clips[0], clips[2]):
        resp = await client.put(f"/api/jams/{jam['id']}/clips/{clip.id}", headers=headers)
        assert resp.status_code == 200

    assert resp.json()["clipIds"] == [clips[2].id, clips[0].id]

    resp = await client.delete(f"/api/jams/{jam['id']}/clips/{clips[2].id}", headers=headers)
    assert resp.status_code == 200
    assert resp.json()["clipIds"] == [clips[0].id]

    resp = await client.delete(f"/api/jams/{jam['id']}/clips/{clips[2].id}", headers=headers)
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_contributor_can_add_but_not_remove_clips(client, owner, alice, clips):
    jam = await _create_jam(client, owner)
    await client.post(
        f"/api/jams/{jam['id']}/collaborators",
        json={"userId": alice.id, "role": "contributor"},
        headers=auth_headers(owner),
    )

    resp = await client.put(f"/api/jams/{jam['id']}/clips/{clips[0].id}", headers=auth_headers(alice))
    assert resp.status_code == 200

    resp = await client.delete(f"/api/jams/{jam['id']}/clips/{clips[0].id}", headers=auth_headers(alice))
    assert resp.status_code == 403


@pytest.mark.asyncio
async def test_create_clip(client, alice):
    resp = await client.post(
        "/api/clips", json={"title": "Bassline", "audioUrl": "https://cdn/b.mp3"}, headers=auth_headers(alice)
    )
    assert resp.status_code == 201
    assert resp.json()["audioUrl"] == "https://cdn/b.mp3"
    assert resp.json()["userId"] == alice.id


# =============================================================================
# Collaborators
# =============================================================================

@pytest.mark.asyncio
async def test_owner_cannot_be_added_as_collaborator(client, owner):
    jam = await _create_jam(client, owner)
    resp = await client.post(
        f"/api/jams/{jam['id']}/collaborators",
        json={"userId": owner.id, "role": "producer"},
        headers=auth_headers(owner),
    )
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_duplicate_collaborator_conflicts(client, owner, alice):
    jam = await _create_jam(client, owner)
    url = f"/api/jams/{jam['id']}/collaborators"
    body = {"userId": alice.id, "role": "viewer"}

    assert (await client.post(url, json=body, headers=auth_headers(owner))).status_code == 201
    resp = await client.post(url, json=body, headers=auth_headers(owner))
    assert resp.status_code == 409

    detail = await client.get(f"/api/jams/{jam['id']}", headers=auth_headers(owner))
    assert [c["userId"] for c in detail.json()["jam"]["collaborators"]] == [alice.id]


@pytest.mark.asyncio
async def test_invalid_role_rejected(client, owner, alice):
    jam = await _create_jam(client, owner)
    resp = await client.post(
        f"/api/jams/{jam['id']}/collaborators",
        json={"userId": alice.id, "role": "owner"},
        headers=auth_headers(owner),
    )
    assert resp.status_code == 400
    assert resp.json()["error"] == "Invalid role"


@pytest.mark.asyncio
async def test_role_change_and_self_removal(client, owner, alice):
    jam = await _create_jam(client, owner)
    base = f"/api/jams/{jam['id']}/collaborators"
    await client.post(base, json={"userId": alice.id, "role": "viewer"}, headers=auth_headers(owner))

    resp = await client.patch(f"{base}/{alice.id}", json={"role": "producer"}, headers=auth_headers(owner))
    assert resp.status_code == 200
    assert resp.json()["role"] == "producer"

    resp = await client.patch(f"{base}/{alice.id}", json={"role": "viewer"}, headers=auth_headers(alice))
    assert resp.status_code == 403

    resp = await client.delete(f"{base}/{alice.id}", headers=auth_headers(alice))
    assert resp.status_code == 200

    detail = await client.get(f"/api/jams/{jam['id']}", headers=auth_headers(alice))
    assert detail.json()["permissions"]["role"] is None


# =============================================================================
# Likes
# =============================================================================

@pytest.mark.asyncio
async def test_like_increments_and_notifies_owner(client, owner, alice):
    jam = await _create_jam(client, owner)

    for expected in (1, 2):
        resp = await client.post(f"/api/jams/{jam['id']}/like", headers=auth_headers(alice))
        assert resp.status_code == 200
        assert resp.json()["likes"] == expected

    resp = await client.get("/notifications", headers=auth_headers(owner))
    body = resp.json()
    assert body["unreadCount"] == 2
    assert body["notifications"][0]["type"] == "like"


@pytest.mark.asyncio
async def test_liking_own_jam_sends_no_notification(client, owner):
    jam = await _create_jam(client, owner)
    await client.post(f"/api/jams/{jam['id']}/like", headers=auth_headers(owner))

    resp = await client.get("/notifications", headers=auth_headers(owner))
    assert resp.json()["unreadCount"] == 0
