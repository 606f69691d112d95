"""
Tests for the invite workflow: sending, listing, accepting, declining and
expiry, plus the one-pending-invite rule.
"""
from datetime import timedelta

import pytest
from sqlalchemy import select

from hitit.models.jam_invite import InviteStatus, JamInvite
from hitit.services import invites as invite_service
from hitit.services import jams as jam_service
from hitit.errors import ConflictError
from hitit.utils.clock import utcnow
from tests.conftest import auth_headers


@pytest.fixture
async def jam(db_session, owner):
    return await jam_service.create_jam(db_session, owner, title="Sunset", genre="house")


async def _invite(client, jam, owner, user, role="contributor"):
    return await client.post(
        f"/api/jams/{jam.id}/invite",
        json={"userId": user.id, "role": role, "message": "Come jam"},
        headers=auth_headers(owner),
    )


# =============================================================================
# Sending
# =============================================================================

@pytest.mark.asyncio
async def test_send_invite(client, jam, owner, alice):
    resp = await _invite(client, jam, owner, alice, role="producer")
    assert resp.status_code == 201
    invite = resp.json()["invite"]
    assert invite["invitedUserId"] == alice.id
    assert invite["invitedBy"] == owner.id
    assert invite["role"] == "producer"
    assert invite["status"] == "pending"

    notifs = (await client.get("/notifications", headers=auth_headers(alice))).json()
    assert notifs["unreadCount"] == 1
    assert "invited you" in notifs["notifications"][0]["message"]


@pytest.mark.asyncio
async def test_only_owner_can_invite(client, jam, alice, bob):
    resp = await _invite(client, jam, alice, bob)
    assert resp.status_code == 403


@pytest.mark.asyncio
async def test_cannot_invite_owner(client, jam, owner):
    resp = await _invite(client, jam, owner, owner)
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_missing_user_id_is_validation_error(client, jam, owner):
    resp = await client.post(f"/api/jams/{jam.id}/invite", json={}, headers=auth_headers(owner))
    assert resp.status_code == 400
    assert resp.json()["message"] == "User ID is required"


@pytest.mark.asyncio
async def test_second_pending_invite_conflicts(client, jam, owner, alice):
    assert (await _invite(client, jam, owner, alice)).status_code == 201
    resp = await _invite(client, jam, owner, alice)
    assert resp.status_code == 409

    rows = (await client.get(f"/api/jams/{jam.id}/invites", headers=auth_headers(owner))).json()["invites"]
    assert len(rows) == 1


@pytest.mark.asyncio
async def test_pending_index_rejects_duplicate_insert(db_session, jam, owner, alice):
    """The database, not the pre-check, is the final arbiter."""
    db_session.add(JamInvite(jam_id=jam.id, invited_user_id=alice.id, invited_by=owner.id))
    await db_session.commit()

    from sqlalchemy.exc import IntegrityError

    with pytest.raises(IntegrityError):
        async with db_session.begin_nested():
            db_session.add(JamInvite(jam_id=jam.id, invited_user_id=alice.id, invited_by=owner.id))


@pytest.mark.asyncio
async def test_new_invite_allowed_after_decline(client, jam, owner, alice):
    invite = (await _invite(client, jam, owner, alice)).json()["invite"]
    await client.post(f"/api/invites/{invite['id']}/decline", headers=auth_headers(alice))

    resp = await _invite(client, jam, owner, alice)
    assert resp.status_code == 201


@pytest.mark.asyncio
async def test_cannot_invite_existing_collaborator(client, jam, owner, alice):
    invite = (await _invite(client, jam, owner, alice)).json()["invite"]
    await client.post(f"/api/invites/{invite['id']}/accept", headers=auth_headers(alice))

    resp = await _invite(client, jam, owner, alice)
    assert resp.status_code == 409
    assert resp.json()["error"] == "Already collaborating"


# =============================================================================
# Responding
# =============================================================================

@pytest.mark.asyncio
async def test_accept_adds_collaborator_with_invite_role(client, jam, owner, alice):
    invite = (await _invite(client, jam, owner, alice, role="producer")).json()["invite"]

    listed = (await client.get("/api/invites", headers=auth_headers(alice))).json()["invites"]
    assert [i["id"] for i in listed] == [invite["id"]]

    resp = await client.post(f"/api/invites/{invite['id']}/accept", headers=auth_headers(alice))
    assert resp.status_code == 200
    assert resp.json()["success"] is True

    detail = (await client.get(f"/api/jams/{jam.id}", headers=auth_headers(alice))).json()
    assert detail["permissions"]["role"] == "producer"
    collaborator = detail["jam"]["collaborators"][0]
    assert collaborator["userId"] == alice.id
    assert collaborator["addedBy"] == owner.id

    assert (await client.get("/api/invites", headers=auth_headers(alice))).json()["invites"] == []


@pytest.mark.asyncio
async def test_only_invitee_can_respond(client, jam, owner, alice, bob):
    invite = (await _invite(client, jam, owner, alice)).json()["invite"]
    resp = await client.post(f"/api/invites/{invite['id']}/accept", headers=auth_headers(bob))
    assert resp.status_code == 403


@pytest.mark.asyncio
async def test_terminal_states_are_absorbing(client, jam, owner, alice):
    invite = (await _invite(client, jam, owner, alice)).json()["invite"]
    url = f"/api/invites/{invite['id']}"

    assert (await client.post(f"{url}/decline", headers=auth_headers(alice))).status_code == 200
    resp = await client.post(f"{url}/accept", headers=auth_headers(alice))
    assert resp.status_code == 409
    assert resp.json()["message"] == "This invite has already been responded to"

    detail = (await client.get(f"/api/jams/{jam.id}", headers=auth_headers(alice))).json()
    assert detail["jam"]["collaborators"] == []


@pytest.mark.asyncio
async def test_expired_invite_transitions_to_expired(client, db_session, jam, owner, alice):
    invite = (await _invite(client, jam, owner, alice)).json()["invite"]
    row = await db_session.get(JamInvite, invite["id"])
    row.expires_at = utcnow() - timedelta(minutes=1)
    await db_session.commit()

    assert (await client.get("/api/invites", headers=auth_headers(alice))).json()["invites"] == []

    resp = await client.post(f"/api/invites/{invite['id']}/accept", headers=auth_headers(alice))
    assert resp.status_code == 400
    assert resp.json()["error"] == "Invite expired"

    result = await db_session.execute(select(JamInvite.status).where(JamInvite.id == invite["id"]))
    assert result.scalar_one() == InviteStatus.expired

    resp = await client.post(f"/api/invites/{invite['id']}/accept", headers=auth_headers(alice))
    assert resp.status_code == 409


@pytest.mark.asyncio
async def test_accept_service_keeps_existing_collaborator_role(db_session, jam, owner, alice):
    invite = await invite_service.send_invite(db_session, jam.id, owner, alice.id, role="producer")
    await jam_service.add_collaborator(db_session, jam.id, owner, alice.id, role="viewer")

    accepted = await invite_service.accept_invite(db_session, invite.id, alice)
    assert accepted.status == InviteStatus.accepted
    assert [c.role.value for c in jam.collaborators] == ["viewer"]

    with pytest.raises(ConflictError):
        await invite_service.decline_invite(db_session, invite.id, alice)
