"""
Tests for the role model: role resolution, capability predicates, public
jam visibility and the guard helpers.

Jams are plain namespaces here; the role model only reads ``user_id``,
``is_private`` and ``collaborators``.
"""
from types import SimpleNamespace

import pytest

from hitit.errors import ForbiddenError
from hitit.services import permissions
from hitit.services.permissions import JamRole


OWNER, PRODUCER, CONTRIBUTOR, VIEWER, STRANGER = 1, 2, 3, 4, 99


def _jam(is_private=False):
    return SimpleNamespace(
        user_id=OWNER,
        is_private=is_private,
        collaborators=[
            SimpleNamespace(user_id=PRODUCER, role="producer"),
            SimpleNamespace(user_id=CONTRIBUTOR, role="contributor"),
            SimpleNamespace(user_id=VIEWER, role="viewer"),
        ],
    )


# =============================================================================
# get_user_role
# =============================================================================

@pytest.mark.parametrize(
    "user_id, expected",
    [
        (OWNER, JamRole.owner),
        (PRODUCER, JamRole.producer),
        (CONTRIBUTOR, JamRole.contributor),
        (VIEWER, JamRole.viewer),
        (STRANGER, None),
        (None, None),
    ],
)
def test_get_user_role(user_id, expected):
    assert permissions.get_user_role(_jam(), user_id) == expected


def test_owner_wins_even_if_listed_as_collaborator():
    """A stray collaborator row for the owner never downgrades them."""
    jam = _jam()
    jam.collaborators.append(SimpleNamespace(user_id=OWNER, role="viewer"))
    assert permissions.get_user_role(jam, OWNER) == JamRole.owner


# =============================================================================
# Predicates are monotonic in owner > producer > contributor > viewer > none
# =============================================================================

@pytest.mark.parametrize(
    "role, edit, contribute, view, owner",
    [
        (JamRole.owner, True, True, True, True),
        (JamRole.producer, True, True, True, False),
        (JamRole.contributor, False, True, True, False),
        (JamRole.viewer, False, False, True, False),
        (None, False, False, False, False),
    ],
)
def test_capabilities(role, edit, contribute, view, owner):
    assert permissions.can_edit(role) is edit
    assert permissions.can_contribute(role) is contribute
    assert permissions.can_view(role) is view
    assert permissions.is_owner(role) is owner


def test_public_jam_visible_to_anyone():
    assert permissions.can_view_jam(_jam(is_private=False), STRANGER)
    assert permissions.can_view_jam(_jam(is_private=False), None)


def test_private_jam_needs_a_role():
    jam = _jam(is_private=True)
    assert not permissions.can_view_jam(jam, STRANGER)
    assert not permissions.can_view_jam(jam, None)
    assert permissions.can_view_jam(jam, VIEWER)


def test_permission_summary_for_contributor():
    summary = permissions.permission_summary(_jam(), CONTRIBUTOR)
    assert summary == {
        "role": "contributor",
        "canEdit": False,
        "canContribute": True,
        "canView": True,
        "isOwner": False,
    }


def test_permission_summary_for_stranger_on_public_jam():
    summary = permissions.permission_summary(_jam(), STRANGER)
    assert summary["role"] is None
    assert summary["canView"] is True
    assert summary["canEdit"] is False


# =============================================================================
# Guards
# =============================================================================

def test_ensure_can_edit_rejects_contributor():
    with pytest.raises(ForbiddenError) as exc_info:
        permissions.ensure_can_edit(_jam(), CONTRIBUTOR)
    assert exc_info.value.status_code == 403
    assert "producer or owner" in exc_info.value.message


def test_ensure_owner_custom_message():
    with pytest.raises(ForbiddenError, match="Only the jam owner can send invites"):
        permissions.ensure_owner(_jam(), PRODUCER, "Only the jam owner can send invites")


def test_guards_pass_for_allowed_roles():
    jam = _jam(is_private=True)
    permissions.ensure_owner(jam, OWNER)
    permissions.ensure_can_edit(jam, PRODUCER)
    permissions.ensure_can_contribute(jam, CONTRIBUTOR)
    permissions.ensure_can_view(jam, VIEWER)
