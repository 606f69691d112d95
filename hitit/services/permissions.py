"""
Role model — what a user may do on a jam.

Roles rank ``owner > producer > contributor > viewer``; a user with no
relationship to the jam has no role (``None``). Ownership is never stored as
a collaborator row, it is read from ``jam.user_id``.

Everything here is synchronous and side-effect free. ``get_user_role`` only
needs an object exposing ``user_id`` and ``collaborators`` (each with
``user_id`` and ``role``), so it can be exercised without a database.
"""

import enum
from typing import Any, Dict, FrozenSet, Optional

from hitit.errors import ForbiddenError


class JamRole(str, enum.Enum):
    owner = "owner"
    producer = "producer"
    contributor = "contributor"
    viewer = "viewer"


class Capability(str, enum.Enum):
    view = "view"
    contribute = "contribute"
    edit = "edit"
    own = "own"


ROLE_CAPABILITIES: Dict[JamRole, FrozenSet[Capability]] = {
    JamRole.owner: frozenset({Capability.view, Capability.contribute, Capability.edit, Capability.own}),
    JamRole.producer: frozenset({Capability.view, Capability.contribute, Capability.edit}),
    JamRole.contributor: frozenset({Capability.view, Capability.contribute}),
    JamRole.viewer: frozenset({Capability.view}),
}


def _role_value(role: Any) -> str:
    return getattr(role, "value", role)


def get_user_role(jam: Any, user_id: Optional[int]) -> Optional[JamRole]:
    """Return the caller's role on ``jam`` or ``None`` when they have none."""
    if user_id is None:
        return None
    if jam.user_id == user_id:
        return JamRole.owner
    for collaborator in jam.collaborators:
        if collaborator.user_id == user_id:
            return JamRole(_role_value(collaborator.role))
    return None


def has_capability(role: Optional[JamRole], capability: Capability) -> bool:
    if role is None:
        return False
    return capability in ROLE_CAPABILITIES[JamRole(role)]


def is_owner(role: Optional[JamRole]) -> bool:
    return has_capability(role, Capability.own)


def can_edit(role: Optional[JamRole]) -> bool:
    return has_capability(role, Capability.edit)


def can_contribute(role: Optional[JamRole]) -> bool:
    return has_capability(role, Capability.contribute)


def can_view(role: Optional[JamRole]) -> bool:
    return has_capability(role, Capability.view)


def can_view_jam(jam: Any, user_id: Optional[int]) -> bool:
    """Public jams are visible to everyone, private ones need a role."""
    if not jam.is_private:
        return True
    return can_view(get_user_role(jam, user_id))


def permission_summary(jam: Any, user_id: Optional[int]) -> Dict[str, Any]:
    role = get_user_role(jam, user_id)
    return {
        "role": role.value if role else None,
        "canEdit": can_edit(role),
        "canContribute": can_contribute(role),
        "canView": can_view_jam(jam, user_id),
        "isOwner": is_owner(role),
    }


# ═══════════════════════════════════════════════════════════════
#  Guards
# ═══════════════════════════════════════════════════════════════

def ensure_owner(jam: Any, user_id: Optional[int], message: str = "Only the jam owner can perform this action") -> None:
    if not is_owner(get_user_role(jam, user_id)):
        raise ForbiddenError(message)


def ensure_can_edit(
    jam: Any, user_id: Optional[int], message: str = "You need producer or owner role to edit this jam"
) -> None:
    if not can_edit(get_user_role(jam, user_id)):
        raise ForbiddenError(message)


def ensure_can_contribute(
    jam: Any,
    user_id: Optional[int],
    message: str = "You need contributor, producer, or owner role to add content to this jam",
) -> None:
    if not can_contribute(get_user_role(jam, user_id)):
        raise ForbiddenError(message)


def ensure_can_view(
    jam: Any,
    user_id: Optional[int],
    message: str = "This jam is private. You need to be a collaborator to view it.",
) -> None:
    if not can_view_jam(jam, user_id):
        raise ForbiddenError(message)
