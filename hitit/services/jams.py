"""
Jam service — jam creation, the ordered clip list, direct collaborator
management and likes.

Every mutation goes through the role model first and appends one activity
entry afterwards.
"""

import logging
from typing import Any, Dict, Optional, Tuple

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from hitit.errors import ConflictError, NotFoundError, ValidationError
from hitit.models.clip import Clip
from hitit.models.jam import CollaboratorRole, Jam, JamClip, JamCollaborator
from hitit.models.jam_activity import ActivityType
from hitit.models.notification import NotificationType
from hitit.models.user import User
from hitit.services import permissions
from hitit.services.activity import log_activity
from hitit.services.lookups import get_clip_or_404, get_jam_or_404, get_user_or_404
from hitit.services.notifications import create_notification

logger = logging.getLogger(__name__)


def parse_role(value: Any) -> CollaboratorRole:
    """Coerce a wire value into a storable collaborator role."""
    if isinstance(value, CollaboratorRole):
        return value
    try:
        return CollaboratorRole(value)
    except ValueError:
        valid = ", ".join(r.value for r in CollaboratorRole)
        raise ValidationError(f"Role must be one of: {valid}", error="Invalid role")


def find_collaborator(jam: Jam, user_id: int) -> Optional[JamCollaborator]:
    return next((c for c in jam.collaborators if c.user_id == user_id), None)


async def attach_collaborator(
    db: AsyncSession,
    jam: Jam,
    user_id: int,
    role: CollaboratorRole,
    added_by: Optional[int],
) -> JamCollaborator:
    """
    Add ``user_id`` to the jam's collaborator list.

    The owner can never be added, and the (jam, user) unique constraint
    turns a concurrent duplicate into a ConflictError.
    """
    if jam.user_id == user_id:
        raise ValidationError("The jam owner cannot be added as a collaborator")
    if find_collaborator(jam, user_id):
        raise ConflictError("This user is already a collaborator on this jam", error="Already collaborating")

    collaborator = JamCollaborator(user_id=user_id, role=role, added_by=added_by)
    try:
        async with db.begin_nested():
            jam.collaborators.append(collaborator)
    except IntegrityError:
        await db.refresh(jam, attribute_names=["collaborators"])
        raise ConflictError("This user is already a collaborator on this jam", error="Already collaborating")
    return collaborator


# ═══════════════════════════════════════════════════════════════
#  Clips & jams
# ═══════════════════════════════════════════════════════════════

async def create_clip(
    db: AsyncSession,
    user: User,
    title: str,
    description: Optional[str] = None,
    audio_url: Optional[str] = None,
) -> Clip:
    clip = Clip(title=title, description=description, audio_url=audio_url, user_id=user.id)
    db.add(clip)
    await db.commit()
    await db.refresh(clip)
    return clip


async def create_jam(
    db: AsyncSession,
    user: User,
    title: str,
    genre: str,
    description: Optional[str] = None,
    image: Optional[str] = None,
    is_private: bool = False,
) -> Jam:
    jam = Jam(
        user_id=user.id,
        title=title,
        genre=genre,
        description=description,
        image=image,
        is_private=is_private,
        likes=0,
        clip_links=[],
        collaborators=[],
    )
    db.add(jam)
    await db.flush()

    await log_activity(
        db,
        jam_id=jam.id,
        user_id=user.id,
        action_type=ActivityType.jam_created,
        description=f'{user.user_name} created the jam "{title}"',
        metadata={"genre": genre, "isPrivate": is_private},
    )
    await db.commit()
    logger.info("Jam %s created by user %s (private=%s)", jam.id, user.id, is_private)
    return jam


async def get_jam_detail(
    db: AsyncSession, jam_id: int, user_id: Optional[int]
) -> Tuple[Jam, Dict[str, Any]]:
    """Return the jam and the caller's permission summary."""
    jam = await get_jam_or_404(db, jam_id)
    permissions.ensure_can_view(jam, user_id)
    return jam, permissions.permission_summary(jam, user_id)


async def add_clip_to_jam(db: AsyncSession, jam_id: int, clip_id: int, user: User) -> Jam:
    """Append a clip to the jam's ordered list; adding it twice is a no-op."""
    jam = await get_jam_or_404(db, jam_id)
    permissions.ensure_can_contribute(jam, user.id)
    clip = await get_clip_or_404(db, clip_id)

    if clip.id in jam.clip_ids:
        return jam

    next_position = max((link.position for link in jam.clip_links), default=-1) + 1
    try:
        async with db.begin_nested():
            jam.clip_links.append(JamClip(clip_id=clip.id, position=next_position))
    except IntegrityError:
        # Added concurrently by someone else
        await db.refresh(jam, attribute_names=["clip_links"])
        return jam

    await log_activity(
        db,
        jam_id=jam.id,
        user_id=user.id,
        action_type=ActivityType.clip_added,
        description=f'{user.user_name} added "{clip.title}" to the jam',
        target_clip_id=clip.id,
        metadata={"clipTitle": clip.title},
    )
    await db.commit()
    return jam


async def remove_clip_from_jam(db: AsyncSession, jam_id: int, clip_id: int, user: User) -> Jam:
    jam = await get_jam_or_404(db, jam_id)
    permissions.ensure_can_edit(jam, user.id, "You need producer or owner role to remove clips from this jam")

    link = next((link for link in jam.clip_links if link.clip_id == clip_id), None)
    if not link:
        raise NotFoundError("Clip is not part of this jam")
    jam.clip_links.remove(link)

    clip = await db.get(Clip, clip_id)
    title = clip.title if clip else f"clip {clip_id}"
    await log_activity(
        db,
        jam_id=jam.id,
        user_id=user.id,
        action_type=ActivityType.clip_removed,
        description=f'{user.user_name} removed "{title}" from the jam',
        target_clip_id=clip_id,
        metadata={"clipTitle": title},
    )
    await db.commit()
    return jam


async def like_jam(db: AsyncSession, jam_id: int, user: User) -> int:
    """Increment the like counter atomically and notify the owner."""
    jam = await get_jam_or_404(db, jam_id)
    permissions.ensure_can_view(jam, user.id)

    await db.execute(update(Jam).where(Jam.id == jam_id).values(likes=Jam.likes + 1))
    likes = (await db.execute(select(Jam.likes).where(Jam.id == jam_id))).scalar_one()

    await create_notification(
        db,
        recipient_id=jam.user_id,
        sender_id=user.id,
        type=NotificationType.like,
        message=f'{user.user_name} liked your jam "{jam.title}"',
        jam_id=jam.id,
    )
    await db.commit()
    return likes


# ═══════════════════════════════════════════════════════════════
#  Direct collaborator management (owner only)
# ═══════════════════════════════════════════════════════════════

async def add_collaborator(
    db: AsyncSession, jam_id: int, owner: User, user_id: int, role: Any = CollaboratorRole.contributor
) -> JamCollaborator:
    role = parse_role(role)
    jam = await get_jam_or_404(db, jam_id)
    permissions.ensure_owner(jam, owner.id, "Only the jam owner can add collaborators")
    added_user = await get_user_or_404(db, user_id)

    collaborator = await attach_collaborator(db, jam, added_user.id, role, added_by=owner.id)

    await create_notification(
        db,
        recipient_id=added_user.id,
        sender_id=owner.id,
        type=NotificationType.collaborator_add,
        message=f'{owner.user_name} added you as a {role.value} on "{jam.title}"',
        jam_id=jam.id,
    )
    await log_activity(
        db,
        jam_id=jam.id,
        user_id=owner.id,
        action_type=ActivityType.collaborator_added,
        description=f"{owner.user_name} added {added_user.user_name} as a {role.value}",
        target_user_id=added_user.id,
        metadata={"role": role.value, "addedUserName": added_user.user_name},
    )
    await db.commit()
    return collaborator


async def update_collaborator_role(
    db: AsyncSession, jam_id: int, owner: User, user_id: int, role: Any
) -> JamCollaborator:
    role = parse_role(role)
    jam = await get_jam_or_404(db, jam_id)
    permissions.ensure_owner(jam, owner.id, "Only the jam owner can change collaborator roles")

    collaborator = find_collaborator(jam, user_id)
    if not collaborator:
        raise NotFoundError("Collaborator not found")

    previous = CollaboratorRole(collaborator.role)
    if previous == role:
        return collaborator
    collaborator.role = role

    target = await get_user_or_404(db, user_id)
    await log_activity(
        db,
        jam_id=jam.id,
        user_id=owner.id,
        action_type=ActivityType.role_changed,
        description=f"{owner.user_name} changed {target.user_name}'s role from {previous.value} to {role.value}",
        target_user_id=user_id,
        metadata={"previousRole": previous.value, "newRole": role.value},
    )
    await db.commit()
    return collaborator


async def remove_collaborator(db: AsyncSession, jam_id: int, actor: User, user_id: int) -> None:
    """The owner can remove anyone; a collaborator can remove themselves."""
    jam = await get_jam_or_404(db, jam_id)
    if actor.id != user_id:
        permissions.ensure_owner(jam, actor.id, "Only the jam owner can remove collaborators")

    collaborator = find_collaborator(jam, user_id)
    if not collaborator:
        raise NotFoundError("Collaborator not found")
    jam.collaborators.remove(collaborator)

    removed_user = await get_user_or_404(db, user_id)
    if actor.id == user_id:
        description = f"{actor.user_name} left the jam"
    else:
        description = f"{actor.user_name} removed {removed_user.user_name} from the jam"
    await log_activity(
        db,
        jam_id=jam.id,
        user_id=actor.id,
        action_type=ActivityType.collaborator_removed,
        description=description,
        target_user_id=user_id,
        metadata={"removedUserName": removed_user.user_name},
    )
    await db.commit()
