"""
Version snapshot engine — save, list, restore, compare, edit and delete
point-in-time copies of a jam.

A snapshot is a JSON deep copy of the jam's mutable fields. Version numbers
are per jam and start at 1; the (jam, version_number) unique constraint is
the arbiter under concurrent saves, and a losing insert re-reads the maximum
and retries.

Restore-with-backup is two sequential steps with no compensation: the backup
version is committed before the jam is overwritten, so a failed overwrite
leaves the backup behind.
"""

import logging
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from sqlalchemy import desc, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from hitit.config import settings
from hitit.errors import ConflictError, ForbiddenError, NotFoundError, ValidationError
from hitit.models.clip import Clip
from hitit.models.jam import CollaboratorRole, Jam, JamClip, JamCollaborator
from hitit.models.jam_activity import ActivityType
from hitit.models.jam_version import JamVersion
from hitit.models.user import User
from hitit.services import permissions
from hitit.services.activity import log_activity
from hitit.services.lookups import get_jam_or_404
from hitit.utils.clock import ensure_utc
from hitit.utils.pagination import clamp, page_info

logger = logging.getLogger(__name__)

COMPARED_FIELDS = ("title", "description", "genre", "isPrivate")


# ═══════════════════════════════════════════════════════════════
#  Snapshots (pure)
# ═══════════════════════════════════════════════════════════════

def build_snapshot(jam: Jam) -> Dict[str, Any]:
    """Deep copy of the jam's mutable state plus derived counts."""
    clip_ids = list(jam.clip_ids)
    collaborators = [
        {
            "user": c.user_id,
            "role": CollaboratorRole(c.role).value,
            "addedAt": ensure_utc(c.added_at).isoformat() if c.added_at else None,
            "addedBy": c.added_by,
        }
        for c in jam.collaborators
    ]
    return {
        "title": jam.title,
        "description": jam.description,
        "genre": jam.genre,
        "image": jam.image,
        "isPrivate": bool(jam.is_private),
        "audioElements": clip_ids,
        "collaborators": collaborators,
        "clipCount": len(clip_ids),
        "collaboratorCount": len(collaborators),
    }


def _ordered_difference(left: Iterable[Any], right: Iterable[Any]) -> List[Any]:
    exclude = set(right)
    return [item for item in left if item not in exclude]


def diff_snapshots(s1: Dict[str, Any], s2: Dict[str, Any]) -> Dict[str, Any]:
    """
    Structural diff from ``s1`` to ``s2``.

    ``clips.added`` holds clips present in ``s2`` but not ``s1``, in ``s2``
    order; ``clips.removed`` is the reverse. Swapping the arguments swaps the
    two lists.
    """
    differences: Dict[str, Any] = {}
    for field in COMPARED_FIELDS:
        a, b = s1.get(field), s2.get(field)
        differences[field] = {"changed": a != b, "v1": a, "v2": b}

    clips1 = list(s1.get("audioElements") or [])
    clips2 = list(s2.get("audioElements") or [])
    added = _ordered_difference(clips2, clips1)
    removed = _ordered_difference(clips1, clips2)
    differences["clips"] = {
        "added": added,
        "removed": removed,
        "addedCount": len(added),
        "removedCount": len(removed),
    }

    count1 = s1.get("collaboratorCount", len(s1.get("collaborators") or []))
    count2 = s2.get("collaboratorCount", len(s2.get("collaborators") or []))
    differences["collaborators"] = {
        "v1Count": count1,
        "v2Count": count2,
        "changed": count1 != count2,
        "delta": count2 - count1,
    }
    return differences


# ═══════════════════════════════════════════════════════════════
#  Lookups
# ═══════════════════════════════════════════════════════════════

async def get_next_version_number(db: AsyncSession, jam_id: int) -> int:
    result = await db.execute(
        select(func.max(JamVersion.version_number)).where(JamVersion.jam_id == jam_id)
    )
    latest = result.scalar()
    return (latest or 0) + 1


async def _get_version_or_404(db: AsyncSession, jam_id: int, version_number: int) -> JamVersion:
    result = await db.execute(
        select(JamVersion).where(
            JamVersion.jam_id == jam_id,
            JamVersion.version_number == version_number,
        )
    )
    version = result.scalar_one_or_none()
    if not version:
        raise NotFoundError("Version not found")
    return version


def _ensure_owner_or_creator(jam: Jam, version: JamVersion, user_id: int, verb: str) -> None:
    if jam.user_id != user_id and version.created_by != user_id:
        raise ForbiddenError(f"Only the jam owner or version creator can {verb} this version")


async def _insert_version(
    db: AsyncSession,
    jam: Jam,
    user: User,
    snapshot: Dict[str, Any],
    version_name: Optional[str],
    description: Optional[str],
    tags: Optional[List[str]],
    is_pinned: bool,
) -> JamVersion:
    """Insert with the next free number, retrying if another save won the race."""
    for attempt in range(settings.VERSION_NUMBER_RETRIES):
        number = await get_next_version_number(db, jam.id)
        version = JamVersion(
            jam_id=jam.id,
            version_number=number,
            version_name=version_name or f"Version {number}",
            description=description or "",
            created_by=user.id,
            snapshot=snapshot,
            tags=list(tags or []),
            is_pinned=bool(is_pinned),
        )
        try:
            async with db.begin_nested():
                db.add(version)
            return version
        except IntegrityError:
            logger.warning(
                "Version number %s for jam %s taken, retrying (attempt %d)", number, jam.id, attempt + 1
            )
    raise ConflictError("Could not allocate a version number, please retry", error="Version conflict")


# ═══════════════════════════════════════════════════════════════
#  Operations
# ═══════════════════════════════════════════════════════════════

async def create_version(
    db: AsyncSession,
    jam_id: int,
    user: User,
    version_name: Optional[str] = None,
    description: Optional[str] = None,
    tags: Optional[List[str]] = None,
    is_pinned: bool = False,
) -> JamVersion:
    jam = await get_jam_or_404(db, jam_id)
    permissions.ensure_can_edit(jam, user.id, "Only owners and producers can save versions")

    snapshot = build_snapshot(jam)
    version = await _insert_version(db, jam, user, snapshot, version_name, description, tags, is_pinned)

    await log_activity(
        db,
        jam_id=jam.id,
        user_id=user.id,
        action_type=ActivityType.version_created,
        description=f'{user.user_name} saved version {version.version_number}: "{version.version_name}"',
        metadata={
            "versionNumber": version.version_number,
            "versionName": version.version_name,
            "clipCount": snapshot["clipCount"],
        },
    )
    await db.commit()
    logger.info("Saved version %s of jam %s", version.version_number, jam.id)
    return version


async def list_versions(
    db: AsyncSession, jam_id: int, user_id: Optional[int], limit: int = 50, skip: int = 0
) -> Tuple[Sequence[JamVersion], Dict[str, object]]:
    """Versions of a jam, highest number first."""
    jam = await get_jam_or_404(db, jam_id)
    permissions.ensure_can_view(jam, user_id, "You do not have permission to view this jam")

    limit, skip = clamp(limit, skip)
    result = await db.execute(
        select(JamVersion)
        .where(JamVersion.jam_id == jam_id)
        .order_by(desc(JamVersion.version_number))
        .limit(limit)
        .offset(skip)
    )
    versions = result.scalars().all()
    total = (
        await db.execute(select(func.count(JamVersion.id)).where(JamVersion.jam_id == jam_id))
    ).scalar() or 0
    return versions, page_info(total, limit, skip, len(versions))


async def get_version(db: AsyncSession, jam_id: int, version_number: int, user_id: Optional[int]) -> JamVersion:
    jam = await get_jam_or_404(db, jam_id)
    permissions.ensure_can_view(jam, user_id, "You do not have permission to view this jam")
    return await _get_version_or_404(db, jam_id, version_number)


async def _apply_snapshot(db: AsyncSession, jam: Jam, snapshot: Dict[str, Any]) -> None:
    """Overwrite the jam's mutable fields from ``snapshot``. ``image`` is left alone."""
    jam.title = snapshot.get("title") or jam.title
    jam.description = snapshot.get("description")
    jam.genre = snapshot.get("genre") or jam.genre
    jam.is_private = bool(snapshot.get("isPrivate", False))

    # Clips: keep surviving rows, drop the rest, skip clips deleted since the save
    wanted = list(dict.fromkeys(snapshot.get("audioElements") or []))
    existing_clips = set()
    if wanted:
        result = await db.execute(select(Clip.id).where(Clip.id.in_(wanted)))
        existing_clips = set(result.scalars().all())
    links = {link.clip_id: link for link in jam.clip_links}
    new_links = []
    for position, clip_id in enumerate(cid for cid in wanted if cid in existing_clips):
        link = links.get(clip_id) or JamClip(clip_id=clip_id)
        link.position = position
        new_links.append(link)
    jam.clip_links = new_links

    # Collaborators: same reconciliation, the current owner never gets a row
    rows = {c.user_id: c for c in jam.collaborators}
    new_rows = []
    seen = set()
    for entry in snapshot.get("collaborators") or []:
        user_id = entry.get("user")
        if user_id is None or user_id == jam.user_id or user_id in seen:
            continue
        if await db.get(User, user_id) is None:
            continue
        seen.add(user_id)
        row = rows.get(user_id) or JamCollaborator(user_id=user_id)
        row.role = CollaboratorRole(entry.get("role") or CollaboratorRole.contributor.value)
        added_by = entry.get("addedBy")
        if added_by is not None and await db.get(User, added_by) is None:
            added_by = None
        row.added_by = added_by
        new_rows.append(row)
    jam.collaborators = new_rows


async def restore_version(
    db: AsyncSession,
    jam_id: int,
    version_number: int,
    user: User,
    create_backup: bool = False,
) -> Tuple[JamVersion, Optional[JamVersion]]:
    """
    Roll the jam back to ``version_number``.

    Returns the restored version and, when requested, the automatic backup
    taken beforehand. Restoring never creates a version of its own.
    """
    version = await _get_version_or_404(db, jam_id, version_number)
    jam = await get_jam_or_404(db, jam_id)
    permissions.ensure_can_edit(jam, user.id, "Only owners and producers can restore versions")

    previous_clip_count = len(jam.clip_links)

    backup = None
    if create_backup:
        backup = await _insert_version(
            db,
            jam,
            user,
            build_snapshot(jam),
            version_name=f"Backup before restore to v{version_number}",
            description="Automatic backup created before version restore",
            tags=["backup", "auto"],
            is_pinned=False,
        )
        await db.commit()

    await _apply_snapshot(db, jam, version.snapshot)
    await db.flush()

    await log_activity(
        db,
        jam_id=jam.id,
        user_id=user.id,
        action_type=ActivityType.version_restored,
        description=f'{user.user_name} restored jam to version {version_number}: "{version.version_name}"',
        metadata={
            "versionNumber": version_number,
            "versionName": version.version_name,
            "previousClipCount": previous_clip_count,
            "restoredClipCount": len(jam.clip_links),
            "backupVersionNumber": backup.version_number if backup else None,
        },
    )
    await db.commit()
    logger.info("Jam %s restored to version %s by user %s", jam.id, version_number, user.id)
    return version, backup


async def update_version(
    db: AsyncSession,
    jam_id: int,
    version_number: int,
    user: User,
    changes: Dict[str, Any],
) -> JamVersion:
    """Edit name, description, tags or pinned flag. Absent keys are left as they are."""
    version = await _get_version_or_404(db, jam_id, version_number)
    jam = await get_jam_or_404(db, jam_id)
    _ensure_owner_or_creator(jam, version, user.id, "update")

    if "version_name" in changes:
        version.version_name = changes["version_name"]
    if "description" in changes:
        version.description = changes["description"]
    if "tags" in changes:
        version.tags = list(changes["tags"] or [])
    if "is_pinned" in changes:
        version.is_pinned = bool(changes["is_pinned"])

    await db.commit()
    return version


async def delete_version(db: AsyncSession, jam_id: int, version_number: int, user: User) -> None:
    version = await _get_version_or_404(db, jam_id, version_number)
    jam = await get_jam_or_404(db, jam_id)
    _ensure_owner_or_creator(jam, version, user.id, "delete")

    name = version.version_name
    await db.delete(version)
    await log_activity(
        db,
        jam_id=jam.id,
        user_id=user.id,
        action_type=ActivityType.version_deleted,
        description=f'{user.user_name} deleted version {version_number}: "{name}"',
        metadata={"versionNumber": version_number, "versionName": name},
    )
    await db.commit()


async def compare_versions(
    db: AsyncSession, jam_id: int, v1: Any, v2: Any, user_id: Optional[int]
) -> Dict[str, Any]:
    try:
        v1, v2 = int(v1), int(v2)
    except (TypeError, ValueError):
        raise ValidationError("Please provide v1 and v2 query parameters", error="Invalid parameters")
    if v1 < 1 or v2 < 1:
        raise ValidationError("Please provide v1 and v2 query parameters", error="Invalid parameters")

    jam = await get_jam_or_404(db, jam_id)
    permissions.ensure_can_view(jam, user_id, "You do not have permission to view this jam")

    result = await db.execute(
        select(JamVersion).where(JamVersion.jam_id == jam_id, JamVersion.version_number.in_([v1, v2]))
    )
    by_number = {v.version_number: v for v in result.scalars().all()}
    if v1 not in by_number or v2 not in by_number:
        raise NotFoundError("One or both versions not found")

    version1, version2 = by_number[v1], by_number[v2]
    return {
        "version1": version1,
        "version2": version2,
        "differences": diff_snapshots(version1.snapshot, version2.snapshot),
    }
