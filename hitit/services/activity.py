"""
Activity log — the append-only audit trail of every jam.

``log_activity`` is attached to every mutating operation and must never
abort it: the insert runs in a SAVEPOINT and any failure is logged and
dropped. Rows are never updated; the only removal path is
``purge_expired_activity``.
"""

import logging
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import delete, desc, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from hitit.config import settings
from hitit.models.jam import Jam, JamCollaborator
from hitit.models.jam_activity import ActivityType, JamActivity
from hitit.models.user import User
from hitit.services import permissions
from hitit.services.lookups import get_jam_or_404
from hitit.utils.clock import utcnow
from hitit.utils.pagination import clamp, page_info

logger = logging.getLogger(__name__)

ActivityRow = Tuple[JamActivity, User]


async def log_activity(
    db: AsyncSession,
    *,
    jam_id: int,
    user_id: int,
    action_type: ActivityType,
    description: str,
    metadata: Optional[Dict[str, Any]] = None,
    target_user_id: Optional[int] = None,
    target_clip_id: Optional[int] = None,
) -> Optional[JamActivity]:
    """Append one activity entry. Returns ``None`` if it could not be written."""
    try:
        async with db.begin_nested():
            activity = JamActivity(
                jam_id=jam_id,
                user_id=user_id,
                action_type=action_type,
                description=description,
                details=metadata or {},
                target_user_id=target_user_id,
                target_clip_id=target_clip_id,
            )
            db.add(activity)
        return activity
    except Exception:
        logger.exception("Error logging %s activity for jam %s", getattr(action_type, "value", action_type), jam_id)
        return None


async def _paginate(
    db: AsyncSession, where, limit: int, skip: int
) -> Tuple[List[ActivityRow], Dict[str, object]]:
    limit, skip = clamp(limit, skip)
    result = await db.execute(
        select(JamActivity, User)
        .join(User, JamActivity.user_id == User.id)
        .where(where)
        .order_by(desc(JamActivity.created_at), desc(JamActivity.id))
        .limit(limit)
        .offset(skip)
    )
    rows = [(activity, actor) for activity, actor in result.all()]
    total = (await db.execute(select(func.count(JamActivity.id)).where(where))).scalar() or 0
    return rows, page_info(total, limit, skip, len(rows))


async def get_jam_activity(
    db: AsyncSession, jam_id: int, user_id: Optional[int], limit: int = 50, skip: int = 0
) -> Tuple[List[ActivityRow], Dict[str, object]]:
    """Activity for one jam, newest first. Private jams need view permission."""
    jam = await get_jam_or_404(db, jam_id)
    permissions.ensure_can_view(jam, user_id, "You do not have permission to view this jam")
    return await _paginate(db, JamActivity.jam_id == jam_id, limit, skip)


async def get_user_activity(
    db: AsyncSession, user_id: int, limit: int = 50, skip: int = 0
) -> Tuple[List[ActivityRow], Dict[str, object]]:
    """Everything the caller did, across all jams."""
    return await _paginate(db, JamActivity.user_id == user_id, limit, skip)


async def get_activity_feed(
    db: AsyncSession, user_id: int, limit: int = 50, skip: int = 0
) -> Tuple[List[ActivityRow], Dict[str, object]]:
    """Activity on every jam the caller owns or collaborates on."""
    collaborating = select(JamCollaborator.jam_id).where(JamCollaborator.user_id == user_id)
    jam_ids = select(Jam.id).where(or_(Jam.user_id == user_id, Jam.id.in_(collaborating)))
    return await _paginate(db, JamActivity.jam_id.in_(jam_ids), limit, skip)


async def purge_expired_activity(db: AsyncSession, now: Optional[datetime] = None) -> int:
    """Delete activity older than the retention window."""
    cutoff = (now or utcnow()) - timedelta(days=settings.ACTIVITY_RETENTION_DAYS)
    result = await db.execute(delete(JamActivity).where(JamActivity.created_at < cutoff))
    await db.commit()
    removed = result.rowcount or 0
    if removed:
        logger.info("Purged %d activity entries older than %s", removed, cutoff.isoformat())
    return removed
