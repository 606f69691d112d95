"""Notifications router — fetch, read, and mark-all-read."""

from fastapi import APIRouter, Depends
from sqlalchemy import desc, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from hitit.database import get_db
from hitit.errors import NotFoundError
from hitit.models.notification import Notification
from hitit.models.user import User
from hitit.routers.auth import require_user
from hitit.schemas.base import ActionResult
from hitit.schemas.notification import NotificationList, NotificationOut

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("", response_model=NotificationList)
async def get_notifications(
    current_user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    """Return last 50 notifications + unread count for the current user."""
    # Unread count
    count_result = await db.execute(
        select(func.count(Notification.id)).where(
            Notification.user_id == current_user.id,
            Notification.is_read == False,  # noqa: E712
        )
    )
    unread_count = count_result.scalar() or 0

    result = await db.execute(
        select(Notification)
        .where(Notification.user_id == current_user.id)
        .order_by(desc(Notification.created_at), desc(Notification.id))
        .limit(50)
    )
    notifs = result.scalars().all()

    return NotificationList(
        notifications=[NotificationOut.model_validate(n) for n in notifs],
        unread_count=unread_count,
    )


@router.post("/read/{notif_id}", response_model=ActionResult)
async def mark_read(
    notif_id: int,
    current_user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    """Mark a single notification as read."""
    result = await db.execute(
        select(Notification).where(
            Notification.id == notif_id,
            Notification.user_id == current_user.id,
        )
    )
    notif = result.scalar_one_or_none()
    if not notif:
        raise NotFoundError("Notification not found")

    notif.is_read = True
    await db.commit()
    return ActionResult(message="Notification marked as read")


@router.post("/read-all", response_model=ActionResult)
async def mark_all_read(
    current_user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    """Mark all notifications as read for the current user."""
    await db.execute(
        update(Notification)
        .where(
            Notification.user_id == current_user.id,
            Notification.is_read == False,  # noqa: E712
        )
        .values(is_read=True)
    )
    await db.commit()
    return ActionResult(message="All notifications marked as read")
