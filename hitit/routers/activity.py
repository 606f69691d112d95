"""Activity router — jam history, the caller's own actions and their feed."""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from hitit.database import get_db
from hitit.models.user import User
from hitit.routers.auth import get_current_user, require_user
from hitit.schemas.activity import ActivityOut, ActivityPage
from hitit.services import activity as activity_service
from hitit.utils.pagination import DEFAULT_LIMIT

router = APIRouter(prefix="/api", tags=["activity"])


def _page(rows, info) -> ActivityPage:
    return ActivityPage(
        activities=[ActivityOut.from_row(activity, actor) for activity, actor in rows],
        pagination=info,
    )


@router.get("/jams/{jam_id}/activity", response_model=ActivityPage)
async def jam_activity(
    jam_id: int,
    limit: int = Query(DEFAULT_LIMIT),
    skip: int = Query(0),
    current_user: Optional[User] = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    rows, info = await activity_service.get_jam_activity(
        db, jam_id, current_user.id if current_user else None, limit=limit, skip=skip
    )
    return _page(rows, info)


@router.get("/user/activity", response_model=ActivityPage)
async def my_activity(
    limit: int = Query(DEFAULT_LIMIT),
    skip: int = Query(0),
    current_user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    rows, info = await activity_service.get_user_activity(db, current_user.id, limit=limit, skip=skip)
    return _page(rows, info)


@router.get("/activity/feed", response_model=ActivityPage)
async def activity_feed(
    limit: int = Query(DEFAULT_LIMIT),
    skip: int = Query(0),
    current_user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    """Recent activity on every jam the caller owns or collaborates on."""
    rows, info = await activity_service.get_activity_feed(db, current_user.id, limit=limit, skip=skip)
    return _page(rows, info)
