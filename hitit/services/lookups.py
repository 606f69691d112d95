"""Fetch-or-404 helpers shared by the service modules."""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from hitit.errors import NotFoundError
from hitit.models.clip import Clip
from hitit.models.jam import Jam
from hitit.models.user import User


async def get_jam_or_404(db: AsyncSession, jam_id: int) -> Jam:
    result = await db.execute(select(Jam).where(Jam.id == jam_id))
    jam = result.scalar_one_or_none()
    if not jam:
        raise NotFoundError("Jam not found")
    return jam


async def get_user_or_404(db: AsyncSession, user_id: int) -> User:
    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if not user:
        raise NotFoundError("User not found")
    return user


async def get_clip_or_404(db: AsyncSession, clip_id: int) -> Clip:
    result = await db.execute(select(Clip).where(Clip.id == clip_id))
    clip = result.scalar_one_or_none()
    if not clip:
        raise NotFoundError("Clip not found")
    return clip
