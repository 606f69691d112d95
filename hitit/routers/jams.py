"""Jams router — jams, their clip lists, collaborators and likes."""

from typing import Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from hitit.database import get_db
from hitit.models.user import User
from hitit.routers.auth import get_current_user, require_user
from hitit.schemas.base import ActionResult
from hitit.schemas.jam import (
    ClipCreate,
    ClipOut,
    CollaboratorAdd,
    CollaboratorOut,
    JamCreate,
    JamDetail,
    JamOut,
    LikeOut,
    PermissionsOut,
    RoleUpdate,
)
from hitit.services import jams as jam_service

router = APIRouter(prefix="/api", tags=["jams"])


# ── Clips ──

@router.post("/clips", response_model=ClipOut, status_code=status.HTTP_201_CREATED)
async def create_clip(
    payload: ClipCreate,
    current_user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    return await jam_service.create_clip(
        db, current_user, payload.title, description=payload.description, audio_url=payload.audio_url
    )


# ── Jams ──

@router.post("/jams", response_model=JamOut, status_code=status.HTTP_201_CREATED)
async def create_jam(
    payload: JamCreate,
    current_user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    return await jam_service.create_jam(
        db,
        current_user,
        title=payload.title,
        genre=payload.genre,
        description=payload.description,
        image=payload.image,
        is_private=payload.is_private,
    )


@router.get("/jams/{jam_id}", response_model=JamDetail)
async def get_jam(
    jam_id: int,
    current_user: Optional[User] = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Jam detail plus what the caller is allowed to do with it."""
    jam, summary = await jam_service.get_jam_detail(db, jam_id, current_user.id if current_user else None)
    return JamDetail(jam=JamOut.model_validate(jam), permissions=PermissionsOut.model_validate(summary))


@router.put("/jams/{jam_id}/clips/{clip_id}", response_model=JamOut)
async def add_clip(
    jam_id: int,
    clip_id: int,
    current_user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    return await jam_service.add_clip_to_jam(db, jam_id, clip_id, current_user)


@router.delete("/jams/{jam_id}/clips/{clip_id}", response_model=JamOut)
async def remove_clip(
    jam_id: int,
    clip_id: int,
    current_user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    return await jam_service.remove_clip_from_jam(db, jam_id, clip_id, current_user)


@router.post("/jams/{jam_id}/like", response_model=LikeOut)
async def like_jam(
    jam_id: int,
    current_user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    likes = await jam_service.like_jam(db, jam_id, current_user)
    return LikeOut(likes=likes)


# ── Collaborators ──

@router.post(
    "/jams/{jam_id}/collaborators",
    response_model=CollaboratorOut,
    status_code=status.HTTP_201_CREATED,
)
async def add_collaborator(
    jam_id: int,
    payload: CollaboratorAdd,
    current_user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    return await jam_service.add_collaborator(db, jam_id, current_user, payload.user_id, payload.role)


@router.patch("/jams/{jam_id}/collaborators/{user_id}", response_model=CollaboratorOut)
async def update_collaborator_role(
    jam_id: int,
    user_id: int,
    payload: RoleUpdate,
    current_user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    return await jam_service.update_collaborator_role(db, jam_id, current_user, user_id, payload.role)


@router.delete("/jams/{jam_id}/collaborators/{user_id}", response_model=ActionResult)
async def remove_collaborator(
    jam_id: int,
    user_id: int,
    current_user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    await jam_service.remove_collaborator(db, jam_id, current_user, user_id)
    return ActionResult(message="Collaborator removed")
