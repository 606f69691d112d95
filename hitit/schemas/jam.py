"""Jam & clip Pydantic schemas."""

from datetime import datetime
from typing import List, Optional

from pydantic import Field

from hitit.models.jam import CollaboratorRole
from hitit.schemas.base import CamelModel


# ── Clips ──

class ClipCreate(CamelModel):
    title: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None
    audio_url: Optional[str] = None


class ClipOut(CamelModel):
    id: int
    title: str
    description: Optional[str] = None
    audio_url: Optional[str] = None
    user_id: int
    created_at: Optional[datetime] = None


# ── Jams ──

class JamCreate(CamelModel):
    title: str = Field(..., min_length=1, max_length=100)
    genre: str = Field(..., min_length=1, max_length=50)
    description: Optional[str] = Field(None, max_length=1000)
    image: Optional[str] = None
    is_private: bool = False


class CollaboratorOut(CamelModel):
    user_id: int
    role: CollaboratorRole
    added_at: Optional[datetime] = None
    added_by: Optional[int] = None


class JamOut(CamelModel):
    id: int
    user_id: int
    title: str
    description: Optional[str] = None
    genre: str
    image: Optional[str] = None
    is_private: bool = False
    likes: int = 0
    clip_ids: List[int] = []
    collaborators: List[CollaboratorOut] = []
    created_at: Optional[datetime] = None


class PermissionsOut(CamelModel):
    role: Optional[str] = None
    can_edit: bool
    can_contribute: bool
    can_view: bool
    is_owner: bool


class JamDetail(CamelModel):
    jam: JamOut
    permissions: PermissionsOut


class LikeOut(CamelModel):
    success: bool = True
    likes: int


# ── Collaborators ──

class CollaboratorAdd(CamelModel):
    user_id: int
    role: str = "contributor"


class RoleUpdate(CamelModel):
    role: str
