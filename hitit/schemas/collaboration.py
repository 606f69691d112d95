"""Invite & join-request Pydantic schemas."""

from datetime import datetime
from typing import List, Optional

from pydantic import Field

from hitit.models.jam import CollaboratorRole
from hitit.models.jam_invite import InviteStatus
from hitit.models.jam_request import RequestStatus
from hitit.schemas.base import CamelModel


# ── Invites ──

class InviteCreate(CamelModel):
    user_id: Optional[int] = None
    role: Optional[str] = "contributor"
    message: Optional[str] = Field(None, max_length=500)


class InviteOut(CamelModel):
    id: int
    jam_id: int
    invited_user_id: int
    invited_by: int
    role: CollaboratorRole
    status: InviteStatus
    message: Optional[str] = None
    expires_at: Optional[datetime] = None
    responded_at: Optional[datetime] = None
    created_at: Optional[datetime] = None


class InviteResponse(CamelModel):
    success: bool = True
    invite: InviteOut


class InviteList(CamelModel):
    invites: List[InviteOut]


# ── Requests ──

class RequestCreate(CamelModel):
    requested_role: Optional[str] = "contributor"
    message: Optional[str] = Field(None, max_length=500)
    skills: List[str] = []
    portfolio: Optional[str] = Field(None, max_length=500)


class RequestOut(CamelModel):
    id: int
    jam_id: int
    requested_by: int
    requested_role: CollaboratorRole
    status: RequestStatus
    message: Optional[str] = None
    skills: List[str] = []
    portfolio: Optional[str] = None
    responded_at: Optional[datetime] = None
    responded_by: Optional[int] = None
    created_at: Optional[datetime] = None


class RequestResponse(CamelModel):
    success: bool = True
    request: RequestOut


class RequestList(CamelModel):
    requests: List[RequestOut]
