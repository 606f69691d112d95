"""
Invites & join requests router.

Endpoints:
    POST /api/jams/{jam_id}/invite           → owner invites a user
    GET  /api/jams/{jam_id}/invites          → pending invites (owner)
    GET  /api/invites                        → caller's pending invites
    POST /api/invites/{invite_id}/accept     → join with the invite's role
    POST /api/invites/{invite_id}/decline
    POST /api/jams/{jam_id}/request          → ask to join
    GET  /api/jams/{jam_id}/requests         → pending requests (owner)
    GET  /api/my-requests                    → caller's requests
    POST /api/requests/{request_id}/approve
    POST /api/requests/{request_id}/deny
"""

from fastapi import APIRouter, BackgroundTasks, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from hitit.database import get_db
from hitit.models.user import User
from hitit.routers.auth import require_user
from hitit.schemas.base import ActionResult
from hitit.schemas.collaboration import (
    InviteCreate,
    InviteList,
    InviteOut,
    InviteResponse,
    RequestCreate,
    RequestList,
    RequestOut,
    RequestResponse,
)
from hitit.services import invites as invite_service

router = APIRouter(prefix="/api", tags=["collaboration"])


# ═══════════════════════════════════════════════════════════════
#  Invites
# ═══════════════════════════════════════════════════════════════

@router.post("/jams/{jam_id}/invite", response_model=InviteResponse, status_code=status.HTTP_201_CREATED)
async def send_invite(
    jam_id: int,
    payload: InviteCreate,
    background_tasks: BackgroundTasks,
    current_user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    invite = await invite_service.send_invite(
        db,
        jam_id,
        current_user,
        payload.user_id,
        role=payload.role,
        message=payload.message,
        background_tasks=background_tasks,
    )
    return InviteResponse(invite=InviteOut.model_validate(invite))


@router.get("/jams/{jam_id}/invites", response_model=InviteList)
async def list_jam_invites(
    jam_id: int,
    current_user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    invites = await invite_service.list_jam_invites(db, jam_id, current_user)
    return InviteList(invites=[InviteOut.model_validate(i) for i in invites])


@router.get("/invites", response_model=InviteList)
async def list_my_invites(
    current_user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    invites = await invite_service.list_my_invites(db, current_user)
    return InviteList(invites=[InviteOut.model_validate(i) for i in invites])


@router.post("/invites/{invite_id}/accept", response_model=ActionResult)
async def accept_invite(
    invite_id: int,
    current_user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    await invite_service.accept_invite(db, invite_id, current_user)
    return ActionResult(message="Invite accepted! You are now a collaborator.")


@router.post("/invites/{invite_id}/decline", response_model=ActionResult)
async def decline_invite(
    invite_id: int,
    current_user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    await invite_service.decline_invite(db, invite_id, current_user)
    return ActionResult(message="Invite declined")


# ═══════════════════════════════════════════════════════════════
#  Join requests
# ═══════════════════════════════════════════════════════════════

@router.post("/jams/{jam_id}/request", response_model=RequestResponse, status_code=status.HTTP_201_CREATED)
async def request_to_join(
    jam_id: int,
    payload: RequestCreate,
    background_tasks: BackgroundTasks,
    current_user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    request = await invite_service.request_to_join(
        db,
        jam_id,
        current_user,
        requested_role=payload.requested_role,
        message=payload.message,
        skills=payload.skills,
        portfolio=payload.portfolio,
        background_tasks=background_tasks,
    )
    return RequestResponse(request=RequestOut.model_validate(request))


@router.get("/jams/{jam_id}/requests", response_model=RequestList)
async def list_jam_requests(
    jam_id: int,
    current_user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    requests = await invite_service.list_jam_requests(db, jam_id, current_user)
    return RequestList(requests=[RequestOut.model_validate(r) for r in requests])


@router.get("/my-requests", response_model=RequestList)
async def list_my_requests(
    current_user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    requests = await invite_service.list_my_requests(db, current_user)
    return RequestList(requests=[RequestOut.model_validate(r) for r in requests])


@router.post("/requests/{request_id}/approve", response_model=ActionResult)
async def approve_request(
    request_id: int,
    current_user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    await invite_service.approve_request(db, request_id, current_user)
    return ActionResult(message="Request approved")


@router.post("/requests/{request_id}/deny", response_model=ActionResult)
async def deny_request(
    request_id: int,
    current_user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    await invite_service.deny_request(db, request_id, current_user)
    return ActionResult(message="Request denied")
