"""
Invite / request workflow.

Invites go owner → user, requests go user → owner. Both start ``pending``
and move exactly once to a terminal state; acting on a record that is no
longer pending is a ConflictError. The "one pending per (jam, user)" rule is
a partial unique index, so the insert itself is the check: the pre-query
only exists to give a friendlier message.
"""

import logging
from typing import Any, List, Optional, Sequence, Tuple

from fastapi import BackgroundTasks
from sqlalchemy import desc, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from hitit.errors import ConflictError, ForbiddenError, InviteExpiredError, NotFoundError, ValidationError
from hitit.models.jam import CollaboratorRole, Jam
from hitit.models.jam_activity import ActivityType
from hitit.models.jam_invite import InviteStatus, JamInvite
from hitit.models.jam_request import JamRequest, RequestStatus
from hitit.models.notification import NotificationType
from hitit.models.user import User
from hitit.services import permissions
from hitit.services.activity import log_activity
from hitit.services.jams import attach_collaborator, find_collaborator, parse_role
from hitit.services.lookups import get_jam_or_404, get_user_or_404
from hitit.services.notifications import create_notification, send_invite_email, send_join_request_email
from hitit.utils.clock import ensure_utc, utcnow

logger = logging.getLogger(__name__)

ALREADY_RESPONDED = "This {kind} has already been responded to"


async def _get_invite_or_404(db: AsyncSession, invite_id: int) -> JamInvite:
    result = await db.execute(select(JamInvite).where(JamInvite.id == invite_id))
    invite = result.scalar_one_or_none()
    if not invite:
        raise NotFoundError("Invite not found")
    return invite


async def _get_request_or_404(db: AsyncSession, request_id: int) -> JamRequest:
    result = await db.execute(select(JamRequest).where(JamRequest.id == request_id))
    request = result.scalar_one_or_none()
    if not request:
        raise NotFoundError("Request not found")
    return request


# ═══════════════════════════════════════════════════════════════
#  Invites
# ═══════════════════════════════════════════════════════════════

async def send_invite(
    db: AsyncSession,
    jam_id: int,
    inviter: User,
    invited_user_id: Optional[int],
    role: Any = CollaboratorRole.contributor,
    message: Optional[str] = None,
    background_tasks: Optional[BackgroundTasks] = None,
) -> JamInvite:
    """Owner invites a user to collaborate on the jam."""
    if not invited_user_id:
        raise ValidationError("User ID is required")
    role = parse_role(role or CollaboratorRole.contributor)

    jam = await get_jam_or_404(db, jam_id)
    permissions.ensure_owner(jam, inviter.id, "Only the jam owner can send invites")

    if invited_user_id == jam.user_id:
        raise ValidationError("You cannot invite the jam owner")
    invitee = await get_user_or_404(db, invited_user_id)

    if find_collaborator(jam, invitee.id):
        raise ConflictError("This user is already a collaborator on this jam", error="Already collaborating")

    existing = await db.execute(
        select(JamInvite.id).where(
            JamInvite.jam_id == jam.id,
            JamInvite.invited_user_id == invitee.id,
            JamInvite.status == InviteStatus.pending,
        )
    )
    if existing.first():
        raise ConflictError("There is already a pending invite for this user", error="Invite already sent")

    invite = JamInvite(
        jam_id=jam.id,
        invited_user_id=invitee.id,
        invited_by=inviter.id,
        role=role,
        message=message or "",
    )
    try:
        async with db.begin_nested():
            db.add(invite)
    except IntegrityError:
        raise ConflictError("There is already a pending invite for this user", error="Invite already sent")

    await create_notification(
        db,
        recipient_id=invitee.id,
        sender_id=inviter.id,
        type=NotificationType.collaborator_add,
        message=f'{inviter.user_name} invited you to collaborate on "{jam.title}" as a {role.value}',
        jam_id=jam.id,
    )
    await log_activity(
        db,
        jam_id=jam.id,
        user_id=inviter.id,
        action_type=ActivityType.invite_sent,
        description=f"{inviter.user_name} invited {invitee.user_name} to collaborate as a {role.value}",
        target_user_id=invitee.id,
        metadata={"role": role.value, "invitedUserName": invitee.user_name},
    )
    await db.commit()

    if background_tasks is not None:
        background_tasks.add_task(
            send_invite_email,
            recipient_email=invitee.email,
            jam_title=jam.title,
            inviter_name=inviter.user_name,
            role=role.value,
            message=message,
        )
    logger.info("User %s invited user %s to jam %s as %s", inviter.id, invitee.id, jam.id, role.value)
    return invite


async def list_my_invites(db: AsyncSession, user: User) -> Sequence[JamInvite]:
    """The caller's pending, unexpired invites, newest first."""
    result = await db.execute(
        select(JamInvite)
        .where(
            JamInvite.invited_user_id == user.id,
            JamInvite.status == InviteStatus.pending,
            JamInvite.expires_at > utcnow(),
        )
        .order_by(desc(JamInvite.created_at), desc(JamInvite.id))
    )
    return result.scalars().all()


async def list_jam_invites(db: AsyncSession, jam_id: int, user: User) -> Sequence[JamInvite]:
    jam = await get_jam_or_404(db, jam_id)
    permissions.ensure_owner(jam, user.id, "Only the jam owner can view invites")
    result = await db.execute(
        select(JamInvite)
        .where(JamInvite.jam_id == jam_id, JamInvite.status == InviteStatus.pending)
        .order_by(desc(JamInvite.created_at), desc(JamInvite.id))
    )
    return result.scalars().all()


async def _load_pending_invite(db: AsyncSession, invite_id: int, user: User) -> JamInvite:
    invite = await _get_invite_or_404(db, invite_id)
    if invite.invited_user_id != user.id:
        raise ForbiddenError("This invite is not for you")
    if invite.status != InviteStatus.pending:
        raise ConflictError(ALREADY_RESPONDED.format(kind="invite"), error="Invalid invite")
    return invite


async def accept_invite(db: AsyncSession, invite_id: int, user: User) -> JamInvite:
    """Invitee joins the jam with the invite's role."""
    invite = await _load_pending_invite(db, invite_id, user)

    if ensure_utc(invite.expires_at) < utcnow():
        invite.status = InviteStatus.expired
        await db.commit()
        raise InviteExpiredError("This invite has expired")

    jam = await get_jam_or_404(db, invite.jam_id)
    role = CollaboratorRole(invite.role)
    if not find_collaborator(jam, user.id):
        await attach_collaborator(db, jam, user.id, role, added_by=invite.invited_by)

    invite.status = InviteStatus.accepted
    invite.responded_at = utcnow()

    await create_notification(
        db,
        recipient_id=invite.invited_by,
        sender_id=user.id,
        type=NotificationType.collaborator_add,
        message=f'{user.user_name} accepted your invite to "{jam.title}"',
        jam_id=jam.id,
    )
    await log_activity(
        db,
        jam_id=jam.id,
        user_id=user.id,
        action_type=ActivityType.invite_accepted,
        description=f"{user.user_name} accepted the invitation and joined as a {role.value}",
        target_user_id=invite.invited_by,
        metadata={"role": role.value},
    )
    await db.commit()
    return invite


async def decline_invite(db: AsyncSession, invite_id: int, user: User) -> JamInvite:
    invite = await _load_pending_invite(db, invite_id, user)

    invite.status = InviteStatus.declined
    invite.responded_at = utcnow()

    await log_activity(
        db,
        jam_id=invite.jam_id,
        user_id=user.id,
        action_type=ActivityType.invite_declined,
        description=f"{user.user_name} declined the invitation",
        target_user_id=invite.invited_by,
        metadata={"role": CollaboratorRole(invite.role).value},
    )
    await db.commit()
    return invite


# ═══════════════════════════════════════════════════════════════
#  Requests
# ═══════════════════════════════════════════════════════════════

async def request_to_join(
    db: AsyncSession,
    jam_id: int,
    user: User,
    requested_role: Any = CollaboratorRole.contributor,
    message: Optional[str] = None,
    skills: Optional[List[str]] = None,
    portfolio: Optional[str] = None,
    background_tasks: Optional[BackgroundTasks] = None,
) -> JamRequest:
    """A non-member asks the owner to join the jam."""
    requested_role = parse_role(requested_role or CollaboratorRole.contributor)
    jam = await get_jam_or_404(db, jam_id)

    if jam.user_id == user.id:
        raise ValidationError("You are the owner of this jam", error="Already owner")
    if find_collaborator(jam, user.id):
        raise ConflictError("You are already a collaborator on this jam", error="Already collaborating")

    existing = await db.execute(
        select(JamRequest.id).where(
            JamRequest.jam_id == jam.id,
            JamRequest.requested_by == user.id,
            JamRequest.status == RequestStatus.pending,
        )
    )
    if existing.first():
        raise ConflictError("You have already sent a request to join this jam", error="Request already sent")

    request = JamRequest(
        jam_id=jam.id,
        requested_by=user.id,
        requested_role=requested_role,
        message=message or "",
        skills=list(skills or []),
        portfolio=portfolio or "",
    )
    try:
        async with db.begin_nested():
            db.add(request)
    except IntegrityError:
        raise ConflictError("You have already sent a request to join this jam", error="Request already sent")

    await create_notification(
        db,
        recipient_id=jam.user_id,
        sender_id=user.id,
        type=NotificationType.collaborator_add,
        message=f'{user.user_name} requested to join "{jam.title}"',
        jam_id=jam.id,
    )
    await log_activity(
        db,
        jam_id=jam.id,
        user_id=user.id,
        action_type=ActivityType.request_sent,
        description=f"{user.user_name} requested to join as a {requested_role.value}",
        metadata={"requestedRole": requested_role.value, "skills": list(skills or []), "portfolio": portfolio},
    )
    await db.commit()

    if background_tasks is not None:
        owner = await db.get(User, jam.user_id)
        if owner:
            background_tasks.add_task(
                send_join_request_email,
                recipient_email=owner.email,
                jam_title=jam.title,
                requester_name=user.user_name,
                role=requested_role.value,
                message=message,
            )
    return request


async def list_jam_requests(db: AsyncSession, jam_id: int, user: User) -> Sequence[JamRequest]:
    jam = await get_jam_or_404(db, jam_id)
    permissions.ensure_owner(jam, user.id, "Only the jam owner can view requests")
    result = await db.execute(
        select(JamRequest)
        .where(JamRequest.jam_id == jam_id, JamRequest.status == RequestStatus.pending)
        .order_by(desc(JamRequest.created_at), desc(JamRequest.id))
    )
    return result.scalars().all()


async def list_my_requests(db: AsyncSession, user: User) -> Sequence[JamRequest]:
    result = await db.execute(
        select(JamRequest)
        .where(JamRequest.requested_by == user.id)
        .order_by(desc(JamRequest.created_at), desc(JamRequest.id))
    )
    return result.scalars().all()


async def _load_pending_request(
    db: AsyncSession, request_id: int, user: User, verb: str
) -> Tuple[JamRequest, Jam]:
    request = await _get_request_or_404(db, request_id)
    jam = await get_jam_or_404(db, request.jam_id)
    permissions.ensure_owner(jam, user.id, f"Only the jam owner can {verb} requests")
    if request.status != RequestStatus.pending:
        raise ConflictError(ALREADY_RESPONDED.format(kind="request"), error="Invalid request")
    return request, jam


async def approve_request(db: AsyncSession, request_id: int, user: User) -> JamRequest:
    """Owner lets the requester in with the role they asked for."""
    request, jam = await _load_pending_request(db, request_id, user, "approve")
    role = CollaboratorRole(request.requested_role)

    if not find_collaborator(jam, request.requested_by):
        await attach_collaborator(db, jam, request.requested_by, role, added_by=user.id)

    request.status = RequestStatus.approved
    request.responded_at = utcnow()
    request.responded_by = user.id

    requester = await get_user_or_404(db, request.requested_by)
    await create_notification(
        db,
        recipient_id=requester.id,
        sender_id=user.id,
        type=NotificationType.collaborator_add,
        message=f'Your request to join "{jam.title}" was approved!',
        jam_id=jam.id,
    )
    await log_activity(
        db,
        jam_id=jam.id,
        user_id=user.id,
        action_type=ActivityType.request_approved,
        description=f"{user.user_name} approved {requester.user_name}'s request to join as a {role.value}",
        target_user_id=requester.id,
        metadata={"role": role.value, "approvedUserName": requester.user_name},
    )
    await db.commit()
    return request


async def deny_request(db: AsyncSession, request_id: int, user: User) -> JamRequest:
    request, _ = await _load_pending_request(db, request_id, user, "deny")

    request.status = RequestStatus.denied
    request.responded_at = utcnow()
    request.responded_by = user.id

    await log_activity(
        db,
        jam_id=request.jam_id,
        user_id=user.id,
        action_type=ActivityType.request_denied,
        description=f"{user.user_name} denied a request to join",
        target_user_id=request.requested_by,
        metadata={"requestedRole": CollaboratorRole(request.requested_role).value},
    )
    await db.commit()
    return request
