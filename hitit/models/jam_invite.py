"""Jam invite model — an owner inviting a user to collaborate."""

import enum
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy import DateTime, Enum, ForeignKey, Index, String, text
from sqlalchemy.orm import Mapped, mapped_column

from hitit.config import settings
from hitit.database import Base
from hitit.models.jam import CollaboratorRole
from hitit.utils.clock import utcnow


class InviteStatus(str, enum.Enum):
    pending = "pending"
    accepted = "accepted"
    declined = "declined"
    expired = "expired"


def _default_expiry() -> datetime:
    return utcnow() + timedelta(days=settings.INVITE_EXPIRY_DAYS)


class JamInvite(Base):
    __tablename__ = "jam_invites"
    __table_args__ = (
        Index("ix_jam_invites_invited_status", "invited_user_id", "status"),
        Index("ix_jam_invites_jam_status", "jam_id", "status"),
        # At most one pending invite per (jam, invited user)
        Index(
            "uq_jam_invites_pending",
            "jam_id",
            "invited_user_id",
            unique=True,
            sqlite_where=text("status = 'pending'"),
            postgresql_where=text("status = 'pending'"),
        ),
    )

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    jam_id: Mapped[int] = mapped_column(ForeignKey("jams.id", ondelete="CASCADE"), nullable=False)
    invited_user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    invited_by: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False)

    role: Mapped[CollaboratorRole] = mapped_column(
        Enum(CollaboratorRole), default=CollaboratorRole.contributor, nullable=False
    )
    status: Mapped[InviteStatus] = mapped_column(
        Enum(InviteStatus), default=InviteStatus.pending, nullable=False
    )
    message: Mapped[Optional[str]] = mapped_column(String(500))

    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_default_expiry, index=True)
    responded_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
