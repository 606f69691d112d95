"""Jam request model — a non-member asking to join a jam."""

import enum
from datetime import datetime
from typing import List, Optional

from sqlalchemy import JSON, DateTime, Enum, ForeignKey, Index, String, text
from sqlalchemy.orm import Mapped, mapped_column

from hitit.database import Base
from hitit.models.jam import CollaboratorRole
from hitit.utils.clock import utcnow


class RequestStatus(str, enum.Enum):
    pending = "pending"
    approved = "approved"
    denied = "denied"


class JamRequest(Base):
    __tablename__ = "jam_requests"
    __table_args__ = (
        Index("ix_jam_requests_jam_status", "jam_id", "status"),
        Index("ix_jam_requests_user_status", "requested_by", "status"),
        # At most one pending request per (jam, requester)
        Index(
            "uq_jam_requests_pending",
            "jam_id",
            "requested_by",
            unique=True,
            sqlite_where=text("status = 'pending'"),
            postgresql_where=text("status = 'pending'"),
        ),
    )

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    jam_id: Mapped[int] = mapped_column(ForeignKey("jams.id", ondelete="CASCADE"), nullable=False)
    requested_by: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    requested_role: Mapped[CollaboratorRole] = mapped_column(
        Enum(CollaboratorRole), default=CollaboratorRole.contributor, nullable=False
    )
    status: Mapped[RequestStatus] = mapped_column(
        Enum(RequestStatus), default=RequestStatus.pending, nullable=False
    )
    message: Mapped[Optional[str]] = mapped_column(String(500))
    skills: Mapped[List[str]] = mapped_column(JSON, default=list)  # e.g. ["drums", "mixing"]
    portfolio: Mapped[Optional[str]] = mapped_column(String(500))

    responded_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    responded_by: Mapped[Optional[int]] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
