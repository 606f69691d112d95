"""Jam activity model — the append-only audit trail of a jam."""

import enum
from datetime import datetime
from typing import Any, Dict, Optional

from sqlalchemy import JSON, DateTime, Enum, ForeignKey, Index, Text
from sqlalchemy.orm import Mapped, mapped_column

from hitit.database import Base
from hitit.utils.clock import utcnow


class ActivityType(str, enum.Enum):
    jam_created = "jam_created"
    clip_added = "clip_added"
    clip_removed = "clip_removed"
    mix_updated = "mix_updated"
    collaborator_added = "collaborator_added"
    collaborator_removed = "collaborator_removed"
    role_changed = "role_changed"
    invite_sent = "invite_sent"
    invite_accepted = "invite_accepted"
    invite_declined = "invite_declined"
    request_sent = "request_sent"
    request_approved = "request_approved"
    request_denied = "request_denied"
    comment_added = "comment_added"
    jam_updated = "jam_updated"
    jam_published = "jam_published"
    version_created = "version_created"
    version_restored = "version_restored"
    version_deleted = "version_deleted"


class JamActivity(Base):
    __tablename__ = "jam_activities"
    __table_args__ = (
        Index("ix_jam_activities_jam_created", "jam_id", "created_at"),
        Index("ix_jam_activities_user_created", "user_id", "created_at"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    jam_id: Mapped[int] = mapped_column(ForeignKey("jams.id", ondelete="CASCADE"), nullable=False)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    action_type: Mapped[ActivityType] = mapped_column(Enum(ActivityType), nullable=False)

    target_user_id: Mapped[Optional[int]] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"))
    target_clip_id: Mapped[Optional[int]] = mapped_column(ForeignKey("clips.id", ondelete="SET NULL"))

    # e.g. {"clipTitle": "My Beat", "role": "producer"}
    details: Mapped[Dict[str, Any]] = mapped_column("metadata", JSON, default=dict)
    description: Mapped[str] = mapped_column(Text, nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, index=True)
