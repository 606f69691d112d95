"""Jam model — a collaborative mix, its ordered clips and its collaborators."""

import enum
from datetime import datetime
from typing import List, Optional

from sqlalchemy import (
    Boolean,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from hitit.database import Base
from hitit.utils.clock import utcnow


class CollaboratorRole(str, enum.Enum):
    """Roles that can be stored on a collaborator row (owner is implicit)."""
    producer = "producer"
    contributor = "contributor"
    viewer = "viewer"


class Jam(Base):
    __tablename__ = "jams"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    title: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)
    genre: Mapped[str] = mapped_column(String(50), nullable=False)
    image: Mapped[Optional[str]] = mapped_column(String(500))
    is_private: Mapped[bool] = mapped_column(Boolean, default=False)
    likes: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow
    )

    # ── Relationships ──
    clip_links: Mapped[List["JamClip"]] = relationship(
        back_populates="jam",
        cascade="all, delete-orphan",
        order_by="JamClip.position",
        lazy="selectin",
    )
    collaborators: Mapped[List["JamCollaborator"]] = relationship(
        back_populates="jam",
        cascade="all, delete-orphan",
        order_by="JamCollaborator.added_at",
        lazy="selectin",
    )

    @property
    def clip_ids(self) -> List[int]:
        return [link.clip_id for link in self.clip_links]


class JamClip(Base):
    """Position of one clip inside a jam's ordered clip list."""

    __tablename__ = "jam_clips"
    __table_args__ = (UniqueConstraint("jam_id", "clip_id", name="uq_jam_clips_jam_clip"),)

    id: Mapped[int] = mapped_column(primary_key=True)
    jam_id: Mapped[int] = mapped_column(ForeignKey("jams.id", ondelete="CASCADE"), nullable=False)
    clip_id: Mapped[int] = mapped_column(ForeignKey("clips.id", ondelete="CASCADE"), nullable=False)
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    added_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

    jam: Mapped["Jam"] = relationship(back_populates="clip_links")


class JamCollaborator(Base):
    """
    A (user, role) membership on a jam.

    The jam owner never has a row here; ownership is read from ``Jam.user_id``.
    """

    __tablename__ = "jam_collaborators"
    __table_args__ = (UniqueConstraint("jam_id", "user_id", name="uq_jam_collaborators_jam_user"),)

    id: Mapped[int] = mapped_column(primary_key=True)
    jam_id: Mapped[int] = mapped_column(ForeignKey("jams.id", ondelete="CASCADE"), nullable=False)
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    role: Mapped[CollaboratorRole] = mapped_column(
        Enum(CollaboratorRole), default=CollaboratorRole.contributor, nullable=False
    )
    added_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    added_by: Mapped[Optional[int]] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"))

    jam: Mapped["Jam"] = relationship(back_populates="collaborators")
